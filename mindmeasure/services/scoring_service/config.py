"""Scoring Service configuration: weights, screening cut-offs, phrase tables.

PHQ-2/GAD-2 cut-off source:
Kroenke et al., "The Patient Health Questionnaire-2" (Med Care, 2003);
Kroenke et al., "Anxiety disorders in primary care" (Ann Intern Med, 2007).

The composite weights are the Mind Measure product formula and are not a
clinical standard. Changing any default here changes historical comparability
of stored scores.
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class CompositeWeights:
    """Weights fusing clinical sub-scores into the Mind Measure composite."""
    phq2: float = 0.25
    gad2: float = 0.25
    mood: float = 0.50


@dataclass(frozen=True)
class ScreeningThresholds:
    """Positive-screen cut-offs for the 0-6 short-form totals."""
    PHQ2_POSITIVE_MIN: int = 3
    GAD2_POSITIVE_MIN: int = 3


@dataclass(frozen=True)
class ScoringConfig:
    """Configuration for the scoring pipeline."""
    composite_weights: CompositeWeights = field(default_factory=CompositeWeights)
    thresholds: ScreeningThresholds = field(default_factory=ScreeningThresholds)

    # Mood used when the mood answer could not be parsed
    neutral_mood: int = 5

    # Per-item frequency range
    max_item_score: int = 3


# Frequency phrases in match order (first containment wins).
# "several day" covers both "several day" and "several days".
FREQUENCY_PHRASES: Tuple[Tuple[str, int], ...] = (
    ("not at all", 0),
    ("several day", 1),
    ("more than half", 2),
    ("nearly every day", 3),
)

# Scanned in ascending order, first match wins
MOOD_NUMBER_WORDS: Dict[str, int] = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
}

MOOD_MIN = 1
MOOD_MAX = 10

# Positional protocol: index 0 is the readiness confirmation and is discarded
POSITIONAL_UTTERANCE_INDEX: Dict[str, int] = {
    "phq2_q1": 1,
    "phq2_q2": 2,
    "gad2_q1": 3,
    "gad2_q2": 4,
    "mood": 5,
}
