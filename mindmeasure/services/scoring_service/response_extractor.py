"""Clinical response extractor - maps user answers to PHQ-2/GAD-2/mood values.

The assessment script asks, in order: a readiness confirmation, two PHQ-2
frequency questions, two GAD-2 frequency questions and a 1-10 mood question.
By default answers are taken by position in the list of user utterances.

Agents may instead tag their questions (``[phq2_q1]`` ... ``[mood]``). When
any tag is present the answer to each tagged question is the first user turn
after it, so a reordered script still scores correctly.

The extractor never raises. Unparseable or missing frequency answers default
to 0 and an unparseable mood to None; both are reported in
``unparsed_items`` so callers can see which defaults were applied.
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from mindmeasure.shared.models import (
    ClinicalItem,
    ClinicalResponses,
    FREQUENCY_ITEMS,
    Speaker,
    Turn,
)
from .config import FREQUENCY_PHRASES, MOOD_NUMBER_WORDS, POSITIONAL_UTTERANCE_INDEX
from .transcript_parser import TranscriptParser

logger = logging.getLogger(__name__)


# "10" must come first so "10" is not read as "1"
MOOD_DIGIT_PATTERN = re.compile(r"\b(10|[1-9])\b")

QUESTION_TAG_PATTERN = re.compile(
    r"\[(" + "|".join(item.value for item in ClinicalItem) + r")\]",
    re.IGNORECASE,
)


class ExtractionMode(Enum):
    """How answers were located in the transcript."""
    POSITIONAL = "positional"
    TAGGED = "tagged"


@dataclass(frozen=True)
class ExtractedAssessment:
    """Best-effort extraction result for one transcript."""
    responses: ClinicalResponses
    mood_score: Optional[int]
    extraction_mode: ExtractionMode = ExtractionMode.POSITIONAL
    unparsed_items: Tuple[str, ...] = field(default_factory=tuple)
    user_turn_count: int = 0


def parse_frequency_response(response: str) -> Optional[int]:
    """Map a free-text frequency answer to the 0-3 scale.

    Args:
        response: User utterance

    Returns:
        0-3 for a recognised phrase, None otherwise
    """
    if not response:
        return None
    text = response.lower()
    for phrase, value in FREQUENCY_PHRASES:
        if phrase in text:
            return value
    return None


def parse_mood_response(response: str) -> Optional[int]:
    """Read a 1-10 mood rating from a free-text answer.

    A standalone digit token wins; otherwise the number words one..ten are
    scanned in ascending order and the first one contained in the text is
    used, so "someone" reads as 1 and "often" as 10. Stored scores were
    produced this way.
    """
    if not response:
        return None
    text = response.lower()

    digit_match = MOOD_DIGIT_PATTERN.search(text)
    if digit_match:
        return int(digit_match.group(1))

    for word, value in MOOD_NUMBER_WORDS.items():
        if word in text:
            return value
    return None


class ClinicalResponseExtractor:
    """Extracts clinical answers from a parsed conversation."""

    def __init__(self, parser: Optional[TranscriptParser] = None):
        self.parser = parser or TranscriptParser()

    def extract(self, transcript: str) -> ExtractedAssessment:
        """Parse a raw transcript and extract its answers."""
        return self.extract_from_turns(self.parser.parse_turns(transcript or ""))

    def extract_from_turns(self, turns: Sequence[Turn]) -> ExtractedAssessment:
        """Extract answers, using question tags when the agent supplied them."""
        user_count = sum(1 for t in turns if t.speaker == Speaker.USER)

        if any(t.speaker == Speaker.AGENT and QUESTION_TAG_PATTERN.search(t.text) for t in turns):
            answers = self._answers_by_tag(turns)
            mode = ExtractionMode.TAGGED
        else:
            utterances = [t.text.lower() for t in turns if t.speaker == Speaker.USER]
            answers = self._answers_by_position(utterances)
            mode = ExtractionMode.POSITIONAL

        return self._build(answers, mode, user_count)

    def extract_from_utterances(self, utterances: Sequence[str]) -> ExtractedAssessment:
        """Positional extraction over an already-parsed utterance list."""
        return self._build(
            self._answers_by_position([u.lower() for u in utterances]),
            ExtractionMode.POSITIONAL,
            len(utterances),
        )

    def _answers_by_position(self, utterances: Sequence[str]) -> Dict[str, Optional[str]]:
        answers: Dict[str, Optional[str]] = {}
        for key, index in POSITIONAL_UTTERANCE_INDEX.items():
            answers[key] = utterances[index] if index < len(utterances) else None
        return answers

    def _answers_by_tag(self, turns: Sequence[Turn]) -> Dict[str, Optional[str]]:
        answers: Dict[str, Optional[str]] = {item.value: None for item in ClinicalItem}
        pending: Optional[str] = None

        for turn in turns:
            if turn.speaker == Speaker.AGENT:
                match = QUESTION_TAG_PATTERN.search(turn.text)
                pending = match.group(1).lower() if match else None
            elif pending is not None:
                # First answer wins if a question is asked twice
                if answers[pending] is None:
                    answers[pending] = turn.text.lower()
                pending = None

        return answers

    def _build(
        self,
        answers: Dict[str, Optional[str]],
        mode: ExtractionMode,
        user_count: int,
    ) -> ExtractedAssessment:
        values: Dict[str, int] = {}
        unparsed: List[str] = []

        for item in FREQUENCY_ITEMS:
            parsed = parse_frequency_response(answers.get(item.value) or "")
            if parsed is None:
                unparsed.append(item.value)
                parsed = 0
            values[item.value] = parsed

        mood = parse_mood_response(answers.get(ClinicalItem.MOOD.value) or "")
        if mood is None:
            unparsed.append(ClinicalItem.MOOD.value)

        if unparsed:
            logger.warning(
                "CLINICAL_RESPONSES_DEFAULTED",
                extra={
                    "unparsed_items": unparsed,
                    "extraction_mode": mode.value,
                    "user_turn_count": user_count,
                }
            )

        logger.info(
            "CLINICAL_RESPONSES_EXTRACTED",
            extra={
                "extraction_mode": mode.value,
                "user_turn_count": user_count,
                "mood_parsed": mood is not None,
                "defaulted_count": len(unparsed),
            }
        )

        return ExtractedAssessment(
            responses=ClinicalResponses(**values),
            mood_score=mood,
            extraction_mode=mode,
            unparsed_items=tuple(unparsed),
            user_turn_count=user_count,
        )
