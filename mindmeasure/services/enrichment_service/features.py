"""Feature-vector normalisation for multimodal enrichment.

The Assessment Engine either returns ready-made audio/visual scores or the
raw feature vectors it extracted. Raw vectors are mapped here onto the same
0-100 wellbeing proxies. Each feature is scored against its typical healthy
range, the sub-scores are averaged, and the average is weighted by the
capture quality the engine reported.
"""
import logging
import math
from dataclasses import dataclass, fields
from typing import Any, List, Mapping, Optional

from mindmeasure.shared.models import MultimodalFeatureScores
from mindmeasure.shared.utils import clamp

logger = logging.getLogger(__name__)

NEUTRAL_AUDIO_SCORE = 50.0
DEFAULT_AUDIO_QUALITY = 0.5


class EnrichmentPayloadError(ValueError):
    """Enrichment response could not be interpreted."""


def _finite(value: Optional[float]) -> bool:
    return value is not None and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class AudioFeatures:
    """Prosodic and voice-quality features from the conversation audio."""
    mean_pitch: Optional[float] = None          # Hz, typical 85-300
    pitch_variability: Optional[float] = None   # Hz, typical 0-50
    speaking_rate: Optional[float] = None       # words per minute
    pause_frequency: Optional[float] = None     # pauses per minute
    pause_duration: Optional[float] = None      # seconds
    voice_energy: Optional[float] = None        # 0-1
    jitter: Optional[float] = None              # 0-1
    shimmer: Optional[float] = None             # 0-1
    harmonic_ratio: Optional[float] = None      # 0-1
    quality: Optional[float] = None             # 0-1 capture quality


@dataclass(frozen=True)
class VisualFeatures:
    """Facial-expression features from sampled video frames."""
    smile_frequency: float
    smile_intensity: float
    eye_contact: float
    eyebrow_position: float
    facial_tension: float
    blink_rate: float               # blinks per minute
    head_movement: float
    affect: float                   # -1 to 1
    face_presence_quality: float    # 0-1
    overall_quality: float          # 0-1


def normalize_audio_features(features: AudioFeatures) -> float:
    """Map audio features to a 0-100 wellbeing proxy.

    Missing or non-finite features are skipped. With nothing usable the
    neutral score is returned.
    """
    scores: List[float] = []

    def add(value: Optional[float], to_score) -> None:
        if _finite(value):
            scores.append(clamp(to_score(value), 0.0, 100.0))

    add(features.mean_pitch, lambda p: 100 - abs(p - 165) / 2)
    add(features.pitch_variability, lambda v: 100 - v * 2)
    add(features.speaking_rate, lambda r: 100 - abs(r - 150) / 2)
    add(features.pause_frequency, lambda f: 100 - abs(f - 5) * 10)
    add(features.pause_duration, lambda d: 100 - abs(d - 0.5) * 100)
    add(features.voice_energy, lambda e: e * 100)
    add(features.jitter, lambda j: (1 - j) * 100)
    add(features.shimmer, lambda s: (1 - s) * 100)
    add(features.harmonic_ratio, lambda h: h * 100)

    if not scores:
        logger.warning("AUDIO_FEATURES_EMPTY", extra={"fallback_score": NEUTRAL_AUDIO_SCORE})
        return NEUTRAL_AUDIO_SCORE

    quality = features.quality if _finite(features.quality) and features.quality else DEFAULT_AUDIO_QUALITY
    return (sum(scores) / len(scores)) * quality


def normalize_visual_features(features: VisualFeatures) -> float:
    """Map visual features to a 0-100 wellbeing proxy."""
    scores = [
        clamp(features.smile_frequency * 100, 0.0, 100.0),
        clamp(features.smile_intensity * 100, 0.0, 100.0),
        clamp(features.eye_contact * 100, 0.0, 100.0),
        clamp(100 - abs(features.eyebrow_position - 0.4) * 100, 0.0, 100.0),
        clamp((1 - features.facial_tension) * 100, 0.0, 100.0),
        clamp(100 - abs(features.blink_rate - 17) * 3, 0.0, 100.0),
        clamp(100 - abs(features.head_movement - 0.5) * 100, 0.0, 100.0),
        clamp((features.affect + 1) * 50, 0.0, 100.0),
    ]
    return (sum(scores) / len(scores)) * features.overall_quality


def feature_confidence(audio: AudioFeatures, visual: VisualFeatures) -> float:
    """Confidence implied by the capture quality of both modalities."""
    audio_quality = audio.quality if _finite(audio.quality) else DEFAULT_AUDIO_QUALITY
    confidence = audio_quality * visual.overall_quality * visual.face_presence_quality
    return clamp(confidence, 0.0, 1.0)


def _optional_score(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        score = float(value)
    except (TypeError, ValueError) as e:
        raise EnrichmentPayloadError(f"Score is not numeric: {value!r}") from e
    # NaN/inf/out-of-range scores are treated as an unavailable modality
    if not math.isfinite(score) or not 0.0 <= score <= 100.0:
        return None
    return score


def _build(cls, data: Mapping[str, Any]):
    if not isinstance(data, Mapping):
        raise EnrichmentPayloadError(f"Malformed {cls.__name__}: expected an object")
    try:
        features = cls(**dict(data))
    except TypeError as e:
        raise EnrichmentPayloadError(f"Malformed {cls.__name__}: {e}") from e

    # None is only allowed where the field itself is optional
    for f in fields(cls):
        value = getattr(features, f.name)
        if value is None and f.default is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise EnrichmentPayloadError(
                f"Malformed {cls.__name__}: {f.name} is not numeric: {value!r}"
            )
    return features


def parse_enrichment_payload(payload: Mapping[str, Any]) -> MultimodalFeatureScores:
    """Interpret an Assessment Engine response.

    Accepts either ``{"audio_score", "visual_score", "confidence"?}`` or
    ``{"audio_features": {...}, "visual_features": {...}}``.

    Raises:
        EnrichmentPayloadError: If the payload matches neither shape
    """
    if not isinstance(payload, Mapping):
        raise EnrichmentPayloadError(f"Expected an object, got {type(payload).__name__}")

    if "audio_features" in payload or "visual_features" in payload:
        audio_data = payload.get("audio_features")
        visual_data = payload.get("visual_features")
        audio = _build(AudioFeatures, audio_data) if audio_data else None
        visual = _build(VisualFeatures, visual_data) if visual_data else None

        confidence = None
        if audio is not None and visual is not None:
            confidence = feature_confidence(audio, visual)

        return MultimodalFeatureScores(
            audio_score=_optional_score(normalize_audio_features(audio)) if audio else None,
            visual_score=_optional_score(normalize_visual_features(visual)) if visual else None,
            confidence=confidence,
        )

    if "audio_score" in payload or "visual_score" in payload:
        confidence = payload.get("confidence")
        if confidence is not None:
            try:
                confidence = clamp(float(confidence), 0.0, 1.0)
            except (TypeError, ValueError) as e:
                raise EnrichmentPayloadError(f"Confidence is not numeric: {confidence!r}") from e
        return MultimodalFeatureScores(
            audio_score=_optional_score(payload.get("audio_score")),
            visual_score=_optional_score(payload.get("visual_score")),
            confidence=confidence,
        )

    raise EnrichmentPayloadError(
        f"Unrecognised enrichment payload keys: {sorted(payload.keys())}"
    )

