"""Tests for MultimodalEnrichmentAdapter.

Enrichment must never block an assessment: every failure mode resolves to
the clinical-only score.
"""
import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from mindmeasure.shared.models import CapturedMedia, ModelVersion, MultimodalFeatureScores
from mindmeasure.shared.utils import configure_pii_salt, pii
from mindmeasure.services.enrichment_service.adapter import (
    EnrichmentSession,
    EnrichmentState,
    InvalidStateTransition,
    MultimodalEnrichmentAdapter,
    clinical_only_breakdown,
)
from mindmeasure.services.enrichment_service.config import EnrichmentConfig, HybridWeights
from mindmeasure.services.enrichment_service.providers import EnrichmentError, EnrichmentProvider

DEGRADED_PATH = (
    EnrichmentState.CAPTURING,
    EnrichmentState.ENRICHING,
    EnrichmentState.DEGRADED,
    EnrichmentState.SCORED,
)


@pytest.fixture(autouse=True)
def setup_pii_salt():
    """Configure PII salt before each test."""
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def media():
    return CapturedMedia(
        audio_key="assessments/assess_001/audio.webm",
        video_frame_keys=("assessments/assess_001/frame_000.jpg", "assessments/assess_001/frame_001.jpg"),
        duration_seconds=300.0,
    )


def make_provider(result=None, side_effect=None):
    provider = MagicMock(spec=EnrichmentProvider)
    provider.name = "mock"
    provider.fetch_feature_scores = AsyncMock(return_value=result, side_effect=side_effect)
    return provider


@pytest.fixture
def adapter():
    return MultimodalEnrichmentAdapter(
        provider=make_provider(MultimodalFeatureScores(audio_score=75, visual_score=73)),
    )


class TestBlend:
    """Pure blending, no I/O."""

    def test_documented_example(self, adapter):
        breakdown = adapter.blend(82, MultimodalFeatureScores(audio_score=75, visual_score=73))

        # 82 * 0.7 + 74 * 0.3 = 79.6
        assert breakdown.final_score == 80
        assert breakdown.multimodal_score == 74
        assert breakdown.model_version == ModelVersion.MULTIMODAL
        assert breakdown.enabled is True
        assert breakdown.clinical_weight == 0.7
        assert breakdown.multimodal_weight == 0.3

    @pytest.mark.parametrize("scores,warning", [
        (MultimodalFeatureScores(audio_score=75), "Visual score unavailable - using clinical score only"),
        (MultimodalFeatureScores(visual_score=73), "Audio score unavailable - using clinical score only"),
        (MultimodalFeatureScores(audio_score=175, visual_score=73), "Multimodal scores out of range - using clinical score only"),
    ])
    def test_incomplete_scores_use_clinical(self, adapter, scores, warning):
        breakdown = adapter.blend(82, scores)

        assert breakdown.final_score == 82
        assert breakdown.model_version == ModelVersion.CLINICAL
        assert breakdown.enabled is False
        assert breakdown.multimodal_weight == 0.0
        assert warning in breakdown.warnings

    def test_no_scores(self, adapter):
        breakdown = adapter.blend(41, None)

        assert breakdown.final_score == 41
        assert breakdown.confidence == 0.7

    def test_bounds(self, adapter):
        best = adapter.blend(100, MultimodalFeatureScores(audio_score=100, visual_score=100))
        worst = adapter.blend(0, MultimodalFeatureScores(audio_score=0, visual_score=0))

        assert best.final_score == 100
        assert worst.final_score == 0

    def test_custom_weights(self):
        adapter = MultimodalEnrichmentAdapter(
            provider=make_provider(),
            weights=HybridWeights(clinical=0.5, multimodal=0.5),
        )

        breakdown = adapter.blend(60, MultimodalFeatureScores(audio_score=80, visual_score=80))

        assert breakdown.final_score == 70


class TestConfidence:

    def test_reported_confidence_kept(self, adapter):
        breakdown = adapter.blend(
            60, MultimodalFeatureScores(audio_score=70, visual_score=70, confidence=0.8),
        )
        assert breakdown.confidence == pytest.approx(0.8)

    def test_missing_confidence_defaults_to_full(self, adapter):
        breakdown = adapter.blend(60, MultimodalFeatureScores(audio_score=70, visual_score=70))
        assert breakdown.confidence == 1.0

    @pytest.mark.parametrize("clinical_score", [19, 96])
    def test_extreme_clinical_score_penalised(self, adapter, clinical_score):
        breakdown = adapter.blend(
            clinical_score, MultimodalFeatureScores(audio_score=70, visual_score=70, confidence=0.8),
        )
        assert breakdown.confidence == pytest.approx(0.72)

    @pytest.mark.parametrize("clinical_score", [20, 95])
    def test_band_edges_not_penalised(self, adapter, clinical_score):
        breakdown = adapter.blend(
            clinical_score, MultimodalFeatureScores(audio_score=70, visual_score=70, confidence=0.8),
        )
        assert breakdown.confidence == pytest.approx(0.8)

    def test_failed_enrichment_confidence(self):
        assert clinical_only_breakdown(60, failed=True).confidence == 0.5
        assert clinical_only_breakdown(60).confidence == 0.7


class TestEnrich:

    @pytest.mark.asyncio
    async def test_successful_enrichment(self, adapter, media):
        outcome = await adapter.enrich("assess_001", "user_123", 82, media)

        assert outcome.final_score == 80
        assert outcome.degraded is False
        assert outcome.states == (
            EnrichmentState.CAPTURING,
            EnrichmentState.ENRICHING,
            EnrichmentState.ENRICHED,
            EnrichmentState.SCORED,
        )

    @pytest.mark.asyncio
    async def test_request_contents(self, adapter, media):
        await adapter.enrich("assess_001", "user_123", 82, media)

        request = adapter.provider.fetch_feature_scores.await_args.args[0]
        assert request.assessment_id == "assess_001"
        assert request.clinical_score == 82
        assert request.media is media
        assert request.user_id_hash != "user_123"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("captured", [None, CapturedMedia()])
    async def test_no_media(self, adapter, captured):
        outcome = await adapter.enrich("assess_001", "user_123", 82, captured)

        assert outcome.final_score == 82
        assert outcome.states == DEGRADED_PATH
        assert outcome.breakdown.warnings == (
            "No multimodal data captured - using clinical score only",
        )
        adapter.provider.fetch_feature_scores.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_disabled(self, media):
        adapter = MultimodalEnrichmentAdapter(config=EnrichmentConfig(enabled=False))

        outcome = await adapter.enrich("assess_001", "user_123", 82, media)

        assert adapter.provider is None
        assert outcome.final_score == 82
        assert "Multimodal enrichment disabled - using clinical score only" in outcome.breakdown.warnings

    @pytest.mark.asyncio
    async def test_audio_only_capture(self):
        adapter = MultimodalEnrichmentAdapter(
            provider=make_provider(MultimodalFeatureScores(audio_score=75)),
        )

        outcome = await adapter.enrich(
            "assess_001", "user_123", 82, CapturedMedia(audio_key="audio.webm"),
        )

        assert outcome.final_score == 82
        assert outcome.breakdown.model_version == ModelVersion.CLINICAL
        assert "No video data available" in outcome.breakdown.warnings
        assert outcome.degraded is True

    @pytest.mark.asyncio
    async def test_timeout_degrades(self, media):
        async def slow_fetch(request):
            await asyncio.sleep(5)

        provider = make_provider()
        provider.fetch_feature_scores = slow_fetch
        adapter = MultimodalEnrichmentAdapter(
            provider=provider, config=EnrichmentConfig(timeout_seconds=0.01),
        )

        outcome = await adapter.enrich("assess_001", "user_123", 82, media)

        assert outcome.final_score == 82
        assert outcome.breakdown.confidence == 0.5
        assert outcome.breakdown.warnings == ("Multimodal enrichment timed out after 0.01s",)
        assert outcome.states == DEGRADED_PATH

    @pytest.mark.asyncio
    async def test_provider_error_degrades(self, media):
        adapter = MultimodalEnrichmentAdapter(
            provider=make_provider(side_effect=EnrichmentError("HTTP 503")),
        )

        outcome = await adapter.enrich("assess_001", "user_123", 82, media)

        assert outcome.final_score == 82
        assert outcome.breakdown.confidence == 0.5
        assert "Multimodal enrichment failed: HTTP 503" in outcome.breakdown.warnings

    @pytest.mark.asyncio
    async def test_unexpected_error_degrades(self, media):
        adapter = MultimodalEnrichmentAdapter(
            provider=make_provider(side_effect=KeyError("audio")),
        )

        outcome = await adapter.enrich("assess_001", "user_123", 82, media)

        assert outcome.final_score == 82
        assert "Multimodal enrichment failed unexpectedly: KeyError" in outcome.breakdown.warnings

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_result", [{"audio_score": 75, "visual_score": 73}, None, 74])
    async def test_wrong_result_type_degrades(self, media, bad_result):
        adapter = MultimodalEnrichmentAdapter(provider=make_provider(bad_result))

        outcome = await adapter.enrich("assess_001", "user_123", 82, media)

        assert outcome.final_score == 82
        assert outcome.breakdown.confidence == 0.5
        assert outcome.states == DEGRADED_PATH
        assert any("Multimodal enrichment returned" in w for w in outcome.breakdown.warnings)


class TestMissingPiiSalt:
    """Raw user ids never reach the provider."""

    def test_construction_requires_salt(self, monkeypatch):
        monkeypatch.setattr(pii, "_PII_SALT", None)

        with pytest.raises(RuntimeError, match="not configured"):
            MultimodalEnrichmentAdapter(provider=make_provider())

    @pytest.mark.asyncio
    async def test_enrich_degrades_when_salt_lost(self, monkeypatch, adapter, media):
        monkeypatch.setattr(pii, "_PII_SALT", None)

        outcome = await adapter.enrich("assess_001", "user_123", 82, media)

        assert outcome.final_score == 82
        assert outcome.breakdown.confidence == 0.5
        assert outcome.states == DEGRADED_PATH
        assert outcome.breakdown.warnings[0].startswith("Multimodal enrichment skipped")
        adapter.provider.fetch_feature_scores.assert_not_awaited()


class TestEnrichmentSession:

    def test_starts_capturing(self):
        session = EnrichmentSession(assessment_id="assess_001")

        assert session.state == EnrichmentState.CAPTURING
        assert session.history == [EnrichmentState.CAPTURING]

    def test_cannot_skip_enriching(self):
        session = EnrichmentSession(assessment_id="assess_001")

        with pytest.raises(InvalidStateTransition):
            session.transition(EnrichmentState.SCORED)

    def test_scored_is_terminal(self):
        session = EnrichmentSession(assessment_id="assess_001")
        session.transition(EnrichmentState.ENRICHING)
        session.transition(EnrichmentState.DEGRADED)
        session.transition(EnrichmentState.SCORED)

        with pytest.raises(InvalidStateTransition):
            session.transition(EnrichmentState.ENRICHING)
