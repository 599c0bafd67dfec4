"""Enrichment Service: multimodal blending for baseline assessments.

Baseline scores are blended 70/30 with audio/visual wellbeing proxies from
the external Assessment Engine. Any capture or enrichment failure degrades
to the clinical-only score; it never blocks the assessment.

Components:
- adapter.py: MultimodalEnrichmentAdapter, blend + degrade + state machine
- providers.py: Assessment Engine clients (Lambda via boto3, HTTP via aiohttp)
- features.py: Raw feature-vector normalisation and payload parsing
- config.py: EnrichmentConfig (environment driven) and HybridWeights
"""

from .config import EnrichmentConfig, HybridWeights, ProviderKind
from .features import (
    AudioFeatures,
    VisualFeatures,
    EnrichmentPayloadError,
    normalize_audio_features,
    normalize_visual_features,
    parse_enrichment_payload,
)
from .providers import (
    EnrichmentError,
    EnrichmentProvider,
    EnrichmentRequest,
    AssessmentEngineHTTPProvider,
    LambdaEnrichmentProvider,
    build_provider,
)
from .adapter import (
    EnrichmentOutcome,
    EnrichmentSession,
    EnrichmentState,
    InvalidStateTransition,
    MultimodalEnrichmentAdapter,
    clinical_only_breakdown,
)

__all__ = [
    "EnrichmentConfig",
    "HybridWeights",
    "ProviderKind",
    "AudioFeatures",
    "VisualFeatures",
    "EnrichmentPayloadError",
    "normalize_audio_features",
    "normalize_visual_features",
    "parse_enrichment_payload",
    "EnrichmentError",
    "EnrichmentProvider",
    "EnrichmentRequest",
    "AssessmentEngineHTTPProvider",
    "LambdaEnrichmentProvider",
    "build_provider",
    "EnrichmentOutcome",
    "EnrichmentSession",
    "EnrichmentState",
    "InvalidStateTransition",
    "MultimodalEnrichmentAdapter",
    "clinical_only_breakdown",
]
