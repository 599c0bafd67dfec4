"""Enrichment Service configuration.

Values come from the environment so the same build runs against the
Assessment Engine Lambda in AWS and an HTTP endpoint in local development.
"""
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class HybridWeights:
    """Split between clinical composite and multimodal signal (baseline only)."""
    clinical: float = 0.70
    multimodal: float = 0.30


class ProviderKind(Enum):
    """How the external enrichment service is reached."""
    LAMBDA = "lambda"
    HTTP = "http"
    NONE = "none"


@dataclass(frozen=True)
class EnrichmentConfig:
    """Configuration for multimodal enrichment."""
    enabled: bool = True
    provider: ProviderKind = ProviderKind.LAMBDA

    # Single attempt, then fall back to clinical-only scoring
    timeout_seconds: float = 15.0

    endpoint_url: Optional[str] = None
    api_token: Optional[str] = None
    function_name: str = "assessment-engine-enrich"
    region: str = "eu-west-2"

    @classmethod
    def from_env(cls) -> "EnrichmentConfig":
        """Create config from environment variables.

        Environment variables:
            MM_ENRICHMENT_ENABLED: "true"/"false" (default true)
            MM_ENRICHMENT_PROVIDER: lambda | http | none (default lambda)
            MM_ENRICHMENT_TIMEOUT_SECONDS: Call timeout (default 15)
            MM_ASSESSMENT_ENGINE_URL: HTTP endpoint for the http provider
            MM_ASSESSMENT_ENGINE_TOKEN: Bearer token for the http provider
            MM_ASSESSMENT_ENGINE_FUNCTION: Lambda function name
            AWS_REGION: AWS region (default eu-west-2)
        """
        return cls(
            enabled=os.getenv("MM_ENRICHMENT_ENABLED", "true").lower() == "true",
            provider=ProviderKind(os.getenv("MM_ENRICHMENT_PROVIDER", "lambda").lower()),
            timeout_seconds=float(os.getenv("MM_ENRICHMENT_TIMEOUT_SECONDS", "15")),
            endpoint_url=os.getenv("MM_ASSESSMENT_ENGINE_URL"),
            api_token=os.getenv("MM_ASSESSMENT_ENGINE_TOKEN"),
            function_name=os.getenv("MM_ASSESSMENT_ENGINE_FUNCTION", "assessment-engine-enrich"),
            region=os.getenv("AWS_REGION", "eu-west-2"),
        )
