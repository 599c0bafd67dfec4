"""Clients for the external Assessment Engine enrichment service.

The engine runs audio/visual feature extraction on media the client uploaded
and returns either ready-made scores or raw feature vectors. Providers make
exactly one attempt; retries, timeouts and fallback belong to the adapter.
"""
import asyncio
import functools
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp
import boto3
from botocore.config import Config as BotoConfig

from mindmeasure.shared.models import CapturedMedia, MultimodalFeatureScores
from .config import EnrichmentConfig, ProviderKind
from .features import parse_enrichment_payload

logger = logging.getLogger(__name__)


class EnrichmentError(Exception):
    """The enrichment service failed or returned an unusable response."""


@dataclass(frozen=True)
class EnrichmentRequest:
    """Everything the engine needs to score one assessment's media."""
    assessment_id: str
    user_id_hash: str
    clinical_score: int
    media: CapturedMedia

    def to_payload(self) -> Dict[str, Any]:
        return {
            "assessment_id": self.assessment_id,
            "user_id_hash": self.user_id_hash,
            "clinical_score": self.clinical_score,
            "media": {
                "audio_key": self.media.audio_key,
                "video_frame_keys": list(self.media.video_frame_keys),
                "duration_seconds": self.media.duration_seconds,
                "started_at": self.media.started_at,
                "ended_at": self.media.ended_at,
            },
        }


class EnrichmentProvider(ABC):
    """Abstract client for the enrichment service."""

    name: str = "abstract"

    @abstractmethod
    async def fetch_feature_scores(self, request: EnrichmentRequest) -> MultimodalFeatureScores:
        """Request multimodal scores for one assessment.

        Args:
            request: Assessment and media references

        Returns:
            MultimodalFeatureScores, possibly with a modality missing

        Raises:
            EnrichmentError: If the service fails or the response is unusable
        """


class AssessmentEngineHTTPProvider(EnrichmentProvider):
    """Calls the Assessment Engine through its HTTPS proxy."""

    name = "http"

    def __init__(self, endpoint_url: str, api_token: Optional[str] = None, timeout_seconds: float = 15.0):
        """Initialize HTTP provider.

        Args:
            endpoint_url: Full URL of the enrichment endpoint
            api_token: Bearer token for the proxy
            timeout_seconds: Total request timeout
        """
        if not endpoint_url:
            raise ValueError("endpoint_url is required for the HTTP enrichment provider")
        self.endpoint_url = endpoint_url
        self.timeout_seconds = timeout_seconds
        self.headers = {"Content-Type": "application/json"}
        if api_token:
            self.headers["Authorization"] = f"Bearer {api_token}"

    async def fetch_feature_scores(self, request: EnrichmentRequest) -> MultimodalFeatureScores:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.endpoint_url,
                    headers=self.headers,
                    json=request.to_payload(),
                    timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                ) as response:
                    if response.status >= 400:
                        body = await response.text()
                        raise EnrichmentError(
                            f"Assessment Engine returned HTTP {response.status}: {body[:200]}"
                        )
                    result = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise EnrichmentError(f"Assessment Engine request failed: {e}") from e
        except json.JSONDecodeError as e:
            raise EnrichmentError("Assessment Engine returned invalid JSON") from e

        logger.info(
            "ENRICHMENT_RESPONSE_RECEIVED",
            extra={"provider": self.name, "assessment_id": request.assessment_id}
        )
        try:
            return parse_enrichment_payload(result)
        except ValueError as e:
            raise EnrichmentError(str(e)) from e


class LambdaEnrichmentProvider(EnrichmentProvider):
    """Invokes the Assessment Engine Lambda directly."""

    name = "lambda"

    def __init__(self, function_name: str, region: str = "eu-west-2", timeout_seconds: float = 15.0):
        self.function_name = function_name
        self.region = region
        self.timeout_seconds = timeout_seconds
        self._lambda_client = None

    @property
    def lambda_client(self):
        """Lazy initialization of the Lambda client."""
        if self._lambda_client is None:
            self._lambda_client = boto3.client(
                "lambda",
                region_name=self.region,
                config=BotoConfig(
                    connect_timeout=self.timeout_seconds,
                    read_timeout=self.timeout_seconds,
                    retries={"max_attempts": 0},
                ),
            )
        return self._lambda_client

    async def fetch_feature_scores(self, request: EnrichmentRequest) -> MultimodalFeatureScores:
        loop = asyncio.get_running_loop()
        invoke = functools.partial(
            self.lambda_client.invoke,
            FunctionName=self.function_name,
            InvocationType="RequestResponse",
            Payload=json.dumps(request.to_payload()).encode(),
        )
        try:
            response = await loop.run_in_executor(None, invoke)
        except Exception as e:
            raise EnrichmentError(f"Lambda invocation failed: {e}") from e

        try:
            body = json.loads(response["Payload"].read())
        except (KeyError, ValueError) as e:
            raise EnrichmentError("Lambda returned an unreadable payload") from e

        if response.get("FunctionError"):
            message = body.get("errorMessage", "unknown") if isinstance(body, dict) else "unknown"
            raise EnrichmentError(f"Lambda function error: {message}")

        # API Gateway style responses wrap the result in a JSON string body
        if isinstance(body, dict) and isinstance(body.get("body"), str):
            try:
                body = json.loads(body["body"])
            except ValueError as e:
                raise EnrichmentError("Lambda returned an unreadable body") from e

        logger.info(
            "ENRICHMENT_RESPONSE_RECEIVED",
            extra={
                "provider": self.name,
                "assessment_id": request.assessment_id,
                "status_code": response.get("StatusCode"),
            }
        )
        try:
            return parse_enrichment_payload(body)
        except ValueError as e:
            raise EnrichmentError(str(e)) from e


def build_provider(config: EnrichmentConfig) -> Optional[EnrichmentProvider]:
    """Create the provider selected by configuration.

    Returns:
        A provider, or None when enrichment is disabled
    """
    if not config.enabled or config.provider == ProviderKind.NONE:
        logger.info("ENRICHMENT_PROVIDER_DISABLED", extra={"provider": config.provider.value})
        return None

    if config.provider == ProviderKind.HTTP:
        return AssessmentEngineHTTPProvider(
            endpoint_url=config.endpoint_url,
            api_token=config.api_token,
            timeout_seconds=config.timeout_seconds,
        )

    return LambdaEnrichmentProvider(
        function_name=config.function_name,
        region=config.region,
        timeout_seconds=config.timeout_seconds,
    )
