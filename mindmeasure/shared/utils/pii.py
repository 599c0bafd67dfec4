"""PII handling for assessment logging.

User identifiers and conversation transcripts never reach application logs
in clear text. Identifiers are hashed with a secret salt; transcripts are
fingerprinted so a log line can be matched to a stored record during review.
"""
import hashlib
import logging
from typing import Optional

logger = logging.getLogger(__name__)

MIN_SALT_LENGTH = 32

# Loaded from AWS Secrets Manager at startup in deployed environments
_PII_SALT: Optional[str] = None


def configure_pii_salt(salt: str) -> None:
    """Configure the salt used for identifier hashing.

    Must be called during application startup, before the scoring pipeline
    logs anything about a user.

    Args:
        salt: Secret salt value

    Raises:
        ValueError: If salt is empty or shorter than 32 characters
    """
    global _PII_SALT
    if not salt or len(salt) < MIN_SALT_LENGTH:
        logger.critical(
            "PII_SALT_CONFIGURATION_FAILED",
            extra={"reason": "Salt too short or empty", "min_length": MIN_SALT_LENGTH}
        )
        raise ValueError(f"PII salt must be at least {MIN_SALT_LENGTH} characters")

    _PII_SALT = salt
    logger.info("PII_SALT_CONFIGURED", extra={"salt_length": len(salt)})


def hash_pii(value: str) -> str:
    """Hash a user identifier for logs and external requests.

    Args:
        value: User id, email or any other identifying string

    Returns:
        64-char hex SHA-256 digest of salt + value

    Raises:
        RuntimeError: If the salt has not been configured
    """
    if _PII_SALT is None:
        logger.critical(
            "PII_HASH_FAILED",
            extra={"reason": "Salt not configured", "action": "call configure_pii_salt()"}
        )
        raise RuntimeError("PII salt not configured. Call configure_pii_salt() first.")

    return hashlib.sha256(f"{_PII_SALT}{value}".encode()).hexdigest()


def hash_text_for_audit(text: str) -> str:
    """Fingerprint a transcript without exposing its content."""
    return hashlib.sha256(text.encode()).hexdigest()


def require_pii_salt() -> None:
    """Fail fast at startup when the salt has not been configured.

    Raises:
        RuntimeError: If configure_pii_salt() has not been called
    """
    if _PII_SALT is None:
        logger.critical(
            "PII_SALT_MISSING",
            extra={"reason": "Salt not configured", "action": "call configure_pii_salt()"}
        )
        raise RuntimeError("PII salt not configured. Call configure_pii_salt() first.")
