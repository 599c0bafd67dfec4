"""Shared utilities for the Mind Measure scoring core."""
from .pii import hash_pii, hash_text_for_audit, configure_pii_salt, require_pii_salt
from .scoring_math import clamp, round_half_up

__all__ = [
    "hash_pii",
    "hash_text_for_audit",
    "configure_pii_salt",
    "require_pii_salt",
    "clamp",
    "round_half_up",
]
