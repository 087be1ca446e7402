"""Verifiers applied to probe records."""

from .base import Verifier, VerifierResult
from .record import RecordVerifier

__all__ = ["Verifier", "VerifierResult", "RecordVerifier"]
