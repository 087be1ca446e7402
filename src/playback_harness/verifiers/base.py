"""Base verifier interface and data structures."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass
class VerifierResult:
    """Result from executing a verifier."""

    name: str
    success: bool
    expected_value: Optional[Any]
    actual_value: Optional[Any]
    comparison_type: Optional[str]
    error: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "success": self.success,
            "expected": self.expected_value,
            "actual": self.actual_value,
            "comparison": self.comparison_type,
            "error": self.error,
        }


class Verifier(ABC):
    """Abstract base class for verifiers.

    Verifiers check a probe record returned by the remote runtime against the
    behavior a scenario expects.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.__class__.__name__

    @abstractmethod
    def verify(self, record: Mapping[str, Any]) -> VerifierResult:
        """Check the record and return a result.

        Args:
            record: Probe record to check

        Returns:
            VerifierResult with success status and details
        """
        ...
