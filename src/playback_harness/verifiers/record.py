"""Field comparison verifier for probe records."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .base import Verifier, VerifierResult


def _compare(actual: Any, expected: Any, comparison: str | None) -> bool:
    """Compare actual vs expected using comparison type.

    Supported comparisons (with aliases):
    - equals / eq / == : exact equality
    - is : identity, used for strict booleans (``playing is True``)
    - greater_than / gt / > : actual > expected (requires non-None values)
    - less_than / lt / < : actual < expected (requires non-None values)
    - greater_than_or_equal / gte / >= : actual >= expected
    - less_than_or_equal / lte / <= : actual <= expected

    Raises:
        ValueError: If comparison type is unsupported
        TypeError: If actual is None for ordered comparisons
    """
    if comparison is None:
        raise ValueError("Comparison type must be specified")

    comparison = comparison.lower().strip()

    if comparison in ("equals", "eq", "==", "equal"):
        return actual == expected

    if comparison == "is":
        return actual is expected

    if actual is None:
        raise TypeError(f"Cannot perform ordered comparison '{comparison}' with None value.")

    try:
        if comparison in ("greater_than", "gt", ">"):
            return actual > expected
        elif comparison in ("less_than", "lt", "<"):
            return actual < expected
        elif comparison in ("greater_than_or_equal", "gte", ">="):
            return actual >= expected
        elif comparison in ("less_than_or_equal", "lte", "<="):
            return actual <= expected
    except TypeError as e:
        raise TypeError(
            f"Cannot compare values: actual={actual!r} ({type(actual).__name__}) "
            f"vs expected={expected!r} ({type(expected).__name__})."
        ) from e

    raise ValueError(
        f"Unsupported comparison type: '{comparison}'. "
        f"Supported: equals/eq/==, is, greater_than/gt/>, less_than/lt/<, "
        f"greater_than_or_equal/gte/>=, less_than_or_equal/lte/<="
    )


class RecordVerifier(Verifier):
    """Verifier that checks one field of a probe record.

    The field must be present; a missing field fails with the record's
    available keys in the error.
    """

    def __init__(
        self,
        field: str,
        expected_value: Any,
        comparison: str = "equals",
        name: Optional[str] = None,
    ):
        """Initialize record verifier.

        Args:
            field: Record field holding the scenario outcome
            expected_value: Value the field is compared against
            comparison: Comparison type (see ``_compare``)
            name: Optional display name
        """
        super().__init__(name or f"{field} {comparison} {expected_value!r}")
        self.field = field
        self.expected_value = expected_value
        self.comparison = comparison

    def verify(self, record: Mapping[str, Any]) -> VerifierResult:
        if self.field not in record:
            available = ", ".join(sorted(k for k in record if k != "logs")) or "none"
            return VerifierResult(
                name=self.name,
                success=False,
                expected_value=self.expected_value,
                actual_value=None,
                comparison_type=self.comparison,
                error=f"Record has no '{self.field}' field (fields: {available})",
                metadata={"field": self.field},
            )

        actual_value = record[self.field]
        try:
            success = _compare(actual_value, self.expected_value, self.comparison)
        except (TypeError, ValueError) as exc:
            return VerifierResult(
                name=self.name,
                success=False,
                expected_value=self.expected_value,
                actual_value=actual_value,
                comparison_type=self.comparison,
                error=str(exc),
                metadata={"field": self.field},
            )

        return VerifierResult(
            name=self.name,
            success=success,
            expected_value=self.expected_value,
            actual_value=actual_value,
            comparison_type=self.comparison,
            error=None if success else "Comparison failed",
            metadata={"field": self.field},
        )
