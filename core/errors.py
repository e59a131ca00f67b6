"""
Error taxonomy for the valuation core.

Only configuration problems are exceptional. Data-quality issues on a single
loan degrade to documented fallbacks and never raise.
"""

from __future__ import annotations


class ValuationError(Exception):
    """Base exception for the valuation core; every subclass carries a stable ``code``."""

    code = "VALUATION_ERROR"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class CurvesNotLoadedError(ValuationError):
    """Raised by ``value_loan`` when no risk curve set has been supplied."""

    code = "CURVES_NOT_LOADED"


class ReferenceDataError(ValuationError):
    """Raised when a reference-data file or mapping cannot be parsed."""

    code = "REFERENCE_DATA_INVALID"
