"""
Core package — record schema, configuration, errors, and shared utilities.
No business logic lives here.
"""

from .errors import ValuationError, CurvesNotLoadedError, ReferenceDataError
from .schema import (
    Borrower,
    Loan,
    LoanEvent,
    OwnershipLot,
    RiskTier,
    ValuationResult,
    ValuationStatus,
    VALUATION_RESULT_COLUMNS,
)
from .config import (
    ReferenceData,
    RiskCurveSet,
    SchoolTierEntry,
    SchoolTierTable,
    TierCurve,
    ValuationConfig,
    configure_logging,
)
from .utils import annual_to_monthly_hazard, monthly_dates, normalize_school_name

__all__ = [
    "ValuationError",
    "CurvesNotLoadedError",
    "ReferenceDataError",
    "Borrower",
    "Loan",
    "LoanEvent",
    "OwnershipLot",
    "RiskTier",
    "ValuationResult",
    "ValuationStatus",
    "VALUATION_RESULT_COLUMNS",
    "ReferenceData",
    "RiskCurveSet",
    "SchoolTierEntry",
    "SchoolTierTable",
    "TierCurve",
    "ValuationConfig",
    "configure_logging",
    "annual_to_monthly_hazard",
    "monthly_dates",
    "normalize_school_name",
]
