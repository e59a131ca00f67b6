"""
Data preparation — loading reference data and records, normalization, validation, overrides.
"""

from .loader import (
    load_borrowers,
    load_loans,
    load_reference_data,
    load_school_tiers,
    load_valuation_curves,
)
from .records import canonicalize_keys, normalize_borrower, normalize_loan
from .validators import ValidationResult, validate_borrower, validate_curve_set, validate_loan
from .overrides import BorrowerOverrides

__all__ = [
    "load_borrowers",
    "load_loans",
    "load_reference_data",
    "load_school_tiers",
    "load_valuation_curves",
    "canonicalize_keys",
    "normalize_borrower",
    "normalize_loan",
    "ValidationResult",
    "validate_borrower",
    "validate_curve_set",
    "validate_loan",
    "BorrowerOverrides",
]
