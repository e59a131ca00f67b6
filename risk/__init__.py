"""
Risk classification — blended FICO, risk tier, and additive basis-point adjustments.
"""

from .classifier import (
    RiskAdjustments,
    RiskClassification,
    RiskClassifier,
    blend_fico,
    classify,
    derive_fico_band,
    derive_risk_tier,
    normalize_degree,
    year_bucket,
)
from .schools import SchoolInfo, lookup_school, resolve_school_name

__all__ = [
    "RiskAdjustments",
    "RiskClassification",
    "RiskClassifier",
    "blend_fico",
    "classify",
    "derive_fico_band",
    "derive_risk_tier",
    "normalize_degree",
    "year_bucket",
    "SchoolInfo",
    "lookup_school",
    "resolve_school_name",
]
