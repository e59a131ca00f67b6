"""
Borrower risk classification.

Maps credit attributes to a discrete risk tier and a set of additive basis-point
adjustments. The tier comes from a blended FICO and year in school; the
adjustments are looked up from the loaded curve set (degree, year bucket,
graduate flag) and the school-tier table.

School tier only moves the discount rate through its additive adjustment; it
never promotes or demotes the FICO-derived tier.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from core.config import RiskCurveSet, SchoolTierTable
from core.schema import Borrower, RiskTier

from .schools import DEFAULT_MEDIAN_EARNINGS, SchoolInfo, lookup_school

FICO_BLEND_ALPHA = 0.7

# (minimum score, band), checked top-down
FICO_BANDS = ((760, "A"), (720, "B"), (680, "C"), (640, "D"))

DEGREE_TYPES = ("Professional", "Business", "STEM")
OTHER_DEGREE = "Other"


@dataclass(frozen=True)
class RiskAdjustments:
    degree: float = 0.0
    school: float = 0.0
    year: float = 0.0
    graduate: float = 0.0

    @property
    def total(self) -> float:
        return self.degree + self.school + self.year + self.graduate


@dataclass(frozen=True)
class RiskClassification:
    tier: RiskTier
    fico_band: str
    blended_fico: float
    degree_key: str
    year_key: Optional[str]
    school: SchoolInfo
    adjustments_bps: RiskAdjustments


def _score(x: Optional[float]) -> Optional[float]:
    if x is None:
        return None
    x = float(x)
    if math.isnan(x) or x <= 0:
        return None
    return x


def blend_fico(
    borrower_fico: Optional[float],
    cosigner_fico: Optional[float],
    alpha: float = FICO_BLEND_ALPHA,
) -> float:
    """Never below the borrower's own score; a stronger cosigner earns partial credit."""
    own = _score(borrower_fico)
    cosigner = _score(cosigner_fico)
    if own is None:
        return cosigner or 0.0
    partner = cosigner if cosigner is not None else own
    return max(own, alpha * own + (1.0 - alpha) * partner)


def derive_fico_band(fico: Optional[float]) -> str:
    if fico is None or (isinstance(fico, float) and math.isnan(fico)):
        return "UNKNOWN"
    for floor, band in FICO_BANDS:
        if fico >= floor:
            return band
    return "E"


def derive_risk_tier(band: str, year_in_school: Optional[int]) -> RiskTier:
    if band == "A" and year_in_school is not None and year_in_school >= 3:
        return RiskTier.LOW
    if band in ("A", "B"):
        return RiskTier.MEDIUM
    if band in ("C", "D"):
        return RiskTier.HIGH
    return RiskTier.VERY_HIGH


def normalize_degree(degree_type: Optional[str]) -> str:
    s = (degree_type or "").strip().lower()
    for d in DEGREE_TYPES:
        if s == d.lower():
            return d
    return OTHER_DEGREE


def year_bucket(year_in_school: Optional[int]) -> Optional[str]:
    if year_in_school is None:
        return None
    y = int(year_in_school)
    return "5+" if y >= 5 else str(y)


class RiskClassifier:
    """Pure classifier over a fixed snapshot of reference tables."""

    def __init__(
        self,
        curves: Optional[RiskCurveSet],
        school_tiers: Optional[SchoolTierTable] = None,
        *,
        alpha: float = FICO_BLEND_ALPHA,
        default_median_earnings: float = DEFAULT_MEDIAN_EARNINGS,
    ):
        self.curves = curves
        self.school_tiers = school_tiers
        self.alpha = alpha
        self.default_median_earnings = default_median_earnings

    def classify(self, borrower: Borrower) -> RiskClassification:
        blended = blend_fico(borrower.borrower_fico, borrower.cosigner_fico, self.alpha)
        band = derive_fico_band(blended)
        tier = derive_risk_tier(band, borrower.year_in_school)

        school = lookup_school(
            borrower.school,
            borrower.opeid,
            self.school_tiers,
            default_median_earnings=self.default_median_earnings,
        )
        degree_key = normalize_degree(borrower.degree_type)
        year_key = year_bucket(borrower.year_in_school)

        return RiskClassification(
            tier=tier,
            fico_band=band,
            blended_fico=blended,
            degree_key=degree_key,
            year_key=year_key,
            school=school,
            adjustments_bps=self._adjustments(borrower, school, degree_key, year_key),
        )

    def _adjustments(
        self,
        borrower: Borrower,
        school: SchoolInfo,
        degree_key: str,
        year_key: Optional[str],
    ) -> RiskAdjustments:
        curves = self.curves
        if curves is None:
            return RiskAdjustments()
        year_adj = curves.year_in_school_adjustments_bps.get(year_key, 0.0) if year_key is not None else 0.0
        return RiskAdjustments(
            degree=float(curves.degree_adjustments_bps.get(degree_key, 0.0)),
            school=curves.school_adjustment_bps(school.tier),
            year=float(year_adj),
            graduate=float(curves.graduate_adjustment_bps) if borrower.is_graduate_student else 0.0,
        )


def classify(
    borrower: Borrower,
    curves: Optional[RiskCurveSet],
    school_tiers: Optional[SchoolTierTable] = None,
    *,
    alpha: float = FICO_BLEND_ALPHA,
) -> RiskClassification:
    return RiskClassifier(curves, school_tiers, alpha=alpha).classify(borrower)
