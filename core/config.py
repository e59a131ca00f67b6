"""
Valuation configuration and reference-data snapshots.

Reference data (risk curves, school tiers) is held in immutable snapshots that
the caller passes into the engine explicitly. Reloading means building a new
``ReferenceData`` and swapping it in whole; nothing here is mutated in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import pandas as pd

from .errors import ReferenceDataError
from .schema import RiskTier
from .utils import normalize_school_name


DEFAULT_SCHOOL_TIER_ADJUSTMENTS_BPS: Dict[str, float] = {
    "Tier 1": -75.0,
    "Tier 2": 0.0,
    "Tier 3": 125.0,
    "Unknown": 100.0,
}

UNKNOWN_SCHOOL_TIER = "Unknown"
DEFAULT_SCHOOL_KEY = "DEFAULT"


@dataclass(frozen=True)
class TierCurve:
    """Reference curves for one risk tier (percent terms, annual resolution)."""

    name: str
    risk_premium_bps: float
    cumulative_default_pct: Tuple[float, ...] = ()
    prepayment_cpr_pct: Tuple[float, ...] = ()
    gross_recovery_pct: float = 0.0
    recovery_lag_months: int = 0

    @property
    def recovery_rate(self) -> float:
        return self.gross_recovery_pct / 100.0

    @classmethod
    def from_dict(cls, name: str, raw: Mapping[str, Any]) -> "TierCurve":
        if not isinstance(raw, Mapping):
            raise ReferenceDataError(f"Risk tier {name!r} must be a mapping, got {type(raw).__name__}.")
        try:
            default_curve = raw.get("defaultCurve") or {}
            prepay_curve = raw.get("prepaymentCurve") or {}
            recovery = raw.get("recovery") or {}
            return cls(
                name=name,
                risk_premium_bps=float(raw.get("riskPremiumBps", 0.0) or 0.0),
                cumulative_default_pct=tuple(float(x) for x in default_curve.get("cumulativeDefaultPct", []) or []),
                prepayment_cpr_pct=tuple(float(x) for x in prepay_curve.get("valuesPct", []) or []),
                gross_recovery_pct=float(recovery.get("grossRecoveryPct", 0.0) or 0.0),
                recovery_lag_months=int(recovery.get("recoveryLagMonths", 0) or 0),
            )
        except (TypeError, ValueError, AttributeError) as exc:
            raise ReferenceDataError(f"Malformed curve for risk tier {name!r}: {exc}") from exc


@dataclass(frozen=True)
class RiskCurveSet:
    tiers: Dict[str, TierCurve]
    degree_adjustments_bps: Dict[str, float] = field(default_factory=dict)
    year_in_school_adjustments_bps: Dict[str, float] = field(default_factory=dict)
    graduate_adjustment_bps: float = 0.0
    school_tier_adjustments_bps: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_SCHOOL_TIER_ADJUSTMENTS_BPS)
    )

    def curve_for(self, tier: RiskTier | str) -> Optional[TierCurve]:
        key = tier.value if isinstance(tier, RiskTier) else str(tier)
        return self.tiers.get(key)

    def school_adjustment_bps(self, school_tier: str) -> float:
        """Table-driven school adjustment; tiers absent from the table take the ``Unknown`` entry."""
        table = self.school_tier_adjustments_bps
        if school_tier in table:
            return float(table[school_tier])
        return float(table.get(UNKNOWN_SCHOOL_TIER, DEFAULT_SCHOOL_TIER_ADJUSTMENTS_BPS[UNKNOWN_SCHOOL_TIER]))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "RiskCurveSet":
        if not isinstance(raw, Mapping):
            raise ReferenceDataError("Valuation curves must be a JSON object.")
        tiers_raw = raw.get("riskTiers")
        if not isinstance(tiers_raw, Mapping) or not tiers_raw:
            raise ReferenceDataError("Valuation curves have no 'riskTiers' section.")

        tiers = {str(name): TierCurve.from_dict(str(name), t) for name, t in tiers_raw.items()}

        school_adj = dict(DEFAULT_SCHOOL_TIER_ADJUSTMENTS_BPS)
        school_adj.update(_float_map(raw.get("schoolTierAdjustmentsBps"), "schoolTierAdjustmentsBps"))

        try:
            grad = float(raw.get("graduateAdjustmentBps", 0.0) or 0.0)
        except (TypeError, ValueError) as exc:
            raise ReferenceDataError(f"Malformed graduateAdjustmentBps: {exc}") from exc

        return cls(
            tiers=tiers,
            degree_adjustments_bps=_float_map(raw.get("degreeAdjustmentsBps"), "degreeAdjustmentsBps"),
            year_in_school_adjustments_bps=_float_map(
                raw.get("yearInSchoolAdjustmentsBps"), "yearInSchoolAdjustmentsBps"
            ),
            graduate_adjustment_bps=grad,
            school_tier_adjustments_bps=school_adj,
        )


def _float_map(raw: Any, label: str) -> Dict[str, float]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ReferenceDataError(f"{label} must be a mapping.")
    try:
        return {str(k): float(v) for k, v in raw.items() if v is not None}
    except (TypeError, ValueError) as exc:
        raise ReferenceDataError(f"Malformed {label}: {exc}") from exc


@dataclass(frozen=True)
class SchoolTierEntry:
    key: str
    tier: str
    name: str = ""
    median_earnings_10yr: Optional[float] = None


@dataclass(frozen=True)
class SchoolTierTable:
    """Institution → tier lookup keyed by OPEID, with a normalized-name index."""

    entries: Dict[str, SchoolTierEntry]
    by_name: Dict[str, SchoolTierEntry] = field(default_factory=dict)

    @property
    def default(self) -> Optional[SchoolTierEntry]:
        return self.entries.get(DEFAULT_SCHOOL_KEY)

    @classmethod
    def from_entries(cls, entries: Dict[str, SchoolTierEntry]) -> "SchoolTierTable":
        by_name: Dict[str, SchoolTierEntry] = {}
        for key, entry in entries.items():
            if key == DEFAULT_SCHOOL_KEY or not entry.name:
                continue
            # first entry wins on a name collision
            by_name.setdefault(normalize_school_name(entry.name), entry)
        return cls(entries=entries, by_name=by_name)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SchoolTierTable":
        if not isinstance(raw, Mapping):
            raise ReferenceDataError("School tiers must be a JSON object keyed by OPEID.")
        entries: Dict[str, SchoolTierEntry] = {}
        for key, val in raw.items():
            if not isinstance(val, Mapping):
                raise ReferenceDataError(f"School tier entry {key!r} must be a mapping.")
            earnings = val.get("median_earnings_10yr")
            try:
                earnings = None if earnings is None else float(earnings)
            except (TypeError, ValueError) as exc:
                raise ReferenceDataError(f"Malformed median_earnings_10yr for {key!r}: {exc}") from exc
            k = str(key).strip()
            entries[k] = SchoolTierEntry(
                key=k,
                tier=str(val.get("tier") or UNKNOWN_SCHOOL_TIER),
                name=str(val.get("name") or ""),
                median_earnings_10yr=earnings,
            )
        return cls.from_entries(entries)


@dataclass(frozen=True)
class ReferenceData:
    """Explicit configuration object handed to the engine on every call."""

    curves: Optional[RiskCurveSet] = None
    school_tiers: Optional[SchoolTierTable] = None


@dataclass(frozen=True)
class ValuationConfig:
    as_of_date: pd.Timestamp = field(default_factory=lambda: pd.Timestamp.today().normalize())

    # risk classification
    fico_blend_alpha: float = 0.7
    default_median_earnings: float = 50_000.0

    # IRR search (monthly rate bounds)
    irr_lower_bound: float = -1.0
    irr_upper_bound: float = 1.0
    irr_tolerance: float = 1e-6
    irr_max_iterations: int = 100

    # fallback order when a tier has no curve
    conservative_tier_order: Tuple[RiskTier, ...] = (
        RiskTier.VERY_HIGH,
        RiskTier.HIGH,
        RiskTier.MEDIUM,
        RiskTier.LOW,
    )


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging for command-line runs. Library modules never call this."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
