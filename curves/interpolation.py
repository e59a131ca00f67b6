"""
Annual reference curves → monthly marginal rate vectors.

Both converters broadcast a constant monthly rate across each curve year and
then fit the result to the requested horizon: longer curves are truncated,
shorter ones repeat their last monthly rate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from core.config import TierCurve
from core.utils import annual_to_monthly_hazard

logger = logging.getLogger("SLV.Curves")


@dataclass(frozen=True)
class MonthlyCurves:
    """Monthly marginal default (PD) and prepayment (SMM) probabilities, shape (horizon,)."""

    pd: np.ndarray
    smm: np.ndarray

    @property
    def horizon(self) -> int:
        return len(self.pd)


def marginal_annual_defaults(cumulative_pct: Sequence[float]) -> np.ndarray:
    """First-difference a cumulative default curve (percent) into annual marginal percentages."""
    cum = np.asarray(cumulative_pct, dtype=float)
    if cum.size == 0:
        return cum
    return np.diff(cum, prepend=0.0)


def _fit_to_horizon(monthly_by_year: np.ndarray, horizon_months: int) -> np.ndarray:
    if horizon_months <= 0:
        return np.zeros(0, dtype=float)
    if monthly_by_year.size == 0:
        return np.zeros(horizon_months, dtype=float)

    monthly = np.repeat(monthly_by_year, 12)
    if monthly.size >= horizon_months:
        return monthly[:horizon_months].copy()
    pad = np.full(horizon_months - monthly.size, monthly[-1], dtype=float)
    return np.concatenate([monthly, pad])


def to_monthly_pd(cumulative_default_pct_by_year: Sequence[float], horizon_months: int) -> np.ndarray:
    """
    Cumulative default % by year → monthly marginal PD vector of length ``horizon_months``.

    annual[0] = cum[0], annual[i] = cum[i] - cum[i-1]; each year's rate becomes
    a constant monthly hazard 1-(1-annual)^(1/12).
    """
    annual = marginal_annual_defaults(cumulative_default_pct_by_year)
    if np.any(annual < 0):
        logger.warning("Cumulative default curve decreases; negative marginal years floored at 0.")
    return _fit_to_horizon(annual_to_monthly_hazard(annual / 100.0), horizon_months)


def to_monthly_smm(annual_cpr_pct_by_year: Sequence[float], horizon_months: int) -> np.ndarray:
    """Annual CPR % by year → monthly SMM vector of length ``horizon_months`` (no differencing)."""
    cpr = np.asarray(annual_cpr_pct_by_year, dtype=float)
    return _fit_to_horizon(annual_to_monthly_hazard(cpr / 100.0), horizon_months)


def interpolate_tier_curve(curve: TierCurve, horizon_months: int) -> MonthlyCurves:
    return MonthlyCurves(
        pd=to_monthly_pd(curve.cumulative_default_pct, horizon_months),
        smm=to_monthly_smm(curve.prepayment_cpr_pct, horizon_months),
    )
