"""
Internal rate of return by bisection on a monthly rate.

IRR is best-effort: bisection returns a root bracketed by the bounds, not
necessarily the economically meaningful one when the cash-flow signs change
more than once. Undetermined results are NaN, never an exception.
"""

from __future__ import annotations

import logging
from typing import Sequence, Tuple

import numpy as np

logger = logging.getLogger("SLV.IRR")


def irr_residual(cash_flows: Sequence[float], initial_outlay: float, monthly_rate: float) -> float:
    """sum_t cf[t] / (1+rate)^t - outlay, with cash_flows[0] falling at t=1."""
    cf = np.asarray(cash_flows, dtype=float)
    t = np.arange(1, cf.size + 1, dtype=float)
    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        return float(np.sum(cf / np.power(1.0 + monthly_rate, t)) - initial_outlay)


def solve_irr(
    cash_flows: Sequence[float],
    initial_outlay: float,
    bounds: Tuple[float, float] = (-1.0, 1.0),
    tolerance: float = 1e-6,
    max_iterations: int = 100,
) -> float:
    """
    Solve for the monthly IRR and return it annualized in percent (rate * 12 * 100).

    A positive residual means the true rate is higher, so the lower bound moves
    up; a negative residual moves the upper bound down. Stops when
    |residual| < tolerance or after max_iterations. Returns NaN when the
    result is non-finite or below -100% annual, and when there is neither an
    outlay nor any cash flow to price.
    """
    cf = np.asarray(cash_flows, dtype=float)
    if cf.size == 0 or not np.all(np.isfinite(cf)) or not np.isfinite(initial_outlay):
        logger.debug("IRR undetermined: empty or non-finite cash flows")
        return float("nan")
    if initial_outlay <= 0 and not np.any(cf):
        logger.debug("IRR undetermined: nothing invested and nothing returned")
        return float("nan")

    lo, hi = float(bounds[0]), float(bounds[1])
    rate = (lo + hi) / 2.0
    for _ in range(max_iterations):
        residual = irr_residual(cf, initial_outlay, rate)
        if np.isnan(residual):
            logger.debug("IRR undetermined: residual is NaN at rate %s", rate)
            return float("nan")
        if abs(residual) < tolerance:
            break
        if residual > 0:
            lo = rate
        else:
            hi = rate
        rate = (lo + hi) / 2.0

    annual_pct = rate * 12.0 * 100.0
    if not np.isfinite(annual_pct) or annual_pct < -100.0:
        logger.debug("IRR undetermined: %s%% annual is out of range", annual_pct)
        return float("nan")
    return float(annual_pct)
