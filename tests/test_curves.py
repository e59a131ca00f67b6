"""Annual reference curves → monthly PD / SMM vectors."""

from __future__ import annotations

import numpy as np
import pytest

from core.config import TierCurve
from core.utils import annual_to_monthly_hazard
from curves.interpolation import (
    interpolate_tier_curve,
    marginal_annual_defaults,
    to_monthly_pd,
    to_monthly_smm,
)


def test_marginal_defaults_first_difference() -> None:
    np.testing.assert_allclose(marginal_annual_defaults([1, 2, 3]), [1, 1, 1])
    np.testing.assert_allclose(marginal_annual_defaults([0.5, 2.0, 2.5]), [0.5, 1.5, 0.5])
    assert marginal_annual_defaults([]).size == 0


def test_cumulative_one_two_three_gives_constant_monthly_pd() -> None:
    """A [1, 2, 3]% cumulative curve is 1% per year, i.e. 1-(0.99)^(1/12) every month."""
    monthly = to_monthly_pd([1, 2, 3], 36)
    expected = 1.0 - 0.99 ** (1.0 / 12.0)
    assert monthly.shape == (36,)
    np.testing.assert_allclose(monthly, expected)


def test_short_curve_repeats_last_month() -> None:
    monthly = to_monthly_pd([1, 3], 60)
    assert monthly.shape == (60,)
    year2 = 1.0 - 0.98 ** (1.0 / 12.0)
    np.testing.assert_allclose(monthly[12:24], year2)
    np.testing.assert_allclose(monthly[24:], year2)


def test_long_curve_is_truncated() -> None:
    monthly = to_monthly_smm([5, 10, 15], 18)
    assert monthly.shape == (18,)
    assert monthly[0] == pytest.approx(1.0 - 0.95 ** (1.0 / 12.0))
    assert monthly[17] == pytest.approx(1.0 - 0.90 ** (1.0 / 12.0))


def test_smm_is_not_differenced() -> None:
    monthly = to_monthly_smm([6, 6, 6], 36)
    np.testing.assert_allclose(monthly, 1.0 - 0.94 ** (1.0 / 12.0))


def test_empty_curve_is_zero_and_zero_horizon_is_empty() -> None:
    assert not to_monthly_pd([], 24).any()
    assert to_monthly_pd([], 24).shape == (24,)
    assert to_monthly_smm([5], 0).size == 0


def test_decreasing_curve_floors_negative_marginals() -> None:
    monthly = to_monthly_pd([3, 2, 4], 36)
    assert (monthly >= 0).all()
    assert not monthly[12:24].any()


def test_hazard_conversion_clips() -> None:
    out = annual_to_monthly_hazard(np.array([-0.1, 0.0, 1.0, 1.5]))
    np.testing.assert_allclose(out, [0.0, 0.0, 1.0, 1.0])


def test_interpolate_tier_curve_shapes() -> None:
    curve = TierCurve(
        name="MEDIUM",
        risk_premium_bps=200,
        cumulative_default_pct=(1.0, 2.0),
        prepayment_cpr_pct=(5.0,),
        gross_recovery_pct=25.0,
        recovery_lag_months=6,
    )
    hazards = interpolate_tier_curve(curve, 30)
    assert hazards.horizon == 30
    assert hazards.smm.shape == (30,)
    assert curve.recovery_rate == pytest.approx(0.25)
