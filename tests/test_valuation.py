"""End-to-end valuation of single loans."""

from __future__ import annotations

import datetime as dt
import math

import numpy as np
import pandas as pd
import pytest

from core.config import ReferenceData, RiskCurveSet, TierCurve, ValuationConfig
from core.errors import CurvesNotLoadedError
from core.schema import Borrower, Loan, LoanEvent, RiskTier, ValuationStatus
from engine.irr import irr_residual
from engine.valuation import value_loan


@pytest.fixture
def medium_borrower() -> Borrower:
    """Band B, year 3, Business, default school tier: zero adjustments on the MEDIUM tier."""
    return Borrower(borrower_id="B1", borrower_fico=730, year_in_school=3, degree_type="Business")


def test_reference_example(new_loan, medium_borrower, reference, config) -> None:
    """10k at 8% over 10 years, rf 4% + 200 bps: discount 6%, value above par."""
    result = value_loan(new_loan, medium_borrower, 0.04, reference, config=config)
    assert result.status == ValuationStatus.OK
    assert result.risk_tier == RiskTier.MEDIUM
    assert result.risk_breakdown["total_risk_bps"] == pytest.approx(200)
    assert result.discount_rate == pytest.approx(0.06)
    assert result.npv > 10_000.0
    assert result.npv_ratio > 0
    assert 0 < result.expected_loss < 1
    assert 0 < result.wal < 10
    assert math.isfinite(result.irr)
    assert result.remaining_months == 120
    assert len(result.cash_flows) >= 120


def test_npv_equals_discounted_cash_flows(new_loan, medium_borrower, reference, config) -> None:
    result = value_loan(new_loan, medium_borrower, 0.04, reference, config=config)
    months = np.arange(1, len(result.cash_flows) + 1)
    expected = float(np.sum(result.cash_flows / (1 + 0.06 / 12) ** months))
    assert result.npv == pytest.approx(expected)


def test_riskier_borrower_values_lower(new_loan, strong_borrower, weak_borrower, reference, config) -> None:
    strong = value_loan(new_loan, strong_borrower, 0.04, reference, config=config)
    weak = value_loan(new_loan, weak_borrower, 0.04, reference, config=config)
    assert weak.discount_rate > strong.discount_rate
    assert weak.expected_loss > strong.expected_loss
    assert weak.npv < strong.npv


def test_higher_risk_free_rate_lowers_npv(new_loan, medium_borrower, reference, config) -> None:
    low = value_loan(new_loan, medium_borrower, 0.02, reference, config=config)
    high = value_loan(new_loan, medium_borrower, 0.06, reference, config=config)
    assert high.npv < low.npv
    assert high.expected_loss == pytest.approx(low.expected_loss)


def test_defaulted_loan(new_loan, medium_borrower, reference, config) -> None:
    loan = new_loan.model_copy(update={"events": (LoanEvent(type="default", date=dt.date(2025, 3, 1)),)})
    result = value_loan(loan, medium_borrower, 0.04, reference, config=config)
    assert result.status == ValuationStatus.DEFAULTED
    assert result.risk_tier == RiskTier.DEFAULTED
    assert result.npv == 0.0
    assert result.npv_ratio == -1.0
    assert result.expected_loss == 1.0
    assert result.wal == 0.0
    assert math.isnan(result.irr)
    assert result.risk_breakdown == {"note": "Loan defaulted"}


def test_invalid_basics_degrade(medium_borrower, reference, config) -> None:
    loan = Loan(loan_id="BAD", principal=0, nominal_rate=0.05, term_years=10)
    result = value_loan(loan, medium_borrower, 0.04, reference, config=config)
    assert result.status == ValuationStatus.INVALID_LOAN_BASICS
    assert result.risk_tier == RiskTier.UNKNOWN
    assert math.isnan(result.npv)
    assert result.npv_ratio is None
    assert math.isnan(result.irr)


def test_missing_curves_raise(new_loan, medium_borrower, config) -> None:
    with pytest.raises(CurvesNotLoadedError) as exc_info:
        value_loan(new_loan, medium_borrower, 0.04, None, config=config)
    assert exc_info.value.code == "CURVES_NOT_LOADED"
    with pytest.raises(CurvesNotLoadedError):
        value_loan(new_loan, medium_borrower, 0.04, ReferenceData(curves=None), config=config)


def test_missing_tier_curve_falls_back_conservatively(new_loan, strong_borrower, curves_dict, school_tiers, config) -> None:
    only_high = dict(curves_dict, riskTiers={"HIGH": curves_dict["riskTiers"]["HIGH"]})
    reference = ReferenceData(curves=RiskCurveSet.from_dict(only_high), school_tiers=school_tiers)
    result = value_loan(new_loan, strong_borrower, 0.04, reference, config=config)
    assert result.status == ValuationStatus.OK
    assert result.risk_tier == RiskTier.LOW
    assert result.risk_breakdown["curve_tier"] == "HIGH"
    assert result.risk_breakdown["base_risk_bps"] == 350


def test_no_curve_at_all(new_loan, medium_borrower, config) -> None:
    curves = RiskCurveSet(tiers={"SPECIAL": TierCurve(name="SPECIAL", risk_premium_bps=100)})
    result = value_loan(new_loan, medium_borrower, 0.04, ReferenceData(curves=curves), config=config)
    assert result.status == ValuationStatus.NO_CURVE
    assert math.isnan(result.npv)


def test_missing_borrower_uses_placeholder(new_loan, reference, config) -> None:
    result = value_loan(new_loan, None, 0.04, reference, config=config)
    assert result.status == ValuationStatus.OK
    assert result.risk_tier == RiskTier.VERY_HIGH


def test_seasoned_loan(seasoned_loan, strong_borrower, reference, config) -> None:
    result = value_loan(seasoned_loan, strong_borrower, 0.04, reference, config=config)
    assert result.status == ValuationStatus.OK
    assert result.seasoned_balance < seasoned_loan.principal
    assert result.remaining_months < 120
    # npv_ratio is measured against original principal
    assert result.npv_ratio == pytest.approx(result.npv / seasoned_loan.principal - 1)


def test_valuation_is_pure(new_loan, strong_borrower, reference, config) -> None:
    a = value_loan(new_loan, strong_borrower, 0.04, reference, config=config)
    b = value_loan(new_loan, strong_borrower, 0.04, reference, config=config)
    assert a.to_record() == b.to_record()
    np.testing.assert_array_equal(a.cash_flows, b.cash_flows)


def test_as_of_date_moves_seasoning(seasoned_loan, strong_borrower, reference) -> None:
    early = value_loan(seasoned_loan, strong_borrower, 0.04, reference, config=ValuationConfig(as_of_date=pd.Timestamp("2023-01-31")))
    late = value_loan(seasoned_loan, strong_borrower, 0.04, reference, config=ValuationConfig(as_of_date=pd.Timestamp("2026-01-31")))
    assert late.seasoned_balance < early.seasoned_balance
    assert late.remaining_months < early.remaining_months


def test_to_record_flattens_breakdown(new_loan, strong_borrower, reference, config) -> None:
    rec = value_loan(new_loan, strong_borrower, 0.04, reference, config=config).to_record()
    assert rec["status"] == "OK"
    assert rec["risk_tier"] == "LOW"
    assert rec["base_risk_bps"] == 100
    assert rec["school_tier"] == "Tier 1"
    assert rec["total_risk_bps"] == pytest.approx(100 - 110)


def test_irr_round_trip_on_projected_cash_flows(seasoned_loan, strong_borrower, reference, config) -> None:
    """The reported IRR prices the projected stream back to the seasoned balance."""
    result = value_loan(seasoned_loan, strong_borrower, 0.04, reference, config=config)
    curve = reference.curves.curve_for(RiskTier.LOW)
    assert curve.recovery_lag_months > 0
    residual = irr_residual(result.cash_flows, result.seasoned_balance, result.irr / 1200.0)
    assert abs(residual) < 1e-4


def test_backdated_valuation_ignores_later_prepayment(new_loan, medium_borrower, config) -> None:
    """Without credit risk and discounted at the loan rate, a loan with a future prepayment is still at par."""
    curves = RiskCurveSet(
        tiers={"MEDIUM": TierCurve(name="MEDIUM", risk_premium_bps=0)},
        school_tier_adjustments_bps={"Unknown": 0.0},
    )
    loan = new_loan.model_copy(
        update={"events": (LoanEvent(type="prepayment", date=dt.date(2026, 1, 15), amount=5_000),)}
    )
    result = value_loan(loan, medium_borrower, 0.08, ReferenceData(curves=curves), config=config)
    assert result.status == ValuationStatus.OK
    assert result.discount_rate == pytest.approx(0.08)
    assert result.remaining_months == 120
    assert result.npv == pytest.approx(10_000.0, rel=1e-6)
    assert result.cash_flows.sum() > 10_000.0


def test_backdated_valuation_before_default(new_loan, medium_borrower, reference, config) -> None:
    loan = new_loan.model_copy(update={"events": (LoanEvent(type="default", date=dt.date(2027, 3, 1)),)})
    result = value_loan(loan, medium_borrower, 0.04, reference, config=config)
    assert result.status == ValuationStatus.OK
    assert result.risk_tier == RiskTier.MEDIUM


def test_matured_loan_has_undetermined_irr(strong_borrower, reference, config) -> None:
    loan = Loan(loan_id="OLD", principal=5_000, nominal_rate=0.06, term_years=5, loan_start_date=dt.date(2010, 1, 1))
    result = value_loan(loan, strong_borrower, 0.04, reference, config=config)
    assert result.status == ValuationStatus.OK
    assert result.seasoned_balance == 0.0
    assert result.npv == 0.0
    assert result.wal is None
    assert math.isnan(result.irr)
