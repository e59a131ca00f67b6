"""
Loan valuation entry point.

    (loan, borrower, risk-free rate, reference data)
      → amortization schedule (seasoned balance, remaining payments)
      → risk tier + additive bps adjustments
      → monthly PD / SMM for the tier curve over the remaining term
      → projected cash flows, NPV, expected loss, WAL
      → IRR on the projected cash flows

Only missing curves raise. Bad loan economics, realized defaults and missing
tier curves all return a degenerate ``ValuationResult`` so that one bad record
never aborts a portfolio run.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.config import ReferenceData, TierCurve, ValuationConfig
from core.errors import CurvesNotLoadedError
from core.schema import Borrower, Loan, RiskTier, ValuationResult, ValuationStatus
from core.utils import monthly_rate
from curves.interpolation import interpolate_tier_curve
from risk.classifier import RiskClassification, RiskClassifier

from .amortization import build_amortization_schedule
from .cashflow import simulate_cashflows
from .irr import solve_irr

logger = logging.getLogger("SLV.Valuation")

NAN = float("nan")


def _risk_breakdown(
    risk: RiskClassification, curve: Optional[TierCurve], total_bps: Optional[float]
) -> dict:
    adj = risk.adjustments_bps
    return {
        "base_risk_bps": curve.risk_premium_bps if curve is not None else None,
        "degree_adj_bps": adj.degree,
        "school_adj_bps": adj.school,
        "year_adj_bps": adj.year,
        "grad_adj_bps": adj.graduate,
        "total_risk_bps": total_bps,
        "school_tier": risk.school.tier,
        "school_name": risk.school.name,
        "median_earnings_10yr": risk.school.median_earnings_10yr,
        "fico_band": risk.fico_band,
        "blended_fico": risk.blended_fico,
        "classified_tier": risk.tier.value,
        "curve_tier": curve.name if curve is not None else None,
    }


def _resolve_curve(reference: ReferenceData, tier: RiskTier, config: ValuationConfig) -> Optional[TierCurve]:
    curves = reference.curves
    curve = curves.curve_for(tier)
    if curve is not None:
        return curve
    for fallback in config.conservative_tier_order:
        curve = curves.curve_for(fallback)
        if curve is not None:
            logger.warning("No curve for risk tier %s; falling back to %s", tier.value, fallback.value)
            return curve
    logger.warning("No curve for risk tier %s and no fallback tier available", tier.value)
    return None


def value_loan(
    loan: Loan,
    borrower: Optional[Borrower],
    risk_free_rate: float,
    reference: Optional[ReferenceData],
    *,
    config: Optional[ValuationConfig] = None,
) -> ValuationResult:
    """
    Value one loan against an immutable reference-data snapshot.

    Raises
    ------
    CurvesNotLoadedError
        If ``reference`` or its risk curve set is missing.
    """
    if reference is None or reference.curves is None:
        raise CurvesNotLoadedError("Valuation curves not loaded")
    cfg = config or ValuationConfig()

    if borrower is None:
        borrower = Borrower.placeholder(loan.borrower_id or loan.loan_id, loan.loan_name)

    # --- loan basics ---
    schedule = build_amortization_schedule(loan, cfg.as_of_date)
    if not schedule.is_valid:
        return ValuationResult(
            loan_id=loan.loan_id,
            risk_tier=RiskTier.UNKNOWN,
            discount_rate=None,
            npv=NAN,
            npv_ratio=None,
            expected_loss=NAN,
            wal=NAN,
            irr=NAN,
            status=ValuationStatus.INVALID_LOAN_BASICS,
        )

    # --- realized default (as of the valuation date): terminal, independent of curves ---
    if schedule.defaulted:
        logger.debug("Loan %s has a realized default; valued at zero", loan.loan_id)
        return ValuationResult(
            loan_id=loan.loan_id,
            risk_tier=RiskTier.DEFAULTED,
            discount_rate=None,
            npv=0.0,
            npv_ratio=-1.0,
            expected_loss=1.0,
            wal=0.0,
            irr=NAN,
            status=ValuationStatus.DEFAULTED,
            risk_breakdown={"note": "Loan defaulted"},
            original_principal=schedule.original_principal,
            seasoned_balance=0.0,
            remaining_months=0,
        )

    # --- risk tier and curve ---
    classifier = RiskClassifier(
        reference.curves,
        reference.school_tiers,
        alpha=cfg.fico_blend_alpha,
        default_median_earnings=cfg.default_median_earnings,
    )
    risk = classifier.classify(borrower)
    curve = _resolve_curve(reference, risk.tier, cfg)
    if curve is None:
        return ValuationResult(
            loan_id=loan.loan_id,
            risk_tier=risk.tier,
            discount_rate=None,
            npv=NAN,
            npv_ratio=None,
            expected_loss=NAN,
            wal=NAN,
            irr=NAN,
            status=ValuationStatus.NO_CURVE,
            risk_breakdown=_risk_breakdown(risk, None, None),
            original_principal=schedule.original_principal,
            seasoned_balance=schedule.seasoned_balance,
            remaining_months=schedule.remaining_months,
        )

    total_bps = curve.risk_premium_bps + risk.adjustments_bps.total
    discount_rate = risk_free_rate + total_bps / 10_000.0

    # --- projection ---
    horizon = schedule.remaining_months
    hazards = interpolate_tier_curve(curve, horizon)
    projection = simulate_cashflows(
        schedule.seasoned_balance,
        schedule.remaining_payments(),
        monthly_rate(loan.nominal_rate),
        hazards.pd,
        hazards.smm,
        curve.recovery_rate,
        curve.recovery_lag_months,
        monthly_rate(discount_rate),
        original_principal=schedule.original_principal,
    )

    irr = solve_irr(
        projection.cash_flows,
        schedule.seasoned_balance,
        bounds=(cfg.irr_lower_bound, cfg.irr_upper_bound),
        tolerance=cfg.irr_tolerance,
        max_iterations=cfg.irr_max_iterations,
    )

    logger.debug(
        "Loan %s: tier=%s rate=%.4f npv=%.2f el=%s wal=%s irr=%s",
        loan.loan_id, risk.tier.value, discount_rate, projection.npv,
        projection.expected_loss, projection.wal, irr,
    )

    return ValuationResult(
        loan_id=loan.loan_id,
        risk_tier=risk.tier,
        discount_rate=discount_rate,
        npv=projection.npv,
        npv_ratio=projection.npv_ratio,
        expected_loss=projection.expected_loss,
        wal=projection.wal,
        irr=irr,
        status=ValuationStatus.OK,
        risk_breakdown=_risk_breakdown(risk, curve, total_bps),
        curve_used=curve,
        original_principal=schedule.original_principal,
        seasoned_balance=schedule.seasoned_balance,
        remaining_months=horizon,
        cash_flows=projection.cash_flows,
    )
