"""Shared fixtures: a small curve set, school table, and loan/borrower records."""

from __future__ import annotations

import datetime as dt

import pandas as pd
import pytest

from core.config import ReferenceData, RiskCurveSet, SchoolTierTable, ValuationConfig
from core.schema import Borrower, Loan


def _tier(bps, cum, cpr, recovery=20.0, lag=6):
    return {
        "riskPremiumBps": bps,
        "defaultCurve": {"cumulativeDefaultPct": cum},
        "prepaymentCurve": {"valuesPct": cpr},
        "recovery": {"grossRecoveryPct": recovery, "recoveryLagMonths": lag},
    }


@pytest.fixture
def curves_dict():
    return {
        "riskTiers": {
            "LOW": _tier(100, [0.5, 1.0, 1.5, 2.0], [4, 5, 6, 6]),
            "MEDIUM": _tier(200, [1.0, 2.0, 3.0, 4.0], [3, 4, 5, 5]),
            "HIGH": _tier(350, [2.0, 4.0, 6.0, 8.0], [2, 3, 4, 4]),
            "VERY_HIGH": _tier(500, [4.0, 8.0, 12.0, 16.0], [1, 2, 3, 3]),
        },
        "degreeAdjustmentsBps": {"STEM": -25, "Business": 0, "Professional": -50, "Other": 25},
        "yearInSchoolAdjustmentsBps": {"1": 50, "2": 25, "3": 0, "4": -10, "5+": -25},
        "graduateAdjustmentBps": -15,
    }


@pytest.fixture
def school_tiers_dict():
    return {
        "00123400": {"tier": "Tier 1", "name": "State University", "median_earnings_10yr": 72000},
        "00999900": {"tier": "Tier 3", "name": "Example College of Arts"},
        "DEFAULT": {"tier": "Tier 2", "name": "Default"},
    }


@pytest.fixture
def curve_set(curves_dict) -> RiskCurveSet:
    return RiskCurveSet.from_dict(curves_dict)


@pytest.fixture
def school_tiers(school_tiers_dict) -> SchoolTierTable:
    return SchoolTierTable.from_dict(school_tiers_dict)


@pytest.fixture
def reference(curve_set, school_tiers) -> ReferenceData:
    return ReferenceData(curves=curve_set, school_tiers=school_tiers)


@pytest.fixture
def config() -> ValuationConfig:
    return ValuationConfig(as_of_date=pd.Timestamp("2025-06-30"))


@pytest.fixture
def new_loan() -> Loan:
    """10k, 8%, 10 years, starting on the valuation date."""
    return Loan(
        loan_id="L-NEW",
        borrower_id="B1",
        principal=10_000.0,
        nominal_rate=0.08,
        term_years=10,
        loan_start_date=dt.date(2025, 6, 30),
    )


@pytest.fixture
def seasoned_loan() -> Loan:
    return Loan(
        loan_id="L-SEASONED",
        borrower_id="B1",
        principal=20_000.0,
        nominal_rate=0.07,
        term_years=10,
        loan_start_date=dt.date(2022, 1, 15),
    )


@pytest.fixture
def strong_borrower() -> Borrower:
    return Borrower(
        borrower_id="B1",
        borrower_name="Pat Example",
        borrower_fico=780,
        cosigner_fico=800,
        year_in_school=4,
        degree_type="STEM",
        school="State University",
        opeid="00123400",
    )


@pytest.fixture
def weak_borrower() -> Borrower:
    return Borrower(
        borrower_id="B2",
        borrower_fico=610,
        year_in_school=1,
        degree_type="Art History",
        school="Nowhere Institute",
    )
