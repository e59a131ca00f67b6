"""Borrower risk classification and school lookup."""

from __future__ import annotations

import pytest

from core.config import RiskCurveSet
from core.schema import Borrower, RiskTier
from risk.classifier import (
    RiskClassifier,
    blend_fico,
    classify,
    derive_fico_band,
    derive_risk_tier,
    normalize_degree,
    year_bucket,
)
from risk.schools import lookup_school, resolve_school_name


def test_blend_never_below_own_score() -> None:
    assert blend_fico(700, 600) == 700
    assert blend_fico(700, 800) == pytest.approx(0.7 * 700 + 0.3 * 800)
    assert blend_fico(700, None) == 700


def test_blend_falls_back_to_cosigner_then_zero() -> None:
    assert blend_fico(None, 750) == 750
    assert blend_fico(float("nan"), 750) == 750
    assert blend_fico(None, None) == 0.0


@pytest.mark.parametrize(
    "fico, band",
    [(760, "A"), (759.9, "B"), (720, "B"), (680, "C"), (640, "D"), (639, "E"), (0, "E")],
)
def test_fico_bands(fico, band) -> None:
    assert derive_fico_band(fico) == band


def test_fico_band_unknown_for_missing() -> None:
    assert derive_fico_band(None) == "UNKNOWN"


def test_tier_rules() -> None:
    assert derive_risk_tier("A", 3) == RiskTier.LOW
    assert derive_risk_tier("A", 2) == RiskTier.MEDIUM
    assert derive_risk_tier("A", None) == RiskTier.MEDIUM
    assert derive_risk_tier("B", 5) == RiskTier.MEDIUM
    assert derive_risk_tier("C", 1) == RiskTier.HIGH
    assert derive_risk_tier("D", 4) == RiskTier.HIGH
    assert derive_risk_tier("E", 4) == RiskTier.VERY_HIGH
    assert derive_risk_tier("UNKNOWN", 4) == RiskTier.VERY_HIGH


def test_degree_and_year_keys() -> None:
    assert normalize_degree("stem") == "STEM"
    assert normalize_degree(" Professional ") == "Professional"
    assert normalize_degree("Art History") == "Other"
    assert normalize_degree(None) == "Other"
    assert year_bucket(2) == "2"
    assert year_bucket(5) == "5+"
    assert year_bucket(7) == "5+"
    assert year_bucket(None) is None


def test_strong_borrower_adjustments(reference, strong_borrower) -> None:
    risk = RiskClassifier(reference.curves, reference.school_tiers).classify(strong_borrower)
    assert risk.tier == RiskTier.LOW
    assert risk.fico_band == "A"
    assert risk.school.tier == "Tier 1"
    assert risk.school.matched_by == "opeid"
    assert risk.school.median_earnings_10yr == 72000
    adj = risk.adjustments_bps
    assert adj.degree == -25
    assert adj.school == -75
    assert adj.year == -10
    assert adj.graduate == 0
    assert adj.total == pytest.approx(-110)


def test_weak_borrower_uses_default_school_and_other_degree(reference, weak_borrower) -> None:
    risk = classify(weak_borrower, reference.curves, reference.school_tiers)
    assert risk.tier == RiskTier.VERY_HIGH
    assert risk.degree_key == "Other"
    assert risk.school.tier == "Tier 2"
    assert risk.school.matched_by == "default"
    assert risk.adjustments_bps.total == pytest.approx(25 + 0 + 50)


def test_graduate_adjustment(reference) -> None:
    b = Borrower(borrower_id="G", borrower_fico=700, is_graduate_student=True, year_in_school=5)
    risk = classify(b, reference.curves, reference.school_tiers)
    assert risk.adjustments_bps.graduate == -15
    assert risk.adjustments_bps.year == -25


def test_missing_school_table_is_unknown_tier(curve_set, strong_borrower) -> None:
    risk = classify(strong_borrower, curve_set, None)
    assert risk.school.tier == "Unknown"
    assert risk.adjustments_bps.school == 100
    assert risk.school.median_earnings_10yr == 50_000


def test_school_tier_does_not_move_risk_tier(reference) -> None:
    tier3 = Borrower(borrower_id="T3", borrower_fico=770, year_in_school=4, opeid="00999900")
    tier1 = Borrower(borrower_id="T1", borrower_fico=770, year_in_school=4, opeid="00123400")
    assert classify(tier3, reference.curves, reference.school_tiers).tier == RiskTier.LOW
    assert classify(tier1, reference.curves, reference.school_tiers).tier == RiskTier.LOW


def test_unlisted_school_tier_takes_unknown_adjustment() -> None:
    curves = RiskCurveSet.from_dict({"riskTiers": {"LOW": {"riskPremiumBps": 100}}})
    assert curves.school_adjustment_bps("Tier 9") == 100
    assert curves.school_adjustment_bps("Tier 1") == -75


def test_school_lookup_by_normalized_name(school_tiers) -> None:
    info = lookup_school("  state   UNIVERSITY. ", None, school_tiers)
    assert info.tier == "Tier 1"
    assert info.matched_by == "name"


def test_school_lookup_trims_opeid(school_tiers) -> None:
    assert lookup_school(None, " 00999900 ", school_tiers).tier == "Tier 3"


def test_school_lookup_without_default_entry() -> None:
    from core.config import SchoolTierTable

    table = SchoolTierTable.from_dict({"1": {"tier": "Tier 1", "name": "A"}})
    info = lookup_school("B", "2", table)
    assert info.tier == "Unknown"
    assert info.matched_by == "none"


def test_resolve_school_name(school_tiers) -> None:
    assert resolve_school_name(" Given Name ", "00123400", school_tiers) == "Given Name"
    assert resolve_school_name("", "00123400", school_tiers) == "State University"
    assert resolve_school_name(None, "missing", school_tiers) == "Unknown"
    assert resolve_school_name(None, None, None) == "Unknown"
