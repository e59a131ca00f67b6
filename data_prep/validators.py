"""
Data quality validation for loan records, borrowers and curve sets.

Catches problems early:
- Loan economics the engine will refuse to value
- Rates that look like percentages instead of decimals
- Event histories that don't make sense
- Credit scores outside the plausible range
- Default curves that decrease
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import numpy as np

from core.config import RiskCurveSet
from core.schema import EVENT_DEFAULT, KNOWN_EVENT_TYPES, Borrower, Loan, RiskTier
from core.utils import is_positive_finite
from risk.classifier import DEGREE_TYPES


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for a record."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


def validate_loan(loan: Loan) -> ValidationResult:
    """Errors mark loans the engine will value as INVALID_LOAN_BASICS; warnings are informational."""
    result = ValidationResult()
    lid = loan.loan_id

    # --- Economics ---
    if not is_positive_finite(loan.principal):
        result.errors.append(f"Loan {lid}: principal must be positive (got {loan.principal}).")
    if not is_positive_finite(loan.nominal_rate):
        result.errors.append(f"Loan {lid}: nominal rate must be positive (got {loan.nominal_rate}).")
    elif loan.nominal_rate > 1.0:
        result.warnings.append(
            f"Loan {lid}: nominal rate {loan.nominal_rate} > 1.0; check if rate is in percent vs decimal form."
        )
    if not is_positive_finite(loan.term_years):
        result.errors.append(f"Loan {lid}: term must be positive (got {loan.term_years}).")
    if loan.grace_years < 0:
        result.warnings.append(f"Loan {lid}: negative grace period ({loan.grace_years}).")

    # --- Dates ---
    if loan.loan_start_date is None:
        result.warnings.append(f"Loan {lid}: no loan start date; valued as unseasoned.")

    # --- Events ---
    default_seen = False
    for ev in loan.events:
        if ev.type not in KNOWN_EVENT_TYPES:
            result.warnings.append(f"Loan {lid}: unknown event type {ev.type!r} on {ev.date} is ignored.")
        if loan.loan_start_date is not None and ev.date < loan.loan_start_date:
            result.warnings.append(f"Loan {lid}: {ev.type} event on {ev.date} precedes the loan start date.")
        if default_seen:
            result.warnings.append(f"Loan {lid}: {ev.type} event on {ev.date} follows a default.")
        if ev.type == EVENT_DEFAULT:
            default_seen = True
        elif ev.amount < 0:
            result.warnings.append(f"Loan {lid}: negative {ev.type} amount on {ev.date} is ignored.")

    # --- Ownership ---
    n_undated = sum(1 for lot in loan.ownership_lots if lot.purchase_date is None)
    if n_undated:
        result.warnings.append(f"Loan {lid}: {n_undated} ownership lot(s) without a purchase date.")

    return result


def validate_borrower(borrower: Borrower) -> ValidationResult:
    result = ValidationResult()
    bid = borrower.borrower_id or "(no id)"

    for label, score in (("borrower FICO", borrower.borrower_fico), ("cosigner FICO", borrower.cosigner_fico)):
        if score is None:
            continue
        if score < 300:
            result.warnings.append(f"Borrower {bid}: {label} {score:g} < 300.")
        elif score > 900:
            result.warnings.append(f"Borrower {bid}: {label} {score:g} > 900.")

    if borrower.borrower_fico is None:
        if borrower.cosigner_fico is None:
            result.warnings.append(f"Borrower {bid}: no FICO on file; classified at the most conservative tier.")
        else:
            result.warnings.append(f"Borrower {bid}: no borrower FICO; classified on cosigner FICO only.")

    if borrower.year_in_school is None:
        result.warnings.append(f"Borrower {bid}: year in school missing; no year adjustment applied.")
    elif borrower.year_in_school < 0:
        result.warnings.append(f"Borrower {bid}: negative year in school ({borrower.year_in_school}).")

    degree = (borrower.degree_type or "").strip()
    if degree and degree.lower() not in {d.lower() for d in DEGREE_TYPES} and degree.lower() != "other":
        result.warnings.append(f"Borrower {bid}: degree type {degree!r} treated as Other.")

    return result


def validate_curve_set(curves: RiskCurveSet) -> ValidationResult:
    result = ValidationResult()

    for tier in (RiskTier.LOW, RiskTier.MEDIUM, RiskTier.HIGH, RiskTier.VERY_HIGH):
        if curves.curve_for(tier) is None:
            result.warnings.append(f"No curve for standard tier {tier.value}; loans there use a fallback tier.")

    for name, curve in curves.tiers.items():
        cum = np.asarray(curve.cumulative_default_pct, dtype=float)
        cpr = np.asarray(curve.prepayment_cpr_pct, dtype=float)

        if cum.size == 0:
            result.warnings.append(f"Tier {name}: empty default curve (no projected defaults).")
        elif np.any(np.diff(cum) < 0):
            result.errors.append(f"Tier {name}: cumulative default curve decreases.")
        if cpr.size == 0:
            result.warnings.append(f"Tier {name}: empty prepayment curve (no projected prepayments).")

        for label, arr in (("default", cum), ("prepayment", cpr)):
            n_out = int(((arr < 0) | (arr > 100)).sum())
            if n_out:
                result.warnings.append(f"Tier {name}: {n_out} {label} curve value(s) outside [0, 100].")

        if not 0 <= curve.gross_recovery_pct <= 100:
            result.warnings.append(f"Tier {name}: gross recovery {curve.gross_recovery_pct}% outside [0, 100].")
        if curve.recovery_lag_months < 0:
            result.warnings.append(f"Tier {name}: negative recovery lag treated as 0.")

    return result
