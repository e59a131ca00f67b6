"""
Amortization schedule reconstruction under historical loan events.

The level payment is fixed at origination from principal, nominal rate and
12 * (term + grace) months. Events dated on or before the as-of date are
replayed in date order against that schedule; later events are not yet known:
  - payment / prepayment: extra principal in the period containing the event
    (the payment stays level, so the schedule shortens)
  - default: truncates the schedule at that period

The "current" row is the latest period dated on or before the as-of date.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from core.schema import EVENT_DEFAULT, EVENT_PAYMENT, EVENT_PREPAYMENT, Loan
from core.utils import is_positive_finite, monthly_dates, monthly_rate

logger = logging.getLogger("SLV.Amortization")

INVALID_LOAN_BASICS = "INVALID_LOAN_BASICS"

SCHEDULE_COLUMNS = ("period", "date", "payment", "principal", "interest", "extra_principal", "balance")

# balances below this fraction of original principal are treated as paid off
_PAID_OFF_TOL = 1e-9


def level_payment(balance: float, monthly_rate: float, n_months: int) -> float:
    """Standard fully-amortizing level payment (PMT) with near-zero rate guard."""
    if n_months <= 0:
        return float(balance)
    if abs(monthly_rate) < 1e-12:
        return float(balance) / n_months
    return float(balance) * monthly_rate / (1.0 - (1.0 + monthly_rate) ** (-n_months))


@dataclass(frozen=True)
class AmortizationSchedule:
    rows: pd.DataFrame
    original_principal: float
    monthly_payment: float
    current_index: int
    seasoned_balance: float
    is_valid: bool = True
    error: Optional[str] = None
    defaulted: bool = False
    default_date: Optional[pd.Timestamp] = None

    @property
    def remaining_months(self) -> int:
        if not self.is_valid:
            return 0
        return max(len(self.rows) - self.current_index - 1, 1)

    def remaining_payments(self) -> np.ndarray:
        """Scheduled payment for each remaining month, padded with the level payment past the last row."""
        n = self.remaining_months
        pay = self.rows["payment"].to_numpy(dtype=float)[self.current_index + 1:]
        if pay.size < n:
            pay = np.concatenate([pay, np.full(n - pay.size, self.monthly_payment, dtype=float)])
        return pay[:n]

    @classmethod
    def invalid(cls, principal: float) -> "AmortizationSchedule":
        return cls(
            rows=pd.DataFrame(columns=list(SCHEDULE_COLUMNS)),
            original_principal=principal,
            monthly_payment=float("nan"),
            current_index=-1,
            seasoned_balance=float("nan"),
            is_valid=False,
            error=INVALID_LOAN_BASICS,
        )


def build_amortization_schedule(loan: Loan, as_of_date: pd.Timestamp) -> AmortizationSchedule:
    """
    Rebuild the loan's month-by-month schedule and locate the seasoned balance.

    Never raises for bad economics: non-positive or non-finite principal, rate
    or term returns an invalid schedule flagged INVALID_LOAN_BASICS.
    """
    principal = loan.principal
    term_months = loan.term_months
    if not (
        is_positive_finite(principal)
        and is_positive_finite(loan.nominal_rate)
        and is_positive_finite(loan.term_years)
        and is_positive_finite(term_months)
    ):
        logger.warning(
            "Loan %s has invalid basics (principal=%s, rate=%s, term=%s)",
            loan.loan_id, principal, loan.nominal_rate, loan.term_years,
        )
        return AmortizationSchedule.invalid(principal)

    n = int(round(term_months))
    if n <= 0:
        logger.warning("Loan %s has a term shorter than one month", loan.loan_id)
        return AmortizationSchedule.invalid(principal)

    as_of = pd.Timestamp(as_of_date).normalize()
    if loan.loan_start_date is None:
        logger.warning("Loan %s has no start date; treating it as starting %s", loan.loan_id, as_of.date())
        start = as_of
    else:
        start = pd.Timestamp(loan.loan_start_date)

    r_m = monthly_rate(loan.nominal_rate)
    pmt = level_payment(principal, r_m, n)
    dates = monthly_dates(start, n)

    # only history known at the valuation date is replayed
    events = [(pd.Timestamp(e.date), e) for e in loan.events if pd.Timestamp(e.date) <= as_of]
    if len(events) < len(loan.events):
        logger.warning(
            "Loan %s: %d event(s) dated after %s are not replayed",
            loan.loan_id, len(loan.events) - len(events), as_of.date(),
        )
    ei = 0

    rows = []
    balance = float(principal)
    defaulted = False
    default_date = None

    for k, d in enumerate(dates, start=1):
        extra = 0.0
        default_here = False
        # events in (previous row date, d]; anything on/before the start lands in period 1
        while ei < len(events) and events[ei][0] <= d:
            ev_date, ev = events[ei]
            ei += 1
            if ev.type in (EVENT_PAYMENT, EVENT_PREPAYMENT):
                extra += max(float(ev.amount), 0.0)
            elif ev.type == EVENT_DEFAULT:
                default_here = True
                default_date = ev_date
            else:
                logger.debug("Loan %s: ignoring %r event on %s", loan.loan_id, ev.type, ev_date.date())

        interest = balance * r_m
        sched_prin = min(max(pmt - interest, 0.0), balance)
        after = balance - sched_prin
        extra = min(extra, after)
        after -= extra
        if after <= principal * _PAID_OFF_TOL:
            after = 0.0

        rows.append({
            "period": k,
            "date": d,
            "payment": sched_prin + interest,
            "principal": sched_prin,
            "interest": interest,
            "extra_principal": extra,
            "balance": after,
        })
        balance = after

        if default_here:
            defaulted = True
            break
        if balance <= 0.0:
            break

    if ei < len(events) and not defaulted:
        leftover = [ev for _, ev in events[ei:]]
        if any(ev.type == EVENT_DEFAULT for ev in leftover):
            defaulted = True
            default_date = pd.Timestamp(next(ev.date for ev in leftover if ev.type == EVENT_DEFAULT))
        logger.warning("Loan %s: %d event(s) fall after the schedule ends", loan.loan_id, len(leftover))

    table = pd.DataFrame(rows, columns=list(SCHEDULE_COLUMNS))
    current_index = int(table["date"].searchsorted(as_of, side="right")) - 1
    seasoned = float(table["balance"].iloc[current_index]) if current_index >= 0 else float(principal)

    return AmortizationSchedule(
        rows=table,
        original_principal=float(principal),
        monthly_payment=pmt,
        current_index=current_index,
        seasoned_balance=seasoned,
        defaulted=defaulted,
        default_date=default_date,
    )
