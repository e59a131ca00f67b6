"""
Deterministic monthly cash-flow projection for one seasoned loan.

Per month m = 1..N on the surviving balance:
  1. retired loans (balance <= 0) emit only recoveries still due
  2. interest on the balance; scheduled principal = payment - interest, capped at balance
  3. prepayment = SMM[m] * balance after scheduled principal
  4. default   = PD[m]  * balance after prepayment
  5. recovery of the default lands recovery_lag months later
  6. cash flow = interest + scheduled principal + prepayment + recovery due
  7. discount at the monthly discount rate; accumulate NPV and WAL terms

Recoveries that land after month N extend the cash-flow vector past the
horizon, so none are dropped and NPV always equals the discounted sum of
the returned vector.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd

logger = logging.getLogger("SLV.CashFlow")


@dataclass(frozen=True)
class CashFlowProjection:
    """Projection output; arrays are indexed by month-1 and cover months 1..len(cash_flows)."""

    cash_flows: np.ndarray
    npv: float
    npv_ratio: Optional[float]
    expected_loss: Optional[float]
    wal: Optional[float]
    total_defaults: float
    total_recoveries: float
    detail: pd.DataFrame = field(repr=False, compare=False, default_factory=pd.DataFrame)

    @property
    def horizon(self) -> int:
        return len(self.cash_flows)


def simulate_cashflows(
    seasoned_balance: float,
    scheduled_payments: np.ndarray,
    monthly_loan_rate: float,
    monthly_pd: np.ndarray,
    monthly_smm: np.ndarray,
    recovery_pct: float,
    recovery_lag_months: int,
    monthly_discount_rate: float,
    *,
    original_principal: Optional[float] = None,
) -> CashFlowProjection:
    """
    Project the loan month by month and return cash flows, NPV, expected loss and WAL.

    Parameters
    ----------
    seasoned_balance : float
        Balance outstanding at the valuation date.
    scheduled_payments : np.ndarray
        Scheduled payment for each remaining month; its length is the horizon N.
    monthly_loan_rate, monthly_discount_rate : float
        Annual rates / 12.
    monthly_pd, monthly_smm : np.ndarray
        Marginal monthly default and prepayment probabilities, length >= N.
    recovery_pct : float
        Gross recovery as a fraction of defaulted principal.
    recovery_lag_months : int
        Months from default to recovery (0 = same month).
    original_principal : float, optional
        Denominator for npv_ratio and expected_loss; defaults to the seasoned balance.
    """
    pay = np.asarray(scheduled_payments, dtype=float)
    n = int(pay.size)
    pd_m = np.asarray(monthly_pd, dtype=float)
    smm_m = np.asarray(monthly_smm, dtype=float)
    if pd_m.size < n or smm_m.size < n:
        raise ValueError(f"PD/SMM vectors shorter than the {n}-month horizon.")

    lag = max(int(recovery_lag_months), 0)
    total_len = n + lag

    begin_bal = np.zeros(total_len, dtype=float)
    end_bal = np.zeros(total_len, dtype=float)
    interest_arr = np.zeros(total_len, dtype=float)
    sched_prin = np.zeros(total_len, dtype=float)
    prepay_arr = np.zeros(total_len, dtype=float)
    default_arr = np.zeros(total_len, dtype=float)
    recovery_arr = np.zeros(total_len, dtype=float)  # by month received (index m-1)

    balance = float(seasoned_balance)
    for m in range(1, n + 1):
        i = m - 1
        begin_bal[i] = balance
        if balance <= 0:
            continue

        interest = balance * monthly_loan_rate
        principal_paid = min(max(pay[i] - interest, 0.0), balance)
        remaining = balance - principal_paid

        prepay = remaining * smm_m[i]
        remaining -= prepay

        default_amt = remaining * pd_m[i]
        remaining -= default_amt

        # month m + lag always fits: the arrays run to n + lag
        recovery_arr[i + lag] += default_amt * recovery_pct

        interest_arr[i] = interest
        sched_prin[i] = principal_paid
        prepay_arr[i] = prepay
        default_arr[i] = default_amt
        end_bal[i] = remaining
        balance = remaining

    cash = interest_arr + sched_prin + prepay_arr + recovery_arr

    # trim tail months that carry nothing, but never below the horizon
    last = int(np.flatnonzero(cash)[-1]) + 1 if np.any(cash) else 0
    keep = max(n, last)

    months = np.arange(1, total_len + 1, dtype=float)
    disc = np.power(1.0 + monthly_discount_rate, -months)
    dcf = cash * disc

    npv = float(dcf.sum())
    total_dcf = npv
    wal_num = float((dcf * months).sum())
    total_defaults = float(default_arr.sum())
    total_recoveries = float(recovery_arr.sum())

    denom = float(original_principal) if original_principal is not None else float(seasoned_balance)
    npv_ratio = npv / denom - 1.0 if denom > 0 and np.isfinite(npv) else None
    expected_loss = (total_defaults - total_recoveries) / denom if denom > 0 else None
    wal = wal_num / total_dcf / 12.0 if total_dcf > 0 else None

    detail = pd.DataFrame({
        "month": months[:keep].astype(int),
        "begin_balance": begin_bal[:keep],
        "interest": interest_arr[:keep],
        "scheduled_principal": sched_prin[:keep],
        "prepayment": prepay_arr[:keep],
        "default_principal": default_arr[:keep],
        "recovery": recovery_arr[:keep],
        "end_balance": end_bal[:keep],
        "cash_flow": cash[:keep],
        "discount_factor": disc[:keep],
        "discounted_cash_flow": dcf[:keep],
    })

    logger.debug(
        "Projected %d months (+%d tail): npv=%.2f defaults=%.2f recoveries=%.2f",
        n, keep - n, npv, total_defaults, total_recoveries,
    )

    return CashFlowProjection(
        cash_flows=cash[:keep].copy(),
        npv=npv,
        npv_ratio=npv_ratio,
        expected_loss=expected_loss,
        wal=wal,
        total_defaults=total_defaults,
        total_recoveries=total_recoveries,
        detail=detail,
    )
