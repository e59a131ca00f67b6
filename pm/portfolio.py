"""
Portfolio runner: value every loan against one reference-data snapshot.

Each loan is valued independently; a bad record degrades to its own
status row and never aborts the batch. Only configuration errors
(missing curves) propagate.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from core.config import ReferenceData, ValuationConfig
from core.schema import VALUATION_RESULT_COLUMNS, Borrower, Loan, ValuationStatus
from data_prep.overrides import BorrowerOverrides
from engine.valuation import value_loan

logger = logging.getLogger("SLV.Portfolio")

PORTFOLIO_COLUMNS = VALUATION_RESULT_COLUMNS + ("borrower_id",)


def value_portfolio(
    loans: Iterable[Loan],
    borrowers: Optional[Mapping[str, Borrower]],
    risk_free_rate: float,
    reference: Optional[ReferenceData],
    *,
    config: Optional[ValuationConfig] = None,
    overrides: Optional[BorrowerOverrides] = None,
) -> pd.DataFrame:
    """
    Value a list of loans and return one row per loan.

    Parameters
    ----------
    loans : iterable of Loan
    borrowers : mapping of borrower_id -> Borrower, optional
        Loans are matched on ``loan.borrower_id``, falling back to the loan id.
        Loans with no matching borrower are valued with a placeholder borrower.
    risk_free_rate : float
        Annual decimal rate added to each loan's risk premium.
    reference : ReferenceData
        Curves and school tiers shared by every loan in the run.
    overrides : BorrowerOverrides, optional
        Per-loan borrower patches merged before valuation.

    Returns
    -------
    DataFrame with ``PORTFOLIO_COLUMNS``.
    """
    cfg = config or ValuationConfig()
    borrowers = borrowers or {}

    records = []
    for loan in loans:
        key = loan.borrower_id or loan.loan_id
        borrower = borrowers.get(key)
        if borrower is None:
            logger.warning("Loan %s: no borrower record %r; using placeholder", loan.loan_id, key)
            borrower = Borrower.placeholder(key, loan.loan_name)
        if overrides is not None:
            borrower = overrides.apply(loan, borrower)

        result = value_loan(loan, borrower, risk_free_rate, reference, config=cfg)
        rec = result.to_record()
        rec["borrower_id"] = key
        records.append(rec)

    df = pd.DataFrame.from_records(records, columns=list(PORTFOLIO_COLUMNS))

    if df.empty:
        logger.info("Valued 0 loans")
        return df

    status_counts = df["status"].value_counts().to_dict()
    ok = df["status"] == ValuationStatus.OK.value
    logger.info(
        "Valued %d loans (%s): total NPV %.2f on seasoned balance %.2f",
        len(df),
        ", ".join(f"{k}={v}" for k, v in sorted(status_counts.items())),
        float(np.nansum(df.loc[ok, "npv"].to_numpy(dtype=float))),
        float(np.nansum(df.loc[ok, "seasoned_balance"].to_numpy(dtype=float))),
    )
    return df
