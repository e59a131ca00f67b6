"""
Aggregate per-loan valuations into PM-consumable summaries.

Instead of: one NPV per loan
The PM gets: the distribution of NPV ratio, expected loss, WAL and IRR
across the book, plus how balance and value split across risk tiers.

  Q1: "Am I paying a fair price?"        → balance-weighted NPV ratio by tier
  Q2: "Where are the losses?"            → expected loss by tier, P95 of EL
  Q3: "How long is my money out?"        → WAL distribution
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd

from core.schema import RiskTier, ValuationStatus
from core.utils import require_columns

_TIER_ORDER = [t.value for t in RiskTier]


def _numeric(df: pd.DataFrame, col: str) -> pd.Series:
    return pd.to_numeric(df[col], errors="coerce")


def summarize_valuations(
    valuations: pd.DataFrame,
    *,
    percentiles: Tuple[float, ...] = (0.05, 0.25, 0.50, 0.75, 0.95),
) -> Dict[str, Any]:
    """
    Summarize the output of ``pm.portfolio.value_portfolio``.

    Parameters
    ----------
    valuations : pd.DataFrame
        One row per loan. Required columns: loan_id, status, risk_tier,
        npv, npv_ratio, expected_loss, wal, irr, original_principal,
        seasoned_balance
    percentiles : tuple of float
        Percentile levels to report

    Returns
    -------
    Dict with:
      "summary_table": One row per metric with mean/std/min/percentiles/max (NaN ignored)
      "by_tier":       One row per risk tier: loans, balance, NPV, NPV ratio weighted
                       by original principal (the ratio's own basis), mean EL
      "n_loans", "n_valued", "total_npv", "total_balance"
    """
    require_columns(
        valuations,
        [
            "loan_id", "status", "risk_tier", "npv", "npv_ratio", "expected_loss",
            "wal", "irr", "original_principal", "seasoned_balance",
        ],
    )
    df = valuations.copy()
    for col in ("npv", "npv_ratio", "expected_loss", "wal", "irr", "original_principal", "seasoned_balance"):
        df[col] = _numeric(df, col)

    metrics_to_summarize = {
        "NPV / Principal - 1": "npv_ratio",
        "Expected Loss": "expected_loss",
        "WAL (years)": "wal",
        "IRR (%)": "irr",
    }

    rows = []
    for label, col in metrics_to_summarize.items():
        values = df[col].dropna().values
        if len(values) == 0:
            continue

        row = {
            "Metric": label,
            "Mean": float(np.mean(values)),
            "Std Dev": float(np.std(values)),
            "Min": float(np.min(values)),
        }
        for p in percentiles:
            row[f"P{int(round(p * 100)):02d}"] = float(np.percentile(values, p * 100))
        row["Max"] = float(np.max(values))
        rows.append(row)

    summary_table = pd.DataFrame(rows)

    # Tier breakdown: NPV ratio weighted by original principal over loans that produced one
    df["_weighted_ratio"] = df["npv_ratio"] * df["original_principal"]
    df["_ratio_weight"] = df["original_principal"].where(df["npv_ratio"].notna())
    by_tier = (
        df.groupby("risk_tier", sort=False)
        .agg(
            loans=("loan_id", "count"),
            seasoned_balance=("seasoned_balance", "sum"),
            npv=("npv", "sum"),
            _weighted_ratio=("_weighted_ratio", "sum"),
            _ratio_weight=("_ratio_weight", "sum"),
            mean_expected_loss=("expected_loss", "mean"),
        )
        .reset_index()
    )
    by_tier["npv_ratio"] = by_tier["_weighted_ratio"] / by_tier["_ratio_weight"].replace(0.0, np.nan)
    by_tier = by_tier.drop(columns=["_weighted_ratio", "_ratio_weight"])
    by_tier["_order"] = by_tier["risk_tier"].map({t: i for i, t in enumerate(_TIER_ORDER)}).fillna(len(_TIER_ORDER))
    by_tier = by_tier.sort_values("_order").drop(columns="_order").reset_index(drop=True)
    by_tier = by_tier[["risk_tier", "loans", "seasoned_balance", "npv", "npv_ratio", "mean_expected_loss"]]

    valued = df["status"] == ValuationStatus.OK.value

    return {
        "summary_table": summary_table,
        "by_tier": by_tier,
        "n_loans": int(len(df)),
        "n_valued": int(valued.sum()),
        "total_npv": float(df.loc[valued, "npv"].sum()),
        "total_balance": float(df.loc[valued, "seasoned_balance"].sum()),
    }
