from __future__ import annotations

import re
from typing import Iterable, Optional

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta


def require_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def annual_to_monthly_hazard(annual_rate: np.ndarray) -> np.ndarray:
    """Convert annualized hazard to a simple monthly probability via 1-(1-r)^(1/12)."""
    annual_rate = np.clip(np.asarray(annual_rate, dtype=float), 0.0, 1.0)
    return 1.0 - np.power((1.0 - annual_rate), 1.0 / 12.0)


def monthly_rate(annual_rate: float) -> float:
    return annual_rate / 12.0


def is_positive_finite(x: Optional[float]) -> bool:
    return x is not None and bool(np.isfinite(x)) and x > 0


def monthly_dates(start: pd.Timestamp, n_months: int) -> list:
    """Dates of periods 1..n, each k calendar months after ``start`` (day clamped to month end)."""
    s = pd.Timestamp(start).normalize()
    return [s + relativedelta(months=k) for k in range(1, n_months + 1)]


_NON_WORD = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")


def normalize_school_name(name: Optional[str]) -> str:
    """Lower-case, drop punctuation, collapse whitespace."""
    if not name:
        return ""
    s = _NON_WORD.sub(" ", str(name).lower())
    return _SPACES.sub(" ", s).strip()
