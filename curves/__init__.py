"""
Curve interpolation — convert annual reference curves into monthly PD / SMM vectors.
"""

from .interpolation import (
    MonthlyCurves,
    interpolate_tier_curve,
    marginal_annual_defaults,
    to_monthly_pd,
    to_monthly_smm,
)

__all__ = [
    "MonthlyCurves",
    "interpolate_tier_curve",
    "marginal_annual_defaults",
    "to_monthly_pd",
    "to_monthly_smm",
]
