"""
PM (Portfolio Manager) outputs — portfolio valuation runs and aggregation.
"""

from .portfolio import PORTFOLIO_COLUMNS, value_portfolio
from .aggregator import summarize_valuations

__all__ = [
    "PORTFOLIO_COLUMNS",
    "value_portfolio",
    "summarize_valuations",
]
