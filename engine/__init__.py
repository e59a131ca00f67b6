"""
Valuation engine — amortization, cash-flow projection, IRR, and the loan valuation entry point.
"""

from .amortization import AmortizationSchedule, build_amortization_schedule, level_payment
from .cashflow import CashFlowProjection, simulate_cashflows
from .irr import irr_residual, solve_irr
from .valuation import value_loan

__all__ = [
    "AmortizationSchedule",
    "build_amortization_schedule",
    "level_payment",
    "CashFlowProjection",
    "simulate_cashflows",
    "irr_residual",
    "solve_irr",
    "value_loan",
]
