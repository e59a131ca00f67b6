"""
slv-value: value a loan file against local reference data.

    slv-value --curves curves.json --loans loans.json --borrowers borrowers.json \
        --school-tiers school_tiers.json --risk-free-rate 0.04 --output valuations.csv
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from core.config import ValuationConfig, configure_logging
from core.errors import ValuationError
from data_prep.loader import load_borrowers, load_loans, load_reference_data
from data_prep.validators import validate_curve_set
from pm.aggregator import summarize_valuations
from pm.portfolio import value_portfolio

logger = logging.getLogger("SLV.CLI")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="slv-value", description="Value private student loans.")
    parser.add_argument("--curves", type=Path, required=True, help="Valuation curves JSON.")
    parser.add_argument("--loans", type=Path, required=True, help="Loans JSON ({'loans': [...]} or a list).")
    parser.add_argument("--borrowers", type=Path, default=None, help="Borrowers JSON.")
    parser.add_argument("--school-tiers", type=Path, default=None, help="School tier table JSON.")
    parser.add_argument("--risk-free-rate", type=float, default=0.04, help="Annual decimal rate.")
    parser.add_argument("--as-of", type=str, default=None, help="Valuation date, YYYY-MM-DD (default today).")
    parser.add_argument("--output", type=Path, default=None, help="Write per-loan results to this CSV.")
    parser.add_argument("--log-level", type=str, default="INFO")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = ValuationConfig()
        if args.as_of:
            as_of = pd.to_datetime(args.as_of, errors="coerce")
            if pd.isna(as_of):
                logger.error("Invalid --as-of date %r", args.as_of)
                return 2
            config = ValuationConfig(as_of_date=pd.Timestamp(as_of).normalize())

        reference = load_reference_data(args.curves, args.school_tiers)
        check = validate_curve_set(reference.curves)
        for w in check.warnings:
            logger.warning(w)
        if not check.is_valid:
            logger.error("Curve set failed validation:\n%s", check.summary())
            return 2

        loans = load_loans(args.loans)
        borrowers = load_borrowers(args.borrowers) if args.borrowers else {}
        results = value_portfolio(loans, borrowers, args.risk_free_rate, reference, config=config)
    except ValuationError as exc:
        logger.error("%s", exc)
        return 2

    if args.output:
        results.to_csv(args.output, index=False)
        print(f"Per-loan results written to: {args.output}")

    summary = summarize_valuations(results)
    print(f"\nValuation date: {config.as_of_date.date()}   risk-free rate: {args.risk_free_rate:.4f}")
    print(f"Loans: {summary['n_loans']}   valued: {summary['n_valued']}")
    print(f"Total NPV: {summary['total_npv']:,.2f}   seasoned balance: {summary['total_balance']:,.2f}")
    if not summary["by_tier"].empty:
        print("\nBy risk tier:")
        print(summary["by_tier"].to_string(index=False))
    if not summary["summary_table"].empty:
        print("\nDistribution:")
        print(summary["summary_table"].to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
