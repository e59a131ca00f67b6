"""
Local JSON loaders for reference data and loan/borrower records.

Reference-data problems are configuration errors and raise
``ReferenceDataError``; individual malformed loan records are normalized
rather than rejected.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from core.config import ReferenceData, RiskCurveSet, SchoolTierTable
from core.errors import ReferenceDataError
from core.schema import Borrower, Loan

from .records import normalize_borrower, normalize_loan

logger = logging.getLogger("SLV.Loader")

PathLike = Union[str, Path]


def _read_json(path: PathLike) -> Any:
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as exc:
        raise ReferenceDataError(f"File not found: {p}") from exc
    except json.JSONDecodeError as exc:
        raise ReferenceDataError(f"Invalid JSON in {p}: {exc}") from exc


def _records(payload: Any, key: str, path: PathLike) -> List[Dict[str, Any]]:
    if isinstance(payload, dict) and key in payload:
        payload = payload[key]
    if not isinstance(payload, list):
        raise ReferenceDataError(f"{path}: expected a list of {key} or an object with a {key!r} list.")
    return [r for r in payload if isinstance(r, dict)]


def load_valuation_curves(path: PathLike) -> RiskCurveSet:
    curves = RiskCurveSet.from_dict(_read_json(path))
    logger.info("Loaded valuation curves for tiers %s from %s", sorted(curves.tiers), path)
    return curves


def load_school_tiers(path: PathLike) -> SchoolTierTable:
    table = SchoolTierTable.from_dict(_read_json(path))
    logger.info("Loaded %d school tier entries from %s", len(table.entries), path)
    return table


def load_reference_data(curves_path: PathLike, school_tiers_path: Optional[PathLike] = None) -> ReferenceData:
    return ReferenceData(
        curves=load_valuation_curves(curves_path),
        school_tiers=load_school_tiers(school_tiers_path) if school_tiers_path else None,
    )


def load_loans(path: PathLike) -> List[Loan]:
    loans = [normalize_loan(r) for r in _records(_read_json(path), "loans", path)]
    logger.info("Loaded %d loans from %s", len(loans), path)
    return loans


def load_borrowers(path: PathLike) -> Dict[str, Borrower]:
    out: Dict[str, Borrower] = {}
    for rec in _records(_read_json(path), "borrowers", path):
        b = normalize_borrower(rec)
        if b.borrower_id is None:
            logger.warning("Skipping borrower record without borrowerId: %r", rec.get("borrowerName"))
            continue
        out[b.borrower_id] = b
    logger.info("Loaded %d borrowers from %s", len(out), path)
    return out
