"""
Normalize raw loan / borrower records from the store into typed models.

Store records drift over time (``id`` vs ``loanId``, ``rate`` vs
``nominalRate``, numbers as strings). Aliases are canonicalized first, then
numerics are coerced; anything unparseable becomes NaN / null so the engine
can degrade the loan instead of the loader failing the batch.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from core.schema import Borrower, Loan

logger = logging.getLogger("SLV.Records")


_LOAN_ALIASES: Dict[str, str] = {
    "id": "loanId",
    "loan_id": "loanId",
    "LoanID": "loanId",
    "rate": "nominalRate",
    "nominal_rate": "nominalRate",
    "term": "termYears",
    "term_years": "termYears",
    "grace_years": "graceYears",
    "start_date": "loanStartDate",
    "loan_start_date": "loanStartDate",
    "purchase_date": "purchaseDate",
    "borrower_id": "borrowerId",
    "loan_name": "loanName",
    "ownership_lots": "ownershipLots",
}

_BORROWER_ALIASES: Dict[str, str] = {
    "id": "borrowerId",
    "borrower_id": "borrowerId",
    "fico": "borrowerFico",
    "borrower_fico": "borrowerFico",
    "cosigner_fico": "cosignerFico",
    "year_in_school": "yearInSchool",
    "is_graduate_student": "isGraduateStudent",
    "degree_type": "degreeType",
    "OPEID": "opeid",
}

_LOAN_NUMERIC = ("principal", "nominalRate", "termYears", "graceYears", "purchasePrice")
_BORROWER_NUMERIC = ("borrowerFico", "cosignerFico", "yearInSchool")


def canonicalize_keys(raw: Mapping[str, Any], aliases: Mapping[str, str]) -> Dict[str, Any]:
    """Rename aliased keys; when both an alias and the canonical key exist, the canonical value wins."""
    out: Dict[str, Any] = {}
    for k, v in raw.items():
        canon = aliases.get(k, k)
        if canon in out and canon != k:
            continue
        if canon != k and canon in raw:
            continue
        out[canon] = v
    return out


def _to_number(v: Any) -> Optional[float]:
    if v is None or (isinstance(v, str) and v.strip() == ""):
        return None
    val = pd.to_numeric(v, errors="coerce")
    return None if pd.isna(val) else float(val)


def _parse_date(v: Any) -> Optional[pd.Timestamp]:
    if v is None or (isinstance(v, str) and v.strip() == ""):
        return None
    ts = pd.to_datetime(v, errors="coerce")
    return None if pd.isna(ts) else pd.Timestamp(ts)


def earliest_lot_purchase_date(ownership_lots: Any) -> Optional[pd.Timestamp]:
    if not isinstance(ownership_lots, list):
        return None
    dates = [_parse_date((lot or {}).get("purchaseDate")) for lot in ownership_lots if isinstance(lot, Mapping)]
    dates = [d for d in dates if d is not None]
    return min(dates) if dates else None


def normalize_loan(raw: Mapping[str, Any]) -> Loan:
    rec = canonicalize_keys(raw, _LOAN_ALIASES)
    loan_id = str(rec.get("loanId") if rec.get("loanId") is not None else "unknown")
    rec["loanId"] = loan_id

    for col in _LOAN_NUMERIC:
        if col in rec:
            rec[col] = _to_number(rec[col])

    if rec.get("principal") is None and rec.get("purchasePrice") is not None:
        rec["principal"] = rec["purchasePrice"]

    start = _parse_date(rec.get("loanStartDate"))
    rec["loanStartDate"] = start.date() if start is not None else None

    lots: List[Dict[str, Any]] = []
    for lot in rec.get("ownershipLots") or []:
        if not isinstance(lot, Mapping):
            continue
        lot = dict(lot)
        pdt = _parse_date(lot.get("purchaseDate"))
        lot["purchaseDate"] = pdt.date() if pdt is not None else None
        lots.append(lot)
    rec["ownershipLots"] = lots

    # purchase date: explicit → earliest ownership lot → loan start
    purchase = _parse_date(rec.get("purchaseDate"))
    if purchase is None:
        purchase = earliest_lot_purchase_date(lots) or start
    rec["purchaseDate"] = purchase.date() if purchase is not None else None

    events: List[Dict[str, Any]] = []
    for ev in rec.get("events") or []:
        if not isinstance(ev, Mapping):
            continue
        when = _parse_date(ev.get("date"))
        if when is None:
            logger.warning("Loan %s: dropping %r event with unparseable date %r", loan_id, ev.get("type"), ev.get("date"))
            continue
        events.append({"type": ev.get("type"), "date": when.date(), "amount": _to_number(ev.get("amount")) or 0.0})
    rec["events"] = events

    return Loan.model_validate(rec)


def normalize_borrower(raw: Mapping[str, Any]) -> Borrower:
    rec = canonicalize_keys(raw, _BORROWER_ALIASES)
    for col in _BORROWER_NUMERIC:
        if col in rec:
            rec[col] = _to_number(rec[col])
    if rec.get("yearInSchool") is not None:
        rec["yearInSchool"] = int(rec["yearInSchool"])
    grad = rec.get("isGraduateStudent")
    if isinstance(grad, str):
        rec["isGraduateStudent"] = grad.strip().lower() in ("true", "yes", "y", "1")
    return Borrower.model_validate(rec)
