"""
Per-loan borrower overrides for ad-hoc valuation experiments.

This is a caller-side merge step: the portfolio runner applies it before
calling the engine, which never sees the override table.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from core.schema import Borrower, Loan


class BorrowerOverrides:
    """Patches keyed by loan id, merged onto the store's borrower record."""

    def __init__(self, patches: Optional[Dict[str, Dict[str, Any]]] = None):
        self._patches: Dict[str, Dict[str, Any]] = {k: dict(v) for k, v in (patches or {}).items()}

    def set(self, loan_id: str, **patch: Any) -> None:
        current = self._patches.get(loan_id, {})
        self._patches[loan_id] = {**current, **patch}

    def get(self, loan_id: str) -> Dict[str, Any]:
        return dict(self._patches.get(loan_id, {}))

    def clear(self, loan_id: Optional[str] = None) -> None:
        if loan_id is None:
            self._patches.clear()
        else:
            self._patches.pop(loan_id, None)

    def apply(self, loan: Loan, borrower: Borrower) -> Borrower:
        """Return the effective borrower; the input record is left untouched."""
        patch = self._patches.get(loan.loan_id)
        if not patch:
            return borrower
        # re-validate so patched values go through the same coercion as store records
        merged = {**borrower.model_dump(), **patch}
        return Borrower.model_validate(merged)

    def __contains__(self, loan_id: str) -> bool:
        return loan_id in self._patches

    def __len__(self) -> int:
        return len(self._patches)
