"""
Record shapes exchanged with the loan/borrower store and the valuation result.

Loan and borrower records come from an external store in camelCase JSON; the
models accept either the camelCase aliases or the snake_case field names.
Numeric loan economics are not range-checked here: the engine
decides whether a loan is valuable and degrades bad records to an UNKNOWN
result instead of refusing to parse them.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from .config import TierCurve


class RiskTier(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"
    UNKNOWN = "UNKNOWN"
    # Tags the terminal-default result only; the classifier never returns it.
    DEFAULTED = "DEFAULTED"


class ValuationStatus(str, Enum):
    OK = "OK"
    INVALID_LOAN_BASICS = "INVALID_LOAN_BASICS"
    DEFAULTED = "DEFAULTED"
    NO_CURVE = "NO_CURVE"


EVENT_PAYMENT = "payment"
EVENT_PREPAYMENT = "prepayment"
EVENT_DEFAULT = "default"
KNOWN_EVENT_TYPES: Tuple[str, ...] = (EVENT_PAYMENT, EVENT_PREPAYMENT, EVENT_DEFAULT)


def _blank_to_none(v: Any) -> Any:
    if v is None:
        return None
    if isinstance(v, str) and v.strip() == "":
        return None
    if isinstance(v, float) and np.isnan(v):
        return None
    return v


class LoanEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    type: str
    date: dt.date
    amount: float = 0.0

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, v: Any) -> str:
        return str(v or "").strip().lower()

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_default(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return 0.0 if v is None else v


class OwnershipLot(BaseModel):
    """A purchase lot. Carried for reference; the simulator never reads it."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    purchase_date: Optional[dt.date] = Field(default=None, alias="purchaseDate")
    pct: Optional[float] = None
    user: Optional[str] = None

    @field_validator("purchase_date", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        return _blank_to_none(v)


class Loan(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    loan_id: str = Field(alias="loanId")
    loan_name: str = Field(default="", alias="loanName")
    borrower_id: Optional[str] = Field(default=None, alias="borrowerId")

    principal: float = float("nan")
    nominal_rate: float = Field(default=float("nan"), alias="nominalRate")
    term_years: float = Field(default=float("nan"), alias="termYears")
    grace_years: float = Field(default=0.0, alias="graceYears")

    loan_start_date: Optional[dt.date] = Field(default=None, alias="loanStartDate")
    purchase_date: Optional[dt.date] = Field(default=None, alias="purchaseDate")

    events: Tuple[LoanEvent, ...] = ()
    ownership_lots: Tuple[OwnershipLot, ...] = Field(default=(), alias="ownershipLots")

    @field_validator("loan_id", "borrower_id", mode="before")
    @classmethod
    def _as_str(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return None if v is None else str(v).strip()

    @field_validator("loan_start_date", "purchase_date", mode="before")
    @classmethod
    def _blank_dates(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("principal", "nominal_rate", "term_years", mode="before")
    @classmethod
    def _missing_is_nan(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return float("nan") if v is None else v

    @field_validator("grace_years", mode="before")
    @classmethod
    def _missing_grace_is_zero(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return 0.0 if v is None else v

    @field_validator("events", mode="after")
    @classmethod
    def _sort_events(cls, v: Tuple[LoanEvent, ...]) -> Tuple[LoanEvent, ...]:
        return tuple(sorted(v, key=lambda e: e.date))

    @property
    def term_months(self) -> float:
        return 12.0 * (self.term_years + self.grace_years)

    @property
    def has_default(self) -> bool:
        return any(e.type == EVENT_DEFAULT for e in self.events)


class Borrower(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    borrower_id: Optional[str] = Field(default=None, alias="borrowerId")
    borrower_name: str = Field(default="", alias="borrowerName")
    borrower_fico: Optional[float] = Field(default=None, alias="borrowerFico")
    cosigner_fico: Optional[float] = Field(default=None, alias="cosignerFico")
    year_in_school: Optional[int] = Field(default=None, alias="yearInSchool")
    is_graduate_student: bool = Field(default=False, alias="isGraduateStudent")
    degree_type: str = Field(default="", alias="degreeType")
    school: str = ""
    opeid: Optional[str] = None

    @field_validator("borrower_fico", "cosigner_fico", "year_in_school", mode="before")
    @classmethod
    def _blank_numbers(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("degree_type", "school", "borrower_name", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> str:
        v = _blank_to_none(v)
        return "" if v is None else str(v)

    @field_validator("opeid", "borrower_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return None if v is None else str(v).strip()

    @field_validator("is_graduate_student", mode="before")
    @classmethod
    def _none_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    @classmethod
    def placeholder(cls, borrower_id: Optional[str], name: str = "") -> "Borrower":
        """Empty borrower used when the store has no record for a loan."""
        return cls(borrower_id=borrower_id, borrower_name=name or (borrower_id or ""))


# Column order for portfolio output frames.
VALUATION_RESULT_COLUMNS: Tuple[str, ...] = (
    "loan_id",
    "status",
    "risk_tier",
    "discount_rate",
    "npv",
    "npv_ratio",
    "expected_loss",
    "wal",
    "irr",
    "original_principal",
    "seasoned_balance",
    "remaining_months",
    "base_risk_bps",
    "degree_adj_bps",
    "school_adj_bps",
    "year_adj_bps",
    "grad_adj_bps",
    "total_risk_bps",
    "school_tier",
)


@dataclass(frozen=True)
class ValuationResult:
    """One loan's valuation. A pure function of its inputs; never cached."""

    loan_id: str
    risk_tier: RiskTier
    discount_rate: Optional[float]
    npv: float
    npv_ratio: Optional[float]
    expected_loss: Optional[float]
    wal: Optional[float]
    irr: float
    status: ValuationStatus = ValuationStatus.OK
    risk_breakdown: Dict[str, Any] = field(default_factory=dict)
    curve_used: Optional["TierCurve"] = None
    original_principal: float = float("nan")
    seasoned_balance: float = float("nan")
    remaining_months: int = 0
    cash_flows: np.ndarray = field(default_factory=lambda: np.zeros(0), repr=False, compare=False)

    def to_record(self) -> Dict[str, Any]:
        rb = self.risk_breakdown
        return {
            "loan_id": self.loan_id,
            "status": self.status.value,
            "risk_tier": self.risk_tier.value,
            "discount_rate": self.discount_rate,
            "npv": self.npv,
            "npv_ratio": self.npv_ratio,
            "expected_loss": self.expected_loss,
            "wal": self.wal,
            "irr": self.irr,
            "original_principal": self.original_principal,
            "seasoned_balance": self.seasoned_balance,
            "remaining_months": self.remaining_months,
            "base_risk_bps": rb.get("base_risk_bps"),
            "degree_adj_bps": rb.get("degree_adj_bps"),
            "school_adj_bps": rb.get("school_adj_bps"),
            "year_adj_bps": rb.get("year_adj_bps"),
            "grad_adj_bps": rb.get("grad_adj_bps"),
            "total_risk_bps": rb.get("total_risk_bps"),
            "school_tier": rb.get("school_tier"),
        }
