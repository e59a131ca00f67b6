"""
School-tier lookup.

Resolution order: trimmed OPEID → normalized school name → the table's
DEFAULT entry → a synthetic ``Unknown`` tier. A miss is never fatal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.config import UNKNOWN_SCHOOL_TIER, SchoolTierEntry, SchoolTierTable
from core.utils import normalize_school_name

logger = logging.getLogger("SLV.Risk")

DEFAULT_MEDIAN_EARNINGS = 50_000.0


@dataclass(frozen=True)
class SchoolInfo:
    tier: str
    name: str
    median_earnings_10yr: float
    matched_by: str  # "opeid", "name", "default" or "none"


def _info(entry: SchoolTierEntry, matched_by: str, fallback_earnings: float) -> SchoolInfo:
    earnings = entry.median_earnings_10yr
    return SchoolInfo(
        tier=entry.tier or UNKNOWN_SCHOOL_TIER,
        name=entry.name,
        median_earnings_10yr=fallback_earnings if earnings is None else float(earnings),
        matched_by=matched_by,
    )


def lookup_school(
    school: Optional[str],
    opeid: Optional[str],
    table: Optional[SchoolTierTable],
    *,
    default_median_earnings: float = DEFAULT_MEDIAN_EARNINGS,
) -> SchoolInfo:
    if table is None:
        logger.warning("School tier table not loaded; school %r treated as %s.", school, UNKNOWN_SCHOOL_TIER)
        return SchoolInfo(UNKNOWN_SCHOOL_TIER, (school or "").strip(), default_median_earnings, "none")

    key = (opeid or "").strip()
    if key and key in table.entries:
        return _info(table.entries[key], "opeid", default_median_earnings)

    norm = normalize_school_name(school)
    if norm and norm in table.by_name:
        return _info(table.by_name[norm], "name", default_median_earnings)

    if key:
        logger.warning("OPEID %s not found in school tiers; using DEFAULT.", key)
    else:
        logger.warning("No OPEID or name match for school %r; using DEFAULT.", school)

    if table.default is not None:
        return _info(table.default, "default", default_median_earnings)
    return SchoolInfo(UNKNOWN_SCHOOL_TIER, (school or "").strip(), default_median_earnings, "none")


def resolve_school_name(school: Optional[str], opeid: Optional[str], table: Optional[SchoolTierTable]) -> str:
    """Display name: explicit school text, else the OPEID entry's name, else 'Unknown'."""
    if school and school.strip():
        return school.strip()
    key = (opeid or "").strip()
    if key and table is not None:
        entry = table.entries.get(key)
        if entry is not None:
            return entry.name or "Unknown"
        logger.warning("OPEID %s not found in school tiers for name lookup.", key)
    return "Unknown"
