# solaredge_client/time_units.py
"""Granularity tokens. Input is case-insensitive: it is uppercased before the 15MIN alias and membership checks."""

from __future__ import annotations

from typing import Any, Optional

from solaredge_client.errors import ValidationError
from solaredge_client.windows import PeriodClass

QUARTER_OF_AN_HOUR = "QUARTER_OF_AN_HOUR"
HOUR = "HOUR"
DAY = "DAY"
WEEK = "WEEK"
MONTH = "MONTH"
YEAR = "YEAR"

TIME_UNITS = (QUARTER_OF_AN_HOUR, HOUR, DAY, WEEK, MONTH, YEAR)
TIME_UNIT_ALIASES = {"15MIN": QUARTER_OF_AN_HOUR}

# Longest window the vendor accepts per granularity on energy-style endpoints.
# Coarser units than DAY have no limit.
TIME_UNIT_CEILINGS: dict[str, Optional[PeriodClass]] = {
    QUARTER_OF_AN_HOUR: PeriodClass.MONTH,
    HOUR: PeriodClass.MONTH,
    DAY: PeriodClass.YEAR,
    WEEK: None,
    MONTH: None,
    YEAR: None,
}


def normalize_time_unit(value: Any, name: str = "time_unit") -> str:
    """Return the canonical granularity, so "15min", "15MIN" and "quarter_of_an_hour" all give QUARTER_OF_AN_HOUR."""
    token = str(value or "").strip().upper()
    if token in TIME_UNIT_ALIASES:
        return TIME_UNIT_ALIASES[token]
    if token in TIME_UNITS:
        return token
    raise ValidationError(name, f"'{value}' is not one of: {', '.join(TIME_UNITS)}")


def ceiling_for_time_unit(time_unit: str) -> Optional[PeriodClass]:
    return TIME_UNIT_CEILINGS[normalize_time_unit(time_unit)]
