"""
Quota Scheduler (``trade_modules.contracts.quotas``).

Responsibility
--------------
Expands a contract's delivery window ``[start_month, end_month]`` into the
monthly quota table, one ``Quota`` per calendar month with default tonnage
and moisture values.

Architecture position
---------------------
**Modules layer** -- pure functions, ZERO I/O.  Called by the wizard's
``set_start_month`` / ``set_end_month`` transitions.

Invariants enforced
-------------------
* Output months are first-of-month, strictly increasing by one month and
  include both endpoints.
* ``end_month < start_month`` yields ``()``; it is not an error.
* Same inputs always give the same output.  Hand edits made through
  ``update_quota`` are NOT preserved by regeneration.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from trade_kernel.db.types import decimal_from_input
from trade_kernel.logging_config import get_logger
from trade_modules.contracts.models import Quota

logger = get_logger("modules.contracts.quotas")

DEFAULT_TMH = Decimal("330")
DEFAULT_TMS = Decimal("300")
DEFAULT_H2O = Decimal("10")

_QUOTA_DECIMAL_FIELDS = ("tmh", "tms", "h2o_percentage")


def first_of_month(value: date) -> date:
    return date(value.year, value.month, 1)


def add_months(month: date, count: int) -> date:
    """First day of the month ``count`` months after ``month``."""
    index = month.year * 12 + (month.month - 1) + count
    return date(index // 12, index % 12 + 1, 1)


def parse_month(value: str | date | datetime) -> date:
    """
    Normalize a month input to a first-of-month ``date``.

    Accepts ``date``/``datetime`` objects and the strings ``"YYYY-MM"`` and
    ``"YYYY-MM-DD"``.

    Raises:
        ValueError: If a string is in neither form.
    """
    if isinstance(value, datetime):
        return first_of_month(value.date())
    if isinstance(value, date):
        return first_of_month(value)
    text = str(value).strip()
    for fmt in ("%Y-%m", "%Y-%m-%d"):
        try:
            return first_of_month(datetime.strptime(text, fmt).date())
        except ValueError:
            continue
    raise ValueError(f"Not a month value (expected YYYY-MM): {value!r}")


def months_between_inclusive(start_month: date, end_month: date) -> int:
    """Number of calendar months in ``[start, end]``; 0 when ``end < start``."""
    count = (
        (end_month.year - start_month.year) * 12
        + (end_month.month - start_month.month)
        + 1
    )
    return max(count, 0)


def generate_quotas(
    start_month: date,
    end_month: date,
    *,
    tmh: Decimal = DEFAULT_TMH,
    tms: Decimal = DEFAULT_TMS,
    h2o_percentage: Decimal = DEFAULT_H2O,
) -> tuple[Quota, ...]:
    """
    One default quota per month from ``start_month`` to ``end_month``.

    Both bounds are normalized to the first of their month, so any day
    within a month selects that month.
    """
    cursor = first_of_month(start_month)
    end = first_of_month(end_month)
    quotas: list[Quota] = []
    while cursor <= end:
        quotas.append(Quota(month=cursor, tmh=tmh, tms=tms, h2o_percentage=h2o_percentage))
        cursor = add_months(cursor, 1)

    logger.debug(
        "quotas_generated",
        extra={
            "start_month": start_month,
            "end_month": end_month,
            "quota_count": len(quotas),
        },
    )
    return tuple(quotas)


def update_quota(quotas: tuple[Quota, ...], index: int, **changes: Any) -> tuple[Quota, ...]:
    """
    Return ``quotas`` with the quota at ``index`` edited.

    ``tms <= tmh`` is not checked; any non-negative number is accepted.

    Raises:
        IndexError: If ``index`` is out of range.
        ValueError: On a blank, non-numeric, non-finite or negative value.
        TypeError: On a field other than tmh, tms or h2o_percentage.
    """
    if not 0 <= index < len(quotas):
        raise IndexError(f"Quota index {index} out of range (0..{len(quotas) - 1})")
    unknown = set(changes) - set(_QUOTA_DECIMAL_FIELDS)
    if unknown:
        raise TypeError(f"Quota fields cannot be edited: {sorted(unknown)}")

    coerced: dict[str, Decimal] = {}
    for name, raw in changes.items():
        value = decimal_from_input(raw)
        if value is None:
            raise ValueError(f"Quota {name} cannot be blank")
        if value < 0:
            raise ValueError(f"Quota {name} cannot be negative")
        coerced[name] = value

    edited = list(quotas)
    edited[index] = replace(quotas[index], **coerced)
    return tuple(edited)
