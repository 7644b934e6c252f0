"""
Commission calculation for closed deals.

Rules:
- Primary commission: 10% of the closed amount
- Recurring commission: 3% of the closed amount, only once the closed month
  lies strictly before the current calendar month
"""
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Tuple

from leadcrm.core.exceptions import ValidationError
from leadcrm.core.timestamps import utcnow

PRIMARY_RATE = Decimal("0.10")
RECURRING_RATE = Decimal("0.03")

_CENT = Decimal("0.01")
_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})$")

MonthKey = Tuple[int, int]


@dataclass(frozen=True)
class CommissionBreakdown:
    """Commission figures for one lead; None means not applicable."""
    primary: Optional[Decimal] = None
    recurring: Optional[Decimal] = None


def _valid_amount(amount: Any) -> Optional[float]:
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        return None
    value = float(amount)
    if not math.isfinite(value) or value < 0:
        return None
    return value


def _percent_of(amount: float, rate: Decimal) -> Decimal:
    return (Decimal(str(amount)) * rate).quantize(_CENT, rounding=ROUND_HALF_UP)


def month_key(value: Any) -> Optional[MonthKey]:
    """
    Reduce a closed-month marker to (year, month).

    Accepts date/datetime objects, ISO timestamps and "YYYY-MM" strings.
    Returns None for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.year, value.month

    text = str(value).strip()
    if not text:
        return None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed.year, parsed.month
    except ValueError:
        pass

    match = _YEAR_MONTH.match(text[:7])
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if 1 <= month <= 12:
            return year, month
    return None


def current_month_key(today: Optional[date] = None) -> MonthKey:
    today = today or utcnow().date()
    return today.year, today.month


def is_recurring_eligible(closed_month: Any, today: Optional[date] = None) -> bool:
    """True when the closed month is strictly before the current month."""
    key = month_key(closed_month)
    if key is None:
        return False
    return key < current_month_key(today)


def primary_commission(amount: Any) -> Optional[Decimal]:
    value = _valid_amount(amount)
    if value is None:
        return None
    return _percent_of(value, PRIMARY_RATE)


def recurring_commission(
    amount: Any,
    closed_month: Any,
    today: Optional[date] = None
) -> Optional[Decimal]:
    value = _valid_amount(amount)
    if value is None or not is_recurring_eligible(closed_month, today):
        return None
    return _percent_of(value, RECURRING_RATE)


def calculate_commission(
    amount: Any,
    closed_month: Any,
    today: Optional[date] = None
) -> CommissionBreakdown:
    """Derive both commission figures from a closed amount and month."""
    return CommissionBreakdown(
        primary=primary_commission(amount),
        recurring=recurring_commission(amount, closed_month, today),
    )


def parse_closed_amount(raw: Any) -> float:
    """
    Validate the amount submitted when closing a deal.

    Numbers and numeric strings are accepted; the result must be finite and
    non-negative.
    """
    if raw is None or isinstance(raw, bool):
        raise ValidationError("Amount must be a non-negative number")
    try:
        value = float(raw.strip()) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be a non-negative number")
    if not math.isfinite(value) or value < 0:
        raise ValidationError("Amount must be a non-negative number")
    return value


def default_closed_month(now: Optional[datetime] = None) -> str:
    """First instant of the current calendar month as an ISO timestamp."""
    now = now or utcnow()
    return datetime(now.year, now.month, 1).isoformat()
