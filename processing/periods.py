"""
Evaluation periods and their time windows.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from contracts.constants import (
    PERIOD_BASELINE,
    PERIOD_DURING,
    BASELINE_WINDOW_START,
    BASELINE_WINDOW_END,
    DURING_WINDOW_START,
    DURING_WINDOW_END,
)
from processing.errors import InvalidInput


class Period(str, Enum):
    BASELINE = PERIOD_BASELINE
    DURING = PERIOD_DURING


def parse_timestamp(value) -> Optional[datetime]:
    """Parse ISO 8601 string (trailing Z allowed). Naive values are taken as UTC."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive window; end=None means still ongoing."""
    start: datetime
    end: Optional[datetime] = None

    def overlaps(self, start: datetime, end: Optional[datetime]) -> bool:
        """True if [start, end] intersects this window."""
        if self.end is not None and start > self.end:
            return False
        return end is None or end >= self.start


DEFAULT_WINDOWS = {
    Period.BASELINE: PeriodWindow(
        parse_timestamp(BASELINE_WINDOW_START), parse_timestamp(BASELINE_WINDOW_END)
    ),
    Period.DURING: PeriodWindow(
        parse_timestamp(DURING_WINDOW_START), parse_timestamp(DURING_WINDOW_END)
    ),
}


def parse_period(value) -> Period:
    """Coerce request input to a Period. Empty input means baseline."""
    if isinstance(value, Period):
        return value
    if value is None or value == "":
        return Period.BASELINE
    try:
        return Period(str(value).strip().lower())
    except ValueError:
        raise InvalidInput(
            f"Unknown period '{value}', expected one of: {', '.join(p.value for p in Period)}"
        )
