"""Weekend rolling for prediction windows.

Forward rolls land on the following Monday, backward rolls on the
preceding Friday. Time of day is kept.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum

SATURDAY = 5
SUNDAY = 6

# (weekday) -> days to shift, per roll direction
_FORWARD_SHIFT = {SATURDAY: 2, SUNDAY: 1}
_BACKWARD_SHIFT = {SATURDAY: -1, SUNDAY: -2}


class Roll(StrEnum):
    FORWARD = "forward"
    BACKWARD = "backward"


def roll_off_weekend(moment: datetime, roll: Roll) -> datetime:
    """Move a weekend ``moment`` onto the adjacent business day in ``roll`` direction."""
    shifts = _FORWARD_SHIFT if roll is Roll.FORWARD else _BACKWARD_SHIFT
    days = shifts.get(moment.weekday(), 0)
    return moment + timedelta(days=days)


def truncate_to_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)
