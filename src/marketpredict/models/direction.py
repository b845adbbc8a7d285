from __future__ import annotations

from decimal import Decimal
from enum import StrEnum


class Direction(StrEnum):
    UP = "Up"
    DOWN = "Down"
    NONE = "None"

    @classmethod
    def of_change(cls, change: Decimal) -> Direction:
        """Direction of a signed change: Up if positive, Down if negative."""
        if change > 0:
            return cls.UP
        if change < 0:
            return cls.DOWN
        return cls.NONE
