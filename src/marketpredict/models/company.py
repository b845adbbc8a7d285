from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Exchange:
    id: str
    name: str
    intraday: bool = False


@dataclass
class Company:
    id: str
    name: str
    exchange_id: str
