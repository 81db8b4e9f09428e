"""
Weekly schedule of a recurring task, stored as a 7-bit day mask.

Bit 0 is Monday, bit 6 is Sunday. `None` means every day.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

MON = 1 << 0
TUE = 1 << 1
WED = 1 << 2
THU = 1 << 3
FRI = 1 << 4
SAT = 1 << 5
SUN = 1 << 6
ALL_DAYS = 0b1111111


def day_bit(day: date) -> int:
    return 1 << day.weekday()


def is_scheduled(mask: Optional[int], day: date) -> bool:
    if mask is None:
        return True
    return bool(mask & day_bit(day))


def mask_from_weekdays(weekdays: Iterable[int]) -> Optional[int]:
    """0=Monday .. 6=Sunday. An empty selection means daily (None)."""
    mask = 0
    for wd in weekdays:
        if not 0 <= wd <= 6:
            raise ValueError(f"weekday out of range: {wd}")
        mask |= 1 << wd
    return mask or None
