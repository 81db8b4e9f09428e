"""
Day-mask schedule of recurring tasks (pure, no DB).

Run with: python -m pytest tests/test_schedule.py -v
"""
from __future__ import annotations

from datetime import date

import pytest

from willard.domain.tasks.schedule import ALL_DAYS, FRI, MON, SUN, WED, is_scheduled, mask_from_weekdays

MONDAY = date(2025, 3, 10)
TUESDAY = date(2025, 3, 11)
SUNDAY = date(2025, 3, 16)


def test_no_mask_means_every_day():
    assert is_scheduled(None, MONDAY)
    assert is_scheduled(None, SUNDAY)


def test_mask_selects_weekdays():
    mask = MON | WED | FRI
    assert is_scheduled(mask, MONDAY)
    assert not is_scheduled(mask, TUESDAY)
    assert not is_scheduled(mask, SUNDAY)
    assert is_scheduled(SUN, SUNDAY)


def test_mask_from_weekdays():
    assert mask_from_weekdays([0, 2, 4]) == MON | WED | FRI
    assert mask_from_weekdays(range(7)) == ALL_DAYS
    assert mask_from_weekdays([]) is None
    with pytest.raises(ValueError):
        mask_from_weekdays([7])
