"""
Strategos Mechanics — Expiration Calendar
==========================================
Calendar arithmetic for option and futures expiries. Business days are
Monday–Friday; exchange holidays are not modelled.

Public API
----------
  third_friday(year, month)                    → date   (option expiry)
  last_thursday(year, month)                   → date   (futures expiry)
  next_expirations(current, count)             → list[(date, month_code)]
  is_business_day(d)                           → bool
  add_business_days(start, n)                  → date
  business_days_between(start, end)            → int
  days_until_expiration(expiration, today)     → ExpirationCountdown
  expiration_urgency(expiration, today)        → 'critical' | 'high' | 'medium' | 'low'
  needs_expiration_reminder(expiration, today) → bool
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Optional

from config import FUTURES_MONTH_CODES, EXPIRATION_REMINDER_DAYS, EXPIRATION_HIGH_DAYS
from models import ExpirationCountdown

_FRIDAY   = 4
_THURSDAY = 3


def third_friday(year: int, month: int) -> date:
    first = date(year, month, 1)
    first_friday = 1 + (_FRIDAY - first.weekday()) % 7
    return date(year, month, first_friday + 14)


def last_thursday(year: int, month: int) -> date:
    last = date(year, month, calendar.monthrange(year, month)[1])
    return last - timedelta(days=(last.weekday() - _THURSDAY) % 7)


def next_expirations(current: date, count: int = 3) -> list[tuple[date, str]]:
    """
    The `count` monthly expiries after `current`'s month, each paired with
    its delivery-month letter. Used to offer roll targets.
    """
    out = []
    year, month = current.year, current.month
    for _ in range(count):
        month += 1
        if month > 12:
            month, year = 1, year + 1
        out.append((third_friday(year, month), FUTURES_MONTH_CODES[month]))
    return out


def is_business_day(d: date) -> bool:
    return d.weekday() < 5


def add_business_days(start: date, n: int) -> date:
    """The date `n` business days after `start` (start itself is not counted)."""
    d = start
    added = 0
    while added < n:
        d += timedelta(days=1)
        if is_business_day(d):
            added += 1
    return d


def business_days_between(start: date, end: date) -> int:
    """Business days in [start, end). 0 when end is not after start."""
    if start >= end:
        return 0
    return sum(
        1 for i in range((end - start).days)
        if is_business_day(start + timedelta(days=i))
    )


def days_until_expiration(expiration: date, today: Optional[date] = None) -> ExpirationCountdown:
    today = today or date.today()
    total = (expiration - today).days
    return ExpirationCountdown(
        total_days=total,
        business_days=business_days_between(today, expiration),
        is_expired=total < 0,
        is_today=total == 0,
        is_tomorrow=total == 1,
    )


def expiration_urgency(expiration: date, today: Optional[date] = None) -> str:
    c = days_until_expiration(expiration, today)
    if c.is_expired or c.is_today:                  return 'critical'
    if c.total_days <= EXPIRATION_HIGH_DAYS:        return 'high'
    if c.total_days <= EXPIRATION_REMINDER_DAYS:    return 'medium'
    return 'low'


def needs_expiration_reminder(expiration: date, today: Optional[date] = None) -> bool:
    c = days_until_expiration(expiration, today)
    return not c.is_expired and c.total_days <= EXPIRATION_REMINDER_DAYS
