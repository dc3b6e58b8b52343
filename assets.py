"""
Strategos Mechanics — Instrument Codes & Base Assets
=====================================================
The one place that knows how B3 instrument codes are shaped. Both the
coverage classifier and the results engine compare legs "on the same
underlying" through the functions here, so the two can never disagree.

A code is read as one of three shapes, in this order:

  future   starts with a known futures prefix       WINZ24  → root WIN
  option   four-letter root + month letter + digits  PETRA17 → root PETR
  ticker   anything else; trailing digits are the    PETR4   → root PETR
           share class

Public API
----------
  split_code(code)                          → CodeParts
  ticker_root(code)                         → str   ('PETRA17' → 'PETR')
  base_asset(code)                          → str   ('PETRA17' → 'PETR4')
  same_underlying(code, other)              → bool
  collect_assets(structures, rolls, exercises) → list[str]
  option_code(asset, kind, month, year, strike) → str
  option_month(code)                        → (kind, month) | None
  roll_option_code(code, new_expiration)    → str
  futures_code(prefix, month, year)         → str
  futures_month(code) / futures_year(code)  → int | None

No market-data lookup is involved: this is a string heuristic and will
happily accept codes that are not listed anywhere.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, NamedTuple, Optional

from config import (
    FUTURES_KINDS, OPTION_KINDS,
    OPTION_MONTH_CODES, FUTURES_MONTH_CODES, FUTURES_YEAR_PIVOT,
    STOCK_TICKERS, DEFAULT_SHARE_CLASS,
)

_OPTION_RE       = re.compile(r'^(?P<root>[A-Z]{4})(?P<series>[A-X])(?P<digits>\d{2,})$')
_TRAILING_DIGITS = re.compile(r'\d+$')

SHAPE_FUTURE = 'future'
SHAPE_OPTION = 'option'
SHAPE_TICKER = 'ticker'


class CodeParts(NamedTuple):
    """
    shape   'future', 'option' or 'ticker'
    root    underlying root without any suffix
    series  option month letter ('' for other shapes)
    digits  everything after the root/series (strike for options,
            share class for tickers, contract month+year for futures)
    """
    shape:  str
    root:   str
    series: str
    digits: str


def _clean(code: Optional[str]) -> str:
    return (code or '').strip().upper()


def split_code(code: Optional[str]) -> CodeParts:
    code = _clean(code)
    for prefix in FUTURES_KINDS:
        if code.startswith(prefix):
            return CodeParts(SHAPE_FUTURE, prefix, '', code[len(prefix):])
    m = _OPTION_RE.match(code)
    if m:
        return CodeParts(SHAPE_OPTION, m['root'], m['series'], m['digits'])
    root = _TRAILING_DIGITS.sub('', code)
    return CodeParts(SHAPE_TICKER, root, '', code[len(root):])


def ticker_root(code: Optional[str]) -> str:
    """Underlying root with option, share-class or contract suffixes removed."""
    return split_code(code).root


def base_asset(code: Optional[str]) -> str:
    """
    The tradable underlying for a code.

        base_asset('PETRA17') → 'PETR4'   (STOCK_TICKERS lookup)
        base_asset('ABCDB25') → 'ABCD4'   (unknown root → default share class)
        base_asset('VALE3')   → 'VALE3'   (already a ticker)
        base_asset('WDOF25')  → 'WDO'
    """
    parts = split_code(code)
    if parts.shape == SHAPE_FUTURE:
        return parts.root
    if parts.shape == SHAPE_OPTION:
        return STOCK_TICKERS.get(parts.root, parts.root + DEFAULT_SHARE_CLASS)
    return _clean(code)


def same_underlying(code: Optional[str], other: Optional[str]) -> bool:
    """
    True when `other` trades on the same underlying as `code`.

    Either the normalized roots are equal, or `other` starts with `code`'s
    root. The prefix test is needed because some sources only report the
    traded code. An empty root never matches.
    """
    root = ticker_root(code)
    if not root:
        return False
    return ticker_root(other) == root or _clean(other).startswith(root)


def collect_assets(structures: Iterable, rolls: Iterable = (), exercises: Iterable = ()) -> list[str]:
    """Sorted unique base assets referenced anywhere in the ledgers."""
    codes = []
    for s in structures:
        if s.underlying_asset:
            codes.append(s.underlying_asset)
        codes.extend(leg.asset for leg in s.legs)
        codes.extend(op.asset for op in s.operations)
    for r in rolls:
        codes.extend(leg.asset for leg in r.original_legs)
        codes.extend(leg.asset for leg in r.new_legs)
    for e in exercises:
        codes.extend(opt.asset for opt in e.options)
    return sorted({base_asset(c) for c in codes} - {''})


# ── Option codes ──────────────────────────────────────────────────────────────

def option_code(asset: str, kind: str, month: int, year: int, strike) -> str:
    """
    Build an option code: root + month letter + last digit of year + strike.

        option_code('PETR4', 'CALL', 1, 2025, 20) → 'PETRA520'

    Returns '' when any input is missing.
    """
    if not asset or not month or not year or not strike or kind not in OPTION_KINDS:
        return ''
    letter  = OPTION_MONTH_CODES[kind][month]
    rounded = int(Decimal(str(strike)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    return f'{ticker_root(asset)}{letter}{str(year)[-1]}{rounded:02d}'


def option_month(code: str) -> Optional[tuple[str, int]]:
    """(kind, month) encoded in an option code's series letter, or None."""
    parts = split_code(code)
    if parts.shape != SHAPE_OPTION:
        return None
    for kind, letters in OPTION_MONTH_CODES.items():
        for month, letter in letters.items():
            if letter == parts.series:
                return kind, month
    return None


def roll_option_code(code: str, new_expiration: date) -> str:
    """
    Same root, same side (call/put) and same strike, moved to the month and
    year of `new_expiration`. Expects the option_code() layout, where the first
    digit is the year; codes with only two digits are taken as strike-only.
    Returns '' for anything that is not an option code.
    """
    decoded = option_month(code)
    if decoded is None:
        return ''
    kind, _ = decoded
    digits = split_code(code).digits
    strike = digits[1:] if len(digits) >= 3 else digits
    letter = OPTION_MONTH_CODES[kind][new_expiration.month]
    return f'{ticker_root(code)}{letter}{str(new_expiration.year)[-1]}{strike}'


# ── Futures codes ─────────────────────────────────────────────────────────────

def futures_code(prefix: str, month: int, year: int) -> str:
    """futures_code('WIN', 12, 2024) → 'WINZ24'. '' when any input is missing."""
    if not prefix or not month or not year:
        return ''
    return f'{prefix.upper()}{FUTURES_MONTH_CODES[month]}{year % 100:02d}'


def futures_month(code: str) -> Optional[int]:
    code = _clean(code)
    if len(code) < 4:
        return None
    letter = code[-3]
    for month, m_letter in FUTURES_MONTH_CODES.items():
        if m_letter == letter:
            return month
    return None


def futures_year(code: str) -> Optional[int]:
    code = _clean(code)
    if len(code) < 2 or not code[-2:].isdigit():
        return None
    yy = int(code[-2:])
    return 2000 + yy if yy <= FUTURES_YEAR_PIVOT else 1900 + yy
