"""
Strategos Mechanics — Leg Coverage Classifier
==============================================
Labels how a leg's risk is offset by the other legs of its structure.
Advisory only: the labels feed badges in the UI, they are not a risk gate,
so classification never raises.

Public API
----------
  classify_leg_coverage(leg, siblings)    → 'LOCKED' | 'HEDGED' | 'COVERED' | 'UNCOVERED' | None
  classify_structure(structure)           → list[(Leg, label)]
  describe_coverage(leg, label)           → CoverageInfo | None
  covered_call_max_gain(stock, call)      → Decimal

Decision table
--------------
Rules are keyed by (kind, side) and evaluated top to bottom; the first
matching row wins. "same" = same underlying per assets.same_underlying().

  LONG  STOCK  short call, same, qty ≤ stock   → LOCKED     (covered call)
               long put,   same, qty ≤ stock   → HEDGED     (protective put)
               otherwise                       → UNCOVERED
  SHORT STOCK  short put,  same, qty ≤ stock   → LOCKED     (synthetic short put)
               long call,  same, qty ≤ stock   → HEDGED
               otherwise                       → UNCOVERED  (naked short)
  SHORT CALL   long stock, same, qty ≥ call    → COVERED
               otherwise                       → UNCOVERED
  SHORT PUT    always                          → COVERED    (cash-secured)
  anything else                                → None
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Iterable, Optional

from assets import same_underlying
from config import (
    KIND_STOCK, KIND_CALL, KIND_PUT, SIDE_LONG, SIDE_SHORT,
    COVERAGE_LOCKED, COVERAGE_HEDGED, COVERAGE_COVERED, COVERAGE_UNCOVERED,
)
from models import CoverageInfo, CoverageLabel, Leg, Structure

Predicate = Callable[[Leg, list], bool]


# ── Predicates ────────────────────────────────────────────────────────────────

def _sibling(kind: str, side: str, qty_ok: Callable[[int, int], bool]) -> Predicate:
    """
    Predicate: some sibling of `kind`/`side` on the leg's underlying whose
    quantity passes qty_ok(sibling_qty, leg_qty).
    """
    def matches(leg: Leg, siblings: list) -> bool:
        return any(
            s.kind == kind and s.side == side
            and same_underlying(leg.asset, s.asset)
            and qty_ok(s.quantity, leg.quantity)
            for s in siblings
        )
    return matches


def _at_most(sib_qty: int, leg_qty: int) -> bool:
    return sib_qty <= leg_qty


def _at_least(sib_qty: int, leg_qty: int) -> bool:
    return sib_qty >= leg_qty


def _always(leg: Leg, siblings: list) -> bool:
    return True


COVERAGE_RULES: dict[tuple[str, str], tuple[tuple[Predicate, str], ...]] = {
    (KIND_STOCK, SIDE_LONG): (
        (_sibling(KIND_CALL,  SIDE_SHORT, _at_most),  COVERAGE_LOCKED),
        (_sibling(KIND_PUT,   SIDE_LONG,  _at_most),  COVERAGE_HEDGED),
        (_always,                                     COVERAGE_UNCOVERED),
    ),
    (KIND_STOCK, SIDE_SHORT): (
        (_sibling(KIND_PUT,   SIDE_SHORT, _at_most),  COVERAGE_LOCKED),
        (_sibling(KIND_CALL,  SIDE_LONG,  _at_most),  COVERAGE_HEDGED),
        (_always,                                     COVERAGE_UNCOVERED),
    ),
    (KIND_CALL, SIDE_SHORT): (
        (_sibling(KIND_STOCK, SIDE_LONG,  _at_least), COVERAGE_COVERED),
        (_always,                                     COVERAGE_UNCOVERED),
    ),
    (KIND_PUT, SIDE_SHORT): (
        (_always,                                     COVERAGE_COVERED),
    ),
}


# ── Classification ────────────────────────────────────────────────────────────

def classify_leg_coverage(leg: Leg, siblings: Optional[Iterable[Leg]]) -> Optional[CoverageLabel]:
    """
    Coverage label for `leg` given the legs of its structure, or None when
    no label applies. `siblings` may include `leg` itself. None, an empty
    list or malformed siblings yield None, a SHORT PUT included: the
    "always COVERED" row only applies once there is a sibling list, which
    classify_structure() guarantees by passing the structure's own legs.
    """
    if not siblings:
        return None
    try:
        siblings = list(siblings)
        rules = COVERAGE_RULES.get((leg.kind, leg.side), ())
        for predicate, label in rules:
            if predicate(leg, siblings):
                return label
    except (AttributeError, TypeError):
        return None
    return None


def classify_structure(structure: Structure) -> list[tuple[Leg, Optional[CoverageLabel]]]:
    """Label every leg of a structure against its own legs, in leg order."""
    return [(leg, classify_leg_coverage(leg, structure.legs)) for leg in structure.legs]


# ── Descriptions ──────────────────────────────────────────────────────────────

_STOCK_DESCRIPTIONS = {
    (SIDE_LONG, COVERAGE_LOCKED): CoverageInfo(
        'Locked position (covered call)',
        'Offset by a matching short call',
        'Upside capped',
    ),
    (SIDE_LONG, COVERAGE_HEDGED): CoverageInfo(
        'Hedged position (protective put)',
        'Protected by a matching long put',
        'Downside limited',
    ),
    (SIDE_LONG, COVERAGE_UNCOVERED): CoverageInfo(
        'Unlocked position',
        'Full exposure to the underlying',
        'Unlimited risk',
    ),
    (SIDE_SHORT, COVERAGE_LOCKED): CoverageInfo(
        'Locked position (synthetic short put)',
        'Offset by a matching short put',
        'Limited risk',
    ),
    (SIDE_SHORT, COVERAGE_HEDGED): CoverageInfo(
        'Hedged position (protected short)',
        'Protected by a matching long call',
        'Upside risk limited',
    ),
    (SIDE_SHORT, COVERAGE_UNCOVERED): CoverageInfo(
        'Uncovered position (naked short)',
        'Full exposure to the underlying',
        'Unlimited risk',
    ),
}


def describe_coverage(leg: Leg, label: Optional[str]) -> Optional[CoverageInfo]:
    """Explanation shown next to a stock leg's badge. None for non-stock legs."""
    if leg.kind != KIND_STOCK:
        return None
    return _STOCK_DESCRIPTIONS.get((leg.side, label))


def covered_call_max_gain(stock: Leg, call: Leg) -> Decimal:
    """
    Best case for a long stock locked by a short call: called away at the
    strike, keeping the premium, on the locked quantity.

        (strike − entry_price + premium) × min(stock qty, call qty)
    """
    locked = min(stock.quantity, call.quantity)
    strike = call.strike or Decimal('0')
    entry  = stock.entry_price or Decimal('0')
    return (strike - entry + call.premium) * locked
