"""
Strategos Mechanics — Data Models
==================================
Single source of truth for all dataclasses and named tuples used across
the application. Every record is frozen: the computation modules take
snapshots and derive summaries, they never mutate inputs.

Malformed records are rejected here, at construction time, so that
leg_coverage.py and mechanics.py can assume validated inputs.

Classes
-------
  Leg            One instrument position inside a structure
  Operation      A realized fill booked against an active structure
  Structure      A named multi-leg strategy with a BUILDING → ACTIVE → CLOSED lifecycle
  Roll           Replacement of one set of legs by another before expiry
  ExerciseOption One exercised/assigned option inside an Exercise
  Exercise       An exercise/assignment settlement event
  CostModel      Overridable cost constants for compute_results()
  ResultsSummary Output of mechanics.compute_results()
  ProfitEntry    One point of the cumulative profit series
  CoverageInfo   Human-readable coverage explanation for a stock leg
  ExpirationCountdown  Output of expiry.days_until_expiration()
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Literal, NamedTuple, Optional

import pandas as pd

from config import (
    LEG_KINDS, LEG_SIDES, OPTION_KINDS,
    STRUCTURE_STATUSES, STRUCTURE_BUILDING, STRUCTURE_ACTIVE, STRUCTURE_CLOSED,
    OPERATION_STATUSES, EVENT_STATUSES,
    BROKERAGE_FEE, EMOLUMENTS_RATE, TAX_RATE,
)

Kind            = Literal['STOCK', 'CALL', 'PUT', 'WIN', 'WDO', 'BIT']
Side            = Literal['LONG', 'SHORT']
StructureStatus = Literal['BUILDING', 'ACTIVE', 'CLOSED']
OperationStatus = Literal['OPEN', 'CLOSED']
EventStatus     = Literal['PENDING', 'EXECUTED', 'CANCELLED']
CoverageLabel   = Literal['LOCKED', 'HEDGED', 'COVERED', 'UNCOVERED']

ZERO = Decimal('0')


# ── Validation errors ─────────────────────────────────────────────────────────

class ModelValidationError(Exception):
    """A record could not be built from the values supplied.
    Raised at construction so downstream code never sees malformed data."""


class LifecycleError(ModelValidationError):
    """An illegal structure status transition was requested
    (e.g. closing a structure that was never activated)."""


# ── Coercion helpers ──────────────────────────────────────────────────────────

def to_decimal(value: Any, name: str = 'value') -> Decimal:
    """
    Coerce a money value to Decimal.
    Floats go through str() so 0.1 becomes Decimal('0.1'), not the binary
    expansion. None is treated as zero; NaN and infinities are rejected.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ModelValidationError(f'{name}: expected a number, got {value!r}')
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ModelValidationError(f'{name}: not a number: {value!r}') from exc
    if not d.is_finite():
        raise ModelValidationError(f'{name}: must be finite, got {value!r}')
    return d


def _to_optional_decimal(value: Any, name: str) -> Optional[Decimal]:
    return None if value is None else to_decimal(value, name)


def to_date(value: Any, name: str = 'date') -> Optional[date]:
    """Coerce a date, datetime, Timestamp or date string to a calendar date."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):      # also catches pd.Timestamp
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = pd.to_datetime(value)
    except (ValueError, TypeError) as exc:
        raise ModelValidationError(f'{name}: not a date: {value!r}') from exc
    if pd.isna(parsed):
        return None
    return parsed.date()


def _to_quantity(value: Any) -> int:
    qty = to_decimal(value, 'quantity')
    if qty <= 0 or qty != qty.to_integral_value():
        raise ModelValidationError(f'quantity must be a positive integer, got {value!r}')
    return int(qty)


def _check_choice(value: Any, choices: tuple, name: str) -> str:
    if value not in choices:
        raise ModelValidationError(f'{name} must be one of {choices}, got {value!r}')
    return value


# ── Portfolio records ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Leg:
    """
    One instrument position within a structure.

    Fields
    ------
    asset        Traded code: a stock ticker ('PETR4'), an option code
                 ('PETRA17') or a futures code ('WINZ24')
    kind         STOCK, CALL, PUT or one of the futures kinds (WIN, WDO, BIT)
    side         LONG or SHORT
    quantity     Positive integer
    premium      Signed: positive when received, negative when paid
    strike       Options only
    entry_price  Stock / futures only
    expiration   Option or futures expiry, when known
    id           Caller-assigned identifier (optional)
    """
    asset:       str
    kind:        Kind
    side:        Side
    quantity:    int
    premium:     Decimal = ZERO
    strike:      Optional[Decimal] = None
    entry_price: Optional[Decimal] = None
    expiration:  Optional[date] = None
    id:          Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.asset, str):
            raise ModelValidationError(f'asset must be a string, got {self.asset!r}')
        _check_choice(self.kind, LEG_KINDS, 'kind')
        _check_choice(self.side, LEG_SIDES, 'side')
        object.__setattr__(self, 'asset',       self.asset.strip().upper())
        object.__setattr__(self, 'quantity',    _to_quantity(self.quantity))
        object.__setattr__(self, 'premium',     to_decimal(self.premium, 'premium'))
        object.__setattr__(self, 'strike',      _to_optional_decimal(self.strike, 'strike'))
        object.__setattr__(self, 'entry_price', _to_optional_decimal(self.entry_price, 'entry_price'))
        object.__setattr__(self, 'expiration',  to_date(self.expiration, 'expiration'))

    @property
    def is_option(self) -> bool:
        return self.kind in OPTION_KINDS


@dataclass(frozen=True)
class Operation:
    """A realized fill tied to a structure. `result` is the signed P/L."""
    asset:      str
    result:     Decimal
    entry_date: date
    status:     OperationStatus
    exit_date:  Optional[date] = None
    id:         Optional[str] = None

    def __post_init__(self):
        _check_choice(self.status, OPERATION_STATUSES, 'status')
        object.__setattr__(self, 'asset',      str(self.asset).strip().upper())
        object.__setattr__(self, 'result',     to_decimal(self.result, 'result'))
        object.__setattr__(self, 'entry_date', to_date(self.entry_date, 'entry_date'))
        object.__setattr__(self, 'exit_date',  to_date(self.exit_date, 'exit_date'))
        if self.entry_date is None:
            raise ModelValidationError('entry_date is required')

    @property
    def event_date(self) -> date:
        """Date the result was realized: exit date, or entry date if never exited."""
        return self.exit_date or self.entry_date


@dataclass(frozen=True)
class Structure:
    """
    A named multi-leg strategy.

    Created in BUILDING, moved to ACTIVE by activate() and to CLOSED by
    close(). Operations can only be booked once the structure is ACTIVE.
    Legs keep insertion order for display; order carries no meaning.
    """
    id:                      str
    name:                    str
    legs:                    tuple[Leg, ...] = ()
    status:                  StructureStatus = STRUCTURE_BUILDING
    underlying_asset:        Optional[str] = None
    theoretical_net_premium: Decimal = ZERO
    activation_date:         Optional[date] = None
    close_date:              Optional[date] = None
    expiration:              Optional[date] = None
    operations:              tuple[Operation, ...] = ()

    def __post_init__(self):
        _check_choice(self.status, STRUCTURE_STATUSES, 'status')
        object.__setattr__(self, 'legs',       tuple(self.legs))
        object.__setattr__(self, 'operations', tuple(self.operations))
        object.__setattr__(self, 'theoretical_net_premium',
                           to_decimal(self.theoretical_net_premium, 'theoretical_net_premium'))
        object.__setattr__(self, 'activation_date', to_date(self.activation_date, 'activation_date'))
        object.__setattr__(self, 'close_date',      to_date(self.close_date, 'close_date'))
        object.__setattr__(self, 'expiration',      to_date(self.expiration, 'expiration'))
        if self.underlying_asset is not None:
            object.__setattr__(self, 'underlying_asset', self.underlying_asset.strip().upper())
        if self.operations and self.status == STRUCTURE_BUILDING:
            raise ModelValidationError(
                f"structure '{self.name}' has operations but is still {STRUCTURE_BUILDING}"
            )

    @classmethod
    def build(cls, id: str, name: str, legs, underlying_asset: Optional[str] = None,
              expiration: Any = None) -> 'Structure':
        """New BUILDING structure; the theoretical net premium is the sum of leg premiums."""
        legs = tuple(legs)
        return cls(
            id=id, name=name, legs=legs, underlying_asset=underlying_asset,
            theoretical_net_premium=sum((leg.premium for leg in legs), ZERO),
            expiration=expiration,
        )


@dataclass(frozen=True)
class Roll:
    """
    Replacement of `original_legs` by `new_legs` before expiry.
    `roll_cost` may be negative (a credit roll). `realized_profit` is None
    until the closed legs are marked.
    """
    structure_id:    str
    original_legs:   tuple[Leg, ...]
    new_legs:        tuple[Leg, ...]
    roll_cost:       Decimal
    date:            date
    status:          EventStatus
    realized_profit: Optional[Decimal] = None
    extra_fees:      Decimal = ZERO
    reason:          str = ''
    id:              Optional[str] = None

    def __post_init__(self):
        _check_choice(self.status, EVENT_STATUSES, 'status')
        object.__setattr__(self, 'original_legs',   tuple(self.original_legs))
        object.__setattr__(self, 'new_legs',        tuple(self.new_legs))
        object.__setattr__(self, 'roll_cost',       to_decimal(self.roll_cost, 'roll_cost'))
        object.__setattr__(self, 'realized_profit', _to_optional_decimal(self.realized_profit, 'realized_profit'))
        object.__setattr__(self, 'extra_fees',      to_decimal(self.extra_fees, 'extra_fees'))
        object.__setattr__(self, 'date',            to_date(self.date, 'date'))
        if self.date is None:
            raise ModelValidationError('roll date is required')


@dataclass(frozen=True)
class ExerciseOption:
    asset:          str
    kind:           Literal['CALL', 'PUT']
    strike:         Decimal
    quantity:       int
    exercise_price: Decimal = ZERO
    cost:           Decimal = ZERO
    result:         Decimal = ZERO
    leg_id:         Optional[str] = None

    def __post_init__(self):
        _check_choice(self.kind, OPTION_KINDS, 'kind')
        object.__setattr__(self, 'asset',          str(self.asset).strip().upper())
        object.__setattr__(self, 'strike',         to_decimal(self.strike, 'strike'))
        object.__setattr__(self, 'quantity',       _to_quantity(self.quantity))
        object.__setattr__(self, 'exercise_price', to_decimal(self.exercise_price, 'exercise_price'))
        object.__setattr__(self, 'cost',           to_decimal(self.cost, 'cost'))
        object.__setattr__(self, 'result',         to_decimal(self.result, 'result'))


@dataclass(frozen=True)
class Exercise:
    """An exercise/assignment event covering one or more options of a structure."""
    structure_id:   str
    options:        tuple[ExerciseOption, ...]
    total_result:   Decimal
    total_cost:     Decimal
    date:           date
    status:         EventStatus
    structure_name: str = ''
    id:             Optional[str] = None

    def __post_init__(self):
        _check_choice(self.status, EVENT_STATUSES, 'status')
        object.__setattr__(self, 'options',      tuple(self.options))
        object.__setattr__(self, 'total_result', to_decimal(self.total_result, 'total_result'))
        object.__setattr__(self, 'total_cost',   to_decimal(self.total_cost, 'total_cost'))
        object.__setattr__(self, 'date',         to_date(self.date, 'date'))
        if self.date is None:
            raise ModelValidationError('exercise date is required')


# ── Structure lifecycle ───────────────────────────────────────────────────────

def activate(structure: Structure, on: Any) -> Structure:
    """BUILDING → ACTIVE. Returns a new Structure with activation_date set."""
    if structure.status != STRUCTURE_BUILDING:
        raise LifecycleError(
            f"cannot activate '{structure.name}': status is {structure.status}"
        )
    return replace(structure, status=STRUCTURE_ACTIVE, activation_date=on)


def close(structure: Structure, on: Any) -> Structure:
    """ACTIVE → CLOSED. Returns a new Structure with close_date set."""
    if structure.status != STRUCTURE_ACTIVE:
        raise LifecycleError(
            f"cannot close '{structure.name}': status is {structure.status}"
        )
    return replace(structure, status=STRUCTURE_CLOSED, close_date=on)


def add_operation(structure: Structure, operation: Operation) -> Structure:
    if structure.status == STRUCTURE_BUILDING:
        raise LifecycleError(
            f"cannot book operations on '{structure.name}' before it is activated"
        )
    return replace(structure, operations=structure.operations + (operation,))


# ── Computation inputs / outputs ──────────────────────────────────────────────

@dataclass(frozen=True)
class CostModel:
    """
    Cost constants applied by compute_results(). Defaults come from config.py;
    pass a different instance to model another broker or tax regime.
    """
    brokerage_fee:   Decimal = BROKERAGE_FEE
    emoluments_rate: Decimal = EMOLUMENTS_RATE
    tax_rate:        Decimal = TAX_RATE

    def __post_init__(self):
        for name in ('brokerage_fee', 'emoluments_rate', 'tax_rate'):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))


DEFAULT_COSTS = CostModel()


@dataclass(frozen=True)
class ResultsSummary:
    """
    Typed container for the totals produced by compute_results().
    profit_margin is a percentage (84.5 means 84.5 %).
    """
    gross_profit:     Decimal
    net_profit:       Decimal
    structure_result: Decimal
    roll_result:      Decimal
    exercise_result:  Decimal
    brokerage_costs:  Decimal
    roll_costs:       Decimal
    emoluments_costs: Decimal
    exercise_costs:   Decimal
    tax_costs:        Decimal
    total_costs:      Decimal
    total_operations: int
    total_rolls:      int
    profit_margin:    Decimal


class ProfitEntry(NamedTuple):
    """
    One realized event in the profit series. Exactly one of structures /
    rolls / exercises is non-zero (the one named by `category`) and equals
    `total`; the cumulative_* fields are running sums up to and including
    this entry.
    """
    date:                  date
    structures:            Decimal
    rolls:                 Decimal
    exercises:             Decimal
    total:                 Decimal
    category:              str
    cumulative_structures: Decimal = ZERO
    cumulative_rolls:      Decimal = ZERO
    cumulative_exercises:  Decimal = ZERO
    cumulative_total:      Decimal = ZERO


class CoverageInfo(NamedTuple):
    title:       str
    description: str
    risk:        str


class ExpirationCountdown(NamedTuple):
    total_days:    int
    business_days: int
    is_expired:    bool
    is_today:      bool
    is_tomorrow:   bool
