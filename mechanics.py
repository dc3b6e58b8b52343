"""
Strategos Mechanics — Results Engine
=====================================
All computation that turns structures, rolls and exercises into P/L
totals and the cumulative profit series. Pure functions over frozen
snapshots: no I/O, no globals, inputs are never mutated.

Public API
----------
  compute_results(structures, rolls, exercises, costs)        → ResultsSummary
  compute_asset_results(structures, rolls, exercises, asset)  → ResultsSummary
  filter_structures_by_asset(structures, asset)               → list[Structure]
  filter_rolls_by_asset(rolls, asset)                         → list[Roll]
  filter_exercises_by_asset(exercises, asset)                 → list[Exercise]
  build_profit_entries(structures, rolls, exercises, asset)   → list[ProfitEntry]
  period_cutoff(period, today)                                → date | None
  generate_profit_series(structures, rolls, exercises, ...)   → list[ProfitEntry]
  profit_series_frame(entries)                                → DataFrame
  logging_trace(logger)                                       → trace hook

Totals vs. series
-----------------
compute_results() sums every operation, roll and exercise whatever its
status. generate_profit_series() only plots realized events: CLOSED
operations and EXECUTED rolls/exercises with a non-zero result. Both
behaviours are deliberate and kept separate; do not unify them without
checking the totals shown next to the chart.

Tracing
-------
Functions that do real work accept `trace`, a callable(event, **fields).
The default does nothing. logging_trace() returns one that writes DEBUG
records to this module's logger.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

import pandas as pd

from assets import base_asset
from config import (
    ALL, CATEGORIES, PERIODS, PERIOD_CUSTOM, PERIOD_OFFSETS,
    CATEGORY_STRUCTURES, CATEGORY_ROLLS, CATEGORY_EXERCISES,
    OPERATION_CLOSED, EVENT_EXECUTED,
)
from models import (
    ZERO, DEFAULT_COSTS,
    CostModel, Exercise, ProfitEntry, ResultsSummary, Roll, Structure,
    to_date,
)

log = logging.getLogger(__name__)

Trace = Callable[..., None]

_HUNDRED = Decimal('100')


def _no_trace(event: str, **fields: Any) -> None:
    pass


def logging_trace(logger: Optional[logging.Logger] = None) -> Trace:
    """Trace hook that emits one DEBUG record per event."""
    logger = logger or log

    def trace(event: str, **fields: Any) -> None:
        logger.debug('%s %s', event, fields)
    return trace


# ── RESULTS AGGREGATION ───────────────────────────────────────────────────────

def compute_results(
    structures: Iterable[Structure],
    rolls: Iterable[Roll],
    exercises: Iterable[Exercise],
    costs: CostModel = DEFAULT_COSTS,
    trace: Optional[Trace] = None,
) -> ResultsSummary:
    """
    Reduce the ledgers to summary totals.

    Revenue
      structure_result  Σ operation.result over every operation of every structure
      roll_result       Σ roll.realized_profit (None counts as 0)
      exercise_result   Σ exercise.total_result
      gross_profit      structure_result + roll_result + exercise_result

    Costs
      brokerage   operation count × costs.brokerage_fee
      rolls       Σ |roll.roll_cost|
      emoluments  Σ |operation.result| × costs.emoluments_rate
      exercises   Σ exercise.total_cost
      tax         max(0, gross_profit) × costs.tax_rate

    Example: one closed operation with result 1000 and default costs:

      gross 1000 │ brokerage 2.50 │ emoluments 2.50 │ tax 150
      total costs 155 │ net 845 │ margin 84.5 %

    profit_margin is net / gross × 100, or 0 when gross is 0.
    """
    trace      = trace or _no_trace
    structures = list(structures)
    rolls      = list(rolls)
    exercises  = list(exercises)

    operations = [op for s in structures for op in s.operations]

    structure_result = sum((op.result for op in operations), ZERO)
    roll_result      = sum((r.realized_profit or ZERO for r in rolls), ZERO)
    exercise_result  = sum((e.total_result for e in exercises), ZERO)
    gross_profit     = structure_result + roll_result + exercise_result

    brokerage_costs  = len(operations) * costs.brokerage_fee
    roll_costs       = sum((abs(r.roll_cost) for r in rolls), ZERO)
    emoluments_costs = sum((abs(op.result) for op in operations), ZERO) * costs.emoluments_rate
    exercise_costs   = sum((e.total_cost for e in exercises), ZERO)
    tax_costs        = max(ZERO, gross_profit) * costs.tax_rate

    total_costs = brokerage_costs + roll_costs + emoluments_costs + exercise_costs + tax_costs
    net_profit  = gross_profit - total_costs
    margin      = net_profit / gross_profit * _HUNDRED if gross_profit != 0 else ZERO

    summary = ResultsSummary(
        gross_profit=gross_profit,
        net_profit=net_profit,
        structure_result=structure_result,
        roll_result=roll_result,
        exercise_result=exercise_result,
        brokerage_costs=brokerage_costs,
        roll_costs=roll_costs,
        emoluments_costs=emoluments_costs,
        exercise_costs=exercise_costs,
        tax_costs=tax_costs,
        total_costs=total_costs,
        total_operations=len(operations),
        total_rolls=len(rolls),
        profit_margin=margin,
    )
    trace('results.computed',
          structures=len(structures), rolls=len(rolls), exercises=len(exercises),
          operations=len(operations), gross_profit=gross_profit, net_profit=net_profit)
    return summary


# ── ASSET FILTERS ─────────────────────────────────────────────────────────────

def _asset_matches(code: Optional[str], asset: str) -> bool:
    """True when `code` normalizes to the requested base asset ('all' matches anything)."""
    if asset == ALL:
        return True
    return bool(code) and base_asset(code) == base_asset(asset)


def filter_structures_by_asset(structures: Iterable[Structure], asset: str) -> list[Structure]:
    """Structures whose underlying, any leg, or any operation is on `asset`."""
    return [
        s for s in structures
        if _asset_matches(s.underlying_asset, asset)
        or any(_asset_matches(leg.asset, asset) for leg in s.legs)
        or any(_asset_matches(op.asset, asset) for op in s.operations)
    ]


def filter_rolls_by_asset(rolls: Iterable[Roll], asset: str) -> list[Roll]:
    """Rolls with an original or a new leg on `asset`."""
    return [
        r for r in rolls
        if any(_asset_matches(leg.asset, asset) for leg in r.original_legs + r.new_legs)
    ]


def filter_exercises_by_asset(exercises: Iterable[Exercise], asset: str) -> list[Exercise]:
    return [
        e for e in exercises
        if any(_asset_matches(opt.asset, asset) for opt in e.options)
    ]


def compute_asset_results(
    structures: Iterable[Structure],
    rolls: Iterable[Roll],
    exercises: Iterable[Exercise],
    asset: str,
    costs: CostModel = DEFAULT_COSTS,
    trace: Optional[Trace] = None,
) -> ResultsSummary:
    """compute_results() restricted to the records touching one base asset."""
    return compute_results(
        filter_structures_by_asset(structures, asset),
        filter_rolls_by_asset(rolls, asset),
        filter_exercises_by_asset(exercises, asset),
        costs=costs, trace=trace,
    )


# ── PROFIT SERIES ─────────────────────────────────────────────────────────────

def _entry(on: date, category: str, value: Decimal) -> ProfitEntry:
    return ProfitEntry(
        date=on,
        structures=value if category == CATEGORY_STRUCTURES else ZERO,
        rolls=value      if category == CATEGORY_ROLLS      else ZERO,
        exercises=value  if category == CATEGORY_EXERCISES  else ZERO,
        total=value,
        category=category,
    )


def build_profit_entries(
    structures: Iterable[Structure],
    rolls: Iterable[Roll],
    exercises: Iterable[Exercise],
    asset: str = ALL,
) -> list[ProfitEntry]:
    """
    One entry per realized event, in input order (not yet sorted):

      structures  each CLOSED operation with result ≠ 0, dated exit (or entry) date
      rolls       each EXECUTED roll with realized_profit set and ≠ 0
      exercises   each EXECUTED exercise with total_result ≠ 0

    With an asset filter, an operation must itself be on the asset; a roll
    needs an original leg on it; an exercise needs one of its options on it.
    """
    entries: list[ProfitEntry] = []

    for s in structures:
        for op in s.operations:
            if not _asset_matches(op.asset, asset):
                continue
            if op.status == OPERATION_CLOSED and op.result != 0:
                entries.append(_entry(op.event_date, CATEGORY_STRUCTURES, op.result))

    for r in rolls:
        if asset != ALL and not any(_asset_matches(leg.asset, asset) for leg in r.original_legs):
            continue
        if r.status == EVENT_EXECUTED and r.realized_profit:
            entries.append(_entry(r.date, CATEGORY_ROLLS, r.realized_profit))

    for e in exercises:
        if asset != ALL and not any(_asset_matches(opt.asset, asset) for opt in e.options):
            continue
        if e.status == EVENT_EXECUTED and e.total_result != 0:
            entries.append(_entry(e.date, CATEGORY_EXERCISES, e.total_result))

    return entries


def period_cutoff(period: str, today: Optional[date] = None) -> Optional[date]:
    """
    Earliest date kept by a relative period ('week', 'month', 'quarter',
    'year'), counted back from `today`. None for 'all' and 'custom'.
    Month arithmetic clamps to the end of shorter months (31 Mar − 1 month
    → 28/29 Feb).
    """
    offset = PERIOD_OFFSETS.get(period)
    if offset is None:
        return None
    today = today or date.today()
    return (pd.Timestamp(today) - pd.DateOffset(**offset)).date()


def generate_profit_series(
    structures: Iterable[Structure],
    rolls: Iterable[Roll],
    exercises: Iterable[Exercise],
    period: str = ALL,
    category: str = ALL,
    asset: str = ALL,
    start_date: Any = None,
    end_date: Any = None,
    today: Optional[date] = None,
    trace: Optional[Trace] = None,
) -> list[ProfitEntry]:
    """
    Date-ordered cumulative P/L series for charting.

    Steps
    -----
    1. Build realized entries (build_profit_entries), asset filter applied per event.
    2. Stable sort by date; same-day events keep their input order.
    3. Period filter:
         week / month / quarter / year → keep date ≥ period_cutoff()
         custom  → keep start_date ≤ date ≤ end_date (both inclusive)
                   If either bound is missing nothing is filtered; callers
                   should treat that as an incomplete filter.
         all     → no date filter
    4. Category filter: keep entries of that category unless 'all'.
    5. Running sums: every entry carries cumulative_structures / _rolls /
       _exercises / _total up to and including itself, so
       cumulative_total[i] = cumulative_total[i-1] + total[i].

    An empty result is a valid empty list. Unknown period or category
    values raise ValueError.
    """
    if period not in PERIODS:
        raise ValueError(f'unknown period {period!r}; expected one of {PERIODS}')
    if category not in CATEGORIES:
        raise ValueError(f'unknown category {category!r}; expected one of {CATEGORIES}')
    trace = trace or _no_trace

    entries = build_profit_entries(structures, rolls, exercises, asset)
    trace('series.entries_built', asset=asset, entries=len(entries))

    entries = sorted(entries, key=lambda e: e.date)

    if period == PERIOD_CUSTOM:
        start, end = to_date(start_date, 'start_date'), to_date(end_date, 'end_date')
        if start is not None and end is not None:
            entries = [e for e in entries if start <= e.date <= end]
    else:
        cutoff = period_cutoff(period, today)
        if cutoff is not None:
            entries = [e for e in entries if e.date >= cutoff]

    if category != ALL:
        entries = [e for e in entries if e.category == category]

    trace('series.filtered', period=period, category=category, entries=len(entries))

    cum_structures = cum_rolls = cum_exercises = cum_total = ZERO
    series = []
    for e in entries:
        cum_structures += e.structures
        cum_rolls      += e.rolls
        cum_exercises  += e.exercises
        cum_total      += e.total
        series.append(e._replace(
            cumulative_structures=cum_structures,
            cumulative_rolls=cum_rolls,
            cumulative_exercises=cum_exercises,
            cumulative_total=cum_total,
        ))
    return series


_MONEY_COLUMNS = [f for f in ProfitEntry._fields if f not in ('date', 'category')]


def profit_series_frame(entries: Iterable[ProfitEntry], as_float: bool = False) -> pd.DataFrame:
    """
    The series as a DataFrame, one row per entry, columns named after
    ProfitEntry fields. `date` becomes datetime64 for plotting; money columns
    stay Decimal unless as_float=True.
    """
    df = pd.DataFrame([e._asdict() for e in entries], columns=list(ProfitEntry._fields))
    df['date'] = pd.to_datetime(df['date'])
    if as_float:
        df[_MONEY_COLUMNS] = df[_MONEY_COLUMNS].astype(float)
    return df
