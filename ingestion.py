"""
Strategos Mechanics — Ledger Ingestion
=======================================
CSV import of realized operations, for structures whose fills are kept in
a spreadsheet rather than booked one by one. Pure Python + pandas; takes
bytes, returns Operation records.

Public API
----------
  parse_operations_csv(file_bytes)  → list[Operation]
  validate_columns(file_bytes)      → set of missing column names (empty = OK)

Internal helpers (also importable)
  clean_val(val)                    → Decimal
  normalize_status(val)             → 'OPEN' | 'CLOSED'

Expected columns (header names are case- and whitespace-insensitive):

  asset, result, entry_date, status    required
  exit_date, id                        optional
"""

from __future__ import annotations

import io as _io
from decimal import Decimal, InvalidOperation
from typing import Any

import pandas as pd

from config import REQUIRED_COLUMNS, OPERATION_STATUSES, OPERATION_STATUS_ALIASES
from models import ZERO, ModelValidationError, Operation


# ── CSV parse exceptions ──────────────────────────────────────────────────────

class CSVParseError(Exception):
    """Base exception for all ingestion failures.
    Catch this in the UI layer to display a clean user-facing message.
    All subclasses carry a message safe to show directly to the user."""


class CSVEncodingError(CSVParseError):
    """File bytes could not be decoded as UTF-8.
    Usually caused by re-saving the sheet from Excel in a legacy encoding."""


class CSVStructureError(CSVParseError):
    """File is not a valid CSV, has no data rows, or lacks required columns."""


class CSVDateParseError(CSVParseError):
    """A date column could not be parsed."""


class CSVValueError(CSVParseError):
    """A row holds a value that cannot be turned into an Operation
    (unparseable result, unknown status, missing asset)."""


# ── Row-level helpers ─────────────────────────────────────────────────────────

def clean_val(val: Any) -> Decimal:
    """
    Parse a currency string to Decimal. Accepts plain numbers, '$1,234.56'
    and Brazilian 'R$ 1.234,56'. Blank cells and '--' are zero.

    A value marked R$ always uses the decimal comma, so 'R$ 1.234' is 1234.
    """
    if pd.isna(val):
        return ZERO
    raw = str(val)
    s   = raw.replace('R$', '').replace('$', '').replace(' ', '').strip()
    if s in ('', '--'):
        return ZERO
    if 'R$' in raw or (',' in s and s.rfind(',') > s.rfind('.')):
        # Decimal comma: '.' groups thousands
        s = s.replace('.', '').replace(',', '.')
    else:
        s = s.replace(',', '')
    return Decimal(s)


def normalize_status(val: Any) -> str:
    """Map an English or Portuguese status word to OPEN / CLOSED."""
    s = str(val).strip().upper()
    s = OPERATION_STATUS_ALIASES.get(s, s)
    if s not in OPERATION_STATUSES:
        raise ValueError(f"unknown status '{val}'")
    return s


def _read(file_bytes: bytes, **kwargs) -> pd.DataFrame:
    df = pd.read_csv(_io.BytesIO(file_bytes), dtype=str, **kwargs)
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


# ── Public entry points ───────────────────────────────────────────────────────

def validate_columns(file_bytes: bytes) -> set[str]:
    """
    Return the set of required columns missing from the CSV header.
    Reads only the header row.
    """
    return REQUIRED_COLUMNS - set(_read(file_bytes, nrows=0).columns)


def parse_operations_csv(file_bytes: bytes) -> list[Operation]:
    """
    Read an operations ledger CSV into Operation records, in file order.

    Raises
    ------
    CSVEncodingError   : file is not valid UTF-8.
    CSVStructureError  : not a CSV, no data rows, or required columns missing.
    CSVDateParseError  : entry_date / exit_date not recognised.
    CSVValueError      : a row has a bad result, status or asset.
    """
    try:
        file_bytes.decode('utf-8')
    except UnicodeDecodeError:
        raise CSVEncodingError(
            "File is not valid UTF-8. Export the sheet again as 'CSV UTF-8'."
        )

    try:
        df = _read(file_bytes)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise CSVStructureError(f'Could not parse the file as a CSV: {exc}.') from exc

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise CSVStructureError(
            'Missing required columns: ' + ', '.join(sorted(missing))
        )
    if df.empty:
        raise CSVStructureError('The CSV has column headers but no data rows.')

    # ── Dates ──────────────────────────────────────────────────────────────
    for col in ('entry_date', 'exit_date'):
        if col not in df.columns:
            continue
        try:
            df[col] = pd.to_datetime(df[col], format='mixed')
        except (ValueError, TypeError) as exc:
            sample = df[col].dropna().iloc[0] if not df[col].dropna().empty else '(empty)'
            raise CSVDateParseError(
                f"Could not parse the {col} column (sample value: '{sample}')."
            ) from exc

    # ── Rows ───────────────────────────────────────────────────────────────
    operations = []
    for i, row in enumerate(df.to_dict('records')):
        line = i + 2   # header is line 1
        if pd.isna(row.get('asset')) or not str(row['asset']).strip():
            raise CSVValueError(f'Line {line}: asset is required.')
        if pd.isna(row.get('entry_date')):
            raise CSVValueError(f'Line {line}: entry_date is required.')
        try:
            result = clean_val(row['result'])
        except InvalidOperation as exc:
            raise CSVValueError(
                f"Line {line}: result '{row['result']}' is not a number."
            ) from exc
        try:
            status = normalize_status(row['status'])
        except ValueError as exc:
            raise CSVValueError(f'Line {line}: {exc}.') from exc
        exit_date = row.get('exit_date')
        op_id     = row.get('id')
        try:
            operations.append(Operation(
                asset=str(row['asset']),
                result=result,
                entry_date=row['entry_date'],
                status=status,
                exit_date=None if pd.isna(exit_date) else exit_date,
                id=None if pd.isna(op_id) else str(op_id),
            ))
        except ModelValidationError as exc:
            raise CSVValueError(f'Line {line}: {exc}') from exc
    return operations
