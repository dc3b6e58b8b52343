"""
Strategos Mechanics — Configuration & Constants
================================================
All tuneable parameters and field values live here.
Change a value once and it applies everywhere.
"""

from decimal import Decimal

# ── Leg field values ──────────────────────────────────────────────────────────
KIND_STOCK   = 'STOCK'
KIND_CALL    = 'CALL'
KIND_PUT     = 'PUT'
FUTURES_KINDS = ('WIN', 'WDO', 'BIT')
OPTION_KINDS  = (KIND_CALL, KIND_PUT)
LEG_KINDS     = (KIND_STOCK, KIND_CALL, KIND_PUT) + FUTURES_KINDS

SIDE_LONG  = 'LONG'
SIDE_SHORT = 'SHORT'
LEG_SIDES  = (SIDE_LONG, SIDE_SHORT)

# ── Lifecycle status values ───────────────────────────────────────────────────
STRUCTURE_BUILDING = 'BUILDING'
STRUCTURE_ACTIVE   = 'ACTIVE'
STRUCTURE_CLOSED   = 'CLOSED'
STRUCTURE_STATUSES = (STRUCTURE_BUILDING, STRUCTURE_ACTIVE, STRUCTURE_CLOSED)

OPERATION_OPEN     = 'OPEN'
OPERATION_CLOSED   = 'CLOSED'
OPERATION_STATUSES = (OPERATION_OPEN, OPERATION_CLOSED)

# Rolls and exercises share one status vocabulary.
EVENT_PENDING   = 'PENDING'
EVENT_EXECUTED  = 'EXECUTED'
EVENT_CANCELLED = 'CANCELLED'
EVENT_STATUSES  = (EVENT_PENDING, EVENT_EXECUTED, EVENT_CANCELLED)

# ── Coverage labels ───────────────────────────────────────────────────────────
COVERAGE_LOCKED    = 'LOCKED'
COVERAGE_HEDGED    = 'HEDGED'
COVERAGE_COVERED   = 'COVERED'
COVERAGE_UNCOVERED = 'UNCOVERED'

# ── Cost model defaults ───────────────────────────────────────────────────────
# Flat brokerage charged per recorded operation.
BROKERAGE_FEE   = Decimal('2.50')
# Exchange emoluments, applied to the absolute traded result.
EMOLUMENTS_RATE = Decimal('0.0025')
# Flat income tax on positive gross profit. Losses are not carried forward.
TAX_RATE        = Decimal('0.15')

# ── Results series filters ────────────────────────────────────────────────────
ALL = 'all'

CATEGORY_STRUCTURES = 'structures'
CATEGORY_ROLLS      = 'rolls'
CATEGORY_EXERCISES  = 'exercises'
CATEGORIES = (ALL, CATEGORY_STRUCTURES, CATEGORY_ROLLS, CATEGORY_EXERCISES)

PERIOD_CUSTOM = 'custom'
# Lookback for each relative period, as pandas DateOffset keyword arguments.
PERIOD_OFFSETS = {
    'week':    {'days': 7},
    'month':   {'months': 1},
    'quarter': {'months': 3},
    'year':    {'years': 1},
}
PERIODS = (ALL, PERIOD_CUSTOM) + tuple(PERIOD_OFFSETS)

# ── Instrument codes ──────────────────────────────────────────────────────────
# B3 option series letters by month: calls A–L, puts M–X.
OPTION_MONTH_CODES = {
    KIND_CALL: dict(zip(range(1, 13), 'ABCDEFGHIJKL')),
    KIND_PUT:  dict(zip(range(1, 13), 'MNOPQRSTUVWX')),
}

# Futures delivery-month letters.
FUTURES_MONTH_CODES = dict(zip(range(1, 13), 'FGHJKMNQUVXZ'))

# Two-digit futures years at or below this pivot are read as 20xx, above as 19xx.
FUTURES_YEAR_PIVOT = 30

# Option roots whose listed share class is not the default. Roots missing here
# resolve to root + DEFAULT_SHARE_CLASS.
STOCK_TICKERS = {
    'PETR': 'PETR4',
    'VALE': 'VALE3',
    'ITUB': 'ITUB4',
    'BBDC': 'BBDC4',
    'ABEV': 'ABEV3',
    'MGLU': 'MGLU3',
    'WEGE': 'WEGE3',
    'RENT': 'RENT3',
    'LREN': 'LREN3',
    'JBSS': 'JBSS3',
    'SUZB': 'SUZB3',
    'USIM': 'USIM5',
    'CSNA': 'CSNA3',
    'GOAU': 'GOAU4',
    'CIEL': 'CIEL3',
    'RADL': 'RADL3',
    'HAPV': 'HAPV3',
    'TOTS': 'TOTS3',
}
DEFAULT_SHARE_CLASS = '4'

# ── Expiration reminders ──────────────────────────────────────────────────────
# A structure expiring within this many calendar days gets a reminder.
EXPIRATION_REMINDER_DAYS = 7
# Urgency is 'high' at or below this many days, 'medium' up to the reminder window.
EXPIRATION_HIGH_DAYS     = 3

# ── CSV validation ─────────────────────────────────────────────────────────────
REQUIRED_COLUMNS = {'asset', 'result', 'entry_date', 'status'}

# Portuguese ledger exports use these status words.
OPERATION_STATUS_ALIASES = {
    'FECHADA': OPERATION_CLOSED,
    'VENCIDA': OPERATION_CLOSED,
    'ABERTA':  OPERATION_OPEN,
}
