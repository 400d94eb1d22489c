"""
Numeric parsing and display helpers shared by the estimator and the scrapers.

Every parser here is forgiving: anything that does not parse comes back as 0,
which callers treat as "unknown".
"""

import math
import re
from typing import Iterable, Optional


ODDS_PATTERN = re.compile(r'1\s*in\s*([0-9.,]+)', re.IGNORECASE)
TICKET_PATTERN = re.compile(r'ticket', re.IGNORECASE)


def _to_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def _leading_number(text: str) -> str:
    """Longest prefix that float() can read, e.g. '6.00.1' -> '6.00'"""
    match = re.match(r'\d*\.?\d*', text)
    return match.group(0) if match else ''


def parse_odds_value(text) -> float:
    """Return N from '1 in N', falling back to any bare number, else 0."""
    if not text:
        return 0.0
    text = str(text)
    match = ODDS_PATTERN.search(text)
    if match:
        return _to_float(_leading_number(match.group(1).replace(',', '')))
    return _to_float(_leading_number(re.sub(r'[^0-9.]+', '', text)))


def parse_currency_or_count(text) -> float:
    """Parse '$10,000', '1,200' or a plain number. Returns 0 on failure."""
    if text is None:
        return 0.0
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        # the sign is dropped the same way the string path drops '-'
        value = abs(float(text))
        return value if math.isfinite(value) else 0.0
    cleaned = re.sub(r'[^0-9.]+', '', str(text))
    return _to_float(_leading_number(cleaned))


def is_ticket_label(label) -> bool:
    return bool(label) and TICKET_PATTERN.search(str(label)) is not None


def median(values: Iterable) -> float:
    finite = sorted(v for v in values if is_finite_number(v))
    if not finite:
        return 0.0
    mid = len(finite) // 2
    if len(finite) % 2 == 0:
        return (finite[mid - 1] + finite[mid]) / 2
    return finite[mid]


def is_finite_number(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def format_currency(value: Optional[float]) -> str:
    """Format currency for display: $1,234.56"""
    if not is_finite_number(value):
        return "n/a"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_number(value: Optional[float]) -> str:
    """Up to six decimals, trailing zeros trimmed."""
    if not is_finite_number(value):
        return "n/a"
    text = f"{value:,.6f}".rstrip('0').rstrip('.')
    if text in ("-0", ""):
        return "0"
    return text


def format_compact_currency(value: Optional[float]) -> str:
    """Format currency for display"""
    if not is_finite_number(value):
        return "n/a"
    if value >= 1_000_000:
        return f"${value/1_000_000:.1f}M"
    elif value >= 1_000:
        return f"${value/1_000:.0f}K"
    else:
        return f"${value:.0f}"


def format_percent_delta(delta: Optional[float]) -> str:
    if not is_finite_number(delta):
        return "—"
    return f"{delta * 100:+.1f}%"
