# dpfo/utils/type_utils.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Iterable, Optional, TypeVar
from datetime import datetime, date

from dateutil import parser as dateutil_parser

import dpfo.config as config

T = TypeVar("T")

ZERO = Decimal("0")


def safe_decimal(value: Any, default: Optional[Decimal] = None, raise_error: bool = False) -> Optional[Decimal]:
    """
    Safely converts a value to a Decimal.
    Handles None, empty strings, strings with commas (as thousands or decimal).
    If default is provided, returns default on conversion error.
    If raise_error is True, re-raises InvalidOperation instead of returning default.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    s_value = str(value).strip().replace("\u00a0", "").replace(" ", "")
    if not s_value:
        return default

    try:
        if '.' in s_value and ',' in s_value:
            # The separator that comes last is the decimal point: "1,234.56" or "1.234,56"
            if s_value.rfind(',') > s_value.rfind('.'):
                s_value = s_value.replace('.', '').replace(',', '.')
            else:
                s_value = s_value.replace(',', '')
        elif ',' in s_value: # e.g., "12,34"
            s_value = s_value.replace(',', '.')
        return Decimal(s_value)
    except InvalidOperation as e:
        if raise_error:
            raise e
        return default


def to_decimal(value: Any) -> Decimal:
    """Parse-or-zero. Never raises: empty, invalid and non-finite input all yield Decimal('0')."""
    result = safe_decimal(value, default=ZERO)
    if result is None or not result.is_finite():
        return ZERO
    return result


def format_amount(value: Any) -> str:
    """Format a value as a form amount: exactly two decimal places, half-up."""
    quantized = to_decimal(value).quantize(config.OUTPUT_PRECISION_AMOUNTS, rounding=ROUND_HALF_UP)
    if quantized.is_zero():
        quantized = abs(quantized)
    return f"{quantized:f}"


def sum_decimals(items: Iterable[T], accessor: Callable[[T], Any]) -> Decimal:
    """Sums accessor(item) over items; entries that do not parse count as zero."""
    total = ZERO
    for item in items:
        total += to_decimal(accessor(item))
    return total


def parse_date(date_str: Optional[Any], default: Optional[date] = None) -> Optional[date]:
    """
    Parses the date formats the form and the XML use (YYYY-MM-DD, DD.MM.YYYY, YYYYMMDD).
    Returns a datetime.date object or default.
    """
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    if not date_str or not str(date_str).strip():
        return default

    s_date_str = str(date_str).strip()

    formats_to_try = [
        "%Y-%m-%d",  # 2023-12-31
        "%d.%m.%Y",  # 31.12.2023
        "%Y%m%d",    # 20231231
    ]

    for fmt in formats_to_try:
        try:
            return datetime.strptime(s_date_str.split(' ')[0].split('T')[0], fmt).date()
        except ValueError:
            continue

    # Fallback to dateutil.parser for anything else, day first as written in Slovakia
    try:
        return dateutil_parser.parse(s_date_str, dayfirst=True).date()
    except (ValueError, OverflowError, TypeError):
        return default


def format_date_sk(value: Optional[date]) -> str:
    """DD.MM.YYYY, or '' when there is no date."""
    if value is None:
        return ""
    return value.strftime("%d.%m.%Y")
