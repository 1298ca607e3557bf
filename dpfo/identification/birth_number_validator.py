# dpfo/identification/birth_number_validator.py
"""
Strict Slovak/Czech rodné číslo validation.

- 9 digits: issued before 1954, no check digit.
- 10 digits: the whole number is divisible by 11; for 1954-1985 a number whose
  first nine digits leave remainder 10 may end in 0 instead.
- Month 01-12 / 51-62, or 21-32 / 71-82 for the post-2004 alternative series.

Messages are the ones shown next to the form field.
"""
import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

_SEPARATORS = re.compile(r"[\s/]")
_DIGITS_9_OR_10 = re.compile(r"^\d{9,10}$")

ERROR_REQUIRED = "Rodné číslo je povinné"
ERROR_LENGTH = "Rodné číslo musí mať 9 alebo 10 číslic"
ERROR_MONTH = "Neplatný mesiac v rodnom čísle"
ERROR_DAY = "Neplatný deň v rodnom čísle"
ERROR_SHORT_FORM_YEAR = "Rodné číslo pred rokom 1954 musí mať 9 číslic"
ERROR_CHECKSUM = "Rodné číslo nie je deliteľné 11"

FIELD_ERROR_REQUIRED = "Povinné pole"
FIELD_ERROR_INVALID = "Neplatný formát"


@dataclass(frozen=True)
class BirthNumberValidation:
    valid: bool
    error: Optional[str] = None


def _decode_month(month_part: int) -> Optional[int]:
    for offset in (0, 20, 50, 70):
        if 1 <= month_part - offset <= 12:
            return month_part - offset
    return None


def validate_birth_number(value: Optional[str], reference_date: Optional[date] = None) -> BirthNumberValidation:
    """
    Validates a birth number with or without the '/' delimiter.
    reference_date decides the century of 10-digit numbers (default: today).
    """
    if not value or not value.strip():
        return BirthNumberValidation(False, ERROR_REQUIRED)

    clean = _SEPARATORS.sub("", value)
    if not _DIGITS_9_OR_10.match(clean):
        return BirthNumberValidation(False, ERROR_LENGTH)

    is_long = len(clean) == 10
    year_part = int(clean[0:2])
    month = _decode_month(int(clean[2:4]))
    day = int(clean[4:6])

    if month is None:
        return BirthNumberValidation(False, ERROR_MONTH)
    if not 1 <= day <= 31:
        return BirthNumberValidation(False, ERROR_DAY)

    if not is_long:
        full_year = 1900 + year_part
        if full_year >= 1954:
            return BirthNumberValidation(False, ERROR_SHORT_FORM_YEAR)
    else:
        current_year_2d = (reference_date or date.today()).year % 100
        full_year = 2000 + year_part if year_part <= current_year_2d else 1900 + year_part

    max_day = calendar.monthrange(full_year, month)[1]
    if day > max_day:
        return BirthNumberValidation(False, f"Mesiac {month} má max {max_day} dní")

    if is_long:
        divisible = int(clean) % 11 == 0
        legacy_exception = 1954 <= full_year <= 1985 and int(clean[:9]) % 11 == 10 and clean[9] == "0"
        if not divisible and not legacy_exception:
            return BirthNumberValidation(False, ERROR_CHECKSUM)

    return BirthNumberValidation(True)


def birth_number_field_error(value: Optional[str], show_errors: bool) -> Optional[str]:
    """Inline error for a form field: required-but-empty, invalid, or None."""
    if not value:
        return FIELD_ERROR_REQUIRED if show_errors else None
    return FIELD_ERROR_INVALID if not validate_birth_number(value).valid else None


def is_valid_birth_number(value: Optional[str]) -> bool:
    return validate_birth_number(value).valid
