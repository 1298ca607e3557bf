# dpfo/identification/birth_number.py
"""
Lenient rodné číslo (birth number) parsing for child-bonus eligibility.

Format YYMMDD[/]XXX(X). The month carries +50 for women and +20 / +70 in the
alternative series issued after 2004. Years 00-23 are read as 2000-2023, the
rest as 1924-1999. No check-digit verification happens here; see
birth_number_validator for the strict rule.
"""
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from dpfo import constants

_SEPARATORS = re.compile(r"[\s/]")
_YEAR_PIVOT = 23


@dataclass(frozen=True)
class BirthDate:
    year: int
    month: int
    day: int


def _decode_month(encoded_month: int) -> int:
    if encoded_month > 70:
        return encoded_month - 70
    if encoded_month > 50:
        return encoded_month - 50
    if encoded_month > 20:
        return encoded_month - 20
    return encoded_month


def parse_birth_number(text: Optional[str]) -> Optional[BirthDate]:
    """Birth date encoded in the number, or None when it cannot be read."""
    digits = _SEPARATORS.sub("", text or "")
    if len(digits) < 6 or len(digits) > 10 or not digits.isdigit():
        return None
    yy = int(digits[0:2])
    month = _decode_month(int(digits[2:4]))
    day = int(digits[4:6])
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    year = 2000 + yy if yy <= _YEAR_PIVOT else 1900 + yy
    return BirthDate(year=year, month=month, day=day)


def age_at(birth: BirthDate, year: int, month: int) -> int:
    """Age in full years during the given month (never negative)."""
    age = year - birth.year
    if birth.month > month:
        age -= 1
    return max(0, age)


def monthly_bonus_rate(age: int) -> Decimal:
    if age < 15:
        return constants.CHILD_BONUS_UNDER_15
    if age < 18:
        return constants.CHILD_BONUS_15_TO_18
    return Decimal("0")


def monthly_rates_for_year(birth: BirthDate, year: int = constants.TAX_YEAR) -> List[Decimal]:
    """Twelve monthly bonus rates, January first."""
    return [monthly_bonus_rate(age_at(birth, year, month)) for month in range(1, 13)]
