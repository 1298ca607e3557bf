# dpfo/domain/enums.py
from enum import Enum


class DividendCurrency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    CZK = "CZK"


class ParentChoice(str, Enum):
    BOTH = "both"
    ONE = "one"
    NONE = "none"
