# dpfo/domain/results.py
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Dict


# Stage results carry full-precision Decimals; rounding happens once, when the
# public TaxCalculationResult is built.

@dataclass(frozen=True)
class EmploymentResult:
    r38: Decimal
    r131: Decimal


@dataclass(frozen=True)
class MutualFundsResult:
    total_fund_income: Decimal
    total_fund_expense: Decimal
    r66: Decimal
    r67: Decimal
    r68: Decimal


@dataclass(frozen=True)
class StockSalesResult:
    r69: Decimal
    r70: Decimal
    r71: Decimal


@dataclass(frozen=True)
class DividendsResult:
    total_dividends_eur: Decimal
    total_withheld_tax_eur: Decimal
    pril2_pr1: Decimal
    pril2_pr6: Decimal
    pril2_pr7: Decimal
    pril2_pr8: str
    pril2_pr9: Decimal
    pril2_pr13: Decimal
    pril2_pr14: Decimal
    pril2_pr15: Decimal
    pril2_pr16: Decimal
    pril2_pr17: Decimal
    pril2_pr18: Decimal
    pril2_pr28: Decimal


@dataclass(frozen=True)
class NczdResult:
    r72: Decimal
    r73: Decimal
    r74: Decimal
    r75: Decimal
    r77: Decimal
    r78: Decimal


@dataclass(frozen=True)
class TaxResult:
    r80: Decimal
    r81: Decimal
    r90: Decimal
    r106: Decimal
    r115: Decimal
    r116: Decimal


@dataclass(frozen=True)
class ChildBonusResult:
    r117: Decimal
    r118: Decimal
    r119: Decimal
    r120: Decimal
    r121: Decimal
    r122: Decimal


@dataclass(frozen=True)
class MortgageResult:
    r123: Decimal
    r124: Decimal
    r126: Decimal
    r127: Decimal


@dataclass(frozen=True)
class SettlementResult:
    final_result: Decimal
    r135: Decimal
    r136: Decimal
    is_refund: bool


@dataclass(frozen=True)
class AllocationResult:
    r152: Decimal
    parent_alloc_per_parent: Decimal


@dataclass(frozen=True)
class TaxCalculationResult:
    """
    One field per form row, each a string with exactly two decimal places
    (pril2_pr8 carries the dividend rate as written on the form).
    Derived fresh on every calculation; never mutated.
    """
    r38: str
    total_fund_income: str
    total_fund_expense: str
    r66: str
    r67: str
    r68: str
    r69: str
    r70: str
    r71: str
    total_dividends_eur: str
    total_withheld_tax_eur: str
    pril2_pr1: str
    pril2_pr6: str
    pril2_pr7: str
    pril2_pr8: str
    pril2_pr9: str
    pril2_pr13: str
    pril2_pr14: str
    pril2_pr15: str
    pril2_pr16: str
    pril2_pr17: str
    pril2_pr18: str
    pril2_pr28: str
    r72: str
    r73: str
    r74: str
    r75: str
    r77: str
    r78: str
    r80: str
    r81: str
    r90: str
    r106: str
    r115: str
    r116: str
    r117: str
    r118: str
    r119: str
    r120: str
    r121: str
    r122: str
    r123: str
    r124: str
    r126: str
    r127: str
    r131: str
    r135: str
    r136: str
    r152: str
    parent_alloc_per_parent: str
    final_tax_to_pay: str
    final_tax_refund: str
    is_refund: bool

    def as_dict(self) -> Dict[str, object]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
