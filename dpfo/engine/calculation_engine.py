# dpfo/engine/calculation_engine.py
"""
DPFO typ B tax calculation as an ordered pipeline of pure stages.

Each stage receives only the upstream values it depends on and returns a
frozen result, so the row dependency graph reads top to bottom in
calculate_tax():

    employment ─┬─────────────────────────────► nczd ─► tax ─► child bonus ─► mortgage ─► settlement
    funds ──────┤ (r68)                                  ▲                        │
    stocks ─────┤ (r71) ─────────────────────────────────┘                        └─► allocations
    dividends ──┘ (pr28)

A disabled section yields zeros and takes no part in any branch. No stage
raises on user input: amounts were already parsed to Decimal at the form
boundary.
"""
import logging
from decimal import Context, Decimal, localcontext

import dpfo.config as config
from dpfo import constants
from dpfo.domain.enums import ParentChoice
from dpfo.domain.form import (
    ChildBonus, DDSContributions, EmploymentIncome, ForeignDividends, MortgageInterest,
    MutualFundSales, ParentTaxAllocation, SpouseNCZD, StockSales, TaxFormData, TwoPercentAllocation,
)
from dpfo.domain.results import (
    AllocationResult, ChildBonusResult, DividendsResult, EmploymentResult, MortgageResult,
    MutualFundsResult, NczdResult, SettlementResult, StockSalesResult, TaxCalculationResult, TaxResult,
)
from dpfo.engine import formulas
from dpfo.utils.currency_converter import entry_amount_eur, entry_withheld_eur
from dpfo.utils.type_utils import ZERO, format_amount, sum_decimals

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def calculation_context() -> Context:
    return Context(prec=config.INTERNAL_CALCULATION_PRECISION, rounding=config.DECIMAL_ROUNDING_MODE)


def employment_stage(employment: EmploymentIncome) -> EmploymentResult:
    """Oddiel V, §5: r38 = max(r36 − r37, 0)."""
    if not employment.enabled:
        return EmploymentResult(r38=ZERO, r131=ZERO)
    r38 = max(employment.r36 - employment.r37, ZERO)
    return EmploymentResult(r38=r38, r131=max(employment.r131, ZERO))


def mutual_funds_stage(mutual_funds: MutualFundSales) -> MutualFundsResult:
    """Oddiel VII, §7 (Tabuľka č.2 r.7): special base taxed at the flat capital rate."""
    if not mutual_funds.enabled:
        return MutualFundsResult(ZERO, ZERO, ZERO, ZERO, ZERO)
    income = sum_decimals(mutual_funds.entries, lambda e: e.sale_amount)
    expense = sum_decimals(mutual_funds.entries, lambda e: e.purchase_amount)
    return MutualFundsResult(
        total_fund_income=income,
        total_fund_expense=expense,
        r66=income,
        r67=expense,
        r68=max(income - expense, ZERO),
    )


def stock_sales_stage(stock_sales: StockSales) -> StockSalesResult:
    """§8 securities held under a year; r71 is the gain after the one-time exemption."""
    if not stock_sales.enabled:
        return StockSalesResult(ZERO, ZERO, ZERO)
    r69 = sum_decimals(stock_sales.entries, lambda e: e.sale_amount)
    r70 = sum_decimals(stock_sales.entries, lambda e: e.purchase_amount)
    gross_gain = max(r69 - r70, ZERO)
    r71 = max(gross_gain - constants.STOCK_SHORT_TERM_EXEMPTION, ZERO)
    return StockSalesResult(r69=r69, r70=r70, r71=r71)


def dividends_stage(dividends: ForeignDividends) -> DividendsResult:
    """Príloha č.2, §51e: 7 % on foreign dividends with a credit for tax withheld abroad."""
    total_eur = ZERO
    total_withheld = ZERO
    if dividends.enabled:
        total_eur = sum_decimals(dividends.entries, lambda e: entry_amount_eur(e, dividends))
        total_withheld = sum_decimals(dividends.entries, lambda e: entry_withheld_eur(e, dividends))

    pr1 = total_eur
    pr6 = total_eur
    pr7 = pr6
    pr9 = pr7 * constants.DIVIDEND_TAX_RATE
    pr13 = pr7
    pr14 = total_withheld
    pr15 = pr13 / pr7 * HUNDRED if pr7 > ZERO else ZERO
    pr16 = pr9 * pr15 / HUNDRED
    pr17 = min(pr16, pr14)
    pr18 = max(pr9 - pr17, ZERO)
    return DividendsResult(
        total_dividends_eur=total_eur,
        total_withheld_tax_eur=total_withheld,
        pril2_pr1=pr1,
        pril2_pr6=pr6,
        pril2_pr7=pr7,
        pril2_pr8=constants.DIVIDEND_TAX_RATE_FORM_VALUE,
        pril2_pr9=pr9,
        pril2_pr13=pr13,
        pril2_pr14=pr14,
        pril2_pr15=pr15,
        pril2_pr16=pr16,
        pril2_pr17=pr17,
        pril2_pr18=pr18,
        pril2_pr28=pr18,
    )


def nczd_stage(r38: Decimal, spouse: SpouseNCZD, dds: DDSContributions) -> NczdResult:
    """Rows 72-78: non-taxable parts of the base, together capped at the employment base."""
    r72 = r38
    r73 = formulas.taxpayer_nczd(r72)
    r74 = formulas.spouse_nczd(r72, spouse.own_income, spouse.months) if spouse.enabled else ZERO
    r75 = formulas.dds_deduction(dds.contributions) if dds.enabled else ZERO
    r77 = min(r73 + r74 + r75, r72)
    r78 = max(r38 - r77, ZERO)
    return NczdResult(r72=r72, r73=r73, r74=r74, r75=r75, r77=r77, r78=r78)


def tax_stage(r78: Decimal, r68: Decimal, r71: Decimal, pril2_pr28: Decimal) -> TaxResult:
    """Rows 80-116: progressive tax on r78 + r71, flat tax on the §7 base, plus the dividend tax."""
    r80 = r78 + r71
    r81 = formulas.progressive_tax(r80)
    r90 = r81
    r106 = r68 * constants.CAPITAL_TAX_RATE
    r115 = r106
    r116 = r90 + r115 + pril2_pr28
    return TaxResult(r80=r80, r81=r81, r90=r90, r106=r106, r115=r115, r116=r116)


def child_bonus_stage(child_bonus: ChildBonus, r116: Decimal, r38: Decimal, year: int = constants.TAX_YEAR) -> ChildBonusResult:
    """Rows 117-122, §33. The phase-out is driven by the employment base r38."""
    r117 = ZERO
    r119 = ZERO
    if child_bonus.enabled:
        r117 = formulas.child_bonus(child_bonus.children, r38, year)
        r119 = max(child_bonus.bonus_paid_by_employer, ZERO)
    r118 = max(r116 - r117, ZERO)
    r120 = max(r117 - r119, ZERO)
    r121 = min(r120, r118)
    return ChildBonusResult(r117=r117, r118=r118, r119=r119, r120=r120, r121=r121, r122=ZERO)


def mortgage_stage(mortgage: MortgageInterest, r118: Decimal) -> MortgageResult:
    """Rows 123-127, §33a."""
    r123 = formulas.mortgage_bonus(mortgage.interest_paid, mortgage.contract_date) if mortgage.enabled else ZERO
    r124 = max(r118 - r123, ZERO)
    r126 = r123
    r127 = max(r126 - r118, ZERO)
    return MortgageResult(r123=r123, r124=r124, r126=r126, r127=r127)


def settlement_stage(r118: Decimal, r123: Decimal, r127: Decimal, r131: Decimal) -> SettlementResult:
    """
    Rows 135/136. Payable and refund are mutually exclusive; a payable amount
    of at most SETTLEMENT_DE_MINIMIS is not collected.
    """
    final_result = r118 - r123 + r127 - r131
    r135 = max(final_result, ZERO)
    if ZERO < r135 <= constants.SETTLEMENT_DE_MINIMIS:
        r135 = ZERO
    r136 = -final_result if final_result < ZERO else ZERO
    return SettlementResult(final_result=final_result, r135=r135, r136=r136, is_refund=final_result < ZERO)


def allocation_stage(two_percent: TwoPercentAllocation, parent_allocation: ParentTaxAllocation, r124: Decimal) -> AllocationResult:
    """
    §50 (r152) and §50aa. The parent amount is per parent and independent of
    the NGO allocation.
    """
    r152 = ZERO
    if two_percent.enabled:
        rate = constants.THREE_PERCENT_RATE if two_percent.volunteer_3_percent else constants.TWO_PERCENT_RATE
        r152 = formulas.allocation_amount(r124, rate, constants.MIN_ALLOCATION)
    per_parent = ZERO
    if parent_allocation.choice != ParentChoice.NONE:
        per_parent = formulas.allocation_amount(r124, constants.PARENT_ALLOCATION_RATE, constants.MIN_PARENT_ALLOCATION)
    return AllocationResult(r152=r152, parent_alloc_per_parent=per_parent)


def calculate_tax(form: TaxFormData) -> TaxCalculationResult:
    """
    Computes every row of the return. Pure: the same form always yields an
    identical result.
    """
    with localcontext(calculation_context()):
        emp = employment_stage(form.employment)
        funds = mutual_funds_stage(form.mutual_funds)
        stocks = stock_sales_stage(form.stock_sales)
        div = dividends_stage(form.dividends)
        nczd = nczd_stage(emp.r38, form.spouse, form.dds)
        tax = tax_stage(nczd.r78, funds.r68, stocks.r71, div.pril2_pr28)
        bonus = child_bonus_stage(form.child_bonus, tax.r116, emp.r38)
        mortgage = mortgage_stage(form.mortgage, bonus.r118)
        settlement = settlement_stage(bonus.r118, mortgage.r123, mortgage.r127, emp.r131)
        alloc = allocation_stage(form.two_percent, form.parent_allocation, mortgage.r124)

        logger.debug(f"Tax base r80={tax.r80}, grand total r116={tax.r116}, after bonuses r124={mortgage.r124}, final={settlement.final_result}")

        return TaxCalculationResult(
            r38=format_amount(emp.r38),
            total_fund_income=format_amount(funds.total_fund_income),
            total_fund_expense=format_amount(funds.total_fund_expense),
            r66=format_amount(funds.r66),
            r67=format_amount(funds.r67),
            r68=format_amount(funds.r68),
            r69=format_amount(stocks.r69),
            r70=format_amount(stocks.r70),
            r71=format_amount(stocks.r71),
            total_dividends_eur=format_amount(div.total_dividends_eur),
            total_withheld_tax_eur=format_amount(div.total_withheld_tax_eur),
            pril2_pr1=format_amount(div.pril2_pr1),
            pril2_pr6=format_amount(div.pril2_pr6),
            pril2_pr7=format_amount(div.pril2_pr7),
            pril2_pr8=div.pril2_pr8,
            pril2_pr9=format_amount(div.pril2_pr9),
            pril2_pr13=format_amount(div.pril2_pr13),
            pril2_pr14=format_amount(div.pril2_pr14),
            pril2_pr15=format_amount(div.pril2_pr15),
            pril2_pr16=format_amount(div.pril2_pr16),
            pril2_pr17=format_amount(div.pril2_pr17),
            pril2_pr18=format_amount(div.pril2_pr18),
            pril2_pr28=format_amount(div.pril2_pr28),
            r72=format_amount(nczd.r72),
            r73=format_amount(nczd.r73),
            r74=format_amount(nczd.r74),
            r75=format_amount(nczd.r75),
            r77=format_amount(nczd.r77),
            r78=format_amount(nczd.r78),
            r80=format_amount(tax.r80),
            r81=format_amount(tax.r81),
            r90=format_amount(tax.r90),
            r106=format_amount(tax.r106),
            r115=format_amount(tax.r115),
            r116=format_amount(tax.r116),
            r117=format_amount(bonus.r117),
            r118=format_amount(bonus.r118),
            r119=format_amount(bonus.r119),
            r120=format_amount(bonus.r120),
            r121=format_amount(bonus.r121),
            r122=format_amount(bonus.r122),
            r123=format_amount(mortgage.r123),
            r124=format_amount(mortgage.r124),
            r126=format_amount(mortgage.r126),
            r127=format_amount(mortgage.r127),
            r131=format_amount(emp.r131),
            r135=format_amount(settlement.r135),
            r136=format_amount(settlement.r136),
            r152=format_amount(alloc.r152),
            parent_alloc_per_parent=format_amount(alloc.parent_alloc_per_parent),
            final_tax_to_pay=format_amount(settlement.r135),
            final_tax_refund=format_amount(settlement.r136),
            is_refund=settlement.is_refund,
        )
