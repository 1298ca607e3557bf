# dpfo/engine/formulas.py
"""
Statutory formulas of Zákon č. 595/2003 Z.z. as used by the DPFO typ B return.

All functions take and return full-precision Decimals and run in whatever
decimal context the caller has set up.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from dpfo import constants
import dpfo.config as config
from dpfo.identification.birth_number import monthly_rates_for_year, parse_birth_number
from dpfo.utils.type_utils import ZERO


def taxpayer_nczd(tax_base: Decimal) -> Decimal:
    """
    §11 ods. 2: 21 × ŽM while the base is at most 92.8 × ŽM,
    otherwise 44.2 × ŽM − base / 4, never below zero.
    """
    if tax_base <= ZERO:
        return ZERO
    if tax_base <= constants.NCZD_THRESHOLD:
        return constants.NCZD_ZAKLAD
    return max(constants.NCZD_MULTIPLIER_HIGH - tax_base / 4, ZERO)


def spouse_nczd(tax_base: Decimal, spouse_income: Decimal, months: int) -> Decimal:
    """
    §11 ods. 3, keyed off the taxpayer's base:
    19.2 × ŽM − spouse income up to the bracket threshold,
    63.4 × ŽM − base / 4 − spouse income above it.
    Floored at zero, then prorated by months / 12 and rounded to cents.
    """
    if months <= 0:
        return ZERO
    months = min(months, 12)

    if tax_base <= constants.TAX_BRACKET_THRESHOLD:
        base_nczd = constants.NCZD_SPOUSE_ZAKLAD - spouse_income
    else:
        base_nczd = constants.NCZD_SPOUSE_MULTIPLIER_HIGH - tax_base / 4 - spouse_income

    if base_nczd < ZERO:
        return ZERO
    prorated = base_nczd * months / 12
    return prorated.quantize(config.OUTPUT_PRECISION_AMOUNTS, rounding=ROUND_HALF_UP)


def dds_deduction(contributions: Decimal) -> Decimal:
    """§11 ods. 8: supplementary pension contributions, at most 180 EUR."""
    return min(max(contributions, ZERO), constants.DDS_MAX_CONTRIBUTION)


def progressive_tax(tax_base: Decimal) -> Decimal:
    """§15: 19 % up to 176.8 × ŽM, 25 % on the part above."""
    if tax_base <= ZERO:
        return ZERO
    bracket = constants.TAX_BRACKET_THRESHOLD
    if tax_base <= bracket:
        return tax_base * constants.TAX_RATE_LOWER
    return bracket * constants.TAX_RATE_LOWER + (tax_base - bracket) * constants.TAX_RATE_UPPER


def child_bonus_for_month(base_rate: Decimal, monthly_base: Decimal) -> Decimal:
    """Monthly rate reduced by a tenth of the monthly base above the phase-out threshold."""
    if monthly_base > constants.CHILD_BONUS_PHASE_OUT_THRESHOLD:
        reduction = (monthly_base - constants.CHILD_BONUS_PHASE_OUT_THRESHOLD) / constants.CHILD_BONUS_PHASE_OUT_DIVISOR
        return max(base_rate - reduction, ZERO)
    return base_rate


def child_bonus(children: Iterable, annual_base: Decimal, year: int = constants.TAX_YEAR) -> Decimal:
    """
    §33 bonus summed over children and their eligible months.
    Children whose birth number cannot be read are skipped.
    """
    monthly_base = annual_base / 12
    total = ZERO
    for child in children:
        birth = parse_birth_number(child.birth_number)
        if birth is None:
            continue
        rates = monthly_rates_for_year(birth, year)
        for eligible, rate in zip(child.months, rates):
            if eligible:
                total += child_bonus_for_month(rate, monthly_base)
    return total.quantize(config.OUTPUT_PRECISION_AMOUNTS, rounding=ROUND_HALF_UP)


def mortgage_cap(contract_date: Optional[date]) -> Decimal:
    """400 EUR for contracts concluded by 31.12.2023, 1200 EUR otherwise (also when the date is unknown)."""
    if contract_date is not None and contract_date <= constants.MORTGAGE_OLD_CONTRACT_CUTOFF:
        return constants.MORTGAGE_MAX_OLD
    return constants.MORTGAGE_MAX_NEW


def mortgage_bonus(interest_paid: Decimal, contract_date: Optional[date]) -> Decimal:
    """§33a: half of the interest paid, capped by contract date."""
    if interest_paid <= ZERO:
        return ZERO
    return min(interest_paid * constants.MORTGAGE_BONUS_RATE, mortgage_cap(contract_date))


def allocation_amount(tax: Decimal, rate: Decimal, minimum: Decimal) -> Decimal:
    """Share of the tax, or zero when it does not reach the statutory minimum."""
    amount = tax * rate
    return amount if amount >= minimum else ZERO
