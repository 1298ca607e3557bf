# dpfo/utils/currency_converter.py
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, TYPE_CHECKING

import dpfo.config as config
from dpfo.domain.enums import DividendCurrency
from dpfo.utils.type_utils import ZERO, to_decimal

if TYPE_CHECKING:
    from dpfo.domain.form import DividendEntry, ForeignDividends
    from dpfo.utils.exchange_rate_provider import AnnualRateProvider

logger = logging.getLogger(__name__)


def _rate_for_currency(currency: DividendCurrency, usd_rate: Any, czk_rate: Any) -> Decimal:
    if currency == DividendCurrency.EUR:
        return Decimal("1")
    rate = to_decimal(czk_rate if currency == DividendCurrency.CZK else usd_rate)
    if rate <= ZERO:
        logger.warning(f"Non-positive {currency.value} rate '{rate}', converting 1:1.")
        return Decimal("1")
    return rate


def dividend_to_eur(amount_original: Any, currency: DividendCurrency, usd_rate: Any, czk_rate: Any) -> Decimal:
    """
    Converts an amount in the dividend's currency to EUR.
    Rates follow the ECB convention: foreign currency units per 1 EUR,
    so EUR = original / rate. Result is rounded to cents.
    """
    amount = to_decimal(amount_original)
    if amount.is_zero():
        return ZERO
    rate = _rate_for_currency(DividendCurrency(currency), usd_rate, czk_rate)
    return (amount / rate).quantize(config.OUTPUT_PRECISION_AMOUNTS, rounding=ROUND_HALF_UP)


def eur_to_original(amount_eur: Any, currency: DividendCurrency, usd_rate: Any, czk_rate: Any) -> Decimal:
    """Inverse of dividend_to_eur, used when only the EUR value is known."""
    amount = to_decimal(amount_eur)
    rate = _rate_for_currency(DividendCurrency(currency), usd_rate, czk_rate)
    return (amount * rate).quantize(config.OUTPUT_PRECISION_AMOUNTS, rounding=ROUND_HALF_UP)


def entry_amount_eur(entry: "DividendEntry", dividends: "ForeignDividends") -> Decimal:
    """EUR gross amount of an entry, derived from the original currency when the EUR field is empty."""
    if not entry.amount_eur.is_zero():
        return entry.amount_eur
    return dividend_to_eur(entry.amount_original, entry.currency, dividends.ecb_rate, dividends.czk_rate)


def entry_withheld_eur(entry: "DividendEntry", dividends: "ForeignDividends") -> Decimal:
    if not entry.withheld_tax_eur.is_zero():
        return entry.withheld_tax_eur
    return dividend_to_eur(entry.withheld_tax_original, entry.currency, dividends.ecb_rate, dividends.czk_rate)


def refresh_dividend_rates(dividends: "ForeignDividends", provider: "AnnualRateProvider", year: int) -> "ForeignDividends":
    """
    Returns a copy of the dividend section with the USD and CZK annual averages
    taken from the provider. Rates the user overrode are kept as they are.
    """
    updates = {}
    if not dividends.ecb_rate_override:
        usd_rate: Optional[Decimal] = provider.get_annual_rate(year, "USD")
        if usd_rate is not None:
            updates["ecb_rate"] = usd_rate
    if not dividends.czk_rate_override:
        czk_rate: Optional[Decimal] = provider.get_annual_rate(year, "CZK")
        if czk_rate is not None:
            updates["czk_rate"] = czk_rate
    if updates:
        logger.info(f"Updated dividend exchange rates for {year}: {updates}")
    return dividends.model_copy(update=updates)
