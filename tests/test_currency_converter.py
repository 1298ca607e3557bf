"""
Test Group: Dividend Currency Conversion

ECB convention (foreign units per 1 EUR), cent rounding and the refresh of
annual rates that respects user overrides.
"""

from decimal import Decimal

from dpfo.domain.enums import DividendCurrency
from dpfo.domain.form import DividendEntry, ForeignDividends
from dpfo.utils.currency_converter import (
    dividend_to_eur, entry_amount_eur, entry_withheld_eur, eur_to_original, refresh_dividend_rates,
)
from tests.support.mock_providers import MockAnnualRateProvider

D = Decimal


class TestConversion:

    def test_usd_and_czk(self):
        assert dividend_to_eur("113", DividendCurrency.USD, "1.13", "25.21") == D("100.00")
        assert dividend_to_eur("2521", DividendCurrency.CZK, "1.13", "25.21") == D("100.00")

    def test_eur_is_unchanged(self):
        assert dividend_to_eur("99.99", DividendCurrency.EUR, "1.13", "25.21") == D("99.99")

    def test_rounds_half_up_to_cents(self):
        # 1 / 1.6 = 0.625
        assert dividend_to_eur("1", DividendCurrency.USD, "1.6", "25") == D("0.63")

    def test_zero_and_unparsable_amounts(self):
        assert dividend_to_eur("", DividendCurrency.USD, "1.13", "25.21") == D("0")
        assert dividend_to_eur("abc", DividendCurrency.USD, "1.13", "25.21") == D("0")

    def test_non_positive_rate_converts_one_to_one(self):
        assert dividend_to_eur("50", DividendCurrency.USD, "0", "25.21") == D("50.00")

    def test_back_to_original(self):
        assert eur_to_original("100", DividendCurrency.USD, "1.13", "25.21") == D("113.00")
        assert eur_to_original("100", DividendCurrency.EUR, "1.13", "25.21") == D("100.00")


class TestEntryAmounts:

    def test_eur_field_wins(self):
        dividends = ForeignDividends(ecbRate="1.13")
        entry = DividendEntry(amountOriginal="1000", amountEur="10", withheldTaxOriginal="150", withheldTaxEur="1.50")
        assert entry_amount_eur(entry, dividends) == D("10")
        assert entry_withheld_eur(entry, dividends) == D("1.50")

    def test_derived_from_original(self):
        dividends = ForeignDividends(ecbRate="1.13")
        entry = DividendEntry(amountOriginal="226", withheldTaxOriginal="33.90")
        assert entry_amount_eur(entry, dividends) == D("200.00")
        assert entry_withheld_eur(entry, dividends) == D("30.00")


class TestRefreshRates:

    def test_updates_both_rates(self):
        provider = MockAnnualRateProvider({"USD": D("1.0824"), "CZK": D("24.95")})
        refreshed = refresh_dividend_rates(ForeignDividends(enabled=True), provider, 2025)
        assert refreshed.ecb_rate == D("1.0824")
        assert refreshed.czk_rate == D("24.95")
        assert provider.calls == [(2025, "USD"), (2025, "CZK")]

    def test_overridden_rates_are_kept(self):
        provider = MockAnnualRateProvider({"USD": D("1.0824"), "CZK": D("24.95")})
        dividends = ForeignDividends(ecbRate="1.20", ecbRateOverride=True)
        refreshed = refresh_dividend_rates(dividends, provider, 2025)
        assert refreshed.ecb_rate == D("1.20")
        assert refreshed.czk_rate == D("24.95")
        assert provider.calls == [(2025, "CZK")]

    def test_unavailable_rate_keeps_current(self):
        dividends = ForeignDividends(czkRate="25.00")
        refreshed = refresh_dividend_rates(dividends, MockAnnualRateProvider({"USD": D("1.10")}), 2025)
        assert refreshed.czk_rate == D("25.00")
        assert refreshed.ecb_rate == D("1.10")
