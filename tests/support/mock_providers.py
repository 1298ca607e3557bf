# tests/support/mock_providers.py
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from dpfo.utils.exchange_rate_provider import AnnualRateProvider


class MockAnnualRateProvider(AnnualRateProvider):
    """
    Deterministic annual rates for tests (foreign units per 1 EUR).

        provider = MockAnnualRateProvider({"USD": Decimal("1.08")})
        provider.get_annual_rate(2025, "USD")  # Decimal("1.08")

    Currencies missing from the table return None, like an unavailable ECB series.
    Every request is recorded in `calls`.
    """

    def __init__(self, rates: Optional[Dict[str, Decimal]] = None):
        self.rates = dict(rates or {})
        self.calls: List[Tuple[int, str]] = []

    def get_annual_rate(self, year: int, currency_code: str) -> Optional[Decimal]:
        self.calls.append((year, currency_code))
        if currency_code == "EUR":
            return Decimal("1")
        return self.rates.get(currency_code)
