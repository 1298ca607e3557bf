# dpfo/countries.py
"""
Countries offered for foreign dividend income, keyed by ISO 3166-1 numeric code
as required in Oddiel XIII of the return. Most common dividend sources first.
"""
from dataclasses import dataclass
from typing import List, Optional

from dpfo.domain.enums import DividendCurrency

DEFAULT_DIVIDEND_COUNTRY = "840"


@dataclass(frozen=True)
class Country:
    code: str
    name: str


DIVIDEND_COUNTRIES: List[Country] = [
    Country("840", "USA"),
    Country("372", "Írsko"),
    Country("826", "Veľká Británia"),
    Country("276", "Nemecko"),
    Country("528", "Holandsko"),
    Country("756", "Švajčiarsko"),
    Country("250", "Francúzsko"),
    Country("442", "Luxembursko"),
    Country("124", "Kanada"),
    # Europe
    Country("040", "Rakúsko"),
    Country("056", "Belgicko"),
    Country("203", "Česká republika"),
    Country("208", "Dánsko"),
    Country("233", "Estónsko"),
    Country("246", "Fínsko"),
    Country("300", "Grécko"),
    Country("348", "Maďarsko"),
    Country("380", "Taliansko"),
    Country("428", "Lotyšsko"),
    Country("440", "Litva"),
    Country("578", "Nórsko"),
    Country("616", "Poľsko"),
    Country("620", "Portugalsko"),
    Country("642", "Rumunsko"),
    Country("724", "Španielsko"),
    Country("752", "Švédsko"),
    # Asia & Pacific
    Country("036", "Austrália"),
    Country("156", "Čína"),
    Country("344", "Hongkong"),
    Country("392", "Japonsko"),
    Country("410", "Kórejská republika"),
    Country("158", "Taiwan"),
    # Other
    Country("076", "Brazília"),
    Country("376", "Izrael"),
    Country("710", "Južná Afrika"),
]

# Euro area members in 2025
EUROZONE_COUNTRY_CODES = frozenset({
    "040", "056", "191", "196", "233", "246", "250", "276", "300", "372",
    "380", "428", "440", "442", "470", "528", "620", "703", "705", "724",
})
CZECH_REPUBLIC_CODE = "203"

_COUNTRIES_BY_CODE = {country.code: country for country in DIVIDEND_COUNTRIES}


def find_country_by_code(code: str) -> Optional[Country]:
    return _COUNTRIES_BY_CODE.get((code or "").strip())


def currency_for_country(code: str) -> DividendCurrency:
    """EUR for the euro area, CZK for Czechia, USD for everything else."""
    code = (code or "").strip()
    if code in EUROZONE_COUNTRY_CODES:
        return DividendCurrency.EUR
    if code == CZECH_REPUBLIC_CODE:
        return DividendCurrency.CZK
    return DividendCurrency.USD
