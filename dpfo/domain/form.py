# dpfo/domain/form.py
"""
Input aggregate of the return: one model per statutory section.

Field aliases are the keys under which form data has always been persisted
(e.g. ``dic``, ``r36``, ``zaplateneUroky``), so saved forms and imported data
validate directly. Money fields are Decimals parsed with ``to_decimal`` at the
boundary, so nothing downstream re-parses strings.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from dpfo import constants
from dpfo.countries import DEFAULT_DIVIDEND_COUNTRY, currency_for_country
from dpfo.domain.enums import DividendCurrency, ParentChoice
from dpfo.utils.type_utils import ZERO, parse_date, to_decimal

logger = logging.getLogger(__name__)

# Bumped whenever a section is added or a default changes meaning
FORM_SCHEMA_VERSION = 2
DEFAULT_STATE = "Slovenská republika"
TWELVE = Decimal("12")


def _parse_months_count(value: Any) -> int:
    """Whole months 0..12; anything unparsable is 0."""
    # Clamp before int(): "1e999999999" must not become a huge integer
    months = min(TWELVE, max(ZERO, to_decimal(value)))
    return int(months)


def _clean_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _whole_year() -> List[bool]:
    return [True] * 12


class FormSection(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, validate_assignment=True)


EntryT = TypeVar("EntryT", bound=FormSection)


def _valid_entries(values: Any, entry_model: Type[EntryT], section: str) -> List[EntryT]:
    """Validates list entries one by one; an entry that does not validate is dropped and logged."""
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        logger.warning(f"Entries of '{section}' are a {type(values).__name__}, not a list; ignoring them.")
        return []
    entries: List[EntryT] = []
    for index, item in enumerate(values):
        if isinstance(item, entry_model):
            entries.append(item)
            continue
        try:
            entries.append(entry_model.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping entry {index} of '{section}' ({e.error_count()} error(s)).")
    return entries


class PersonalInfo(FormSection):
    tax_id: str = Field("", alias="dic")
    surname: str = Field("", alias="priezvisko")
    first_name: str = Field("", alias="meno")
    title_before: str = Field("", alias="titul")
    title_after: str = Field("", alias="titulZa")
    street: str = Field("", alias="ulica")
    house_number: str = Field("", alias="cislo")
    postal_code: str = Field("", alias="psc")
    municipality: str = Field("", alias="obec")
    state: str = Field(DEFAULT_STATE, alias="stat")

    @field_validator("*", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> Any:
        return _clean_text(v)


class EmploymentIncome(FormSection):
    """Oddiel V, §5. Rows are named as on the form."""
    enabled: bool = True
    r36: Decimal = ZERO   # gross income
    r36a: Decimal = ZERO  # income from agreements (dohody)
    r37: Decimal = ZERO   # mandatory insurance
    r131: Decimal = ZERO  # tax advances withheld

    @field_validator("r36", "r36a", "r37", "r131", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)


class DividendEntry(FormSection):
    entry_id: str = Field("", alias="id")
    ticker: str = ""
    country: str = DEFAULT_DIVIDEND_COUNTRY
    country_name: str = Field("USA", alias="countryName")
    currency: DividendCurrency = DividendCurrency.USD
    amount_original: Decimal = Field(ZERO, alias="amountOriginal")
    amount_eur: Decimal = Field(ZERO, alias="amountEur")
    withheld_tax_original: Decimal = Field(ZERO, alias="withheldTaxOriginal")
    withheld_tax_eur: Decimal = Field(ZERO, alias="withheldTaxEur")

    @field_validator("entry_id", "ticker", "country_name", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> str:
        return _clean_text(v)

    @field_validator("amount_original", "amount_eur", "withheld_tax_original", "withheld_tax_eur", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @field_validator("currency", mode="before")
    @classmethod
    def _parse_currency(cls, v: Any, info: ValidationInfo) -> Any:
        if isinstance(v, DividendCurrency):
            return v
        if isinstance(v, str) and v.strip().upper() in DividendCurrency.__members__:
            return v.strip().upper()
        country = info.data.get("country", DEFAULT_DIVIDEND_COUNTRY)
        fallback = currency_for_country(country)
        logger.warning(f"Unsupported dividend currency '{v}' for country {country}; using {fallback.value}.")
        return fallback

    @field_validator("country", mode="before")
    @classmethod
    def _parse_country(cls, v: Any) -> str:
        code = "" if v is None else str(v).strip()
        return code or DEFAULT_DIVIDEND_COUNTRY


class ForeignDividends(FormSection):
    """Príloha č.2 dividends. Rates are annual averages, foreign units per 1 EUR."""
    enabled: bool = False
    entries: List[DividendEntry] = Field(default_factory=list)
    ecb_rate: Decimal = Field(constants.ECB_RATE_USD, alias="ecbRate")
    ecb_rate_override: bool = Field(False, alias="ecbRateOverride")
    czk_rate: Decimal = Field(constants.ECB_RATE_CZK, alias="czkRate")
    czk_rate_override: bool = Field(False, alias="czkRateOverride")

    @field_validator("entries", mode="before")
    @classmethod
    def _parse_entries(cls, v: Any) -> List[DividendEntry]:
        return _valid_entries(v, DividendEntry, "dividends")

    @field_validator("ecb_rate", "czk_rate", mode="before")
    @classmethod
    def _parse_rate(cls, v: Any) -> Decimal:
        return to_decimal(v)


class FundSaleEntry(FormSection):
    entry_id: str = Field("", alias="id")
    fund_name: str = Field("", alias="fundName")
    purchase_amount: Decimal = Field(ZERO, alias="purchaseAmount")
    sale_amount: Decimal = Field(ZERO, alias="saleAmount")

    @field_validator("entry_id", "fund_name", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> str:
        return _clean_text(v)

    @field_validator("purchase_amount", "sale_amount", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)


class MutualFundSales(FormSection):
    enabled: bool = False
    entries: List[FundSaleEntry] = Field(default_factory=list)

    @field_validator("entries", mode="before")
    @classmethod
    def _parse_entries(cls, v: Any) -> List[FundSaleEntry]:
        return _valid_entries(v, FundSaleEntry, "mutualFunds")


class StockSaleEntry(FormSection):
    entry_id: str = Field("", alias="id")
    ticker: str = ""
    purchase_amount: Decimal = Field(ZERO, alias="purchaseAmount")
    sale_amount: Decimal = Field(ZERO, alias="saleAmount")

    @field_validator("entry_id", "ticker", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> str:
        return _clean_text(v)

    @field_validator("purchase_amount", "sale_amount", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)


class StockSales(FormSection):
    enabled: bool = False
    entries: List[StockSaleEntry] = Field(default_factory=list)

    @field_validator("entries", mode="before")
    @classmethod
    def _parse_entries(cls, v: Any) -> List[StockSaleEntry]:
        return _valid_entries(v, StockSaleEntry, "stockSales")


class MortgageInterest(FormSection):
    enabled: bool = False
    interest_paid: Decimal = Field(ZERO, alias="zaplateneUroky")
    months: int = Field(0, alias="pocetMesiacov")
    interest_start_date: Optional[date] = Field(None, alias="datumZacatiaUroceniaUveru")
    contract_date: Optional[date] = Field(None, alias="datumUzavretiaZmluvy")
    confirm_4_years: bool = Field(False, alias="confirm4Years")

    @field_validator("interest_paid", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @field_validator("months", mode="before")
    @classmethod
    def _parse_months(cls, v: Any) -> int:
        return _parse_months_count(v)

    @field_validator("interest_start_date", "contract_date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> Optional[date]:
        return parse_date(v)


class SpouseNCZD(FormSection):
    enabled: bool = False
    name: str = Field("", alias="priezviskoMeno")
    birth_number: str = Field("", alias="rodneCislo")
    own_income: Decimal = Field(ZERO, alias="vlastnePrijmy")
    months: int = Field(0, alias="pocetMesiacov")

    @field_validator("name", "birth_number", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> str:
        return _clean_text(v)

    @field_validator("own_income", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @field_validator("months", mode="before")
    @classmethod
    def _parse_months(cls, v: Any) -> int:
        return _parse_months_count(v)


class DDSContributions(FormSection):
    """Supplementary pension savings contributions (r.75)."""
    enabled: bool = False
    contributions: Decimal = Field(ZERO, alias="prispevky")

    @field_validator("contributions", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)


class ChildEntry(FormSection):
    entry_id: str = Field("", alias="id")
    name: str = Field("", alias="priezviskoMeno")
    birth_number: str = Field("", alias="rodneCislo")
    months: List[bool] = Field(default_factory=_whole_year)
    whole_year: bool = Field(True, alias="wholeYear")

    @field_validator("entry_id", "name", "birth_number", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> str:
        return _clean_text(v)

    @field_validator("months", mode="before")
    @classmethod
    def _normalize_months(cls, v: Any) -> List[bool]:
        if not isinstance(v, (list, tuple)):
            return _whole_year()
        flags = [bool(flag) for flag in list(v)[:12]]
        return flags + [False] * (12 - len(flags))


class ChildBonus(FormSection):
    enabled: bool = False
    children: List[ChildEntry] = Field(default_factory=list)
    bonus_paid_by_employer: Decimal = Field(ZERO, alias="bonusPaidByEmployer")

    @field_validator("children", mode="before")
    @classmethod
    def _parse_children(cls, v: Any) -> List[ChildEntry]:
        return _valid_entries(v, ChildEntry, "childBonus")

    @field_validator("bonus_paid_by_employer", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)


class TwoPercentAllocation(FormSection):
    enabled: bool = False
    ico: str = ""
    name: str = Field("", alias="obchMeno")
    volunteer_3_percent: bool = Field(False, alias="splnam3per")
    consent_to_share: bool = Field(False, alias="suhlasSoZaslanim")

    @field_validator("ico", "name", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> str:
        return _clean_text(v)


class ParentInfo(FormSection):
    first_name: str = Field("", alias="meno")
    surname: str = Field("", alias="priezvisko")
    birth_number: str = Field("", alias="rodneCislo")

    @field_validator("*", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> str:
        return _clean_text(v)

    def is_filled(self) -> bool:
        return bool(self.first_name or self.surname or self.birth_number)


class ParentTaxAllocation(FormSection):
    choice: ParentChoice = ParentChoice.NONE
    parent1: ParentInfo = Field(default_factory=ParentInfo)
    parent2: ParentInfo = Field(default_factory=ParentInfo)
    adopted: bool = Field(False, alias="osvojeny")

    @field_validator("choice", mode="before")
    @classmethod
    def _parse_choice(cls, v: Any) -> ParentChoice:
        if isinstance(v, ParentChoice):
            return v
        text = "" if v is None else str(v).strip().lower()
        for choice in ParentChoice:
            if choice.value == text:
                return choice
        if text:
            logger.warning(f"Unknown parent allocation choice '{v}'; using '{ParentChoice.NONE.value}'.")
        return ParentChoice.NONE


class TaxFormData(FormSection):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo, alias="personalInfo")
    employment: EmploymentIncome = Field(default_factory=EmploymentIncome)
    dividends: ForeignDividends = Field(default_factory=ForeignDividends)
    mutual_funds: MutualFundSales = Field(default_factory=MutualFundSales, alias="mutualFunds")
    stock_sales: StockSales = Field(default_factory=StockSales, alias="stockSales")
    mortgage: MortgageInterest = Field(default_factory=MortgageInterest)
    spouse: SpouseNCZD = Field(default_factory=SpouseNCZD)
    dds: DDSContributions = Field(default_factory=DDSContributions)
    child_bonus: ChildBonus = Field(default_factory=ChildBonus, alias="childBonus")
    two_percent: TwoPercentAllocation = Field(default_factory=TwoPercentAllocation, alias="twoPercent")
    parent_allocation: ParentTaxAllocation = Field(default_factory=ParentTaxAllocation, alias="parentAllocation")

    def to_persisted_dict(self) -> Dict[str, Any]:
        """JSON-ready dump under the persisted keys, tagged with the schema version."""
        data = self.model_dump(mode="json", by_alias=True)
        data["schemaVersion"] = FORM_SCHEMA_VERSION
        return data


def default_form() -> TaxFormData:
    return TaxFormData()


def _section_key(name: str) -> str:
    field_info = TaxFormData.model_fields[name]
    return field_info.alias or name


def merge_with_defaults(data: Optional[Mapping[str, Any]]) -> TaxFormData:
    """
    Fills every missing section (and every missing field inside a section)
    with its default. Accepts both persisted keys and Python field names.
    A section that is not a mapping, or that does not validate, is replaced
    by its default and logged.
    """
    if not isinstance(data, Mapping):
        if data is not None:
            logger.warning(f"Form data of type {type(data).__name__} is not a mapping; using defaults.")
        return default_form()

    stored_version = data.get("schemaVersion")
    if stored_version is not None and stored_version != FORM_SCHEMA_VERSION:
        logger.info(f"Upgrading form data from schema version {stored_version} to {FORM_SCHEMA_VERSION}.")

    sections: Dict[str, FormSection] = {}
    for name, field_info in TaxFormData.model_fields.items():
        key = _section_key(name)
        section_model = field_info.annotation
        raw_section = data.get(key, data.get(name))
        if isinstance(raw_section, section_model):
            sections[name] = raw_section
            continue
        if raw_section is not None and not isinstance(raw_section, Mapping):
            logger.warning(f"Section '{key}' has unexpected type {type(raw_section).__name__}; using its defaults.")
            raw_section = None
        try:
            sections[name] = section_model.model_validate(raw_section or {})
        except ValidationError as e:
            logger.warning(f"Section '{key}' failed validation ({e.error_count()} error(s)); using its defaults.")
            sections[name] = section_model()
    return TaxFormData(**sections)
