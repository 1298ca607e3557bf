# dpfo/processing/form_warnings.py
"""
Completeness checks run before a return is exported. Warnings never block the
calculation; each one points at the wizard step and field that needs input.
"""
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from dpfo.domain.enums import ParentChoice
from dpfo.domain.form import ParentInfo, PersonalInfo, TaxFormData
from dpfo.identification.birth_number_validator import is_valid_birth_number
from dpfo.utils.type_utils import ZERO

_TEN_DIGITS = re.compile(r"^\d{10}$")

STEP_PERSONAL = 0
STEP_FAMILY = 1
STEP_MORTGAGE = 2
STEP_EMPLOYMENT = 3
STEP_SECURITIES = 4
STEP_DIVIDENDS = 5
STEP_ALLOCATIONS = 6


@dataclass(frozen=True)
class ValidationWarning:
    step: int
    section: str
    field: str


def has_valid_identity(personal_info: PersonalInfo) -> bool:
    """A 10-digit DIČ or a valid birth number."""
    tax_id = personal_info.tax_id.strip()
    if not tax_id:
        return False
    return bool(_TEN_DIGITS.match(tax_id)) or is_valid_birth_number(tax_id)


def _positive(value: Decimal) -> bool:
    return value > ZERO


def _parent_warnings(parent: ParentInfo, label: str) -> List[ValidationWarning]:
    warnings = []
    if not (parent.surname and parent.first_name and parent.birth_number):
        warnings.append(ValidationWarning(STEP_ALLOCATIONS, "2% rodičom", f"{label} (meno, priezvisko, rodné číslo)"))
    if parent.birth_number and not is_valid_birth_number(parent.birth_number):
        warnings.append(ValidationWarning(STEP_ALLOCATIONS, "2% rodičom", f"{label} (neplatné rodné číslo)"))
    return warnings


def get_validation_warnings(form: TaxFormData) -> List[ValidationWarning]:
    warnings: List[ValidationWarning] = []
    personal = form.personal_info

    if not personal.tax_id:
        warnings.append(ValidationWarning(STEP_PERSONAL, "Osobné údaje", "DIČ"))
    elif not has_valid_identity(personal):
        warnings.append(ValidationWarning(STEP_PERSONAL, "Osobné údaje", "DIČ / Rodné číslo (neplatný formát)"))
    for value, label in ((personal.first_name, "Meno"), (personal.surname, "Priezvisko"),
                         (personal.street, "Ulica"), (personal.house_number, "Číslo"),
                         (personal.postal_code, "PSČ"), (personal.municipality, "Obec")):
        if not value:
            warnings.append(ValidationWarning(STEP_PERSONAL, "Osobné údaje", label))

    spouse = form.spouse
    if spouse.enabled:
        if not spouse.name:
            warnings.append(ValidationWarning(STEP_FAMILY, "Manžel/manželka", "Priezvisko a meno"))
        if not spouse.birth_number:
            warnings.append(ValidationWarning(STEP_FAMILY, "Manžel/manželka", "Rodné číslo"))
        elif not is_valid_birth_number(spouse.birth_number):
            warnings.append(ValidationWarning(STEP_FAMILY, "Manžel/manželka", "Rodné číslo (neplatný formát)"))

    if form.child_bonus.enabled and not any(c.name and c.birth_number for c in form.child_bonus.children):
        warnings.append(ValidationWarning(STEP_FAMILY, "Deti", "Aspoň 1 dieťa (meno + rodné číslo)"))

    mortgage = form.mortgage
    if mortgage.enabled:
        if not _positive(mortgage.interest_paid):
            warnings.append(ValidationWarning(STEP_MORTGAGE, "Hypotéka", "Zaplatené úroky"))
        if mortgage.months <= 0:
            warnings.append(ValidationWarning(STEP_MORTGAGE, "Hypotéka", "Počet mesiacov"))
        if mortgage.interest_start_date is None:
            warnings.append(ValidationWarning(STEP_MORTGAGE, "Hypotéka", "Dátum začatia úročenia"))
        if mortgage.contract_date is None:
            warnings.append(ValidationWarning(STEP_MORTGAGE, "Hypotéka", "Dátum uzavretia zmluvy"))

    employment = form.employment
    if employment.enabled:
        if not _positive(employment.r36):
            warnings.append(ValidationWarning(STEP_EMPLOYMENT, "Zamestnanie", "Úhrn príjmov (r.01)"))
        if not _positive(employment.r37):
            warnings.append(ValidationWarning(STEP_EMPLOYMENT, "Zamestnanie", "Povinné poistné (r.02)"))
        if not _positive(employment.r131):
            warnings.append(ValidationWarning(STEP_EMPLOYMENT, "Zamestnanie", "Preddavky na daň (r.04)"))

    if form.mutual_funds.enabled and not any(_positive(e.sale_amount) for e in form.mutual_funds.entries):
        warnings.append(ValidationWarning(STEP_SECURITIES, "Fondy", "Aspoň 1 predaj (príjem)"))
    if form.stock_sales.enabled and not any(
            _positive(e.sale_amount) or _positive(e.purchase_amount) for e in form.stock_sales.entries):
        warnings.append(ValidationWarning(STEP_SECURITIES, "Akcie (§8)", "Aspoň 1 obchod (kúpna/predajná cena)"))

    if form.dividends.enabled and not any(
            e.country and (_positive(e.amount_original) or _positive(e.amount_eur)) for e in form.dividends.entries):
        warnings.append(ValidationWarning(STEP_DIVIDENDS, "Dividendy", "Aspoň 1 dividendový príjem"))

    if form.two_percent.enabled and not form.two_percent.ico:
        warnings.append(ValidationWarning(STEP_ALLOCATIONS, "2% dane", "IČO organizácie"))
    parents = form.parent_allocation
    if parents.choice != ParentChoice.NONE:
        warnings.extend(_parent_warnings(parents.parent1, "Rodič 1"))
        if parents.choice == ParentChoice.BOTH:
            warnings.extend(_parent_warnings(parents.parent2, "Rodič 2"))

    return warnings


def get_step_blocking_issues(form: TaxFormData, step: int) -> List[ValidationWarning]:
    return [warning for warning in get_validation_warnings(form) if warning.step == step]
