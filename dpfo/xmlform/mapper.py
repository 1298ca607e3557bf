# dpfo/xmlform/mapper.py
"""
Maps the form and its calculation to the DPFO typ B XML e-form
(financnasprava.sk, form 621).

The empty return template is deep-copied and only the rows of enabled
sections are filled. Repeated structures keep the schema minimum of
placeholder slots (4 children, 6 foreign-income rows).
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from lxml import etree

from dpfo.domain.enums import ParentChoice
from dpfo.domain.form import ChildEntry, ParentInfo, TaxFormData
from dpfo.domain.results import TaxCalculationResult
from dpfo.utils.currency_converter import entry_amount_eur
from dpfo.utils.type_utils import ZERO, format_amount, format_date_sk
from dpfo.xmlform.template import (
    CHILD_FIELDS, FOREIGN_INCOME_FIELDS, MIN_CHILD_SLOTS, MIN_FOREIGN_INCOME_SLOTS, new_document,
)

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'
INDENT = "   "

DIVIDEND_INCOME_PARAGRAPH = "51e"
DIVIDEND_INCOME_SUBSECTION = "1"
ATTACHMENTS_WITH_EMPLOYMENT = "7"
ATTACHMENTS_WITHOUT_EMPLOYMENT = "6"

# Rows filled from the calculation regardless of which sections are enabled
CALCULATED_ROWS = [
    "r72", "r73", "r74", "r75", "r77", "r78", "r80", "r81", "r90", "r106", "r115", "r116",
    "r117", "r118", "r119", "r120", "r121", "r122", "r123", "r124", "r126", "r127",
    "r131", "r135", "r136",
]
# Rows for features the return does not support, always reported as zero
ZERO_ROWS = ["r125", "r128", "r129", "r130", "r132", "r133", "r134"]


def _flag(value: bool) -> str:
    return "1" if value else "0"


def _ensure(parent: etree._Element, path: str) -> etree._Element:
    element = parent.find(path)
    if element is not None:
        return element
    logger.debug(f"Template has no '{path}' under <{parent.tag}>, creating it.")
    current = parent
    for tag in path.split("/"):
        child = current.find(tag)
        current = child if child is not None else etree.SubElement(current, tag)
    return current


def _set(parent: etree._Element, path: str, value: Optional[str]) -> None:
    _ensure(parent, path).text = value or None


def _set_amount(parent: etree._Element, path: str, value: Decimal) -> None:
    _set(parent, path, format_amount(value))


def _fill_repeated(parent: etree._Element, tag: str, rows: Sequence[Dict[str, str]],
                   field_order: Sequence[str], minimum: int, placeholder: Dict[str, str]) -> None:
    """Replaces all <tag> children with rows, padded with placeholders up to minimum."""
    existing = parent.findall(tag)
    position = parent.index(existing[0]) if existing else len(parent)
    for element in existing:
        parent.remove(element)

    padded: List[Dict[str, str]] = list(rows)
    while len(padded) < minimum:
        padded.append(placeholder)

    for offset, row in enumerate(padded):
        element = etree.Element(tag)
        for field_name in field_order:
            etree.SubElement(element, field_name).text = row.get(field_name) or None
        parent.insert(position + offset, element)


def _child_row(child: ChildEntry) -> Dict[str, str]:
    row = {"priezviskoMeno": child.name, "rodneCislo": child.birth_number, "m00": "0"}
    for month, eligible in enumerate(child.months, start=1):
        row[f"m{month:02d}"] = _flag(eligible)
    return row


def _empty_child_row() -> Dict[str, str]:
    row = {field_name: "0" for field_name in CHILD_FIELDS}
    row.update(priezviskoMeno="", rodneCislo="")
    return row


def _fill_header(root: etree._Element, form: TaxFormData) -> None:
    header = root.find("hlavicka")
    info = form.personal_info
    _set(header, "dic", info.tax_id)
    _set(header, "priezvisko", info.surname)
    _set(header, "meno", info.first_name)
    _set(header, "titul", info.title_before)
    _set(header, "titulZa", info.title_after)
    _set(header, "adresaTrvPobytu/ulica", info.street)
    _set(header, "adresaTrvPobytu/cislo", info.house_number)
    _set(header, "adresaTrvPobytu/psc", info.postal_code)
    _set(header, "adresaTrvPobytu/obec", info.municipality)
    _set(header, "adresaTrvPobytu/stat", info.state)


def _fill_employment(body: etree._Element, form: TaxFormData, result: TaxCalculationResult) -> None:
    employment = form.employment
    if not employment.enabled:
        return
    _set_amount(body, "r36", employment.r36)
    _set_amount(body, "r37", employment.r37)
    _set(body, "r38", result.r38)
    if not employment.r36a.is_zero():
        _set_amount(body, "r36a", employment.r36a)
    if not employment.r37.is_zero():
        # Príloha č.4: pr8 must equal r.37
        _set_amount(body, "socZdravPoistenie/pr8", employment.r37)


def _fill_family(body: etree._Element, form: TaxFormData) -> None:
    spouse = form.spouse
    if spouse.enabled:
        _set(body, "r31/priezviskoMeno", spouse.name)
        _set(body, "r31/rodneCislo", spouse.birth_number)
        _set(body, "r32/uplatnujemNCZDNaManzela", "1")
        _set_amount(body, "r32/vlastnePrijmy", spouse.own_income)
        _set(body, "r32/pocetMesiacov", str(spouse.months) if spouse.months else "")

    child_bonus = form.child_bonus
    if child_bonus.enabled and child_bonus.children:
        rows = [_child_row(child) for child in child_bonus.children]
        _fill_repeated(_ensure(body, "r33"), "dieta", rows, CHILD_FIELDS, MIN_CHILD_SLOTS, _empty_child_row())


def _fill_mortgage(body: etree._Element, form: TaxFormData) -> None:
    mortgage = form.mortgage
    if not mortgage.enabled:
        return
    _set(body, "r35/uplatDanBonusZaplatUroky", "1")
    _set_amount(body, "r35/zaplateneUroky", mortgage.interest_paid)
    _set(body, "r35/pocetMesiacov", str(mortgage.months) if mortgage.months else "")
    _set(body, "r35/datumZacatiaUroceniaUveru", format_date_sk(mortgage.interest_start_date))
    _set(body, "r35/datumUzavretiaZmluvyOUvere", format_date_sk(mortgage.contract_date))


def _fill_securities(body: etree._Element, form: TaxFormData, result: TaxCalculationResult) -> None:
    if form.mutual_funds.enabled and form.mutual_funds.entries:
        # Tab. 2 r.7 (podielové listy) and r.11 (total, funds only)
        for row in ("t2r7", "t2r11"):
            _set(body, f"tabulka2/{row}/s1", result.total_fund_income)
            _set(body, f"tabulka2/{row}/s2", result.total_fund_expense)
        _set(body, "r66", result.r66)
        _set(body, "r67", result.r67)
        _set(body, "r68", result.r68)

    if form.stock_sales.enabled and form.stock_sales.entries:
        for row in ("t3r1", "t3r2"):
            _set(body, f"tabulka3/{row}/s1", result.r69)
            _set(body, f"tabulka3/{row}/s2", result.r70)
        _set(body, "r69", result.r69)
        _set(body, "r70", result.r70)
        _set(body, "r71", result.r71)


def _fill_tax_rows(body: etree._Element, result: TaxCalculationResult) -> None:
    for row in CALCULATED_ROWS:
        _set(body, row, getattr(result, row))
    for row in ZERO_ROWS:
        _set(body, row, format_amount(ZERO))


def _set_parent(body: etree._Element, slot: str, parent: ParentInfo) -> None:
    _set(body, f"r153/{slot}/rodneCislo", parent.birth_number)
    _set(body, f"r153/{slot}/priezvisko", parent.surname)
    _set(body, f"r153/{slot}/meno", parent.first_name)


def _fill_allocations(body: etree._Element, form: TaxFormData, result: TaxCalculationResult) -> None:
    two_percent = form.two_percent
    if two_percent.enabled:
        _set(body, "r151/neuplatnujemPar50", "0")
        _set(body, "r151/splnam3per", _flag(two_percent.volunteer_3_percent))
        _set(body, "r151/ico", two_percent.ico)
        name_lines = _ensure(body, "r151/obchodneMeno").findall("riadok")
        if name_lines:
            name_lines[0].text = two_percent.name or None
        else:
            _set(body, "r151/obchodneMeno/riadok", two_percent.name)
        _set(body, "r151/suhlasSoZaslanim", _flag(two_percent.consent_to_share))
        _set(body, "r152", result.r152)

    parents = form.parent_allocation
    if parents.choice != ParentChoice.NONE:
        _set(body, "r153/neuplatnujemPar50aa", "0")
        _set_parent(body, "rodicA", parents.parent1)
        if parents.choice == ParentChoice.BOTH:
            _set_parent(body, "rodicB", parents.parent2)
        _set(body, "r153/bolZverenyDoStarostlivosti", _flag(parents.adopted))


def dividends_by_country(form: TaxFormData) -> "OrderedDict[str, Decimal]":
    """EUR dividend income per country code, in order of first appearance."""
    totals: "OrderedDict[str, Decimal]" = OrderedDict()
    for entry in form.dividends.entries:
        totals[entry.country] = totals.get(entry.country, ZERO) + entry_amount_eur(entry, form.dividends)
    return totals


def _fill_dividends(body: etree._Element, form: TaxFormData, result: TaxCalculationResult) -> None:
    dividends = form.dividends
    if not (dividends.enabled and dividends.entries):
        return
    pril2 = _ensure(body, "pril2PodielyNaZisku")
    _set(pril2, "pr1", result.pril2_pr1)
    _set(pril2, "pr6/s1", result.pril2_pr6)
    _set(pril2, "pr7", result.pril2_pr7)
    _set(pril2, "pr8", result.pril2_pr8)
    _set(pril2, "pr9", result.pril2_pr9)
    _set(pril2, "pr13", result.pril2_pr13)
    _set(pril2, "pr14", result.pril2_pr14)
    _set(pril2, "pr15", result.pril2_pr15)
    _set(pril2, "pr16", result.pril2_pr16)
    _set(pril2, "pr17", result.pril2_pr17)
    _set(pril2, "pr18", result.pril2_pr18)
    _set(pril2, "pr28", result.pril2_pr28)

    # Oddiel XIII wants one row per country, not one per broker entry
    rows = [
        {
            "kodStatu": code,
            "druhPrimuPar": DIVIDEND_INCOME_PARAGRAPH,
            "druhPrimuOds": DIVIDEND_INCOME_SUBSECTION,
            "prijmy": format_amount(amount),
        }
        for code, amount in dividends_by_country(form).items()
    ]
    records = _ensure(body, "osobitneZaznamy")
    _set(records, "uvadza", "1")
    _fill_repeated(records, "udajeOprijmoch", rows, FOREIGN_INCOME_FIELDS, MIN_FOREIGN_INCOME_SLOTS, {})


def to_document(form: TaxFormData, result: TaxCalculationResult,
                declaration_date: Optional[date] = None) -> etree._Element:
    """
    Builds the XML tree of the return. Without a DIČ the untouched template is
    returned, since a return without identity cannot be filed.
    """
    root = new_document()
    if not form.personal_info.tax_id:
        logger.warning("No DIČ in personal info; returning the empty return template.")
        return root

    body = root.find("telo")
    _fill_header(root, form)
    _fill_employment(body, form, result)
    _fill_family(body, form)
    _fill_mortgage(body, form)
    _fill_securities(body, form, result)
    _fill_tax_rows(body, result)
    _fill_allocations(body, form, result)
    _fill_dividends(body, form, result)

    _set(body, "r154", ATTACHMENTS_WITH_EMPLOYMENT if form.employment.enabled else ATTACHMENTS_WITHOUT_EMPLOYMENT)

    today = format_date_sk(declaration_date or date.today())
    _set(body, "datumVyhlasenia", today)
    _set(body, "danovyPreplatokBonus/datum", today)
    if result.is_refund:
        _set(body, "danovyPreplatokBonus/vratitDanPreplatok", "1")
    return root


def to_xml_string(form: TaxFormData, result: TaxCalculationResult,
                  declaration_date: Optional[date] = None) -> str:
    root = to_document(form, result, declaration_date)
    etree.indent(root, space=INDENT)
    return XML_DECLARATION + etree.tostring(root, encoding="unicode")
