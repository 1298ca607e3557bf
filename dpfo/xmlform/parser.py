# dpfo/xmlform/parser.py
"""
Reads a DPFO typ B XML return (the format written by mapper.py) back into a
TaxFormData.

Import never fails: malformed XML, a foreign root element or a missing DIČ
all yield the default aggregate. A return for an earlier tax year only carries
over identity and the voluntary allocations (r151/r153), since statutory
amounts change from year to year.

Dividends are reconstructed from Oddiel XIII (one row per country). The
withheld tax total (pr14) is spread over the rows proportionally to their
share of pr1 and converted back to the original currency with the default
annual rate. This is a lossy approximation: only the EUR total per country
is guaranteed to survive an export/import cycle, not the per-broker split.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Union

from lxml import etree

import dpfo.config as config
from dpfo import constants
from dpfo.countries import DEFAULT_DIVIDEND_COUNTRY, currency_for_country, find_country_by_code
from dpfo.domain.enums import DividendCurrency, ParentChoice
from dpfo.domain.form import DEFAULT_STATE, PersonalInfo, TaxFormData, default_form, merge_with_defaults
from dpfo.utils.currency_converter import eur_to_original
from dpfo.utils.type_utils import ZERO, parse_date, safe_decimal, to_decimal

logger = logging.getLogger(__name__)

ROOT_TAG = "dokument"
DIVIDEND_INCOME_PARAGRAPH = "51e"


def _parse_root(xml_text: Union[str, bytes]) -> Optional[etree._Element]:
    if isinstance(xml_text, str):
        xml_text = xml_text.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)
    try:
        root = etree.fromstring(xml_text, parser=parser)
    except etree.XMLSyntaxError as e:
        logger.warning(f"Could not parse DPFO XML: {e}")
        return None

    for element in root.iter():
        if isinstance(element.tag, str) and "}" in element.tag:
            element.tag = etree.QName(element).localname

    if root.tag != ROOT_TAG:
        logger.warning(f"Unexpected root element <{root.tag}>, expected <{ROOT_TAG}>.")
        return None
    return root


def _text(parent: Optional[etree._Element], path: str) -> str:
    if parent is None:
        return ""
    element = parent.find(path)
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def _is_checked(parent: Optional[etree._Element], path: str) -> bool:
    return _text(parent, path) == "1"


def _personal_info_data(header: Optional[etree._Element]) -> Optional[Dict[str, str]]:
    tax_id = _text(header, "dic")
    if not tax_id:
        return None
    return {
        "dic": tax_id,
        "priezvisko": _text(header, "priezvisko"),
        "meno": _text(header, "meno"),
        "titul": _text(header, "titul"),
        "titulZa": _text(header, "titulZa"),
        "ulica": _text(header, "adresaTrvPobytu/ulica"),
        "cislo": _text(header, "adresaTrvPobytu/cislo"),
        "psc": _text(header, "adresaTrvPobytu/psc"),
        "obec": _text(header, "adresaTrvPobytu/obec"),
        "stat": _text(header, "adresaTrvPobytu/stat") or DEFAULT_STATE,
    }


def _employment(body: etree._Element) -> Dict[str, Any]:
    r36, r36a, r37, r131 = (_text(body, row) for row in ("r36", "r36a", "r37", "r131"))
    # r131 is always written on export, so an explicit zero does not mean employment
    enabled = bool(r36 or r36a or r37) or not to_decimal(r131).is_zero()
    return {"enabled": enabled, "r36": r36, "r36a": r36a, "r37": r37, "r131": r131}


def _mortgage(body: etree._Element) -> Dict[str, Any]:
    r35 = body.find("r35")
    if r35 is None:
        return {}
    return {
        "enabled": _is_checked(r35, "uplatDanBonusZaplatUroky"),
        "zaplateneUroky": _text(r35, "zaplateneUroky"),
        "pocetMesiacov": _text(r35, "pocetMesiacov"),
        "datumZacatiaUroceniaUveru": parse_date(_text(r35, "datumZacatiaUroceniaUveru")),
        "datumUzavretiaZmluvy": parse_date(_text(r35, "datumUzavretiaZmluvyOUvere")),
        "confirm4Years": False,
    }


def _mutual_funds(body: etree._Element) -> Dict[str, Any]:
    sale = _text(body, "tabulka2/t2r7/s1")
    purchase = _text(body, "tabulka2/t2r7/s2")
    if not (sale or purchase):
        return {}
    # The return only carries the totals, so all funds come back as one entry
    return {
        "enabled": True,
        "entries": [{"id": "imported-1", "fundName": "", "saleAmount": sale, "purchaseAmount": purchase}],
    }


def _stock_sales(body: etree._Element) -> Dict[str, Any]:
    sale = _text(body, "tabulka3/t3r1/s1")
    purchase = _text(body, "tabulka3/t3r1/s2")
    if not (sale or purchase):
        sale, purchase = _text(body, "r69"), _text(body, "r70")
    if not (sale or purchase):
        return {}
    return {
        "enabled": True,
        "entries": [{"id": "imported-stock-1", "ticker": "", "saleAmount": sale, "purchaseAmount": purchase}],
    }


def _dividend_rows(body: etree._Element) -> List[etree._Element]:
    rows = []
    for row in body.findall("osobitneZaznamy/udajeOprijmoch"):
        if not (_text(row, "kodStatu") or _text(row, "prijmy")):
            continue
        if _text(row, "druhPrimuPar") not in ("", DIVIDEND_INCOME_PARAGRAPH):
            logger.info(f"Skipping Oddiel XIII row with income paragraph '{_text(row, 'druhPrimuPar')}'.")
            continue
        rows.append(row)
    return rows


def _dividends(body: etree._Element) -> Dict[str, Any]:
    total_income = to_decimal(_text(body, "pril2PodielyNaZisku/pr1"))
    total_withheld = to_decimal(_text(body, "pril2PodielyNaZisku/pr14"))
    rows = _dividend_rows(body)
    usd_rate, czk_rate = constants.ECB_RATE_USD, constants.ECB_RATE_CZK

    entries = []
    for index, row in enumerate(rows):
        code = _text(row, "kodStatu") or DEFAULT_DIVIDEND_COUNTRY
        amount_eur = to_decimal(_text(row, "prijmy"))
        if total_income > ZERO:
            share = amount_eur / total_income
        else:
            share = Decimal("1") if len(rows) == 1 else ZERO
        withheld_eur = (total_withheld * share).quantize(config.OUTPUT_PRECISION_AMOUNTS, rounding=ROUND_HALF_UP)
        currency = currency_for_country(code)
        country = find_country_by_code(code)

        if currency == DividendCurrency.EUR:
            amount_original, withheld_original = amount_eur, withheld_eur
        else:
            amount_original = eur_to_original(amount_eur, currency, usd_rate, czk_rate)
            withheld_original = eur_to_original(withheld_eur, currency, usd_rate, czk_rate)

        entries.append({
            "id": f"imported-d-{index}",
            "ticker": "",
            "country": code,
            "countryName": country.name if country else code,
            "currency": currency.value,
            "amountOriginal": amount_original,
            "amountEur": amount_eur,
            "withheldTaxOriginal": withheld_original,
            "withheldTaxEur": withheld_eur,
        })

    if not entries:
        return {}
    return {"enabled": True, "entries": entries, "ecbRate": usd_rate, "czkRate": czk_rate}


def _spouse(body: etree._Element) -> Dict[str, Any]:
    r31 = body.find("r31")
    r32 = body.find("r32")
    if r31 is None or r32 is None:
        return {}
    name = _text(r31, "priezviskoMeno")
    birth_number = _text(r31, "rodneCislo")
    if not (_is_checked(r32, "uplatnujemNCZDNaManzela") or name or birth_number):
        return {}
    return {
        "enabled": True,
        "priezviskoMeno": name,
        "rodneCislo": birth_number,
        "vlastnePrijmy": _text(r32, "vlastnePrijmy"),
        "pocetMesiacov": _text(r32, "pocetMesiacov"),
    }


def _child_bonus(body: etree._Element) -> Dict[str, Any]:
    children = []
    for child in body.findall("r33/dieta"):
        name = _text(child, "priezviskoMeno")
        birth_number = _text(child, "rodneCislo")
        if not (name or birth_number):
            continue
        months = [_is_checked(child, f"m{month:02d}") for month in range(1, 13)]
        children.append({
            "id": f"imported-c-{len(children)}",
            "priezviskoMeno": name,
            "rodneCislo": birth_number,
            "months": months,
            "wholeYear": all(months),
        })

    paid_by_employer = _text(body, "r119")
    if not children and to_decimal(paid_by_employer).is_zero():
        return {}
    return {"enabled": bool(children), "children": children, "bonusPaidByEmployer": paid_by_employer}


def _dds(body: etree._Element) -> Dict[str, Any]:
    r75 = safe_decimal(_text(body, "r75"))
    if r75 is None or r75 <= ZERO:
        return {}
    return {"enabled": True, "prispevky": r75}


def _two_percent(body: etree._Element) -> Dict[str, Any]:
    r151 = body.find("r151")
    if r151 is None:
        return {}
    ico = _text(r151, "ico")
    name = _text(r151, "obchodneMeno/riadok")
    return {
        "enabled": bool(ico or name),
        "ico": ico,
        "obchMeno": name,
        "splnam3per": _is_checked(r151, "splnam3per"),
        "suhlasSoZaslanim": _is_checked(r151, "suhlasSoZaslanim"),
    }


def _parent(r153: etree._Element, slot: str) -> Dict[str, str]:
    return {
        "meno": _text(r153, f"{slot}/meno"),
        "priezvisko": _text(r153, f"{slot}/priezvisko"),
        "rodneCislo": _text(r153, f"{slot}/rodneCislo"),
    }


def _parent_allocation(body: etree._Element) -> Dict[str, Any]:
    r153 = body.find("r153")
    if r153 is None or _is_checked(r153, "neuplatnujemPar50aa"):
        return {}
    parent1 = _parent(r153, "rodicA")
    parent2 = _parent(r153, "rodicB")
    has_parent1 = any(parent1.values())
    has_parent2 = any(parent2.values())
    if has_parent1 and has_parent2:
        choice = ParentChoice.BOTH
    elif has_parent1:
        choice = ParentChoice.ONE
    else:
        choice = ParentChoice.NONE
    return {
        "choice": choice.value,
        "parent1": parent1,
        "parent2": parent2,
        "osvojeny": _is_checked(r153, "bolZverenyDoStarostlivosti"),
    }


def _document_year(header: etree._Element) -> Optional[int]:
    year_text = _text(header, "zdanovacieObdobie/rok")
    try:
        return int(year_text)
    except ValueError:
        return None


def parse_personal_info(xml_text: Union[str, bytes]) -> Optional[PersonalInfo]:
    """Identity and address from the header, or None without a parsable header and DIČ."""
    root = _parse_root(xml_text)
    if root is None:
        return None
    data = _personal_info_data(root.find("hlavicka"))
    return PersonalInfo.model_validate(data) if data else None


def from_document(xml_text: Union[str, bytes]) -> TaxFormData:
    root = _parse_root(xml_text)
    if root is None:
        return default_form()

    header = root.find("hlavicka")
    personal = _personal_info_data(header)
    if personal is None:
        logger.warning("DPFO XML has no DIČ in its header; using the default form.")
        return default_form()

    data: Dict[str, Any] = {"personalInfo": personal}
    body = root.find("telo")
    if body is None:
        return merge_with_defaults(data)

    data["twoPercent"] = _two_percent(body)
    data["parentAllocation"] = _parent_allocation(body)

    year = _document_year(header)
    if year is None or year < config.TAX_YEAR:
        logger.info(f"Return is for tax year {year}, not {config.TAX_YEAR}; importing identity and allocations only.")
        return merge_with_defaults(data)

    data.update(
        employment=_employment(body),
        mortgage=_mortgage(body),
        mutualFunds=_mutual_funds(body),
        stockSales=_stock_sales(body),
        dividends=_dividends(body),
        spouse=_spouse(body),
        dds=_dds(body),
        childBonus=_child_bonus(body),
    )
    logger.info(f"Imported DPFO return for tax year {year} (DIČ {personal['dic']}).")
    return merge_with_defaults(data)
