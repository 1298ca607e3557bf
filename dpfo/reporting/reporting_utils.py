# dpfo/reporting/reporting_utils.py
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, NamedTuple

import dpfo.config as config
from dpfo.domain.enums import ParentChoice
from dpfo.domain.form import TaxFormData
from dpfo.domain.results import TaxCalculationResult
from dpfo.utils.type_utils import safe_decimal

logger = logging.getLogger(__name__)

NBSP = "\u00a0"


class ReportRow(NamedTuple):
    section: str
    row: str
    label: str
    value: str


# Short Slovak labels of the rows shown in summaries, in form order
ROW_LABELS = {
    "r36": "Úhrn príjmov zo závislej činnosti",
    "r36a": "Príjmy z dohôd",
    "r37": "Povinné poistné",
    "r38": "Základ dane zo závislej činnosti",
    "r66": "Príjmy z podielových listov (§7)",
    "r67": "Výdavky (§7)",
    "r68": "Osobitný základ dane (§7)",
    "r69": "Príjmy z predaja cenných papierov (§8)",
    "r70": "Výdavky (§8)",
    "r71": "Základ dane (§8) po oslobodení",
    "r72": "Základ dane z §5",
    "r73": "NČZD na daňovníka",
    "r74": "NČZD na manžela/manželku",
    "r75": "Príspevky na DDS",
    "r77": "NČZD spolu",
    "r78": "Základ dane po znížení o NČZD",
    "r80": "Základ dane (§4 ods.1 písm. a)",
    "r81": "Daň z r.80",
    "r90": "Daň zo základu dane",
    "r106": "Daň z osobitného základu (§7)",
    "r115": "Daň z osobitného základu spolu",
    "r116": "Daň celkom",
    "r117": "Daňový bonus na deti",
    "r118": "Daň znížená o daňový bonus",
    "r119": "Bonus priznaný zamestnávateľom",
    "r120": "Rozdiel bonusu",
    "r121": "Bonus na vyplatenie",
    "r123": "Daňový bonus na zaplatené úroky",
    "r124": "Daň znížená o bonus na úroky",
    "r126": "Bonus na úroky na vyplatenie",
    "r127": "Vyplatený bonus na úroky",
    "r131": "Preddavky zaplatené zamestnávateľom",
    "r135": "Daň na úhradu",
    "r136": "Daňový preplatok",
    "pril2_pr1": "Podiely na zisku (príloha č.2, r.1)",
    "pril2_pr9": "Daň z dividend (r.9)",
    "pril2_pr14": "Daň zaplatená v zahraničí (r.14)",
    "pril2_pr17": "Zápočet dane (r.17)",
    "pril2_pr18": "Daň po zápočte (r.18)",
    "r152": "Podiel zaplatenej dane (§50)",
    "parent_alloc_per_parent": "Podiel dane pre rodiča (§50aa)",
}


def format_amount_sk(value: Any) -> str:
    """sk-SK display format: non-breaking space for thousands, comma for decimals."""
    amount = safe_decimal(value, default=Decimal("0"))
    quantized = amount.quantize(config.OUTPUT_PRECISION_AMOUNTS, rounding=ROUND_HALF_UP)
    if quantized.is_zero():
        quantized = abs(quantized)
    return f"{quantized:,.2f}".replace(",", NBSP).replace(".", ",")


def _rows(section: str, result: TaxCalculationResult, names: List[str]) -> List[ReportRow]:
    return [ReportRow(section, name, ROW_LABELS[name], getattr(result, name)) for name in names]


def report_rows(form: TaxFormData, result: TaxCalculationResult) -> List[ReportRow]:
    """The rows worth showing for this form: enabled sections plus the settlement."""
    rows: List[ReportRow] = []
    if form.employment.enabled:
        rows.append(ReportRow("Zamestnanie (§5)", "r36", ROW_LABELS["r36"], str(form.employment.r36)))
        if not form.employment.r36a.is_zero():
            rows.append(ReportRow("Zamestnanie (§5)", "r36a", ROW_LABELS["r36a"], str(form.employment.r36a)))
        rows.append(ReportRow("Zamestnanie (§5)", "r37", ROW_LABELS["r37"], str(form.employment.r37)))
        rows.extend(_rows("Zamestnanie (§5)", result, ["r38"]))
    if form.mutual_funds.enabled:
        rows.extend(_rows("Podielové fondy (§7)", result, ["r66", "r67", "r68", "r106"]))
    if form.stock_sales.enabled:
        rows.extend(_rows("Cenné papiere (§8)", result, ["r69", "r70", "r71"]))
    if form.dividends.enabled:
        rows.extend(_rows("Dividendy (príloha č.2)", result,
                          ["pril2_pr1", "pril2_pr9", "pril2_pr14", "pril2_pr17", "pril2_pr18"]))

    nczd = ["r72", "r73"]
    if form.spouse.enabled:
        nczd.append("r74")
    if form.dds.enabled:
        nczd.append("r75")
    rows.extend(_rows("Nezdaniteľné časti", result, nczd + ["r77", "r78"]))
    rows.extend(_rows("Daň", result, ["r80", "r81", "r116"]))

    if form.child_bonus.enabled:
        rows.extend(_rows("Daňový bonus na deti", result, ["r117", "r118", "r119", "r120", "r121"]))
    if form.mortgage.enabled:
        rows.extend(_rows("Bonus na úroky", result, ["r123", "r124", "r126", "r127"]))

    rows.extend(_rows("Vysporiadanie", result, ["r131", "r135", "r136"]))

    if form.two_percent.enabled:
        rows.extend(_rows("Poukázanie dane", result, ["r152"]))
    if form.parent_allocation.choice != ParentChoice.NONE:
        rows.extend(_rows("Poukázanie dane", result, ["parent_alloc_per_parent"]))
    return rows
