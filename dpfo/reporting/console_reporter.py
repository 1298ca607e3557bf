# dpfo/reporting/console_reporter.py
import logging
from typing import List, Optional

from dpfo.domain.form import TaxFormData
from dpfo.domain.results import TaxCalculationResult
from dpfo.processing.form_warnings import ValidationWarning
from dpfo.reporting.reporting_utils import format_amount_sk, report_rows

logger = logging.getLogger(__name__)


def generate_console_tax_report(form: TaxFormData, result: TaxCalculationResult, tax_year: int,
                                warnings: Optional[List[ValidationWarning]] = None):
    logger.info(f"Generating console summary of the DPFO typ B return for tax year {tax_year}...")
    info = form.personal_info
    print(f"\n--- Daňové priznanie DPFO typ B za rok {tax_year} (sumy v EUR) ---")
    name = " ".join(part for part in (info.title_before, info.first_name, info.surname, info.title_after) if part)
    print(f"Daňovník: {name or '-'}   DIČ: {info.tax_id or '-'}")

    current_section = None
    for row in report_rows(form, result):
        if row.section != current_section:
            print(f"\n{row.section}")
            current_section = row.section
        label = f"{row.row.replace('pril2_', 'príl.2 ')}  {row.label}"
        print(f"  {label:<60} {format_amount_sk(row.value):>14}")

    print("\n--- Výsledok ---")
    if result.is_refund:
        print(f"  Daňový preplatok (r.136): {format_amount_sk(result.final_tax_refund)} EUR")
    elif result.final_tax_to_pay != "0.00":
        print(f"  Daň na úhradu (r.135): {format_amount_sk(result.final_tax_to_pay)} EUR")
    else:
        print("  Nič na úhradu ani na vrátenie.")

    if warnings:
        print(f"\nUpozornenia ({len(warnings)}):")
        for warning in warnings:
            print(f"  [krok {warning.step + 1}] {warning.section}: {warning.field}")
    print("\n--- Koniec súhrnu ---")
