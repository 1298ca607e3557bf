# dpfo/main.py
import logging
import os
import sys
from decimal import getcontext
from typing import Optional, Sequence

import dpfo.config as config
from dpfo.cli import parse_arguments
from dpfo.domain.form import TaxFormData
from dpfo.engine.calculation_engine import calculate_tax
from dpfo.parsers.form_loader import FormLoadError, load_form, save_form
from dpfo.processing.form_warnings import get_validation_warnings, has_valid_identity
from dpfo.reporting.console_reporter import generate_console_tax_report
from dpfo.reporting.pdf_generator import PdfReportGenerator
from dpfo.utils.currency_converter import refresh_dividend_rates
from dpfo.utils.exchange_rate_provider import ECBAnnualRateProvider
from dpfo.xmlform.mapper import to_xml_string
from dpfo.xmlform.parser import from_document

logger = logging.getLogger(__name__)

VALID_ROUNDING_MODES = ["ROUND_CEILING", "ROUND_DOWN", "ROUND_FLOOR", "ROUND_HALF_DOWN",
                        "ROUND_HALF_EVEN", "ROUND_HALF_UP", "ROUND_UP", "ROUND_05UP"]


def setup_logging(level: str = config.LOG_LEVEL):
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=config.LOG_FORMAT)


def setup_decimal_context():
    """Sets the global decimal precision and rounding mode."""
    getcontext().prec = config.INTERNAL_CALCULATION_PRECISION
    rounding_mode_to_set = config.DECIMAL_ROUNDING_MODE
    if rounding_mode_to_set not in VALID_ROUNDING_MODES:
        logger.warning(f"Invalid DECIMAL_ROUNDING_MODE '{rounding_mode_to_set}' in config. Using ROUND_HALF_UP as fallback.")
        rounding_mode_to_set = "ROUND_HALF_UP"

    getcontext().rounding = rounding_mode_to_set
    logger.debug(f"Global decimal precision set to {getcontext().prec}, rounding mode to {getcontext().rounding}.")


def _load_input(args) -> TaxFormData:
    if args.import_xml:
        with open(args.import_xml, 'rb') as f:
            form = from_document(f.read())
        logger.info(f"Imported form data from XML return {args.import_xml}")
        return form
    return load_form(args.form)


def main_application(argv: Optional[Sequence[str]] = None):
    """
    Main application entry point.
    Loads the form, calculates the return, and writes the requested outputs.
    """
    args = parse_arguments(argv)
    setup_logging(args.log_level)
    setup_decimal_context()

    logger.info(f"Starting DPFO typ B calculation for tax year {config.TAX_YEAR}...")

    try:
        form = _load_input(args)
    except (FormLoadError, OSError) as e:
        logger.critical(f"Could not load form data: {e}. Exiting.")
        sys.exit(1)

    if args.fetch_ecb_rates and form.dividends.enabled:
        provider = ECBAnnualRateProvider()
        form = form.model_copy(update={"dividends": refresh_dividend_rates(form.dividends, provider, config.TAX_YEAR)})

    result = calculate_tax(form)
    warnings = get_validation_warnings(form)
    if warnings:
        logger.info(f"{len(warnings)} field(s) still need input (use --show-warnings to list them).")

    if args.save_form:
        save_form(form, args.save_form)

    if args.report or args.show_warnings:
        generate_console_tax_report(form, result, config.TAX_YEAR, warnings if args.show_warnings else None)

    if args.pdf_output_file:
        PdfReportGenerator(form, result, config.TAX_YEAR, warnings).generate(args.pdf_output_file)

    if args.export_xml:
        if not has_valid_identity(form.personal_info):
            logger.critical("Cannot export XML: a 10-digit DIČ or a valid birth number is required. Exiting.")
            sys.exit(1)
        xml_text = to_xml_string(form, result)
        directory = os.path.dirname(args.export_xml)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(args.export_xml, 'w', encoding='utf-8') as f:
            f.write(xml_text)
        logger.info(f"DPFO XML written to {args.export_xml}")

    if result.is_refund:
        logger.info(f"Result: refund of {result.final_tax_refund} EUR (r.136).")
    else:
        logger.info(f"Result: {result.final_tax_to_pay} EUR to pay (r.135).")
    logger.info("DPFO typ B calculation finished.")


if __name__ == "__main__":
    main_application()
