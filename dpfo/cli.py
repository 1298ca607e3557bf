# dpfo/cli.py
import argparse
from typing import Optional, Sequence

import dpfo.config as config

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def parse_arguments(argv: Optional[Sequence[str]] = None):
    """Parses command line arguments for the application."""
    parser = argparse.ArgumentParser(description="Slovak personal income tax return (DPFO typ B) calculator")

    # Inputs
    parser.add_argument("--form", default=None, help=f"Path to the form data file (JSON or YAML). Defaults to {config.FORM_FILE_PATH} unless --import-xml is given.")
    parser.add_argument("--import-xml", type=str, default=None, metavar="PATH", help="Start from a previously exported DPFO XML return.")

    # Outputs
    parser.add_argument("--export-xml", type=str, nargs="?", const=config.XML_OUTPUT_FILE_PATH, default=None, metavar="PATH",
                        help=f"Write the return as DPFO XML (default path: {config.XML_OUTPUT_FILE_PATH}).")
    parser.add_argument("--save-form", type=str, default=None, metavar="PATH", help="Save the (merged) form data as JSON.")

    # Reporting options
    parser.add_argument("--report", action="store_true", help="Print a console summary of the calculated return.")
    parser.add_argument("--pdf-output-file", type=str, default=None, help="Filename for the PDF summary.")
    parser.add_argument("--show-warnings", action="store_true", help="List fields that still need input before filing.")

    # Operational modes
    parser.add_argument("--fetch-ecb-rates", action="store_true", help="Refresh USD/CZK annual average rates from the ECB (unless overridden in the form).")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=config.LOG_LEVEL, type=str.upper, help="Logging verbosity.")

    args = parser.parse_args(argv)

    if args.form is None and args.import_xml is None:
        args.form = config.FORM_FILE_PATH

    return args
