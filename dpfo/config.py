# dpfo/config.py

from decimal import Decimal

# Tax year the engine, template and constants are built for
TAX_YEAR = 2025

# Default input / output locations used by the CLI
FORM_FILE_PATH = "data/form.json"
XML_OUTPUT_FILE_PATH = f"output/dpfo_b_{TAX_YEAR}.xml"

# Cache file for ECB annual average exchange rates
ECB_RATES_CACHE_FILE_PATH = "cache/ecb_annual_rates.json"
ECB_REQUEST_TIMEOUT_SECONDS = 15

# Numerical Precision
INTERNAL_CALCULATION_PRECISION = 28
DECIMAL_ROUNDING_MODE = "ROUND_HALF_UP" # Python's decimal module uses strings like 'ROUND_HALF_UP', 'ROUND_HALF_EVEN'

# Output/Reporting Precision (form rows are always two decimal places)
OUTPUT_PRECISION_AMOUNTS: Decimal = Decimal("0.01")

# Logging
LOG_LEVEL = "INFO"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
