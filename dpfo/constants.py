# dpfo/constants.py
"""
Statutory figures for the DPFO typ B 2025 return.

Every amount the engine uses lives here. Multiples of the subsistence minimum
are kept as exact Decimal products; rounding happens only when a row is
formatted.
Sources: Zákon č. 595/2003 Z.z. o dani z príjmov, financnasprava.sk.
"""
from datetime import date
from decimal import Decimal

TAX_YEAR = 2025
FORM_TYPE = "B"

# Životné minimum valid 1.7.2024 - 30.6.2025 (EUR / month)
ZIVOTNE_MINIMUM = Decimal("273.99")

# NCZD for the taxpayer, §11 ods. 2
NCZD_ZAKLAD = Decimal("21") * ZIVOTNE_MINIMUM              # 5 753.79
NCZD_THRESHOLD = Decimal("92.8") * ZIVOTNE_MINIMUM         # 25 426.272
NCZD_MULTIPLIER_HIGH = Decimal("44.2") * ZIVOTNE_MINIMUM   # 12 110.358

# NCZD for the spouse, §11 ods. 3
NCZD_SPOUSE_ZAKLAD = Decimal("19.2") * ZIVOTNE_MINIMUM           # 5 260.608
NCZD_SPOUSE_MULTIPLIER_HIGH = Decimal("63.4") * ZIVOTNE_MINIMUM  # 17 370.966

# Supplementary pension savings (DDS) contributions, §11 ods. 8
DDS_MAX_CONTRIBUTION = Decimal("180")

# Progressive rates, §15
TAX_RATE_LOWER = Decimal("0.19")
TAX_RATE_UPPER = Decimal("0.25")
TAX_BRACKET_THRESHOLD = Decimal("176.8") * ZIVOTNE_MINIMUM  # 48 441.432

# Flat rates for the special tax bases
CAPITAL_TAX_RATE = Decimal("0.19")   # §7
DIVIDEND_TAX_RATE = Decimal("0.07")  # §51e
DIVIDEND_TAX_RATE_FORM_VALUE = "7"   # Príloha č.2, pr.8

# Short-term securities gains, §9 ods. 1 písm. i)
STOCK_SHORT_TERM_EXEMPTION = Decimal("500")

# Mortgage interest bonus, §33a
MORTGAGE_BONUS_RATE = Decimal("0.5")
MORTGAGE_MAX_OLD = Decimal("400")
MORTGAGE_MAX_NEW = Decimal("1200")
MORTGAGE_OLD_CONTRACT_CUTOFF = date(2023, 12, 31)

# Child tax bonus, §33 (from 1.1.2025)
CHILD_BONUS_UNDER_15 = Decimal("100")
CHILD_BONUS_15_TO_18 = Decimal("50")
CHILD_BONUS_PHASE_OUT_THRESHOLD = Decimal("2145")  # monthly base
CHILD_BONUS_PHASE_OUT_DIVISOR = Decimal("10")

# Allocation to NGOs, §50
TWO_PERCENT_RATE = Decimal("0.02")
THREE_PERCENT_RATE = Decimal("0.03")
MIN_ALLOCATION = Decimal("3")

# Allocation to parents, §50aa (amount per parent)
PARENT_ALLOCATION_RATE = Decimal("0.02")
MIN_PARENT_ALLOCATION = Decimal("3")

# Tax payable up to this amount is not collected
SETTLEMENT_DE_MINIMIS = Decimal("5")

# ECB annual average rates for 2025 (foreign units per 1 EUR)
ECB_RATE_USD = Decimal("1.13")
ECB_RATE_CZK = Decimal("25.21")
