# tests/conftest.py
import pytest
from decimal import getcontext, ROUND_HALF_UP

from dpfo import config as app_config
from dpfo.domain.form import TaxFormData
from tests.support.forms import build_form, full_current_year_form


@pytest.fixture(scope="session", autouse=True)
def set_decimal_precision_session_wide():
    """
    Set global decimal precision and rounding for all tests in the session.
    This mirrors setup_decimal_context() in dpfo.main.
    """
    getcontext().prec = app_config.INTERNAL_CALCULATION_PRECISION

    valid_rounding_modes = ["ROUND_CEILING", "ROUND_DOWN", "ROUND_FLOOR", "ROUND_HALF_DOWN",
                            "ROUND_HALF_EVEN", "ROUND_HALF_UP", "ROUND_UP", "ROUND_05UP"]
    if app_config.DECIMAL_ROUNDING_MODE in valid_rounding_modes:
        getcontext().rounding = app_config.DECIMAL_ROUNDING_MODE
    else:
        getcontext().rounding = ROUND_HALF_UP


@pytest.fixture
def employee_form() -> TaxFormData:
    """Employment only: gross 20 000, insurance 2 500, advances 2 500."""
    return build_form(employment={"r36": "20000", "r37": "2500", "r131": "2500"})


@pytest.fixture
def full_form() -> TaxFormData:
    """Every section filled in, as for a complete current-year return."""
    return full_current_year_form()


@pytest.fixture
def ecb_cache_path(tmp_path):
    return str(tmp_path / "cache" / "ecb_annual_rates.json")
