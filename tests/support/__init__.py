"""
Test Support Module

- Form builders for the input aggregate
- Mock exchange rate provider
"""

from tests.support.forms import (
    PERSONAL_INFO,
    build_form,
    full_current_year_form,
)
from tests.support.mock_providers import MockAnnualRateProvider

__all__ = [
    "PERSONAL_INFO",
    "build_form",
    "full_current_year_form",
    "MockAnnualRateProvider",
]
