"""
Test Group: Engine Scenarios (YAML specs)

Whole-return calculations driven by tests/fixtures/engine_scenarios.yaml.
"""

import pytest

from dpfo.domain.form import merge_with_defaults
from dpfo.engine.calculation_engine import calculate_tax
from tests.fixtures import load_engine_scenarios

SCENARIOS = load_engine_scenarios()


@pytest.mark.parametrize("scenario", SCENARIOS, ids=[s.name for s in SCENARIOS])
def test_engine_scenario(scenario):
    result = calculate_tax(merge_with_defaults(scenario.form)).as_dict()
    for row, expected in scenario.expected.items():
        assert result[row] == expected, f"{scenario.name}: {row}"


def test_scenarios_are_loaded():
    assert len(SCENARIOS) >= 5
    assert all(s.expected for s in SCENARIOS)
