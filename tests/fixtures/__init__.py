"""
Test Fixtures Module

YAML scenario specs for end-to-end engine checks (engine_scenarios.yaml).
Each scenario names its input sections under the persisted form keys and the
expected formatted rows. Amounts may be tagged !decimal to keep them exact.

Use load_engine_scenarios() with pytest.mark.parametrize.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List

import yaml


FIXTURES_DIR = Path(__file__).parent


@dataclass
class EngineScenario:
    """One end-to-end calculation case."""
    name: str
    description: str
    form: Dict[str, Any]
    expected: Dict[str, str] = field(default_factory=dict)


def _decimal_constructor(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> Decimal:
    return Decimal(loader.construct_scalar(node))


class _SpecLoader(yaml.SafeLoader):
    pass


_SpecLoader.add_constructor("!decimal", _decimal_constructor)


def load_yaml_spec(filename: str) -> Dict[str, Any]:
    with open(FIXTURES_DIR / filename, "r", encoding="utf-8") as f:
        return yaml.load(f, Loader=_SpecLoader)


def load_engine_scenarios(filename: str = "engine_scenarios.yaml") -> List[EngineScenario]:
    spec = load_yaml_spec(filename)
    return [
        EngineScenario(
            name=item["name"],
            description=item.get("description", ""),
            form=item.get("form") or {},
            expected={key: str(value) for key, value in (item.get("expected") or {}).items()},
        )
        for item in spec["scenarios"]
    ]
