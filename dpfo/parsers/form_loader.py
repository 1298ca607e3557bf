# dpfo/parsers/form_loader.py
import json
import logging
import os
from decimal import Decimal, InvalidOperation
from typing import Any

import yaml

from dpfo.domain.form import TaxFormData, merge_with_defaults

logger = logging.getLogger(__name__)

YAML_EXTENSIONS = (".yaml", ".yml")


class FormLoadError(Exception):
    """Raised when a form file cannot be read or is not a form document."""


def _decimal_constructor(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> Decimal:
    return Decimal(loader.construct_scalar(node))


class _FormYamlLoader(yaml.SafeLoader):
    pass


_FormYamlLoader.add_constructor("!decimal", _decimal_constructor)


def load_form(file_path: str) -> TaxFormData:
    """
    Reads a saved form (JSON, or YAML by extension) and merges it with the
    section defaults.
    """
    if not os.path.exists(file_path):
        raise FormLoadError(f"Form file not found: {file_path}")

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if file_path.lower().endswith(YAML_EXTENSIONS):
                raw: Any = yaml.load(f, Loader=_FormYamlLoader)
            else:
                # Keep amounts exact
                raw = json.load(f, parse_float=Decimal)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise FormLoadError(f"Could not read form file {file_path}: {e}") from e
    except InvalidOperation as e:
        raise FormLoadError(f"Form file {file_path} has an invalid !decimal value: {e}") from e

    if not isinstance(raw, dict):
        raise FormLoadError(f"Form file {file_path} does not contain a form object.")

    logger.info(f"Loaded form data from {file_path}")
    return merge_with_defaults(raw)


def save_form(form: TaxFormData, file_path: str) -> None:
    """Writes the form as JSON under its persisted keys."""
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(form.to_persisted_dict(), f, indent=2, ensure_ascii=False)
    logger.info(f"Saved form data to {file_path}")
