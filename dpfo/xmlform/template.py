# dpfo/xmlform/template.py
import copy
import functools
import logging
import os

from lxml import etree

logger = logging.getLogger(__name__)

TEMPLATE_FILE_PATH = os.path.join(os.path.dirname(__file__), "templates", "dpfo_b2025_basis.xml")

# Minimum occurrences required by the schema
MIN_CHILD_SLOTS = 4
MIN_FOREIGN_INCOME_SLOTS = 6

CHILD_FIELDS = ["priezviskoMeno", "rodneCislo", "m00"] + [f"m{month:02d}" for month in range(1, 13)]
FOREIGN_INCOME_FIELDS = ["kodStatu", "druhPrimuPar", "druhPrimuOds", "druhPrimuPis", "prijmy", "vydavky", "zTohoVydavky"]


def _safe_parser() -> etree.XMLParser:
    return etree.XMLParser(remove_blank_text=True, resolve_entities=False, no_network=True)


@functools.lru_cache(maxsize=1)
def _load_template() -> etree._Element:
    logger.debug(f"Loading DPFO template from {TEMPLATE_FILE_PATH}")
    return etree.parse(TEMPLATE_FILE_PATH, parser=_safe_parser()).getroot()


def new_document() -> etree._Element:
    """A fresh deep copy of the empty return; the cached template is never modified."""
    return copy.deepcopy(_load_template())
