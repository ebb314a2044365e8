"""
ALIX calculation.

Each type of element has an ALIX weight; the weight is multiplied with the
number of elements of that type. The weighted sum, times 100, gives an idea
of how complex the expression is to read.

    ALIX = 100 * sum(count[tag] * weight[tag])
"""
from __future__ import annotations

import math
import re
from types import MappingProxyType
from typing import Any, Mapping
from xml.etree import ElementTree as ET

from core.logger import logger
from utils.xml_utils import local_name, parse_mathml

ALIX_TAGS: tuple[str, ...] = (
    "mn", "mo", "mi", "mtext", "mfrac", "mroot", "msqrt", "mrow", "mfenced",
    "msubsup", "munderover", "munder", "mover", "msup", "msub", "mtd",
    "mlabeledtr", "mtr", "mtable", "mmultiscripts",
)

DEFAULT_WEIGHTS: Mapping[str, float] = MappingProxyType({
    # Not used for ALIX
    "mrow": 0,
    "mtd": 0,
    "mlabeledtr": 0,
    "mtr": 0,
    # Low difficulty
    "mn": 0.01,
    "mtext": 0.01,
    "mo": 0.05,
    "mfenced": 0.05,
    "mi": 0.09,
    # Medium difficulty
    "munder": 0.15,
    "mover": 0.15,
    "msup": 0.15,
    "msub": 0.15,
    "mmultiscripts": 0.15,
    "mfrac": 0.2,
    # Hard difficulty
    "mroot": 0.25,
    "msqrt": 0.25,
    "msubsup": 0.4,
    "munderover": 0.4,
    "mtable": 0.5,
})

_OPEN_TAG = re.compile(r"<(?:[A-Za-z_][\w.-]*:)?([A-Za-z][\w-]*)[\s/>]")


def default_counts() -> dict[str, int]:
    """Return a fresh zeroed count for every tag in the closed set."""
    return {tag: 0 for tag in ALIX_TAGS}


def _as_number(value: Any) -> float:
    # Missing or blank counts read as zero, anything else non-numeric as NaN
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def count_elements(mathml: str) -> dict[str, int]:
    """Count closed-set elements in a MathML fragment.

    Walks the parsed tree; when the fragment is not well-formed XML the
    opening tags are scanned instead, so counting never fails.
    """
    counts = default_counts()
    try:
        root = parse_mathml(mathml)
    except ET.ParseError as exc:
        logger.debug("ALIX: falling back to tag scan (%s)", exc)
        for name in _OPEN_TAG.findall(mathml or ""):
            if name in counts:
                counts[name] += 1
        return counts

    for element in root.iter():
        name = local_name(element.tag)
        if name in counts:
            counts[name] += 1
    return counts


def get_alix(counts: Mapping[str, Any], weights: Mapping[str, float] = DEFAULT_WEIGHTS) -> float:
    """Combine element counts with their weights into the ALIX score.

    Non-numeric counts are kept and turn the score into NaN rather than
    being filtered out. Tags without a weight are ignored.
    """
    alix = 0.0
    for tag, raw_count in counts.items():
        if tag not in weights:
            continue
        count = _as_number(raw_count)
        weight = weights[tag]
        if count > 0 or not math.isnan(count) or weight > 0:
            alix += count * weight
    return alix * 100


def score_mathml(mathml: str, weights: Mapping[str, float] = DEFAULT_WEIGHTS) -> float:
    """Count the elements of a fragment and return its ALIX score."""
    return get_alix(count_elements(mathml), weights)
