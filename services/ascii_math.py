"""
MathML to ASCII math conversion.

The conversion is a fixed, ordered table of whole-string rewrites. Longer
nested shapes come first so the generic leaf and operator rules cannot
consume their children. Shapes missing from the table degrade to their
concatenated leaf text once the remaining tags are stripped.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from core.logger import logger

_MI = r"<mi>(\w+)</mi>"
_MN = r"<mn>(\d+)</mn>"


def _rule(pattern: str, replacement: str) -> tuple[re.Pattern[str], str]:
    # JavaScript-compatible \w and \d
    return re.compile(pattern, re.ASCII), replacement


REWRITE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    # Mixed subscripts and superscripts
    _rule(rf"<msubsup>{_MI}{_MN}{_MN}</msubsup>", r"\1_\2^\3"),
    _rule(rf"<msubsup>{_MI}{_MI}{_MN}</msubsup>", r"\1_\2^\3"),
    _rule(rf"<msubsup>{_MI}{_MN}{_MI}</msubsup>", r"\1_\2^\3"),
    _rule(rf"<msubsup>{_MI}{_MI}{_MI}</msubsup>", r"\1_\2^\3"),
    # Fractions, nested first
    _rule(rf"<mfrac>{_MN}<mfrac>{_MN}{_MN}</mfrac></mfrac>", r"\1/(\2/\3)"),
    _rule(rf"<mfrac>{_MN}{_MN}</mfrac>", r"\1/\2"),
    _rule(rf"<mfrac>{_MI}{_MN}</mfrac>", r"\1/\2"),
    _rule(rf"<mfrac>{_MN}{_MI}</mfrac>", r"\1/\2"),
    _rule(rf"<mfrac>{_MI}{_MI}</mfrac>", r"\1/\2"),
    # Subscripts
    _rule(rf"<msub>{_MI}{_MN}</msub>", r"\1_\2"),
    _rule(rf"<msub>{_MI}{_MI}</msub>", r"\1_\2"),
    # Superscripts
    _rule(rf"<msup>{_MI}{_MN}</msup>", r"\1^\2"),
    _rule(rf"<msup>{_MI}{_MI}</msup>", r"\1^\2"),
    # Square roots
    _rule(rf"<msqrt>{_MI}<mo>\+</mo>{_MN}</msqrt>", r"sqrt(\1+\2)"),
    _rule(rf"<msqrt>{_MN}</msqrt>", r"sqrt(\1)"),
    _rule(rf"<msqrt>{_MI}</msqrt>", r"sqrt(\1)"),
    # Operators
    _rule(r"<mo>\+</mo>", "+"),
    _rule(r"<mo>-</mo>", "-"),
    _rule(r"<mo>=</mo>", "="),
    _rule(r"<mo>\(</mo>", "("),
    _rule(r"<mo>\)</mo>", ")"),
    _rule(r"<mo>&times;</mo>", "*"),
    _rule(r"<mo>&divide;</mo>", "/"),
    # Numbers and identifiers
    _rule(_MN, r"\1"),
    _rule(_MI, r"\1"),
    # Anything left over
    _rule(r"<[^>]*>", ""),
)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class LinearText:
    """Outcome of a linear-text conversion; empty text means none available."""

    text: str = ""

    @property
    def available(self) -> bool:
        return bool(self.text)

    def __str__(self) -> str:
        return self.text


def _rewrite(mathml: str) -> str:
    result = mathml
    for pattern, replacement in REWRITE_RULES:
        result = pattern.sub(replacement, result)
    return _WHITESPACE.sub("", result).strip()


def convert_linear_text(mathml: str) -> LinearText:
    """Convert MathML to ASCII math without ever raising."""
    try:
        return LinearText(_rewrite(mathml))
    except Exception as exc:  # noqa: BLE001
        logger.warning("ASCII math conversion failed: %s", exc)
        return LinearText()


def to_linear_text(mathml: str) -> str:
    """Return the ASCII math form of a fragment, or "" when unavailable."""
    return convert_linear_text(mathml).text
