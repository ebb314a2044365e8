"""Canonical normalization of MathML for identity and cache keys."""
from __future__ import annotations

import json
import re
from typing import Any, Mapping

from utils.xml_utils import MATHML_NS

LEGACY_PREFIX = "m"
KEY_SEPARATOR = "|"

_WHITESPACE = re.compile(r"\s+")
_BETWEEN_TAGS = re.compile(r">\s+<")
_LEGACY_OPEN = re.compile(rf"<(?:{LEGACY_PREFIX}:)+")
_LEGACY_CLOSE = re.compile(rf"</(?:{LEGACY_PREFIX}:)+")
# Declarations only match inside a tag (no '<' before the closing '>')
_LEGACY_DECL = re.compile(
    rf"""\s*\bxmlns:{LEGACY_PREFIX}=(?:"[^"]*"|'[^']*')(?=[^<>]*>)"""
)
_DEFAULT_DECL = re.compile(r"""\s*\bxmlns=(?:"[^"]*"|'[^']*')(?=[^<>]*>)""")
_MATH_ROOT = re.compile(r"<math(?=[\s>/])")
_BEFORE_CLOSE = re.compile(r"\s*>")


def normalize_mathml(mathml: str) -> str:
    """Return the canonical form of a MathML fragment.

    Fragments differing only in whitespace layout, the legacy ``m:`` prefix
    or where the namespace is declared normalize identically. The steps run
    in a fixed order; prefix rewriting must happen before declarations are
    stripped.
    """
    normalized = _WHITESPACE.sub(" ", mathml)
    normalized = _BETWEEN_TAGS.sub("><", normalized)
    normalized = normalized.strip()
    normalized = _LEGACY_OPEN.sub("<", normalized)
    normalized = _LEGACY_CLOSE.sub("</", normalized)
    normalized = _LEGACY_DECL.sub("", normalized)
    normalized = _DEFAULT_DECL.sub("", normalized)
    if "xmlns=" not in normalized:
        normalized = _MATH_ROOT.sub(f'<math xmlns="{MATHML_NS}"', normalized, count=1)
    return _BEFORE_CLOSE.sub(">", normalized)


def serialize_thresholds(thresholds: Mapping[str, Any] | None) -> str:
    """Serialize scoring parameters independent of key insertion order."""
    return json.dumps(dict(thresholds or {}), sort_keys=True, separators=(",", ":"), default=str)


def build_cache_key(mathml: str, thresholds: Mapping[str, Any] | None) -> str:
    """Combine the normalized fragment with its scoring parameters."""
    return f"{normalize_mathml(mathml)}{KEY_SEPARATOR}{serialize_thresholds(thresholds)}"
