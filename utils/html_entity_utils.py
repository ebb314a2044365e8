"""Utilities for handling HTML entities in MathML input."""
from __future__ import annotations

import re
from html.entities import name2codepoint

# Entities every XML parser understands; these must stay encoded
XML_ENTITIES = frozenset({"amp", "lt", "gt", "quot", "apos"})

_NAMED_ENTITY = re.compile(r"&([a-zA-Z][a-zA-Z0-9]*);")


def decode_html_entity(entity: str) -> str | None:
    """
    Decode a named HTML entity to its Unicode character.

    Args:
        entity: HTML entity like "&times;" or a bare name like "times"

    Returns:
        Unicode character or None if the name is unknown
    """
    if not entity:
        return None
    name = entity.strip()
    if name.startswith("&") and name.endswith(";"):
        name = name[1:-1]
    code_point = name2codepoint.get(name)
    return chr(code_point) if code_point is not None else None


def decode_named_entities(text: str) -> str:
    """
    Replace HTML named entities with Unicode so XML parsers accept the text.

    The five predefined XML entities are left untouched, as are unknown
    names; numeric references are already valid XML.
    """
    if not text or "&" not in text:
        return text

    def replace_entity(match: re.Match) -> str:
        name = match.group(1)
        if name in XML_ENTITIES:
            return match.group(0)
        decoded = decode_html_entity(name)
        return decoded if decoded else match.group(0)

    return _NAMED_ENTITY.sub(replace_entity, text)
