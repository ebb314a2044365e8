"""XML helper utilities."""
from __future__ import annotations

from xml.etree import ElementTree as ET

from utils.html_entity_utils import decode_named_entities

MATHML_NS = "http://www.w3.org/1998/Math/MathML"
XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"


def local_name(tag: str) -> str:
    """Return a tag name without its ``{namespace}`` part."""
    if not isinstance(tag, str):
        return ""
    return tag.split("}", 1)[1] if "}" in tag else tag


def namespace_of(tag: str) -> str | None:
    """Return the namespace URI of a qualified tag, or None."""
    if isinstance(tag, str) and tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return None


def parse_mathml(mathml: str) -> ET.Element:
    """Parse a MathML string, accepting HTML named entities like ``&times;``.

    Raises:
        ET.ParseError: if the content is not well-formed XML.
    """
    return ET.fromstring(decode_named_entities(mathml.strip()))


def text_of(element: ET.Element) -> str:
    """Return the stripped direct text of an element."""
    return (element.text or "").strip()
