"""Validate and diagnose MathML against the Nordic MathML guidelines."""
from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List

from utils.xml_utils import MATHML_NS, local_name, namespace_of, parse_mathml

DEPRECATED_ELEMENT_MESSAGES = {
    "mfenced": "mfenced element is deprecated. Use <mo> elements for parentheses instead.",
    "semantics": "semantics element is deprecated. Remove the wrapper unless specifically required.",
    "annotation": "annotation element is deprecated. Remove it unless specifically required.",
    "annotation-xml": "annotation-xml element is deprecated. Remove it unless specifically required.",
}
DEPRECATED_ATTRIBUTES = ("alttext", "altimg")
VALID_DISPLAY = ("block", "inline")
TOKEN_ELEMENTS = ("mi", "mn", "mo", "mtext")


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    legacy_features: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "legacyFeatures": list(self.legacy_features),
        }

    def raise_for_errors(self) -> None:
        if not self.is_valid:
            raise MathMLValidationError(self)


class MathMLValidationError(ValueError):
    """Raised when MathML content fails validation."""

    def __init__(self, result: ValidationResult) -> None:
        super().__init__("MathML validation failed: " + "; ".join(result.errors))
        self.result = result


def validate_mathml(mathml: str, strict_mode: bool = True, allow_legacy: bool = True) -> ValidationResult:
    """
    Validate MathML structure and return the issues found.

    Args:
        mathml: MathML string to validate
        strict_mode: Treat deprecated elements and attributes as errors
        allow_legacy: Accept the legacy ``m:`` namespace prefix

    Returns:
        ValidationResult with errors, warnings and legacy features
    """
    result = ValidationResult()

    if not mathml or not mathml.strip():
        result.errors.append("MathML content is required.")
        result.is_valid = False
        return result

    try:
        root = parse_mathml(mathml)
    except ET.ParseError as exc:
        result.errors.append(f"Invalid XML structure. Please check your MathML syntax. ({exc})")
        result.is_valid = False
        return result

    if local_name(root.tag) != "math":
        result.errors.append("MathML must include a <math> root element.")

    namespace = namespace_of(root.tag)
    if namespace != MATHML_NS:
        result.errors.append(f'MathML must include xmlns="{MATHML_NS}" namespace declaration.')

    if "<m:" in mathml or "xmlns:m=" in mathml:
        result.legacy_features.append("m: namespace prefix")
        if allow_legacy:
            result.warnings.append("Legacy m: namespace detected. Consider migrating to direct xmlns declaration.")
        else:
            result.errors.append(f'Legacy m: namespace is not allowed. Use xmlns="{MATHML_NS}" instead.')

    display = root.get("display")
    if display is not None and display not in VALID_DISPLAY:
        result.errors.append(f'Invalid display attribute value "{display}". Must be "block" or "inline".')

    displaystyle = root.get("displaystyle")
    if displaystyle is not None and displaystyle not in ("true", "false"):
        result.warnings.append(f'Invalid displaystyle attribute value "{displaystyle}". Must be "true" or "false".')

    for attribute in DEPRECATED_ATTRIBUTES:
        if root.get(attribute) is not None:
            message = f"{attribute} attribute is deprecated. MathML support has improved and this attribute should not be used."
            result.legacy_features.append(f"{attribute} attribute")
            (result.errors if strict_mode else result.warnings).append(message)

    _check_structural_issues(root, result, strict_mode)

    result.is_valid = not result.errors
    return result


def _check_structural_issues(element: ET.Element, result: ValidationResult, strict_mode: bool, depth: int = 0) -> None:
    """Recursively check for deprecated elements and empty tokens."""
    if depth > 50:  # Prevent runaway recursion
        return

    tag = local_name(element.tag)
    if tag in DEPRECATED_ELEMENT_MESSAGES:
        feature = f"{tag} element"
        if feature not in result.legacy_features:
            result.legacy_features.append(feature)
            (result.errors if strict_mode else result.warnings).append(DEPRECATED_ELEMENT_MESSAGES[tag])

    if tag in TOKEN_ELEMENTS and not (element.text or "").strip() and not list(element):
        result.warnings.append(f"Empty {tag} element at depth {depth}")

    for child in element:
        _check_structural_issues(child, result, strict_mode, depth + 1)
