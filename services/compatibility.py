"""
Backward compatibility for legacy MathML.

Detects features deprecated by the Nordic MathML guidelines (``m:``
namespace prefix, ``mfenced``, ``semantics`` wrappers, ``alttext`` and
``altimg``, decimal invisible-operator references) and migrates content to
the current form.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from core.logger import logger
from utils.xml_utils import MATHML_NS

CURRENT_VERSION = "2.0.0"

DEPRECATED_ELEMENTS: tuple[tuple[str, str], ...] = (
    ("mfenced", "Replace <mfenced> with <mo> elements for parentheses"),
    ("semantics", "Remove <semantics> wrapper unless specifically required"),
    ("annotation", "Remove <annotation> elements unless specifically required"),
    ("annotation-xml", "Remove <annotation-xml> elements unless specifically required"),
)

DEPRECATED_ATTRIBUTES: tuple[tuple[str, str], ...] = (
    ("alttext", "Remove alttext attribute as MathML support has improved"),
    ("altimg", "Remove altimg attribute as MathML support has improved"),
)

# (old decimal reference, hex replacement, description)
INVISIBLE_OPERATORS: tuple[tuple[str, str, str], ...] = (
    ("&#8290;", "&#x2062;", "invisible multiplication"),
    ("&#8289;", "&#x2061;", "invisible function application"),
    ("&#8292;", "&#x2064;", "invisible plus"),
    ("&#8291;", "&#x2063;", "invisible comma"),
)

_LEGACY_DECL = re.compile(rf'xmlns:m="{re.escape(MATHML_NS)}"')
_LEGACY_TAG = re.compile(r"<(/?)m:")
_MFENCED = re.compile(r"<mfenced([^>]*)>(.*?)</mfenced>", re.S)
_SEMANTICS = re.compile(r"<semantics[^>]*>(.*?)</semantics>", re.S)
_ANNOTATION = re.compile(r"<annotation[^>]*>.*?</annotation>", re.S)
_ANNOTATION_XML = re.compile(r"<annotation-xml[^>]*>.*?</annotation-xml>", re.S)
_DEPRECATED_ATTR = re.compile(r'\s*\b(?:alttext|altimg)="[^"]*"')


@dataclass
class VersionInfo:
    """What kind of MathML a document is and how to bring it up to date."""

    version: str = CURRENT_VERSION
    is_legacy: bool = False
    legacy_features: list[str] = field(default_factory=list)
    migration_hints: list[str] = field(default_factory=list)
    compatibility_mode: bool = False

    def as_dict(self) -> dict[str, object]:
        return {
            "version": self.version,
            "isLegacy": self.is_legacy,
            "legacyFeatures": list(self.legacy_features),
            "migrationHints": list(self.migration_hints),
            "compatibilityMode": self.compatibility_mode,
        }


@dataclass
class MigrationResult:
    original_content: str
    migrated_content: str
    changes: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    success: bool = True


def detect_mathml_version(mathml: str) -> VersionInfo:
    """Inspect raw MathML for legacy features."""
    info = VersionInfo()
    if not mathml or not isinstance(mathml, str):
        return info

    if "xmlns:m=" in mathml or "<m:" in mathml or "</m:" in mathml:
        info.is_legacy = True
        info.legacy_features.append("m: namespace prefix")
        info.migration_hints.append("Replace m: namespace with direct xmlns declaration")

    for element, hint in DEPRECATED_ELEMENTS:
        if re.search(rf"<{re.escape(element)}[\s/>]", mathml):
            info.legacy_features.append(f"{element} element")
            info.migration_hints.append(hint)

    for attribute, hint in DEPRECATED_ATTRIBUTES:
        if f"{attribute}=" in mathml:
            info.legacy_features.append(f"{attribute} attribute")
            info.migration_hints.append(hint)

    for old, new, _ in INVISIBLE_OPERATORS:
        if old in mathml:
            info.legacy_features.append(f"old invisible operator {old}")
            info.migration_hints.append(f"Replace {old} with {new}")

    info.compatibility_mode = info.is_legacy or bool(info.legacy_features)
    return info


def _fence_to_mo(match: re.Match, changes: list[str]) -> str:
    attributes, content = match.group(1), match.group(2)
    open_match = re.search(r'open="([^"]*)"', attributes)
    close_match = re.search(r'close="([^"]*)"', attributes)
    open_fence = open_match.group(1) if open_match else "("
    close_fence = close_match.group(1) if close_match else ")"
    changes.append(f"Converted <mfenced> to <mo> elements with {open_fence} and {close_fence}")
    return f"<mo>{open_fence}</mo>{content}<mo>{close_fence}</mo>"


def _unwrap_semantics(match: re.Match, changes: list[str]) -> str:
    inner = _ANNOTATION_XML.sub("", _ANNOTATION.sub("", match.group(1)))
    changes.append("Removed <semantics> wrapper and annotation elements")
    return inner


def migrate_mathml(mathml: str) -> MigrationResult:
    """Rewrite legacy MathML into the current guideline-compliant form."""
    if not mathml or not isinstance(mathml, str):
        return MigrationResult(
            original_content=mathml,
            migrated_content=mathml,
            warnings=["Invalid MathML content provided for migration"],
            success=False,
        )

    changes: list[str] = []
    migrated = mathml

    if _LEGACY_DECL.search(migrated):
        migrated = _LEGACY_DECL.sub(f'xmlns="{MATHML_NS}"', migrated)
        changes.append("Converted m: namespace to direct xmlns declaration")

    if _LEGACY_TAG.search(migrated):
        migrated = _LEGACY_TAG.sub(r"<\1", migrated)
        changes.append("Removed m: prefixes from MathML tags")

    # Repeat until nested fences are gone
    while _MFENCED.search(migrated):
        migrated = _MFENCED.sub(lambda m: _fence_to_mo(m, changes), migrated)

    migrated = _SEMANTICS.sub(lambda m: _unwrap_semantics(m, changes), migrated)

    if _DEPRECATED_ATTR.search(migrated):
        migrated = _DEPRECATED_ATTR.sub("", migrated)
        changes.append("Removed deprecated alttext and altimg attributes")

    for old, new, description in INVISIBLE_OPERATORS:
        if old in migrated:
            migrated = migrated.replace(old, new)
            changes.append(f"Updated {description} operator code from {old} to {new}")

    if changes:
        logger.info("Migrated MathML with %d change(s)", len(changes))
    return MigrationResult(original_content=mathml, migrated_content=migrated, changes=changes)


def migration_recommendations(info: VersionInfo) -> list[str]:
    """Human-readable advice for the features found in a document."""
    if not info.compatibility_mode:
        return []
    recommendations = list(info.migration_hints)
    recommendations.append("Use POST /migrate to convert this content automatically")
    return recommendations
