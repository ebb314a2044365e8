"""Tests for legacy MathML detection and migration."""
from __future__ import annotations

from services.compatibility import detect_mathml_version, migrate_mathml, migration_recommendations

NS = "http://www.w3.org/1998/Math/MathML"


def test_modern_mathml_is_not_legacy(wrap) -> None:
    info = detect_mathml_version(wrap("<mn>1</mn>"))
    assert not info.is_legacy
    assert info.legacy_features == []
    assert not info.compatibility_mode
    assert migration_recommendations(info) == []


def test_detects_legacy_features() -> None:
    mathml = (
        f'<m:math xmlns:m="{NS}" alttext="x"><m:semantics><m:mfenced><m:mi>x</m:mi></m:mfenced>'
        "<m:annotation>x</m:annotation></m:semantics><m:mo>&#8290;</m:mo></m:math>"
    )
    info = detect_mathml_version(mathml)
    assert info.is_legacy
    assert info.compatibility_mode
    assert "m: namespace prefix" in info.legacy_features
    assert "alttext attribute" in info.legacy_features
    assert "old invisible operator &#8290;" in info.legacy_features
    assert info.as_dict()["compatibilityMode"] is True


def test_deprecated_element_makes_compatibility_mode(wrap) -> None:
    info = detect_mathml_version(wrap("<mfenced><mi>x</mi></mfenced>"))
    assert not info.is_legacy
    assert info.legacy_features == ["mfenced element"]
    assert info.compatibility_mode
    assert migration_recommendations(info)[0].startswith("Replace <mfenced>")


def test_empty_input() -> None:
    info = detect_mathml_version("")
    assert not info.compatibility_mode

    result = migrate_mathml("")
    assert not result.success
    assert result.warnings


def test_migrates_legacy_namespace() -> None:
    result = migrate_mathml(f'<m:math xmlns:m="{NS}"><m:mn>1</m:mn></m:math>')
    assert result.migrated_content == f'<math xmlns="{NS}"><mn>1</mn></math>'
    assert result.success
    assert len(result.changes) == 2


def test_migrates_mfenced(wrap) -> None:
    result = migrate_mathml(wrap('<mfenced open="[" close="]"><mi>x</mi></mfenced>'))
    assert result.migrated_content == wrap("<mo>[</mo><mi>x</mi><mo>]</mo>")


def test_migrates_nested_mfenced(wrap) -> None:
    result = migrate_mathml(wrap("<mfenced><mfenced><mi>x</mi></mfenced></mfenced>"))
    assert "mfenced" not in result.migrated_content
    assert result.migrated_content == wrap("<mo>(</mo><mo>(</mo><mi>x</mi><mo>)</mo><mo>)</mo>")


def test_unwraps_semantics_and_drops_annotations(wrap) -> None:
    result = migrate_mathml(
        wrap(
            "<semantics><mi>x</mi><annotation encoding='TeX'>x</annotation>"
            "<annotation-xml encoding='MathML-Content'><ci>x</ci></annotation-xml></semantics>"
        )
    )
    assert result.migrated_content == wrap("<mi>x</mi>")


def test_removes_deprecated_attributes_and_updates_operators() -> None:
    result = migrate_mathml(
        f'<math xmlns="{NS}" alttext="2x" altimg="x.png"><mn>2</mn><mo>&#8290;</mo><mi>x</mi></math>'
    )
    assert result.migrated_content == f'<math xmlns="{NS}"><mn>2</mn><mo>&#x2062;</mo><mi>x</mi></math>'
    assert "Removed deprecated alttext and altimg attributes" in result.changes
