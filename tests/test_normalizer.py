"""Tests for MathML normalization and cache keys."""
from __future__ import annotations

import pytest

from services.normalizer import build_cache_key, normalize_mathml

NS = "http://www.w3.org/1998/Math/MathML"
CANONICAL = f'<math xmlns="{NS}"><mn>1</mn><mo>+</mo><mn>2</mn></math>'

FRAGMENTS = [
    CANONICAL,
    f'<math xmlns="{NS}">  <mn>1</mn>  <mo>+</mo>  <mn>2</mn>  </math>',
    f'<math xmlns="{NS}">\n\t<mn>1</mn>\n\t<mo>+</mo>\n\t<mn>2</mn>\n</math>',
    f'<m:math xmlns:m="{NS}"><m:mn>1</m:mn><m:mo>+</m:mo><m:mn>2</m:mn></m:math>',
    "<math><mn>1</mn><mo>+</mo><mn>2</mn></math>",
    f'  <math xmlns="{NS}" ><mn >1</mn><mo>+</mo><mn>2</mn></math>  ',
]


@pytest.mark.parametrize("fragment", FRAGMENTS)
def test_equivalent_fragments_normalize_to_canonical(fragment: str) -> None:
    assert normalize_mathml(fragment) == CANONICAL


def test_legacy_prefix_equivalence() -> None:
    legacy = f'<m:math xmlns:m="{NS}"><m:mn>1</m:mn></m:math>'
    modern = f'<math xmlns="{NS}"><mn>1</mn></math>'
    assert normalize_mathml(legacy) == normalize_mathml(modern)


def test_declaration_placement_does_not_matter() -> None:
    first = f'<math xmlns="{NS}" display="block"><mi>x</mi></math>'
    last = f'<math display="block" xmlns="{NS}"><mi>x</mi></math>'
    assert normalize_mathml(first) == normalize_mathml(last)
    assert normalize_mathml(first) == f'<math xmlns="{NS}" display="block"><mi>x</mi></math>'


@pytest.mark.parametrize(
    "fragment",
    FRAGMENTS
    + [
        f'<math display="inline"   xmlns="{NS}"  ><mrow> <mi>x</mi> </mrow></math>',
        "<mrow><mi>a</mi></mrow>",
        "not markup at all",
        "",
        '<math><mtext>a   b</mtext></math>',
        "<m:m:mi>x</m:m:mi>",
    ],
)
def test_normalization_is_idempotent(fragment: str) -> None:
    once = normalize_mathml(fragment)
    assert normalize_mathml(once) == once


def test_malformed_input_passes_through() -> None:
    assert normalize_mathml("<mrow><mi>x") == "<mrow><mi>x"


def test_text_resembling_declaration_is_kept() -> None:
    fragment = '<math><mtext>xmlns="a"</mtext></math>'
    assert 'xmlns="a"' in normalize_mathml(fragment)


def test_cache_key_depends_on_thresholds() -> None:
    key1 = build_cache_key(CANONICAL, {"noImage": 25, "noEquationText": 12})
    key2 = build_cache_key(CANONICAL, {"noImage": 30, "noEquationText": 15})
    assert key1 != key2


def test_cache_key_ignores_threshold_order() -> None:
    key1 = build_cache_key(CANONICAL, {"noImage": 25, "noEquationText": 12})
    key2 = build_cache_key(CANONICAL, {"noEquationText": 12, "noImage": 25})
    assert key1 == key2


def test_cache_key_ignores_layout() -> None:
    thresholds = {"noImage": 25, "noEquationText": 12}
    assert build_cache_key(FRAGMENTS[0], thresholds) == build_cache_key(FRAGMENTS[1], thresholds)


def test_repeated_legacy_prefix_is_removed() -> None:
    assert normalize_mathml("<m:m:mi>x</m:m:mi>") == "<mi>x</mi>"
