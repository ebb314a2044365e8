"""Tests for the ALIX complexity score."""
from __future__ import annotations

import math

import pytest

from services.alix import (
    ALIX_TAGS,
    DEFAULT_WEIGHTS,
    count_elements,
    default_counts,
    get_alix,
    score_mathml,
)


def test_weight_table_covers_closed_tag_set() -> None:
    assert set(DEFAULT_WEIGHTS) == set(ALIX_TAGS)
    assert all(weight >= 0 for weight in DEFAULT_WEIGHTS.values())


def test_weight_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        DEFAULT_WEIGHTS["mn"] = 1  # type: ignore[index]


def test_default_counts_are_fresh() -> None:
    counts = default_counts()
    counts["mn"] = 3
    assert default_counts()["mn"] == 0
    assert set(counts) == set(ALIX_TAGS)


def test_score_example() -> None:
    counts = default_counts()
    counts.update({"mn": 2, "mo": 1})
    assert get_alix(counts) == pytest.approx(7.0)


def test_zero_counts_score_zero() -> None:
    assert get_alix(default_counts()) == 0


def test_structural_wrappers_do_not_score() -> None:
    counts = default_counts()
    counts.update({"mrow": 10, "mtd": 4, "mtr": 2})
    assert get_alix(counts) == 0


def test_non_numeric_count_propagates_nan() -> None:
    counts = default_counts()
    counts["mn"] = "lots"
    assert math.isnan(get_alix(counts))


def test_tags_outside_the_weight_table_are_ignored() -> None:
    counts = default_counts()
    counts.update({"mn": 1, "mglyph": 50})
    assert get_alix(counts) == pytest.approx(1.0)


def test_count_elements_walks_tree(wrap) -> None:
    mathml = wrap(
        "<mrow><mfrac><mn>1</mn><mn>2</mn></mfrac><mo>+</mo>"
        "<msqrt><mi>x</mi></msqrt><mspace width='1em'/></mrow>"
    )
    counts = count_elements(mathml)
    assert counts["mn"] == 2
    assert counts["mo"] == 1
    assert counts["mi"] == 1
    assert counts["mfrac"] == 1
    assert counts["msqrt"] == 1
    assert counts["mrow"] == 1
    assert "mspace" not in counts


def test_count_elements_with_legacy_prefix() -> None:
    mathml = (
        '<m:math xmlns:m="http://www.w3.org/1998/Math/MathML">'
        "<m:mn>1</m:mn><m:mo>&times;</m:mo><m:mn>2</m:mn></m:math>"
    )
    counts = count_elements(mathml)
    assert counts["mn"] == 2
    assert counts["mo"] == 1


def test_count_elements_falls_back_on_malformed_markup() -> None:
    counts = count_elements("<math><mfrac><mn>1</mn><mn>2</mn></mfrac>")
    assert counts["mfrac"] == 1
    assert counts["mn"] == 2


def test_score_mathml(wrap) -> None:
    # 2 mn + 1 mo + 1 mfrac = 2*0.01 + 0.05 + 0.2
    mathml = wrap("<mfrac><mn>1</mn><mn>2</mn></mfrac><mo>=</mo>")
    assert score_mathml(mathml) == pytest.approx(27.0)


def test_table_is_hard(wrap) -> None:
    mathml = wrap("<mtable><mtr><mtd><mn>1</mn></mtd></mtr></mtable>")
    assert score_mathml(mathml) == pytest.approx(51.0)


@pytest.mark.parametrize("missing", [None, "", "  "])
def test_missing_count_reads_as_zero(missing) -> None:
    counts = default_counts()
    counts.update({"mi": 1, "mn": missing})
    assert get_alix(counts) == pytest.approx(9.0)


def test_numeric_string_count_is_coerced() -> None:
    counts = default_counts()
    counts["mo"] = "2"
    assert get_alix(counts) == pytest.approx(10.0)
