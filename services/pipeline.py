"""
MathML processing pipeline.

content + thresholds -> cache key -> cache lookup
  hit:  record hit, return stored bundle
  miss: ALIX score, ASCII math, spoken words -> bundle -> store, record miss
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from core.logger import logger
from services.alix import score_mathml
from services.ascii_math import to_linear_text
from services.cache import MathMLCache
from services.spoken_text import generate_words


@dataclass(frozen=True)
class AlixThresholds:
    """Per-request ALIX limits for what to present alongside a formula."""

    no_image: int = 25
    no_equation_text: int = 12

    def as_dict(self) -> dict[str, int]:
        return {"noImage": self.no_image, "noEquationText": self.no_equation_text}


@dataclass(frozen=True)
class ResultBundle:
    """Everything derived from one MathML fragment; immutable once cached."""

    success: bool
    mathml: str
    words: tuple[str, ...]
    ascii: str
    alix: float
    language: str = "no"
    display: str = "block"
    show_image: bool = True
    show_equation_text: bool = True
    thresholds: AlixThresholds = field(default_factory=AlixThresholds)

    @property
    def text(self) -> str:
        return " ".join(self.words)

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["words"] = list(self.words)
        data["thresholds"] = self.thresholds.as_dict()
        return data


class MathPipeline:
    """Generate accessible representations of MathML, memoized in a cache."""

    def __init__(self, cache: MathMLCache) -> None:
        self.cache = cache

    def generate(self, content: str, thresholds: AlixThresholds | None = None) -> ResultBundle:
        """Return the result bundle for ``content``, computing it on a miss.

        Raises:
            MathMLParseError: if the content is not well-formed MathML.
        """
        thresholds = thresholds or AlixThresholds()
        key = self.cache.generate_key(content, thresholds.as_dict())

        cached = self.cache.get(key)
        if cached is not None:
            self.cache.record_access(True)
            logger.debug("Cache hit for MathML (%d chars)", len(content))
            return cached

        bundle = self._build(content, thresholds)
        self.cache.set(key, bundle)
        self.cache.record_access(False)
        return bundle

    def _build(self, content: str, thresholds: AlixThresholds) -> ResultBundle:
        spoken = generate_words(content)
        alix = score_mathml(content)
        ascii_math = to_linear_text(content)
        if not ascii_math:
            logger.info("No ASCII math form available for fragment")

        return ResultBundle(
            success=True,
            mathml=content,
            words=spoken.words,
            ascii=ascii_math,
            alix=alix,
            language=spoken.language,
            display=spoken.display,
            # Image is suppressed above noImage, equation text below noEquationText
            show_image=alix <= thresholds.no_image,
            show_equation_text=alix >= thresholds.no_equation_text,
            thresholds=thresholds,
        )
