"""
Spoken-language words for MathML.

Walks the MathML tree and produces the English word sequence a screen
reader would speak, e.g. ``x^2`` becomes ``formula, x, to the power of,
2, formula end``. Translation of the words into other languages happens
outside this module.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from xml.etree import ElementTree as ET

from core.logger import logger
from utils.xml_utils import XML_LANG, local_name, parse_mathml, text_of

OPERATORS: dict[str, str] = {
    "+": "plus",
    "-": "minus",
    "−": "minus",
    "=": "equals",
    "×": "times",
    "⋅": "times",
    "·": "times",
    "*": "times",
    "÷": "divided by",
    "/": "divided by",
    "±": "plus minus",
    "<": "less than",
    ">": "greater than",
    "≤": "less than or equal to",
    "≥": "greater than or equal to",
    "≠": "not equal to",
    "≈": "approximately equal to",
    "(": "left parenthesis",
    ")": "right parenthesis",
    "[": "left bracket",
    "]": "right bracket",
    "{": "left brace",
    "}": "right brace",
    "|": "vertical bar",
    ",": "comma",
    "!": "factorial",
    "%": "percent",
    "∑": "the sum of",
    "∏": "the product of",
    "→": "right arrow",
    "←": "left arrow",
    "∞": "infinity",
    "∈": "element of",
    "∂": "partial",
}

# Invisible operators and primes carry no spoken word of their own
SILENT_OPERATORS = frozenset({"⁡", "⁢", "⁣", "⁤", "′", "″"})

IDENTIFIERS: dict[str, str] = {
    "α": "alpha", "β": "beta", "γ": "gamma", "δ": "delta",
    "ε": "epsilon", "ζ": "zeta", "η": "eta", "θ": "theta",
    "ι": "iota", "κ": "kappa", "λ": "lambda", "μ": "mu",
    "ν": "nu", "ξ": "xi", "π": "pi", "ρ": "rho",
    "σ": "sigma", "τ": "tau", "υ": "upsilon", "φ": "phi",
    "χ": "chi", "ψ": "psi", "ω": "omega",
    "Δ": "delta", "Σ": "sigma", "Ω": "omega", "Φ": "phi",
    "∞": "infinity",
    "sin": "sine", "cos": "cosine", "tan": "tangent", "log": "logarithm",
    "ln": "natural logarithm",
}

INTEGRALS: dict[str, str] = {
    "∫": "integral",
    "∬": "double integral",
    "∭": "triple integral",
    "∮": "contour integral",
}

ROOT_NAMES: dict[str, str] = {
    "2": "square",
    "3": "cube",
    "4": "fourth",
    "5": "fifth",
    "6": "sixth",
    "7": "seventh",
    "8": "eighth",
    "9": "ninth",
    "10": "tenth",
}

FENCE_OPEN: dict[str, str] = {
    "(": "left parenthesis",
    "[": "left bracket",
    "{": "left brace",
    "|": "absolute value",
}
FENCE_CLOSE: dict[str, str] = {
    ")": "right parenthesis",
    "]": "right bracket",
    "}": "right brace",
    "|": "absolute value end",
}

# Elements that only affect the visual layout
VISUAL_ONLY = frozenset({
    "mphantom", "mspace", "maligngroup", "malignmark", "maction", "merror",
    "msline", "none", "mmultiscripts", "annotation", "annotation-xml",
})

# Elements whose children are read in order without extra words
CONTAINERS = frozenset({
    "math", "mpadded", "menclose", "semantics", "mstyle", "mstack", "msgroup",
    "msrow", "mscarries", "mscarry", "mlongdiv", "mtd",
})

FUNCTION_APPLICATION = "⁡"
RIGHT_ARROW = "→"


class MathMLParseError(ValueError):
    """Raised when MathML cannot be parsed into a tree."""


@dataclass(frozen=True)
class SpokenText:
    """Words for a formula plus the root attributes relevant to rendering."""

    words: tuple[str, ...] = ()
    language: str = "no"
    display: str = "block"
    ascii: str = ""
    image: str = ""

    @property
    def text(self) -> str:
        return " ".join(word for word in self.words if word)


@dataclass
class _Walker:
    words: list[str] = field(default_factory=list)

    def emit(self, *words: str) -> None:
        self.words.extend(w for w in words if w)

    def children(self, node: ET.Element) -> None:
        for child in node:
            self.visit(child)

    def visit(self, node: ET.Element) -> None:
        name = local_name(node.tag)
        handler = getattr(self, f"_visit_{name.replace('-', '_')}", None)
        if name in VISUAL_ONLY:
            return
        if handler is not None:
            handler(node)
        elif name in CONTAINERS:
            self.children(node)
        else:
            text = text_of(node)
            if text:
                logger.warning("Missing spoken text for element <%s>: %s", name, text)
                self.emit(text)
            self.children(node)

    # Tokens

    def _visit_mn(self, node: ET.Element) -> None:
        self.emit(text_of(node))

    def _visit_mtext(self, node: ET.Element) -> None:
        self.emit(text_of(node))

    def _visit_mi(self, node: ET.Element) -> None:
        value = text_of(node)
        if not value:
            return
        if len(value) == 1 and value.isalpha() and value.isupper() and value not in IDENTIFIERS:
            self.emit("capital")
        spoken = IDENTIFIERS.get(value)
        if spoken is None:
            if len(value) == 1 and ord(value) > 127:
                logger.warning("Missing text-identifier: %s (char code: %d)", value, ord(value))
            spoken = value
        self.emit(spoken)

    def _visit_mo(self, node: ET.Element) -> None:
        value = text_of(node)
        if not value or value in SILENT_OPERATORS:
            return
        spoken = OPERATORS.get(value)
        if spoken is None:
            if len(value) == 1 and ord(value) > 127:
                logger.warning("Missing text-operator: %s (char code: %d)", value, ord(value))
            spoken = value
        self.emit(spoken)

    # Layout

    def _visit_mrow(self, node: ET.Element) -> None:
        is_function = _is_function(node)
        if is_function:
            self.emit("the function")
        self.children(node)
        if is_function:
            self.emit("function end")

    def _visit_mfrac(self, node: ET.Element) -> None:
        parts = list(node)
        self.emit("fraction with counter")
        if parts:
            self.visit(parts[0])
        for part in parts[1:]:
            self.emit("and denominator")
            self.visit(part)
        self.emit("fraction end")

    def _visit_msqrt(self, node: ET.Element) -> None:
        self.emit("the square root of")
        self.children(node)
        self.emit("square root end")

    def _visit_mroot(self, node: ET.Element) -> None:
        parts = list(node)
        index = parts[1] if len(parts) == 2 else None
        if index is not None and local_name(index.tag) == "mn" and text_of(index) in ROOT_NAMES:
            self.emit(f"the {ROOT_NAMES[text_of(index)]} root of")
        elif index is not None and local_name(index.tag) == "mn":
            self.emit(f"the {text_of(index)}th root of")
        else:
            self.emit("the root of")
        if parts:
            self.visit(parts[0])
        self.emit("root end")

    def _visit_msup(self, node: ET.Element) -> None:
        parts = list(node)
        if not parts:
            return
        self.visit(parts[0])
        for exponent in parts[1:]:
            mark = text_of(exponent) if local_name(exponent.tag) == "mo" else ""
            if mark == "′":
                self.emit("derivative")
            elif mark == "″":
                self.emit("double derivative")
            else:
                self.emit("to the power of")
                self.visit(exponent)

    def _visit_msub(self, node: ET.Element) -> None:
        parts = list(node)
        if not parts:
            return
        self.visit(parts[0])
        for index in parts[1:]:
            self.emit("with the lower index")
            self.visit(index)

    def _visit_msubsup(self, node: ET.Element) -> None:
        parts = list(node)
        if self._integral(parts):
            return
        if not parts:
            return
        self.visit(parts[0])
        if len(parts) > 1:
            self.emit("with the lower index")
            self.visit(parts[1])
        if len(parts) > 2:
            self.emit("to the power of")
            self.visit(parts[2])

    def _visit_munderover(self, node: ET.Element) -> None:
        parts = list(node)
        if self._integral(parts):
            return
        if not parts:
            return
        self.visit(parts[0])
        if len(parts) > 1:
            self.emit("with the lower limit")
            self.visit(parts[1])
        if len(parts) > 2:
            self.emit("and with the upper limit")
            self.visit(parts[2])

    def _visit_munder(self, node: ET.Element) -> None:
        self._scripted(node, "with the lower index")

    def _visit_mover(self, node: ET.Element) -> None:
        parts = list(node)
        if len(parts) == 2 and local_name(parts[1].tag) == "mo" and text_of(parts[1]) == RIGHT_ARROW:
            self.emit("vector")
            self.visit(parts[0])
            self.emit("vector end")
            return
        self._scripted(node, "with the upper index")

    def _scripted(self, node: ET.Element, joiner: str) -> None:
        parts = list(node)
        if len(parts) != 2:
            self.children(node)
            return
        accent = node.get("accent") == "true"
        if accent:
            self.emit("bracket start")
        self.visit(parts[0])
        self.emit(joiner)
        self.visit(parts[1])
        if accent:
            self.emit("bracket end")

    def _integral(self, parts: list[ET.Element]) -> bool:
        if len(parts) != 3 or local_name(parts[0].tag) != "mo":
            return False
        kind = INTEGRALS.get(text_of(parts[0]))
        if kind is None:
            return False
        self.emit(f"the {kind}", "with the lower limit")
        self.visit(parts[1])
        self.emit("and with the upper limit")
        self.visit(parts[2])
        self.emit(f"{kind} end")
        return True

    def _visit_mfenced(self, node: ET.Element) -> None:
        open_fence = node.get("open", "(")
        close_fence = node.get("close", ")")
        self.emit(FENCE_OPEN.get(open_fence, open_fence))
        for position, child in enumerate(node):
            if position:
                self.emit("and")
            self.visit(child)
        self.emit(FENCE_CLOSE.get(close_fence, close_fence))

    # Tables

    def _visit_mtable(self, node: ET.Element) -> None:
        rows = list(node)
        self.emit(f"matrix start, the matrix contains {len(rows)} rows,")
        for position, row in enumerate(rows, 1):
            self._row(row, position, last=position == len(rows))
        self.emit("matrix end")

    def _row(self, row: ET.Element, position: int, last: bool) -> None:
        cells = list(row)
        if local_name(row.tag) == "mlabeledtr" and cells:
            # The first cell of a labeled row is the equation label
            self.emit("label")
            self.visit(cells[0])
            cells = cells[1:]
        self.emit(f"row {position} contains {len(cells)} cells:")
        for number, cell in enumerate(cells, 1):
            self.emit(f"cell {number} contains")
            self.visit(cell)
        self.emit("row end" if last else "row end,")


def _is_function(node: ET.Element) -> bool:
    """An mrow ending in function application followed by a fenced argument."""
    children = list(node)
    if len(children) < 2:
        return False
    last, before = children[-1], children[-2]
    return (
        local_name(last.tag) == "mfenced"
        and local_name(before.tag) == "mo"
        and text_of(before) == FUNCTION_APPLICATION
    )


def _opening_word(root: ET.Element) -> str:
    kind = root.get("class")
    if kind == "chemistry":
        return "chemical formula"
    if kind == "physics":
        return "physics formula"
    return "formula"


def generate_words(mathml: str) -> SpokenText:
    """Build the spoken word sequence for a MathML fragment.

    Raises:
        MathMLParseError: if the fragment is not well-formed XML or is nested
            too deeply to walk.
    """
    try:
        root = parse_mathml(mathml)
    except ET.ParseError as exc:
        raise MathMLParseError(f"Unable to parse MathML: {exc}") from exc

    walker = _Walker()
    walker.emit(_opening_word(root))
    try:
        walker.visit(root)
    except RecursionError as exc:
        raise MathMLParseError("MathML is nested too deeply to read") from exc
    walker.emit("formula end")

    language: Optional[str] = root.get(XML_LANG) or root.get("lang")
    return SpokenText(
        words=tuple(walker.words),
        language=language or "no",
        display=root.get("display") or "block",
        ascii=root.get("alttext") or "",
        image=root.get("altimg") or "",
    )
