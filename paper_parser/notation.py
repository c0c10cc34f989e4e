"""
Notation Converter
==================
Rule-based rewriting of plain-text math and chemistry shorthand into
LaTeX and HTML-ready markup.

Conversion is an ordered list of (pattern, replacement) steps. Later
steps assume earlier ones already ran:

    1. inverse / adjoint exponents   A-1        → A^{-1}
    2. generic exponents             x^2        → x^{2}
    3. fractions                     y^{3}/4    → \\frac{y^{3}}{4}
    4. chemical subscripts           H2O        → H_2O
    5. roots, integrals, sums, |z|
    6. complex conjugates            zz*        → z\\bar{z}
    7. Greek letters and arrows
    8. cleanup of double conversions ^{-1}^{-1} → ^{-1}

The chain is not idempotent in general. Only the patterns guarded in
step 8 are fixed points under repeated application.
"""

from __future__ import annotations

import html
import re
from typing import Callable, NamedTuple, Union

Replacement = Union[str, Callable[[re.Match], str]]


class ConversionRule(NamedTuple):
    """One step of a conversion chain."""
    name: str
    pattern: re.Pattern
    replacement: Replacement

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def _rule(name: str, pattern: str, replacement: Replacement) -> ConversionRule:
    return ConversionRule(name, re.compile(pattern), replacement)


def _literal(value: str) -> Callable[[re.Match], str]:
    # Function replacements skip template parsing, so backslashes stay as-is
    return lambda _match: value


GREEK_LETTERS = {
    "α": r"\alpha",
    "β": r"\beta",
    "γ": r"\gamma",
    "δ": r"\delta",
    "ε": r"\epsilon",
    "θ": r"\theta",
    "λ": r"\lambda",
    "μ": r"\mu",
    "π": r"\pi",
    "σ": r"\sigma",
    "τ": r"\tau",
    "φ": r"\phi",
    "ω": r"\omega",
}

ARROWS = {
    "→": r"\rightarrow",
    "←": r"\leftarrow",
    "⇌": r"\rightleftharpoons",
    "⇒": r"\Rightarrow",
}


# ─── LaTeX Rule Chain ─────────────────────────────────────────────────────────

INVERSE_RULES = (
    _rule("adjoint_inverse", r"adj\(([^)]+)-1\)", r"adj(\1)^{-1}"),
    _rule("word_inverse", r"(\w+)-1\b", r"\1^{-1}"),
    _rule("group_inverse", r"\(([^)]+)\)-1", r"(\1)^{-1}"),
    _rule("inline_inverse", r"(\w+)-1(\w+)", r"\1^{-1}\2"),
    _rule("trailing_group_inverse", r"\)-1(\w+)", r")^{-1}\1"),
)

EXPONENT_RULES = (
    _rule("exponent", r"(\w+)\^(\d+)", r"\1^{\2}"),
)

FRACTION_RULES = (
    _rule("fraction", r"(\w+)/(\d+)",
          lambda m: r"\frac{%s}{%s}" % (m.group(1), m.group(2))),
    _rule("superscript_fraction", r"(\w+\^?\d*\{?\d+\}?)/(\d+)",
          lambda m: r"\frac{%s}{%s}" % (m.group(1), m.group(2))),
)

# Digits followed by ^, { or - belong to an exponent, not a subscript
SUBSCRIPT_RULES = (
    _rule("subscript", r"([A-Z][a-z]?)(\d+)(?![\d^{\-])", r"\1_\2"),
)

SYMBOL_RULES = (
    _rule("square_root", r"√([^√\s]+)", lambda m: r"\sqrt{%s}" % m.group(1)),
    _rule("integral", r"∫", _literal(r"\int")),
    _rule("summation", r"∑", _literal(r"\sum")),
    _rule("absolute_value", r"\|([^|]+)\|",
          lambda m: r"\lvert %s\rvert" % m.group(1)),
)

CONJUGATE_RULES = (
    _rule("starred_conjugate", r"(\w)\1\*",
          lambda m: r"%s\bar{%s}" % (m.group(1), m.group(1))),
    _rule("bare_conjugate", r"\bzz\b", _literal(r"z\bar{z}")),
)

SYMBOL_TABLE_RULES = tuple(
    _rule(f"symbol_{latex[1:]}", re.escape(symbol), _literal(latex))
    for symbol, latex in {**GREEK_LETTERS, **ARROWS}.items()
)

CLEANUP_RULES = (
    _rule("double_inverse", r"\^\{-1\}\^\{-1\}", "^{-1}"),
)

LATEX_RULES: tuple[ConversionRule, ...] = (
    INVERSE_RULES
    + EXPONENT_RULES
    + FRACTION_RULES
    + SUBSCRIPT_RULES
    + SYMBOL_RULES
    + CONJUGATE_RULES
    + SYMBOL_TABLE_RULES
    + CLEANUP_RULES
)


# ─── Chemistry Rule Chain ─────────────────────────────────────────────────────

CHEMISTRY_RULES: tuple[ConversionRule, ...] = (
    _rule("element_count", r"([A-Z][a-z]?)(\d+)", r"\1<sub>\2</sub>"),
    _rule("physical_state", r"\((s|l|g|aq)\)", r"<sub>(\1)</sub>"),
)

# Inline LaTeX math segments are passed through untouched
MATH_DELIMITED = re.compile(r"(\$[^$]*\$)")


def apply_rules(text: str, rules: tuple[ConversionRule, ...]) -> str:
    """Run ``text`` through ``rules`` in order."""
    for rule in rules:
        text = rule.apply(text)
    return text


def to_latex(text: str) -> str:
    """Convert plain-text math shorthand to LaTeX."""
    if not text:
        return ""
    return apply_rules(text, LATEX_RULES)


def to_chemistry_markup(text: str) -> str:
    """Wrap formula counts and physical states in <sub> markup."""
    if not text:
        return ""
    parts = MATH_DELIMITED.split(text)
    return "".join(
        part if MATH_DELIMITED.fullmatch(part) else apply_rules(part, CHEMISTRY_RULES)
        for part in parts
    )


def render_latex(text: str) -> str:
    """LaTeX rendering used for question and option ``latex_text``."""
    return to_chemistry_markup(to_latex(text))


def to_html(text: str) -> str:
    """HTML-escape text for rich text editors, keeping line breaks."""
    if not text:
        return ""
    return html.escape(text, quote=True).replace("\n", "<br>")
