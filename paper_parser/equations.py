"""
Equation Classifier
===================
Finds equation-shaped tokens in question text and tags each one with a
type. Also provides the document-level math / chemical expression scans.

Each category pattern is scanned independently, so one substring can be
reported once per category that matches it. Callers that need unique
equations must de-duplicate themselves.
"""

from __future__ import annotations

import re

from .models import Equation, EquationType, ExpressionMatch
from .notation import to_latex

# Ordered category scan
EQUATION_PATTERNS = (
    re.compile(r"\w+/\w+"),                          # fractions
    re.compile(r"\w+\^\d+"),                         # powers
    re.compile(r"√[^√\s]+"),                         # square roots
    re.compile(r"∫[^∫]*"),                           # integrals
    re.compile(r"[A-Z][a-z]?\d*[A-Z][a-z]?\d*"),     # chemical formulas
)

ELEMENT_SHAPE = re.compile(r"[A-Z][a-z]?\d*")

MATH_EXPRESSION_PATTERNS = (
    re.compile(r"[a-zA-Z]\s*[+\-*/=]\s*[a-zA-Z0-9\s+\-*/=()^]+"),
    re.compile(r"∫[^∫]*?dx"),
    re.compile(r"∑\S*"),
    re.compile(r"√[^√\s]+"),
    re.compile(r"[a-zA-Z]²|[a-zA-Z]³|[a-zA-Z]\^[0-9]+"),
    re.compile(r"\b(?:sin|cos|tan|log|ln|exp)\b"),
)

CHEMICAL_EQUATION_PATTERNS = (
    re.compile(r"[A-Z][a-z]?\d*\s*\+\s*[A-Z][a-z]?\d*\s*→\s*[A-Z][a-z]?\d*"),
    re.compile(r"[A-Z][a-z]?\d*\s*⇌\s*[A-Z][a-z]?\d*"),
    re.compile(r"[A-Z][a-z]?\d*\s*\((?:s|l|g|aq)\)"),
)


def classify_equation(literal: str) -> EquationType:
    """Resolve an equation's type by symbol priority."""
    if "/" in literal:
        return EquationType.FRACTION
    if "^" in literal:
        return EquationType.POWER
    if "√" in literal:
        return EquationType.SQUARE_ROOT
    if "∫" in literal:
        return EquationType.INTEGRAL
    if ELEMENT_SHAPE.search(literal):
        return EquationType.CHEMICAL_FORMULA
    return EquationType.MATHEMATICAL


class EquationClassifier:
    """Scans text with the category patterns and emits typed equations."""

    def __init__(self, patterns: tuple[re.Pattern, ...] = EQUATION_PATTERNS):
        self.patterns = patterns

    def extract(self, text: str) -> list[Equation]:
        equations: list[Equation] = []
        for pattern in self.patterns:
            for match in pattern.finditer(text):
                literal = match.group(0)
                equations.append(Equation(
                    original=literal,
                    latex=to_latex(literal),
                    type=classify_equation(literal),
                ))
        return equations


def _scan(text: str, patterns, kind: str) -> list[ExpressionMatch]:
    return [
        ExpressionMatch(expression=m.group(0), type=kind, position=m.start())
        for pattern in patterns
        for m in pattern.finditer(text)
        if m.group(0)
    ]


def extract_math_expressions(text: str) -> list[ExpressionMatch]:
    """Document-level scan for operator expressions and math functions."""
    return _scan(text, MATH_EXPRESSION_PATTERNS, "mathematical")


def extract_chemical_equations(text: str) -> list[ExpressionMatch]:
    """Document-level scan for reactions and state-annotated species."""
    return _scan(text, CHEMICAL_EQUATION_PATTERNS, "chemical")
