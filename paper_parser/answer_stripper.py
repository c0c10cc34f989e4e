"""
Answer Stripper
===============
Cuts answer, solution and explanation text off the end of a question
span so that only the question body reaches option extraction.
"""

from __future__ import annotations

import re

# Each rule cuts at its first match and discards everything after it.
# Applied in this order.
CUT_PATTERNS = [
    re.compile(r"Ans\.\s*\([^)]+\).*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"Answer:\s*.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"Sol\.\s*.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"Solution:\s*.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"Explanation:\s*.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"(?:Explanation|Working|Method|Approach).*$",
               re.IGNORECASE | re.DOTALL),
]


def strip_answer(span: str) -> str:
    """Return the question body of ``span`` without trailing answer text."""
    for pattern in CUT_PATTERNS:
        match = pattern.search(span)
        if match:
            span = span[:match.start()]
    return span.strip()
