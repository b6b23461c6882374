"""Starter contents offered when creating a document."""

from __future__ import annotations

from typing import Mapping

BLANK = """\
# Untitled

"""

ARTICLE = """\
# Latte

Welcome to **Latte**, a small editor with a live preview.

## Introduction

Start writing your document here. The preview on the right
updates automatically as you type.

## Mathematics

Inline math: $E = mc^2$

Display math:

$$
\\int_{-\\infty}^{\\infty} e^{-x^2}\\, dx = \\sqrt{\\pi}
$$
"""

MATH = """\
# Mathematics

## Calculus

The fundamental theorem of calculus:

$$
\\int_a^b f'(x)\\,dx = f(b) - f(a)
$$

## Algebra

The quadratic formula: $x = \\dfrac{-b \\pm \\sqrt{b^2 - 4ac}}{2a}$

## Series

Euler's identity: $e^{i\\pi} + 1 = 0$

Taylor series: $e^x = \\sum_{n=0}^{\\infty} \\dfrac{x^n}{n!}$
"""

LETTER = """\
Recipient Name
Street Address
City, Country

Dear Sir or Madam,

I am writing to you regarding the matter discussed previously.
Please find my thoughts enclosed herein.

Sincerely,
"""

TEMPLATES: Mapping[str, str] = {
    "blank": BLANK,
    "article": ARTICLE,
    "math": MATH,
    "letter": LETTER,
}

DEFAULT_TEMPLATE = "blank"
WELCOME_TEMPLATE = "article"


def resolve_template(
    key: str | None,
    registry: Mapping[str, str] | None = None,
    *,
    default: str = DEFAULT_TEMPLATE,
) -> str:
    """Return the starter content for ``key``, falling back to ``default``."""

    templates = TEMPLATES if registry is None else registry
    if key and key in templates:
        return templates[key]
    return templates.get(default, "")


__all__ = [
    "TEMPLATES",
    "DEFAULT_TEMPLATE",
    "WELCOME_TEMPLATE",
    "resolve_template",
]
