"""
Keep LaTeX intact while Markdown is converted to HTML.

Markdown treats "_", "*" and "\\" specially, which corrupts math such as
$a_1 * b_2$. Math spans are swapped for inert placeholders before
conversion and put back (HTML-escaped) afterwards, where MathJax finds them.
"""

import html
import re
from typing import List, Tuple

# Display math first so "$$...$$" is not read as two inline spans
MATH_RE = re.compile(
    r"\$\$.+?\$\$"  # $$ display $$
    r"|\\\[.+?\\\]"  # \[ display \]
    r"|\\\(.+?\\\)"  # \( inline \)
    r"|(?<![\\$])\$(?!\s)[^$\n]+?(?<!\s)\$",  # $inline$ (not "$ 5 and $ 6")
    re.DOTALL,
)

PLACEHOLDER = "MATHSPAN{}X"


def protect_math(text: str) -> Tuple[str, List[str]]:
    """
    Replace math spans with numbered placeholders.

    Returns:
        (text with placeholders, list of the original spans in order)
    """
    spans: List[str] = []

    def _stash(match):
        spans.append(match.group(0))
        return PLACEHOLDER.format(len(spans) - 1)

    return MATH_RE.sub(_stash, text), spans


def restore_math(rendered: str, spans: List[str]) -> str:
    """Put HTML-escaped math spans back in place of their placeholders."""
    for index, span in enumerate(spans):
        rendered = rendered.replace(
            PLACEHOLDER.format(index), html.escape(span, quote=False)
        )
    return rendered


BODY_RE = re.compile(r"<body[^>]*>(.*)</body>", re.DOTALL | re.IGNORECASE)


def html_body(document: str) -> str:
    """Inner HTML of a document's <body>, or the input if it has none."""
    match = BODY_RE.search(document)
    return match.group(1) if match else document
