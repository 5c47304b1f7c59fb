"""Markdown and math rendering for finished responses."""

from __future__ import annotations

import html
import re
import uuid

import markdown
from markdown.extensions import Extension

_MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]

_BLANK_RUNS = re.compile(r"\n{2,}")
_LEADING_SPACE = re.compile(r"^[ \t]+", re.MULTILINE)

_DISPLAY_OPEN = re.compile(r"\\\[")
_DISPLAY_CLOSE = re.compile(r"\\\]")
_INLINE_OPEN = re.compile(r"\\\(")
_INLINE_CLOSE = re.compile(r"\\\)")
_SPACED_POWER = re.compile(r"\b(\d+) \^ (\d+)\b")
_BARE_POWER = re.compile(r"x\^(\d+)")

_DISPLAY_MATH = re.compile(r"\$\$(.+?)\$\$", re.DOTALL)
_INLINE_MATH = re.compile(r"(?<!\$)\$(?!\$)([^$\n]+?)\$")
_PLACEHOLDER = re.compile(r"@@MATH([0-9a-f]{32})x(\d+)@@")


def clean_response(text: str) -> str:
    """Trim the response and squeeze blank lines and per-line indentation."""

    cleaned = _BLANK_RUNS.sub("\n\n", text.strip())
    return _LEADING_SPACE.sub("", cleaned)


def normalize_math(text: str) -> str:
    """Rewrite LaTeX delimiters and bare exponents into KaTeX-friendly form.

    ``\\[ .. \\]`` becomes ``$$ .. $$``, ``\\( .. \\)`` becomes ``$ .. $``,
    ``2 ^ 10`` becomes ``2^{ 10 }`` and ``x^2`` becomes ``x^{2}``. Running it
    on its own output changes nothing.
    """

    text = _DISPLAY_OPEN.sub("$$", text)
    text = _DISPLAY_CLOSE.sub("$$", text)
    text = _INLINE_OPEN.sub("$", text)
    text = _INLINE_CLOSE.sub("$", text)
    text = _SPACED_POWER.sub(r"\1^{ \2 }", text)
    return _BARE_POWER.sub(r"x^{\1}", text)


class EscapeRawHtmlExtension(Extension):
    """Treat raw HTML in the response as text instead of passing it through."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")


def render_markdown(text: str) -> str:
    """Convert a finished response into HTML ready for math typesetting.

    Math regions are lifted out before Markdown conversion so that
    underscores and asterisks inside formulas survive, then put back
    HTML-escaped with their ``$``/``$$`` delimiters for KaTeX auto-render.
    Placeholders carry a per-call token so text that merely looks like one
    is left alone. Raw HTML in the response is escaped.
    """

    source = normalize_math(clean_response(text))
    token = uuid.uuid4().hex
    regions: list[str] = []

    def _stash(match: re.Match[str]) -> str:
        regions.append(match.group(0))
        return f"@@MATH{token}x{len(regions) - 1}@@"

    protected = _DISPLAY_MATH.sub(_stash, source)
    protected = _INLINE_MATH.sub(_stash, protected)

    rendered = markdown.markdown(
        protected, extensions=[*_MARKDOWN_EXTENSIONS, EscapeRawHtmlExtension()]
    )

    def _restore(match: re.Match[str]) -> str:
        index = int(match.group(2))
        if match.group(1) != token or index >= len(regions):
            return match.group(0)
        return html.escape(regions[index], quote=False)

    return _PLACEHOLDER.sub(_restore, rendered)
