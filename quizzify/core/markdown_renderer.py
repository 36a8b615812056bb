"""Markdown rendering of question text for the browser client.

Math written as ``$...$`` or ``$$...$$`` passes through untouched; the
browser page typesets it with MathJax after inserting the HTML.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

_EMPTY_FRAGMENT = "<p><em>No content provided.</em></p>"


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts question markdown into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown block into an HTML fragment."""
        sanitized = (markdown_text or "").strip()
        if not sanitized:
            return _EMPTY_FRAGMENT
        return self._markdown.render(sanitized)

    def render_inline(self, markdown_text: str) -> str:
        """Render a single line, such as an option label, without a wrapping paragraph."""
        return self._markdown.renderInline((markdown_text or "").strip())


# Shared by the API handlers; rendering never mutates the parser.
renderer = MarkdownRenderer()
