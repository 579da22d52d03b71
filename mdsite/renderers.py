"""Markdown conversion for mdsite.

This module turns page bodies into HTML fragments with mistune. Headings get
stable ``id`` attributes so sections can be linked to directly. Raw HTML in the
Markdown source is not passed through; it is replaced by a comment.

Key classes:
- MarkdownConverter: Converts Markdown text to an HTML fragment.
- ConversionError: Raised when the Markdown engine fails on a document.
"""

from __future__ import annotations

import re

import mistune

# GitHub-flavoured extensions enabled for every page.
MARKDOWN_PLUGINS = ["strikethrough", "table", "url", "task_lists"]

# Replaces raw HTML found in Markdown source.
RAW_HTML_OMITTED = "<!-- raw HTML omitted -->"


class ConversionError(Exception):
    """Raised when a Markdown document cannot be converted."""


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "heading"


class _HeadingIdRenderer(mistune.HTMLRenderer):
    """HTML renderer that adds unique ``id`` attributes to headings and drops raw HTML."""

    def __init__(self):
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text)

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def inline_html(self, html: str) -> str:
        return RAW_HTML_OMITTED

    def block_html(self, html: str) -> str:
        return RAW_HTML_OMITTED + "\n"


class MarkdownConverter:
    """Converts Markdown text to an HTML fragment.

    A fresh mistune parser is created for every document so heading ids never
    leak between pages.
    """

    def __init__(self, plugins: list[str] | None = None):
        """Initialize the converter.

        Args:
            plugins: mistune plugin names. Defaults to MARKDOWN_PLUGINS.
        """
        self.plugins = list(MARKDOWN_PLUGINS if plugins is None else plugins)

    def convert(self, text: str) -> str:
        """Convert Markdown to HTML.

        Args:
            text: Markdown source.

        Returns:
            Rendered HTML fragment.

        Raises:
            ConversionError: If mistune fails on the document.
        """
        markdown = mistune.create_markdown(
            renderer=_HeadingIdRenderer(), plugins=self.plugins
        )
        try:
            return markdown(text)
        except Exception as exc:
            raise ConversionError(f"{type(exc).__name__}: {exc}") from exc
