"""Front-matter handling for mdsite.

A Markdown file may start with a YAML block delimited by ``---`` lines::

    ---
    title: Hello
    template: post.html
    tags: [intro, news]
    ---
    # Body starts here

Key objects:
- FrontMatter: Dataclass holding the decoded block.
- split_frontmatter: Separate the block from the body.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from . import console

OPEN_DELIMITER_RE = re.compile(r"---\r?\n")
CLOSE_DELIMITER_RE = re.compile(r"^---\r?\n", re.MULTILINE)

# Keys bound to named fields; anything else is kept in FrontMatter.custom.
KNOWN_KEYS = ("title", "template", "description", "date", "tags")


@dataclass
class FrontMatter:
    """Metadata decoded from a page's front-matter block.

    Attributes:
        title: Page title.
        template: Template filename to render the page with.
        description: Short page description.
        date: Publication date as written.
        tags: Ordered list of tags.
        custom: Every key not listed above, passed through unchanged.
    """

    title: str = ""
    template: str = ""
    description: str = ""
    date: str = ""
    tags: list[str] = field(default_factory=list)
    custom: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: dict[Any, Any]) -> FrontMatter:
        """Build FrontMatter from a decoded YAML mapping.

        Args:
            data: Mapping produced by ``yaml.safe_load``.

        Returns:
            FrontMatter with known keys bound and the rest in ``custom``.
        """
        values = {str(key): value for key, value in data.items()}
        return cls(
            title=_as_text(values.get("title")),
            template=_as_text(values.get("template")),
            description=_as_text(values.get("description")),
            date=_as_text(values.get("date")),
            tags=_as_tags(values.get("tags")),
            custom={k: v for k, v in values.items() if k not in KNOWN_KEYS},
        )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_tags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(tag) for tag in value if tag is not None]
    return [str(value)]


def split_frontmatter(text: str, source: str = "") -> tuple[FrontMatter, str]:
    """Split raw file text into front matter and body.

    A block is only recognised when the text starts with a ``---`` line.
    Without a closing ``---`` line the whole text is treated as body. When the
    block cannot be decoded the error is logged and the metadata is empty, but
    the block is still removed from the body.

    Args:
        text: Raw file content.
        source: Name of the file, used in log messages.

    Returns:
        Tuple of (front matter, remaining body text).
    """
    opening = OPEN_DELIMITER_RE.match(text)
    if not opening:
        return FrontMatter(), text

    closing = CLOSE_DELIMITER_RE.search(text, opening.end())
    if not closing:
        return FrontMatter(), text

    block = text[opening.end() : closing.start()]
    body = text[closing.end() :]

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        console.error(f"Error parsing front matter{_where(source)}: {exc}")
        return FrontMatter(), body

    if data is None:
        return FrontMatter(), body
    if not isinstance(data, dict):
        console.error(
            f"Error parsing front matter{_where(source)}: expected a mapping, "
            f"got {type(data).__name__}"
        )
        return FrontMatter(), body
    return FrontMatter.from_mapping(data), body


def _where(source: str) -> str:
    return f" in {source}" if source else ""
