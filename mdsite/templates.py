"""Page templating for mdsite.

Pages are rendered with Jinja2 templates loaded from the templates directory.
Template problems never fail a build: a page whose template is missing,
invalid or raises while rendering is written as a bare fallback page holding
only its converted content.

Templates can reference fields either as Jinja2 names (``{{ Title }}``) or as
dotted field references (``{{.Title}}``).

Key objects:
- PageRenderer: Resolves a page's template and renders it.
- Rendered / Fallback: The two possible outcomes of a render.
- build_context: Assemble the data a template sees.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from markupsafe import Markup

from .frontmatter import FrontMatter

DEFAULT_TEMPLATE = "default.html"
TEMPLATE_EXTENSIONS = (".html", ".htm", ".tmpl", ".xml")
FALLBACK_PAGE = "<html><body>{content}</body></html>"

DOT_FIELD_RE = re.compile(r"\{\{(-?)\s*\.([A-Za-z_][A-Za-z0-9_]*)\s*(-?)\}\}")


@dataclass(frozen=True)
class Rendered:
    """Page produced by its template."""

    html: str
    template: str


@dataclass(frozen=True)
class Fallback:
    """Bare page produced because the template could not be used.

    Attributes:
        html: The fallback document wrapping the converted content.
        template: Name of the template that failed.
        reason: Why the template could not be used.
    """

    html: str
    template: str
    reason: str


RenderResult = Union[Rendered, Fallback]


def rewrite_dot_fields(source: str) -> str:
    """Rewrite ``{{.Name}}`` field references as Jinja2 ``{{ Name }}``.

    Only bare field references are rewritten; any other expression is left
    for Jinja2 to parse.

    Examples:
        >>> rewrite_dot_fields("<h1>{{.Title}}</h1>")
        '<h1>{{ Title }}</h1>'
    """
    return DOT_FIELD_RE.sub(
        lambda m: "{{" + m.group(1) + " " + m.group(2) + " " + m.group(3) + "}}",
        source,
    )


class DotFieldLoader(FileSystemLoader):
    """FileSystemLoader that accepts dotted field references."""

    def get_source(self, environment, template):
        source, filename, uptodate = super().get_source(environment, template)
        return rewrite_dot_fields(source), filename, uptodate


def build_context(frontmatter: FrontMatter, content_html: str) -> dict[str, Any]:
    """Assemble the data exposed to a page template.

    Custom front-matter keys are merged last, so a custom key named like a
    reserved field replaces that field.

    Args:
        frontmatter: Decoded front matter of the page.
        content_html: Converted HTML fragment of the page body.

    Returns:
        Template context dictionary.
    """
    context: dict[str, Any] = {
        "Title": frontmatter.title,
        "Description": frontmatter.description,
        "Date": frontmatter.date,
        "Tags": list(frontmatter.tags),
        "Content": Markup(content_html),
    }
    context.update(frontmatter.custom)
    return context


def fallback_page(content_html: str) -> str:
    return FALLBACK_PAGE.format(content=content_html)


def list_templates(templates_dir: Path) -> list[str]:
    """List template files below ``templates_dir`` as relative POSIX paths."""
    if not templates_dir.is_dir():
        return []
    return sorted(
        path.relative_to(templates_dir).as_posix()
        for path in templates_dir.rglob("*")
        if path.is_file() and path.suffix.lower() in TEMPLATE_EXTENSIONS
    )


class PageRenderer:
    """Renders pages through templates found in a directory.

    The Jinja2 template cache is disabled, so every render reads its template
    from disk again and edits are picked up by the next build.

    Attributes:
        templates_dir: Directory containing templates.
        env: Jinja2 environment.
    """

    def __init__(self, templates_dir: Path):
        """Initialize the renderer.

        Args:
            templates_dir: Directory with templates.
        """
        self.templates_dir = templates_dir
        self.env = Environment(
            loader=DotFieldLoader(str(templates_dir)),
            autoescape=select_autoescape(["html", "htm", "xml", "tmpl"]),
            cache_size=0,
        )

    def resolve_name(self, frontmatter: FrontMatter) -> str:
        return frontmatter.template or DEFAULT_TEMPLATE

    def render(self, frontmatter: FrontMatter, content_html: str) -> RenderResult:
        """Render a page with its template.

        Args:
            frontmatter: Decoded front matter of the page.
            content_html: Converted HTML fragment of the page body.

        Returns:
            Rendered on success, Fallback when the template could not be
            loaded or raised while rendering.
        """
        name = self.resolve_name(frontmatter)
        try:
            template = self.env.get_template(name)
        except (TemplateError, OSError, UnicodeDecodeError) as exc:
            reason = f"Error loading template {name}: {_describe(exc)}"
            return Fallback(fallback_page(content_html), name, reason)

        context = build_context(frontmatter, content_html)
        try:
            html = template.render(context)
        except Exception as exc:
            # Template code can raise arbitrary errors while executing.
            reason = f"Error executing template {name}: {_describe(exc)}"
            return Fallback(fallback_page(content_html), name, reason)
        return Rendered(html, name)


def _describe(exc: Exception) -> str:
    message = str(exc)
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__
