"""Site building functionality for mdsite.

This module contains the core logic for building a static site from source files.
It checks the source directories, wipes the output directory, walks the input
tree, renders Markdown pages through their templates, copies everything else,
and writes ``robots.txt``.

Key functions:
- build_site: Main function to build the entire site.
- render_page: Render one Markdown file to its final HTML.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path

from . import console
from .content import ContentScanner, ItemKind, WorkItem, output_path_for
from .frontmatter import split_frontmatter
from .renderers import ConversionError, MarkdownConverter
from .templates import Fallback, PageRenderer, RenderResult, list_templates
from .utils import copy_file, ensure_clean_dir, is_within

ROBOTS_TXT = "robots.txt"
DEFAULT_ROBOTS_TXT = "User-agent: *\nAllow: /\nSitemap: sitemap.xml"


class BuildError(Exception):
    """Error that stops a build before any output is written.

    Attributes:
        source_path: Path the problem was found at.
        message: Human-readable error message.
    """

    def __init__(self, source_path: Path, message: str):
        self.source_path = source_path
        self.message = message
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        processed_count: Number of files rendered or copied.
        elapsed: Wall-clock duration of the build in seconds.
        output_dir: Directory where the site was built.
    """

    processed_count: int
    elapsed: float
    output_dir: Path


def build_site(
    input_dir: Path,
    output_dir: Path,
    templates_dir: Path,
    converter: MarkdownConverter | None = None,
) -> BuildResult:
    """Build the entire static site.

    Per-file problems are reported and skipped; they never stop the build.

    Args:
        input_dir: Directory holding Markdown content and assets.
        output_dir: Directory to write the site into. Deleted and recreated.
        templates_dir: Directory holding page templates.
        converter: Optional Markdown converter to use.

    Returns:
        BuildResult with the processed file count and elapsed time.

    Raises:
        BuildError: If the input or templates directory is missing, or the
            output directory would overlap a source directory.
    """
    console.heading("Build Configuration:")
    console.field("Input directory:", input_dir)
    console.field("Output directory:", output_dir)
    console.field("Templates directory:", templates_dir)

    _check_directories(input_dir, output_dir, templates_dir)

    scanner = ContentScanner(input_dir, exclude=[output_dir])
    if console.is_verbose():
        console.heading("\nFiles found in input directory:")
        for item in scanner.scan():
            if item.kind is ItemKind.MARKDOWN or item.kind is ItemKind.ASSET:
                console.detail("Found:", item.relative_path.as_posix())

    ensure_clean_dir(output_dir)

    start = time.perf_counter()
    converter = converter or MarkdownConverter()
    renderer = PageRenderer(templates_dir)
    count = 0
    for item in scanner.scan():
        if _process_item(item, output_dir, converter, renderer):
            count += 1

    _write_robots_txt(input_dir, output_dir)

    elapsed = time.perf_counter() - start
    console.success(f"Processed {count} files in {elapsed:.2f} seconds.")
    return BuildResult(processed_count=count, elapsed=elapsed, output_dir=output_dir)


def _check_directories(input_dir: Path, output_dir: Path, templates_dir: Path) -> None:
    """Validate the build directories before anything is deleted.

    Raises:
        BuildError: On a missing source directory or an unsafe output directory.
    """
    if not input_dir.is_dir():
        _fail(input_dir, "Input directory does not exist")
    if not templates_dir.is_dir():
        _fail(templates_dir, "Templates directory does not exist")
    for source in (input_dir, templates_dir):
        if is_within(source, output_dir):
            _fail(output_dir, f"Output directory would overwrite source directory {source}")


def _fail(path: Path, message: str) -> None:
    console.error(f"{message}: {path}")
    raise BuildError(path, message)


def _process_item(
    item: WorkItem,
    output_dir: Path,
    converter: MarkdownConverter,
    renderer: PageRenderer,
) -> bool:
    """Copy or render one entry.

    Args:
        item: Entry to process.
        output_dir: Root of the output tree.
        converter: Markdown converter.
        renderer: Page renderer.

    Returns:
        True if a file was written.
    """
    if item.kind is ItemKind.HIDDEN:
        return False

    target = output_dir / output_path_for(item.relative_path, item.kind)
    if item.kind is ItemKind.DIRECTORY:
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            console.error(f"Error creating directory {target}: {exc}")
        return False

    if item.kind is ItemKind.ASSET:
        try:
            copy_file(item.source_path, target)
        except OSError as exc:
            console.error(f"Error copying {item.relative_path.as_posix()}: {exc}")
            return False
        return True

    try:
        result = render_page(item.source_path, renderer, converter)
    except (OSError, UnicodeDecodeError) as exc:
        console.error(f"Error reading markdown file {item.source_path}: {exc}")
        return False
    except ConversionError as exc:
        console.error(f"Error converting markdown {item.source_path}: {exc}")
        return False

    if isinstance(result, Fallback):
        console.error(result.reason)

    try:
        encoded = result.html.encode("utf-8")
    except UnicodeEncodeError as exc:
        console.error(f"Error encoding HTML for {item.source_path}: {exc}")
        return False

    console.detail("Writing HTML to:", target)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(encoded)
    except OSError as exc:
        console.error(f"Error writing HTML file {target}: {exc}")
        return False
    return True


def render_page(
    source_path: Path,
    renderer: PageRenderer,
    converter: MarkdownConverter | None = None,
) -> RenderResult:
    """Render a Markdown file to its final HTML.

    Args:
        source_path: Markdown file to render.
        renderer: Page renderer holding the templates directory.
        converter: Optional Markdown converter to use.

    Returns:
        Rendered or Fallback result.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not UTF-8.
        ConversionError: If Markdown conversion fails.
    """
    text = source_path.read_text(encoding="utf-8")
    frontmatter, body = split_frontmatter(text, source=str(source_path))
    content_html = (converter or MarkdownConverter()).convert(body)

    console.detail("Processing", source_path)
    console.detail("Template:", frontmatter.template)
    console.detail("Content length:", len(body))
    if console.is_verbose():
        console.detail(
            "Available templates:", ", ".join(list_templates(renderer.templates_dir))
        )
    return renderer.render(frontmatter, content_html)


def _write_robots_txt(input_dir: Path, output_dir: Path) -> None:
    """Copy the site's robots.txt, or write the default one.

    Args:
        input_dir: Root of the content tree.
        output_dir: Root of the output tree.
    """
    source = input_dir / ROBOTS_TXT
    target = output_dir / ROBOTS_TXT
    try:
        if source.is_file():
            copy_file(source, target)
            console.echo("Copied existing robots.txt")
        else:
            target.write_bytes(DEFAULT_ROBOTS_TXT.encode("utf-8"))
            console.echo("Generated default robots.txt")
    except OSError as exc:
        console.error(f"Error writing robots.txt: {exc}")
