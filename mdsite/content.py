"""Content discovery for mdsite.

This module walks the input tree, classifies every entry and decides where
each one lands in the output tree.

Key objects:
- ItemKind: Classification of an input entry.
- WorkItem: One entry of the input tree queued for the build.
- ContentScanner: Depth-first walk producing WorkItems.
- output_path_for: Clean-URL mapping from input to output paths.
"""

from __future__ import annotations

import enum
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path, PurePath

from . import console
from .utils import is_hidden, is_markdown, is_within

INDEX_STEM = "index"
INDEX_FILE = "index.html"


class ItemKind(enum.Enum):
    """How an input entry is handled by the build."""

    DIRECTORY = "directory"
    MARKDOWN = "markdown"
    ASSET = "asset"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class WorkItem:
    """An entry of the input tree.

    Attributes:
        source_path: Absolute path of the entry.
        relative_path: Path relative to the input root.
        kind: How the build treats the entry.
    """

    source_path: Path
    relative_path: PurePath
    kind: ItemKind


def classify(name: str, is_dir: bool) -> ItemKind:
    """Classify an entry by its name.

    Args:
        name: File or directory name.
        is_dir: Whether the entry is a directory.

    Returns:
        The entry's ItemKind.
    """
    if is_hidden(name):
        return ItemKind.HIDDEN
    if is_dir:
        return ItemKind.DIRECTORY
    if is_markdown(PurePath(name)):
        return ItemKind.MARKDOWN
    return ItemKind.ASSET


def output_path_for(relative_path: PurePath, kind: ItemKind) -> PurePath:
    """Map an input path to its output path.

    Markdown pages use clean URLs: ``blog/post.md`` becomes
    ``blog/post/index.html`` so it is served at ``/blog/post/``. A page
    named ``index`` stays in its directory as ``index.html``. Everything
    else keeps its path.

    Args:
        relative_path: Path relative to the input root.
        kind: Classification of the entry.

    Returns:
        Path relative to the output root.

    Raises:
        ValueError: For hidden entries, which have no output location.

    Examples:
        >>> output_path_for(PurePath("blog/post.md"), ItemKind.MARKDOWN)
        PurePosixPath('blog/post/index.html')

        >>> output_path_for(PurePath("blog/index.md"), ItemKind.MARKDOWN)
        PurePosixPath('blog/index.html')
    """
    if kind is ItemKind.HIDDEN:
        raise ValueError(f"Hidden entry has no output path: {relative_path}")
    if kind is not ItemKind.MARKDOWN:
        return relative_path
    if relative_path.stem == INDEX_STEM:
        return relative_path.with_name(INDEX_FILE)
    return relative_path.parent / relative_path.stem / INDEX_FILE


class ContentScanner:
    """Walks an input tree and yields WorkItems.

    The walk is depth-first with siblings in name order. Hidden directories
    are reported once and not descended into.

    Attributes:
        input_dir: Root of the content tree.
        exclude: Directories skipped entirely (the output root when it sits
            inside the input tree).
    """

    def __init__(self, input_dir: Path, exclude: Iterable[Path] = ()):
        """Initialize the scanner.

        Args:
            input_dir: Root of the content tree.
            exclude: Directories to leave out of the walk.
        """
        self.input_dir = input_dir
        self.exclude = list(exclude)

    def _excluded(self, path: Path) -> bool:
        return any(is_within(path, excluded) for excluded in self.exclude)

    def scan(self) -> Iterator[WorkItem]:
        """Walk the input tree.

        Yields:
            WorkItem for every entry below the input root, parents before
            their children.
        """
        root = self.input_dir.resolve()
        for dirpath, dirnames, filenames in os.walk(root, onerror=_report_walk_error):
            current = Path(dirpath)
            dirnames.sort()
            kept: list[str] = []
            for name in dirnames:
                path = current / name
                if self._excluded(path):
                    continue
                kind = classify(name, is_dir=True)
                yield WorkItem(path, path.relative_to(root), kind)
                if kind is ItemKind.DIRECTORY:
                    kept.append(name)
            dirnames[:] = kept
            for name in sorted(filenames):
                path = current / name
                yield WorkItem(path, path.relative_to(root), classify(name, is_dir=False))


def _report_walk_error(exc: OSError) -> None:
    console.error(f"Error walking {exc.filename}: {exc.strerror or exc}")
