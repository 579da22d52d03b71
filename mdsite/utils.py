"""Utility functions for mdsite.

Path classification and filesystem helpers shared by the scanner, the build
and the watcher.

Key functions:
    is_markdown: Check if a path is a Markdown file.
    is_hidden: Check if a file or directory name marks it hidden.
    is_temporary: Check if a file is an editor/tool temporary file.
    is_within: Check if one path lies inside another.
    ensure_clean_dir: Ensure a directory exists and is empty.
    copy_file: Copy a file byte-for-byte, creating parent directories.
"""

from __future__ import annotations

import shutil
from pathlib import Path, PurePath

MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown", ".mkd", ".mdown"})
TEMPORARY_SUFFIX = ".tmp"


def is_markdown(path: PurePath) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the extension is one of .md, .markdown, .mkd or .mdown
        (case-insensitive).

    Examples:
        >>> is_markdown(Path("notes.MD"))
        True

        >>> is_markdown(Path("style.css"))
        False
    """
    return path.suffix.lower() in MARKDOWN_EXTENSIONS


def is_hidden(name: str) -> bool:
    """Check if a file or directory name is hidden (starts with a dot)."""
    return name.startswith(".")


def is_temporary(name: str) -> bool:
    return name.endswith(TEMPORARY_SUFFIX)


def is_within(path: Path, root: Path) -> bool:
    """Check if ``path`` is ``root`` or lies beneath it.

    Both paths are resolved first so relative and absolute spellings compare
    equal.

    Args:
        path: Candidate path.
        root: Directory that may contain ``path``.

    Returns:
        True if ``path`` equals ``root`` or is one of its descendants.
    """
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()
    path.mkdir(parents=True, exist_ok=True)


def copy_file(source: Path, dest: Path) -> None:
    """Copy a file byte-for-byte, creating the destination directory.

    Args:
        source: File to copy.
        dest: Target file path.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, dest)
