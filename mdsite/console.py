"""Operator console output for mdsite.

All build, watch and request messages go through these helpers so colors
stay consistent. Errors are written to stderr, everything else to stdout.
Per-file detail lines are only shown when verbose output is enabled.
"""

from __future__ import annotations

import click

_verbose = False


def set_verbose(enabled: bool) -> None:
    """Enable or disable per-file detail output."""
    global _verbose
    _verbose = bool(enabled)


def is_verbose() -> bool:
    return _verbose


def blue(text: str) -> str:
    return click.style(text, fg="blue")


def green(text: str) -> str:
    return click.style(text, fg="green")


def yellow(text: str) -> str:
    return click.style(text, fg="yellow")


def red(text: str) -> str:
    return click.style(text, fg="red")


def magenta(text: str) -> str:
    return click.style(text, fg="magenta")


def cyan(text: str) -> str:
    return click.style(text, fg="cyan")


def echo(message: str = "") -> None:
    click.echo(message)


def heading(message: str) -> None:
    click.echo(blue(message))


def field(label: str, value: object) -> None:
    """Print a ``label value`` pair with the label highlighted."""
    click.echo(f"{yellow(label)} {value}")


def success(message: str) -> None:
    click.echo(f"{green('✓')} {message}")


def detail(label: str, value: object) -> None:
    """Print a labelled line only in verbose mode."""
    if _verbose:
        click.echo(f"{green(label)} {value}")


def warning(message: str) -> None:
    click.echo(f"{yellow('Warning:')} {message}", err=True)


def error(message: str) -> None:
    click.echo(f"{red('Error:')} {message}", err=True)
