"""Command-line interface for mdsite.

This module defines the CLI using the Click framework. One command builds the
site; with ``-s`` it also starts the development server and rebuilds on
change.

Examples:
    mdsite -i content -o public -t layouts
    mdsite -s --port 9000
"""

from __future__ import annotations

from pathlib import Path

import click

from . import __version__, console
from .config import WATCHERS, ConfigError, resolve_config


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="mdsite")
@click.option(
    "-i",
    "input_dir",
    type=click.Path(path_type=Path),
    help="Input directory containing source files [default: input]",
)
@click.option(
    "-o",
    "output_dir",
    type=click.Path(path_type=Path),
    help="Output directory for generated site [default: output]",
)
@click.option(
    "-t",
    "templates_dir",
    type=click.Path(path_type=Path),
    help="Directory containing templates [default: templates]",
)
@click.option("-s", "serve", is_flag=True, help="Start development server after build")
@click.option(
    "--host",
    type=str,
    help="Host address to bind development server [default: 0.0.0.0]",
)
@click.option("--port", type=int, help="Port for development server [default: 8000]")
@click.option(
    "--watcher",
    type=click.Choice(WATCHERS),
    help="Change detection backend [default: poll]",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Config file [default: mdsite.yaml when present]",
)
@click.option("-v", "--verbose", is_flag=True, help="Print every file found and written")
def cli(
    input_dir: Path | None,
    output_dir: Path | None,
    templates_dir: Path | None,
    serve: bool,
    host: str | None,
    port: int | None,
    watcher: str | None,
    config_path: Path | None,
    verbose: bool,
):
    """Build a static site from Markdown content and templates."""
    overrides = {
        "input_dir": input_dir,
        "output_dir": output_dir,
        "templates_dir": templates_dir,
        "serve": serve or None,
        "host": host,
        "port": port,
        "watcher": watcher,
        "verbose": verbose or None,
    }
    try:
        config = resolve_config(overrides, config_path=config_path)
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from None
    console.set_verbose(config.verbose)

    from .build import BuildError

    if config.serve:
        from .server import DevServer

        server = DevServer(config)
        try:
            server.start()
        except BuildError:
            raise SystemExit(1) from None
        except OSError as exc:
            console.error(f"Server error: {exc}")
            raise SystemExit(1) from None
        return

    from .build import build_site

    try:
        build_site(config.input_dir, config.output_dir, config.templates_dir)
    except BuildError:
        raise SystemExit(1) from None


def main():
    """Entry point for the CLI application."""
    cli()
