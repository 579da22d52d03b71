"""mdsite static site generator.

This package turns a directory of Markdown content and static assets into a
static website using Jinja2 page templates and a clean-URL output layout.
It can also serve the result locally and rebuild the whole site on change.

The main entry point is the CLI module, which builds the site once or, with
``-s``, builds it and starts the development server with the change watcher.

Architecture:
- content: discovery, classification and output path mapping
- frontmatter: front-matter/body separation
- renderers / templates: Markdown conversion and page templating
- build: whole-tree build orchestration
- watcher / server: change detection and the development server
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
