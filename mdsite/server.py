"""Development server for mdsite.

Serves the built site while watching the sources:
- Builds once, then serves the output directory over HTTP on a background thread.
- Logs every request with client address, time, path, method and duration.
- Rejects directory listings with a 404 (serving 404.html when present).
- Ticks a ChangeWatcher on the main thread, rebuilding the whole site on change.

Key classes:
- DevServer: Main class for running the development server.
- _LoggingHandler: HTTP request handler that logs requests and enforces 404s.
"""

from __future__ import annotations

import functools
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import urlsplit

from . import console
from .build import BuildResult, build_site
from .config import SiteConfig
from .protocols import ChangeSource
from .watcher import (
    TICK_INTERVAL,
    ChangeWatcher,
    EventChangeSource,
    PollingChangeSource,
    watched_trees,
)

LOG_TIME_FORMAT = "%d/%b/%Y:%H:%M:%S %z"


def format_request_log(
    address: str, when: time.struct_time, path: str, method: str, duration: float
) -> str:
    """Format one request log line.

    Args:
        address: Client ``host:port``.
        when: Local time the request finished.
        path: URL path without the query string.
        method: HTTP method.
        duration: Handling time in seconds.

    Returns:
        Colored log line.
    """
    return " ".join(
        [
            console.cyan(address),
            time.strftime(LOG_TIME_FORMAT, when),
            console.magenta(path),
            method,
            console.yellow(f"{duration * 1000:.3f}ms"),
        ]
    )


class _LoggingHandler(SimpleHTTPRequestHandler):
    """Static file handler that logs each request through the console."""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def handle_one_request(self):
        # Reset so a closed keep-alive connection does not log the last request twice.
        self.command = None
        super().handle_one_request()
        if self.command:
            duration = time.perf_counter() - self._started
            host, port = self.client_address[:2]
            console.echo(
                format_request_log(
                    f"{host}:{port}",
                    time.localtime(),
                    urlsplit(self.path).path,
                    self.command,
                    duration,
                )
            )

    def parse_request(self):
        # Timing starts once the request line has arrived.
        self._started = time.perf_counter()
        return super().parse_request()

    def log_request(self, code="-", size="-"):
        # Requests are logged by handle_one_request.
        pass

    def log_message(self, format, *args):
        console.detail("HTTP:", format % args)

    def list_directory(self, path):
        # Never expose directory listings; treat as missing content.
        return self._serve_404()

    def _serve_404(self):
        """Serve 404.html (when present) with a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.is_file():
            encoded = error_page.read_bytes()
            self.send_response(404)
            self.send_header("Content-type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)
            return None
        self.send_error(404, "File not found")
        return None


class DevServer:
    """Development server with whole-site rebuild on change.

    Attributes:
        config: Resolved site configuration.
        output_dir: Directory served over HTTP.
        interval: Seconds between watcher ticks.
    """

    def __init__(self, config: SiteConfig, interval: float = TICK_INTERVAL):
        """Initialize the development server.

        Args:
            config: Resolved site configuration.
            interval: Seconds between watcher ticks.
        """
        self.config = config
        self.output_dir = config.output_dir.resolve()
        self.interval = interval
        self._build_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._httpd: ThreadingHTTPServer | None = None
        self._http_thread: threading.Thread | None = None
        self._source: ChangeSource | None = None

    def rebuild(self) -> BuildResult:
        """Build the site, never running two builds at once."""
        with self._build_lock:
            return build_site(
                self.config.input_dir, self.config.output_dir, self.config.templates_dir
            )

    def make_server(self) -> ThreadingHTTPServer:
        """Bind the HTTP server.

        Raises:
            OSError: If the address cannot be bound.
        """
        handler = functools.partial(_LoggingHandler, directory=str(self.output_dir))
        return ThreadingHTTPServer((self.config.host, self.config.port), handler)

    def make_source(self) -> ChangeSource:
        trees = watched_trees(self.config.input_dir, self.config.templates_dir)
        if self.config.watcher == "events":
            return EventChangeSource(trees, exclude=[self.output_dir])
        return PollingChangeSource(trees, exclude=[self.output_dir])

    def start(self) -> None:  # pragma: no cover - integration path
        """Build, serve and watch until interrupted.

        Raises:
            BuildError: If the initial build cannot run.
            OSError: If the HTTP server cannot bind.
        """
        self.rebuild()
        self._httpd = self.make_server()
        self._http_thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)
        self._http_thread.start()

        host, port = self._httpd.server_address[:2]
        console.echo(f"\n{console.green('Starting server at')} http://{host}:{port}")
        console.echo(console.yellow("Press Ctrl+C to quit"))
        console.heading("Watching for changes in:")
        console.echo(f"{console.blue('- Input:')} {self.config.input_dir}")
        console.echo(f"{console.blue('- Templates:')} {self.config.templates_dir}")

        self._source = self.make_source()
        if isinstance(self._source, EventChangeSource):
            self._source.start()
        watcher = ChangeWatcher(self._source, self.rebuild, self.interval)
        try:
            watcher.run(self._stop_event)
        except KeyboardInterrupt:
            console.echo("\nShutting down")
        finally:
            self.stop()

    def stop(self) -> None:
        self._stop_event.set()
        if isinstance(self._source, EventChangeSource):
            self._source.stop()
        if self._httpd is not None:
            if self._http_thread is not None:
                self._httpd.shutdown()
                self._http_thread = None
            self._httpd.server_close()
            self._httpd = None
