import re
import socket
import threading
import time
import urllib.error
import urllib.request
from pathlib import Path

import pytest

from mdsite.config import SiteConfig
from mdsite.server import DevServer, format_request_log
from mdsite.watcher import EventChangeSource, PollingChangeSource


def make_config(tmp_path: Path, **overrides) -> SiteConfig:
    values = {
        "input_dir": tmp_path / "input",
        "output_dir": tmp_path / "output",
        "templates_dir": tmp_path / "templates",
        "host": "127.0.0.1",
        "port": 0,
    }
    values.update(overrides)
    return SiteConfig(**values)


@pytest.fixture
def running_server(tmp_path):
    output = tmp_path / "output"
    (output / "blog" / "post").mkdir(parents=True)
    (output / "empty").mkdir()
    (output / "index.html").write_text("<h1>Home</h1>", encoding="utf-8")
    (output / "blog" / "post" / "index.html").write_text("<h1>Post</h1>", encoding="utf-8")
    server = DevServer(make_config(tmp_path))
    httpd = server.make_server()
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    host, port = httpd.server_address[:2]
    try:
        yield f"http://{host}:{port}", output
    finally:
        httpd.shutdown()
        httpd.server_close()


def fetch(url: str) -> tuple[int, str, dict]:
    try:
        with urllib.request.urlopen(url) as resp:
            return resp.status, resp.read().decode("utf-8"), dict(resp.headers)
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read().decode("utf-8"), dict(exc.headers)


def test_format_request_log():
    when = time.strptime("05/Mar/2024:10:11:12", "%d/%b/%Y:%H:%M:%S")
    line = format_request_log("127.0.0.1:5555", when, "/blog/", "GET", 0.0015)
    assert line.startswith("\x1b")
    assert "127.0.0.1:5555" in line
    assert "05/Mar/2024:10:11:12" in line
    assert "/blog/" in line
    assert " GET " in line
    assert "1.500ms" in line


def test_serves_clean_urls(running_server):
    base, _ = running_server
    status, body, headers = fetch(f"{base}/blog/post/")
    assert status == 200
    assert body == "<h1>Post</h1>"
    assert headers["Cache-Control"] == "no-cache, no-store, must-revalidate"


def test_directory_without_index_is_404(running_server):
    base, _ = running_server
    status, _, _ = fetch(f"{base}/empty/")
    assert status == 404


def test_custom_404_page(running_server):
    base, output = running_server
    (output / "404.html").write_text("<p>Not here</p>", encoding="utf-8")
    status, body, _ = fetch(f"{base}/empty/")
    assert status == 404
    assert body == "<p>Not here</p>"


def test_requests_are_logged(running_server, capsys):
    base, _ = running_server
    fetch(f"{base}/index.html?x=1")
    # The log line is written after the response has been sent.
    out = ""
    deadline = time.monotonic() + 5
    while "/index.html" not in out and time.monotonic() < deadline:
        time.sleep(0.01)
        out += capsys.readouterr().out
    line = next(line for line in out.splitlines() if "/index.html" in line)
    assert "127.0.0.1:" in line
    assert " GET " in line
    assert "x=1" not in line
    assert line.endswith("ms")


def test_logged_duration_excludes_idle_client(running_server, capsys):
    base, _ = running_server
    host, port = base.rsplit("/", 1)[-1].split(":")
    with socket.create_connection((host, int(port))) as conn:
        time.sleep(0.5)
        conn.sendall(b"GET /index.html HTTP/1.0\r\n\r\n")
        while conn.recv(4096):
            pass
    out = ""
    deadline = time.monotonic() + 5
    while "/index.html" not in out and time.monotonic() < deadline:
        time.sleep(0.01)
        out += capsys.readouterr().out
    line = next(line for line in out.splitlines() if "/index.html" in line)
    duration_ms = float(re.search(r"([\d.]+)ms", line).group(1))
    assert duration_ms < 500


def test_bind_failure_raises(tmp_path):
    first = DevServer(make_config(tmp_path)).make_server()
    try:
        port = first.server_address[1]
        with pytest.raises(OSError):
            DevServer(make_config(tmp_path, port=port)).make_server()
    finally:
        first.server_close()


def test_rebuild_holds_build_lock(monkeypatch, tmp_path):
    server = DevServer(make_config(tmp_path))
    seen = {}

    def fake_build(input_dir, output_dir, templates_dir):
        seen["locked"] = server._build_lock.locked()
        seen["dirs"] = (input_dir, output_dir, templates_dir)
        return "result"

    monkeypatch.setattr("mdsite.server.build_site", fake_build)
    assert server.rebuild() == "result"
    assert seen["locked"] is True
    assert seen["dirs"] == (tmp_path / "input", tmp_path / "output", tmp_path / "templates")
    assert not server._build_lock.locked()


def test_make_source_selects_backend(tmp_path):
    polling = DevServer(make_config(tmp_path)).make_source()
    assert isinstance(polling, PollingChangeSource)
    assert polling.exclude == [(tmp_path / "output").resolve()]

    events = DevServer(make_config(tmp_path, watcher="events")).make_source()
    assert isinstance(events, EventChangeSource)


def test_stop_without_start_is_safe(tmp_path):
    server = DevServer(make_config(tmp_path))
    server.stop()
    assert server._stop_event.is_set()
