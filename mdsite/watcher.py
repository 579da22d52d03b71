"""Change detection for the mdsite development server.

The watcher ticks once per interval, asks its ChangeSource whether anything
under the input or templates directory changed, and rebuilds the whole site
when it did. Rebuilds are debounced: a change seen less than one interval
after the previous rebuild is held back until the interval has passed.

Key classes:
- WatchState: Snapshot of modification times plus debounce bookkeeping.
- PollingChangeSource: Detects changes by walking the trees every tick.
- EventChangeSource: Detects changes from watchdog file-system events.
- ChangeWatcher: The tick loop driving rebuilds.
"""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from . import console
from .protocols import ChangeSource
from .utils import is_hidden, is_temporary, is_within

TICK_INTERVAL = 1.0

# watchdog event types that mean file content changed; reads are ignored.
CHANGE_EVENT_TYPES = frozenset({"created", "modified", "moved", "deleted"})


@dataclass(frozen=True)
class Change:
    """A detected change, kept for the log line only.

    Attributes:
        label: Which tree changed, e.g. ``input files``.
        path: Absolute path of the first changed file found.
    """

    label: str
    path: str


@dataclass(frozen=True)
class WatchedTree:
    label: str
    root: Path


@dataclass
class WatchState:
    """State owned by the watch loop.

    Attributes:
        seen: Absolute file path to last observed modification time (ns).
        last_rebuild_at: Clock reading when the last rebuild finished.
        pending: Change detected inside the debounce window, still to be
            rebuilt.
    """

    seen: dict[str, int]
    last_rebuild_at: float
    pending: Change | None = None


def watched_trees(input_dir: Path, templates_dir: Path) -> list[WatchedTree]:
    return [
        WatchedTree("input files", input_dir.resolve()),
        WatchedTree("template files", templates_dir.resolve()),
    ]


def iter_watched_files(root: Path, exclude: Iterable[Path] = ()) -> Iterator[tuple[str, int]]:
    """Walk a tree and yield watched files with their modification times.

    Hidden directories are not descended into; hidden files, ``.tmp`` files
    and anything under an excluded directory are skipped. Files that vanish
    during the walk are skipped too.

    Args:
        root: Directory to walk.
        exclude: Directories to leave out.

    Yields:
        Tuples of (absolute path, modification time in nanoseconds).
    """
    excluded = list(exclude)
    for dirpath, dirnames, filenames in os.walk(root, onerror=_report_walk_error):
        current = Path(dirpath)
        dirnames[:] = sorted(
            name
            for name in dirnames
            if not is_hidden(name)
            and not any(is_within(current / name, path) for path in excluded)
        )
        for name in sorted(filenames):
            if is_hidden(name) or is_temporary(name):
                continue
            path = current / name
            try:
                stat = path.stat()
            except OSError:
                continue
            yield str(path), stat.st_mtime_ns


def _report_walk_error(exc: OSError) -> None:
    console.error(f"Error checking for file changes: {exc}")


class PollingChangeSource:
    """ChangeSource that walks the watched trees on every tick.

    Attributes:
        trees: Trees to watch, checked in order.
        exclude: Directories never watched (the output root).
    """

    def __init__(self, trees: list[WatchedTree], exclude: Iterable[Path] = ()):
        self.trees = trees
        self.exclude = [path.resolve() for path in exclude]

    def scan(self) -> dict[str, int]:
        seen: dict[str, int] = {}
        for tree in self.trees:
            seen.update(iter_watched_files(tree.root, self.exclude))
        return seen

    def detect(self, seen: dict[str, int]) -> Change | None:
        """Find the first changed file, checking trees in order.

        New and modified files update ``seen``; deleted files are dropped
        from it. Later trees are not examined once a change is found.

        Args:
            seen: Snapshot owned by the watcher.

        Returns:
            The first change found, or None.
        """
        for tree in self.trees:
            change = self._detect_tree(tree, seen)
            if change is not None:
                return change
        return None

    def _detect_tree(self, tree: WatchedTree, seen: dict[str, int]) -> Change | None:
        visited: set[str] = set()
        for path, mtime in iter_watched_files(tree.root, self.exclude):
            visited.add(path)
            if seen.get(path) != mtime:
                seen[path] = mtime
                return Change(tree.label, path)

        prefix = str(tree.root) + os.sep
        for path in sorted(seen):
            if path.startswith(prefix) and path not in visited:
                del seen[path]
                return Change(tree.label, path)
        return None


class _EventCollector(FileSystemEventHandler):
    def __init__(self, source: EventChangeSource):
        super().__init__()
        self.source = source

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in CHANGE_EVENT_TYPES:
            return
        self.source.record(os.fsdecode(event.src_path))
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            self.source.record(os.fsdecode(dest_path))


class EventChangeSource:
    """ChangeSource fed by watchdog's OS-level file-system events.

    Events are collected on the observer thread and drained on the next
    tick, so the debounce and whole-site rebuild behave exactly as with
    polling.

    Attributes:
        trees: Trees to watch.
        exclude: Directories never watched (the output root).
    """

    def __init__(
        self,
        trees: list[WatchedTree],
        exclude: Iterable[Path] = (),
        observer_factory: Callable[[], Observer] = Observer,
    ):
        self.trees = trees
        self.exclude = [path.resolve() for path in exclude]
        self._observer_factory = observer_factory
        self._observer = None
        self._lock = threading.Lock()
        self._changes: list[Change] = []

    def start(self) -> None:
        observer = self._observer_factory()
        handler = _EventCollector(self)
        for tree in self.trees:
            if tree.root.is_dir():
                observer.schedule(handler, str(tree.root), recursive=True)
            else:
                console.warning(f"Not watching missing directory {tree.root}")
        observer.start()
        self._observer = observer

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def record(self, raw_path: str) -> None:
        """Queue a changed path reported by the observer.

        Paths outside the watched trees, hidden paths, ``.tmp`` files and
        anything under an excluded directory are ignored.

        Args:
            raw_path: Path from the file-system event.
        """
        path = Path(raw_path)
        if is_temporary(path.name):
            return
        if any(is_within(path, excluded) for excluded in self.exclude):
            return
        for tree in self.trees:
            try:
                relative = path.relative_to(tree.root)
            except ValueError:
                continue
            if any(is_hidden(part) for part in relative.parts):
                return
            with self._lock:
                self._changes.append(Change(tree.label, str(path)))
            return

    def scan(self) -> dict[str, int]:
        with self._lock:
            self._changes.clear()
        return {}

    def detect(self, seen: dict[str, int]) -> Change | None:
        with self._lock:
            if not self._changes:
                return None
            change = self._changes[0]
            self._changes.clear()
        return change


class ChangeWatcher:
    """Tick loop that rebuilds the site when its sources change.

    Rebuilds run synchronously inside the loop, so two rebuilds can never
    overlap, and the state is replaced by a fresh scan after each one.

    Attributes:
        source: Where changes come from.
        rebuild: Callable performing a full site build.
        interval: Seconds between ticks and minimum gap between rebuilds.
    """

    def __init__(
        self,
        source: ChangeSource,
        rebuild: Callable[[], object],
        interval: float = TICK_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.rebuild = rebuild
        self.interval = interval
        self.clock = clock

    def initial_state(self) -> WatchState:
        return WatchState(seen=self.source.scan(), last_rebuild_at=self.clock())

    def tick(self, state: WatchState) -> WatchState:
        """Run one polling step.

        Args:
            state: Current watch state.

        Returns:
            The state for the next tick: the same object when no rebuild
            happened, a freshly scanned one after a rebuild.
        """
        change = self.source.detect(state.seen) or state.pending
        if change is None:
            return state
        if self.clock() - state.last_rebuild_at < self.interval:
            state.pending = change
            return state

        console.echo()
        console.field(f"Changes detected in {change.label}:", change.path)
        console.echo(console.cyan("Rebuilding entire site..."))
        try:
            self.rebuild()
        except Exception as exc:
            # The loop keeps watching after any failed rebuild.
            console.error(f"Rebuild failed: {type(exc).__name__}: {exc}")
        else:
            console.echo(console.green("Rebuild complete!"))
        return WatchState(seen=self.source.scan(), last_rebuild_at=self.clock())

    def run(self, stop_event: threading.Event) -> None:
        """Tick until ``stop_event`` is set.

        Args:
            stop_event: Event signalling shutdown.
        """
        state = self.initial_state()
        while not stop_event.wait(self.interval):
            state = self.tick(state)
