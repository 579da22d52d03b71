"""Protocol definitions for mdsite.

This module defines the interfaces the development server depends on, so
that change detection can be backed by polling or by OS file events without
changing the rebuild logic.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .watcher import Change


@runtime_checkable
class ChangeSource(Protocol):
    """Protocol for reporting changed files under the watched roots.

    The watcher owns the snapshot returned by ``scan`` and hands it back to
    ``detect`` on every tick.
    """

    @abstractmethod
    def scan(self) -> dict[str, int]:
        """Take a fresh snapshot of the watched trees.

        Returns:
            Mapping of absolute file path to modification time in nanoseconds.
        """
        ...

    @abstractmethod
    def detect(self, seen: dict[str, int]) -> Change | None:
        """Report a changed file since the snapshot.

        Args:
            seen: Snapshot to compare against. Implementations may record
                newly observed times in it.

        Returns:
            The first change found, or None.
        """
        ...
