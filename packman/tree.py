"""Common interface of file trees and their entries."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator

Listener = Callable[[str], None]


class Entry(ABC):
    """A file stored in a tree, addressed by its slash-separated ``path``."""

    path: str

    def __str__(self) -> str:
        return self.path

    @abstractmethod
    def data(self) -> bytes:
        """Return the file contents."""

    @abstractmethod
    def size(self) -> int:
        """Return the size of the file in bytes."""


class Tree(ABC):
    """A collection of files addressed by slash-separated paths."""

    @abstractmethod
    def pack(self) -> bytes:
        """Serialise the whole tree."""

    @abstractmethod
    def get(self, path: str) -> Entry:
        """Return the entry stored at ``path``."""

    @abstractmethod
    def find(self, path: str = "") -> Iterator[tuple[str, Entry]]:
        """Yield ``(relative path, entry)`` for every file at or below ``path``."""

    @abstractmethod
    def remove(self, path: str, listener: Listener | None = None) -> None:
        """Remove the file or directory at ``path``, reporting each removed file."""

    @abstractmethod
    def store(self, path: str, data: bytes) -> Entry:
        """Write ``data`` to ``path`` and return the new entry."""

    @abstractmethod
    def put(self, entry: Entry) -> Entry:
        """Copy ``entry`` into this tree under its own path."""


def store(tree: Tree, entry: Entry) -> Entry:
    """Store a copy of ``entry`` in ``tree`` under the entry's path."""
    return tree.store(entry.path, entry.data())