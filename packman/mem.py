"""A file tree held entirely in memory."""

from __future__ import annotations

import io
from collections.abc import Iterator
from dataclasses import dataclass

from .paths import clean
from .tree import Entry, Listener, Tree


@dataclass
class MemEntry(Entry):
    """A file held in memory."""

    path: str
    content: bytes

    def data(self) -> bytes:
        return self.content

    def size(self) -> int:
        return len(self.content)


def _clean_path(path: str) -> str:
    path = clean(path)
    if path in ("/", "", "."):
        return ""
    return path


class MemStore(Tree):
    """A tree that keeps its files in a dictionary keyed by path."""

    def __init__(self) -> None:
        self._entries: dict[str, MemEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MemStore):
            return NotImplemented
        return self._entries == other._entries

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MemStore({sorted(self._entries)!r})"

    def pack(self) -> bytes:
        raise io.UnsupportedOperation("a memory store cannot be packed")

    def get(self, path: str) -> MemEntry:
        path = _clean_path(path)
        if not path:
            raise ValueError("a file path is required")
        try:
            return self._entries[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    def find(self, path: str = "") -> Iterator[tuple[str, MemEntry]]:
        path = _clean_path(path)
        if not path:
            yield from list(self._entries.items())
            return
        entry = self._entries.get(path)
        if entry is not None:
            yield ".", entry
            return
        prefix = path + "/"
        for stored, entry in list(self._entries.items()):
            if stored.startswith(prefix):
                yield stored[len(prefix) :], entry

    def remove(self, path: str, listener: Listener | None = None) -> None:
        path = _clean_path(path)
        if not path:
            if listener is None:
                self._entries.clear()
                return
            for stored in list(self._entries):
                del self._entries[stored]
                listener(stored)
            return
        if path in self._entries:
            del self._entries[path]
            if listener is not None:
                listener(path)
            return
        prefix = path + "/"
        for stored in [p for p in self._entries if p.startswith(prefix)]:
            del self._entries[stored]
            if listener is not None:
                listener(stored)

    def store(self, path: str, data: bytes) -> MemEntry:
        path = _clean_path(path)
        if not path:
            raise ValueError("a file path is required")
        entry = MemEntry(path, bytes(data))
        self._entries[path] = entry
        return entry

    def put(self, entry: Entry) -> MemEntry:
        if isinstance(entry, MemEntry):
            return self.store(entry.path, entry.content)
        return self.store(entry.path, entry.data())