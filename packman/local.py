"""A file tree backed by a directory on the local file system."""

from __future__ import annotations

import io
import os
import stat
from collections.abc import Generator, Iterator
from dataclasses import dataclass

from .paths import clean, to_slash
from .tree import Entry, Listener, Tree, store


@dataclass(frozen=True)
class LocalEntry(Entry):
    """A file below the root directory of a local tree."""

    root: str
    path: str

    def _full_path(self) -> str:
        return os.path.join(self.root, self.path)

    def data(self) -> bytes:
        with open(self._full_path(), "rb") as handle:
            return handle.read()

    def size(self) -> int:
        return os.stat(self._full_path()).st_size


class LocalTree(Tree):
    """A tree whose files live below a directory on disk."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = os.path.abspath(root)

    def __repr__(self) -> str:
        return f"LocalTree({self.root!r})"

    @property
    def _prefix(self) -> str:
        return self.root if self.root.endswith(os.sep) else self.root + os.sep

    def _abs(self, path: str) -> str:
        full = os.path.abspath(os.path.join(self.root, path.lstrip("/" + os.sep)))
        if full != self.root and not full.startswith(self._prefix):
            raise ValueError(f"invalid file path {path}")
        return full

    def _rel(self, full: str) -> str:
        return to_slash(full[len(self._prefix) :])

    def _entry(self, full: str) -> LocalEntry:
        return LocalEntry(self.root, clean(self._rel(full)))

    def pack(self) -> bytes:
        raise io.UnsupportedOperation("a local directory cannot be packed")

    def get(self, path: str) -> LocalEntry:
        full = self._abs(path)
        try:
            info = os.stat(full)
        except FileNotFoundError:
            pass
        else:
            if stat.S_ISDIR(info.st_mode):
                raise ValueError(f"{path} is a directory")
        return self._entry(full)

    def find(self, path: str = "") -> Iterator[tuple[str, LocalEntry]]:
        try:
            top = self._abs(path)
        except ValueError:
            return
        try:
            info = os.lstat(top)
        except OSError:
            return
        if not stat.S_ISDIR(info.st_mode):
            yield ".", self._entry(top)
            return
        yield from self._walk(top, top)

    def _walk(
        self, top: str, directory: str
    ) -> Generator[tuple[str, LocalEntry], None, bool]:
        try:
            with os.scandir(directory) as listing:
                children = sorted(listing, key=lambda child: child.name)
        except OSError:
            return False
        for child in children:
            if child.is_dir(follow_symlinks=False):
                if not (yield from self._walk(top, child.path)):
                    return False
            else:
                rel = to_slash(os.path.relpath(child.path, top))
                yield rel, self._entry(child.path)
        return True

    def remove(self, path: str, listener: Listener | None = None) -> None:
        full = self._abs(path)
        info = os.stat(full)
        self._remove(full, stat.S_ISDIR(info.st_mode), listener)

    def _remove(self, full: str, is_dir: bool, listener: Listener | None) -> None:
        if is_dir:
            with os.scandir(full) as listing:
                children = sorted(listing, key=lambda child: child.name)
            for child in children:
                self._remove(child.path, child.is_dir(follow_symlinks=False), listener)
            os.rmdir(full)
            return
        os.remove(full)
        if listener is not None:
            listener(self._rel(full))

    def store(self, path: str, data: bytes) -> LocalEntry:
        full = self._abs(path)
        directory = os.path.dirname(full)
        if directory:
            os.makedirs(directory, 0o770, exist_ok=True)
        flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | getattr(os, "O_BINARY", 0)
        descriptor = os.open(full, flags, 0o660)
        with open(descriptor, "wb") as handle:
            handle.write(data)
        return self._entry(full)

    def put(self, entry: Entry) -> Entry:
        return store(self, entry)


def local_tree(directory: str | os.PathLike[str]) -> LocalTree:
    """Open the directory as a tree rooted at its absolute path."""
    return LocalTree(directory)