"""Reading, editing and writing version 2 VPK archives held in a single file."""

from __future__ import annotations

import hashlib
import struct
import zlib
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .paths import clean, split
from .tree import Entry, Listener, Tree

_MAGIC = 0x55AA1234
_VERSION = 2
_HEADER = struct.Struct("<7I")
_ENTRY = struct.Struct("<IHHIIH")
_NO_ARCHIVE = 0x7FFF
_TERMINATOR = 0xFFFF
_CHECKSUMS = 48
_NO_EXT = " "
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class VpkError(ValueError):
    """Raised when VPK data is malformed or an operation on a VPK tree is invalid."""


@dataclass
class VpkFile:
    """A file inside a VPK directory, stored without its extension."""

    name: str
    content: bytes = b""
    crc: int = field(default=0, compare=False)

    def set_data(self, data: bytes) -> None:
        """Replace the contents; the checksum is recomputed when packing."""
        self.crc = 0
        self.content = bytes(data)

    def size(self) -> int:
        return len(self.content)


@dataclass
class VpkDir:
    """A directory holding files of one extension."""

    path: str
    entries: list[VpkFile] = field(default_factory=list)


@dataclass
class VpkExt:
    """All directories holding files of one extension."""

    name: str
    dirs: list[VpkDir] = field(default_factory=list)


def _build_name(name: str, ext: str) -> str:
    if ext == _NO_EXT:
        return name
    return f"{name}.{ext}"


def _build_path(directory: str, name: str, ext: str) -> str:
    if directory in ("", _NO_EXT):
        return _build_name(name, ext)
    return f"{directory}/{_build_name(name, ext)}"


@dataclass
class VpkEntry(Entry):
    """A file of a VPK tree together with its extension and directory."""

    ext: str
    directory: str
    file: VpkFile

    @property
    def name(self) -> str:
        return self.file.name

    @property
    def path(self) -> str:  # type: ignore[override]
        return _build_path(self.directory, self.file.name, self.ext)

    def __str__(self) -> str:
        return self.path

    def data(self) -> bytes:
        return self.file.content

    def size(self) -> int:
        return self.file.size()


def _split_ext(path: str) -> tuple[str, str]:
    if path and not path.endswith('"'):
        for i in range(len(path) - 1, 0, -1):
            char = path[i]
            if char == "/":
                break
            if char != ".":
                continue
            name, ext = path[:i], path[i + 1 :]
            if not ext:
                break
            return name, ext
    return path, _NO_EXT


def _clean_path(path: str) -> str:
    path = clean(path)
    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    if path == ".":
        return ""
    return path


def _encode(text: str) -> bytes:
    return text.encode(_ENCODING, _ERRORS)


def _md5(data: bytes) -> bytes:
    return hashlib.md5(data).digest()


class VpkTree(Tree):
    """An in-memory VPK directory tree grouped by extension and directory."""

    def __init__(self, exts: Iterable[VpkExt] = ()) -> None:
        self.exts: list[VpkExt] = list(exts)

    def __len__(self) -> int:
        return len(self.exts)

    def __iter__(self) -> Iterator[VpkExt]:
        return iter(self.exts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VpkTree):
            return NotImplemented
        return self.exts == other.exts

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"VpkTree({self.exts!r})"

    def pack(self) -> bytes:
        tree = bytearray()
        data = bytearray()
        for ext in self.exts:
            tree += _encode(ext.name) + b"\0"
            for directory in ext.dirs:
                tree += _encode(directory.path) + b"\0"
                for entry in directory.entries:
                    tree += _encode(entry.name) + b"\0"
                    crc = entry.crc or zlib.crc32(entry.content)
                    tree += _ENTRY.pack(
                        crc, 0, _NO_ARCHIVE, len(data), len(entry.content), _TERMINATOR
                    )
                    data += entry.content
                tree += b"\0"
            tree += b"\0"
        tree += b"\0"
        header = _HEADER.pack(
            _MAGIC, _VERSION, len(tree), len(data), 0, _CHECKSUMS, 0
        )
        body = header + bytes(tree) + bytes(data) + _md5(bytes(tree)) + _md5(b"")
        return body + _md5(body)

    def list(self) -> Iterator[VpkEntry]:
        """Yield every file of the tree in storage order."""
        for ext in list(self.exts):
            for directory in list(ext.dirs):
                for entry in list(directory.entries):
                    yield VpkEntry(ext.name, directory.path, entry)

    def get(self, path: str) -> VpkEntry:
        directory, filename = split(_clean_path(path))
        if not directory:
            directory = _NO_EXT
        name, ext_name = _split_ext(filename)
        for ext in self.exts:
            if ext.name != ext_name:
                continue
            for folder in ext.dirs:
                if folder.path != directory:
                    continue
                for entry in folder.entries:
                    if entry.name == name:
                        return VpkEntry(ext_name, directory, entry)
        raise FileNotFoundError(path)

    def find(self, path: str = "") -> Iterator[tuple[str, VpkEntry]]:
        path = _clean_path(path)
        if not path:
            for entry in self.list():
                yield entry.path, entry
            return
        for ext in list(self.exts):
            for folder in list(ext.dirs):
                if folder.path == path:
                    for entry in list(folder.entries):
                        yield _build_name(entry.name, ext.name), VpkEntry(
                            ext.name, folder.path, entry
                        )
                    continue
                if folder.path.startswith(path):
                    if folder.path[len(path)] != "/":
                        continue
                    root = folder.path[len(path) + 1 :]
                    for entry in list(folder.entries):
                        yield _build_path(root, entry.name, ext.name), VpkEntry(
                            ext.name, folder.path, entry
                        )
                    continue
                if path.startswith(folder.path) and path[len(folder.path)] == "/":
                    name, ext_name = _split_ext(path[len(folder.path) + 1 :])
                    if ext.name != ext_name:
                        continue
                    for entry in list(folder.entries):
                        if entry.name == name:
                            yield ".", VpkEntry(ext.name, folder.path, entry)

    def find_first(self, path: str) -> VpkEntry | None:
        """Return the first entry found at or below ``path``, or None."""
        for _, entry in self.find(path):
            return entry
        return None

    def remove(self, path: str, listener: Listener | None = None) -> None:
        path = _clean_path(path)
        if not path:
            if listener is None:
                self.exts.clear()
                return
            while self.exts:
                ext = self.exts[-1]
                while ext.dirs:
                    folder = ext.dirs[-1]
                    while folder.entries:
                        entry = folder.entries.pop()
                        listener(VpkEntry(ext.name, folder.path, entry).path)
                    ext.dirs.pop()
                self.exts.pop()
            return

        removed: list[str] = []
        kept_exts: list[VpkExt] = []
        for ext in self.exts:
            kept_dirs: list[VpkDir] = []
            for folder in ext.dirs:
                if folder.path == path or (
                    folder.path.startswith(path) and folder.path[len(path)] == "/"
                ):
                    removed.extend(
                        VpkEntry(ext.name, folder.path, entry).path
                        for entry in folder.entries
                    )
                    continue
                if path.startswith(folder.path) and path[len(folder.path)] == "/":
                    name, ext_name = _split_ext(path[len(folder.path) + 1 :])
                    if ext.name == ext_name:
                        remaining = [e for e in folder.entries if e.name != name]
                        removed.extend(
                            path for _ in range(len(folder.entries) - len(remaining))
                        )
                        if not remaining:
                            continue
                        folder.entries = remaining
                kept_dirs.append(folder)
            if not kept_dirs:
                continue
            ext.dirs = kept_dirs
            kept_exts.append(ext)
        self.exts = kept_exts
        if listener is not None:
            for removed_path in removed:
                listener(removed_path)

    def store(self, path: str, data: bytes) -> VpkEntry:
        directory, filename = split(clean(path))
        if not filename:
            raise VpkError("invalid path")
        if not directory:
            directory = _NO_EXT
        name, ext = _split_ext(filename)
        return self._put(ext, directory, name, data)

    def _put(self, ext_name: str, directory: str, name: str, data: bytes) -> VpkEntry:
        ext = next((e for e in self.exts if e.name == ext_name), None)
        if ext is None:
            ext = VpkExt(ext_name)
            self.exts.append(ext)
        folder = next((d for d in ext.dirs if d.path == directory), None)
        if folder is None:
            folder = VpkDir(directory)
            ext.dirs.append(folder)
        for entry in folder.entries:
            if entry.name == name:
                entry.set_data(data)
                return VpkEntry(ext_name, directory, entry)
        entry = VpkFile(name, bytes(data))
        folder.entries.append(entry)
        return VpkEntry(ext_name, directory, entry)

    def put(self, entry: Entry) -> VpkEntry:
        if isinstance(entry, VpkEntry):
            return self._put(entry.ext, entry.directory, entry.name, entry.data())
        return self.store(entry.path, entry.data())


def _read_string(tree: bytes, pos: int) -> tuple[str, int]:
    end = tree.find(b"\0", pos)
    if end < 0:
        return "", len(tree)
    return tree[pos:end].decode(_ENCODING, _ERRORS), end + 1


def _read_file(name: str, tree: bytes, pos: int, data: bytes) -> tuple[VpkFile, int]:
    if len(tree) - pos < _ENTRY.size:
        raise VpkError("file corrupted")
    crc, preload, archive, offset, length, terminator = _ENTRY.unpack_from(tree, pos)
    if terminator != _TERMINATOR or archive != _NO_ARCHIVE:
        raise VpkError("file corrupted")
    if preload != 0:
        raise VpkError("unexpected preloaded data")
    if offset + length > len(data):
        raise VpkError("file corrupted")
    content = data[offset : offset + length]
    if crc != zlib.crc32(content):
        raise VpkError("file corrupted")
    return VpkFile(name, content, crc), pos + _ENTRY.size


def _read_tree(tree: bytes, data: bytes) -> VpkTree:
    result = VpkTree()
    pos = 0
    while True:
        ext_name, pos = _read_string(tree, pos)
        if not ext_name:
            break
        ext = VpkExt(ext_name)
        while True:
            dir_path, pos = _read_string(tree, pos)
            if not dir_path:
                break
            folder = VpkDir(dir_path)
            while True:
                name, pos = _read_string(tree, pos)
                if not name:
                    break
                entry, pos = _read_file(name, tree, pos, data)
                folder.entries.append(entry)
            ext.dirs.append(folder)
        result.exts.append(ext)
    return result


def _parse_v2(vpk: bytes) -> VpkTree:
    if len(vpk) < _HEADER.size + _CHECKSUMS:
        raise VpkError("file corrupted")
    _, _, tree_size, data_size, arch_size, md5_size, sig_size = _HEADER.unpack_from(vpk)
    if arch_size != 0:
        raise VpkError("unexpected archive MD5 section")
    if md5_size != _CHECKSUMS:
        raise VpkError("checksum section size mismatch")
    if sig_size != 0:
        raise VpkError("unexpected signature section")
    body_end = len(vpk) - md5_size
    tree_end = _HEADER.size + tree_size
    if tree_end > body_end:
        raise VpkError("file corrupted")
    tree = vpk[_HEADER.size : tree_end]
    data = vpk[tree_end:body_end]
    if len(data) != data_size:
        raise VpkError("data size mismatch")
    sums = vpk[body_end:]
    if _md5(tree) != sums[:16] or _md5(b"") != sums[16:32]:
        raise VpkError("file corrupted")
    if _md5(vpk[:-16]) != sums[32:]:
        raise VpkError("file corrupted")
    return _read_tree(tree, data)


def parse(data: bytes) -> VpkTree:
    """Parse the bytes of a VPK archive into a tree."""
    data = bytes(data)
    if len(data) < 4 or int.from_bytes(data[:4], "little") != _MAGIC:
        raise VpkError("not a VPK file")
    if len(data) < 8:
        raise VpkError("file corrupted")
    if int.from_bytes(data[4:8], "little") != _VERSION:
        raise VpkError("unsupported VPK version")
    return _parse_v2(data)


def read(path: str) -> VpkTree:
    """Read and parse the VPK archive at ``path``."""
    with open(path, "rb") as handle:
        return parse(handle.read())