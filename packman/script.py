"""Scripts that bind file trees and copy, clone or remove files between them."""

from __future__ import annotations

import os
import re
import stat
import string
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from .local import local_tree
from .mem import MemStore
from .paths import clean, join
from .tree import Tree
from .vpk import VpkTree
from .vpk import parse as parse_vpk

Log = Callable[[str], None]

_BINDING_NAME = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}
_HEX_WIDTHS = {"x": 2, "u": 4, "U": 8}
_OCTAL_DIGITS = "01234567"


class ScriptError(ValueError):
    """Raised when a script cannot be parsed or one of its commands cannot run."""


@dataclass(frozen=True)
class _Ref:
    pack: str
    path: str

    def __str__(self) -> str:
        return f"{self.pack}:{self.path}"


def _parse_ref(text: str) -> _Ref | None:
    index = text.find(":")
    if index <= 0:
        return None
    return _Ref(text[:index], clean(text[index + 1 :]))


@dataclass
class _Pack:
    tree: Tree
    path: str = ""
    modified: bool = False


_Packs = dict[str, _Pack]


def _lookup(packs: _Packs, name: str) -> _Pack:
    try:
        return packs[name]
    except KeyError:
        raise ScriptError(f"unknown binding {name}") from None


def _extension(path: str) -> str:
    dot = path.rfind(".")
    if dot < 0 or dot < path.rfind("/"):
        return ""
    return path[dot:]


class _Command(ABC):
    @abstractmethod
    def run(self, packs: _Packs) -> None:
        """Execute the command against the bound packs."""


@dataclass
class _Bind(_Command):
    name: str
    ref: _Ref | None = None

    def __str__(self) -> str:
        if self.ref is None:
            return f"bind {self.name}"
        return f"bind {self.name} {self.ref}"

    def run(self, packs: _Packs) -> None:
        if self.ref is None:
            packs[self.name] = _Pack(MemStore())
            return
        if self.ref.pack != ".":
            _lookup(packs, self.ref.pack)
            raise ScriptError("unsupported")

        path = self.ref.path
        try:
            info: os.stat_result | None = os.stat(path)
        except FileNotFoundError:
            info = None
        is_vpk = _extension(path).casefold() == ".vpk"
        is_dir = info is not None and stat.S_ISDIR(info.st_mode)
        if (info is None and not is_vpk) or is_dir:
            packs[self.name] = _Pack(local_tree(path), path)
            return

        tree = VpkTree()
        if info is not None:
            try:
                with open(path, "rb") as handle:
                    tree = parse_vpk(handle.read())
            except FileNotFoundError:
                pass
        packs[self.name] = _Pack(tree, path)


@dataclass
class _Copy(_Command):
    sources: list[_Ref]
    target: _Ref

    def __str__(self) -> str:
        return " ".join(["copy", *map(str, self.sources), str(self.target)])

    def run(self, packs: _Packs) -> None:
        target = _lookup(packs, self.target.pack)

        def store(path: str, data: bytes) -> None:
            target.tree.store(path, data)
            target.modified = True

        first = len(self.sources) == 1
        for source in self.sources:
            pack = _lookup(packs, source.pack)
            for relative, entry in pack.tree.find(source.path):
                data = entry.data()
                if first:
                    first = False
                    dest = self.target.path
                    if entry.path == source.path and dest and not dest.endswith("/"):
                        store(dest, data)
                        return
                store(join(self.target.path, relative), data)


@dataclass
class _Clone(_Command):
    sources: list[_Ref]
    target: str

    def __str__(self) -> str:
        return " ".join(["clone", *map(str, self.sources), f"{self.target}:"])

    def run(self, packs: _Packs) -> None:
        target = _lookup(packs, self.target)
        for source in self.sources:
            pack = _lookup(packs, source.pack)
            for _, entry in pack.tree.find(source.path):
                target.tree.put(entry)
                target.modified = True


@dataclass
class _Remove(_Command):
    ref: _Ref

    def __str__(self) -> str:
        return f"remove {self.ref}"

    def run(self, packs: _Packs) -> None:
        target = _lookup(packs, self.ref.pack)
        target.modified = True
        target.tree.remove(self.ref.path, None)


def _read_string(line: str, start: int, lno: int) -> tuple[str, int]:
    error = ScriptError(f"syntax error at {lno}:{start + 1}")
    out = bytearray()
    i = start + 1
    while True:
        if i >= len(line):
            raise error
        char = line[i]
        if char == '"':
            return out.decode("utf-8", "surrogateescape"), i + 1
        if char == "\n":
            raise error
        if char != "\\":
            out += char.encode("utf-8", "surrogateescape")
            i += 1
            continue
        if i + 1 >= len(line):
            raise error
        code = line[i + 1]
        if code in _SIMPLE_ESCAPES:
            out += _SIMPLE_ESCAPES[code].encode()
            i += 2
        elif code in _OCTAL_DIGITS:
            digits = line[i + 1 : i + 4]
            if len(digits) != 3 or any(d not in _OCTAL_DIGITS for d in digits):
                raise error
            value = int(digits, 8)
            if value > 0xFF:
                raise error
            out.append(value)
            i += 4
        elif code in _HEX_WIDTHS:
            width = _HEX_WIDTHS[code]
            digits = line[i + 2 : i + 2 + width]
            if len(digits) != width or any(d not in string.hexdigits for d in digits):
                raise error
            value = int(digits, 16)
            if code == "x":
                out.append(value)
            else:
                if value > 0x10FFFF or 0xD800 <= value < 0xE000:
                    raise error
                out += chr(value).encode()
            i += 2 + width
        else:
            raise error


def _split_line(lno: int, line: str) -> list[str]:
    elements: list[str] = []
    buffer: list[str] = []
    i = 0
    while i < len(line):
        char = line[i]
        if char in " \t":
            if buffer:
                elements.append("".join(buffer))
                buffer.clear()
            i += 1
        elif char == '"':
            text, i = _read_string(line, i, lno)
            buffer.append(text)
        else:
            buffer.append(char)
            i += 1
    if buffer:
        elements.append("".join(buffer))
    return elements


def _illegal_count(lno: int, command: str) -> ScriptError:
    return ScriptError(f"illegal argument count of command '{command}' at line {lno}")


def _invalid_ref(lno: int, ref: str) -> ScriptError:
    return ScriptError(f"invalid reference '{ref}' at line {lno}")


def _parse_command(lno: int, elements: list[str]) -> _Command:
    command = elements[0]
    if command == "bind":
        if len(elements) not in (2, 3):
            raise _illegal_count(lno, command)
        name = elements[1]
        if not _BINDING_NAME.fullmatch(name):
            raise ScriptError(f"invalid binding name {name} at line {lno}")
        if len(elements) == 2:
            return _Bind(name)
        ref = _parse_ref(clean(elements[2]))
        if ref is None:
            raise _invalid_ref(lno, elements[2])
        return _Bind(name, ref)

    if command == "remove":
        if len(elements) != 2:
            raise _illegal_count(lno, command)
        ref = _parse_ref(clean(elements[1]))
        if ref is None:
            raise _invalid_ref(lno, elements[1])
        return _Remove(ref)

    if command in ("copy", "clone"):
        if len(elements) < 3:
            raise _illegal_count(lno, command)
        *source_texts, target_text = elements[1:]
        target = _parse_ref(target_text)
        if target is None or (command == "clone" and target.path not in ("", ".")):
            raise _invalid_ref(lno, target_text)
        sources = []
        for text in source_texts:
            ref = _parse_ref(text)
            if ref is None:
                raise _invalid_ref(lno, text)
            sources.append(ref)
        if command == "clone":
            return _Clone(sources, target.pack)
        return _Copy(sources, target)

    raise ScriptError(f"unknown command {command} at line {lno}")


@dataclass
class Script:
    """A parsed sequence of commands."""

    commands: list[_Command] = field(default_factory=list)

    def run(self, log: Log | None = None) -> None:
        """Run every command, then write back each modified VPK archive."""
        packs: _Packs = {}
        for command in self.commands:
            if log is not None:
                log(str(command))
            command.run(packs)
        for pack in packs.values():
            if not pack.modified or not isinstance(pack.tree, VpkTree):
                continue
            if len(pack.tree) == 0:
                os.remove(pack.path)
            data = pack.tree.pack()
            directory = os.path.dirname(pack.path)
            if directory:
                os.makedirs(directory, 0o770, exist_ok=True)
            flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | getattr(os, "O_BINARY", 0)
            descriptor = os.open(pack.path, flags, 0o660)
            with open(descriptor, "wb") as handle:
                handle.write(data)


def parse(src: bytes | str) -> Script:
    """Parse the text of a script."""
    if isinstance(src, (bytes, bytearray, memoryview)):
        try:
            text = bytes(src).decode("utf-8")
        except UnicodeDecodeError:
            raise ScriptError("not a script") from None
    else:
        text = src
    script = Script()
    for lno, raw in enumerate(text.split("\n"), start=1):
        line = raw.strip(" \t\r")
        if not line or line.startswith("#"):
            continue
        elements = _split_line(lno, line)
        if not elements:
            raise ScriptError(f"empty command at line {lno}")
        script.commands.append(_parse_command(lno, elements))
    return script