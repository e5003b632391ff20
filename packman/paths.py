"""Helpers for slash-separated paths inside file trees."""

from __future__ import annotations

import os

_SEPARATORS = {"/", os.sep}


def to_slash(path: str) -> str:
    """Replace every backslash in ``path`` with a forward slash."""
    return path.replace("\\", "/")


def _native_to_slash(path: str) -> str:
    if os.sep != "/":
        return path.replace(os.sep, "/")
    return path


def _clean_slashed(path: str) -> str:
    if not path:
        return "."
    rooted = path.startswith("/")
    parts: list[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            elif not rooted:
                parts.append("..")
            continue
        parts.append(part)
    body = "/".join(parts)
    if rooted:
        return "/" + body
    return body or "."


def clean(path: str) -> str:
    """Return the shortest lexically equivalent path, using forward slashes."""
    return to_slash(_clean_slashed(_native_to_slash(path)))


def split(path: str) -> tuple[str, str]:
    """Split ``path`` into a directory (without trailing slash) and a file name."""
    index = max(path.rfind(sep) for sep in _SEPARATORS)
    directory, name = path[: index + 1], path[index + 1 :]
    return directory[:-1], name


def join(*elements: str) -> str:
    """Join the non-empty ``elements`` and clean the result."""
    parts = [element for element in elements if element]
    if not parts:
        return ""
    return clean("/".join(_native_to_slash(part) for part in parts))


def base(path: str, base: str) -> str | None:
    """Return ``path`` relative to the prefix ``base``, or None if it does not start with it."""
    if not path.startswith(base):
        return None
    rel = path[len(base) :]
    if rel.startswith("/"):
        rel = rel[1:]
    return rel