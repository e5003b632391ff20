import io

import pytest

from packman.tree import Entry, Tree, store


class _Blob(Entry):
    def __init__(self, path, payload):
        self.path = path
        self._payload = payload

    def data(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def size(self):
        return len(self.data())


class _RecordingTree(Tree):
    def __init__(self):
        self.stored = []

    def pack(self):
        raise io.UnsupportedOperation("no packing")

    def get(self, path):
        raise FileNotFoundError(path)

    def find(self, path=""):
        return iter(())

    def remove(self, path, listener=None):
        return None

    def store(self, path, data):
        self.stored.append((path, data))
        return _Blob(path, data)

    def put(self, entry):
        return store(self, entry)


def test_store_passes_path_and_data():
    tree = _RecordingTree()
    result = store(tree, _Blob("dir1/file11.txt", b"file11"))
    assert tree.stored == [("dir1/file11.txt", b"file11")]
    assert result.path == "dir1/file11.txt"
    assert result.data() == b"file11"


def test_store_propagates_read_errors():
    tree = _RecordingTree()
    with pytest.raises(PermissionError):
        store(tree, _Blob("file01.txt", PermissionError("denied")))
    assert tree.stored == []


def test_store_keeps_empty_data():
    tree = _RecordingTree()
    result = store(tree, _Blob("dir2/file22.txt", b""))
    assert tree.stored == [("dir2/file22.txt", b"")]
    assert result.data() == b""


def test_entry_str_is_its_path():
    blob = _Blob("dir1/dir11/file111.md", b"file111")
    assert Entry.__str__(blob) == "dir1/dir11/file111.md"


def test_stored_entry_size_matches_data():
    tree = _RecordingTree()
    result = store(tree, _Blob("file02.md", b"file02"))
    assert result.size() == 6


def test_tree_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Tree()


def test_entry_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Entry()