import os

import pytest

from packman.local import local_tree
from packman.script import ScriptError, parse
from packman.vpk import VpkTree, read

FILES = {
    "file01.txt": b"file01",
    "file02.md": b"file02",
    "dir1/dir11/file111.md": b"file111",
    "dir1/dir12/file121.txt": b"file121",
    "dir1/file11.txt": b"file11",
    "dir1/file12.txt": b"file12",
    "dir2/file22.txt": b"file22",
}


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    local = tmp_path / "local"
    for rel, content in FILES.items():
        target = local / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    archive = VpkTree()
    for _, entry in local_tree(str(local)).find(""):
        archive.put(entry)
    (tmp_path / "local.vpk").write_bytes(archive.pack())
    (tmp_path / "tmp").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_export(workdir):
    script = parse(b"bind V .:local.vpk\nbind T .:tmp\nclone V: T:\n")
    script.run()
    names = sorted(name for name, _ in local_tree("tmp").find(""))
    assert len(names) == 7
    assert names == sorted(FILES)


def test_import(workdir):
    assert not os.path.exists("tmp/imp.vpk")
    script = parse(b"bind L .:local\nbind V .:tmp/imp.vpk\nclone L: V:\n")
    script.run()
    with open("local.vpk", "rb") as handle:
        expected = handle.read()
    imported = read("tmp/imp.vpk")
    assert sorted(name for name, _ in imported.find("")) == sorted(FILES)
    assert imported.pack() == expected
    with open("tmp/imp.vpk", "rb") as handle:
        actual = handle.read()
    assert actual == expected


def test_unknown():
    with pytest.raises(ScriptError):
        parse(b"check X:")


def test_patch(workdir):
    script = parse(
        b"bind L .:local\n"
        b"bind P .:tmp/patch.vpk\n"
        b"clone L: P:\n"
        b"remove P:dir1/dir11/file111.md\n"
    )
    script.run()
    data = sorted(entry.data().decode() for _, entry in read("tmp/patch.vpk").find(""))
    assert " ".join(data) == "file01 file02 file11 file12 file121 file22"


def test_copy_file(workdir):
    script = parse(
        b"""
        bind A .:tmp
        bind B .:local.vpk
        copy B:dir1/file12.txt A:dirX/f1.txt
    """
    )
    script.run()
    assert local_tree("tmp").get("dirX/f1.txt").data() == b"file12"
    assert (workdir / "tmp" / "dirX" / "f1.txt").read_bytes() == b"file12"


def test_copy_directory(workdir):
    parse(b"bind A .:tmp\nbind B .:local.vpk\ncopy B:dir1 A:out\n").run()
    names = sorted(name for name, _ in local_tree("tmp/out").find(""))
    assert names == [
        "dir11/file111.md",
        "dir12/file121.txt",
        "file11.txt",
        "file12.txt",
    ]


def test_mem(workdir):
    script = parse(
        b"""
        bind  A
        bind  B .:local.vpk
        bind  T .:tmp
        clone B:dir2 A:
        clone A: T:
    """
    )
    script.run()
    names = sorted(name for name, _ in local_tree("tmp").find(""))
    assert names == ["dir2/file22.txt"]
    assert local_tree("tmp").get("dir2/file22.txt").data() == b"file22"
    assert (workdir / "tmp" / "dir2" / "file22.txt").read_bytes() == b"file22"


def test_remove_everything_leaves_empty_archive(workdir):
    parse(b"bind V .:local.vpk\nremove V:\n").run()
    assert len(read("local.vpk")) == 0


def test_remove_from_local(workdir):
    parse(b"bind L .:local\nremove L:dir1\n").run()
    names = sorted(name for name, _ in local_tree("local").find(""))
    assert names == ["dir2/file22.txt", "file01.txt", "file02.md"]


def test_log_receives_each_command(workdir):
    messages = []
    parse(b"bind A\nbind T .:tmp\nclone A: T:\n").run(messages.append)
    assert messages == ["bind A", "bind T .:tmp", "clone A:. T:"]


def test_command_strings():
    script = parse(
        "# comment\n\nbind A\nbind B .:x.vpk\ncopy B:a/../b A:c\nclone B: A:\nremove A:c\n"
    )
    assert [str(c) for c in script.commands] == [
        "bind A",
        "bind B .:x.vpk",
        "copy B:b A:c",
        "clone B:. A:",
        "remove A:c",
    ]


def test_quoted_arguments():
    script = parse('copy "A:my dir/x" B:y\ncopy "A:x\\x41" B:y')
    assert [str(c) for c in script.commands] == [
        "copy A:my dir/x B:y",
        "copy A:xA B:y",
    ]


def test_unterminated_string():
    with pytest.raises(ScriptError, match="syntax error at 1:6"):
        parse('copy "A:x B:y')


def test_invalid_escape():
    with pytest.raises(ScriptError):
        parse('copy "A:\\q" B:y')


def test_not_utf8():
    with pytest.raises(ScriptError, match="not a script"):
        parse(b"bind \xff\xfe")


@pytest.mark.parametrize(
    "source, message",
    [
        ("bind", "illegal argument count"),
        ("bind A .:x y", "illegal argument count"),
        ("remove", "illegal argument count"),
        ("copy A:x", "illegal argument count"),
        ("bind 9a", "invalid binding name"),
        ("bind A nocolon", "invalid reference"),
        ("remove nocolon", "invalid reference"),
        ("copy nocolon A:x", "invalid reference"),
        ("clone A:x B:y", "invalid reference"),
        ("copy A:x :y", "invalid reference"),
    ],
)
def test_parse_errors(source, message):
    with pytest.raises(ScriptError, match=message):
        parse(source)


def test_unknown_binding_at_run():
    script = parse("bind A\ncopy X:a A:b")
    with pytest.raises(ScriptError, match="unknown binding X"):
        script.run()


def test_bind_from_other_pack_is_unsupported():
    with pytest.raises(ScriptError, match="unsupported"):
        parse("bind A\nbind B A:x").run()


def test_bind_from_unknown_pack():
    with pytest.raises(ScriptError, match="unknown binding Z"):
        parse("bind B Z:x").run()