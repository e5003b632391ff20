import pytest

from packman.paths import base, clean, join, split, to_slash


def test_split_directory_and_name():
    assert split("dir1/file11.txt") == ("dir1", "file11.txt")


def test_split_without_directory():
    assert split("file01.txt") == ("", "file01.txt")


def test_split_trailing_slash_gives_empty_name():
    directory, name = split("dir1/")
    assert name == ""
    assert directory == "dir1"


@pytest.mark.parametrize(
    "path",
    ["dir1/dir11/file111.md", "dir1/file11.txt", "dir2/file22.txt"],
)
def test_split_then_join_round_trip(path):
    directory, name = split(path)
    assert join(directory, name) == path


def test_join_skips_empty_elements():
    assert join("dir1", "", "file11.txt") == "dir1/file11.txt"


def test_join_of_nothing_is_empty():
    assert join() == ""
    assert join("", "") == ""


def test_join_resolves_parent_references():
    assert join("dir1", "..", "file01.txt") == "file01.txt"


def test_clean_empty_is_dot():
    assert clean("") == "."


def test_clean_root_stays_root():
    assert clean("/") == "/"
    assert clean("//") == "/"


def test_clean_removes_dots():
    assert clean("dir1/./dir11/../file11.txt") == "dir1/file11.txt"


def test_clean_keeps_leading_parent_references():
    assert clean("../../file01.txt") == "../../file01.txt"


def test_clean_drops_trailing_slash():
    assert clean("dir1/") == "dir1"


@pytest.mark.parametrize(
    "path",
    ["", "/", "a//b/", "./x/../y", "../..", "/../z", "dir1/dir11/./file111.md"],
)
def test_clean_is_idempotent(path):
    once = clean(path)
    assert clean(once) == once
    assert "//" not in once
    assert once == "/" or not once.endswith("/")


def test_base_strips_prefix_and_separator():
    assert base("dir1/file11.txt", "dir1") == "file11.txt"


def test_base_of_itself_is_empty():
    assert base("dir1", "dir1") == ""


def test_base_without_prefix_is_none():
    assert base("file01.txt", "dir1") is None


def test_base_is_a_plain_prefix_check():
    assert base("dir1x", "dir1") == "x"


def test_to_slash_replaces_backslashes():
    assert to_slash("dir1\\file11.txt") == "dir1/file11.txt"


def test_to_slash_leaves_slashes_alone():
    assert to_slash("dir1/file11.txt") == "dir1/file11.txt"