# packman

packman moves files between VPK archives (version 2, single file),
plain directories and in-memory stores. The work is described in a
small script language and carried out by the `packman` command.

## Installation

    pip install .

For the tests:

    pip install .[test]
    pytest

## Command line

    packman run <path>      run a script
    packman list <path>     list the files in a directory or a VPK archive, with sizes
    packman version         print the version (also: packman ver)

`run` prints each command to standard error, with a timestamp, before
running it. If a file cannot be read or a script or archive is invalid,
the error is printed to standard error and the exit status is 1. Any
other arguments print a usage message and exit with status 1.

## Scripts

A script is UTF-8 text with one command per line. Blank lines and lines
that start with `#` are ignored. Arguments are separated by spaces or
tabs. Double-quoted strings, with the usual backslash escapes, may be
used for names that contain spaces.

A reference has the form `NAME:path`, where `NAME` is a binding.

    # bind a name to a directory or a .vpk file on disk
    bind SRC .:content
    bind OUT .:build/pak01.vpk

    # bind a name to an empty in-memory store
    bind TMP

    # copy files or directories; several sources may be given
    copy SRC:materials SRC:models OUT:

    # copy a single file under a new name
    copy SRC:scripts/game.txt OUT:scripts/main.txt

    # clone entries with their paths unchanged into another binding
    clone SRC:sound TMP:

    # remove a file or a directory from a binding
    remove OUT:materials/old

Binding names start with a letter or underscore followed by letters,
digits or underscores. `bind` only accepts references of the form
`.:path`, a path on disk.

When `bind` names a path that does not exist, a path ending in `.vpk`
(in any letter case) becomes a new, empty archive; any other path
becomes a directory. An existing directory is bound as a directory, and
any existing file is read as a VPK archive. When the script finishes,
every archive that was changed is written back to its file, creating
parent directories as needed.

Errors in a script, such as an unknown command, a wrong argument count,
a malformed reference or an unknown binding, raise
`packman.script.ScriptError`.

## Library use

    from packman import script, vpk
    from packman.local import local_tree
    from packman.mem import MemStore

    with open("build.pman", "rb") as fh:
        script.parse(fh.read()).run(print)

    archive = vpk.read("pak01.vpk")
    for path, entry in archive.find(""):
        print(path, entry.size())

    tree = local_tree("content")
    tree.store("notes/readme.txt", b"hello")

    store = MemStore()
    store.put(archive.get("scripts/game.txt"))
    data = archive.pack()

`packman.local.LocalTree`, `packman.mem.MemStore` and
`packman.vpk.VpkTree` share the interface of `packman.tree.Tree`:
`get`, `find`, `remove`, `store`, `put` and `pack`. `find(path)` yields
`(relative path, entry)` pairs, with `"."` as the relative path when
`path` names a single file. `remove(path, listener)` calls `listener`
with the path of each removed file. Entries offer `path`, `data()` and
`size()`.

Problems in archive data raise `packman.vpk.VpkError`.

## Limitations

- Only `VpkTree.pack` produces bytes; `pack` on a directory tree or an
  in-memory store raises `io.UnsupportedOperation`.
- Only version 2 VPK archives held in a single file are read and
  written: archives split over numbered parts, archives with preloaded
  data, archive checksum sections or signatures are rejected.
- Bindings to a path inside another binding are not supported.