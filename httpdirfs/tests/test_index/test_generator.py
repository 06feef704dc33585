from unittest import mock

from httpdirfs.filesystem.local import LocalFileSystem
from httpdirfs.index.codec import parse_document
from httpdirfs.index.common import Entry, EntryKind, HashAlgorithm
from httpdirfs.index.generator import IndexGenerator


def create_tree(tmp_path):
    (tmp_path / "a.txt").write_text("abc")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.txt").write_text("defg")
    (tmp_path / "sub" / "deeper").mkdir()
    (tmp_path / "sub" / "deeper" / "c.txt").write_text("")
    (tmp_path / "skip").mkdir()
    (tmp_path / "skip" / "d.txt").write_text("x")


def read_document(path):
    return list(parse_document(path.read_text()))


def test_flat_recursive(tmp_path):
    create_tree(tmp_path)

    IndexGenerator(LocalFileSystem(str(tmp_path))).create_directory_index("/")

    root = read_document(tmp_path / ".dirls")
    assert [(e.kind, e.name) for e in root] == [
        (EntryKind.FILE, "a.txt"),
        (EntryKind.DIRECTORY, "skip"),
        (EntryKind.DIRECTORY, "sub"),
    ]
    assert root[0].length == 3
    assert root[0].hash.algorithm == HashAlgorithm.SHA256

    sub = read_document(tmp_path / "sub" / ".dirls")
    assert [e.name for e in sub] == ["b.txt", "deeper"]

    deeper = read_document(tmp_path / "sub" / "deeper" / ".dirls")
    assert [e.name for e in deeper] == ["c.txt"]
    assert deeper[0].length == 0

    assert (tmp_path / "skip" / ".dirls").exists()


def test_flat_non_recursive(tmp_path):
    create_tree(tmp_path)

    generator = IndexGenerator(LocalFileSystem(str(tmp_path)))
    generator.create_directory_index("/", recursive=False)

    assert (tmp_path / ".dirls").exists()
    assert not (tmp_path / "sub" / ".dirls").exists()


def test_reserved_names_excluded(tmp_path):
    (tmp_path / "a.txt").write_text("abc")
    (tmp_path / ".dirls").write_text("stale")
    (tmp_path / ".dirrls").write_text("stale")

    IndexGenerator(LocalFileSystem(str(tmp_path))).create_directory_index("/")

    assert [e.name for e in read_document(tmp_path / ".dirls")] == ["a.txt"]


def test_custom_document_names(tmp_path):
    (tmp_path / "a.txt").write_text("abc")

    generator = IndexGenerator(
        LocalFileSystem(str(tmp_path)),
        directory_document="index.txt",
        recursive_document="tree.txt",
    )

    generator.create_directory_index("/")
    generator.create_recursive_index("/")

    assert [e.name for e in read_document(tmp_path / "index.txt")] == ["a.txt"]
    assert [e.name for e in read_document(tmp_path / "tree.txt")] == ["a.txt"]
    assert not (tmp_path / ".dirls").exists()


def test_regenerate_is_stable(tmp_path):
    create_tree(tmp_path)

    generator = IndexGenerator(LocalFileSystem(str(tmp_path)))

    generator.regenerate("/sub")
    first = (tmp_path / "sub" / ".dirls").read_bytes()

    generator.regenerate("/sub")
    second = (tmp_path / "sub" / ".dirls").read_bytes()

    assert first == second
    assert not (tmp_path / ".dirls").exists()
    assert not (tmp_path / "sub" / "deeper" / ".dirls").exists()


def test_regenerate_replaces_document(tmp_path):
    (tmp_path / "a.txt").write_text("abc")

    generator = IndexGenerator(LocalFileSystem(str(tmp_path)))
    generator.regenerate("/")

    (tmp_path / "a.txt").unlink()
    (tmp_path / "b.txt").write_text("abc")
    generator.regenerate("/")

    assert [e.name for e in read_document(tmp_path / ".dirls")] == ["b.txt"]


def test_recursive_index(tmp_path):
    create_tree(tmp_path)

    generator = IndexGenerator(LocalFileSystem(str(tmp_path)))
    generator.create_directory_index("/")
    generator.create_recursive_index("/")

    entries = read_document(tmp_path / ".dirrls")

    assert sorted(e.name for e in entries) == [
        "a.txt",
        "skip",
        "skip/d.txt",
        "sub",
        "sub/b.txt",
        "sub/deeper",
        "sub/deeper/c.txt",
    ]

    # Only one recursive document for the entire tree
    assert not (tmp_path / "sub" / ".dirrls").exists()


def test_recursive_index_ignored_paths(tmp_path):
    create_tree(tmp_path)

    generator = IndexGenerator(LocalFileSystem(str(tmp_path)))
    generator.create_recursive_index("/", ignored_paths=["/skip", "sub/deeper"])

    entries = read_document(tmp_path / ".dirrls")

    assert sorted(e.name for e in entries) == ["a.txt", "sub", "sub/b.txt"]


def test_recursive_index_of_subdirectory(tmp_path):
    create_tree(tmp_path)

    generator = IndexGenerator(LocalFileSystem(str(tmp_path)))
    generator.create_recursive_index("/sub")

    entries = read_document(tmp_path / "sub" / ".dirrls")

    assert sorted(e.name for e in entries) == ["b.txt", "deeper", "deeper/c.txt"]


def test_generation_through_backend():
    backend = mock.Mock()
    backend.list.side_effect = lambda path: {
        "/": [
            Entry(kind=EntryKind.DIRECTORY, name="/dir"),
            Entry(kind=EntryKind.FILE, name="/.dirls"),
        ],
        "/dir": [Entry(kind=EntryKind.FILE, name="/dir/file", length=5)],
    }[path]

    IndexGenerator(backend).create_directory_index("/")

    backend.write_file.assert_any_call(
        "/.dirls", b"D\t-\t-\t-\t-\t-\tdir\n", overwrite=True
    )
    backend.write_file.assert_any_call(
        "/dir/.dirls", b"F\t-\t-\t5\t-\t-\tfile\n", overwrite=True
    )
    assert backend.write_file.call_count == 2


def test_empty_directory_document(tmp_path):
    IndexGenerator(LocalFileSystem(str(tmp_path))).create_directory_index("/")

    assert (tmp_path / ".dirls").read_text() == ""


def test_lock_path(tmp_path):
    (tmp_path / "tree").mkdir()
    lock_path = tmp_path / "locks" / "index.lock"

    generator = IndexGenerator(
        LocalFileSystem(str(tmp_path / "tree")), lock_path=str(lock_path)
    )
    generator.create_directory_index("/")
    generator.create_recursive_index("/")

    assert lock_path.exists()
    assert (tmp_path / "tree" / ".dirls").exists()
