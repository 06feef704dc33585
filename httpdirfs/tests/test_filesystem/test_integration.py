import functools
import http.server
import io
import threading

import pytest

from httpdirfs.config import HttpConfig
from httpdirfs.filesystem.http import HttpFileSystem
from httpdirfs.filesystem.local import LocalFileSystem
from httpdirfs.filesystem.writethrough import WriteThroughFileSystem
from httpdirfs.index.common import EntryKind, FileHash, HashAlgorithm
from httpdirfs.index.generator import IndexGenerator


class QuietHandler(http.server.SimpleHTTPRequestHandler):
    def log_message(self, format, *args):
        pass


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "docs" / "nested").mkdir(parents=True)
    (tmp_path / "docs" / "a.txt").write_bytes(b"hello")
    (tmp_path / "docs" / "nested" / "b.bin").write_bytes(bytes(range(256)) * 64)
    (tmp_path / "top.txt").write_bytes(b"")

    backend = LocalFileSystem(str(tmp_path))

    generator = IndexGenerator(backend)
    generator.create_directory_index("/")
    generator.create_recursive_index("/")

    return backend


@pytest.fixture
def address(tree):
    handler = functools.partial(QuietHandler, directory=tree.root)
    server = http.server.ThreadingHTTPServer(("127.0.0.1", 0), handler)

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield f"http://127.0.0.1:{server.server_address[1]}"

    server.shutdown()
    server.server_close()


@pytest.mark.integration
def test_browse_published_tree(tree, address):
    with HttpFileSystem(address) as fs:
        assert [(e.kind, e.name) for e in fs.list("/")] == [
            (EntryKind.DIRECTORY, "/docs"),
            (EntryKind.FILE, "/top.txt"),
        ]

        entry = fs.stat("/docs/a.txt")

        assert entry.length == 5
        assert entry.hash == FileHash.compute(b"hello", HashAlgorithm.SHA256)
        assert entry.modify_time == tree.stat("/docs/a.txt").modify_time

        assert fs.stat("/docs/missing.txt") is None

        with fs.open("/docs/nested/b.bin") as f:
            assert f.read() == bytes(range(256)) * 64


@pytest.mark.integration
def test_recursive_listings(tree, address):
    with HttpFileSystem(address) as fs:
        from_document = [e.name for e in fs.list("/", recursive=True)]

        # A recursive listing of a subdirectory walks flat documents instead
        walked = [e.name for e in fs.list("/docs", recursive=True)]

    assert sorted(from_document) == [
        "/docs",
        "/docs/a.txt",
        "/docs/nested",
        "/docs/nested/b.bin",
        "/top.txt",
    ]
    assert walked == ["/docs/a.txt", "/docs/nested", "/docs/nested/b.bin"]


@pytest.mark.integration
def test_cache_defeat(address):
    with HttpFileSystem(address, HttpConfig(prevent_cache=True)) as fs:
        assert fs.stat("/top.txt").length == 0


@pytest.mark.integration
def test_changes_become_visible(tree, address):
    fs = WriteThroughFileSystem(tree)

    fs.write_file("/docs/c.txt", b"new")

    with HttpFileSystem(address) as remote:
        assert remote.stat("/docs/c.txt").length == 3

        out = io.BytesIO()
        remote.read_file("/docs/c.txt", out)

    assert out.getvalue() == b"new"
