import asyncio
import io

import httpx
import pytest

from httpdirfs.config import HttpConfig
from httpdirfs.filesystem.aio import AsyncHttpFileSystem
from httpdirfs.index.common import EntryKind, FileHash, HashAlgorithm
from .test_http import ADDRESS, EXAMPLE_LINE, Server


def create_file_system(handler, **config_overrides):
    return AsyncHttpFileSystem(
        ADDRESS, HttpConfig(**config_overrides), transport=httpx.MockTransport(handler)
    )


def run(coro_fn):
    """Run a coroutine function that creates its file system inside the event loop."""
    return asyncio.run(coro_fn())


def test_stat_root_without_request():
    server = Server()

    async def scenario():
        async with create_file_system(server) as fs:
            return await fs.stat("/")

    entry = run(scenario)

    assert entry.kind == EntryKind.DIRECTORY
    assert server.requests == []


def test_stat_and_list():
    server = Server({"/files/docs/.dirls": EXAMPLE_LINE})

    async def scenario():
        async with create_file_system(server) as fs:
            return (
                await fs.stat("/docs/report.txt"),
                await fs.stat("/docs/other.txt"),
                await fs.list("/docs"),
                await fs.list("/missing"),
            )

    found, missing, entries, empty = run(scenario)

    assert found.name == "/docs/report.txt"
    assert found.hash == FileHash(HashAlgorithm.SHA256, "abc123")
    assert missing is None
    assert [(e.kind, e.length) for e in entries] == [(EntryKind.FILE, 42)]
    assert empty == []


def test_list_recursive():
    server = Server(
        {
            "/files/.dirrls": "D\t-\t-\t-\t-\t-\ta\nF\t-\t-\t1\t-\t-\ta/b\n",
            "/files/a/.dirls": "F\t-\t-\t1\t-\t-\tb\n",
        }
    )

    async def scenario():
        async with create_file_system(server) as fs:
            return await fs.list("/", recursive=True), await fs.list("/a", True)

    from_root, from_subdirectory = run(scenario)

    assert [e.name for e in from_root] == ["/a", "/a/b"]
    assert [e.name for e in from_subdirectory] == ["/a/b"]


def test_open_and_read():
    server = Server({"/files/a.txt": b"abcdef"})

    async def scenario():
        async with create_file_system(server) as fs:
            stream = await fs.open("/a.txt")

            assert fs._lock.locked()

            async with stream:
                head = await stream.read(2)
                rest = await stream.read()

            assert stream.closed
            assert not fs._lock.locked()

            # Closing again must not release the lock a second time
            await stream.aclose()

            return head, rest

    assert run(scenario) == (b"ab", b"cdef")


def test_async_iteration():
    server = Server({"/files/a.txt": b"abcdef"})

    async def scenario():
        async with create_file_system(server) as fs:
            async with await fs.open("/a.txt") as stream:
                first = await stream.read(1)
                rest = b"".join([chunk async for chunk in stream])

            return first + rest

    assert run(scenario) == b"abcdef"


def test_read_file():
    server = Server({"/files/a.txt": b"abc"})
    out = io.BytesIO()

    async def scenario():
        async with create_file_system(server) as fs:
            await fs.read_file("/a.txt", out)
            return fs._lock.locked()

    assert not run(scenario)
    assert out.getvalue() == b"abc"


def test_open_failures_release_lock():
    server = Server()

    async def scenario():
        async with create_file_system(server) as fs:
            with pytest.raises(io.UnsupportedOperation):
                await fs.open("/a.txt", "wb")

            with pytest.raises(FileNotFoundError):
                await fs.open("/a.txt")

            return fs._lock.locked()

    assert not run(scenario)
    assert len(server.requests) == 1


def test_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async def scenario():
        async with create_file_system(handler) as fs:
            with pytest.raises(TimeoutError):
                await fs.stat("/a/b")

            return fs._lock.locked()

    assert not run(scenario)


def test_requests_are_serialized():
    events = []

    class SlowTransport(httpx.AsyncBaseTransport):
        async def handle_async_request(self, request):
            events.append(("start", request.url.path))
            await asyncio.sleep(0.02)
            events.append(("end", request.url.path))
            return httpx.Response(200, content=EXAMPLE_LINE.encode())

    async def scenario():
        fs = AsyncHttpFileSystem(ADDRESS, transport=SlowTransport())

        try:
            await asyncio.gather(fs.list("/a"), fs.list("/b"), fs.stat("/c/d"))
        finally:
            await fs.aclose()

    run(scenario)

    assert len(events) == 6

    # Every request ends before the next one starts
    for i in range(0, len(events), 2):
        assert events[i][0] == "start"
        assert events[i + 1] == ("end", events[i][1])
