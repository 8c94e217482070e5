from __future__ import annotations

import asyncio

import pytest

from adapters.file_source import FileLineSource, read_batch
from adapters.socket_source import SocketLineSource


async def _collect(source) -> list[str]:
    return [line async for line in source.lines()]


def test_file_source_reads_whole_file_without_follow(tmp_path) -> None:
    path = tmp_path / "app.log"
    path.write_text("first\n\n  second  \nthird", encoding="utf-8")

    lines = asyncio.run(_collect(FileLineSource(str(path), follow=False)))

    assert lines == ["first", "second", "third"]
    assert read_batch(str(path)) == ["first", "second", "third"]


def test_file_source_follows_appended_lines(tmp_path) -> None:
    path = tmp_path / "app.log"
    path.write_text("existing\n", encoding="utf-8")
    source = FileLineSource(str(path), follow=True, from_start=True, poll_interval=0.01)

    async def scenario() -> list[str]:
        stream = source.lines()
        seen = [await asyncio.wait_for(stream.__anext__(), timeout=2)]
        with path.open("a", encoding="utf-8") as handle:
            handle.write("appended\n")
        seen.append(await asyncio.wait_for(stream.__anext__(), timeout=2))
        await stream.aclose()
        return seen

    assert asyncio.run(scenario()) == ["existing", "appended"]


def test_file_source_starts_at_end_by_default(tmp_path) -> None:
    path = tmp_path / "app.log"
    path.write_text("old\n", encoding="utf-8")
    source = FileLineSource(str(path), poll_interval=0.01)

    async def scenario() -> str:
        stream = source.lines()
        pending = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0.05)
        with path.open("a", encoding="utf-8") as handle:
            handle.write("new\n")
        line = await asyncio.wait_for(pending, timeout=2)
        await stream.aclose()
        return line

    assert asyncio.run(scenario()) == "new"


def test_file_source_missing_file_without_follow(tmp_path) -> None:
    source = FileLineSource(str(tmp_path / "missing.log"), follow=False)

    with pytest.raises(FileNotFoundError):
        asyncio.run(_collect(source))


def test_socket_source_yields_lines_in_order() -> None:
    async def scenario() -> list[str]:
        async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            writer.write(b'{"name": "a"}\n\n{"name": "b"}\r\n')
            await writer.drain()
            writer.close()

        server = await asyncio.start_server(handler, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        async with server:
            return await _collect(SocketLineSource("127.0.0.1", port, reconnect=False))

    assert asyncio.run(scenario()) == ['{"name": "a"}', '{"name": "b"}']


def test_socket_source_skips_oversized_line() -> None:
    async def scenario() -> list[str]:
        async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            writer.write(b"x" * 70000 + b"\n" + b'{"name": "after"}\n')
            await writer.drain()
            writer.close()

        server = await asyncio.start_server(handler, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        async with server:
            return await _collect(SocketLineSource("127.0.0.1", port, reconnect=False))

    lines = asyncio.run(scenario())

    assert lines[-1] == '{"name": "after"}'
    assert "x" * 70000 not in lines


def test_socket_source_gives_up_without_reconnect() -> None:
    async def scenario() -> list[str]:
        # Bind then close to get a port nobody listens on.
        server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        server.close()
        await server.wait_closed()
        return await _collect(SocketLineSource("127.0.0.1", port, reconnect=False))

    assert asyncio.run(scenario()) == []


@pytest.mark.parametrize("port", [0, 70000])
def test_socket_source_rejects_bad_port(port: int) -> None:
    with pytest.raises(ValueError):
        SocketLineSource("127.0.0.1", port)
