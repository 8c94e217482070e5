"""Persistent socket transport.

Reads newline-delimited log lines from a TCP endpoint and reconnects when the
peer goes away. Lines are yielded in the order they arrive.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

LOGGER = logging.getLogger(__name__)


class SocketLineSource:
    """Line source backed by ``asyncio.open_connection``."""

    def __init__(
        self,
        host: str,
        port: int,
        reconnect_delay: float = 2.0,
        reconnect: bool = True,
        encoding: str = "utf-8",
    ) -> None:
        if not 0 < port < 65536:
            raise ValueError(f"port out of range: {port}")
        self._host = host
        self._port = port
        self._reconnect_delay = reconnect_delay
        self._reconnect = reconnect
        self._encoding = encoding

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    async def lines(self) -> AsyncIterator[str]:
        while True:
            try:
                reader, writer = await asyncio.open_connection(self._host, self._port)
            except OSError as exc:
                LOGGER.warning("Connection to %s failed: %s", self.address, exc)
            else:
                LOGGER.info("Connected to %s", self.address)
                try:
                    async for line in self._read(reader):
                        yield line
                finally:
                    writer.close()
                    try:
                        await writer.wait_closed()
                    except OSError:
                        LOGGER.debug("Error while closing %s", self.address)
                LOGGER.info("Disconnected from %s", self.address)

            if not self._reconnect:
                return
            await asyncio.sleep(self._reconnect_delay)

    async def _read(self, reader: asyncio.StreamReader) -> AsyncIterator[str]:
        while True:
            try:
                raw = await reader.readline()
            except (ConnectionError, asyncio.IncompleteReadError) as exc:
                LOGGER.warning("Read from %s failed: %s", self.address, exc)
                return
            except ValueError as exc:
                # The stream reader has already discarded the oversized line.
                LOGGER.warning("Dropping oversized line from %s: %s", self.address, exc)
                continue
            if not raw:
                return
            line = raw.decode(self._encoding, errors="replace").strip()
            if line:
                yield line
