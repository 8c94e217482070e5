"""File transport with batch and continuous tailing modes."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import AsyncIterator, TextIO

LOGGER = logging.getLogger(__name__)


class FileLineSource:
    """Reads a log file and optionally keeps following it.

    Handles:
    - File not yet existing (waits for creation)
    - File truncation (seek back to start)
    """

    def __init__(
        self,
        path: str,
        follow: bool = True,
        from_start: bool = False,
        poll_interval: float = 0.5,
    ) -> None:
        self._path = path
        self._follow = follow
        self._from_start = from_start or not follow
        self._poll_interval = poll_interval

    async def lines(self) -> AsyncIterator[str]:
        await self._wait_for_file()

        with open(self._path, "r", encoding="utf-8", errors="replace") as handle:
            if not self._from_start:
                handle.seek(0, os.SEEK_END)
            LOGGER.info("Reading %s", self._path)

            while True:
                position = handle.tell()
                line = handle.readline()
                if line and self._follow and not line.endswith("\n"):
                    # Writer is mid-line; re-read it once it is complete.
                    handle.seek(position)
                    line = ""
                if line:
                    stripped = line.strip()
                    if stripped:
                        yield stripped
                    continue
                if not self._follow:
                    return
                self._check_truncation(handle)
                await asyncio.sleep(self._poll_interval)

    async def _wait_for_file(self) -> None:
        while not os.path.exists(self._path):
            if not self._follow:
                raise FileNotFoundError(f"Log file not found: {self._path}")
            LOGGER.debug("Waiting for file %s to appear...", self._path)
            await asyncio.sleep(self._poll_interval)

    def _check_truncation(self, handle: TextIO) -> None:
        try:
            size = os.path.getsize(self._path)
        except OSError:
            return
        if size < handle.tell():
            LOGGER.info("Truncation detected on %s, seeking to start", self._path)
            handle.seek(0)


def read_batch(path: str) -> list[str]:
    """Read all non-empty stripped lines from a file."""

    with open(path, "r", encoding="utf-8", errors="replace") as handle:
        return [line.strip() for line in handle if line.strip()]
