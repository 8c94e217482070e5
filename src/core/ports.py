"""Ports (interfaces) used by the core session.

Ports define the minimal contracts for transport adapters and renderer
listeners so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Protocol


class LineSource(Protocol):
    """Transport that pushes raw log lines in the order they were sent."""

    def lines(self) -> AsyncIterator[str]:
        ...


ChangeListener = Callable[[], None]
OptionListener = Callable[[str, Any], None]
Unsubscribe = Callable[[], None]
