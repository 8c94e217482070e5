"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.classifier import DEFAULT_NOISE_MARKERS
from core.registry import DEFAULT_MAX_FLOWS


@dataclass(frozen=True)
class EngineConfig:
    """Retention and classification settings for a session."""

    max_flows: int = DEFAULT_MAX_FLOWS
    noise_markers: tuple[str, ...] = DEFAULT_NOISE_MARKERS
    entry_filter: str = ""
    min_flow_id: str = ""


@dataclass(frozen=True)
class SourceConfig:
    """Transport settings consumed by the source adapters."""

    kind: str = "socket"
    host: str = "127.0.0.1"
    port: int = 9001
    path: Optional[str] = None
    reconnect_delay: float = 2.0
    from_start: bool = False
    poll_interval: float = 0.5
