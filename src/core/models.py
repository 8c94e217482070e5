"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any transport or rendering specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import re
from typing import Any, Optional, Union


@dataclass(frozen=True)
class LogRecord:
    """One decoded log line, before or after classification."""

    raw_text: str
    payload: dict[str, Any]
    name: Optional[str] = None
    time: Any = None
    source_file: Optional[str] = None
    source_func: Optional[str] = None
    flow_id: Optional[str] = None


@dataclass
class Flow:
    """Entries sharing one flow id, in arrival order.

    Only the registry appends to ``entries``; everything else reads it.
    """

    id: str
    service: str = ""
    entries: list[LogRecord] = field(default_factory=list)


class RejectReason(str, Enum):
    MISSING_NAME = "missing_name"
    NOT_A_FLOW_ID = "not_a_flow_id"
    NOISE_MARKER = "noise_marker"


@dataclass(frozen=True)
class Accepted:
    """Classifier verdict for a record that belongs to a flow."""

    record: LogRecord
    flow_id: str


@dataclass(frozen=True)
class Rejected:
    """Classifier verdict for a record that is dropped, with the reason."""

    reason: RejectReason
    record: LogRecord


Classification = Union[Accepted, Rejected]


@dataclass(frozen=True)
class FilterState:
    """Entry and flow filters applied by the projector."""

    entry_pattern: Optional[re.Pattern] = None
    min_flow_id: str = ""
