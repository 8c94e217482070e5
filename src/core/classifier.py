"""Flow classification (core domain).

Flow ids are fixed-width ISO-8601 millisecond UTC timestamps. Because the
width never varies, plain string comparison of two ids is also chronological
comparison; the registry's display order and the ``min_flow_id`` filter both
rely on that, so anything that does not match the full pattern is rejected
here rather than compared later.
"""

from __future__ import annotations

from dataclasses import replace
import re
from typing import Iterable

from core.models import Accepted, Classification, LogRecord, Rejected, RejectReason

FLOW_ID_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z")

# Internal message-queue service and worker lines share the id format but are
# infrastructure chatter, never flows.
DEFAULT_NOISE_MARKERS: tuple[str, ...] = ("bs.services.mq", "bs.worker")


def candidate_flow_id(name: str) -> str:
    """Return the part of ``name`` after the first colon (all of it if none)."""

    _, sep, suffix = name.partition(":")
    if not sep:
        return name
    return suffix


def service_name(name: str) -> str:
    """Return the part of ``name`` before the first colon."""

    return name.partition(":")[0]


def is_flow_id(value: str) -> bool:
    return FLOW_ID_PATTERN.fullmatch(value) is not None


def classify(
    record: LogRecord,
    noise_markers: Iterable[str] = DEFAULT_NOISE_MARKERS,
) -> Classification:
    """Decide whether a record belongs to a flow.

    Checks run in order: a name must be present, its suffix must be a flow id,
    and the name must not carry a noise marker.
    """

    name = record.name
    if not name:
        return Rejected(RejectReason.MISSING_NAME, record)

    flow_id = candidate_flow_id(name)
    if not is_flow_id(flow_id):
        return Rejected(RejectReason.NOT_A_FLOW_ID, record)

    if any(marker in name for marker in noise_markers):
        return Rejected(RejectReason.NOISE_MARKER, record)

    return Accepted(replace(record, flow_id=flow_id), flow_id)
