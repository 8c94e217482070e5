"""Line decoding (core domain).

A raw line is a JSON envelope::

    {"name": "svc:<flow id>", "time": ..., "msg": "...", "src": {"file": ..., "func": ...}}

``msg`` may itself hold a serialized JSON object, in which case that object is
the payload. Otherwise the payload wraps exactly one envelope field, picked by
``PAYLOAD_RULES`` in priority order.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Optional

from core.models import LogRecord


class LineDecodeError(ValueError):
    """Raised when a raw line is not a JSON object envelope."""


def _wrap(field_name: str) -> Callable[[dict], dict[str, Any]]:
    def extract(envelope: dict) -> dict[str, Any]:
        return {field_name: envelope[field_name]}

    return extract


# (predicate, extractor) pairs, first match wins. The last rule always applies.
PAYLOAD_RULES: list[tuple[Callable[[dict], bool], Callable[[dict], dict[str, Any]]]] = [
    (lambda envelope: "event" in envelope, _wrap("event")),
    (lambda envelope: "data" in envelope, _wrap("data")),
    (lambda envelope: "error" in envelope, _wrap("error")),
    (lambda envelope: True, lambda envelope: {"msg": envelope.get("msg")}),
]


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    return None


def _structured_payload(message: Any) -> Optional[dict[str, Any]]:
    """Return the inner object when ``msg`` is serialized JSON, else None."""

    if not isinstance(message, str) or not message.startswith("{"):
        return None
    try:
        inner = json.loads(message)
    except (json.JSONDecodeError, RecursionError):
        return None
    if not isinstance(inner, dict):
        return None
    return inner


def _payload_from_rules(envelope: dict) -> dict[str, Any]:
    for predicate, extract in PAYLOAD_RULES:
        if predicate(envelope):
            return extract(envelope)
    return {"msg": envelope.get("msg")}


def parse_line(raw: str) -> LogRecord:
    """Decode one raw line into a LogRecord.

    Raises LineDecodeError when the envelope itself cannot be decoded. Every
    other malformation degrades to a ``{"msg": ...}`` payload.
    """

    try:
        envelope = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        raise LineDecodeError(f"invalid JSON envelope: {exc}") from exc
    except RecursionError as exc:
        raise LineDecodeError("JSON envelope is nested too deeply") from exc
    if not isinstance(envelope, dict):
        raise LineDecodeError("envelope must be a JSON object")

    source = envelope.get("src")
    if not isinstance(source, dict):
        source = {}

    name = _optional_str(envelope.get("name"))
    time = envelope.get("time")
    source_file = _optional_str(source.get("file"))
    source_func = _optional_str(source.get("func"))

    # A msg that only looks like JSON falls through to the field rules.
    payload = _structured_payload(envelope.get("msg"))
    if payload is None:
        payload = _payload_from_rules(envelope)

    payload.update(
        {
            "_time": time,
            "_name": name,
            "_file": source_file,
            "_func": source_func,
        }
    )

    return LogRecord(
        raw_text=raw,
        payload=payload,
        name=name,
        time=time,
        source_file=source_file,
        source_func=source_func,
    )
