"""Entry and flow formatting for the dashboard.

Keeping formatting here keeps the Textual widgets thin and lets the headless
CLI print exactly what the dashboard shows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Optional

from rich.text import Text

from core.models import Flow, LogRecord


@dataclass(frozen=True)
class HighlightConfig:
    """Highlight rules delivered through the ``highlightConfig`` option.

    ``lines`` maps a substring to a style applied to the whole entry when the
    entry contains it; ``words`` maps a word to a style applied to each
    occurrence. Styles are Rich style strings such as ``"bold red"``.
    """

    words: dict[str, str] = field(default_factory=dict)
    lines: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_option(cls, value: Any) -> "HighlightConfig":
        if not isinstance(value, dict):
            return cls()
        words = value.get("words") or {}
        lines = value.get("lines") or {}
        return cls(
            words={str(k): str(v) for k, v in words.items()} if isinstance(words, dict) else {},
            lines={str(k): str(v) for k, v in lines.items()} if isinstance(lines, dict) else {},
        )


def entry_body(record: LogRecord, indent: bool = True) -> str:
    """Return the text shown for an entry: its message, or the whole payload."""

    message = record.payload.get("msg")
    if message:
        return str(message)
    return json.dumps(record.payload, indent=2 if indent else None, ensure_ascii=False, default=str)


def render_entry(
    record: LogRecord,
    highlight: Optional[HighlightConfig] = None,
    indent: bool = True,
) -> Text:
    body = entry_body(record, indent=indent)
    text = Text(body)
    if highlight is None:
        return text

    for needle, style in highlight.lines.items():
        if needle in body:
            text.stylize(style)
    for word, style in highlight.words.items():
        text.highlight_words([word], style=style)
    return text


def flow_label(flow: Flow) -> str:
    if not flow.service:
        return flow.id
    return f"{flow.id}  {flow.service}"


def format_flow_row(flow: Flow) -> tuple[str, str]:
    """Cells for one flow table row."""

    return flow.id, flow.service or "-"
