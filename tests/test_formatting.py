from __future__ import annotations

import json

from core.models import Flow, LogRecord
from frontend.formatting import (
    HighlightConfig,
    entry_body,
    flow_label,
    format_flow_row,
    render_entry,
)


def _record(payload: dict) -> LogRecord:
    return LogRecord(raw_text=json.dumps(payload), payload=payload)


def test_entry_body_prefers_message() -> None:
    assert entry_body(_record({"msg": "hello", "_name": "svc:x"})) == "hello"


def test_entry_body_dumps_structured_payload() -> None:
    record = _record({"status": 200, "_name": "svc:x"})

    indented = entry_body(record)
    compact = entry_body(record, indent=False)

    assert json.loads(indented) == record.payload
    assert "\n" in indented
    assert "\n" not in compact


def test_highlight_config_from_option_tolerates_junk() -> None:
    assert HighlightConfig.from_option(None) == HighlightConfig()
    assert HighlightConfig.from_option({"words": ["ERROR"]}).words == {}

    config = HighlightConfig.from_option({"words": {"ERROR": "bold red"}, "lines": {"timeout": "yellow"}})
    assert config.words == {"ERROR": "bold red"}
    assert config.lines == {"timeout": "yellow"}


def test_render_entry_applies_word_and_line_styles() -> None:
    highlight = HighlightConfig(words={"ERROR": "bold red"}, lines={"timeout": "yellow"})

    text = render_entry(_record({"msg": "ERROR timeout talking to db"}), highlight)

    styles = {str(span.style) for span in text.spans}
    assert "bold red" in styles
    assert "yellow" in styles
    assert text.plain == "ERROR timeout talking to db"


def test_render_entry_without_matches_is_plain() -> None:
    highlight = HighlightConfig(words={"ERROR": "bold red"}, lines={"timeout": "yellow"})

    text = render_entry(_record({"msg": "all good"}), highlight)

    assert text.spans == []


def test_flow_labels() -> None:
    flow = Flow(id="2024-05-01T10:00:00.000Z", service="checkout")

    assert flow_label(flow) == "2024-05-01T10:00:00.000Z  checkout"
    assert format_flow_row(flow) == ("2024-05-01T10:00:00.000Z", "checkout")
    assert format_flow_row(Flow(id="2024-05-01T10:00:00.000Z")) == ("2024-05-01T10:00:00.000Z", "-")
