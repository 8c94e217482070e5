from __future__ import annotations

import re

import pytest

from core.filters import compile_entry_pattern, entry_matches, flow_matches
from core.models import FilterState, Flow, LogRecord
from core.projector import project_entries, project_flows
from core.registry import FlowRegistry


def _record(name: str, text: str) -> LogRecord:
    return LogRecord(raw_text=text, payload={"msg": text}, name=name)


def _registry() -> FlowRegistry:
    registry = FlowRegistry()
    for flow_id, text in [
        ("2024-05-01T10:00:00.000Z", "GET /orders 200"),
        ("2024-06-15T08:30:00.000Z", "POST /payments 500"),
        ("2024-05-01T10:00:00.000Z", "ERROR timeout talking to db"),
        ("2024-07-01T00:00:00.000Z", "GET /health 200"),
    ]:
        registry.insert(_record(f"api:{flow_id}", text))
    return registry


@pytest.mark.parametrize(
    "min_flow_id, expected",
    [
        ("", True),
        ("2024-05-01T10:00:00.000Z", True),
        ("2024-05-01T09:59:59.999Z", True),
        ("2024-05-01T10:00:00.001Z", False),
        ("2024-05", True),
        ("2025", False),
    ],
)
def test_flow_matches_is_lexicographic_lower_bound(min_flow_id: str, expected: bool) -> None:
    flow = Flow(id="2024-05-01T10:00:00.000Z")

    assert flow_matches(flow, min_flow_id) is expected


def test_entry_matches_is_case_insensitive_search() -> None:
    record = _record("api:x", "ERROR timeout talking to db")

    assert entry_matches(record, None)
    assert entry_matches(record, compile_entry_pattern("timeout"))
    assert entry_matches(record, compile_entry_pattern("error.*DB"))
    assert not entry_matches(record, compile_entry_pattern("^timeout"))
    assert not entry_matches(record, compile_entry_pattern("payments"))


def test_compile_entry_pattern() -> None:
    assert compile_entry_pattern(None) is None
    assert compile_entry_pattern("   ") is None
    assert compile_entry_pattern("abc").flags & re.IGNORECASE
    with pytest.raises(re.error):
        compile_entry_pattern("(unclosed")


def test_project_flows_filters_and_keeps_descending_order() -> None:
    registry = _registry()

    everything = project_flows(registry, FilterState())
    recent = project_flows(registry, FilterState(min_flow_id="2024-06-01T00:00:00.000Z"))

    assert [flow.id for flow in everything] == [
        "2024-07-01T00:00:00.000Z",
        "2024-06-15T08:30:00.000Z",
        "2024-05-01T10:00:00.000Z",
    ]
    assert [flow.id for flow in recent] == [
        "2024-07-01T00:00:00.000Z",
        "2024-06-15T08:30:00.000Z",
    ]


def test_project_entries_filters_in_arrival_order() -> None:
    flow = _registry().get_flow("2024-05-01T10:00:00.000Z")

    assert project_entries(None, FilterState()) == []
    assert [r.raw_text for r in project_entries(flow, FilterState())] == [
        "GET /orders 200",
        "ERROR timeout talking to db",
    ]
    only_errors = FilterState(entry_pattern=compile_entry_pattern("error"))
    assert [r.raw_text for r in project_entries(flow, only_errors)] == ["ERROR timeout talking to db"]


def test_projections_are_idempotent() -> None:
    registry = _registry()
    state = FilterState(entry_pattern=compile_entry_pattern("get"), min_flow_id="2024-05")
    flow = registry.get_flow("2024-05-01T10:00:00.000Z")

    assert project_flows(registry, state) == project_flows(registry, state)
    assert project_entries(flow, state) == project_entries(flow, state)
    assert len(flow.entries) == 2
