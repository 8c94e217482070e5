"""Read-only views over the registry.

Both projections are recomputed from scratch on every call. Flow and entry
counts are bounded by the retention cap, so there is no cached state to keep
in sync with the registry or the filters.
"""

from __future__ import annotations

from typing import Optional

from core.filters import entry_matches, flow_matches
from core.models import FilterState, Flow, LogRecord
from core.registry import FlowRegistry


def project_flows(registry: FlowRegistry, filter_state: FilterState) -> list[Flow]:
    """Flows passing the flow filter, newest id first."""

    return [
        flow
        for flow in registry.list_flows()
        if flow_matches(flow, filter_state.min_flow_id)
    ]


def project_entries(selected_flow: Optional[Flow], filter_state: FilterState) -> list[LogRecord]:
    """Entries of the selected flow passing the entry filter, in arrival order."""

    if selected_flow is None:
        return []
    return [
        record
        for record in selected_flow.entries
        if entry_matches(record, filter_state.entry_pattern)
    ]
