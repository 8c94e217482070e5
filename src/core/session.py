"""Dashboard session: the core's single entry point.

The session feeds raw lines through parse, classify and insert, owns the
filter state and the selection, and tells renderer listeners when one of the
two projections may have changed. It is transport-agnostic and never renders
anything itself.

Everything runs on one thread: each line is processed to completion before the
next one, and filter or selection changes are applied between lines, so the
registry needs no locking.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
import logging
import re
from typing import Any, Iterable, Optional

from core.config import EngineConfig
from core.filters import compile_entry_pattern, flow_matches
from core.models import FilterState, Flow, LogRecord, Rejected, RejectReason
from core.parser import LineDecodeError, parse_line
from core.ports import ChangeListener, OptionListener, Unsubscribe
from core.projector import project_entries, project_flows
from core.registry import FlowRegistry, InsertResult

LOGGER = logging.getLogger(__name__)

OPTION_PREFIX = "options:"
# The only transport option the core acts on; the rest belong to the renderer.
FLOW_CAP_OPTION = "flows"


@dataclass
class SessionStats:
    lines_seen: int = 0
    lines_dropped: int = 0
    lines_rejected: Counter = field(default_factory=Counter)

    def rejected(self, reason: RejectReason) -> int:
        return self.lines_rejected[reason]


class Session:
    """Registry, filters, selection and change notifications for one viewer."""

    def __init__(
        self,
        registry: Optional[FlowRegistry] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        config = config or EngineConfig()
        if registry is None:
            registry = FlowRegistry(config.max_flows, config.noise_markers)
        self._registry = registry
        # Bad filter text in settings should fail at startup, not silently.
        self._filter_state = FilterState(
            entry_pattern=compile_entry_pattern(config.entry_filter),
            min_flow_id=config.min_flow_id.strip(),
        )
        self._selected_id: Optional[str] = None
        self._flows_listeners: list[ChangeListener] = []
        self._entries_listeners: list[ChangeListener] = []
        self._option_listeners: list[OptionListener] = []
        self.options: dict[str, Any] = {}
        self.stats = SessionStats()

    @property
    def registry(self) -> FlowRegistry:
        return self._registry

    @property
    def filter_state(self) -> FilterState:
        return self._filter_state

    @property
    def selected_flow(self) -> Optional[Flow]:
        if self._selected_id is None:
            return None
        return self._registry.get_flow(self._selected_id)

    # Incoming data

    def handle_line(self, raw: str) -> Optional[InsertResult]:
        """Process one raw line. Returns None when the line could not be decoded."""

        self.stats.lines_seen += 1
        try:
            record = parse_line(raw)
        except LineDecodeError as exc:
            self.stats.lines_dropped += 1
            LOGGER.debug("Dropped undecodable line: %s", exc)
            return None
        return self.handle_record(record)

    def handle_record(self, record: LogRecord) -> InsertResult:
        result = self._registry.insert(record)
        if isinstance(result.classification, Rejected):
            self.stats.lines_rejected[result.classification.reason] += 1
            LOGGER.debug("Rejected line (%s): %s", result.classification.reason.value, record.name)
            return result

        flows_changed = result.created and flow_matches(result.flow, self._filter_state.min_flow_id)
        flows_changed = flows_changed or self._any_listed(result.evicted)
        entries_changed = self._drop_evicted_selection(result.evicted)
        if result.flow is not None and result.flow.id == self._selected_id:
            entries_changed = True

        if flows_changed:
            self._notify(self._flows_listeners)
        if entries_changed:
            self._notify(self._entries_listeners)
        return result

    def handle_option(self, name: str, value: Any) -> None:
        """Apply one ``options:*`` event from the transport."""

        if name.startswith(OPTION_PREFIX):
            name = name[len(OPTION_PREFIX):]
        self.options[name] = value
        if name == FLOW_CAP_OPTION:
            self._resize(value)
        for listener in list(self._option_listeners):
            try:
                listener(name, value)
            except Exception:
                LOGGER.exception("Option listener failed for %s", name)

    def apply_options(self, options: dict[str, Any]) -> None:
        for name, value in options.items():
            self.handle_option(name, value)

    # Renderer commands

    def select_flow(self, flow_id: str) -> bool:
        """Select a flow by id. Unknown ids leave the selection unchanged."""

        if flow_id not in self._registry:
            return False
        self._selected_id = flow_id
        self._notify(self._entries_listeners)
        return True

    def clear_selection(self) -> None:
        if self._selected_id is None:
            return
        self._selected_id = None
        self._notify(self._entries_listeners)

    def set_entry_filter(self, text: Optional[str]) -> bool:
        """Replace the entry filter.

        Invalid regex text is rejected and the previous pattern stays active.
        Returns False in that case.
        """

        try:
            pattern = compile_entry_pattern(text)
        except re.error as exc:
            LOGGER.warning("Ignoring invalid entry filter %r: %s", text, exc)
            return False
        self._filter_state = replace(self._filter_state, entry_pattern=pattern)
        self._notify(self._entries_listeners)
        return True

    def set_min_flow_id(self, min_flow_id: Optional[str]) -> None:
        self._filter_state = replace(self._filter_state, min_flow_id=(min_flow_id or "").strip())
        self._notify(self._flows_listeners)

    def reset(self) -> None:
        """Forget every flow and the selection. Filters are kept."""

        self._registry.reset()
        self._selected_id = None
        self._notify(self._flows_listeners)
        self._notify(self._entries_listeners)

    # Projections

    def flows(self) -> list[Flow]:
        return project_flows(self._registry, self._filter_state)

    def entries(self) -> list[LogRecord]:
        return project_entries(self.selected_flow, self._filter_state)

    # Listeners

    def on_flows_changed(self, listener: ChangeListener) -> Unsubscribe:
        return self._subscribe(self._flows_listeners, listener)

    def on_entries_changed(self, listener: ChangeListener) -> Unsubscribe:
        return self._subscribe(self._entries_listeners, listener)

    def on_options_changed(self, listener: OptionListener) -> Unsubscribe:
        return self._subscribe(self._option_listeners, listener)

    @staticmethod
    def _subscribe(listeners: list, listener) -> Unsubscribe:
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    @staticmethod
    def _notify(listeners: list[ChangeListener]) -> None:
        # A broken renderer callback must not stop line processing.
        for listener in list(listeners):
            try:
                listener()
            except Exception:
                LOGGER.exception("Change listener failed")

    def _resize(self, value: Any) -> None:
        try:
            max_flows = int(value)
            evicted = self._registry.set_max_flows(max_flows)
        except (TypeError, ValueError) as exc:
            LOGGER.warning("Ignoring invalid flow cap %r: %s", value, exc)
            return
        LOGGER.info("Flow cap set to %s", max_flows)
        entries_changed = self._drop_evicted_selection(evicted)
        if self._any_listed(evicted):
            self._notify(self._flows_listeners)
        if entries_changed:
            self._notify(self._entries_listeners)

    def _any_listed(self, flows: Iterable[Flow]) -> bool:
        return any(flow_matches(flow, self._filter_state.min_flow_id) for flow in flows)

    def _drop_evicted_selection(self, evicted: Iterable[Flow]) -> bool:
        if self._selected_id is None:
            return False
        if any(flow.id == self._selected_id for flow in evicted):
            LOGGER.info("Selected flow %s was evicted", self._selected_id)
            self._selected_id = None
            return True
        return False
