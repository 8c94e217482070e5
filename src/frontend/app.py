"""Textual dashboard for flowtail.

The app only renders what the session projects. Every user action goes back
through a session command, and the session's change listeners decide which
panel is redrawn.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import DataTable, Footer, Input, RichLog, Static

from core.ports import LineSource, Unsubscribe
from core.session import Session

from .constants import ACCENT, APP_VERSION
from .formatting import HighlightConfig, flow_label, format_flow_row, render_entry

LOGGER = logging.getLogger(__name__)


class DashboardApp(App):
    """Flow list on the left, entries of the selected flow on the right."""

    CSS = """
    Screen {
        background: #0f1a21;
        color: #e8eef5;
    }

    #topbar {
        height: 4;
        padding: 0 2;
        border-bottom: solid #2a3a46;
    }

    #topbar-left, #topbar-right {
        width: 1fr;
    }

    #topbar-right {
        text-align: right;
    }

    #title {
        text-style: bold;
    }

    .subtle {
        color: #c6d2dd;
    }

    #filters {
        height: 3;
        padding: 0 2;
    }

    #entry-filter {
        width: 2fr;
    }

    #min-flow-id {
        width: 1fr;
    }

    Input.invalid {
        border: tall #d9534f;
    }

    #flows-table {
        width: 44;
        border-right: solid #2a3a46;
    }

    #entries-title {
        height: 1;
        padding: 0 1;
        color: #c6d2dd;
    }

    #entries {
        height: 1fr;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "clear_entry_filter", "Clear filter", priority=True),
        ("ctrl+r", "reset", "Reset flows"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        session: Session,
        source: Optional[LineSource] = None,
        source_label: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._session = session
        self._source = source
        self._source_label = source_label
        self._highlight = HighlightConfig()
        self._indent = True
        self._subscriptions: list[Unsubscribe] = []

    def compose(self) -> ComposeResult:
        with Horizontal(id="topbar"):
            with Vertical(id="topbar-left"):
                yield Static(self._title_text(), id="title")
                yield Static(f"engine v{APP_VERSION}", classes="subtle")
            with Vertical(id="topbar-right"):
                yield Static(f"source: {self._source_label or 'none'}", classes="subtle")
                yield Static("", id="status", classes="subtle")

        with Horizontal(id="filters"):
            yield Input(
                value=self._pattern_text(),
                placeholder="Filter entries (regex, case-insensitive)",
                id="entry-filter",
            )
            yield Input(
                value=self._session.filter_state.min_flow_id,
                placeholder="Since flow id, e.g. 2024-05-01T10",
                id="min-flow-id",
            )

        with Horizontal(id="body"):
            yield DataTable(id="flows-table", cursor_type="row")
            with Container(id="entries-panel"):
                yield Static("no flow selected", id="entries-title")
                yield RichLog(id="entries", wrap=True, markup=False, highlight=False)
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#flows-table", DataTable)
        table.add_column("flow", key="id", width=26)
        table.add_column("service", key="service", width=14)
        table.zebra_stripes = True

        for name, value in self._session.options.items():
            self._apply_option(name, value)

        self._subscriptions = [
            self._session.on_flows_changed(self._refresh_flows),
            self._session.on_entries_changed(self._refresh_entries),
            self._session.on_options_changed(self._on_option),
        ]
        self._refresh_flows()
        self._refresh_entries()
        self._refresh_status()
        self.set_interval(1.0, self._refresh_status)

        self.query_one("#entry-filter", Input).focus()
        if self._source is not None:
            self.run_worker(self._consume(), name="line-source", exclusive=True)

    def on_unmount(self) -> None:
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions = []

    async def _consume(self) -> None:
        async for line in self._source.lines():
            self._session.handle_line(line)

    @on(Input.Changed, "#entry-filter")
    def _on_entry_filter_changed(self, event: Input.Changed) -> None:
        accepted = self._session.set_entry_filter(event.value)
        event.input.set_class(not accepted, "invalid")

    @on(Input.Changed, "#min-flow-id")
    def _on_min_flow_id_changed(self, event: Input.Changed) -> None:
        self._session.set_min_flow_id(event.value)

    @on(DataTable.RowSelected, "#flows-table")
    def _on_flow_selected(self, event: DataTable.RowSelected) -> None:
        if event.row_key.value is not None:
            self._session.select_flow(event.row_key.value)

    def action_clear_entry_filter(self) -> None:
        # Setting the value fires Input.Changed, which clears the session filter.
        self.query_one("#entry-filter", Input).value = ""

    def action_reset(self) -> None:
        self._session.reset()

    def _refresh_flows(self) -> None:
        table = self.query_one("#flows-table", DataTable)
        table.clear()
        selected = self._session.selected_flow
        cursor_row: Optional[int] = None
        for index, flow in enumerate(self._session.flows()):
            table.add_row(*format_flow_row(flow), key=flow.id)
            if selected is not None and flow.id == selected.id:
                cursor_row = index
        if cursor_row is not None:
            table.move_cursor(row=cursor_row)

    def _refresh_entries(self) -> None:
        log = self.query_one("#entries", RichLog)
        title = self.query_one("#entries-title", Static)
        log.clear()

        flow = self._session.selected_flow
        if flow is None:
            title.update("no flow selected")
            return

        entries = self._session.entries()
        title.update(f"{flow_label(flow)}  ({len(entries)}/{len(flow.entries)} entries)")
        for record in entries:
            log.write(render_entry(record, self._highlight, indent=self._indent))

    def _refresh_status(self) -> None:
        stats = self._session.stats
        rejected = sum(stats.lines_rejected.values())
        self.query_one("#status", Static).update(
            f"flows: {len(self._session.registry)}/{self._session.registry.max_flows}  "
            f"lines: {stats.lines_seen}  dropped: {stats.lines_dropped + rejected}"
        )

    def _on_option(self, name: str, value: Any) -> None:
        self._apply_option(name, value)
        self._refresh_entries()

    def _apply_option(self, name: str, value: Any) -> None:
        if name == "highlightConfig":
            self._highlight = HighlightConfig.from_option(value)
        elif name == "no-indent":
            self._indent = not value
        elif name == "hide-topbar":
            self.query_one("#topbar").display = not value
        elif name == "lines":
            try:
                self.query_one("#entries", RichLog).max_lines = int(value) if value else None
            except (TypeError, ValueError):
                LOGGER.warning("Ignoring invalid lines option %r", value)

    def _pattern_text(self) -> str:
        pattern = self._session.filter_state.entry_pattern
        return pattern.pattern if pattern is not None else ""

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("FLOW", ACCENT),
            ("TAIL > Dashboard", "bold"),
        )
