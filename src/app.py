"""Application entry point for the flowtail dashboard."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.file_source import FileLineSource, read_batch
from adapters.socket_source import SocketLineSource
from core.config import EngineConfig, SourceConfig
from core.ports import LineSource
from core.session import Session
from frontend.formatting import entry_body

NAME = "FLOWTAIL"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging(allow_console: bool = True) -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    # The dashboard owns the terminal, so console output is only for headless commands.
    if allow_console and config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/flowtail.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _engine_config(entry_filter: Optional[str] = None, min_flow_id: Optional[str] = None) -> EngineConfig:
    return EngineConfig(
        max_flows=settings.MAX_FLOWS,
        noise_markers=settings.NOISE_MARKERS,
        entry_filter=settings.ENTRY_FILTER if entry_filter is None else entry_filter,
        min_flow_id=settings.MIN_FLOW_ID if min_flow_id is None else min_flow_id,
    )


def _source_config(connect: Optional[str], path: Optional[str]) -> SourceConfig:
    """Build the source config, letting --connect/--file override config.json."""

    kind = settings.SOURCE_KIND
    host = settings.SOURCE_HOST
    port = settings.SOURCE_PORT
    source_path = settings.SOURCE_PATH

    if connect:
        host, sep, port_text = connect.rpartition(":")
        if not sep or not host or not port_text.isdigit():
            raise RuntimeError(f"--connect must be HOST:PORT, got {connect!r}")
        kind = "socket"
        port = int(port_text)
    elif path:
        kind = "file"
        source_path = path

    return SourceConfig(
        kind=kind,
        host=host,
        port=port,
        path=source_path,
        reconnect_delay=settings.RECONNECT_DELAY,
        from_start=settings.FROM_START,
        poll_interval=settings.POLL_INTERVAL,
    )


def build_source(config: SourceConfig) -> tuple[LineSource, str]:
    """Select the transport adapter; returns it with a label for the UI."""

    if config.kind == "socket":
        source = SocketLineSource(config.host, config.port, reconnect_delay=config.reconnect_delay)
        return source, source.address
    if config.kind == "file":
        if not config.path:
            raise RuntimeError("source.path is required when source.kind=file")
        return (
            FileLineSource(config.path, from_start=config.from_start, poll_interval=config.poll_interval),
            config.path,
        )
    raise RuntimeError("source.kind must be 'socket' or 'file'")


def _load_session(path: str, entry_filter: Optional[str] = None, min_flow_id: Optional[str] = None) -> Session:
    session = Session(config=_engine_config(entry_filter, min_flow_id))
    session.apply_options(settings.OPTIONS)
    for line in read_batch(path):
        session.handle_line(line)
    return session


def _run(connect: Optional[str], path: Optional[str]) -> None:
    _print_banner()
    _configure_logging(allow_console=False)
    logger = logging.getLogger(__name__)

    session = Session(config=_engine_config())
    session.apply_options(settings.OPTIONS)
    source, label = build_source(_source_config(connect, path))
    logger.info("Starting flowtail on %s (max %s flows)", label, session.registry.max_flows)

    from frontend.app import DashboardApp

    DashboardApp(session, source=source, source_label=label).run()


def _flows(path: str, since: str) -> None:
    _configure_logging()
    session = _load_session(path, entry_filter="", min_flow_id=since)
    flows = session.flows()
    if not flows:
        print("No flows match the current filter.")
        return
    for index, flow in enumerate(flows, start=1):
        print(f"{index}. {flow.id} | {flow.service or '-'} | {len(flow.entries)} entries")


def _entries(path: str, flow_id: str, pattern: str) -> None:
    _configure_logging()
    session = _load_session(path, entry_filter="", min_flow_id="")
    if not session.select_flow(flow_id):
        print(f"Unknown flow: {flow_id}")
        return
    if not session.set_entry_filter(pattern):
        raise RuntimeError(f"Invalid --filter pattern: {pattern!r}")
    indent = not session.options.get("no-indent", False)
    for record in session.entries():
        print(entry_body(record, indent=indent))


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="flowtail")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Start the dashboard")
    target = run_parser.add_mutually_exclusive_group()
    target.add_argument("--connect", metavar="HOST:PORT", help="Tail a socket stream")
    target.add_argument("--file", metavar="PATH", help="Tail a local log file")

    flows_parser = subparsers.add_parser("flows", help="List the flows found in a log file")
    flows_parser.add_argument("path")
    flows_parser.add_argument("--since", default="", help="Only flows with id >= SINCE")

    entries_parser = subparsers.add_parser("entries", help="Print the entries of one flow")
    entries_parser.add_argument("path")
    entries_parser.add_argument("flow_id")
    entries_parser.add_argument("--filter", default="", help="Case-insensitive regex on the raw line")

    args = parser.parse_args(argv)
    if args.command == "flows":
        _flows(args.path, args.since)
        return
    if args.command == "entries":
        _entries(args.path, args.flow_id, args.filter)
        return
    _run(getattr(args, "connect", None), getattr(args, "file", None))


if __name__ == "__main__":
    main()
