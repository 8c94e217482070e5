"""Entry and flow filter predicates (core domain)."""

from __future__ import annotations

import re
from typing import Optional

from core.models import Flow, LogRecord


def compile_entry_pattern(text: Optional[str]) -> Optional[re.Pattern]:
    """Compile user filter text into a case-insensitive pattern.

    Blank text means no filter. Invalid regex text raises ``re.error`` so the
    caller can decide what to keep.
    """

    if text is None or not text.strip():
        return None
    return re.compile(text, re.IGNORECASE)


def entry_matches(record: LogRecord, entry_pattern: Optional[re.Pattern]) -> bool:
    if entry_pattern is None:
        return True
    return entry_pattern.search(record.raw_text) is not None


def flow_matches(flow: Flow, min_flow_id: str) -> bool:
    # Ids are fixed-width timestamps, so string order is time order.
    if not min_flow_id:
        return True
    return flow.id >= min_flow_id
