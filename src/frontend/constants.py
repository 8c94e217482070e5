"""Shared constants for the Textual UI."""

from __future__ import annotations

ACCENT = "#E8A33D"
APP_VERSION = "1.0.0"
