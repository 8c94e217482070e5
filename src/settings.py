"""Static configuration for flowtail.

All user-editable settings (source, flow retention, initial filters, renderer
options, logging) live in a single JSON file for quick edits without touching
Python. A ``.env`` file may point FLOWTAIL_CONFIG at another file and override
the socket address.
"""

import json
import logging
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

CONFIG_PATH = os.getenv("FLOWTAIL_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config(path: str) -> dict:
    """Load config.json with a flat, user-friendly schema.

    A missing file means defaults everywhere; a malformed one is an error.
    """

    if not os.path.exists(path):
        logging.getLogger(__name__).info("Config file not found, using defaults: %s", path)
        return {}

    with open(path, "r", encoding="utf-8") as handle:
        config = json.load(handle)
    if not isinstance(config, dict):
        raise ValueError(f"Config root must be an object: {path}")
    return config


_CONFIG = _load_json_config(CONFIG_PATH)

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Transport settings. kind is "socket" (persistent TCP stream of lines) or
# "file" (tail a local log file).
_source = _CONFIG.get("source", {})
SOURCE_KIND = _source.get("kind", "socket")
SOURCE_HOST = os.getenv("FLOWTAIL_HOST") or _source.get("host", "127.0.0.1")
SOURCE_PORT = int(os.getenv("FLOWTAIL_PORT") or _source.get("port", 9001))
SOURCE_PATH = _source.get("path")
RECONNECT_DELAY = float(_source.get("reconnect_delay", 2.0))
FROM_START = bool(_source.get("from_start", False))
POLL_INTERVAL = float(_source.get("poll_interval", 0.5))

# Retention cap and the name markers of internal lines that are never flows.
_flows = _CONFIG.get("flows", {})
MAX_FLOWS = int(_flows.get("max_flows", 200))
NOISE_MARKERS = tuple(_flows.get("noise_markers", ["bs.services.mq", "bs.worker"]))

# Filters the dashboard starts with.
_filters = _CONFIG.get("filters", {})
ENTRY_FILTER = _filters.get("entry", "")
MIN_FLOW_ID = _filters.get("min_flow_id", "")

# Renderer options, replayed through the session as options:* events.
OPTIONS = _CONFIG.get("options", {})

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
