"""Structured JSON audit lines for store mutations.

Each line is a self-contained JSON object with:
  - event: event type name
  - ts: ISO-8601 UTC timestamp
  - ids and counts relevant to the event

Secret fields (host, username, password, passphrases) are never logged.
Logger name: sshvault.audit (configure in your logging setup)
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("sshvault.audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def log_event(event: str, **fields: Any) -> None:
    """Emit one audit line at INFO."""
    logger.info(json.dumps({"event": event, "ts": _now(), **fields}, default=str))
