"""
Structured logging helpers for update runs.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure root logging once for a CLI process.
    """

    logging.basicConfig(
        level=getattr(logging, log_level.strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
