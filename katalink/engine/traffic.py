"""
Engine Traffic Log

Human-readable records of every message sent to or received from the engine.
Bulky fields are redacted so the log stays readable.
"""

import json
from typing import Any, Dict, Optional

from ..core.logging import get_traffic_logger
from .protocol import BULKY_RESULT_FIELDS, REDACTED


def redact_received(message: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (REDACTED if k in BULKY_RESULT_FIELDS else v) for k, v in message.items()}


def redact_sent(message: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (REDACTED if k == "moves" else v) for k, v in message.items()}


class TrafficLogger:
    """
    Writes redacted traffic records to the engine task log.

    Does nothing unless enabled.
    """

    def __init__(self, enabled: bool = False, sink=None):
        self.enabled = enabled
        self._sink = sink if sink is not None else get_traffic_logger()

    def _write(self, line: str) -> None:
        try:
            self._sink.info(line)
        except Exception:
            # A broken sink must not disturb the session
            pass

    def log_received(self, message: Dict[str, Any]) -> Optional[str]:
        if not self.enabled:
            return None
        line = "< " + json.dumps(redact_received(message), default=str)
        self._write(line)
        return line

    def log_sent(self, message: Dict[str, Any]) -> Optional[str]:
        if not self.enabled:
            return None
        line = "--> " + json.dumps(redact_sent(message), default=str)
        self._write(line)
        return line
