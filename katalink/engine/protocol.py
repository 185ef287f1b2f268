"""
Engine Proxy Protocol

Message shapes exchanged with the KataGo analysis engine through the proxy.
Uses one JSON object per websocket text frame, in both directions.
"""

import json
from enum import Enum
from typing import Any, Dict, Optional


class Action(str, Enum):
    """Engine actions used by the session."""

    TERMINATE = "terminate"
    QUERY_VERSION = "query_version"


# Fixed ids of the startup probes
QUERY_VERSION_ID = "query_version"
CAPABILITY_PROBE_ID = "test_bs29"

# Inbound fields that carry bulk analysis data
BULKY_RESULT_FIELDS = ("moveInfos", "ownership", "policy")

REDACTED = ["redacted"]


def version_probe() -> Dict[str, Any]:
    """Identification request; the engine answers with its version string."""
    return {"id": QUERY_VERSION_ID, "action": Action.QUERY_VERSION.value}


def capability_probe() -> Dict[str, Any]:
    """
    Oversized board request.

    Only engines compiled with bs29 support accept a 29x29 board, so an
    error response is the normal outcome.
    """
    return {
        "id": CAPABILITY_PROBE_ID,
        "rules": "Chinese",
        "boardXSize": 29,
        "boardYSize": 29,
        "maxVisits": 1,
        "moves": [],
    }


def terminate_message(query_id: str) -> Dict[str, Any]:
    """Ask the engine to stop the query with the given id."""
    return {
        "id": f"stop!{query_id}",
        "action": Action.TERMINATE.value,
        "terminateId": query_id,
    }


def is_termination_of(message: Dict[str, Any], query_id: str) -> bool:
    """True when message acknowledges termination of query_id."""
    return message.get("action") == Action.TERMINATE.value and message.get("terminateId") == query_id


def is_error_for(message: Dict[str, Any], query_id: str) -> bool:
    """True when message is an engine error raised by query_id itself."""
    return bool(message.get("error")) and message.get("id") == query_id


def encode_message(message: Dict[str, Any]) -> str:
    """Encode a message for transmission."""
    return json.dumps(message)


def decode_message(data: str) -> Optional[Dict[str, Any]]:
    """
    Decode a received frame.

    Returns None when the payload is not a JSON object.
    """
    try:
        obj = json.loads(data)
    except (TypeError, ValueError):
        return None
    if not isinstance(obj, dict):
        return None
    return obj
