"""
katalink Engine Bridge

This module owns the connection to the KataGo analysis engine:
- Connection lifecycle and message queueing before the proxy answers
- Desired/running query reconciliation with a terminate handshake
- Version and capability negotiation
- Redacted traffic logging

Architecture:
- EngineSession: one per connection, single-use
- Transport: aiohttp websocket to the proxy (ws://127.0.0.1:41949 by default)
- Communication: one JSON object per text frame
"""

from .exceptions import EngineError, EngineMisuseError, EngineReuseError
from .notify import EventHub, EventSink, LogNotifier, Notifier
from .protocol import (
    Action,
    CAPABILITY_PROBE_ID,
    QUERY_VERSION_ID,
    capability_probe,
    terminate_message,
    version_probe,
)
from .query import AnalysisParams, Query, QueryBuilder, compare_queries
from .reconciler import QueryReconciler, ReconcilerState
from .session import EngineSession
from .traffic import TrafficLogger, redact_received, redact_sent
from .transport import OutboundQueue, Transport, TransportListener, WebSocketTransport
from .version import BAD_VERSIONS, DEFAULT_VERSION, EngineVersion, VersionNegotiator

__all__ = [
    # Errors
    "EngineError",
    "EngineMisuseError",
    "EngineReuseError",
    # Collaborators
    "Notifier",
    "LogNotifier",
    "EventSink",
    "EventHub",
    # Protocol
    "Action",
    "CAPABILITY_PROBE_ID",
    "QUERY_VERSION_ID",
    "capability_probe",
    "terminate_message",
    "version_probe",
    # Queries
    "AnalysisParams",
    "Query",
    "QueryBuilder",
    "compare_queries",
    "QueryReconciler",
    "ReconcilerState",
    # Session
    "EngineSession",
    # Traffic log
    "TrafficLogger",
    "redact_received",
    "redact_sent",
    # Transport
    "OutboundQueue",
    "Transport",
    "TransportListener",
    "WebSocketTransport",
    # Version
    "BAD_VERSIONS",
    "DEFAULT_VERSION",
    "EngineVersion",
    "VersionNegotiator",
]
