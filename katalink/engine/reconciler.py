"""
Query Reconciler

Keeps the query the application wants (desired) and the query the engine
is working on (running) in step. At most one query runs at a time; a
running query is replaced only after the engine confirms it stopped.
"""

from enum import Enum
from typing import Any, Callable, Dict, Optional

from loguru import logger

from .protocol import is_error_for, is_termination_of, terminate_message
from .query import Query, compare_queries


class ReconcilerState(str, Enum):
    IDLE = "idle"  # nothing desired, nothing running
    PENDING = "pending"  # desired set, nothing running yet
    ACTIVE = "active"  # desired is the running query
    SUPERSEDED = "superseded"  # running query awaiting termination


class QueryReconciler:
    """
    Single-flight dispatcher with in-flight replacement.

    Usage:
        reconciler = QueryReconciler(send=session.send)
        reconciler.request(query)        # dispatch or supersede
        reconciler.cancel()              # stop whatever runs
        reconciler.handle_message(msg)   # settle on terminate/error replies
    """

    def __init__(self, send: Callable[[Dict[str, Any]], None]):
        self._send = send
        self.desired: Optional[Query] = None
        self.running: Optional[Query] = None
        # id of the running query a terminate was already sent for
        self._terminating: Optional[str] = None

    @property
    def state(self) -> ReconcilerState:
        if self.running is None:
            return ReconcilerState.PENDING if self.desired is not None else ReconcilerState.IDLE
        if self.desired is not None and self.desired.id == self.running.id:
            return ReconcilerState.ACTIVE
        return ReconcilerState.SUPERSEDED

    def request(self, query: Query) -> bool:
        """
        Make query the desired analysis.

        Returns:
            False if it duplicates the current desired query (nothing changes)
        """
        if self.desired is not None and compare_queries(self.desired, query):
            return False

        self.desired = query

        if self.running is not None:
            self._request_termination()
        else:
            self._dispatch()
        return True

    def cancel(self) -> None:
        """Drop the desired query and stop the running one, if any."""
        self.desired = None
        if self.running is not None:
            self._request_termination()

    def handle_message(self, message: Dict[str, Any]) -> bool:
        """
        Settle the running query if message ends it.

        Returns:
            True if the running query was settled
        """
        running = self.running
        if running is None:
            return False
        if not (is_termination_of(message, running.id) or is_error_for(message, running.id)):
            return False

        logger.debug(f"Query {running.id} settled")

        if self.desired is not None and self.desired.id == running.id:
            self.desired = None
        self.running = None
        self._terminating = None

        if self.desired is not None:
            self._dispatch()
        return True

    def reset(self) -> None:
        """Forget all queries without sending anything."""
        self.desired = None
        self.running = None
        self._terminating = None

    def _dispatch(self) -> None:
        # set before sending; a failed send resets the reconciler
        self.running = self.desired
        self._send(self.running.to_message())

    def _request_termination(self) -> None:
        if self._terminating == self.running.id:
            return
        self._terminating = self.running.id
        self._send(terminate_message(self.running.id))
