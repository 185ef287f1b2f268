"""
Session Collaborators

User notification and downstream event delivery. The session takes these
as constructor arguments so an application can plug in its own UI.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List

from loguru import logger


class Notifier(ABC):
    """Shows a blocking notice to the user."""

    @abstractmethod
    def alert(self, message: str) -> None:
        pass


class LogNotifier(Notifier):
    """Notifier for headless use: alerts become ERROR log lines."""

    def alert(self, message: str) -> None:
        logger.error(message)


class EventSink(ABC):
    """Receives every successfully parsed inbound engine message."""

    @abstractmethod
    def receive_object(self, obj: Dict[str, Any]) -> None:
        pass


class EventHub(EventSink):
    """
    Fans inbound messages out to subscribers.

    Subscribers run in subscription order; an exception in one stops the
    rest and propagates to the caller.
    """

    def __init__(self):
        self._subscribers: List[Callable[[Dict[str, Any]], None]] = []

    def subscribe(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def receive_object(self, obj: Dict[str, Any]) -> None:
        for callback in list(self._subscribers):
            callback(obj)

    def subscriber_count(self) -> int:
        return len(self._subscribers)
