"""
Engine Session

One connection to the KataGo proxy and the analysis state riding on it.

Usage:
    hub = EventHub()
    hub.subscribe(on_engine_message)
    session = EngineSession(config=EngineConfig.from_env(), event_sink=hub)
    session.setup("/opt/katago/katago", "/opt/katago/analysis.cfg", "/opt/katago/b18.bin.gz")
    ...
    session.analyse(AnalysisParams(node_id="n42", moves=[("B", "Q16")]))

A session is single-use: once it has connected or shut down, setup() raises.
All methods and transport callbacks run on the event loop thread and never
block.
"""

import dataclasses
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from ..core.config import EngineConfig
from ..core.utils import basename, format_value, path_exists
from .exceptions import EngineMisuseError, EngineReuseError
from .notify import EventHub, EventSink, LogNotifier, Notifier
from .protocol import capability_probe, decode_message, encode_message, version_probe
from .query import AnalysisParams, Query, QueryBuilder
from .reconciler import QueryReconciler, ReconcilerState
from .traffic import TrafficLogger
from .transport import OutboundQueue, Transport, TransportFactory, TransportListener, WebSocketTransport
from .version import EngineVersion, VersionNegotiator


STATUS_MESSAGES = {
    "GUI_ENGINE_NOT_SET": "Engine not set.",
    "GUI_ENGINE_CONFIG_NOT_SET": "Engine config not set.",
    "GUI_WEIGHTS_NOT_SET": "Weights not set.",
}


def default_translate(key: str) -> str:
    return STATUS_MESSAGES.get(key, key)


class EngineSession(TransportListener):
    """
    Connection manager, send primitive and shutdown for one engine proxy.

    Collaborators are injected; every one has a headless default.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        notifier: Optional[Notifier] = None,
        event_sink: Optional[EventSink] = None,
        transport_factory: Optional[TransportFactory] = None,
        traffic: Optional[TrafficLogger] = None,
        query_builder: Optional[QueryBuilder] = None,
        file_exists: Callable[[str], bool] = path_exists,
        translate: Callable[[str], str] = default_translate,
        format_path: Callable[[str], str] = basename,
    ):
        self.config = config or EngineConfig.from_env()
        self._notifier = notifier or LogNotifier()
        self._event_sink = event_sink or EventHub()
        self._transport_factory = transport_factory or WebSocketTransport
        self._traffic = traffic or TrafficLogger(enabled=self.config.log_traffic)
        self._query_builder = query_builder or QueryBuilder.from_config(self.config)
        self._file_exists = file_exists
        self._translate = translate
        self._format_path = format_path

        self.proxy_url = self.config.proxy_url
        self.engine_path = ""
        self.engine_config = ""
        self.weights = ""

        self.connected = False
        self.has_quit = False

        self._transport: Optional[Transport] = None
        self._queue = OutboundQueue()
        self._negotiator = VersionNegotiator(self._notifier)
        self._reconciler = QueryReconciler(self.send)
        self._shutdown_callbacks: List[Callable[[], None]] = []

    # =========================================================================
    # State
    # =========================================================================

    @property
    def version(self) -> EngineVersion:
        return self._negotiator.version

    @property
    def received_version(self) -> bool:
        return self._negotiator.received_version

    @property
    def bs29_support(self) -> Optional[bool]:
        return self._negotiator.bs29_support

    @property
    def desired(self) -> Optional[Query]:
        return self._reconciler.desired

    @property
    def running(self) -> Optional[Query]:
        return self._reconciler.running

    @property
    def state(self) -> ReconcilerState:
        return self._reconciler.state

    @property
    def pending_count(self) -> int:
        """Messages waiting for the connection to open."""
        return len(self._queue)

    def problem_text(self) -> str:
        """Why the engine is not usable, or "" when connected."""
        if self.connected:
            return ""
        if not self.engine_path:
            return self._translate("GUI_ENGINE_NOT_SET")
        if not self.engine_config:
            return self._translate("GUI_ENGINE_CONFIG_NOT_SET")
        if not self.weights:
            return self._translate("GUI_WEIGHTS_NOT_SET")
        return f"Engine ({self._format_path(self.engine_path)}) not running."

    def add_shutdown_callback(self, callback: Callable[[], None]) -> None:
        """Register a callable run once when the session shuts down."""
        self._shutdown_callbacks.append(callback)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def setup(self, engine_path: str, engine_config: str, weights: str) -> bool:
        """
        Validate the engine files and connect to the proxy.

        Returns:
            True if a connection attempt was started

        Raises:
            EngineReuseError: If this session already connected or has quit
        """
        if self._transport is not None or self.has_quit:
            raise EngineReuseError()

        self.engine_path = engine_path if self._file_exists(engine_path) else ""
        self.engine_config = engine_config if self._file_exists(engine_config) else ""
        self.weights = weights if self._file_exists(weights) else ""

        if not self.engine_path or not self.engine_config or not self.weights:
            logger.warning(f"Engine not started: {self.problem_text()}")
            return False

        self._connect()
        return True

    def _connect(self) -> None:
        logger.info("")
        logger.info("-" * 83)
        logger.info(f"KataGo via proxy at {self.proxy_url}")

        try:
            self._transport = self._transport_factory(self.proxy_url, self)
        except Exception as e:
            self._log_and_alert("Could not connect to the engine proxy:", str(e))
            self.shutdown()

    def shutdown(self) -> None:
        """Tear the session down for good. Safe to call more than once."""
        if self.has_quit:
            return
        self.has_quit = True

        transport, self._transport = self._transport, None
        if transport is not None:
            try:
                transport.close()
            except Exception as e:
                logger.debug(f"Ignoring error while closing transport: {e!r}")

        self.connected = False
        self._queue.clear()
        self._reconciler.reset()
        logger.info("Engine session shut down")

        for callback in self._shutdown_callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(f"Shutdown callback failed: {e}")

    # =========================================================================
    # Sending
    # =========================================================================

    def send(self, message: Dict[str, Any]) -> None:
        """
        Send one message, or queue it until the connection opens.

        Raises:
            EngineMisuseError: If message is not a dict
        """
        if not isinstance(message, dict):
            raise EngineMisuseError(f"requires a dict, got {type(message).__name__}", operation="send")

        if self.has_quit:
            return

        if not self.connected:
            self._queue.append(message)
            self._traffic.log_sent(message)
            return

        try:
            self._transport.send(encode_message(message))
        except Exception as e:
            self._log_and_alert("While sending to engine:", str(e))
            self.shutdown()
            return

        self._traffic.log_sent(message)

    # =========================================================================
    # Analysis
    # =========================================================================

    def analyse(
        self,
        params: AnalysisParams,
        max_visits: Optional[int] = None,
        avoid_list: Optional[List[str]] = None,
    ) -> bool:
        """
        Ask for analysis of a position.

        Returns:
            True if the request changed the desired query
        """
        if not self.connected:
            return False

        overrides = {}
        if max_visits is not None:
            overrides["max_visits"] = max_visits
        if avoid_list is not None:
            overrides["avoid_list"] = avoid_list
        if overrides:
            params = dataclasses.replace(params, **overrides)

        query = self._query_builder.build(params, self.version)
        return self._reconciler.request(query)

    def halt(self) -> None:
        """Stop analysing."""
        self._reconciler.cancel()

    # =========================================================================
    # Transport events
    # =========================================================================

    def on_open(self) -> None:
        self.connected = True
        logger.info(f"Connected to engine proxy at {self.proxy_url}")

        for message in self._queue.drain():
            self.send(message)

        self.send(version_probe())
        self.send(capability_probe())

    def on_close(self) -> None:
        if not self.has_quit:
            self._log_and_alert("The engine proxy connection appears to have closed.")
            self.shutdown()

    def on_error(self, error: BaseException) -> None:
        if self.has_quit:
            logger.debug(f"Ignoring transport error after shutdown: {error!r}")
            return
        self._log_and_alert("Got ws error:", str(error) or repr(error))
        self.shutdown()

    def on_message(self, data: str) -> None:
        if self.has_quit:
            return

        message = decode_message(data)
        if message is None:
            self._log_and_alert("Received non-JSON:", data)
            return

        self._traffic.log_received(message)

        if self._negotiator.is_capability_response(message):
            self._negotiator.handle_capability_response(message)
            return

        if message.get("error"):
            self._log_and_alert("Engine said:\n" + format_value(message))
        if message.get("warning"):
            logger.warning(f"Engine warning: {message['warning']}")

        self._negotiator.handle_message(message)
        self._reconciler.handle_message(message)
        # a failed replacement dispatch shuts the session down
        if self.has_quit:
            return

        try:
            self._event_sink.receive_object(message)
        except Exception as e:
            logger.exception(f"Event sink failed on message {message.get('id')!r}: {e}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _log_and_alert(self, *parts: str) -> None:
        logger.error(" ".join(parts))
        self._notifier.alert("\n".join(parts))
