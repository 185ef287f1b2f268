"""
Engine Transport

Duplex connection to the engine proxy. The session sees four events
(open, close, error, message) through the TransportListener interface and
sends text frames through Transport.send().
"""

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterator, Optional

import aiohttp
from loguru import logger


_CLOSING_TYPES = (
    aiohttp.WSMsgType.CLOSE,
    aiohttp.WSMsgType.CLOSING,
    aiohttp.WSMsgType.CLOSED,
)


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class TransportListener(ABC):
    """Receives connection events. Callbacks must not block."""

    @abstractmethod
    def on_open(self) -> None:
        pass

    @abstractmethod
    def on_close(self) -> None:
        pass

    @abstractmethod
    def on_error(self, error: BaseException) -> None:
        pass

    @abstractmethod
    def on_message(self, data: str) -> None:
        pass


class Transport(ABC):
    """Connection handle returned by a transport factory."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def send(self, text: str) -> None:
        """
        Queue one text frame for transmission.

        Raises:
            ConnectionError: If the connection is not open
        """

    @abstractmethod
    def close(self) -> None:
        """Close the connection. Safe to call more than once."""


TransportFactory = Callable[[str, TransportListener], Transport]


class OutboundQueue:
    """FIFO of messages produced before the connection opened."""

    def __init__(self):
        self._items: Deque[Dict[str, Any]] = deque()

    def append(self, message: Dict[str, Any]) -> None:
        self._items.append(message)

    def drain(self) -> Iterator[Dict[str, Any]]:
        """Yield and remove messages oldest first."""
        while self._items:
            yield self._items.popleft()

    def clear(self) -> None:
        self._items.clear()

    def snapshot(self) -> list:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class WebSocketTransport(Transport):
    """
    aiohttp websocket client.

    Must be created from inside a running event loop; the connection runs
    in its own task and a single writer task keeps outgoing frames in order.
    """

    def __init__(
        self,
        url: str,
        listener: TransportListener,
        heartbeat: Optional[float] = None,
        connect_timeout: float = 10.0,
    ):
        self.url = url
        self.heartbeat = heartbeat
        self.connect_timeout = connect_timeout
        self._listener = listener
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None
        self._closed = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    @property
    def is_open(self) -> bool:
        return not self._closed and self._ws is not None and not self._ws.closed

    @property
    def task(self) -> asyncio.Task:
        return self._task

    def send(self, text: str) -> None:
        if not self.is_open:
            raise ConnectionError(f"websocket to {self.url} is not open")
        self._outbox.put_nowait(text)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # From inside a listener callback the receive loop sees _closed and exits
        if not self._task.done() and _current_task() is not self._task:
            self._task.cancel()

    async def _run(self) -> None:
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self.connect_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            try:
                self._ws = await session.ws_connect(self.url, heartbeat=self.heartbeat)
            except Exception as e:
                logger.debug(f"Connect to {self.url} failed: {e!r}")
                self._report_error(e)
                return

            self._writer = asyncio.create_task(self._write_loop())
            failed = False
            try:
                self._listener.on_open()
                while not self._closed:
                    msg = await self._ws.receive()
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        self._listener.on_message(msg.data)
                    elif msg.type == aiohttp.WSMsgType.BINARY:
                        self._listener.on_message(msg.data.decode("utf-8", errors="replace"))
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        failed = True
                        self._report_error(self._ws.exception() or ConnectionError("websocket error"))
                        break
                    elif msg.type in _CLOSING_TYPES:
                        break
            except Exception as e:
                # raised by a listener callback
                failed = True
                logger.exception(f"Listener failed on {self.url}: {e!r}")
                self._report_error(e)
            finally:
                self._writer.cancel()
                await self._ws.close()

            if not failed and not self._closed:
                self._listener.on_close()

    async def _write_loop(self) -> None:
        while True:
            text = await self._outbox.get()
            try:
                await self._ws.send_str(text)
            except Exception as e:
                logger.debug(f"Write to {self.url} failed: {e!r}")
                self._report_error(e)
                return

    def _report_error(self, error: BaseException) -> None:
        try:
            self._listener.on_error(error)
        except Exception as e:
            logger.exception(f"Error handler failed on {self.url}: {e!r}")
