"""Server-sent event streams and the hub that broadcasts to them.

Each ``GET /sse`` connection becomes a :class:`StreamClient` registered in
the :class:`StreamHub`.  Broadcasting writes one ``data:`` frame to every
client; a client whose write fails is dropped.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import BinaryIO

logger = logging.getLogger(__name__)

SSE_CONNECTED = b": connected\n\n"
SSE_KEEPALIVE = b": keepalive\n\n"


def format_event(payload: str) -> bytes:
    """Frame *payload* as a single SSE ``data`` event."""
    return f"data: {payload}\n\n".encode()


class StreamClient:
    """One open event stream.  Writes to the sink are serialized."""

    def __init__(self, sink: BinaryIO, client_id: str | None = None) -> None:
        self.id = client_id or uuid.uuid4().hex
        self._sink = sink
        self._write_lock = threading.Lock()
        self._closed = threading.Event()

    @property
    def is_open(self) -> bool:
        return not self._closed.is_set()

    def write(self, frame: bytes) -> bool:
        """Write and flush *frame*; ``False`` if the client is already closed.

        Raises ``OSError`` if the peer is gone.
        """
        with self._write_lock:
            if self._closed.is_set():
                return False
            self._sink.write(frame)
            self._sink.flush()
            return True

    def close(self) -> None:
        self._closed.set()

    def wait_closed(self, timeout: float) -> bool:
        return self._closed.wait(timeout)


class StreamHub:
    """Registry of open stream clients keyed by id."""

    def __init__(self) -> None:
        self._clients: dict[str, StreamClient] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def add(self, client: StreamClient) -> None:
        with self._lock:
            self._clients[client.id] = client
        logger.debug("SSE client connected: %s", client.id)

    def remove(self, client_id: str) -> None:
        with self._lock:
            client = self._clients.pop(client_id, None)
        if client is not None:
            client.close()
            logger.debug("SSE client disconnected: %s", client_id)

    def send(self, client: StreamClient, frame: bytes) -> bool:
        """Write *frame* to one client, dropping it on failure."""
        try:
            delivered = client.write(frame)
        except (OSError, ValueError) as exc:
            logger.debug("Dropping SSE client %s: %s", client.id, exc)
            delivered = False
        if not delivered:
            self.remove(client.id)
        return delivered

    def broadcast(self, payload: str) -> int:
        """Send *payload* to every client; return how many received it."""
        with self._lock:
            clients = list(self._clients.values())
        if not clients:
            return 0
        frame = format_event(payload)
        return sum(1 for client in clients if self.send(client, frame))

    def close_all(self) -> None:
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            client.close()
