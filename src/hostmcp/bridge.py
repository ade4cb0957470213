"""StdioBridge — lets stdio-only MCP clients talk to a running HostServer.

Each line read from stdin is POSTed to ``/message`` and the response body
is written to stdout.  At the same time the bridge follows ``/sse`` and
forwards every ``data:`` payload to stdout, reconnecting when the stream
ends or fails.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TextIO

import httpx

logger = logging.getLogger(__name__)

DEFAULT_RECONNECT_DELAY = 1.0
DEFAULT_RETRY_DELAY = 5.0


class StdioBridge:
    def __init__(
        self,
        base_url: str,
        *,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._reconnect_delay = reconnect_delay
        self._retry_delay = retry_delay
        self._transport = transport
        self._write_lock = asyncio.Lock()

    async def run(self) -> None:
        """Pump stdin until EOF while following the event stream."""
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(None),
            transport=self._transport,
        ) as client:
            stream_task = asyncio.create_task(self._follow_stream(client))
            try:
                await self._pump_stdin(client)
            finally:
                stream_task.cancel()
                await asyncio.gather(stream_task, return_exceptions=True)

    async def _pump_stdin(self, client: httpx.AsyncClient) -> None:
        pending: set[asyncio.Task[None]] = set()
        while True:
            line = await asyncio.to_thread(self._stdin.readline)
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            task = asyncio.create_task(self.forward(client, line))
            pending.add(task)
            task.add_done_callback(pending.discard)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def forward(self, client: httpx.AsyncClient, line: str) -> None:
        """POST one request line and echo a successful response to stdout."""
        try:
            response = await client.post(
                "/message",
                content=line.encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.error("Request failed: %s", exc)
            return
        if response.status_code != 200:
            logger.error("HTTP error: %d %s", response.status_code, response.text)
            return
        await self._emit(response.text)

    async def _follow_stream(self, client: httpx.AsyncClient) -> None:
        while True:
            try:
                async with client.stream("GET", "/sse") as response:
                    async for line in response.aiter_lines():
                        if line.startswith("data: "):
                            await self._emit(line[len("data: ") :])
                delay = self._reconnect_delay
            except httpx.HTTPError as exc:
                logger.debug("SSE connection failed: %s", exc)
                delay = self._retry_delay
            await asyncio.sleep(delay)

    async def _emit(self, text: str) -> None:
        async with self._write_lock:
            self._stdout.write(text + "\n")
            self._stdout.flush()
