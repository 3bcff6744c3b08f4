"""Websocket broadcaster mirroring the state store to out-of-process observers.

Every connected observer gets a `hello` event with the full store contents,
then one `state_changed` event per store write and one `notification` event
per notification. Observers recompute the displayed time from the pushed
timer anchor, exactly as in-process readers do.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from http import HTTPStatus
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

from websockets.asyncio.server import Server, ServerConnection, broadcast, serve
from websockets.exceptions import ConnectionClosed
from websockets.http11 import Request, Response

from contracts.notifications import Notification
from contracts.observer_protocol import EVENT_HELLO, EVENT_STATE_CHANGED
from storage import Disposer, StateStore

from .config import StateServerConfig
from .events import make_event, make_notification_event


class StateServer:
    """Runs a websocket server on its own event loop thread."""

    def __init__(
        self,
        config: StateServerConfig,
        store: StateStore,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._store = store
        self._logger = logger or logging.getLogger("state_server")
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._server: Optional[Server] = None
        self._shutdown: Optional[asyncio.Future] = None
        self._dispose: Optional[Disposer] = None

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def is_running(self) -> bool:
        return (
            self._server is not None
            and self._thread is not None
            and self._thread.is_alive()
        )

    def start(self, timeout_seconds: float = 5.0) -> None:
        if self.is_running:
            self._logger.warning("State server is already running")
            return

        ready: concurrent.futures.Future[None] = concurrent.futures.Future()
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(ready,),
            daemon=True,
            name="state-server",
        )
        self._thread.start()

        try:
            ready.result(timeout=timeout_seconds)
        except concurrent.futures.TimeoutError as error:
            raise RuntimeError(
                f"State server did not start within {timeout_seconds:.1f}s"
            ) from error
        except OSError as error:
            self._thread.join(timeout=timeout_seconds)
            self._thread = None
            raise RuntimeError(f"State server startup failed: {error}") from error

        self._dispose = self._store.subscribe(self._on_store_change)
        self._logger.info(
            "State server running at ws://%s:%d%s",
            self._config.host,
            self._config.port,
            self._config.websocket_path,
        )

    def stop(self, timeout_seconds: float = 5.0) -> None:
        if self._dispose is not None:
            self._dispose()
            self._dispose = None

        if self._thread is None:
            return

        loop, shutdown = self._loop, self._shutdown
        if loop is not None and shutdown is not None:
            loop.call_soon_threadsafe(shutdown.cancel)

        self._thread.join(timeout=timeout_seconds)
        if self._thread.is_alive():
            self._logger.error(
                "State server thread did not stop within %.1fs",
                timeout_seconds,
            )
        self._thread = None

    def notify(self, notification: Notification) -> None:
        self._send(make_notification_event(notification))

    def publish(self, event_type: str, **payload: Any) -> None:
        self._send(make_event(event_type, **payload))

    def _on_store_change(self, changed: frozenset[str], values: Mapping[str, Any]) -> None:
        self.publish(EVENT_STATE_CHANGED, keys=sorted(changed), values=dict(values))

    def _send(self, message: str) -> None:
        loop = self._loop
        if not self.is_running or loop is None:
            return
        try:
            loop.call_soon_threadsafe(self._broadcast, message)
        except RuntimeError:
            # Loop closed between the check and the call.
            self._logger.debug("Dropped event; state server is shutting down")

    def _broadcast(self, message: str) -> None:
        if self._server is None:
            return
        broadcast(self._server.connections, message)

    def _run_loop(self, ready: concurrent.futures.Future) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        try:
            loop.run_until_complete(self._serve(ready))
        except Exception as error:
            if not ready.done():
                ready.set_exception(error)
            self._logger.error("State server failed: %s", error, exc_info=True)
        finally:
            self._server = None
            self._loop = None
            loop.close()

    async def _serve(self, ready: concurrent.futures.Future) -> None:
        self._shutdown = asyncio.get_running_loop().create_future()
        async with serve(
            self._handler,
            host=self._config.host,
            port=self._config.port,
            process_request=self._process_request,
            logger=self._logger,
        ) as server:
            self._server = server
            ready.set_result(None)
            try:
                await self._shutdown
            except asyncio.CancelledError:
                self._logger.info("State server stopping")

    async def _handler(self, websocket: ServerConnection) -> None:
        self._logger.info("Observer connected: %s", websocket.remote_address)
        try:
            await websocket.send(make_event(EVENT_HELLO, state=self._store.get()))
            async for message in websocket:
                self._logger.debug("Ignoring message from observer: %s", message)
        except ConnectionClosed as error:
            self._logger.debug("Observer connection closed: %s", error)
        finally:
            self._logger.info("Observer disconnected: %s", websocket.remote_address)

    def _process_request(
        self,
        connection: ServerConnection,
        request: Request,
    ) -> Optional[Response]:
        path = urlsplit(request.path).path
        if path == self._config.websocket_path:
            return None
        if path == self._config.healthz_path:
            return connection.respond(HTTPStatus.OK, "ok\n")
        return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")
