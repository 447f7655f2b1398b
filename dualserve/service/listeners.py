"""Plain and TLS listeners and the coordinator that runs them side by side.

Each Listener owns one uvicorn.Server bound to a socket we create ourselves,
so a bind failure surfaces as a ListenerStartError instead of uvicorn's
sys.exit(). Both listeners serve the same ASGI app on one event loop.
"""
from __future__ import annotations

import asyncio
import contextlib
import signal
import socket
from collections.abc import Generator
from dataclasses import dataclass

import uvicorn
from fastapi import FastAPI

from ..config import Config
from ..domain.status import ListenerState
from ..errors import (
    DualServeError,
    FatalListenerError,
    ListenerError,
    ListenerStartError,
    MissingCredentialError,
)
from ..logging_conf import get_logger
from .tls import TlsCredential

__all__ = [
    "Listener",
    "ListenerOutcome",
    "Coordinator",
]

logger = get_logger("service.listeners")

_POLL_S = 0.02


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to the Coordinator."""

    @contextlib.contextmanager
    def capture_signals(self) -> Generator[None, None, None]:
        yield


@dataclass(frozen=True)
class ListenerOutcome:
    """Terminal state of one listener after the coordinator join."""

    name: str
    state: ListenerState
    error: BaseException | None = None


class Listener:
    """One bound endpoint serving the shared app, optionally over TLS."""

    def __init__(
        self,
        name: str,
        app: FastAPI,
        *,
        host: str,
        port: int,
        tls: bool = False,
        credential: TlsCredential | None = None,
        fatal: bool = False,
    ) -> None:
        self.name = name
        self.app = app
        self.host = host
        self.port = port
        self.tls = tls
        self.credential = credential
        self.fatal = fatal
        self._state = ListenerState.constructed
        self._error: BaseException | None = None
        self._server: _Server | None = None
        self._closing = False

    def __repr__(self) -> str:
        return f"<Listener {self.name} {self.address} state={self._state.value}>"

    @property
    def address(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        return self._error

    def _uvicorn_config(self) -> uvicorn.Config:
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            lifespan="off",
            log_config=None,
            # The root handler reports the direct peer; never rewrite it.
            proxy_headers=False,
        )
        config.load()
        config.ssl = self.credential.context if self.credential else None
        return config

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        try:
            sock = socket.create_server((self.host, self.port), family=family)
        except OSError as e:
            raise ListenerStartError(
                f"{self.name} listener cannot bind {self.address}: {e}",
                listener=self.name,
                address=self.address,
            ) from e
        self.port = sock.getsockname()[1]
        return sock

    async def serve(self) -> None:
        """Serve until closed; raise the cause if the listener faults.

        Returns normally after close(). Any other exit is recorded as a
        fault and re-raised. A TLS listener without a credential faults
        here, before binding.
        """
        if self._state is not ListenerState.constructed:
            raise RuntimeError(f"{self.name} listener was already started")
        if self._closing:
            self._state = ListenerState.closed
            return

        sock: socket.socket | None = None
        try:
            if self.tls and self.credential is None:
                raise MissingCredentialError(
                    f"{self.name} listener has no TLS credential",
                    listener=self.name,
                    address=self.address,
                )
            sock = self._bind()
            self._server = _Server(self._uvicorn_config())
            self._state = ListenerState.serving
            await self._server.serve(sockets=[sock])
        except asyncio.CancelledError:
            self._state = ListenerState.closed
            raise
        except Exception as e:
            self._state = ListenerState.faulted
            self._error = e
            raise
        finally:
            self._close_servers()
            if sock is not None:
                sock.close()

        self._state = ListenerState.closed

    def close(self) -> None:
        """Graceful close: finish in-flight requests, then stop serving."""
        self._closing = True
        if self._server is not None:
            self._server.should_exit = True

    async def wait_serving(self, timeout: float = 5.0) -> bool:
        """Wait until the listener accepts connections.

        Returns False if it reaches a terminal state first.
        """
        async with asyncio.timeout(timeout):
            while not (self._server is not None and self._server.started):
                if self._state.terminal:
                    return False
                await asyncio.sleep(_POLL_S)
        return True

    def _close_servers(self) -> None:
        # uvicorn skips its shutdown when should_exit is set before startup
        # completes, and never reaches it when cancelled.
        if self._server is None:
            return
        for server in getattr(self._server, "servers", []):
            server.close()


class Coordinator:
    """Runs the plain and the TLS listener and joins on both.

    A fault on a listener marked fatal ends the join at once with
    FatalListenerError; faults on other listeners are only logged.
    """

    def __init__(self, http: Listener, https: Listener) -> None:
        self.http = http
        self.https = https

    @classmethod
    def from_config(
        cls, config: Config, app: FastAPI, credential: TlsCredential | None
    ) -> Coordinator:
        http = Listener("http", app, host=config.host, port=config.http_port, fatal=True)
        https = Listener(
            "https",
            app,
            host=config.host,
            port=config.https_port,
            tls=True,
            credential=credential,
            fatal=False,
        )
        return cls(http, https)

    @property
    def listeners(self) -> tuple[Listener, Listener]:
        return (self.http, self.https)

    def close(self) -> None:
        """Gracefully close both listeners."""
        logger.info("coordinator.close", extra={"event": "coordinator_close"})
        for listener in self.listeners:
            listener.close()

    async def run(self, *, install_signals: bool = True) -> list[ListenerOutcome]:
        """Start both listeners and wait until both are closed or faulted.

        Raises:
            FatalListenerError: a fatal listener faulted; the other listener
                is cancelled without waiting for it.
        """
        loop = asyncio.get_running_loop()
        installed = self._install_signal_handlers(loop) if install_signals else []

        tasks = [
            asyncio.create_task(self._run_listener(lst), name=f"listener-{lst.name}")
            for lst in self.listeners
        ]
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in done:
                exc = task.exception()
                if exc is not None:
                    for other in pending:
                        other.cancel()
                    await asyncio.gather(*pending, return_exceptions=True)
                    raise exc
            return [task.result() for task in tasks]
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

    async def _run_listener(self, listener: Listener) -> ListenerOutcome:
        logger.info(
            "listener.start",
            extra={
                "event": "listener_start",
                "listener": listener.name,
                "address": listener.address,
                "tls": listener.tls,
            },
        )
        try:
            await listener.serve()
        except Exception as e:
            fields = {
                "listener": listener.name,
                "address": listener.address,
                "error": f"{type(e).__name__}: {e}",
                "code": e.code if isinstance(e, DualServeError) else ListenerError.code,
            }
            if listener.fatal:
                logger.critical(
                    "listener.fatal", exc_info=e, extra={"event": "listener_fatal", **fields}
                )
                raise FatalListenerError(
                    f"{listener.name} listener failed: {e}",
                    listener=listener.name,
                    address=listener.address,
                ) from e
            logger.error("listener.faulted", exc_info=e, extra={"event": "listener_faulted", **fields})
            return ListenerOutcome(listener.name, ListenerState.faulted, e)

        logger.info(
            "listener.closed",
            extra={"event": "listener_closed", "listener": listener.name, "address": listener.address},
        )
        return ListenerOutcome(listener.name, ListenerState.closed)

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> list[int]:
        installed: list[int] = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.close)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                # Windows loops and non-main threads cannot take handlers.
                logger.warning(
                    "coordinator.no_signal_handler",
                    extra={"event": "no_signal_handler", "signal": sig.name, "error": str(e)},
                )
                continue
            installed.append(sig)
        return installed
