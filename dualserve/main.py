"""FastAPI app factory and the dual-listener process entrypoint."""
from __future__ import annotations

import asyncio

from fastapi import FastAPI

from dualserve import __version__
from dualserve.api import router as api_router
from dualserve.config import Config
from dualserve.errors import ConfigError, FatalListenerError
from dualserve.logging_conf import get_logger, setup_logging
from dualserve.service.listeners import Coordinator, ListenerOutcome
from dualserve.service.tls import load_credentials

# Configure logging before anything else.
setup_logging()
logger = get_logger("dualserve")


def create_app() -> FastAPI:
    """Build the routing table shared by both listeners."""
    app = FastAPI(
        title="dualserve diagnostics",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.include_router(api_router)
    return app


async def run(config: Config, *, install_signals: bool = True) -> list[ListenerOutcome]:
    """Serve HTTP and HTTPS until both listeners have closed or faulted."""
    app = create_app()
    credential = load_credentials(config.tls_cert, config.tls_key)
    coordinator = Coordinator.from_config(config, app, credential)
    return await coordinator.run(install_signals=install_signals)


def main() -> None:
    """Console entrypoint.

    Exit status: 0 once both listeners are closed, 1 when the HTTP listener
    faults, 2 on a configuration error.
    """
    try:
        config = Config.from_env()
    except ConfigError as e:
        logger.critical(
            "config.invalid",
            extra={"event": "config_invalid", "code": e.code, "error": str(e)},
        )
        raise SystemExit(2) from e

    logger.info(
        "startup",
        extra={
            "event": "startup",
            "http_port": config.http_port,
            "https_port": config.https_port,
        },
    )
    try:
        outcomes = asyncio.run(run(config))
    except FatalListenerError as e:
        logger.critical(
            "shutdown.fatal",
            extra={
                "event": "shutdown_fatal",
                "listener": e.listener,
                "code": e.code,
                "error": str(e),
            },
        )
        raise SystemExit(1) from e

    logger.info(
        "shutdown",
        extra={"event": "shutdown", "outcomes": {o.name: o.state.value for o in outcomes}},
    )


# ASGI entrypoint for a single plain listener: `uvicorn dualserve.main:app`
app = create_app()


if __name__ == "__main__":
    main()
