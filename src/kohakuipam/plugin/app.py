"""
KohakuIPAM Plugin FastAPI Application.

This module provides the main entry point for the IPAM plugin server, which
Docker talks to over a Unix socket.

Responsibilities:
    - Plugin activation and IpamDriver protocol endpoints
    - Loading persisted allocation state on startup
    - Translating IPAM errors into Docker's {"Err": ...} responses
    - Operator endpoints under /admin
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from kohakuipam import __version__
from kohakuipam.ipam.engine import AllocationEngine
from kohakuipam.ipam.exceptions import IPAMError
from kohakuipam.ipam.store import StateStore
from kohakuipam.models.enums import LogLevel
from kohakuipam.models.requests import ErrorResponse
from kohakuipam.plugin.config import config
from kohakuipam.plugin.dependencies import InvalidRequestBody
from kohakuipam.plugin.endpoints import admin, ipam
from kohakuipam.utils.logger import configure_logging, format_traceback, get_logger

logger = get_logger(__name__)


# =============================================================================
# Lifecycle Events
# =============================================================================


async def startup_event(app: FastAPI):
    """Load persisted state and attach the allocation engine."""
    logger.info("Starting Docker IPAM Plugin")
    logger.info(f"State file: {config.STATE_FILE}")
    logger.info(f"Default subnet: {config.DEFAULT_SUBNET}")

    # A state file that exists but cannot be parsed is fatal: serving with
    # unknown state could hand out addresses that are already in use
    engine = await AllocationEngine.open(
        StateStore(config.STATE_FILE),
        default_subnet=config.DEFAULT_SUBNET,
        default_subnet_v6=config.DEFAULT_SUBNET_V6,
    )
    app.state.engine = engine
    logger.info("IPAM plugin initialized")


async def shutdown_event(app: FastAPI):
    """Flush state one last time."""
    engine = getattr(app.state, "engine", None)
    if engine is None:
        return
    try:
        await engine.store.save(engine.guard)
    except IPAMError as e:
        logger.error(f"Final state save failed: {e}")
        logger.debug(format_traceback(e))
    logger.info("IPAM plugin shut down complete")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup_event(app)
    yield
    await shutdown_event(app)


# =============================================================================
# Application Setup
# =============================================================================

app = FastAPI(
    title="KohakuIPAM",
    description="Docker IPAM plugin with persistent address pools",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(ipam.router, tags=["IpamDriver"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])


# =============================================================================
# Error Handling
# =============================================================================


def _error_response(message: str) -> JSONResponse:
    logger.error(f"Request failed: {message}")
    return JSONResponse(
        status_code=200,
        content=ErrorResponse(err=message).model_dump(by_alias=True),
    )


@app.exception_handler(IPAMError)
async def ipam_error_handler(request: Request, exc: IPAMError):
    return _error_response(str(exc))


@app.exception_handler(InvalidRequestBody)
async def invalid_body_handler(request: Request, exc: InvalidRequestBody):
    return _error_response(str(exc))


# =============================================================================
# Server Entry Points
# =============================================================================


def run():
    """Run the plugin server using uvicorn."""
    import uvicorn

    # Configure logging before starting uvicorn
    configure_logging(config.LOG_LEVEL, config.LOG_FILE)

    uvicorn_level_map = {
        LogLevel.FULL: "debug",
        LogLevel.DEBUG: "debug",
        LogLevel.INFO: "info",
        LogLevel.WARNING: "warning",
    }
    uvicorn_level = uvicorn_level_map.get(config.LOG_LEVEL, "info")

    if config.TCP_ADDR:
        host, port = config.get_tcp_bind()
        logger.warning("Running in TCP mode (for testing only)")
        logger.info(f"IPAM plugin listening on http://{host}:{port}")
        uvicorn.run(
            app,
            host=host,
            port=port,
            log_level=uvicorn_level,
            log_config=None,  # Keep loguru in charge of formatting
        )
        return

    socket_dir = os.path.dirname(config.SOCKET_PATH)
    if socket_dir:
        os.makedirs(socket_dir, exist_ok=True)

    # uvicorn removes a stale socket file and sets 0o666 on the new one
    logger.info(f"IPAM plugin listening on {config.SOCKET_PATH}")
    uvicorn.run(
        app,
        uds=config.SOCKET_PATH,
        log_level=uvicorn_level,
        log_config=None,
    )


def main():
    """Entry point for the plugin server (environment-configured)."""
    config.load_from_env()
    run()


if __name__ == "__main__":
    main()
