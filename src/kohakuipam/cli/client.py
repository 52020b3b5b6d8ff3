"""
API client for CLI commands.

Talks to the admin endpoints of a running plugin, over its Unix socket or
over TCP when TCP_ADDR is set. Returns structured data instead of printing.
"""

import httpx

from kohakuipam.cli import config as cli_config
from kohakuipam.utils.logger import get_logger

logger = get_logger(__name__)


class APIError(Exception):
    """API request error with status code and detail."""

    def __init__(
        self, message: str, status_code: int | None = None, detail: str | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


def _get_client() -> httpx.Client:
    """Build an HTTP client for the configured plugin endpoint."""
    if cli_config.TCP_ADDR:
        return httpx.Client(
            base_url=f"http://{cli_config.TCP_ADDR}", timeout=cli_config.TIMEOUT
        )
    transport = httpx.HTTPTransport(uds=cli_config.SOCKET_PATH)
    # Host part is ignored on a Unix socket but httpx needs a valid URL
    return httpx.Client(
        transport=transport, base_url="http://ipam", timeout=cli_config.TIMEOUT
    )


def _request(method: str, path: str, **kwargs) -> dict:
    """Send a request and unwrap plugin-style errors."""
    try:
        with _get_client() as client:
            response = client.request(method, path, **kwargs)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.error(f"HTTP {status} on {path}: {e.response.text}")
        raise APIError(f"HTTP {status}: {e.response.text}", status_code=status)
    except httpx.RequestError as e:
        raise APIError(f"Cannot reach IPAM plugin: {e}")

    if isinstance(data, dict) and data.get("Err"):
        raise APIError(data["Err"], detail=data["Err"])
    return data


# =============================================================================
# Admin API
# =============================================================================


def get_pools() -> list[dict]:
    return _request("GET", "/admin/pools")["pools"]


def get_leases(pool_id: str | None = None) -> list[dict]:
    params = {"pool_id": pool_id} if pool_id else None
    return _request("GET", "/admin/leases", params=params)["leases"]


def get_stats() -> dict:
    return _request("GET", "/admin/stats")


def reload_state() -> bool:
    return _request("POST", "/admin/reload")["reloaded"]
