"""
Pydantic models for the Docker IPAM plugin protocol.

Docker sends and expects PascalCase JSON keys; every model maps them to
snake_case attributes through aliases. Responses are dumped with
``by_alias=True``.

Model Categories:
    - Plugin Handshake: activation and capabilities
    - Pool Requests/Responses: RequestPool, ReleasePool
    - Address Requests/Responses: RequestAddress, ReleaseAddress
    - Error Responses: the {"Err": ...} body Docker reads on failure
"""

from pydantic import BaseModel, ConfigDict, Field

# Option keys Docker (or a user) may use to identify the container,
# checked in this order
HOLDER_OPTION_KEYS = (
    "com.docker.network.endpoint.name",
    "container_name",
    "com.docker.network.container.id",
)


class PluginModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Plugin Handshake
# =============================================================================


class ActivateResponse(PluginModel):
    implements: list[str] = Field(default_factory=lambda: ["IpamDriver"], alias="Implements")


class CapabilitiesResponse(PluginModel):
    requires_mac_address: bool = Field(default=False, alias="RequiresMACAddress")
    requires_request_replay: bool = Field(default=False, alias="RequiresRequestReplay")


class AddressSpacesResponse(PluginModel):
    local_default_address_space: str = Field(..., alias="LocalDefaultAddressSpace")
    global_default_address_space: str = Field(..., alias="GlobalDefaultAddressSpace")


# =============================================================================
# Pool Requests/Responses
# =============================================================================


class RequestPoolRequest(PluginModel):
    """
    Body of /IpamDriver.RequestPool.

    ``SubPool`` and ``Options`` are accepted for protocol compatibility but
    do not influence allocation.
    """

    address_space: str | None = Field(default=None, alias="AddressSpace")
    pool: str | None = Field(default=None, alias="Pool")
    sub_pool: str | None = Field(default=None, alias="SubPool")
    options: dict[str, str] | None = Field(default=None, alias="Options")
    v6: bool = Field(default=False, alias="V6")


class RequestPoolResponse(PluginModel):
    pool_id: str = Field(..., alias="PoolID")
    pool: str = Field(..., alias="Pool")
    data: dict[str, str] = Field(default_factory=dict, alias="Data")


class ReleasePoolRequest(PluginModel):
    pool_id: str = Field(..., alias="PoolID")


# =============================================================================
# Address Requests/Responses
# =============================================================================


class RequestAddressRequest(PluginModel):
    pool_id: str = Field(..., alias="PoolID")
    address: str | None = Field(default=None, alias="Address")
    options: dict[str, str] | None = Field(default=None, alias="Options")

    def holder(self) -> str | None:
        """Container identity from the request options, if any."""
        if not self.options:
            return None
        for key in HOLDER_OPTION_KEYS:
            value = self.options.get(key)
            if value:
                return value
        return None


class RequestAddressResponse(PluginModel):
    address: str = Field(..., alias="Address")
    data: dict[str, str] = Field(default_factory=dict, alias="Data")


class ReleaseAddressRequest(PluginModel):
    pool_id: str = Field(..., alias="PoolID")
    address: str = Field(..., alias="Address")


# =============================================================================
# Error Responses
# =============================================================================


class ErrorResponse(PluginModel):
    err: str = Field(..., alias="Err")
