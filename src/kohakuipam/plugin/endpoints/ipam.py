"""
Docker IPAM driver endpoints.

Implements the plugin handshake and the IpamDriver.* calls Docker issues
over the plugin socket. Every route is a POST; failures are reported by the
app's exception handlers as ``{"Err": "..."}``.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from kohakuipam.ipam.engine import AllocationEngine
from kohakuipam.models.enums import AddressSpace
from kohakuipam.models.requests import (
    ActivateResponse,
    AddressSpacesResponse,
    CapabilitiesResponse,
    ReleaseAddressRequest,
    ReleasePoolRequest,
    RequestAddressRequest,
    RequestAddressResponse,
    RequestPoolRequest,
    RequestPoolResponse,
)
from kohakuipam.plugin.dependencies import get_engine, parse_body
from kohakuipam.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# =============================================================================
# Handshake
# =============================================================================


@router.post("/Plugin.Activate")
async def activate():
    """Announce the IpamDriver implementation."""
    return ActivateResponse().model_dump(by_alias=True)


@router.post("/IpamDriver.GetCapabilities")
async def get_capabilities():
    return CapabilitiesResponse().model_dump(by_alias=True)


@router.post("/IpamDriver.GetDefaultAddressSpaces")
async def get_default_address_spaces():
    return AddressSpacesResponse(
        local_default_address_space=AddressSpace.LOCAL.value,
        global_default_address_space=AddressSpace.GLOBAL.value,
    ).model_dump(by_alias=True)


# =============================================================================
# Pools
# =============================================================================


@router.post("/IpamDriver.RequestPool")
async def request_pool(
    request: Request,
    engine: Annotated[AllocationEngine, Depends(get_engine)],
):
    """
    Create a pool for a new Docker network.

    Uses the configured default subnet when the network was created
    without ``--subnet``.
    """
    req = await parse_body(request, RequestPoolRequest)
    pool_id, pool = await engine.create_pool(req.pool, v6=req.v6)
    return RequestPoolResponse(pool_id=pool_id, pool=pool).model_dump(by_alias=True)


@router.post("/IpamDriver.ReleasePool")
async def release_pool(
    request: Request,
    engine: Annotated[AllocationEngine, Depends(get_engine)],
):
    req = await parse_body(request, ReleasePoolRequest)
    await engine.delete_pool(req.pool_id)
    return {}


# =============================================================================
# Addresses
# =============================================================================


@router.post("/IpamDriver.RequestAddress")
async def request_address(
    request: Request,
    engine: Annotated[AllocationEngine, Depends(get_engine)],
):
    """
    Lease an address for an endpoint (or the network gateway).

    The holder is taken from the request options, see
    ``RequestAddressRequest.holder``.
    """
    req = await parse_body(request, RequestAddressRequest)
    address = await engine.request_address(
        req.pool_id, address=req.address, holder=req.holder()
    )
    return RequestAddressResponse(address=address).model_dump(by_alias=True)


@router.post("/IpamDriver.ReleaseAddress")
async def release_address(
    request: Request,
    engine: Annotated[AllocationEngine, Depends(get_engine)],
):
    req = await parse_body(request, ReleaseAddressRequest)
    await engine.release_address(req.pool_id, req.address)
    return {}
