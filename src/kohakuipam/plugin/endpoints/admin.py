"""
Operator endpoints.

Read-only views of the pool registry and lease table, plus an out-of-band
reload of the state file. Used by the ``kohakuipam`` CLI.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from kohakuipam.ipam.engine import AllocationEngine
from kohakuipam.plugin.dependencies import get_engine
from kohakuipam.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/pools")
async def list_pools(engine: Annotated[AllocationEngine, Depends(get_engine)]):
    """List all pools."""
    pools = await engine.list_pools()
    return {
        "pools": [
            {"pool_id": p.id, "subnet": p.subnet, "gateway": p.gateway} for p in pools
        ]
    }


@router.get("/leases")
async def list_leases(
    engine: Annotated[AllocationEngine, Depends(get_engine)],
    pool_id: str | None = Query(None, description="Only leases inside this pool"),
):
    """List leases, optionally filtered by pool."""
    leases = await engine.list_leases(pool_id)
    return {
        "leases": [
            {
                "address": str(lease.address),
                "holder": lease.holder,
                "granted_at": lease.granted_at.isoformat(),
            }
            for lease in leases
        ]
    }


@router.get("/stats")
async def get_stats(engine: Annotated[AllocationEngine, Depends(get_engine)]):
    return await engine.get_stats()


@router.post("/reload")
async def reload_state(engine: Annotated[AllocationEngine, Depends(get_engine)]):
    """
    Replace in-memory state with the state file's contents.

    Intended for recovery after the file was restored or edited by hand.
    """
    reloaded = await engine.reload()
    logger.info(f"Admin reload requested (reloaded={reloaded})")
    return {"reloaded": reloaded}
