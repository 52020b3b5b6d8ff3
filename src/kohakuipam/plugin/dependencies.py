"""
Request-scoped accessors for plugin endpoints.

The app stores the engine in ``app.state`` during startup; endpoints read it
through ``get_engine`` so they never import the app module.
"""

import json

import pydantic
from fastapi import HTTPException, Request

from kohakuipam.ipam.engine import AllocationEngine


class InvalidRequestBody(Exception):
    """Plugin request body is not valid JSON or misses required fields."""

    pass


def get_engine(request: Request) -> AllocationEngine:
    """Get the allocation engine attached to the running app."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="IPAM engine not initialized.")
    return engine


async def parse_body(request: Request, model: type[pydantic.BaseModel]):
    """
    Decode a plugin request body into ``model``.

    Docker posts JSON with a vendor content type, and some calls carry an
    empty body, so the body is decoded by hand instead of by FastAPI.

    Raises:
        InvalidRequestBody: On malformed JSON or schema mismatch.
    """
    body = await request.body()
    try:
        data = json.loads(body) if body.strip() else {}
    except json.JSONDecodeError as e:
        raise InvalidRequestBody(f"Failed to parse JSON: {e}") from e

    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise InvalidRequestBody(f"Failed to parse JSON: {e}") from e
