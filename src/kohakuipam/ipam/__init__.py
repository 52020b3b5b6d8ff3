"""
Address-pool allocation and lease-lifecycle engine.

Re-exports the main classes:
    from kohakuipam.ipam import AllocationEngine, StateGuard, StateStore
"""

from kohakuipam.ipam.engine import AllocationEngine
from kohakuipam.ipam.exceptions import (
    ExhaustionError,
    IPAMError,
    NotFoundError,
    StateIOError,
    ValidationError,
)
from kohakuipam.ipam.guard import StateGuard
from kohakuipam.ipam.store import StateStore

__all__ = [
    "AllocationEngine",
    "StateGuard",
    "StateStore",
    "IPAMError",
    "ValidationError",
    "NotFoundError",
    "ExhaustionError",
    "StateIOError",
]
