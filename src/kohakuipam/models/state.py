"""
Persisted IPAM state models.

The state document has two sections: ``pools`` maps a pool id to its pool
record, ``leases`` lists the granted addresses. Entry key names
(``pool_id``, ``ip_address``, ``container_name``, ``lease_time``) are the
on-disk format written by earlier releases; attributes use the in-memory
names.

In memory the lease list is kept as a dict keyed by address, so there is
never more than one lease per address.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address

# Holder recorded when the caller does not identify the consumer
DEFAULT_HOLDER = "unknown"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_network(subnet: str) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    """Parse a CIDR string, tolerating surrounding whitespace and host bits."""
    return ipaddress.ip_network(subnet.strip(), strict=False)


class Pool(BaseModel):
    """An administrator-created address block."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., alias="pool_id")
    subnet: str
    gateway: str | None = None

    @property
    def network(self) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
        """Parsed subnet (host bits tolerated)."""
        return to_network(self.subnet)


class Lease(BaseModel):
    """A binding of one address to one holder."""

    model_config = ConfigDict(populate_by_name=True)

    address: IPAddress = Field(..., alias="ip_address")
    holder: str = Field(default=DEFAULT_HOLDER, alias="container_name")
    granted_at: datetime = Field(default_factory=utcnow, alias="lease_time")


@dataclass
class IpamState:
    """The full allocation state: pool registry plus lease table."""

    pools: dict[str, Pool] = field(default_factory=dict)
    leases: dict[IPAddress, Lease] = field(default_factory=dict)

    @classmethod
    def from_document(cls, data: dict[str, Any] | None) -> IpamState:
        """
        Build state from a parsed document.

        A duplicated lease address keeps the last entry, so the result always
        has one lease per address.

        Raises:
            pydantic.ValidationError: If an entry is malformed.
            TypeError: If a section has the wrong shape or a pool is filed
                under a key other than its own id.
        """
        data = data or {}
        if not isinstance(data, dict):
            raise TypeError(f"State document must be a mapping, got {type(data).__name__}")

        raw_pools = data.get("pools") or {}
        raw_leases = data.get("leases") or []
        if not isinstance(raw_pools, dict):
            raise TypeError("'pools' must be a mapping of pool id to pool")
        if not isinstance(raw_leases, list):
            raise TypeError("'leases' must be a list")

        pools = {}
        for key, raw in raw_pools.items():
            pool = Pool.model_validate(raw)
            if str(key) != pool.id:
                raise TypeError(
                    f"Pool entry '{key}' carries a different pool_id '{pool.id}'"
                )
            pools[pool.id] = pool

        leases = {}
        for raw in raw_leases:
            lease = Lease.model_validate(raw)
            leases[lease.address] = lease

        return cls(pools=pools, leases=leases)

    def to_document(self) -> dict[str, Any]:
        """Serialize to plain data using the on-disk key names."""
        return {
            "pools": {
                pool_id: pool.model_dump(mode="json", by_alias=True)
                for pool_id, pool in self.pools.items()
            },
            "leases": [
                lease.model_dump(mode="json", by_alias=True)
                for lease in self.leases.values()
            ],
        }

    def leases_in(
        self, network: ipaddress.IPv4Network | ipaddress.IPv6Network
    ) -> list[Lease]:
        """Leases whose address is contained in ``network``."""
        return [
            lease
            for lease in self.leases.values()
            if lease.address.version == network.version and lease.address in network
        ]
