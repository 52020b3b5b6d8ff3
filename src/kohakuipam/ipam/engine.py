"""
Address-pool allocation engine.

Implements the four IPAM mutations on top of the guarded state and flushes
the state file after each one:

- create_pool:     register a subnet under a fresh pool id
- delete_pool:     drop a pool and every lease its subnet contains
- request_address: lease a specific address or the lowest free one
- release_address: drop the lease for an address

Lease ownership is never stored. A lease belongs to whichever pool subnet
contains its address, computed when needed (allocation scan, cascade delete,
per-pool listing).

Idempotency:
- Deleting an unknown pool and releasing an unleased address succeed.
- Requesting an address that is already leased replaces the lease, so a
  plugin restarted by Docker can replay its requests safely.

Allocation runs the pool lookup, the free-address scan and the lease insert
inside one exclusive acquisition, so two concurrent requests on the same
pool never receive the same address.
"""

from __future__ import annotations

import ipaddress
import uuid

from kohakuipam.ipam.allocator import first_free_address, usable_host_count
from kohakuipam.ipam.exceptions import NotFoundError, ValidationError
from kohakuipam.ipam.guard import StateGuard
from kohakuipam.ipam.store import StateStore
from kohakuipam.models.state import DEFAULT_HOLDER, Lease, Pool, to_network, utcnow
from kohakuipam.utils.logger import get_logger

logger = get_logger(__name__)


def parse_network(subnet: str) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    """Parse a CIDR string, tolerating host bits."""
    try:
        return to_network(subnet)
    except (ValueError, AttributeError) as e:
        raise ValidationError(f"Invalid subnet format: '{subnet}' ({e})") from e


def parse_address(address: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    """Parse a bare IP address (no prefix)."""
    try:
        return ipaddress.ip_address(address.strip())
    except (ValueError, AttributeError) as e:
        raise ValidationError(f"Invalid IP address format: '{address}' ({e})") from e


def _contains(network, address) -> bool:
    return address.version == network.version and address in network


class AllocationEngine:
    """
    Pool registry and lease table operations.

    The engine owns no module-level state: everything lives in the
    ``StateGuard`` it is given, and every mutation is followed by a save
    through the ``StateStore``.
    """

    POOL_ID_PREFIX = "pool-"

    def __init__(
        self,
        store: StateStore,
        guard: StateGuard,
        default_subnet: str,
        default_subnet_v6: str = "",
    ):
        self.store = store
        self.guard = guard
        self.default_subnet = default_subnet
        self.default_subnet_v6 = default_subnet_v6

    @classmethod
    async def open(
        cls,
        store: StateStore,
        default_subnet: str,
        default_subnet_v6: str = "",
    ) -> AllocationEngine:
        """
        Load persisted state and build an engine around it.

        Raises:
            StateIOError: If the state file exists but is unusable.
        """
        state = await store.load()
        return cls(store, StateGuard(state), default_subnet, default_subnet_v6)

    # =========================================================================
    # Pools
    # =========================================================================

    def _new_pool_id(self, live_ids) -> str:
        while True:
            pool_id = f"{self.POOL_ID_PREFIX}{uuid.uuid4().hex}"
            if pool_id not in live_ids:
                return pool_id

    async def create_pool(
        self, subnet: str | None = None, v6: bool = False
    ) -> tuple[str, str]:
        """
        Register a new address pool.

        Args:
            subnet: CIDR to manage. None uses the configured default
                (the IPv6 default when ``v6`` is set and one is configured).
            v6: Caller asked for an IPv6 pool.

        Returns:
            (pool_id, subnet) where subnet is the CIDR actually used.

        Raises:
            ValidationError: If the subnet does not parse.
            StateIOError: If the state could not be saved.
        """
        if not subnet:
            subnet = (
                self.default_subnet_v6
                if v6 and self.default_subnet_v6
                else self.default_subnet
            )
        parse_network(subnet)
        subnet = subnet.strip()

        async with self.guard.write() as state:
            pool_id = self._new_pool_id(state.pools)
            state.pools[pool_id] = Pool(id=pool_id, subnet=subnet, gateway=None)

        await self.store.save(self.guard)

        logger.info(f"Pool requested: {pool_id} -> {subnet}")
        return pool_id, subnet

    async def delete_pool(self, pool_id: str) -> bool:
        """
        Remove a pool and cascade-delete the leases inside its subnet.

        Unknown ids are accepted silently.

        Returns:
            True if the pool existed.

        Raises:
            StateIOError: If the state could not be saved.
        """
        removed_leases = 0
        async with self.guard.write() as state:
            pool = state.pools.pop(pool_id, None)
            if pool is not None:
                try:
                    network = pool.network
                except ValueError:
                    logger.warning(
                        f"Pool {pool_id} has unparsable subnet '{pool.subnet}', "
                        "skipping lease cleanup"
                    )
                else:
                    for lease in state.leases_in(network):
                        del state.leases[lease.address]
                        removed_leases += 1

        await self.store.save(self.guard)

        if pool is None:
            logger.debug(f"Release of unknown pool ignored: {pool_id}")
            return False

        logger.info(f"Pool released: {pool_id} ({removed_leases} leases removed)")
        return True

    # =========================================================================
    # Addresses
    # =========================================================================

    async def request_address(
        self,
        pool_id: str,
        address: str | None = None,
        holder: str | None = None,
    ) -> str:
        """
        Lease an address from a pool.

        Args:
            pool_id: Pool to allocate from.
            address: Specific bare IP to lease. None picks the lowest free
                usable address of the pool's subnet.
            holder: Consumer name recorded on the lease.

        Returns:
            The leased address with the pool's prefix, e.g. "10.0.0.2/24".

        Raises:
            NotFoundError: If the pool does not exist.
            ValidationError: If the address is malformed or outside the subnet.
            ExhaustionError: If no free address is left.
            StateIOError: If the state could not be saved.
        """
        holder = holder or DEFAULT_HOLDER

        async with self.guard.write() as state:
            pool = state.pools.get(pool_id)
            if pool is None:
                raise NotFoundError(pool_id)

            network = parse_network(pool.subnet)

            if address:
                ip_addr = parse_address(address)
                if not _contains(network, ip_addr):
                    raise ValidationError(
                        f"IP address {ip_addr} is not in subnet {network}"
                    )
            else:
                ip_addr = first_free_address(network, state.leases)

            previous = state.leases.get(ip_addr)
            state.leases[ip_addr] = Lease(
                address=ip_addr, holder=holder, granted_at=utcnow()
            )

        await self.store.save(self.guard)

        address_with_cidr = f"{ip_addr}/{network.prefixlen}"
        if previous is not None and previous.holder != holder:
            logger.info(
                f"Address reassigned: {address_with_cidr} from '{previous.holder}' "
                f"to '{holder}' (pool: {pool_id})"
            )
        else:
            logger.info(
                f"Address allocated: {address_with_cidr} to '{holder}' (pool: {pool_id})"
            )
        return address_with_cidr

    async def release_address(self, pool_id: str, address: str) -> bool:
        """
        Drop the lease for an address.

        Accepts "10.0.0.5" or "10.0.0.5/24". Releasing an address that is
        not leased is not an error.

        Returns:
            True if a lease was removed.

        Raises:
            ValidationError: If the address is malformed.
            StateIOError: If the state could not be saved.
        """
        ip_addr = parse_address(address.split("/", 1)[0])

        async with self.guard.write() as state:
            removed = state.leases.pop(ip_addr, None) is not None

        await self.store.save(self.guard)

        if removed:
            logger.info(f"Address released: {ip_addr} (pool: {pool_id})")
        else:
            logger.warning(f"Address not found for release: {ip_addr}")
        return removed

    # =========================================================================
    # Recovery and queries
    # =========================================================================

    async def reload(self) -> bool:
        """
        Replace the in-memory state with the state file's contents.

        Returns:
            False if there was no file to reload from.

        Raises:
            StateIOError: If the file cannot be read or parsed.
        """
        state = await self.store.reload()
        if state is None:
            return False
        await self.guard.replace(state)
        logger.info(
            f"State reloaded: {len(state.pools)} pools, {len(state.leases)} leases"
        )
        return True

    async def list_pools(self) -> list[Pool]:
        async with self.guard.read() as state:
            return list(state.pools.values())

    async def list_leases(self, pool_id: str | None = None) -> list[Lease]:
        """
        List leases, optionally only those inside one pool's subnet.

        Raises:
            NotFoundError: If ``pool_id`` is given and unknown.
        """
        async with self.guard.read() as state:
            if pool_id is None:
                leases = list(state.leases.values())
            else:
                pool = state.pools.get(pool_id)
                if pool is None:
                    raise NotFoundError(pool_id)
                leases = state.leases_in(parse_network(pool.subnet))
        return sorted(leases, key=lambda lease: (lease.address.version, lease.address))

    async def get_stats(self) -> dict:
        """Pool and lease counts with per-pool usage."""
        async with self.guard.read() as state:
            pools = []
            for pool in state.pools.values():
                try:
                    network = pool.network
                except ValueError:
                    continue
                pools.append(
                    {
                        "pool_id": pool.id,
                        "subnet": pool.subnet,
                        "leased": len(state.leases_in(network)),
                        "capacity": usable_host_count(network),
                    }
                )
            return {
                "total_pools": len(state.pools),
                "total_leases": len(state.leases),
                "pools": pools,
            }
