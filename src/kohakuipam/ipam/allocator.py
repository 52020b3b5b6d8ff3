"""
First-fit address selection.

Host enumeration rules:
- The network base address is never handed out.
- For IPv4 the broadcast address is never handed out either.
- IPv6 has no broadcast, so the last address of the block is usable.

Consequently an IPv4 /31 or /32 and an IPv6 /128 have no usable address.

Enumeration is lazy and stops at the first gap, so picking an address costs
time proportional to the number of leading leased addresses, not to the
size of the subnet.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable, Iterator

from kohakuipam.ipam.exceptions import ExhaustionError

Network = ipaddress.IPv4Network | ipaddress.IPv6Network
Address = ipaddress.IPv4Address | ipaddress.IPv6Address


def iter_usable_hosts(network: Network) -> Iterator[Address]:
    """Yield usable host addresses of ``network`` in ascending order."""
    first = int(network.network_address) + 1
    last = int(network.broadcast_address)
    if network.version == 4:
        last -= 1

    address_cls = type(network.network_address)
    for value in range(first, last + 1):
        yield address_cls(value)


def usable_host_count(network: Network) -> int:
    """Number of addresses ``iter_usable_hosts`` would yield."""
    reserved = 2 if network.version == 4 else 1
    return max(network.num_addresses - reserved, 0)


def first_free_address(network: Network, allocated: Iterable[Address]) -> Address:
    """
    Pick the lowest usable address of ``network`` that is not allocated.

    Args:
        network: Subnet to allocate from.
        allocated: Addresses already in use. Addresses outside ``network``
            are ignored.

    Returns:
        The chosen address.

    Raises:
        ExhaustionError: If every usable address is taken.
    """
    taken = {
        addr
        for addr in allocated
        if addr.version == network.version and addr in network
    }

    for candidate in iter_usable_hosts(network):
        if candidate not in taken:
            return candidate

    raise ExhaustionError(str(network))
