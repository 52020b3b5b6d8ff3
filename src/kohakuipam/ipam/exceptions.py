"""IPAM exception classes."""


class IPAMError(Exception):
    """Base exception for IPAM operations."""

    pass


class ValidationError(IPAMError):
    """Malformed CIDR/IP input, or an address outside the target subnet."""

    pass


class NotFoundError(IPAMError):
    """Pool not found."""

    def __init__(self, pool_id: str):
        self.pool_id = pool_id
        super().__init__(f"Pool not found: {pool_id}")


class ExhaustionError(IPAMError):
    """No free address left in a subnet."""

    def __init__(self, subnet: str):
        self.subnet = subnet
        super().__init__(f"No available IP addresses in subnet {subnet}")


class StateIOError(IPAMError):
    """State file could not be read, parsed or written."""

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(f"{message}: {path}")
