"""
Plugin server configuration for KohakuIPAM.

This module defines the configuration dataclass for the plugin server.
Configuration can be modified at runtime by importing the global config
instance and updating its attributes before starting the server.

Usage:
    from kohakuipam.plugin.config import config

    # Modify configuration before starting
    config.STATE_FILE = "/tmp/ipam-state.yaml"
    config.LOG_LEVEL = LogLevel.DEBUG
"""

import os
from dataclasses import dataclass, fields

from kohakuipam.models.enums import LogLevel


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class PluginConfig:
    """
    Plugin server configuration.

    Attributes:
        SOCKET_PATH: Unix socket Docker connects to.
        TCP_ADDR: "host:port" to serve on TCP instead (testing only).
        STATE_FILE: YAML file holding pools and leases.
        DEFAULT_SUBNET: Subnet used when RequestPool names none.
        DEFAULT_SUBNET_V6: Subnet used for V6 pool requests that name none.
        LOG_LEVEL: Logging verbosity level.
        LOG_FILE: Log file path (empty = console only).
    """

    # -------------------------------------------------------------------------
    # Network Configuration
    # -------------------------------------------------------------------------

    SOCKET_PATH: str = "/run/docker/plugins/ipam.sock"
    TCP_ADDR: str = ""

    # -------------------------------------------------------------------------
    # State Configuration
    # -------------------------------------------------------------------------

    STATE_FILE: str = "/var/lib/docker-ipam/state.yaml"

    # -------------------------------------------------------------------------
    # Allocation Configuration
    # -------------------------------------------------------------------------

    DEFAULT_SUBNET: str = "172.18.0.0/16"
    DEFAULT_SUBNET_V6: str = "fd00:18::/64"

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------

    LOG_LEVEL: LogLevel = LogLevel.INFO
    LOG_FILE: str = ""

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def load_from_env(self, environ=None) -> None:
        """
        Override settings from environment variables of the same name.

        Unset or empty variables leave the current value untouched.
        """
        environ = os.environ if environ is None else environ
        for f in fields(self):
            value = environ.get(f.name)
            if not value:
                continue
            if f.name == "LOG_LEVEL":
                setattr(self, f.name, LogLevel(value.lower()))
            else:
                setattr(self, f.name, value)

    def get_tcp_bind(self) -> tuple[str, int]:
        """
        Split TCP_ADDR into host and port.

        Returns:
            (host, port), e.g. ("127.0.0.1", 8080).

        Raises:
            ValueError: If TCP_ADDR is not "host:port".
        """
        host, sep, port = self.TCP_ADDR.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError(f"Invalid TCP_ADDR '{self.TCP_ADDR}', expected host:port")
        return host.strip("[]"), int(port)


# =============================================================================
# Global Instance
# =============================================================================

# Global config instance - modify before server startup
config = PluginConfig()
