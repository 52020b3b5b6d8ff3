"""
CLI configuration.

Module-level settings read by the CLI commands. Defaults come from the
environment; the global options on the root command override them.
"""

import os

# Where the running plugin listens
SOCKET_PATH: str = os.environ.get("SOCKET_PATH", "/run/docker/plugins/ipam.sock")
TCP_ADDR: str = os.environ.get("TCP_ADDR", "")

# Request timeout in seconds
TIMEOUT: float = 10.0

# Output format: table|json|yaml
OUTPUT_FORMAT: str = "table"
