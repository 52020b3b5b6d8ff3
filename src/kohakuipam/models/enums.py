"""
Enumeration types for KohakuIPAM.

This module defines the enumeration types shared by the plugin server,
the allocation engine and the CLI.
"""

from enum import Enum


# =============================================================================
# Configuration Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Logging verbosity levels for KohakuIPAM components.

    Levels (from most to least verbose):
        - FULL: Complete trace with detailed stack information
        - DEBUG: Debug messages and above
        - INFO: Informational messages and above
        - WARNING: Only warnings and errors
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"


# =============================================================================
# Plugin Protocol Enums
# =============================================================================


class AddressSpace(str, Enum):
    """Default address space names reported to Docker."""

    LOCAL = "local"
    GLOBAL = "global"
