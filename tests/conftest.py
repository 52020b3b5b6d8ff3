"""Pytest configuration and shared fixtures."""

import pytest

from kohakuipam.ipam import AllocationEngine, StateStore


@pytest.fixture
def state_file(tmp_path):
    """State file path inside a directory that does not exist yet."""
    return tmp_path / "docker-ipam" / "state.yaml"


@pytest.fixture
def open_engine(state_file):
    """
    Factory opening an engine on ``state_file``.

    Must be awaited inside the test's event loop; calling it again simulates
    a plugin restart on the same file.
    """

    async def _open(default_subnet="172.18.0.0/16", default_subnet_v6="fd00:18::/64"):
        return await AllocationEngine.open(
            StateStore(state_file), default_subnet, default_subnet_v6
        )

    return _open
