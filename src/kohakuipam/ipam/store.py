"""
YAML persistence for IPAM state.

The whole state is written as one document. Saves go to a sibling temp file
which is then renamed over the real path, so a reader (or a restart after a
crash) sees either the previous complete file or the new complete file.

Blocking file I/O runs in a worker thread; saves are serialized so a later
snapshot can never be overwritten by an earlier one.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pydantic
import yaml

from kohakuipam.ipam.exceptions import StateIOError
from kohakuipam.ipam.guard import StateGuard
from kohakuipam.models.state import IpamState
from kohakuipam.utils.logger import get_logger

logger = get_logger(__name__)


class StateStore:
    """Loads and atomically saves ``IpamState`` at a fixed path."""

    def __init__(self, file_path: str | os.PathLike):
        self.file_path = Path(file_path)
        self.temp_path = self.file_path.with_name(self.file_path.name + ".tmp")
        self._save_lock = asyncio.Lock()

    # =========================================================================
    # Load
    # =========================================================================

    async def load(self) -> IpamState:
        """
        Load state from disk.

        A missing file yields an empty state and creates the parent directory.

        Raises:
            StateIOError: If the file exists but cannot be read or parsed.
        """
        return await asyncio.to_thread(self._load_sync)

    def _load_sync(self) -> IpamState:
        if not self.file_path.exists():
            try:
                self.file_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StateIOError(
                    f"Failed to create state directory ({e})", str(self.file_path.parent)
                ) from e
            logger.info(f"No state file at {self.file_path}, starting with empty state")
            return IpamState()

        state = self._read_sync()
        logger.info(
            f"Loaded state from {self.file_path}: "
            f"{len(state.pools)} pools, {len(state.leases)} leases"
        )
        return state

    def _read_sync(self) -> IpamState:
        try:
            contents = self.file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise StateIOError(f"Failed to read state file ({e})", str(self.file_path)) from e

        try:
            return IpamState.from_document(yaml.safe_load(contents))
        except (yaml.YAMLError, pydantic.ValidationError, TypeError) as e:
            raise StateIOError(
                f"Failed to parse state file ({e})", str(self.file_path)
            ) from e

    async def reload(self) -> IpamState | None:
        """
        Re-read the state file.

        Returns:
            The state on disk, or None if the file does not exist.

        Raises:
            StateIOError: If the file cannot be read or parsed.
        """
        if not self.file_path.exists():
            logger.warning(f"Reload requested but {self.file_path} does not exist")
            return None
        state = await asyncio.to_thread(self._read_sync)
        logger.debug(f"State reloaded from {self.file_path}")
        return state

    # =========================================================================
    # Save
    # =========================================================================

    async def save(self, guard: StateGuard) -> None:
        """
        Persist the state held by ``guard`` atomically.

        The document is rendered under a read acquisition taken after the
        save lock, so saves land on disk in the order their snapshots were
        taken.

        Raises:
            StateIOError: If serialization or any filesystem step fails.
        """
        async with self._save_lock:
            async with guard.read() as state:
                try:
                    document = yaml.safe_dump(
                        state.to_document(), default_flow_style=False, sort_keys=False
                    )
                except yaml.YAMLError as e:
                    raise StateIOError(
                        f"Failed to serialize state ({e})", str(self.file_path)
                    ) from e
            await asyncio.to_thread(self._write_sync, document)

        logger.debug(f"State saved to {self.file_path}")

    def _write_sync(self, document: str) -> None:
        try:
            with open(self.temp_path, "w", encoding="utf-8") as f:
                f.write(document)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StateIOError(f"Failed to write state file ({e})", str(self.temp_path)) from e

        try:
            os.replace(self.temp_path, self.file_path)
        except OSError as e:
            raise StateIOError(f"Failed to rename temp file ({e})", str(self.file_path)) from e
