"""
Local Persistence

Two implementations of LocalStorageInterface:

- JsonFileStorage: one JSON file per slot, replaced atomically.
- InMemoryStorage: dict-backed, for tests and ephemeral sessions.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import structlog

from snapspend.config import get_settings
from snapspend.services.storage.interface import (
    LocalStorageInterface,
    Slot,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonFileStorage(LocalStorageInterface):
    """
    Stores each slot as a JSON file inside a directory.

    Writes go to a temporary file in the same directory which then
    replaces the slot file, so a crash mid-write leaves the old file.
    """

    def __init__(
        self,
        directory: Path,
        filenames: Optional[dict[Slot, str]] = None,
    ):
        self._directory = Path(directory)
        self._filenames = {slot: f"{slot.value}.json" for slot in Slot}
        if filenames:
            self._filenames.update(filenames)

    @classmethod
    def from_settings(cls) -> "JsonFileStorage":
        """Build from StorageSettings (SNAPSPEND_* environment)."""
        settings = get_settings().storage
        return cls(
            settings.data_path,
            filenames={
                Slot.EXPENSES: settings.expenses_file,
                Slot.WALLETS: settings.wallets_file,
                Slot.SETTINGS: settings.settings_file,
            },
        )

    def path_for(self, slot: Slot) -> Path:
        return self._directory / self._filenames[slot]

    def read(self, slot: Slot) -> Optional[Any]:
        path = self.path_for(slot)
        if not path.exists():
            return None

        try:
            with path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as e:
            logger.error("slot_read_failed", slot=slot.value, path=str(path), error=str(e))
            return None

    def write(self, slot: Slot, payload: Any) -> None:
        path = self.path_for(slot)
        tmp_name = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._directory,
                prefix=f".{path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, ensure_ascii=False, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write {slot.value}: {e}")


class InMemoryStorage(LocalStorageInterface):
    """
    Dict-backed storage.

    Payloads are round-tripped through JSON so tests see exactly what a
    file would hold. write_counts tracks writes per slot.
    """

    def __init__(self, initial: Optional[dict[Slot, Any]] = None):
        self._slots: dict[Slot, str] = {}
        self.write_counts: dict[Slot, int] = {slot: 0 for slot in Slot}
        for slot, payload in (initial or {}).items():
            self._slots[slot] = json.dumps(payload)

    def read(self, slot: Slot) -> Optional[Any]:
        raw = self._slots.get(slot)
        return json.loads(raw) if raw is not None else None

    def write(self, slot: Slot, payload: Any) -> None:
        try:
            self._slots[slot] = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {slot.value}: {e}")
        self.write_counts[slot] += 1
