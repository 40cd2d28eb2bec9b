"""Settings Store - the single user settings record."""

from typing import Any, Optional

import structlog
from pydantic import ValidationError

from snapspend.audit import AuditLogger
from snapspend.models.audit import AuditEventBuilder
from snapspend.models.preferences import UserSettings
from snapspend.services.storage import LocalStorageInterface, Slot


logger = structlog.get_logger(__name__)


class SettingsStore:
    """
    Owner of the settings slot.

    Stored keys are layered over the defaults on load, so records written
    by older versions pick up new fields.
    """

    def __init__(
        self,
        storage: LocalStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = self._load()

    def _load(self) -> UserSettings:
        payload = self._storage.read(Slot.SETTINGS)
        if not isinstance(payload, dict):
            return UserSettings()

        data = dict(payload)
        # Older records only had the manual-entry toggle
        if "show_manual_entry" in data and "show_camera" not in data:
            data["show_camera"] = data["show_manual_entry"]

        try:
            return UserSettings.model_validate(
                {**UserSettings().model_dump(), **data}
            )
        except ValidationError as e:
            logger.warning("settings_record_invalid", error=str(e))
            return UserSettings()

    @property
    def settings(self) -> UserSettings:
        return self._settings

    def update(self, settings: UserSettings) -> UserSettings:
        """Replace the whole record and persist it."""
        changed = [
            name
            for name in UserSettings.model_fields
            if getattr(settings, name) != getattr(self._settings, name)
        ]
        self._storage.write(Slot.SETTINGS, settings.model_dump(mode="json"))
        self._settings = settings
        self._audit_logger.log(AuditEventBuilder.settings_updated(changed))
        return settings

    def change(self, **fields: Any) -> UserSettings:
        """
        Copy the current record with some fields changed, then update.

        Raises:
            ValidationError: If a value is invalid (nothing is written)
        """
        updated = UserSettings.model_validate(
            {**self._settings.model_dump(), **fields}
        )
        return self.update(updated)
