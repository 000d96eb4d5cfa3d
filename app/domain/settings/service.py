"""Settings service - Platform configuration reads and admin updates"""

import logging
from typing import Any

from sqlalchemy.orm import Session

from ...models import User
from ...services.notification_service import NotificationDispatcher
from ...shared.errors import ValidationError
from .repository import SettingsRepository
from .schemas import FEE_SETTING_KEYS, FeeSettings, parse_percent

logger = logging.getLogger(__name__)


def load_fee_settings(db: Session) -> FeeSettings:
    """Read fee settings for a single operation (never cached)"""
    stored = SettingsRepository.get_values(db, list(FEE_SETTING_KEYS.values()))
    return FeeSettings.from_stored(stored)


class SettingsService:
    """Service layer for platform configuration"""

    def __init__(self, db: Session, dispatcher: NotificationDispatcher):
        self.db = db
        self.repo = SettingsRepository()
        self.dispatcher = dispatcher

    def get_config(self) -> dict[str, Any]:
        """Stored settings merged over the fee defaults"""
        config = {key: float(getattr(FeeSettings(), field)) for field, key in FEE_SETTING_KEYS.items()}
        config.update(self.repo.get_all(self.db))
        return config

    def set_config(self, key: str, value: Any, admin: User) -> dict[str, Any]:
        if key in FEE_SETTING_KEYS.values():
            try:
                parse_percent(value)
            except ValueError as e:
                raise ValidationError(f"{key}: {e}") from e

        previous = self.repo.get_value(self.db, key)
        row = self.repo.set_value(self.db, key, value)
        logger.info(f"⚙️ Platform setting {key} updated by admin {admin.id}")

        self.dispatcher.audit(
            self.db, "update", admin, key, "PlatformConfig", f"Setting {key} changed: {previous!r} → {value!r}"
        )
        return {"key": row.key, "value": row.value}
