"""Settings repository - Database operations for platform configuration"""

from typing import Any, Optional

from sqlalchemy.orm import Session

from ...models import PlatformConfig


class SettingsRepository:
    """Repository for the platform_config key/value table"""

    @staticmethod
    def get_all(db: Session) -> dict[str, Any]:
        return {row.key: row.value for row in db.query(PlatformConfig).order_by(PlatformConfig.key).all()}

    @staticmethod
    def get_values(db: Session, keys: list[str]) -> dict[str, Any]:
        """Get the stored values for the given keys; missing keys are omitted"""
        rows = db.query(PlatformConfig).filter(PlatformConfig.key.in_(keys)).all()
        return {row.key: row.value for row in rows}

    @staticmethod
    def get_value(db: Session, key: str) -> Optional[Any]:
        row = db.query(PlatformConfig).filter(PlatformConfig.key == key).first()
        return row.value if row else None

    @staticmethod
    def set_value(db: Session, key: str, value: Any) -> PlatformConfig:
        """Create or replace a setting"""
        row = db.query(PlatformConfig).filter(PlatformConfig.key == key).first()
        if row:
            row.value = value
        else:
            row = PlatformConfig(key=key, value=value)
            db.add(row)
        db.commit()
        db.refresh(row)
        return row
