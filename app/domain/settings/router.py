"""Settings router - FastAPI endpoints for platform configuration"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import User
from ...services.notification_service import NotificationDispatcher, get_notification_dispatcher
from .schemas import ConfigUpdate
from .service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config", tags=["Config"])


def get_settings_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> SettingsService:
    """Dependency injection for SettingsService"""
    return SettingsService(db, dispatcher)


@router.get("")
async def get_config(service: SettingsService = Depends(get_settings_service)):
    """Public platform configuration (fees, categories, locations)"""
    return service.get_config()


@router.put("/{key}")
async def update_config(
    key: str,
    body: ConfigUpdate,
    admin: User = Depends(get_current_admin),
    service: SettingsService = Depends(get_settings_service),
):
    """Create or replace a platform setting"""
    return service.set_config(key, body.value, admin)
