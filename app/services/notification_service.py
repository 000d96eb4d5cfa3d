"""
Notification Dispatcher
Realtime push to provider rooms plus audit log persistence for appointment events.
Both channels are best-effort: failures are logged and never reach the caller.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import AuditLog, User
from .realtime import ConnectionManager, connection_manager

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Delivers appointment events without affecting the primary write"""

    def __init__(self, manager: Optional[ConnectionManager] = None):
        self.manager = manager or connection_manager

    async def push(self, target_room, event_name: str, payload: dict) -> bool:
        """Emit a realtime event to a room; returns False when delivery failed"""
        try:
            delivered = await self.manager.emit(str(target_room), event_name, payload)
            logger.debug(f"📣 {event_name} pushed to room {target_room} ({delivered} connections)")
            return True
        except Exception as e:
            logger.error(f"❌ Realtime push failed ({event_name} -> room {target_room}): {e}")
            return False

    def audit(
        self,
        db: Session,
        action: str,
        actor: Optional[User],
        target,
        target_model: str,
        details: str,
    ) -> bool:
        """Persist an audit entry; returns False when the write failed"""
        try:
            entry = AuditLog(
                action=action,
                actor_id=actor.id if actor else None,
                actor_name=(actor.name or actor.email) if actor else "system",
                target=str(target),
                target_model=target_model,
                details=details,
            )
            db.add(entry)
            db.commit()
            return True
        except Exception as e:
            logger.error(f"❌ Audit log failure ({action} {target_model} {target}): {e}")
            db.rollback()
            return False


def get_notification_dispatcher() -> NotificationDispatcher:
    """Dependency injection for NotificationDispatcher"""
    return NotificationDispatcher()
