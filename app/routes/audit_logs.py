from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_admin
from ..database import get_db
from ..models import AuditLog, User

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])


class AuditLogResponse(BaseModel):
    id: int
    action: str
    actorId: Optional[int] = None
    actorName: Optional[str] = None
    target: str
    targetModel: str
    details: Optional[str] = None
    created_at: Optional[datetime] = None


@router.get("", response_model=list[AuditLogResponse])
async def get_audit_logs(
    target_model: Optional[str] = Query(None, alias="targetModel"),
    target: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Most recent audit entries, newest first"""
    query = db.query(AuditLog)
    if target_model:
        query = query.filter(AuditLog.target_model == target_model)
    if target:
        query = query.filter(AuditLog.target == target)

    logs = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
    return [
        AuditLogResponse(
            id=log.id,
            action=log.action,
            actorId=log.actor_id,
            actorName=log.actor_name,
            target=log.target,
            targetModel=log.target_model,
            details=log.details,
            created_at=log.created_at,
        )
        for log in logs
    ]
