# storefront/routes/logs.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.errors import ValidationFailed
from storefront.models.log import AuditLog
from storefront.models.users import User
from storefront.schemas.log import LogPage
from storefront.services.gate import admin_only

router = APIRouter(prefix="/logs", tags=["Logs"])


def _parse_date(field: str, value: str, end_of_day: bool = False) -> datetime:
    # Plain YYYY-MM-DD on the upper bound covers the whole day
    if end_of_day and len(value) == 10:
        value += " 23:59:59"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationFailed.field(field, "Expected a date in YYYY-MM-DD format.")


# Browse the audit trail (Admin only)
@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Filter by action"),
    user_id: Optional[int] = Query(None, description="Filter by user id"),
    resource: Optional[str] = Query(None, description="Filter by resource"),
    status: Optional[str] = Query(None, description="Filter by status (SUCCESS/FAIL)"),
    date_from: Optional[str] = Query(None, description="From date (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="To date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    query = db.query(AuditLog)

    if action:
        query = query.filter(AuditLog.action.ilike(f"%{action}%"))
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if resource:
        query = query.filter(AuditLog.resource.ilike(f"%{resource}%"))
    if status:
        query = query.filter(AuditLog.status == status.upper())
    if date_from:
        query = query.filter(AuditLog.ts >= _parse_date("date_from", date_from))
    if date_to:
        query = query.filter(AuditLog.ts <= _parse_date("date_to", date_to, end_of_day=True))

    query = query.order_by(AuditLog.ts.desc(), AuditLog.id.desc())

    total = query.count()
    logs = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": logs,
        "total": total,
        "page": page,
        "page_size": page_size,
    }
