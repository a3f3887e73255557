from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

import task_service
from categories import CATEGORIES
from database import utcnow
from dependencies import get_current_user, get_db, require_owned_task
from errors import ValidationError
from models import User
from routers.tasks import add_collection_routes, add_item_routes
from schemas import CamelModel, TaskStatus, TaskType, UtcDateTime
from stats import is_overdue
from task_models import EmailTaskDB

spec = CATEGORIES[TaskType.EMAIL]
owned_email = require_owned_task(spec)

router = APIRouter(prefix=spec.prefix, tags=["email-tasks"])


class FollowUpIn(CamelModel):
    follow_up_date: UtcDateTime


add_collection_routes(router, spec)


def _open_follow_ups(db: Session, user_id: int):
    return db.query(EmailTaskDB).filter(
        EmailTaskDB.assignee_id == user_id,
        EmailTaskDB.follow_up_date.isnot(None),
        EmailTaskDB.status != TaskStatus.COMPLETED.value,
    )


@router.get("/search/recipients")
def search_by_recipient(
    recipient: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Match ``recipient`` against the address and the display name."""
    if not recipient or not recipient.strip():
        raise ValidationError("Recipient parameter is required")
    term = f"%{recipient.strip()}%"
    query = db.query(EmailTaskDB).filter(
        EmailTaskDB.assignee_id == user.id,
        or_(EmailTaskDB.recipient.ilike(term), EmailTaskDB.recipient_name.ilike(term)),
    )
    return task_service.paginate(spec, query, page, limit)


@router.get("/follow-ups-needed")
def follow_ups_needed(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Open emails whose follow-up date has come and that got no reply yet."""
    rows = (
        _open_follow_ups(db, user.id)
        .filter(EmailTaskDB.follow_up_date <= utcnow(), EmailTaskDB.reply_received.is_(False))
        .order_by(EmailTaskDB.follow_up_date.asc())
        .all()
    )
    return {"items": [task_service.serialize(spec, row) for row in rows], "count": len(rows)}


@router.get("/overdue")
def overdue_emails(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    rows = (
        _open_follow_ups(db, user.id)
        .filter(EmailTaskDB.follow_up_date < utcnow())
        .order_by(EmailTaskDB.follow_up_date.asc())
        .all()
    )
    return {"items": [task_service.serialize(spec, row) for row in rows], "count": len(rows)}


@router.post("/{task_id}/mark-sent")
def mark_sent(task=Depends(owned_email), db: Session = Depends(get_db)):
    task.sent_at = utcnow()
    task.status = TaskStatus.COMPLETED.value
    task.completed_at = task.completed_at or task.sent_at
    db.commit()
    db.refresh(task)
    return task_service.serialize(spec, task)


@router.post("/{task_id}/mark-reply-received")
def mark_reply_received(task=Depends(owned_email), db: Session = Depends(get_db)):
    task.reply_received = True
    task.needs_follow_up = False
    db.commit()
    db.refresh(task)
    return task_service.serialize(spec, task)


@router.post("/{task_id}/schedule-follow-up")
def schedule_follow_up(body: FollowUpIn, task=Depends(owned_email), db: Session = Depends(get_db)):
    row = task_service.update_task(
        db, spec, task, {"follow_up_date": body.follow_up_date, "needs_follow_up": True}
    )
    return task_service.serialize(spec, row)


@router.get("/{task_id}/status")
def email_status(task=Depends(owned_email)):
    email = task_service.to_read(spec, task)
    return {
        "isOverdue": email.sent_at is None and is_overdue(email, utcnow()),
        "needsFollowUp": email.needs_follow_up,
        "sentAt": email.sent_at,
        "replyReceived": email.reply_received,
        "followUpDate": email.follow_up_date,
        "status": email.status,
    }


add_item_routes(router, spec)
