from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from pydantic import EmailStr, Field
from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session

import task_service
from categories import CATEGORIES
from category_schemas import ActionItem
from database import utcnow
from dependencies import get_current_user, get_db, require_owned_task
from errors import ValidationError
from models import User
from routers.tasks import add_collection_routes, add_item_routes
from schemas import CamelModel, TaskStatus, TaskType
from stats import is_happening_now
from task_models import MeetingTaskDB

spec = CATEGORIES[TaskType.MEETING]
owned_meeting = require_owned_task(spec)

router = APIRouter(prefix=spec.prefix, tags=["meeting-tasks"])


class AttendeeIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None


add_collection_routes(router, spec)


@router.get("/upcoming")
def upcoming_meetings(
    days: int = Query(7, ge=1, le=task_service.MAX_WINDOW_DAYS),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    now = utcnow()
    rows = (
        db.query(MeetingTaskDB)
        .filter(
            MeetingTaskDB.assignee_id == user.id,
            MeetingTaskDB.status != TaskStatus.CANCELLED.value,
            MeetingTaskDB.start_date >= now,
            MeetingTaskDB.start_date <= now + timedelta(days=days),
        )
        .order_by(MeetingTaskDB.start_date.asc())
        .all()
    )
    return {"items": [task_service.serialize(spec, row) for row in rows], "count": len(rows)}


@router.get("/happening-now")
def happening_now(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Unfinished meetings whose start date plus duration spans the current time."""
    now = utcnow()
    started = (
        db.query(MeetingTaskDB)
        .filter(
            MeetingTaskDB.assignee_id == user.id,
            MeetingTaskDB.status != TaskStatus.COMPLETED.value,
            MeetingTaskDB.start_date <= now,
        )
        .order_by(MeetingTaskDB.start_date.asc())
        .all()
    )
    rows = [row for row in started if is_happening_now(row, now)]
    return {"items": [task_service.serialize(spec, row) for row in rows], "count": len(rows)}


@router.get("/search/attendees")
def search_by_attendee(
    attendee: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Match ``attendee`` against attendee names and emails."""
    if not attendee or not attendee.strip():
        raise ValidationError("Attendee parameter is required")
    term = f"%{attendee.strip()}%"
    query = db.query(MeetingTaskDB).filter(
        MeetingTaskDB.assignee_id == user.id,
        or_(
            cast(MeetingTaskDB.attendees, String).ilike(term),
            cast(MeetingTaskDB.attendee_emails, String).ilike(term),
        ),
    )
    return task_service.paginate(spec, query, page, limit, MeetingTaskDB.start_date)


@router.post("/{task_id}/attendees")
def add_attendee(body: AttendeeIn, task=Depends(owned_meeting), db: Session = Depends(get_db)):
    meeting = task_service.to_read(spec, task)
    changes = {}
    if body.name not in meeting.attendees:
        changes["attendees"] = meeting.attendees + [body.name]
    if body.email and body.email not in meeting.attendee_emails:
        changes["attendee_emails"] = meeting.attendee_emails + [body.email]
    row = task_service.update_task(db, spec, task, changes)
    return task_service.serialize(spec, row)


@router.post("/{task_id}/action-items")
def add_action_item(item: ActionItem, task=Depends(owned_meeting), db: Session = Depends(get_db)):
    row = task_service.append_item(db, spec, task, "action_items", item.model_dump(mode="json"))
    return task_service.serialize(spec, row)


@router.post("/{task_id}/action-items/{index}/complete")
def complete_action_item(
    index: int = Path(..., ge=0),
    task=Depends(owned_meeting),
    db: Session = Depends(get_db),
):
    items = task_service.to_read(spec, task).model_dump(mode="json")["action_items"]
    if index >= len(items):
        raise ValidationError("Invalid action item index")
    items[index]["completed"] = True
    row = task_service.update_task(db, spec, task, {"action_items": items})
    return task_service.serialize(spec, row)


@router.get("/{task_id}/efficiency")
def meeting_efficiency(task=Depends(owned_meeting)):
    meeting = task_service.to_read(spec, task)
    total = len(meeting.action_items)
    completed = sum(1 for item in meeting.action_items if item.completed)
    return {
        "meetingDuration": meeting.meeting_duration,
        "actualDuration": meeting.actual_duration,
        "isHappeningNow": is_happening_now(meeting, utcnow()),
        "totalActionItems": total,
        "completedActionItems": completed,
        "actionItemCompletionRate": round(completed / total * 100) if total else 0,
    }


add_item_routes(router, spec)
