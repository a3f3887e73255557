from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

import task_service
from categories import CATEGORIES
from database import utcnow
from dependencies import get_current_user, get_db, require_owned_task
from errors import ValidationError
from models import User
from routers.tasks import add_collection_routes, add_item_routes
from schemas import CamelModel, TaskStatus, TaskType
from stats import is_overdue
from task_models import HomeworkTaskDB

spec = CATEGORIES[TaskType.HOMEWORK]
owned_homework = require_owned_task(spec)

router = APIRouter(prefix=spec.prefix, tags=["homework-tasks"])


class MaterialIn(CamelModel):
    material: str = Field(..., min_length=1, max_length=200)


class GroupMemberIn(CamelModel):
    member: str = Field(..., min_length=1, max_length=100)


class StudyTimeIn(CamelModel):
    actual_time: int = Field(..., ge=1)  # minutes


add_collection_routes(router, spec)


@router.get("/upcoming")
def upcoming_homework(
    days: int = Query(7, ge=1, le=task_service.MAX_WINDOW_DAYS),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Unfinished homework due between now and ``days`` from now, soonest first."""
    now = utcnow()
    rows = (
        db.query(HomeworkTaskDB)
        .filter(
            HomeworkTaskDB.assignee_id == user.id,
            HomeworkTaskDB.status != TaskStatus.COMPLETED.value,
            HomeworkTaskDB.due_date >= now,
            HomeworkTaskDB.due_date <= now + timedelta(days=days),
        )
        .order_by(HomeworkTaskDB.due_date.asc())
        .all()
    )
    return {"items": [task_service.serialize(spec, row) for row in rows], "count": len(rows)}


@router.get("/search/subjects")
def search_by_subject(
    subject: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not subject or not subject.strip():
        raise ValidationError("Subject parameter is required")
    query = db.query(HomeworkTaskDB).filter(
        HomeworkTaskDB.assignee_id == user.id,
        HomeworkTaskDB.subject.ilike(f"%{subject.strip()}%"),
    )
    return task_service.paginate(spec, query, page, limit, HomeworkTaskDB.due_date, descending=False)


@router.post("/{task_id}/materials")
def add_material(body: MaterialIn, task=Depends(owned_homework), db: Session = Depends(get_db)):
    row = task_service.append_item(db, spec, task, "materials", body.material)
    return task_service.serialize(spec, row)


@router.post("/{task_id}/group-members")
def add_group_member(body: GroupMemberIn, task=Depends(owned_homework), db: Session = Depends(get_db)):
    """Add a group member; the task becomes group work."""
    members = task_service.to_read(spec, task).group_members
    if body.member not in members:
        members = members + [body.member]
    row = task_service.update_task(db, spec, task, {"group_members": members, "is_group_work": True})
    return task_service.serialize(spec, row)


@router.put("/{task_id}/study-time")
def record_study_time(body: StudyTimeIn, task=Depends(owned_homework), db: Session = Depends(get_db)):
    row = task_service.update_task(db, spec, task, {"actual_study_time": body.actual_time})
    return task_service.serialize(spec, row)


@router.get("/{task_id}/study-efficiency")
def study_efficiency(task=Depends(owned_homework)):
    """Estimated over actual study time as a percentage; ``None`` until both are known."""
    estimated, actual = task.estimated_study_time, task.actual_study_time
    return {
        "studyEfficiency": round(estimated / actual * 100) if estimated and actual else None,
        "estimatedStudyTime": estimated,
        "actualStudyTime": actual,
        "isOverdue": is_overdue(task, utcnow()),
    }


add_item_routes(router, spec)
