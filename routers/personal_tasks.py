from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import task_service
from categories import CATEGORIES
from database import utcnow
from dependencies import get_current_user, get_db
from errors import ValidationError
from models import User
from routers.tasks import add_collection_routes, add_item_routes
from schemas import TaskType
from task_models import PersonalTaskDB

spec = CATEGORIES[TaskType.PERSONAL]

router = APIRouter(prefix=spec.prefix, tags=["personal-tasks"])

add_collection_routes(router, spec)


@router.get("/search/category")
def search_by_category(
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not category or not category.strip():
        raise ValidationError("Category parameter is required")
    query = db.query(PersonalTaskDB).filter(
        PersonalTaskDB.assignee_id == user.id,
        PersonalTaskDB.personal_category.ilike(f"%{category.strip()}%"),
    )
    return task_service.paginate(spec, query, page, limit)


@router.get("/mood-tracking")
def mood_tracking(
    period: int = Query(30, ge=1, le=task_service.MAX_WINDOW_DAYS),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Mood entries of the last ``period`` days, newest first."""
    rows = (
        db.query(PersonalTaskDB)
        .filter(
            PersonalTaskDB.assignee_id == user.id,
            PersonalTaskDB.mood.isnot(None),
            PersonalTaskDB.created_at >= utcnow() - timedelta(days=period),
        )
        .order_by(PersonalTaskDB.created_at.desc(), PersonalTaskDB.id.desc())
        .all()
    )
    entries = [
        {
            "date": row.created_at.isoformat(),
            "mood": row.mood,
            "category": row.personal_category,
            "title": row.title,
            "status": row.status,
        }
        for row in rows
    ]
    return {"period": period, "moodTracking": entries, "count": len(entries)}


add_item_routes(router, spec)
