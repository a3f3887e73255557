"""
Route builders shared by every category, plus the cross-category overview.

Category modules call ``add_collection_routes`` first, register their own
static paths, then call ``add_item_routes`` so that ``/{task_id}`` never
shadows paths like ``/upcoming``.
"""
import math
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status
from sqlalchemy.orm import Session

import task_service
from categories import CATEGORIES, CategorySpec
from database import utcnow
from dependencies import get_current_user, get_db, require_owned_task
from models import User
from schemas import TaskPriority, TaskStatus, TaskType
from stats import count_by, is_overdue


def _common_filters(request: Request, task_status: Optional[TaskStatus], priority: Optional[TaskPriority]) -> dict:
    params = dict(request.query_params)
    params["status"] = task_status.value if task_status else None
    params["priority"] = priority.value if priority else None
    return params


def add_collection_routes(router: APIRouter, spec: CategorySpec) -> None:
    name = spec.task_type.value

    @router.get("", name=f"list_{name}_tasks")
    def list_tasks(
        request: Request,
        task_status: Optional[TaskStatus] = Query(None, alias="status"),
        priority: Optional[TaskPriority] = None,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1),
        sort_by: str = Query("createdAt", alias="sortBy"),
        sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
        db: Session = Depends(get_db),
        user: User = Depends(get_current_user),
    ):
        params = _common_filters(request, task_status, priority)
        return task_service.list_tasks(db, spec, user.id, params, page, limit, sort_by, sort_order)

    @router.get("/stats", name=f"{name}_task_stats")
    def task_stats(
        period: int = Query(30, ge=1, le=task_service.MAX_WINDOW_DAYS),
        db: Session = Depends(get_db),
        user: User = Depends(get_current_user),
    ):
        return task_service.task_stats(db, spec, user.id, period)

    @router.post("", status_code=status.HTTP_201_CREATED, name=f"create_{name}_task")
    def create_task(
        payload: spec.create_schema,
        db: Session = Depends(get_db),
        user: User = Depends(get_current_user),
    ):
        row = task_service.create_task(db, spec, payload, user.id)
        return task_service.serialize(spec, row)


def add_item_routes(router: APIRouter, spec: CategorySpec) -> None:
    name = spec.task_type.value
    owned_task = require_owned_task(spec)

    @router.get("/{task_id}", name=f"get_{name}_task")
    def get_task(task=Depends(owned_task)):
        return task_service.serialize(spec, task)

    @router.put("/{task_id}", name=f"update_{name}_task")
    def update_task(
        changes: Dict[str, Any] = Body(...),
        task=Depends(owned_task),
        db: Session = Depends(get_db),
    ):
        row = task_service.update_task(db, spec, task, changes)
        return task_service.serialize(spec, row)

    @router.delete("/{task_id}", name=f"delete_{name}_task")
    def delete_task(task=Depends(owned_task), db: Session = Depends(get_db)):
        task_service.delete_task(db, spec, task)
        return {"success": True, "message": f"{spec.title_label} deleted successfully"}


# --- Cross-category overview ---
router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _specs(task_type: Optional[TaskType]):
    return [CATEGORIES[task_type]] if task_type else list(CATEGORIES.values())


def _owned_rows(db: Session, user_id: int, params: dict, task_type: Optional[TaskType]):
    for spec in _specs(task_type):
        for row in task_service.filtered_query(db, spec, user_id, params).all():
            yield spec, row


@router.get("")
def list_all_tasks(
    task_type: Optional[TaskType] = Query(None, alias="taskType"),
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Every task of the caller across all categories, newest first."""
    params = {"status": task_status.value if task_status else None, "priority": priority.value if priority else None}
    queries = [(spec, task_service.filtered_query(db, spec, user.id, params)) for spec in _specs(task_type)]
    total = sum(query.count() for _, query in queries)
    start = (page - 1) * limit
    if start >= total:
        page_rows = []
    else:
        # The newest start+limit rows of each table are enough to build this page
        window = min(start + limit, total)
        candidates = [
            (spec, row)
            for spec, query in queries
            for row in query.order_by(spec.model.created_at.desc(), spec.model.id.desc()).limit(window).all()
        ]
        candidates.sort(key=lambda pair: pair[1].created_at, reverse=True)
        page_rows = candidates[start:start + limit]
    return {
        "items": [task_service.serialize(spec, row) for spec, row in page_rows],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


@router.get("/stats")
def overview_stats(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    now = utcnow()
    rows = [row for _, row in _owned_rows(db, user.id, {}, None)]
    return {
        "totalTasks": len(rows),
        "byType": count_by(rows, "task_type", TaskType),
        "byStatus": count_by(rows, "status", TaskStatus),
        "byPriority": count_by(rows, "priority", TaskPriority),
        "totalXp": sum(row.xp_value or 0 for row in rows),
        "overdue": sum(1 for row in rows if is_overdue(row, now)),
    }
