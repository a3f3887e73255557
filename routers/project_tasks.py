from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

import task_service
from categories import CATEGORIES
from category_schemas import Milestone, ProjectPhase
from database import utcnow
from dependencies import get_current_user, get_db, require_owned_task
from errors import ValidationError
from models import User
from routers.tasks import add_collection_routes, add_item_routes
from schemas import TaskType
from stats import is_overdue
from task_models import ProjectTaskDB

spec = CATEGORIES[TaskType.PROJECT]
owned_project = require_owned_task(spec)

router = APIRouter(prefix=spec.prefix, tags=["project-tasks"])

add_collection_routes(router, spec)


def _overdue_milestones(project, now) -> int:
    return sum(1 for m in project.milestones if not m.completed and m.due_date is not None and m.due_date < now)


@router.get("/search/projects")
def search_by_project_name(
    project_name: Optional[str] = Query(None, alias="projectName"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not project_name or not project_name.strip():
        raise ValidationError("Project name parameter is required")
    query = db.query(ProjectTaskDB).filter(
        ProjectTaskDB.assignee_id == user.id,
        ProjectTaskDB.project_name.ilike(f"%{project_name.strip()}%"),
    )
    return task_service.paginate(spec, query, page, limit)


@router.get("/overdue-milestones")
def projects_with_overdue_milestones(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Active projects holding at least one unfinished milestone past its due date."""
    now = utcnow()
    rows = (
        db.query(ProjectTaskDB)
        .filter(
            ProjectTaskDB.assignee_id == user.id,
            ProjectTaskDB.project_phase.notin_([ProjectPhase.COMPLETED.value, ProjectPhase.CANCELLED.value]),
        )
        .order_by(ProjectTaskDB.created_at.desc(), ProjectTaskDB.id.desc())
        .all()
    )
    items = []
    for row in rows:
        project = task_service.to_read(spec, row)
        overdue = _overdue_milestones(project, now)
        if overdue:
            items.append({**project.model_dump(by_alias=True, mode="json"), "overdueMilestones": overdue})
    return {"items": items, "count": len(items)}


def _save_milestones(db: Session, task, milestones) -> None:
    # JSON columns only persist on reassignment
    task.milestones = [m.model_dump(mode="json") for m in milestones]
    db.commit()
    db.refresh(task)


@router.post("/{task_id}/milestones", status_code=status.HTTP_201_CREATED)
def add_milestone(milestone: Milestone, task=Depends(owned_project), db: Session = Depends(get_db)):
    milestones = task_service.to_read(spec, task).milestones
    milestones.append(milestone)
    _save_milestones(db, task, milestones)
    return task_service.serialize(spec, task)


@router.post("/{task_id}/milestones/{index}/complete")
def complete_milestone(
    index: int = Path(..., ge=0),
    task=Depends(owned_project),
    db: Session = Depends(get_db),
):
    milestones = task_service.to_read(spec, task).milestones
    if index >= len(milestones):
        raise ValidationError("Invalid milestone index")
    milestones[index].completed = True
    milestones[index].completed_at = milestones[index].completed_at or utcnow()
    _save_milestones(db, task, milestones)
    return task_service.serialize(spec, task)


@router.get("/{task_id}/progress")
def project_progress(task=Depends(owned_project)):
    project = task_service.to_read(spec, task)
    now = utcnow()
    total = len(project.milestones)
    completed = sum(1 for m in project.milestones if m.completed)
    return {
        "projectProgress": round(completed / total * 100) if total else 0,
        "totalMilestones": total,
        "completedMilestones": completed,
        "overdueMilestones": _overdue_milestones(project, now),
        "budgetUtilization": round((project.actual_cost or 0) / project.budget * 100) if project.budget else None,
        "isOverdue": is_overdue(project, now),
        "projectStatus": project.project_status,
    }


add_item_routes(router, spec)
