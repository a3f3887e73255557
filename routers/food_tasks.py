from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy import String, cast
from sqlalchemy.orm import Session

import task_service
from categories import CATEGORIES
from dependencies import get_current_user, get_db, require_owned_task
from errors import ValidationError
from models import User
from routers.tasks import add_collection_routes, add_item_routes
from schemas import CamelModel, TaskType
from task_models import FoodTaskDB

spec = CATEGORIES[TaskType.FOOD]
owned_food = require_owned_task(spec)

router = APIRouter(prefix=spec.prefix, tags=["food-tasks"])


class IngredientIn(CamelModel):
    ingredient: str = Field(..., min_length=1, max_length=100)


add_collection_routes(router, spec)


@router.get("/search/ingredients")
def search_by_ingredient(
    ingredient: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Food entries whose ingredient list mentions ``ingredient`` (case-insensitive)."""
    if not ingredient or not ingredient.strip():
        raise ValidationError("Ingredient parameter is required")
    query = db.query(FoodTaskDB).filter(
        FoodTaskDB.assignee_id == user.id,
        cast(FoodTaskDB.ingredients, String).ilike(f"%{ingredient.strip()}%"),
    )
    return task_service.paginate(spec, query, page, limit, FoodTaskDB.logged_at)


@router.post("/{task_id}/ingredients")
def add_ingredient(body: IngredientIn, task=Depends(owned_food), db: Session = Depends(get_db)):
    row = task_service.append_item(db, spec, task, "ingredients", body.ingredient)
    return task_service.serialize(spec, row)


@router.get("/{task_id}/nutritional-density")
def nutritional_density(task=Depends(owned_food)):
    """Grams of protein, carbs and fats per calorie."""
    macros = {"protein": task.protein or 0, "carbs": task.carbs or 0, "fats": task.fats or 0}
    grams = sum(macros.values())
    return {
        "nutritionalDensity": round(grams / task.calories, 4) if task.calories else 0,
        "calories": task.calories,
        "totalMacros": macros,
    }


add_item_routes(router, spec)
