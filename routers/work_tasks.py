from fastapi import APIRouter

from categories import CATEGORIES
from routers.tasks import add_collection_routes, add_item_routes
from schemas import TaskType

spec = CATEGORIES[TaskType.WORK]

router = APIRouter(prefix=spec.prefix, tags=["work-tasks"])

add_collection_routes(router, spec)
add_item_routes(router, spec)
