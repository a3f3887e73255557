"""
Category descriptors.

A ``CategorySpec`` ties one task category to everything the generic routes
need: its ORM model, its input and read schemas, its list filters and its
statistics function.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple, Type

import category_schemas as cs
import stats
import task_models as tm
from schemas import TaskType

# Filter kinds: exact match, boolean flag, integer, case-insensitive substring
EXACT, BOOL, INT, ICONTAINS = "exact", "bool", "int", "icontains"


@dataclass(frozen=True)
class CategorySpec:
    task_type: TaskType
    model: Type[tm.BaseTaskMixin]
    create_schema: Type[cs.BaseTaskFields]
    read_schema: Type[cs.BaseTaskFields]
    label: str
    stats: Callable
    # query parameter name -> (column name, kind)
    filters: Dict[str, Tuple[str, str]] = field(default_factory=dict)
    stats_date_field: str = "created_at"

    @property
    def prefix(self) -> str:
        return f"/api/{self.task_type.value}-tasks"

    @property
    def title_label(self) -> str:
        return self.label[0].upper() + self.label[1:]


CATEGORIES: Dict[TaskType, CategorySpec] = {
    TaskType.WORK: CategorySpec(
        TaskType.WORK, tm.WorkTaskDB, cs.WorkTaskCreate, cs.WorkTaskRead, "work task", stats.work_stats,
        filters={"workCategory": ("work_category", EXACT), "isBillable": ("is_billable", BOOL)},
    ),
    TaskType.FOOD: CategorySpec(
        TaskType.FOOD, tm.FoodTaskDB, cs.FoodTaskCreate, cs.FoodTaskRead, "food task", stats.food_stats,
        filters={"category": ("category", EXACT), "healthRating": ("health_rating", INT)},
        stats_date_field="logged_at",
    ),
    TaskType.HOMEWORK: CategorySpec(
        TaskType.HOMEWORK, tm.HomeworkTaskDB, cs.HomeworkTaskCreate, cs.HomeworkTaskRead, "homework task",
        stats.homework_stats,
        filters={
            "subject": ("subject", ICONTAINS),
            "assignmentType": ("assignment_type", EXACT),
            "difficulty": ("difficulty", EXACT),
        },
    ),
    TaskType.EMAIL: CategorySpec(
        TaskType.EMAIL, tm.EmailTaskDB, cs.EmailTaskCreate, cs.EmailTaskRead, "email task", stats.email_stats,
        filters={
            "emailType": ("email_type", EXACT),
            "emailPriority": ("email_priority", EXACT),
            "isReply": ("is_reply", BOOL),
        },
    ),
    TaskType.MEETING: CategorySpec(
        TaskType.MEETING, tm.MeetingTaskDB, cs.MeetingTaskCreate, cs.MeetingTaskRead, "meeting task",
        stats.meeting_stats,
        filters={"meetingType": ("meeting_type", EXACT), "recurringMeeting": ("recurring_meeting", BOOL)},
    ),
    TaskType.PROJECT: CategorySpec(
        TaskType.PROJECT, tm.ProjectTaskDB, cs.ProjectTaskCreate, cs.ProjectTaskRead, "project task",
        stats.project_stats,
        filters={
            "projectPhase": ("project_phase", EXACT),
            "projectType": ("project_type", EXACT),
            "projectStatus": ("project_status", EXACT),
        },
    ),
    TaskType.HEALTH: CategorySpec(
        TaskType.HEALTH, tm.HealthTaskDB, cs.HealthTaskCreate, cs.HealthTaskRead, "health task",
        stats.health_stats,
        filters={"healthCategory": ("health_category", EXACT), "mood": ("mood", EXACT)},
    ),
    TaskType.PERSONAL: CategorySpec(
        TaskType.PERSONAL, tm.PersonalTaskDB, cs.PersonalTaskCreate, cs.PersonalTaskRead, "personal task",
        stats.personal_stats,
        filters={"personalCategory": ("personal_category", EXACT), "mood": ("mood", EXACT)},
    ),
}
