"""Per-category statistics over a list of validated task rows."""
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List

from category_schemas import (
    AssignmentType,
    Difficulty,
    EmailType,
    FoodCategory,
    HealthCategory,
    HealthMood,
    MeetingOutcome,
    MeetingType,
    PersonalCategory,
    PersonalMood,
    ProjectPhase,
    ProjectStatus,
    ProjectType,
    WorkCategory,
)
from schemas import TaskPriority, TaskStatus


def count_by(tasks: List, attr: str, values: Iterable) -> Dict[str, int]:
    """Count tasks per value of ``attr``; every listed value appears, even with zero."""
    counts = Counter(getattr(t, attr) for t in tasks)
    return {str(getattr(v, "value", v)): counts.get(getattr(v, "value", v), 0) for v in values}


def average(values: List[float]) -> int:
    return round(sum(values) / len(values)) if values else 0


def completion(tasks: List) -> Dict[str, int]:
    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED.value)
    rate = round(completed / len(tasks) * 100) if tasks else 0
    return {"completedTasks": completed, "completionRate": rate}


def is_overdue(task, now: datetime) -> bool:
    return task.due_date is not None and task.due_date < now and task.status != TaskStatus.COMPLETED.value


def work_stats(tasks: List, now: datetime) -> dict:
    billable = [t for t in tasks if t.is_billable]
    billed_minutes = sum(t.actual_duration or 0 for t in billable)
    earnings = sum((t.actual_duration or 0) / 60 * (t.hourly_rate or 0) for t in billable)
    return {
        "totalWorkTasks": len(tasks),
        "byCategory": count_by(tasks, "work_category", WorkCategory),
        "billableTasks": len(billable),
        "nonBillableTasks": len(tasks) - len(billable),
        "totalBillableHours": round(billed_minutes / 60, 2),
        "totalEarnings": round(earnings, 2),
        "averageHourlyRate": average([t.hourly_rate or 0 for t in tasks]),
        **completion(tasks),
    }


def food_stats(tasks: List, now: datetime) -> dict:
    rated = [t for t in tasks if t.health_rating is not None]
    return {
        "totalFoodTasks": len(tasks),
        "byCategory": count_by(tasks, "category", FoodCategory),
        "byHealthRating": count_by(tasks, "health_rating", range(1, 6)),
        "averageCalories": average([t.calories for t in tasks]),
        "averageProtein": average([t.protein or 0 for t in tasks]),
        "averageCarbs": average([t.carbs or 0 for t in tasks]),
        "averageFats": average([t.fats or 0 for t in tasks]),
        "totalCost": round(sum(t.cost or 0 for t in tasks), 2),
        "healthyMeals": sum(1 for t in rated if t.health_rating >= 3),
        "unhealthyMeals": sum(1 for t in rated if t.health_rating < 3),
        **completion(tasks),
    }


def homework_stats(tasks: List, now: datetime) -> dict:
    return {
        "totalHomeworkTasks": len(tasks),
        "bySubject": dict(Counter(t.subject for t in tasks)),
        "byAssignmentType": count_by(tasks, "assignment_type", AssignmentType),
        "byDifficulty": count_by(tasks, "difficulty", Difficulty),
        "byStatus": count_by(tasks, "status", TaskStatus),
        "overdue": sum(1 for t in tasks if is_overdue(t, now)),
        "averageStudyTime": average([t.estimated_study_time or 0 for t in tasks]),
        "groupWorkTasks": sum(1 for t in tasks if t.is_group_work),
        "individualTasks": sum(1 for t in tasks if not t.is_group_work),
        **completion(tasks),
    }


def email_stats(tasks: List, now: datetime) -> dict:
    return {
        "totalEmailTasks": len(tasks),
        "byEmailType": count_by(tasks, "email_type", EmailType),
        "byPriority": count_by(tasks, "email_priority", TaskPriority),
        "byStatus": count_by(tasks, "status", TaskStatus),
        "sentEmails": sum(1 for t in tasks if t.sent_at is not None),
        "replies": sum(1 for t in tasks if t.is_reply),
        "followUpsNeeded": sum(1 for t in tasks if t.needs_follow_up),
        "overdue": sum(1 for t in tasks if t.sent_at is None and is_overdue(t, now)),
        "averageResponseTime": average([t.estimated_duration or 0 for t in tasks]),
        **completion(tasks),
    }


def is_happening_now(task, now: datetime) -> bool:
    if task.start_date is None:
        return False
    return task.start_date <= now <= task.start_date + timedelta(minutes=task.meeting_duration)


def meeting_stats(tasks: List, now: datetime) -> dict:
    action_items = [item for t in tasks for item in t.action_items]
    return {
        "totalMeetingTasks": len(tasks),
        "byMeetingType": count_by(tasks, "meeting_type", MeetingType),
        "byStatus": count_by(tasks, "status", TaskStatus),
        "byOutcome": count_by(tasks, "meeting_outcome", MeetingOutcome),
        "recurringMeetings": sum(1 for t in tasks if t.recurring_meeting),
        "oneTimeMeetings": sum(1 for t in tasks if not t.recurring_meeting),
        "averageDuration": average([t.meeting_duration for t in tasks]),
        "totalActionItems": len(action_items),
        "completedActionItems": sum(1 for item in action_items if item.completed),
        "happeningNow": sum(1 for t in tasks if is_happening_now(t, now)),
        **completion(tasks),
    }


def project_stats(tasks: List, now: datetime) -> dict:
    milestones = [m for t in tasks for m in t.milestones]
    return {
        "totalProjectTasks": len(tasks),
        "byProjectPhase": count_by(tasks, "project_phase", ProjectPhase),
        "byProjectType": count_by(tasks, "project_type", ProjectType),
        "byProjectStatus": count_by(tasks, "project_status", ProjectStatus),
        "totalBudget": round(sum(t.budget or 0 for t in tasks), 2),
        "totalActualCost": round(sum(t.actual_cost or 0 for t in tasks), 2),
        "averageBudget": average([t.budget or 0 for t in tasks]),
        "totalMilestones": len(milestones),
        "completedMilestones": sum(1 for m in milestones if m.completed),
        "overdueMilestones": sum(
            1 for m in milestones if not m.completed and m.due_date is not None and m.due_date < now
        ),
        **completion(tasks),
    }


def health_stats(tasks: List, now: datetime) -> dict:
    return {
        "totalHealthTasks": len(tasks),
        "byCategory": count_by(tasks, "health_category", HealthCategory),
        "byMood": count_by(tasks, "mood", HealthMood),
        "averageEnergyLevel": average([t.energy_level or 0 for t in tasks]),
        "averagePainLevel": average([t.pain_level or 0 for t in tasks]),
        "recurringTasks": sum(1 for t in tasks if t.is_recurring),
        **completion(tasks),
    }


def personal_stats(tasks: List, now: datetime) -> dict:
    costs = [t.cost or 0 for t in tasks]
    return {
        "totalPersonalTasks": len(tasks),
        "byCategory": count_by(tasks, "personal_category", PersonalCategory),
        "byPriority": count_by(tasks, "priority", TaskPriority),
        "byMood": count_by(tasks, "mood", PersonalMood),
        "recurringTasks": sum(1 for t in tasks if t.is_recurring),
        "oneTimeTasks": sum(1 for t in tasks if not t.is_recurring),
        "totalCost": round(sum(costs), 2),
        "averageCost": average(costs),
        **completion(tasks),
    }
