"""
Per-category task schemas.

Each category composes the shared ``BaseTaskFields`` with its own fields and
constraints (``<Category>TaskFields``), then derives an input schema (adds
markup stripping) and a read schema (adds id, owner, discriminator, timestamps).
"""
from enum import Enum
from typing import Annotated, Optional, List

from pydantic import EmailStr, Field, StringConstraints, field_validator, model_validator

from database import utcnow
from schemas import (
    BaseTaskFields,
    CamelModel,
    TaskCreateMixin,
    TaskPriority,
    TaskReadMixin,
    UtcDateTime,
    clean_title,
    strip_markup,
)

UrlStr = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^https?://\S+$", max_length=2048)]


# --- Work ---
class WorkCategory(str, Enum):
    MEETING = "meeting"
    EMAIL = "email"
    DOCUMENTATION = "documentation"
    CODING = "coding"
    TESTING = "testing"
    DESIGN = "design"
    RESEARCH = "research"
    PRESENTATION = "presentation"
    OTHER = "other"


class WorkTaskFields(BaseTaskFields):
    work_category: WorkCategory
    is_billable: bool = False
    hourly_rate: Optional[float] = Field(None, ge=0)
    client_name: Optional[str] = Field(None, max_length=100)
    project_name: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class WorkTaskCreate(TaskCreateMixin, WorkTaskFields):
    sanitize_text = field_validator("client_name", "project_name", "notes")(strip_markup)


class WorkTaskRead(TaskReadMixin, WorkTaskFields):
    pass


# --- Food ---
class FoodCategory(str, Enum):
    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"
    DRINK = "Drink"


class FoodTaskFields(BaseTaskFields):
    food_name: str = Field(..., min_length=1, max_length=100)
    category: FoodCategory
    calories: int = Field(..., ge=0)
    protein: Optional[float] = Field(None, ge=0)
    carbs: Optional[float] = Field(None, ge=0)
    fats: Optional[float] = Field(None, ge=0)
    sugar: Optional[float] = Field(None, ge=0)
    fiber: Optional[float] = Field(None, ge=0)
    cost: Optional[float] = Field(None, ge=0)
    cook_time: Optional[int] = Field(None, ge=0)  # minutes
    health_rating: Optional[int] = Field(None, ge=1, le=5)
    ingredients: List[str] = Field(default_factory=list)
    mood_after_eating: Optional[str] = Field(None, max_length=100)
    source: Optional[str] = Field(None, max_length=50)
    logged_at: UtcDateTime = Field(default_factory=utcnow)


class FoodTaskCreate(TaskCreateMixin, FoodTaskFields):
    sanitize_text = field_validator("food_name", "ingredients", "mood_after_eating", "source")(strip_markup)


class FoodTaskRead(TaskReadMixin, FoodTaskFields):
    pass


# --- Homework ---
class AssignmentType(str, Enum):
    ESSAY = "essay"
    PROBLEM_SET = "problem_set"
    PROJECT = "project"
    READING = "reading"
    QUIZ = "quiz"
    EXAM = "exam"
    OTHER = "other"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class HomeworkTaskFields(BaseTaskFields):
    subject: str = Field(..., min_length=1, max_length=50)
    assignment_type: AssignmentType
    difficulty: Difficulty = Difficulty.MEDIUM
    estimated_study_time: Optional[int] = Field(None, ge=1)  # minutes
    actual_study_time: Optional[int] = Field(None, ge=1)  # minutes
    grade: Optional[str] = Field(None, max_length=10)
    materials: List[str] = Field(default_factory=list)
    study_notes: Optional[str] = Field(None, max_length=1000)
    is_group_work: bool = False
    group_members: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def require_due_date(self):
        if self.due_date is None:
            raise ValueError("Due date is required for homework tasks")
        return self


class HomeworkTaskCreate(TaskCreateMixin, HomeworkTaskFields):
    sanitize_text = field_validator("subject", "grade", "materials", "study_notes", "group_members")(strip_markup)


class HomeworkTaskRead(TaskReadMixin, HomeworkTaskFields):
    pass


# --- Email ---
class EmailType(str, Enum):
    PERSONAL = "personal"
    WORK = "work"
    NEWSLETTER = "newsletter"
    FOLLOW_UP = "follow_up"
    MEETING_REQUEST = "meeting_request"
    OTHER = "other"


class EmailTaskFields(BaseTaskFields):
    recipient: EmailStr
    recipient_name: Optional[str] = Field(None, max_length=100)
    subject: str = Field(..., min_length=1, max_length=200)
    email_type: EmailType = EmailType.OTHER
    email_priority: TaskPriority = TaskPriority.MEDIUM
    is_reply: bool = False
    original_email_id: Optional[str] = Field(None, max_length=100)
    email_attachments: List[str] = Field(default_factory=list)
    draft_content: Optional[str] = Field(None, max_length=5000)
    follow_up_date: Optional[UtcDateTime] = None
    email_template: Optional[str] = Field(None, max_length=100)
    sent_at: Optional[UtcDateTime] = None
    needs_follow_up: bool = False
    reply_received: bool = False


class EmailTaskCreate(TaskCreateMixin, EmailTaskFields):
    sanitize_text = field_validator(
        "recipient_name", "subject", "draft_content", "email_template", "email_attachments"
    )(strip_markup)


class EmailTaskRead(TaskReadMixin, EmailTaskFields):
    pass


# --- Meeting ---
class MeetingType(str, Enum):
    TEAM_MEETING = "team_meeting"
    ONE_ON_ONE = "one_on_one"
    CLIENT_MEETING = "client_meeting"
    INTERVIEW = "interview"
    PRESENTATION = "presentation"
    WORKSHOP = "workshop"
    OTHER = "other"


class MeetingOutcome(str, Enum):
    SUCCESSFUL = "successful"
    NEEDS_FOLLOW_UP = "needs_follow_up"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class ActionItem(CamelModel):
    description: str = Field(..., min_length=1, max_length=500)
    owner: Optional[str] = Field(None, max_length=100)
    completed: bool = False

    sanitize_text = field_validator("description", "owner")(strip_markup)


class MeetingTaskFields(BaseTaskFields):
    meeting_type: MeetingType
    attendees: List[str] = Field(..., min_length=1)
    attendee_emails: List[EmailStr] = Field(default_factory=list)
    meeting_room: Optional[str] = Field(None, max_length=100)
    meeting_link: Optional[UrlStr] = None
    agenda: List[str] = Field(default_factory=list)
    meeting_duration: int = Field(..., ge=5)  # minutes
    meeting_outcome: Optional[MeetingOutcome] = None
    recurring_meeting: bool = False
    meeting_series_id: Optional[str] = Field(None, max_length=100)
    action_items: List[ActionItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def require_start_date(self):
        if self.start_date is None:
            raise ValueError("Start date is required for meeting tasks")
        return self


class MeetingTaskCreate(TaskCreateMixin, MeetingTaskFields):
    sanitize_text = field_validator("attendees", "meeting_room", "agenda", "meeting_series_id")(strip_markup)


class MeetingTaskRead(TaskReadMixin, MeetingTaskFields):
    pass


# --- Project ---
class ProjectPhase(str, Enum):
    PLANNING = "planning"
    DEVELOPMENT = "development"
    TESTING = "testing"
    DEPLOYMENT = "deployment"
    MAINTENANCE = "maintenance"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProjectType(str, Enum):
    PERSONAL = "personal"
    WORK = "work"
    OPEN_SOURCE = "open_source"
    CLIENT_PROJECT = "client_project"
    INTERNAL_TOOL = "internal_tool"
    OTHER = "other"


class ProjectStatus(str, Enum):
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    DELAYED = "delayed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Milestone(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    due_date: Optional[UtcDateTime] = None
    completed: bool = False
    completed_at: Optional[UtcDateTime] = None

    sanitize_title = field_validator("title")(clean_title)


class ProjectTaskFields(BaseTaskFields):
    project_name: str = Field(..., min_length=1, max_length=100)
    project_phase: ProjectPhase = ProjectPhase.PLANNING
    project_type: ProjectType = ProjectType.OTHER
    team_members: List[str] = Field(default_factory=list)
    budget: Optional[float] = Field(None, ge=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    project_status: ProjectStatus = ProjectStatus.ON_TRACK
    repository_link: Optional[UrlStr] = None
    live_url: Optional[UrlStr] = None
    client_name: Optional[str] = Field(None, max_length=100)
    client_contact: Optional[str] = Field(None, max_length=100)
    milestones: List[Milestone] = Field(default_factory=list)


class ProjectTaskCreate(TaskCreateMixin, ProjectTaskFields):
    sanitize_text = field_validator("project_name", "team_members", "client_name", "client_contact")(strip_markup)


class ProjectTaskRead(TaskReadMixin, ProjectTaskFields):
    pass


# --- Health ---
class HealthCategory(str, Enum):
    EXERCISE = "exercise"
    MEDICAL = "medical"
    MENTAL_HEALTH = "mental_health"
    NUTRITION = "nutrition"
    SLEEP = "sleep"
    MEDICATION = "medication"
    CHECKUP = "checkup"
    THERAPY = "therapy"
    OTHER = "other"


class HealthMood(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEUTRAL = "neutral"
    POOR = "poor"
    TERRIBLE = "terrible"


class HealthTaskFields(BaseTaskFields):
    health_category: HealthCategory
    is_recurring: bool = False
    health_notes: Optional[str] = Field(None, max_length=1000)
    mood: Optional[HealthMood] = None
    energy_level: Optional[int] = Field(None, ge=1, le=10)
    pain_level: Optional[int] = Field(None, ge=0, le=10)


class HealthTaskCreate(TaskCreateMixin, HealthTaskFields):
    sanitize_text = field_validator("health_notes")(strip_markup)


class HealthTaskRead(TaskReadMixin, HealthTaskFields):
    pass


# --- Personal ---
class PersonalCategory(str, Enum):
    SELF_CARE = "self_care"
    HOBBY = "hobby"
    LEARNING = "learning"
    FITNESS = "fitness"
    SOCIAL = "social"
    FAMILY = "family"
    FINANCE = "finance"
    HOME = "home"
    TRAVEL = "travel"
    OTHER = "other"


class PersonalMood(str, Enum):
    EXCITED = "excited"
    MOTIVATED = "motivated"
    NEUTRAL = "neutral"
    TIRED = "tired"
    STRESSED = "stressed"
    HAPPY = "happy"
    SAD = "sad"
    ANXIOUS = "anxious"


class PersonalTaskFields(BaseTaskFields):
    personal_category: PersonalCategory
    cost: Optional[float] = Field(None, ge=0)
    is_recurring: bool = False
    mood: Optional[PersonalMood] = None
    notes: Optional[str] = Field(None, max_length=1000)


class PersonalTaskCreate(TaskCreateMixin, PersonalTaskFields):
    sanitize_text = field_validator("notes")(strip_markup)


class PersonalTaskRead(TaskReadMixin, PersonalTaskFields):
    pass
