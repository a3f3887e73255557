from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float, ForeignKey, JSON
from sqlalchemy.orm import declared_attr

from database import Base, utcnow
from encryption import EncryptedString


class BaseTaskMixin:
    """Columns every task category shares. Each category table repeats them verbatim."""

    id = Column(Integer, primary_key=True, index=True)
    task_type = Column(String(20), nullable=False)
    title = Column(String(200), nullable=False)
    # Sensitive free text is encrypted at rest
    description = Column(EncryptedString)
    priority = Column(String(10), default="medium", nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)
    due_date = Column(DateTime)
    start_date = Column(DateTime)
    estimated_duration = Column(Integer)
    actual_duration = Column(Integer)
    xp_value = Column(Integer, default=0, nullable=False)
    tags = Column(JSON, default=list)
    location = Column(String(200))
    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @declared_attr
    def assignee_id(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, title='{self.title}', status='{self.status}')>"


class WorkTaskDB(BaseTaskMixin, Base):
    __tablename__ = "work_tasks"
    work_category = Column(String(20), nullable=False, default="other")
    is_billable = Column(Boolean, default=False, nullable=False)
    hourly_rate = Column(Float)
    client_name = Column(String(100))
    project_name = Column(String(100))
    notes = Column(EncryptedString)


class FoodTaskDB(BaseTaskMixin, Base):
    __tablename__ = "food_tasks"
    food_name = Column(String(100), nullable=False)
    category = Column(String(20), nullable=False)
    calories = Column(Integer, nullable=False)
    protein = Column(Float)
    carbs = Column(Float)
    fats = Column(Float)
    sugar = Column(Float)
    fiber = Column(Float)
    cost = Column(Float)
    cook_time = Column(Integer)
    health_rating = Column(Integer)
    ingredients = Column(JSON, default=list)
    mood_after_eating = Column(String(100))
    source = Column(String(50))
    logged_at = Column(DateTime, default=utcnow, nullable=False)


class HomeworkTaskDB(BaseTaskMixin, Base):
    __tablename__ = "homework_tasks"
    subject = Column(String(50), nullable=False)
    assignment_type = Column(String(20), nullable=False)
    difficulty = Column(String(10), default="medium")
    estimated_study_time = Column(Integer)
    actual_study_time = Column(Integer)
    grade = Column(String(10))
    materials = Column(JSON, default=list)
    study_notes = Column(EncryptedString)
    is_group_work = Column(Boolean, default=False, nullable=False)
    group_members = Column(JSON, default=list)


class EmailTaskDB(BaseTaskMixin, Base):
    __tablename__ = "email_tasks"
    recipient = Column(String, nullable=False)
    recipient_name = Column(String(100))
    subject = Column(String(200), nullable=False)
    email_type = Column(String(20), default="other", nullable=False)
    email_priority = Column(String(10), default="medium", nullable=False)
    is_reply = Column(Boolean, default=False, nullable=False)
    original_email_id = Column(String(100))
    email_attachments = Column(JSON, default=list)
    draft_content = Column(EncryptedString)
    follow_up_date = Column(DateTime)
    email_template = Column(String(100))
    sent_at = Column(DateTime)
    needs_follow_up = Column(Boolean, default=False, nullable=False)
    reply_received = Column(Boolean, default=False, nullable=False)


class MeetingTaskDB(BaseTaskMixin, Base):
    __tablename__ = "meeting_tasks"
    meeting_type = Column(String(20), nullable=False)
    attendees = Column(JSON, default=list)
    attendee_emails = Column(JSON, default=list)
    meeting_room = Column(String(100))
    meeting_link = Column(String)
    agenda = Column(JSON, default=list)
    meeting_duration = Column(Integer, nullable=False)
    meeting_outcome = Column(String(20))
    recurring_meeting = Column(Boolean, default=False, nullable=False)
    meeting_series_id = Column(String(100))
    action_items = Column(JSON, default=list)


class ProjectTaskDB(BaseTaskMixin, Base):
    __tablename__ = "project_tasks"
    project_name = Column(String(100), nullable=False)
    project_phase = Column(String(20), default="planning", nullable=False)
    project_type = Column(String(20), default="other", nullable=False)
    team_members = Column(JSON, default=list)
    budget = Column(Float)
    actual_cost = Column(Float)
    project_status = Column(String(20), default="on_track", nullable=False)
    repository_link = Column(String)
    live_url = Column(String)
    client_name = Column(String(100))
    client_contact = Column(String(100))
    milestones = Column(JSON, default=list)


class HealthTaskDB(BaseTaskMixin, Base):
    __tablename__ = "health_tasks"
    health_category = Column(String(20), nullable=False)
    is_recurring = Column(Boolean, default=False, nullable=False)
    health_notes = Column(EncryptedString)
    mood = Column(String(20))
    energy_level = Column(Integer)
    pain_level = Column(Integer)


class PersonalTaskDB(BaseTaskMixin, Base):
    __tablename__ = "personal_tasks"
    personal_category = Column(String(20), nullable=False)
    cost = Column(Float)
    is_recurring = Column(Boolean, default=False, nullable=False)
    mood = Column(String(20))
    notes = Column(EncryptedString)
