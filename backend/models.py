import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from backend.database import Base

# -----------------------------
# Перечисления
# -----------------------------
PRIORITIES = ("low", "medium", "high")
DEFAULT_PRIORITY = "medium"
PRIORITY_RANK = {"low": 0, "medium": 1, "high": 2}

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_DELETED = "deleted"
STATUSES = (STATUS_PENDING, STATUS_COMPLETED, STATUS_DELETED)
ACTIVE_STATUSES = (STATUS_PENDING, STATUS_COMPLETED)

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# -----------------------------
# Модели БД
# -----------------------------
class User(Base):
    __tablename__ = "users"
    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    tasks = relationship("Task", back_populates="owner")


class Task(Base):
    __tablename__ = "tasks"
    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(16), nullable=False, default=STATUS_PENDING)
    priority = Column(String(16), nullable=False, default=DEFAULT_PRIORITY)
    owner_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    owner = relationship("User", back_populates="tasks")

    # Основной запрос дашборда: задачи владельца по статусу, новые первыми
    __table_args__ = (Index("ix_tasks_owner_status_created", "owner_id", "status", "created_at"),)

    def __repr__(self):
        return f"<Task {self.id} {self.status}/{self.priority}>"
