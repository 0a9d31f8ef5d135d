from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel

# -----------------------------
# Pydantic-схемы
# -----------------------------
class UserCreate(BaseModel):
    username: str
    password: str
    confirm_password: Optional[str] = None


class UserOut(BaseModel):
    id: str
    username: str


class Token(BaseModel):
    access_token: str
    token_type: str
    username: str


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = ""
    priority: Any = None  # нераспознанный приоритет заменяется на medium


class TaskUpdate(BaseModel):
    title: str
    description: Optional[str] = None
    priority: Any = None
    status: Optional[str] = None


class TaskOut(BaseModel):
    id: str
    title: str
    description: str
    status: str
    priority: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class Stats(BaseModel):
    total: int
    pending: int
    completed: int


class Dashboard(BaseModel):
    username: str
    filter: str
    tasks: List[TaskOut]
    stats: Stats
