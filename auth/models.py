"""Pydantic models for users, tasks and pending registrations."""

import unicodedata
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, EmailStr, Field, field_validator


def normalize_email(email: str) -> str:
    """Canonical key for an address: NFC-normalised, stripped and lower-cased."""
    return unicodedata.normalize("NFC", email.strip()).lower()


def _new_task_id() -> str:
    return str(uuid.uuid4())


class Task(BaseModel):
    """A single task owned by a user."""

    id: str = Field(default_factory=_new_task_id)
    title: str = ""
    description: str = ""
    deadline: datetime
    complete: bool = False

    # MongoDB hands back naive datetimes unless the client is tz-aware
    @field_validator("deadline")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class User(BaseModel):
    """User document stored in MongoDB."""

    email: EmailStr
    password: str  # salted hash, see auth.passwords
    tasks: list[Task] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def canonical_email(cls, v: str) -> str:
        return normalize_email(v)

    def find_task(self, task_id: str) -> "Task | None":
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


@dataclass
class PendingRegistration:
    """Unconfirmed registration held in memory until the code is confirmed."""

    email: str
    code: str
    password_hash: str
    expires_at: datetime


class RegistrationOutcome(str, Enum):
    """Result of a confirmation attempt."""

    CONFIRMED = "confirmed"
    EXPIRED = "expired"
    INVALID_CODE = "invalid_code"
    NOT_FOUND = "not_found"
    ALREADY_REGISTERED = "already_registered"
