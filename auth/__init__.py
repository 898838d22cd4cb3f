"""Users, registration and email for the tasker backend."""

from .models import User, Task, PendingRegistration, RegistrationOutcome
from .database import UserDatabase, UserExistsError
from .email_service import EmailService
from .sessions import SessionTable
from .registration import (
    RegistrationService,
    InvalidEmailError,
    InvalidPasswordError,
)

__all__ = [
    "User",
    "Task",
    "PendingRegistration",
    "RegistrationOutcome",
    "UserDatabase",
    "UserExistsError",
    "EmailService",
    "SessionTable",
    "RegistrationService",
    "InvalidEmailError",
    "InvalidPasswordError",
]
