"""Dependency injection for FastAPI."""

from fastapi import HTTPException, Request

from auth.database import UserDatabase
from auth.registration import RegistrationService


def get_user_db(request: Request) -> UserDatabase:
    """Get the user database from app state."""
    user_db = getattr(request.app.state, "user_db", None)
    if not user_db:
        raise HTTPException(status_code=503, detail="Database not configured")
    return user_db


def get_registration(request: Request) -> RegistrationService:
    """Get the registration service from app state."""
    registration = getattr(request.app.state, "registration", None)
    if not registration:
        raise HTTPException(status_code=503, detail="Registration not configured")
    return registration
