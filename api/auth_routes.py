"""Registration and account routes."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from auth.database import UserDatabase
from auth.models import RegistrationOutcome
from auth.passwords import hash_password, verify_password
from auth.registration import (
    InvalidEmailError,
    InvalidPasswordError,
    RegistrationService,
)
from .dependencies import get_registration, get_user_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

# Confirmation outcome -> (status code, body)
CONFIRM_RESPONSES = {
    RegistrationOutcome.CONFIRMED: (200, "true"),
    RegistrationOutcome.EXPIRED: (410, "time out"),
    RegistrationOutcome.INVALID_CODE: (400, "invalid code"),
    RegistrationOutcome.NOT_FOUND: (400, "invalid code"),
    RegistrationOutcome.ALREADY_REGISTERED: (409, "already registered"),
}


@router.get("/register", response_class=PlainTextResponse)
async def register(
    email: str,
    password: str,
    registration: RegistrationService = Depends(get_registration),
):
    """Start registration and email an activation code."""
    try:
        await registration.start(email, password)
    except InvalidEmailError:
        logger.info(f"Rejected registration for invalid email {email!r}")
        raise HTTPException(status_code=400, detail="Invalid email")
    except InvalidPasswordError:
        raise HTTPException(status_code=400, detail="Invalid password")

    return "true"


@router.get("/regFinish", response_class=PlainTextResponse)
async def registration_finish(
    email: str,
    code: str,
    registration: RegistrationService = Depends(get_registration),
):
    """Confirm a registration with the emailed code."""
    outcome = await registration.confirm(email, code)
    status_code, body = CONFIRM_RESPONSES[outcome]
    return PlainTextResponse(body, status_code=status_code)


@router.get("/login", response_class=PlainTextResponse)
async def login(
    email: str,
    password: str,
    user_db: UserDatabase = Depends(get_user_db),
):
    """Check credentials. Answers "true" or "false"."""
    user = await user_db.get_user_by_email(email)
    if not user:
        return "false"
    if not await asyncio.to_thread(verify_password, password, user.password):
        return "false"
    return "true"


@router.get("/delUser")
async def delete_user(email: str, user_db: UserDatabase = Depends(get_user_db)):
    """Delete a user and all their tasks."""
    if not await user_db.delete_user(email):
        raise HTTPException(status_code=404, detail="User not found")
    logger.info(f"User {email} deleted")
    return {"status": "ok"}


@router.get("/changePassword")
async def change_password(
    email: str,
    new_password: str,
    user_db: UserDatabase = Depends(get_user_db),
):
    """Replace a user's password."""
    if not new_password:
        raise HTTPException(status_code=400, detail="Invalid password")

    password_hash = await asyncio.to_thread(hash_password, new_password)
    if not await user_db.update_password(email, password_hash):
        raise HTTPException(status_code=404, detail="User not found")
    logger.info(f"Password changed for {email}")
    return {"status": "ok"}
