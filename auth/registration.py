"""Registration by emailed activation code.

A registration moves NONE -> PENDING on start, then to CONFIRMED or EXPIRED
on the first confirmation attempt. Every confirmation attempt consumes the
pending entry, whatever the outcome.
"""

import asyncio
import hmac
import logging
import secrets
from datetime import timedelta

from email_validator import EmailNotValidError, validate_email

from .database import UserDatabase, UserExistsError
from .email_service import EmailService
from .models import RegistrationOutcome, User, normalize_email
from .passwords import hash_password
from .sessions import SessionTable

logger = logging.getLogger(__name__)


class InvalidEmailError(ValueError):
    """Raised when a registration email is not a valid address."""


class InvalidPasswordError(ValueError):
    """Raised when a registration password is empty."""


class RegistrationService:
    """Issues, expires and consumes activation codes."""

    CODE_BYTES = 8  # 16 hex chars

    def __init__(
        self,
        user_db: UserDatabase,
        email_service: EmailService,
        sessions: SessionTable,
        code_ttl_seconds: int = 30,
    ):
        self._user_db = user_db
        self._email_service = email_service
        self._sessions = sessions
        self._code_ttl_seconds = code_ttl_seconds

    def _generate_activation_code(self) -> str:
        """Generate a cryptographically random hex activation code."""
        return secrets.token_hex(self.CODE_BYTES)

    @staticmethod
    def validate_email_address(email: str) -> str:
        """Validate an address syntactically and return its canonical key."""
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError as e:
            raise InvalidEmailError(str(e)) from e
        return normalize_email(email)

    async def start(self, email: str, password: str) -> str:
        """
        Start a registration and email the activation code.
        Returns the code. Any earlier pending code for the email stops working.
        """
        email = self.validate_email_address(email)
        if not password:
            raise InvalidPasswordError("Password must not be empty")

        # PBKDF2 is slow; keep it off the event loop
        password_hash = await asyncio.to_thread(hash_password, password)
        code = self._generate_activation_code()
        self._sessions.put(
            email,
            code,
            password_hash,
            timedelta(seconds=self._code_ttl_seconds),
        )
        logger.info(f"Registration started for {email}")

        sent = await asyncio.to_thread(
            self._email_service.send_activation_code,
            email,
            code,
            self._code_ttl_seconds,
        )
        if not sent:
            logger.warning(f"Activation email for {email} was not delivered")

        return code

    async def confirm(self, email: str, code: str) -> RegistrationOutcome:
        """Consume the pending registration for email and report the outcome."""
        email = normalize_email(email)
        entry = self._sessions.pop(email)

        if entry is None:
            logger.info(f"No pending registration for {email}")
            return RegistrationOutcome.NOT_FOUND

        if self._sessions.now() > entry.expires_at:
            logger.info(f"Activation code for {email} expired")
            return RegistrationOutcome.EXPIRED

        if not hmac.compare_digest(entry.code.encode(), code.strip().encode()):
            logger.info(f"Invalid activation code for {email}")
            return RegistrationOutcome.INVALID_CODE

        user = User(email=email, password=entry.password_hash, tasks=[])
        try:
            await self._user_db.insert_user(user)
        except UserExistsError:
            logger.info(f"{email} is already registered")
            return RegistrationOutcome.ALREADY_REGISTERED

        logger.info(f"Registration confirmed for {email}")
        return RegistrationOutcome.CONFIRMED
