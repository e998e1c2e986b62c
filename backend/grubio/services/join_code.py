"""Join-code allocation.

Codes are 6 characters drawn uniformly from A-Z0-9 with a cryptographic
random source. Allocation is generate-and-check with a bounded number of
attempts; the unique index on ``events.join_code`` is what actually settles
a race between two concurrent creators (see ``event_service.create_event``).
"""
import logging
import secrets
import string
from typing import Optional

from sqlalchemy.orm import Session

from grubio.config import settings
from grubio.errors import JoinCodeExhaustedError
from grubio.models.event import Event, JOIN_CODE_LENGTH

logger = logging.getLogger(__name__)

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_join_code() -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))


def normalize_join_code(code: str) -> str:
    """Trim and upper-case user input so lookups are case-insensitive."""
    return (code or "").strip().upper()


def is_join_code_unique(db: Session, code: str) -> bool:
    return db.query(Event.event_id).filter(Event.join_code == code).first() is None


def allocate_join_code(db: Session, max_attempts: Optional[int] = None) -> str:
    """Return a code no existing event uses, or raise JoinCodeExhaustedError."""
    attempts = max_attempts if max_attempts is not None else settings.JOIN_CODE_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        code = generate_join_code()
        if is_join_code_unique(db, code):
            return code
        logger.warning("Join code collision on attempt %d/%d", attempt, attempts)
    raise JoinCodeExhaustedError(f"Could not allocate a unique join code after {attempts} attempts")
