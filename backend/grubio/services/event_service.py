"""Event lifecycle: creation with a unique join code, and joining by code or QR.

Join state machine (per attempt):
    Lookup -> Membership check -> Append -> caller navigates to the event
A lookup miss raises NotFoundError; an existing attendee short-circuits to
success without writing; the append is a set-union insert.
"""
import logging
from dataclasses import dataclass
from datetime import date as dt_date
from typing import Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from grubio.config import settings
from grubio.errors import JoinCodeExhaustedError, NotFoundError, PermissionDeniedError, StoreError, ValidationError
from grubio.models.attendee import EventAttendee
from grubio.models.event import Event
from grubio.realtime.live_query import event_topic, live_queries, user_events_topic
from grubio.services.join_code import allocate_join_code, is_join_code_unique, normalize_join_code

logger = logging.getLogger(__name__)

QR_PREFIX = "GRUBIO:"


@dataclass
class JoinResult:
    event: Event
    already_joined: bool

    @property
    def message(self) -> str:
        if self.already_joined:
            return "You're already part of this event!"
        return f'You\'ve joined "{self.event.title}"!'


def _parse_event_date(value: Union[str, dt_date, None]) -> dt_date:
    if isinstance(value, dt_date):
        return value
    try:
        return dt_date.fromisoformat((value or "").strip())
    except ValueError:
        raise ValidationError("Date must be in YYYY-MM-DD format.")


def create_event(
    db: Session,
    title: str,
    description: str,
    date: Union[str, dt_date],
    created_by: str,
) -> Event:
    """Create an event owned by ``created_by``, who becomes its first attendee."""
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description or not date:
        raise ValidationError("Please fill in all fields.")
    event_date = _parse_event_date(date)

    attempts = settings.JOIN_CODE_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        join_code = allocate_join_code(db)
        event = Event(
            title=title,
            description=description,
            date=event_date,
            created_by=created_by,
            join_code=join_code,
        )
        event.attendees.append(EventAttendee(user_id=created_by))
        db.add(event)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if is_join_code_unique(db, join_code):
                raise StoreError(f"Could not create event: {exc.orig}")
            # Another creator took the code between our check and insert.
            logger.warning("Join code %s taken concurrently (attempt %d/%d)", join_code, attempt, attempts)
            continue
        db.refresh(event)
        logger.info("Created event '%s' (%s) with join code %s by %s", title, event.event_id, join_code, created_by)
        live_queries.publish(event_topic(event.event_id))
        live_queries.publish(user_events_topic(created_by))
        return event

    raise JoinCodeExhaustedError(f"Could not insert an event with a unique join code after {attempts} attempts")


def get_event(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.event_id == event_id).first()
    if not event:
        raise NotFoundError(f"No event found for id: {event_id}")
    return event


def require_attendee(db: Session, event_id: str, user_id: str) -> Event:
    """The event, if ``user_id`` attends it. Non-attendees get PermissionDeniedError."""
    event = get_event(db, event_id)
    if not event.has_attendee(user_id):
        raise PermissionDeniedError("You are not part of this event.")
    return event


def list_events_for_user(db: Session, user_id: str) -> list[Event]:
    """Events whose attendee set contains ``user_id``, latest date first."""
    return (
        db.query(Event)
        .join(EventAttendee)
        .filter(EventAttendee.user_id == user_id)
        .order_by(Event.date.desc(), Event.created_at.desc())
        .all()
    )


def parse_qr_payload(payload: str) -> str:
    """Strip the ``GRUBIO:`` prefix if present; otherwise the payload is the code."""
    payload = payload or ""
    if payload.startswith(QR_PREFIX):
        return payload[len(QR_PREFIX):]
    return payload


def _join(db: Session, code: str, user_id: str, not_found_message: str) -> JoinResult:
    normalized = normalize_join_code(code)
    if not normalized:
        raise ValidationError("Please enter a join code.")

    event = db.query(Event).filter(Event.join_code == normalized).first()
    if not event:
        raise NotFoundError(not_found_message)

    if event.has_attendee(user_id):
        logger.info("User %s already attends event %s", user_id, event.event_id)
        return JoinResult(event=event, already_joined=True)

    db.add(EventAttendee(event_id=event.event_id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent join from the same user landed first; the set already holds them.
        db.rollback()
        db.refresh(event)
        return JoinResult(event=event, already_joined=True)
    db.refresh(event)
    logger.info("User %s joined event %s via code %s", user_id, event.event_id, normalized)
    live_queries.publish(event_topic(event.event_id))
    live_queries.publish(user_events_topic(user_id))
    return JoinResult(event=event, already_joined=False)


def join_event_by_code(db: Session, code: str, user_id: str) -> JoinResult:
    return _join(db, code, user_id, "No event found with that join code. Please check and try again.")


def join_event_by_qr(db: Session, payload: str, user_id: str) -> JoinResult:
    return _join(db, parse_qr_payload(payload), user_id, "No event found with that QR code.")


def share_event(event: Event) -> dict[str, str]:
    """Join code, QR payload and share message for an event."""
    return {
        "join_code": event.join_code,
        "qr_payload": f"{QR_PREFIX}{event.join_code}",
        "message": f'Join my event "{event.title}" on Grub.io! Use code: {event.join_code}',
    }
