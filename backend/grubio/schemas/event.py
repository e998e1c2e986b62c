"""Pydantic schemas for Events."""
from __future__ import annotations
import datetime as dt
from pydantic import BaseModel, field_validator


class EventCreate(BaseModel):
    # Blank fields are rejected by the service with a readable message.
    title: str = ""
    description: str = ""
    date: str = ""  # YYYY-MM-DD


class EventOut(BaseModel):
    event_id: str
    title: str
    description: str
    date: dt.date
    created_by: str
    join_code: str
    created_at: dt.datetime
    attendees: list[str] = []

    model_config = {"from_attributes": True}

    @field_validator("attendees", mode="before")
    @classmethod
    def _attendee_ids(cls, value):
        return [getattr(a, "user_id", a) for a in value or []]


class JoinByCodeRequest(BaseModel):
    join_code: str = ""


class JoinByQRRequest(BaseModel):
    payload: str = ""


class JoinEventOut(BaseModel):
    event: EventOut
    already_joined: bool
    message: str


class ShareOut(BaseModel):
    join_code: str
    qr_payload: str
    message: str
