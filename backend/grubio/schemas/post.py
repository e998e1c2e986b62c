"""Pydantic schemas for food Posts."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class PostCreate(BaseModel):
    title: str = ""
    description: str = ""
    location: Optional[str] = None
    image_url: Optional[str] = None


class PostOut(BaseModel):
    post_id: str
    event_id: str
    title: str
    description: str
    location: Optional[str] = None
    image_url: Optional[str] = None
    user_id: str
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    claimed_by: Optional[str] = None
    claimed_by_name: Optional[str] = None
    claimed_by_email: Optional[str] = None
    completed: bool
    created_at: datetime

    model_config = {"from_attributes": True}
