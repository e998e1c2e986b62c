"""Pydantic schemas for users and the identity provider."""
from datetime import datetime
from pydantic import BaseModel


class SignUpRequest(BaseModel):
    email: str = ""
    password: str = ""
    display_name: str = ""


class SignInRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserIdentity(BaseModel):
    """What the identity provider hands back after sign-in or sign-up."""

    user_id: str
    email: str
    display_name: str
    token: str


class UserOut(BaseModel):
    user_id: str
    display_name: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}
