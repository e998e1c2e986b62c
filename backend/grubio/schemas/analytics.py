"""Pydantic schemas for the event analytics dashboard."""
from pydantic import BaseModel


class FoodChampion(BaseModel):
    user_id: str
    name: str
    count: int


class EventAnalytics(BaseModel):
    total_posts: int = 0
    claimed_posts: int = 0
    completed_posts: int = 0
    active_posts: int = 0
    percent_saved: int = 0
    food_waste_lbs: float = 0.0
    total_attendees: int = 0
    food_champions: list[FoodChampion] = []
