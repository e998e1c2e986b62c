"""Event analytics: derived on demand from the full post list, never stored."""
import math
from typing import Iterable

from grubio.schemas.analytics import EventAnalytics, FoodChampion

# Fixed placeholder weight per post; not a measurement.
FOOD_WEIGHT_LBS_PER_POST = 0.5
CHAMPION_COUNT = 3


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_event_analytics(posts: Iterable, attendee_count: int = 0) -> EventAnalytics:
    """Aggregate counts, percent saved and top posters over every post of one event.

    ``posts`` may be ORM rows or PostOut snapshots. Ties between champions keep
    the order in which posters first appear in ``posts``.
    """
    posts = list(posts)
    total = len(posts)
    claimed = sum(1 for p in posts if p.claimed_by)
    completed = sum(1 for p in posts if p.completed)
    percent_saved = _round_half_up(claimed / total * 100) if total > 0 else 0

    tallies: dict[str, dict] = {}
    for post in posts:
        entry = tallies.setdefault(post.user_id, {
            "user_id": post.user_id,
            "name": post.user_name or post.user_email or "Anonymous",
            "count": 0,
        })
        entry["count"] += 1
    ranked = sorted(tallies.values(), key=lambda e: e["count"], reverse=True)

    return EventAnalytics(
        total_posts=total,
        claimed_posts=claimed,
        completed_posts=completed,
        active_posts=total - completed,
        percent_saved=percent_saved,
        food_waste_lbs=total * FOOD_WEIGHT_LBS_PER_POST,
        total_attendees=attendee_count,
        food_champions=[FoodChampion(**e) for e in ranked[:CHAMPION_COUNT]],
    )
