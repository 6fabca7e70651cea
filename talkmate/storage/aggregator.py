"""Cross-entity statistics.

Every call rescans the entity directories. The ``predictions`` block is a
set of fixed multipliers for the dashboard, not a forecast anyone should
plan capacity with.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel

from .models import now_ms

if TYPE_CHECKING:
    from .database import Database

HOUR_MS = 3_600_000


class UserStats(BaseModel):
    total: int = 0
    active_24h: int = 0
    active_7d: int = 0
    new_24h: int = 0


class TicketStats(BaseModel):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    closed: int = 0
    urgent: int = 0
    avg_response_minutes: float = 0.0


class FavoriteStats(BaseModel):
    total: int = 0
    avg_per_user: float = 0.0


class Predictions(BaseModel):
    user_growth_next_week: int = 0
    ticket_volume_next_day: int = 0
    peak_activity_hour: int = 0
    recommended_response_time: str = "0ms"


class PerformanceStats(BaseModel):
    cache_entries: int = 0
    predictive_entries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    tracked_keys: int = 0
    predictions: int = 0
    uptime_seconds: int = 0


class Stats(BaseModel):
    users: UserStats
    tickets: TicketStats
    favorites: FavoriteStats
    predictions: Predictions
    performance: PerformanceStats
    generated_at: int


class Aggregator:
    def __init__(self, db: "Database") -> None:
        self.db = db

    def user_stats(self, at_ms: int) -> UserStats:
        # The directory listing is authoritative; activity comes from readable records
        stats = UserStats(total=self.db.store.count("users"))
        day_ago = at_ms - 24 * HOUR_MS
        week_ago = at_ms - 168 * HOUR_MS
        for user in self.db.scan("users"):
            if user.last_seen > day_ago:
                stats.active_24h += 1
            if user.last_seen > week_ago:
                stats.active_7d += 1
            if user.first_seen > day_ago:
                stats.new_24h += 1
        return stats

    def ticket_stats(self) -> TicketStats:
        stats = TicketStats(total=self.db.store.count("tickets"))
        total_response = 0
        responded = 0
        for ticket in self.db.scan("tickets"):
            if ticket.status == "open":
                stats.open += 1
            elif ticket.status == "in-progress":
                stats.in_progress += 1
            else:
                stats.closed += 1
            if ticket.priority == "urgent":
                stats.urgent += 1
            if ticket.replies:
                total_response += ticket.replies[0].timestamp - ticket.created_at
                responded += 1
        if responded:
            stats.avg_response_minutes = total_response / responded / 1000 / 60
        return stats

    def favorite_stats(self, user_total: int) -> FavoriteStats:
        total = self.db.store.count("favorites")
        return FavoriteStats(
            total=total,
            avg_per_user=total / user_total if user_total else 0.0,
        )

    def predictions(self, users: int, tickets: int, at_ms: int) -> Predictions:
        hour = datetime.fromtimestamp(at_ms / 1000).hour
        return Predictions(
            user_growth_next_week=round(users * 1.1),
            ticket_volume_next_day=round(tickets * 1.05),
            peak_activity_hour=(hour + 1) % 24,
            recommended_response_time=f"{round(users * 0.5)}ms",
        )

    def stats(self, at_ms: Optional[int] = None) -> Stats:
        now = at_ms if at_ms is not None else now_ms()
        users = self.user_stats(now)
        tickets = self.ticket_stats()
        cache = self.db.cache
        return Stats(
            users=users,
            tickets=tickets,
            favorites=self.favorite_stats(users.total),
            predictions=self.predictions(users.total, tickets.total, now),
            performance=PerformanceStats(
                cache_entries=len(cache),
                predictive_entries=cache.predicted_size,
                cache_hits=cache.hits,
                cache_misses=cache.misses,
                tracked_keys=len(self.db.tracker),
                predictions=len(self.db.predictor),
                uptime_seconds=max(0, (now - self.db.started_at) // 1000),
            ),
            generated_at=now,
        )
