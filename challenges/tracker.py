"""Challenge completion tracking: history, streaks and XP."""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from core.errors import ChallengeNotFoundError
from core.settings import ChallengeSettings, get_settings
from core.telemetry import TelemetryClient, TelemetryMixin

from .models import Challenge, ChallengeProof


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TrackedChallenge:
    user_id: str
    challenge: Challenge
    issued_at: datetime = field(default_factory=_utc_now)

    @property
    def completed(self) -> bool:
        return self.challenge.completed


@dataclass(frozen=True)
class ProgressSnapshot:
    user_id: str
    total_xp: int
    level: int
    next_level_xp: int
    current_streak: int
    completed_count: int
    issued_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "total_xp": self.total_xp,
            "level": self.level,
            "next_level_xp": self.next_level_xp,
            "xp_to_next_level": self.next_level_xp - self.total_xp,
            "current_streak": self.current_streak,
            "completed_count": self.completed_count,
            "issued_count": self.issued_count,
        }


def streak_from_dates(days: List[date], today: date) -> int:
    """Consecutive days with a completion, ending today or yesterday."""
    completed = set(days)
    cursor = today if today in completed else today - timedelta(days=1)
    streak = 0
    while cursor in completed:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


class ChallengeTracker(ABC):
    """Abstract store for issued and completed challenges."""

    @abstractmethod
    async def record_issued(self, user_id: str, challenge: Challenge) -> TrackedChallenge:
        """Remember a challenge handed to *user_id*."""

    @abstractmethod
    async def complete_challenge(
        self,
        challenge_id: str,
        *,
        user_id: Optional[str] = None,
        proof: Optional[ChallengeProof] = None,
    ) -> Challenge:
        """Mark a challenge complete and return the completed record."""

    @abstractmethod
    async def history(self, user_id: str, days: Optional[int] = None) -> List[Challenge]:
        """Challenges issued to *user_id* within the window, newest first."""

    @abstractmethod
    async def recent_challenge_ids(self, user_id: str, days: Optional[int] = None) -> List[str]:
        """Ids of challenges completed within the window."""

    @abstractmethod
    async def current_streak(self, user_id: str) -> int:
        """Consecutive completion days ending today or yesterday."""

    @abstractmethod
    async def progress(self, user_id: str) -> ProgressSnapshot:
        """XP, level and streak for *user_id*."""


@dataclass
class UserTotals:
    """Running counters that outlive pruned challenge records."""

    xp: int = 0
    completed: int = 0
    issued: int = 0
    completion_days: Set[date] = field(default_factory=set)


class InMemoryChallengeTracker(TelemetryMixin, ChallengeTracker):
    """Process-local tracker suitable for tests and single-instance deployments.

    Challenge records older than ``retention_days`` (the history window by
    default) are dropped whenever a new challenge is issued. XP, counts and
    completion days are kept per user so progress and streaks are unaffected.
    """

    def __init__(
        self,
        settings: Optional[ChallengeSettings] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        retention_days: Optional[int] = None,
        telemetry_client: Optional[TelemetryClient] = None,
    ) -> None:
        TelemetryMixin.__init__(self, telemetry_client)
        self.settings = settings or get_settings().challenges
        self.clock = clock or _utc_now
        self.retention_days = self.settings.history_window_days if retention_days is None else retention_days
        self._challenges: Dict[str, TrackedChallenge] = {}
        self._totals: Dict[str, UserTotals] = {}
        self._lock = asyncio.Lock()

    async def record_issued(self, user_id: str, challenge: Challenge) -> TrackedChallenge:
        now = self.clock()
        entry = TrackedChallenge(user_id=user_id, challenge=challenge, issued_at=now)
        async with self._lock:
            self._prune(now - timedelta(days=self.retention_days))
            self._challenges[challenge.id] = entry
            self._totals.setdefault(user_id, UserTotals()).issued += 1
        return entry

    async def complete_challenge(
        self,
        challenge_id: str,
        *,
        user_id: Optional[str] = None,
        proof: Optional[ChallengeProof] = None,
    ) -> Challenge:
        async with self._lock:
            entry = self._challenges.get(challenge_id)
            if entry is None or (user_id is not None and entry.user_id != user_id):
                raise ChallengeNotFoundError(
                    f"Unknown challenge '{challenge_id}'",
                    challenge_id=challenge_id,
                )
            if entry.completed:
                return entry.challenge
            entry.challenge = entry.challenge.complete(proof=proof, at=self.clock())
            completed = entry.challenge
            totals = self._totals.setdefault(entry.user_id, UserTotals())
            totals.xp += completed.xp_reward
            totals.completed += 1
            totals.completion_days.add(completed.completed_at.date())

        self.emit_event(
            "challenge.completed",
            user_id=entry.user_id,
            challenge_id=challenge_id,
            xp_reward=completed.xp_reward,
            proof_type=proof.type if proof else None,
        )
        self.emit_metric("challenge.xp_awarded", completed.xp_reward, category=completed.category.value)
        return completed

    async def history(self, user_id: str, days: Optional[int] = None) -> List[Challenge]:
        cutoff = self._cutoff(days)
        async with self._lock:
            entries = [
                entry
                for entry in self._challenges.values()
                if entry.user_id == user_id and entry.issued_at >= cutoff
            ]
        entries.sort(key=lambda entry: entry.issued_at, reverse=True)
        return [entry.challenge for entry in entries]

    async def recent_challenge_ids(self, user_id: str, days: Optional[int] = None) -> List[str]:
        cutoff = self._cutoff(days)
        async with self._lock:
            completed = sorted(
                (
                    entry.challenge
                    for entry in self._challenges.values()
                    if entry.user_id == user_id and entry.completed and entry.challenge.completed_at >= cutoff
                ),
                key=lambda challenge: challenge.completed_at,
            )
        return [challenge.id for challenge in completed]

    async def current_streak(self, user_id: str) -> int:
        async with self._lock:
            days = list(self._totals.get(user_id, UserTotals()).completion_days)
        return streak_from_dates(days, self.clock().date())

    async def xp_total(self, user_id: str) -> int:
        async with self._lock:
            return self._totals.get(user_id, UserTotals()).xp

    async def progress(self, user_id: str) -> ProgressSnapshot:
        async with self._lock:
            totals = self._totals.get(user_id, UserTotals())
            total_xp, completed, issued = totals.xp, totals.completed, totals.issued
        per_level = self.settings.points_per_level
        level = total_xp // per_level + 1
        return ProgressSnapshot(
            user_id=user_id,
            total_xp=total_xp,
            level=level,
            next_level_xp=level * per_level,
            current_streak=await self.current_streak(user_id),
            completed_count=completed,
            issued_count=issued,
        )

    def _prune(self, cutoff: datetime) -> None:
        expired = [key for key, entry in self._challenges.items() if entry.issued_at < cutoff]
        for key in expired:
            del self._challenges[key]

    def _cutoff(self, days: Optional[int]) -> datetime:
        window = self.settings.history_window_days if days is None else days
        return self.clock() - timedelta(days=window)
