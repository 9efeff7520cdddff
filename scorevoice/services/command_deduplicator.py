from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from scorevoice.domain import CommandType, Intent, TeamId

logger = logging.getLogger(__name__)

ALWAYS_ALLOWED = frozenset({CommandType.UNKNOWN, CommandType.UNDO, CommandType.SWAP})


@dataclass(frozen=True)
class DedupDecision:
    allowed: bool
    reason: str | None = None


@dataclass(slots=True)
class _ExecutedCommand:
    hash: str
    team: TeamId | None
    executed_at: float


class CommandDeduplicator:
    """Rejects replays of an executed intent and a second point for the same
    team inside the lockout window."""

    def __init__(
        self,
        cooldown_ms: int = 1500,
        team_lockout_ms: int = 1500,
        max_history: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cooldown = cooldown_ms / 1000
        self.team_lockout = team_lockout_ms / 1000
        self.max_history = max_history
        self._clock = clock
        self._recent: list[_ExecutedCommand] = []
        self._team_lockouts: dict[TeamId, float] = {}

    @staticmethod
    def generate_hash(intent: Intent) -> str:
        return "|".join(
            (
                intent.type.value,
                intent.team.value if intent.team else "none",
                intent.skill.value if intent.skill else "none",
                intent.player.id if intent.player else "none",
                "neg" if intent.is_negative else "pos",
            )
        )

    def can_execute(self, intent: Intent) -> DedupDecision:
        if intent.type in ALWAYS_ALLOWED:
            return DedupDecision(allowed=True)

        now = self._clock()
        digest = self.generate_hash(intent)
        for command in self._recent:
            if command.hash == digest and now - command.executed_at < self.cooldown:
                return DedupDecision(allowed=False, reason=f"Duplicate command blocked ({digest})")

        if _is_positive_point(intent):
            last_point = self._team_lockouts.get(intent.team)
            if last_point is not None and now - last_point < self.team_lockout:
                return DedupDecision(
                    allowed=False,
                    reason=f"Team {intent.team.value} lockout active ({int(self.team_lockout * 1000)}ms)",
                )

        return DedupDecision(allowed=True)

    def register(self, intent: Intent) -> None:
        if intent.type is CommandType.UNKNOWN:
            return

        now = self._clock()
        self._recent.insert(0, _ExecutedCommand(self.generate_hash(intent), intent.team, now))
        del self._recent[self.max_history:]

        if _is_positive_point(intent):
            self._team_lockouts[intent.team] = now

        self._prune(now)

    def reset(self) -> None:
        self._recent.clear()
        self._team_lockouts.clear()
        logger.debug("deduplicator reset")

    def debug_info(self) -> dict:
        now = self._clock()
        locked = [
            team.value
            for team, stamp in self._team_lockouts.items()
            if now - stamp < self.team_lockout
        ]
        return {"recent_count": len(self._recent), "locked_teams": sorted(locked)}

    def _prune(self, now: float) -> None:
        cutoff = now - self.cooldown * 2
        self._recent = [command for command in self._recent if command.executed_at > cutoff]
        for team, stamp in list(self._team_lockouts.items()):
            if now - stamp > self.team_lockout * 2:
                del self._team_lockouts[team]


def _is_positive_point(intent: Intent) -> bool:
    return intent.type is CommandType.POINT and intent.team is not None and not intent.is_negative
