"""Interfaces of the parts that live outside the interpretation core."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol

from scorevoice.domain import MatchContext, SkillType, TeamId


class SpeechEngine(Protocol):
    def start(self, language: str) -> None: ...

    def stop(self) -> None: ...

    def set_callbacks(
        self,
        on_result: Callable[[str, bool], None],
        on_interim_feedback: Callable[[str], None],
        on_error: Callable[[str], None],
        on_listening_status_changed: Callable[[bool], None],
    ) -> None: ...


class CloudIntentService(Protocol):
    async def parse_command(self, transcript: str, context: MatchContext) -> dict[str, Any] | None: ...


class ScoringCallbacks(Protocol):
    def add_point(self, team: TeamId, player_id: str | None = None, skill: SkillType | None = None) -> None: ...

    def subtract_point(self, team: TeamId) -> None: ...

    def undo(self) -> None: ...

    def call_timeout(self, team: TeamId) -> None: ...

    def set_serving_team(self, team: TeamId) -> None: ...

    def swap_sides(self) -> None: ...


class FeedbackKind(str, Enum):
    THINKING = "thinking"
    SUCCESS = "success"
    CONFIRM = "confirm"
    CONFLICT = "conflict"
    ERROR = "error"


class Feedback(Protocol):
    def notify(self, kind: FeedbackKind, message: str) -> None: ...

    def hide_notification(self) -> None: ...


class NullFeedback:
    def notify(self, kind: FeedbackKind, message: str) -> None:
        return None

    def hide_notification(self) -> None:
        return None


@dataclass(slots=True)
class ScoringAction:
    name: str
    team: TeamId | None = None
    player_id: str | None = None
    skill: SkillType | None = None

    def to_dict(self) -> dict:
        return {
            "action": self.name,
            "team": self.team.value if self.team else None,
            "player_id": self.player_id,
            "skill": self.skill.value if self.skill else None,
        }


@dataclass(slots=True)
class ActionRecorder:
    """Scoring sink that keeps the calls it receives, in order."""

    actions: list[ScoringAction] = field(default_factory=list)

    def add_point(self, team: TeamId, player_id: str | None = None, skill: SkillType | None = None) -> None:
        self.actions.append(ScoringAction("add_point", team, player_id, skill))

    def subtract_point(self, team: TeamId) -> None:
        self.actions.append(ScoringAction("subtract_point", team))

    def undo(self) -> None:
        self.actions.append(ScoringAction("undo"))

    def call_timeout(self, team: TeamId) -> None:
        self.actions.append(ScoringAction("call_timeout", team))

    def set_serving_team(self, team: TeamId) -> None:
        self.actions.append(ScoringAction("set_serving_team", team))

    def swap_sides(self) -> None:
        self.actions.append(ScoringAction("swap_sides"))

    def drain(self) -> list[ScoringAction]:
        drained = list(self.actions)
        self.actions.clear()
        return drained
