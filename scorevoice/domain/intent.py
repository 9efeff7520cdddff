from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Tuple


class IntentValidationError(ValueError):
    """Raised when an intent or match context carries an invalid value."""


class TeamId(str, Enum):
    A = "A"
    B = "B"

    @property
    def opponent(self) -> "TeamId":
        return TeamId.B if self is TeamId.A else TeamId.A


class CommandType(str, Enum):
    POINT = "point"
    TIMEOUT = "timeout"
    SERVER = "server"
    SWAP = "swap"
    UNDO = "undo"
    UNKNOWN = "unknown"


class SkillType(str, Enum):
    ATTACK = "attack"
    BLOCK = "block"
    ACE = "ace"
    OPPONENT_ERROR = "opponent_error"
    GENERIC = "generic"


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    number: str | None = None

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise IntentValidationError("player id must be non-empty")
        if not self.name.strip():
            raise IntentValidationError("player name must be non-empty")


@dataclass(frozen=True)
class PlayerRef:
    id: str
    name: str


@dataclass(frozen=True)
class DomainConflict:
    """A named player whose roster disagrees with the spoken team keyword."""

    player: PlayerRef
    detected_team: TeamId
    player_team: TeamId
    skill: SkillType | None = None
    raw_text: str = ""


@dataclass(frozen=True)
class MatchContext:
    team_a_name: str
    team_b_name: str
    players_a: Tuple[Player, ...] = field(default_factory=tuple)
    players_b: Tuple[Player, ...] = field(default_factory=tuple)
    stats_enabled: bool = False
    serving_team: TeamId | None = None
    last_scorer_team: TeamId | None = None
    score_a: int = 0
    score_b: int = 0
    current_set: int = 1
    is_match_over: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "players_a", tuple(self.players_a))
        object.__setattr__(self, "players_b", tuple(self.players_b))
        if self.score_a < 0 or self.score_b < 0:
            raise IntentValidationError("scores must not be negative")
        if self.current_set < 1:
            raise IntentValidationError("current_set starts at 1")

    def roster(self, team: TeamId) -> Tuple[Player, ...]:
        return self.players_a if team is TeamId.A else self.players_b

    def team_name(self, team: TeamId) -> str:
        return self.team_a_name if team is TeamId.A else self.team_b_name

    def find_player(self, player_id: str) -> tuple[Player, TeamId] | None:
        for team in (TeamId.A, TeamId.B):
            for player in self.roster(team):
                if player.id == player_id:
                    return player, team
        return None


@dataclass(frozen=True)
class Intent:
    type: CommandType
    confidence: float = 0.0
    raw_text: str = ""
    team: TeamId | None = None
    player: PlayerRef | None = None
    skill: SkillType | None = None
    is_negative: bool = False
    requires_more_info: bool = False
    is_ambiguous: bool = False
    candidates: Tuple[str, ...] = field(default_factory=tuple)
    domain_conflict: DomainConflict | None = None
    debug_message: str | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise IntentValidationError(f"confidence out of range: {self.confidence}")
        object.__setattr__(self, "candidates", tuple(self.candidates))

    def with_team(self, team: TeamId) -> "Intent":
        return replace(self, team=team, requires_more_info=False)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "team": self.team.value if self.team else None,
            "player": {"id": self.player.id, "name": self.player.name} if self.player else None,
            "skill": self.skill.value if self.skill else None,
            "is_negative": self.is_negative,
            "confidence": self.confidence,
            "raw_text": self.raw_text,
            "requires_more_info": self.requires_more_info,
            "is_ambiguous": self.is_ambiguous,
            "candidates": list(self.candidates),
            "domain_conflict": _conflict_to_dict(self.domain_conflict),
            "debug_message": self.debug_message,
        }


def unknown_intent(raw_text: str, debug_message: str | None = None, **overrides) -> Intent:
    return Intent(type=CommandType.UNKNOWN, confidence=0.0, raw_text=raw_text, debug_message=debug_message, **overrides)


@dataclass(frozen=True)
class PendingIntent:
    """An intent held until a follow-up utterance or caller confirms it."""

    intent: Intent
    created_at: float

    @property
    def awaiting_player(self) -> bool:
        return (
            self.intent.team is not None
            and self.intent.skill is not None
            and self.intent.player is None
            and self.intent.requires_more_info
        )


@dataclass(frozen=True)
class DomainConflictState:
    conflict: DomainConflict
    intent: Intent
    created_at: float


@dataclass(frozen=True)
class CommandHistoryEntry:
    intent: Intent
    executed_at: float


def _conflict_to_dict(conflict: DomainConflict | None) -> dict | None:
    if conflict is None:
        return None
    return {
        "player": {"id": conflict.player.id, "name": conflict.player.name},
        "detected_team": conflict.detected_team.value,
        "player_team": conflict.player_team.value,
        "skill": conflict.skill.value if conflict.skill else None,
        "raw_text": conflict.raw_text,
    }
