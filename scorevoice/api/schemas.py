from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from scorevoice.domain import MatchContext, Player, TeamId

TeamLiteral = Literal["A", "B"]


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: Any | None = None


class PlayerSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    number: str | None = None


class MatchContextSchema(BaseModel):
    team_a_name: str = Field(..., description="Display name of team A")
    team_b_name: str = Field(..., description="Display name of team B")
    players_a: list[PlayerSchema] = Field(default_factory=list)
    players_b: list[PlayerSchema] = Field(default_factory=list)
    stats_enabled: bool = False
    serving_team: TeamLiteral | None = None
    last_scorer_team: TeamLiteral | None = None
    score_a: int = Field(default=0, ge=0)
    score_b: int = Field(default=0, ge=0)
    current_set: int = Field(default=1, ge=1)
    is_match_over: bool = False

    @model_validator(mode="after")
    def validate_rosters(self) -> "MatchContextSchema":
        ids = [player.id for player in [*self.players_a, *self.players_b]]
        if len(set(ids)) != len(ids):
            raise ValueError("player ids must be unique across both rosters")
        return self

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "team_a_name": "Flamengo",
                    "team_b_name": "Fluminense",
                    "players_a": [{"id": "p1", "name": "Maria Silva", "number": "7"}],
                    "players_b": [{"id": "p2", "name": "Ana Lima", "number": "10"}],
                    "serving_team": "A",
                }
            ]
        }
    }

    def to_domain(self) -> MatchContext:
        return MatchContext(
            team_a_name=self.team_a_name,
            team_b_name=self.team_b_name,
            players_a=tuple(Player(p.id, p.name, p.number) for p in self.players_a),
            players_b=tuple(Player(p.id, p.name, p.number) for p in self.players_b),
            stats_enabled=self.stats_enabled,
            serving_team=TeamId(self.serving_team) if self.serving_team else None,
            last_scorer_team=TeamId(self.last_scorer_team) if self.last_scorer_team else None,
            score_a=self.score_a,
            score_b=self.score_b,
            current_set=self.current_set,
            is_match_over=self.is_match_over,
        )


class PlayerRefSchema(BaseModel):
    id: str
    name: str


class DomainConflictSchema(BaseModel):
    player: PlayerRefSchema
    detected_team: TeamLiteral
    player_team: TeamLiteral
    skill: str | None = None
    raw_text: str


class IntentResponse(BaseModel):
    type: Literal["point", "timeout", "server", "swap", "undo", "unknown"]
    team: TeamLiteral | None = None
    player: PlayerRefSchema | None = None
    skill: str | None = None
    is_negative: bool = False
    confidence: float
    raw_text: str
    requires_more_info: bool = False
    is_ambiguous: bool = False
    candidates: list[str] = Field(default_factory=list)
    domain_conflict: DomainConflictSchema | None = None
    debug_message: str | None = None


class InterpretRequest(BaseModel):
    text: str = Field(..., description="Transcript produced by the speech engine")
    language: str = Field(default="pt", description="Language tag such as pt, en, es or pt-BR")
    context: MatchContextSchema


class CreateSessionRequest(BaseModel):
    language: str = "pt"
    enable_cloud_fallback: bool = False
    context: MatchContextSchema | None = None


class TranscriptRequest(BaseModel):
    text: str
    is_final: bool = True
    context: MatchContextSchema | None = Field(
        default=None,
        description="Fresh match snapshot; the previous one is reused when omitted",
    )


class ScoringActionSchema(BaseModel):
    action: str
    team: TeamLiteral | None = None
    player_id: str | None = None
    skill: str | None = None


class ProcessResponse(BaseModel):
    outcome: str
    intent: IntentResponse | None = None
    reason: str | None = None
    actions: list[ScoringActionSchema] = Field(default_factory=list)
    state: str


class SessionResponse(BaseModel):
    id: str
    state: str
    language: str
    is_listening: bool
    pending_intent: IntentResponse | None = None
    domain_conflict: DomainConflictSchema | None = None
    history: list[IntentResponse] = Field(default_factory=list)
    dedup: dict[str, Any] = Field(default_factory=dict)


class ConfirmPendingRequest(BaseModel):
    team: TeamLiteral | None = None


class ResolveConflictRequest(BaseModel):
    use_detected_team: bool
