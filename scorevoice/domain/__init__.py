from .intent import (
    CommandHistoryEntry,
    CommandType,
    DomainConflict,
    DomainConflictState,
    Intent,
    IntentValidationError,
    MatchContext,
    PendingIntent,
    Player,
    PlayerRef,
    SkillType,
    TeamId,
    unknown_intent,
)

__all__ = [
    "CommandHistoryEntry",
    "CommandType",
    "DomainConflict",
    "DomainConflictState",
    "Intent",
    "IntentValidationError",
    "MatchContext",
    "PendingIntent",
    "Player",
    "PlayerRef",
    "SkillType",
    "TeamId",
    "unknown_intent",
]
