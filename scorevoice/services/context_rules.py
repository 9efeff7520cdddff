"""Team inference for utterances that named no team and no player.

Rules run in a fixed order and the first one that answers wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Tuple

from scorevoice.domain import MatchContext, SkillType, TeamId


@dataclass(frozen=True)
class Signals:
    skill: SkillType | None
    has_point_trigger: bool
    is_negative: bool


@dataclass(frozen=True)
class Inference:
    team: TeamId
    confidence: float
    rule: str


InferenceRule = Callable[[Signals, MatchContext], "Inference | None"]


def ace_by_server(signals: Signals, context: MatchContext) -> Inference | None:
    if signals.skill is SkillType.ACE and context.serving_team is not None:
        return Inference(context.serving_team, 0.85, "ace_by_server")
    return None


def opponent_error(signals: Signals, context: MatchContext) -> Inference | None:
    if signals.skill is not SkillType.OPPONENT_ERROR:
        return None
    if context.serving_team is not None:
        return Inference(context.serving_team.opponent, 0.8, "opponent_error")
    if context.last_scorer_team is not None:
        return Inference(context.last_scorer_team.opponent, 0.8, "opponent_error")
    return None


def block_by_receiver(signals: Signals, context: MatchContext) -> Inference | None:
    if signals.skill is SkillType.BLOCK and context.serving_team is not None:
        return Inference(context.serving_team.opponent, 0.8, "block_by_receiver")
    return None


def rally_continuation(signals: Signals, context: MatchContext) -> Inference | None:
    if signals.has_point_trigger and signals.skill is None and context.last_scorer_team is not None:
        return Inference(context.last_scorer_team, 0.7, "rally_continuation")
    return None


def attack_by_last_scorer(signals: Signals, context: MatchContext) -> Inference | None:
    if signals.skill is SkillType.ATTACK and context.last_scorer_team is not None:
        return Inference(context.last_scorer_team, 0.7, "attack_by_last_scorer")
    return None


def correction_of_last_point(signals: Signals, context: MatchContext) -> Inference | None:
    if signals.is_negative and context.last_scorer_team is not None:
        return Inference(context.last_scorer_team, 0.7, "correction_of_last_point")
    return None


INFERENCE_RULES: Tuple[InferenceRule, ...] = (
    ace_by_server,
    opponent_error,
    block_by_receiver,
    rally_continuation,
    attack_by_last_scorer,
    correction_of_last_point,
)


def infer_team(
    signals: Signals,
    context: MatchContext,
    rules: Iterable[InferenceRule] = INFERENCE_RULES,
) -> Inference | None:
    for rule in rules:
        inferred = rule(signals, context)
        if inferred is not None:
            return inferred
    return None
