from __future__ import annotations

import logging
from dataclasses import dataclass

from scorevoice.domain import (
    CommandType,
    DomainConflict,
    Intent,
    MatchContext,
    PlayerRef,
    SkillType,
    TeamId,
    unknown_intent,
)
from scorevoice.services.context_rules import Signals, infer_team
from scorevoice.services.entity_resolver import (
    PlayerCandidate,
    PlayerResolution,
    TeamMatch,
    resolve_player,
    resolve_team,
)
from scorevoice.services.normalizer import contains_any, contains_phrase, normalize_text
from scorevoice.services.vocabulary import Vocabulary, get_vocabulary

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ParserConfig:
    undo_confidence: float = 1.0
    swap_confidence: float = 0.95
    side_out_confidence: float = 0.8
    unresolved_confidence: float = 0.5
    await_player_confidence: float = 0.6
    timeout_without_team_confidence: float = 0.6
    inferred_point_confidence: float = 0.7


@dataclass(slots=True)
class _Entity:
    team: TeamId | None = None
    confidence: float = 0.0
    player: PlayerCandidate | None = None
    conflict_team: TeamId | None = None


class IntentParser:
    """Turns one utterance into an ``Intent`` against a match snapshot.

    ``parse`` never mutates the context and returns the same intent for the
    same inputs.
    """

    def __init__(self, config: ParserConfig | None = None) -> None:
        self.config = config or ParserConfig()

    def parse(self, text: str, context: MatchContext, language: str | None = None) -> Intent:
        if context.is_match_over:
            return unknown_intent(text, "Match is over")

        vocab = get_vocabulary(language)
        normalized = normalize_text(text, vocab)
        if not normalized:
            return unknown_intent(text, "Empty transcript")

        has_point_trigger = contains_any(normalized, vocab.point_triggers)
        is_negative = contains_any(normalized, vocab.negative)

        if contains_any(normalized, vocab.global_undo) and not (has_point_trigger and is_negative):
            return Intent(
                type=CommandType.UNDO,
                confidence=self.config.undo_confidence,
                raw_text=text,
                debug_message="Global undo",
            )

        skill = detect_skill(normalized, vocab)
        team_match = resolve_team(normalized, context, vocab)
        players = resolve_player(normalized, context, vocab)

        entity = self._combine(team_match, players)
        if entity is None:
            candidates = _ambiguous_names(team_match, players)
            logger.debug("ambiguous player in %r: %s", normalized, ", ".join(candidates))
            return unknown_intent(
                text,
                f"Ambiguous match: {', '.join(candidates)}",
                is_ambiguous=True,
                candidates=candidates,
            )

        signals = Signals(skill=skill, has_point_trigger=has_point_trigger, is_negative=is_negative)
        resolved_team = entity.team
        confidence = entity.confidence
        if resolved_team is None:
            inferred = infer_team(signals, context)
            if inferred is not None:
                resolved_team = inferred.team
                confidence = inferred.confidence
                logger.debug("team %s inferred by %s", inferred.team.value, inferred.rule)

        intent = self._classify(text, normalized, vocab, context, signals, entity, resolved_team, confidence)
        logger.debug("parsed %r as %s", normalized, intent.debug_message)
        return intent

    def _combine(self, team_match: TeamMatch | None, players: PlayerResolution) -> _Entity | None:
        """Merge the team and player cascades; ``None`` means still ambiguous."""
        if players.is_ambiguous:
            if team_match is None:
                return None
            on_team = tuple(candidate for candidate in players.best if candidate.team is team_match.team)
            if len(on_team) != 1:
                return None
            players = PlayerResolution(best=on_team)

        match = players.match
        if match is None:
            if team_match is None:
                return _Entity()
            return _Entity(team=team_match.team, confidence=team_match.confidence)

        player_confidence = match.score / 100
        if team_match is None:
            return _Entity(team=match.team, confidence=player_confidence, player=match)

        confidence = max(team_match.confidence, player_confidence)
        if team_match.team is not match.team:
            return _Entity(team=match.team, confidence=confidence, player=match, conflict_team=team_match.team)
        return _Entity(team=match.team, confidence=confidence, player=match)

    def _classify(
        self,
        text: str,
        normalized: str,
        vocab: Vocabulary,
        context: MatchContext,
        signals: Signals,
        entity: _Entity,
        team: TeamId | None,
        confidence: float,
    ) -> Intent:
        config = self.config
        is_timeout = contains_any(normalized, vocab.timeout)

        if contains_any(normalized, vocab.swap) and not is_timeout and not signals.has_point_trigger:
            return Intent(
                type=CommandType.SWAP,
                confidence=config.swap_confidence,
                raw_text=text,
                debug_message="Swap sides",
            )

        if is_timeout:
            if team is None:
                return Intent(
                    type=CommandType.TIMEOUT,
                    confidence=config.timeout_without_team_confidence,
                    raw_text=text,
                    requires_more_info=True,
                    debug_message="Timeout heard, team missing",
                )
            return self._finalize(
                Intent(
                    type=CommandType.TIMEOUT,
                    confidence=confidence,
                    raw_text=text,
                    team=team,
                    skill=signals.skill,
                    debug_message=f"Timeout [{team.value}]",
                ),
                context,
                signals,
            )

        if contains_any(normalized, vocab.server) and signals.skill is None and not signals.has_point_trigger:
            return self._server_intent(text, context, entity)

        has_signal = (
            signals.skill is not None
            or signals.has_point_trigger
            or signals.is_negative
            or entity.team is not None
        )
        if has_signal and team is not None:
            player = entity.player
            intent = Intent(
                type=CommandType.POINT,
                confidence=confidence or config.inferred_point_confidence,
                raw_text=text,
                team=team,
                player=PlayerRef(player.player.id, player.player.name) if player else None,
                skill=signals.skill,
                is_negative=signals.is_negative,
                domain_conflict=_domain_conflict(entity, signals.skill, text),
                debug_message=describe_point(team, player, signals.skill, signals.is_negative),
            )
            return self._finalize(intent, context, signals)

        if signals.skill is not None and context.stats_enabled:
            return unknown_intent(
                text,
                f"Heard skill {signals.skill.value}, waiting for context",
                confidence=config.unresolved_confidence,
                skill=signals.skill,
                requires_more_info=True,
            )

        return unknown_intent(text, "Could not identify team or player")

    def _server_intent(self, text: str, context: MatchContext, entity: _Entity) -> Intent:
        if entity.team is not None:
            return Intent(
                type=CommandType.SERVER,
                confidence=entity.confidence,
                raw_text=text,
                team=entity.team,
                debug_message=f"Serving team [{entity.team.value}]",
            )
        if context.serving_team is not None:
            next_server = context.serving_team.opponent
            return Intent(
                type=CommandType.SERVER,
                confidence=self.config.side_out_confidence,
                raw_text=text,
                team=next_server,
                debug_message=f"Side out inferred [{next_server.value}]",
            )
        return Intent(
            type=CommandType.SERVER,
            confidence=self.config.unresolved_confidence,
            raw_text=text,
            requires_more_info=True,
            debug_message="Serve heard, team missing",
        )

    def _finalize(self, intent: Intent, context: MatchContext, signals: Signals) -> Intent:
        if (
            context.stats_enabled
            and intent.skill is not None
            and intent.player is None
            and not intent.is_negative
        ):
            team = intent.team.value if intent.team else "?"
            return Intent(
                type=intent.type,
                confidence=min(intent.confidence, self.config.await_player_confidence),
                raw_text=intent.raw_text,
                team=intent.team,
                skill=intent.skill,
                requires_more_info=True,
                debug_message=f"Heard {intent.skill.value} for [{team}], waiting for player",
            )
        return intent


def detect_skill(normalized: str, vocab: Vocabulary) -> SkillType | None:
    for phrase, skill in vocab.compound_skills:
        if contains_phrase(normalized, phrase):
            return skill
    for skill, keywords in vocab.skills:
        if contains_any(normalized, keywords):
            return skill
    return None


def describe_point(
    team: TeamId,
    player: PlayerCandidate | None,
    skill: SkillType | None,
    is_negative: bool,
) -> str:
    message = "Remove Point" if is_negative else "Add Point"
    message += f" [{team.value}]"
    if player is not None:
        message += f" Player: {player.player.name}"
    if skill is not None:
        message += f" ({skill.value})"
    return message


def _domain_conflict(entity: _Entity, skill: SkillType | None, text: str) -> DomainConflict | None:
    if entity.conflict_team is None or entity.player is None:
        return None
    return DomainConflict(
        player=PlayerRef(entity.player.player.id, entity.player.player.name),
        detected_team=entity.conflict_team,
        player_team=entity.player.team,
        skill=skill,
        raw_text=text,
    )


def _ambiguous_names(team_match: TeamMatch | None, players: PlayerResolution) -> tuple[str, ...]:
    if team_match is not None:
        on_team = tuple(
            candidate.player.name for candidate in players.best if candidate.team is team_match.team
        )
        if len(on_team) > 1:
            return on_team
    return players.candidate_names


_default_parser = IntentParser()


def parse(text: str, language: str | None, context: MatchContext) -> Intent:
    return _default_parser.parse(text, context, language)
