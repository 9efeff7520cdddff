"""Team and player resolution for normalized utterances.

Both cascades are ordered tuples of matcher functions. The team cascade stops
at the first matcher that answers; the player cascade scores every rostered
player with the first tier that matches and keeps the best scores.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Tuple

from scorevoice.domain import MatchContext, Player, TeamId
from scorevoice.services.normalizer import (
    basic_normalize,
    contains_any,
    contains_phrase,
    is_fuzzy_match,
)
from scorevoice.services.vocabulary import Vocabulary

MIN_TEAM_NAME_LENGTH = 3
MIN_SHARED_TOKEN_LENGTH = 3
MIN_FUZZY_TOKEN_LENGTH = 4


@dataclass(frozen=True)
class TeamMatch:
    team: TeamId
    confidence: float
    tier: str


@dataclass(frozen=True)
class PlayerCandidate:
    player: Player
    team: TeamId
    score: int
    tier: str


@dataclass(frozen=True)
class PlayerResolution:
    best: Tuple[PlayerCandidate, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return bool(self.best)

    @property
    def is_ambiguous(self) -> bool:
        return len(self.best) > 1

    @property
    def match(self) -> PlayerCandidate | None:
        return self.best[0] if len(self.best) == 1 else None

    @property
    def candidate_names(self) -> Tuple[str, ...]:
        return tuple(candidate.player.name for candidate in self.best)


TeamMatcher = Callable[[str, MatchContext, Vocabulary], "TeamMatch | None"]
PlayerTier = Callable[[str, Tuple[str, ...], str, Player, Vocabulary], bool]


# --- team cascade -----------------------------------------------------------


def match_team_name(text: str, context: MatchContext, vocab: Vocabulary) -> TeamMatch | None:
    for team in (TeamId.A, TeamId.B):
        name = _team_name(context, team)
        if len(name) >= MIN_TEAM_NAME_LENGTH and contains_phrase(text, name):
            return TeamMatch(team, 0.95, "team_name")
    return None


def match_strict_keyword(text: str, context: MatchContext, vocab: Vocabulary) -> TeamMatch | None:
    if contains_any(text, vocab.team_a_strict):
        return TeamMatch(TeamId.A, 0.9, "strict_keyword")
    if contains_any(text, vocab.team_b_strict):
        return TeamMatch(TeamId.B, 0.9, "strict_keyword")
    return None


def match_side_keyword(text: str, context: MatchContext, vocab: Vocabulary) -> TeamMatch | None:
    if contains_any(text, vocab.side_a):
        return TeamMatch(TeamId.A, 0.85, "side_keyword")
    if contains_any(text, vocab.side_b):
        return TeamMatch(TeamId.B, 0.85, "side_keyword")
    return None


def match_fuzzy_team_name(text: str, context: MatchContext, vocab: Vocabulary) -> TeamMatch | None:
    hits = [
        team
        for team in (TeamId.A, TeamId.B)
        if _fuzzy_window_hit(text, vocab, _team_name(context, team))
    ]
    if len(hits) == 1:
        return TeamMatch(hits[0], 0.85, "fuzzy_team_name")
    return None


def match_generic_point(text: str, context: MatchContext, vocab: Vocabulary) -> TeamMatch | None:
    if contains_any(text, vocab.generic_a):
        return TeamMatch(TeamId.A, 0.9, "generic_point")
    if contains_any(text, vocab.generic_b):
        return TeamMatch(TeamId.B, 0.9, "generic_point")
    return None


TEAM_CASCADE: Tuple[TeamMatcher, ...] = (
    match_team_name,
    match_strict_keyword,
    match_side_keyword,
    match_fuzzy_team_name,
    match_generic_point,
)


def resolve_team(
    text: str,
    context: MatchContext,
    vocab: Vocabulary,
    cascade: Iterable[TeamMatcher] = TEAM_CASCADE,
) -> TeamMatch | None:
    for matcher in cascade:
        found = matcher(text, context, vocab)
        if found is not None:
            return found
    return None


def find_team_cue(text: str, context: MatchContext, vocab: Vocabulary) -> TeamId | None:
    """Look only for an explicit team/side keyword or team name."""
    for matcher in (match_team_name, match_strict_keyword, match_side_keyword, match_generic_point):
        found = matcher(text, context, vocab)
        if found is not None:
            return found.team
    return None


# --- player cascade ---------------------------------------------------------


def _exact(text: str, tokens: Tuple[str, ...], name: str, player: Player, vocab: Vocabulary) -> bool:
    return contains_phrase(text, name)


def _jersey(text: str, tokens: Tuple[str, ...], name: str, player: Player, vocab: Vocabulary) -> bool:
    number = (player.number or "").strip().lstrip("#")
    if not number:
        return False
    return any(contains_phrase(text, f"{trigger} {number}") for trigger in vocab.jersey_triggers)


def _prefix(text: str, tokens: Tuple[str, ...], name: str, player: Player, vocab: Vocabulary) -> bool:
    for start in range(len(tokens)):
        window = ""
        for token in tokens[start:]:
            candidate = f"{window} {token}".strip()
            if not name.startswith(candidate):
                break
            window = candidate
        if len(window) >= MIN_SHARED_TOKEN_LENGTH and window != name:
            return True
    return False


def _contains(text: str, tokens: Tuple[str, ...], name: str, player: Player, vocab: Vocabulary) -> bool:
    spoken = " ".join(tokens)
    if len(spoken) < MIN_SHARED_TOKEN_LENGTH:
        return False
    return spoken in name or name in spoken


def _shared_token(text: str, tokens: Tuple[str, ...], name: str, player: Player, vocab: Vocabulary) -> bool:
    name_tokens = set(name.split())
    return any(len(token) >= MIN_SHARED_TOKEN_LENGTH and token in name_tokens for token in tokens)


def _fuzzy(text: str, tokens: Tuple[str, ...], name: str, player: Player, vocab: Vocabulary) -> bool:
    name_tokens = [part for part in name.split() if len(part) >= MIN_FUZZY_TOKEN_LENGTH]
    return any(
        is_fuzzy_match(token, part)
        for token in tokens
        if len(token) >= MIN_FUZZY_TOKEN_LENGTH
        for part in name_tokens
    )


PLAYER_CASCADE: Tuple[Tuple[str, int, PlayerTier], ...] = (
    ("exact", 100, _exact),
    ("jersey", 90, _jersey),
    ("prefix", 70, _prefix),
    ("contains", 50, _contains),
    ("shared_token", 45, _shared_token),
    ("fuzzy", 30, _fuzzy),
)


def score_player(text: str, tokens: Tuple[str, ...], player: Player, vocab: Vocabulary) -> tuple[int, str] | None:
    name = basic_normalize(player.name)
    if not name:
        return None
    for tier, score, matcher in PLAYER_CASCADE:
        if matcher(text, tokens, name, player, vocab):
            return score, tier
    return None


def resolve_player(
    text: str,
    context: MatchContext,
    vocab: Vocabulary,
    teams: Iterable[TeamId] = (TeamId.A, TeamId.B),
) -> PlayerResolution:
    tokens = content_tokens(text, vocab, context)
    scored: list[PlayerCandidate] = []
    for team in teams:
        for player in context.roster(team):
            result = score_player(text, tokens, player, vocab)
            if result is not None:
                scored.append(PlayerCandidate(player, team, result[0], result[1]))

    if not scored:
        return PlayerResolution()

    top = max(candidate.score for candidate in scored)
    best = tuple(candidate for candidate in scored if candidate.score == top)
    return PlayerResolution(best=best)


# --- helpers ----------------------------------------------------------------


def content_tokens(text: str, vocab: Vocabulary, context: MatchContext | None = None) -> Tuple[str, ...]:
    """Tokens that are neither vocabulary keywords, digits nor team-name words."""
    excluded = set(vocab.keyword_tokens)
    if context is not None:
        for team in (TeamId.A, TeamId.B):
            excluded.update(_team_name(context, team).split())
        excluded -= _player_name_tokens(context)
    return tuple(token for token in text.split() if token not in excluded and not token.isdigit() and len(token) > 1)


def _player_name_tokens(context: MatchContext) -> set[str]:
    return {
        token
        for team in (TeamId.A, TeamId.B)
        for player in context.roster(team)
        for token in basic_normalize(player.name).split()
    }


def _team_name(context: MatchContext, team: TeamId) -> str:
    return basic_normalize(context.team_name(team))


def _fuzzy_window_hit(text: str, vocab: Vocabulary, team_name: str) -> bool:
    if len(team_name) < MIN_TEAM_NAME_LENGTH:
        return False
    words = text.split()
    width = len(team_name.split())
    for start in range(len(words) - width + 1):
        span = words[start:start + width]
        if all(word in vocab.keyword_tokens for word in span):
            continue
        window = " ".join(span)
        if len(window) >= MIN_TEAM_NAME_LENGTH and is_fuzzy_match(window, team_name):
            return True
    first_word = team_name.split()[0]
    return any(
        len(token) >= MIN_TEAM_NAME_LENGTH and token != first_word and first_word.startswith(token)
        for token in content_tokens(text, vocab)
    )
