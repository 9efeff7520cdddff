from scorevoice.domain import MatchContext, Player, TeamId
from scorevoice.services.entity_resolver import (
    content_tokens,
    find_team_cue,
    resolve_player,
    resolve_team,
    score_player,
)
from scorevoice.services.vocabulary import PORTUGUESE


def _score(text: str, player: Player):
    return score_player(text, content_tokens(text, PORTUGUESE), player, PORTUGUESE)


def test_player_cascade_tiers() -> None:
    assert _score("ponto maria silva", Player("1", "Maria Silva")) == (100, "exact")
    assert _score("ponto camisa 7", Player("1", "Maria Silva", "7")) == (90, "jersey")
    assert _score("ponto maria silv", Player("1", "Maria Silva")) == (70, "prefix")
    assert _score("ponto paula", Player("1", "Ana Paula")) == (50, "contains")
    assert _score("ponto paula ricardo", Player("1", "Ana Paula")) == (45, "shared_token")
    assert _score("ponto ricardu", Player("1", "Ricardo Alves")) == (30, "fuzzy")
    assert _score("ponto time a", Player("1", "Ricardo Alves")) is None


def test_team_cascade_tiers(match_context) -> None:
    assert resolve_team("ponto do fluminense", match_context, PORTUGUESE).confidence == 0.95
    strict = resolve_team("ponto time b", match_context, PORTUGUESE)
    assert (strict.team, strict.confidence, strict.tier) == (TeamId.B, 0.9, "strict_keyword")
    side = resolve_team("ponto lado direito", match_context, PORTUGUESE)
    assert (side.team, side.confidence) == (TeamId.B, 0.85)
    fuzzy = resolve_team("ponto do fluminensi", match_context, PORTUGUESE)
    assert (fuzzy.team, fuzzy.tier) == (TeamId.B, "fuzzy_team_name")
    generic = resolve_team("ponto b", match_context, PORTUGUESE)
    assert (generic.team, generic.confidence, generic.tier) == (TeamId.B, 0.9, "generic_point")


def test_team_cue_ignores_fuzzy_tier(match_context) -> None:
    assert find_team_cue("flamengu", match_context, PORTUGUESE) is None
    assert find_team_cue("do flamengo", match_context, PORTUGUESE) is TeamId.A
    assert find_team_cue("esquerda", match_context, PORTUGUESE) is TeamId.A


def test_identical_names_tie_as_ambiguous() -> None:
    players = (Player("x1", "Bia"),)
    context = MatchContext(
        team_a_name="Flamengo",
        team_b_name="Fluminense",
        players_a=players,
        players_b=(Player("x2", "Bia"),),
    )

    resolution = resolve_player("ponto bia", context, PORTUGUESE)

    assert resolution.is_ambiguous
    assert resolution.candidate_names == ("Bia", "Bia")


def test_resolution_can_be_limited_to_one_roster(match_context) -> None:
    resolution = resolve_player("maria", match_context, PORTUGUESE, teams=(TeamId.B,))

    assert resolution.match is not None
    assert resolution.match.player.id == "b1"


def test_team_name_words_are_not_player_tokens(match_context) -> None:
    assert content_tokens("ponto do flamengo ana", PORTUGUESE, match_context) == ("ana",)
