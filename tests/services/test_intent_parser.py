from scorevoice.domain import CommandType, SkillType, TeamId
from scorevoice.services.intent_parser import IntentParser, parse


def test_team_name_scores_point_with_name_confidence(match_context) -> None:
    intent = parse("ponto do Flamengo", "pt", match_context)

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.A
    assert intent.confidence == 0.95
    assert intent.debug_message == "Add Point [A]"


def test_ace_goes_to_serving_team(context_with) -> None:
    intent = parse("ace", "pt", context_with(serving_team=TeamId.B))

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.B
    assert intent.skill is SkillType.ACE


def test_error_goes_to_team_receiving_serve(context_with) -> None:
    intent = parse("erro", "pt", context_with(serving_team=TeamId.A))

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.B
    assert intent.skill is SkillType.OPPONENT_ERROR


def test_error_without_server_uses_opposite_of_last_scorer(context_with) -> None:
    intent = parse("na rede", "pt", context_with(last_scorer_team=TeamId.B))

    assert intent.team is TeamId.A
    assert intent.skill is SkillType.OPPONENT_ERROR


def test_correction_with_point_wording_is_negative_point(match_context) -> None:
    intent = parse("cancelar ponto time b", "pt", match_context)

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.B
    assert intent.is_negative is True


def test_bare_cancel_is_global_undo(match_context) -> None:
    intent = parse("cancelar", "pt", match_context)

    assert intent.type is CommandType.UNDO
    assert intent.confidence == 1.0


def test_undo_keyword_wins_over_point_wording(match_context) -> None:
    assert parse("desfazer ponto", "pt", match_context).type is CommandType.UNDO


def test_serve_wording_without_skill_changes_server(match_context) -> None:
    intent = parse("saque do Flamengo", "pt", match_context)

    assert intent.type is CommandType.SERVER
    assert intent.team is TeamId.A


def test_direct_serve_is_an_ace_point(match_context) -> None:
    intent = parse("saque direto do Flamengo", "pt", match_context)

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.A
    assert intent.skill is SkillType.ACE


def test_point_on_serve_is_ace(context_with) -> None:
    intent = parse("ponto no saque", "pt", context_with(serving_team=TeamId.A))

    assert intent.type is CommandType.POINT
    assert intent.skill is SkillType.ACE
    assert intent.team is TeamId.A


def test_serve_without_team_infers_side_out(context_with) -> None:
    intent = parse("troca de saque", "pt", context_with(serving_team=TeamId.A))

    assert intent.type is CommandType.SERVER
    assert intent.team is TeamId.B
    assert intent.confidence == 0.8


def test_serve_without_any_team_needs_more_info(match_context) -> None:
    intent = parse("troca de saque", "pt", match_context)

    assert intent.type is CommandType.SERVER
    assert intent.team is None
    assert intent.requires_more_info is True


def test_shared_first_name_across_teams_is_ambiguous(match_context) -> None:
    intent = parse("ponto Maria", "pt", match_context)

    assert intent.type is CommandType.UNKNOWN
    assert intent.is_ambiguous is True
    assert set(intent.candidates) == {"Maria Silva", "Maria Souza"}
    assert intent.confidence == 0.0


def test_team_keyword_filters_ambiguous_players(match_context) -> None:
    intent = parse("ponto Ana time b", "pt", match_context)

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.B
    assert intent.player is not None
    assert intent.player.name == "Ana Lima"
    assert intent.is_ambiguous is False


def test_player_alone_derives_team_from_roster(match_context) -> None:
    intent = parse("ponto Carlos", "pt", match_context)

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.B
    assert intent.player.id == "b3"
    assert intent.confidence == 0.7


def test_jersey_number_spoken_as_word(match_context) -> None:
    intent = parse("ponto camisa sete", "pt", match_context)

    assert intent.player.id == "a1"
    assert intent.team is TeamId.A
    assert intent.confidence == 0.9


def test_player_on_other_roster_records_domain_conflict(match_context) -> None:
    intent = parse("ponto Carlos Mendes time a", "pt", match_context)

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.B
    assert intent.domain_conflict is not None
    assert intent.domain_conflict.detected_team is TeamId.A
    assert intent.domain_conflict.player_team is TeamId.B
    assert intent.domain_conflict.player.id == "b3"


def test_match_over_accepts_nothing(context_with) -> None:
    context = context_with(is_match_over=True)

    assert parse("ponto do Flamengo", "pt", context).type is CommandType.UNKNOWN
    undo = parse("desfazer", "pt", context)
    assert undo.type is CommandType.UNKNOWN
    assert undo.confidence == 0.0


def test_timeout_with_team(match_context) -> None:
    intent = parse("timeout time a", "pt", match_context)

    assert intent.type is CommandType.TIMEOUT
    assert intent.team is TeamId.A


def test_misheard_timeout_is_corrected(match_context) -> None:
    intent = parse("taimaute do Flamengo", "pt", match_context)

    assert intent.type is CommandType.TIMEOUT
    assert intent.team is TeamId.A


def test_timeout_without_team_needs_more_info(match_context) -> None:
    intent = parse("pedido de tempo", "pt", match_context)

    assert intent.type is CommandType.TIMEOUT
    assert intent.team is None
    assert intent.requires_more_info is True


def test_swap_sides(match_context) -> None:
    intent = parse("trocar de lado", "pt", match_context)

    assert intent.type is CommandType.SWAP


def test_rally_continuation_uses_last_scorer(context_with) -> None:
    intent = parse("ponto", "pt", context_with(last_scorer_team=TeamId.B))

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.B
    assert intent.confidence == 0.7


def test_block_goes_to_receiving_team(context_with) -> None:
    intent = parse("bloqueio", "pt", context_with(serving_team=TeamId.A))

    assert intent.team is TeamId.B
    assert intent.skill is SkillType.BLOCK


def test_correction_alone_targets_last_scorer(context_with) -> None:
    intent = parse("tirar", "pt", context_with(last_scorer_team=TeamId.A))

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.A
    assert intent.is_negative is True


def test_skill_without_player_waits_when_stats_enabled(context_with) -> None:
    intent = parse("bloqueio time a", "pt", context_with(stats_enabled=True))

    assert intent.type is CommandType.POINT
    assert intent.team is TeamId.A
    assert intent.skill is SkillType.BLOCK
    assert intent.requires_more_info is True
    assert intent.confidence == 0.6


def test_orphan_skill_with_stats_asks_for_context(context_with) -> None:
    intent = parse("bloqueio", "pt", context_with(stats_enabled=True))

    assert intent.type is CommandType.UNKNOWN
    assert intent.skill is SkillType.BLOCK
    assert intent.requires_more_info is True


def test_orphan_skill_without_stats_is_plain_unknown(match_context) -> None:
    intent = parse("bloqueio", "pt", match_context)

    assert intent.type is CommandType.UNKNOWN
    assert intent.requires_more_info is False


def test_fuzzy_team_name_and_abbreviation(match_context) -> None:
    misspelled = parse("ponto do flamengu", "pt", match_context)
    assert misspelled.team is TeamId.A
    assert misspelled.confidence == 0.85

    abbreviated = parse("ponto do Flu", "pt", match_context)
    assert abbreviated.team is TeamId.B

    assert parse("ponto do Bo", "pt", match_context).team is None


def test_english_and_spanish_vocabularies(context_with) -> None:
    context = context_with(serving_team=TeamId.A)

    assert parse("point team b", "en", context).team is TeamId.B
    served = parse("sack for home", "en", context)
    assert served.type is CommandType.SERVER
    assert served.team is TeamId.A
    assert parse("punto equipo b", "es", context).team is TeamId.B
    assert parse("punto equipo b", "es-AR", context).type is CommandType.POINT


def test_unknown_text(match_context) -> None:
    intent = parse("bom dia pessoal", "pt", match_context)

    assert intent.type is CommandType.UNKNOWN
    assert intent.debug_message == "Could not identify team or player"


def test_parser_does_not_mutate_context_and_is_deterministic(match_context) -> None:
    parser = IntentParser()
    before = match_context

    first = parser.parse("ponto Ana time b", match_context, "pt")
    second = parser.parse("ponto Ana time b", match_context, "pt")

    assert first == second
    assert match_context == before
