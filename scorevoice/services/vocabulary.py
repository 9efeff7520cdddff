"""Per-language keyword tables for the voice command parser.

Every phrase is stored already normalized (lowercase, no diacritics, digits
instead of number words) so it can be matched against normalized text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Tuple

from scorevoice.domain import SkillType

DEFAULT_LANGUAGE = "en"


@dataclass(frozen=True)
class Vocabulary:
    language: str
    team_a_strict: Tuple[str, ...]
    team_b_strict: Tuple[str, ...]
    side_a: Tuple[str, ...]
    side_b: Tuple[str, ...]
    generic_a: Tuple[str, ...]
    generic_b: Tuple[str, ...]
    point_triggers: Tuple[str, ...]
    negative: Tuple[str, ...]
    global_undo: Tuple[str, ...]
    timeout: Tuple[str, ...]
    server: Tuple[str, ...]
    swap: Tuple[str, ...]
    jersey_triggers: Tuple[str, ...]
    prepositions: Tuple[str, ...]
    compound_skills: Tuple[Tuple[str, SkillType], ...]
    skills: Tuple[Tuple[SkillType, Tuple[str, ...]], ...]
    numbers: Mapping[str, str]
    phonetic: Mapping[str, str]
    keyword_tokens: FrozenSet[str] = field(init=False)

    def __post_init__(self) -> None:
        phrases = [
            *self.team_a_strict,
            *self.team_b_strict,
            *self.side_a,
            *self.side_b,
            *self.generic_a,
            *self.generic_b,
            *self.point_triggers,
            *self.negative,
            *self.global_undo,
            *self.timeout,
            *self.server,
            *self.swap,
            *self.jersey_triggers,
            *self.prepositions,
            *(phrase for phrase, _ in self.compound_skills),
            *(keyword for _, keywords in self.skills for keyword in keywords),
        ]
        tokens = {token for phrase in phrases for token in phrase.split()}
        object.__setattr__(self, "keyword_tokens", frozenset(tokens))

    def team_cues(self, team: str) -> Tuple[str, ...]:
        if team == "A":
            return self.team_a_strict + self.side_a + self.generic_a
        return self.team_b_strict + self.side_b + self.generic_b


PORTUGUESE = Vocabulary(
    language="pt",
    team_a_strict=("time a", "equipe a", "lado a", "time da casa", "mandante", "casa"),
    team_b_strict=("time b", "equipe b", "lado b", "time de fora", "visitante"),
    side_a=("lado esquerdo", "esquerda", "esquerdo"),
    side_b=("lado direito", "direita", "direito"),
    generic_a=("ponto a",),
    generic_b=("ponto b",),
    point_triggers=("ponto", "pontos", "marcou", "pontuou", "mais 1", "adicionar"),
    negative=("tirar", "remover", "menos", "subtrair", "apagar", "retirar", "nao foi", "cancelar", "volta", "corrigir"),
    global_undo=("desfazer", "voltar", "cancelar", "engano", "ops", "undo"),
    timeout=("timeout", "pedido de tempo", "tempo", "pausa", "parar"),
    server=("troca de saque", "mudanca de saque", "quem saca", "bola com", "saque", "servico", "sacar", "servir"),
    swap=("trocar lados", "trocar de lado", "troca de lado", "mudar lados", "mudar de lado", "virar lado", "inverter"),
    jersey_triggers=("camisa", "numero", "jogador"),
    prepositions=("do", "da", "de", "para", "pelo", "pela", "o", "no", "na", "com", "pro", "pra", "e"),
    compound_skills=(
        ("ponto de saque", SkillType.ACE),
        ("ponto no saque", SkillType.ACE),
        ("saque direto", SkillType.ACE),
        ("ponto de bloqueio", SkillType.BLOCK),
        ("ponto de ataque", SkillType.ATTACK),
        ("mata bola", SkillType.ATTACK),
        ("ponto de erro", SkillType.OPPONENT_ERROR),
        ("erro deles", SkillType.OPPONENT_ERROR),
        ("na rede", SkillType.OPPONENT_ERROR),
        ("2 toques", SkillType.OPPONENT_ERROR),
        ("bola fora", SkillType.OPPONENT_ERROR),
    ),
    skills=(
        (SkillType.ACE, ("ace", "direto", "sacou")),
        (SkillType.BLOCK, ("bloqueio", "bloqueou", "paredao", "toco", "block")),
        (SkillType.ATTACK, ("ataque", "atacou", "cortada", "cravou", "largada", "largadinha", "bomba")),
        (SkillType.OPPONENT_ERROR, ("erro", "invasao", "conducao")),
    ),
    numbers={
        "zero": "0", "um": "1", "uma": "1", "dois": "2", "duas": "2", "tres": "3",
        "quatro": "4", "cinco": "5", "seis": "6", "sete": "7", "oito": "8", "nove": "9",
        "dez": "10", "onze": "11", "doze": "12", "treze": "13", "catorze": "14",
        "quatorze": "14", "quinze": "15", "dezesseis": "16", "dezessete": "17",
        "dezoito": "18", "dezenove": "19", "vinte": "20",
    },
    phonetic={
        "taimaute": "timeout",
        "taimaut": "timeout",
        "taime aute": "timeout",
        "time out": "timeout",
        "time aut": "timeout",
        "pont": "ponto",
        "bloco": "bloqueio",
        "bloqueiu": "bloqueio",
        "eice": "ace",
        "sac": "saque",
    },
)

ENGLISH = Vocabulary(
    language="en",
    team_a_strict=("team a", "home team", "home", "host"),
    team_b_strict=("team b", "away team", "away", "guests", "guest", "visitors"),
    side_a=("left side", "left"),
    side_b=("right side", "right"),
    generic_a=("point a",),
    generic_b=("point b",),
    point_triggers=("point", "points", "score", "scored", "plus 1", "add"),
    negative=("remove", "minus", "subtract", "delete", "take away", "correction", "cancel"),
    global_undo=("undo", "oops", "revert", "go back", "cancel"),
    timeout=("timeout", "pause", "break"),
    server=("change server", "change serve", "side out", "ball to", "serve", "service", "server", "serving"),
    swap=("swap sides", "switch sides", "change sides", "change court", "swap", "switch"),
    jersey_triggers=("number", "jersey", "player"),
    prepositions=("of", "for", "by", "the", "from", "with", "to", "and"),
    compound_skills=(
        ("service ace", SkillType.ACE),
        ("ace point", SkillType.ACE),
        ("serve point", SkillType.ACE),
        ("block point", SkillType.BLOCK),
        ("attack point", SkillType.ATTACK),
        ("kill shot", SkillType.ATTACK),
        ("opponent error", SkillType.OPPONENT_ERROR),
        ("in the net", SkillType.OPPONENT_ERROR),
        ("double touch", SkillType.OPPONENT_ERROR),
        ("ball out", SkillType.OPPONENT_ERROR),
    ),
    skills=(
        (SkillType.ACE, ("ace",)),
        (SkillType.BLOCK, ("block", "blocked", "roof", "stuff")),
        (SkillType.ATTACK, ("attack", "kill", "spike", "smash", "tip", "dump")),
        (SkillType.OPPONENT_ERROR, ("error", "fault", "mistake")),
    ),
    numbers={
        "zero": "0", "one": "1", "two": "2", "three": "3", "four": "4", "five": "5",
        "six": "6", "seven": "7", "eight": "8", "nine": "9", "ten": "10",
        "eleven": "11", "twelve": "12", "thirteen": "13", "fourteen": "14",
        "fifteen": "15", "sixteen": "16", "seventeen": "17", "eighteen": "18",
        "nineteen": "19", "twenty": "20",
    },
    phonetic={
        "time out": "timeout",
        "sack": "serve",
        "surf": "serve",
        "serf": "serve",
        "pint": "point",
        "paint": "point",
        "pointe": "point",
        "blog": "block",
        "ase": "ace",
    },
)

SPANISH = Vocabulary(
    language="es",
    team_a_strict=("equipo a", "lado a", "local", "casa"),
    team_b_strict=("equipo b", "lado b", "visitante"),
    side_a=("lado izquierdo", "izquierda", "izquierdo"),
    side_b=("lado derecho", "derecha", "derecho"),
    generic_a=("punto a",),
    generic_b=("punto b",),
    point_triggers=("punto", "puntos", "anoto", "marco", "sumar", "mas 1"),
    negative=("quitar", "restar", "menos", "borrar", "no fue", "cancelar", "corregir"),
    global_undo=("deshacer", "volver", "cancelar", "atras", "ups"),
    timeout=("tiempo muerto", "pedir tiempo", "timeout", "tiempo", "pausa"),
    server=("cambio de saque", "cambio de servicio", "balon para", "saque", "servicio", "sacar"),
    swap=("cambiar lados", "cambiar de lado", "cambio de lado", "cambio de campo", "invertir"),
    jersey_triggers=("numero", "camiseta", "jugador"),
    prepositions=("de", "del", "para", "por", "el", "la", "con", "y"),
    compound_skills=(
        ("punto de saque", SkillType.ACE),
        ("saque directo", SkillType.ACE),
        ("punto de bloqueo", SkillType.BLOCK),
        ("punto de ataque", SkillType.ATTACK),
        ("error rival", SkillType.OPPONENT_ERROR),
        ("doble toque", SkillType.OPPONENT_ERROR),
        ("en la red", SkillType.OPPONENT_ERROR),
        ("balon fuera", SkillType.OPPONENT_ERROR),
    ),
    skills=(
        (SkillType.ACE, ("ace", "directo")),
        (SkillType.BLOCK, ("bloqueo", "bloqueado", "muro", "tapa", "block")),
        (SkillType.ATTACK, ("ataque", "remate", "mate", "finta", "clavo")),
        (SkillType.OPPONENT_ERROR, ("error", "falla", "invasion")),
    ),
    numbers={
        "cero": "0", "uno": "1", "una": "1", "dos": "2", "tres": "3", "cuatro": "4",
        "cinco": "5", "seis": "6", "siete": "7", "ocho": "8", "nueve": "9",
        "diez": "10", "once": "11", "doce": "12", "trece": "13", "catorce": "14",
        "quince": "15", "dieciseis": "16", "diecisiete": "17", "dieciocho": "18",
        "diecinueve": "19", "veinte": "20",
    },
    phonetic={
        "time out": "timeout",
        "taimaut": "timeout",
        "punta": "punto",
        "bloque": "bloqueo",
    },
)

VOCABULARIES: dict[str, Vocabulary] = {
    vocab.language: vocab for vocab in (PORTUGUESE, ENGLISH, SPANISH)
}


def get_vocabulary(language: str | None) -> Vocabulary:
    """Return the table for a language tag such as ``pt`` or ``pt-BR``."""
    if not language:
        return VOCABULARIES[DEFAULT_LANGUAGE]
    base = language.lower().replace("_", "-").split("-")[0]
    return VOCABULARIES.get(base, VOCABULARIES[DEFAULT_LANGUAGE])
