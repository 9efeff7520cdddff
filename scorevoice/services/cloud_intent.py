from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Literal
from urllib import error, request

from pydantic import BaseModel, Field, ValidationError

from scorevoice.config import CloudIntentSettings
from scorevoice.domain import CommandType, Intent, MatchContext, PlayerRef, SkillType, TeamId

logger = logging.getLogger(__name__)

CLOUD_CONFIDENCE = 0.9


class CloudFallbackConfigError(ValueError):
    """Raised when cloud intent provider settings are invalid."""


class CloudFallbackError(RuntimeError):
    """Raised when the upstream provider returns an error."""

    def __init__(self, message: str, *, status_code: int, retryable: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class CloudIntentPayload(BaseModel):
    type: Literal["point", "timeout", "server", "swap", "undo", "unknown"]
    team: Literal["A", "B"] | None = None
    player_id: str | None = Field(default=None, alias="playerId")
    skill: Literal["attack", "block", "ace", "opponent_error", "generic"] | None = None
    is_negative: bool = Field(default=False, alias="isNegative")

    model_config = {"populate_by_name": True, "extra": "ignore"}


def intent_from_cloud_payload(payload: Any, transcript: str, context: MatchContext) -> Intent | None:
    """Trust a provider answer only if it fits the closed command vocabulary.

    Returns ``None`` for invalid payloads, ``unknown`` answers and commands
    that need a team but name none.
    """
    if not isinstance(payload, dict):
        return None
    try:
        parsed = CloudIntentPayload.model_validate(payload)
    except ValidationError as exc:
        logger.warning("discarding invalid cloud intent: %s", exc.errors(include_url=False))
        return None

    command = CommandType(parsed.type)
    if command is CommandType.UNKNOWN:
        return None

    team = TeamId(parsed.team) if parsed.team else None
    player = None
    if parsed.player_id and parsed.player_id != "unknown":
        found = context.find_player(parsed.player_id)
        if found is not None:
            player = PlayerRef(found[0].id, found[0].name)
            team = found[1]

    if command in (CommandType.POINT, CommandType.TIMEOUT, CommandType.SERVER) and team is None:
        return None

    return Intent(
        type=command,
        confidence=CLOUD_CONFIDENCE,
        raw_text=transcript,
        team=team,
        player=player if command is CommandType.POINT else None,
        skill=SkillType(parsed.skill) if parsed.skill and command is CommandType.POINT else None,
        is_negative=parsed.is_negative,
        debug_message=f"Cloud intent {command.value}" + (f" [{team.value}]" if team else ""),
    )


class OpenAICloudIntentService:
    """Asks an OpenAI-compatible chat endpoint for a JSON intent."""

    def __init__(self, settings: CloudIntentSettings | None = None) -> None:
        self.settings = settings or CloudIntentSettings.from_env()

    async def parse_command(self, transcript: str, context: MatchContext) -> dict[str, Any] | None:
        if self.settings.provider != "openai":
            raise CloudFallbackConfigError(f"Unsupported cloud intent provider: {self.settings.provider}")
        if not self.settings.api_key:
            raise CloudFallbackConfigError("OPENAI_API_KEY is not configured")
        return await asyncio.to_thread(self._request_intent, transcript, context)

    def _request_intent(self, transcript: str, context: MatchContext) -> dict[str, Any] | None:
        body = json.dumps(
            {
                "model": self.settings.model,
                "temperature": 0,
                "response_format": {"type": "json_object"},
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(transcript, context)},
                ],
            }
        ).encode("utf-8")

        req = request.Request(
            f"{self.settings.base_url}/chat/completions",
            data=body,
            method="POST",
            headers={
                "Authorization": f"Bearer {self.settings.api_key}",
                "Content-Type": "application/json",
            },
        )

        try:
            with request.urlopen(req, timeout=self.settings.timeout_seconds) as response:
                payload = json.loads(response.read().decode("utf-8"))
        except error.HTTPError as exc:
            _handle_http_error(exc)
        except error.URLError as exc:
            raise CloudFallbackError(f"Cloud intent provider unavailable: {exc.reason}", status_code=503, retryable=True) from exc
        except (TimeoutError, OSError) as exc:
            raise CloudFallbackError(f"Cloud intent request failed: {exc}", status_code=503, retryable=True) from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CloudFallbackError("Cloud intent provider returned a non-JSON body", status_code=502) from exc

        return _extract_content(payload)


SYSTEM_PROMPT = (
    "You interpret spoken volleyball scorekeeping commands. "
    "Answer with one JSON object with the keys type, team, playerId, skill and isNegative. "
    "type is one of point, timeout, server, swap, undo, unknown. "
    "team is A or B. skill is one of attack, block, ace, opponent_error, generic. "
    "isNegative is true when the speaker removes or corrects a point."
)


def build_prompt(transcript: str, context: MatchContext) -> str:
    roster_a = ", ".join(_roster_entry(player.id, player.name, player.number) for player in context.players_a)
    roster_b = ", ".join(_roster_entry(player.id, player.name, player.number) for player in context.players_b)
    return "\n".join(
        [
            f'Team A: "{context.team_a_name}" [{roster_a}]',
            f'Team B: "{context.team_b_name}" [{roster_b}]',
            f'Input: "{transcript}"',
            "Rules:",
            "- Identify team A or B by name similarity; speech recognition often mangles names.",
            "- Identify the player by name or jersey number similarity and answer with its id.",
            "- Words that sound like timeout, serve or point are transcription errors for them.",
            "- Skill keywords: ace, block, attack, out or error.",
            '- "Remove point" means isNegative true.',
            "- Answer type unknown when unsure.",
        ]
    )


def _roster_entry(player_id: str, name: str, number: str | None) -> str:
    if number:
        return f"{name} (#{number}, id={player_id})"
    return f"{name} (id={player_id})"


def _extract_content(payload: Any) -> dict[str, Any] | None:
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise CloudFallbackError("Cloud intent provider returned no message", status_code=502) from None
    try:
        parsed = json.loads(content)
    except (json.JSONDecodeError, TypeError):
        raise CloudFallbackError("Cloud intent provider returned malformed JSON", status_code=502) from None
    return parsed if isinstance(parsed, dict) else None


def _handle_http_error(exc: error.HTTPError) -> None:
    raw_body = exc.read().decode("utf-8", errors="ignore")
    message = _extract_error_message(raw_body) or "Cloud intent request failed"

    if exc.code == 429:
        raise CloudFallbackError(message, status_code=502, retryable=True) from exc
    if exc.code >= 500:
        raise CloudFallbackError(message, status_code=503, retryable=True) from exc
    raise CloudFallbackError(message, status_code=502) from exc


def _extract_error_message(raw_body: str) -> str | None:
    try:
        parsed = json.loads(raw_body)
    except json.JSONDecodeError:
        return raw_body or None

    if isinstance(parsed, dict):
        error_obj = parsed.get("error")
        if isinstance(error_obj, dict):
            message = error_obj.get("message")
            if isinstance(message, str):
                return message
    return None
