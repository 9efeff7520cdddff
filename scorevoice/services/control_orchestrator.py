from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from scorevoice.config import VoiceSettings
from scorevoice.domain import (
    CommandHistoryEntry,
    CommandType,
    DomainConflict,
    DomainConflictState,
    Intent,
    MatchContext,
    PendingIntent,
    PlayerRef,
    TeamId,
)
from scorevoice.services.cloud_intent import (
    CloudFallbackConfigError,
    CloudFallbackError,
    intent_from_cloud_payload,
)
from scorevoice.services.collaborators import (
    CloudIntentService,
    Feedback,
    FeedbackKind,
    NullFeedback,
    ScoringCallbacks,
    SpeechEngine,
)
from scorevoice.services.command_deduplicator import CommandDeduplicator
from scorevoice.services.entity_resolver import find_team_cue, resolve_player
from scorevoice.services.intent_parser import IntentParser
from scorevoice.services.normalizer import normalize_text
from scorevoice.services.transcript_buffer import Scheduler, TranscriptBuffer
from scorevoice.services.vocabulary import get_vocabulary

logger = logging.getLogger(__name__)


class OrchestratorError(RuntimeError):
    """Raised when the orchestrator is used in a state that cannot serve the call."""


class OrchestratorState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    EXECUTING = "executing"
    PENDING_CONFIRMATION = "pending_confirmation"
    DOMAIN_CONFLICT = "domain_conflict"
    AI_ESCALATION = "ai_escalation"


class Outcome(str, Enum):
    EXECUTED = "executed"
    PENDING = "pending"
    CONFLICT = "conflict"
    AMBIGUOUS = "ambiguous"
    DUPLICATE = "duplicate"
    NOT_RECOGNIZED = "not_recognized"
    IGNORED = "ignored"
    ESCALATION_BUSY = "escalation_busy"


@dataclass(frozen=True)
class ProcessResult:
    outcome: Outcome
    intent: Intent | None = None
    reason: str | None = None

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "intent": self.intent.to_dict() if self.intent else None,
            "reason": self.reason,
        }


class ControlOrchestrator:
    """Session state machine between the speech engine and the scoreboard.

    Transcripts flushed by the buffer are parsed against the latest match
    snapshot and then executed, held for confirmation, surfaced as a domain
    conflict or escalated to the cloud service, depending on the intent and
    its confidence. One instance owns its deduplicator and history, so two
    matches never share replay state.
    """

    def __init__(
        self,
        scoring: ScoringCallbacks,
        *,
        language: str | None = None,
        settings: VoiceSettings | None = None,
        parser: IntentParser | None = None,
        deduplicator: CommandDeduplicator | None = None,
        cloud: CloudIntentService | None = None,
        speech_engine: SpeechEngine | None = None,
        feedback: Feedback | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or VoiceSettings()
        self.language = language or self.settings.language
        self.scoring = scoring
        self.parser = parser or IntentParser()
        self.deduplicator = deduplicator or CommandDeduplicator(
            cooldown_ms=self.settings.dedup_cooldown_ms,
            team_lockout_ms=self.settings.dedup_cooldown_ms,
            clock=clock,
        )
        self.cloud = cloud
        self.speech_engine = speech_engine
        self.feedback = feedback or NullFeedback()
        self._clock = clock
        self.buffer = TranscriptBuffer(
            self._on_flush,
            debounce_ms=self.settings.debounce_ms,
            duplicate_window_ms=self.settings.duplicate_transcript_ms,
            scheduler=scheduler,
            clock=clock,
        )

        self._context: MatchContext | None = None
        self._listening = False
        self._executing = False
        self._escalating = False
        self._pending: PendingIntent | None = None
        self._conflict: DomainConflictState | None = None
        self._history: list[CommandHistoryEntry] = []
        self._tasks: set[asyncio.Task] = set()
        self.interim_text = ""
        self.last_result: ProcessResult | None = None

        if speech_engine is not None:
            speech_engine.set_callbacks(
                self.on_result,
                self.on_interim_feedback,
                self.on_error,
                self.on_listening_status_changed,
            )

    # --- state -------------------------------------------------------------

    @property
    def state(self) -> OrchestratorState:
        """Current state, derived from the pending, conflict and in-flight flags.

        ``EXECUTING`` only lasts for the synchronous dispatch, so it is seen by
        scoring callbacks that read the state while they run.
        """
        self._expire_pending()
        if self._conflict is not None:
            return OrchestratorState.DOMAIN_CONFLICT
        if self._escalating:
            return OrchestratorState.AI_ESCALATION
        if self._executing:
            return OrchestratorState.EXECUTING
        if self._pending is not None:
            return OrchestratorState.PENDING_CONFIRMATION
        return OrchestratorState.LISTENING if self._listening else OrchestratorState.IDLE

    @property
    def is_listening(self) -> bool:
        return self._listening

    @property
    def context(self) -> MatchContext | None:
        return self._context

    @property
    def pending_intent(self) -> PendingIntent | None:
        self._expire_pending()
        return self._pending

    @property
    def domain_conflict(self) -> DomainConflictState | None:
        return self._conflict

    @property
    def command_history(self) -> tuple[CommandHistoryEntry, ...]:
        return tuple(self._history)

    def update_context(self, context: MatchContext) -> None:
        self._context = context

    def snapshot(self) -> dict:
        pending = self.pending_intent
        conflict = self._conflict
        return {
            "state": self.state.value,
            "language": self.language,
            "is_listening": self._listening,
            "pending_intent": pending.intent.to_dict() if pending else None,
            "domain_conflict": (
                {
                    "player": {"id": conflict.conflict.player.id, "name": conflict.conflict.player.name},
                    "detected_team": conflict.conflict.detected_team.value,
                    "player_team": conflict.conflict.player_team.value,
                    "skill": conflict.conflict.skill.value if conflict.conflict.skill else None,
                    "raw_text": conflict.conflict.raw_text,
                }
                if conflict
                else None
            ),
            "history": [entry.intent.to_dict() for entry in self._history],
            "dedup": self.deduplicator.debug_info(),
        }

    # --- speech engine callbacks ------------------------------------------

    def on_result(self, text: str, is_final: bool) -> None:
        self.buffer.push(text, is_final)

    def on_interim_feedback(self, text: str) -> None:
        self.interim_text = text

    def on_error(self, kind: str) -> None:
        logger.warning("speech engine error: %s", kind)
        self.feedback.notify(FeedbackKind.ERROR, f"Speech recognition error: {kind}")

    def on_listening_status_changed(self, is_listening: bool) -> None:
        self._listening = is_listening

    # --- listening ---------------------------------------------------------

    def start_listening(self) -> None:
        if self._listening:
            return
        self.deduplicator.reset()
        self._history.clear()
        self.buffer.reset_cooldown()
        if self.speech_engine is not None:
            self.speech_engine.start(self.language)
        else:
            self._listening = True

    def stop_listening(self) -> None:
        self.buffer.cancel()
        if not self._listening:
            return
        if self.speech_engine is not None:
            self.speech_engine.stop()
        else:
            self._listening = False

    def toggle_listening(self) -> None:
        if self._listening:
            self.stop_listening()
        else:
            self.start_listening()

    # --- transcript pipeline ----------------------------------------------

    async def process_transcript(self, text: str, is_final: bool = True) -> ProcessResult:
        context = self._require_context()
        self._expire_pending()

        if self._conflict is not None:
            return self._finish(ProcessResult(Outcome.IGNORED, reason="domain conflict awaiting decision"))

        if self._pending is not None:
            resolved = self._resolve_pending(text, context)
            if resolved is not None:
                return self._finish(resolved)

        intent = self.parser.parse(text, context, self.language)
        return self._finish(await self._route(intent, text, is_final, context))

    async def drain(self) -> None:
        """Wait for transcripts already flushed by the buffer."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_flush(self, text: str, is_final: bool) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                asyncio.run(self.process_transcript(text, is_final))
            except Exception as exc:
                self._report_flush_failure(text, exc)
            return
        task = loop.create_task(self.process_transcript(text, is_final))
        self._tasks.add(task)
        task.add_done_callback(lambda done: self._on_task_done(text, done))

    def _on_task_done(self, text: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._report_flush_failure(text, exc)

    def _report_flush_failure(self, text: str, exc: BaseException) -> None:
        logger.exception("failed to process transcript %r", text, exc_info=exc)
        self.feedback.notify(FeedbackKind.ERROR, f"Could not process command: {exc}")

    def _resolve_pending(self, text: str, context: MatchContext) -> ProcessResult | None:
        pending = self._pending
        vocab = get_vocabulary(self.language)
        normalized = normalize_text(text, vocab)

        team = find_team_cue(normalized, context, vocab)
        if team is not None:
            self._pending = None
            return self._complete_pending(pending.intent, team, context)

        if pending.awaiting_player:
            found = resolve_player(normalized, context, vocab, teams=(pending.intent.team,))
            if found.match is not None:
                player = found.match.player
                self._pending = None
                return self._execute(
                    replace(
                        pending.intent,
                        player=PlayerRef(player.id, player.name),
                        requires_more_info=False,
                    )
                )
        return None

    async def _route(self, intent: Intent, text: str, is_final: bool, context: MatchContext) -> ProcessResult:
        settings = self.settings

        if intent.domain_conflict is not None:
            return self._raise_conflict(intent, intent.domain_conflict)

        if intent.is_ambiguous:
            self.feedback.notify(FeedbackKind.ERROR, f"Which player? {', '.join(intent.candidates)}")
            return ProcessResult(Outcome.AMBIGUOUS, intent, intent.debug_message)

        if intent.type in (CommandType.UNDO, CommandType.SWAP):
            return self._execute(intent)

        if intent.requires_more_info and intent.type in (CommandType.POINT, CommandType.TIMEOUT):
            return self._hold(intent)

        if intent.type is not CommandType.UNKNOWN:
            if intent.confidence >= settings.confidence_execute:
                return self._execute(intent)
            if intent.confidence >= settings.confidence_confirm:
                return self._hold(intent)

        if is_final and settings.enable_cloud_fallback and self.cloud is not None:
            return await self._escalate(text, context)

        return ProcessResult(Outcome.NOT_RECOGNIZED, intent, intent.debug_message)

    async def _escalate(self, text: str, context: MatchContext) -> ProcessResult:
        if self._escalating:
            logger.info("cloud escalation already in flight, dropping %r", text)
            return ProcessResult(Outcome.ESCALATION_BUSY, reason="cloud escalation already in flight")

        self._escalating = True
        self.feedback.notify(FeedbackKind.THINKING, "Thinking...")
        try:
            payload = await self.cloud.parse_command(text, context)
        except (CloudFallbackError, CloudFallbackConfigError) as exc:
            logger.warning("cloud intent fallback failed: %s", exc)
            payload = None
        except Exception:
            logger.warning("cloud intent service raised unexpectedly", exc_info=True)
            payload = None
        finally:
            self._escalating = False
            self.feedback.hide_notification()

        intent = intent_from_cloud_payload(payload, text, context) if payload is not None else None
        if intent is None:
            self.feedback.notify(FeedbackKind.ERROR, "Command not recognized")
            return ProcessResult(Outcome.NOT_RECOGNIZED, reason="cloud fallback returned no usable intent")
        return self._execute(intent)

    # --- explicit decisions ------------------------------------------------

    def confirm_pending_intent(self, team: TeamId | None = None) -> ProcessResult:
        pending = self.pending_intent
        if pending is None:
            raise OrchestratorError("no pending intent to confirm")
        team = team or pending.intent.team
        if team is None:
            raise OrchestratorError("pending intent needs a team")
        self._pending = None
        return self._finish(self._complete_pending(pending.intent, team, self._require_context()))

    def cancel_pending_intent(self) -> None:
        if self._pending is not None:
            logger.info("pending intent cancelled: %s", self._pending.intent.debug_message)
        self._pending = None
        self.feedback.hide_notification()

    def resolve_domain_conflict(self, use_detected_team: bool) -> ProcessResult:
        state = self._conflict
        if state is None:
            raise OrchestratorError("no domain conflict to resolve")
        self._conflict = None
        conflict = state.conflict
        if use_detected_team:
            intent = replace(state.intent, team=conflict.detected_team, player=None, domain_conflict=None)
        else:
            intent = replace(state.intent, team=conflict.player_team, domain_conflict=None)
        return self._finish(self._execute(intent))

    def cancel_domain_conflict(self) -> None:
        self._conflict = None
        self.feedback.hide_notification()

    def reset(self) -> None:
        self.buffer.cancel()
        self.deduplicator.reset()
        self._history.clear()
        self._pending = None
        self._conflict = None

    # --- internals ---------------------------------------------------------

    def _execute(self, intent: Intent) -> ProcessResult:
        decision = self.deduplicator.can_execute(intent)
        if not decision.allowed:
            logger.debug("dedup rejected %s: %s", intent.debug_message, decision.reason)
            return ProcessResult(Outcome.DUPLICATE, intent, decision.reason)

        self._executing = True
        try:
            self.deduplicator.register(intent)
            self._dispatch(intent)
            self._history.insert(0, CommandHistoryEntry(intent, self._clock()))
            del self._history[self.settings.history_size:]
        finally:
            self._executing = False

        logger.info("executed %s", intent.debug_message or intent.type.value)
        self.feedback.notify(FeedbackKind.SUCCESS, intent.debug_message or intent.type.value)
        return ProcessResult(Outcome.EXECUTED, intent)

    def _dispatch(self, intent: Intent) -> None:
        scoring = self.scoring
        if intent.is_negative:
            if intent.team is not None:
                scoring.subtract_point(intent.team)
            else:
                scoring.undo()
            return

        if intent.type is CommandType.POINT and intent.team is not None:
            scoring.add_point(intent.team, intent.player.id if intent.player else None, intent.skill)
        elif intent.type is CommandType.TIMEOUT and intent.team is not None:
            scoring.call_timeout(intent.team)
        elif intent.type is CommandType.SERVER and intent.team is not None:
            scoring.set_serving_team(intent.team)
        elif intent.type is CommandType.SWAP:
            scoring.swap_sides()
        elif intent.type is CommandType.UNDO:
            scoring.undo()

    def _complete_pending(self, intent: Intent, team: TeamId, context: MatchContext) -> ProcessResult:
        if intent.player is not None:
            found = context.find_player(intent.player.id)
            if found is not None and found[1] is not team:
                conflict = DomainConflict(
                    player=intent.player,
                    detected_team=team,
                    player_team=found[1],
                    skill=intent.skill,
                    raw_text=intent.raw_text,
                )
                return self._raise_conflict(replace(intent, domain_conflict=conflict), conflict)
        return self._execute(intent.with_team(team))

    def _hold(self, intent: Intent) -> ProcessResult:
        self._pending = PendingIntent(intent, self._clock())
        self.feedback.notify(FeedbackKind.CONFIRM, intent.debug_message or "Confirm command")
        return ProcessResult(Outcome.PENDING, intent, intent.debug_message)

    def _raise_conflict(self, intent: Intent, conflict: DomainConflict) -> ProcessResult:
        self._pending = None
        self._conflict = DomainConflictState(conflict, intent, self._clock())
        self.feedback.notify(
            FeedbackKind.CONFLICT,
            f"{conflict.player.name} plays for team {conflict.player_team.value}, "
            f"heard team {conflict.detected_team.value}",
        )
        return ProcessResult(Outcome.CONFLICT, intent, "player roster disagrees with spoken team")

    def _expire_pending(self) -> None:
        ttl = self.settings.pending_ttl_seconds
        if self._pending is None or ttl <= 0:
            return
        if self._clock() - self._pending.created_at >= ttl:
            logger.info("pending intent expired: %s", self._pending.intent.debug_message)
            self._pending = None

    def _require_context(self) -> MatchContext:
        if self._context is None:
            raise OrchestratorError("match context has not been set")
        return self._context

    def _finish(self, result: ProcessResult) -> ProcessResult:
        self.last_result = result
        return result
