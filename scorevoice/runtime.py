from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable
from uuid import uuid4

from scorevoice.config import VoiceSettings
from scorevoice.services.cloud_intent import OpenAICloudIntentService
from scorevoice.services.collaborators import ActionRecorder
from scorevoice.services.control_orchestrator import ControlOrchestrator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VoiceSession:
    id: str
    orchestrator: ControlOrchestrator
    recorder: ActionRecorder
    last_used: float = 0.0


@dataclass(slots=True)
class SessionRegistry:
    """In-memory voice sessions keyed by id.

    Sessions untouched for ``settings.session_idle_seconds`` are evicted the
    next time the registry is used; with ``0`` they live until deleted.
    """

    settings: VoiceSettings = field(default_factory=VoiceSettings.from_env)
    sessions: dict[str, VoiceSession] = field(default_factory=dict)
    clock: Callable[[], float] = time.monotonic

    def create(self, language: str | None = None, enable_cloud_fallback: bool | None = None) -> VoiceSession:
        self.evict_idle()
        settings = self.settings
        if enable_cloud_fallback is not None:
            settings = replace(settings, enable_cloud_fallback=enable_cloud_fallback)
        recorder = ActionRecorder()
        orchestrator = ControlOrchestrator(
            recorder,
            language=language,
            settings=settings,
            cloud=OpenAICloudIntentService() if settings.enable_cloud_fallback else None,
        )
        session = VoiceSession(id=str(uuid4()), orchestrator=orchestrator, recorder=recorder, last_used=self.clock())
        self.sessions[session.id] = session
        return session

    def get(self, session_id: str) -> VoiceSession | None:
        self.evict_idle()
        session = self.sessions.get(session_id)
        if session is not None:
            session.last_used = self.clock()
        return session

    def delete(self, session_id: str) -> VoiceSession | None:
        session = self.sessions.pop(session_id, None)
        if session is not None:
            session.orchestrator.reset()
        return session

    def evict_idle(self) -> list[str]:
        ttl = self.settings.session_idle_seconds
        if ttl <= 0:
            return []
        now = self.clock()
        expired = [sid for sid, session in self.sessions.items() if now - session.last_used >= ttl]
        for sid in expired:
            logger.info("evicting idle voice session %s", sid)
            self.delete(sid)
        return expired


registry = SessionRegistry()
