from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from scorevoice.api.voice import router as voice_router
from scorevoice.logging_setup import setup_logging
from scorevoice.runtime import registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(registry.settings.log_level, registry.settings.log_json)
    yield


app = FastAPI(title="Scorevoice API", lifespan=lifespan)
app.include_router(voice_router)
