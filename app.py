"""
Visitor Persona API

FastAPI service for behavior tracking and persona classification.
"""

import logging
import threading
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from visitor_persona.classifiers.hybrid_classifier import (
    HybridPersonaClassifier,
    fingerprint_session,
)
from visitor_persona.classifiers.llm_classifier import LLMPersonaClassifier
from visitor_persona.models.aggregated_behavior import AggregatedBehavior
from visitor_persona.models.behavior_event import TrackRequest
from visitor_persona.models.persona import PersonaType
from visitor_persona.personalization.content_selector import ContentSelector
from visitor_persona.storage.session_store import SessionStore, connect
from visitor_persona.tracking.event_aggregator import EventAggregator
from visitor_persona.utils.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_store: Optional[SessionStore] = None
_store_lock = threading.Lock()


def get_store() -> Optional[SessionStore]:
    """Session store for the configured database, or None without one."""
    global _store
    if _store is None and settings.database_url:
        # Sync dependency: runs on worker threads, so connect only once
        with _store_lock:
            if _store is None:
                try:
                    _store = connect(settings.database_url)
                except Exception:
                    logger.exception("Could not connect to the session database")
                    return None
    return _store


@lru_cache
def get_llm() -> Optional[LLMPersonaClassifier]:
    return LLMPersonaClassifier.from_settings(settings)


def get_classifier(
    store: Optional[SessionStore] = Depends(get_store),
    llm: Optional[LLMPersonaClassifier] = Depends(get_llm),
) -> HybridPersonaClassifier:
    return HybridPersonaClassifier(store=store, llm=llm)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _store is not None:
        _store.close()


app = FastAPI(
    title="Visitor Persona",
    description="Track portfolio visitor behavior and classify visitors into personas",
    version="1.0.0",
    lifespan=lifespan,
)


class ClassifyRequest(BaseModel):
    session_id: str = ""
    use_ai: bool = True


@app.get("/")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "visitor-persona",
        "version": "1.0.0",
        "database": bool(settings.database_url),
        "llm": settings.llm_configured,
    }


@app.get("/health")
async def health():
    """Alias for health check."""
    return await health_check()


@app.post("/track")
async def track(
    request: TrackRequest,
    store: Optional[SessionStore] = Depends(get_store),
):
    """
    Collect a batch of behavior events.

    Events are logged raw and folded into the session's aggregated
    behavior. Storage problems never fail the request.
    """
    if not request.events:
        raise HTTPException(status_code=400, detail="No events provided")

    session_key = request.events[0].session_id
    if not session_key:
        raise HTTPException(status_code=400, detail="No session ID")

    if store is not None:
        try:
            await run_in_threadpool(_store_events, store, session_key, request)
        except Exception:
            # Tracking is best effort
            logger.exception("Failed to store %d events", len(request.events))

    return {"success": True, "events_processed": len(request.events)}


def _store_events(store: SessionStore, session_key: str, request: TrackRequest) -> None:
    fingerprint_hash = fingerprint_session(session_key)

    session = store.get_session(fingerprint_hash)
    if session is None:
        session = store.create_session(fingerprint_hash, request.device_type)
    else:
        store.touch_session(session.id)

    store.append_events(session.id, request.events)

    behavior = store.get_behavior(session.id)
    if behavior is None:
        # Purged by the retention job; counting starts over
        logger.info("Session %s has no aggregated behavior row, starting a new one", session.id)
        behavior = AggregatedBehavior(session_id=session.id)
    store.save_behavior(EventAggregator().apply(behavior, request.events))


@app.post("/persona/classify")
async def classify_persona(
    request: ClassifyRequest,
    classifier: HybridPersonaClassifier = Depends(get_classifier),
):
    """
    Classify the visitor behind a session id.

    Always answers 200 once the session id is present; failures are
    reported through `success` and `source`.
    """
    if not request.session_id:
        raise HTTPException(status_code=400, detail="No session ID provided")

    result = await classifier.classify(request.session_id, use_ai=request.use_ai)
    return result.to_dict()


@app.get("/persona/{persona}/content")
async def persona_content(persona: str, history: Optional[str] = None):
    """
    Section order, profile and chat prompt for a persona.

    `history` is an optional comma-separated list of visited paths.
    """
    try:
        persona_type = PersonaType(persona.lower())
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown persona: {persona}")

    navigation_history = [p for p in history.split(',') if p] if history else []
    selector = ContentSelector()
    return {
        "persona": persona_type.value,
        "sections": selector.section_order(persona_type),
        "profile": selector.persona_profile(persona_type).to_dict(),
        "chat_system_prompt": selector.chat_system_prompt(persona_type, navigation_history),
    }


def verify_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Require `Authorization: Bearer <CRON_SECRET>` when a secret is configured."""
    if settings.cron_secret and authorization != f"Bearer {settings.cron_secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")


@app.get("/cron/cleanup", dependencies=[Depends(verify_cron_secret)])
async def cleanup(store: Optional[SessionStore] = Depends(get_store)):
    """
    Retention job, meant to be called daily by a scheduler.

    Deletes raw behavior logs older than LOG_RETENTION_DAYS and aggregated
    behavior not updated for BEHAVIOR_RETENTION_DAYS.
    """
    if store is None:
        raise HTTPException(status_code=503, detail="No session database configured")

    now = datetime.now(timezone.utc)
    logs_cutoff = now - timedelta(days=settings.log_retention_days)
    behavior_cutoff = now - timedelta(days=settings.behavior_retention_days)

    try:
        logs_deleted, behaviors_deleted = await run_in_threadpool(
            store.purge_older_than, logs_cutoff, behavior_cutoff
        )
    except Exception:
        logger.exception("Retention cleanup failed")
        raise HTTPException(status_code=500, detail="Cleanup failed")

    logger.info(
        "Retention cleanup removed %d log rows and %d behavior rows",
        logs_deleted, behaviors_deleted,
    )
    return {
        "success": True,
        "logs_deleted": logs_deleted,
        "behaviors_deleted": behaviors_deleted,
        "timestamp": now.isoformat(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
