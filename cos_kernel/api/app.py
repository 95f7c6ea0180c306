"""
cOS Kernel API — FastAPI endpoints.

Exposes the dispatch pipeline over HTTP for:
- Conversation sessions (one orchestrator and context per session id)
- Engine lifecycle
- Pattern-only classification (no backend call)
- Registry and intent inspection
"""

import asyncio
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from loguru import logger
from pydantic import BaseModel, Field

from cos_kernel.classifier.slots import extract_action_data
from cos_kernel.dispatch.orchestrator import DispatchOrchestrator
from cos_kernel.dispatch.registry import HandlerRegistry
from cos_kernel.handlers.calculator import CalculatorHandler
from cos_kernel.handlers.files import FileManagementHandler
from cos_kernel.models.conversation import ConversationContext
from cos_kernel.models.intent import INTENT_CATEGORIES, category_for
from cos_kernel.settings import CosSettings, get_settings
from cos_kernel.understanding.backend import LiteLLMBackend
from cos_kernel.understanding.engine import UnderstandingEngine


# --- Request/Response Models ---

class TurnRequest(BaseModel):
    text: str = Field(min_length=1)


class ClassifyRequest(BaseModel):
    text: str


class ClassifyResponse(BaseModel):
    intent: str
    category: str
    rule: Optional[str] = None
    action_data: dict = {}


# --- Wiring ---

def build_engine(settings: CosSettings) -> UnderstandingEngine:
    """Generative engine when a model is configured, pattern-only otherwise."""
    backend = None
    if settings.llm_model:
        backend = LiteLLMBackend(
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            api_base=settings.llm_api_base,
        )
    return UnderstandingEngine(backend=backend)


def build_registry(settings: CosSettings) -> HandlerRegistry:
    registry = HandlerRegistry(strict=settings.strict_registry)
    registry.register(
        FileManagementHandler(
            root=settings.files_root,
            default_days=settings.default_delete_days,
        )
    )
    registry.register(CalculatorHandler())
    return registry


# --- Application Factory ---

def create_app(
    settings: Optional[CosSettings] = None,
    engine: Optional[UnderstandingEngine] = None,
    registry: Optional[HandlerRegistry] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="cOS Kernel API",
        description="Conversational intent resolution and dispatch",
        version="0.1.0",
    )

    cfg = settings or get_settings()
    eng = engine or build_engine(cfg)
    reg = registry if registry is not None else build_registry(cfg)

    if not eng.initialize():
        logger.warning("Engine not initialized at startup; turns will be declined")

    sessions: Dict[str, DispatchOrchestrator] = {}
    locks: Dict[str, asyncio.Lock] = {}

    # Store components on app state for access in endpoints
    app.state.settings = cfg
    app.state.engine = eng
    app.state.registry = reg
    app.state.sessions = sessions

    def _session(session_id: str, create: bool = False) -> DispatchOrchestrator:
        orchestrator = sessions.get(session_id)
        if orchestrator is None:
            if not create:
                raise HTTPException(404, "Session not found")
            orchestrator = DispatchOrchestrator(
                engine=eng,
                registry=reg,
                context=ConversationContext(max_history=cfg.max_history),
            )
            sessions[session_id] = orchestrator
            logger.info(f"Session {session_id} started")
        return orchestrator

    # === SESSIONS ===

    @app.post("/sessions/{session_id}/turns")
    async def run_turn(session_id: str, req: TurnRequest):
        """Process one utterance within a session."""
        orchestrator = _session(session_id, create=True)
        lock = locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            reply = await orchestrator.process_turn(req.text)
        return reply.model_dump(mode="json")

    @app.get("/sessions")
    def list_sessions():
        """Active session ids."""
        return sorted(sessions)

    @app.get("/sessions/{session_id}/context")
    def get_context(session_id: str):
        """Current conversation context of a session."""
        return _session(session_id).context.model_dump(mode="json")

    @app.delete("/sessions/{session_id}")
    def end_session(session_id: str):
        """Forget a session and its context."""
        sessions.pop(session_id, None)
        locks.pop(session_id, None)
        return {"status": "ended", "session_id": session_id}

    # === ENGINE ===

    @app.get("/health")
    def health():
        """Engine state and registry size."""
        return {
            "engine_state": eng.state.value,
            "mode": eng.mode,
            "handlers": len(reg),
            "sessions": len(sessions),
        }

    @app.post("/engine/initialize")
    def initialize_engine():
        """Retry bringing the engine to READY."""
        ready = eng.initialize()
        return {"ready": ready, "engine_state": eng.state.value}

    @app.post("/engine/teardown")
    def teardown_engine():
        """Release the backend; turns are declined until re-initialized."""
        eng.teardown()
        return {"engine_state": eng.state.value}

    # === CLASSIFICATION ===

    @app.post("/classify", response_model=ClassifyResponse)
    def classify(req: ClassifyRequest):
        """Pattern-only classification with slots. Never calls the backend."""
        intent, rule = eng.classifier.classify_with_rule(req.text)
        return ClassifyResponse(
            intent=intent.value,
            category=category_for(intent).value,
            rule=rule,
            action_data=extract_action_data(intent, req.text),
        )

    @app.get("/intents")
    def list_intents():
        """The closed intent set and the category each routes to."""
        return [
            {"intent": intent.value, "category": category.value}
            for intent, category in INTENT_CATEGORIES.items()
        ]

    @app.get("/handlers")
    def list_handlers():
        """Registered handlers, their capabilities and the routes they own."""
        return reg.describe()

    return app


# Default application instance
app = create_app()
