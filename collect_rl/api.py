"""
REST API server for the collection agent.

Lets a UI collaborator start sessions, submit customer turns and read
learning statistics over HTTP. Sessions live in memory only.

Run with:
    python -m collect_rl.api --classifier-url http://localhost:8000
"""
from __future__ import annotations

import argparse
import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .config import (
    EmptyConfigurationError,
    SessionConfig,
    get_preset,
    list_presets,
)
from .logging_config import configure_logging
from .session import CollectionSession
from .strategies import STRATEGIES
from .types import Intent, Parameter

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"
DEFAULT_MAX_SESSIONS = 100


# ============================================================================
# Pydantic Models for API
# ============================================================================

class ParameterModel(BaseModel):
    """A risk parameter as supplied by the UI."""
    id: str = ""
    name: str
    value: float = Field(0.0, allow_inf_nan=False)
    type: str = Field("Neutral", description="Positive, Negative or Neutral")


class IntentModel(BaseModel):
    """An intent catalog entry as supplied by the UI."""
    id: str = ""
    name: str
    type: str = Field("Neutral", description="Positive, Negative or Neutral")
    description: str = ""
    value: float = Field(0.0, allow_inf_nan=False)


class SessionCreateRequest(BaseModel):
    """Request to start a session from a preset or explicit configuration."""
    preset: Optional[str] = Field(None, description="Built-in preset name")
    parameters: Optional[List[ParameterModel]] = None
    intents: Optional[List[IntentModel]] = None
    classifier_url: Optional[str] = None
    classifier_timeout: Optional[float] = Field(None, gt=0)
    use_remote_classifier: bool = True
    seed: Optional[int] = None


class SessionCreated(BaseModel):
    session_id: str
    state: str
    strategy: str
    opening_message: str


class TurnRequest(BaseModel):
    message: str = Field(..., description="Customer's reply")


# ============================================================================
# API Server
# ============================================================================

class CollectionAPIServer:
    """
    FastAPI-based REST server managing in-memory collection sessions.
    
    At most ``max_sessions`` sessions are kept; starting one more evicts
    the least recently used.
    """

    def __init__(
        self,
        default_classifier_url: Optional[str] = None,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ):
        self.default_classifier_url = default_classifier_url
        self.max_sessions = max(1, max_sessions)
        self.sessions: "OrderedDict[str, CollectionSession]" = OrderedDict()

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            yield
            await self.close_all()

        self.app = FastAPI(
            title="Collection Agent API",
            description="Q-learning strategy selection for collection dialogues",
            version=API_VERSION,
            lifespan=lifespan,
        )
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        self._register_routes()

    def build_config(self, request: SessionCreateRequest) -> SessionConfig:
        if request.preset:
            config = get_preset(request.preset)
            if config is None:
                raise HTTPException(status_code=404, detail=f"Unknown preset: {request.preset}")
        else:
            config = SessionConfig()

        if request.parameters is not None:
            config.parameters = [Parameter.from_dict(p.model_dump()) for p in request.parameters]
        if request.intents is not None:
            config.intents = [Intent.from_dict(i.model_dump()) for i in request.intents]

        config.apply_env()
        if self.default_classifier_url:
            config.classifier_url = self.default_classifier_url
        if request.classifier_url:
            config.classifier_url = request.classifier_url
        if request.classifier_timeout:
            config.classifier_timeout = request.classifier_timeout
        config.use_remote_classifier = request.use_remote_classifier
        if request.seed is not None:
            config.agent.prng_seed = request.seed
        return config

    def get_session(self, session_id: str) -> CollectionSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
        self.sessions.move_to_end(session_id)
        return session

    async def add_session(self, session: CollectionSession) -> None:
        self.sessions[session.session_id] = session
        while len(self.sessions) > self.max_sessions:
            evicted_id, evicted = self.sessions.popitem(last=False)
            await evicted.close()
            logger.info(
                "Evicted least recently used session",
                extra={"subsystem": "api", "session_id": evicted_id},
            )

    async def close_all(self) -> None:
        while self.sessions:
            _, session = self.sessions.popitem()
            await session.close()

    def _register_routes(self):
        """Register all API routes."""

        @self.app.get("/")
        async def root():
            """API health check."""
            return {
                "status": "ok",
                "engine": "Collection Agent",
                "version": API_VERSION,
                "sessions": len(self.sessions),
            }

        @self.app.get("/strategies", response_model=List[str])
        async def get_strategies():
            """Strategy catalog, mildest first."""
            return list(STRATEGIES)

        @self.app.get("/presets", response_model=List[str])
        async def get_presets():
            return list_presets()

        @self.app.post("/sessions", response_model=SessionCreated)
        async def create_session(request: SessionCreateRequest):
            """Start a new session."""
            config = self.build_config(request)
            try:
                session = CollectionSession(config)
            except EmptyConfigurationError as e:
                raise HTTPException(status_code=400, detail=str(e))

            await self.add_session(session)
            logger.info(
                f"Session created with {len(config.parameters)} parameters",
                extra={"subsystem": "api", "session_id": session.session_id},
            )
            return SessionCreated(
                session_id=session.session_id,
                state=session.agent.current_state,
                strategy=session.agent.current_strategy,
                opening_message=session.opening_message(),
            )

        @self.app.post("/sessions/{session_id}/turn")
        async def process_turn(session_id: str, request: TurnRequest) -> Dict[str, Any]:
            """Submit a customer reply."""
            session = self.get_session(session_id)
            return await session.send(request.message)

        @self.app.get("/sessions/{session_id}/stats")
        async def get_stats(session_id: str) -> Dict[str, Any]:
            return self.get_session(session_id).stats()

        @self.app.get("/sessions/{session_id}/history")
        async def get_history(
            session_id: str,
            limit: int = Query(20, ge=1, le=200),
        ):
            session = self.get_session(session_id)
            return {
                "session_id": session_id,
                "total_turns": len(session.transcript),
                "turns": [
                    {"role": t.role, "content": t.content, "time": t.time}
                    for t in session.last_n(limit)
                ],
            }

        @self.app.delete("/sessions/{session_id}")
        async def end_session(session_id: str):
            session = self.get_session(session_id)
            del self.sessions[session_id]
            await session.close()
            return {"status": "ended", "session_id": session_id, "stats": session.stats()}


def create_app(
    default_classifier_url: Optional[str] = None,
    max_sessions: int = DEFAULT_MAX_SESSIONS,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    return CollectionAPIServer(default_classifier_url, max_sessions=max_sessions).app


def main():
    """Run the API server from command line."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Collection Agent API Server")
    parser.add_argument("--classifier-url", help="Default intent classification service URL")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8080, help="Port to bind to")
    parser.add_argument("--max-sessions", type=int, default=DEFAULT_MAX_SESSIONS,
                        help="Sessions kept in memory before the oldest is evicted")
    parser.add_argument("--log-level", default="INFO", help="Log level")
    parser.add_argument("--log-dir", help="Directory for rotating log files")
    args = parser.parse_args()

    configure_logging(level=args.log_level, log_dir=args.log_dir)
    app = create_app(default_classifier_url=args.classifier_url, max_sessions=args.max_sessions)

    print(f"\nCollection Agent API starting on http://{args.host}:{args.port}")
    print(f"API docs: http://{args.host}:{args.port}/docs\n")

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
