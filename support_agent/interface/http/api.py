"""HTTP API: streaming chat over Server-Sent Events.

Why: Thin interface without business logic; validation and delegation only.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from support_agent.application.dto.chat_dto import ChatRequest
from support_agent.config.composition import Container
from support_agent.config.logging import get_logger
from support_agent.domain.errors import ConfigurationError, ValidationError
from support_agent.domain.models import Message

logger = get_logger(__name__)

SERVICE_NAME = "MoneyHero AI Support API"
SERVICE_VERSION = "1.0.0"
MISSING_FIELDS = "Missing required fields: messages and newMessage"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # disable proxy buffering (nginx)
}


# Pydantic models for request validation
class MessageModel(BaseModel):
    """One prior conversation message as sent by the UI."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    role: Literal["user", "assistant", "system"]
    content: str
    created_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("createdAt", "timestamp", "created_at")
    )
    is_escalation: bool | None = Field(
        default=None, validation_alias=AliasChoices("isEscalation", "is_escalation")
    )

    def to_domain(self) -> Message:
        extra: dict[str, Any] = {}
        if self.id:
            extra["id"] = self.id
        if self.created_at is not None:
            extra["created_at"] = self.created_at
        return Message(
            role=self.role, content=self.content, is_escalation=self.is_escalation, **extra
        )


class ChatRequestModel(BaseModel):
    """Request model for POST /api/chat."""

    messages: list[MessageModel]
    newMessage: str


def create_app(container: Container | None = None, warm_up: bool = True) -> FastAPI:
    """Build the FastAPI app around one process-scoped container.

    Args:
        container: Dependency container (default: wired from environment)
        warm_up: Build the document index during start-up
    """
    container = container or Container()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if warm_up:
            # Fails start-up if the embedding capability is unreachable.
            await container.warm_up()
        yield

    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION, lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=container.settings.allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(_req: Request, exc: RequestValidationError) -> JSONResponse:
        logger.debug(f"Rejected chat request: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": MISSING_FIELDS})

    @app.exception_handler(ValidationError)
    async def _validation_error(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def _configuration_error(_req: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error(f"Configuration error: {exc}")
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.post("/api/chat")
    async def chat(req: ChatRequestModel) -> StreamingResponse:
        """Stream one assistant reply as SSE frames.

        Event order: escalation, chunk*, then done | error.

        Example:
            POST /api/chat
            {"messages": [], "newMessage": "I want to speak to a human"}
        """
        dto = ChatRequest(
            messages=[m.to_domain() for m in req.messages],
            new_message=req.newMessage,
        )
        dto.validate()
        container.ensure_configured()

        framer = container.get_framer()
        response = await framer.open(dto)
        return StreamingResponse(
            framer.frames(response),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @app.get("/api/health")
    async def health() -> dict[str, Any]:
        stats = container.get_indexer().stats()
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "index": {
                "initialized": stats.initialized,
                "documentCount": stats.document_count,
                "chunkCount": stats.chunk_count,
            },
        }

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "message": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "endpoints": {"chat": "POST /api/chat", "health": "GET /api/health"},
        }

    return app
