"""Chat relay backend using FastAPI + Mangum for AWS Lambda."""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, FastAPI, Header, HTTPException, Query, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from mangum import Mangum
from starlette.types import Receive, Scope, Send

from chat_relay.constants import HISTORY_LIMIT
from chat_relay.errors import BadRequestError, NoProviderAvailableError, ProviderError, StoreError
from chat_relay.infra.runtime import (
    build_history_store,
    build_orchestrator,
    build_provider_pool,
    ensure_langsmith_configured,
    flush_langsmith_traces,
)
from chat_relay.orchestration.capture import CapturingStream
from chat_relay.provider_registry import DEFAULT_PROVIDER_ROTATION, PROVIDER_SPECS
from chat_relay.schemas import ChatRequestBody, ProviderMetadata, SessionHistoryResponse
from chat_relay.services.chat_service import ChatService
from chat_relay.sse import SSE_HEADERS, SSE_MEDIA_TYPE
from chat_relay.validation import build_chat_turn

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

app = FastAPI()
router = APIRouter(prefix="/api")


@lru_cache(maxsize=1)
def get_chat_service() -> ChatService:
    store = build_history_store()
    pool = build_provider_pool()
    return ChatService(orchestrator=build_orchestrator(store, pool), store=store)


def _error_detail(error_type: str, code: str, message: str) -> dict[str, str]:
    return {"error": error_type, "code": code, "message": message}


class ChatStreamingResponse(StreamingResponse):
    """Streams SSE events and releases the chat stream however the response ends.

    The release also covers clients that disconnect before the body is iterated.
    """

    def __init__(self, service: ChatService, chat_stream: CapturingStream) -> None:
        super().__init__(
            service.stream_events(chat_stream), media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS
        )
        self.chat_stream = chat_stream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.chat_stream.aclose()
            flush_langsmith_traces()


async def _chat_body_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
    if request.scope.get("endpoint") is not chat:
        return await request_validation_exception_handler(request, exc)
    errors = exc.errors()
    reason = errors[0]["msg"] if errors else "malformed request"
    logger.info("Chat request rejected", extra={"code": "invalid_body"})
    return JSONResponse(
        status_code=400,
        content={
            "detail": _error_detail(
                "validation_error", "invalid_body", f"Invalid request body: {reason}"
            )
        },
    )


@router.post("/chat")
async def chat(
    body: ChatRequestBody,
    x_session_id: Annotated[str | None, Header()] = None,
) -> StreamingResponse:
    """Relay the conversation to the next provider and stream its reply as SSE."""
    try:
        turn = build_chat_turn(body, header_session_id=x_session_id)
    except BadRequestError as e:
        logger.info("Chat request rejected", extra={"code": e.code})
        raise HTTPException(
            status_code=400, detail=_error_detail(e.error_type, e.code, str(e))
        ) from e

    ensure_langsmith_configured()
    service = get_chat_service()
    try:
        stream = await service.start_chat(turn)
    except BadRequestError as e:
        flush_langsmith_traces()
        raise HTTPException(
            status_code=400, detail=_error_detail(e.error_type, e.code, str(e))
        ) from e
    except NoProviderAvailableError as e:
        flush_langsmith_traces()
        logger.exception("No provider available")
        raise HTTPException(
            status_code=503, detail=_error_detail(e.error_type, e.error_type, str(e))
        ) from e
    except ProviderError as e:
        flush_langsmith_traces()
        logger.exception("Provider failed to start streaming")
        raise HTTPException(
            status_code=502, detail=_error_detail(e.error_type, e.error_type, str(e))
        ) from e
    except Exception as e:
        flush_langsmith_traces()
        logger.exception("Chat orchestration failed")
        raise HTTPException(
            status_code=502, detail=_error_detail("internal_error", "internal_error", str(e))
        ) from e

    return ChatStreamingResponse(service, stream)


@router.get("/providers", response_model=list[ProviderMetadata])
def providers() -> list[ProviderMetadata]:
    """List the provider rotation in selection order."""
    return [
        ProviderMetadata(
            name=name,
            display_name=PROVIDER_SPECS[name].display_name,
            kind=PROVIDER_SPECS[name].kind,
            model=PROVIDER_SPECS[name].model,
        )
        for name in DEFAULT_PROVIDER_ROTATION
        if name in PROVIDER_SPECS
    ]


@router.get("/sessions/{session_id}/messages", response_model=SessionHistoryResponse)
async def session_messages(
    session_id: str,
    limit: Annotated[int, Query(ge=1, le=200)] = HISTORY_LIMIT,
) -> SessionHistoryResponse:
    """Return the most recent messages recorded for a session."""
    service = get_chat_service()
    try:
        messages = await service.get_history(session_id, limit)
    except BadRequestError as e:
        raise HTTPException(
            status_code=400, detail=_error_detail(e.error_type, e.code, str(e))
        ) from e
    except StoreError as e:
        logger.exception("Session history unavailable")
        raise HTTPException(
            status_code=503, detail=_error_detail("store_error", "store_error", str(e))
        ) from e
    return SessionHistoryResponse(session_id=session_id, messages=messages)


@router.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


app.include_router(router)
app.add_exception_handler(RequestValidationError, _chat_body_invalid)


handler = Mangum(app)
