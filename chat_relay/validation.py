"""Request validation performed before any orchestration side effect."""

from collections.abc import Mapping
from typing import Any

from .constants import (
    CONTROL_CHARACTERS_PATTERN,
    MAX_MESSAGE_CONTENT_LENGTH,
    MAX_MESSAGES_PER_REQUEST,
    MAX_SESSION_ID_LENGTH,
    MIN_SESSION_ID_LENGTH,
    ROLES,
    SESSION_ID_PATTERN,
)
from .errors import SessionError, ValidationError
from .schemas import ChatMessage, ChatRequestBody, ChatTurn


def validate_session_id(session_id: Any) -> str:
    if not session_id or not isinstance(session_id, str):
        raise SessionError("session_id must be a non-empty string", code="session_missing")
    if len(session_id) < MIN_SESSION_ID_LENGTH:
        raise SessionError(
            f"session_id must be at least {MIN_SESSION_ID_LENGTH} characters",
            code="session_too_short",
        )
    if len(session_id) > MAX_SESSION_ID_LENGTH:
        raise SessionError(
            f"session_id must not exceed {MAX_SESSION_ID_LENGTH} characters",
            code="session_too_long",
        )
    if not SESSION_ID_PATTERN.fullmatch(session_id):
        raise SessionError(
            "session_id can only contain alphanumeric characters, hyphens, and underscores",
            code="session_invalid_chars",
        )
    return session_id


def sanitize_text(text: str) -> str:
    """Strip control characters, keeping tabs and line breaks."""
    return CONTROL_CHARACTERS_PATTERN.sub("", text)


def validate_messages(messages: Any) -> list[ChatMessage]:
    if not isinstance(messages, list):
        raise ValidationError("messages must be an array", code="messages_not_list")
    if not messages:
        raise ValidationError("messages array cannot be empty", code="messages_empty")
    if len(messages) > MAX_MESSAGES_PER_REQUEST:
        raise ValidationError(
            f"Cannot send more than {MAX_MESSAGES_PER_REQUEST} messages at once",
            code="messages_too_many",
        )

    validated: list[ChatMessage] = []
    for index, message in enumerate(messages):
        if not isinstance(message, Mapping):
            raise ValidationError(
                f"Message at index {index} must be an object", code="message_not_object"
            )
        if "role" not in message or "content" not in message:
            raise ValidationError(
                f"Message at index {index} must have 'role' and 'content' fields",
                code="message_missing_fields",
            )

        role = message["role"]
        if role not in ROLES:
            raise ValidationError(
                f"Message at index {index} has invalid role: {role}", code="invalid_role"
            )

        content = message["content"]
        if not isinstance(content, str):
            raise ValidationError(
                f"Message at index {index} content must be a string", code="invalid_content"
            )
        if len(content) > MAX_MESSAGE_CONTENT_LENGTH:
            raise ValidationError(
                f"Message at index {index} content exceeds maximum length of "
                f"{MAX_MESSAGE_CONTENT_LENGTH} characters",
                code="content_too_long",
            )

        validated.append(ChatMessage(role=role, content=sanitize_text(content)))
    return validated


def validate_optional_text(value: Any, field_name: str, code: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string", code=code)
    return value


def build_chat_turn(body: ChatRequestBody, header_session_id: str | None = None) -> ChatTurn:
    """Validate a raw request body; the session header wins over the body field."""
    messages = validate_messages(body.messages)
    system_instruction = validate_optional_text(
        body.system_instruction, "systemInstruction", "invalid_system_instruction"
    )
    context = validate_optional_text(body.context, "context", "invalid_context")
    session_id = validate_session_id(header_session_id or body.session_id)
    return ChatTurn(
        session_id=session_id,
        messages=tuple(messages),
        system_instruction=system_instruction,
        context=context,
    )
