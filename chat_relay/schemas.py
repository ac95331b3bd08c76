"""Pydantic schemas for the chat relay API."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .constants import Role


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ChatRequestBody(BaseModel):
    """Raw chat request body; shape checks are left to the validation gate."""

    model_config = ConfigDict(populate_by_name=True)

    messages: Any = None
    system_instruction: Any = Field(default=None, alias="systemInstruction")
    context: Any = None
    session_id: Any = None


@dataclass(frozen=True)
class ChatTurn:
    session_id: str
    messages: tuple[ChatMessage, ...]
    system_instruction: str | None = None
    context: str | None = None


class ProviderMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    display_name: str = Field(serialization_alias="displayName")
    kind: str
    model: str


class SessionHistoryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(serialization_alias="sessionId")
    messages: list[ChatMessage]
