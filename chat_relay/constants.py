"""Shared constants and literal types for the chat relay."""

import os
import re
from typing import Literal

AWS_REGION = os.environ.get("AWS_REGION", "ap-northeast-1")
LANGSMITH_API_KEY_PARAMETER_NAME = "/chat-relay/langsmith-api-key"
LANGSMITH_PROJECT = "chat-relay"

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
CEREBRAS_BASE_URL = "https://api.cerebras.ai/v1"
OPENAI_TIMEOUT_SECONDS = 60.0

MAX_MESSAGES_PER_REQUEST = 50
HISTORY_LIMIT = 20
MIN_SESSION_ID_LENGTH = 8
MAX_SESSION_ID_LENGTH = 128
MAX_MESSAGE_CONTENT_LENGTH = 50_000
SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
CONTROL_CHARACTERS_PATTERN = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
SESSION_ID_HEADER = "X-Session-Id"
CONTEXT_LABEL = "Context:"

DEFAULT_TEMPERATURE = 0.6
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TOP_P = 1.0

# Injected ahead of every per-request instruction/context.
APP_SYSTEM_INSTRUCTION = os.environ.get("APP_SYSTEM_INSTRUCTION", "")
APP_CONTEXT = os.environ.get("APP_CONTEXT", "")

HISTORY_TABLE_NAME = os.environ.get("HISTORY_TABLE_NAME", "")
CHAT_PROVIDER_ROTATION = os.environ.get("CHAT_PROVIDER_ROTATION", "nvidia,cerebras,qwen3")
CHAT_ORCHESTRATOR = os.environ.get("CHAT_ORCHESTRATOR", "langgraph")

Role = Literal["user", "assistant", "system"]
ProviderKind = Literal["openai_compatible", "bedrock"]
ROLES: tuple[Role, ...] = ("user", "assistant", "system")
