"""Runtime infrastructure helpers for credentials, tracing, providers and storage."""

import logging
import os
from collections.abc import Iterable
from functools import lru_cache
from typing import Any

import boto3
from langchain_aws import ChatBedrockConverse
from langsmith import traceable
from langsmith.run_trees import get_cached_client
from openai import AsyncOpenAI

from chat_relay.constants import (
    AWS_REGION,
    CHAT_ORCHESTRATOR,
    HISTORY_LIMIT,
    HISTORY_TABLE_NAME,
    LANGSMITH_API_KEY_PARAMETER_NAME,
    LANGSMITH_PROJECT,
    OPENAI_TIMEOUT_SECONDS,
)
from chat_relay.history.base import SessionHistoryStore
from chat_relay.history.dynamodb_store import DynamoDBSessionHistoryStore
from chat_relay.history.memory_store import InMemorySessionHistoryStore
from chat_relay.orchestration.base import ChatOrchestrator
from chat_relay.orchestration.direct import DirectChatOrchestrator
from chat_relay.orchestration.langgraph_flow import LangGraphChatOrchestrator
from chat_relay.provider_registry import DEFAULT_PROVIDER_ROTATION, PROVIDER_SPECS, ProviderSpec
from chat_relay.providers.base import ChatProvider
from chat_relay.providers.bedrock_provider import BedrockChatProvider
from chat_relay.providers.openai_provider import OpenAICompatibleChatProvider
from chat_relay.providers.pool import ProviderPool

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_ssm_client() -> Any:
    return boto3.client("ssm", region_name=AWS_REGION)


def _get_secure_parameter(ssm_client: Any, parameter_name: str) -> str:
    result = ssm_client.get_parameter(Name=parameter_name, WithDecryption=True)
    value = result["Parameter"].get("Value")
    if not value:
        raise RuntimeError(f"SSM parameter {parameter_name} has no value")
    return value


def _get_optional_secure_parameter(ssm_client: Any, parameter_name: str) -> str | None:
    try:
        return _get_secure_parameter(ssm_client, parameter_name)
    except Exception:
        logger.warning(
            "Optional SSM parameter is unavailable; disabling dependent feature",
            extra={"parameter_name": parameter_name},
            exc_info=True,
        )
        return None


def resolve_secret(env_names: Iterable[str], parameter_name: str | None) -> str | None:
    """Return the first non-empty environment variable, else the SSM parameter."""
    for env_name in env_names:
        value = os.environ.get(env_name)
        if value:
            return value
    if parameter_name is None:
        return None
    return _get_secure_parameter(get_ssm_client(), parameter_name)


@lru_cache(maxsize=1)
def get_langsmith_api_key() -> str | None:
    api_key = os.environ.get("LANGSMITH_API_KEY")
    if api_key:
        return api_key
    return _get_optional_secure_parameter(get_ssm_client(), LANGSMITH_API_KEY_PARAMETER_NAME)


def _configure_langsmith(langsmith_api_key: str | None) -> None:
    if not langsmith_api_key:
        os.environ.pop("LANGSMITH_TRACING", None)
        os.environ.pop("LANGSMITH_API_KEY", None)
        logger.info("LangSmith tracing disabled because API key is unavailable")
        return

    os.environ["LANGSMITH_TRACING"] = "true"
    os.environ["LANGSMITH_API_KEY"] = langsmith_api_key
    os.environ.setdefault("LANGSMITH_PROJECT", LANGSMITH_PROJECT)


@lru_cache(maxsize=1)
def ensure_langsmith_configured() -> None:
    """Configure LangSmith environment variables (called once via lru_cache)."""
    _configure_langsmith(get_langsmith_api_key())


def flush_langsmith_traces() -> None:
    if os.environ.get("LANGSMITH_TRACING", "").lower() != "true":
        return
    if not os.environ.get("LANGSMITH_API_KEY"):
        return
    try:
        get_cached_client().flush()
    except Exception:
        logger.warning("Failed to flush LangSmith traces", exc_info=True)


@lru_cache(maxsize=None)
def get_openai_client(provider_name: str) -> AsyncOpenAI:
    """Create an AsyncOpenAI client pointed at the provider's endpoint."""
    spec = PROVIDER_SPECS[provider_name]
    api_key = resolve_secret(spec.api_key_env, spec.api_key_parameter)
    if not api_key:
        raise RuntimeError(f"No API key configured for provider: {provider_name}")
    return AsyncOpenAI(api_key=api_key, base_url=spec.base_url, timeout=OPENAI_TIMEOUT_SECONDS)


@traceable(run_type="llm", name="openai.chat.completions.create")
async def open_chat_completion_stream(client: AsyncOpenAI, request_params: dict[str, Any]) -> Any:
    return await client.chat.completions.create(**request_params)


@lru_cache(maxsize=None)
def get_bedrock_chat_model(provider_name: str) -> ChatBedrockConverse:
    spec = PROVIDER_SPECS[provider_name]
    return ChatBedrockConverse(
        model=spec.model,
        region_name=AWS_REGION,
        max_tokens=spec.max_tokens,
        temperature=spec.temperature,
        top_p=spec.top_p,
    )


def build_chat_provider(name: str, spec: ProviderSpec) -> ChatProvider:
    if spec.kind == "openai_compatible":
        return OpenAICompatibleChatProvider(
            name=name,
            spec=spec,
            get_client=lambda: get_openai_client(name),
            open_stream=open_chat_completion_stream,
        )
    if spec.kind == "bedrock":
        return BedrockChatProvider(
            name=name, spec=spec, get_chat_model=lambda: get_bedrock_chat_model(name)
        )
    raise RuntimeError(f"Unsupported provider kind: {spec.kind}")


def build_provider_pool(names: Iterable[str] = DEFAULT_PROVIDER_ROTATION) -> ProviderPool:
    providers: list[ChatProvider] = []
    for name in names:
        spec = PROVIDER_SPECS.get(name)
        if spec is None:
            raise RuntimeError(f"Unsupported provider: {name}")
        providers.append(build_chat_provider(name, spec))

    if not providers:
        logger.error("No chat providers configured; every chat request will fail")
    else:
        logger.info("Provider rotation configured", extra={"providers": [p.name for p in providers]})
    return ProviderPool(providers)


def build_history_store(table_name: str = HISTORY_TABLE_NAME) -> SessionHistoryStore:
    if not table_name:
        logger.warning("HISTORY_TABLE_NAME is not set; session history is kept in memory only")
        return InMemorySessionHistoryStore()
    table = boto3.resource("dynamodb", region_name=AWS_REGION).Table(table_name)
    return DynamoDBSessionHistoryStore(table)


def build_orchestrator(
    store: SessionHistoryStore,
    pool: ProviderPool,
    strategy: str = CHAT_ORCHESTRATOR,
) -> ChatOrchestrator:
    if strategy == "direct":
        return DirectChatOrchestrator(store, pool, history_limit=HISTORY_LIMIT)
    if strategy == "langgraph":
        return LangGraphChatOrchestrator(store, pool, history_limit=HISTORY_LIMIT)
    raise RuntimeError(f"Unsupported orchestrator: {strategy}")
