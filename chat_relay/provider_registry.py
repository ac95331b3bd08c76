"""Static registry of text-generation providers."""

from dataclasses import dataclass

from .constants import (
    CEREBRAS_BASE_URL,
    CHAT_PROVIDER_ROTATION,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    OPENROUTER_BASE_URL,
    ProviderKind,
)


@dataclass(frozen=True)
class ProviderSpec:
    kind: ProviderKind
    display_name: str
    model: str
    base_url: str | None = None
    api_key_env: tuple[str, ...] = ()
    api_key_parameter: str | None = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    top_p: float = DEFAULT_TOP_P


PROVIDER_SPECS: dict[str, ProviderSpec] = {
    # --- OpenRouter-hosted models ---
    "nvidia": ProviderSpec(
        kind="openai_compatible",
        display_name="Nvidia NeMoTron 3 Nano 30B A3B",
        model="nvidia/nemotron-3-nano-30b-a3b:free",
        base_url=OPENROUTER_BASE_URL,
        api_key_env=("OPENROUTER_API_KEY",),
        api_key_parameter="/chat-relay/openrouter-api-key",
    ),
    "qwen3": ProviderSpec(
        kind="openai_compatible",
        display_name="Qwen3 Coder",
        model="qwen/qwen3-coder:free",
        base_url=OPENROUTER_BASE_URL,
        api_key_env=("QWEN3_API_KEY", "OPENROUTER_API_KEY"),
        api_key_parameter="/chat-relay/openrouter-api-key",
    ),
    # --- Cerebras ---
    "cerebras": ProviderSpec(
        kind="openai_compatible",
        display_name="Cerebras",
        model="llama-4-scout-17b-16e-instruct",
        base_url=CEREBRAS_BASE_URL,
        api_key_env=("CEREBRAS_API_KEY",),
        api_key_parameter="/chat-relay/cerebras-api-key",
        max_tokens=40960,
    ),
    # --- Bedrock (Claude) ---
    "claude-haiku": ProviderSpec(
        kind="bedrock",
        display_name="Claude Haiku 4.5",
        model="global.anthropic.claude-haiku-4-5-20251001-v1:0",
    ),
}


def parse_rotation(raw: str) -> tuple[str, ...]:
    return tuple(name.strip() for name in raw.split(",") if name.strip())


DEFAULT_PROVIDER_ROTATION = parse_rotation(CHAT_PROVIDER_ROTATION)
