"""Builds the ordered message list sent to a provider."""

from collections.abc import Sequence

from chat_relay.constants import CONTEXT_LABEL
from chat_relay.schemas import ChatMessage


def merge_instructions(default: str | None, per_request: str | None) -> str | None:
    """Join a process-wide default with a per-request value, default first."""
    parts = [part for part in (default, per_request) if part]
    return "\n\n".join(parts) or None


def build_system_content(system_instruction: str | None, context: str | None) -> str | None:
    if not context:
        return system_instruction or None
    labeled_context = f"{CONTEXT_LABEL}\n{context}"
    if not system_instruction:
        return labeled_context
    return f"{system_instruction}\n\n{labeled_context}"


def assemble_history(
    persisted: Sequence[ChatMessage],
    new_messages: Sequence[ChatMessage],
    system_instruction: str | None = None,
    context: str | None = None,
) -> list[ChatMessage]:
    """Return the provider input for one run.

    Persisted history already contains the just-submitted messages, so it is used
    as-is when non-empty; otherwise the new messages stand in for it. At most one
    synthesized system message is prepended.
    """
    history = list(persisted) if persisted else list(new_messages)

    system_content = build_system_content(system_instruction, context)
    if system_content:
        history.insert(0, ChatMessage(role="system", content=system_content))
    return history
