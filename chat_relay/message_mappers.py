"""Conversion helpers between relay messages and provider-specific formats."""

from collections.abc import Sequence

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from .schemas import ChatMessage


def build_openai_chat_messages(messages: Sequence[ChatMessage]) -> list[dict[str, str]]:
    """Convert relay messages to Chat Completions message dicts."""
    return [{"role": message.role, "content": message.content} for message in messages]


def build_bedrock_messages(
    messages: Sequence[ChatMessage],
) -> list[SystemMessage | HumanMessage | AIMessage]:
    """Convert relay messages to LangChain message format for Bedrock."""
    lc_messages: list[SystemMessage | HumanMessage | AIMessage] = []
    for message in messages:
        if message.role == "system":
            lc_messages.append(SystemMessage(content=message.content))
        elif message.role == "assistant":
            lc_messages.append(AIMessage(content=message.content))
        else:
            lc_messages.append(HumanMessage(content=message.content))
    return lc_messages
