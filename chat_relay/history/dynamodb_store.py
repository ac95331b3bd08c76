"""DynamoDB-backed session history store."""

import asyncio
import logging
import time
from typing import Any
from uuid import uuid4

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from chat_relay.errors import StoreError
from chat_relay.schemas import ChatMessage

logger = logging.getLogger(__name__)

# Zero-padded so lexical order of the sort key matches insertion order; the
# random suffix keeps appends with the same timestamp from replacing each other.
_SORT_KEY_WIDTH = 20


def _sort_key() -> str:
    return f"{time.time_ns():0{_SORT_KEY_WIDTH}d}#{uuid4().hex[:8]}"


class DynamoDBSessionHistoryStore:
    """Stores one item per message.

    Table layout: partition key ``session_id`` (S), sort key ``created_at`` (S,
    zero-padded nanosecond timestamp plus a random suffix). Retention is left to
    the table's TTL configuration.
    """

    def __init__(self, table: Any) -> None:
        self._table = table

    def _put_item(self, session_id: str, message: ChatMessage) -> None:
        self._table.put_item(
            Item={
                "session_id": session_id,
                "created_at": _sort_key(),
                "role": message.role,
                "content": message.content,
            }
        )

    def _query_recent(self, session_id: str, limit: int) -> list[dict[str, Any]]:
        response = self._table.query(
            KeyConditionExpression=Key("session_id").eq(session_id),
            ScanIndexForward=False,
            Limit=limit,
        )
        return response.get("Items", [])

    async def append(self, session_id: str, message: ChatMessage) -> None:
        try:
            await asyncio.to_thread(self._put_item, session_id, message)
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"Failed to append message for session {session_id}: {e}") from e

    async def recent(self, session_id: str, limit: int) -> list[ChatMessage]:
        if limit <= 0:
            return []
        try:
            items = await asyncio.to_thread(self._query_recent, session_id, limit)
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"Failed to read history for session {session_id}: {e}") from e

        messages: list[ChatMessage] = []
        for item in reversed(items):
            try:
                messages.append(ChatMessage(role=item["role"], content=item["content"]))
            except (KeyError, ValueError):
                logger.warning(
                    "Skipping malformed history item",
                    extra={"session_id": session_id, "created_at": item.get("created_at")},
                )
        return messages
