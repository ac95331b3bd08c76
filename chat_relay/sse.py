"""Server-sent event framing for streamed responses."""

import json
from typing import Any

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def format_event(data: dict[str, Any], event: str | None = None) -> str:
    lines = [f"event: {event}"] if event else []
    lines.append(f"data: {json.dumps(data, ensure_ascii=False)}")
    return "\n".join(lines) + "\n\n"


def fragment_event(fragment: str) -> str:
    return format_event({"content": fragment})


def error_event(error_type: str, message: str) -> str:
    return format_event({"error": error_type, "message": message}, event="error")


def done_event() -> str:
    return format_event({}, event="done")
