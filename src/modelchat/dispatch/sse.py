"""
Server-Sent Events encoding for stream events.

Format:
    data: {"type":"chunk","text":"Hel"}\n\n
"""

import json
from collections.abc import AsyncIterator

from .models import StreamEvent

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
}


def encode_sse(event: StreamEvent) -> str:
    """Encode a stream event as one SSE frame."""
    return f"data: {event.model_dump_json()}\n\n"


async def sse_generator(events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
    """Encode each event of `events` as an SSE frame."""
    async for event in events:
        yield encode_sse(event)


def decode_sse_line(line: str) -> StreamEvent | None:
    """Parse one line of an SSE body.

    Returns:
        The event for a `data:` line, None for blank lines, comments and
        other fields
    """
    if not line.startswith("data:"):
        return None
    payload = line[len("data:"):].strip()
    if not payload:
        return None
    return StreamEvent.model_validate(json.loads(payload))


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[StreamEvent]:
    """Turn an async stream of SSE body lines into events."""
    async for line in lines:
        event = decode_sse_line(line.rstrip("\r\n"))
        if event is not None:
            yield event
