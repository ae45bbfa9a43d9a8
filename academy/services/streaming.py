"""
Server-Sent Events helpers.

SSEDecoder turns raw upstream text chunks into JSON events; the frame helpers
build the OpenAI-style delta frames the browser chat widget consumes.
"""

import json
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from academy.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

SSE_DONE = "data: [DONE]\n\n"

# Give up on a fragment that never becomes valid JSON
MAX_PENDING_CHARS = 1_000_000

_UNPARSED = object()


def format_sse_token(token: str) -> str:
    """One delta frame: data: {"choices":[{"delta":{"content":token}}]}"""
    payload = {"choices": [{"delta": {"content": token}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class SSEDecoder:
    """
    Incremental decoder for `data:` lines carrying JSON.

    Lines can be split across network chunks, and a JSON document can be split
    across several data lines; incomplete pieces are buffered until they parse.
    """

    def __init__(self):
        self._line_buffer = ""
        self._pending = ""
        self.done = False

    def feed(self, chunk: str) -> list[dict[str, Any]]:
        """Consume a chunk and return every event completed by it."""
        self._line_buffer += chunk
        *lines, self._line_buffer = self._line_buffer.split("\n")

        events = []
        for line in lines:
            event = self._decode_line(line)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> list[dict[str, Any]]:
        """Decode whatever is left once the upstream stream has ended."""
        remainder, self._line_buffer = self._line_buffer, ""
        events = []
        if remainder:
            event = self._decode_line(remainder)
            if event is not None:
                events.append(event)
        if self._pending:
            logger.warning("Discarding incomplete SSE payload", size=len(self._pending))
            self._pending = ""
        return events

    def _decode_line(self, line: str) -> dict[str, Any] | None:
        line = line.rstrip("\r")
        if not line.startswith("data:"):
            # blank separators, comments, event:/id: fields
            return None

        data = line[5:].strip()
        if not data:
            return None
        if data == "[DONE]":
            self.done = True
            return None

        if self._pending:
            event = self._try_parse(self._pending + data)
            if event is not _UNPARSED:
                self._pending = ""
                return event if isinstance(event, dict) else None

        event = self._try_parse(data)
        if event is _UNPARSED:
            candidate = self._pending + data
            self._pending = candidate if len(candidate) < MAX_PENDING_CHARS else ""
            return None

        if self._pending:
            # A self-contained event arrived; the buffered fragment can never complete
            logger.warning("Dropping unparseable SSE payload", size=len(self._pending))
            self._pending = ""
        return event if isinstance(event, dict) else None

    @staticmethod
    def _try_parse(text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return _UNPARSED


class TokenStream:
    """An opened upstream stream of text tokens that must be closed after use."""

    def __init__(self, tokens: AsyncIterator[str], close: Callable[[], Awaitable[None]]):
        self._tokens = tokens
        self._close = close
        self._closed = False

    def __aiter__(self) -> AsyncIterator[str]:
        return self._tokens

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._close()
