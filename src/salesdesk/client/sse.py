"""Reassembly of streamed chat-completion deltas from a server-sent-events feed.

Network reads do not respect line or even UTF-8 character boundaries, so
bytes are decoded incrementally and only complete lines are interpreted.
"""

from __future__ import annotations

import codecs
import json
from typing import Any

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def _delta_content(event: Any) -> str | None:
    try:
        content = event["choices"][0]["delta"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


class SSEDeltaDecoder:
    """Turns raw stream chunks into ``choices[0].delta.content`` strings.

    ``feed()`` returns the deltas completed by a chunk; ``flush()`` handles
    whatever is left once the stream has ended.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        self._buffer += self._decoder.decode(chunk)
        deltas: list[str] = []

        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            payload = self._payload(line)
            if payload is None:
                continue
            try:
                event = json.loads(payload)
            except ValueError:
                # Incomplete JSON: wait for the next chunk
                self._buffer = f"{line}\n{self._buffer}"
                break
            content = _delta_content(event)
            if content:
                deltas.append(content)

        return deltas

    def flush(self) -> list[str]:
        """Process the remaining buffer after end of stream, dropping unparseable lines."""
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        if not remainder.strip():
            return []

        deltas: list[str] = []
        for line in remainder.split("\n"):
            payload = self._payload(line)
            if payload is None:
                continue
            try:
                event = json.loads(payload)
            except ValueError:
                continue
            content = _delta_content(event)
            if content:
                deltas.append(content)
        return deltas

    @staticmethod
    def _payload(line: str) -> str | None:
        """The JSON text of a ``data:`` line, or ``None`` for lines to skip."""
        line = line.removesuffix("\r")
        if not line.strip() or line.startswith(":"):
            return None
        if not line.startswith(DATA_PREFIX):
            return None
        payload = line[len(DATA_PREFIX) :].strip()
        if payload == DONE_SENTINEL:
            return None
        return payload
