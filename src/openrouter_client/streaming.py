"""Incremental decoding of server-sent event streams.

Network reads never line up with event boundaries, so the decoder buffers
bytes and only interprets complete lines. A ``StreamDecoder`` belongs to one
stream; create a new one per call.

Framing handled here:

- ``:`` lines are comments (keep-alives) and blank lines separate events;
  neither produces a chunk.
- ``data:`` lines carry one JSON document each.
- ``data: [DONE]`` ends the stream; nothing after it is read.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from openrouter_client.errors import APIError, ProtocolError
from openrouter_client.responses import StreamChunk, Usage

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"
_DATA_PREFIX = "data:"
_COMMENT_PREFIX = ":"
# Fields a chat completion chunk must carry when decoding strictly.
_STRICT_FIELDS = ("choices",)
_MAX_LOGGED_LINE = 200


class StreamDecoder:
    """Turn byte fragments into ``StreamChunk`` values.

    Call :meth:`feed` with each fragment as it arrives and :meth:`finish` once
    the input is exhausted. Any error ends the stream; later calls produce
    no chunks.

    Args:
        strict: Also require the chat completion fields (``choices``) on every
            chunk. A chunk that parses but lacks them is a ``ProtocolError``.
    """

    def __init__(self, *, strict: bool = False) -> None:
        self._buffer = bytearray()
        self._done = False
        self._strict = strict

    @property
    def done(self) -> bool:
        """True once the stream has terminated, successfully or not."""
        return self._done

    def feed(self, fragment: bytes | str) -> Iterator[StreamChunk]:
        """Buffer one fragment and iterate the chunks it completed.

        The fragment is buffered immediately; lines are decoded one at a time
        as the iterator advances, so every chunk before a failing line is
        yielded before the error is raised. Lines left unread stay buffered
        for the next call.
        """
        if not self._done:
            if isinstance(fragment, str):
                fragment = fragment.encode("utf-8")
            self._buffer.extend(fragment)
        return self._drain()

    def _drain(self) -> Iterator[StreamChunk]:
        while not self._done:
            newline = self._buffer.find(b"\n")
            if newline < 0:
                return
            raw = bytes(self._buffer[:newline])
            del self._buffer[: newline + 1]
            try:
                chunk = self._process_line(raw)
            finally:
                if self._done:
                    self._buffer.clear()
            if chunk is not None:
                yield chunk

    def finish(self) -> None:
        """Signal end of input.

        Raises:
            ProtocolError: If an incomplete line is left over and the stream
                was not terminated by ``[DONE]``.
        """
        if self._done:
            return
        self._done = True
        leftover = bytes(self._buffer)
        self._buffer.clear()
        if leftover.strip():
            raise ProtocolError(
                "Stream ended mid-event without a [DONE] sentinel",
                hint="The server closed the connection early; retry the call.",
                line=_preview(leftover.decode("utf-8", errors="replace")),
            )
        logger.debug("Stream ended without [DONE] sentinel")

    def _process_line(self, raw: bytes) -> StreamChunk | None:
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            self._done = True
            raise ProtocolError(
                f"Stream line is not valid UTF-8: {e}",
                line=_preview(raw.decode("utf-8", errors="replace")),
            ) from e
        if line.endswith("\r"):
            line = line[:-1]

        if not line.strip() or line.startswith(_COMMENT_PREFIX):
            return None
        if not line.startswith(_DATA_PREFIX):
            # event:, id: and retry: fields carry nothing we use.
            logger.debug("Ignoring stream field line: %s", _preview(line))
            return None

        payload = line[len(_DATA_PREFIX) :].strip()
        if payload == DONE_SENTINEL:
            self._done = True
            return None
        return self._decode_payload(payload)

    def _decode_payload(self, payload: str) -> StreamChunk:
        try:
            document = json.loads(payload)
        except json.JSONDecodeError as e:
            self._done = True
            raise ProtocolError(
                f"Malformed chunk JSON: {e}", line=_preview(payload)
            ) from e

        if not isinstance(document, dict):
            self._done = True
            raise ProtocolError(
                f"Chunk must be a JSON object, got {type(document).__name__}",
                line=_preview(payload),
            )
        if "error" in document:
            self._done = True
            raise _stream_error(document["error"])

        if self._strict:
            missing = [name for name in _STRICT_FIELDS if name not in document]
            if missing:
                self._done = True
                raise ProtocolError(
                    f"Chunk is missing required fields: {', '.join(missing)}",
                    line=_preview(payload),
                )

        try:
            return StreamChunk.model_validate(document)
        except ValidationError as e:
            self._done = True
            raise ProtocolError(
                f"Chunk has an unexpected shape: {e.error_count()} error(s)",
                line=_preview(payload),
            ) from e


def _stream_error(error: Any) -> APIError:
    """Build an APIError from an ``error`` object sent mid-stream."""
    if not isinstance(error, dict):
        return APIError(f"Stream reported an error: {error}")
    code = error.get("code")
    metadata = error.get("metadata")
    return APIError(
        str(error.get("message") or "Stream reported an error"),
        status_code=code if isinstance(code, int) else None,
        code=code,
        metadata=metadata if isinstance(metadata, dict) else None,
    )


def _preview(line: str) -> str:
    if len(line) <= _MAX_LOGGED_LINE:
        return line
    return line[:_MAX_LOGGED_LINE] + "..."


async def decode_stream(
    fragments: AsyncIterable[bytes], *, strict: bool = False
) -> AsyncIterator[StreamChunk]:
    """Yield chunks from an async source of byte fragments.

    Returns as soon as ``[DONE]`` is seen without reading further input.
    """
    decoder = StreamDecoder(strict=strict)
    async for fragment in fragments:
        for chunk in decoder.feed(fragment):
            yield chunk
        if decoder.done:
            return
    decoder.finish()


def decode_fragments(
    fragments: Iterable[bytes | str], *, strict: bool = False
) -> Iterator[StreamChunk]:
    """Synchronous counterpart of :func:`decode_stream`."""
    decoder = StreamDecoder(strict=strict)
    for fragment in fragments:
        yield from decoder.feed(fragment)
        if decoder.done:
            return
    decoder.finish()


class StreamAccumulator:
    """Reassemble streamed chunks into the final text.

    Example:
        acc = StreamAccumulator()
        async for chunk in chat.chat_completion_stream(payload):
            acc.add(chunk)
        print(acc.text)
    """

    def __init__(self) -> None:
        self._parts: list[str] = []
        self.chunks: list[StreamChunk] = []
        self.finish_reason: str | None = None
        self.usage: Usage | None = None

    def add(self, chunk: StreamChunk) -> None:
        self.chunks.append(chunk)
        content = chunk.content
        if content:
            self._parts.append(content)
        if chunk.finish_reason is not None:
            self.finish_reason = chunk.finish_reason
        if chunk.usage is not None:
            self.usage = chunk.usage

    @property
    def text(self) -> str:
        return "".join(self._parts)
