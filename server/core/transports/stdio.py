"""Pipe transport: JSON-RPC over standard input and output.

Reads one message at a time, dispatches it, and writes the response before
reading the next one, so responses always come back in request order.
Messages are newline-delimited JSON; a message that starts with a
``Content-Length:`` header block is read and answered with the same framing.
"""

from __future__ import annotations

import asyncio
import enum
import sys
from typing import BinaryIO

import structlog

from core.dispatcher import Dispatcher, Session
from shared.schemas.jsonrpc import PARSE_ERROR, JsonRpcResponse, encode_message

logger = structlog.get_logger()

# Import YAML and file contents can make single messages large
READ_LIMIT = 16 * 1024 * 1024


class Framing(enum.Enum):
    LINE = "line"
    HEADER = "header"


class MessageTooLarge(Exception):
    """A line ran past the reader limit and was discarded."""


async def _discard_line(reader: asyncio.StreamReader) -> None:
    while True:
        try:
            await reader.readuntil(b"\n")
            return
        except asyncio.LimitOverrunError as e:
            await reader.readexactly(e.consumed)
        except asyncio.IncompleteReadError:
            return


async def _readline(reader: asyncio.StreamReader) -> bytes:
    """Next line including its newline; the partial tail at end of input."""
    try:
        return await reader.readuntil(b"\n")
    except asyncio.IncompleteReadError as e:
        return e.partial
    except asyncio.LimitOverrunError:
        await _discard_line(reader)
        raise MessageTooLarge()


async def _consume_headers(reader: asyncio.StreamReader) -> bool:
    """Skip header lines up to the blank separator; False when the stream ends."""
    while True:
        line = await _readline(reader)
        if not line:
            return False
        if not line.strip():
            return True


class StdioTransport:
    """Serves one pipe session until end of input or cancellation."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        session: Session,
        reader: asyncio.StreamReader,
        writer: BinaryIO,
    ):
        self.dispatcher = dispatcher
        self.session = session
        self.reader = reader
        self.writer = writer
        self.handled = 0

    async def _read_message(self) -> tuple[bytes, Framing] | None:
        while True:
            line = await _readline(self.reader)
            if not line:
                return None
            stripped = line.strip()
            if not stripped:
                continue
            if not stripped.lower().startswith(b"content-length:"):
                return stripped, Framing.LINE

            try:
                length = int(stripped.split(b":", 1)[1].strip())
            except ValueError:
                length = -1
            if not await _consume_headers(self.reader):
                return None
            if length <= 0:
                logger.warning("stdio_bad_content_length", header=stripped[:80].decode(errors="replace"))
                continue
            try:
                body = await self.reader.readexactly(length)
            except asyncio.IncompleteReadError:
                logger.warning("stdio_truncated_message", expected=length)
                return None
            return body, Framing.HEADER

    def _write(self, text: str, framing: Framing) -> None:
        data = text.encode("utf-8")
        if framing is Framing.HEADER:
            data = b"Content-Length: %d\r\n\r\n" % len(data) + data
        else:
            data += b"\n"
        self.writer.write(data)
        self.writer.flush()

    async def serve(self) -> None:
        logger.info("stdio_session_started", has_credential=bool(self.session.api_key))
        try:
            while True:
                try:
                    message = await self._read_message()
                except MessageTooLarge:
                    logger.warning("stdio_message_too_large", limit=READ_LIMIT)
                    error = JsonRpcResponse.failure(None, PARSE_ERROR, "Parse error: message exceeds the read limit")
                    self._write(encode_message(error), Framing.LINE)
                    continue
                if message is None:
                    break
                payload, framing = message
                response = await self.dispatcher.handle_payload(payload, self.session)
                self.handled += 1
                if response is not None:
                    self._write(encode_message(response), framing)
        except asyncio.CancelledError:
            logger.info("stdio_session_cancelled", handled=self.handled)
            raise
        logger.info("stdio_session_ended", handled=self.handled)


async def open_stdin_reader() -> asyncio.StreamReader:
    """Wrap the process's standard input in an asyncio stream."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=READ_LIMIT)
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)
    return reader
