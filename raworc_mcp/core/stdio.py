"""
Line-delimited JSON-RPC over stdin/stdout.

One request is read, dispatched and answered before the next line is read,
so responses always leave in request order. Logging must never touch stdout.
"""
import asyncio
import json
import logging
import signal
import sys
from typing import Any, Dict, Optional

from raworc_mcp.core.dispatcher import Dispatcher
from raworc_mcp.core.errors import InternalError, ParseError, error_response, recover_id

logger = logging.getLogger(__name__)

MAX_LINE_BYTES = 16 * 1024 * 1024


class StdoutWriter:
    """Minimal writer over a binary stream with the StreamWriter write/drain shape."""

    def __init__(self, stream=None):
        self._stream = stream or sys.stdout.buffer

    def write(self, data: bytes) -> None:
        self._stream.write(data)

    async def drain(self) -> None:
        self._stream.flush()


class StdioServer:
    def __init__(self, dispatcher: Dispatcher, reader, writer):
        self._dispatcher = dispatcher
        self._reader = reader
        self._writer = writer

    async def serve(self) -> None:
        """Run until the input stream closes."""
        while True:
            line = await self._read_line()
            if line is None:
                logger.warning("Discarded an oversized input line")
                if not await self._write(error_response(None, ParseError("Parse error: line too long"))):
                    return
                continue

            if not line:
                logger.info("EOF from client; exiting.")
                return

            response = await self.handle_line(line)
            if response is not None and not await self._write(response):
                return

    async def _read_line(self) -> Optional[bytes]:
        """Next line, b"" at EOF, or None when the line was over the limit and skipped."""
        try:
            return await self._reader.readuntil(b"\n")
        except asyncio.IncompleteReadError as e:
            return e.partial
        except asyncio.LimitOverrunError as e:
            await self._discard_line(e.consumed)
            return None

    async def _discard_line(self, consumed: int) -> None:
        # Drop everything up to and including the next newline, however it arrives
        while True:
            await self._reader.readexactly(consumed)
            try:
                await self._reader.readuntil(b"\n")
                return
            except asyncio.IncompleteReadError:
                return
            except asyncio.LimitOverrunError as e:
                consumed = e.consumed

    async def handle_line(self, line: bytes) -> Optional[Dict[str, Any]]:
        stripped = line.strip()
        if not stripped:
            return None
        try:
            message = json.loads(stripped)
        except ValueError as e:
            logger.warning(f"Bad JSON on stdin: {e}")
            return error_response(recover_id(stripped), ParseError("Parse error"))
        return await self._dispatcher.dispatch(message)

    async def _write(self, response: Dict[str, Any]) -> bool:
        try:
            data = json.dumps(response, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError):
            logger.exception("Failed to serialize response")
            data = json.dumps(error_response(response.get("id"), InternalError("Failed to serialize response")))

        try:
            self._writer.write(data.encode("utf-8") + b"\n")
            await self._writer.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            logger.info(f"Output stream closed: {e}")
            return False
        return True


async def open_stdin_reader(limit: int = MAX_LINE_BYTES) -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return reader


async def run_stdio(dispatcher: Dispatcher) -> int:
    """Serve stdin/stdout until EOF or SIGTERM/SIGINT. Returns the exit code."""
    loop = asyncio.get_running_loop()
    reader = await open_stdin_reader()
    server = StdioServer(dispatcher, reader, StdoutWriter())

    task = asyncio.ensure_future(server.serve())
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, task.cancel)
        except (NotImplementedError, RuntimeError):
            logger.debug(f"Signal handler for {sig!r} unavailable on this platform")

    try:
        await task
    except asyncio.CancelledError:
        logger.info("Shutdown signal received; exiting.")
    return 0
