"""
Log Service - follow the daemon log for Server-Sent-Events subscribers.

Each subscriber gets its own LogTailer: the whole file is replayed first,
then the file is polled and only complete new lines are sent. A size
decrease means the file was truncated or rotated; the subscriber then
receives a `reset` event followed by a full replay.

Reads are bounded to `chunk_lines` lines, so a large log is replayed a
chunk at a time instead of being loaded whole.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Awaitable, BinaryIO, Callable, List, Optional

import anyio

from dpanel.core.logger import setup_logger

logger = setup_logger("DPanel.Logs")

CHUNK_LINES = 500

# SSE treats CRLF, a lone CR and a lone LF all as line terminators
_SSE_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class LogEvent:
    event: str
    data: str

    def encode(self) -> str:
        """Frame the event for a text/event-stream response."""
        payload = "".join(f"data: {part}\n" for part in _SSE_LINE_BREAK.split(self.data))
        return f"event: {self.event}\n{payload}\n"


@dataclass
class LogCursor:
    byte_offset: int = 0
    last_known_size: int = 0


class LogTailer:
    """
    Poll-driven tail of a single log file.

    `caught_up` is False while complete lines are known to remain past the
    cursor (a replay or a burst larger than one chunk); callers should call
    poll() again without waiting.

    Not thread safe; owned by exactly one stream.
    """

    def __init__(self, path: Path, chunk_lines: int = CHUNK_LINES):
        self.path = Path(path)
        self.chunk_lines = chunk_lines
        self.cursor = LogCursor()
        self.caught_up = False
        self._file: Optional[BinaryIO] = None

    def open(self) -> List[LogEvent]:
        """
        Open the file and return the first chunk of its history.

        Raises:
            OSError: The file cannot be opened.
        """
        self._file = open(self.path, "rb")
        return self._replay()

    def poll(self) -> List[LogEvent]:
        """
        Check the file once and return the events to send.

        Raises:
            OSError: The file vanished between stat and reopen after a
                truncation; the stream cannot continue.
        """
        if self._file is None:
            raise RuntimeError("LogTailer.poll() called before open()")

        try:
            size = self.path.stat().st_size
        except OSError as e:
            self.caught_up = True
            return [LogEvent("error", f"Error getting file info: {e}")]

        if size < self.cursor.last_known_size:
            logger.info(f"{self.path} shrank from {self.cursor.last_known_size} to {size} bytes, replaying")
            self.close()
            self._file = open(self.path, "rb")
            return [LogEvent("reset", "")] + self._replay()

        if size <= self.cursor.byte_offset:
            self.caught_up = True
            return []

        try:
            events = self._read_chunk()
        except OSError as e:
            self.caught_up = True
            return [LogEvent("error", f"Error reading log file: {e}")]

        self.cursor.last_known_size = max(size, self.cursor.byte_offset)
        return events

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def _replay(self) -> List[LogEvent]:
        self.cursor = LogCursor()
        events = self._read_chunk()
        self.cursor.last_known_size = self.cursor.byte_offset
        return events

    def _read_chunk(self) -> List[LogEvent]:
        # A trailing line without "\n" is still being written; leave it for the next poll.
        offset = self.cursor.byte_offset
        self._file.seek(offset)
        events = []
        for raw in self._file:
            if not raw.endswith(b"\n"):
                break
            offset += len(raw)
            events.append(LogEvent("log", raw.rstrip(b"\r\n").decode("utf-8", errors="replace")))
            if len(events) >= self.chunk_lines:
                break

        self.cursor.byte_offset = offset
        self.caught_up = len(events) < self.chunk_lines
        return events


def count_log_lines(path: Path) -> int:
    """Number of lines in the log, counting a final line without newline."""
    with open(path, "rb") as f:
        return sum(1 for _ in f)


async def stream_log_events(
    path: Path,
    is_disconnected: Callable[[], Awaitable[bool]],
    interval: float = 0.5,
    chunk_lines: int = CHUNK_LINES,
) -> AsyncIterator[LogEvent]:
    """
    Replay the log, then yield new lines every `interval` seconds until
    `is_disconnected()` reports the client went away.

    The disconnect check runs between every chunk, including during the
    replay. Failing to open the file at start yields one `error` event and
    ends the stream; stat failures while polling yield `error` and keep going.
    """
    tailer = LogTailer(path, chunk_lines=chunk_lines)
    try:
        events = await anyio.to_thread.run_sync(tailer.open)
    except OSError as e:
        logger.warning(f"Cannot open log file {path}: {e}")
        yield LogEvent("error", f"Error opening log file: {e}")
        return

    logger.debug(f"Log stream opened on {path}")
    try:
        while True:
            for event in events:
                yield event

            if tailer.caught_up:
                await anyio.sleep(interval)
            if await is_disconnected():
                break

            try:
                events = await anyio.to_thread.run_sync(tailer.poll)
            except OSError as e:
                yield LogEvent("error", f"Error reopening log file: {e}")
                break
    finally:
        tailer.close()
        logger.debug(f"Log stream closed on {path}")
