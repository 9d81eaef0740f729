"""Followers draining process output and growing files line by line."""
from __future__ import annotations

import logging
import os
import select
from pathlib import Path
from typing import IO, Optional, Protocol

from ..cancellation import CancellationToken
from .lines import DEFAULT_ENCODING, LineConsumer, LineSplitter

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024
FILE_POLL_INTERVAL_SECONDS = 0.5
PIPE_POLL_INTERVAL_SECONDS = 0.5


class Liveness(Protocol):
    def poll(self) -> Optional[int]: ...


class Follower(Protocol):
    name: str

    def run(self, token: CancellationToken) -> None: ...


class ProcessStreamFollower:
    """Drains one output pipe of a child process.

    Stops at end of stream, or once the process has exited and no bytes are
    pending. Must run on its own thread so the child never blocks on a full
    pipe.
    """

    def __init__(
        self,
        stream: IO[bytes],
        process: Liveness,
        consumer: LineConsumer,
        *,
        name: str = "process stream",
        encoding: str = DEFAULT_ENCODING,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.stream = stream
        self.process = process
        self.name = name
        self.splitter = LineSplitter(consumer, encoding)
        self.log = log or logger

    def _selectable(self) -> bool:
        if os.name != "posix":
            return False
        try:
            self.stream.fileno()
        except (AttributeError, OSError, ValueError):
            return False
        return True

    def _read_chunk(self) -> bytes:
        read1 = getattr(self.stream, "read1", None)
        if read1 is not None:
            return read1(CHUNK_SIZE)
        return self.stream.read(CHUNK_SIZE)

    def run(self, token: CancellationToken) -> None:
        try:
            if self._selectable():
                self._run_selecting(token)
            else:
                self._run_blocking(token)
            self.splitter.flush()
        except (OSError, ValueError) as exc:
            self.log.error("Unable to read from %s: %s", self.name, exc)
        finally:
            self.log.debug("Stopped reading from %s", self.name)

    def _run_selecting(self, token: CancellationToken) -> None:
        fd = self.stream.fileno()
        while not token.cancelled:
            ready, _, _ = select.select([fd], [], [], PIPE_POLL_INTERVAL_SECONDS)
            if not ready:
                if self.process.poll() is not None:
                    return
                continue
            data = os.read(fd, CHUNK_SIZE)
            if not data:
                return
            self.splitter.feed(data)

    def _run_blocking(self, token: CancellationToken) -> None:
        while not token.cancelled:
            data = self._read_chunk()
            if not data:
                return
            self.splitter.feed(data)


class FileFollower:
    """Tails a growing file, starting at its current end.

    Polls every :data:`FILE_POLL_INTERVAL_SECONDS` for new bytes until
    cancelled or the file disappears. When the file shrinks below the read
    position (truncating rotation), reading restarts from its beginning. When
    the path names a different file (renaming rotation), the new file is
    opened and read from its beginning.
    """

    def __init__(
        self,
        path: Path,
        consumer: LineConsumer,
        *,
        encoding: str = DEFAULT_ENCODING,
        poll_interval: float = FILE_POLL_INTERVAL_SECONDS,
        from_start: bool = False,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.path = Path(path)
        self.name = str(self.path)
        self.splitter = LineSplitter(consumer, encoding)
        self.poll_interval = poll_interval
        self.from_start = from_start
        self.log = log or logger

    def run(self, token: CancellationToken) -> None:
        try:
            f = open(self.path, "rb")
            try:
                if not self.from_start:
                    skipped = f.seek(0, os.SEEK_END)
                    self.log.debug("Skipped %d bytes until the end of %s.", skipped, self.path)
                while self._follow(f, token):
                    self.log.debug("%s was replaced, reading the new file", self.path)
                    self.splitter.flush()
                    f.close()
                    f = open(self.path, "rb")
            finally:
                f.close()
            self.splitter.flush()
        except OSError as exc:
            self.log.error("Unable to read from %s: %s", self.path, exc)
        finally:
            self.log.debug("Stopped reading from %s", self.path)

    def _follow(self, f: IO[bytes], token: CancellationToken) -> bool:
        """Read ``f`` until cancelled or deleted. Returns True once ``path`` names another file."""
        while not token.cancelled:
            data = f.read(CHUNK_SIZE)
            if data:
                self.splitter.feed(data)
                continue
            try:
                current = self.path.stat()
            except FileNotFoundError:
                return False
            opened = os.fstat(f.fileno())
            if (current.st_dev, current.st_ino) != (opened.st_dev, opened.st_ino):
                return True
            if current.st_size < f.tell():
                self.log.debug("%s was truncated, reading from the start", self.path)
                self.splitter.flush()
                f.seek(0)
                continue
            if not token.sleep(self.poll_interval):
                self.log.debug("Interrupted while reading from %s", self.path)
                return False
        return False


__all__ = [
    "Follower",
    "ProcessStreamFollower",
    "FileFollower",
    "CHUNK_SIZE",
    "FILE_POLL_INTERVAL_SECONDS",
]
