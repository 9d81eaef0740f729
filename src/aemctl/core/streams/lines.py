"""Incremental byte-to-line splitting."""
from __future__ import annotations

import codecs
from typing import Callable, List

LineConsumer = Callable[[str], None]

DEFAULT_ENCODING = "utf-8"


class LineSplitter:
    """Decodes byte chunks and hands complete lines to ``consumer``.

    Lines end at ``\\n``. Carriage returns are dropped so Windows line endings
    yield the same lines as Unix ones. Multi-byte characters split across
    chunks are decoded correctly.
    """

    def __init__(self, consumer: LineConsumer, encoding: str = DEFAULT_ENCODING) -> None:
        self.consumer = consumer
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending: List[str] = []

    def _push(self, text: str) -> None:
        if not text:
            return
        *complete, rest = text.replace("\r", "").split("\n")
        for part in complete:
            self._pending.append(part)
            line = "".join(self._pending)
            self._pending = []
            self.consumer(line)
        if rest:
            self._pending.append(rest)

    def feed(self, chunk: bytes) -> None:
        self._push(self._decoder.decode(chunk))

    def flush(self) -> None:
        """Deliver a trailing line that had no newline."""
        self._push(self._decoder.decode(b"", final=True))
        if self._pending:
            line = "".join(self._pending)
            self._pending = []
            self.consumer(line)

    def reset(self) -> None:
        self._decoder.reset()
        self._pending = []


def split_lines(data: bytes, encoding: str = DEFAULT_ENCODING) -> List[str]:
    """Split a complete byte string the way a follower would."""
    lines: List[str] = []
    splitter = LineSplitter(lines.append, encoding)
    splitter.feed(data)
    splitter.flush()
    return lines


__all__ = ["LineConsumer", "LineSplitter", "split_lines", "DEFAULT_ENCODING"]
