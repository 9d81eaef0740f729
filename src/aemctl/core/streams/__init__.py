"""Line-oriented followers for process output and growing log files."""
from __future__ import annotations

from .follower import (
    CHUNK_SIZE,
    FILE_POLL_INTERVAL_SECONDS,
    FileFollower,
    Follower,
    ProcessStreamFollower,
)
from .lines import DEFAULT_ENCODING, LineConsumer, LineSplitter, split_lines
from .pool import FollowerPool

__all__ = [
    "CHUNK_SIZE",
    "FILE_POLL_INTERVAL_SECONDS",
    "DEFAULT_ENCODING",
    "FileFollower",
    "Follower",
    "FollowerPool",
    "LineConsumer",
    "LineSplitter",
    "ProcessStreamFollower",
    "split_lines",
]
