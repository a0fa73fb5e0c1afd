"""
Input adapters: everything the registry accepts becomes a seekable
binary stream.

Each parser is handed the stream rewound to the position it had when the
import started, so the stream must support ``seek``/``tell`` with no limit
on how far back it can go. Seekable binary streams are used as they are;
anything else (pipes, sockets, text streams) is read fully into memory
once.
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, TextIO

logger = logging.getLogger(__name__)


def from_bytes(data: bytes) -> BinaryIO:
    return io.BytesIO(data)


def from_text(text: str, encoding: str = "utf-8") -> BinaryIO:
    return io.BytesIO(text.encode(encoding))


def as_rewindable(stream: BinaryIO | TextIO) -> BinaryIO:
    """Return a binary stream that can be rewound to its current position.

    Text streams are encoded as UTF-8; non-seekable binary streams are
    buffered from their current position.
    """
    if isinstance(stream, io.TextIOBase):
        logger.debug("Buffering text stream as UTF-8 bytes")
        return from_text(stream.read())
    if stream.seekable():
        return stream
    logger.debug("Buffering non-seekable stream %r", stream)
    return from_bytes(stream.read())
