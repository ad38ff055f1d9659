#!/usr/bin/env python3
"""
KUBEAPPLY SPLITTER - The Document Cutter
----------------------------------------
Cuts a multi-document YAML byte stream into one raw chunk per document.

A boundary is a line starting with '---' that carries nothing else but
whitespace or a comment. Blocks are read at the size of the remaining
file (never below MIN_READ, never above max_read), and partial lines are
carried over between blocks so no document is ever truncated.

Author: KubeApply Team
"""

import io
import os
import re
from typing import BinaryIO, Iterator

from kubeapply.core.models import RawChunk

MIN_READ = 512
DEFAULT_MAX_READ = 4 * 1024 * 1024


class DocumentSplitter:
    """
    Turns a byte stream into RawChunks, preserving source order.
    Empty chunks (two separators in a row, a leading separator) are dropped.
    """

    SEPARATOR = re.compile(rb'^---[ \t]*(?:#.*)?\r?\n?$')

    def __init__(self, max_read: int = DEFAULT_MAX_READ):
        self.max_read = max(MIN_READ, max_read)

    def read_size(self, stream: BinaryIO) -> int:
        """
        Sizes the next read to whatever is left of the file. Streams with
        no backing file (pipes, BytesIO) fall back to MIN_READ.
        """
        try:
            total = os.fstat(stream.fileno()).st_size
            remaining = total - stream.tell()
        except (OSError, ValueError, AttributeError):
            if isinstance(stream, io.BytesIO):
                remaining = stream.getbuffer().nbytes - stream.tell()
            else:
                return MIN_READ
        return min(max(MIN_READ, remaining), self.max_read)

    def _lines(self, stream: BinaryIO) -> Iterator[bytes]:
        pending = b""
        while True:
            block = stream.read(self.read_size(stream))
            if not block:
                break
            pending += block
            lines = pending.splitlines(keepends=True)
            # The last piece may be the head of a line split across blocks
            if lines and not lines[-1].endswith((b"\n", b"\r")):
                pending = lines.pop()
            else:
                pending = b""
            yield from lines
        if pending:
            yield pending

    def is_boundary(self, line: bytes) -> bool:
        return bool(self.SEPARATOR.match(line))

    def split(self, stream: BinaryIO) -> Iterator[RawChunk]:
        index = 0
        buffer = bytearray()
        for line in self._lines(stream):
            if self.is_boundary(line):
                if buffer:
                    yield RawChunk(index=index, data=bytes(buffer))
                    index += 1
                    buffer = bytearray()
                continue
            buffer.extend(line)
        if buffer:
            yield RawChunk(index=index, data=bytes(buffer))
