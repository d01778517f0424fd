"""Line reader over a binary file that tracks exact byte offsets.

Text-mode ``tell()`` returns opaque cookies and is disabled while iterating,
so the reader works on bytes and decodes each line itself.  ``peek()`` reads
ahead without committing: the next ``readline()`` and ``offset`` are not
affected by it.
"""
from __future__ import annotations

import codecs
from typing import BinaryIO, Iterator

_CHUNK = 64 * 1024

# BOM-detecting codecs mapped to (BOM, explicit codec)
_BOMS: dict[str, list[tuple[bytes, str]]] = {
    "utf-16": [(codecs.BOM_UTF16_LE, "utf-16-le"), (codecs.BOM_UTF16_BE, "utf-16-be")],
    "utf-32": [(codecs.BOM_UTF32_LE, "utf-32-le"), (codecs.BOM_UTF32_BE, "utf-32-be")],
}


def resolve_codec(encoding: str, head: bytes = b"") -> str:
    """Pick an explicit-endianness codec for BOM-dependent encodings."""
    name = codecs.lookup(encoding).name
    if name not in _BOMS:
        return name
    for bom, codec in _BOMS[name]:
        if head.startswith(bom):
            return codec
    return _BOMS[name][0][1]


class LineReader:
    """Read decoded lines from ``fh`` starting at its current position.

    Args:
        fh:        File opened in binary mode, already positioned.
        encoding:  Text encoding of the file.
        crlf:      Translate CRLF line endings to LF.
        errors:    Decoding error handler.
    """

    def __init__(
        self,
        fh: BinaryIO,
        encoding: str = "utf-8",
        crlf: bool = False,
        errors: str = "replace",
    ) -> None:
        self._fh = fh
        self._offset = fh.tell()
        self._buffer = b""
        self._cursor = 0  # start of the first uncommitted byte in _buffer
        self._eof = False
        self._crlf = crlf
        self._errors = errors

        # The BOM at the start of the file decides endianness, also on resume
        fh.seek(0)
        head = fh.read(4)
        fh.seek(self._offset)
        self._codec = resolve_codec(encoding, head)
        self._newline = "\n".encode(self._codec)
        self._unit = len(self._newline)

    @property
    def offset(self) -> int:
        """Byte offset just after the last committed line."""
        return self._offset

    def _fill(self) -> bool:
        if self._eof:
            return False
        chunk = self._fh.read(_CHUNK)
        if not chunk:
            self._eof = True
            return False
        if self._cursor:
            # Drop committed bytes; peek positions are relative to the cursor
            self._buffer = self._buffer[self._cursor:]
            self._cursor = 0
        self._buffer += chunk
        return True

    def _line_end(self, start: int) -> int | None:
        """Index just past the next newline at or after ``start``."""
        pos = start
        while True:
            idx = self._buffer.find(self._newline, pos)
            if idx < 0:
                return None
            # Multi-byte newlines only count on a code unit boundary
            if (idx - start) % self._unit == 0:
                return idx + self._unit
            pos = idx + 1

    def _next_span(self, rel_start: int) -> tuple[int, int] | None:
        """Absolute (start, end) of the line ``rel_start`` bytes past the cursor."""
        while True:
            start = self._cursor + rel_start
            end = self._line_end(start)
            if end is not None:
                return start, end
            if not self._fill():
                start = self._cursor + rel_start
                if len(self._buffer) > start:
                    return start, len(self._buffer)
                return None

    def _decode(self, raw: bytes, at_start: bool) -> str:
        text = raw.decode(self._codec, errors=self._errors)
        if at_start and text.startswith("\ufeff"):
            text = text[1:]
        if self._crlf and text.endswith("\r\n"):
            text = text[:-2] + "\n"
        return text

    def readline(self) -> str | None:
        """Consume and return the next line (with its newline), or None at EOF."""
        span = self._next_span(0)
        if span is None:
            return None
        start, end = span
        at_start = self._offset == 0
        self._cursor = end
        self._offset += end - start
        return self._decode(self._buffer[start:end], at_start)

    def peek(self, count: int) -> list[str]:
        """Return up to ``count`` following lines without consuming them."""
        lines: list[str] = []
        rel = 0
        while len(lines) < count:
            span = self._next_span(rel)
            if span is None:
                break
            start, end = span
            lines.append(self._decode(self._buffer[start:end], self._offset == 0 and rel == 0))
            rel += end - start
        return lines

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.readline()
            if line is None:
                return
            yield line
