"""Incremental decoder for newline-delimited JSON response bodies."""

import codecs
import json
import logging
from typing import Any

from feedglot.core.exceptions import TranslationStreamError

logger = logging.getLogger("feedglot")


class NDJSONDecoder:
    """Turns arbitrarily-sized byte chunks into complete JSON records.

    A trailing partial line is carried over to the next feed() call, and a
    multi-byte UTF-8 sequence split across chunks is reassembled, so the
    decoded record sequence does not depend on where chunk boundaries fall.

    Usage:
        decoder = NDJSONDecoder()
        for chunk in chunks:
            for record in decoder.feed(chunk):
                handle(record)
        for record in decoder.close():
            handle(record)
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[Any]:
        """Decode one chunk and return every record completed by it.

        Malformed complete lines are logged and dropped.
        """
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        records = []
        for line in lines:
            record = self._parse_line(line)
            if record is not None:
                records.append(record)
        return records

    def close(self) -> list[Any]:
        """Flush the decoder at end of stream.

        Raises:
            TranslationStreamError: an unterminated final line is not valid JSON
        """
        self._buffer += self._decoder.decode(b"", final=True)
        remainder = self._buffer.strip()
        self._buffer = ""
        if not remainder:
            return []

        try:
            return [json.loads(remainder)]
        except json.JSONDecodeError as e:
            logger.error(f"Stream ended with a truncated record: {e}")
            raise TranslationStreamError(f"Stream ended with a truncated record: {e}")

    @property
    def pending(self) -> str:
        """Text received after the last newline (not yet a complete record)."""
        return self._buffer

    @staticmethod
    def _parse_line(line: str) -> Any:
        line = line.strip()
        if not line:
            return None
        try:
            return json.loads(line)
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse streaming line: {line[:200]}")
            return None
