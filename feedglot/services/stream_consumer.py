"""Commits batch translation records to the store as they arrive."""

import logging
from typing import Any, AsyncIterator, Optional

from feedglot.core.cancellation import CancellationToken
from feedglot.core.ndjson import NDJSONDecoder
from feedglot.core.translation_store import TranslationStore
from feedglot.core.types import BatchTranslateResult

logger = logging.getLogger("feedglot")


def parse_batch_result(record: Any) -> Optional[BatchTranslateResult]:
    """Validate one decoded record. Returns None for unusable records."""
    if not isinstance(record, dict) or not isinstance(record.get("id"), str):
        logger.warning(f"Dropping batch record without a string id: {str(record)[:200]}")
        return None

    title = record.get("title")
    summary = record.get("summary")
    return BatchTranslateResult(
        id=record["id"],
        title=title if isinstance(title, str) else None,
        summary=summary if isinstance(summary, str) else None,
        cached=bool(record.get("cached", False)),
    )


TRANSLATED_FIELDS = ("title", "summary")


def translated_fields(record: dict) -> dict:
    """Translated fields the record actually carries.

    Absent keys and non-string values are left out so they never erase a
    cached value. An explicit null is kept and overwrites.
    """
    return {
        name: record[name]
        for name in TRANSLATED_FIELDS
        if name in record and (record[name] is None or isinstance(record[name], str))
    }


async def _next_chunk(chunks: AsyncIterator[bytes]) -> Optional[bytes]:
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return None


async def consume_batch_stream(
    chunks: AsyncIterator[bytes],
    language: str,
    store: TranslationStore,
    token: CancellationToken,
) -> int:
    """Decode an NDJSON byte stream and write each record into the store.

    Records are committed strictly in arrival order; a later record for the
    same id overwrites the fields of an earlier one. The token is checked
    at every resumption point, so nothing is committed once it has fired.
    Records already committed stay in the store.

    Args:
        chunks: Raw body chunks from the transport
        language: Target language the records are stored under
        store: Destination cache
        token: Cancellation token of the owning batch

    Returns:
        Number of records committed

    Raises:
        TranslationAborted: The token fired before the stream ended
        TranslationStreamError: The stream ended with a truncated record
        NetworkError: Transport failure surfaced by `chunks`
    """
    decoder = NDJSONDecoder()
    committed = 0

    def commit(records: list) -> int:
        count = 0
        for record in records:
            token.raise_if_cancelled()
            result = parse_batch_result(record)
            if result is None:
                continue
            fields = translated_fields(record)
            if not fields:
                logger.debug(f"Batch record for {result.id} carries no translated fields")
                continue
            store.set_translation(result.id, language, fields)
            count += 1
        return count

    try:
        while True:
            chunk = await token.race(_next_chunk(chunks))
            token.raise_if_cancelled()
            if chunk is None:
                break
            committed += commit(decoder.feed(chunk))

        committed += commit(decoder.close())
    finally:
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()

    logger.debug(f"Batch stream finished: {committed} translations committed ({language})")
    return committed
