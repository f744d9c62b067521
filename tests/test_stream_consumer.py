"""Tests for the batch stream consumer."""

import asyncio

import pytest

from feedglot.core.cancellation import CancellationToken
from feedglot.core.exceptions import TranslationAborted, TranslationStreamError, APIConnectionError
from feedglot.core.translation_store import TranslationStore
from feedglot.core.types import ArticleTranslation
from feedglot.services.stream_consumer import consume_batch_stream, parse_batch_result, translated_fields

from conftest import ndjson, record, settle


async def chunks_of(*chunks):
    for chunk in chunks:
        yield chunk


def run_consumer(*chunks, language="fr"):
    store = TranslationStore()
    writes = []
    store.subscribe(lambda change: writes.append(
        (change.article_id, store.get_translation(change.article_id, language))
    ))

    async def scenario():
        return await consume_batch_stream(
            chunks_of(*chunks), language, store, CancellationToken(),
        )

    count = asyncio.run(scenario())
    return store, writes, count


class TestParseBatchResult:
    def test_valid_record(self):
        result = parse_batch_result({"id": "a1", "title": "T", "summary": "S", "cached": True})
        assert result.id == "a1"
        assert result.title == "T"
        assert result.summary == "S"
        assert result.cached is True

    def test_null_fields_allowed(self):
        result = parse_batch_result({"id": "a1", "title": None, "summary": None})
        assert result.title is None
        assert result.summary is None

    @pytest.mark.parametrize("bad", [None, [], "a1", {"title": "T"}, {"id": 7}])
    def test_unusable_records_rejected(self, bad):
        assert parse_batch_result(bad) is None


class TestTranslatedFields:
    def test_only_present_fields_returned(self):
        assert translated_fields({"id": "a1", "summary": "S"}) == {"summary": "S"}

    def test_explicit_null_is_kept(self):
        assert translated_fields({"id": "a1", "title": None}) == {"title": None}

    def test_non_string_values_dropped(self):
        assert translated_fields({"id": "a1", "title": 42, "summary": ["S"]}) == {}


class TestConsumeBatchStream:
    def test_commits_records_in_arrival_order(self):
        body = ndjson(record("a1", "T1", "S1"), record("a2", "T2", "S2"))
        store, writes, count = run_consumer(body)

        assert count == 2
        assert [article_id for article_id, _ in writes] == ["a1", "a2"]
        assert store.get_translation("a2", "fr") == ArticleTranslation(title="T2", summary="S2")

    def test_later_record_for_same_id_wins(self):
        body = ndjson(record("a1", "Early", "S"), record("a1", "Late", "S"))
        store, _, _ = run_consumer(body)
        assert store.get_translation("a1", "fr").title == "Late"

    def test_missing_field_keeps_cached_value(self):
        store = TranslationStore()
        store.set_translation("a1", "fr", {"title": "Keep"})

        async def scenario():
            return await consume_batch_stream(
                chunks_of(b'{"id": "a1", "summary": "S"}\n'), "fr", store, CancellationToken(),
            )

        assert asyncio.run(scenario()) == 1
        assert store.get_translation("a1", "fr") == ArticleTranslation(title="Keep", summary="S")

    def test_non_string_field_keeps_cached_value(self):
        store = TranslationStore()
        store.set_translation("a1", "fr", {"title": "Keep", "summary": "Old"})

        async def scenario():
            body = b'{"id": "a1", "title": 42, "summary": null}\n'
            return await consume_batch_stream(chunks_of(body), "fr", store, CancellationToken())

        asyncio.run(scenario())
        assert store.get_translation("a1", "fr") == ArticleTranslation(title="Keep", summary=None)

    def test_record_for_disabled_article_is_not_stored(self):
        store = TranslationStore()
        store.disable_translation("a1")

        async def scenario():
            body = ndjson(record("a1", "T1", "S1"), record("a2", "T2", "S2"))
            return await consume_batch_stream(chunks_of(body), "fr", store, CancellationToken())

        asyncio.run(scenario())
        assert not store.has_entries("a1")
        assert store.get_translation("a2", "fr").title == "T2"

    def test_chunking_does_not_change_committed_sequence(self):
        body = ndjson(
            record("a1", "T1", "S1"),
            record("a2", "Titre à découper", "S2"),
            record("a3", "T3", "S3"),
        )
        _, whole, _ = run_consumer(body)
        _, bytewise, _ = run_consumer(*[body[i:i + 1] for i in range(len(body))])

        assert bytewise == whole

    def test_malformed_and_idless_lines_skipped(self):
        body = b'{"id": "a1", "title": "T1", "summary": "S1"}\nnot json\n{"title": "x"}\n'
        store, writes, count = run_consumer(body)
        assert count == 1
        assert [article_id for article_id, _ in writes] == ["a1"]

    def test_truncated_stream_raises(self):
        with pytest.raises(TranslationStreamError):
            run_consumer(b'{"id": "a1", "title": "T1", "summary": "S1"}\n{"id": "a2", "ti')

    def test_transport_error_propagates_after_partial_commit(self):
        store = TranslationStore()

        async def failing():
            yield ndjson(record("a1", "T1", "S1"))
            raise APIConnectionError("connection lost")

        async def scenario():
            await consume_batch_stream(failing(), "fr", store, CancellationToken())

        with pytest.raises(APIConnectionError):
            asyncio.run(scenario())
        assert store.get_translation("a1", "fr").title == "T1"

    def test_cancel_stops_commits_and_closes_stream(self):
        store = TranslationStore()
        token = CancellationToken()
        closed = []

        async def scenario():
            gate = asyncio.Event()

            async def stream():
                try:
                    yield ndjson(record("a1", "T1", "S1"))
                    await gate.wait()
                    yield ndjson(record("a2", "T2", "S2"))
                finally:
                    closed.append(True)

            consumer = asyncio.create_task(consume_batch_stream(stream(), "fr", store, token))
            await settle(lambda: store.get_translation("a1", "fr") is not None)
            token.cancel("superseded")
            gate.set()

            with pytest.raises(TranslationAborted):
                await consumer

        asyncio.run(scenario())

        assert store.get_translation("a1", "fr").title == "T1"
        assert store.get_translation("a2", "fr") is None
        assert closed == [True]

    def test_chunk_received_with_cancel_is_not_committed(self):
        store = TranslationStore()
        token = CancellationToken()

        async def stream():
            token.cancel("superseded")
            yield ndjson(record("a1", "T1", "S1"))

        async def scenario():
            await consume_batch_stream(stream(), "fr", store, token)

        with pytest.raises(TranslationAborted):
            asyncio.run(scenario())
        assert store.get_translation("a1", "fr") is None
