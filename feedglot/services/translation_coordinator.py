"""Coordinates single-article and batch translations over a shared store."""

import asyncio
import logging
from typing import Iterable, Optional

from feedglot.adapters.translation_api import TranslationAPI
from feedglot.core.cancellation import CancellationToken
from feedglot.core.exceptions import TranslationAborted
from feedglot.core.translation_store import TranslationStore
from feedglot.core.types import BatchArticle, TranslateArticleParams
from feedglot.services.stream_consumer import consume_batch_stream

logger = logging.getLogger("feedglot")


def get_request_key(article_id: str, readability: bool = False) -> str:
    return f"{article_id}-{'readability' if readability else 'normal'}"


class TranslationCoordinator:
    """Owns the in-flight registries and the single active batch.

    Two kinds of work write into the store:
    - Single-article (full content) translations, performed by an external
      collaborator and tracked here by request key only.
    - Batch (title/summary) translations, streamed from the TranslationAPI.

    An article tracked as a single-article request is never claimed by a
    batch, and translate_article() is a no-op for an article claimed by the
    batch, so the two never write the same article concurrently. At most
    one batch is live; starting another cancels it.

    All methods must be called from the event loop thread.
    """

    def __init__(self, api: TranslationAPI, store: Optional[TranslationStore] = None):
        self._api = api
        self._store = store or TranslationStore()
        self._in_flight: dict[str, asyncio.Future] = {}
        # article_id -> token of the batch holding the claim
        self._batch_claims: dict[str, CancellationToken] = {}
        self._batch_token: Optional[CancellationToken] = None

    @property
    def store(self) -> TranslationStore:
        return self._store

    # --- Single-article registry ---

    def translate_article(self, params: TranslateArticleParams,
                          token: Optional[CancellationToken] = None) -> asyncio.Future:
        """Register a full-content translation and return its shared handle.

        The registry performs no request; the handle is resolved immediately.
        Callers asking for the same article and mode while it is registered
        get the very same handle back.

        Args:
            params: Article being translated
            token: Removes the registration when it fires, so a later call
                may retry

        Returns:
            Awaitable handle. A fresh completed handle when the active batch
            already covers the article.
        """
        loop = asyncio.get_running_loop()

        if params.article_id in self._batch_claims:
            logger.debug(f"Article {params.article_id} is covered by the active batch")
            done = loop.create_future()
            done.set_result(None)
            return done

        request_key = get_request_key(params.article_id, params.readability)
        existing = self._in_flight.get(request_key)
        if existing is not None:
            return existing

        handle = loop.create_future()
        handle.set_result(None)
        self._in_flight[request_key] = handle

        if token is not None:
            token.add_callback(lambda: self._forget(request_key, handle))

        return handle

    def mark_article_translating(self, article_id: str, readability: bool = False) -> None:
        """Record that a content translation for the article has started elsewhere."""
        if article_id in self._batch_claims:
            logger.debug(f"Article {article_id} is claimed by the active batch; "
                         f"tracking its content translation as well")
        loop = asyncio.get_running_loop()
        placeholder = loop.create_future()
        placeholder.set_result(None)
        self._in_flight[get_request_key(article_id, readability)] = placeholder

    def mark_article_translated(self, article_id: str, readability: bool = False) -> None:
        """Record that the content translation finished, failed, or was abandoned."""
        self._in_flight.pop(get_request_key(article_id, readability), None)

    def is_article_translating(self, article_id: str) -> bool:
        return self._is_tracked_single(article_id) or article_id in self._batch_claims

    def _is_tracked_single(self, article_id: str) -> bool:
        return (
            get_request_key(article_id, readability=False) in self._in_flight
            or get_request_key(article_id, readability=True) in self._in_flight
        )

    def _forget(self, request_key: str, handle: asyncio.Future) -> None:
        if self._in_flight.get(request_key) is handle:
            del self._in_flight[request_key]
            logger.debug(f"Content translation {request_key} aborted; registration removed")

    # --- Batch coordination ---

    @property
    def batch_claims(self) -> frozenset:
        """Article ids currently claimed by a batch."""
        return frozenset(self._batch_claims)

    async def translate_articles_batch(self, articles: Iterable[BatchArticle],
                                       target_language: str) -> None:
        """Translate titles/summaries of many articles, streaming into the store.

        Articles tracked as single-article translations are skipped. Any
        batch still running is cancelled; claims it holds on articles in
        this call move to the new batch. Cancellation of this batch ends
        it silently, keeping whatever was already committed.

        Raises:
            NetworkError: Transport failure or non-success status
            TranslationError: Truncated stream or oversized batch
        """
        to_translate = [a for a in articles if not self._is_tracked_single(a.id)]
        if not to_translate:
            return

        if self._batch_token is not None:
            logger.debug("Superseding active batch translation")
            self._batch_token.cancel("superseded")

        token = CancellationToken()
        self._batch_token = token

        for article in to_translate:
            self._batch_claims[article.id] = token

        logger.info(f"Batch translation started: {len(to_translate)} articles -> {target_language}")
        try:
            chunks = self._api.stream_batch_translate(to_translate, token)
            await consume_batch_stream(chunks, target_language, self._store, token)
        except TranslationAborted:
            logger.debug(f"Batch translation aborted ({token.reason})")
        finally:
            for article in to_translate:
                if self._batch_claims.get(article.id) is token:
                    del self._batch_claims[article.id]
            if self._batch_token is token:
                self._batch_token = None

    def cancel_all_batch_translations(self) -> None:
        """Abort the active batch and drop every batch claim (e.g., on list change)."""
        if self._batch_token is not None:
            self._batch_token.cancel("cancelled")
            self._batch_token = None
        self._batch_claims.clear()

    async def aclose(self) -> None:
        """Cancel any batch and release the transport."""
        self.cancel_all_batch_translations()
        await self._api.aclose()
