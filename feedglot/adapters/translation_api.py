"""Abstract base class for the translation backend."""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from feedglot.core.cancellation import CancellationToken
from feedglot.core.types import BatchArticle


class TranslationAPI(ABC):
    """Abstract interface for batch title/summary translation."""

    @abstractmethod
    def stream_batch_translate(
        self,
        articles: list[BatchArticle],
        token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[bytes]:
        """Open a batch translation request and stream its raw body.

        The body is newline-delimited JSON, one
        {"id", "title", "summary"} object per line, in wire order.
        Closing the returned iterator (aclose) releases the connection.

        Args:
            articles: Articles to translate
            token: Cancellation token for this request

        Yields:
            Raw body chunks of arbitrary size

        Raises:
            APIConnectionError: Backend not reachable
            APITimeoutError: Request timed out
            TranslationRequestError: Non-success HTTP status
            TranslationStreamError: Body interrupted mid-stream
            BatchTooLargeError: More articles than the backend accepts
            TranslationAborted: Token already cancelled
        """
        ...

    async def aclose(self) -> None:
        """Release transport resources."""
