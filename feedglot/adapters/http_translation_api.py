"""HTTP adapter for the feed server's NDJSON batch translation endpoint."""

import json
import logging
from typing import AsyncIterator, Optional

import httpx

from feedglot.adapters.translation_api import TranslationAPI
from feedglot.core.cancellation import CancellationToken
from feedglot.core.exceptions import (
    APIConnectionError,
    APITimeoutError,
    BatchTooLargeError,
    TranslationRequestError,
    TranslationStreamError,
)
from feedglot.core.types import BatchArticle

logger = logging.getLogger("feedglot")


class HTTPTranslationAPI(TranslationAPI):
    """Translation backend reached over HTTP.

    Endpoint: POST {base_url}/api/ai/translate/batch
    Request:  {"articles": [{"id": "...", "title": "...", "summary": "..."}]}
    Response: application/x-ndjson, one {"id", "title", "summary"} per line
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        batch_path: str = "/api/ai/translate/batch",
        timeout: float = 120,
        max_batch_size: int = 100,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._batch_url = f"{self._base_url}{batch_path}"
        self._timeout = timeout
        self._max_batch_size = max_batch_size
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def stream_batch_translate(
        self,
        articles: list[BatchArticle],
        token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[bytes]:
        if len(articles) > self._max_batch_size:
            raise BatchTooLargeError(
                f"maximum {self._max_batch_size} articles per batch, got {len(articles)}"
            )
        if token is not None:
            token.raise_if_cancelled()

        payload = {"articles": [article.to_payload() for article in articles]}
        headers = {"Accept": "application/x-ndjson"}

        try:
            async with self._client.stream(
                "POST", self._batch_url, json=payload, headers=headers,
            ) as response:
                if response.status_code != 200:
                    await response.aread()
                    raise TranslationRequestError(
                        response.status_code, self._error_message(response),
                    )

                logger.debug(f"Batch translate stream opened for {len(articles)} articles")
                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.TimeoutException:
            raise APITimeoutError(
                f"Translation request timed out after {self._timeout}s"
            )
        except httpx.ConnectError:
            raise APIConnectionError(
                f"Cannot connect to translation API at {self._base_url}"
            )
        except (httpx.ReadError, httpx.RemoteProtocolError) as e:
            logger.error(f"Translation stream interrupted: {e}")
            raise TranslationStreamError(f"Stream interrupted: {e}")
        except httpx.TransportError as e:
            raise APIConnectionError(f"Failed to reach translation API: {e}")

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract {"error": "..."} from an error body, falling back to raw text."""
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError):
            return response.text or "Translation request failed"
        if isinstance(data, dict) and isinstance(data.get("error"), str):
            return data["error"]
        return response.text or "Translation request failed"
