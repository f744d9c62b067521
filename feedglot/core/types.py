"""Data Transfer Objects for Feedglot."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ArticleTranslation:
    """Best-known translated fields for one article under one cache key.

    Every field is independently nullable; None means "not translated yet".
    Instances are immutable so the store can hand them out directly.
    """

    title: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None


@dataclass
class BatchArticle:
    """Article submitted for title/summary translation (list view)."""

    id: str
    title: str
    summary: Optional[str] = None

    def to_payload(self) -> dict:
        """Request body shape expected by the batch endpoint."""
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary or "",
        }


@dataclass
class TranslateArticleParams:
    """Full-content translation request for one article (detail view)."""

    article_id: str
    title: str
    content: str
    target_language: str
    summary: Optional[str] = None
    readability: bool = False


@dataclass
class BatchTranslateResult:
    """One record decoded from the batch NDJSON stream."""

    id: str
    title: Optional[str] = None
    summary: Optional[str] = None
    cached: bool = False             # informational, set by the server
