"""In-memory translation cache with merge writes and change notification."""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from feedglot.core.types import ArticleTranslation

logger = logging.getLogger("feedglot")

READABILITY_SUFFIX = "readability"


def get_cache_key(language: str, readability: bool = False) -> str:
    """Cache key for a target language and rendering mode.

    >>> get_cache_key("fr")
    'fr'
    >>> get_cache_key("fr", readability=True)
    'fr:readability'
    """
    return f"{language}:{READABILITY_SUFFIX}" if readability else language


@dataclass(frozen=True)
class StoreChange:
    """Notification payload passed to store listeners."""

    action: str                      # 'set', 'clear', 'disable', 'enable'
    article_id: str
    cache_key: Optional[str] = None  # only for 'set'


Listener = Callable[[StoreChange], None]


class TranslationStore:
    """Keyed store of partial translations: article_id -> cache_key -> ArticleTranslation.

    Writes merge into the existing entry. Entries never expire; they are
    removed only by clear_translation() or disable_translation(). A
    disabled article never holds entries and always reads as untranslated.

    Every mutation completes before listeners are notified, so listeners
    never observe a half-applied change (e.g. disabled but still populated).
    """

    def __init__(self):
        self._data: dict[str, dict[str, ArticleTranslation]] = {}
        self._disabled: set[str] = set()
        self._listeners: list[Listener] = []

    def get_translation(self, article_id: str, language: str,
                        readability: bool = False) -> Optional[ArticleTranslation]:
        """Return the merged translation, or None if disabled or absent.

        None means "show the original content", never an error.
        """
        if article_id in self._disabled:
            return None
        key = get_cache_key(language, readability)
        return self._data.get(article_id, {}).get(key)

    def set_translation(self, article_id: str, language: str,
                        translation: Mapping[str, Optional[str]],
                        readability: bool = False) -> Optional[ArticleTranslation]:
        """Merge `translation` into the entry for (article_id, language, mode).

        Fields present in `translation` overwrite, absent fields are kept.
        The entry is created if it does not exist. Writes to a disabled
        article are dropped without notifying listeners.

        Args:
            article_id: Article identifier
            language: Target language code (e.g., "fr")
            translation: Any subset of {"title", "summary", "content"}
            readability: Whether this is the readability rendering

        Returns:
            The merged ArticleTranslation now stored, or None if the
            article is disabled

        Raises:
            TypeError: `translation` contains an unknown field
        """
        if article_id in self._disabled:
            logger.debug(f"Dropping translation write for disabled article {article_id}")
            return None

        key = get_cache_key(language, readability)
        existing = self._data.get(article_id, {}).get(key, ArticleTranslation())
        merged = dataclasses.replace(existing, **translation)
        self._data.setdefault(article_id, {})[key] = merged

        self._notify(StoreChange("set", article_id, key))
        return merged

    def clear_translation(self, article_id: str) -> None:
        """Remove every cache entry for the article. The disabled flag is untouched."""
        self._data.pop(article_id, None)
        self._notify(StoreChange("clear", article_id))

    def disable_translation(self, article_id: str) -> None:
        """Opt the article out of translation and purge its entries."""
        self._disabled.add(article_id)
        self._data.pop(article_id, None)
        self._notify(StoreChange("disable", article_id))

    def enable_translation(self, article_id: str) -> None:
        """Remove the opt-out. Previously purged data is not restored."""
        self._disabled.discard(article_id)
        self._notify(StoreChange("enable", article_id))

    def is_disabled(self, article_id: str) -> bool:
        return article_id in self._disabled

    def has_entries(self, article_id: str) -> bool:
        """Whether any cache entry is stored for the article (disabled or not)."""
        return bool(self._data.get(article_id))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reset(self) -> None:
        """Drop all entries and disabled flags (e.g., on logout)."""
        self._data.clear()
        self._disabled.clear()

    def _notify(self, change: StoreChange) -> None:
        for listener in self._listeners[:]:
            try:
                listener(change)
            except Exception:
                logger.exception(f"Translation store listener failed on {change.action} "
                                 f"for article {change.article_id}")
