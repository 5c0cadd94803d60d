"""Keyword/phrase topic classifier. Pure, no I/O.

Text is case-folded and stripped of diacritics before matching, so
"Fútbol" and "futbol" hit the same rule. Two independent rule sets are
checked and their hits are unioned:

  keyword index  exact token → topic lookup (hashtags included, leading '#' stripped)
  phrase list    substring match against the whole normalised text

Results for short texts are memoised in a small FIFO cache.
"""

from __future__ import annotations

import re
import threading
import unicodedata
from collections import OrderedDict
from collections.abc import Iterable

from feedrank.topics.rules import DEFAULT_TOPIC_RULES, TopicRule

DEFAULT_CACHE_SIZE: int = 200
# Longer texts are classified but never cached.
MAX_CACHE_KEY_LENGTH: int = 512
MIN_TOKEN_LENGTH: int = 3
# classify_post() truncates the joined post text to this many characters.
MAX_POST_TEXT_LENGTH: int = 8000

_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9#]+")


def normalize_text(text: str | None) -> str:
    """Lowercase and strip combining marks (NFD decomposition)."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text).casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def tokenize(normalized: str) -> list[str]:
    return [t for t in _TOKEN_SPLIT_RE.split(normalized) if len(t) >= MIN_TOKEN_LENGTH]


class TopicClassifier:
    def __init__(
        self,
        rules: Iterable[TopicRule] = DEFAULT_TOPIC_RULES,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        self._keyword_index: dict[str, str] = {}
        phrases: list[tuple[str, str]] = []
        for rule in rules:
            for word in (*rule.keywords, *rule.hashtags):
                key = normalize_text(word).strip().lstrip("#")
                if key:
                    self._keyword_index[key] = rule.topic
            for phrase in rule.phrases:
                normalized = normalize_text(phrase).strip()
                if normalized:
                    phrases.append((rule.topic, normalized))
        self._phrases: tuple[tuple[str, str], ...] = tuple(phrases)

        self._cache_size = max(0, cache_size)
        self._cache: OrderedDict[str, frozenset[str]] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def topics(self) -> frozenset[str]:
        """Every topic label this classifier can emit."""
        return frozenset(self._keyword_index.values()) | {t for t, _ in self._phrases}

    def classify(self, text: str | None) -> frozenset[str]:
        """Return the set of topics matched by ``text``; empty for blank input."""
        normalized = normalize_text(text)
        if not normalized.strip():
            return frozenset()

        cache_key = normalized if len(normalized) <= MAX_CACHE_KEY_LENGTH else None
        if cache_key is not None:
            with self._lock:
                cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

        result = self._match(normalized)

        if cache_key is not None and self._cache_size:
            with self._lock:
                if cache_key not in self._cache:
                    # FIFO: evict the oldest insertion, reads do not refresh order
                    while len(self._cache) >= self._cache_size:
                        self._cache.popitem(last=False)
                    self._cache[cache_key] = result
        return result

    def classify_post(
        self,
        content: str | None = "",
        title: str | None = "",
        summary: str | None = "",
    ) -> frozenset[str]:
        pieces = ". ".join(p for p in (content, title, summary) if p)
        return self.classify(pieces[:MAX_POST_TEXT_LENGTH])

    def cached_entries(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def _match(self, normalized: str) -> frozenset[str]:
        topics: set[str] = set()
        for token in tokenize(normalized):
            topic = self._keyword_index.get(token.lstrip("#"))
            if topic is not None:
                topics.add(topic)
        for topic, phrase in self._phrases:
            if phrase in normalized:
                topics.add(topic)
        return frozenset(topics)

