from __future__ import annotations

import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Iterable
from typing import Protocol

from fire_registry.config import DictionaryConfig

LOGGER = logging.getLogger(__name__)


class WordDictionary(Protocol):
    def lookup(self, word: str) -> bool:
        """Return True when the word is a known dictionary entry."""
        ...


class StaticDictionary:
    """In-memory word list; lookups are case-insensitive."""

    def __init__(self, words: Iterable[str] = ()) -> None:
        self._words = {str(word).strip().lower() for word in words if str(word).strip()}

    def lookup(self, word: str) -> bool:
        return word.strip().lower() in self._words


class OnlineDictionary:
    """Word lookup against a JSON dictionary web service.

    A 200 response means the word exists, a 404 means it does not. Every other
    outcome (timeouts, DNS failures, 5xx responses) is logged and reported as
    "not found" so callers fall back to upper-casing instead of failing.
    """

    def __init__(self, url_template: str, timeout: float = 5.0) -> None:
        self.url_template = url_template
        self.timeout = timeout
        self._cache: dict[str, bool] = {}

    def _url_for(self, word: str) -> str:
        return self.url_template.format(word=urllib.parse.quote(word))

    def lookup(self, word: str) -> bool:
        key = word.strip().lower()
        if not key:
            return False
        if key in self._cache:
            return self._cache[key]

        found = False
        try:
            with urllib.request.urlopen(self._url_for(key), timeout=self.timeout) as response:
                found = 200 <= int(response.status) < 300
        except urllib.error.HTTPError as exc:
            if exc.code != 404:
                LOGGER.warning("Dictionary lookup for %r failed with HTTP %s", key, exc.code)
        except (urllib.error.URLError, socket.timeout, TimeoutError, OSError) as exc:
            LOGGER.warning("Dictionary lookup for %r unavailable: %s", key, exc)

        self._cache[key] = found
        return found


def build_dictionary(config: DictionaryConfig) -> WordDictionary:
    if not config.enabled:
        return StaticDictionary()
    return OnlineDictionary(url_template=config.url_template, timeout=config.timeout_seconds)
