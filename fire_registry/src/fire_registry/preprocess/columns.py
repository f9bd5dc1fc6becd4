from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from functools import lru_cache

import pandas as pd

from fire_registry.config import DEFAULT_DICTIONARY_URL
from fire_registry.io.dictionary import OnlineDictionary, WordDictionary

LOGGER = logging.getLogger(__name__)

SEPARATOR_RUN_RE = re.compile(r"[. ]+")
WORD_SPLIT_RE = re.compile(r"[._]")


def normalize(name: str) -> str:
    """Lowercase a label and collapse runs of dots/spaces into one underscore."""
    return SEPARATOR_RUN_RE.sub("_", str(name).lower())


@lru_cache(maxsize=1)
def _default_dictionary() -> WordDictionary:
    return OnlineDictionary(url_template=DEFAULT_DICTIONARY_URL)


def _is_known_word(word: str, dictionary: WordDictionary) -> bool:
    try:
        return bool(dictionary.lookup(word))
    except Exception:
        LOGGER.warning("Dictionary lookup raised for %r; treating as unknown", word, exc_info=True)
        return False


def titleize(
    name: str,
    capitalize_unknown: bool = False,
    dictionary: WordDictionary | None = None,
) -> str:
    """Turn an identifier such as ``hq_state`` into a display title.

    With ``capitalize_unknown`` every word is checked against ``dictionary``:
    known words are title-cased and unknown ones (acronyms like FDID, HQ) are
    upper-cased.
    """
    words = [word for word in WORD_SPLIT_RE.sub(" ", str(name)).split(" ") if word]
    if not capitalize_unknown:
        return " ".join(word.capitalize() for word in words)

    lookup = dictionary if dictionary is not None else _default_dictionary()
    return " ".join(
        word.capitalize() if _is_known_word(word, lookup) else word.upper() for word in words
    )


def display_titles(
    names: Iterable[str],
    capitalize_unknown: bool = False,
    dictionary: WordDictionary | None = None,
) -> dict[str, str]:
    """Map each normalized identifier to its display title."""
    lookup = dictionary
    if capitalize_unknown and lookup is None:
        lookup = _default_dictionary()
    titles: dict[str, str] = {}
    for name in names:
        key = normalize(name)
        if key not in titles:
            titles[key] = titleize(key, capitalize_unknown=capitalize_unknown, dictionary=lookup)
    return titles


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.rename(columns={column: normalize(column) for column in df.columns})
