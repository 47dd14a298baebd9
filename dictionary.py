# dictionary.py
# Prefix-indexed word list. Words live once in an arena; buckets hold indices.

import os
import time
from typing import Dict, Iterable, List, Tuple

import requests

from utils import DICT_URL, CHAIN_LINK, MIN_WORD_LENGTH, WORD_RE, vlog


class WordIndex:
    """
    Read-only dictionary with the API the chain engine needs:
      - WordIndex.build(words) -> WordIndex
      - is_valid_word(str) -> bool
      - words_with_prefix(str) -> Tuple[str, ...]
      - words_ending_with(str) -> Tuple[str, ...]
    Internals:
      words: List[str], the arena, in first-seen corpus order
      prefixes: Dict[str, List[int]] for every prefix length 1..len(word)
      suffixes: Dict[str, List[int]] keyed by the last two letters
    """

    __slots__ = ("_words", "_members", "_prefixes", "_suffixes")

    def __init__(self, words: List[str], prefixes: Dict[str, List[int]], suffixes: Dict[str, List[int]]):
        self._words = words
        self._members = frozenset(words)
        self._prefixes = prefixes
        self._suffixes = suffixes

    # ---------- Public API ----------
    @classmethod
    def build(cls, words: Iterable[str]) -> "WordIndex":
        """
        Build an index from the given words. Words are lowercased; anything that
        is not purely a-z or is shorter than two letters is dropped.
        """
        t0 = time.time()
        arena: List[str] = []
        seen = set()
        prefixes: Dict[str, List[int]] = {}
        suffixes: Dict[str, List[int]] = {}
        rejected = 0

        for w in words:
            if not w:
                continue
            ww = w.strip().lower()
            if len(ww) < MIN_WORD_LENGTH or not WORD_RE.match(ww):
                rejected += 1
                continue
            if ww in seen:
                continue
            seen.add(ww)
            idx = len(arena)
            arena.append(ww)
            for i in range(1, len(ww) + 1):
                prefixes.setdefault(ww[:i], []).append(idx)
            suffixes.setdefault(ww[-CHAIN_LINK:], []).append(idx)

        vlog(f"WordIndex built: {len(arena)} words, {len(prefixes)} prefixes, {rejected} rejected", t0)
        return cls(arena, prefixes, suffixes)

    def is_valid_word(self, word: str) -> bool:
        if not word:
            return False
        return word.strip().lower() in self._members

    def words_with_prefix(self, prefix: str) -> Tuple[str, ...]:
        """Words starting with ``prefix``. Prefixes under two letters match nothing."""
        if not prefix or len(prefix) < CHAIN_LINK:
            return ()
        bucket = self._prefixes.get(prefix.lower())
        if not bucket:
            return ()
        return tuple(self._words[i] for i in bucket)

    def words_ending_with(self, suffix: str) -> Tuple[str, ...]:
        """Words whose last two letters are ``suffix``, i.e. the possible previous words."""
        if not suffix or len(suffix) != CHAIN_LINK:
            return ()
        bucket = self._suffixes.get(suffix.lower())
        if not bucket:
            return ()
        return tuple(self._words[i] for i in bucket)

    def prefixes(self, length: int = CHAIN_LINK) -> List[str]:
        """Populated prefixes of exactly ``length`` letters, sorted."""
        return sorted(p for p in self._prefixes if len(p) == length)

    def __contains__(self, word) -> bool:
        return isinstance(word, str) and self.is_valid_word(word)

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self):
        return iter(self._words)


def load_word_corpus(source=DICT_URL, timeout=30):
    """Return the raw lines of a word list from a local file or a URL."""
    t0 = time.time()
    if os.path.exists(source):
        with open(source, "r", encoding="utf-8") as f:
            text = f.read()
    else:
        resp = requests.get(source, timeout=timeout)
        resp.raise_for_status()
        text = resp.text
    words = [line.strip() for line in text.splitlines() if line.strip()]
    vlog(f"Word corpus loaded from {source} ({len(words)} lines)", t0)
    return words
