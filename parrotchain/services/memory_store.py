"""
In-process chain store.

Same semantics as the SQL store, kept in dictionaries. None of the methods
awaits while mutating, so each call is atomic with respect to the event loop.
"""
from __future__ import annotations

from collections import Counter, defaultdict
from typing import Dict, List, Optional, Tuple

from .errors import WordNotFoundError
from .store import Candidate, ChainStore, role_name


class MemoryChainStore(ChainStore):
    def __init__(self):
        self._ids: Dict[Tuple[str, str], int] = {}
        self._words: Dict[int, Tuple[str, str]] = {}
        self._occurrences: Counter = Counter()
        # (prev, curr) -> {next: count} and (curr, next) -> {prev: count}
        self._forward: Dict[Tuple[int, int], Counter] = defaultdict(Counter)
        self._backward: Dict[Tuple[int, int], Counter] = defaultdict(Counter)
        # curr -> {next: count} and curr -> {prev: count}, summed over the other side
        self._successors: Dict[int, Counter] = defaultdict(Counter)
        self._predecessors: Dict[int, Counter] = defaultdict(Counter)

    async def add_word(self, role: str, text: str) -> int:
        key = (role_name(role), text)
        word_id = self._ids.get(key)
        if word_id is None:
            word_id = len(self._words) + 1
            self._ids[key] = word_id
            self._words[word_id] = key
        return word_id

    async def get_word(self, word_id: int) -> str:
        try:
            return self._words[word_id][1]
        except KeyError:
            raise WordNotFoundError(word_id) from None

    async def find_word(self, role: str, text: str) -> Optional[int]:
        return self._ids.get((role_name(role), text))

    async def find_case_insensitive(self, text: str) -> List[Tuple[int, str]]:
        needle = text.lower()
        return [
            (word_id, role)
            for word_id, (role, string) in self._words.items()
            if string.lower() == needle
        ]

    async def word_count(self) -> int:
        return len(self._words)

    async def increment(self, prev: int, curr: int, next: int) -> None:
        self._occurrences[(prev, curr, next)] += 1
        self._forward[(prev, curr)][next] += 1
        self._backward[(curr, next)][prev] += 1
        self._successors[curr][next] += 1
        self._predecessors[curr][prev] += 1

    async def get_occurrences(self, prev: int, curr: int, next: int) -> int:
        return self._occurrences.get((prev, curr, next), 0)

    async def next_candidates_order1(self, curr: int) -> List[Candidate]:
        return sorted(self._successors.get(curr, {}).items())

    async def next_candidates_order2(self, prev: int, curr: int) -> List[Candidate]:
        return sorted(self._forward.get((prev, curr), {}).items())

    async def prev_candidates_order1(self, curr: int) -> List[Candidate]:
        return sorted(self._predecessors.get(curr, {}).items())

    async def prev_candidates_order2(self, curr: int, next: int) -> List[Candidate]:
        return sorted(self._backward.get((curr, next), {}).items())
