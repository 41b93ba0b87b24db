"""
Storage interface for the word lexicon and the transition counts.

A chain is persisted as two relations:

- Words(id, keyword, string): each distinct (role, text) pair gets one
  stable integer id.
- Occurrence(prev, curr, next, occurrences): how often ``next`` followed
  the pair (``prev``, ``curr``).

Every read shape the generator needs (order-1 and order-2, forwards and
backwards) is a projection of the Occurrence rows.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Tuple

# (word id, weight)
Candidate = Tuple[int, int]


class Role(str, Enum):
    """Positional tag recorded with each word."""

    START = "start"
    FIRST = "first"
    MIDDLE = "middle"
    LAST = "last"
    END = "end"


class ChainStore(ABC):
    """Async capability set shared by every store backend."""

    # --- lexicon ---
    @abstractmethod
    async def add_word(self, role: str, text: str) -> int:
        """Insert (role, text) if absent and return its id."""

    @abstractmethod
    async def get_word(self, word_id: int) -> str:
        """Return the surface text for ``word_id`` or raise WordNotFoundError."""

    @abstractmethod
    async def find_word(self, role: str, text: str) -> Optional[int]:
        """Return the id of (role, text) without inserting it."""

    @abstractmethod
    async def find_case_insensitive(self, text: str) -> List[Tuple[int, str]]:
        """Return (id, role) for every word whose text matches ``text`` ignoring case."""

    @abstractmethod
    async def word_count(self) -> int:
        """Number of lexicon entries, sentinels included."""

    # --- transitions ---
    @abstractmethod
    async def increment(self, prev: int, curr: int, next: int) -> None:
        """Create the triple with count 1, or add 1 to its count, atomically."""

    @abstractmethod
    async def get_occurrences(self, prev: int, curr: int, next: int) -> int:
        """Count for one triple, 0 when it was never observed."""

    @abstractmethod
    async def next_candidates_order1(self, curr: int) -> List[Candidate]:
        """Successors of ``curr`` summed over every predecessor."""

    @abstractmethod
    async def next_candidates_order2(self, prev: int, curr: int) -> List[Candidate]:
        """Successors of the exact pair (``prev``, ``curr``)."""

    @abstractmethod
    async def prev_candidates_order1(self, curr: int) -> List[Candidate]:
        """Predecessors of ``curr`` summed over every successor."""

    @abstractmethod
    async def prev_candidates_order2(self, curr: int, next: int) -> List[Candidate]:
        """Predecessors of the exact pair (``curr``, ``next``)."""

    async def close(self) -> None:
        """Release any held resources."""


def create_store(database_url: str) -> ChainStore:
    """Build the store backend named by ``database_url``."""
    if database_url.startswith("memory://"):
        from .memory_store import MemoryChainStore

        return MemoryChainStore()

    from .sql_store import SqlChainStore

    return SqlChainStore(database_url)


def role_name(role) -> str:
    """Plain string form of a role given as ``Role`` or ``str``."""
    return role.value if isinstance(role, Role) else str(role)
