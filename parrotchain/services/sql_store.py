"""
SQLite-backed chain store built on SQLAlchemy Core.

The store is the single owner of its engine. Blocking statements run in a
worker thread, one at a time, and each store call is one transaction, so
``increment`` never loses an update even when many triples of a line are
written concurrently.
"""
from __future__ import annotations

import asyncio
import threading
from typing import Callable, List, Optional, Tuple, TypeVar

from sqlalchemy import (
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    create_engine,
    event,
    func,
    select,
)
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from parrotchain.utils.logger import setup_logger

from .errors import StoreUnavailableError, WordNotFoundError
from .store import Candidate, ChainStore, role_name

logger = setup_logger(__name__)

T = TypeVar("T")

metadata = MetaData()

words_table = Table(
    "Words",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("keyword", String(20)),
    Column("string", String(255)),
    UniqueConstraint("keyword", "string"),
)

occurrence_table = Table(
    "Occurrence",
    metadata,
    Column("prev", Integer, nullable=False),
    Column("curr", Integer, nullable=False),
    Column("next", Integer, nullable=False),
    Column("occurrences", Integer),
    UniqueConstraint("prev", "curr", "next"),
    Index("ix_occurrence_curr_next", "curr", "next"),
)


def _is_memory_url(database_url: str) -> bool:
    return make_url(database_url).database in (None, "", ":memory:")


class SqlChainStore(ChainStore):
    def __init__(self, database_url: str = "sqlite:///./parrotchain.db"):
        self.database_url = database_url
        self._lock = threading.Lock()

        try:
            if _is_memory_url(database_url):
                # one shared connection, otherwise every checkout gets a new empty db
                self.engine = create_engine(
                    database_url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            else:
                self.engine = create_engine(
                    database_url, connect_args={"check_same_thread": False}
                )
            event.listen(self.engine, "connect", _set_sqlite_pragma)
            metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Cannot open {database_url}: {e}") from e

        logger.info(f"[Store] Opened {self.engine.url.render_as_string(hide_password=True)}")

    # --- plumbing ---
    def _call(self, fn: Callable[[Connection], T]) -> T:
        with self._lock:
            try:
                with self.engine.begin() as conn:
                    return fn(conn)
            except SQLAlchemyError as e:
                raise StoreUnavailableError(str(e)) from e

    async def _run(self, fn: Callable[[Connection], T]) -> T:
        return await asyncio.to_thread(self._call, fn)

    # --- lexicon ---
    async def add_word(self, role: str, text: str) -> int:
        keyword = role_name(role)

        def _add(conn: Connection) -> int:
            conn.execute(
                sqlite_insert(words_table)
                .values(keyword=keyword, string=text)
                .on_conflict_do_nothing(index_elements=["keyword", "string"])
            )
            return conn.execute(
                select(words_table.c.id).where(
                    words_table.c.keyword == keyword,
                    words_table.c.string == text,
                )
            ).scalar_one()

        return await self._run(_add)

    async def get_word(self, word_id: int) -> str:
        def _get(conn: Connection) -> Optional[str]:
            return conn.execute(
                select(words_table.c.string).where(words_table.c.id == word_id)
            ).scalar_one_or_none()

        text = await self._run(_get)
        if text is None:
            raise WordNotFoundError(word_id)
        return text

    async def find_word(self, role: str, text: str) -> Optional[int]:
        keyword = role_name(role)

        def _find(conn: Connection) -> Optional[int]:
            return conn.execute(
                select(words_table.c.id).where(
                    words_table.c.keyword == keyword,
                    words_table.c.string == text,
                )
            ).scalar_one_or_none()

        return await self._run(_find)

    async def find_case_insensitive(self, text: str) -> List[Tuple[int, str]]:
        def _find(conn: Connection) -> List[Tuple[int, str]]:
            rows = conn.execute(
                select(words_table.c.id, words_table.c.keyword)
                .where(func.lower(words_table.c.string) == text.lower())
                .order_by(words_table.c.id)
            )
            return [(row.id, row.keyword) for row in rows]

        return await self._run(_find)

    async def word_count(self) -> int:
        return await self._run(
            lambda conn: conn.execute(
                select(func.count()).select_from(words_table)
            ).scalar_one()
        )

    # --- transitions ---
    async def increment(self, prev: int, curr: int, next: int) -> None:
        stmt = sqlite_insert(occurrence_table).values(
            prev=prev, curr=curr, next=next, occurrences=1
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["prev", "curr", "next"],
            set_={"occurrences": occurrence_table.c.occurrences + 1},
        )
        await self._run(lambda conn: conn.execute(stmt))

    async def get_occurrences(self, prev: int, curr: int, next: int) -> int:
        count = await self._run(
            lambda conn: conn.execute(
                select(occurrence_table.c.occurrences).where(
                    occurrence_table.c.prev == prev,
                    occurrence_table.c.curr == curr,
                    occurrence_table.c.next == next,
                )
            ).scalar_one_or_none()
        )
        return count or 0

    async def _candidates(self, target, *conditions) -> List[Candidate]:
        stmt = (
            select(target, func.sum(occurrence_table.c.occurrences))
            .where(*conditions)
            .group_by(target)
            .order_by(target)
        )
        return await self._run(
            lambda conn: [(row[0], int(row[1])) for row in conn.execute(stmt)]
        )

    async def next_candidates_order1(self, curr: int) -> List[Candidate]:
        return await self._candidates(
            occurrence_table.c.next,
            occurrence_table.c.curr == curr,
        )

    async def next_candidates_order2(self, prev: int, curr: int) -> List[Candidate]:
        return await self._candidates(
            occurrence_table.c.next,
            occurrence_table.c.prev == prev,
            occurrence_table.c.curr == curr,
        )

    async def prev_candidates_order1(self, curr: int) -> List[Candidate]:
        return await self._candidates(
            occurrence_table.c.prev,
            occurrence_table.c.curr == curr,
        )

    async def prev_candidates_order2(self, curr: int, next: int) -> List[Candidate]:
        return await self._candidates(
            occurrence_table.c.prev,
            occurrence_table.c.curr == curr,
            occurrence_table.c.next == next,
        )

    async def close(self) -> None:
        await asyncio.to_thread(self.engine.dispose)


def _set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA synchronous = OFF")
    cursor.close()
