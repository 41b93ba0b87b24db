"""
Tests for the chain stores (in-memory and SQLite).
"""
import asyncio

import pytest

from parrotchain.services.errors import StoreUnavailableError, WordNotFoundError
from parrotchain.services.memory_store import MemoryChainStore
from parrotchain.services.sql_store import SqlChainStore
from parrotchain.services.store import Role, create_store


class TestLexicon:
    """Test suite for word storage."""

    def test_add_word_is_idempotent(self, store, run):
        """Test re-adding a pair returns the same id and stores one row."""

        async def scenario():
            first = await store.add_word("middle", "cat")
            again = [await store.add_word("middle", "cat") for _ in range(5)]
            return first, again, await store.word_count()

        first, again, count = run(scenario())

        assert again == [first] * 5
        assert count == 1

    def test_ids_are_assigned_in_order(self, store, run):
        """Test sentinels inserted first get ids 1 and 2."""

        async def scenario():
            end = await store.add_word(Role.END, "")
            start = await store.add_word(Role.START, "")
            word = await store.add_word(Role.FIRST, "hello")
            return end, start, word

        assert run(scenario()) == (1, 2, 3)

    def test_role_distinguishes_words(self, store, run):
        """Test the same text under two roles gets two ids."""

        async def scenario():
            return (
                await store.add_word("first", "hi"),
                await store.add_word("last", "hi"),
            )

        first, last = run(scenario())
        assert first != last

    def test_role_enum_and_string_agree(self, store, run):
        """Test Role members and their string values address the same word."""

        async def scenario():
            word_id = await store.add_word(Role.MIDDLE, "cat")
            return word_id, await store.find_word("middle", "cat")

        word_id, found = run(scenario())
        assert found == word_id

    def test_get_word(self, store, run):
        """Test lookup of stored text."""

        async def scenario():
            word_id = await store.add_word("middle", "cat")
            return await store.get_word(word_id)

        assert run(scenario()) == "cat"

    def test_get_unknown_word_raises(self, store, run):
        """Test unknown ids raise WordNotFoundError."""
        with pytest.raises(WordNotFoundError) as exc:
            run(store.get_word(42))

        assert exc.value.word_id == 42

    def test_find_word_without_inserting(self, store, run):
        """Test find_word returns None and leaves the lexicon untouched."""

        async def scenario():
            found = await store.find_word("middle", "ghost")
            return found, await store.word_count()

        assert run(scenario()) == (None, 0)

    def test_find_case_insensitive(self, store, run):
        """Test matches ignore case and report each role."""

        async def scenario():
            first = await store.add_word("first", "Hello")
            middle = await store.add_word("middle", "hello")
            await store.add_word("middle", "help")
            return first, middle, await store.find_case_insensitive("HELLO")

        first, middle, matches = run(scenario())
        assert sorted(matches) == [(first, "first"), (middle, "middle")]

    def test_find_case_insensitive_no_match(self, store, run):
        """Test an unknown word gives an empty list."""
        assert run(store.find_case_insensitive("nothing")) == []


class TestTransitions:
    """Test suite for triple counts and candidate queries."""

    def test_increment_creates_then_counts(self, store, run):
        """Test a triple starts at 1 and goes up by one per call."""

        async def scenario():
            before = await store.get_occurrences(1, 2, 3)
            counts = []
            for _ in range(3):
                await store.increment(1, 2, 3)
                counts.append(await store.get_occurrences(1, 2, 3))
            return before, counts

        assert run(scenario()) == (0, [1, 2, 3])

    def test_concurrent_increments_are_not_lost(self, store, run):
        """Test concurrent increments of one triple all land."""

        async def scenario():
            await asyncio.gather(*(store.increment(4, 5, 6) for _ in range(50)))
            return await store.get_occurrences(4, 5, 6)

        assert run(scenario()) == 50

    def test_candidate_queries(self, store, run):
        """Test the four read shapes project the same rows."""

        async def scenario():
            # prev, curr, next
            for triple, times in [((1, 5, 7), 2), ((2, 5, 7), 1), ((2, 5, 8), 3), ((2, 6, 7), 4)]:
                for _ in range(times):
                    await store.increment(*triple)
            return (
                await store.next_candidates_order1(5),
                await store.next_candidates_order2(2, 5),
                await store.prev_candidates_order1(5),
                await store.prev_candidates_order2(5, 7),
            )

        next1, next2, prev1, prev2 = run(scenario())

        assert next1 == [(7, 3), (8, 3)]
        assert next2 == [(7, 1), (8, 3)]
        assert prev1 == [(1, 2), (2, 4)]
        assert prev2 == [(1, 2), (2, 1)]

    def test_dead_end_is_empty(self, store, run):
        """Test queries with no rows return empty lists."""

        async def scenario():
            await store.increment(1, 2, 3)
            return (
                await store.next_candidates_order1(9),
                await store.next_candidates_order2(2, 3),
                await store.prev_candidates_order1(9),
                await store.prev_candidates_order2(3, 9),
            )

        assert run(scenario()) == ([], [], [], [])


class TestSqlChainStore:
    """SQLite specific behavior."""

    def test_persists_across_reopen(self, tmp_path, run):
        """Test words and counts survive closing the store."""
        url = f"sqlite:///{tmp_path / 'chain.db'}"

        async def write():
            store = SqlChainStore(url)
            word_id = await store.add_word("first", "hello")
            await store.increment(2, word_id, 1)
            await store.close()
            return word_id

        async def read(word_id):
            store = SqlChainStore(url)
            try:
                return (
                    await store.add_word("first", "hello"),
                    await store.get_occurrences(2, word_id, 1),
                )
            finally:
                await store.close()

        word_id = run(write())
        assert run(read(word_id)) == (word_id, 1)

    def test_unopenable_database_raises(self, tmp_path):
        """Test a path in a missing directory raises StoreUnavailableError."""
        url = f"sqlite:///{tmp_path / 'missing' / 'dir' / 'chain.db'}"

        with pytest.raises(StoreUnavailableError):
            SqlChainStore(url)


class TestCreateStore:
    """Test suite for the store factory."""

    def test_memory_url(self):
        """Test memory:// builds the in-process store."""
        assert isinstance(create_store("memory://"), MemoryChainStore)

    def test_sqlite_url(self, run):
        """Test sqlite URLs build the SQL store."""
        store = create_store("sqlite://")
        assert isinstance(store, SqlChainStore)
        run(store.close())
