"""
Persistent order-2 Markov chain text generator.

Lines are stored as weighted word triples (prev, curr, next). Generation is a
weighted random walk over those triples, either order-1 (keyed on the current
word), order-2 (keyed on the last two words) or hybrid, which takes the
order-2 choice unless its weight is below a threshold and then resamples at
order 1. Replies are built around an anchor word taken from the input,
walking backwards to the start of a sentence and forwards to its end.
"""
from __future__ import annotations

import asyncio
import random
from collections import deque
from enum import Enum
from functools import partial
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, Field

from parrotchain.utils.logger import setup_logger

from .errors import CorruptModelError, NoAnchorMatchError
from .store import Candidate, ChainStore, Role
from .tokenizer import is_punctuation, join_tokens, split_sentence

logger = setup_logger(__name__)

T = TypeVar("T")

START_KEYWORD: Tuple[Role, str] = (Role.START, "")
END_KEYWORD: Tuple[Role, str] = (Role.END, "")

START_INDEX = 2
END_INDEX = 1

DEFAULT_HYBRID_THRESHOLD = 10
DEFAULT_CHANCE = 10
DEFAULT_MAX_STEPS = 1000


class MarkovType(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    HYBRID = "hybrid"


class ReplyMode(str, Enum):
    OFF = "off"
    RANDOM = "random"
    REPLY = "reply"
    REPLY_UNIQUE = "reply_unique"


class Direction(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


class ChainConfig(BaseModel):
    """Per-chain generation settings."""

    markov_type: MarkovType = MarkovType.HYBRID
    hybrid_threshold: int = Field(default=DEFAULT_HYBRID_THRESHOLD, ge=0)
    chance: int = Field(default=DEFAULT_CHANCE, ge=0)
    reply_mode: ReplyMode = ReplyMode.REPLY
    max_steps: int = Field(default=DEFAULT_MAX_STEPS, ge=1)

    @classmethod
    def from_settings(cls, settings, **overrides) -> "ChainConfig":
        """Build from ``Settings``; keyword overrides replace single fields."""
        values = dict(
            markov_type=settings.MARKOV_TYPE,
            hybrid_threshold=settings.HYBRID_THRESHOLD,
            chance=settings.MARKOV_CHANCE,
            reply_mode=settings.REPLY_MODE,
            max_steps=settings.MAX_WALK_STEPS,
        )
        values.update(overrides)
        return cls(**values)


def _position_role(index: int, length: int) -> Role:
    # a one-word line is tagged "last"
    if index == length:
        return Role.LAST
    if index == 1:
        return Role.FIRST
    return Role.MIDDLE


class ChainModel:
    """
    Markov chain bound to a store.

    Use ``await ChainModel.create(store)`` rather than the constructor so the
    boundary sentinels are guaranteed to exist.
    """

    def __init__(
        self,
        store: ChainStore,
        config: Optional[ChainConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.config = config or ChainConfig()
        self.rng = rng or random.Random()

    @classmethod
    async def create(
        cls,
        store: ChainStore,
        config: Optional[ChainConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> "ChainModel":
        end_id = await store.add_word(*END_KEYWORD)
        start_id = await store.add_word(*START_KEYWORD)
        if (end_id, start_id) != (END_INDEX, START_INDEX):
            raise CorruptModelError(
                f"Sentinels have ids end={end_id}, start={start_id}; "
                f"expected end={END_INDEX}, start={START_INDEX}"
            )
        return cls(store, config, rng)

    def chance(self) -> bool:
        """Roll the 1-in-``chance`` gate for unsolicited messages."""
        if self.config.chance == 0:
            return False
        return self.rng.randint(1, self.config.chance) == 1

    # --- ingestion ---
    async def append(self, text: str) -> None:
        await self.append_line(text)

    async def append_line(self, line: str) -> None:
        """
        Record every triple of ``line``.

        Triple writes run concurrently. The first failure is raised only after
        every write has finished; triples already written stay written.
        """
        tokens = split_sentence(line)
        if not tokens:
            raise ValueError("Cannot append an empty line")

        length = len(tokens)
        words = [START_KEYWORD, START_KEYWORD]
        words.extend(
            (_position_role(index, length), token)
            for index, token in enumerate(tokens, start=1)
        )
        words.append(END_KEYWORD)

        await _join_all(
            self._append_triple(prev, curr, next)
            for prev, curr, next in zip(words, words[1:], words[2:])
        )
        logger.debug(f"[Markov] Appended {length} tokens")

    async def append_line_batch(
        self,
        lines: Union[str, Iterable[str]],
        on_line: Optional[Callable[[str], None]] = None,
    ) -> int:
        """
        Append each non-blank line in order, stopping at the first failure.

        ``lines`` is either an iterable of lines or one newline-delimited
        string. ``on_line`` is called with every line once it is appended.

        Returns:
            Number of lines appended
        """
        if isinstance(lines, str):
            lines = lines.splitlines()

        count = 0
        for line in lines:
            line = line.strip()
            if not line:
                continue
            await self.append_line(line)
            count += 1
            if on_line is not None:
                on_line(line)
        return count

    async def _append_triple(self, prev, curr, next) -> None:
        ids = await _join_all(
            (
                self.store.add_word(*prev),
                self.store.add_word(*curr),
                self.store.add_word(*next),
            )
        )
        await self.store.increment(*ids)

    # --- sampling ---
    def _pick(self, candidates: List[Candidate]) -> Optional[Candidate]:
        if not candidates:
            return None
        weights = [weight for _, weight in candidates]
        return self.rng.choices(candidates, weights=weights, k=1)[0]

    async def _step(self, direction: Direction, curr: int, context: int) -> Optional[int]:
        """
        Sample the word adjacent to ``curr``.

        ``context`` is the word on the other side of ``curr``: the previous
        word when walking forwards, the following word when walking backwards.
        """
        if direction is Direction.FORWARD:
            order1 = self.store.next_candidates_order1
            order2 = partial(self.store.next_candidates_order2, context, curr)
        else:
            order1 = self.store.prev_candidates_order1
            order2 = partial(self.store.prev_candidates_order2, curr, context)

        markov_type = self.config.markov_type
        if markov_type is MarkovType.SINGLE:
            choice = self._pick(await order1(curr))
            return choice[0] if choice else None

        choice = self._pick(await order2())
        if choice is None:
            return None

        if markov_type is MarkovType.HYBRID and choice[1] < self.config.hybrid_threshold:
            choice = self._pick(await order1(curr))
            if choice is None:
                return None
        return choice[0]

    async def next_word(self, prev: int, curr: int) -> Optional[int]:
        """Sample a successor of (``prev``, ``curr``); None at a dead end."""
        return await self._step(Direction.FORWARD, curr, prev)

    async def prev_word(self, curr: int, next: int) -> Optional[int]:
        """Sample a predecessor of (``curr``, ``next``); None at a dead end."""
        return await self._step(Direction.BACKWARD, curr, next)

    # --- generation ---
    async def _walk(
        self,
        direction: Direction,
        curr: int,
        context: int,
        stop: int,
        include_first: bool = False,
    ) -> str:
        """
        Walk from ``curr`` until ``stop`` or a dead end.

        Forward walks append each word, backward walks prepend it. With
        ``include_first`` the starting word is emitted as well.
        """
        tokens: deque = deque()

        async def emit(word_id: int) -> None:
            word = await self.store.get_word(word_id)
            if direction is Direction.FORWARD:
                tokens.append(word)
            else:
                tokens.appendleft(word)

        if include_first and curr != stop:
            await emit(curr)

        while len(tokens) < self.config.max_steps:
            found = await self._step(direction, curr, context)
            if found is None or found == stop:
                break
            context, curr = curr, found
            await emit(curr)
        else:
            logger.debug(f"[Markov] Walk truncated at {self.config.max_steps} tokens")

        return join_tokens(tokens)

    async def generate(self) -> str:
        """Generate a sentence from the start of the chain."""
        return await self._walk(Direction.FORWARD, START_INDEX, START_INDEX, END_INDEX)

    async def generate_reply(self, line: str) -> str:
        """
        Generate a reply that passes through a word of ``line``.

        Raises NoAnchorMatchError when the chosen word is unknown to the
        chain; callers may retry or fall back to ``generate``.
        """
        reply_mode = self.config.reply_mode
        if reply_mode is ReplyMode.OFF:
            return ""
        if reply_mode is ReplyMode.RANDOM:
            return await self.generate()

        tokens = split_sentence(line)
        if not tokens:
            raise NoAnchorMatchError(line)

        word = self.rng.choice(tokens)
        matches = await self.store.find_case_insensitive(word)
        if not matches:
            raise NoAnchorMatchError(word)
        anchor, role = self.rng.choice(matches)

        if role == Role.FIRST.value:
            sentence = await self._walk(
                Direction.FORWARD, anchor, START_INDEX, END_INDEX, include_first=True
            )
        elif role == Role.LAST.value:
            sentence = await self._walk(
                Direction.BACKWARD, anchor, END_INDEX, START_INDEX, include_first=True
            )
        else:
            pivot = self._pick(await self.store.next_candidates_order1(anchor))
            pivot_id = pivot[0] if pivot else END_INDEX
            first_half = await self._walk(
                Direction.BACKWARD, anchor, pivot_id, START_INDEX, include_first=True
            )
            second_half = await self._walk(
                Direction.FORWARD, pivot_id, anchor, END_INDEX, include_first=True
            )
            sentence = join_halves(first_half, second_half)

        if reply_mode is ReplyMode.REPLY_UNIQUE and sentence == line:
            logger.debug("[Markov] Reply echoed its seed, generating instead")
            return await self.generate()
        return sentence


async def _join_all(aws: Iterable[Awaitable[T]]) -> List[T]:
    """Await every awaitable, then raise the first failure if there was one."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


def join_halves(first: str, second: str) -> str:
    """Join two sentence fragments, spacing them unless either edge is punctuation."""
    if first and second and not is_punctuation(first[-1]) and not is_punctuation(second[0]):
        return f"{first} {second}"
    return first + second
