"""
Exceptions raised by the chain engine and its stores.

Running out of candidates during a walk is not an error: the walk simply
ends there.
"""


class MarkovError(Exception):
    """Base class for chain engine errors."""


class StoreUnavailableError(MarkovError):
    """The backing store could not be opened or a query failed."""


class WordNotFoundError(MarkovError):
    """A word identity did not resolve to any stored text."""

    def __init__(self, word_id: int):
        super().__init__(
            f"No word with id {word_id}. Is the database corrupted or missing?"
        )
        self.word_id = word_id


class CorruptModelError(MarkovError):
    """The stored chain violates a structural invariant."""


class NoAnchorMatchError(MarkovError):
    """A reply seed had no case-insensitive match in the lexicon."""

    def __init__(self, token: str):
        super().__init__(f"Could not find similar words for {token!r}")
        self.token = token
