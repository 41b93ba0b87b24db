"""
Chain engine: tokenizer, stores, model and corpus ingestion.
"""

from .errors import (
    CorruptModelError,
    MarkovError,
    NoAnchorMatchError,
    StoreUnavailableError,
    WordNotFoundError,
)
from .markov import (
    END_INDEX,
    START_INDEX,
    ChainConfig,
    ChainModel,
    MarkovType,
    ReplyMode,
)
from .store import ChainStore, Role, create_store

__all__ = [
    "ChainConfig",
    "ChainModel",
    "ChainStore",
    "CorruptModelError",
    "END_INDEX",
    "MarkovError",
    "MarkovType",
    "NoAnchorMatchError",
    "ReplyMode",
    "Role",
    "START_INDEX",
    "StoreUnavailableError",
    "WordNotFoundError",
    "create_store",
]
