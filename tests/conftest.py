"""
Shared pytest fixtures for chain engine tests.
"""
import asyncio
import random
from pathlib import Path
from typing import Iterable, List

import pytest

from parrotchain.services.markov import ChainConfig, ChainModel
from parrotchain.services.memory_store import MemoryChainStore
from parrotchain.services.sql_store import SqlChainStore


@pytest.fixture
def run():
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run


@pytest.fixture(params=["memory", "sqlite"])
def store(request, run):
    """Empty store, once per backend."""
    if request.param == "memory":
        backend = MemoryChainStore()
    else:
        backend = SqlChainStore("sqlite://")
    yield backend
    run(backend.close())


@pytest.fixture
def make_model(run):
    """Factory building a seeded chain model, optionally pre-fed with lines."""

    def _make(lines: Iterable[str] = (), store=None, seed: int = 0, **config) -> ChainModel:
        backend = store if store is not None else MemoryChainStore()

        async def build() -> ChainModel:
            model = await ChainModel.create(
                backend, ChainConfig(**config), rng=random.Random(seed)
            )
            await model.append_line_batch(lines)
            return model

        return run(build())

    return _make


@pytest.fixture
def sample_corpus() -> List[str]:
    """Sample chat lines."""
    return [
        "Hello friend, how are you today?",
        "The universe is full of amazing wonders.",
        "I love exploring new planets and stars!",
        "Would you like to play a game together?",
        "",
        "Friends always support each other.",
        "The stars are beautiful tonight.",
        "wow!!",
        "I feel happy when we talk together.",
    ]


@pytest.fixture
def corpus_path(sample_corpus, tmp_path) -> Path:
    """Sample corpus written to a text file."""
    file_path = tmp_path / "corpus.txt"
    file_path.write_text("\n".join(sample_corpus) + "\n", encoding="utf-8")
    return file_path
