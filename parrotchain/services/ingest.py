"""
Corpus ingestion: one utterance per line, fed into a chain in order.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Union

from tqdm import tqdm

from parrotchain.utils.logger import setup_logger

from .markov import ChainModel

logger = setup_logger(__name__)


def read_corpus(path: Union[str, Path]) -> List[str]:
    """Read non-blank, stripped lines from a UTF-8 text file."""
    with Path(path).open("r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


async def feed_corpus(
    model: ChainModel,
    lines: Union[str, Iterable[str]],
    progress: bool = True,
) -> int:
    """
    Append every line to ``model``.

    Stops at the first failing line and re-raises its error; lines before it
    stay in the chain.

    Returns:
        Number of lines appended
    """
    if isinstance(lines, str):
        lines = lines.splitlines()
    lines = list(lines)
    total = sum(1 for line in lines if line.strip())

    with tqdm(total=total, disable=not progress, unit="line") as bar:
        try:
            count = await model.append_line_batch(lines, on_line=lambda _: bar.update(1))
        except Exception:
            logger.error(f"[Ingest] Failed after {bar.n} lines")
            raise

    logger.info(f"[Ingest] Appended {count} lines")
    return count


async def feed_file(
    path: Union[str, Path],
    model: ChainModel,
    progress: bool = True,
) -> int:
    """Read a corpus file and feed it to ``model``."""
    lines = read_corpus(path)
    logger.info(f"[Ingest] Feeding {len(lines)} lines from {path}")
    return await feed_corpus(model, lines, progress=progress)
