"""
Whitespace tokenizer with trailing-punctuation splitting.

"word," becomes ["word", ","] while repeated or emphatic endings such as
"wow!!" and "what?!" stay fused so they round-trip unchanged.
"""
from __future__ import annotations

from typing import Iterable, List

PUNCTUATION = (".", ",", "?", "!", ";", ":")


def _split_punctuation(piece: str) -> List[str]:
    if len(piece) < 2:
        return [piece]

    last, second_last = piece[-1], piece[-2]
    if (
        last in PUNCTUATION
        and last != second_last
        and second_last not in ("!", "?")
    ):
        return [piece[:-1], last]
    return [piece]


def split_sentence(text: str) -> List[str]:
    """Split ``text`` into word and punctuation tokens."""
    tokens: List[str] = []
    for piece in text.split():
        tokens.extend(_split_punctuation(piece))
    return tokens


def is_punctuation(token: str) -> bool:
    """True iff ``token`` is exactly one punctuation character."""
    return len(token) == 1 and token in PUNCTUATION


def join_tokens(tokens: Iterable[str]) -> str:
    """Render tokens as text, with no space before punctuation."""
    parts: List[str] = []
    for token in tokens:
        if parts and not is_punctuation(token):
            parts.append(" ")
        parts.append(token)
    return "".join(parts)
