"""Tokenizer adapter around ``tiktoken``."""

from __future__ import annotations

from typing import Protocol

import tiktoken


class Tokenizer(Protocol):
    """Anything that turns text into an ordered list of token ids."""

    def encode(self, text: str) -> list[int]: ...

    def count(self, text: str) -> int: ...


class TiktokenTokenizer:
    """BPE tokenizer backed by a named ``tiktoken`` encoding.

    ``cl100k_base`` matches the OpenAI embedding models, so the counts used
    for chunking are the counts the embedding API will see.
    """

    def __init__(self, encoding_name: str = "cl100k_base") -> None:
        self.encoding_name = encoding_name
        self._encoding = tiktoken.get_encoding(encoding_name)

    def encode(self, text: str) -> list[int]:
        # Crawled pages occasionally contain literal "<|endoftext|>" markers;
        # treat them as ordinary text rather than raising.
        return self._encoding.encode(text, disallowed_special=())

    def count(self, text: str) -> int:
        return len(self.encode(text))

    def __repr__(self) -> str:  # noqa: D105
        return f"TiktokenTokenizer({self.encoding_name!r})"
