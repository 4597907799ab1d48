"""Embedding client — one API call per text."""

from __future__ import annotations

import logging
from typing import Protocol

from langchain_openai import OpenAIEmbeddings

logger = logging.getLogger(__name__)


class EmbeddingClient(Protocol):
    """Turns one text into one vector. The vector length is model-dependent."""

    async def embed(self, text: str) -> list[float]: ...


class OpenAIEmbeddingClient:
    """Embed texts through the OpenAI embeddings endpoint.

    Errors from the API are not caught here: a failed call aborts the
    embedding stage and the run is resumed from the stage caches.
    """

    def __init__(self, api_key: str, model: str = "text-embedding-ada-002") -> None:
        self.model = model
        self._embeddings = OpenAIEmbeddings(
            model=model,
            api_key=api_key,
            # Send the chunk text as-is; chunks are already token-bounded.
            check_embedding_ctx_length=False,
            max_retries=0,
        )

    async def embed(self, text: str) -> list[float]:
        return await self._embeddings.aembed_query(text)

    def __repr__(self) -> str:  # noqa: D105
        return f"OpenAIEmbeddingClient(model={self.model!r})"
