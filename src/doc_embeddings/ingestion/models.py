"""Records that flow between the ingestion stages.

Each stage consumes the previous stage's records and its own output is what
gets written to that stage's cache artifact, so every model here must
round-trip through JSON.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SourceDocument(BaseModel):
    """One crawled page.

    Attributes
    ----------
    filepath:
        File name inside the source folder. Carried unchanged through every
        downstream record; many chunks may share it.
    text:
        Extracted plain text of the page.
    """

    filepath: str
    text: str


class TokenizedDocument(SourceDocument):
    """A source document together with its token ids."""

    tokens: list[int] = Field(default_factory=list)

    @property
    def token_count(self) -> int:
        return len(self.tokens)


class TextChunk(BaseModel):
    """A token-bounded slice of a document, embeddable on its own."""

    filepath: str
    text: str


class EmbeddedChunk(TextChunk):
    """A chunk with its embedding.

    ``token_count`` is measured on the final chunk text, not carried over
    from the splitter's estimate.
    """

    token_count: int
    embedding: list[float]


class PersistedRecord(BaseModel):
    """Row shape of the chunk table (columns in insert order)."""

    text: str
    n_tokens: int
    file_path: str
    embeddings: list[float]

    def as_row(self) -> tuple[str, int, str, list[float]]:
        return (self.text, self.n_tokens, self.file_path, self.embeddings)
