"""Token-bounded text chunking.

Long documents are cut into *atomic fragments* (sentences, falling back to
lines, falling back to words) which are then greedily packed into chunks of
at most ``max_tokens`` tokens.

Escalation rule
---------------
A sentence over the budget is first re-split on newlines. If *any* of the
resulting lines is still over the budget, the line split is thrown away and
the **whole sentence** is split into words instead, even the lines that
would have fit.

The budget is a target rather than a ceiling: a single word (or line) that
is longer than ``max_tokens`` on its own becomes a chunk of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from doc_embeddings.ingestion.models import TextChunk

if TYPE_CHECKING:
    from doc_embeddings.ingestion.models import TokenizedDocument
    from doc_embeddings.ingestion.tokenizer import Tokenizer

logger = logging.getLogger(__name__)

MAX_TOKENS = 500
MIN_CHUNK_CHARS = 100

SENTENCE_SEPARATOR = ". "
LINE_SEPARATOR = "\n"
WORD_SEPARATOR = " "


@dataclass(frozen=True)
class Fragment:
    """Smallest unit the packer works on."""

    text: str
    n_tokens: int


def _split_keeping_separator(text: str, separator: str, tokenizer: Tokenizer) -> list[Fragment]:
    """Split *text* on *separator*, re-attaching it to every piece but the last.

    Joining the returned texts gives back *text* exactly. Token counts are
    taken on the bare piece, without the separator.
    """
    parts = text.split(separator)
    last = len(parts) - 1
    fragments: list[Fragment] = []
    for idx, part in enumerate(parts):
        piece = part if idx == last else part + separator
        if not piece:
            continue
        fragments.append(Fragment(piece, tokenizer.count(part)))
    return fragments


def atomic_fragments(
    text: str,
    tokenizer: Tokenizer,
    max_tokens: int = MAX_TOKENS,
) -> list[Fragment]:
    """Run the sentence → line → word split and return fragments in order."""
    fragments: list[Fragment] = []
    for sentence in _split_keeping_separator(text, SENTENCE_SEPARATOR, tokenizer):
        if sentence.n_tokens <= max_tokens:
            fragments.append(sentence)
            continue

        lines = _split_keeping_separator(sentence.text, LINE_SEPARATOR, tokenizer)
        if any(line.n_tokens > max_tokens for line in lines):
            fragments.extend(
                _split_keeping_separator(sentence.text, WORD_SEPARATOR, tokenizer)
            )
        else:
            fragments.extend(lines)
    return fragments


def pack_fragments(
    fragments: Iterable[Fragment],
    filepath: str,
    max_tokens: int = MAX_TOKENS,
    min_chunk_chars: int = MIN_CHUNK_CHARS,
) -> list[TextChunk]:
    """Greedily pack *fragments* into chunks of at most *max_tokens*.

    The fragment that overflows the running total opens the next chunk. The
    trailing chunk is kept only when it has at least *min_chunk_chars*
    characters.
    """
    chunks: list[TextChunk] = []
    buffer: list[str] = []
    tokens_so_far = 0

    for fragment in fragments:
        if tokens_so_far + fragment.n_tokens > max_tokens and buffer:
            chunks.append(TextChunk(filepath=filepath, text="".join(buffer)))
            buffer = []
            tokens_so_far = 0
        buffer.append(fragment.text)
        tokens_so_far += fragment.n_tokens

    if buffer:
        tail = "".join(buffer)
        if len(tail) >= min_chunk_chars:
            chunks.append(TextChunk(filepath=filepath, text=tail))
        else:
            logger.debug(
                "Dropped %d-char trailing fragment of %s: %r", len(tail), filepath, tail
            )
    return chunks


def split_document(
    document: TokenizedDocument,
    tokenizer: Tokenizer,
    max_tokens: int = MAX_TOKENS,
    min_chunk_chars: int = MIN_CHUNK_CHARS,
) -> list[TextChunk]:
    """Split one tokenized document into token-bounded chunks.

    Parameters
    ----------
    document:
        Source text plus its token ids (only their count is used here).
    tokenizer:
        Used to count tokens of every candidate fragment.
    max_tokens:
        Per-chunk token budget.
    min_chunk_chars:
        Minimum length of the trailing chunk of a split document.

    Returns
    -------
    list[TextChunk]
        Chunks in document order. A document within budget yields itself
        verbatim; an empty document yields nothing.
    """
    if not document.text:
        return []
    if document.token_count <= max_tokens:
        return [TextChunk(filepath=document.filepath, text=document.text)]

    fragments = atomic_fragments(document.text, tokenizer, max_tokens)
    chunks = pack_fragments(fragments, document.filepath, max_tokens, min_chunk_chars)
    logger.debug(
        "%s: %d tokens -> %d fragments -> %d chunks",
        document.filepath, document.token_count, len(fragments), len(chunks),
    )
    return chunks


def split_documents(
    documents: list[TokenizedDocument],
    tokenizer: Tokenizer,
    max_tokens: int = MAX_TOKENS,
    min_chunk_chars: int = MIN_CHUNK_CHARS,
) -> list[TextChunk]:
    """Split every document, keeping document order then chunk order."""
    chunks: list[TextChunk] = []
    for document in documents:
        chunks.extend(split_document(document, tokenizer, max_tokens, min_chunk_chars))
    logger.info("Produced %d chunks from %d documents", len(chunks), len(documents))
    return chunks
