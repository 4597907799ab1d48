"""Shared configuration loaded from environment / ``.env`` file."""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from doc_embeddings.errors import ConfigurationError

_REQUIRED_ENV = {
    "database_url": "DATABASE_URL",
    "openai_api_key": "OPENAI_API_KEY",
}


class PathSettings(BaseSettings):
    """Directories and log level; needs no credentials.

    Enough for the commands that never touch the database or the embedding API.
    """

    data_dir: Path = Path("data")
    cache_dir: Path = Path("processed")
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class Settings(PathSettings):
    """Ingestion settings, populated from env vars or .env file."""

    # Credentials, both mandatory
    database_url: str = Field(description="PostgreSQL connection string (pgvector enabled)")
    openai_api_key: str = Field(
        validation_alias=AliasChoices("openai_api_key", "openai_key"),
        description="Embedding API key. ``OPENAI_KEY`` is accepted for older .env files.",
    )

    # Embedding
    embedding_model: str = "text-embedding-ada-002"
    embed_concurrency: int = Field(
        default=1,
        ge=1,
        description=(
            "Maximum in-flight embedding calls; 1 keeps the stage sequential"
        ),
    )

    # Tokenizer / chunking
    tokenizer_encoding: str = "cl100k_base"
    max_tokens: int = Field(default=500, gt=0)
    min_chunk_chars: int = Field(default=100, ge=0)

    # Storage
    vector_size: int = Field(default=1536, gt=0)
    table_name: str = Field(default="documents", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")

    @field_validator("database_url", "openai_api_key")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


def load_settings(**overrides) -> Settings:
    """Build :class:`Settings`, turning validation failures into a fatal error.

    Keyword *overrides* take precedence over the environment (handy for the
    CLI flags and for tests).
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        problems = []
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else "?"
            name = _REQUIRED_ENV.get(field, field.upper())
            problems.append(f"{name}: {err['msg']}")
        raise ConfigurationError(
            "Invalid or missing configuration: " + "; ".join(problems)
        ) from exc
