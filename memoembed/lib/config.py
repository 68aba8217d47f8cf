"""Configuration management via environment variables and pydantic-settings."""

from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    General library settings loaded from environment variables.

    Priority (highest to lowest):
    1. Constructor arguments
    2. Environment variables
    3. .env file
    4. Defaults defined here
    """

    verbose: bool = Field(
        default=False, alias="MEMOEMBED_VERBOSE", description="Enable debug logging"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }


class EmbeddingConfig(BaseSettings):
    """Configuration for the embedding model runtime.

    The dimension is fixed per deployment; every stored fingerprint
    must have been produced by the same model.
    """

    model_name: str = Field(
        default="sentence-transformers/all-mpnet-base-v2",
        alias="EMBEDDING_MODEL",
        description="sentence-transformers model name or local path",
    )

    dimension: int = Field(
        default=768,
        alias="EMBEDDING_DIMENSION",
        description="Number of components in every fingerprint",
    )

    device: str = Field(
        default="cpu",
        alias="EMBEDDING_DEVICE",
        description="Device for inference: cpu or cuda",
    )

    cache_dir: str | None = Field(
        default=None,
        alias="EMBEDDING_CACHE_DIR",
        description="Directory for model cache",
    )

    timeout_seconds: float = Field(
        default=30.0,
        alias="EMBEDDING_TIMEOUT_SECONDS",
        description="Upper bound for a single generate() call",
    )

    normalize: bool = Field(
        default=False,
        alias="EMBEDDING_NORMALIZE",
        description="Ask the model for unit-length embeddings",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("dimension")
    @classmethod
    def dimension_positive(cls, v: int) -> int:
        """Validate that the fingerprint dimension is positive."""
        if v <= 0:
            from memoembed.lib.exceptions import ConfigError

            raise ConfigError(f"EMBEDDING_DIMENSION must be positive, got {v}")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        """Validate that the generation timeout is positive."""
        if v <= 0:
            from memoembed.lib.exceptions import ConfigError

            raise ConfigError(f"EMBEDDING_TIMEOUT_SECONDS must be positive, got {v}")
        return v


class SearchConfig(BaseSettings):
    """Configuration for semantic search.

    The default threshold was chosen empirically for the embedding model
    in use; retune it together with EMBEDDING_MODEL.
    """

    similarity_threshold: float = Field(
        default=0.62,
        alias="SEARCH_SIMILARITY_THRESHOLD",
        ge=-1.0,
        le=1.0,
        description="Minimum cosine similarity for a note to be included",
    )

    debounce_ms: int = Field(
        default=300,
        alias="SEARCH_DEBOUNCE_MS",
        ge=0,
        description="Quiet interval before a typed query is searched",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def debounce_seconds(self) -> float:
        """Debounce interval in seconds."""
        return self.debounce_ms / 1000.0


class IngestConfig(BaseSettings):
    """Configuration for batch ingest and backfill."""

    demo_item_delay_seconds: float = Field(
        default=0.1,
        alias="DEMO_ITEM_DELAY_SECONDS",
        ge=0.0,
        description="Pause between items of a batch ingest",
    )

    demo_min_duration_ms: int = Field(
        default=30000,
        alias="DEMO_MIN_DURATION_MS",
        ge=0,
        description="Lower bound for generated demo note durations",
    )

    demo_max_duration_ms: int = Field(
        default=120000,
        alias="DEMO_MAX_DURATION_MS",
        ge=0,
        description="Upper bound (exclusive) for generated demo note durations",
    )

    backfill_batch_limit: int = Field(
        default=100,
        alias="BACKFILL_BATCH_LIMIT",
        ge=1,
        description="Maximum records enriched by one backfill sweep",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def duration_range_valid(self) -> "IngestConfig":
        """Validate that the demo duration range is not empty."""
        if self.demo_min_duration_ms >= self.demo_max_duration_ms:
            from memoembed.lib.exceptions import ConfigError

            raise ConfigError(
                "DEMO_MIN_DURATION_MS must be below DEMO_MAX_DURATION_MS "
                f"({self.demo_min_duration_ms} >= {self.demo_max_duration_ms})"
            )
        return self


class StoreConfig(BaseSettings):
    """Configuration for the SQLite record store."""

    database_path: str = Field(
        default="./memos.db",
        alias="MEMOEMBED_DATABASE_PATH",
        description="SQLite database file for notes",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def database_file(self) -> Path:
        """Get database location as Path."""
        return Path(self.database_path)


# Global config instances (lazy loaded)
_settings: Settings | None = None
_embedding_config: EmbeddingConfig | None = None
_search_config: SearchConfig | None = None
_ingest_config: IngestConfig | None = None
_store_config: StoreConfig | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def get_embedding_config() -> EmbeddingConfig:
    """Get the embedding configuration instance."""
    global _embedding_config
    if _embedding_config is None:
        _embedding_config = EmbeddingConfig()
    return _embedding_config


def get_search_config() -> SearchConfig:
    """Get the search configuration instance."""
    global _search_config
    if _search_config is None:
        _search_config = SearchConfig()
    return _search_config


def get_ingest_config() -> IngestConfig:
    """Get the ingest configuration instance."""
    global _ingest_config
    if _ingest_config is None:
        _ingest_config = IngestConfig()
    return _ingest_config


def get_store_config() -> StoreConfig:
    """Get the store configuration instance."""
    global _store_config
    if _store_config is None:
        _store_config = StoreConfig()
    return _store_config


def reset_all_configs() -> None:
    """Reset all configuration instances (useful for testing)."""
    global _settings, _embedding_config, _search_config, _ingest_config, _store_config
    _settings = None
    _embedding_config = None
    _search_config = None
    _ingest_config = None
    _store_config = None
