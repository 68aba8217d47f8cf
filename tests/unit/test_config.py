"""Unit tests for configuration management."""

import logging

import pytest

from memoembed.lib.config import (
    EmbeddingConfig,
    IngestConfig,
    SearchConfig,
    Settings,
    StoreConfig,
    get_embedding_config,
    get_search_config,
    reset_all_configs,
)
from memoembed.lib.exceptions import ConfigError
from memoembed.lib.logging_setup import setup_logging


class TestEmbeddingConfig:
    """Tests for EmbeddingConfig."""

    def test_default_values(self, monkeypatch):
        """Test that embedding defaults match the bundled model."""
        for name in ("EMBEDDING_MODEL", "EMBEDDING_DIMENSION", "EMBEDDING_DEVICE", "EMBEDDING_TIMEOUT_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        config = EmbeddingConfig()

        assert config.model_name == "sentence-transformers/all-mpnet-base-v2"
        assert config.dimension == 768
        assert config.device == "cpu"
        assert config.timeout_seconds == 30.0
        assert config.normalize is False

    def test_env_var_override(self, monkeypatch):
        """Test that environment variables override embedding defaults."""
        monkeypatch.setenv("EMBEDDING_MODEL", "local/minilm")
        monkeypatch.setenv("EMBEDDING_DIMENSION", "384")
        monkeypatch.setenv("EMBEDDING_DEVICE", "cuda")

        config = EmbeddingConfig()

        assert config.model_name == "local/minilm"
        assert config.dimension == 384
        assert config.device == "cuda"

    def test_non_positive_dimension_rejected(self):
        """Test that a zero dimension raises ConfigError."""
        with pytest.raises(ConfigError):
            EmbeddingConfig(dimension=0)

    def test_non_positive_timeout_rejected(self):
        """Test that a zero timeout raises ConfigError."""
        with pytest.raises(ConfigError):
            EmbeddingConfig(timeout_seconds=0)


class TestSearchConfig:
    """Tests for SearchConfig."""

    def test_default_values(self, monkeypatch):
        """Test that search defaults to threshold 0.62 and 300ms debounce."""
        monkeypatch.delenv("SEARCH_SIMILARITY_THRESHOLD", raising=False)
        monkeypatch.delenv("SEARCH_DEBOUNCE_MS", raising=False)

        config = SearchConfig()

        assert config.similarity_threshold == 0.62
        assert config.debounce_ms == 300
        assert config.debounce_seconds == 0.3

    def test_env_var_override(self, monkeypatch):
        """Test that environment variables override search defaults."""
        monkeypatch.setenv("SEARCH_SIMILARITY_THRESHOLD", "0.8")
        monkeypatch.setenv("SEARCH_DEBOUNCE_MS", "150")

        config = SearchConfig()

        assert config.similarity_threshold == 0.8
        assert config.debounce_seconds == 0.15

    def test_threshold_out_of_range_rejected(self):
        """Test that a threshold outside [-1, 1] is rejected."""
        with pytest.raises(ValueError):
            SearchConfig(similarity_threshold=1.5)


class TestIngestConfig:
    """Tests for IngestConfig."""

    def test_default_values(self):
        """Test that ingest defaults describe the demo catalog pacing."""
        config = IngestConfig()

        assert config.demo_item_delay_seconds == 0.1
        assert config.demo_min_duration_ms == 30000
        assert config.demo_max_duration_ms == 120000
        assert config.backfill_batch_limit == 100

    def test_empty_duration_range_rejected(self):
        """Test that an empty synthetic duration range raises ConfigError."""
        with pytest.raises(ConfigError):
            IngestConfig(demo_min_duration_ms=5000, demo_max_duration_ms=5000)


class TestStoreConfig:
    """Tests for StoreConfig."""

    def test_database_file(self, monkeypatch, tmp_path):
        """Test that the database path comes from the environment."""
        monkeypatch.setenv("MEMOEMBED_DATABASE_PATH", str(tmp_path / "notes.db"))

        assert StoreConfig().database_file == tmp_path / "notes.db"


class TestConfigSingletons:
    """Tests for the lazily created config instances."""

    def test_instances_are_cached(self):
        """Test that config accessors return the same instance."""
        assert get_embedding_config() is get_embedding_config()

    def test_reset_all_configs(self, monkeypatch):
        """Test that reset makes accessors reread the environment."""
        first = get_search_config()
        monkeypatch.setenv("SEARCH_DEBOUNCE_MS", "10")
        assert get_search_config().debounce_ms == first.debounce_ms

        reset_all_configs()

        assert get_search_config().debounce_ms == 10


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_verbose_from_settings(self, monkeypatch):
        """Test that MEMOEMBED_VERBOSE enables debug logging."""
        monkeypatch.setenv("MEMOEMBED_VERBOSE", "true")
        assert Settings().verbose is True

        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        setup_logging()

        assert calls[0]["level"] == logging.DEBUG
        assert calls[0]["format"] == "[%(asctime)s] %(levelname)s: %(message)s"

    def test_explicit_quiet(self, monkeypatch):
        """Test that an explicit verbose=False wins over the environment."""
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        setup_logging(verbose=False)

        assert calls[0]["level"] == logging.INFO
