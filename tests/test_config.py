"""Tests for SynapseConfig."""

import os
from unittest.mock import patch

import pytest

from synapse_memory.config import (
    EmbeddingConfig,
    InferenceConfig,
    SynapseConfig,
    VectorStoreConfig,
)
from synapse_memory.exceptions import ConfigurationError


class TestSynapseConfig:
    """Tests for SynapseConfig."""

    def test_default_config(self):
        """Test creating default configuration."""
        config = SynapseConfig()

        assert config.vector_store.provider == "qdrant"
        assert config.vector_store.url == "http://localhost:6333"
        assert config.vector_store.vector_size == 768
        assert config.vector_store.thoughts_collection == "synapse_neuro_thoughts"
        assert config.embedding.provider == "ollama"
        assert config.embedding.model == "nomic-embed-text"
        assert config.inference.recent_window == 10
        assert config.inference.similarity_threshold == 0.7
        assert config.inference.batch_size == 100

    def test_default_is_no_arg_constructor(self):
        assert SynapseConfig.default() == SynapseConfig()

    def test_custom_config(self):
        """Test creating custom configuration."""
        config = SynapseConfig(
            vector_store=VectorStoreConfig(url="http://qdrant:6333", vector_size=1536),
            embedding=EmbeddingConfig(dimensions=1536),
            inference=InferenceConfig(similarity_threshold=0.85),
        )

        assert config.vector_store.url == "http://qdrant:6333"
        assert config.vector_store.vector_size == 1536
        assert config.inference.similarity_threshold == 0.85
        config.validate()

    def test_from_env_defaults(self):
        """Test loading from environment with no vars set."""
        with patch.dict(os.environ, {}, clear=True):
            config = SynapseConfig.from_env()

        assert config.vector_store.provider == "qdrant"
        assert config.vector_store.api_key is None
        assert config.embedding.dimensions == 768

    def test_from_env_with_vars(self):
        """Test loading from environment variables."""
        env = {
            "SYNAPSE_VECTOR_PROVIDER": "in_memory",
            "SYNAPSE_QDRANT_URL": "http://qdrant:6333",
            "SYNAPSE_VECTOR_SIZE": "384",
            "SYNAPSE_THOUGHTS_COLLECTION": "agent_thoughts",
            "SYNAPSE_EMBEDDING_PROVIDER": "none",
            "SYNAPSE_SIMILARITY_THRESHOLD": "0.8",
            "SYNAPSE_RECENT_WINDOW": "5",
        }
        with patch.dict(os.environ, env, clear=True):
            config = SynapseConfig.from_env()

        assert config.vector_store.provider == "in_memory"
        assert config.vector_store.url == "http://qdrant:6333"
        assert config.vector_store.vector_size == 384
        assert config.vector_store.thoughts_collection == "agent_thoughts"
        # Embedding dimension follows the vector size unless set
        assert config.embedding.dimensions == 384
        assert config.embedding.provider == "none"
        assert config.inference.similarity_threshold == 0.8
        assert config.inference.recent_window == 5

    def test_api_key_fallback(self):
        with patch.dict(os.environ, {"QDRANT_API_KEY": "secret"}, clear=True):
            config = SynapseConfig.from_env()
        assert config.vector_store.api_key == "secret"

    def test_invalid_number_raises_configuration_error(self):
        with patch.dict(os.environ, {"SYNAPSE_VECTOR_SIZE": "big"}, clear=True):
            with pytest.raises(ConfigurationError):
                SynapseConfig.from_env()


class TestValidate:
    """Tests for cross-field validation."""

    def test_dimension_mismatch(self):
        config = SynapseConfig(
            vector_store=VectorStoreConfig(vector_size=768),
            embedding=EmbeddingConfig(dimensions=1536),
        )
        with pytest.raises(ConfigurationError, match="1536"):
            config.validate()

    def test_dimension_ignored_without_embedder(self):
        config = SynapseConfig(
            vector_store=VectorStoreConfig(vector_size=768),
            embedding=EmbeddingConfig(provider="none", dimensions=1536),
        )
        config.validate()

    def test_threshold_range(self):
        config = SynapseConfig(inference=InferenceConfig(similarity_threshold=1.5))
        with pytest.raises(ConfigurationError):
            config.validate()

    def test_batch_size_positive(self):
        config = SynapseConfig(inference=InferenceConfig(batch_size=0))
        with pytest.raises(ConfigurationError):
            config.validate()
