"""Tests for synapse_memory exception hierarchy."""

import pytest

from synapse_memory.exceptions import (
    BackendError,
    BackendUnavailableError,
    CollectionNotFoundError,
    ConfigurationError,
    ConfirmationRequiredError,
    EmbeddingError,
    InvalidInputError,
    PayloadDecodeError,
    ProviderError,
    SynapseError,
)


class TestSynapseError:
    """Tests for base SynapseError."""

    def test_basic_error(self):
        err = SynapseError("Something went wrong")
        assert str(err) == "Something went wrong"
        assert err.cause is None

    def test_error_with_cause(self):
        cause = ValueError("inner error")
        err = SynapseError("Outer error", cause=cause)
        assert "Outer error" in str(err)
        assert "inner error" in str(err)
        assert err.cause is cause

    def test_all_errors_inherit_from_base(self):
        exceptions = [
            ConfigurationError("test"),
            InvalidInputError("test"),
            ConfirmationRequiredError("auto_heal"),
            PayloadDecodeError("id", "test"),
            ProviderError("test"),
            BackendError("test"),
            BackendUnavailableError("test"),
            CollectionNotFoundError("thoughts"),
            EmbeddingError("test"),
        ]
        for exc in exceptions:
            assert isinstance(exc, SynapseError), f"{type(exc).__name__} should inherit from SynapseError"


class TestCallerErrors:
    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            raise InvalidInputError("bad id")

    def test_confirmation_required_names_operation(self):
        err = ConfirmationRequiredError("clear_memory_layer")
        assert err.operation == "clear_memory_layer"
        assert "confirmed=True" in str(err)

    def test_payload_decode_error_keeps_point_id(self):
        err = PayloadDecodeError("abc", "missing content")
        assert err.point_id == "abc"
        assert "abc" in str(err)


class TestProviderErrors:
    def test_backend_errors_are_provider_errors(self):
        assert isinstance(BackendUnavailableError("down"), BackendError)
        assert isinstance(CollectionNotFoundError("x"), BackendError)
        assert isinstance(BackendError("x"), ProviderError)
        assert isinstance(EmbeddingError("x"), ProviderError)

    def test_collection_not_found_names_collection(self):
        err = CollectionNotFoundError("synapse_neuro_thoughts")
        assert err.collection == "synapse_neuro_thoughts"
        assert "synapse_neuro_thoughts" in str(err)

    def test_backend_error_collection(self):
        err = BackendUnavailableError("timeout", "thoughts", TimeoutError("slow"))
        assert err.collection == "thoughts"
        assert "slow" in str(err)
