"""Tests for embedding provider infrastructure."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import APIConnectionError, APITimeoutError, RateLimitError
from pydantic import SecretStr

from memory_retriever.config import Settings
from memory_retriever.infrastructure.embeddings import (
    DEFAULT_FAKE_VECTOR,
    EmbeddingConfigurationError,
    EmbeddingError,
    EmbeddingRateLimitError,
    EmbeddingTimeoutError,
    FakeEmbeddingProvider,
    OpenAIEmbeddingProvider,
    create_embedding_provider,
)


class TestFakeEmbeddingProvider:
    """Tests for the deterministic fake provider."""

    async def test_embed_returns_default_vector(self):
        """Embed should return the default fixed vector."""
        provider = FakeEmbeddingProvider()

        result = await provider.embed("testing testing")

        assert result == list(DEFAULT_FAKE_VECTOR)

    async def test_embed_is_independent_of_text(self):
        """Different texts should map to the same vector."""
        provider = FakeEmbeddingProvider()

        assert await provider.embed("a") == await provider.embed("something else")

    async def test_embed_batch_preserves_length(self):
        """Embed batch should return one vector per text."""
        provider = FakeEmbeddingProvider([1.0, 0.0])

        result = await provider.embed_batch(["x", "y", "z"])

        assert result == [[1.0, 0.0]] * 3

    async def test_embed_batch_empty(self):
        """Embed batch with no texts should return an empty list."""
        assert await FakeEmbeddingProvider().embed_batch([]) == []

    async def test_returned_vectors_are_copies(self):
        """Mutating a returned vector should not change later results."""
        provider = FakeEmbeddingProvider()

        first = await provider.embed("a")
        first[0] = 99.0

        assert (await provider.embed("a"))[0] == pytest.approx(0.1)

    def test_dimensions_matches_vector(self):
        """Dimensions should equal the fixed vector's length."""
        assert FakeEmbeddingProvider().dimensions == 4
        assert FakeEmbeddingProvider([0.5] * 7).dimensions == 7

    def test_empty_vector_rejected(self):
        """An empty fixed vector should be rejected."""
        with pytest.raises(ValueError):
            FakeEmbeddingProvider([])


class TestOpenAIEmbeddingProviderInit:
    """Tests for OpenAIEmbeddingProvider initialization."""

    def test_init_with_valid_api_key(self):
        """Provider should initialize with valid API key."""
        provider = OpenAIEmbeddingProvider(api_key="test-key")

        assert provider._model == "text-embedding-3-small"
        assert provider._timeout == 30.0

    def test_init_with_empty_api_key_raises(self):
        """Provider should raise error with empty API key."""
        with pytest.raises(EmbeddingConfigurationError) as exc_info:
            OpenAIEmbeddingProvider(api_key="")

        assert "API key is required" in str(exc_info.value)
        assert exc_info.value.provider == "openai"

    def test_dimensions_for_large_model(self):
        """Should return known dimensions for text-embedding-3-large."""
        provider = OpenAIEmbeddingProvider(
            api_key="test-key", model="text-embedding-3-large"
        )

        assert provider.dimensions == 3072

    def test_dimensions_ignores_routing_prefix(self):
        """A routed model name should resolve to the same dimensions."""
        provider = OpenAIEmbeddingProvider(
            api_key="test-key", model="openai/text-embedding-3-large"
        )

        assert provider.dimensions == 3072


class TestOpenAIEmbeddingProviderEmbed:
    """Tests for OpenAIEmbeddingProvider.embed() method."""

    @pytest.fixture
    def provider(self):
        """Create a provider whose client is replaced per test."""
        return OpenAIEmbeddingProvider(api_key="test-key")

    @pytest.fixture
    def mock_response(self):
        """Create a mock API response."""
        response = MagicMock()
        item = MagicMock()
        item.embedding = [0.1] * 1536
        item.index = 0
        response.data = [item]
        return response

    async def test_embed_returns_vector(self, provider, mock_response):
        """Embed should return the embedding vector."""
        provider._client.embeddings.create = AsyncMock(return_value=mock_response)

        result = await provider.embed("Hello, world!")

        assert len(result) == 1536
        assert result[0] == 0.1

    async def test_embed_sends_single_input(self, provider, mock_response):
        """Embed should send the text as a one-element batch."""
        provider._client.embeddings.create = AsyncMock(return_value=mock_response)

        await provider.embed("Hello, world!")

        call_kwargs = provider._client.embeddings.create.call_args.kwargs
        assert call_kwargs["model"] == "text-embedding-3-small"
        assert call_kwargs["input"] == ["Hello, world!"]

    async def test_embed_timeout_raises_timeout_error(self, provider):
        """A timeout should surface as EmbeddingTimeoutError after one retry."""
        provider._client.embeddings.create = AsyncMock(
            side_effect=APITimeoutError(request=MagicMock())
        )

        with pytest.raises(EmbeddingTimeoutError) as exc_info:
            await provider.embed("Hello")

        assert "timed out" in str(exc_info.value)
        assert provider._client.embeddings.create.await_count == 2

    async def test_embed_rate_limit_raises_rate_limit_error(self, provider):
        """A rate limit should surface as EmbeddingRateLimitError without retry."""
        provider._client.embeddings.create = AsyncMock(
            side_effect=RateLimitError(
                message="Rate limited",
                response=MagicMock(),
                body=None,
            )
        )

        with pytest.raises(EmbeddingRateLimitError):
            await provider.embed("Hello")

        assert provider._client.embeddings.create.await_count == 1

    async def test_embed_connection_error_raises_embedding_error(self, provider):
        """A connection failure should surface as EmbeddingError."""
        provider._client.embeddings.create = AsyncMock(
            side_effect=APIConnectionError(request=MagicMock())
        )

        with pytest.raises(EmbeddingError) as exc_info:
            await provider.embed("Hello")

        assert "Unable to connect" in str(exc_info.value)

    async def test_embed_unexpected_error_is_wrapped(self, provider):
        """Unexpected SDK errors should be wrapped and chained."""
        boom = RuntimeError("boom")
        provider._client.embeddings.create = AsyncMock(side_effect=boom)

        with pytest.raises(EmbeddingError) as exc_info:
            await provider.embed("Hello")

        assert exc_info.value.__cause__ is boom


class TestOpenAIEmbeddingProviderEmbedBatch:
    """Tests for OpenAIEmbeddingProvider.embed_batch() method."""

    @pytest.fixture
    def provider(self):
        return OpenAIEmbeddingProvider(api_key="test-key")

    @pytest.fixture
    def shuffled_response(self):
        """Create a batch response whose items arrive out of order."""
        response = MagicMock()
        items = []
        for i in (2, 0, 1):
            item = MagicMock()
            item.embedding = [float(i + 1)] * 8
            item.index = i
            items.append(item)
        response.data = items
        return response

    async def test_embed_batch_orders_by_index(self, provider, shuffled_response):
        """Vectors should come back in input order."""
        provider._client.embeddings.create = AsyncMock(return_value=shuffled_response)

        result = await provider.embed_batch(["First", "Second", "Third"])

        assert [v[0] for v in result] == [1.0, 2.0, 3.0]

    async def test_embed_batch_with_empty_list_skips_request(self, provider):
        """Empty input should return [] without calling the API."""
        provider._client.embeddings.create = AsyncMock()

        assert await provider.embed_batch([]) == []
        provider._client.embeddings.create.assert_not_called()

    async def test_embed_batch_count_mismatch_raises(self, provider, shuffled_response):
        """A response with the wrong number of vectors should fail."""
        provider._client.embeddings.create = AsyncMock(return_value=shuffled_response)

        with pytest.raises(EmbeddingError, match="3 vectors for 2 texts"):
            await provider.embed_batch(["a", "b"])


class TestCreateEmbeddingProvider:
    """Tests for create_embedding_provider()."""

    def test_default_is_fake(self):
        """Default settings should build the fake provider."""
        provider = create_embedding_provider(Settings(_env_file=None))

        assert isinstance(provider, FakeEmbeddingProvider)

    def test_fake_uses_configured_vector(self):
        """The fake provider should use the configured vector."""
        settings = Settings(_env_file=None, fake_embedding_vector=[1.0, 2.0])

        provider = create_embedding_provider(settings)

        assert provider.dimensions == 2

    def test_openai_provider(self):
        """The openai name should build an OpenAI provider."""
        settings = Settings(
            _env_file=None,
            embedding_provider="openai",
            embedding_api_key=SecretStr("sk-test"),
            embedding_model="text-embedding-3-large",
        )

        provider = create_embedding_provider(settings)

        assert isinstance(provider, OpenAIEmbeddingProvider)
        assert provider.dimensions == 3072

    def test_openai_without_key_raises(self):
        """The OpenAI provider should require an API key."""
        settings = Settings(_env_file=None, embedding_provider="openai")

        with pytest.raises(EmbeddingConfigurationError):
            create_embedding_provider(settings)

    def test_unknown_provider_raises(self):
        """Unknown provider names should be rejected."""
        settings = Settings(_env_file=None, embedding_provider="word2vec")

        with pytest.raises(EmbeddingConfigurationError, match="word2vec"):
            create_embedding_provider(settings)
