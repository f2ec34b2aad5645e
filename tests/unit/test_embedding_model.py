import pytest

from tests.conftest import embedding_dict
from ytoai.document import Document, MetadataMode
from ytoai.embedding_model import YtoAiEmbeddingModel
from ytoai.model import EmbeddingRequest
from ytoai.options import EmbeddingOptions


@pytest.fixture
def embedding_model(api, short_retry):
    return YtoAiEmbeddingModel(api, retry_policy=short_retry)


class TestCall:
    @pytest.mark.asyncio
    async def test_single_text(self, embedding_model, fake_client):
        fake_client.embeddings.create.return_value = embedding_dict([0.1, 0.2, 0.3])

        response = await embedding_model.call(EmbeddingRequest(instructions=["Hello"]))

        assert response.result.output == [0.1, 0.2, 0.3]
        assert response.result.index == 0
        assert fake_client.embeddings.create.call_args.kwargs["model"] == "embedding-2"

    @pytest.mark.asyncio
    async def test_one_request_per_text(self, embedding_model, fake_client, caplog):
        fake_client.embeddings.create.side_effect = [
            embedding_dict([1.0]),
            embedding_dict([2.0]),
        ]

        response = await embedding_model.call(EmbeddingRequest(instructions=["a", "b"]))

        assert [e.output for e in response.embeddings] == [[1.0], [2.0]]
        assert [e.index for e in response.embeddings] == [0, 1]
        assert fake_client.embeddings.create.await_count == 2
        assert "does not support batch embedding" in caplog.text

    @pytest.mark.asyncio
    async def test_usage_summed_over_calls(self, embedding_model, fake_client):
        fake_client.embeddings.create.side_effect = [
            embedding_dict([1.0]),
            embedding_dict([2.0]),
        ]

        response = await embedding_model.call(EmbeddingRequest(instructions=["a", "b"]))

        assert response.metadata.usage.prompt_tokens == 6
        assert response.metadata.usage.total_tokens == 6

    @pytest.mark.asyncio
    async def test_empty_data_gives_empty_vector(self, embedding_model, fake_client, caplog):
        fake_client.embeddings.create.side_effect = [
            {"object": "list", "data": []},
            None,
        ]

        response = await embedding_model.call(EmbeddingRequest(instructions=["a", "b"]))

        assert [e.output for e in response.embeddings] == [[], []]
        assert "No embedding returned" in caplog.text

    @pytest.mark.asyncio
    async def test_no_text_rejected(self, embedding_model):
        with pytest.raises(ValueError, match="At least one text"):
            await embedding_model.call(EmbeddingRequest(instructions=[]))

    @pytest.mark.asyncio
    async def test_runtime_options_override_defaults(self, embedding_model, fake_client):
        fake_client.embeddings.create.return_value = embedding_dict([1.0])
        options = EmbeddingOptions(model="embedding-3", dimensions=256)

        response = await embedding_model.call(
            EmbeddingRequest(instructions=["a"], options=options)
        )

        kwargs = fake_client.embeddings.create.call_args.kwargs
        assert kwargs["model"] == "embedding-3"
        assert kwargs["dimensions"] == 256
        assert response.metadata.model == "embedding-3"

    @pytest.mark.asyncio
    async def test_metadata_model_unknown_without_runtime_model(
        self, embedding_model, fake_client
    ):
        fake_client.embeddings.create.return_value = embedding_dict([1.0])

        response = await embedding_model.call(EmbeddingRequest(instructions=["a"]))

        assert response.metadata.model == "unknown"


class TestConvenience:
    @pytest.mark.asyncio
    async def test_embed(self, embedding_model, fake_client):
        fake_client.embeddings.create.return_value = embedding_dict([0.5])
        assert await embedding_model.embed("text") == [0.5]

    @pytest.mark.asyncio
    async def test_embed_all(self, embedding_model, fake_client):
        fake_client.embeddings.create.side_effect = [
            embedding_dict([1.0]),
            embedding_dict([2.0]),
        ]
        assert await embedding_model.embed_all(["a", "b"]) == [[1.0], [2.0]]

    @pytest.mark.asyncio
    async def test_embed_document_uses_metadata_mode(self, api, short_retry, fake_client):
        model = YtoAiEmbeddingModel(api, metadata_mode=MetadataMode.EMBED, retry_policy=short_retry)
        fake_client.embeddings.create.return_value = embedding_dict([1.0])
        document = Document(
            content="Body",
            metadata={"title": "Doc", "secret": "x"},
            excluded_embed_metadata_keys=["secret"],
        )

        await model.embed_document(document)

        assert fake_client.embeddings.create.call_args.kwargs["input"] == "title: Doc\n\nBody"


class TestDimensions:
    @pytest.mark.asyncio
    async def test_configured_dimensions(self, api, fake_client):
        model = YtoAiEmbeddingModel(api, options=EmbeddingOptions(model="embedding-3", dimensions=512))
        assert await model.dimensions() == 512
        fake_client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_known_model_dimensions(self, embedding_model, fake_client):
        assert await embedding_model.dimensions() == 1024
        fake_client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_model_probed_once(self, api, short_retry, fake_client):
        model = YtoAiEmbeddingModel(
            api, options=EmbeddingOptions(model="custom"), retry_policy=short_retry
        )
        fake_client.embeddings.create.return_value = embedding_dict([0.0] * 8)

        assert await model.dimensions() == 8
        assert await model.dimensions() == 8
        fake_client.embeddings.create.assert_awaited_once()
        assert fake_client.embeddings.create.call_args.kwargs["input"] == "Test String"
