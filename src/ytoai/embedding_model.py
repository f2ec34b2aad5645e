from __future__ import annotations

import logging

from ytoai.api import YtoAiApi
from ytoai.constants import DEFAULT_EMBEDDING_MODEL, KNOWN_EMBEDDING_DIMENSIONS
from ytoai.document import Document, MetadataMode
from ytoai.instrumentation import embedding_span, record_error, record_usage
from ytoai.model import (
    Embedding,
    EmbeddingModel,
    EmbeddingRequest,
    EmbeddingResponse,
    EmbeddingResponseMetadata,
)
from ytoai.options import EmbeddingOptions, merge_embedding_options
from ytoai.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from ytoai.schema import EmbeddingRequest as ApiEmbeddingRequest
from ytoai.schema import Usage as ApiUsage
from ytoai.usage import YtoAiUsage

logger = logging.getLogger(__name__)


class YtoAiEmbeddingModel(EmbeddingModel):
    """Text embeddings backed by the YtoAI embedding API.

    The endpoint takes a single input per request, so a request with several
    instructions results in one API call per instruction.

    Args:
        api: Low-level API client.
        metadata_mode: Which document metadata is embedded with the content.
        options: Default options, overridden by the request's options.
        retry_policy: Retry middleware applied to every API call.
    """

    def __init__(
        self,
        api: YtoAiApi,
        metadata_mode: MetadataMode = MetadataMode.EMBED,
        options: EmbeddingOptions | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        if api is None:
            raise ValueError("YtoAiApi must not be None")
        if metadata_mode is None:
            raise ValueError("Metadata mode must not be None")
        self.api = api
        self.metadata_mode = metadata_mode
        self.default_options = options or EmbeddingOptions(model=DEFAULT_EMBEDDING_MODEL)
        self.retry_policy = retry_policy or DEFAULT_RETRY_POLICY
        self._dimensions: int | None = None

    async def embed_document(self, document: Document) -> list[float]:
        return await self.embed(document.formatted_content(self.metadata_mode))

    async def call(self, request: EmbeddingRequest) -> EmbeddingResponse:
        if not request.instructions:
            raise ValueError("At least one text is required!")
        if len(request.instructions) > 1:
            logger.warning(
                "The embedding API does not support batch embedding. "
                f"Will make {len(request.instructions)} API calls."
            )

        options = merge_embedding_options(request.options, self.default_options)
        total = ApiUsage()
        embeddings = []

        async with embedding_span(options.model, dimensions=options.dimensions) as span:
            try:
                for index, text in enumerate(request.instructions):
                    api_request = ApiEmbeddingRequest(
                        input=text, model=options.model, dimensions=options.dimensions,
                    )
                    result = await self.retry_policy.call(self.api.embeddings, api_request)
                    if result is None or not result.data:
                        logger.warning(f"No embedding returned for text at index {index}")
                        embeddings.append(Embedding(output=[], index=index))
                        continue
                    embeddings.append(Embedding(output=result.data[0].embedding, index=index))
                    if result.usage is not None:
                        total.prompt_tokens += result.usage.prompt_tokens
                        total.completion_tokens += result.usage.completion_tokens
                        total.total_tokens += result.usage.total_tokens
            except Exception as e:
                record_error(span, e)
                raise

            usage = YtoAiUsage(total)
            model = (request.options.model if request.options else None) or "unknown"
            record_usage(span, usage, model)

        return EmbeddingResponse(
            embeddings=embeddings,
            metadata=EmbeddingResponseMetadata(model=model, usage=usage),
        )

    async def dimensions(self) -> int:
        if self.default_options.dimensions is not None:
            return self.default_options.dimensions
        known = KNOWN_EMBEDDING_DIMENSIONS.get(self.default_options.model or "")
        if known is not None:
            return known
        if self._dimensions is None:
            self._dimensions = await super().dimensions()
        return self._dimensions
