"""Build ready-to-use models from :mod:`ytoai.settings`.

Each factory reads its settings from the environment unless settings are
passed in, resolves the model's base URL and API key (falling back to the
shared connection settings) and returns ``None`` when the model is disabled.
"""

from __future__ import annotations

import logging

from openai import AsyncOpenAI

from ytoai.api import YtoAiApi
from ytoai.chat_model import YtoAiChatModel
from ytoai.constants import DEFAULT_CHAT_MODEL, DEFAULT_EMBEDDING_MODEL
from ytoai.embedding_model import YtoAiEmbeddingModel
from ytoai.errors import ConfigurationError
from ytoai.image_api import YtoAiImageApi
from ytoai.image_model import YtoAiImageModel
from ytoai.options import (
    ChatOptions,
    EmbeddingOptions,
    merge_chat_options,
    merge_embedding_options,
)
from ytoai.retry import RetryPolicy
from ytoai.settings import (
    ChatSettings,
    ConnectionSettings,
    EmbeddingSettings,
    ImageSettings,
    RetrySettings,
)
from ytoai.tools import FunctionCallback

logger = logging.getLogger(__name__)


def resolve_connection(
    connection: ConnectionSettings,
    base_url: str | None,
    api_key: str | None,
) -> tuple[str, str]:
    """Return the model's base URL and API key, or the shared ones."""
    resolved_base_url = base_url or connection.base_url
    resolved_api_key = api_key or connection.api_key
    if not resolved_base_url:
        raise ConfigurationError("YtoAI base URL must be set")
    if not resolved_api_key:
        raise ConfigurationError("YtoAI API key must be set")
    return resolved_base_url, resolved_api_key


def retry_policy(settings: RetrySettings | None = None) -> RetryPolicy:
    settings = settings or RetrySettings()
    return RetryPolicy(
        max_attempts=settings.max_attempts,
        initial_interval=settings.initial_interval,
        multiplier=settings.multiplier,
        max_interval=settings.max_interval,
        on_client_errors=settings.on_client_errors,
        on_http_codes=settings.on_http_codes,
        exclude_on_http_codes=settings.exclude_on_http_codes,
    )


def ytoai_chat_model(
    settings: ChatSettings | None = None,
    connection: ConnectionSettings | None = None,
    *,
    function_callbacks: list[FunctionCallback] | None = None,
    retry: RetryPolicy | None = None,
    client: AsyncOpenAI | None = None,
) -> YtoAiChatModel | None:
    settings = settings or ChatSettings()
    if not settings.enabled:
        logger.info("YtoAI chat model disabled")
        return None
    connection = connection or ConnectionSettings()
    base_url, api_key = resolve_connection(connection, settings.base_url, settings.api_key)

    api = YtoAiApi(api_key, base_url, timeout=connection.timeout, client=client)
    options = merge_chat_options(
        settings.options, ChatOptions(model=DEFAULT_CHAT_MODEL, temperature=0.7)
    )
    return YtoAiChatModel(
        api,
        options=options,
        function_callbacks=function_callbacks,
        retry_policy=retry or retry_policy(),
    )


def ytoai_embedding_model(
    settings: EmbeddingSettings | None = None,
    connection: ConnectionSettings | None = None,
    *,
    retry: RetryPolicy | None = None,
    client: AsyncOpenAI | None = None,
) -> YtoAiEmbeddingModel | None:
    settings = settings or EmbeddingSettings()
    if not settings.enabled:
        logger.info("YtoAI embedding model disabled")
        return None
    connection = connection or ConnectionSettings()
    base_url, api_key = resolve_connection(connection, settings.base_url, settings.api_key)

    api = YtoAiApi(api_key, base_url, timeout=connection.timeout, client=client)
    options = merge_embedding_options(
        settings.options, EmbeddingOptions(model=DEFAULT_EMBEDDING_MODEL)
    )
    return YtoAiEmbeddingModel(
        api,
        metadata_mode=settings.metadata_mode,
        options=options,
        retry_policy=retry or retry_policy(),
    )


def ytoai_image_model(
    settings: ImageSettings | None = None,
    connection: ConnectionSettings | None = None,
    *,
    retry: RetryPolicy | None = None,
    client: AsyncOpenAI | None = None,
) -> YtoAiImageModel | None:
    settings = settings or ImageSettings()
    if not settings.enabled:
        logger.info("YtoAI image model disabled")
        return None
    connection = connection or ConnectionSettings()
    base_url, api_key = resolve_connection(connection, settings.base_url, settings.api_key)

    image_api = YtoAiImageApi(api_key, base_url, timeout=connection.timeout, client=client)
    return YtoAiImageModel(
        image_api,
        options=settings.options,
        retry_policy=retry or retry_policy(),
    )
