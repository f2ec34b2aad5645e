"""Environment-driven settings for the YtoAI models.

Every settings class reads its fields from environment variables (and a
``.env`` file) under its own prefix.  Nested option fields use ``__``, e.g.
``YTOAI_CHAT_OPTIONS__MODEL=glm-4``.
"""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ytoai.constants import DEFAULT_BASE_URL, DEFAULT_CHAT_MODEL, DEFAULT_EMBEDDING_MODEL
from ytoai.document import MetadataMode
from ytoai.options import ChatOptions, EmbeddingOptions, ImageOptions

LOG_FORMAT = "%(asctime)s:%(name)s:%(levelname)s:%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _config(prefix: str) -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )


class ConnectionSettings(BaseSettings):
    """Connection details shared by all models."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    timeout: float = 600.0
    log_level: str = "INFO"

    model_config = _config("YTOAI_")


class _ModelSettings(BaseSettings):
    enabled: bool = True
    # Fall back to ConnectionSettings when unset.
    base_url: str | None = None
    api_key: str | None = None


class ChatSettings(_ModelSettings):
    options: ChatOptions = Field(
        default_factory=lambda: ChatOptions(model=DEFAULT_CHAT_MODEL, temperature=0.7)
    )

    model_config = _config("YTOAI_CHAT_")


class EmbeddingSettings(_ModelSettings):
    metadata_mode: MetadataMode = MetadataMode.EMBED
    options: EmbeddingOptions = Field(
        default_factory=lambda: EmbeddingOptions(model=DEFAULT_EMBEDDING_MODEL)
    )

    model_config = _config("YTOAI_EMBEDDING_")


class ImageSettings(_ModelSettings):
    options: ImageOptions = Field(default_factory=ImageOptions)

    model_config = _config("YTOAI_IMAGE_")


class RetrySettings(BaseSettings):
    max_attempts: int = 10
    initial_interval: float = 2.0
    multiplier: float = 5.0
    max_interval: float = 180.0
    on_client_errors: bool = False
    on_http_codes: list[int] = Field(default_factory=list)
    exclude_on_http_codes: list[int] = Field(default_factory=list)

    model_config = _config("YTOAI_RETRY_")


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging, at ``YTOAI_LOG_LEVEL`` unless *level* is given."""
    if level is None:
        level = ConnectionSettings().log_level
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, level=level)
