from ytoai.api import YtoAiApi
from ytoai.chat_model import YtoAiChatModel
from ytoai.embedding_model import YtoAiEmbeddingModel
from ytoai.image_api import YtoAiImageApi
from ytoai.image_model import YtoAiImageModel
from ytoai.instrumentation import instrument, uninstrument
from ytoai.options import ChatOptions, EmbeddingOptions, ImageOptions
from ytoai.retry import RetryPolicy

__all__ = [
    "ChatOptions",
    "EmbeddingOptions",
    "ImageOptions",
    "RetryPolicy",
    "YtoAiApi",
    "YtoAiChatModel",
    "YtoAiEmbeddingModel",
    "YtoAiImageApi",
    "YtoAiImageModel",
    "instrument",
    "uninstrument",
]
