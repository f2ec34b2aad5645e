from enum import Enum

DEFAULT_BASE_URL = "https://yto.bigmodel.cn/api/paas"

API_VERSION_PATH = "/v4"

PROVIDER_NAME = "ytoai"


class ChatModelName(Enum):
    GLM_4 = "glm-4"
    GLM_4V = "glm-4v"
    GLM_4_AIR = "glm-4-air"
    GLM_4_AIRX = "glm-4-airx"
    GLM_4_FLASH = "glm-4-flash"
    GLM_3_TURBO = "glm-3-turbo"


class EmbeddingModelName(Enum):
    EMBEDDING_2 = "embedding-2"
    EMBEDDING_3 = "embedding-3"


class ImageModelName(Enum):
    COGVIEW_3 = "cogview-3"


DEFAULT_CHAT_MODEL = ChatModelName.GLM_4_AIR.value
DEFAULT_EMBEDDING_MODEL = EmbeddingModelName.EMBEDDING_2.value
DEFAULT_IMAGE_MODEL = ImageModelName.COGVIEW_3.value

# Vector sizes of the hosted embedding models when no dimensions are requested.
KNOWN_EMBEDDING_DIMENSIONS = {
    EmbeddingModelName.EMBEDDING_2.value: 1024,
    EmbeddingModelName.EMBEDDING_3.value: 2048,
}
