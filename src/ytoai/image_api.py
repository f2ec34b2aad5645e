"""Low-level client for the YtoAI image generation endpoint."""

from __future__ import annotations

from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from ytoai.api import create_client, normalize_base_url, to_mapping
from ytoai.constants import DEFAULT_BASE_URL, DEFAULT_IMAGE_MODEL


class ImageRequest(BaseModel):
    prompt: str
    model: str = DEFAULT_IMAGE_MODEL
    # End-user id, 6 to 128 characters, used by the vendor for abuse tracking.
    user_id: str | None = None


class ImageData(BaseModel):
    url: str | None = None


class ImageResponse(BaseModel):
    created: int | None = None
    data: list[ImageData] = Field(default_factory=list)


class YtoAiImageApi:

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 600.0,
        client: AsyncOpenAI | None = None,
    ):
        self.base_url = normalize_base_url(base_url)
        if client is None:
            client = create_client(api_key, base_url, timeout)
        self.client = client

    async def create_image(self, request: ImageRequest) -> ImageResponse | None:
        if not request.prompt:
            raise ValueError("Prompt cannot be empty.")
        kwargs = {"prompt": request.prompt, "model": request.model}
        if request.user_id is not None:
            kwargs["extra_body"] = {"user_id": request.user_id}
        response = await self.client.images.generate(**kwargs)
        data = to_mapping(response)
        if data is None:
            return None
        return ImageResponse.model_validate(data)
