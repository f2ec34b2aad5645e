from __future__ import annotations

import logging

from ytoai.constants import DEFAULT_IMAGE_MODEL
from ytoai.image_api import ImageRequest, YtoAiImageApi
from ytoai.instrumentation import image_span, record_error
from ytoai.model import (
    Image,
    ImageGeneration,
    ImageModel,
    ImagePrompt,
    ImageResponse,
)
from ytoai.options import ImageOptions, merge_image_options
from ytoai.retry import DEFAULT_RETRY_POLICY, RetryPolicy

logger = logging.getLogger(__name__)


class YtoAiImageModel(ImageModel):
    """Image generation backed by the YtoAI image API.

    Only the text of the first prompt instruction is sent; the endpoint
    accepts a single prompt per request.
    """

    def __init__(
        self,
        image_api: YtoAiImageApi,
        options: ImageOptions | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        if image_api is None:
            raise ValueError("YtoAiImageApi must not be None")
        self.image_api = image_api
        self.default_options = options or ImageOptions()
        self.retry_policy = retry_policy or DEFAULT_RETRY_POLICY

    async def call(self, prompt: ImagePrompt) -> ImageResponse:
        return await self.retry_policy.call(self._call, prompt)

    def create_request(self, prompt: ImagePrompt) -> ImageRequest:
        if not prompt.instructions:
            raise ValueError("Image prompt must have at least one instruction")
        options = merge_image_options(prompt.options, self.default_options)
        return ImageRequest(
            prompt=prompt.instructions[0].text,
            model=options.model or DEFAULT_IMAGE_MODEL,
            user_id=options.user,
        )

    async def _call(self, prompt: ImagePrompt) -> ImageResponse:
        request = self.create_request(prompt)
        async with image_span(request.model) as span:
            try:
                response = await self.image_api.create_image(request)
            except Exception as e:
                record_error(span, e)
                raise

        if response is None:
            logger.warning(f"No image response returned for request: {request}")
            return ImageResponse()

        return ImageResponse(generations=[
            ImageGeneration(output=Image(url=entry.url)) for entry in response.data
        ])
