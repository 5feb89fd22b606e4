"""
Captioning client for the OpenAI vision model.
Sends an image plus an instruction and returns a description and caption.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Optional

import structlog
from openai import APIConnectionError, APIError, APITimeoutError, AsyncOpenAI
from pydantic import BaseModel
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.config import settings
from app.core.exceptions import UpstreamUnavailable

logger = structlog.get_logger(__name__)

CAPTION_USER_TEXT = "Analyze this image and suggest a caption for Instagram"


class CaptionResponse(BaseModel):
    """Structured model output."""
    description: str
    suggested_caption: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    estimated_cost: float = 0.0


class CaptioningClient(ABC):
    """Abstract captioning oracle: image + instruction in, caption out."""

    @abstractmethod
    async def caption(
        self,
        image_base64: str,
        instruction: str,
        mime_type: str = "image/jpeg",
    ) -> CaptionResponse:
        """Describe the image and suggest a caption following the instruction."""
        pass


class OpenAIVisionClient(CaptioningClient):
    """OpenAI chat completions with image input and JSON output."""

    # Pricing per 1K tokens (as of 2024)
    PRICING = {
        "gpt-4o": {"input": 0.0025, "output": 0.01},
        "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
    }

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = settings.openai_vision_model

    def _estimate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Estimate cost based on token usage."""
        pricing = self.PRICING.get(self.model, self.PRICING["gpt-4o"])
        input_cost = (prompt_tokens / 1000) * pricing["input"]
        output_cost = (completion_tokens / 1000) * pricing["output"]
        return round(input_cost + output_cost, 6)

    @retry(
        retry=retry_if_exception_type((APIConnectionError, APITimeoutError, asyncio.TimeoutError)),
        stop=stop_after_attempt(settings.caption_max_retries),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _complete(self, image_base64: str, instruction: str, mime_type: str):
        return await asyncio.wait_for(
            self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": instruction},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": CAPTION_USER_TEXT},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{mime_type};base64,{image_base64}"},
                            },
                        ],
                    },
                ],
                temperature=settings.caption_temperature,
                max_tokens=settings.caption_max_tokens,
                response_format={"type": "json_object"},
            ),
            timeout=settings.caption_timeout,
        )

    async def caption(
        self,
        image_base64: str,
        instruction: str,
        mime_type: str = "image/jpeg",
    ) -> CaptionResponse:
        logger.debug("OpenAI caption request", model=self.model, instruction_chars=len(instruction))

        try:
            response = await self._complete(image_base64, instruction, mime_type)
        except (APIError, asyncio.TimeoutError) as e:
            logger.error("Captioning request failed", model=self.model, error=str(e))
            raise UpstreamUnavailable("Captioning model unavailable") from e

        try:
            payload = json.loads(response.choices[0].message.content or "")
            description = str(payload["description"])
            suggested = str(payload["suggestedCaption"])
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Captioning model returned malformed JSON", error=str(e))
            raise UpstreamUnavailable("Captioning model returned an unreadable response") from e

        usage = response.usage
        prompt_tokens = usage.prompt_tokens if usage else 0
        completion_tokens = usage.completion_tokens if usage else 0

        return CaptionResponse(
            description=description,
            suggested_caption=suggested,
            model=self.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            estimated_cost=self._estimate_cost(prompt_tokens, completion_tokens),
        )


@lru_cache
def get_captioning_client() -> CaptioningClient:
    """Shared captioning client."""
    return OpenAIVisionClient()
