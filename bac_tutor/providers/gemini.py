"""
Gemini (Google) provider adapter
"""
import logging
from typing import Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from bac_tutor.config import get_settings
from bac_tutor.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "Sorry, I could not generate a response."

GENERATION_CONFIG = types.GenerateContentConfig(
    temperature=0.7,
    top_k=40,
    top_p=0.95,
    max_output_tokens=800,
    safety_settings=[
        types.SafetySetting(
            category=types.HarmCategory.HARM_CATEGORY_HARASSMENT,
            threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE
        ),
        types.SafetySetting(
            category=types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
            threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE
        ),
    ]
)


class GeminiProvider:
    """Gemini provider (Google)"""

    def __init__(self, api_key: str, model: str, client: Optional[genai.Client] = None):
        self.client = client or genai.Client(api_key=api_key)
        self.model_name = model
        logger.info(f"Gemini provider: model={model}")

    async def generate(self, prompt: str) -> str:
        """Single completion call with the fixed tutoring sampling and safety settings"""
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=GENERATION_CONFIG
            )
        except genai_errors.APIError as e:
            logger.error(f"Gemini API error: {e.code} {e.message}")
            raise UpstreamError(f"Gemini API error: {e.code} {e.message}") from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {e}")
            raise UpstreamError(f"Gemini request failed: {e}") from e

        text = response.text
        if not text:
            logger.warning("Gemini returned no candidate text")
            return FALLBACK_ANSWER
        return text


_provider: Optional[GeminiProvider] = None


def get_gemini_provider() -> GeminiProvider:
    """Get or create singleton provider; the API key is checked per call"""
    global _provider
    settings = get_settings()
    if not settings.gemini_api_key:
        raise ConfigurationError("GEMINI_API_KEY not configured")
    if _provider is None:
        _provider = GeminiProvider(api_key=settings.gemini_api_key, model=settings.gemini_model)
    return _provider
