import logging
from functools import lru_cache
from typing import Optional

import requests

from app.core.config import Settings, get_settings
from app.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

PROMPT_TEMPLATE = """Based on the blog post title "{title}", write a compelling excerpt for the post.

The tone should be clear, engaging and suitable for a modern blog listing page.
Keep it between 30-70 words.

Structure:
Start with a strong hook sentence.
Mention what the reader will learn.
End with a reason to keep reading.

Avoid listing bullet points; use a natural flowing paragraph."""


class SummaryService:
    """Excerpt generator backed by the Gemini generateContent REST API."""

    def __init__(self, api_key: str, model: str, timeout: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SummaryService":
        return cls(settings.GEMINI_API_KEY, settings.GEMINI_MODEL, settings.GEMINI_TIMEOUT_SECONDS)

    def build_prompt(self, title: str, content: Optional[str] = None) -> str:
        prompt = PROMPT_TEMPLATE.format(title=title.strip())
        if content:
            prompt += f"\n\nPost content:\n{content.strip()}"
        return prompt

    def summarize(self, title: str, content: Optional[str] = None) -> str:
        if not self.api_key:
            raise ExternalServiceError("Summary generator is not configured")

        try:
            response = requests.post(
                GEMINI_URL.format(model=self.model),
                params={"key": self.api_key},
                json={"contents": [{"parts": [{"text": self.build_prompt(title, content)}]}]},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Gemini request failed: %s", e)
            raise ExternalServiceError("Error connecting to the summary generator")

        if response.status_code != 200:
            logger.error("Gemini returned %s: %s", response.status_code, response.text[:200])
            raise ExternalServiceError("Summary generator returned an error")

        try:
            parts = response.json()["candidates"][0]["content"]["parts"]
        except (ValueError, KeyError, IndexError) as e:
            logger.error("Unexpected Gemini response: %s", e)
            raise ExternalServiceError("Summary generator returned an unexpected response")

        return "".join(part.get("text", "") for part in parts).strip()


@lru_cache
def get_summary_service() -> SummaryService:
    return SummaryService.from_settings(get_settings())
