"""
Text Generation Client

OpenRouter chat-completions client used for festival name refinement and
newsletter copy.
"""

import logging
from typing import Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.config import ModelConfig

from ..protocols import CollaboratorUnavailableError, MalformedCollaboratorResponseError

logger = logging.getLogger(__name__)


class OpenRouterTextClient:
    """Client for OpenRouter chat completions"""

    def __init__(self, config: Optional[ModelConfig] = None):
        self.config = config or ModelConfig.from_env()
        self.base_url = self.config.openrouter_base_url.rstrip("/")
        self.timeout = self.config.text_timeout

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.config.openrouter_api_key}",
            "Content-Type": "application/json",
            "X-Title": "Festival Campaign Engine",
        }

    async def _post(self, payload: dict) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=self._headers(),
            )
            response.raise_for_status()
            return response.json()

    async def generate(
        self, prompt: str, *, max_tokens: int = 200, temperature: float = 0.7
    ) -> str:
        """
        Generate a completion for a single user prompt.

        Args:
            prompt: User message
            max_tokens: Completion token limit
            temperature: Sampling temperature

        Returns:
            Stripped completion text

        Raises:
            CollaboratorUnavailableError: Not configured, HTTP error or timeout
            MalformedCollaboratorResponseError: Response without a completion
        """
        if not self.config.text_enabled:
            raise CollaboratorUnavailableError("text generator", "OPENROUTER_API_KEY not set")

        payload = {
            "model": self.config.text_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.text_max_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=5),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    data = await self._post(payload)

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 402:
                detail = "payment required, credits exhausted"
            elif status == 429:
                detail = "rate limit exceeded"
            elif status == 401:
                detail = "invalid API key"
            else:
                detail = f"HTTP {status}"
            logger.error(f"Text generation failed: {detail}")
            raise CollaboratorUnavailableError("text generator", detail)

        except httpx.HTTPError as e:
            logger.error(f"Text generation failed: {e}")
            raise CollaboratorUnavailableError("text generator", str(e) or type(e).__name__)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedCollaboratorResponseError("text generator", f"missing completion: {e}")
        if not content or not content.strip():
            raise MalformedCollaboratorResponseError("text generator", "empty completion")
        return content.strip()
