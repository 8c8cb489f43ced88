"""OpenAI-family adapter (OpenAI and any OpenAI-compatible endpoint).

Posts a chat-completions request with bearer auth. The user turn is a list of
content parts: one text part and one ``image_url`` part per attached image.
"""

import logging
from typing import Optional

from echoclip.schemas.provider import ProbeResult, ProviderSpec
from echoclip.schemas.run import ImageData, RunResult, Success, image_list
from echoclip.services.llm.base import (
    DEFAULT_TEMPERATURE,
    LLMAdapter,
    http_failure,
    unusable_key_failure,
)
from echoclip.services.llm.images import to_image_url

logger = logging.getLogger(__name__)


class OpenAIAdapter(LLMAdapter):
    """LLM adapter for ``/chat/completions`` style endpoints."""

    def __init__(self, api_base: str, api_key: str, model: str, **kwargs) -> None:
        """Initialize adapter for an OpenAI-compatible endpoint.

        Args:
            api_base: Base URL including the version segment
                      (e.g., "https://api.openai.com/v1").
            api_key: Bearer token.
            model: Model identifier (e.g., "gpt-4o-mini").
        """
        super().__init__(model, **kwargs)
        self.api_base = (api_base or "").rstrip("/")
        self._api_key = api_key

    @classmethod
    def from_spec(cls, spec: ProviderSpec, credential: Optional[str], **kwargs) -> "OpenAIAdapter":
        return cls(spec.api_base or "", credential or "", spec.model, **kwargs)

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def build_payload(
        self,
        system: str,
        input_text: str,
        image_data: Optional[ImageData] = None,
    ) -> dict:
        """Build the chat-completions JSON body."""
        user_parts: list[dict] = []
        if input_text:
            user_parts.append({"type": "text", "text": input_text})
        for image in image_list(image_data):
            user_parts.append({"type": "image_url", "image_url": {"url": to_image_url(image)}})

        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_parts},
            ],
            "temperature": DEFAULT_TEMPERATURE,
        }

    async def _run(
        self,
        system: str,
        input_text: str,
        image_data: Optional[ImageData],
    ) -> RunResult:
        key_failure = unusable_key_failure(self._api_key)
        if key_failure is not None:
            return key_failure

        url = f"{self.api_base}/chat/completions"
        payload = self.build_payload(system, input_text, image_data)
        logger.info(
            "POST %s model=%s images=%d", url, self.model, len(image_list(image_data)),
        )

        async with self._client() as client:
            response = await client.post(url, headers=self._headers, json=payload)

        logger.info("  completion response: HTTP %d", response.status_code)
        if not response.is_success:
            return http_failure(response)

        data = response.json()
        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        return Success(text=content.strip())

    async def _probe(self) -> ProbeResult:
        key_failure = unusable_key_failure(self._api_key)
        if key_failure is not None:
            return ProbeResult(available=False, detail=key_failure.message)

        async with self._client() as client:
            response = await client.get(f"{self.api_base}/models", headers=self._headers)
        if not response.is_success:
            return ProbeResult(
                available=False,
                detail=f"HTTP {response.status_code}: {response.text}",
            )

        models = [m.get("id", "") for m in response.json().get("data", []) if isinstance(m, dict)]
        detail = "reachable"
        if models and self.model not in models:
            detail = f"reachable, model {self.model} not listed"
        return ProbeResult(available=True, detail=detail, models=models)
