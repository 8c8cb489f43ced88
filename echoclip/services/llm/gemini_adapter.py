"""Gemini adapter for the LLM abstraction layer.

Calls the public ``generateContent`` REST endpoint with the API key in the
query string. Gemini takes the system instruction as a separate
``systemInstruction`` field rather than as a turn, and images as
``inlineData`` parts split into mime type and base64 payload.
"""

import logging
from typing import Optional
from urllib.parse import quote

from echoclip.schemas.provider import ProbeResult, ProviderSpec
from echoclip.schemas.run import ImageData, RunResult, Success, image_list
from echoclip.services.llm.base import DEFAULT_TEMPERATURE, LLMAdapter, http_failure
from echoclip.services.llm.images import split_data_uri

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com"


class GeminiAdapter(LLMAdapter):
    """LLM adapter for the Gemini ``v1beta`` REST API."""

    def __init__(self, api_base: Optional[str], api_key: str, model: str, **kwargs) -> None:
        """Initialize adapter for the given Gemini model.

        Args:
            api_base: API root; defaults to the public endpoint. Trailing
                      slashes are stripped.
            api_key: Gemini API key, sent as the ``key`` query parameter.
            model: Model identifier (e.g., "gemini-2.5-flash").
        """
        super().__init__(model, **kwargs)
        self.api_base = (api_base or DEFAULT_API_BASE).rstrip("/")
        self._api_key = api_key

    @classmethod
    def from_spec(cls, spec: ProviderSpec, credential: Optional[str], **kwargs) -> "GeminiAdapter":
        return cls(spec.api_base, credential or "", spec.model, **kwargs)

    @property
    def endpoint(self) -> str:
        """``generateContent`` URL without the key (safe to log)."""
        return f"{self.api_base}/v1beta/models/{quote(self.model, safe='')}:generateContent"

    def build_payload(
        self,
        system: str,
        input_text: str,
        image_data: Optional[ImageData] = None,
    ) -> dict:
        """Build the ``generateContent`` JSON body."""
        parts: list[dict] = []
        if input_text.strip():
            parts.append({"text": input_text})
        for image in image_list(image_data):
            mime_type, b64 = split_data_uri(image)
            parts.append({"inlineData": {"mimeType": mime_type, "data": b64}})

        body: dict = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"temperature": DEFAULT_TEMPERATURE},
        }
        if system.strip():
            body["systemInstruction"] = {"role": "system", "parts": [{"text": system}]}
        return body

    async def _run(
        self,
        system: str,
        input_text: str,
        image_data: Optional[ImageData],
    ) -> RunResult:
        payload = self.build_payload(system, input_text, image_data)
        logger.info(
            "POST %s images=%d", self.endpoint, len(image_list(image_data)),
        )

        async with self._client() as client:
            response = await client.post(
                self.endpoint,
                params={"key": self._api_key},
                json=payload,
            )

        logger.info("  generateContent response: HTTP %d", response.status_code)
        if not response.is_success:
            return http_failure(response)

        data = response.json()
        candidates = data.get("candidates") or [{}]
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p["text"] for p in parts if isinstance(p, dict) and p.get("text"))
        return Success(text=text.strip())

    async def _probe(self) -> ProbeResult:
        async with self._client() as client:
            response = await client.get(
                f"{self.api_base}/v1beta/models",
                params={"key": self._api_key},
            )
        if not response.is_success:
            return ProbeResult(
                available=False,
                detail=f"HTTP {response.status_code}: {response.text}",
            )

        models = [
            m.get("name", "").removeprefix("models/")
            for m in response.json().get("models", [])
            if isinstance(m, dict)
        ]
        detail = "reachable"
        if models and self.model not in models:
            detail = f"reachable, model {self.model} not listed"
        return ProbeResult(available=True, detail=detail, models=models)
