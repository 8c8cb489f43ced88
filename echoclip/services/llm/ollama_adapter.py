"""Ollama adapter for the LLM abstraction layer.

Chat calls go straight to ``{host}/api/chat`` as a non-streaming request so
the exact wire body stays under our control. Model discovery for probing uses
``ollama.AsyncClient``.

Note: Ollama expects images as raw base64 in a per-message ``images`` list,
unlike the OpenAI family which takes data URIs. Any ``data:...;base64,``
prefix is stripped here, so a data URI and the same bytes as raw base64
produce identical request bodies.
"""

import logging
from typing import Optional

import httpx
from ollama import AsyncClient, ResponseError

from echoclip.schemas.provider import ProbeResult, ProviderSpec
from echoclip.schemas.run import ImageData, RunResult, Success, image_list
from echoclip.services.llm.base import LLMAdapter, http_failure
from echoclip.services.llm.images import strip_data_uri

logger = logging.getLogger(__name__)

DEFAULT_HOST = "http://localhost:11434"

IMAGE_ONLY_PROMPT = (
    "Please read any visible text in the image and perform the requested action."
)


class OllamaAdapter(LLMAdapter):
    """LLM adapter backed by a local or remote Ollama server.

    Always sends stream=False; no partial results are handled.
    """

    requires_credential = False

    def __init__(self, host: str, model: str, **kwargs) -> None:
        """Initialize adapter for the given Ollama model.

        Args:
            host: Base URL of the Ollama server (e.g., "http://localhost:11434").
            model: Ollama model name (e.g., "llama3.1:8b").
        """
        super().__init__(model, **kwargs)
        self.host = (host or DEFAULT_HOST).rstrip("/")

    @classmethod
    def from_spec(cls, spec: ProviderSpec, credential: Optional[str], **kwargs) -> "OllamaAdapter":
        return cls(spec.host or DEFAULT_HOST, spec.model, **kwargs)

    def build_payload(
        self,
        system: str,
        input_text: str,
        image_data: Optional[ImageData] = None,
    ) -> dict:
        """Build the ``/api/chat`` JSON body.

        Empty text with an image falls back to ``IMAGE_ONLY_PROMPT``; empty
        text without an image is sent as-is (callers block empty submissions).
        """
        images = [strip_data_uri(img) for img in image_list(image_data)]
        images = [img for img in images if img]

        messages: list[dict] = []
        if system.strip():
            messages.append({"role": "system", "content": system})

        if input_text.strip():
            content = input_text
        elif images:
            content = IMAGE_ONLY_PROMPT
        else:
            content = ""

        user_message: dict = {"role": "user", "content": content}
        if images:
            user_message["images"] = images
        messages.append(user_message)

        return {"model": self.model, "messages": messages, "stream": False}

    async def _run(
        self,
        system: str,
        input_text: str,
        image_data: Optional[ImageData],
    ) -> RunResult:
        url = f"{self.host}/api/chat"
        payload = self.build_payload(system, input_text, image_data)
        logger.info(
            "POST %s model=%s images=%d",
            url, self.model, len(payload["messages"][-1].get("images", [])),
        )

        async with self._client() as client:
            response = await client.post(url, json=payload)

        logger.info("  chat response: HTTP %d", response.status_code)
        if not response.is_success:
            return http_failure(response)

        data = response.json()
        message = data.get("message") or {}
        content = message.get("content")
        if content is None:
            content = data.get("content")
        if content is None:
            return Success(text="")
        if isinstance(content, str):
            return Success(text=content.strip())
        return Success(text=str(content))

    async def _probe(self) -> ProbeResult:
        client = AsyncClient(host=self.host, timeout=self._http_timeout)
        try:
            listing = await client.list()
        except ResponseError as e:
            return ProbeResult(available=False, detail=f"HTTP {e.status_code}: {e.error}")
        except (ConnectionError, httpx.HTTPError) as e:
            logger.debug("Ollama at %s unreachable: %s", self.host, e)
            return ProbeResult(available=False, detail=str(e) or "connection failed")
        finally:
            await client.close()

        models = [m.model for m in listing.models if m.model]
        if self.model in models or f"{self.model}:latest" in models:
            detail = "reachable"
        else:
            detail = f"reachable, model {self.model} not pulled"
        return ProbeResult(available=True, detail=detail, models=models)
