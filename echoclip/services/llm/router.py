"""Provider router for LLM adapters.

Routes a provider record to the adapter class registered for its ``type``,
checks the credential, and normalizes every outcome into a ``RunResult``.
New backends are added to ``ADAPTERS``; the dispatch code itself does not
change.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import httpx

from echoclip.schemas.provider import ProbeResult, ProviderSpec, ProviderType
from echoclip.schemas.run import Failure, FailureKind, ImageData, RunResult
from echoclip.services.llm.base import LLMAdapter
from echoclip.services.llm.gemini_adapter import GeminiAdapter
from echoclip.services.llm.ollama_adapter import OllamaAdapter
from echoclip.services.llm.openai_adapter import OpenAIAdapter

if TYPE_CHECKING:
    from echoclip.config import Settings

logger = logging.getLogger(__name__)

ADAPTERS: dict[str, type[LLMAdapter]] = {
    ProviderType.OPENAI.value: OpenAIAdapter,
    ProviderType.OPENAI_COMPATIBLE.value: OpenAIAdapter,
    ProviderType.OLLAMA.value: OllamaAdapter,
    ProviderType.GEMINI.value: GeminiAdapter,
}

# Unrecognized provider types are sent through the OpenAI-compatible adapter
# unless strict routing is enabled.
FALLBACK_ADAPTER: type[LLMAdapter] = OpenAIAdapter

NO_PROVIDER_MESSAGE = "No provider configured"


def adapter_class_for(provider_type: str, *, strict: bool = False) -> Optional[type[LLMAdapter]]:
    """Return the adapter class for a provider type.

    Returns ``None`` only in strict mode for an unrecognized type.
    """
    adapter_cls = ADAPTERS.get(provider_type)
    if adapter_cls is not None:
        return adapter_cls
    if strict:
        return None
    logger.warning(
        "Unknown provider type %r, routing through %s",
        provider_type, FALLBACK_ADAPTER.__name__,
    )
    return FALLBACK_ADAPTER


def default_credential_source(spec: ProviderSpec) -> str:
    """Describe where a key would come from when the caller did not say."""
    return f"env: {spec.key_env_name or 'API key'}"


def _adapter_kwargs(
    settings: Optional["Settings"],
    transport: Optional[httpx.AsyncBaseTransport],
) -> dict:
    kwargs: dict = {"transport": transport}
    if settings is not None:
        kwargs["timeout"] = settings.http.timeout_seconds
        kwargs["connect_timeout"] = settings.http.connect_timeout_seconds
    return kwargs


def get_adapter(
    spec: ProviderSpec,
    credential: Optional[str] = None,
    *,
    settings: Optional["Settings"] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[LLMAdapter]:
    """Return a configured adapter for the provider, or ``None`` if unsupported."""
    strict = bool(settings and settings.routing.strict_provider_types)
    adapter_cls = adapter_class_for(spec.type, strict=strict)
    if adapter_cls is None:
        return None

    logger.debug(
        "Routing provider %s (type=%s, model=%s) to %s (has_key=%s)",
        spec.id, spec.type, spec.model, adapter_cls.__name__, bool(credential),
    )
    return adapter_cls.from_spec(spec, credential, **_adapter_kwargs(settings, transport))


async def run_llm(
    spec: Optional[ProviderSpec],
    credential: Optional[str],
    system: str,
    input_text: str,
    image_data: Optional[ImageData] = None,
    *,
    credential_source: Optional[str] = None,
    settings: Optional["Settings"] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RunResult:
    """Run one completion against the given provider.

    Args:
        spec: Resolved provider record, or ``None`` when nothing resolved.
        credential: API key for keyed providers (ignored for Ollama).
        system: System instruction.
        input_text: Composed user text.
        image_data: Optional image(s) as data URI or raw base64.
        credential_source: Human-readable key location used in the
            missing-key message (e.g., "env: OPENAI_API_KEY").
        settings: Timeouts and routing strictness; adapter defaults otherwise.
        transport: Optional httpx transport override.

    Returns:
        ``Success`` or ``Failure``. This function never raises.
    """
    if spec is None:
        return Failure(kind=FailureKind.NO_PROVIDER, message=NO_PROVIDER_MESSAGE)

    adapter = get_adapter(spec, credential, settings=settings, transport=transport)
    if adapter is None:
        return Failure(
            kind=FailureKind.UNSUPPORTED_PROVIDER,
            message=f"Unsupported provider type: {spec.type}",
        )

    if adapter.requires_credential and not credential:
        source = credential_source or default_credential_source(spec)
        logger.info("Provider %s has no API key (%s)", spec.id, source)
        return Failure(
            kind=FailureKind.MISSING_CREDENTIAL,
            message=f"Missing API key in {source}",
        )

    return await adapter.run(system, input_text, image_data)


async def probe_provider(
    spec: ProviderSpec,
    credential: Optional[str] = None,
    *,
    settings: Optional["Settings"] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProbeResult:
    """Check whether a provider is reachable and usable."""
    adapter = get_adapter(spec, credential, settings=settings, transport=transport)
    if adapter is None:
        return ProbeResult(available=False, detail=f"Unsupported provider type: {spec.type}")
    if adapter.requires_credential and not credential:
        return ProbeResult(available=False, detail="Missing API key")
    return await adapter.probe()
