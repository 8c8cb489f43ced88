"""Invocation entrypoint used by the desktop glue and the CLI.

Turns one ``RunRequest`` into a routed LLM call:

  1. reject empty submissions (no text, no image)
  2. make sure ``translate_to`` has a target language
  3. fold style / target-language headers into the input text
  4. resolve provider and credential, pick the system prompt, dispatch

Guards 1 and 2 fail before any provider lookup or network call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

from echoclip.schemas.provider import ProviderSpec
from echoclip.schemas.run import Action, Failure, FailureKind, RunRequest, RunResult
from echoclip.services.credentials import CredentialResolver, get_credential_resolver
from echoclip.services.llm.router import adapter_class_for, run_llm
from echoclip.services.prompts import system_prompt_for
from echoclip.services.registry import ProviderRegistry, get_registry

if TYPE_CHECKING:
    from echoclip.config import Settings

logger = logging.getLogger(__name__)

EMPTY_INPUT_MESSAGE = "Nothing to send. Paste text or copy an image first."
MISSING_TARGET_LANGUAGE_MESSAGE = "Please set a target language first."


def compose_input(
    action: str,
    text: str,
    *,
    style: Optional[str] = None,
    target_language: Optional[str] = None,
) -> str:
    """Prefix the user text with the headers the action needs.

    ``rewrite_style`` gets ``Style: <style>`` (lowercased) and ``translate_to``
    gets ``Target language: <lang>``. Headers are separated from the text by
    a blank line; without headers the text is returned unchanged.
    """
    headers: list[str] = []
    if action == Action.REWRITE_STYLE.value and style and style.strip():
        headers.append(f"Style: {style.strip().lower()}")
    if action == Action.TRANSLATE_TO.value and target_language and target_language.strip():
        headers.append(f"Target language: {target_language.strip()}")
    if not headers:
        return text
    return "\n".join(headers) + "\n\n" + text


def _credential_for(
    spec: ProviderSpec,
    resolver: CredentialResolver,
    strict: bool,
) -> Optional[str]:
    adapter_cls = adapter_class_for(spec.type, strict=strict)
    if adapter_cls is None or not adapter_cls.requires_credential:
        return None
    return resolver.resolve(spec)


async def run_action(
    request: RunRequest,
    *,
    registry: Optional[ProviderRegistry] = None,
    resolver: Optional[CredentialResolver] = None,
    settings: Optional["Settings"] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RunResult:
    """Run one clipboard action end to end.

    Args:
        request: The user's action, text, optional image and overrides.
        registry: Provider registry; defaults to the configured JSON file.
        resolver: Credential resolver; defaults to the configured backend.
        settings: Application settings; defaults to the module singleton.
        transport: Optional httpx transport override (tests).

    Returns:
        ``Success`` or ``Failure``; never raises for provider problems.
    """
    if settings is None:
        from echoclip.config import settings as default_settings

        settings = default_settings
    registry = registry or get_registry(settings)
    resolver = resolver or get_credential_resolver(settings)

    text = request.input_text.strip()
    if not text and not request.has_image:
        return Failure(kind=FailureKind.EMPTY_INPUT, message=EMPTY_INPUT_MESSAGE)

    config = registry.snapshot()
    target_language = (
        (request.target_language or "").strip()
        or (config.target_lang or "").strip()
        or None
    )
    if request.action == Action.TRANSLATE_TO.value and not target_language:
        return Failure(
            kind=FailureKind.MISSING_TARGET_LANGUAGE,
            message=MISSING_TARGET_LANGUAGE_MESSAGE,
        )

    composed = compose_input(
        request.action,
        text,
        style=request.style_hint,
        target_language=target_language,
    )

    spec = registry.resolve(request.provider_id)
    if spec is None:
        return await run_llm(None, None, "", composed)

    strict = settings.routing.strict_provider_types
    credential = _credential_for(spec, resolver, strict)
    system = system_prompt_for(request.action, request.has_image)

    logger.info(
        "Running %s via %s (%s, model=%s, image=%s)",
        request.action, spec.id, spec.type, spec.model, request.has_image,
    )
    result = await run_llm(
        spec,
        credential,
        system,
        composed,
        request.images,
        credential_source=resolver.describe(spec),
        settings=settings,
        transport=transport,
    )
    if not result.ok:
        logger.info("Action %s failed (%s): %s", request.action, result.kind.value, result.message)
    return result


async def run_payload(payload: dict[str, Any], **kwargs) -> dict[str, str]:
    """Glue-facing wrapper: payload dict in, ``{"text"}`` or ``{"error"}`` out."""
    result = await run_action(RunRequest.from_payload(payload), **kwargs)
    return result.to_payload()
