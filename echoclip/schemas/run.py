"""Canonical request and result types for one LLM invocation.

A ``RunResult`` is either ``Success`` or ``Failure``, never both. The glue
layer receives it as ``{"text": ...}`` or ``{"error": ...}`` through
``to_payload``.
"""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Action(str, Enum):
    """Text actions offered in the clipboard window."""

    ASK = "ask"
    PROOFREAD = "proofread"
    TRANSLATE_EN = "translate_en"
    TRANSLATE_TO = "translate_to"
    SUMMARIZE = "summarize"
    REWRITE_STYLE = "rewrite_style"


class FailureKind(str, Enum):
    NO_PROVIDER = "no_provider"
    MISSING_CREDENTIAL = "missing_credential"
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    UPSTREAM_HTTP_ERROR = "upstream_http_error"
    TRANSPORT_ERROR = "transport_error"
    TIMEOUT = "timeout"
    INVALID_RESPONSE = "invalid_response"
    EMPTY_INPUT = "empty_input"
    MISSING_TARGET_LANGUAGE = "missing_target_language"


class Success(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    text: str

    def to_payload(self) -> dict:
        return {"text": self.text}


class Failure(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    kind: FailureKind
    message: str

    def to_payload(self) -> dict:
        return {"error": self.message}


RunResult = Union[Success, Failure]

# A single image, or several for backends that accept more than one.
ImageData = Union[str, list[str]]


def image_list(image_data: Optional[ImageData]) -> list[str]:
    """Normalize a single image or a list of images, dropping blank entries."""
    if not image_data:
        return []
    if isinstance(image_data, str):
        image_data = [image_data]
    return [img for img in image_data if img and img.strip()]


class RunRequest(BaseModel):
    """One user invocation as handed over by the desktop glue.

    ``action`` stays a plain string: unknown tags are not rejected here, the
    prompt library maps them to the proofread instruction.
    """

    model_config = ConfigDict(populate_by_name=True)

    action: str = Action.PROOFREAD.value
    input_text: str = Field(default="", alias="inputText")
    image_data: Optional[ImageData] = Field(default=None, alias="imageData")
    provider_id: Optional[str] = Field(default=None, alias="providerId")
    target_language: Optional[str] = Field(default=None, alias="targetLanguage")
    style_hint: Optional[str] = Field(default=None, alias="styleHint")

    @property
    def images(self) -> list[str]:
        return image_list(self.image_data)

    @property
    def has_image(self) -> bool:
        return bool(self.images)

    @classmethod
    def from_payload(cls, payload: dict) -> "RunRequest":
        """Build a request from the glue-layer payload.

        The payload shape is ``{action, inputText, imageData, providerConfig:
        {providerId?, targetLang?, style?}}``.
        """
        provider_config = payload.get("providerConfig") or {}
        return cls(
            action=payload.get("action") or Action.PROOFREAD.value,
            input_text=payload.get("inputText") or "",
            image_data=payload.get("imageData") or None,
            provider_id=provider_config.get("providerId") or None,
            target_language=provider_config.get("targetLang") or None,
            style_hint=provider_config.get("style") or payload.get("style") or None,
        )
