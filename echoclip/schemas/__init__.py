"""Pydantic models shared across the core."""

from echoclip.schemas.provider import (
    AppConfig,
    ProbeResult,
    ProviderListing,
    ProviderSpec,
    ProviderType,
)
from echoclip.schemas.run import (
    Action,
    Failure,
    FailureKind,
    ImageData,
    RunRequest,
    RunResult,
    Success,
    image_list,
)

__all__ = [
    "Action",
    "AppConfig",
    "Failure",
    "FailureKind",
    "ImageData",
    "ProbeResult",
    "ProviderListing",
    "ProviderSpec",
    "ProviderType",
    "RunRequest",
    "RunResult",
    "Success",
    "image_list",
]
