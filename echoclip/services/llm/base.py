"""Abstract base class for LLM provider adapters.

Defines the consistent async interface that all adapters implement. Every
adapter turns one canonical request (system instruction, input text, optional
image data) into a single HTTP round-trip and returns a ``RunResult``.
Adapters never raise: transport errors, timeouts, non-2xx responses and
unreadable bodies all come back as ``Failure`` values.
"""

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Optional

import httpx

from echoclip.schemas.provider import ProbeResult, ProviderSpec
from echoclip.schemas.run import Failure, FailureKind, ImageData, RunResult

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.2
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0


def http_failure(response: httpx.Response) -> Failure:
    """Failure for a non-2xx response, carrying the raw body unmodified."""
    return Failure(
        kind=FailureKind.UPSTREAM_HTTP_ERROR,
        message=f"HTTP {response.status_code}: {response.text}",
    )


def unusable_key_failure(api_key: str) -> Optional[Failure]:
    """Failure for a key that cannot be sent in an HTTP header, else ``None``.

    Header values must be ASCII; a pasted smart quote or non-breaking space
    would otherwise fail inside httpx before the request leaves.
    """
    if api_key.isascii():
        return None
    return Failure(
        kind=FailureKind.MISSING_CREDENTIAL,
        message="API key contains non-ASCII characters, re-enter it",
    )


def _error_text(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class LLMAdapter(ABC):
    """Abstract base class for LLM provider adapters.

    Subclasses implement ``_run`` (one completion call) and ``_probe`` (a
    cheap reachability check). The public ``run`` and ``probe`` wrappers map
    every exception to a tagged result so callers never need try/except.
    """

    #: Whether the router must supply an API key before dispatching.
    requires_credential: ClassVar[bool] = True

    def __init__(
        self,
        model: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize adapter settings shared by all providers.

        Args:
            model: Provider-side model identifier.
            timeout: Overall per-request timeout in seconds.
            connect_timeout: Connection establishment timeout in seconds.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self.model = model
        self.timeout = timeout
        self._http_timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self._transport = transport

    @classmethod
    @abstractmethod
    def from_spec(
        cls, spec: ProviderSpec, credential: Optional[str], **kwargs
    ) -> "LLMAdapter":
        """Build an adapter from a provider record and its resolved secret."""
        ...

    def _client(self) -> httpx.AsyncClient:
        """New client per call; the core keeps no pooled connections."""
        return httpx.AsyncClient(
            timeout=self._http_timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def run(
        self,
        system: str,
        input_text: str,
        image_data: Optional[ImageData] = None,
    ) -> RunResult:
        """Execute one completion call.

        Args:
            system: System instruction for the action.
            input_text: User text (may be empty when an image is attached).
            image_data: Data URI or raw base64 image, or a list of them.

        Returns:
            ``Success`` with the trimmed model output, or ``Failure``.
        """
        try:
            return await self._run(system or "", input_text or "", image_data)
        except httpx.TimeoutException:
            logger.warning("%s request timed out after %.1fs", self.__class__.__name__, self.timeout)
            return Failure(
                kind=FailureKind.TIMEOUT,
                message=f"Request timed out after {self.timeout:g}s",
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("%s transport error: %s", self.__class__.__name__, e)
            return Failure(kind=FailureKind.TRANSPORT_ERROR, message=_error_text(e))
        except UnicodeEncodeError as e:
            logger.warning("%s could not encode request: %s", self.__class__.__name__, e)
            return Failure(
                kind=FailureKind.TRANSPORT_ERROR,
                message=f"Request could not be encoded: {_error_text(e)}",
            )
        except (ValueError, KeyError, TypeError, IndexError, AttributeError) as e:
            # JSON decode errors are ValueError subclasses
            logger.warning("%s could not read response: %s", self.__class__.__name__, e)
            return Failure(
                kind=FailureKind.INVALID_RESPONSE,
                message=f"Invalid response from provider: {_error_text(e)}",
            )

    @abstractmethod
    async def _run(
        self,
        system: str,
        input_text: str,
        image_data: Optional[ImageData],
    ) -> RunResult:
        ...

    async def probe(self) -> ProbeResult:
        """Check that the provider is reachable without running a completion."""
        try:
            return await self._probe()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return ProbeResult(available=False, detail=_error_text(e))
        except UnicodeEncodeError as e:
            return ProbeResult(available=False, detail=f"Request could not be encoded: {_error_text(e)}")
        except (ValueError, KeyError, TypeError) as e:
            return ProbeResult(available=False, detail=f"Invalid response: {_error_text(e)}")

    @abstractmethod
    async def _probe(self) -> ProbeResult:
        ...
