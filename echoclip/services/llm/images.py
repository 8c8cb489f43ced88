"""Inline image helpers.

Clipboard images arrive either as a data URI (``data:image/png;base64,...``)
or as raw base64. Each backend wants a different shape:

- OpenAI family: a URL (data URI or http/https)
- Ollama: raw base64 with no prefix
- Gemini: ``{mimeType, data}`` split out of the data URI
"""

import re

DEFAULT_MIME_TYPE = "image/png"

_DATA_URI_RE = re.compile(r"^data:(.*?);base64,(.*)$", re.IGNORECASE | re.DOTALL)


def strip_data_uri(value: str) -> str:
    """Return raw base64, dropping anything up to and including the first comma.

    Raw base64 never contains a comma, so already-stripped input comes back
    unchanged.
    """
    _, sep, tail = value.partition(",")
    return tail if sep else value


def split_data_uri(value: str) -> tuple[str, str]:
    """Split an image into ``(mime_type, base64_payload)``.

    Strings without a ``data:`` prefix are treated as raw base64 PNG.
    """
    match = _DATA_URI_RE.match(value)
    if match:
        return match.group(1) or DEFAULT_MIME_TYPE, match.group(2)
    return DEFAULT_MIME_TYPE, value


def to_image_url(value: str) -> str:
    """Return a URL usable in an OpenAI ``image_url`` part."""
    lowered = value[:8].lower()
    if lowered.startswith("data:") or lowered.startswith(("http://", "https://")):
        return value
    return f"data:{DEFAULT_MIME_TYPE};base64,{value}"
