"""echoclip - clipboard text actions routed to interchangeable LLM providers.

The core takes a clipboard payload (text plus an optional image), picks a
system instruction for the requested action, and sends it to one of the
configured providers (OpenAI-compatible, Ollama, or Gemini). The result comes
back as a tagged ``Success`` / ``Failure`` value for the desktop glue layer to
show and copy back to the clipboard.
"""

__version__ = "0.1.0"
