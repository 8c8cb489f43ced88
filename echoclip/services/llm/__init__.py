"""LLM provider abstraction layer.

Provides a unified async interface over the OpenAI chat-completions,
Ollama chat, and Gemini generateContent wire formats.

Usage:
    from echoclip.services.llm import run_llm

    result = await run_llm(spec, api_key, system, "Hello", None)
    if result.ok:
        print(result.text)
"""

from echoclip.services.llm.base import LLMAdapter
from echoclip.services.llm.router import get_adapter, probe_provider, run_llm

__all__ = ["LLMAdapter", "get_adapter", "probe_provider", "run_llm"]
