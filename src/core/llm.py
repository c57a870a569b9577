"""
Voice Assistant — LLM Provider Abstraction.

`LLMClient.complete()` routes to the provider chosen in Settings.
Supports: groq (default), gemini, anthropic, openai, cohere.
Clients are built explicitly from Settings; nothing is cached at module level.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

# (api_key, model, system, user_message, max_tokens, json_mode) -> text
_ProviderFn = Callable[[str, str, str, str, int, bool], Awaitable[str]]

# ---------------------------------------------------------------------------
# Provider implementations
# ---------------------------------------------------------------------------


async def _complete_gemini(
    api_key: str, model: str, system: str, user_message: str, max_tokens: int, json_mode: bool
) -> str:
    import google.generativeai as genai

    genai.configure(api_key=api_key)
    gm = genai.GenerativeModel(
        model_name=model,
        system_instruction=system,
    )
    config = genai.types.GenerationConfig(
        max_output_tokens=max_tokens,
        response_mime_type="application/json" if json_mode else "text/plain",
    )
    response = await gm.generate_content_async(user_message, generation_config=config)
    return response.text


async def _complete_anthropic(
    api_key: str, model: str, system: str, user_message: str, max_tokens: int, json_mode: bool
) -> str:
    import anthropic

    # No JSON mode here; the system prompt already demands a bare object
    client = anthropic.AsyncAnthropic(api_key=api_key)
    response = await client.messages.create(
        model=model,
        max_tokens=max_tokens,
        system=system,
        messages=[{"role": "user", "content": user_message}],
    )
    return response.content[0].text


async def _openai_chat(
    api_key: str,
    model: str,
    system: str,
    user_message: str,
    max_tokens: int,
    json_mode: bool,
    base_url: str | None = None,
) -> str:
    from openai import AsyncOpenAI

    client = AsyncOpenAI(api_key=api_key, base_url=base_url)
    kwargs: dict = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    response = await client.chat.completions.create(
        model=model,
        max_tokens=max_tokens,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user_message},
        ],
        **kwargs,
    )
    return response.choices[0].message.content or ""


async def _complete_openai(
    api_key: str, model: str, system: str, user_message: str, max_tokens: int, json_mode: bool
) -> str:
    return await _openai_chat(api_key, model, system, user_message, max_tokens, json_mode)


async def _complete_groq(
    api_key: str, model: str, system: str, user_message: str, max_tokens: int, json_mode: bool
) -> str:
    # Groq speaks the OpenAI chat-completions protocol
    return await _openai_chat(
        api_key, model, system, user_message, max_tokens, json_mode, base_url=GROQ_BASE_URL
    )


async def _complete_cohere(
    api_key: str, model: str, system: str, user_message: str, max_tokens: int, json_mode: bool
) -> str:
    import cohere

    client = cohere.AsyncClientV2(api_key=api_key)
    kwargs: dict = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    response = await client.chat(
        model=model,
        max_tokens=max_tokens,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user_message},
        ],
        **kwargs,
    )
    return response.message.content[0].text


_PROVIDERS: dict[str, tuple[_ProviderFn, str]] = {
    "groq":      (_complete_groq,      "llama-3.1-8b-instant"),
    "gemini":    (_complete_gemini,    "gemini-2.0-flash"),
    "anthropic": (_complete_anthropic, "claude-haiku-4-5-20251001"),
    "openai":    (_complete_openai,    "gpt-4o-mini"),
    "cohere":    (_complete_cohere,    "command-a-03-2025"),
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class LLMClient:
    """Sends prompts to one configured provider."""

    def __init__(self, provider: str, api_key: str, model: str = "") -> None:
        provider_name = provider.lower()
        if provider_name not in _PROVIDERS:
            raise ValueError(
                f"Unknown LLM_PROVIDER={provider_name!r}. "
                f"Supported: {', '.join(_PROVIDERS)}"
            )
        self._fn, default_model = _PROVIDERS[provider_name]
        self.provider = provider_name
        self.model = model or default_model
        self._api_key = api_key
        logger.info("LLM provider: %s, model: %s", self.provider, self.model)

    async def complete(
        self,
        system: str,
        user_message: str,
        max_tokens: int = 256,
        json_mode: bool = False,
    ) -> str:
        """Send a prompt to the provider and return the response text.

        Raises on API errors — callers should handle exceptions.
        """
        return await self._fn(self._api_key, self.model, system, user_message, max_tokens, json_mode)


def create_llm_client(settings: Settings) -> LLMClient:
    """Build the LLM client described by LLM_PROVIDER / LLM_MODEL / LLM_API_KEY."""
    return LLMClient(
        provider=settings.LLM_PROVIDER,
        api_key=settings.LLM_API_KEY,
        model=settings.LLM_MODEL,
    )
