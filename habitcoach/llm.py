"""LLM provider abstraction — provider-agnostic text generation.

Supports any OpenAI-compatible API, Azure OpenAI, and Anthropic. The coach
only needs plain completions: a system instruction, a user instruction and
a token/temperature budget in, generated text out.

Usage:
    from habitcoach.llm import make_client
    client = make_client(settings)
    response = client.chat(messages, temperature=0.7, max_tokens=400)
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from habitcoach.config import Settings

log = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Unified response from any LLM provider."""
    content: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    model: str = ""
    finish_reason: str = ""


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 2048) -> LLMResponse:
        """Send a chat completion request."""
        ...

    @abstractmethod
    def provider_name(self) -> str:
        ...


def build_messages(system_prompt: str, user_prompt: str) -> list[dict]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


def _is_o_series(model: str) -> bool:
    """Detect o-series / reasoning models that don't support temperature
    and require max_completion_tokens instead of max_tokens.
    Matches: o1, o1-mini, o3, o3-mini, o4-mini, gpt-o*, *5.1*, etc.
    """
    return bool(re.search(r'(^o\d|[/-]o\d|5\.1|o-series)', model, re.IGNORECASE))


def _build_completion_kwargs(
    model: str, messages: list[dict], temperature: float, max_tokens: int
) -> dict:
    """Build kwargs for chat.completions.create, adapting to model capabilities."""
    kwargs: dict = {"model": model, "messages": messages}
    if _is_o_series(model):
        # o-series: no temperature, use max_completion_tokens
        kwargs["max_completion_tokens"] = max_tokens
    else:
        kwargs["temperature"] = temperature
        kwargs["max_tokens"] = max_tokens
    return kwargs


def _from_openai(resp, model: str) -> LLMResponse:
    choice = resp.choices[0]
    return LLMResponse(
        content=choice.message.content or "",
        prompt_tokens=resp.usage.prompt_tokens if resp.usage else 0,
        completion_tokens=resp.usage.completion_tokens if resp.usage else 0,
        total_tokens=resp.usage.total_tokens if resp.usage else 0,
        model=model,
        finish_reason=choice.finish_reason or "",
    )


class OpenAIProvider(LLMProvider):
    """OpenAI-compatible API provider (works with OpenAI, DeepSeek, Ollama, Groq, etc.)."""

    def __init__(self, api_key: str, model: str, base_url: str = ""):
        from openai import OpenAI
        self._model = model
        kwargs: dict = {"api_key": api_key}
        if base_url:
            kwargs["base_url"] = base_url
        self._client = OpenAI(**kwargs)

    def provider_name(self) -> str:
        return "openai"

    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 2048) -> LLMResponse:
        kwargs = _build_completion_kwargs(self._model, messages, temperature, max_tokens)
        resp = self._client.chat.completions.create(**kwargs)
        return _from_openai(resp, self._model)


class AzureOpenAIProvider(LLMProvider):
    """Azure OpenAI API provider."""

    def __init__(self, api_key: str, model: str, base_url: str = "",
                 api_version: str = ""):
        from openai import AzureOpenAI
        self._deployment = model
        self._client = AzureOpenAI(
            azure_endpoint=base_url,
            api_key=api_key,
            api_version=api_version,
        )

    def provider_name(self) -> str:
        return "azure_openai"

    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 2048) -> LLMResponse:
        kwargs = _build_completion_kwargs(self._deployment, messages, temperature, max_tokens)
        resp = self._client.chat.completions.create(**kwargs)
        return _from_openai(resp, self._deployment)


class AnthropicProvider(LLMProvider):
    """Anthropic Claude API provider."""

    def __init__(self, api_key: str, model: str):
        import anthropic
        self._model = model
        self._client = anthropic.Anthropic(api_key=api_key)

    def provider_name(self) -> str:
        return "anthropic"

    @staticmethod
    def _split_system(messages: list[dict]) -> tuple[str, list[dict]]:
        """Anthropic takes the system prompt as a separate argument."""
        system_msg = ""
        conversation = []
        for m in messages:
            if m["role"] == "system":
                system_msg += m["content"] + "\n"
            else:
                conversation.append(m)
        return system_msg.strip(), conversation

    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 2048) -> LLMResponse:
        system_msg, conversation = self._split_system(messages)

        kwargs = dict(
            model=self._model,
            messages=conversation,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if system_msg:
            kwargs["system"] = system_msg

        resp = self._client.messages.create(**kwargs)

        content = "".join(b.text for b in resp.content if b.type == "text")
        return LLMResponse(
            content=content,
            prompt_tokens=resp.usage.input_tokens if resp.usage else 0,
            completion_tokens=resp.usage.output_tokens if resp.usage else 0,
            total_tokens=(resp.usage.input_tokens + resp.usage.output_tokens) if resp.usage else 0,
            model=self._model,
            finish_reason=resp.stop_reason or "",
        )


# ═══════════════════════════════════════════════════════════════════════════
# Factory
# ═══════════════════════════════════════════════════════════════════════════

def make_client(settings: Settings) -> LLMProvider:
    """Instantiate the LLM provider described by settings."""
    provider = settings.chat_provider
    model = settings.chat_model
    if not model:
        raise ValueError(
            "CHAT_MODEL is required but not set. Please set it in your .env file."
        )
    if provider == "openai":
        client = OpenAIProvider(api_key=settings.chat_api_key, model=model,
                                base_url=settings.chat_base_url)
    elif provider == "azure_openai":
        client = AzureOpenAIProvider(api_key=settings.chat_api_key, model=model,
                                     base_url=settings.chat_base_url,
                                     api_version=settings.azure_api_version)
    elif provider == "anthropic":
        client = AnthropicProvider(api_key=settings.chat_api_key, model=model)
    else:
        raise ValueError(
            f"Unknown provider: {provider!r}. "
            "Supported: openai (+ any compatible API), azure_openai, anthropic"
        )
    log.info("LLM: provider=%s model=%s", provider, model)
    return client
