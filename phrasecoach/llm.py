#!/usr/bin/env python3
"""
Unified LLM client supporting multiple providers.
Provides a consistent interface across Anthropic, OpenAI, and Google Gemini
for the scenario generator.
"""

import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, List, Tuple

from .config import load_config


logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Unified response from any LLM provider"""
    content: str
    model: str
    provider: str
    usage: Optional[Dict[str, int]] = None


def _split_system(messages: List[Dict[str, str]]) -> Tuple[str, List[Dict[str, str]]]:
    """Separate system messages from the conversation turns"""
    system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
    turns = [m for m in messages if m["role"] != "system"]
    return system, turns


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients"""

    provider: str = ''
    model: str = ''

    @abstractmethod
    def create(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 600,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Create a completion"""
        pass


class AnthropicClient(BaseLLMClient):
    """Anthropic Claude client"""

    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(self, api_key: str, model: str = None):
        from anthropic import Anthropic
        self.client = Anthropic(api_key=api_key)
        self.model = model or self.DEFAULT_MODEL
        self.provider = "anthropic"

    def create(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 600,
        temperature: float = 0.7,
    ) -> LLMResponse:
        system, turns = _split_system(messages)
        kwargs = {"system": system} if system else {}
        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=turns,
            **kwargs,
        )
        return LLMResponse(
            content=response.content[0].text,
            model=self.model,
            provider=self.provider,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }
        )


class OpenAIClient(BaseLLMClient):
    """OpenAI GPT client"""

    DEFAULT_MODEL = "gpt-4o"

    def __init__(self, api_key: str, model: str = None):
        from openai import OpenAI
        self.client = OpenAI(api_key=api_key)
        self.model = model or self.DEFAULT_MODEL
        self.provider = "openai"

    def create(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 600,
        temperature: float = 0.7,
    ) -> LLMResponse:
        response = self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=messages,
            response_format={"type": "json_object"},
        )
        return LLMResponse(
            content=response.choices[0].message.content or '',
            model=self.model,
            provider=self.provider,
            usage={
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            } if response.usage else None
        )


class GeminiClient(BaseLLMClient):
    """Google Gemini client"""

    DEFAULT_MODEL = "gemini-1.5-pro"

    def __init__(self, api_key: str, model: str = None):
        import google.generativeai as genai
        genai.configure(api_key=api_key)
        self.genai = genai
        self.model = model or self.DEFAULT_MODEL
        self.provider = "gemini"

    def create(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 600,
        temperature: float = 0.7,
    ) -> LLMResponse:
        system, turns = _split_system(messages)
        model = self.genai.GenerativeModel(
            self.model,
            system_instruction=system or None,
        )
        # Gemini names the assistant role "model"
        history = [
            {"role": "user" if m["role"] == "user" else "model", "parts": [m["content"]]}
            for m in turns
        ]
        generation_config = {
            "max_output_tokens": max_tokens,
            "temperature": temperature,
        }

        if len(history) == 1:
            response = model.generate_content(
                turns[0]["content"],
                generation_config=generation_config,
            )
        else:
            chat = model.start_chat(history=history[:-1])
            response = chat.send_message(
                history[-1]["parts"][0],
                generation_config=generation_config,
            )

        return LLMResponse(
            content=response.text,
            model=self.model,
            provider=self.provider,
        )


# Provider registry
PROVIDERS = {
    "anthropic": {
        "client_class": AnthropicClient,
        "env_var": "ANTHROPIC_API_KEY",
        "config_key": "anthropic_api_key",
        "key_prefix": "sk-ant-",
        "display_name": "Anthropic (Claude)",
        "url": "https://console.anthropic.com/settings/keys",
    },
    "openai": {
        "client_class": OpenAIClient,
        "env_var": "OPENAI_API_KEY",
        "config_key": "openai_api_key",
        "key_prefix": "sk-",
        "display_name": "OpenAI (GPT-4)",
        "url": "https://platform.openai.com/api-keys",
    },
    "gemini": {
        "client_class": GeminiClient,
        "env_var": "GOOGLE_API_KEY",
        "config_key": "gemini_api_key",
        "key_prefix": "AI",
        "display_name": "Google (Gemini)",
        "url": "https://aistudio.google.com/app/apikey",
    },
}


def get_available_providers() -> List[str]:
    """Get list of providers with configured API keys"""
    config = load_config()
    available = []
    for provider, info in PROVIDERS.items():
        if os.getenv(info["env_var"]) or config.get(info["config_key"]):
            available.append(provider)
    return available


def get_api_key_for_provider(provider: str) -> Optional[str]:
    """Get API key for a specific provider (environment first, then config file)"""
    if provider not in PROVIDERS:
        return None

    info = PROVIDERS[provider]

    api_key = os.getenv(info["env_var"])
    if api_key:
        return api_key

    return load_config().get(info["config_key"])


def get_preferred_provider() -> Optional[str]:
    """Get the user's preferred provider from config, or first available"""
    preferred = load_config().get("preferred_provider")

    if preferred and get_api_key_for_provider(preferred):
        return preferred

    available = get_available_providers()
    return available[0] if available else None


def create_llm_client(
    provider: str = None,
    model: str = None,
) -> Optional[BaseLLMClient]:
    """
    Create an LLM client for the specified or preferred provider.

    Args:
        provider: Provider name (anthropic, openai, gemini). If None, uses preferred.
        model: Model name override. If None, uses provider default.

    Returns:
        LLM client instance or None if no provider available.
    """
    if provider is None:
        provider = get_preferred_provider()

    if provider is None or provider not in PROVIDERS:
        return None

    api_key = get_api_key_for_provider(provider)
    if not api_key:
        return None

    client_class = PROVIDERS[provider]["client_class"]

    try:
        return client_class(api_key=api_key, model=model)
    except ImportError:
        logger.warning("%s SDK not installed. Run: pip install %s", provider, _get_package_name(provider))
        return None
    except Exception as e:
        logger.warning("Failed to initialize %s client: %s", provider, e)
        return None


def _get_package_name(provider: str) -> str:
    """Get pip package name for a provider"""
    packages = {
        "anthropic": "anthropic",
        "openai": "openai",
        "gemini": "google-generativeai",
    }
    return packages.get(provider, provider)


class UnifiedLLMClient:
    """
    Provider-agnostic wrapper used by the scenario generator.
    Resolves the preferred provider lazily from config and environment.
    """

    def __init__(self, provider: str = None, model: str = None, client: BaseLLMClient = None):
        self.client = client or create_llm_client(provider, model)
        self.provider = self.client.provider if self.client else (provider or get_preferred_provider())

    def is_available(self) -> bool:
        """Check if client is available"""
        return self.client is not None

    def complete(
        self,
        prompt: str,
        system: str = '',
        max_tokens: int = 600,
        temperature: float = 0.7,
    ) -> str:
        """Single-shot completion; raises RuntimeError when no provider is configured"""
        if not self.client:
            raise RuntimeError("No LLM provider configured")

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = self.client.create(messages=messages, max_tokens=max_tokens, temperature=temperature)
        logger.debug("LLM %s/%s usage: %s", response.provider, response.model, response.usage)
        return response.content
