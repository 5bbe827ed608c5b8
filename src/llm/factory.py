"""Factory returning configured LLM client implementation."""

from __future__ import annotations

from agents.errors import ConfigurationError
from config.settings import get_settings
from llm.base import BaseLLMClient
from llm.openai_client import OpenAIClient
from llm.vllm_client import VLLMClient


def build_llm_client() -> BaseLLMClient:
    """Instantiate the configured LLM connector."""

    settings = get_settings()
    if settings.llm_provider == "openai":
        return OpenAIClient()
    if settings.llm_provider == "self_hosted":
        return VLLMClient()
    raise ConfigurationError(f"Unsupported llm_provider: {settings.llm_provider}")
