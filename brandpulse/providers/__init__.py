"""LLM provider adapters and the provider registry."""

from __future__ import annotations

from brandpulse.core.config import Settings, settings
from brandpulse.core.exceptions import ProviderError
from brandpulse.providers.base import BaseProvider, ProviderResult, RetryPolicy
from brandpulse.providers.gemini import GeminiProvider
from brandpulse.providers.openai import OpenAiProvider
from brandpulse.providers.perplexity import PerplexityProvider

PROVIDERS: dict[str, type[BaseProvider]] = {
    "openai": OpenAiProvider,
    "perplexity": PerplexityProvider,
    "gemini": GeminiProvider,
}


def is_supported_provider(name: str) -> bool:
    return name in PROVIDERS


def get_provider(name: str, api_key: str, **kwargs) -> BaseProvider:
    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        raise ProviderError(f"Unsupported provider: {name}", "unsupported_provider", False)
    return provider_cls(api_key=api_key, **kwargs)


def build_provider(name: str, config: Settings = settings) -> BaseProvider:
    """Provider configured from settings: credential, model chain, retry policy."""
    return get_provider(
        name,
        config.provider_api_key(name),
        models=config.provider_models(name) or None,
        retry=RetryPolicy(
            max_attempts=config.provider_max_attempts,
            base_delay=config.provider_base_retry_delay,
            max_delay=config.provider_max_retry_delay,
        ),
        # A single slow attempt must not use up the whole call budget
        request_timeout=min(config.provider_request_timeout, config.provider_call_timeout),
    )


__all__ = [
    "PROVIDERS",
    "BaseProvider",
    "ProviderResult",
    "RetryPolicy",
    "build_provider",
    "get_provider",
    "is_supported_provider",
]
