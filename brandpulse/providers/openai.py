"""OpenAI Chat Completions provider."""

from brandpulse.providers.base import BaseProvider

# Pricing per 1M tokens
MODEL_PRICING = {
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4.1": {"input": 2.00, "output": 8.00},
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
}


class OpenAiProvider(BaseProvider):
    name = "openai"
    api_url = "https://api.openai.com/v1/chat/completions"
    default_models = ("gpt-4o-mini", "gpt-4o")
    model_pricing = MODEL_PRICING
