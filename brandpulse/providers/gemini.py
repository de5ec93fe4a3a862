"""Google Gemini provider via the OpenAI-compatible endpoint."""

from brandpulse.core.exceptions import ProviderError
from brandpulse.providers.base import BaseProvider, ProviderResult

# Pricing per 1M tokens
MODEL_PRICING = {
    "gemini-2.0-flash": {"input": 0.10, "output": 0.40},
    "gemini-1.5-flash": {"input": 0.075, "output": 0.30},
    "gemini-2.5-flash": {"input": 0.30, "output": 2.50},
}


class GeminiProvider(BaseProvider):
    name = "gemini"
    api_url = "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions"
    default_models = ("gemini-2.0-flash", "gemini-1.5-flash")
    model_pricing = MODEL_PRICING

    def parse_response(self, data: dict, model: str) -> ProviderResult:
        choices = data.get("choices") or []
        # Safety-filtered answers come back with no content; let the chain move on
        if choices and choices[0].get("finish_reason") in ("content_filter", "safety"):
            raise ProviderError(f"gemini/{model}: answer blocked by safety filter", "empty_answer", False)
        return super().parse_response(data, model)
