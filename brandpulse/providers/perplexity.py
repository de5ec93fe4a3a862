"""Perplexity provider (OpenAI-compatible API with native citations)."""

from brandpulse.providers.base import BaseProvider, ProviderResult

# Pricing per 1M tokens
MODEL_PRICING = {
    "sonar": {"input": 1.00, "output": 1.00},
    "sonar-pro": {"input": 3.00, "output": 15.00},
    "sonar-reasoning": {"input": 1.00, "output": 5.00},
}


class PerplexityProvider(BaseProvider):
    """Perplexity returns search citations next to the answer.

    Citations are not part of the brand pipeline; they are kept on the
    result for the execution metadata.
    """

    name = "perplexity"
    api_url = "https://api.perplexity.ai/chat/completions"
    default_models = ("sonar", "sonar-pro")
    model_pricing = MODEL_PRICING
    system_prompt = "Be precise and concise. Name specific products and companies where relevant."

    def parse_response(self, data: dict, model: str) -> ProviderResult:
        result = super().parse_response(data, model)
        result.citations = list(data.get("citations") or [])
        return result
