"""Tests for the prompt execution pipeline."""

import asyncio
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from brandpulse.core.config import Settings
from brandpulse.core.exceptions import BadRequestError, NotFoundError, ProviderError
from brandpulse.providers.base import ProviderResult
from brandpulse.services.execution_service import execute_prompt


def _factory(result=None, error=None, delay: float = 0.0):
    """Provider factory returning a stub whose ``call`` yields ``result`` or raises ``error``."""

    async def call(prompt_text):
        if delay:
            await asyncio.sleep(delay)
        if error is not None:
            raise error
        return result

    provider = MagicMock()
    provider.call = AsyncMock(side_effect=call)
    factory = MagicMock(return_value=provider)
    return factory


def _result(text: str, model: str = "gpt-4o-mini") -> ProviderResult:
    return ProviderResult(
        answer_text=text, token_in=12, token_out=34, model=model, attempts=1, models_tried=[model], cost_usd=0.0001
    )


@pytest.fixture
def config():
    return Settings(openai_api_key="sk-test", catalog_sync_on_execution=True, provider_call_timeout=5)


@pytest.fixture
def seeded(repo):
    org = repo.add_org(name="HubSpot", domain="hubspot.com")
    prompt = repo.add_prompt(org.id, "Best CRM for a small team?")
    return org, prompt


class TestExecutePrompt:
    @pytest.mark.asyncio
    async def test_success_with_pattern_fallback(self, repo, overlay_store, config, seeded, now):
        org, prompt = seeded
        factory = _factory(_result("I recommend HubSpot and Salesforce for this."))

        outcome = await execute_prompt(
            repo, prompt.id, "openai", overlay_store, config=config, provider_factory=factory, now=lambda: now
        )

        record = outcome.record
        assert outcome.persisted is True
        assert record.status == "success"
        assert record.org_brands == ["HubSpot"]
        assert record.competitors == ["Salesforce"]
        assert record.brand_present is True
        assert 6 <= record.score <= 8
        assert record.details["parse"] == "pattern"
        assert record.details["fallback_reason"] == "no_json"
        assert record.details["sentiment"][0] == {
            "brand": "HubSpot",
            "sentiment": "positive",
            "confidence": 0.2,
            "context": "recommendation",
            "reasoning": "positive=1 negative=0",
        }
        assert record.details["insights"]["org_rank"] == 1
        assert record.token_in == 12
        assert repo.executions[-1].id == record.id
        factory.assert_called_once_with("openai", config)

    @pytest.mark.asyncio
    async def test_embedded_json_used_and_stripped_for_position(self, repo, overlay_store, config, seeded, now):
        org, prompt = seeded
        text = 'Salesforce, Zoho and HubSpot all work.\n{"brands": ["Salesforce", "Zoho", "HubSpot"]}'

        outcome = await execute_prompt(
            repo, prompt.id, "openai", overlay_store, config=config, provider_factory=_factory(_result(text))
        )

        record = outcome.record
        assert record.details["parse"] == "json"
        assert record.brands == ["Salesforce", "Zoho", "HubSpot"]
        assert record.competitors == ["Salesforce", "Zoho"]
        assert record.brand_position == 3
        assert record.details["insights"]["org_rank"] == 3
        assert "mentioned after competitors" in record.details["insights"]["opportunities"]

    @pytest.mark.asyncio
    async def test_ordinary_capitalized_words_are_not_competitors(self, repo, overlay_store, config, seeded):
        _, prompt = seeded
        text = (
            "I recommend HubSpot and Salesforce for this. "
            "Remember that in January, London teams often compare Excel exports."
        )

        outcome = await execute_prompt(
            repo, prompt.id, "openai", overlay_store, config=config, provider_factory=_factory(_result(text))
        )

        assert outcome.record.competitors == ["Salesforce"]
        assert outcome.record.score == 8

    @pytest.mark.asyncio
    async def test_generic_word_from_org_name_does_not_count_as_present(self, repo, overlay_store, config):
        org = repo.add_org(name="Acme Marketing", domain="acmemarketing.com")
        repo.add_entry(org.id, "Acme Marketing", is_org_brand=True)
        prompt = repo.add_prompt(org.id, "How should I plan a launch?")
        factory = _factory(_result("Marketing budgets matter more than channels."))

        outcome = await execute_prompt(repo, prompt.id, "openai", overlay_store, config=config, provider_factory=factory)

        assert outcome.record.org_brands == []
        assert outcome.record.brand_present is False
        assert outcome.record.score == 0

    @pytest.mark.asyncio
    async def test_no_brands(self, repo, overlay_store, config, seeded):
        _, prompt = seeded
        factory = _factory(_result("there is no single right answer here."))

        outcome = await execute_prompt(repo, prompt.id, "openai", overlay_store, config=config, provider_factory=factory)

        record = outcome.record

        assert record.brands == []
        assert record.org_brands == []
        assert record.competitors == []
        assert record.brand_present is False
        assert record.score == 0

    @pytest.mark.asyncio
    async def test_provider_failure_becomes_error_record(self, repo, overlay_store, config, seeded):
        _, prompt = seeded
        error = ProviderError("openai: rate limited", "rate_limited", True, 429)
        error.attempts = 3
        error.models_tried = ["gpt-4o-mini", "gpt-4o"]

        outcome = await execute_prompt(
            repo, prompt.id, "openai", overlay_store, config=config, provider_factory=_factory(error=error)
        )

        record = outcome.record
        assert record.status == "error"
        assert record.error == "openai: rate limited"
        assert record.score is None
        assert record.brand_present is None
        assert record.details == {"error_code": "rate_limited", "attempts": 3, "models_tried": ["gpt-4o-mini", "gpt-4o"]}
        assert outcome.persisted is True
        assert outcome.catalog_report is None

    @pytest.mark.asyncio
    async def test_caller_timeout(self, repo, overlay_store, seeded):
        _, prompt = seeded
        config = Settings(openai_api_key="sk-test", provider_call_timeout=0.01)

        outcome = await execute_prompt(
            repo, prompt.id, "openai", overlay_store, config=config, provider_factory=_factory(_result("x"), delay=1)
        )

        assert outcome.record.status == "error"
        assert outcome.record.details["error_code"] == "timeout"

    @pytest.mark.asyncio
    async def test_missing_credential_is_error_record(self, repo, overlay_store, seeded):
        _, prompt = seeded
        config = Settings(openai_api_key="")

        outcome = await execute_prompt(repo, prompt.id, "openai", overlay_store, config=config)

        assert outcome.record.status == "error"
        assert outcome.record.details["error_code"] == "missing_credential"

    @pytest.mark.asyncio
    async def test_persistence_failure_still_returns_record(self, repo, overlay_store, config, seeded):
        _, prompt = seeded
        repo.fail_insert_execution = True

        outcome = await execute_prompt(
            repo, prompt.id, "openai", overlay_store, config=config, provider_factory=_factory(_result("Use Zoho."))
        )

        assert outcome.persisted is False
        assert outcome.record.status == "success"
        assert repo.rollbacks >= 1

    @pytest.mark.asyncio
    async def test_successful_run_feeds_catalog(self, repo, overlay_store, config, seeded, now):
        org, prompt = seeded
        text = 'Pipedrive is the top pick.\n{"brands": ["Pipedrive"]}'

        outcome = await execute_prompt(
            repo, prompt.id, "openai", overlay_store, config=config, provider_factory=_factory(_result(text))
        )

        # Absent org brand -> score 0, one mention: below the gate
        assert outcome.catalog_report is not None
        assert outcome.catalog_report.inserted == 0
        assert repo.entry(org.id, "Pipedrive") is None

    @pytest.mark.asyncio
    async def test_overlay_exclusion_applied(self, repo, overlay_store, config, seeded):
        org, prompt = seeded
        await overlay_store.add_competitor_exclusion(repo, org.id, "Salesforce")

        outcome = await execute_prompt(
            repo,
            prompt.id,
            "openai",
            overlay_store,
            config=config,
            provider_factory=_factory(_result("HubSpot beats Salesforce and Zoho.")),
        )

        assert outcome.record.competitors == ["Zoho"]

    @pytest.mark.asyncio
    async def test_competitor_cap(self, repo, overlay_store, seeded):
        _, prompt = seeded
        config = Settings(openai_api_key="sk-test", max_competitors_per_execution=2, catalog_sync_on_execution=False)
        text = '{"brands": ["Salesforce", "Zoho", "Pipedrive", "Asana"]}'

        outcome = await execute_prompt(
            repo, prompt.id, "openai", overlay_store, config=config, provider_factory=_factory(_result(text))
        )

        assert outcome.record.competitors == ["Salesforce", "Zoho"]
        assert outcome.record.competitor_count == 2

    @pytest.mark.asyncio
    async def test_unsupported_provider(self, repo, overlay_store, config, seeded):
        _, prompt = seeded
        with pytest.raises(BadRequestError):
            await execute_prompt(repo, prompt.id, "anthropic", overlay_store, config=config)
        assert repo.executions == []

    @pytest.mark.asyncio
    async def test_unknown_prompt(self, repo, overlay_store, config):
        with pytest.raises(NotFoundError):
            await execute_prompt(repo, uuid.uuid4(), "openai", overlay_store, config=config)

    @pytest.mark.asyncio
    async def test_inactive_prompt(self, repo, overlay_store, config, seeded):
        org, _ = seeded
        prompt = repo.add_prompt(org.id, "Old prompt", is_active=False)
        with pytest.raises(BadRequestError):
            await execute_prompt(repo, prompt.id, "openai", overlay_store, config=config)
