"""Prompt execution pipeline: one (tracked prompt x provider) unit of work.

Steps:
  1. Validate request (provider name, prompt exists and is active)
  2. Provider call under a caller timeout (retries + model fallback inside)
  3. Extract candidate names (embedded JSON, else capitalized-word patterns)
  4. Classify against the org's brand profile, catalog and overlay
  5. Score visibility
  6. Persist one ProviderExecution row (success or error)
  7. Optionally fold the org's window into the competitor catalog

Provider failures never escape: they become a ``status="error"`` record.
Only request validation errors are raised to the caller. A failed insert is
logged and does not undo the (already paid for) provider call.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from brandpulse.analysis.classifier import ClassificationResult, Label, classify
from brandpulse.analysis.extractor import extract, strip_embedded_json
from brandpulse.analysis.insights import competitive_insights
from brandpulse.analysis.lexicon import Lexicon, get_lexicon
from brandpulse.analysis.overlay import OverlayStore
from brandpulse.analysis.scoring import score_visibility
from brandpulse.analysis.sentiment import analyze_brand_sentiment, competitive_positioning
from brandpulse.analysis.types import BrandProfile, ExecutionRecord, PromptInfo
from brandpulse.catalog.sync import ExecutionObservation, SyncReport, merge_observations
from brandpulse.core.config import Settings, settings
from brandpulse.core.exceptions import BadRequestError, NotFoundError, PersistenceError, ProviderError
from brandpulse.core.metrics import EXTRACTION_FALLBACKS, PIPELINE_EXECUTIONS
from brandpulse.providers import BaseProvider, ProviderResult, build_provider, is_supported_provider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str, Settings], BaseProvider]


@dataclass
class ExecutionOutcome:
    record: ExecutionRecord
    persisted: bool
    classification: ClassificationResult | None = None
    catalog_report: SyncReport | None = None

    def to_dict(self) -> dict:
        return {
            "execution": self.record.to_dict(),
            "persisted": self.persisted,
            "catalog": self.catalog_report.to_dict() if self.catalog_report else None,
        }


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


async def _load_prompt(repo, prompt_id: uuid.UUID) -> PromptInfo:
    prompt = await repo.get_prompt(prompt_id)
    if prompt is None:
        raise NotFoundError(f"Prompt {prompt_id} not found")
    if not prompt.is_active:
        raise BadRequestError(f"Prompt {prompt_id} is not active")
    if not prompt.text or not prompt.text.strip():
        raise BadRequestError(f"Prompt {prompt_id} has no text")
    return prompt


async def _call_provider(
    provider_name: str,
    prompt_text: str,
    config: Settings,
    provider_factory: ProviderFactory,
) -> ProviderResult:
    provider = provider_factory(provider_name, config)
    try:
        return await asyncio.wait_for(provider.call(prompt_text), timeout=config.provider_call_timeout)
    except asyncio.TimeoutError as e:
        raise ProviderError(
            f"{provider_name}: no answer within {config.provider_call_timeout:.0f}s",
            "timeout",
            False,
        ) from e


async def _analyze(
    repo,
    prompt: PromptInfo,
    result: ProviderResult,
    record: ExecutionRecord,
    overlay_store: OverlayStore,
    config: Settings,
    lexicon: Lexicon,
) -> ClassificationResult:
    extraction = extract(result.answer_text, lexicon)
    if extraction.fallback_reason is not None:
        EXTRACTION_FALLBACKS.labels(reason=extraction.fallback_reason).inc()
        logger.info("Extraction fell back to patterns (%s)", extraction.fallback_reason)

    org = await repo.get_organization(prompt.org_id)
    catalog = await repo.load_catalog(prompt.org_id)
    overlay = await overlay_store.get(repo, prompt.org_id)
    profile = BrandProfile.build(org, catalog, overlay)

    policy = config.thresholds()
    classification = classify(
        extraction.names,
        profile,
        catalog=catalog,
        overlay=overlay,
        lexicon=lexicon,
        min_confidence=policy.min_confidence,
    )
    competitors = classification.competitors[: policy.max_competitors_per_execution]
    prose = strip_embedded_json(result.answer_text)
    visibility = score_visibility(classification.org_brands, competitors, prose)
    sentiments = [analyze_brand_sentiment(b, prose) for b in classification.org_brands + competitors]
    insights = competitive_insights(classification.org_brands, competitors, prose, sentiments)

    record.brands = list(extraction.names)
    record.org_brands = list(classification.org_brands)
    record.competitors = competitors
    record.competitor_count = visibility.competitor_count
    record.brand_present = visibility.brand_present
    record.brand_position = visibility.brand_position
    record.score = visibility.score
    record.details.update(
        {
            "parse": extraction.method,
            "fallback_reason": extraction.fallback_reason,
            "discarded": sum(1 for d in classification.decisions if d.label == Label.DISCARD),
            "sentiment": [s.to_dict() for s in sentiments],
            "positioning": competitive_positioning(classification.org_brands, sentiments).to_dict(),
            "insights": insights.to_dict(),
        }
    )
    return classification


async def _persist(repo, record: ExecutionRecord) -> bool:
    try:
        record.id = await repo.insert_execution(record)
        await repo.commit()
        return True
    except Exception as e:
        await repo.rollback()
        err = PersistenceError(f"Failed to store execution for prompt {record.prompt_id}: {e}")
        logger.error("%s", err, exc_info=True)
        return False


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


async def execute_prompt(
    repo,
    prompt_id: uuid.UUID,
    provider_name: str,
    overlay_store: OverlayStore,
    *,
    config: Settings = settings,
    provider_factory: ProviderFactory = build_provider,
    lexicon: Lexicon | None = None,
    now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> ExecutionOutcome:
    """Run the pipeline once and always return the record it produced."""
    if not provider_name or not is_supported_provider(provider_name):
        raise BadRequestError(f"Unsupported provider: {provider_name!r}")
    prompt = await _load_prompt(repo, prompt_id)
    lexicon = lexicon or get_lexicon(config.lexicon_path)
    log_extra = {"org_id": prompt.org_id, "prompt_id": prompt.id, "provider": provider_name}

    record = ExecutionRecord(
        org_id=prompt.org_id,
        prompt_id=prompt.id,
        provider=provider_name,
        status="success",
        run_at=now(),
    )
    classification: ClassificationResult | None = None

    # Step 2: provider call
    logger.info("Executing prompt %s on %s", prompt.id, provider_name, extra=log_extra)
    try:
        result = await _call_provider(provider_name, prompt.text, config, provider_factory)
    except ProviderError as e:
        logger.warning("Provider %s failed for prompt %s: %s (%s)", provider_name, prompt.id, e.message, e.code)
        record.status = "error"
        record.error = e.message
        record.details = {"error_code": e.code, "attempts": e.attempts, "models_tried": list(e.models_tried)}
        result = None

    # Steps 3-5: analysis
    if result is not None:
        record.model = result.model
        record.answer_text = result.answer_text
        record.token_in = result.token_in
        record.token_out = result.token_out
        record.details = {
            "attempts": result.attempts,
            "models_tried": list(result.models_tried),
            "cost_usd": result.cost_usd,
        }
        if result.citations:
            record.details["citations"] = list(result.citations)
        try:
            classification = await _analyze(repo, prompt, result, record, overlay_store, config, lexicon)
        except Exception as e:
            logger.exception("Analysis failed for prompt %s on %s", prompt.id, provider_name)
            record.status = "error"
            record.error = f"Analysis failed: {e}"
            record.brands, record.org_brands, record.competitors = [], [], []
            record.competitor_count = 0
            record.brand_present = record.brand_position = record.score = None

    # Step 6: persistence
    persisted = await _persist(repo, record)
    PIPELINE_EXECUTIONS.labels(provider=provider_name, status=record.status).inc()
    logger.info(
        "Prompt %s on %s: status=%s score=%s org_brands=%d competitors=%d",
        prompt.id,
        provider_name,
        record.status,
        record.score,
        len(record.org_brands),
        record.competitor_count,
        extra=log_extra,
    )

    # Step 7: catalog
    outcome = ExecutionOutcome(record=record, persisted=persisted, classification=classification)
    if record.status == "success" and record.competitors and config.catalog_sync_on_execution:
        extra = []
        if not persisted:
            extra = [ExecutionObservation(tuple(record.competitors), record.score, record.run_at)]
        try:
            outcome.catalog_report = await asyncio.wait_for(
                merge_observations(repo, prompt.org_id, config.thresholds(), now=now(), extra=extra, lexicon=lexicon),
                timeout=config.catalog_sync_timeout,
            )
        except (PersistenceError, NotFoundError, asyncio.TimeoutError) as e:
            logger.warning("Catalog merge skipped for org %s: %s", prompt.org_id, str(e) or "timeout")

    return outcome
