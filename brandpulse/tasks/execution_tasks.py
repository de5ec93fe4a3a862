"""Celery tasks for prompt executions.

The dispatcher fans out one ``execute_prompt`` task per
(active prompt x enabled provider). Each task runs the pipeline once in its
own event loop with its own engine. Provider failures are already turned
into error records by the pipeline, so only infrastructure errors retry.
"""

import logging
from uuid import UUID

from brandpulse.analysis.overlay import OverlayStore, TTLCache
from brandpulse.core.config import settings
from brandpulse.core.exceptions import AppError
from brandpulse.tasks.celery_app import celery_app
from brandpulse.tasks.utils import _run_async, worker_sessions

logger = logging.getLogger(__name__)

# One overlay cache per worker process
_overlay_store = OverlayStore(TTLCache(ttl_seconds=settings.overlay_cache_ttl_seconds))


async def _execute_async(prompt_id: str, provider: str) -> dict:
    from brandpulse.catalog.repository import CatalogRepository
    from brandpulse.services.execution_service import execute_prompt

    async with worker_sessions() as session_factory, session_factory() as session:
        outcome = await execute_prompt(CatalogRepository(session), UUID(prompt_id), provider, _overlay_store)
    return outcome.to_dict()


async def _find_active_prompts() -> list[str]:
    from brandpulse.catalog.repository import CatalogRepository

    async with worker_sessions() as session_factory, session_factory() as session:
        prompts = await CatalogRepository(session).list_active_prompts()
    return [str(p.id) for p in prompts]


@celery_app.task(
    bind=True,
    name="execute_prompt",
    max_retries=2,
    default_retry_delay=60,
)
def execute_prompt_task(self, prompt_id: str, provider: str):
    """Celery task: run one prompt on one provider."""
    logger.info("Executing prompt=%s provider=%s", prompt_id, provider)
    try:
        result = _run_async(_execute_async(prompt_id, provider))
    except AppError as exc:
        # Validation problems (inactive prompt, unknown provider) will not fix themselves
        logger.warning("Execution rejected for prompt %s on %s: %s", prompt_id, provider, exc.message)
        return {"status": "rejected", "error": exc.message}
    except Exception as exc:
        logger.error("Execution failed for prompt %s on %s: %s", prompt_id, provider, exc)
        raise self.retry(exc=exc)
    logger.info("Execution done for prompt %s on %s: %s", prompt_id, provider, result["execution"]["status"])
    return result


@celery_app.task(name="dispatch_executions")
def dispatch_executions_task():
    """Beat dispatcher: one execute_prompt task per active prompt and enabled provider."""
    providers = settings.enabled_provider_names()
    prompt_ids = _run_async(_find_active_prompts())
    if not prompt_ids or not providers:
        return {"dispatched": 0}

    for pid in prompt_ids:
        for provider in providers:
            execute_prompt_task.delay(pid, provider)
    logger.info("Dispatched %d prompts x %d providers", len(prompt_ids), len(providers))

    return {"dispatched": len(prompt_ids) * len(providers), "prompt_ids": prompt_ids}
