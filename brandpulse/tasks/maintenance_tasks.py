"""Celery tasks for catalog maintenance."""

import logging

from brandpulse.tasks.celery_app import celery_app
from brandpulse.tasks.utils import _run_async, worker_sessions

logger = logging.getLogger(__name__)


async def _sync_all_async() -> dict:
    from brandpulse.services.catalog_service import sync_all_catalogs

    async with worker_sessions() as session_factory:
        summary = await sync_all_catalogs(session_factory)
    return summary.to_dict()


@celery_app.task(name="sync_competitor_catalogs")
def sync_competitor_catalogs_task():
    """Fold the lookback window of executions into every organization's catalog.

    Runs daily via Celery Beat, after the execution dispatcher.
    Per-organization failures are counted in the result, not raised.
    """
    logger.info("Syncing competitor catalogs...")
    try:
        result = _run_async(_sync_all_async())
    except Exception as exc:
        logger.error("Catalog sync sweep failed: %s", exc)
        return {"status": "error", "error": str(exc)}
    logger.info("Catalog sync sweep finished: %s", result)
    return {"status": "ok", **result}
