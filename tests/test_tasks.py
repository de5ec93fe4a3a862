"""Tests for Celery tasks (run synchronously, storage patched)."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

from brandpulse.core.exceptions import NotFoundError
from brandpulse.tasks.celery_app import celery_app
from brandpulse.tasks.execution_tasks import dispatch_executions_task, execute_prompt_task
from brandpulse.tasks.maintenance_tasks import sync_competitor_catalogs_task
from brandpulse.tasks.utils import _run_async


class TestCeleryApp:
    def test_beat_schedule(self):
        tasks = {entry["task"] for entry in celery_app.conf.beat_schedule.values()}
        assert tasks == {"dispatch_executions", "sync_competitor_catalogs"}

    def test_includes_task_modules(self):
        assert "brandpulse.tasks.execution_tasks" in celery_app.conf.include
        assert "brandpulse.tasks.maintenance_tasks" in celery_app.conf.include


class TestRunAsync:
    def test_runs_coroutine_on_fresh_loop(self):
        async def answer():
            return 42

        assert _run_async(answer()) == 42


class TestDispatchExecutions:
    def test_fans_out_prompt_by_provider(self):
        prompt_ids = [str(uuid.uuid4()), str(uuid.uuid4())]
        with (
            patch("brandpulse.tasks.execution_tasks._find_active_prompts", new=AsyncMock(return_value=prompt_ids)),
            patch("brandpulse.tasks.execution_tasks.settings") as mock_settings,
            patch("brandpulse.tasks.execution_tasks.execute_prompt_task") as mock_task,
        ):
            mock_settings.enabled_provider_names.return_value = ["openai", "gemini"]
            result = dispatch_executions_task()

        assert result["dispatched"] == 4
        assert mock_task.delay.call_count == 4
        mock_task.delay.assert_any_call(prompt_ids[0], "gemini")

    def test_nothing_to_dispatch(self):
        with (
            patch("brandpulse.tasks.execution_tasks._find_active_prompts", new=AsyncMock(return_value=[])),
            patch("brandpulse.tasks.execution_tasks.execute_prompt_task") as mock_task,
        ):
            assert dispatch_executions_task() == {"dispatched": 0}
        mock_task.delay.assert_not_called()


class TestExecutePromptTask:
    def test_returns_outcome(self):
        payload = {"execution": {"status": "success"}, "persisted": True, "catalog": None}
        with patch("brandpulse.tasks.execution_tasks._execute_async", new=AsyncMock(return_value=payload)):
            result = execute_prompt_task.apply(args=[str(uuid.uuid4()), "openai"]).get()
        assert result == payload

    def test_validation_error_not_retried(self):
        with patch(
            "brandpulse.tasks.execution_tasks._execute_async",
            new=AsyncMock(side_effect=NotFoundError("Prompt not found")),
        ):
            result = execute_prompt_task.apply(args=[str(uuid.uuid4()), "openai"]).get()
        assert result == {"status": "rejected", "error": "Prompt not found"}


class TestSyncCompetitorCatalogs:
    def test_reports_summary(self):
        summary = MagicMock()
        summary.to_dict.return_value = {"orgs_processed": 3, "orgs_failed": 1}
        engine = MagicMock()
        engine.dispose = AsyncMock()
        with (
            patch("brandpulse.tasks.utils.create_async_engine", return_value=engine),
            patch("brandpulse.tasks.utils.async_sessionmaker", return_value=MagicMock()),
            patch("brandpulse.services.catalog_service.sync_all_catalogs", new=AsyncMock(return_value=summary)),
        ):
            result = sync_competitor_catalogs_task()

        assert result == {"status": "ok", "orgs_processed": 3, "orgs_failed": 1}
        engine.dispose.assert_awaited_once()

    def test_infrastructure_failure_reported(self):
        with patch("brandpulse.tasks.utils.create_async_engine", side_effect=RuntimeError("no db")):
            result = sync_competitor_catalogs_task()
        assert result == {"status": "error", "error": "no db"}
