import copy
import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from brandpulse.core.config import settings

# Override settings for tests
settings.app_env = "development"
settings.openai_api_key = "sk-test-fake-key"
settings.perplexity_api_key = "pplx-test-fake-key"
settings.gemini_api_key = "gemini-test-fake-key"
settings.lexicon_path = ""

from brandpulse.analysis.overlay import OverlayStore, TTLCache  # noqa: E402
from brandpulse.analysis.types import (  # noqa: E402
    CatalogBrand,
    ExecutionRecord,
    OrganizationInfo,
    OverlaySnapshot,
    PromptInfo,
)
from brandpulse.catalog.sync import CatalogPlan, ExecutionObservation  # noqa: E402
from brandpulse.core.dependencies import get_repository  # noqa: E402
from brandpulse.db.postgres import get_db  # noqa: E402
from brandpulse.main import app  # noqa: E402


class FakeRepository:
    """In-memory stand-in for ``CatalogRepository``.

    Returns copies on every read so callers cannot mutate stored state
    without going through a write method.
    """

    def __init__(self):
        self.organizations: dict[uuid.UUID, OrganizationInfo] = {}
        self.prompts: dict[uuid.UUID, PromptInfo] = {}
        self.executions: list[ExecutionRecord] = []
        self.catalog: dict[uuid.UUID, list[CatalogBrand]] = {}
        self.overlays: dict[uuid.UUID, OverlaySnapshot] = {}
        self.commits = 0
        self.rollbacks = 0
        self.fail_insert_execution = False
        self.fail_apply_plan = False
        self.fail_update_entry = False

    # ── Seeding helpers ──────────────────────────────────────────

    def add_org(self, name: str = "Acme", domain: str | None = "acme.com") -> OrganizationInfo:
        org = OrganizationInfo(id=uuid.uuid4(), name=name, domain=domain)
        self.organizations[org.id] = org
        self.catalog.setdefault(org.id, [])
        return org

    def add_prompt(self, org_id: uuid.UUID, text: str = "Best CRM for startups?", is_active: bool = True) -> PromptInfo:
        prompt = PromptInfo(id=uuid.uuid4(), org_id=org_id, text=text, is_active=is_active)
        self.prompts[prompt.id] = prompt
        return prompt

    def add_entry(self, org_id: uuid.UUID, name: str, **kwargs) -> CatalogBrand:
        entry = CatalogBrand(id=kwargs.pop("id", None) or uuid.uuid4(), name=name, **kwargs)
        self.catalog.setdefault(org_id, []).append(entry)
        return entry

    def add_execution(
        self,
        org_id: uuid.UUID,
        competitors: list[str],
        score: int | None,
        run_at: datetime,
        provider: str = "openai",
        prompt_id: uuid.UUID | None = None,
        status: str = "success",
    ) -> ExecutionRecord:
        record = ExecutionRecord(
            id=uuid.uuid4(),
            org_id=org_id,
            prompt_id=prompt_id or uuid.uuid4(),
            provider=provider,
            status=status,
            competitors=list(competitors),
            competitor_count=len(competitors),
            score=score,
            run_at=run_at,
        )
        self.executions.append(record)
        return record

    def entry(self, org_id: uuid.UUID, name: str) -> CatalogBrand | None:
        return next((e for e in self.catalog.get(org_id, []) if e.name == name), None)

    # ── Transaction ──────────────────────────────────────────────

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    # ── Organizations & prompts ──────────────────────────────────

    async def get_organization(self, org_id):
        return self.organizations.get(org_id)

    async def list_organization_ids(self):
        return list(self.organizations)

    async def get_prompt(self, prompt_id):
        return self.prompts.get(prompt_id)

    async def list_active_prompts(self):
        return [p for p in self.prompts.values() if p.is_active]

    # ── Executions ───────────────────────────────────────────────

    async def insert_execution(self, record: ExecutionRecord) -> uuid.UUID:
        if self.fail_insert_execution:
            raise RuntimeError("connection lost")
        stored = copy.deepcopy(record)
        stored.id = stored.id or uuid.uuid4()
        self.executions.append(stored)
        return stored.id

    async def load_observations(self, org_id, since):
        return [
            ExecutionObservation(competitors=tuple(r.competitors), score=r.score, run_at=r.run_at)
            for r in self.executions
            if r.org_id == org_id and r.status == "success" and r.run_at >= since
        ]

    async def load_recent_competitors(self, prompt_id, since):
        return [
            (r.provider, list(r.competitors))
            for r in sorted(self.executions, key=lambda r: r.run_at)
            if r.prompt_id == prompt_id and r.status == "success" and r.run_at >= since
        ]

    # ── Catalog ──────────────────────────────────────────────────

    async def load_catalog(self, org_id, limit=None):
        entries = copy.deepcopy(self.catalog.get(org_id, []))
        return entries[:limit] if limit is not None else entries

    async def get_entries(self, org_id, entry_ids):
        return [copy.deepcopy(e) for e in self.catalog.get(org_id, []) if e.id in entry_ids]

    async def insert_entry(self, org_id, entry):
        stored = copy.deepcopy(entry)
        stored.id = stored.id or uuid.uuid4()
        stored.first_detected_at = stored.first_detected_at or datetime.now(timezone.utc)
        stored.last_seen_at = stored.last_seen_at or stored.first_detected_at
        self.catalog.setdefault(org_id, []).append(stored)
        return copy.deepcopy(stored)

    async def update_entry(self, entry):
        if self.fail_update_entry:
            raise RuntimeError("deadlock detected")
        for entries in self.catalog.values():
            for i, existing in enumerate(entries):
                if existing.id == entry.id:
                    entries[i] = copy.deepcopy(entry)

    async def delete_entries(self, org_id, entry_ids):
        before = len(self.catalog.get(org_id, []))
        self.catalog[org_id] = [e for e in self.catalog.get(org_id, []) if e.id not in set(entry_ids)]
        return before - len(self.catalog[org_id])

    async def apply_catalog_plan(self, org_id, plan: CatalogPlan):
        if self.fail_apply_plan:
            raise RuntimeError("statement timeout")
        await self.delete_entries(org_id, plan.deletes)
        for upd in plan.updates:
            for e in self.catalog[org_id]:
                if e.id == upd.entry_id:
                    e.last_seen_at = upd.last_seen_at
                    e.total_appearances = max(e.total_appearances, upd.total_appearances)
                    e.average_score = upd.average_score
        for entry in plan.inserts:
            await self.insert_entry(org_id, entry)

    # ── Overlay ──────────────────────────────────────────────────

    async def load_overlay(self, org_id):
        overlay = self.overlays.get(org_id)
        return copy.deepcopy(overlay) if overlay else OverlaySnapshot(org_id=org_id)

    async def save_overlay(self, overlay):
        overlay.updated_at = datetime.now(timezone.utc)
        self.overlays[overlay.org_id] = copy.deepcopy(overlay)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def override_get_db() -> AsyncGenerator[MagicMock, None]:
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    yield session


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def repo() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def overlay_store(clock) -> OverlayStore:
    return OverlayStore(TTLCache(ttl_seconds=300, clock=clock))


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def client(repo, overlay_store) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_repository] = lambda: repo
    app.state.overlay_store = overlay_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.pop(get_repository, None)
