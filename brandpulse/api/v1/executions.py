"""Prompt executions: run the pipeline once, read cross-provider consensus."""

from uuid import UUID

from fastapi import APIRouter, Depends

from brandpulse.analysis.overlay import OverlayStore
from brandpulse.catalog.repository import CatalogRepository
from brandpulse.core.dependencies import get_overlay_store, get_repository
from brandpulse.core.exceptions import BadRequestError
from brandpulse.providers import PROVIDERS
from brandpulse.schemas.execution import ConsensusItemResponse, ExecuteRequest, ExecutionResponse
from brandpulse.services import catalog_service, execution_service

router = APIRouter(tags=["executions"])


@router.post("/executions", response_model=ExecutionResponse)
async def execute_prompt(
    body: ExecuteRequest,
    repo: CatalogRepository = Depends(get_repository),
    overlay_store: OverlayStore = Depends(get_overlay_store),
):
    if body.prompt_id is None:
        raise BadRequestError("prompt_id is required")
    provider = (body.provider or "").strip().lower()
    if not provider:
        raise BadRequestError("provider is required")
    if provider not in PROVIDERS:
        raise BadRequestError(f"Unsupported provider {provider!r}; expected one of: {', '.join(sorted(PROVIDERS))}")

    outcome = await execution_service.execute_prompt(repo, body.prompt_id, provider, overlay_store)
    payload = outcome.record.to_dict()
    return ExecutionResponse(**payload, persisted=outcome.persisted)


@router.get("/prompts/{prompt_id}/consensus", response_model=list[ConsensusItemResponse])
async def prompt_consensus(prompt_id: UUID, repo: CatalogRepository = Depends(get_repository)):
    items = await catalog_service.get_prompt_consensus(repo, prompt_id)
    return [
        ConsensusItemResponse(name=item.name, providers=item.providers, provider_count=item.provider_count)
        for item in items
    ]
