from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from app.contracts.profile_search import ProfileSearchOutput, SearchFilters, SourceBackend
from app.routers._responses import DataEnvelope, ErrorEnvelope, search_failure_response
from app.services.profile_export import export_filename, profiles_to_csv
from app.services.profile_search_operations import execute_profile_search
from app.services.search_history import SearchHistory

router = APIRouter()

_FAILURE_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorEnvelope},
    500: {"model": ErrorEnvelope},
    502: {"model": ErrorEnvelope},
}


class ProfileSearchRequest(BaseModel):
    job_title: str | None = None
    region: str | None = None
    company_sector: str | None = None
    company_type: str | None = None
    company_size: str | None = None
    additional_titles: list[str] | None = None
    num_results: int | None = Field(default=None, ge=1, le=100)
    get_all_pages: bool | None = None
    scoring: str | None = None

    def to_filters(self) -> SearchFilters:
        # Exhaustive unless the caller asks for a specific result count.
        get_all_pages = self.get_all_pages if self.get_all_pages is not None else self.num_results is None
        return SearchFilters(
            job_title=self.job_title,
            region=self.region,
            company_sector=self.company_sector,
            company_type=self.company_type,
            company_size=self.company_size,
            additional_titles=tuple(self.additional_titles or ()),
            page_mode="exhaustive" if get_all_pages else "bounded",
            num_results=self.num_results or 10,
        )


def get_search_history(request: Request) -> SearchHistory:
    return request.app.state.search_history


async def _search(
    payload: ProfileSearchRequest,
    backend: SourceBackend,
    history: SearchHistory,
) -> DataEnvelope | Response:
    result = await execute_profile_search(
        filters=payload.to_filters(),
        backend=backend,
        history=history,
        scoring=payload.scoring,
    )
    if result["status"] == "failed":
        return search_failure_response(result)
    return DataEnvelope(
        data={
            **result["output"],
            "status": result["status"],
            "total_results": result["output"]["result_count"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


@router.post("/profiles", response_model=DataEnvelope, responses=_FAILURE_RESPONSES)
async def search_profiles(
    payload: ProfileSearchRequest,
    history: SearchHistory = Depends(get_search_history),
):
    return await _search(payload, SourceBackend.PRIMARY, history)


@router.post("/profiles-serpapi", response_model=DataEnvelope, responses=_FAILURE_RESPONSES)
async def search_profiles_serpapi(
    payload: ProfileSearchRequest,
    history: SearchHistory = Depends(get_search_history),
):
    return await _search(payload, SourceBackend.ALTERNATE, history)


@router.post("/profiles/export", responses=_FAILURE_RESPONSES)
async def export_profiles(
    payload: ProfileSearchRequest,
    backend: SourceBackend = Query(default=SourceBackend.PRIMARY),
    history: SearchHistory = Depends(get_search_history),
):
    filters = payload.to_filters()
    result = await execute_profile_search(filters=filters, backend=backend, history=history, scoring=payload.scoring)
    if result["status"] == "failed":
        return search_failure_response(result)

    output = ProfileSearchOutput.model_validate(result["output"])
    return Response(
        content=profiles_to_csv(output.profiles, filters),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get("/history", response_model=DataEnvelope)
async def list_search_history(
    limit: int = Query(default=10),
    history: SearchHistory = Depends(get_search_history),
) -> DataEnvelope:
    searches = [record.model_dump(mode="json") for record in history.recent(limit)]
    return DataEnvelope(data={"searches": searches, "count": len(searches)})
