"""Timeline management endpoints."""

from fastapi import APIRouter, Body, HTTPException
from fastapi.responses import PlainTextResponse

from chronicle.dependencies import ExchangeServiceDep, TimelineServiceDep
from chronicle.models import (
    Timeline,
    TimelineCreate,
    TimelineImportResult,
    TimelineTree,
    TimelineUpdate,
)

router = APIRouter()


@router.get("/", response_model=list[Timeline])
async def list_timelines(service: TimelineServiceDep):
    return await service.list_timelines()


@router.post("/", response_model=Timeline, status_code=201)
async def create_timeline(body: TimelineCreate, service: TimelineServiceDep):
    return await service.create_timeline(body)


@router.post("/import", response_model=TimelineImportResult, status_code=201)
async def import_timeline(
    service: ExchangeServiceDep,
    body: str = Body(..., media_type="text/csv"),
):
    try:
        return await service.import_csv(body)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc


@router.get("/{timeline_id}", response_model=Timeline)
async def get_timeline(timeline_id: str, service: TimelineServiceDep):
    timeline = await service.get_timeline(timeline_id)
    if not timeline:
        raise HTTPException(404, "Timeline not found")
    return timeline


@router.put("/{timeline_id}", response_model=Timeline)
async def update_timeline(timeline_id: str, body: TimelineUpdate, service: TimelineServiceDep):
    timeline = await service.update_timeline(timeline_id, body)
    if not timeline:
        raise HTTPException(404, "Timeline not found")
    return timeline


@router.delete("/{timeline_id}")
async def delete_timeline(timeline_id: str, service: TimelineServiceDep):
    deleted = await service.delete_timeline(timeline_id)
    if not deleted:
        raise HTTPException(404, "Timeline not found")
    return {"status": "deleted", "timeline_id": timeline_id}


@router.get("/{timeline_id}/tree", response_model=TimelineTree)
async def get_timeline_tree(timeline_id: str, service: TimelineServiceDep):
    tree = await service.get_tree(timeline_id)
    if not tree:
        raise HTTPException(404, "Timeline not found")
    return tree


@router.get("/{timeline_id}/export", response_class=PlainTextResponse)
async def export_timeline(timeline_id: str, service: ExchangeServiceDep):
    csv_text = await service.export_csv(timeline_id)
    if csv_text is None:
        raise HTTPException(404, "Timeline not found")
    return PlainTextResponse(
        csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="timeline_{timeline_id}.csv"'},
    )
