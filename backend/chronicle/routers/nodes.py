"""Era, event, and scene endpoints."""

from fastapi import APIRouter, HTTPException

from chronicle.dependencies import CascadeServiceDep, NodeServiceDep
from chronicle.models import (
    CascadeDeleteResult,
    Node,
    NodeCreate,
    NodeKind,
    NodeReorder,
    NodeUpdate,
)
from chronicle.services.errors import NodeNotFoundError

router = APIRouter()


@router.get("/{kind}/by-parent/{parent_id}", response_model=list[Node])
async def list_children(kind: NodeKind, parent_id: str, service: NodeServiceDep):
    try:
        return await service.list_children(kind, parent_id)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc


@router.post("/{kind}/by-parent/{parent_id}/normalize", response_model=list[Node])
async def normalize_children(kind: NodeKind, parent_id: str, service: NodeServiceDep):
    try:
        return await service.normalize_order(kind, parent_id)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc


@router.post("/{kind}", response_model=Node, status_code=201)
async def create_node(kind: NodeKind, body: NodeCreate, service: NodeServiceDep):
    try:
        return await service.create_node(kind, body)
    except NodeNotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc


@router.get("/{kind}/{node_id}", response_model=Node)
async def get_node(kind: NodeKind, node_id: str, service: NodeServiceDep):
    try:
        node = await service.get_node(kind, node_id)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
    if not node:
        raise HTTPException(404, f"{kind.value.capitalize()} not found")
    return node


@router.put("/{kind}/{node_id}", response_model=Node)
async def update_node(kind: NodeKind, node_id: str, body: NodeUpdate, service: NodeServiceDep):
    try:
        node = await service.update_fields(kind, node_id, body)
    except NodeNotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
    if not node:
        raise HTTPException(404, f"{kind.value.capitalize()} not found")
    return node


@router.post("/{kind}/{node_id}/reorder", response_model=Node)
async def reorder_node(kind: NodeKind, node_id: str, body: NodeReorder, service: NodeServiceDep):
    try:
        if body.time is not None:
            return await service.reorder_with_date_change(
                kind, node_id, body, time=body.time, end_time=body.end_time,
            )
        return await service.reorder(kind, node_id, body)
    except NodeNotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc


@router.delete("/{kind}/{node_id}", response_model=CascadeDeleteResult)
async def delete_node(kind: NodeKind, node_id: str, service: CascadeServiceDep):
    if kind is NodeKind.TIMELINE:
        raise HTTPException(400, "Delete timelines through /api/timelines")
    result = await service.delete_subtree(kind, node_id)
    if not result:
        raise HTTPException(404, f"{kind.value.capitalize()} not found")
    return result
