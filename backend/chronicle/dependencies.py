"""
Dependency injection for FastAPI routes.

Provides typed service dependencies that enable IDE navigation (Ctrl+Click).
"""

from typing import Annotated
from fastapi import Request, Depends

from chronicle.services.cascade import CascadeService
from chronicle.services.exchange import CsvExchangeService
from chronicle.services.nodes import NodeService
from chronicle.services.timeline import TimelineService


def get_timeline_service(request: Request) -> TimelineService:
    return request.app.state.timeline_service


def get_node_service(request: Request) -> NodeService:
    return request.app.state.node_service


def get_cascade_service(request: Request) -> CascadeService:
    return request.app.state.cascade_service


def get_exchange_service(request: Request) -> CsvExchangeService:
    return request.app.state.exchange_service


TimelineServiceDep = Annotated[TimelineService, Depends(get_timeline_service)]
NodeServiceDep = Annotated[NodeService, Depends(get_node_service)]
CascadeServiceDep = Annotated[CascadeService, Depends(get_cascade_service)]
ExchangeServiceDep = Annotated[CsvExchangeService, Depends(get_exchange_service)]
