"""Shared fixtures: a fresh SQLite database and the service graph per test."""

import pytest
import pytest_asyncio

from chronicle.database.db import init_db
from chronicle.models import Node, NodeCreate, NodeKind, TimelineCreate
from chronicle.services.cascade import CascadeService
from chronicle.services.exchange import CsvExchangeService
from chronicle.services.node_store import NodeStore
from chronicle.services.nodes import NodeService
from chronicle.services.timeline import TimelineService


def make_node(
    node_id: str,
    time: str | None = None,
    order: int = 0,
    relative_to: str | None = None,
    position_type: str | None = None,
    kind: NodeKind = NodeKind.EVENT,
    parent_id: str = "era-1",
) -> Node:
    return Node(
        id=node_id,
        kind=kind,
        parent_id=parent_id,
        title=node_id,
        time=time,
        order=order,
        position_relative_to=relative_to,
        position_type=position_type,
    )


def ids(nodes) -> list[str]:
    return [node.id for node in nodes]


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "chronicle.db")


@pytest_asyncio.fixture
async def store(db_path) -> NodeStore:
    await init_db(db_path)
    return NodeStore(db_path=db_path)


@pytest.fixture
def cascade(store) -> CascadeService:
    return CascadeService(store=store)


@pytest.fixture
def timelines(db_path, store, cascade) -> TimelineService:
    return TimelineService(db_path=db_path, store=store, cascade=cascade)


@pytest.fixture
def nodes(store, timelines) -> NodeService:
    return NodeService(store=store, timelines=timelines)


@pytest.fixture
def exchange(store, timelines) -> CsvExchangeService:
    return CsvExchangeService(store=store, timelines=timelines, max_rows=100)


@pytest_asyncio.fixture
async def timeline(timelines):
    return await timelines.create_timeline(TimelineCreate(title="World War II", is_fictional=False))


@pytest_asyncio.fixture
async def fictional_timeline(timelines):
    return await timelines.create_timeline(TimelineCreate(title="The Long Dark", is_fictional=True))


@pytest_asyncio.fixture
async def era(nodes, timeline):
    return await nodes.create_node(NodeKind.ERA, NodeCreate(parent_id=timeline.id, title="Early War"))
