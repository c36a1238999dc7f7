"""
Timeline management service.
"""

from datetime import datetime, timezone
from uuid import uuid4

import aiosqlite

from chronicle.logging import get_logger
from chronicle.models import (
    CHILD_KIND,
    Node,
    NodeKind,
    Timeline,
    TimelineCreate,
    TimelineTree,
    TimelineTreeNode,
    TimelineUpdate,
)
from chronicle.services.cascade import CascadeService
from chronicle.services.node_store import NodeStore
from chronicle.services.ordering import order_nodes

logger = get_logger('services.timeline')


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_timeline(row: dict) -> Timeline:
    return Timeline(
        id=row["id"],
        title=row["title"],
        description=row.get("description") or "",
        is_fictional=bool(row["is_fictional"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class TimelineService:
    """Service for timeline CRUD, cascade deletion, and the ordered tree view."""

    def __init__(self, db_path: str, store: NodeStore, cascade: CascadeService):
        self.db_path = db_path
        self.store = store
        self.cascade = cascade

    async def _get_db(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self.db_path)
        db.row_factory = aiosqlite.Row
        return db

    async def list_timelines(self) -> list[Timeline]:
        db = await self._get_db()
        try:
            cursor = await db.execute("SELECT * FROM timelines ORDER BY created_at DESC")
            rows = await cursor.fetchall()
            return [_row_to_timeline(dict(r)) for r in rows]
        finally:
            await db.close()

    async def get_timeline(self, timeline_id: str) -> Timeline | None:
        db = await self._get_db()
        try:
            cursor = await db.execute("SELECT * FROM timelines WHERE id = ?", (timeline_id,))
            row = await cursor.fetchone()
            return _row_to_timeline(dict(row)) if row else None
        finally:
            await db.close()

    async def create_timeline(self, data: TimelineCreate) -> Timeline:
        now = _now()
        timeline = Timeline(
            id=str(uuid4()),
            title=data.title,
            description=data.description,
            is_fictional=data.is_fictional,
            created_at=now,
            updated_at=now,
        )

        db = await self._get_db()
        try:
            await db.execute(
                """INSERT INTO timelines (id, title, description, is_fictional, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (timeline.id, timeline.title, timeline.description, int(timeline.is_fictional),
                 now, now),
            )
            await db.commit()
        finally:
            await db.close()

        logger.info(f"Created timeline: {timeline.title} ({timeline.id[:8]})")
        return timeline

    async def update_timeline(self, timeline_id: str, data: TimelineUpdate) -> Timeline | None:
        existing = await self.get_timeline(timeline_id)
        if not existing:
            return None

        fields: dict = {}
        if data.title is not None:
            fields["title"] = data.title
        if data.description is not None:
            fields["description"] = data.description
        if data.is_fictional is not None:
            fields["is_fictional"] = int(data.is_fictional)

        if not fields:
            return existing

        fields["updated_at"] = _now()
        set_clause = ", ".join(f"{k} = ?" for k in fields)
        params = list(fields.values()) + [timeline_id]

        db = await self._get_db()
        try:
            await db.execute(f"UPDATE timelines SET {set_clause} WHERE id = ?", params)
            await db.commit()
        finally:
            await db.close()

        return await self.get_timeline(timeline_id)

    async def delete_timeline(self, timeline_id: str) -> bool:
        existing = await self.get_timeline(timeline_id)
        if not existing:
            return False

        # Descendants go first so an interruption leaves a timeline without children, not orphans.
        result = await self.cascade.delete_children(NodeKind.TIMELINE, timeline_id)

        db = await self._get_db()
        try:
            cursor = await db.execute("DELETE FROM timelines WHERE id = ?", (timeline_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        finally:
            await db.close()

        if deleted:
            logger.info(f"Deleted timeline {timeline_id[:8]} and {result.total} nodes")
        return deleted

    async def resolve_timeline(self, kind: NodeKind, parent_id: str) -> Timeline | None:
        """
        Find the timeline that owns a node with the given kind and parent.

        :param kind: Kind of the node whose parent chain is walked
        :type kind: NodeKind
        :param parent_id: Parent id of that node
        :type parent_id: str
        :return: The owning timeline, or None if the chain is broken
        :rtype: Timeline | None
        """
        if kind is NodeKind.SCENE:
            event = await self.store.get_by_id(NodeKind.EVENT, parent_id)
            if not event:
                return None
            return await self.resolve_timeline(NodeKind.EVENT, event.parent_id)
        if kind is NodeKind.EVENT:
            era = await self.store.get_by_id(NodeKind.ERA, parent_id)
            if not era:
                return None
            return await self.resolve_timeline(NodeKind.ERA, era.parent_id)
        if kind is NodeKind.ERA:
            return await self.get_timeline(parent_id)
        return None

    async def _subtree(self, node: Node) -> TimelineTreeNode:
        child_kind = CHILD_KIND[node.kind]
        children: list[TimelineTreeNode] = []
        if child_kind is not None:
            for child in order_nodes(await self.store.list_by_parent(child_kind, node.id)):
                children.append(await self._subtree(child))
        return TimelineTreeNode(node=node, children=children)

    async def get_tree(self, timeline_id: str) -> TimelineTree | None:
        timeline = await self.get_timeline(timeline_id)
        if not timeline:
            return None

        eras = order_nodes(await self.store.list_by_parent(NodeKind.ERA, timeline_id))
        return TimelineTree(
            timeline=timeline,
            eras=[await self._subtree(era) for era in eras],
        )
