"""Storage access for eras, events, and scenes.

One table per kind. Rows are returned in insertion order, which is the input
order the ordering functions use to break ties. No ordering or validation
happens here.
"""

from datetime import datetime, timezone
from typing import Any, Iterable

import aiosqlite

from chronicle.logging import get_logger
from chronicle.models import Node, NodeKind

logger = get_logger('services.node_store')

KIND_TABLES = {
    NodeKind.ERA: "eras",
    NodeKind.EVENT: "events",
    NodeKind.SCENE: "scenes",
}

# Model field -> column. ``order`` is an SQL keyword.
FIELD_COLUMNS = {
    "parent_id": "parent_id",
    "title": "title",
    "description": "description",
    "time": "time",
    "end_time": "end_time",
    "order": "sort_order",
    "position_relative_to": "position_relative_to",
    "position_type": "position_type",
    "image_url": "image_url",
}

# Deleted children first so an interrupted cascade never strands a child under a missing parent.
DELETE_SEQUENCE = (NodeKind.SCENE, NodeKind.EVENT, NodeKind.ERA)

_INSERT_COLUMNS = (
    "id, parent_id, title, description, time, end_time, sort_order, "
    "position_relative_to, position_type, image_url, created_at, updated_at"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _table(kind: NodeKind) -> str:
    table = KIND_TABLES.get(kind)
    if table is None:
        raise ValueError(f"{kind.value} nodes are not stored in the node store")
    return table


def _row_to_node(kind: NodeKind, row: dict) -> Node:
    return Node(
        id=row["id"],
        kind=kind,
        parent_id=row["parent_id"],
        title=row.get("title") or "",
        description=row.get("description") or "",
        time=row.get("time"),
        end_time=row.get("end_time"),
        order=row["sort_order"],
        position_relative_to=row.get("position_relative_to"),
        position_type=row.get("position_type"),
        image_url=row.get("image_url"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _node_params(node: Node) -> tuple:
    return (
        node.id,
        node.parent_id,
        node.title,
        node.description,
        node.time,
        node.end_time,
        node.order,
        node.position_relative_to,
        node.position_type,
        node.image_url,
        node.created_at.isoformat(),
        node.updated_at.isoformat(),
    )


class NodeStore:
    """Flat, kind-partitioned storage of timeline nodes."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def _get_db(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self.db_path)
        db.row_factory = aiosqlite.Row
        return db

    async def list_by_parent(self, kind: NodeKind, parent_id: str) -> list[Node]:
        table = _table(kind)
        db = await self._get_db()
        try:
            cursor = await db.execute(
                f"SELECT * FROM {table} WHERE parent_id = ? ORDER BY rowid ASC",
                (parent_id,),
            )
            rows = await cursor.fetchall()
            return [_row_to_node(kind, dict(row)) for row in rows]
        finally:
            await db.close()

    async def list_all(self, kind: NodeKind) -> list[Node]:
        table = _table(kind)
        db = await self._get_db()
        try:
            cursor = await db.execute(f"SELECT * FROM {table} ORDER BY rowid ASC")
            rows = await cursor.fetchall()
            return [_row_to_node(kind, dict(row)) for row in rows]
        finally:
            await db.close()

    async def get_by_id(self, kind: NodeKind, node_id: str) -> Node | None:
        table = _table(kind)
        db = await self._get_db()
        try:
            cursor = await db.execute(f"SELECT * FROM {table} WHERE id = ?", (node_id,))
            row = await cursor.fetchone()
            return _row_to_node(kind, dict(row)) if row else None
        finally:
            await db.close()

    async def insert(self, node: Node) -> Node:
        table = _table(node.kind)
        db = await self._get_db()
        try:
            await db.execute(
                f"""INSERT INTO {table} ({_INSERT_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                _node_params(node),
            )
            await db.commit()
        finally:
            await db.close()
        return node

    async def update_fields(self, kind: NodeKind, node_id: str, fields: dict[str, Any]) -> bool:
        """
        Write only the given fields of one node.

        :param kind: Node kind
        :type kind: NodeKind
        :param node_id: Node id
        :type node_id: str
        :param fields: Model field names mapped to their new values
        :type fields: dict[str, Any]
        :return: True if a row was updated
        :rtype: bool
        """
        table = _table(kind)
        unknown = set(fields) - set(FIELD_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown node fields: {', '.join(sorted(unknown))}")

        columns = {FIELD_COLUMNS[name]: value for name, value in fields.items()}
        columns["updated_at"] = _now()
        set_clause = ", ".join(f"{column} = ?" for column in columns)
        params = list(columns.values()) + [node_id]

        db = await self._get_db()
        try:
            cursor = await db.execute(f"UPDATE {table} SET {set_clause} WHERE id = ?", params)
            await db.commit()
            return cursor.rowcount > 0
        finally:
            await db.close()

    async def replace_all(self, kind: NodeKind, nodes: Iterable[Node]) -> None:
        """
        Rewrite the whole collection of one kind.

        Runs in one savepoint; on failure the previous collection is kept.

        :param kind: Node kind
        :type kind: NodeKind
        :param nodes: The complete new collection, in storage order
        :type nodes: Iterable[Node]
        :return: None
        :rtype: None
        """
        table = _table(kind)
        params = []
        for node in nodes:
            if node.kind is not kind:
                raise ValueError(f"Cannot store {node.kind.value} {node.id} in {table}")
            params.append(_node_params(node))

        db = await self._get_db()
        try:
            await db.execute("SAVEPOINT replace_all")
            try:
                await db.execute(f"DELETE FROM {table}")
                await db.executemany(
                    f"""INSERT INTO {table} ({_INSERT_COLUMNS})
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    params,
                )
                await db.execute("RELEASE SAVEPOINT replace_all")
            except Exception:
                await db.execute("ROLLBACK TO SAVEPOINT replace_all")
                await db.execute("RELEASE SAVEPOINT replace_all")
                raise
            await db.commit()
        finally:
            await db.close()
        logger.debug(f"Replaced {table} collection with {len(params)} rows")

    async def remove_by_id(self, kind: NodeKind, node_id: str) -> bool:
        table = _table(kind)
        db = await self._get_db()
        try:
            cursor = await db.execute(f"DELETE FROM {table} WHERE id = ?", (node_id,))
            await db.commit()
            return cursor.rowcount > 0
        finally:
            await db.close()

    async def remove_many(self, ids_by_kind: dict[NodeKind, list[str]]) -> int:
        """
        Delete nodes across several kinds in one transaction.

        :param ids_by_kind: Node ids to delete, grouped by kind
        :type ids_by_kind: dict[NodeKind, list[str]]
        :return: Number of rows deleted
        :rtype: int
        """
        removed = 0
        db = await self._get_db()
        try:
            await db.execute("SAVEPOINT remove_many")
            try:
                for kind in DELETE_SEQUENCE:
                    node_ids = ids_by_kind.get(kind) or []
                    if not node_ids:
                        continue
                    placeholders = ", ".join("?" for _ in node_ids)
                    cursor = await db.execute(
                        f"DELETE FROM {_table(kind)} WHERE id IN ({placeholders})",
                        node_ids,
                    )
                    removed += cursor.rowcount
                await db.execute("RELEASE SAVEPOINT remove_many")
            except Exception:
                await db.execute("ROLLBACK TO SAVEPOINT remove_many")
                await db.execute("RELEASE SAVEPOINT remove_many")
                raise
            await db.commit()
        finally:
            await db.close()
        return removed
