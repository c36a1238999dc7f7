"""Create, update, reorder, and renumber eras, events, and scenes.

Every operation reads the current rows, computes new field values, and writes
back only the fields it changed. Writes are last-writer-wins per field; the
one whole-collection rewrite is ``normalize_order``.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from chronicle.logging import get_logger
from chronicle.models import (
    PARENT_KIND,
    STORED_KINDS,
    Node,
    NodeCreate,
    NodeKind,
    NodeReorder,
    NodeUpdate,
    PositionType,
    TimeKind,
    normalize_type,
)
from chronicle.services.errors import InvalidTimeValueError, NodeNotFoundError
from chronicle.services.node_store import NodeStore
from chronicle.services.ordering import normalized_orders, order_nodes
from chronicle.services.time_model import classify, has_time, require_absolute
from chronicle.services.timeline import TimelineService

logger = get_logger('services.nodes')

VALID_POSITION_TYPES = {PositionType.BEFORE.value, PositionType.AFTER.value}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_stored_kind(kind: NodeKind) -> NodeKind:
    if kind not in STORED_KINDS:
        raise ValueError("kind must be one of: era, event, scene")
    return kind


def _normalize_position_type(position_type: str) -> str:
    normalized = normalize_type(position_type)
    if normalized not in VALID_POSITION_TYPES:
        raise ValueError("position_type must be one of: before, after")
    return normalized


class NodeService:
    """Applies node mutations and drag-and-drop moves against the node store."""

    def __init__(self, store: NodeStore, timelines: TimelineService):
        self.store = store
        self.timelines = timelines

    async def _parent_exists(self, kind: NodeKind, parent_id: str) -> bool:
        parent_kind = PARENT_KIND[kind]
        if parent_kind is NodeKind.TIMELINE:
            return await self.timelines.get_timeline(parent_id) is not None
        return await self.store.get_by_id(parent_kind, parent_id) is not None

    async def _require_parent(self, kind: NodeKind, parent_id: str) -> None:
        if not await self._parent_exists(kind, parent_id):
            raise NodeNotFoundError(PARENT_KIND[kind], parent_id)

    async def list_children(self, kind: NodeKind, parent_id: str) -> list[Node]:
        _require_stored_kind(kind)
        return order_nodes(await self.store.list_by_parent(kind, parent_id))

    async def get_node(self, kind: NodeKind, node_id: str) -> Node | None:
        _require_stored_kind(kind)
        return await self.store.get_by_id(kind, node_id)

    async def create_node(self, kind: NodeKind, data: NodeCreate) -> Node:
        _require_stored_kind(kind)
        await self._require_parent(kind, data.parent_id)

        position_type = None
        if data.position_relative_to:
            position_type = _normalize_position_type(data.position_type or PositionType.AFTER.value)

        now = _now()
        node = Node(
            id=str(uuid4()),
            kind=kind,
            parent_id=data.parent_id,
            title=data.title,
            description=data.description,
            time=data.time,
            end_time=data.end_time if kind is NodeKind.ERA else None,
            order=data.order,
            position_relative_to=data.position_relative_to or None,
            position_type=position_type,
            image_url=data.image_url,
            created_at=now,
            updated_at=now,
        )
        await self.store.insert(node)
        logger.info(f"Created {kind.value}: {node.title or '(untitled)'} ({node.id[:8]})")
        return node

    async def update_fields(
        self,
        kind: NodeKind,
        node_id: str,
        data: NodeUpdate | dict[str, Any],
    ) -> Node | None:
        """
        Merge a patch into an existing node.

        Only fields explicitly present in the patch are written, so a field can
        be cleared by sending null.

        :param kind: Node kind
        :type kind: NodeKind
        :param node_id: Node id
        :type node_id: str
        :param data: Patch payload
        :type data: NodeUpdate | dict[str, Any]
        :return: The updated node, or None if it does not exist
        :rtype: Node | None
        :raises NodeNotFoundError: If a new parent does not exist
        """
        _require_stored_kind(kind)
        existing = await self.store.get_by_id(kind, node_id)
        if not existing:
            return None

        patch = NodeUpdate.model_validate(data) if isinstance(data, dict) else data
        fields = patch.model_dump(exclude_unset=True)
        if kind is not NodeKind.ERA:
            fields.pop("end_time", None)
        for required in ("parent_id", "title", "description", "order"):
            if required in fields and fields[required] is None:
                fields.pop(required)

        if "parent_id" in fields and fields["parent_id"] != existing.parent_id:
            await self._require_parent(kind, fields["parent_id"])

        if fields.get("position_relative_to") == node_id:
            raise ValueError("A node cannot be positioned relative to itself")
        if fields.get("position_type") is not None:
            fields["position_type"] = _normalize_position_type(fields["position_type"])
        elif fields.get("position_relative_to") and not existing.position_type:
            fields["position_type"] = PositionType.AFTER.value

        if not fields:
            return existing

        await self.store.update_fields(kind, node_id, fields)
        return await self.store.get_by_id(kind, node_id)

    async def _move(
        self,
        kind: NodeKind,
        node_id: str,
        target: NodeReorder,
        fields: dict[str, Any],
    ) -> Node:
        _require_stored_kind(kind)
        node = await self.store.get_by_id(kind, node_id)
        if not node:
            raise NodeNotFoundError(kind, node_id)
        if target.sibling_id == node_id:
            return node

        parent_id = target.parent_id or node.parent_id
        crosses_parent = parent_id != node.parent_id
        if crosses_parent:
            await self._require_parent(kind, parent_id)
            fields["parent_id"] = parent_id

        siblings = order_nodes([
            sibling for sibling in await self.store.list_by_parent(kind, parent_id)
            if sibling.id != node_id
        ])
        anchor = next((s for s in siblings if s.id == target.sibling_id), None)

        if anchor is None:
            if target.sibling_id:
                logger.warning(
                    f"Drop target {target.sibling_id[:8]} no longer exists; "
                    f"appending {kind.value} {node_id[:8]}"
                )
            fields["order"] = max((s.order for s in siblings), default=-1) + 1
            fields["position_relative_to"] = None
            fields["position_type"] = None
        else:
            if target.edge is PositionType.BEFORE:
                fields["order"] = anchor.order - 1
            else:
                fields["order"] = anchor.order + 1
            if not has_time(fields.get("time", node.time)):
                # Untimed nodes only land next to the anchor through a relative position.
                fields["position_relative_to"] = anchor.id
                fields["position_type"] = target.edge.value

        if crosses_parent:
            fields.setdefault("position_relative_to", None)
            fields.setdefault("position_type", None)

        await self.store.update_fields(kind, node_id, fields)
        logger.info(
            f"Moved {kind.value} {node_id[:8]} to order {fields['order']}"
            + (f" under {parent_id[:8]}" if crosses_parent else "")
        )
        moved = await self.store.get_by_id(kind, node_id)
        if not moved:
            raise NodeNotFoundError(kind, node_id)
        return moved

    async def reorder(self, kind: NodeKind, node_id: str, target: NodeReorder) -> Node:
        """
        Move a node next to a sibling, possibly under a new parent.

        :param kind: Node kind
        :type kind: NodeKind
        :param node_id: Id of the dragged node
        :type node_id: str
        :param target: Drop target
        :type target: NodeReorder
        :return: The moved node
        :rtype: Node
        :raises NodeNotFoundError: If the node or the new parent does not exist
        """
        return await self._move(kind, node_id, target, {})

    async def reorder_with_date_change(
        self,
        kind: NodeKind,
        node_id: str,
        target: NodeReorder,
        time: str,
        end_time: str | None = None,
    ) -> Node:
        """
        Move a node and give it a new time in the same write.

        Non-fictional timelines only accept real dates here.

        :param kind: Node kind
        :type kind: NodeKind
        :param node_id: Id of the dragged node
        :type node_id: str
        :param target: Drop target
        :type target: NodeReorder
        :param time: New time (start time for eras)
        :type time: str
        :param end_time: New end time, eras only
        :type end_time: str | None
        :return: The moved node
        :rtype: Node
        :raises InvalidTimeValueError: If the time is empty, or not a date on a non-fictional timeline
        :raises NodeNotFoundError: If the node or the new parent does not exist
        """
        _require_stored_kind(kind)
        node = await self.store.get_by_id(kind, node_id)
        if not node:
            raise NodeNotFoundError(kind, node_id)
        if classify(time) is TimeKind.EMPTY:
            raise InvalidTimeValueError(time)

        timeline = await self.timelines.resolve_timeline(kind, target.parent_id or node.parent_id)
        if timeline and not timeline.is_fictional:
            require_absolute(time)
            if kind is NodeKind.ERA and end_time:
                require_absolute(end_time)

        fields: dict[str, Any] = {"time": time}
        if kind is NodeKind.ERA and end_time is not None:
            fields["end_time"] = end_time
        return await self._move(kind, node_id, target, fields)

    async def normalize_order(self, kind: NodeKind, parent_id: str) -> list[Node]:
        """
        Renumber a sibling set to 0..n-1 in its current render order.

        Reads the whole collection and rewrites it with ``replace_all``. A
        write to the same collection between the read and the rewrite is lost.

        :param kind: Node kind
        :type kind: NodeKind
        :param parent_id: Parent whose children are renumbered
        :type parent_id: str
        :return: The renumbered siblings in render order
        :rtype: list[Node]
        """
        _require_stored_kind(kind)
        collection = await self.store.list_all(kind)
        new_orders = normalized_orders([n for n in collection if n.parent_id == parent_id])
        if not new_orders:
            return []

        now = _now()
        rewritten = [
            node.model_copy(update={"order": new_orders[node.id], "updated_at": now})
            if node.id in new_orders else node
            for node in collection
        ]
        await self.store.replace_all(kind, rewritten)
        logger.info(f"Renumbered {len(new_orders)} {kind.value} nodes under {parent_id[:8]}")
        return order_nodes([node for node in rewritten if node.id in new_orders])
