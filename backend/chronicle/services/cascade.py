"""Cascade deletion of a node and everything below it."""

from chronicle.logging import get_logger
from chronicle.models import CHILD_KIND, CascadeDeleteResult, Node, NodeKind
from chronicle.services.node_store import NodeStore

logger = get_logger('services.cascade')


class CascadeService:
    """Removes eras, events, and scenes together with their descendants."""

    def __init__(self, store: NodeStore):
        self.store = store

    async def _collect_descendants(
        self,
        kind: NodeKind,
        parent_ids: list[str],
        collected: dict[NodeKind, list[str]],
    ) -> None:
        child_kind = CHILD_KIND[kind]
        while child_kind is not None and parent_ids:
            child_ids: list[str] = []
            for parent_id in parent_ids:
                children = await self.store.list_by_parent(child_kind, parent_id)
                child_ids.extend(child.id for child in children)
            collected.setdefault(child_kind, []).extend(child_ids)
            parent_ids = child_ids
            child_kind = CHILD_KIND[child_kind]

    async def collect_subtree(self, kind: NodeKind, node_id: str) -> dict[NodeKind, list[str]]:
        """
        Ids of a node and all of its descendants, grouped by kind.

        :param kind: Kind of the subtree root
        :type kind: NodeKind
        :param node_id: Id of the subtree root
        :type node_id: str
        :return: Node ids grouped by kind, root included
        :rtype: dict[NodeKind, list[str]]
        """
        collected: dict[NodeKind, list[str]] = {kind: [node_id]}
        await self._collect_descendants(kind, [node_id], collected)
        return collected

    async def delete_subtree(self, kind: NodeKind, node_id: str) -> CascadeDeleteResult | None:
        """
        Delete a node and all of its descendants in one transaction.

        :param kind: Kind of the node to delete
        :type kind: NodeKind
        :param node_id: Id of the node to delete
        :type node_id: str
        :return: Deleted counts per kind, or None if the node does not exist
        :rtype: CascadeDeleteResult | None
        """
        node = await self.store.get_by_id(kind, node_id)
        if not node:
            return None

        collected = await self.collect_subtree(kind, node_id)
        await self.store.remove_many(collected)
        await self._log_orphaned_anchors(node)

        result = CascadeDeleteResult(
            kind=kind,
            node_id=node_id,
            deleted={k: len(ids) for k, ids in collected.items()},
        )
        logger.info(f"Deleted {kind.value} {node_id[:8]} and {result.total - 1} descendants")
        return result

    async def delete_children(self, kind: NodeKind, parent_id: str) -> CascadeDeleteResult:
        """
        Delete every descendant of a parent, leaving the parent itself.

        Used for timelines, whose rows live outside the node store.

        :param kind: Kind of the parent
        :type kind: NodeKind
        :param parent_id: Parent id
        :type parent_id: str
        :return: Deleted counts per kind
        :rtype: CascadeDeleteResult
        """
        collected: dict[NodeKind, list[str]] = {}
        await self._collect_descendants(kind, [parent_id], collected)
        if any(collected.values()):
            await self.store.remove_many(collected)

        result = CascadeDeleteResult(
            kind=kind,
            node_id=parent_id,
            deleted={k: len(ids) for k, ids in collected.items() if ids},
        )
        logger.info(f"Deleted {result.total} descendants of {kind.value} {parent_id[:8]}")
        return result

    async def _log_orphaned_anchors(self, deleted: Node) -> None:
        # Survivors keep their stale anchor and are appended at render time.
        siblings = await self.store.list_by_parent(deleted.kind, deleted.parent_id)
        for sibling in siblings:
            if sibling.position_relative_to == deleted.id:
                logger.warning(
                    f"Orphan reference: {deleted.kind.value} {sibling.id[:8]} is positioned "
                    f"relative to deleted {deleted.kind.value} {deleted.id[:8]}"
                )
