"""Domain models: the core data structures of a timeline."""

from chronicle.models.domain.node import Node, NodeCreate, NodeUpdate, NodeReorder
from chronicle.models.domain.timeline import (
    Timeline,
    TimelineCreate,
    TimelineUpdate,
    TimelineTree,
    TimelineTreeNode,
)

__all__ = [
    "Node", "NodeCreate", "NodeUpdate", "NodeReorder",
    "Timeline", "TimelineCreate", "TimelineUpdate", "TimelineTree", "TimelineTreeNode",
]
