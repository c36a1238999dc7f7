"""
Enum definitions for the Chronicle API.
"""
from enum import Enum
from typing import Optional


class NodeKind(str, Enum):
    """Level of a node in the Timeline > Era > Event > Scene hierarchy."""
    TIMELINE = "timeline"
    ERA = "era"
    EVENT = "event"
    SCENE = "scene"


class PositionType(str, Enum):
    """Which side of its anchor sibling a relatively positioned node sits on."""
    BEFORE = "before"
    AFTER = "after"


class TimeKind(str, Enum):
    """Classification of a raw time value."""
    ABSOLUTE = "absolute"
    FICTIONAL = "fictional"
    EMPTY = "empty"


CHILD_KIND: dict[NodeKind, Optional[NodeKind]] = {
    NodeKind.TIMELINE: NodeKind.ERA,
    NodeKind.ERA: NodeKind.EVENT,
    NodeKind.EVENT: NodeKind.SCENE,
    NodeKind.SCENE: None,
}

PARENT_KIND: dict[NodeKind, Optional[NodeKind]] = {
    NodeKind.TIMELINE: None,
    NodeKind.ERA: NodeKind.TIMELINE,
    NodeKind.EVENT: NodeKind.ERA,
    NodeKind.SCENE: NodeKind.EVENT,
}

STORED_KINDS = (NodeKind.ERA, NodeKind.EVENT, NodeKind.SCENE)


def normalize_type(type_str: str) -> str:
    """
    Normalize a type string for consistency.

    - Lowercase
    - Strip whitespace
    - Replace spaces with underscores

    Examples:
        "Era" -> "era"
        " After " -> "after"
    """
    return type_str.lower().strip().replace(" ", "_")
