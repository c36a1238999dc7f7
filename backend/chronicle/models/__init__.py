"""
Chronicle models.

Usage:
    from chronicle.models import Node, NodeCreate, Timeline, TimelineCreate
    from chronicle.models import NodeKind, PositionType, TimeKind, normalize_type
    from chronicle.models import CascadeDeleteResult, TimelineImportResult
"""

# --- Enums & utilities ---
from chronicle.models.enums import (
    NodeKind,
    PositionType,
    TimeKind,
    CHILD_KIND,
    PARENT_KIND,
    STORED_KINDS,
    normalize_type,
)

# --- Domain models ---
from chronicle.models.domain import (
    Node, NodeCreate, NodeUpdate, NodeReorder,
    Timeline, TimelineCreate, TimelineUpdate, TimelineTree, TimelineTreeNode,
)

# --- Result models ---
from chronicle.models.results import (
    CascadeDeleteResult,
    TimelineImportResult,
)

__all__ = [
    # Enums
    "NodeKind", "PositionType", "TimeKind",
    "CHILD_KIND", "PARENT_KIND", "STORED_KINDS", "normalize_type",
    # Domain
    "Node", "NodeCreate", "NodeUpdate", "NodeReorder",
    "Timeline", "TimelineCreate", "TimelineUpdate", "TimelineTree", "TimelineTreeNode",
    # Results
    "CascadeDeleteResult", "TimelineImportResult",
]
