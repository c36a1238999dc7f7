"""Era, event, and scene domain models.

All three levels share one record shape. Eras use ``time`` as their start
time and may carry an ``end_time``; events and scenes leave ``end_time`` empty.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from chronicle.models.enums import NodeKind, PositionType


class NodeCreate(BaseModel):
    """Payload for creating an era, event, or scene."""

    parent_id: str = Field(
        description="Timeline id for eras, era id for events, event id for scenes.",
    )
    title: str = ""
    description: str = ""
    time: Optional[str] = Field(
        default=None,
        description='A real date ("1939-09-01") or a fictional label ("Year 3000").',
    )
    end_time: Optional[str] = Field(
        default=None,
        description="Era end time. Ignored for events and scenes.",
    )
    order: int = 0
    position_relative_to: Optional[str] = Field(
        default=None,
        description="Sibling id to sit next to when the node has no time.",
    )
    position_type: Optional[str] = Field(
        default=None,
        description="before or after",
    )
    image_url: Optional[str] = None


class NodeUpdate(BaseModel):
    """Payload for updating a node. Only fields that are set are written."""

    parent_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    time: Optional[str] = None
    end_time: Optional[str] = None
    order: Optional[int] = None
    position_relative_to: Optional[str] = None
    position_type: Optional[str] = None
    image_url: Optional[str] = None


class NodeReorder(BaseModel):
    """Payload describing a drop: which sibling the node lands next to."""

    sibling_id: Optional[str] = Field(
        default=None,
        description="Sibling the node was dropped on. Omit to append at the end.",
    )
    edge: PositionType = PositionType.AFTER
    parent_id: Optional[str] = Field(
        default=None,
        description="New parent when the node is dropped under a different parent.",
    )
    time: Optional[str] = Field(
        default=None,
        description="New time to set together with the move.",
    )
    end_time: Optional[str] = None


class Node(BaseModel):
    """An era, event, or scene inside a timeline."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    kind: NodeKind
    parent_id: str
    title: str = ""
    description: str = ""
    time: Optional[str] = None
    end_time: Optional[str] = None
    order: int = 0
    position_relative_to: Optional[str] = None
    position_type: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
