"""Timeline domain models."""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from chronicle.models.domain.node import Node


class TimelineCreate(BaseModel):
    """Payload for creating a new timeline."""
    title: str
    description: str = ""
    is_fictional: bool = Field(
        default=False,
        description="Fictional timelines accept free-form time labels when nodes are moved.",
    )


class TimelineUpdate(BaseModel):
    """Payload for updating a timeline."""
    title: Optional[str] = None
    description: Optional[str] = None
    is_fictional: Optional[bool] = None


class Timeline(BaseModel):
    """A timeline: the top-level container owning a tree of eras, events, and scenes."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    description: str = ""
    is_fictional: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TimelineTreeNode(BaseModel):
    """A node together with its ordered children."""
    node: Node
    children: list["TimelineTreeNode"] = Field(default_factory=list)


class TimelineTree(BaseModel):
    """A timeline rendered as ordered eras, events, and scenes."""
    timeline: Timeline
    eras: list[TimelineTreeNode] = Field(default_factory=list)
