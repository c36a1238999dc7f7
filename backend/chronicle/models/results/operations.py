"""Result models for multi-row operations."""

from pydantic import BaseModel, Field

from chronicle.models.domain.timeline import Timeline
from chronicle.models.enums import NodeKind


class CascadeDeleteResult(BaseModel):
    """Counts of nodes removed by a cascade delete."""
    kind: NodeKind
    node_id: str
    deleted: dict[NodeKind, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.deleted.values())


class TimelineImportResult(BaseModel):
    """Summary of a CSV timeline import."""
    timeline: Timeline
    era_count: int = 0
    event_count: int = 0
    scene_count: int = 0
    skipped_rows: int = 0
    warnings: list[str] = Field(default_factory=list)
