"""Result models for service operations."""

from chronicle.models.results.operations import CascadeDeleteResult, TimelineImportResult

__all__ = [
    "CascadeDeleteResult", "TimelineImportResult",
]
