"""Errors raised by the timeline services."""

from chronicle.models.enums import NodeKind


class NodeNotFoundError(LookupError):
    """A node, parent, or timeline id does not exist in the addressed collection."""

    def __init__(self, kind: NodeKind, node_id: str):
        self.kind = kind
        self.node_id = node_id
        super().__init__(f"{kind.value.capitalize()} not found: {node_id}")


class InvalidTimeValueError(ValueError):
    """A time value that must be a real calendar date is not one."""

    def __init__(self, value: str | None):
        self.value = value
        super().__init__(f"Time must be a valid date, got: {value!r}")
