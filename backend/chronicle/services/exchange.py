"""CSV import and export of a whole timeline.

One row per timeline, era, event, and scene. Imports assign fresh ids to
every row up front, so rows need not be parent-first and relative positions
can point at rows that appear later in the file.
"""

import csv
import io
from uuid import uuid4

from chronicle.config import settings
from chronicle.logging import get_logger
from chronicle.models import (
    PARENT_KIND,
    Node,
    NodeKind,
    PositionType,
    TimelineCreate,
    TimelineImportResult,
    normalize_type,
)
from chronicle.services.node_store import NodeStore
from chronicle.services.ordering import order_nodes
from chronicle.services.timeline import TimelineService

logger = get_logger('services.exchange')

CSV_COLUMNS = [
    "type",
    "id",
    "parentId",
    "parentType",
    "title",
    "description",
    "time",
    "startTime",
    "endTime",
    "imageUrl",
    "order",
    "isFictional",
    "positionRelativeTo",
    "positionType",
]

IMPORT_SEQUENCE = (NodeKind.ERA, NodeKind.EVENT, NodeKind.SCENE)


def _parse_order(raw: str | None) -> int:
    try:
        return int((raw or "").strip())
    except ValueError:
        return 0


def _node_row(node: Node) -> dict[str, str]:
    is_era = node.kind is NodeKind.ERA
    return {
        "type": node.kind.value,
        "id": node.id,
        "parentId": node.parent_id,
        "parentType": PARENT_KIND[node.kind].value,
        "title": node.title,
        "description": node.description,
        "time": "" if is_era else (node.time or ""),
        "startTime": (node.time or "") if is_era else "",
        "endTime": (node.end_time or "") if is_era else "",
        "imageUrl": node.image_url or "",
        "order": str(node.order),
        "isFictional": "",
        "positionRelativeTo": node.position_relative_to or "",
        "positionType": node.position_type or "",
    }


class CsvExchangeService:
    """Exports timelines to CSV and imports them back under fresh ids."""

    def __init__(self, store: NodeStore, timelines: TimelineService, max_rows: int | None = None):
        self.store = store
        self.timelines = timelines
        self.max_rows = max_rows if max_rows is not None else settings.CSV_IMPORT_MAX_ROWS

    async def export_csv(self, timeline_id: str) -> str | None:
        """
        Export a timeline with all of its eras, events, and scenes.

        Each sibling set is written in render order.

        :param timeline_id: Timeline to export
        :type timeline_id: str
        :return: CSV text, or None if the timeline does not exist
        :rtype: str | None
        """
        timeline = await self.timelines.get_timeline(timeline_id)
        if not timeline:
            return None

        eras = order_nodes(await self.store.list_by_parent(NodeKind.ERA, timeline.id))
        events: list[Node] = []
        scenes: list[Node] = []
        for era in eras:
            era_events = order_nodes(await self.store.list_by_parent(NodeKind.EVENT, era.id))
            events.extend(era_events)
            for event in era_events:
                scenes.extend(order_nodes(await self.store.list_by_parent(NodeKind.SCENE, event.id)))

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
        writer.writeheader()
        writer.writerow({
            **{column: "" for column in CSV_COLUMNS},
            "type": NodeKind.TIMELINE.value,
            "id": timeline.id,
            "title": timeline.title,
            "description": timeline.description,
            "order": "0",
            "isFictional": "true" if timeline.is_fictional else "false",
        })
        for node in [*eras, *events, *scenes]:
            writer.writerow(_node_row(node))

        logger.info(
            f"Exported timeline {timeline.id[:8]}: {len(eras)} eras, "
            f"{len(events)} events, {len(scenes)} scenes"
        )
        return buffer.getvalue()

    def _read_rows(self, csv_text: str) -> list[dict[str, str]]:
        reader = csv.DictReader(io.StringIO(csv_text.lstrip("\ufeff")))
        if reader.fieldnames:
            reader.fieldnames = [name.strip() for name in reader.fieldnames]

        rows = []
        for row in reader:
            if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
                continue
            rows.append({key: (value or "") for key, value in row.items() if key})
            if len(rows) > self.max_rows:
                raise ValueError(f"CSV exceeds the maximum of {self.max_rows} rows")
        return rows

    async def import_csv(self, csv_text: str) -> TimelineImportResult:
        """
        Import a timeline from CSV text as a new timeline.

        :param csv_text: CSV content with the exported column layout
        :type csv_text: str
        :return: The created timeline and import counts
        :rtype: TimelineImportResult
        :raises ValueError: If the CSV is empty, too large, or has no timeline row
        """
        rows = self._read_rows(csv_text)
        if not rows:
            raise ValueError("CSV file is empty")

        rows_by_kind: dict[NodeKind, list[dict[str, str]]] = {kind: [] for kind in NodeKind}
        for row in rows:
            for key in ("id", "parentId"):
                row[key] = row.get(key, "").strip()
        skipped = 0
        warnings: list[str] = []
        for row in rows:
            try:
                kind = NodeKind(normalize_type(row.get("type", "")))
            except ValueError:
                skipped += 1
                warnings.append(f"Unknown row type {row.get('type')!r} for id {row.get('id')!r}")
                continue
            rows_by_kind[kind].append(row)

        if not rows_by_kind[NodeKind.TIMELINE]:
            raise ValueError("No timeline found in CSV")
        timeline_row = rows_by_kind[NodeKind.TIMELINE][0]

        # Old id -> new id, per kind, before any reference is resolved.
        id_maps: dict[NodeKind, dict[str, str]] = {
            kind: {row["id"]: str(uuid4()) for row in rows_by_kind[kind] if row.get("id")}
            for kind in IMPORT_SEQUENCE
        }
        accepted: dict[NodeKind, set[str]] = {NodeKind.TIMELINE: {timeline_row.get("id", "")}}

        timeline = await self.timelines.create_timeline(TimelineCreate(
            title=timeline_row.get("title") or "Imported Timeline",
            description=timeline_row.get("description", ""),
            is_fictional=timeline_row.get("isFictional", "").strip().lower() == "true",
        ))

        counts: dict[NodeKind, int] = {}
        for kind in IMPORT_SEQUENCE:
            parent_kind = PARENT_KIND[kind]
            id_map = id_maps[kind]
            accepted[kind] = set()
            created = 0
            for row in rows_by_kind[kind]:
                old_id = row.get("id", "")
                parent_old_id = row.get("parentId", "")
                if not old_id or old_id not in id_map:
                    skipped += 1
                    warnings.append(f"{kind.value.capitalize()} row without id skipped")
                    continue
                if old_id in accepted[kind]:
                    skipped += 1
                    warnings.append(f"Duplicate {kind.value} id {old_id} skipped")
                    continue
                if parent_old_id not in accepted[parent_kind]:
                    skipped += 1
                    warnings.append(
                        f"{kind.value.capitalize()} {old_id} has invalid parent "
                        f"{parent_kind.value} {parent_old_id}"
                    )
                    continue

                if parent_kind is NodeKind.TIMELINE:
                    parent_id = timeline.id
                else:
                    parent_id = id_maps[parent_kind][parent_old_id]

                relative_old_id = row.get("positionRelativeTo", "").strip()
                position_relative_to = None
                position_type = None
                if relative_old_id:
                    position_relative_to = id_map.get(relative_old_id)
                    if position_relative_to is None:
                        warnings.append(
                            f"{kind.value.capitalize()} {old_id} is positioned relative to "
                            f"unknown {kind.value} {relative_old_id}; dropped"
                        )
                    else:
                        raw_type = normalize_type(row.get("positionType", ""))
                        position_type = (
                            PositionType.BEFORE.value if raw_type == PositionType.BEFORE.value
                            else PositionType.AFTER.value
                        )

                is_era = kind is NodeKind.ERA
                time_value = row.get("startTime" if is_era else "time", "").strip()
                end_time = row.get("endTime", "").strip() if is_era else ""
                await self.store.insert(Node(
                    id=id_map[old_id],
                    kind=kind,
                    parent_id=parent_id,
                    title=row.get("title", ""),
                    description=row.get("description", ""),
                    time=time_value or None,
                    end_time=end_time or None,
                    order=_parse_order(row.get("order")),
                    position_relative_to=position_relative_to,
                    position_type=position_type,
                    image_url=row.get("imageUrl", "").strip() or None,
                ))
                accepted[kind].add(old_id)
                created += 1
            counts[kind] = created

        for warning in warnings:
            logger.warning(f"CSV import: {warning}")
        logger.info(
            f"Imported timeline {timeline.title} ({timeline.id[:8]}): "
            f"{counts[NodeKind.ERA]} eras, {counts[NodeKind.EVENT]} events, "
            f"{counts[NodeKind.SCENE]} scenes, {skipped} rows skipped"
        )
        return TimelineImportResult(
            timeline=timeline,
            era_count=counts[NodeKind.ERA],
            event_count=counts[NodeKind.EVENT],
            scene_count=counts[NodeKind.SCENE],
            skipped_rows=skipped,
            warnings=warnings,
        )
