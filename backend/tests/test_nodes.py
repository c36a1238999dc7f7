"""Tests for node creation, updates, and drag-and-drop moves.

Tests cover:
- Create/update validation (parents, position types, clearing fields)
- reorder: order arithmetic, relative placement of untimed nodes, reparenting
- reorder fallbacks: missing node, vanished drop target
- reorder_with_date_change on real and fictional timelines
- normalize_order and its known lost-update window
"""

import asyncio

import pytest

from chronicle.models import NodeCreate, NodeKind, NodeReorder, NodeUpdate, PositionType
from chronicle.services.errors import InvalidTimeValueError, NodeNotFoundError

from conftest import ids


async def _event(nodes, era, title, **fields):
    return await nodes.create_node(NodeKind.EVENT, NodeCreate(parent_id=era.id, title=title, **fields))


class TestCreateNode:
    """Tests for create_node."""

    async def test_defaults(self, nodes, era):
        event = await _event(nodes, era, "Invasion of Poland")
        assert event.order == 0
        assert event.kind is NodeKind.EVENT
        assert event.parent_id == era.id
        assert event.position_type is None

    async def test_missing_parent(self, nodes):
        with pytest.raises(NodeNotFoundError):
            await nodes.create_node(NodeKind.EVENT, NodeCreate(parent_id="no-such-era"))

    async def test_missing_timeline_for_era(self, nodes):
        with pytest.raises(NodeNotFoundError):
            await nodes.create_node(NodeKind.ERA, NodeCreate(parent_id="no-such-timeline"))

    async def test_relative_position_defaults_to_after(self, nodes, era):
        anchor = await _event(nodes, era, "Anchor")
        follower = await _event(nodes, era, "Follower", position_relative_to=anchor.id)
        assert follower.position_type == "after"

    async def test_invalid_position_type(self, nodes, era):
        anchor = await _event(nodes, era, "Anchor")
        with pytest.raises(ValueError):
            await _event(nodes, era, "Bad", position_relative_to=anchor.id, position_type="above")

    async def test_end_time_only_kept_for_eras(self, nodes, era):
        event = await _event(nodes, era, "Blitz", time="1940-09-07", end_time="1941-05-11")
        assert event.end_time is None

    async def test_timeline_kind_rejected(self, nodes, timeline):
        with pytest.raises(ValueError):
            await nodes.create_node(NodeKind.TIMELINE, NodeCreate(parent_id=timeline.id))


class TestUpdateFields:
    """Tests for update_fields."""

    async def test_missing_node_returns_none(self, nodes):
        assert await nodes.update_fields(NodeKind.EVENT, "ghost", NodeUpdate(title="x")) is None

    async def test_only_set_fields_change(self, nodes, era):
        event = await _event(nodes, era, "Dunkirk", time="1940-05-26", order=4)
        updated = await nodes.update_fields(NodeKind.EVENT, event.id, NodeUpdate(title="Operation Dynamo"))
        assert updated.title == "Operation Dynamo"
        assert updated.time == "1940-05-26"
        assert updated.order == 4

    async def test_explicit_null_clears_time(self, nodes, era):
        event = await _event(nodes, era, "Dunkirk", time="1940-05-26")
        updated = await nodes.update_fields(NodeKind.EVENT, event.id, {"time": None})
        assert updated.time is None

    async def test_reparent_requires_existing_parent(self, nodes, era):
        event = await _event(nodes, era, "Dunkirk")
        with pytest.raises(NodeNotFoundError):
            await nodes.update_fields(NodeKind.EVENT, event.id, {"parent_id": "missing-era"})

    async def test_cannot_anchor_to_itself(self, nodes, era):
        event = await _event(nodes, era, "Loop")
        with pytest.raises(ValueError):
            await nodes.update_fields(NodeKind.EVENT, event.id, {"position_relative_to": event.id})

    async def test_concurrent_writers_on_different_fields_both_survive(self, nodes, era):
        event = await _event(nodes, era, "Dunkirk")
        await asyncio.gather(
            nodes.update_fields(NodeKind.EVENT, event.id, {"title": "Operation Dynamo"}),
            nodes.update_fields(NodeKind.EVENT, event.id, {"description": "Evacuation"}),
        )
        loaded = await nodes.get_node(NodeKind.EVENT, event.id)
        assert loaded.title == "Operation Dynamo"
        assert loaded.description == "Evacuation"


class TestReorder:
    """Tests for reorder."""

    async def test_after_sets_target_order_plus_one(self, nodes, era):
        first = await _event(nodes, era, "First", time="1939-09-01", order=0)
        second = await _event(nodes, era, "Second", time="1940-05-10", order=5)
        moved = await nodes.reorder(
            NodeKind.EVENT, first.id, NodeReorder(sibling_id=second.id, edge=PositionType.AFTER),
        )
        assert moved.order == 6
        assert ids(await nodes.list_children(NodeKind.EVENT, era.id)) == [second.id, first.id]

    async def test_before_sets_target_order_minus_one(self, nodes, era):
        first = await _event(nodes, era, "First", time="1939-09-01", order=0)
        second = await _event(nodes, era, "Second", time="1940-05-10", order=0)
        moved = await nodes.reorder(
            NodeKind.EVENT, second.id, NodeReorder(sibling_id=first.id, edge=PositionType.BEFORE),
        )
        assert moved.order == -1
        assert ids(await nodes.list_children(NodeKind.EVENT, era.id)) == [second.id, first.id]

    async def test_untimed_node_lands_next_to_timed_target(self, nodes, era):
        v1 = await _event(nodes, era, "V1", time="1939-09-01")
        v2 = await _event(nodes, era, "V2", time="1940-05-10")
        loose = await _event(nodes, era, "Loose")
        moved = await nodes.reorder(
            NodeKind.EVENT, loose.id, NodeReorder(sibling_id=v2.id, edge=PositionType.BEFORE),
        )
        assert moved.position_relative_to == v2.id
        assert moved.position_type == "before"
        assert ids(await nodes.list_children(NodeKind.EVENT, era.id)) == [v1.id, loose.id, v2.id]

    async def test_untimed_node_lands_next_to_later_stored_relative_target(self, nodes, era):
        loose = await _event(nodes, era, "Loose")
        await _event(nodes, era, "V1", time="1939-09-01")
        v2 = await _event(nodes, era, "V2", time="1940-05-10")
        rel = await _event(nodes, era, "Rel", position_relative_to=v2.id, position_type="before")
        assert [n.title for n in await nodes.list_children(NodeKind.EVENT, era.id)] == ["V1", "Rel", "V2", "Loose"]

        await nodes.reorder(NodeKind.EVENT, loose.id, NodeReorder(sibling_id=rel.id, edge=PositionType.BEFORE))

        assert [n.title for n in await nodes.list_children(NodeKind.EVENT, era.id)] == ["V1", "Loose", "Rel", "V2"]

    async def test_missing_node_raises_without_writes(self, nodes, era):
        sibling = await _event(nodes, era, "Sibling", order=3)
        with pytest.raises(NodeNotFoundError):
            await nodes.reorder(NodeKind.EVENT, "ghost", NodeReorder(sibling_id=sibling.id))
        assert (await nodes.get_node(NodeKind.EVENT, sibling.id)).order == 3

    async def test_vanished_target_appends_to_end(self, nodes, store, era):
        a = await _event(nodes, era, "A", order=0)
        b = await _event(nodes, era, "B", order=1)
        dragged = await _event(nodes, era, "Dragged", order=0)
        doomed = await _event(nodes, era, "Doomed", order=2)
        await store.remove_by_id(NodeKind.EVENT, doomed.id)

        moved = await nodes.reorder(
            NodeKind.EVENT, dragged.id, NodeReorder(sibling_id=doomed.id, edge=PositionType.BEFORE),
        )

        assert moved.order == 2
        assert ids(await nodes.list_children(NodeKind.EVENT, era.id)) == [a.id, b.id, dragged.id]

    async def test_drop_on_itself_is_noop(self, nodes, era):
        event = await _event(nodes, era, "Solo", order=4)
        moved = await nodes.reorder(NodeKind.EVENT, event.id, NodeReorder(sibling_id=event.id))
        assert moved.order == 4
        assert moved.updated_at == event.updated_at

    async def test_cross_parent_move(self, nodes, timeline, era):
        other_era = await nodes.create_node(NodeKind.ERA, NodeCreate(parent_id=timeline.id, title="Late War"))
        target = await nodes.create_node(
            NodeKind.EVENT, NodeCreate(parent_id=other_era.id, title="D-Day", time="1944-06-06", order=2),
        )
        anchor = await _event(nodes, era, "Anchor")
        dragged = await _event(nodes, era, "Dragged", time="1944-06-01", position_relative_to=anchor.id)

        moved = await nodes.reorder(
            NodeKind.EVENT,
            dragged.id,
            NodeReorder(sibling_id=target.id, edge=PositionType.BEFORE, parent_id=other_era.id),
        )

        assert moved.parent_id == other_era.id
        assert moved.order == 1
        assert moved.position_relative_to is None
        assert ids(await nodes.list_children(NodeKind.EVENT, era.id)) == [anchor.id]
        assert ids(await nodes.list_children(NodeKind.EVENT, other_era.id)) == [dragged.id, target.id]

    async def test_cross_parent_move_keeps_descendants(self, nodes, timeline, era):
        other_era = await nodes.create_node(NodeKind.ERA, NodeCreate(parent_id=timeline.id, title="Late War"))
        event = await _event(nodes, era, "Battle of Britain", time="1940-07-10")
        scene = await nodes.create_node(NodeKind.SCENE, NodeCreate(parent_id=event.id, title="Dogfight"))

        await nodes.reorder(NodeKind.EVENT, event.id, NodeReorder(parent_id=other_era.id))

        assert ids(await nodes.list_children(NodeKind.SCENE, event.id)) == [scene.id]
        assert ids(await nodes.list_children(NodeKind.EVENT, other_era.id)) == [event.id]

    async def test_cross_parent_move_to_missing_parent(self, nodes, era):
        event = await _event(nodes, era, "Stray")
        with pytest.raises(NodeNotFoundError):
            await nodes.reorder(NodeKind.EVENT, event.id, NodeReorder(parent_id="missing-era"))
        assert (await nodes.get_node(NodeKind.EVENT, event.id)).parent_id == era.id


class TestReorderWithDateChange:
    """Tests for reorder_with_date_change."""

    async def test_sets_time_and_order(self, nodes, era):
        v1 = await _event(nodes, era, "V1", time="1939-09-01")
        loose = await _event(nodes, era, "Loose")
        moved = await nodes.reorder_with_date_change(
            NodeKind.EVENT, loose.id, NodeReorder(sibling_id=v1.id), time="1939-09-03",
        )
        assert moved.time == "1939-09-03"
        assert moved.order == 1
        assert moved.position_relative_to is None
        assert ids(await nodes.list_children(NodeKind.EVENT, era.id)) == [v1.id, loose.id]

    async def test_real_timeline_rejects_fictional_time(self, nodes, era):
        v1 = await _event(nodes, era, "V1", time="1939-09-01")
        loose = await _event(nodes, era, "Loose")
        with pytest.raises(InvalidTimeValueError):
            await nodes.reorder_with_date_change(
                NodeKind.EVENT, loose.id, NodeReorder(sibling_id=v1.id), time="Year 3000",
            )
        assert (await nodes.get_node(NodeKind.EVENT, loose.id)).time is None

    async def test_fictional_timeline_accepts_labels(self, nodes, fictional_timeline):
        age = await nodes.create_node(NodeKind.ERA, NodeCreate(parent_id=fictional_timeline.id, title="First Age"))
        event = await nodes.create_node(NodeKind.EVENT, NodeCreate(parent_id=age.id, title="Founding"))
        moved = await nodes.reorder_with_date_change(
            NodeKind.EVENT, event.id, NodeReorder(), time="Year 3000",
        )
        assert moved.time == "Year 3000"

    async def test_empty_time_rejected(self, nodes, era):
        event = await _event(nodes, era, "Loose")
        with pytest.raises(InvalidTimeValueError):
            await nodes.reorder_with_date_change(NodeKind.EVENT, event.id, NodeReorder(), time="  ")

    async def test_era_gets_start_and_end(self, nodes, timeline, era):
        moved = await nodes.reorder_with_date_change(
            NodeKind.ERA, era.id, NodeReorder(), time="1939-09-01", end_time="1941-12-06",
        )
        assert moved.time == "1939-09-01"
        assert moved.end_time == "1941-12-06"

    async def test_missing_node(self, nodes):
        with pytest.raises(NodeNotFoundError):
            await nodes.reorder_with_date_change(NodeKind.SCENE, "ghost", NodeReorder(), time="2024-01-01")


class TestNormalizeOrder:
    """Tests for normalize_order."""

    async def test_renumbers_in_render_order(self, nodes, era):
        late = await _event(nodes, era, "Late", time="1940-05-10", order=0)
        early = await _event(nodes, era, "Early", time="1939-09-01", order=0)
        plain = await _event(nodes, era, "Plain", order=40)

        result = await nodes.normalize_order(NodeKind.EVENT, era.id)

        assert ids(result) == [early.id, late.id, plain.id]
        assert [node.order for node in result] == [0, 1, 2]
        assert ids(await nodes.list_children(NodeKind.EVENT, era.id)) == ids(result)

    async def test_leaves_other_parents_alone(self, nodes, timeline, era):
        other_era = await nodes.create_node(NodeKind.ERA, NodeCreate(parent_id=timeline.id, title="Other"))
        untouched = await nodes.create_node(NodeKind.EVENT, NodeCreate(parent_id=other_era.id, order=9))
        await _event(nodes, era, "Mine", order=5)

        await nodes.normalize_order(NodeKind.EVENT, era.id)

        assert (await nodes.get_node(NodeKind.EVENT, untouched.id)).order == 9

    async def test_empty_parent(self, nodes):
        assert await nodes.normalize_order(NodeKind.SCENE, "nobody") == []

    async def test_stale_collection_rewrite_loses_concurrent_update(self, nodes, store, era):
        """Known non-atomic section: a whole-collection rewrite from a stale read wins."""
        event = await _event(nodes, era, "Dunkirk")
        stale_collection = await store.list_all(NodeKind.EVENT)

        await nodes.update_fields(NodeKind.EVENT, event.id, {"title": "Operation Dynamo"})
        await store.replace_all(NodeKind.EVENT, stale_collection)

        assert (await nodes.get_node(NodeKind.EVENT, event.id)).title == "Dunkirk"
