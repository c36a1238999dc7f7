"""Sibling ordering for eras, events, and scenes.

Every node in a sibling set supplies zero or one of: a time, a relative
position ("before/after sibling X"), and an integer ``order``. The functions
here turn any such set into one deterministic sequence:

1. Timed nodes, sorted by ``order`` then time.
2. Relative nodes (no time, anchored to a sibling), spliced next to their
   anchor. A node whose anchor is another relative node waits until that
   anchor is placed. An anchor that never appears appends the node after the
   timed nodes.
3. Plain nodes (no time, no anchor), sorted by ``order``.

Every sort carries the input position as its final key, so ties keep their
encounter order. The functions are pure and never raise on well-formed nodes.
"""

from functools import cmp_to_key
from typing import Sequence

from chronicle.logging import get_logger
from chronicle.models import Node, PositionType
from chronicle.services.time_model import compare_times, has_time

logger = get_logger('services.ordering')


def _compare_timed(a: tuple[int, Node], b: tuple[int, Node]) -> int:
    index_a, node_a = a
    index_b, node_b = b
    if node_a.order != node_b.order:
        return -1 if node_a.order < node_b.order else 1
    by_time = compare_times(node_a.time, node_b.time)
    if by_time:
        return by_time
    return -1 if index_a < index_b else (1 if index_a > index_b else 0)


def _index_of(sequence: list[Node], node_id: str) -> int:
    for index, node in enumerate(sequence):
        if node.id == node_id:
            return index
    return -1


def _splice_next_to_anchor(sequence: list[Node], node: Node) -> bool:
    anchor_index = _index_of(sequence, node.position_relative_to)
    if anchor_index == -1:
        return False
    if node.position_type == PositionType.BEFORE.value:
        sequence.insert(anchor_index, node)
    else:
        sequence.insert(anchor_index + 1, node)
    return True


def order_nodes(nodes: Sequence[Node]) -> list[Node]:
    """
    Produce the render order of a sibling set.

    :param nodes: Siblings in storage (input) order
    :type nodes: Sequence[Node]
    :return: The same nodes in display order
    :rtype: list[Node]
    """
    indexed = list(enumerate(nodes))

    timed = [(i, n) for i, n in indexed if has_time(n.time)]
    relative = [n for _, n in indexed if not has_time(n.time) and n.position_relative_to]
    plain = [(i, n) for i, n in indexed if not has_time(n.time) and not n.position_relative_to]

    sequence = [n for _, n in sorted(timed, key=cmp_to_key(_compare_timed))]
    plain_sequence = [n for _, n in sorted(plain, key=lambda item: (item[1].order, item[0]))]

    pending = relative
    while pending:
        deferred = [
            node for node in pending
            if not (_splice_next_to_anchor(sequence, node) or _splice_next_to_anchor(plain_sequence, node))
        ]
        if len(deferred) == len(pending):
            # Nothing placed in this pass: append one node whose anchor is gone,
            # or break a cycle at the first node in input order.
            waiting = {node.id for node in deferred}
            orphan = next((n for n in deferred if n.position_relative_to not in waiting), deferred[0])
            deferred.remove(orphan)
            logger.debug(
                f"Anchor {orphan.position_relative_to} not found for {orphan.kind.value} {orphan.id}; appending"
            )
            sequence.append(orphan)
        pending = deferred

    return sequence + plain_sequence


def normalized_orders(nodes: Sequence[Node]) -> dict[str, int]:
    """
    Fresh 0..n-1 ``order`` values following the render order.

    :param nodes: Siblings in storage order
    :type nodes: Sequence[Node]
    :return: Mapping of node id to its new order
    :rtype: dict[str, int]
    """
    return {node.id: index for index, node in enumerate(order_nodes(nodes))}
