"""Placement validation — edge clearance and inter-group clearance.

Runs on every pointer-move during a drag, so it must stay pure and cheap:
one bounding box for the candidate, one gap test per sibling group on the
same plate.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from plateconfig.config import CLEARANCE_EPS_CM, SOCKET_RULES, SocketRules
from plateconfig.geometry import Rect, aabb_gap, edge_distances

from .models import (
    Orientation, PlateDimension, SocketGroup, VALID, Verdict,
)


_EDGE_ORDER = ("left", "right", "top", "bottom")


def socket_group_bbox(
    anchor_x_cm: float,
    anchor_y_cm: float,
    count: int,
    orientation: Orientation,
    rules: SocketRules = SOCKET_RULES,
) -> Rect:
    """Bounding box of a group in plate cm ``(x_min, y_min, x_max, y_max)``."""
    half = rules.half_size_cm
    length = rules.group_length_cm(count)
    x0 = anchor_x_cm - half
    y0 = anchor_y_cm - half
    if orientation == Orientation.HORIZONTAL:
        return (x0, y0, x0 + length, y0 + rules.socket_size_cm)
    return (x0, y0, x0 + rules.socket_size_cm, y0 + length)


def group_bbox(group: SocketGroup, rules: SocketRules = SOCKET_RULES) -> Rect:
    return socket_group_bbox(
        group.anchor_x_cm, group.anchor_y_cm, group.count, group.orientation, rules,
    )


def validate_socket_placement(
    anchor_x_cm: float,
    anchor_y_cm: float,
    count: int,
    orientation: Orientation,
    plate_width_cm: float,
    plate_height_cm: float,
    siblings: Iterable[SocketGroup] = (),
    exclude_id: str | None = None,
    rules: SocketRules = SOCKET_RULES,
) -> Verdict:
    """Check a candidate position; the first failing check wins.

    1. Edge clearance — the bounding box must keep ``edge_clearance_cm``
       to every plate edge (left, right, top, bottom, in that order).
    2. Inter-group clearance — the bounding box padded by
       ``inter_group_clearance_cm`` must not overlap any other group.

    *siblings* should be the groups on the same plate; *exclude_id* skips
    the group being edited or dragged.  Both thresholds are inclusive: a
    box exactly at the clearance is accepted.
    """
    bbox = socket_group_bbox(anchor_x_cm, anchor_y_cm, count, orientation, rules)

    # ── 1. Edge clearance ──
    min_edge = rules.edge_clearance_cm
    distances = edge_distances(bbox, plate_width_cm, plate_height_cm)
    for edge in _EDGE_ORDER:
        if distances[edge] < min_edge - CLEARANCE_EPS_CM:
            return Verdict(
                valid=False,
                reason=(
                    f"Too close to the {edge} edge: "
                    f"minimum distance is {min_edge:g} cm"
                ),
                edge=edge,
            )

    # ── 2. Inter-group clearance ──
    min_gap = rules.inter_group_clearance_cm
    for other in siblings:
        if exclude_id is not None and other.id == exclude_id:
            continue
        if aabb_gap(bbox, group_bbox(other, rules)) < min_gap - CLEARANCE_EPS_CM:
            return Verdict(
                valid=False,
                reason=(
                    f"Too close to another socket group: "
                    f"minimum distance is {min_gap:g} cm"
                ),
                conflict_id=other.id,
            )

    return VALID


def validate_socket_group(
    group: SocketGroup,
    plates: Sequence[PlateDimension],
    groups: Iterable[SocketGroup],
    rules: SocketRules = SOCKET_RULES,
) -> Verdict:
    """Validate a whole group against its plate and every other group.

    The group's own id is excluded, so this works for both new and
    edited groups.
    """
    if not 0 <= group.plate_index < len(plates):
        return Verdict(valid=False, reason=f"Unknown plate #{group.plate_index + 1}")
    plate = plates[group.plate_index]
    siblings = [g for g in groups if g.plate_index == group.plate_index]
    return validate_socket_placement(
        group.anchor_x_cm, group.anchor_y_cm,
        group.count, group.orientation,
        plate.width_cm, plate.height_cm,
        siblings,
        exclude_id=group.id,
        rules=rules,
    )


def default_anchor(
    plate_width_cm: float,
    plate_height_cm: float,
    count: int,
    orientation: Orientation,
    rules: SocketRules = SOCKET_RULES,
) -> tuple[float, float]:
    """Anchor that centres a group on the plate."""
    length = rules.group_length_cm(count)
    half = rules.half_size_cm
    if orientation == Orientation.HORIZONTAL:
        return ((plate_width_cm - length) / 2 + half, plate_height_cm / 2)
    return (plate_width_cm / 2, (plate_height_cm - length) / 2 + half)
