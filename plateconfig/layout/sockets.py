"""Socket geometry — project a socket group onto its plate's pixel rectangle.

Coordinate conventions:

  * plate cm:   origin at the plate's bottom-left corner, Y grows upward
  * canvas px:  origin at the canvas top-left corner, Y grows downward

Every vertical conversion flips:
``y_px = plate.y_px + plate.height_px − y_cm · scale``.

All functions here are pure; the same projection feeds rendering and
hit-testing, so a group is clickable exactly where it is drawn.
"""

from __future__ import annotations

from dataclasses import dataclass

from plateconfig.config import SOCKET_RULES, SocketRules
from plateconfig.geometry import rect_contains_point

from .models import (
    Orientation, PlateLayout, SocketGroup, SocketLayout, UnitRect,
)
from .scaling import cm_to_px


@dataclass(frozen=True)
class Segment:
    """A line on the canvas, optionally labelled (e.g. "12.5 cm")."""

    x1: float
    y1: float
    x2: float
    y2: float
    label: str | None = None


def unit_centres_cm(
    anchor_x_cm: float,
    anchor_y_cm: float,
    count: int,
    orientation: Orientation,
    rules: SocketRules = SOCKET_RULES,
) -> list[tuple[float, float]]:
    """Centres of every unit in plate cm; unit 0 sits on the anchor."""
    pitch = rules.pitch_cm
    if orientation == Orientation.HORIZONTAL:
        return [(anchor_x_cm + i * pitch, anchor_y_cm) for i in range(count)]
    return [(anchor_x_cm, anchor_y_cm + i * pitch) for i in range(count)]


def plate_cm_to_pixel(
    plate: PlateLayout, scale: float, x_cm: float, y_cm: float,
) -> tuple[float, float]:
    return (
        plate.x_px + x_cm * scale,
        plate.y_px + plate.height_px - y_cm * scale,
    )


def pixel_to_plate_cm(
    plate: PlateLayout, scale: float, x_px: float, y_px: float,
) -> tuple[float, float]:
    """Inverse of ``plate_cm_to_pixel``."""
    return (
        (x_px - plate.x_px) / scale,
        (plate.y_px + plate.height_px - y_px) / scale,
    )


def project_socket_group(
    group: SocketGroup,
    plate: PlateLayout,
    scale: float,
    rules: SocketRules = SOCKET_RULES,
) -> SocketLayout:
    """Per-unit pixel rectangles and the anchor's pixel position."""
    half = rules.half_size_cm
    size_px = cm_to_px(rules.socket_size_cm, scale)
    units = []
    for cx, cy in unit_centres_cm(
        group.anchor_x_cm, group.anchor_y_cm, group.count, group.orientation, rules,
    ):
        # top-left corner: left edge in x, *top* edge (cy + half) in y
        x_px, y_px = plate_cm_to_pixel(plate, scale, cx - half, cy + half)
        units.append(UnitRect(x_px=x_px, y_px=y_px, size_px=size_px))

    ax_px, ay_px = plate_cm_to_pixel(plate, scale, group.anchor_x_cm, group.anchor_y_cm)
    return SocketLayout(
        socket_id=group.id,
        units=tuple(units),
        anchor_x_px=ax_px,
        anchor_y_px=ay_px,
    )


def hit_test_group(layout: SocketLayout, x_px: float, y_px: float) -> bool:
    """True if the point lies in any unit of the group (edges included)."""
    return any(rect_contains_point(u.rect, x_px, y_px) for u in layout.units)


def separator_lines(
    layout: SocketLayout,
    orientation: Orientation,
    scale: float,
    rules: SocketRules = SOCKET_RULES,
) -> list[Segment]:
    """Dashed separators drawn in the middle of each inter-unit gap."""
    gap_px = cm_to_px(rules.socket_gap_cm, scale)
    lines: list[Segment] = []
    for unit in layout.units[:-1]:
        if orientation == Orientation.HORIZONTAL:
            x = unit.x_px + unit.size_px + gap_px / 2
            lines.append(Segment(x, unit.y_px, x, unit.y_px + unit.size_px))
        else:
            # next unit sits above this one on the canvas
            y = unit.y_px - gap_px / 2
            lines.append(Segment(unit.x_px, y, unit.x_px + unit.size_px, y))
    return lines


def helper_lines(
    layout: SocketLayout, plate: PlateLayout, group: SocketGroup,
) -> list[Segment]:
    """Distance lines from the anchor to the plate's left and bottom edges."""
    bottom_px = plate.y_px + plate.height_px
    return [
        Segment(
            plate.x_px, layout.anchor_y_px, layout.anchor_x_px, layout.anchor_y_px,
            label=f"{group.anchor_x_cm:.1f} cm",
        ),
        Segment(
            layout.anchor_x_px, layout.anchor_y_px, layout.anchor_x_px, bottom_px,
            label=f"{group.anchor_y_cm:.1f} cm",
        ),
    ]
