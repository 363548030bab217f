"""
Axis-aligned rectangle helpers.

Rectangles are ``(x_min, y_min, x_max, y_max)`` tuples.  The helpers are
unit-agnostic: the validator feeds them plate centimetres (origin
bottom-left, Y up), the hit tester feeds them canvas pixels (origin
top-left, Y down).
"""

from __future__ import annotations

from shapely.geometry import Point, box as shapely_box

Rect = tuple[float, float, float, float]


def aabb_gap(a: Rect, b: Rect) -> float:
    """Chebyshev gap between two AABBs.

    Returns the larger of the horizontal and vertical edge separations.
    Negative values mean overlap.  Padding *a* by ``c`` on every side
    overlaps *b* exactly when ``aabb_gap(a, b) < c``.
    """
    gap_x = max(a[0], b[0]) - min(a[2], b[2])
    gap_y = max(a[1], b[1]) - min(a[3], b[3])
    return max(gap_x, gap_y)


def edge_distances(r: Rect, width: float, height: float) -> dict[str, float]:
    """Distance from each side of *r* to the matching side of a
    ``width × height`` container anchored at the origin (Y up)."""
    return {
        "left": r[0],
        "right": width - r[2],
        "top": height - r[3],
        "bottom": r[1],
    }


def rect_contains_point(r: Rect, x: float, y: float) -> bool:
    """Boundary-inclusive point-in-rectangle test."""
    return shapely_box(*r).covers(Point(x, y))

