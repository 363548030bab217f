from .rect import (
    Rect,
    aabb_gap,
    edge_distances,
    rect_contains_point,
)
