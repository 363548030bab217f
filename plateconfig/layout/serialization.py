"""Layout serialization — JSON conversion for plates, groups and projections.

The numeric anchor is the only authoritative position.  The legacy
``left_distance`` / ``bottom_distance`` strings are written for display
and read back only when an anchor is missing.
"""

from __future__ import annotations

import logging
import math

from plateconfig.config import SOCKET_RULES, SocketRules

from .dimensions import DimensionValue, format_number, parse_decimal
from .models import (
    Orientation, ScalingResult, SocketGroup, SocketGroupError,
)


log = logging.getLogger(__name__)

# Two values this close are "the same position" for the disagreement check.
_ANCHOR_AGREEMENT_CM = 0.005


def dimension_to_dict(dim: DimensionValue) -> dict:
    return {"width": dim.width, "height": dim.height}


def parse_dimension(data: dict) -> DimensionValue:
    return DimensionValue(
        width=str(data.get("width", "")),
        height=str(data.get("height", "")),
    )


def socket_group_to_dict(group: SocketGroup) -> dict:
    """Serialize a group; distance strings are derived from the anchor."""
    return {
        "id": group.id,
        "plate_index": group.plate_index,
        "count": group.count,
        "orientation": group.orientation.value,
        "anchor_x": group.anchor_x_cm,
        "anchor_y": group.anchor_y_cm,
        "left_distance": format_number(group.anchor_x_cm),
        "bottom_distance": format_number(group.anchor_y_cm),
    }


def parse_orientation(value) -> Orientation:
    try:
        return Orientation(str(value).lower())
    except ValueError:
        raise SocketGroupError(f"Unknown orientation '{value}'") from None


def _resolve_axis(data: dict, anchor_key: str, legacy_key: str, sid: str) -> float:
    """Pick the canonical value for one anchor axis."""
    anchor = data.get(anchor_key)
    anchor = parse_decimal(anchor) if anchor is not None else None
    legacy = parse_decimal(data.get(legacy_key))

    if anchor is None and legacy is None:
        raise SocketGroupError(f"Socket group '{sid}': missing {anchor_key}")
    if anchor is None:
        return legacy
    if legacy is not None and abs(anchor - legacy) > _ANCHOR_AGREEMENT_CM:
        log.warning(
            "Socket group %s: %s=%s disagrees with %s=%s; using the anchor",
            sid, anchor_key, anchor, legacy_key, legacy,
        )
    return anchor


def parse_socket_group(
    data: dict, rules: SocketRules = SOCKET_RULES,
) -> SocketGroup:
    """Parse a stored/posted dict into a SocketGroup.

    Accepts both snake_case and the older camelCase keys
    (``plateIndex``, ``anchorX``, ``leftDistance`` …).
    """
    norm = {
        "id": data.get("id"),
        "plate_index": data.get("plate_index", data.get("plateIndex")),
        "count": data.get("count"),
        "orientation": data.get("orientation"),
        "anchor_x": data.get("anchor_x", data.get("anchorX")),
        "anchor_y": data.get("anchor_y", data.get("anchorY")),
        "left_distance": data.get("left_distance", data.get("leftDistance")),
        "bottom_distance": data.get("bottom_distance", data.get("bottomDistance")),
    }

    sid = norm["id"]
    if not sid:
        raise SocketGroupError("Socket group without id")
    sid = str(sid)

    try:
        plate_index = int(norm["plate_index"])
        count = int(norm["count"])
    except (TypeError, ValueError, OverflowError):
        raise SocketGroupError(
            f"Socket group '{sid}': plate_index and count must be integers"
        ) from None

    if not rules.min_sockets <= count <= rules.max_sockets:
        raise SocketGroupError(
            f"Socket group '{sid}': count must be between "
            f"{rules.min_sockets} and {rules.max_sockets}, got {count}"
        )
    if plate_index < 0:
        raise SocketGroupError(f"Socket group '{sid}': negative plate_index")

    x = _resolve_axis(norm, "anchor_x", "left_distance", sid)
    y = _resolve_axis(norm, "anchor_y", "bottom_distance", sid)
    if not (math.isfinite(x) and math.isfinite(y)):
        raise SocketGroupError(f"Socket group '{sid}': anchor must be finite")

    return SocketGroup(
        id=sid,
        plate_index=plate_index,
        count=count,
        orientation=parse_orientation(norm["orientation"]),
        anchor_x_cm=x,
        anchor_y_cm=y,
    )


def scaling_to_dict(result: ScalingResult | None) -> dict | None:
    if result is None:
        return None
    return {
        "scale": result.scale,
        "total_width": result.total_width_px,
        "max_height": result.max_height_px,
        "plates": [
            {
                "index": p.index,
                "x": p.x_px,
                "y": p.y_px,
                "width": p.width_px,
                "height": p.height_px,
                "original_width": p.width_cm,
                "original_height": p.height_cm,
            }
            for p in result.plates
        ],
    }
