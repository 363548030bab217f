"""Scene building — turn the configurator state into draw primitives.

The browser canvas only draws what it receives here; it never converts
units itself.  Output is a JSON-safe dict::

  {
    "canvas":  {"width": 800, "height": 400},
    "scale":   3.2,
    "plates":  [{"index", "x", "y", "width", "height", "label", "number", "active"}],
    "sockets": [{"id", "units": [...], "separators": [...], "active", "dragging"}],
    "helpers": [{"x1", "y1", "x2", "y2", "label"}],
    "error":   "Too close to the left edge: …" | null,
    "style":   {...colours...}
  }

A degenerate layout yields an empty scene (no plates, no sockets).
"""

from __future__ import annotations

from dataclasses import asdict

from plateconfig.interaction.controller import InteractionController
from plateconfig.layout.dimensions import format_number
from plateconfig.layout.sockets import helper_lines, separator_lines


DEFAULT_STYLE = {
    "background": "#000000",
    "plate": "#FFFFFF",
    "plate_border": "#E5E7EB",
    "active_plate": "#F3F4F6",
    "active_plate_border": "#3B82F6",
    "socket": "#FFFFFF",
    "socket_border": "#1F2937",
    "active_socket": "#DCFCE7",
    "active_socket_border": "#22C55E",
    "separator": "#D1D5DB",
    "helper": "#EF4444",
}


def build_scene(
    controller: InteractionController,
    active_plate_index: int = -1,
    style: dict | None = None,
) -> dict:
    width, height = controller.viewport.size
    result = controller.viewport.result
    scene = {
        "canvas": {"width": width, "height": height},
        "scale": None,
        "plates": [],
        "sockets": [],
        "helpers": [],
        "error": controller.error,
        "style": {**DEFAULT_STYLE, **(style or {})},
    }
    if result is None:
        return scene

    scene["scale"] = result.scale
    for p in result.plates:
        scene["plates"].append({
            "index": p.index,
            "x": p.x_px,
            "y": p.y_px,
            "width": p.width_px,
            "height": p.height_px,
            "label": f"{format_number(p.width_cm)} x {format_number(p.height_cm)} cm",
            "number": f"#{p.index + 1}",
            "active": p.index == active_plate_index,
        })

    highlighted = {controller.active_socket_id, controller.dragging_socket_id}
    for group, plate, layout in controller.projected_groups(result):
        scene["sockets"].append({
            "id": group.id,
            "plate_index": group.plate_index,
            "units": [{"x": u.x_px, "y": u.y_px, "size": u.size_px} for u in layout.units],
            "separators": [
                asdict(s) for s in separator_lines(layout, group.orientation, result.scale, controller.rules)
            ],
            "active": group.id == controller.active_socket_id,
            "dragging": group.id == controller.dragging_socket_id,
        })
        if group.id in highlighted:
            scene["helpers"].extend(asdict(s) for s in helper_lines(layout, plate, group))

    return scene
