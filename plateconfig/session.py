"""
Configurator session — plates, socket groups and the interaction state
for one user.

The session wires the stores to the interaction controller and keeps the
layout in sync when plates change.  It is the object the web server holds;
tests drive it directly.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, Sequence

from plateconfig.config import CANVAS_RULES, SOCKET_RULES, CanvasRules, SocketRules
from plateconfig.interaction import InteractionController, ViewportTracker
from plateconfig.layout.dimensions import (
    DimensionValue, clamp_dimensions, cm_to_mm, default_dimension, format_number,
    parse_plate, sanitize_numeric_input, validate_all_dimensions, validate_dimensions,
    validate_plate_count,
)
from plateconfig.layout.models import (
    Orientation, PlateChangeError, PlateDimension, SocketGroup, SocketGroupError,
    Verdict,
)
from plateconfig.layout.serialization import (
    dimension_to_dict, parse_orientation, scaling_to_dict, socket_group_to_dict,
)
from plateconfig.layout.validation import default_anchor, validate_socket_group
from plateconfig.scene import build_scene
from plateconfig.store import (
    DimensionStore, InMemoryRepository, Repository, SocketStore, new_socket_id,
)


log = logging.getLogger(__name__)


# ── Pricing / summaries ────────────────────────────────────────────


def group_price(group: SocketGroup, rules: SocketRules = SOCKET_RULES) -> float:
    return group.count * rules.price_per_socket_eur


def group_summary(
    position: int,
    group: SocketGroup,
    dims: Sequence[DimensionValue],
    rules: SocketRules = SOCKET_RULES,
) -> str:
    """One order line, e.g.
    ``"1. Rückwand-151.5 x 40 | 2x Steckdose | L:20.0cm B:15.0cm + 40.00 €"``."""
    if 0 <= group.plate_index < len(dims):
        dim = dims[group.plate_index]
        plate_info = f"{dim.width} x {dim.height}"
    else:
        plate_info = "Unknown Plate"
    return (
        f"{position}. Rückwand-{plate_info} | {group.count}x Steckdose | "
        f"L:{group.anchor_x_cm:.1f}cm B:{group.anchor_y_cm:.1f}cm "
        f"+ {group_price(group, rules):.2f} €"
    )


# ── Session ────────────────────────────────────────────────────────


class ConfiguratorSession:
    def __init__(
        self,
        repository: Repository | None = None,
        *,
        rules: SocketRules = SOCKET_RULES,
        canvas_rules: CanvasRules = CANVAS_RULES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        repo = repository or InMemoryRepository()
        self.repository = repo
        self.rules = rules
        self.dimensions = DimensionStore(repo)
        self.sockets = SocketStore(repo, rules)
        self.controller = InteractionController(
            self.sockets,
            self.dimensions.plates,
            ViewportTracker(canvas_rules, clock),
            select_plate=self.dimensions.set_active_index,
            rules=rules,
            canvas_rules=canvas_rules,
            clock=clock,
        )

    # ── plates ──────────────────────────────────────────────────────

    def plates(self) -> list[PlateDimension]:
        return self.dimensions.plates()

    def set_dimensions(self, dims: Sequence[DimensionValue], *, clamp: bool = False) -> None:
        """Store entered sizes.

        Input is sanitised like a numeric form field; with ``clamp=True``
        (the field lost focus) every value is also pulled into range.
        Groups on plates past the new end are dropped.  Raises
        ``PlateChangeError`` (nothing stored) if a remaining group would no
        longer clear its plate's edges.
        """
        check = validate_plate_count(len(dims))
        if not check.is_valid:
            raise ValueError(check.error)
        cleaned = [
            DimensionValue(
                width=sanitize_numeric_input(d.width),
                height=sanitize_numeric_input(d.height),
            )
            for d in dims
        ]
        if clamp:
            cleaned = [clamp_dimensions(d) for d in cleaned]

        plates = [parse_plate(d) for d in cleaned]
        kept = [g for g in self.sockets.groups if g.plate_index < len(plates)]
        for group in kept:
            verdict = validate_socket_group(group, plates, kept, self.rules)
            if not verdict.valid:
                log.info("Plate change refused: %s", verdict.reason)
                raise PlateChangeError(group.id, verdict)

        self.dimensions.set_dimensions(cleaned)
        for socket_id in self.sockets.drop_plates_from(len(cleaned)):
            self._forget_socket(socket_id)
        if self.dimensions.active_index >= len(cleaned):
            self.dimensions.set_active_index(len(cleaned) - 1)
        focused = self.controller.focused_plate_index
        if focused is not None and focused >= len(cleaned):
            self.controller.focused_plate_index = None
        self.controller.refresh_layout()

    def add_plate(self, dim: DimensionValue | None = None) -> int:
        index = self.dimensions.add(dim or default_dimension())
        self.controller.refresh_layout()
        return index

    def remove_plate(self, index: int) -> bool:
        if not self.dimensions.remove(index):
            return False
        dropped = [g.id for g in self.sockets.on_plate(index)]
        self.sockets.remove_plate(index)
        for socket_id in dropped:
            self._forget_socket(socket_id)
        focused = self.controller.focused_plate_index
        if focused == index:
            self.controller.focused_plate_index = None
        elif focused is not None and focused > index:
            self.controller.focused_plate_index = focused - 1
        self.controller.refresh_layout()
        return True

    def resize(self, width_px: float, height_px: float, *, immediate: bool = False) -> None:
        self.controller.viewport.resize(width_px, height_px, immediate=immediate)

    # ── socket groups ───────────────────────────────────────────────

    def confirm_socket(
        self,
        plate_index: int,
        count: int,
        orientation: Orientation | str,
        anchor_x_cm: float | None = None,
        anchor_y_cm: float | None = None,
    ) -> tuple[SocketGroup, Verdict]:
        """Create a group; without a position it is centred on the plate."""
        plates = self.plates()
        if not 0 <= plate_index < len(plates):
            raise SocketGroupError(f"Unknown plate #{plate_index + 1}")
        if not self.rules.min_sockets <= count <= self.rules.max_sockets:
            raise SocketGroupError(
                f"count must be between {self.rules.min_sockets} and {self.rules.max_sockets}"
            )
        orientation = parse_orientation(orientation)
        if anchor_x_cm is None or anchor_y_cm is None:
            cx, cy = default_anchor(
                plates[plate_index].width_cm, plates[plate_index].height_cm,
                count, orientation, self.rules,
            )
            anchor_x_cm = cx if anchor_x_cm is None else anchor_x_cm
            anchor_y_cm = cy if anchor_y_cm is None else anchor_y_cm

        group = SocketGroup(
            id=new_socket_id(),
            plate_index=plate_index,
            count=count,
            orientation=orientation,
            anchor_x_cm=float(anchor_x_cm),
            anchor_y_cm=float(anchor_y_cm),
        )
        verdict = self.sockets.add(group, plates)
        if verdict.valid:
            self.controller.active_socket_id = group.id
        return group, verdict

    def edit_socket(self, socket_id: str, **changes) -> tuple[SocketGroup, Verdict]:
        """Apply field changes (count, orientation, anchor_x_cm …) to a group."""
        current = self.sockets.get(socket_id)
        if current is None:
            raise SocketGroupError(f"Unknown socket group '{socket_id}'")
        if "orientation" in changes and changes["orientation"] is not None:
            changes["orientation"] = parse_orientation(changes["orientation"])
        changes = {k: v for k, v in changes.items() if v is not None}
        if "count" in changes and not self.rules.min_sockets <= changes["count"] <= self.rules.max_sockets:
            raise SocketGroupError(
                f"count must be between {self.rules.min_sockets} and {self.rules.max_sockets}"
            )
        try:
            candidate = replace(current, **changes)
        except TypeError as exc:
            raise SocketGroupError(str(exc)) from None
        verdict = self.sockets.replace(candidate, self.plates())
        return candidate, verdict

    def delete_socket(self, socket_id: str) -> bool:
        deleted = self.sockets.delete(socket_id)
        if deleted:
            self._forget_socket(socket_id)
        return deleted

    def _forget_socket(self, socket_id: str) -> None:
        c = self.controller
        if c.dragging_socket_id == socket_id:
            c.end_drag()
        if c.active_socket_id == socket_id:
            c.active_socket_id = None
        if c.editing_socket_id == socket_id:
            c.editing_socket_id = None

    def order_lines(self) -> list[str]:
        dims = self.dimensions.dimensions
        return [
            group_summary(i + 1, g, dims, self.rules)
            for i, g in enumerate(self.sockets.groups)
        ]

    def total_price(self) -> float:
        return sum(group_price(g, self.rules) for g in self.sockets.groups)

    # ── views ───────────────────────────────────────────────────────

    def scene(self) -> dict:
        return build_scene(self.controller, self.dimensions.active_index)

    def to_dict(self) -> dict:
        c = self.controller
        dims = self.dimensions.dimensions
        width, height = c.viewport.size
        return {
            "dimensions": [dimension_to_dict(d) for d in dims],
            "dimensions_mm": [
                {"width": cm_to_mm(d.width), "height": cm_to_mm(d.height)} for d in dims
            ],
            "dimensions_valid": validate_all_dimensions(list(dims)),
            "validation": [
                {
                    "width": validate_dimensions(d).width.error,
                    "height": validate_dimensions(d).height.error,
                }
                for d in dims
            ],
            "active_index": self.dimensions.active_index,
            "sockets": [socket_group_to_dict(g) for g in self.sockets.groups],
            "cutouts_enabled": c.cutouts_enabled,
            "focused_plate_index": c.focused_plate_index,
            "active_socket_id": c.active_socket_id,
            "editing_socket_id": c.editing_socket_id,
            "state": c.state,
            "error": c.error,
            "viewport": {"width": width, "height": height},
            "layout": scaling_to_dict(c.viewport.result),
            "order": self.order_lines(),
            "total_price": format_number(self.total_price()),
        }
