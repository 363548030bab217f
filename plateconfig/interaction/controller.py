"""Interaction controller — drag-to-reposition and click selection.

Two states:

  Idle                  no drag session
  Dragging(session)     between pointer-down on a group and pointer-up/leave

Every pointer-move while dragging converts the pixel delta since the last
*accepted* pointer position into a cm delta, validates the candidate
anchor and either commits it to the socket store or surfaces the
validator's reason.  Releasing while a rejection is shown snaps the group
back to where the drag started.  Moves stay in memory during the drag;
the store is saved once on release.

Time is read from an injectable clock; the transient error expires
lazily, so the controller needs no timers or threads.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from plateconfig.config import CANVAS_RULES, SOCKET_RULES, CanvasRules, SocketRules
from plateconfig.geometry import rect_contains_point
from plateconfig.layout.models import (
    DragUpdate, PlateDimension, PlateLayout, ScalingResult, SocketGroup, SocketLayout,
)
from plateconfig.layout.scaling import px_to_cm
from plateconfig.layout.sockets import (
    hit_test_group, pixel_to_plate_cm, plate_cm_to_pixel, project_socket_group,
)
from plateconfig.layout.validation import validate_socket_placement
from plateconfig.store import SocketStore

from .viewport import ViewportTracker


log = logging.getLogger(__name__)


@dataclass
class DragSession:
    socket_id: str
    pointer_origin_px: tuple[float, float]
    anchor_origin_cm: tuple[float, float]
    pointer_ref_px: tuple[float, float]     # last accepted pointer position
    layout: ScalingResult | None = None     # frame pointer_ref_px is measured in
    layout_plate: PlateLayout | None = None


class InteractionController:
    def __init__(
        self,
        sockets: SocketStore,
        plates: Callable[[], Sequence[PlateDimension]],
        viewport: ViewportTracker | None = None,
        *,
        select_plate: Callable[[int], None] | None = None,
        rules: SocketRules = SOCKET_RULES,
        canvas_rules: CanvasRules = CANVAS_RULES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.sockets = sockets
        self._plates = plates
        self.viewport = viewport or ViewportTracker(canvas_rules, clock)
        self._select_plate = select_plate
        self.rules = rules
        self.canvas_rules = canvas_rules
        self._clock = clock

        self._drag: DragSession | None = None
        self._error: str | None = None
        self._error_expires_at: float | None = None

        self.cutouts_enabled = True
        self.focused_plate_index: int | None = None
        self.active_socket_id: str | None = None
        self.editing_socket_id: str | None = None

        self.refresh_layout()

    # ── side state ──────────────────────────────────────────────────

    @property
    def state(self) -> str:
        return "dragging" if self._drag is not None else "idle"

    @property
    def drag(self) -> DragSession | None:
        return self._drag

    @property
    def dragging_socket_id(self) -> str | None:
        return self._drag.socket_id if self._drag else None

    @property
    def error(self) -> str | None:
        """The transient drag error, if still visible."""
        if self._error_expires_at is not None and self._clock() >= self._error_expires_at:
            self._error = None
            self._error_expires_at = None
        return self._error

    def refresh_layout(self) -> None:
        """Push the current plate list (or the focused plate) to the viewport."""
        plates = list(self._plates())
        indices = None
        if self.focused_plate_index is not None and 0 <= self.focused_plate_index < len(plates):
            indices = [self.focused_plate_index]
        self.viewport.set_plates(plates, indices)

    def focus_plate(self, plate_index: int | None) -> None:
        """Show only one plate (socket placement view), or all with None."""
        self.focused_plate_index = plate_index
        if plate_index is None:
            self.active_socket_id = None
        self.refresh_layout()

    def set_cutouts_enabled(self, enabled: bool) -> None:
        self.cutouts_enabled = enabled
        if not enabled:
            if self._drag is not None:
                self.end_drag()
            self.focus_plate(None)

    def start_edit(self, socket_id: str | None) -> None:
        self.editing_socket_id = socket_id

    # ── projection ──────────────────────────────────────────────────

    def visible_groups(self) -> list[SocketGroup]:
        if not self.cutouts_enabled:
            return []
        if self.focused_plate_index is not None:
            return self.sockets.on_plate(self.focused_plate_index)
        return list(self.sockets.groups)

    def projected_groups(
        self, result: ScalingResult | None = None,
    ) -> list[tuple[SocketGroup, PlateLayout, SocketLayout]]:
        """(group, plate, pixel layout) for every visible group, in draw order."""
        result = result or self.viewport.result
        if result is None:
            return []
        out = []
        for group in self.visible_groups():
            plate = result.plate(group.plate_index)
            if plate is None:
                continue
            out.append((group, plate, project_socket_group(group, plate, result.scale, self.rules)))
        return out

    def hit_test(self, x: float, y: float) -> str | None:
        """Id of the topmost visible group under the point."""
        for group, _plate, layout in reversed(self.projected_groups()):
            if hit_test_group(layout, x, y):
                return group.id
        return None

    # ── drag machine ────────────────────────────────────────────────

    def begin_drag(self, socket_id: str, x: float, y: float) -> bool:
        """Idle → Dragging.  Returns False if the group does not exist."""
        group = self.sockets.get(socket_id)
        if group is None:
            return False
        result = self.viewport.result
        self._drag = DragSession(
            socket_id=socket_id,
            pointer_origin_px=(x, y),
            anchor_origin_cm=group.anchor,
            pointer_ref_px=(x, y),
            layout=result,
            layout_plate=result.plate(group.plate_index) if result else None,
        )
        self.active_socket_id = socket_id
        self.editing_socket_id = None
        self._error = None
        self._error_expires_at = None
        log.debug("Drag start %s at (%.1f, %.1f) px", socket_id, x, y)
        return True

    def pointer_down(self, x: float, y: float) -> str | None:
        """Hit-test and start dragging the group under the pointer."""
        if not self.cutouts_enabled:
            return None
        socket_id = self.hit_test(x, y)
        if socket_id is not None:
            self.begin_drag(socket_id, x, y)
        return socket_id

    def update_drag(self, x: float, y: float) -> DragUpdate:
        """Dragging + pointer-move: validate and commit or reject."""
        session = self._drag
        if session is None:
            return DragUpdate(accepted=False)

        group = self.sockets.get(session.socket_id)
        result = self.viewport.result
        plate = result.plate(group.plate_index) if (group and result) else None
        if group is None or plate is None:
            return DragUpdate(accepted=False)
        if result is not session.layout:
            self._rebase(session, group.plate_index, result)

        ref_x, ref_y = session.pointer_ref_px
        dx_cm = px_to_cm(x - ref_x, result.scale)
        dy_cm = -px_to_cm(y - ref_y, result.scale)     # canvas Y grows downward
        new_x = group.anchor_x_cm + dx_cm
        new_y = group.anchor_y_cm + dy_cm

        verdict = validate_socket_placement(
            new_x, new_y,
            group.count, group.orientation,
            plate.width_cm, plate.height_cm,
            self.sockets.on_plate(group.plate_index),
            exclude_id=group.id,
            rules=self.rules,
        )
        if not verdict.valid:
            self._error = verdict.reason
            self._error_expires_at = None
            log.debug("Drag %s rejected: %s", group.id, verdict.reason)
            return DragUpdate(accepted=False, reason=verdict.reason)

        self.sockets.move(group.id, new_x, new_y, persist=False)
        session.pointer_ref_px = (x, y)
        self._error = None
        self._error_expires_at = None
        return DragUpdate(accepted=True)

    def end_drag(self) -> bool:
        """Dragging → Idle (pointer-up or pointer-leave).

        Returns True if the group snapped back to its start position.
        """
        session = self._drag
        if session is None:
            return False
        self._drag = None

        snapped = False
        if self.error is not None:
            if self.sockets.get(session.socket_id) is not None:
                self.sockets.move(session.socket_id, *session.anchor_origin_cm, persist=False)
                snapped = True
                log.info("Drag of %s rejected; snapped back to (%.2f, %.2f)",
                         session.socket_id, *session.anchor_origin_cm)
            self._error_expires_at = self._clock() + self.canvas_rules.error_display_s
        else:
            group = self.sockets.get(session.socket_id)
            if group is not None:
                log.info("Moved socket group %s to (%.2f, %.2f)",
                         group.id, group.anchor_x_cm, group.anchor_y_cm)
        self.sockets.flush()
        return snapped

    pointer_up = end_drag
    pointer_leave = end_drag

    def _rebase(self, session: DragSession, plate_index: int, result: ScalingResult) -> None:
        """Carry the reference pointer into a layout that changed mid-drag
        (debounced resize, plate edit)."""
        old_plate = session.layout_plate
        new_plate = result.plate(plate_index)
        if session.layout is not None and old_plate is not None:
            ref_cm = pixel_to_plate_cm(old_plate, session.layout.scale, *session.pointer_ref_px)
            session.pointer_ref_px = plate_cm_to_pixel(new_plate, result.scale, *ref_cm)
            log.debug("Drag %s rebased to %.3f px/cm", session.socket_id, result.scale)
        session.layout = result
        session.layout_plate = new_plate

    # ── click / tap ─────────────────────────────────────────────────

    def click(self, x: float, y: float) -> str | None:
        """Select the group or plate under the point.

        Returns ``"socket"``, ``"plate"`` or None for what was hit.
        Missing everything clears the socket selection.
        """
        if self.cutouts_enabled:
            socket_id = self.hit_test(x, y)
            if socket_id is not None:
                self.active_socket_id = socket_id
                return "socket"

        result = self.viewport.result
        if result is not None:
            for plate in result.plates:
                if rect_contains_point(plate.rect, x, y):
                    if self._select_plate is not None:
                        self._select_plate(plate.index)
                    self.active_socket_id = None
                    return "plate"

        if self.cutouts_enabled:
            self.active_socket_id = None
        return None
