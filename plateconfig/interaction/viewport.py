"""Viewport tracking — debounced canvas size plus the current layout pass.

Scale and plate rectangles live in one ``ScalingResult`` that is replaced
in a single assignment, so a reader never pairs a stale scale with a new
plate list.  Resize requests are coalesced: the layout is recomputed once
the canvas size has been stable for ``resize_debounce_s``.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from plateconfig.config import CANVAS_RULES, CanvasRules
from plateconfig.layout.models import PlateDimension, ScalingResult
from plateconfig.layout.scaling import calculate_indexed_scaling


log = logging.getLogger(__name__)


class ViewportTracker:
    def __init__(
        self,
        rules: CanvasRules = CANVAS_RULES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.rules = rules
        self._clock = clock
        self._size: tuple[float, float] = (0.0, 0.0)
        self._pending: tuple[float, float] | None = None
        self._pending_since = 0.0
        self._plates: tuple[PlateDimension, ...] = ()
        self._indices: tuple[int, ...] = ()
        self._result: ScalingResult | None = None

    # ── inputs ──────────────────────────────────────────────────────

    def set_plates(
        self,
        plates: Sequence[PlateDimension],
        indices: Sequence[int] | None = None,
    ) -> None:
        """Replace the plate list (optionally a subset by index) and
        recompute immediately."""
        self._plates = tuple(plates)
        if indices is None:
            indices = range(len(self._plates))
        self._indices = tuple(i for i in indices if 0 <= i < len(self._plates))
        self._recompute()

    def resize(self, width_px: float, height_px: float, *, immediate: bool = False) -> None:
        """Request a new canvas size.

        The first size ever reported, or one passed with ``immediate=True``,
        applies at once; later ones wait out the debounce window.  Each
        request restarts the window.
        """
        size = (float(width_px), float(height_px))
        if immediate or self._size == (0.0, 0.0):
            self._pending = None
            self._apply(size)
            return
        self._pending = size
        self._pending_since = self._clock()

    def poll(self) -> bool:
        """Apply a pending resize whose window has elapsed.  Returns True
        if the layout was recomputed."""
        if self._pending is None:
            return False
        if self._clock() - self._pending_since < self.rules.resize_debounce_s:
            return False
        size, self._pending = self._pending, None
        return self._apply(size)

    # ── outputs ─────────────────────────────────────────────────────

    @property
    def size(self) -> tuple[float, float]:
        self.poll()
        return self._size

    @property
    def result(self) -> ScalingResult | None:
        """Current layout pass, or None when nothing can be drawn."""
        self.poll()
        return self._result

    @property
    def has_pending_resize(self) -> bool:
        return self._pending is not None

    # ── internals ───────────────────────────────────────────────────

    def _apply(self, size: tuple[float, float]) -> bool:
        if size == self._size:
            return False
        self._size = size
        self._recompute()
        return True

    def _recompute(self) -> None:
        width, height = self._size
        self._result = calculate_indexed_scaling(
            self._plates, self._indices, width, height, self.rules,
        )
        if self._result is None:
            log.debug("Degenerate layout for canvas %.0f×%.0f", width, height)
        else:
            log.debug(
                "Layout %d plate(s) at %.3f px/cm on %.0f×%.0f",
                len(self._result.plates), self._result.scale, width, height,
            )
