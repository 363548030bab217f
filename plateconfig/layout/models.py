"""Layout dataclasses — plates, socket groups and their pixel projections."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from plateconfig.geometry import Rect


class Orientation(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class SocketGroupError(ValueError):
    """Raised when a socket group is structurally invalid (bad count,
    unknown orientation, unknown plate or id)."""


class PlateChangeError(ValueError):
    """Raised when a plate edit would leave a committed group in an
    illegal position.  Carries the offending group's id and verdict."""

    def __init__(self, socket_id: str, verdict: Verdict) -> None:
        super().__init__(f"Socket group '{socket_id}' no longer fits: {verdict.reason}")
        self.socket_id = socket_id
        self.verdict = verdict


# ── Persisted (cm) ─────────────────────────────────────────────────


@dataclass(frozen=True)
class PlateDimension:
    """Plate size in cm.  Non-positive values mean "not entered yet"."""

    width_cm: float
    height_cm: float


@dataclass(frozen=True)
class SocketGroup:
    """One or more cutouts sharing a single anchor.

    The anchor is the centre of the first unit (leftmost for horizontal
    groups, bottommost for vertical ones), measured in cm from the
    plate's bottom-left corner.
    """

    id: str
    plate_index: int
    count: int
    orientation: Orientation
    anchor_x_cm: float
    anchor_y_cm: float

    @property
    def anchor(self) -> tuple[float, float]:
        return (self.anchor_x_cm, self.anchor_y_cm)


# ── Derived (px) ───────────────────────────────────────────────────


@dataclass(frozen=True)
class PlateLayout:
    """A plate's rectangle on the canvas."""

    index: int
    x_px: float
    y_px: float
    width_px: float
    height_px: float
    width_cm: float
    height_cm: float

    @property
    def rect(self) -> Rect:
        return (self.x_px, self.y_px, self.x_px + self.width_px, self.y_px + self.height_px)


@dataclass(frozen=True)
class ScalingResult:
    """Output of one layout pass.  ``scale`` and ``plates`` always belong
    to the same pass."""

    scale: float                    # pixels per cm
    plates: tuple[PlateLayout, ...]
    total_width_px: float
    max_height_px: float

    def plate(self, index: int) -> PlateLayout | None:
        for p in self.plates:
            if p.index == index:
                return p
        return None


@dataclass(frozen=True)
class UnitRect:
    """One socket cutout on the canvas (top-left origin)."""

    x_px: float
    y_px: float
    size_px: float

    @property
    def rect(self) -> Rect:
        return (self.x_px, self.y_px, self.x_px + self.size_px, self.y_px + self.size_px)

    @property
    def center(self) -> tuple[float, float]:
        half = self.size_px / 2
        return (self.x_px + half, self.y_px + half)


@dataclass(frozen=True)
class SocketLayout:
    socket_id: str
    units: tuple[UnitRect, ...]
    anchor_x_px: float
    anchor_y_px: float


# ── Verdicts ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Verdict:
    """PlacementValidator result.  ``edge`` is set for edge-clearance
    failures, ``conflict_id`` for inter-group failures."""

    valid: bool
    reason: str | None = None
    edge: str | None = None
    conflict_id: str | None = None


VALID = Verdict(valid=True)


@dataclass(frozen=True)
class DragUpdate:
    accepted: bool
    reason: str | None = None
