"""Shared design rules for plates, socket cutouts and the canvas.

The **validator** (which accepts or rejects a socket position), the
**mapper** (which turns anchors into pixel rectangles) and the **scene**
builder all read their sizes and clearances from here, so a socket that
looks legal on screen is also legal when it is committed.

Values can be overridden from a JSON file (see ``load_rules``); the
module-level singletons hold the defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path


@dataclass(frozen=True)
class SocketRules:
    """Physical rules for socket cutouts.

    All distances are in centimetres.
    """

    socket_size_cm: float = 7.0
    """Edge length of one square socket cutout."""

    socket_gap_cm: float = 0.5
    """Gap between two adjacent cutouts of the same group."""

    edge_clearance_cm: float = 3.0
    """Minimum distance from a group's bounding box to any plate edge."""

    inter_group_clearance_cm: float = 3.0
    """Minimum separation between bounding boxes of two groups on the
    same plate."""

    min_sockets: int = 1
    max_sockets: int = 5

    price_per_socket_eur: float = 20.0

    # ── Derived helpers ────────────────────────────────────────────

    @property
    def half_size_cm(self) -> float:
        return self.socket_size_cm / 2

    @property
    def pitch_cm(self) -> float:
        """Centre-to-centre distance between consecutive cutouts."""
        return self.socket_size_cm + self.socket_gap_cm

    def group_length_cm(self, count: int) -> float:
        """Length of a group of *count* cutouts along its orientation axis."""
        n = max(count, 0)
        if n == 0:
            return 0.0
        return n * self.socket_size_cm + (n - 1) * self.socket_gap_cm


@dataclass(frozen=True)
class CanvasRules:
    """Render-side constants.  Pixels are never persisted."""

    padding_px: float = 40.0
    """Padding between the canvas border and the plate row."""

    plate_gap_px: float = 20.0
    """Horizontal gap between two neighbouring plates."""

    resize_debounce_s: float = 0.1
    """Resize requests inside this window are coalesced."""

    error_display_s: float = 3.0
    """How long a rejected-drag message stays visible after release."""


@dataclass(frozen=True)
class DimensionRule:
    """Allowed range for one plate dimension (cm)."""

    min: float
    max: float
    default: float
    unit: str = "cm"


@dataclass(frozen=True)
class DimensionRules:
    width: DimensionRule = DimensionRule(min=20, max=300, default=200)
    height: DimensionRule = DimensionRule(min=30, max=128, default=100)
    min_plates: int = 1
    initial_width: str = "151.5"
    initial_height: str = "40"

    def for_field(self, field_name: str) -> DimensionRule:
        if field_name == "width":
            return self.width
        if field_name == "height":
            return self.height
        raise KeyError(field_name)


# Module-level singletons — importable everywhere.
SOCKET_RULES = SocketRules()
CANVAS_RULES = CanvasRules()
DIMENSION_RULES = DimensionRules()

SOCKET_SIZE_CM = SOCKET_RULES.socket_size_cm
SOCKET_GAP_CM = SOCKET_RULES.socket_gap_cm
EDGE_CLEARANCE_CM = SOCKET_RULES.edge_clearance_cm
INTER_GROUP_CLEARANCE_CM = SOCKET_RULES.inter_group_clearance_cm

# Tolerance for clearance comparisons (cm).  A box sitting exactly on a
# clearance boundary is legal.
CLEARANCE_EPS_CM = 1e-9


def _override(base, data: dict):
    known = {f.name for f in fields(base)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(
            f"Unknown {type(base).__name__} keys: {', '.join(sorted(unknown))}"
        )
    return replace(base, **data)


@lru_cache(maxsize=8)
def load_rules(path: str) -> tuple[SocketRules, CanvasRules]:
    """Load socket + canvas rules from a JSON file.

    Format::

        {"socket": {"edge_clearance_cm": 4.0}, "canvas": {"padding_px": 24}}

    Missing sections keep their defaults.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    socket_rules = _override(SOCKET_RULES, data.get("socket", {}))
    canvas_rules = _override(CANVAS_RULES, data.get("canvas", {}))
    return socket_rules, canvas_rules
