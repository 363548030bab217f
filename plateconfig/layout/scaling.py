"""Plate scaling — fit every plate into the canvas with one uniform scale."""

from __future__ import annotations

import logging
import math
from typing import Sequence

from plateconfig.config import CANVAS_RULES, CanvasRules

from .models import PlateDimension, PlateLayout, ScalingResult


log = logging.getLogger(__name__)


def _footprint(value: float) -> float:
    """Zero for non-positive or non-finite sizes."""
    if not math.isfinite(value) or value <= 0:
        return 0.0
    return value


def calculate_plate_scaling(
    plates: Sequence[PlateDimension],
    canvas_width_px: float,
    canvas_height_px: float,
    rules: CanvasRules = CANVAS_RULES,
) -> ScalingResult | None:
    """Compute the pixel rectangle of every plate.

    Plates are laid out left-to-right, separated by a fixed pixel gap and
    vertically centred.  The scale (px per cm) is the largest value that
    fits both the summed widths and the tallest plate.

    Returns ``None`` for a degenerate layout (no plates, empty canvas, or
    nothing with a positive footprint); callers skip rendering.
    """
    n = len(plates)
    if n == 0 or canvas_width_px <= 0 or canvas_height_px <= 0:
        return None

    widths = [_footprint(p.width_cm) for p in plates]
    heights = [_footprint(p.height_cm) for p in plates]

    total_width_cm = sum(widths)
    max_height_cm = max(heights)
    if total_width_cm <= 0 or max_height_cm <= 0:
        return None

    available_width = (
        canvas_width_px - rules.padding_px * 2 - rules.plate_gap_px * (n - 1)
    )
    available_height = canvas_height_px - rules.padding_px * 2
    if available_width <= 0 or available_height <= 0:
        log.debug(
            "Canvas %.0f×%.0f too small for %d plate(s)",
            canvas_width_px, canvas_height_px, n,
        )
        return None

    scale = min(available_width / total_width_cm, available_height / max_height_cm)

    layouts: list[PlateLayout] = []
    current_x = rules.padding_px
    for index, (w_cm, h_cm) in enumerate(zip(widths, heights)):
        w_px = w_cm * scale
        h_px = h_cm * scale
        y = rules.padding_px + (available_height - h_px) / 2
        layouts.append(PlateLayout(
            index=index,
            x_px=current_x,
            y_px=y,
            width_px=w_px,
            height_px=h_px,
            width_cm=w_cm,
            height_cm=h_cm,
        ))
        current_x += w_px + rules.plate_gap_px

    return ScalingResult(
        scale=scale,
        plates=tuple(layouts),
        total_width_px=current_x - rules.plate_gap_px - rules.padding_px,
        max_height_px=max_height_cm * scale,
    )


def calculate_indexed_scaling(
    plates: Sequence[PlateDimension],
    indices: Sequence[int],
    canvas_width_px: float,
    canvas_height_px: float,
    rules: CanvasRules = CANVAS_RULES,
) -> ScalingResult | None:
    """Lay out only the plates at *indices*, keeping their original index.

    Used for the single-plate view: the plate fills the canvas but sockets
    still find it by their ``plate_index``.
    """
    subset = [plates[i] for i in indices]
    result = calculate_plate_scaling(subset, canvas_width_px, canvas_height_px, rules)
    if result is None:
        return None
    relabelled = tuple(
        PlateLayout(
            index=indices[p.index],
            x_px=p.x_px, y_px=p.y_px,
            width_px=p.width_px, height_px=p.height_px,
            width_cm=p.width_cm, height_cm=p.height_cm,
        )
        for p in result.plates
    )
    return ScalingResult(
        scale=result.scale,
        plates=relabelled,
        total_width_px=result.total_width_px,
        max_height_px=result.max_height_px,
    )


def cm_to_px(cm: float, scale: float) -> float:
    return cm * scale


def px_to_cm(px: float, scale: float) -> float:
    return px / scale
