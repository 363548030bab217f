"""Layout — the stateless geometry core.

Submodules:
  models         Dataclasses for plates, socket groups, projections and verdicts.
  dimensions     Parsing / validation / clamping of entered plate sizes.
  scaling        Fit all plates into the canvas with one uniform scale.
  sockets        Project a socket group onto its plate (cm → px, Y flip).
  validation     Edge-clearance and inter-group-clearance checks.
  serialization  JSON conversion (socket_group_to_dict, parse_socket_group).
"""

from .models import (
    Orientation, PlateDimension, PlateLayout, ScalingResult, SocketGroup,
    SocketGroupError, PlateChangeError, SocketLayout, UnitRect, Verdict, DragUpdate,
)
from .dimensions import DimensionValue, parse_plate, parse_dimension_value
from .scaling import calculate_plate_scaling, calculate_indexed_scaling, cm_to_px, px_to_cm
from .sockets import (
    project_socket_group, hit_test_group, pixel_to_plate_cm, unit_centres_cm,
)
from .validation import (
    validate_socket_placement, validate_socket_group, socket_group_bbox,
    default_anchor,
)
from .serialization import socket_group_to_dict, parse_socket_group

__all__ = [
    # Models
    "Orientation", "PlateDimension", "PlateLayout", "ScalingResult",
    "SocketGroup", "SocketGroupError", "PlateChangeError", "SocketLayout", "UnitRect",
    "Verdict", "DragUpdate",
    # Dimensions
    "DimensionValue", "parse_plate", "parse_dimension_value",
    # Scaling
    "calculate_plate_scaling", "calculate_indexed_scaling", "cm_to_px", "px_to_cm",
    # Socket geometry
    "project_socket_group", "hit_test_group", "pixel_to_plate_cm", "unit_centres_cm",
    # Validation
    "validate_socket_placement", "validate_socket_group", "socket_group_bbox",
    "default_anchor",
    # Serialization
    "socket_group_to_dict", "parse_socket_group",
]
