"""
Seat-map editor domain: shape validation, grid generation, history and layout checks
"""
from seatmarket.seatmap.shapes import is_valid_shape, invalid_shape_ids, iter_shapes
from seatmarket.seatmap.grid import generate_grid, fit_grid, grid_dimensions, row_label
from seatmarket.seatmap.history import EditHistory, MAX_HISTORY
from seatmarket.seatmap.validation import validate_layout, point_in_polygon
from seatmarket.seatmap.inventory import extract_inventory, NoSeatingAreasError

__all__ = [
    "is_valid_shape",
    "invalid_shape_ids",
    "iter_shapes",
    "generate_grid",
    "fit_grid",
    "grid_dimensions",
    "row_label",
    "EditHistory",
    "MAX_HISTORY",
    "validate_layout",
    "point_in_polygon",
    "extract_inventory",
    "NoSeatingAreasError",
]
