"""
Seat grid generation for the area-mode editor
"""
import math
import uuid
from typing import Any, Dict, Optional

DEFAULT_SEAT_SPACING = 25
DEFAULT_ROW_SPACING = 30

DEFAULT_SEAT_SETTINGS = {
    "seatSpacing": DEFAULT_SEAT_SPACING,
    "rowSpacing": DEFAULT_ROW_SPACING,
    "seatRadius": 8,
    "seatColor": 0x4CAF50,
    "seatStrokeColor": 0x2E7D0F,
    "seatStrokeWidth": 1,
    "price": 0,
}

DEFAULT_LABEL_STYLE = {
    "fontFamily": "Arial",
    "fontSize": 10,
    "fill": 0xFFFFFF,
    "fontWeight": "normal",
    "align": "center",
}


def new_shape_id() -> str:
    return str(uuid.uuid4())


def row_label(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA"""
    label = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        label = chr(65 + remainder) + label
    return label


def _base(shape_type: str, name: str, x: float, y: float) -> Dict[str, Any]:
    return {
        "id": new_shape_id(),
        "name": name,
        "type": shape_type,
        "visible": True,
        "interactive": True,
        "x": x,
        "y": y,
        "rotation": 0,
        "scaleX": 1,
        "scaleY": 1,
        "opacity": 1,
    }


def make_seat(x: float, y: float, number: int, row_id: str, grid_id: str, settings: Dict[str, Any]) -> Dict[str, Any]:
    seat = _base("ellipse", str(number), x, y)
    seat.update(
        radiusX=settings["seatRadius"],
        radiusY=settings["seatRadius"],
        color=settings["seatColor"],
        strokeColor=settings["seatStrokeColor"],
        strokeWidth=settings["seatStrokeWidth"],
        rowId=row_id,
        gridId=grid_id,
        showLabel=True,
        labelStyle=dict(DEFAULT_LABEL_STYLE),
    )
    return seat


def generate_grid(
    rows: int,
    seats_per_row: int,
    seat_spacing: Optional[float] = None,
    row_spacing: Optional[float] = None,
    start_x: float = 0,
    start_y: float = 0,
    grid_name: str = "Grid 1",
    price: Optional[float] = None,
    seat_settings: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build a grid container of labelled rows of seats.

    Rows sit at (0, row * row_spacing) inside the grid and seats at
    (seat * seat_spacing, 0) inside their row. Row names run A, B, C and
    seat names 1..seats_per_row.
    """
    if rows < 1 or seats_per_row < 1:
        raise ValueError("A grid needs at least one row and one seat per row")

    settings = dict(DEFAULT_SEAT_SETTINGS)
    if seat_settings:
        settings.update(seat_settings)
    settings["seatSpacing"] = seat_spacing or settings["seatSpacing"] or DEFAULT_SEAT_SPACING
    settings["rowSpacing"] = row_spacing or settings["rowSpacing"] or DEFAULT_ROW_SPACING
    if price is not None:
        settings["price"] = price

    grid = _base("container", grid_name, start_x, start_y)
    grid.update(expanded=True, children=[], gridName=grid_name, seatSettings=settings)

    for row_index in range(rows):
        name = row_label(row_index)
        row = _base("container", name, 0, row_index * settings["rowSpacing"])
        row.update(
            expanded=True,
            children=[],
            rowName=name,
            seatSpacing=settings["seatSpacing"],
            gridId=grid["id"],
            labelPlacement="none",
        )
        for seat_index in range(seats_per_row):
            row["children"].append(
                make_seat(seat_index * settings["seatSpacing"], 0, seat_index + 1, row["id"], grid["id"], settings)
            )
        grid["children"].append(row)

    return grid


def grid_dimensions(width: float, height: float, seat_spacing: Optional[float] = None, row_spacing: Optional[float] = None):
    """How many rows and seats per row fit in a dragged rectangle"""
    seat_spacing = seat_spacing or DEFAULT_SEAT_SPACING
    row_spacing = row_spacing or DEFAULT_ROW_SPACING
    seats_per_row = max(1, math.floor(width / seat_spacing))
    rows = max(1, math.floor(height / row_spacing))
    return rows, seats_per_row


def fit_grid(width: float, height: float, start_x: float = 0, start_y: float = 0, **kwargs) -> Dict[str, Any]:
    rows, seats_per_row = grid_dimensions(width, height, kwargs.get("seat_spacing"), kwargs.get("row_spacing"))
    return generate_grid(rows, seats_per_row, start_x=start_x, start_y=start_y, **kwargs)
