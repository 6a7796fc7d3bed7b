"""
Turn a seat map's shapes into event inventory (areas -> rows -> seats)
"""
from decimal import Decimal
from typing import Any, Dict, List

from seatmarket.seatmap.shapes import iter_shapes


class NoSeatingAreasError(ValueError):
    """Raised when a seat map has nothing that can become inventory"""


def _price(value) -> Decimal:
    return Decimal(str(value or 0))


def _polygon_area(polygon: Dict[str, Any]) -> Dict[str, Any]:
    default_price = polygon.get("defaultPrice") or 0
    return {
        "name": polygon.get("name") or polygon.get("areaName") or f"Area {polygon['id'][-5:]}",
        "price": _price(default_price),
        "rows": [
            {
                "row_name": str(row.get("name") or ""),
                "seats": [
                    {
                        "seat_number": str(seat.get("number")),
                        "category": seat.get("category") or "standard",
                        "price": _price(seat.get("price") or default_price),
                    }
                    for seat in row.get("seats") or []
                ],
            }
            for row in polygon["rows"]
        ],
    }


def _grid_area(grid: Dict[str, Any]) -> Dict[str, Any]:
    price = _price((grid.get("seatSettings") or {}).get("price"))
    return {
        "name": grid.get("gridName") or grid.get("name") or f"Area {grid['id'][-5:]}",
        "price": price,
        "rows": [
            {
                "row_name": row.get("rowName") or row.get("name") or "",
                "seats": [
                    {"seat_number": str(seat.get("name")), "category": "standard", "price": price}
                    for seat in row.get("children") or []
                ],
            }
            for row in grid.get("children") or []
        ],
    }


def extract_inventory(shapes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Seating areas are polygons carrying rows, plus area-mode grids.

    Raises NoSeatingAreasError when neither is present.
    """
    areas = [
        _polygon_area(shape)
        for shape in shapes
        if shape.get("type") == "polygon" and shape.get("rows")
    ]
    areas.extend(
        _grid_area(shape)
        for shape in iter_shapes(shapes)
        if shape.get("type") == "container" and shape.get("gridName") and shape.get("children")
    )

    if not areas:
        raise NoSeatingAreasError("No seating areas found in the selected seat map")
    return areas
