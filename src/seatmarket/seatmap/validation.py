"""
Layout checks run before a seat map is published or applied to an event
"""
import math
from typing import Any, Dict, List, Tuple

from seatmarket.seatmap.shapes import iter_shapes

Point = Tuple[float, float]

SEVERITY_ORDER = {"error": 0, "warning": 1, "info": 2}
SPACING_TOLERANCE = 0.15


def point_in_polygon(point: Point, polygon: List[Point]) -> bool:
    """Ray casting: count edge crossings of a horizontal ray from the point"""
    x, y = point
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def _area_center(area: Dict[str, Any]) -> Point:
    center = area.get("center")
    if isinstance(center, dict):
        return center["x"], center["y"]
    points = area["points"]
    return (
        sum(p["x"] for p in points) / len(points),
        sum(p["y"] for p in points) / len(points),
    )


def seat_absolute_position(seat: Dict[str, Any], area: Dict[str, Any]) -> Point:
    """Seats in a polygon area are stored relative to the area's center"""
    cx, cy = _area_center(area)
    return cx + seat["x"] - area["x"], cy + seat["y"] - area["y"]


def seats_outside_area(area: Dict[str, Any]) -> List[Dict[str, Any]]:
    points = area.get("points") or []
    if len(points) < 3 or not area.get("rows"):
        return []

    polygon = [(p["x"], p["y"]) for p in points]
    outside = []
    for row in area["rows"]:
        for seat in row.get("seats") or []:
            position = seat_absolute_position(seat, area)
            if not point_in_polygon(position, polygon):
                outside.append({
                    "seat_id": seat.get("id"),
                    "row_name": row.get("name") or f"Row {row.get('id')}",
                    "seat_number": seat.get("number") or 0,
                    "position": {"x": position[0], "y": position[1]},
                })
    return outside


def _rotate(x: float, y: float, angle: float) -> Point:
    cos, sin = math.cos(angle or 0), math.sin(angle or 0)
    return x * cos - y * sin, x * sin + y * cos


def seat_world_position(seat: Dict[str, Any], row: Dict[str, Any], grid: Dict[str, Any]) -> Point:
    """Compose seat -> row -> grid transforms (rotations in radians)"""
    x, y = _rotate(seat["x"], seat["y"], row.get("rotation"))
    x, y = x + row["x"], y + row["y"]
    x, y = _rotate(x, y, grid.get("rotation"))
    return x + grid["x"], y + grid["y"]


def _seat_info(seat, row, grid) -> Dict[str, Any]:
    return {
        "id": seat["id"],
        "grid_id": grid["id"],
        "grid_name": grid.get("gridName") or f"Grid {grid['id']}",
        "row_id": row["id"],
        "row_name": row.get("rowName") or f"Row {row['id']}",
        "seat_number": seat.get("name") or f"Seat {seat['id']}",
    }


def _grids(shapes: List[Dict[str, Any]]):
    return [s for s in iter_shapes(shapes) if s.get("type") == "container" and s.get("gridName")]


def check_area_boundaries(shapes) -> List[Dict[str, Any]]:
    issues = []
    for area in shapes:
        if area.get("type") != "polygon":
            continue
        outside = seats_outside_area(area)
        if outside:
            area_name = area.get("name") or area.get("areaName") or "Unnamed Area"
            issues.append({
                "id": f"outside-{area['id']}",
                "type": "seats-outside-area",
                "severity": "error",
                "title": f"Seats outside {area_name}",
                "description": f'{len(outside)} seat(s) in "{area_name}" are outside the defined area boundaries.',
                "area_id": area["id"],
                "affected_seats": outside,
            })
    return issues


def check_seat_overlaps(shapes) -> List[Dict[str, Any]]:
    positions = []
    for grid in _grids(shapes):
        for row in grid.get("children") or []:
            for seat in row.get("children") or []:
                positions.append((seat, row, grid, seat_world_position(seat, row, grid)))

    issues = []
    for i, (seat1, row1, grid1, (x1, y1)) in enumerate(positions):
        for seat2, row2, grid2, (x2, y2) in positions[i + 1:]:
            min_distance = seat1.get("radiusX", 0) + seat2.get("radiusX", 0)
            distance = math.hypot(x1 - x2, y1 - y2)
            if min_distance <= 0 or distance >= min_distance:
                continue

            overlap = (min_distance - distance) / min_distance * 100
            if overlap > 50:
                severity, title = "error", "Seats are overlapping significantly"
            elif overlap > 25:
                severity, title = "warning", "Seats are overlapping"
            else:
                severity, title = "warning", "Seats are very close"

            info1, info2 = _seat_info(seat1, row1, grid1), _seat_info(seat2, row2, grid2)
            issues.append({
                "id": f"overlap-{seat1['id']}-{seat2['id']}",
                "type": "overlapping-seats",
                "severity": severity,
                "title": title,
                "description": (
                    f"Seats {info1['seat_number']} ({info1['grid_name']} - {info1['row_name']}) and "
                    f"{info2['seat_number']} ({info2['grid_name']} - {info2['row_name']}) overlap by {overlap:.1f}%."
                ),
                "affected_seats": [info1, info2],
            })
    return issues


def check_row_spacing(shapes) -> List[Dict[str, Any]]:
    issues = []
    for grid in _grids(shapes):
        for row in grid.get("children") or []:
            seats = sorted(row.get("children") or [], key=lambda s: s["x"])
            if len(seats) < 3:
                continue
            gaps = [b["x"] - a["x"] for a, b in zip(seats, seats[1:])]
            average = sum(gaps) / len(gaps)
            tolerance = average * SPACING_TOLERANCE

            affected = {}
            for index, gap in enumerate(gaps):
                if abs(gap - average) > tolerance:
                    for seat in (seats[index], seats[index + 1]):
                        affected[seat["id"]] = _seat_info(seat, row, grid)
            if affected:
                row_name = row.get("rowName") or f"Row {row['id']}"
                issues.append({
                    "id": f"spacing-{row['id']}",
                    "type": "spacing",
                    "severity": "warning",
                    "title": f"Inconsistent spacing in {row_name}",
                    "description": f"Some seats in {row_name} have irregular spacing.",
                    "affected_seats": list(affected.values()),
                })
    return issues


def check_seat_numbering(shapes) -> List[Dict[str, Any]]:
    issues = []
    for grid in _grids(shapes):
        for row in grid.get("children") or []:
            seats = row.get("children") or []
            row_name = row.get("rowName") or f"Row {row['id']}"

            names = [seat.get("name") for seat in seats]
            duplicates = {n for n in names if n and names.count(n) > 1}
            if duplicates:
                issues.append({
                    "id": f"numbering-{row['id']}",
                    "type": "naming",
                    "severity": "warning",
                    "title": f"Duplicate seat numbers in {row_name}",
                    "description": f"Multiple seats in {row_name} share the same number.",
                    "affected_seats": [_seat_info(s, row, grid) for s in seats if s.get("name") in duplicates],
                })

            unnamed = [s for s in seats if not (s.get("name") or "").strip()]
            if unnamed:
                issues.append({
                    "id": f"naming-empty-{row['id']}",
                    "type": "naming",
                    "severity": "info",
                    "title": f"Unnamed seats in {row_name}",
                    "description": f"Some seats in {row_name} don't have labels.",
                    "affected_seats": [_seat_info(s, row, grid) for s in unnamed],
                })
    return issues


def check_pricing(shapes) -> List[Dict[str, Any]]:
    issues = []
    for grid in _grids(shapes):
        if (grid.get("seatSettings") or {}).get("price", 0) <= 0:
            grid_name = grid.get("gridName")
            issues.append({
                "id": f"pricing-{grid['id']}",
                "type": "pricing",
                "severity": "warning",
                "title": f"No price set for {grid_name}",
                "description": f'The seating area "{grid_name}" has no price configured.',
                "affected_seats": [
                    _seat_info(seat, row, grid)
                    for row in grid.get("children") or []
                    for seat in row.get("children") or []
                ],
            })
    return issues


def validate_layout(shapes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """All layout issues, errors first"""
    issues = []
    issues.extend(check_area_boundaries(shapes))
    issues.extend(check_seat_overlaps(shapes))
    issues.extend(check_row_spacing(shapes))
    issues.extend(check_seat_numbering(shapes))
    issues.extend(check_pricing(shapes))
    issues.sort(key=lambda issue: SEVERITY_ORDER[issue["severity"]])
    return issues
