"""
Structural validation of seat-map canvas items

Shapes arrive as plain JSON dicts from the editor. A shape is valid when it
carries the base canvas properties and the properties its type needs.
Containers are checked recursively.
"""
from numbers import Real
from typing import Any, Dict, List

VALID_TYPES = (
    "rectangle",
    "ellipse",
    "text",
    "polygon",
    "image",
    "svg",
    "container",
    "freeshape",
)

FONT_WEIGHTS = ("normal", "bold")
TEXT_ALIGNS = ("left", "center", "right")
UPLOAD_STATES = ("uploading", "uploaded", "failed")
PATH_POINT_TYPES = ("move", "curve", "line")
LABEL_PLACEMENTS = ("left", "middle", "right", "none")


def _num(value) -> bool:
    # JSON booleans are not numbers
    return isinstance(value, Real) and not isinstance(value, bool)


def _non_negative(value) -> bool:
    return _num(value) and value >= 0


def _positive(value) -> bool:
    return _num(value) and value > 0


def _non_empty_str(value) -> bool:
    return isinstance(value, str) and len(value) > 0


def _optional_num(shape: Dict[str, Any], key: str) -> bool:
    return shape.get(key) is None or _num(shape[key])


def _stroked(shape: Dict[str, Any]) -> bool:
    return (
        _num(shape.get("color"))
        and _num(shape.get("strokeColor"))
        and _non_negative(shape.get("strokeWidth"))
    )


def has_base_props(shape: Any) -> bool:
    """Base canvas properties every item carries"""
    if not isinstance(shape, dict):
        return False
    return (
        _non_empty_str(shape.get("id"))
        and isinstance(shape.get("name"), str)
        and isinstance(shape.get("type"), str)
        and isinstance(shape.get("visible"), bool)
        and isinstance(shape.get("interactive"), bool)
        and all(_num(shape.get(k)) for k in ("x", "y", "rotation", "scaleX", "scaleY"))
        and _num(shape.get("opacity"))
        and 0 <= shape["opacity"] <= 1
    )


def validate_seat_settings(settings: Any) -> bool:
    return (
        isinstance(settings, dict)
        and _non_negative(settings.get("seatSpacing"))
        and _non_negative(settings.get("rowSpacing"))
        and _positive(settings.get("seatRadius"))
        and _num(settings.get("seatColor"))
        and _num(settings.get("seatStrokeColor"))
        and _non_negative(settings.get("seatStrokeWidth"))
        and _non_negative(settings.get("price"))
    )


def _validate_rectangle(shape):
    return (
        _non_negative(shape.get("width"))
        and _non_negative(shape.get("height"))
        and _non_negative(shape.get("cornerRadius"))
        and _stroked(shape)
    )


def _validate_ellipse(shape):
    if not (
        _non_negative(shape.get("radiusX"))
        and _non_negative(shape.get("radiusY"))
        and _stroked(shape)
    ):
        return False

    # Seat variant
    if shape.get("rowId") and shape.get("gridId"):
        label_style = shape.get("labelStyle")
        return (
            _non_empty_str(shape["rowId"])
            and _non_empty_str(shape["gridId"])
            and isinstance(shape.get("showLabel"), bool)
            and isinstance(label_style, dict)
            and isinstance(label_style.get("fontFamily"), str)
            and _positive(label_style.get("fontSize"))
        )
    return True


def _validate_text(shape):
    return (
        isinstance(shape.get("text"), str)
        and _positive(shape.get("fontSize"))
        and _non_empty_str(shape.get("fontFamily"))
        and _num(shape.get("color"))
        and shape.get("fontWeight") in FONT_WEIGHTS
        and shape.get("textAlign") in TEXT_ALIGNS
    )


def _validate_point(point) -> bool:
    return (
        isinstance(point, dict)
        and _num(point.get("x"))
        and _num(point.get("y"))
        and _optional_num(point, "radius")
    )


def _validate_polygon(shape):
    points = shape.get("points")
    if not (
        isinstance(points, list)
        and len(points) >= 3
        and all(_validate_point(p) for p in points)
        and _non_negative(shape.get("cornerRadius"))
        and _stroked(shape)
    ):
        return False

    # Seating area variant
    rows = shape.get("rows")
    if rows is None:
        return True
    if not isinstance(rows, list):
        return False
    if shape.get("defaultPrice") is not None and not _non_negative(shape["defaultPrice"]):
        return False
    for row in rows:
        if not isinstance(row, dict) or not isinstance(row.get("seats", []), list):
            return False
        for seat in row.get("seats", []):
            if not (isinstance(seat, dict) and _num(seat.get("x")) and _num(seat.get("y"))):
                return False
            if seat.get("price") is not None and not _non_negative(seat["price"]):
                return False
    return True


def _validate_image(shape):
    return (
        _non_empty_str(shape.get("src"))
        and _positive(shape.get("originalWidth"))
        and _positive(shape.get("originalHeight"))
        and (not shape.get("uploadState") or shape["uploadState"] in UPLOAD_STATES)
    )


def _validate_svg(shape):
    return (
        _non_empty_str(shape.get("svgContent"))
        and _positive(shape.get("originalWidth"))
        and _positive(shape.get("originalHeight"))
    )


def _validate_path_point(point) -> bool:
    return (
        isinstance(point, dict)
        and _num(point.get("x"))
        and _num(point.get("y"))
        and point.get("type") in PATH_POINT_TYPES
        and all(_optional_num(point, k) for k in ("cp1x", "cp1y", "cp2x", "cp2y", "smoothness"))
    )


def _validate_freeshape(shape):
    points = shape.get("points")
    return (
        isinstance(points, list)
        and len(points) >= 2
        and all(_validate_path_point(p) for p in points)
        and isinstance(shape.get("closed"), bool)
        and _stroked(shape)
        and _num(shape.get("smoothness"))
    )


def _validate_container(shape):
    children = shape.get("children")
    if not (isinstance(children, list) and isinstance(shape.get("expanded"), bool)):
        return False

    # Area-mode container holding grids
    if shape.get("defaultSeatSettings"):
        if not validate_seat_settings(shape["defaultSeatSettings"]):
            return False
        return all(
            isinstance(child, dict)
            and child.get("type") == "container"
            and _non_empty_str(child.get("gridName"))
            for child in children
        )

    # Grid holding rows
    if shape.get("gridName"):
        if not (_non_empty_str(shape["gridName"]) and validate_seat_settings(shape.get("seatSettings"))):
            return False
        return all(
            isinstance(child, dict)
            and child.get("type") == "container"
            and _non_empty_str(child.get("rowName"))
            and child.get("gridId") == shape["id"]
            for child in children
        )

    # Row holding seats
    if shape.get("rowName"):
        if not (
            _non_empty_str(shape["rowName"])
            and _non_negative(shape.get("seatSpacing"))
            and _non_empty_str(shape.get("gridId"))
            and shape.get("labelPlacement") in LABEL_PLACEMENTS
        ):
            return False
        return all(
            isinstance(child, dict)
            and child.get("type") == "ellipse"
            and child.get("rowId") == shape["id"]
            and child.get("gridId") == shape["gridId"]
            and isinstance(child.get("rowId"), str)
            for child in children
        )

    return all(is_valid_shape(child) for child in children)


_TYPE_VALIDATORS = {
    "rectangle": _validate_rectangle,
    "ellipse": _validate_ellipse,
    "text": _validate_text,
    "polygon": _validate_polygon,
    "image": _validate_image,
    "svg": _validate_svg,
    "freeshape": _validate_freeshape,
    "container": _validate_container,
}


def is_valid_shape(shape: Any) -> bool:
    """True when the shape has valid base props and valid type-specific props"""
    if not has_base_props(shape) or shape["type"] not in VALID_TYPES:
        return False
    return _TYPE_VALIDATORS[shape["type"]](shape)


def invalid_shape_ids(shapes: List[Any]) -> List[str]:
    """Ids (or positional markers) of every top-level shape that fails validation"""
    invalid = []
    for index, shape in enumerate(shapes):
        if not is_valid_shape(shape):
            shape_id = shape.get("id") if isinstance(shape, dict) else None
            invalid.append(shape_id if isinstance(shape_id, str) and shape_id else f"#{index}")
    return invalid


def iter_shapes(shapes: List[Dict[str, Any]]):
    """Depth-first walk over shapes and nested container children"""
    for shape in shapes:
        yield shape
        if shape.get("type") == "container":
            yield from iter_shapes(shape.get("children") or [])
