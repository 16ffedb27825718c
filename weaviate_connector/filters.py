# weaviate_connector/filters.py
# SPDX-License-Identifier: Apache-2.0
"""
Compile JSON filter descriptions into Weaviate filter-builder calls.

Input grammar::

    composite := {"operator": "And" | "Or", "operands": [node, ...]}
    leaf      := {"path": str | [str], "operator": <op>, <valueField>: value}

Each leaf must carry exactly one value field, and that field must suit the
operator. Operator names are matched exactly; there is no case folding and
no synonym table.

Example::

    >>> build_filter({
    ...     "operator": "And",
    ...     "operands": [
    ...         {"path": ["category"], "operator": "Equal", "valueText": "news"},
    ...         {"path": "views", "operator": "GreaterThan", "valueInt": 100},
    ...     ],
    ... })
    # == Filter.all_of([
    #        Filter.by_property("category").equal("news"),
    #        Filter.by_property("views").greater_than(100),
    #    ])
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Tuple

from weaviate.classes.data import GeoCoordinate
from weaviate.classes.query import Filter

from weaviate_connector.errors import ValidationError

COMPOSITE_OPERATORS: Dict[str, Callable[[List[Any]], Any]] = {
    "And": Filter.all_of,
    "Or": Filter.any_of,
}

VALUE_FIELDS: Tuple[str, ...] = (
    "valueText",
    "valueNumber",
    "valueBoolean",
    "valueInt",
    "valueTextArray",
    "valueIntArray",
    "valueNumberArray",
    "valueDate",
    "valueGeoRange",
)

_SCALARS: FrozenSet[str] = frozenset(
    {"valueText", "valueNumber", "valueBoolean", "valueInt", "valueDate"}
)
_ARRAYS: FrozenSet[str] = frozenset({"valueTextArray", "valueIntArray", "valueNumberArray"})
_ORDERED: FrozenSet[str] = frozenset({"valueNumber", "valueInt", "valueDate"})

# Fractional seconds of any precision; fromisoformat before 3.11 only takes 3 or 6 digits.
_FRACTION = re.compile(r"([Tt ]\d{2}:\d{2}:\d{2})\.(\d+)")

# operator -> (builder method, accepted value fields)
LEAF_OPERATORS: Dict[str, Tuple[str, FrozenSet[str]]] = {
    "Equal": ("equal", _SCALARS | _ARRAYS),
    "NotEqual": ("not_equal", _SCALARS | _ARRAYS),
    "GreaterThan": ("greater_than", _ORDERED),
    "GreaterThanEqual": ("greater_or_equal", _ORDERED),
    "LessThan": ("less_than", _ORDERED),
    "LessThanEqual": ("less_or_equal", _ORDERED),
    "Like": ("like", frozenset({"valueText"})),
    "ContainsAny": ("contains_any", _ARRAYS),
    "ContainsAll": ("contains_all", _ARRAYS),
    "IsNull": ("is_none", frozenset({"valueBoolean"})),
    "WithinGeoRange": ("within_geo_range", frozenset({"valueGeoRange"})),
}


def build_filter(node: Any) -> Any:
    """Compile one filter tree. Raises ValidationError on malformed input."""
    if not isinstance(node, Mapping):
        raise ValidationError("Filter must be a JSON object")

    operator = node.get("operator")
    if not isinstance(operator, str) or not operator:
        raise ValidationError('Filter is missing required field "operator"')

    if operator in COMPOSITE_OPERATORS:
        operands = node.get("operands")
        if not isinstance(operands, list) or not operands:
            raise ValidationError(
                f'Filter operator "{operator}" requires a non-empty "operands" array'
            )
        return COMPOSITE_OPERATORS[operator]([build_filter(op) for op in operands])

    if operator not in LEAF_OPERATORS:
        raise ValidationError(
            f"Unsupported filter operator: {operator}",
            details={"operator": operator},
        )
    return _build_leaf(node, operator)


def _property_name(node: Mapping[str, Any]) -> str:
    path = node.get("path")
    if isinstance(path, list):
        if len(path) != 1:
            raise ValidationError(
                "Filter path must be a property name or a single-element array",
                details={"path": path},
            )
        path = path[0]
    if not isinstance(path, str) or not path.strip():
        raise ValidationError('Filter is missing required field "path"')
    return path


def _build_leaf(node: Mapping[str, Any], operator: str) -> Any:
    prop = _property_name(node)
    method, accepted = LEAF_OPERATORS[operator]

    present = [f for f in VALUE_FIELDS if f in node and node[f] is not None]
    if not present:
        raise ValidationError(
            f'Filter on "{prop}" with operator "{operator}" requires one of: '
            + ", ".join(f for f in VALUE_FIELDS if f in accepted),
            details={"path": prop, "operator": operator},
        )
    if len(present) > 1:
        raise ValidationError(
            f'Filter on "{prop}" must carry exactly one value field, got: {", ".join(present)}',
            details={"path": prop, "operator": operator},
        )
    value_field = present[0]
    if value_field not in accepted:
        raise ValidationError(
            f'Operator "{operator}" does not accept {value_field}; expected one of: '
            + ", ".join(f for f in VALUE_FIELDS if f in accepted),
            details={"path": prop, "operator": operator},
        )

    builder = Filter.by_property(prop)
    value = _coerce_value(value_field, node[value_field], prop)
    if value_field == "valueGeoRange":
        coordinate, distance = value
        return builder.within_geo_range(coordinate=coordinate, distance=distance)
    return getattr(builder, method)(value)


def _coerce_value(value_field: str, raw: Any, prop: str) -> Any:
    if value_field == "valueText":
        if not isinstance(raw, str):
            raise ValidationError(f'valueText for "{prop}" must be a string')
        return raw
    if value_field == "valueBoolean":
        if not isinstance(raw, bool):
            raise ValidationError(f'valueBoolean for "{prop}" must be a boolean')
        return raw
    if value_field == "valueInt":
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise ValidationError(f'valueInt for "{prop}" must be an integer')
        return raw
    if value_field == "valueNumber":
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValidationError(f'valueNumber for "{prop}" must be a number')
        return float(raw)
    if value_field == "valueDate":
        return _parse_date(raw, prop)
    if value_field in _ARRAYS:
        if not isinstance(raw, list):
            raise ValidationError(f'{value_field} for "{prop}" must be an array')
        return list(raw)
    return _parse_geo_range(raw, prop)


def _parse_date(raw: Any, prop: str) -> datetime:
    if not isinstance(raw, str):
        raise ValidationError(f'valueDate for "{prop}" must be an RFC 3339 string')
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            f'valueDate for "{prop}" is not a valid date: {raw}'
        ) from None


def _parse_geo_range(raw: Any, prop: str) -> Tuple[GeoCoordinate, float]:
    """``{"geoCoordinates": {"latitude", "longitude"}, "distance": {"max": meters}}``"""
    if not isinstance(raw, Mapping):
        raise ValidationError(f'valueGeoRange for "{prop}" must be an object')
    coords = raw.get("geoCoordinates")
    distance = raw.get("distance")
    if isinstance(distance, Mapping):
        distance = distance.get("max")
    if not isinstance(coords, Mapping):
        raise ValidationError(f'valueGeoRange for "{prop}" requires "geoCoordinates"')
    try:
        latitude = float(coords["latitude"])
        longitude = float(coords["longitude"])
        max_distance = float(distance)  # type: ignore[arg-type]
    except (KeyError, TypeError, ValueError):
        raise ValidationError(
            f'valueGeoRange for "{prop}" requires latitude, longitude and distance.max'
        ) from None
    return GeoCoordinate(latitude=latitude, longitude=longitude), max_distance


__all__ = ["build_filter", "COMPOSITE_OPERATORS", "LEAF_OPERATORS", "VALUE_FIELDS"]
