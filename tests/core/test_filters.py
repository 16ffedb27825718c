# SPDX-License-Identifier: Apache-2.0
"""
Filter compilation — JSON filter trees to client filter objects.

Compiled filters are compared structurally against filters built directly
with the client's ``Filter`` builder.
"""

from datetime import datetime, timezone

import pytest
from weaviate.classes.data import GeoCoordinate
from weaviate.classes.query import Filter

from weaviate_connector.errors import ValidationError
from weaviate_connector.filters import build_filter


def shape(value):
    """Comparable structure of a filter object tree."""
    if isinstance(value, (list, tuple)):
        return [shape(v) for v in value]
    if hasattr(value, "__dict__") and not isinstance(value, type):
        return (
            type(value).__name__,
            {k: shape(v) for k, v in vars(value).items() if not k.startswith("__")},
        )
    return value


def test_equal_on_text():
    """Verify that Equal compiles on a text value."""
    compiled = build_filter({"path": ["category"], "operator": "Equal", "valueText": "news"})
    assert shape(compiled) == shape(Filter.by_property("category").equal("news"))


def test_nested_and_or():
    """Verify that nested And and Or groups compile."""
    tree = {
        "operator": "And",
        "operands": [
            {"path": "views", "operator": "GreaterThan", "valueInt": 100},
            {
                "operator": "Or",
                "operands": [
                    {"path": "lang", "operator": "Equal", "valueText": "en"},
                    {"path": "title", "operator": "Like", "valueText": "*vector*"},
                ],
            },
        ],
    }
    expected = Filter.all_of(
        [
            Filter.by_property("views").greater_than(100),
            Filter.any_of(
                [
                    Filter.by_property("lang").equal("en"),
                    Filter.by_property("title").like("*vector*"),
                ]
            ),
        ]
    )
    assert shape(build_filter(tree)) == shape(expected)


def test_number_is_coerced_to_float():
    """Verify that valueNumber is coerced to float."""
    compiled = build_filter({"path": "price", "operator": "LessThanEqual", "valueNumber": 5})
    assert shape(compiled) == shape(Filter.by_property("price").less_or_equal(5.0))


def test_date_with_z_suffix():
    """Verify that dates with a Z suffix parse as UTC."""
    compiled = build_filter(
        {"path": "published", "operator": "GreaterThanEqual", "valueDate": "2024-01-01T00:00:00Z"}
    )
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert shape(compiled) == shape(Filter.by_property("published").greater_or_equal(when))


def test_contains_any_and_is_null():
    """Verify that ContainsAny and IsNull compile."""
    assert shape(
        build_filter({"path": "tags", "operator": "ContainsAny", "valueTextArray": ["a", "b"]})
    ) == shape(Filter.by_property("tags").contains_any(["a", "b"]))
    assert shape(
        build_filter({"path": "summary", "operator": "IsNull", "valueBoolean": True})
    ) == shape(Filter.by_property("summary").is_none(True))


def test_geo_range():
    """Verify that WithinGeoRange compiles to a geo filter."""
    compiled = build_filter(
        {
            "path": "location",
            "operator": "WithinGeoRange",
            "valueGeoRange": {
                "geoCoordinates": {"latitude": 52.37, "longitude": 4.89},
                "distance": {"max": 2000},
            },
        }
    )
    expected = Filter.by_property("location").within_geo_range(
        coordinate=GeoCoordinate(latitude=52.37, longitude=4.89),
        distance=2000.0,
    )
    assert shape(compiled) == shape(expected)


@pytest.mark.parametrize(
    "node, fragment",
    [
        ({"path": "a", "operator": "Equals", "valueText": "x"}, "Unsupported filter operator: Equals"),
        ({"path": "a", "operator": "equal", "valueText": "x"}, "Unsupported filter operator: equal"),
        ({"path": "a", "operator": "Equal"}, "requires one of"),
        ({"path": "a", "operator": "Equal", "valueText": "x", "valueInt": 1}, "exactly one value field"),
        ({"path": "a", "operator": "Like", "valueInt": 1}, "does not accept valueInt"),
        ({"path": ["a", "b"], "operator": "Equal", "valueText": "x"}, "single-element array"),
        ({"operator": "And", "operands": []}, "non-empty"),
        ({"path": "a", "operator": "Equal", "valueInt": "7"}, "must be an integer"),
        ({"path": "d", "operator": "LessThan", "valueDate": "yesterday"}, "not a valid date"),
        ([], "must be a JSON object"),
    ],
)
def test_malformed_filters_are_rejected(node, fragment):
    """Verify that malformed filters are rejected."""
    with pytest.raises(ValidationError) as exc_info:
        build_filter(node)
    assert fragment in exc_info.value.message


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-01T10:20:30.5Z", datetime(2024, 1, 1, 10, 20, 30, 500000, tzinfo=timezone.utc)),
        ("2024-01-01T10:20:30.12Z", datetime(2024, 1, 1, 10, 20, 30, 120000, tzinfo=timezone.utc)),
        ("2024-01-01T10:20:30.123456789+00:00", datetime(2024, 1, 1, 10, 20, 30, 123456, tzinfo=timezone.utc)),
    ],
)
def test_date_fractional_seconds_of_any_precision(raw, expected):
    """Verify that dates parse with fractional seconds of any precision."""
    compiled = build_filter({"path": "published", "operator": "LessThan", "valueDate": raw})
    assert shape(compiled) == shape(Filter.by_property("published").less_than(expected))
