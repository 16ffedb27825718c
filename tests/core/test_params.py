# SPDX-License-Identifier: Apache-2.0
"""
Per-item parameter access and collection locators.
"""

import pytest

from weaviate_connector.errors import ValidationError
from weaviate_connector.params import (
    ByName,
    FromList,
    ItemParameters,
    StaticExecutionContext,
    parse_locator,
    resolve_locator,
)


def _params(parameters, item_parameters=(), index=0):
    ctx = StaticExecutionContext(parameters=parameters, item_parameters=list(item_parameters))
    return ItemParameters(ctx, index)


def test_static_context_defaults_to_single_empty_item():
    """Verify that the static context defaults to one empty item."""
    assert StaticExecutionContext().get_input_items() == [{}]


def test_missing_parameter_without_default_raises():
    """Verify that a missing parameter without a default raises."""
    with pytest.raises(ValidationError) as exc_info:
        _params({}).raw("collection")
    assert exc_info.value.message == 'Could not get parameter "collection"'


def test_item_overrides_win_over_shared_parameters():
    """Verify that item values override shared parameters."""
    params = _params({"limit": 10}, item_parameters=[{}, {"limit": 3}], index=1)
    assert params.integer("limit") == 3
    assert _params({"limit": 10}, item_parameters=[{}, {"limit": 3}]).integer("limit") == 10


def test_typed_getters_coerce_host_values():
    """Verify that typed getters coerce host values."""
    params = _params({"n": "0.5", "i": "4", "b": "true", "j": '{"a": [1]}', "blank": "  "})
    assert params.number("n") == 0.5
    assert params.integer("i") == 4
    assert params.boolean("b") is True
    assert params.json("j") == {"a": [1]}
    assert params.json("blank") is None


def test_integer_rejects_fractions_and_number_rejects_text():
    """Verify that integer rejects fractions and number rejects text."""
    with pytest.raises(ValidationError):
        _params({"i": 1.5}).integer("i")
    with pytest.raises(ValidationError):
        _params({"n": "many"}).number("n")


def test_required_string():
    """Verify that a required string must be non-empty."""
    with pytest.raises(ValidationError) as exc_info:
        _params({"query": " "}).string("query", required=True)
    assert 'Required field "query"' in exc_info.value.message


def test_options_are_typed_and_optional():
    """Verify that options are typed and optional."""
    opts = _params({"additionalOptions": {"tenant": "t1", "limit": "5", "returnProperties": "a, b"}}).options()
    assert opts.string("tenant") == "t1"
    assert opts.integer("limit") == 5
    assert opts.csv("returnProperties") == ["a", "b"]
    assert "tenant" in opts and "offset" not in opts
    assert _params({}).options().as_dict() == {}


def test_option_integer_rejects_fractions():
    """Verify that option integers reject fractions."""
    opts = _params({"additionalOptions": {"autocut": 1.5, "offset": "2"}}).options()
    assert opts.integer("offset") == 2
    with pytest.raises(ValidationError) as exc_info:
        opts.integer("autocut")
    assert exc_info.value.message == 'Field "autocut" must be an integer'


def test_options_must_be_a_mapping():
    """Verify that options must be a mapping."""
    with pytest.raises(ValidationError):
        _params({"additionalOptions": "nope"}).options()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Article", ByName("Article")),
        ({"mode": "list", "value": "Article"}, FromList("Article")),
        ({"mode": "name", "value": "Article"}, ByName("Article")),
        (None, ByName("")),
    ],
)
def test_parse_locator(raw, expected):
    """Verify that locators parse from both shapes."""
    assert parse_locator(raw) == expected


def test_both_locator_shapes_resolve_to_the_same_name():
    """Verify that both locator shapes resolve to the same name."""
    assert resolve_locator(ByName(" Article ")) == resolve_locator(FromList("Article")) == "Article"


def test_empty_locator_is_a_required_field_error():
    """Verify that an empty locator is a required-field error."""
    with pytest.raises(ValidationError) as exc_info:
        _params({"collection": {"mode": "list", "value": ""}}).collection()
    assert exc_info.value.message == 'Required field "collection" is missing or empty'
