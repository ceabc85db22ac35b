"""
Tests for condition editing: operator catalogue, value shapes, widgets and
input parsing.
"""

import pytest

from footballviz.data import conditions as c
from footballviz.data.models.query import QueryCondition


def cond(field="down", operator="equals", value=3) -> QueryCondition:
    return QueryCondition(field=field, operator=operator, value=value)


# ============================================================================
# OPERATORS
# ============================================================================


def test_operators_by_type():
    assert c.operators_for("integer")[-1] == "between"
    assert "between" in c.operators_for("float")
    assert c.operators_for("string") == [
        "equals", "not_equals", "contains", "starts_with", "ends_with",
    ]
    assert c.operators_for("enum") == ["equals", "not_equals", "in", "not_in"]
    assert c.operators_for(None) == ["equals", "not_equals"]


def test_operator_labels():
    assert c.operator_label("greater_than_or_equal") == ">="
    assert c.operator_label("not_in") == "is not one of"
    assert c.operator_label("mystery_op") == "mystery op"


# ============================================================================
# TRANSITIONS
# ============================================================================


@pytest.mark.parametrize(
    "field,operator,shape",
    [
        ("yard_line", "between", c.ValueShape.PAIR),
        ("formation", "in", c.ValueShape.LIST),
        ("formation", "not_in", c.ValueShape.LIST),
        ("down", "greater_than", c.ValueShape.SCALAR),
        ("play_name", "contains", c.ValueShape.SCALAR),
    ],
)
def test_change_operator_reseeds_value_shape(schema, field, operator, shape):
    edited = c.change_operator(cond(field, "equals", "x"), operator, schema)
    assert edited.operator == operator
    assert c.expected_shape(operator) == shape
    assert c.value_matches_shape(operator, edited.value)


def test_between_seed_uses_schema_bounds(schema):
    edited = c.change_operator(cond("yard_line", "equals", 50), "between", schema)
    assert edited.value == [0, 100]
    assert all(isinstance(v, int) for v in edited.value)


def test_list_operator_seeds_empty_list(schema):
    assert c.change_operator(cond("formation", "equals", "Shotgun"), "in", schema).value == []


def test_scalar_operator_seeds_default(schema):
    edited = c.change_operator(cond("yard_line", "between", [10, 20]), "greater_than", schema)
    assert edited.value == 50
    edited = c.change_operator(cond("play_name", "equals", "x"), "contains", schema)
    assert edited.value == ""


def test_change_operator_rejects_operator_for_type(schema):
    with pytest.raises(ValueError):
        c.change_operator(cond("play_name", "equals", "x"), "between", schema)


def test_change_field_resets_operator_and_value(schema):
    edited = c.change_field(cond("yard_line", "between", [80, 100]), "play_type", schema)
    assert (edited.field, edited.operator, edited.value) == ("play_type", "equals", "Pass")
    edited = c.change_field(edited, "play_name", schema)
    assert edited.value == ""


# ============================================================================
# WIDGETS AND INPUT
# ============================================================================


def test_widget_selection_order(schema):
    assert c.widget_for(cond("yard_line", "between", [0, 1]), schema.get("yard_line")) == c.WidgetKind.BETWEEN
    assert c.widget_for(cond("formation", "in", []), schema.get("formation")) == c.WidgetKind.CHECKLIST
    assert c.widget_for(cond("yard_line", "equals", 1), schema.get("yard_line")) == c.WidgetKind.RANGE_SLIDER
    assert c.widget_for(cond("down", "equals", 1), schema.get("down")) == c.WidgetKind.DROPDOWN
    assert c.widget_for(cond("formation", "equals", "x"), schema.get("formation")) == c.WidgetKind.MULTI_SELECT
    assert c.widget_for(cond("distance", "equals", 1), schema.get("distance")) == c.WidgetKind.NUMBER
    assert c.widget_for(cond("play_name", "equals", "x"), schema.get("play_name")) == c.WidgetKind.TEXT


def test_set_value_parses_numbers(schema):
    edited = c.set_value(cond("distance", "equals", 0), schema.get("distance"), "7")
    assert edited.value == 7
    edited = c.set_value(cond("yards_gained", "equals", 0), schema.get("yards_gained"), "2.5")
    assert edited.value == 2.5
    with pytest.raises(ValueError):
        c.set_value(cond("distance", "equals", 0), schema.get("distance"), "seven")


def test_set_value_between_pair(schema):
    edited = c.set_value(cond("yard_line", "between", [0, 100]), schema.get("yard_line"), ("80", 95))
    assert edited.value == [80, 95]


def test_multi_select_collapses_single_choice(schema):
    descriptor = schema.get("formation")
    edited = c.set_value(cond("formation", "equals", ""), descriptor, ["Shotgun"])
    assert edited.value == "Shotgun"
    edited = c.set_value(edited, descriptor, ["Shotgun", "Pistol"])
    assert edited.value == ["Shotgun", "Pistol"]


def test_dropdown_matches_option_type(schema):
    edited = c.set_value(cond("down", "equals", 1), schema.get("down"), "3")
    assert edited.value == 3


def test_toggle_option(schema):
    descriptor = schema.get("formation")
    edited = c.toggle_option(cond("formation", "in", []), descriptor, "Shotgun")
    edited = c.toggle_option(edited, descriptor, "I-Form")
    assert edited.value == ["Shotgun", "I-Form"]
    edited = c.toggle_option(edited, descriptor, "Shotgun")
    assert edited.value == ["I-Form"]


def test_unknown_field_keeps_raw_value():
    edited = c.set_value(cond("weather", "equals", ""), None, "Rain")
    assert edited.value == "Rain"


# ============================================================================
# INSPECTION
# ============================================================================


def test_inspect_unknown_field(schema):
    state = c.inspect_condition(cond("weather", "equals", "Rain"), schema)
    assert state.unknown
    assert state.message == "Unknown field: weather"
    assert state.widget is None


def test_inspect_known_field(schema):
    state = c.inspect_condition(cond("yard_line", "equals", 50), schema)
    assert not state.unknown
    assert state.widget == c.WidgetKind.RANGE_SLIDER
    assert "between" in state.operators


def test_describe_condition(schema):
    assert c.describe_condition(cond(), schema) == "Down equals 3"
    assert c.describe_condition(cond("yard_line", "between", [80, 100]), schema) == (
        "Yard Line between 80 and 100"
    )
    assert c.describe_condition(cond("formation", "in", ["Shotgun", "Pistol"]), schema) == (
        "Formation is one of [Shotgun, Pistol]"
    )
