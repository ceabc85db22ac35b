"""
Tests for path-addressed query tree edits, traversal and rendering.
"""

import pytest
from rich.console import Console

from footballviz.data import logic_group as lg
from footballviz.data.models.query import LogicOperator, QueryCondition, QueryGroup
from footballviz.errors import QueryTreeError, UnknownFieldError


def cond(field="down", operator="equals", value=3) -> QueryCondition:
    return QueryCondition(field=field, operator=operator, value=value)


def render_text(tree) -> str:
    console = Console(record=True, width=200)
    console.print(tree)
    return console.export_text()


@pytest.fixture
def tree() -> QueryGroup:
    # down = 3 AND (yard_line >= 80 OR distance <= 3)
    return QueryGroup(
        operator="and",
        conditions=[
            cond(),
            QueryGroup(
                operator="or",
                conditions=[
                    cond("yard_line", "greater_than_or_equal", 80),
                    cond("distance", "less_than_or_equal", 3),
                ],
            ),
        ],
    )


# ============================================================================
# MODEL PARSING
# ============================================================================


def test_wire_shape_without_kind_is_discriminated_by_field():
    group = QueryGroup.model_validate(
        {
            "operator": "and",
            "conditions": [
                {"field": "down", "operator": "equals", "value": 3},
                {"operator": "not", "conditions": [{"field": "play_type", "value": "Run"}]},
            ],
        }
    )
    assert isinstance(group.conditions[0], QueryCondition)
    assert isinstance(group.conditions[1], QueryGroup)
    assert group.conditions[1].operator == LogicOperator.NOT


def test_to_wire_drops_kind(tree):
    wire = tree.to_wire()
    assert wire["operator"] == "and"
    assert wire["conditions"][0] == {"field": "down", "operator": "equals", "value": 3}
    assert "kind" not in wire["conditions"][1]
    assert QueryGroup.model_validate(wire) == tree


# ============================================================================
# EDITS
# ============================================================================


def test_add_condition_appends_default_leaf():
    root = lg.add_condition(QueryGroup())
    assert len(root.conditions) == 1
    leaf = root.conditions[0]
    assert (leaf.field, leaf.operator, leaf.value) == ("play_type", "equals", "Pass")


def test_edits_do_not_mutate_input(tree):
    before = tree.model_dump()
    lg.add_condition(tree, (1,))
    lg.remove_condition(tree, 0)
    lg.change_operator(tree, "or")
    assert tree.model_dump() == before


def test_nested_edit_by_path(tree):
    root = lg.add_condition(tree, (1,), cond("formation", "equals", "Shotgun"))
    nested = lg.get_group(root, (1,))
    assert [c.field for c in nested.conditions] == ["yard_line", "distance", "formation"]
    assert root.conditions[0] == tree.conditions[0]


def test_change_operator_keeps_children(tree):
    root = lg.change_operator(tree, "not", (1,))
    nested = lg.get_group(root, (1,))
    assert nested.operator == LogicOperator.NOT
    assert nested.conditions == tree.conditions[1].conditions


def test_change_operator_rejects_unknown(tree):
    with pytest.raises(ValueError):
        lg.change_operator(tree, "xor")


def test_add_group_respects_nesting_cap():
    root = lg.add_group(QueryGroup(), (), max_level=2)
    root = lg.add_group(root, (0,), max_level=2)
    assert lg.tree_depth(root) == 2
    with pytest.raises(QueryTreeError):
        lg.add_group(root, (0, 0), max_level=2)


def test_nesting_cap_of_zero_is_reported_as_zero():
    with pytest.raises(QueryTreeError) as exc_info:
        lg.add_group(QueryGroup(), (), max_level=0)
    assert exc_info.value.details == {"level": 0, "max_level": 0}


def test_can_add_group():
    assert lg.can_add_group(0, 2)
    assert lg.can_add_group(1, 2)
    assert not lg.can_add_group(2, 2)


def test_remove_condition_keeps_order():
    root = QueryGroup(conditions=[cond(value=1), cond(value=2), cond(value=3)])
    root = lg.remove_condition(root, 1)
    assert [c.value for c in root.conditions] == [1, 3]


def test_update_condition_replaces_child(tree):
    root = lg.update_condition(tree, 0, cond("down", "equals", 4))
    assert root.conditions[0].value == 4


def test_update_nested_group_rejects_condition_slot(tree):
    with pytest.raises(QueryTreeError):
        lg.update_nested_group(tree, 0, QueryGroup())


def test_update_nested_group(tree):
    replacement = QueryGroup(operator="or", conditions=[cond("quarter", "equals", 4)])
    root = lg.update_nested_group(tree, 1, replacement)
    assert root.conditions[1] == replacement


def test_path_through_condition_raises(tree):
    with pytest.raises(QueryTreeError):
        lg.get_group(tree, (0,))
    with pytest.raises(QueryTreeError):
        lg.add_condition(tree, (5,))


# ============================================================================
# QUERIES AND RENDERING
# ============================================================================


def test_iter_conditions_paths(tree):
    paths = [(path, c.field) for path, c in lg.iter_conditions(tree)]
    assert paths == [((0,), "down"), ((1, 0), "yard_line"), ((1, 1), "distance")]


def test_find_unknown_fields(tree, schema):
    root = lg.add_condition(tree, (1,), cond("weather", "equals", "Rain"))
    assert lg.find_unknown_fields(root, schema) == [((1, 2), "weather")]


def test_find_unknown_fields_strict(tree, schema):
    assert lg.find_unknown_fields(tree, schema, strict=True) == []
    root = lg.add_condition(tree, (1,), cond("weather", "equals", "Rain"))
    root = lg.add_condition(root, (), cond("stadium", "equals", "Dome"))
    with pytest.raises(UnknownFieldError) as exc_info:
        lg.find_unknown_fields(root, schema, strict=True)
    assert exc_info.value.field == "weather"
    assert exc_info.value.code == "unknown_field"


def test_describe_group(tree, schema):
    assert lg.describe_group(tree, schema) == (
        "Down equals 3 AND (Yard Line >= 80 OR Distance <= 3)"
    )
    assert lg.describe_group(QueryGroup(), schema) == "all plays"
    negated = QueryGroup(operator="not", conditions=[cond()])
    assert lg.describe_group(negated, schema) == "NOT (Down equals 3)"


def test_render_group(tree, schema):
    text = render_text(lg.render_group(tree, schema))
    assert "& AND" in text
    assert "| OR" in text
    assert "Yard Line >= 80" in text
    assert "This AND group contains:" in text


def test_render_empty_and_unknown(schema):
    assert "No conditions in this AND group" in render_text(lg.render_group(QueryGroup(), schema))
    root = QueryGroup(operator="not", conditions=[cond("weather", "equals", "Rain")])
    text = render_text(lg.render_group(root, schema))
    assert "! NOT" in text
    assert "Unknown field: weather" in text
