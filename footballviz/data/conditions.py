"""
Condition editing for the footballviz query builder.

Everything the condition editor needs, without the widgets themselves:
- Operator catalogue per field data type, with display labels
- Field / operator transitions that keep the value shape consistent
- Widget selection and raw input parsing per widget
- Inspection of a condition against the schema (unknown field flagging)

Design Principles:
- Pure: every edit returns a new QueryCondition
- Shape follows operator: between -> [low, high], in / not_in -> list,
  anything else -> scalar
- Tolerant: unknown fields are reported as state, never raised
"""

from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from typing import Any, Dict, List, Optional

from footballviz.data.models.query import (
    ConditionOperator,
    DataType,
    FieldDescriptor,
    FieldSchema,
    QueryCondition,
    UIType,
)

# ============================================================================
# OPERATOR CATALOGUE
# ============================================================================

BASE_OPERATORS: List[str] = [
    ConditionOperator.EQUALS.value,
    ConditionOperator.NOT_EQUALS.value,
]

NUMERIC_OPERATORS: List[str] = BASE_OPERATORS + [
    ConditionOperator.GREATER_THAN.value,
    ConditionOperator.GREATER_THAN_OR_EQUAL.value,
    ConditionOperator.LESS_THAN.value,
    ConditionOperator.LESS_THAN_OR_EQUAL.value,
    ConditionOperator.BETWEEN.value,
]

STRING_OPERATORS: List[str] = BASE_OPERATORS + [
    ConditionOperator.CONTAINS.value,
    ConditionOperator.STARTS_WITH.value,
    ConditionOperator.ENDS_WITH.value,
]

ENUM_OPERATORS: List[str] = BASE_OPERATORS + [
    ConditionOperator.IN.value,
    ConditionOperator.NOT_IN.value,
]

OPERATOR_LABELS: Dict[str, str] = {
    "equals": "equals",
    "not_equals": "not equals",
    "greater_than": ">",
    "greater_than_or_equal": ">=",
    "less_than": "<",
    "less_than_or_equal": "<=",
    "between": "between",
    "contains": "contains",
    "starts_with": "starts with",
    "ends_with": "ends with",
    "in": "is one of",
    "not_in": "is not one of",
}

LIST_OPERATORS = {ConditionOperator.IN.value, ConditionOperator.NOT_IN.value}

# New conditions start as a passing-play filter
DEFAULT_FIELD = "play_type"
DEFAULT_VALUE = "Pass"


def operators_for(data_type: Optional[str]) -> List[str]:
    """
    Operators offered for a field data type.

    Args:
        data_type: integer / float / string / enum (anything else gets the
            base equality pair)

    Returns:
        Operator names in display order

    Examples:
        operators_for("integer")  # [..., "between"]
        operators_for("enum")     # ["equals", "not_equals", "in", "not_in"]
    """
    if data_type in (DataType.INTEGER.value, DataType.FLOAT.value):
        return list(NUMERIC_OPERATORS)
    if data_type == DataType.STRING.value:
        return list(STRING_OPERATORS)
    if data_type == DataType.ENUM.value:
        return list(ENUM_OPERATORS)
    return list(BASE_OPERATORS)


def operator_label(operator: str) -> str:
    return OPERATOR_LABELS.get(operator, operator.replace("_", " "))


# ============================================================================
# VALUE SHAPES
# ============================================================================


class ValueShape(str, Enum):
    SCALAR = "scalar"
    PAIR = "pair"
    LIST = "list"


def expected_shape(operator: str) -> ValueShape:
    if operator == ConditionOperator.BETWEEN.value:
        return ValueShape.PAIR
    if operator in LIST_OPERATORS:
        return ValueShape.LIST
    return ValueShape.SCALAR


def value_matches_shape(operator: str, value: Any) -> bool:
    shape = expected_shape(operator)
    if shape == ValueShape.PAIR:
        return isinstance(value, (list, tuple)) and len(value) == 2
    if shape == ValueShape.LIST:
        return isinstance(value, (list, tuple))
    return not isinstance(value, (list, tuple))


def _field_default(descriptor: Optional[FieldDescriptor]) -> Any:
    if descriptor is None or descriptor.default_value is None:
        return ""
    return descriptor.default_value


def _as_number(value: float, data_type: str) -> Any:
    if data_type == DataType.INTEGER.value and float(value).is_integer():
        return int(value)
    return value


def _between_seed(descriptor: Optional[FieldDescriptor]) -> List[Any]:
    if descriptor is None:
        return [0, 100]
    low = descriptor.min_value or 0
    high = descriptor.max_value or 100
    return [_as_number(low, descriptor.data_type), _as_number(high, descriptor.data_type)]


# ============================================================================
# TRANSITIONS
# ============================================================================


def default_condition() -> QueryCondition:
    """The leaf appended by "Add Condition"."""
    return QueryCondition(
        field=DEFAULT_FIELD,
        operator=ConditionOperator.EQUALS.value,
        value=DEFAULT_VALUE,
    )


def change_field(
    condition: QueryCondition, field_name: str, schema: FieldSchema
) -> QueryCondition:
    """
    Point a condition at another field.

    The operator resets to equals and the value to the new field's default
    (or "") so a stale value never carries over to a field of another type.
    """
    return QueryCondition(
        field=field_name,
        operator=ConditionOperator.EQUALS.value,
        value=_field_default(schema.get(field_name)),
    )


def change_operator(
    condition: QueryCondition, operator: str, schema: FieldSchema
) -> QueryCondition:
    """
    Switch operator and reseed the value in the operator's shape.

    Args:
        condition: Condition being edited
        operator: New operator name
        schema: Field schema (used for defaults and bounds)

    Returns:
        New condition with:
        - between: [min_value or 0, max_value or 100]
        - in / not_in: []
        - otherwise: the field default (or "")

    Raises:
        ValueError: If the operator is not offered for the field's data type
    """
    descriptor = schema.get(condition.field)
    allowed = operators_for(descriptor.data_type if descriptor else None)
    if operator not in allowed:
        raise ValueError(
            f"Operator '{operator}' is not available for field "
            f"'{condition.field}' (allowed: {', '.join(allowed)})"
        )

    if operator == ConditionOperator.BETWEEN.value:
        value: Any = _between_seed(descriptor)
    elif operator in LIST_OPERATORS:
        value = []
    else:
        value = _field_default(descriptor)

    return QueryCondition(field=condition.field, operator=operator, value=value)


# ============================================================================
# WIDGETS AND INPUT PARSING
# ============================================================================


class WidgetKind(str, Enum):
    """Value editor chosen for a condition"""

    BETWEEN = "between"
    CHECKLIST = "checklist"
    RANGE_SLIDER = "range_slider"
    DROPDOWN = "dropdown"
    MULTI_SELECT = "multi_select"
    NUMBER = "number"
    TEXT = "text"


def widget_for(condition: QueryCondition, descriptor: FieldDescriptor) -> WidgetKind:
    """
    Pick the value editor, first match wins:
    between, in/not_in over options, numeric range slider, dropdown,
    multi-select, numeric input, text.
    """
    if condition.operator == ConditionOperator.BETWEEN.value:
        return WidgetKind.BETWEEN
    if condition.operator in LIST_OPERATORS and descriptor.options:
        return WidgetKind.CHECKLIST
    if descriptor.ui_type == UIType.RANGE_SLIDER.value and descriptor.is_numeric:
        return WidgetKind.RANGE_SLIDER
    if descriptor.ui_type == UIType.DROPDOWN.value and descriptor.options:
        return WidgetKind.DROPDOWN
    if descriptor.ui_type == UIType.MULTI_SELECT.value and descriptor.options:
        return WidgetKind.MULTI_SELECT
    if descriptor.is_numeric:
        return WidgetKind.NUMBER
    return WidgetKind.TEXT


def _parse_number(raw: Any, data_type: str) -> Any:
    if isinstance(raw, bool):
        raise ValueError(f"Expected a number, got {raw!r}")
    if isinstance(raw, (int, float)):
        return int(raw) if data_type == DataType.INTEGER.value else float(raw)
    text = str(raw).strip()
    if text == "":
        return ""
    try:
        if data_type == DataType.INTEGER.value:
            return int(float(text))
        return float(text)
    except ValueError:
        raise ValueError(f"Expected a number, got {raw!r}") from None


def _match_option(raw: Any, descriptor: FieldDescriptor) -> Any:
    for value in descriptor.option_values():
        if raw == value or str(raw) == str(value):
            return value
    return raw


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if value is None or value == "":
        return []
    return [value]


def set_value(
    condition: QueryCondition, descriptor: Optional[FieldDescriptor], raw: Any
) -> QueryCondition:
    """
    Store raw widget input as a typed value.

    Args:
        condition: Condition being edited
        descriptor: Field descriptor (None for unknown fields: raw is kept)
        raw: Widget input; a (low, high) pair for between, an iterable of
            option values for checklist / multi-select, a scalar otherwise

    Raises:
        ValueError: If numeric input cannot be parsed

    Examples:
        set_value(cond, yard_line, "85")        # value=85
        set_value(cond, yard_line, ("80", 95))  # value=[80, 95] (between)
        set_value(cond, formation, ["Shotgun"]) # value="Shotgun" (multi-select)
    """
    if descriptor is None:
        return condition.model_copy(update={"value": raw})

    widget = widget_for(condition, descriptor)

    if widget == WidgetKind.BETWEEN:
        pair = list(raw) if isinstance(raw, (list, tuple)) else [raw, raw]
        if len(pair) != 2:
            raise ValueError(f"between expects two values, got {len(pair)}")
        numeric_type = descriptor.data_type if descriptor.is_numeric else DataType.FLOAT.value
        value: Any = [_parse_number(part, numeric_type) for part in pair]
    elif widget == WidgetKind.CHECKLIST:
        value = [_match_option(item, descriptor) for item in _as_list(raw)]
    elif widget == WidgetKind.MULTI_SELECT:
        selected = [_match_option(item, descriptor) for item in _as_list(raw)]
        value = selected[0] if len(selected) == 1 else selected
    elif widget in (WidgetKind.RANGE_SLIDER, WidgetKind.NUMBER):
        value = _parse_number(raw, descriptor.data_type)
    elif widget == WidgetKind.DROPDOWN:
        value = _match_option(raw, descriptor)
    else:
        value = "" if raw is None else str(raw)

    return condition.model_copy(update={"value": value})


def toggle_option(
    condition: QueryCondition, descriptor: FieldDescriptor, option_value: Any
) -> QueryCondition:
    """Check or uncheck one option of a checklist / multi-select."""
    selected = _as_list(condition.value)
    if option_value in selected:
        selected = [value for value in selected if value != option_value]
    else:
        selected.append(option_value)
    return set_value(condition, descriptor, selected)


# ============================================================================
# INSPECTION
# ============================================================================


@dataclass
class ConditionState:
    """What the editor shows for a condition"""

    field: Optional[FieldDescriptor]
    unknown: bool
    message: Optional[str]
    widget: Optional[WidgetKind]
    operators: List[str] = dataclass_field(default_factory=list)


def inspect_condition(condition: QueryCondition, schema: FieldSchema) -> ConditionState:
    descriptor = schema.get(condition.field)
    if descriptor is None:
        return ConditionState(
            field=None,
            unknown=True,
            message=f"Unknown field: {condition.field}",
            widget=None,
            operators=list(BASE_OPERATORS),
        )
    return ConditionState(
        field=descriptor,
        unknown=False,
        message=None,
        widget=widget_for(condition, descriptor),
        operators=operators_for(descriptor.data_type),
    )


def format_value(value: Any, operator: str) -> str:
    if operator == ConditionOperator.BETWEEN.value and isinstance(value, (list, tuple)):
        if len(value) == 2:
            return f"{value[0]} and {value[1]}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(str(item) for item in value) + "]"
    if isinstance(value, str):
        return f'"{value}"' if value else '""'
    return str(value)


def describe_condition(condition: QueryCondition, schema: FieldSchema) -> str:
    """
    One-line description: "<Display name> <operator label> <value>".

    Examples:
        describe_condition(QueryCondition(field="down", value=3), schema)
        # 'Down equals 3'
    """
    descriptor = schema.get(condition.field)
    name = descriptor.display_name if descriptor else condition.field
    return (
        f"{name} {operator_label(condition.operator)} "
        f"{format_value(condition.value, condition.operator)}"
    )

