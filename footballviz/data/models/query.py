"""
Query models for the footballviz query builder.

Provides the structured models the builder edits and the backend
interprets:
- QueryCondition / QueryGroup: a boolean filter tree (AND / OR / NOT)
- FieldSchema / FieldDescriptor: the remote field catalogue
- FilterPreset(s): canned filters for common game situations
- FlatFilter: one row of the local filter/sort/paginate pipeline
- QueryStats: aggregates computed server-side for a tree

Design Principles:
- Tagged union: every tree node carries an explicit `kind`
- Wire compatible: nodes without `kind` (the backend's shape) are
  discriminated by the presence of `field`; to_wire() emits that shape
- Immutable: nodes are frozen, edits build new trees
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag


class LogicOperator(str, Enum):
    """Group combinators"""

    AND = "and"
    OR = "or"
    NOT = "not"


class ConditionOperator(str, Enum):
    """Operators offered by the condition editor"""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    BETWEEN = "between"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IN = "in"
    NOT_IN = "not_in"


class DataType(str, Enum):
    """Field data types reported by the schema endpoint"""

    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    ENUM = "enum"


class UIType(str, Enum):
    """Preferred input widget for a field"""

    DROPDOWN = "dropdown"
    RANGE_SLIDER = "range_slider"
    MULTI_SELECT = "multi_select"
    TEXT = "text"


class QueryCondition(BaseModel):
    """
    A single predicate: (field, operator, value).

    `value` shape follows `operator`:
    - between: [low, high]
    - in / not_in: list of values
    - anything else: scalar

    Examples:
        QueryCondition(field="down", operator="equals", value=3)
        QueryCondition(field="yard_line", operator="between", value=[80, 100])
        QueryCondition(field="formation", operator="in", value=["Shotgun", "I-Form"])
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["condition"] = "condition"
    field: str = Field(..., description="Schema field name")
    operator: str = Field(ConditionOperator.EQUALS.value, description="Condition operator")
    value: Any = Field(None, description="Scalar, [low, high] pair or list of values")

    def to_wire(self) -> Dict[str, Any]:
        return {"field": self.field, "operator": self.operator, "value": self.value}


def _node_kind(node: Any) -> str:
    if isinstance(node, dict):
        if "kind" in node:
            return node["kind"]
        return "condition" if "field" in node else "group"
    return getattr(node, "kind", "group")


class QueryGroup(BaseModel):
    """
    A boolean combinator over child conditions and nested groups.

    Examples:
        # Third down passes
        QueryGroup(operator="and", conditions=[
            QueryCondition(field="down", operator="equals", value=3),
            QueryCondition(field="play_type", operator="equals", value="Pass"),
        ])

        # Red zone OR goal-to-go
        QueryGroup(operator="or", conditions=[...])
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["group"] = "group"
    operator: LogicOperator = Field(LogicOperator.AND, description="and / or / not")
    conditions: List["QueryNode"] = Field(
        default_factory=list,
        description="Child conditions and nested groups, in order",
    )

    @property
    def is_empty(self) -> bool:
        return not self.conditions

    def to_wire(self) -> Dict[str, Any]:
        """Backend shape: no `kind`, nodes told apart by `field`."""
        return {
            "operator": self.operator.value,
            "conditions": [child.to_wire() for child in self.conditions],
        }


QueryNode = Annotated[
    Union[
        Annotated[QueryCondition, Tag("condition")],
        Annotated[QueryGroup, Tag("group")],
    ],
    Discriminator(_node_kind),
]

QueryGroup.model_rebuild()


def is_condition(node: Any) -> bool:
    return isinstance(node, QueryCondition)


def is_group(node: Any) -> bool:
    return isinstance(node, QueryGroup)


class FieldOption(BaseModel):
    """One selectable value of a dropdown / multi-select field"""

    value: Any
    label: str


class FieldDescriptor(BaseModel):
    """
    Schema entry for one filterable field.

    Examples:
        FieldDescriptor(
            field_name="yard_line",
            display_name="Yard Line",
            data_type="integer",
            ui_type="range_slider",
            min_value=0,
            max_value=100,
            default_value=50,
        )
    """

    model_config = ConfigDict(extra="allow")

    field_name: str = Field(..., description="Field name used in conditions")
    display_name: str = Field(..., description="Human-readable label")
    data_type: str = Field(..., description="integer / float / string / enum")
    ui_type: str = Field(UIType.TEXT.value, description="Preferred input widget")
    description: str = Field("", description="Field description")
    required: bool = False
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    options: Optional[List[FieldOption]] = None
    default_value: Any = None
    group: Optional[str] = None
    searchable: bool = False
    sortable: bool = False

    @property
    def is_numeric(self) -> bool:
        return self.data_type in (DataType.INTEGER.value, DataType.FLOAT.value)

    def option_values(self) -> List[Any]:
        return [option.value for option in self.options or []]


class FieldSchema(BaseModel):
    """
    Field catalogue fetched once per session from
    GET /footballviz/filters/schema. Read-only.
    """

    fields: Dict[str, FieldDescriptor] = Field(default_factory=dict)
    groups: Dict[str, List[str]] = Field(default_factory=dict)
    searchable_fields: List[str] = Field(default_factory=list)
    sortable_fields: List[str] = Field(default_factory=list)

    def get(self, name: str) -> Optional[FieldDescriptor]:
        return self.fields.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.fields


class FlatFilter(BaseModel):
    """
    One row of the local (AND-only) filter pipeline.

    Examples:
        FlatFilter(field="yard_line", operator="greater_equal", value=80)
        FlatFilter(field="down", operator="equals", value=3, label="Third Down")
    """

    field: str = ""
    operator: str = ""
    value: Any = ""
    id: Optional[str] = None
    label: Optional[str] = None


class FilterPreset(BaseModel):
    """A named, pre-built set of filters"""

    name: str
    description: str = ""
    filters: List[FlatFilter] = Field(default_factory=list)
    icon: Optional[str] = None
    color: Optional[str] = None


class FilterPresets(BaseModel):
    """Response of GET /footballviz/filters/presets"""

    presets: Dict[str, FilterPreset] = Field(default_factory=dict)


class QueryStats(BaseModel):
    """Aggregates returned by POST /footballviz/query/stats"""

    model_config = ConfigDict(extra="allow")

    total_plays: int = 0
    avg_yards_gained: float = 0.0
    success_rate: float = 0.0
    formations_count: int = 0
    play_types_count: int = 0
