"""
Canned filters for common game situations.

Local presets feed the flat filter pipeline (appended to the current
filters). Remote presets, fetched from /footballviz/filters/presets, replace
the builder's tree through preset_to_group().
"""

from typing import Dict, List, Optional, Sequence, Union

from footballviz.data.models.query import (
    FilterPreset,
    FlatFilter,
    LogicOperator,
    QueryCondition,
    QueryGroup,
)

# Fields offered by the flat filter builder: key -> (label, kind)
FILTER_FIELDS: Dict[str, tuple] = {
    "down": ("Down", "number"),
    "distance": ("Distance", "number"),
    "yard_line": ("Yard Line", "number"),
    "yards_gained": ("Yards Gained", "number"),
    "formation": ("Formation", "string"),
    "play_type": ("Play Type", "string"),
    "unit": ("Unit", "string"),
    "quarter": ("Quarter", "number"),
    "points_scored": ("Points Scored", "number"),
    "game_week": ("Week", "number"),
}

FLAT_OPERATORS: Dict[str, str] = {
    "equals": "equals",
    "not_equals": "not equals",
    "greater_than": "greater than",
    "less_than": "less than",
    "greater_equal": "greater or equal",
    "less_equal": "less or equal",
    "contains": "contains",
    "in": "in list",
}


def _preset(name: str, description: str, icon: str, field: str, operator: str, value) -> FilterPreset:
    return FilterPreset(
        name=name,
        description=description,
        icon=icon,
        filters=[FlatFilter(field=field, operator=operator, value=value)],
    )


LOCAL_PRESETS: Dict[str, FilterPreset] = {
    "red_zone": _preset(
        "Red Zone Plays", "Plays inside the 20-yard line", "🔴",
        "yard_line", "greater_equal", 80,
    ),
    "third_down": _preset(
        "Third Down Situations", "Critical third down plays", "🎯",
        "down", "equals", 3,
    ),
    "short_yardage": _preset(
        "Short Yardage", "Plays with 3 or fewer yards to go", "📏",
        "distance", "less_equal", 3,
    ),
    "big_plays": _preset(
        "Big Plays", "Plays with 15+ yard gains", "💥",
        "yards_gained", "greater_equal", 15,
    ),
    "goal_line": _preset(
        "Goal Line", "Plays inside the 5-yard line", "🥅",
        "yard_line", "greater_equal", 95,
    ),
    "passing_plays": _preset(
        "Passing Plays", "All passing attempts", "🏈",
        "play_type", "equals", "Pass",
    ),
    "running_plays": _preset(
        "Running Plays", "All rushing attempts", "🏃",
        "play_type", "equals", "Run",
    ),
    "negative_plays": _preset(
        "Negative Plays", "Plays with yards lost", "📉",
        "yards_gained", "less_than", 0,
    ),
}


def get_preset(name_or_key: str) -> Optional[FilterPreset]:
    """
    Look a preset up by key ("red_zone") or display name ("Red Zone Plays").
    Matching is case-insensitive.
    """
    wanted = name_or_key.strip().lower()
    for key, preset in LOCAL_PRESETS.items():
        if wanted in (key, preset.name.lower(), key.replace("_", " ")):
            return preset
    return None


def apply_preset(
    current: Sequence[FlatFilter], preset: Union[str, FilterPreset]
) -> List[FlatFilter]:
    """
    Append a preset's filters to the current ones.

    Raises:
        KeyError: If a preset name does not match any local preset
    """
    if isinstance(preset, str):
        found = get_preset(preset)
        if found is None:
            raise KeyError(f"Unknown preset: {preset}")
        preset = found
    return list(current) + [flt.model_copy() for flt in preset.filters]


def preset_to_group(preset: FilterPreset) -> QueryGroup:
    """AND tree holding one condition per preset filter, operators kept as sent."""
    conditions = [
        QueryCondition(field=flt.field, operator=flt.operator, value=flt.value)
        for flt in preset.filters
    ]
    return QueryGroup(operator=LogicOperator.AND, conditions=conditions)
