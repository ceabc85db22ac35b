"""
Data package for footballviz.

Modules:
    - models: pydantic models for queries, plays and collaboration payloads
    - conditions: operator catalogue and condition editing
    - logic_group: path-addressed edits and rendering of the query tree
    - evaluator: local evaluation of a query tree
    - pipeline: flat filter / sort / paginate / summarize / export
    - presets: canned situation filters
    - explorer: data explorer session state
    - query_builder: query builder session (imports the HTTP layer; import it
      directly from footballviz.data.query_builder)
"""

from footballviz.data.conditions import (
    ConditionState,
    WidgetKind,
    change_field,
    change_operator,
    default_condition,
    describe_condition,
    inspect_condition,
    operators_for,
    set_value,
    toggle_option,
)
from footballviz.data.evaluator import evaluate_group, filter_by_group
from footballviz.data.explorer import DataExplorer
from footballviz.data.pipeline import (
    PlaySummary,
    apply_filters,
    export_csv,
    field_stats,
    paginate,
    sort_plays,
    summarize,
    total_pages,
)
from footballviz.data.presets import LOCAL_PRESETS, apply_preset, get_preset, preset_to_group

__all__ = [
    # Conditions
    "ConditionState",
    "WidgetKind",
    "change_field",
    "change_operator",
    "default_condition",
    "describe_condition",
    "inspect_condition",
    "operators_for",
    "set_value",
    "toggle_option",
    # Evaluation
    "evaluate_group",
    "filter_by_group",
    # Explorer
    "DataExplorer",
    # Pipeline
    "PlaySummary",
    "apply_filters",
    "export_csv",
    "field_stats",
    "paginate",
    "sort_plays",
    "summarize",
    "total_pages",
    # Presets
    "LOCAL_PRESETS",
    "apply_preset",
    "get_preset",
    "preset_to_group",
]
