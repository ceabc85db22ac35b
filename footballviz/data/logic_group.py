"""
Edits and rendering for the boolean query tree.

A nested group is addressed by a path: the tuple of child indices from the
root, e.g. () is the root and (2, 0) is the first child of the root's third
child. Every edit takes the root plus a path and returns a new root, so the
caller never has to find the array a nested edit belongs to.

Nesting level is len(path). New subgroups can only be added while the
addressed group sits below QUERY_MAX_NESTING_LEVEL (root = level 0).
"""

import logging
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from rich.text import Text
from rich.tree import Tree

from footballviz.config import settings
from footballviz.data.conditions import default_condition, describe_condition
from footballviz.data.models.query import (
    FieldSchema,
    LogicOperator,
    QueryCondition,
    QueryGroup,
    is_condition,
    is_group,
)
from footballviz.errors import QueryTreeError, UnknownFieldError

logger = logging.getLogger(__name__)

Path = Tuple[int, ...]

OPERATOR_BADGES = {
    LogicOperator.AND: ("& AND", "bold blue"),
    LogicOperator.OR: ("| OR", "bold green"),
    LogicOperator.NOT: ("! NOT", "bold red"),
}


# ============================================================================
# PATH HELPERS
# ============================================================================


def _child(group: QueryGroup, index: int) -> Any:
    if index < 0 or index >= len(group.conditions):
        raise QueryTreeError(
            f"Index {index} out of range for group with {len(group.conditions)} children",
            details={"index": index, "size": len(group.conditions)},
        )
    return group.conditions[index]


def get_group(root: QueryGroup, path: Sequence[int] = ()) -> QueryGroup:
    """Return the group addressed by `path`."""
    node: Any = root
    for depth, index in enumerate(path):
        node = _child(node, index)
        if not is_group(node):
            raise QueryTreeError(
                f"Path {tuple(path[: depth + 1])} addresses a condition, not a group",
                details={"path": list(path)},
            )
    return node


def _replace(
    root: QueryGroup, path: Sequence[int], edit: Callable[[QueryGroup], QueryGroup]
) -> QueryGroup:
    if not path:
        return edit(root)
    index = path[0]
    child = _child(root, index)
    if not is_group(child):
        raise QueryTreeError(
            f"Child {index} is a condition, not a group", details={"path": list(path)}
        )
    children = list(root.conditions)
    children[index] = _replace(child, path[1:], edit)
    return root.model_copy(update={"conditions": children})


def _with_children(group: QueryGroup, children: List[Any]) -> QueryGroup:
    return group.model_copy(update={"conditions": children})


# ============================================================================
# EDITS
# ============================================================================


def change_operator(root: QueryGroup, new_op: Any, path: Sequence[int] = ()) -> QueryGroup:
    """
    Replace the combinator of the addressed group. Children are untouched.

    Raises:
        ValueError: If new_op is not and / or / not
    """
    try:
        operator = LogicOperator(new_op)
    except ValueError:
        raise ValueError(f"Invalid logic operator: {new_op!r} (expected and, or, not)") from None
    return _replace(root, path, lambda group: group.model_copy(update={"operator": operator}))


def add_condition(
    root: QueryGroup,
    path: Sequence[int] = (),
    condition: Optional[QueryCondition] = None,
) -> QueryGroup:
    """Append a condition (default: play_type equals "Pass") to the addressed group."""
    leaf = condition or default_condition()
    return _replace(
        root, path, lambda group: _with_children(group, list(group.conditions) + [leaf])
    )


def can_add_group(level: int, max_level: Optional[int] = None) -> bool:
    limit = settings.QUERY_MAX_NESTING_LEVEL if max_level is None else max_level
    return level < limit


def add_group(
    root: QueryGroup, path: Sequence[int] = (), max_level: Optional[int] = None
) -> QueryGroup:
    """
    Append an empty AND group to the addressed group.

    Raises:
        QueryTreeError: If the addressed group is already at the nesting cap
    """
    level = len(path)
    if not can_add_group(level, max_level):
        raise QueryTreeError(
            f"Cannot add a group at nesting level {level}",
            details={
                "level": level,
                "max_level": settings.QUERY_MAX_NESTING_LEVEL if max_level is None else max_level,
            },
        )
    nested = QueryGroup(operator=LogicOperator.AND, conditions=[])
    return _replace(
        root, path, lambda group: _with_children(group, list(group.conditions) + [nested])
    )


def update_condition(
    root: QueryGroup, index: int, node: Any, path: Sequence[int] = ()
) -> QueryGroup:
    """Replace the child at `index` of the addressed group."""

    def edit(group: QueryGroup) -> QueryGroup:
        _child(group, index)
        children = list(group.conditions)
        children[index] = node
        return _with_children(group, children)

    return _replace(root, path, edit)


def remove_condition(root: QueryGroup, index: int, path: Sequence[int] = ()) -> QueryGroup:
    """Delete the child at `index` of the addressed group; order of the rest is kept."""

    def edit(group: QueryGroup) -> QueryGroup:
        _child(group, index)
        return _with_children(
            group, [child for i, child in enumerate(group.conditions) if i != index]
        )

    return _replace(root, path, edit)


def update_nested_group(
    root: QueryGroup, index: int, nested: QueryGroup, path: Sequence[int] = ()
) -> QueryGroup:
    """Replace the nested group at `index` of the addressed group."""
    parent = get_group(root, path)
    if not is_group(_child(parent, index)):
        raise QueryTreeError(
            f"Child {index} is a condition, not a group",
            details={"path": list(path), "index": index},
        )
    return update_condition(root, index, nested, path)


# ============================================================================
# QUERIES
# ============================================================================


def iter_conditions(
    group: QueryGroup, path: Path = ()
) -> Iterator[Tuple[Path, QueryCondition]]:
    """Yield (path, condition) for every leaf, depth first, in child order."""
    for index, child in enumerate(group.conditions):
        child_path = path + (index,)
        if is_condition(child):
            yield child_path, child
        else:
            yield from iter_conditions(child, child_path)


def tree_depth(group: QueryGroup) -> int:
    """Deepest group nesting level (a root without subgroups is 0)."""
    nested = [tree_depth(child) + 1 for child in group.conditions if is_group(child)]
    return max(nested, default=0)


def find_unknown_fields(
    group: QueryGroup, schema: FieldSchema, strict: bool = False
) -> List[Tuple[Path, str]]:
    """
    Conditions whose field the schema does not define, with their paths.

    Raises:
        UnknownFieldError: With strict=True, for the first unknown field
    """
    unknown = [
        (path, condition.field)
        for path, condition in iter_conditions(group)
        if condition.field not in schema
    ]
    if strict and unknown:
        raise UnknownFieldError(unknown[0][1])
    return unknown


def describe_group(group: QueryGroup, schema: FieldSchema, _nested: bool = False) -> str:
    """
    Infix text for a tree.

    Examples:
        describe_group(tree, schema)
        # 'Down equals 3 AND (Yard Line >= 80 OR Distance <= 3)'
    """
    parts = []
    for child in group.conditions:
        if is_condition(child):
            parts.append(describe_condition(child, schema))
        else:
            parts.append(describe_group(child, schema, _nested=True))

    if group.operator == LogicOperator.NOT:
        inner = " AND ".join(parts) if parts else "all plays"
        return f"NOT ({inner})"

    if not parts:
        text = "all plays"
    else:
        text = f" {group.operator.value.upper()} ".join(parts)
    if _nested and len(parts) > 1:
        return f"({text})"
    return text


# ============================================================================
# RENDERING
# ============================================================================


def _group_label(group: QueryGroup, level: int) -> Text:
    badge, style = OPERATOR_BADGES[group.operator]
    label = Text(badge, style=style)
    label.append(" group" if level else " query", style="dim")
    return label


def _summary_chip(child: Any, schema: FieldSchema) -> str:
    if is_condition(child):
        descriptor = schema.get(child.field)
        name = descriptor.display_name if descriptor else child.field
        return f"{name} {child.operator} {child.value}"
    return f"Nested {child.operator.value.upper()} group"


def render_group(
    group: QueryGroup,
    schema: FieldSchema,
    level: int = 0,
    tree: Optional[Tree] = None,
) -> Tree:
    """
    Render a query tree as a rich Tree.

    The operator badge is drawn between consecutive children; empty groups
    show a placeholder, non-empty ones close with a summary of their children.
    """
    node = tree.add(_group_label(group, level)) if tree is not None else Tree(
        _group_label(group, level)
    )
    op_name = group.operator.value.upper()

    if group.is_empty:
        node.add(Text(f"No conditions in this {op_name} group", style="italic dim"))
        return node

    _, style = OPERATOR_BADGES[group.operator]
    for index, child in enumerate(group.conditions):
        if index > 0:
            node.add(Text(op_name, style=style))
        if is_condition(child):
            if child.field in schema:
                node.add(Text(describe_condition(child, schema)))
            else:
                node.add(Text(f"Unknown field: {child.field}", style="red"))
        else:
            render_group(child, schema, level + 1, node)

    chips = ", ".join(_summary_chip(child, schema) for child in group.conditions)
    node.add(Text(f"This {op_name} group contains: {chips}", style="dim"))
    return node
