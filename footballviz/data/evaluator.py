"""
Local evaluation of a query tree against fetched plays.

Used for previews before a query is sent to the backend:
- and: every child matches
- or: at least one child matches
- not: the conjunction of the children does not match
- an empty group matches every play
"""

import logging
from typing import Any, List, Sequence

from footballviz.data.models.query import QueryCondition, QueryGroup, LogicOperator, is_condition
from footballviz.data.pipeline import loose_equals, matches, record_value, to_number

logger = logging.getLogger(__name__)


def _between(value: Any, bounds: Any) -> bool:
    if not isinstance(bounds, (list, tuple)) or len(bounds) != 2:
        return False
    number, low, high = to_number(value), to_number(bounds[0]), to_number(bounds[1])
    if number is None or low is None or high is None:
        return False
    return low <= number <= high


def evaluate_condition(condition: QueryCondition, record: Any) -> bool:
    value = record_value(record, condition.field)
    op = condition.operator
    target = condition.value

    if op == "between":
        return _between(value, target)
    if op == "not_in":
        if not isinstance(target, (list, tuple, set)):
            return True
        return not any(loose_equals(value, item) for item in target)
    if op == "starts_with":
        return value is not None and str(value).lower().startswith(str(target).lower())
    if op == "ends_with":
        return value is not None and str(value).lower().endswith(str(target).lower())
    return matches(value, op, target)


def evaluate_group(group: QueryGroup, record: Any) -> bool:
    """
    Does the record satisfy the tree?

    Examples:
        evaluate_group(QueryGroup(operator="and"), play)  # True
    """
    results = (
        evaluate_condition(child, record) if is_condition(child) else evaluate_group(child, record)
        for child in group.conditions
    )
    if group.operator == LogicOperator.OR:
        return any(results) if group.conditions else True
    if group.operator == LogicOperator.NOT:
        return not all(results) if group.conditions else True
    return all(results)


def filter_by_group(plays: Sequence[Any], group: QueryGroup) -> List[Any]:
    """Plays matching the tree, input order kept."""
    result = [play for play in plays if evaluate_group(group, play)]
    logger.debug(
        f"Tree matched {len(result)} of {len(plays)} plays",
        extra={"rows": len(result)},
    )
    return result
