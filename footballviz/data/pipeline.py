"""
Local filter / sort / paginate pipeline over fetched plays.

Works on any sequence of records: PlayData models or plain dicts as they
come off the wire. Nothing here mutates its input; every step returns a
new list holding the same record objects.

Flat filters are ANDed in order. Comparison rules:
- equals / not_equals: loose equality (numeric when one side is a number
  and the other parses as one, exact otherwise)
- greater_than / less_than / greater_equal / less_equal: both sides coerced
  to numbers; a side that is not numeric makes the filter fail
- contains: case-insensitive substring
- in: membership in a list value
- any other operator passes every record
"""

import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import pandas as pd

from footballviz.data.models.query import FlatFilter

logger = logging.getLogger(__name__)

Record = Any
FilterLike = Union[FlatFilter, Dict[str, Any]]

# Long-form names used by the query builder map onto the flat operators
OPERATOR_ALIASES: Dict[str, str] = {
    "greater_than_or_equal": "greater_equal",
    "less_than_or_equal": "less_equal",
    "gte": "greater_equal",
    "lte": "less_equal",
    "gt": "greater_than",
    "lt": "less_than",
    "eq": "equals",
    "ne": "not_equals",
}


# ============================================================================
# VALUE HELPERS
# ============================================================================


def record_value(record: Record, field: str) -> Any:
    """Read a field from a dict or a model (extra fields included)."""
    if isinstance(record, dict):
        return record.get(field)
    return getattr(record, field, None)


def to_number(value: Any) -> Optional[float]:
    """Numeric coercion; None when the value is not a finite number."""
    if value is None or isinstance(value, (list, tuple, dict)):
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number):
        return None
    return number


def loose_equals(left: Any, right: Any) -> bool:
    """
    Equality that lets "3" match 3.

    Examples:
        loose_equals(3, "3")        # True
        loose_equals("Pass", "Pass") # True
        loose_equals(None, 0)       # False
    """
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if isinstance(left, (int, float)) or isinstance(right, (int, float)):
        left_num, right_num = to_number(left), to_number(right)
        if left_num is None or right_num is None:
            return False
        return left_num == right_num
    return left == right


def _numeric_compare(left: Any, right: Any, op: str) -> bool:
    left_num, right_num = to_number(left), to_number(right)
    if left_num is None or right_num is None:
        return False
    if op == "greater_than":
        return left_num > right_num
    if op == "less_than":
        return left_num < right_num
    if op == "greater_equal":
        return left_num >= right_num
    return left_num <= right_num


def normalize_operator(operator: str) -> str:
    return OPERATOR_ALIASES.get(operator, operator)


def matches(value: Any, operator: str, target: Any) -> bool:
    """Evaluate one flat comparison."""
    op = normalize_operator(operator)
    if op == "equals":
        return loose_equals(value, target)
    if op == "not_equals":
        return not loose_equals(value, target)
    if op in ("greater_than", "less_than", "greater_equal", "less_equal"):
        return _numeric_compare(value, target, op)
    if op == "contains":
        if value is None:
            return False
        return str(target).lower() in str(value).lower()
    if op == "in":
        if not isinstance(target, (list, tuple, set)):
            return False
        return any(loose_equals(value, item) for item in target)
    return True


# ============================================================================
# FILTER
# ============================================================================


def _as_filter(item: FilterLike) -> FlatFilter:
    return item if isinstance(item, FlatFilter) else FlatFilter(**item)


def apply_filters(plays: Sequence[Record], filters: Sequence[FilterLike]) -> List[Record]:
    """
    AND the flat filters over the plays, in order.

    Filters without a field or operator are skipped (they are rows still
    being edited). apply_filters(plays, []) returns the same records in the
    same order; applying the result again changes nothing.

    Args:
        plays: Records to filter
        filters: FlatFilter models or dicts with field / operator / value

    Returns:
        New list of the matching records
    """
    result = list(plays)
    applied = 0
    for item in filters:
        flt = _as_filter(item)
        if not flt.field or not flt.operator:
            continue
        applied += 1
        result = [
            play
            for play in result
            if matches(record_value(play, flt.field), flt.operator, flt.value)
        ]

    logger.debug(
        f"Filtered {len(plays)} plays to {len(result)}",
        extra={"rows": len(result), "filters_applied": applied},
    )
    return result


# ============================================================================
# SORT AND PAGINATE
# ============================================================================


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def sort_plays(
    plays: Sequence[Record], field: Optional[str], direction: str = "asc"
) -> List[Record]:
    """
    Stable sort by one field.

    Numbers compare numerically when every present value is a number,
    otherwise values compare as case-insensitive strings. Missing values
    go last in both directions.

    Raises:
        ValueError: If direction is not asc / desc
    """
    if direction not in ("asc", "desc"):
        raise ValueError(f"Invalid sort direction: {direction!r}")
    if not field:
        return list(plays)

    present = [play for play in plays if not _is_missing(record_value(play, field))]
    missing = [play for play in plays if _is_missing(record_value(play, field))]

    numeric = all(
        isinstance(record_value(play, field), (int, float))
        and not isinstance(record_value(play, field), bool)
        for play in present
    )
    if numeric:
        key = lambda play: record_value(play, field)  # noqa: E731
    else:
        key = lambda play: str(record_value(play, field)).lower()  # noqa: E731

    ordered = sorted(present, key=key, reverse=direction == "desc")
    return ordered + missing


def total_pages(count: int, per_page: int) -> int:
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    return math.ceil(count / per_page)


def paginate(plays: Sequence[Record], page: int, per_page: int) -> List[Record]:
    """
    Slice one 1-based page. Pages past the end are empty.

    Raises:
        ValueError: If page < 1 or per_page < 1
    """
    if page < 1:
        raise ValueError("page must be at least 1")
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    start = (page - 1) * per_page
    return list(plays[start : start + per_page])


def iter_pages(plays: Sequence[Record], per_page: int) -> Iterator[List[Record]]:
    for page in range(1, total_pages(len(plays), per_page) + 1):
        yield paginate(plays, page, per_page)


# ============================================================================
# SUMMARIES
# ============================================================================


@dataclass
class PlaySummary:
    """Aggregate numbers shown above a filtered play list"""

    total_plays: int
    total_yards: float
    avg_yards: float
    touchdowns: int
    total_points: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize(plays: Sequence[Record]) -> PlaySummary:
    """
    Totals for a play list. A touchdown is any play worth 6+ points.

    Examples:
        summarize([])  # PlaySummary(total_plays=0, ..., avg_yards=0.0)
    """
    yards = [to_number(record_value(play, "yards_gained")) or 0.0 for play in plays]
    points = [to_number(record_value(play, "points_scored")) or 0.0 for play in plays]
    total_yards = sum(yards)
    return PlaySummary(
        total_plays=len(plays),
        total_yards=total_yards,
        avg_yards=total_yards / len(plays) if plays else 0.0,
        touchdowns=sum(1 for value in points if value >= 6),
        total_points=sum(points),
    )


def _record_dict(record: Record) -> Dict[str, Any]:
    if isinstance(record, dict):
        return dict(record)
    return record.model_dump()


def plays_to_frame(
    plays: Sequence[Record], columns: Optional[Sequence[str]] = None
) -> pd.DataFrame:
    """Build a DataFrame from records, optionally restricted to columns (in order)."""
    frame = pd.DataFrame([_record_dict(play) for play in plays])
    if columns is not None:
        frame = frame.reindex(columns=list(columns))
    return frame


def field_stats(plays: Sequence[Record], fields: Dict[str, str]) -> Dict[str, Dict[str, Any]]:
    """
    Per-field value ranges for filter editors.

    Args:
        plays: Records to scan
        fields: field name -> "number" / "string"

    Returns:
        number fields: {unique_values (ascending), min, max}
        string fields: {unique_values (sorted)}
    """
    frame = plays_to_frame(plays, list(fields))
    stats: Dict[str, Dict[str, Any]] = {}
    for name, kind in fields.items():
        column = frame[name] if name in frame else pd.Series(dtype=object)
        if kind == "number":
            values = pd.to_numeric(column, errors="coerce").dropna()
            unique = sorted(values.unique().tolist())
            stats[name] = {
                "unique_values": unique,
                "min": min(unique) if unique else None,
                "max": max(unique) if unique else None,
            }
        else:
            values = column.dropna().astype(str)
            stats[name] = {"unique_values": sorted(values.unique().tolist())}
    return stats


def export_csv(
    plays: Sequence[Record],
    columns: Sequence[str],
    path: Union[str, Path],
    headers: Optional[Sequence[str]] = None,
) -> Path:
    """
    Write the given columns of the plays to CSV.

    Args:
        plays: Records to write
        columns: Field names, in output order
        path: Destination file
        headers: Header labels (defaults to the field names)

    Returns:
        Path written
    """
    path = Path(path)
    frame = plays_to_frame(plays, columns)
    if headers is not None:
        frame.columns = list(headers)
    frame.to_csv(path, index=False)
    logger.info(f"Exported {len(frame)} plays to {path}", extra={"rows": len(frame)})
    return path
