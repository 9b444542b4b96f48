"""
Query Engine for the generic table API.

Filters, sorts and paginates an in-memory list of records. There are no
indexes: every call loads the whole collection.

Comparison rules follow the storefront's expectations, which were written
against JavaScript semantics:
- Equal is strict: 1 != True, a missing field never matches, lists and
  objects never compare equal
- Numeric operators coerce both sides like Number(); NaN comparisons are false
- StringContains turns falsy field values into "" and ignores case
- Unknown operators match everything
"""

import math
import re
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Callable, Mapping, Optional

from .record_store import Record, RecordStore


class _Missing:
    """Marker for a field absent from a record."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()

_DECIMAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_PREFIXED = re.compile(r"^0([xXoObB])([0-9a-fA-F]+)$")
_RADIX = {"x": 16, "o": 8, "b": 2}


def to_number(value: Any) -> float:
    """Coerce a JSON value to a float the way JavaScript's Number() does."""
    if value is MISSING:
        return math.nan
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if _DECIMAL.match(text):
            return float(text)
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
        prefixed = _PREFIXED.match(text)
        if prefixed:
            try:
                return float(int(prefixed.group(2), _RADIX[prefixed.group(1).lower()]))
            except ValueError:
                return math.nan
        return math.nan
    if isinstance(value, list):
        return to_number(to_js_string(value))
    return math.nan


def to_js_string(value: Any) -> str:
    """Render a JSON value the way JavaScript's String() does."""
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, list):
        return ",".join("" if v is None else to_js_string(v) for v in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def is_falsy(value: Any) -> bool:
    """JavaScript falsiness for JSON values."""
    if value is MISSING or value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value == ""
    return False


def strict_equal(a: Any, b: Any) -> bool:
    """JavaScript === for JSON values."""
    if a is MISSING or b is MISSING:
        return a is b
    if isinstance(a, (list, dict)) or isinstance(b, (list, dict)):
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    return type(a) is type(b) and a == b


def _primitive(value: Any) -> Any:
    if isinstance(value, (list, dict)):
        return to_js_string(value)
    return value


def js_greater(a: Any, b: Any) -> bool:
    """JavaScript a > b: strings compare lexicographically, the rest numerically."""
    a, b = _primitive(a), _primitive(b)
    if isinstance(a, str) and isinstance(b, str):
        return a > b
    return to_number(a) > to_number(b)


def js_less(a: Any, b: Any) -> bool:
    return js_greater(b, a)


# =============================================================================
# Filters
# =============================================================================

def _contains(field_value: Any, value: Any) -> bool:
    haystack = "" if is_falsy(field_value) else to_js_string(field_value)
    return to_js_string(value).lower() in haystack.lower()


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "Equal": strict_equal,
    "GreaterThanOrEqual": lambda f, v: to_number(f) >= to_number(v),
    "LessThanOrEqual": lambda f, v: to_number(f) <= to_number(v),
    "GreaterThan": lambda f, v: to_number(f) > to_number(v),
    "StringContains": _contains,
}


@dataclass
class FilterSpec:
    """One filter clause: <field name> <op> <value>."""

    name: Any = MISSING
    op: Any = MISSING
    value: Any = MISSING

    @classmethod
    def from_dict(cls, data: Any) -> "FilterSpec":
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            name=data.get("name", MISSING),
            op=data.get("op", MISSING),
            value=data.get("value", MISSING),
        )

    def matches(self, record: Record) -> bool:
        compare = OPERATORS.get(self.op) if isinstance(self.op, str) else None
        if compare is None:
            # Unrecognized operators are permissive.
            return True
        key = self.name if isinstance(self.name, str) else to_js_string(self.name)
        field_value = record.get(key, MISSING) if isinstance(record, Mapping) else MISSING
        return compare(field_value, self.value)


def apply_filters(records: list[Record], filters: Any) -> list[Record]:
    """AND every filter together. Anything but a non-empty list means no filtering."""
    if not isinstance(filters, list) or not filters:
        return records
    specs = [f if isinstance(f, FilterSpec) else FilterSpec.from_dict(f) for f in filters]
    return [r for r in records if all(spec.matches(r) for spec in specs)]


# =============================================================================
# Sorting & Paging
# =============================================================================

def sort_records(records: list[Record], order_by: str, ascending: bool = True) -> list[Record]:
    """
    Sort by one field.

    Python's sort is stable, so ties keep their stored order; callers should
    not rely on it.
    """
    def compare(a: Record, b: Record) -> int:
        av = a.get(order_by, MISSING) if isinstance(a, Mapping) else MISSING
        bv = b.get(order_by, MISSING) if isinstance(b, Mapping) else MISSING
        if strict_equal(av, bv):
            return 0
        if ascending:
            return 1 if js_greater(av, bv) else -1
        return 1 if js_less(av, bv) else -1

    return sorted(records, key=cmp_to_key(compare))


@dataclass
class TableQuery:
    """Paging request for one table."""

    page_no: int = 1
    page_size: int = 20
    order_by_field: str = "id"
    is_asc: bool = True
    filters: Any = field(default_factory=list)


@dataclass
class TablePage:
    """One page of results plus the filtered total."""

    items: list[Record]
    virtual_count: int

    def to_dict(self) -> dict:
        return {"List": self.items, "VirtualCount": self.virtual_count}


def page(records: list[Record], query: Optional[TableQuery] = None) -> TablePage:
    """
    Filter, sort and slice records.

    Out-of-range pages are empty. Slice bounds follow Python semantics,
    which agree with JavaScript's Array.slice for negative indexes.
    """
    query = query or TableQuery()

    filtered = apply_filters(list(records), query.filters)
    ordered = sort_records(filtered, query.order_by_field, query.is_asc)

    start = (query.page_no - 1) * query.page_size
    return TablePage(
        items=ordered[start:start + query.page_size],
        virtual_count=len(ordered),
    )


def query_table(store: RecordStore, collection: str, query: Optional[TableQuery] = None) -> TablePage:
    """Load a collection from a store and page it."""
    return page(store.read_all(collection), query)
