"""
Structured Query - Filters for the Search+Query Retrieval Strategy

💾 Adapter-Side Query Language:
The core treats the ``query`` argument as opaque. The bundled adapters accept
either a sequence of ``QueryFilter`` or a string in a small RSQL dialect:

    name==bob;age=gt=30
    status=in=(active,pending) and email=like=*@example.com
    deleted_at=null=true

Operators: ``==  !=  =gt=  =ge=  =lt=  =le=  =in=  =out=  =like=  =null=``
(plus ``> >= < <=`` aliases). Conditions are joined with ``;`` or ``and``.
Values may be single- or double-quoted; ``*`` in ``=like=`` is a wildcard.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Union

from ..core.exceptions import QuerySyntaxError


class QueryOperator(Enum):
    """Query operators for filtering"""
    EQUALS = "eq"
    NOT_EQUALS = "ne"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "gte"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "lte"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


_VALUELESS = (QueryOperator.IS_NULL, QueryOperator.IS_NOT_NULL)
_MULTI_VALUE = (QueryOperator.IN, QueryOperator.NOT_IN)
_TEXT_MATCH = (QueryOperator.CONTAINS, QueryOperator.STARTS_WITH, QueryOperator.ENDS_WITH)


@dataclass(frozen=True)
class QueryFilter:
    """Represents a single filter condition"""
    field: str
    operator: QueryOperator
    value: Any = None

    def __post_init__(self):
        if self.operator in _VALUELESS:
            object.__setattr__(self, "value", None)
        elif self.value is None:
            raise ValueError(f"Value required for operator {self.operator}")
        elif self.operator in _MULTI_VALUE:
            if isinstance(self.value, (str, bytes)) or not isinstance(self.value, Sequence):
                raise ValueError(f"Operator {self.operator} requires a sequence of values")
            object.__setattr__(self, "value", tuple(self.value))


Query = Union[str, Sequence[QueryFilter]]

# RSQL comparison symbols, longest first so "==" wins over "="
_OPERATOR_SYMBOLS: Tuple[Tuple[str, str], ...] = (
    ("=out=", "out"), ("=like=", "like"), ("=null=", "null"),
    ("=gt=", "gt"), ("=ge=", "ge"), ("=lt=", "lt"), ("=le=", "le"), ("=in=", "in"),
    ("==", "eq"), ("!=", "ne"), (">=", "ge"), ("<=", "le"), (">", "gt"), ("<", "lt"),
)

_SIMPLE_OPERATORS = {
    "eq": QueryOperator.EQUALS,
    "ne": QueryOperator.NOT_EQUALS,
    "gt": QueryOperator.GREATER_THAN,
    "ge": QueryOperator.GREATER_THAN_OR_EQUAL,
    "lt": QueryOperator.LESS_THAN,
    "le": QueryOperator.LESS_THAN_OR_EQUAL,
}

_SELECTOR = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")
_UNQUOTED = re.compile(r"[^\s;,()'\"]+")
_AND_WORD = re.compile(r"\s+and\s+", re.IGNORECASE)


def parse_query(text: str) -> List[QueryFilter]:
    """
    Parse an RSQL-style query string into filters (all conditions AND-ed).

    Raises:
        QuerySyntaxError: when the text is not a valid query
    """
    parser = _QueryParser(text)
    return parser.parse()


class _QueryParser:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def parse(self) -> List[QueryFilter]:
        filters = [self._comparison()]
        while True:
            self._skip_spaces()
            if self._at_end():
                return filters
            if self.text[self.pos] == ";":
                self.pos += 1
            else:
                match = _AND_WORD.match(self.text, self.pos - 1 if self.pos else 0)
                if not match or match.start() > self.pos:
                    self._fail("Expected ';' or 'and'")
                self.pos = match.end()
            filters.append(self._comparison())

    def _comparison(self) -> QueryFilter:
        self._skip_spaces()
        match = _SELECTOR.match(self.text, self.pos)
        if not match:
            self._fail("Expected field name")
        field = match.group(0)
        self.pos = match.end()
        self._skip_spaces()

        symbol = self._operator()
        self._skip_spaces()

        if symbol in ("in", "out"):
            values = self._value_list()
            return QueryFilter(field, QueryOperator.IN if symbol == "in" else QueryOperator.NOT_IN, values)
        value = self._value()
        if symbol == "null":
            flag = value.lower()
            if flag not in ("true", "false"):
                self._fail("Expected true or false after =null=")
            return QueryFilter(field, QueryOperator.IS_NULL if flag == "true" else QueryOperator.IS_NOT_NULL)
        if symbol == "like":
            return _like_filter(field, value)
        return QueryFilter(field, _SIMPLE_OPERATORS[symbol], value)

    def _operator(self) -> str:
        for token, symbol in _OPERATOR_SYMBOLS:
            if self.text.startswith(token, self.pos):
                self.pos += len(token)
                return symbol
        self._fail("Expected comparison operator")

    def _value_list(self) -> List[str]:
        if self._at_end() or self.text[self.pos] != "(":
            self._fail("Expected '('")
        self.pos += 1
        values = []
        while True:
            self._skip_spaces()
            values.append(self._value())
            self._skip_spaces()
            if self._at_end():
                self._fail("Unterminated value list")
            char = self.text[self.pos]
            self.pos += 1
            if char == ")":
                return values
            if char != ",":
                self._fail("Expected ',' or ')'")

    def _value(self) -> str:
        if self._at_end():
            self._fail("Expected value")
        quote = self.text[self.pos]
        if quote in ("'", '"'):
            return self._quoted(quote)
        match = _UNQUOTED.match(self.text, self.pos)
        if not match:
            self._fail("Expected value")
        self.pos = match.end()
        return match.group(0)

    def _quoted(self, quote: str) -> str:
        start = self.pos
        self.pos += 1
        chars = []
        while not self._at_end():
            char = self.text[self.pos]
            if char == "\\" and self.pos + 1 < len(self.text):
                chars.append(self.text[self.pos + 1])
                self.pos += 2
                continue
            self.pos += 1
            if char == quote:
                return "".join(chars)
            chars.append(char)
        self.pos = start
        self._fail("Unterminated quoted value")

    def _skip_spaces(self):
        while not self._at_end() and self.text[self.pos].isspace():
            self.pos += 1

    def _at_end(self) -> bool:
        return self.pos >= len(self.text)

    def _fail(self, message: str):
        raise QuerySyntaxError(message, self.text, self.pos)


def _like_filter(field: str, pattern: str) -> QueryFilter:
    leading = pattern.startswith("*")
    trailing = pattern.endswith("*") and len(pattern) > 1
    core = pattern.strip("*")
    if leading and not trailing:
        return QueryFilter(field, QueryOperator.ENDS_WITH, core)
    if trailing and not leading:
        return QueryFilter(field, QueryOperator.STARTS_WITH, core)
    return QueryFilter(field, QueryOperator.CONTAINS, core)


def coerce_filters(query: Optional[Query]) -> List[QueryFilter]:
    """Accept query text or a sequence of filters and return a list of filters."""
    if query is None:
        return []
    if isinstance(query, str):
        return parse_query(query) if query.strip() else []
    if isinstance(query, QueryFilter):
        return [query]
    filters = list(query)
    for item in filters:
        if not isinstance(item, QueryFilter):
            raise TypeError(f"Unsupported query element: {type(item).__name__}")
    return filters


def coerce_value(value: Any, target_type: Optional[type]) -> Any:
    """Convert a parsed (string) value to ``target_type`` when that is possible."""
    if target_type is None or not isinstance(value, str) or target_type is str:
        return value
    try:
        if target_type is bool:
            lowered = value.lower()
            if lowered in ("true", "1", "yes"):
                return True
            if lowered in ("false", "0", "no"):
                return False
            return value
        if issubclass(target_type, Enum):
            return target_type(value)
        if target_type is datetime:
            return datetime.fromisoformat(value)
        if target_type is date:
            return date.fromisoformat(value)
        if target_type in (int, float, Decimal):
            return target_type(value)
    except (ValueError, TypeError):
        return value
    return value


def entity_matches(entity: Any, filters: Sequence[QueryFilter]) -> bool:
    """Check if entity matches all filters (in-memory evaluation)"""
    return all(_matches(entity, f) for f in filters)


def _matches(entity: Any, condition: QueryFilter) -> bool:
    field_value = getattr(entity, condition.field, None)
    op = condition.operator

    if op == QueryOperator.IS_NULL:
        return field_value is None
    if op == QueryOperator.IS_NOT_NULL:
        return field_value is not None
    if field_value is None:
        return op in (QueryOperator.NOT_EQUALS, QueryOperator.NOT_IN)

    target_type = type(field_value)
    if op in _MULTI_VALUE:
        values = [coerce_value(v, target_type) for v in condition.value]
        return (field_value in values) == (op == QueryOperator.IN)
    if op in _TEXT_MATCH:
        haystack = str(field_value).lower()
        needle = str(condition.value).lower()
        if op == QueryOperator.CONTAINS:
            return needle in haystack
        if op == QueryOperator.STARTS_WITH:
            return haystack.startswith(needle)
        return haystack.endswith(needle)

    value = coerce_value(condition.value, target_type)
    try:
        if op == QueryOperator.EQUALS:
            return field_value == value
        if op == QueryOperator.NOT_EQUALS:
            return field_value != value
        if op == QueryOperator.GREATER_THAN:
            return field_value > value
        if op == QueryOperator.GREATER_THAN_OR_EQUAL:
            return field_value >= value
        if op == QueryOperator.LESS_THAN:
            return field_value < value
        if op == QueryOperator.LESS_THAN_OR_EQUAL:
            return field_value <= value
    except TypeError:
        # incomparable types never match
        return False
    return False


# Export main components
__all__ = [
    "QueryOperator", "QueryFilter", "Query", "parse_query", "coerce_filters",
    "coerce_value", "entity_matches"
]
