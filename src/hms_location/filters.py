from __future__ import annotations

import logging
import operator
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Sequence

from pyiceberg.expressions import (
    BooleanExpression,
    BoundPredicate,
    EqualTo,
    GreaterThan,
    GreaterThanOrEqual,
    In,
    IsNull,
    LessThan,
    LessThanOrEqual,
    NotEqualTo,
    NotIn,
    NotNull,
    NotStartsWith,
    StartsWith,
    UnboundPredicate,
)
from pyiceberg.expressions.parser import parse
from pyiceberg.expressions.visitors import BooleanExpressionVisitor, visit
from pyparsing import ParseBaseException
from sqlalchemy import (
    Column,
    ColumnElement,
    Float,
    Integer,
    Numeric,
    and_,
    case,
    cast,
    false,
    not_,
    null,
    or_,
    select,
    true,
    type_coerce,
)

from hms_location.descriptors import DEFAULT_PARTITION_NAME, FieldSchema
from hms_location.exceptions import InvalidFilterError
from hms_location.models import PartitionKeyVals

logger = logging.getLogger(__name__)

INTEGRAL_TYPES = {"tinyint", "smallint", "int", "integer", "bigint"}
FRACTIONAL_TYPES = {"float", "double"}
DECIMAL_TYPES = {"decimal"}

# single-quoted literals are matched first so quotes inside them are left alone
_QUOTED = re.compile(r"'(?:[^']|'')*'" + r'|"([^"]*)"')

COMPARISONS: Dict[type, Callable[[Any, Any], Any]] = {
    EqualTo: operator.eq,
    NotEqualTo: operator.ne,
    LessThan: operator.lt,
    LessThanOrEqual: operator.le,
    GreaterThan: operator.gt,
    GreaterThanOrEqual: operator.ge,
}


def parse_filter(filter_expr: str) -> BooleanExpression:
    try:
        return parse(_single_quoted(filter_expr))
    except (ParseBaseException, ValueError) as e:
        raise InvalidFilterError(
            f"Cannot parse partition filter: {filter_expr!r}"
        ) from e


def _single_quoted(filter_expr: str) -> str:
    """Rewrite metastore-style "..." string literals into the '...' form."""

    def replace(match: re.Match) -> str:
        inner = match.group(1)
        if inner is None or "'" in inner:
            return match.group(0)
        return f"'{inner}'"

    return _QUOTED.sub(replace, filter_expr)


def to_partition_clause(
    filter_expr: str,
    partition_keys: Sequence[FieldSchema],
    partition_id: Column,
) -> ColumnElement:
    """Translate a filter expression into a clause over a partition's key values.

    ``partition_id`` is the PART_ID column of the enclosing query; each key
    reference becomes a correlated lookup into PARTITION_KEY_VALS.
    """
    expression = parse_filter(filter_expr)
    logger.debug("Parsed partition filter %r into %r", filter_expr, expression)
    return visit(expression, _PartitionClauseVisitor(partition_keys, partition_id))


class _PartitionClauseVisitor(BooleanExpressionVisitor[ColumnElement]):
    def __init__(self, partition_keys: Sequence[FieldSchema], partition_id: Column):
        self.partition_keys = list(partition_keys)
        self.partition_id = partition_id

    def visit_true(self) -> ColumnElement:
        return true()

    def visit_false(self) -> ColumnElement:
        return false()

    def visit_not(self, child_result: ColumnElement) -> ColumnElement:
        return not_(child_result)

    def visit_and(
        self, left_result: ColumnElement, right_result: ColumnElement
    ) -> ColumnElement:
        return and_(left_result, right_result)

    def visit_or(
        self, left_result: ColumnElement, right_result: ColumnElement
    ) -> ColumnElement:
        return or_(left_result, right_result)

    def visit_unbound_predicate(
        self, predicate: UnboundPredicate[Any]
    ) -> ColumnElement:
        index, key = self._lookup(predicate.term.name)
        raw_value = self._key_value(index)
        value = self._typed(raw_value, key)

        if isinstance(predicate, IsNull):
            return raw_value == DEFAULT_PARTITION_NAME
        if isinstance(predicate, NotNull):
            return raw_value != DEFAULT_PARTITION_NAME
        if isinstance(predicate, (StartsWith, NotStartsWith)):
            prefix = str(predicate.literal.value)
            clause = raw_value.startswith(prefix, autoescape=True)
            return not_(clause) if isinstance(predicate, NotStartsWith) else clause
        if isinstance(predicate, (In, NotIn)):
            literals = [self._coerce(lit.value, key) for lit in predicate.literals]
            clause = value.in_(literals)
            return not_(clause) if isinstance(predicate, NotIn) else clause

        comparison = COMPARISONS.get(type(predicate))
        if comparison is None:
            raise InvalidFilterError(
                f"Unsupported partition filter predicate: {predicate}"
            )
        return comparison(value, self._coerce(predicate.literal.value, key))

    def visit_bound_predicate(self, predicate: BoundPredicate[Any]) -> ColumnElement:
        raise InvalidFilterError(f"Unexpected bound predicate: {predicate}")

    def _lookup(self, name: str) -> tuple[int, FieldSchema]:
        for index, key in enumerate(self.partition_keys):
            if key.name.lower() == name.lower():
                return index, key
        names = [key.name for key in self.partition_keys]
        raise InvalidFilterError(
            f"{name} is not a partition key, expected one of {names}"
        )

    def _key_value(self, index: int) -> ColumnElement:
        return (
            select(PartitionKeyVals.c.PART_KEY_VAL)
            .where(PartitionKeyVals.c.PART_ID == self.partition_id)
            .where(PartitionKeyVals.c.INTEGER_IDX == index)
            .correlate(self.partition_id.table)
            .scalar_subquery()
        )

    @staticmethod
    def _typed(raw_value: ColumnElement, key: FieldSchema) -> ColumnElement:
        base_type = _base_type(key.type)
        if base_type in INTEGRAL_TYPES:
            sql_type = Integer
        elif base_type in FRACTIONAL_TYPES:
            sql_type = Float
        elif base_type in DECIMAL_TYPES:
            sql_type = Numeric
        else:
            return raw_value
        # the default partition marker compares as NULL, never as a number
        return type_coerce(
            case(
                (raw_value == DEFAULT_PARTITION_NAME, null()),
                else_=cast(raw_value, sql_type),
            ),
            sql_type,
        )

    @staticmethod
    def _coerce(value: Any, key: FieldSchema) -> Any:
        base_type = _base_type(key.type)
        try:
            if base_type in INTEGRAL_TYPES:
                return int(value)
            if base_type in FRACTIONAL_TYPES:
                return float(value)
            if base_type in DECIMAL_TYPES:
                return Decimal(str(value))
        except (TypeError, ValueError, InvalidOperation) as e:
            raise InvalidFilterError(
                f"Value {value!r} does not match type {key.type} "
                f"of partition key {key.name}"
            ) from e
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)


def _base_type(type_name: str) -> str:
    return type_name.strip().lower().split("(", 1)[0].strip()
