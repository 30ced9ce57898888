from __future__ import annotations

import itertools
import re
from typing import Iterator, List, Sequence

from pyiceberg.schema import Schema
from pyiceberg.types import (
    BinaryType,
    BooleanType,
    DateType,
    DecimalType,
    DoubleType,
    FloatType,
    IcebergType,
    IntegerType,
    ListType,
    LongType,
    MapType,
    NestedField,
    StringType,
    StructType,
    TimestampType,
)

from hms_location.descriptors import FieldSchema
from hms_location.exceptions import SchemaBuildError

PRIMITIVES = {
    "tinyint": IntegerType(),
    "smallint": IntegerType(),
    "int": IntegerType(),
    "integer": IntegerType(),
    "bigint": LongType(),
    "boolean": BooleanType(),
    "float": FloatType(),
    "double": DoubleType(),
    "string": StringType(),
    "date": DateType(),
    "timestamp": TimestampType(),
    "binary": BinaryType(),
}

_WORD = re.compile(r"\s*([A-Za-z0-9_]+)")


def build_schema(columns: Sequence[FieldSchema]) -> Schema:
    """Build a pyiceberg Schema from metastore columns, keeping their order."""
    names = set()
    for column in columns:
        name = (column.name or "").strip()
        if not name:
            raise SchemaBuildError("Column name must not be empty")
        if name.lower() in names:
            raise SchemaBuildError(f"Duplicate column: {name}")
        names.add(name.lower())

    ids = itertools.count(1)
    field_ids = [next(ids) for _ in columns]
    fields = [
        NestedField(
            field_id=field_id,
            name=column.name.strip(),
            field_type=_HiveTypeParser(column.type, ids).parse(),
            required=False,
            doc=column.comment,
        )
        for field_id, column in zip(field_ids, columns)
    ]
    try:
        return Schema(*fields)
    except ValueError as e:
        raise SchemaBuildError(f"Invalid schema: {e}") from e


class _HiveTypeParser:
    """Recursive-descent parser for Hive type strings such as map<string,array<int>>."""

    def __init__(self, text: str, ids: Iterator[int]):
        self.text = text or ""
        self.pos = 0
        self.ids = ids

    def parse(self) -> IcebergType:
        result = self._type()
        self._skip()
        if self.pos != len(self.text):
            raise self._error("unexpected trailing characters")
        return result

    def _type(self) -> IcebergType:
        name = self._word().lower()
        if name == "array":
            self._expect("<")
            element_id = next(self.ids)
            element = self._type()
            self._expect(">")
            return ListType(
                element_id=element_id, element_type=element, element_required=False
            )
        if name == "map":
            self._expect("<")
            key_id, value_id = next(self.ids), next(self.ids)
            key = self._type()
            self._expect(",")
            value = self._type()
            self._expect(">")
            return MapType(
                key_id=key_id,
                key_type=key,
                value_id=value_id,
                value_type=value,
                value_required=False,
            )
        if name == "struct":
            self._expect("<")
            fields = []
            while True:
                field_name = self._word()
                self._expect(":")
                field_id = next(self.ids)
                fields.append(
                    NestedField(
                        field_id=field_id,
                        name=field_name,
                        field_type=self._type(),
                        required=False,
                    )
                )
                if not self._accept(","):
                    break
            self._expect(">")
            return StructType(*fields)

        params: List[int] = []
        if self._accept("("):
            params.append(self._number())
            while self._accept(","):
                params.append(self._number())
            self._expect(")")
        return self._primitive(name, params)

    def _primitive(self, name: str, params: List[int]) -> IcebergType:
        if name == "decimal":
            if len(params) > 2:
                raise self._error("decimal takes at most precision and scale")
            precision = params[0] if params else 10
            scale = params[1] if len(params) > 1 else 0
            return DecimalType(precision, scale)
        if name in ("varchar", "char"):
            if len(params) != 1:
                raise self._error(f"{name} requires a length")
            return StringType()
        if name not in PRIMITIVES:
            raise self._error(f"unsupported type {name}")
        if params:
            raise self._error(f"{name} takes no parameters")
        return PRIMITIVES[name]

    def _word(self) -> str:
        match = _WORD.match(self.text, self.pos)
        if match is None:
            raise self._error("expected a name")
        self.pos = match.end()
        return match.group(1)

    def _number(self) -> int:
        word = self._word()
        if not word.isdigit():
            raise self._error(f"expected a number, got {word}")
        return int(word)

    def _skip(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _accept(self, token: str) -> bool:
        self._skip()
        if self.text.startswith(token, self.pos):
            self.pos += len(token)
            return True
        return False

    def _expect(self, token: str):
        if not self._accept(token):
            raise self._error(f"expected '{token}'")

    def _error(self, reason: str) -> SchemaBuildError:
        return SchemaBuildError(
            f"Invalid type {self.text!r} at position {self.pos}: {reason}"
        )
