# SPDX-License-Identifier: Apache-2.0
# Copyright 2026 Nat Noordanus

"""
Avro record to Row conversion.

The parser walks a Schema Node tree alongside a decoded Avro record
(the dict produced by fastavro or any Avro JSON decoder) and returns a
``Row`` of converted values:

- scalars are checked against their Avro type and passed through
- logical types are decoded by ``avrorow.logical``
- records become nested Rows, arrays tuples, maps read-only mappings
- unions pick the first branch, in declared order, the value matches

Parsing is a pure function of (schema, record): no state is shared between
calls, so one parser may be used from many threads at once.

Example usage:
    >>> parser = avrorow.RecordParser(schema)
    >>> row = parser.parse({"id": 1, "tags": ["a", "b"], "score": None})
    >>> row["tags"]
    ('a', 'b')
"""

from __future__ import annotations

import datetime
import logging
import math
import types
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from .exceptions import (
    ConfigurationError,
    FieldPath,
    MapKey,
    MissingFieldError,
    SchemaError,
    SchemaMismatchError,
)
from .logical import CONVERTED_TYPES, decode_logical
from .row import Row
from .schema import (
    ARRAY,
    BOOLEAN,
    BYTES,
    DOUBLE,
    ENUM,
    FIXED,
    FLOAT,
    INT,
    LONG,
    MAP,
    NULL,
    RECORD,
    STRING,
    UNION,
    Field,
    SchemaNode,
    parse_schema,
)

log = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

INT_MIN, INT_MAX = -(2**31), 2**31 - 1
LONG_MIN, LONG_MAX = -(2**63), 2**63 - 1
FLOAT_MAX = 3.4028234663852886e38

_BYTES_TYPES = (bytes, bytearray, memoryview)


def _type_name(value: Any) -> str:
    return type(value).__name__


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_array(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(
        value, (str, *_BYTES_TYPES, Row)
    )


class Converter:
    """
    Converts Avro values to Row values for any Schema Node.

    Parameters
    ----------
    strict : bool, default False
        If True, reject record instances carrying keys the schema does not
        declare. If False, such keys are ignored.
    max_depth : int, default 64
        Maximum nesting of records, arrays and maps.
    """

    def __init__(self, *, strict: bool = False, max_depth: int = DEFAULT_MAX_DEPTH):
        if not isinstance(strict, bool):
            raise ConfigurationError(
                f"strict must be a bool, got {_type_name(strict)}"
            )
        if not _is_integer(max_depth) or max_depth < 1:
            raise ConfigurationError(
                f"max_depth must be a positive integer, got {max_depth!r}"
            )
        self.strict = strict
        self.max_depth = max_depth

    # -- dispatch ---------------------------------------------------------

    def convert(
        self, schema: SchemaNode, value: Any, path: FieldPath = (), depth: int = 0
    ) -> Any:
        """Convert ``value`` according to ``schema``."""
        if schema.type == UNION:
            return self._union(schema, value, path, depth)
        if value is None:
            if schema.type == NULL:
                return None
            raise SchemaMismatchError(
                f"null value for non-nullable {schema.describe()}",
                variant="UnexpectedNull",
                field_path=path,
            )
        if schema.logical_type is not None:
            if schema.type in (INT, LONG) and _is_integer(value):
                self._check_integer(schema, value, path)
            return decode_logical(schema, value, path)
        return self._CONVERTERS[schema.type](self, schema, value, path, depth)

    def _mismatch(
        self, schema: SchemaNode, value: Any, path: FieldPath
    ) -> SchemaMismatchError:
        return SchemaMismatchError(
            f"expected {schema.describe()}, got {_type_name(value)}",
            field_path=path,
        )

    def _descend(self, depth: int, path: FieldPath) -> int:
        depth += 1
        if depth > self.max_depth:
            raise SchemaMismatchError(
                f"nesting deeper than max_depth={self.max_depth}",
                variant="MaxDepthExceeded",
                field_path=path,
            )
        return depth

    # -- scalars ----------------------------------------------------------

    def _null(self, schema, value, path, depth):
        raise SchemaMismatchError(
            f"expected null, got {_type_name(value)}", field_path=path
        )

    def _boolean(self, schema, value, path, depth):
        if not isinstance(value, bool):
            raise self._mismatch(schema, value, path)
        return value

    def _check_integer(self, schema: SchemaNode, value: int, path: FieldPath) -> int:
        low, high = (INT_MIN, INT_MAX) if schema.type == INT else (LONG_MIN, LONG_MAX)
        if not low <= value <= high:
            raise SchemaMismatchError(
                f"{value} is outside the range of Avro {schema.type}",
                variant="OutOfRange",
                field_path=path,
            )
        return value

    def _integer(self, schema, value, path, depth):
        if not _is_integer(value):
            raise self._mismatch(schema, value, path)
        return int(self._check_integer(schema, value, path))

    def _float(self, schema, value, path, depth):
        if not _is_number(value):
            raise self._mismatch(schema, value, path)
        try:
            result = float(value)
        except OverflowError:
            raise SchemaMismatchError(
                f"{value} is outside the range of Avro {schema.type}",
                variant="OutOfRange",
                field_path=path,
            ) from None
        if schema.type == FLOAT and math.isfinite(result) and abs(result) > FLOAT_MAX:
            raise SchemaMismatchError(
                f"{value} is outside the range of Avro float",
                variant="OutOfRange",
                field_path=path,
            )
        return result

    def _bytes(self, schema, value, path, depth):
        if not isinstance(value, _BYTES_TYPES):
            raise self._mismatch(schema, value, path)
        return bytes(value)

    def _string(self, schema, value, path, depth):
        if not isinstance(value, str):
            raise self._mismatch(schema, value, path)
        return value

    def _fixed(self, schema, value, path, depth):
        if not isinstance(value, _BYTES_TYPES):
            raise self._mismatch(schema, value, path)
        if len(value) != schema.size:
            raise SchemaMismatchError(
                f"{schema.describe()} expects {schema.size} bytes, got {len(value)}",
                variant="InvalidLength",
                field_path=path,
            )
        return bytes(value)

    def _enum(self, schema, value, path, depth):
        if not isinstance(value, str):
            raise self._mismatch(schema, value, path)
        if value not in schema.symbols:
            raise SchemaMismatchError(
                f"{value!r} is not a symbol of {schema.describe()}",
                variant="UnknownSymbol",
                field_path=path,
            )
        return value

    # -- composites -------------------------------------------------------

    def _array(self, schema, value, path, depth):
        if not _is_array(value):
            raise self._mismatch(schema, value, path)
        depth = self._descend(depth, path)
        return tuple(
            self.convert(schema.items, item, path + (i,), depth)
            for i, item in enumerate(value)
        )

    def _map(self, schema, value, path, depth):
        if not isinstance(value, Mapping):
            raise self._mismatch(schema, value, path)
        depth = self._descend(depth, path)
        converted = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise SchemaMismatchError(
                    f"map keys must be strings, got {_type_name(key)}",
                    field_path=path,
                )
            converted[key] = self.convert(
                schema.values, item, path + (MapKey(key),), depth
            )
        return types.MappingProxyType(converted)

    def _record(self, schema, value, path, depth):
        return self.parse_record(schema, value, path, depth)

    def parse_record(
        self,
        schema: SchemaNode,
        record: Mapping[str, Any] | Row,
        path: FieldPath = (),
        depth: int = 0,
    ) -> Row:
        """Convert one record instance into a Row, field by field."""
        if isinstance(record, Row):
            record = dict(record.items())
        elif not isinstance(record, Mapping):
            raise self._mismatch(schema, record, path)
        depth = self._descend(depth, path)

        if self.strict:
            declared = _declared_keys(schema)
            for key in record:
                if key not in declared:
                    raise SchemaMismatchError(
                        f"field {key!r} is not declared by {schema.describe()}",
                        variant="UnknownField",
                        field_path=path + (key,),
                    )

        values = []
        for field in schema.fields:
            field_path = path + (field.name,)
            raw = self._field_value(field, record, field_path)
            values.append(self.convert(field.schema, raw, field_path, depth))
        return Row(schema.field_names, values)

    def _field_value(
        self, field: Field, record: Mapping[str, Any], path: FieldPath
    ) -> Any:
        if field.name in record:
            return record[field.name]
        for alias in field.aliases:
            if alias in record:
                return record[alias]
        if field.has_default:
            return _default_value(field.schema, field.default)
        if field.schema.is_nullable:
            return None
        raise MissingFieldError(
            f"required field {field.name!r} is absent", field_path=path
        )

    # -- unions -----------------------------------------------------------

    def _union(self, schema, value, path, depth):
        if value is None:
            if schema.is_nullable:
                return None
            raise SchemaMismatchError(
                f"null value for {schema.describe()} without a null branch",
                variant="UnexpectedNull",
                field_path=path,
            )

        named = _named_branch(schema, value)
        if named is not None:
            return self.convert(named, value[1], path, depth)

        for member in schema.non_null_members:
            if self.matches(member, value):
                return self.convert(member, value, path, depth)
        raise SchemaMismatchError(
            f"{_type_name(value)} value matches no branch of {schema.describe()}",
            variant="NoMatchingBranch",
            field_path=path,
        )

    def matches(self, schema: SchemaNode, value: Any) -> bool:
        """True if ``value`` is structurally compatible with ``schema``.

        Collections are checked shallowly; records by their keys.
        """
        if schema.logical_type is not None:
            if isinstance(value, CONVERTED_TYPES[schema.logical_type]):
                # datetime is a date subclass
                return not (
                    schema.logical_type == "date"
                    and isinstance(value, datetime.datetime)
                )
        tag = schema.type
        if tag == NULL:
            return value is None
        if tag == BOOLEAN:
            return isinstance(value, bool)
        if tag == INT:
            return _is_integer(value) and INT_MIN <= value <= INT_MAX
        if tag == LONG:
            return _is_integer(value) and LONG_MIN <= value <= LONG_MAX
        if tag in (FLOAT, DOUBLE):
            return _is_number(value)
        if tag == STRING:
            return isinstance(value, str)
        if tag == BYTES:
            return isinstance(value, _BYTES_TYPES)
        if tag == FIXED:
            return isinstance(value, _BYTES_TYPES) and len(value) == schema.size
        if tag == ENUM:
            return isinstance(value, str) and value in schema.symbols
        if tag == ARRAY:
            return _is_array(value)
        if tag == MAP:
            return isinstance(value, Mapping) and all(isinstance(k, str) for k in value)
        if tag == RECORD:
            return self._matches_record(schema, value)
        return False

    def _matches_record(self, schema: SchemaNode, value: Any) -> bool:
        if isinstance(value, Row):
            return value.fields == schema.field_names
        if not isinstance(value, Mapping):
            return False
        declared = _declared_keys(schema)
        if self.strict and any(key not in declared for key in value):
            return False
        return all(
            f.name in value
            or any(alias in value for alias in f.aliases)
            or f.has_default
            or f.schema.is_nullable
            for f in schema.fields
        )

    _CONVERTERS = {
        NULL: _null,
        BOOLEAN: _boolean,
        INT: _integer,
        LONG: _integer,
        FLOAT: _float,
        DOUBLE: _float,
        BYTES: _bytes,
        STRING: _string,
        FIXED: _fixed,
        ENUM: _enum,
        ARRAY: _array,
        MAP: _map,
        RECORD: _record,
    }


class RecordParser:
    """
    Parser bound to one record schema.

    Parameters
    ----------
    schema : SchemaNode | str | dict
        A record schema, as a Schema Node or anything ``parse_schema``
        accepts.
    strict : bool, default False
        Reject record instances carrying undeclared keys.
    max_depth : int, default 64
        Maximum nesting of records, arrays and maps.

    Raises
    ------
    avrorow.SchemaError
        If the schema is invalid or is not a record.
    avrorow.ConfigurationError
        If an option is invalid.

    Examples
    --------
    >>> parser = avrorow.RecordParser(schema, strict=True)
    >>> rows = list(parser.parse_many(fastavro.reader(fo)))
    """

    def __init__(
        self,
        schema: Any,
        *,
        strict: bool = False,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.schema = _record_schema(schema)
        self._converter = Converter(strict=strict, max_depth=max_depth)
        log.debug(
            "Created parser for %s (strict=%s, max_depth=%d)",
            self.schema.describe(),
            strict,
            max_depth,
        )

    @property
    def strict(self) -> bool:
        return self._converter.strict

    @property
    def max_depth(self) -> int:
        return self._converter.max_depth

    def parse(self, record: Mapping[str, Any] | Row) -> Row:
        """Convert one record instance into a Row."""
        return self._converter.parse_record(self.schema, record)

    def parse_many(self, records: Iterable[Mapping[str, Any]]) -> Iterator[Row]:
        """Lazily convert an iterable of record instances."""
        count = 0
        for record in records:
            yield self._converter.parse_record(self.schema, record)
            count += 1
        log.debug("Parsed %d records as %s", count, self.schema.describe())

    def __repr__(self) -> str:
        return (
            f"RecordParser({self.schema.describe()}, strict={self.strict}, "
            f"max_depth={self.max_depth})"
        )


def dispatch(
    schema: Any,
    value: Any,
    path: FieldPath = (),
    *,
    strict: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """
    Convert a single Avro value according to its schema.

    Parameters
    ----------
    schema : SchemaNode | str | dict | list
        The value's schema.
    value : Any
        The value as decoded into the Avro object model.
    path : tuple, optional
        Field path of the value, used in error messages.

    Raises
    ------
    avrorow.SchemaMismatchError
        If the value's shape does not match the schema.
    avrorow.MissingFieldError
        If a nested record lacks a required field.
    avrorow.MalformedLogicalValueError
        If a logical-type value has an invalid length or range.
    """
    node = parse_schema(schema)
    return Converter(strict=strict, max_depth=max_depth).convert(node, value, tuple(path))


def parse_record(
    schema: Any,
    record: Mapping[str, Any] | Row,
    *,
    strict: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Row:
    """Convert one record instance into a Row; see ``RecordParser``."""
    node = _record_schema(schema)
    return Converter(strict=strict, max_depth=max_depth).parse_record(node, record)


def _record_schema(schema: Any) -> SchemaNode:
    node = parse_schema(schema)
    if node.type != RECORD:
        raise SchemaError(
            f"expected a record schema, got {node.describe()}",
            variant="NotARecord",
            schema_context=node.describe(),
        )
    return node


def _declared_keys(schema: SchemaNode) -> frozenset:
    """Field names and aliases a record instance may carry."""
    keys = set(schema.field_names)
    for field in schema.fields:
        keys.update(field.aliases)
    return frozenset(keys)


def _named_branch(schema: SchemaNode, value: Any) -> SchemaNode | None:
    """Record branch selected by a fastavro ``(name, record)`` union tuple.

    Only record branches are selected this way; any other tuple is left
    to structural matching.
    """
    if not (
        isinstance(value, tuple)
        and len(value) == 2
        and isinstance(value[0], str)
        and isinstance(value[1], (Mapping, Row))
    ):
        return None
    for member in schema.members:
        if member.type == RECORD and value[0] in (member.name, member.short_name):
            return member
    return None


def _default_value(schema: SchemaNode, default: Any) -> Any:
    """Translate a JSON schema default into the Avro object model.

    Avro encodes bytes and fixed defaults as strings of code points 0-255,
    also inside record, array and map defaults. A union default belongs to
    the union's first branch.
    """
    if schema.type == UNION and schema.members:
        schema = schema.members[0]
    if schema.type in (BYTES, FIXED) and isinstance(default, str):
        return default.encode("latin-1")
    if schema.type == ARRAY and isinstance(default, list):
        return [_default_value(schema.items, item) for item in default]
    if schema.type == MAP and isinstance(default, Mapping):
        return {
            key: _default_value(schema.values, item) for key, item in default.items()
        }
    if schema.type == RECORD and isinstance(default, Mapping):
        declared = set(schema.field_names)
        return {
            key: _default_value(schema.field(key).schema, item)
            if key in declared
            else item
            for key, item in default.items()
        }
    return default

