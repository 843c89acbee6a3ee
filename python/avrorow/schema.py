# SPDX-License-Identifier: Apache-2.0
# Copyright 2026 Nat Noordanus

"""
Schema Node tree built from an Avro schema description.

``parse_schema`` validates an Avro schema with fastavro and translates it
into an immutable tree of ``SchemaNode`` values. A node's ``type`` tag and
``logical_type`` annotation together select the converter that applies to
a value of that node; see ``avrorow.parser``.

Example usage:
    >>> schema = avrorow.parse_schema({
    ...     "type": "record",
    ...     "name": "Payment",
    ...     "fields": [
    ...         {"name": "id", "type": "long"},
    ...         {"name": "amount", "type": {"type": "bytes", "logicalType": "decimal",
    ...                                     "precision": 10, "scale": 2}},
    ...     ],
    ... })
    >>> schema.field_names
    ('id', 'amount')
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Mapping

import fastavro
from fastavro.schema import SchemaParseException, UnknownType

from .exceptions import SchemaError

NULL = "null"
BOOLEAN = "boolean"
INT = "int"
LONG = "long"
FLOAT = "float"
DOUBLE = "double"
BYTES = "bytes"
STRING = "string"
FIXED = "fixed"
ENUM = "enum"
ARRAY = "array"
MAP = "map"
RECORD = "record"
UNION = "union"

PRIMITIVE_TYPES = frozenset({NULL, BOOLEAN, INT, LONG, FLOAT, DOUBLE, BYTES, STRING})
NAMED_TYPES = frozenset({FIXED, ENUM, RECORD})

# Logical type -> base types it may annotate.
LOGICAL_BASE_TYPES: Mapping[str, frozenset] = {
    "date": frozenset({INT}),
    "time-millis": frozenset({INT}),
    "time-micros": frozenset({LONG}),
    "timestamp-millis": frozenset({LONG}),
    "timestamp-micros": frozenset({LONG}),
    "local-timestamp-millis": frozenset({LONG}),
    "local-timestamp-micros": frozenset({LONG}),
    "decimal": frozenset({BYTES, FIXED}),
    "duration": frozenset({FIXED}),
    "uuid": frozenset({STRING}),
}


class _NoDefault:
    """Sentinel for a field declared without a default."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT = _NoDefault()


@dataclass(frozen=True)
class Field:
    """One named field of a record Schema Node."""

    name: str
    schema: "SchemaNode"
    default: Any = NO_DEFAULT
    aliases: tuple = ()
    doc: str | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


@dataclass(frozen=True, eq=False)
class SchemaNode:
    """One node of an Avro schema tree.

    Attributes
    ----------
    type : str
        The Avro type tag (``"int"``, ``"record"``, ``"union"``, ...).
    logical_type : str | None
        Logical type annotation, only set when valid for ``type``.
    name : str | None
        Full name of a named type (record, enum, fixed).
    fields : tuple[Field, ...]
        Record fields in declaration order.
    items : SchemaNode | None
        Array element schema.
    values : SchemaNode | None
        Map value schema (map keys are always strings).
    members : tuple[SchemaNode, ...]
        Union branches in declaration order.
    symbols : tuple[str, ...]
        Enum symbols.
    size : int | None
        Byte size of a fixed type.
    precision, scale : int | None
        Decimal parameters.
    """

    type: str
    logical_type: str | None = None
    name: str | None = None
    fields: tuple = ()
    items: "SchemaNode | None" = None
    values: "SchemaNode | None" = None
    members: tuple = ()
    symbols: tuple = ()
    size: int | None = None
    precision: int | None = None
    scale: int | None = None
    _field_index: Mapping[str, int] = dataclass_field(
        default_factory=dict, repr=False, compare=False
    )

    def __post_init__(self):
        if self.fields:
            object.__setattr__(
                self,
                "_field_index",
                {f.name: i for i, f in enumerate(self.fields)},
            )

    @property
    def is_nullable(self) -> bool:
        """True for a union that has a ``null`` branch."""
        return self.type == UNION and any(m.type == NULL for m in self.members)

    @property
    def non_null_members(self) -> tuple:
        return tuple(m for m in self.members if m.type != NULL)

    @property
    def field_names(self) -> tuple:
        return tuple(f.name for f in self.fields)

    @property
    def short_name(self) -> str | None:
        if self.name is None:
            return None
        return self.name.rsplit(".", 1)[-1]

    def field(self, name: str) -> Field:
        """Return the field called ``name``; raises KeyError if absent."""
        return self.fields[self._field_index[name]]

    def describe(self) -> str:
        """Short human-readable type description used in error messages."""
        if self.type == UNION:
            return "[" + ", ".join(m.describe() for m in self.members) + "]"
        if self.type in NAMED_TYPES and self.name:
            return f"{self.type} {self.name}"
        if self.logical_type:
            return f"{self.type}({self.logical_type})"
        return self.type

    def __repr__(self) -> str:
        return f"SchemaNode({self.describe()})"


def parse_schema(source: Any) -> SchemaNode:
    """
    Build a Schema Node tree from an Avro schema description.

    Parameters
    ----------
    source : str | dict | list | SchemaNode
        An Avro schema as a JSON document, a primitive type name, or the
        JSON object model (dicts and lists) used by fastavro. An existing
        ``SchemaNode`` is returned unchanged.

    Returns
    -------
    SchemaNode
        The root node.

    Raises
    ------
    avrorow.SchemaError
        If the schema is not valid Avro or defines a recursive record.
    """
    if isinstance(source, SchemaNode):
        return source
    if isinstance(source, str) and source.lstrip()[:1] in ("{", "[", '"'):
        try:
            source = json.loads(source)
        except json.JSONDecodeError as e:
            raise SchemaError(
                f"Schema is not valid JSON: {e}", variant="InvalidSchema"
            ) from e

    try:
        parsed = fastavro.parse_schema(source)
    except (SchemaParseException, UnknownType) as e:
        raise SchemaError(str(e), variant="InvalidSchema") from e
    except KeyError as e:
        raise SchemaError(
            f"Schema is missing required attribute {e}", variant="InvalidSchema"
        ) from e

    return _SchemaBuilder().build(parsed)


class _SchemaBuilder:
    """Translates fastavro's parsed schema into SchemaNodes.

    fastavro fully qualifies named types, so references are looked up by
    full name. A reference to a record still being built is a cycle.
    """

    def __init__(self):
        self.named: dict[str, SchemaNode] = {}
        self.building: set[str] = set()

    def build(self, schema: Any) -> SchemaNode:
        if isinstance(schema, list):
            return SchemaNode(
                type=UNION, members=tuple(self.build(m) for m in schema)
            )
        if isinstance(schema, str):
            return self._reference(schema)
        if not isinstance(schema, dict):
            raise SchemaError(
                f"Unexpected schema element {schema!r}", variant="InvalidSchema"
            )

        avro_type = schema["type"]
        if not isinstance(avro_type, str) or avro_type not in (
            PRIMITIVE_TYPES | NAMED_TYPES | {ARRAY, MAP}
        ):
            # {"type": {...}} and {"type": "ns.Name"} wrap another schema
            return self.build(avro_type)

        logical_type = _logical_type(schema, avro_type)

        if avro_type == RECORD:
            return self._record(schema)
        if avro_type == ENUM:
            node = SchemaNode(
                type=ENUM, name=schema["name"], symbols=tuple(schema["symbols"])
            )
            return self._register(node)
        if avro_type == FIXED:
            node = SchemaNode(
                type=FIXED,
                name=schema["name"],
                size=int(schema["size"]),
                logical_type=logical_type,
                precision=schema.get("precision") if logical_type == "decimal" else None,
                scale=schema.get("scale", 0) if logical_type == "decimal" else None,
            )
            return self._register(node)
        if avro_type == ARRAY:
            return SchemaNode(type=ARRAY, items=self.build(schema["items"]))
        if avro_type == MAP:
            return SchemaNode(type=MAP, values=self.build(schema["values"]))

        if logical_type == "decimal":
            return SchemaNode(
                type=avro_type,
                logical_type=logical_type,
                precision=schema["precision"],
                scale=schema.get("scale", 0),
            )
        return SchemaNode(type=avro_type, logical_type=logical_type)

    def _reference(self, name: str) -> SchemaNode:
        if name in PRIMITIVE_TYPES:
            return SchemaNode(type=name)
        if name in self.building:
            raise SchemaError(
                f"Recursive record '{name}' has no columnar representation",
                variant="RecursiveSchema",
                schema_context=name,
            )
        try:
            return self.named[name]
        except KeyError:
            raise SchemaError(
                f"Unknown named type '{name}'",
                variant="InvalidSchema",
                schema_context=name,
            ) from None

    def _record(self, schema: dict) -> SchemaNode:
        name = schema["name"]
        self.building.add(name)
        try:
            fields = tuple(
                Field(
                    name=f["name"],
                    schema=self.build(f["type"]),
                    default=f.get("default", NO_DEFAULT),
                    aliases=tuple(f.get("aliases", ())),
                    doc=f.get("doc"),
                )
                for f in schema["fields"]
            )
        finally:
            self.building.discard(name)
        return self._register(SchemaNode(type=RECORD, name=name, fields=fields))

    def _register(self, node: SchemaNode) -> SchemaNode:
        self.named[node.name] = node
        return node


def _logical_type(schema: dict, avro_type: str) -> str | None:
    """Return the logical type if it is valid for ``avro_type``.

    Per the Avro specification an invalid annotation is ignored and the
    value is treated as its base type.
    """
    logical_type = schema.get("logicalType")
    if logical_type is None:
        return None
    if avro_type not in LOGICAL_BASE_TYPES.get(logical_type, ()):
        return None
    if logical_type == "duration" and schema.get("size") != 12:
        return None
    if logical_type == "decimal":
        precision = schema.get("precision")
        scale = schema.get("scale", 0)
        if not isinstance(precision, int) or not isinstance(scale, int):
            return None
        if precision <= 0 or scale < 0 or scale > precision:
            return None
        if avro_type == FIXED and precision > _max_fixed_precision(schema["size"]):
            return None
    return logical_type


def _max_fixed_precision(size: int) -> int:
    """Largest decimal precision a two's-complement fixed of ``size`` bytes holds."""
    if size <= 0:
        return 0
    return len(str(2 ** (8 * size - 1) - 1)) - 1
