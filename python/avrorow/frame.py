# SPDX-License-Identifier: Apache-2.0
# Copyright 2026 Nat Noordanus

"""
Columnar output: Polars dtypes for Schema Nodes and DataFrames from Rows.

Type mapping
------------
=========================  ==========================================
Avro                       Polars
=========================  ==========================================
null                       Null
boolean                    Boolean
int / long                 Int32 / Int64
float / double             Float32 / Float64
string, uuid               String
bytes, fixed               Binary
enum                       Enum(symbols)
date                       Date
time-millis, time-micros   Time
timestamp-millis/micros    Datetime("ms"/"us", "UTC")
local-timestamp-*          Datetime("ms"/"us")
decimal(p, s)              Decimal(p, s)
duration                   Struct{months, days, milliseconds: UInt32}
array<T>                   List(T)
map<T>                     List(Struct{key: String, value: T})
record                     Struct(fields)
[null, T]                  T
=========================  ==========================================

Polars has no map type, so maps become lists of key/value structs.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from typing import IO, Any, Union

import fastavro
import polars as pl

from .exceptions import SchemaError
from .parser import DEFAULT_MAX_DEPTH, RecordParser
from .row import Duration, Row
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
    SchemaNode,
    parse_schema,
)

Source = Union[str, "os.PathLike[str]", IO[bytes]]

_PRIMITIVE_DTYPES = {
    NULL: pl.Null(),
    BOOLEAN: pl.Boolean(),
    INT: pl.Int32(),
    LONG: pl.Int64(),
    FLOAT: pl.Float32(),
    DOUBLE: pl.Float64(),
    BYTES: pl.Binary(),
    STRING: pl.String(),
    FIXED: pl.Binary(),
}

DURATION_DTYPE = pl.Struct(
    {"months": pl.UInt32(), "days": pl.UInt32(), "milliseconds": pl.UInt32()}
)


def _logical_dtype(schema: SchemaNode) -> pl.DataType:
    logical_type = schema.logical_type
    if logical_type == "date":
        return pl.Date()
    if logical_type in ("time-millis", "time-micros"):
        return pl.Time()
    if logical_type == "timestamp-millis":
        return pl.Datetime("ms", "UTC")
    if logical_type == "timestamp-micros":
        return pl.Datetime("us", "UTC")
    if logical_type == "local-timestamp-millis":
        return pl.Datetime("ms")
    if logical_type == "local-timestamp-micros":
        return pl.Datetime("us")
    if logical_type == "decimal":
        return pl.Decimal(precision=schema.precision, scale=schema.scale)
    if logical_type == "duration":
        return DURATION_DTYPE
    return pl.String()  # uuid


def polars_dtype(schema: Any) -> pl.DataType:
    """
    Polars dtype for values of ``schema``.

    Raises
    ------
    avrorow.SchemaError
        For unions with more than one non-null branch, which have no
        single columnar type.
    """
    schema = parse_schema(schema)
    if schema.logical_type is not None:
        return _logical_dtype(schema)
    tag = schema.type
    if tag in _PRIMITIVE_DTYPES:
        return _PRIMITIVE_DTYPES[tag]
    if tag == ENUM:
        return pl.Enum(list(schema.symbols))
    if tag == ARRAY:
        return pl.List(polars_dtype(schema.items))
    if tag == MAP:
        return pl.List(
            pl.Struct({"key": pl.String(), "value": polars_dtype(schema.values)})
        )
    if tag == RECORD:
        return pl.Struct({f.name: polars_dtype(f.schema) for f in schema.fields})
    if tag == UNION:
        branches = schema.non_null_members
        if len(branches) == 1:
            return polars_dtype(branches[0])
        if not branches:
            return pl.Null()
        raise SchemaError(
            f"union {schema.describe()} has no single columnar type",
            variant="UnsupportedType",
            schema_context=schema.describe(),
        )
    raise SchemaError(
        f"no columnar type for {schema.describe()}",
        variant="UnsupportedType",
        schema_context=schema.describe(),
    )


def polars_schema(schema: Any) -> pl.Schema:
    """Polars schema for a record schema, columns in field order."""
    schema = parse_schema(schema)
    if schema.type != RECORD:
        raise SchemaError(
            f"expected a record schema, got {schema.describe()}",
            variant="NotARecord",
            schema_context=schema.describe(),
        )
    return pl.Schema({f.name: polars_dtype(f.schema) for f in schema.fields})


def _column_value(value: Any) -> Any:
    """Row value -> the Python value Polars expects for its column dtype."""
    if isinstance(value, Row):
        return {name: _column_value(v) for name, v in value.items()}
    if isinstance(value, Duration):
        return value._asdict()
    if isinstance(value, tuple):
        return [_column_value(v) for v in value]
    if isinstance(value, Mapping):
        return [{"key": k, "value": _column_value(v)} for k, v in value.items()]
    return value


def rows_to_dataframe(rows: Iterable[Row], schema: Any) -> pl.DataFrame:
    """
    Assemble Rows into a DataFrame.

    Parameters
    ----------
    rows : Iterable[Row]
        Rows produced by a parser for ``schema``.
    schema : SchemaNode | str | dict
        The record schema the rows were parsed with.

    Returns
    -------
    pl.DataFrame
        One column per record field, typed per ``polars_schema``.
    """
    target = polars_schema(schema)
    columns: dict[str, list] = {name: [] for name in target.names()}
    for row in rows:
        for name, value in row.items():
            columns[name].append(_column_value(value))
    return pl.DataFrame(
        [pl.Series(name, values, dtype=target[name]) for name, values in columns.items()]
    )


def iter_rows(
    source: Source,
    *,
    strict: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Iterator[Row]:
    """
    Yield Rows from an Avro object container file.

    Records are decoded by ``fastavro.reader`` and converted with a
    ``RecordParser`` for the file's writer schema.

    Parameters
    ----------
    source : str | PathLike | binary file object
        Path to an Avro file, or an open binary file.
    strict : bool, default False
        See ``RecordParser``.
    max_depth : int, default 64
        See ``RecordParser``.
    """
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb") as fo:
            yield from iter_rows(fo, strict=strict, max_depth=max_depth)
        return

    avro_reader = fastavro.reader(source)
    parser = RecordParser(avro_reader.writer_schema, strict=strict, max_depth=max_depth)
    yield from parser.parse_many(avro_reader)


def read_avro(
    source: Source,
    *,
    strict: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> pl.DataFrame:
    """
    Read an Avro object container file into a DataFrame.

    Examples
    --------
    >>> df = avrorow.read_avro("data.avro")
    >>> df.schema
    """
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb") as fo:
            return read_avro(fo, strict=strict, max_depth=max_depth)

    avro_reader = fastavro.reader(source)
    parser = RecordParser(avro_reader.writer_schema, strict=strict, max_depth=max_depth)
    return rows_to_dataframe(parser.parse_many(avro_reader), parser.schema)
