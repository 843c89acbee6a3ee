# SPDX-License-Identifier: Apache-2.0
# Copyright 2026 Nat Noordanus

"""
avrorow - Avro records to typed, columnar rows.

This module converts decoded Avro records into Rows, following the Avro
type system field by field:

1. **parse_schema()** - Schema Node tree from an Avro schema
   - Accepts JSON text or the dict/list object model used by fastavro
   - Validated by fastavro; named types resolved by full name

2. **RecordParser / parse_record() / dispatch()** - Value conversion
   - Nested records become Rows, arrays tuples, maps read-only mappings
   - Unions resolve to the first branch the value matches
   - Logical types (date, time, timestamp, decimal, duration, uuid) decoded
     to datetime, Decimal and Duration values

3. **polars_schema() / rows_to_dataframe() / read_avro()** - Columnar output
   - Map Schema Nodes to Polars dtypes
   - Assemble Rows into a Polars DataFrame

Example usage:
    >>> import avrorow
    >>>
    >>> parser = avrorow.RecordParser({
    ...     "type": "record",
    ...     "name": "Event",
    ...     "fields": [
    ...         {"name": "id", "type": "long"},
    ...         {"name": "day", "type": {"type": "int", "logicalType": "date"}},
    ...         {"name": "note", "type": ["null", "string"]},
    ...     ],
    ... })
    >>> row = parser.parse({"id": 7, "day": 19000, "note": None})
    >>> row["day"]
    datetime.date(2022, 1, 8)
    >>>
    >>> # Whole files into Polars
    >>> df = avrorow.read_avro("events.avro")
"""

from __future__ import annotations

from .exceptions import (
    AvroRowError,
    ConfigurationError,
    MalformedLogicalValueError,
    MissingFieldError,
    SchemaError,
    SchemaMismatchError,
)
from .frame import (
    iter_rows,
    polars_dtype,
    polars_schema,
    read_avro,
    rows_to_dataframe,
)
from .parser import Converter, RecordParser, dispatch, parse_record
from .row import Duration, Row
from .schema import Field, SchemaNode, parse_schema

__all__ = [
    # Functions
    "parse_schema",
    "dispatch",
    "parse_record",
    "polars_dtype",
    "polars_schema",
    "rows_to_dataframe",
    "iter_rows",
    "read_avro",
    # Classes
    "Converter",
    "RecordParser",
    "SchemaNode",
    "Field",
    "Row",
    "Duration",
    # Exception types
    "AvroRowError",
    "SchemaError",
    "SchemaMismatchError",
    "MissingFieldError",
    "MalformedLogicalValueError",
    "ConfigurationError",
]
