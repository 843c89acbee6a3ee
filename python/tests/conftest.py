"""Shared schemas, fixtures and record helpers for avrorow tests."""

import io
import struct
import tempfile
from pathlib import Path
from types import MappingProxyType

import fastavro
import pytest


# =============================================================================
# Test Schemas
# =============================================================================
#
# Module-level constants: never mutate these in a test.


def _nullable_field(name: str, avro_type: str) -> dict:
    return {"name": name, "type": ["null", avro_type]}


NATIVE_SCHEMA = MappingProxyType(
    {
        "type": "record",
        "name": "Native",
        "namespace": "test.avrorow",
        "fields": [
            _nullable_field("string", "string"),
            _nullable_field("float", "float"),
            _nullable_field("int", "int"),
            _nullable_field("long", "long"),
            _nullable_field("double", "double"),
            _nullable_field("boolean", "boolean"),
        ],
    }
)

ARRAY_SCHEMA = MappingProxyType(
    {
        "type": "record",
        "name": "WithArray",
        "namespace": "test.avrorow",
        "fields": [{"name": "array", "type": {"type": "array", "items": "string"}}],
    }
)

MAP_SCHEMA = MappingProxyType(
    {
        "type": "record",
        "name": "WithMap",
        "namespace": "test.avrorow",
        "fields": [
            {
                "name": "map",
                "type": {
                    "type": "map",
                    "values": {"type": "array", "items": "long"},
                },
            }
        ],
    }
)

BYTES_SCHEMA = MappingProxyType(
    {
        "type": "record",
        "name": "WithBytes",
        "namespace": "test.avrorow",
        "fields": [{"name": "bytes", "type": "bytes"}],
    }
)

FIXED_SCHEMA = MappingProxyType(
    {
        "type": "record",
        "name": "WithFixed",
        "namespace": "test.avrorow",
        "fields": [
            {
                "name": "fixed",
                "type": {"type": "fixed", "name": "Fixed13", "size": 13},
            }
        ],
    }
)

LOGICAL_SCHEMA = MappingProxyType(
    {
        "type": "record",
        "name": "Logical",
        "namespace": "test.avrorow",
        "fields": [
            {
                "name": "decimal",
                "type": {
                    "type": "bytes",
                    "logicalType": "decimal",
                    "precision": 10,
                    "scale": 2,
                },
            },
            {"name": "date", "type": {"type": "int", "logicalType": "date"}},
            {
                "name": "millisecond",
                "type": {"type": "int", "logicalType": "time-millis"},
            },
            {
                "name": "microsecond",
                "type": {"type": "long", "logicalType": "time-micros"},
            },
            {
                "name": "timestampMillis",
                "type": {"type": "long", "logicalType": "timestamp-millis"},
            },
            {
                "name": "timestampMicros",
                "type": {"type": "long", "logicalType": "timestamp-micros"},
            },
            {
                "name": "duration",
                "type": {
                    "type": "fixed",
                    "name": "Duration",
                    "size": 12,
                    "logicalType": "duration",
                },
            },
        ],
    }
)

STREET_SCHEMA = MappingProxyType(
    {
        "type": "record",
        "name": "Street",
        "namespace": "test.avrorow",
        "fields": [
            {"name": "name", "type": "string"},
            {"name": "zip", "type": "string"},
        ],
    }
)

NEIGHBORHOOD_SCHEMA = MappingProxyType(
    {
        "type": "record",
        "name": "Neighborhood",
        "namespace": "test.avrorow",
        "fields": [
            {"name": "name", "type": "string"},
            {"name": "streets", "type": {"type": "array", "items": dict(STREET_SCHEMA)}},
        ],
    }
)

CITY_SCHEMA = MappingProxyType(
    {
        "type": "record",
        "name": "City",
        "namespace": "test.avrorow",
        "fields": [
            {"name": "name", "type": "string"},
            {
                "name": "neighborhoods",
                "type": {"type": "array", "items": dict(NEIGHBORHOOD_SCHEMA)},
            },
        ],
    }
)

STATE_SCHEMA = MappingProxyType(
    {
        "type": "record",
        "name": "State",
        "namespace": "test.avrorow",
        "fields": [
            {"name": "name", "type": "string"},
            {
                "name": "regions",
                "type": {
                    "type": "map",
                    "values": {"type": "array", "items": dict(CITY_SCHEMA)},
                },
            },
        ],
    }
)


# =============================================================================
# Record Helpers
# =============================================================================


def avro_round_trip(schema, record: dict) -> dict:
    """Encode ``record`` with fastavro and decode it again.

    Returns the record exactly as a fastavro consumer would hand it to the
    parser, with fastavro's own logical type conversion applied.
    """
    parsed = fastavro.parse_schema(dict(schema))
    buffer = io.BytesIO()
    fastavro.schemaless_writer(buffer, parsed, record)
    buffer.seek(0)
    return fastavro.schemaless_reader(buffer, parsed)


def encode_duration(months: int, days: int, milliseconds: int) -> bytes:
    """12-byte Avro duration: three little-endian unsigned 32-bit integers."""
    return struct.pack("<III", months, days, milliseconds)


def encode_unscaled(unscaled: int, size: int | None = None) -> bytes:
    """Two's-complement big-endian bytes of a decimal's unscaled value."""
    if size is None:
        size = max(1, (unscaled.bit_length() + 8) // 8)
    return unscaled.to_bytes(size, byteorder="big", signed=True)


def street(index: int) -> dict:
    return {"name": f"street {index}", "zip": f"{index}40 000-00"}


def state_record() -> dict:
    """A State with two cities of two neighborhoods of two streets each."""

    def neighborhood(letter: str, first_street: int) -> dict:
        return {
            "name": f"{letter} neighborhood",
            "streets": [street(first_street), street(first_street + 1)],
        }

    cities = [
        {
            "name": "first city",
            "neighborhoods": [neighborhood("A", 1), neighborhood("B", 3)],
        },
        {
            "name": "second city",
            "neighborhoods": [neighborhood("C", 5), neighborhood("D", 7)],
        },
    ]
    return {"name": "A State", "regions": {"cities": cities}}


# =============================================================================
# Avro File Fixtures
# =============================================================================


@pytest.fixture
def write_avro_file():
    """Fixture returning a function that writes records to a temporary Avro file."""
    paths = []

    def _write(schema, records) -> str:
        with tempfile.NamedTemporaryFile(suffix=".avro", delete=False) as f:
            fastavro.writer(f, fastavro.parse_schema(dict(schema)), records)
            paths.append(f.name)
            return f.name

    yield _write

    for path in paths:
        Path(path).unlink(missing_ok=True)
