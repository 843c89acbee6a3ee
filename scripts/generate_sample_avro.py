#!/usr/bin/env python3
"""
Generate a sample Avro file exercising every type avrorow converts.

This script creates an Avro file containing:
- Nullable native types, including int32/int64/float boundaries
- Arrays, maps of arrays, bytes, fixed and enums
- Logical types: decimal, date, time, timestamp, local timestamp, duration, uuid
- A nested record inside a map of arrays

The file is read back through avrorow.read_avro as a check.
"""

import datetime
import struct
import sys
import uuid
from decimal import Decimal
from pathlib import Path

import fastavro

import avrorow

UTC = datetime.timezone.utc

SAMPLE_SCHEMA = {
    "type": "record",
    "name": "Sample",
    "namespace": "sample.avrorow",
    "doc": "Record containing one field of each supported type",
    "fields": [
        {"name": "id", "type": "long"},
        {"name": "label", "type": ["null", "string"]},
        {"name": "int32", "type": ["null", "int"]},
        {"name": "float32", "type": ["null", "float"]},
        {"name": "ratio", "type": ["null", "double"]},
        {"name": "active", "type": ["null", "boolean"]},
        {"name": "payload", "type": "bytes"},
        {"name": "checksum", "type": {"type": "fixed", "name": "Checksum", "size": 4}},
        {
            "name": "suit",
            "type": {
                "type": "enum",
                "name": "Suit",
                "symbols": ["SPADES", "HEARTS", "DIAMONDS", "CLUBS"],
            },
        },
        {"name": "tags", "type": {"type": "array", "items": "string"}},
        {
            "name": "series",
            "type": {"type": "map", "values": {"type": "array", "items": "long"}},
        },
        {
            "name": "amount",
            "type": {
                "type": "bytes",
                "logicalType": "decimal",
                "precision": 12,
                "scale": 2,
            },
        },
        {"name": "day", "type": {"type": "int", "logicalType": "date"}},
        {"name": "opens", "type": {"type": "int", "logicalType": "time-millis"}},
        {
            "name": "created",
            "type": {"type": "long", "logicalType": "timestamp-micros"},
        },
        {
            "name": "wall_clock",
            "type": {"type": "long", "logicalType": "local-timestamp-millis"},
        },
        {
            "name": "retention",
            "type": {
                "type": "fixed",
                "name": "Retention",
                "size": 12,
                "logicalType": "duration",
            },
        },
        {"name": "trace", "type": {"type": "string", "logicalType": "uuid"}},
        {
            "name": "sites",
            "type": {
                "type": "map",
                "values": {
                    "type": "array",
                    "items": {
                        "type": "record",
                        "name": "Site",
                        "fields": [
                            {"name": "name", "type": "string"},
                            {"name": "zip", "type": ["null", "string"], "default": None},
                        ],
                    },
                },
            },
        },
    ],
}


def create_sample_record(record_id: int) -> dict:
    """Create one sample record; record 0 carries boundary values."""
    record = {
        "id": record_id,
        "label": f"record {record_id}" if record_id % 3 else None,
        "int32": record_id * 1000,
        "float32": 0.5 * record_id,
        "ratio": record_id / 7,
        "active": record_id % 2 == 0,
        "payload": bytes(range(record_id % 16)),
        "checksum": struct.pack(">I", record_id),
        "suit": ["SPADES", "HEARTS", "DIAMONDS", "CLUBS"][record_id % 4],
        "tags": [f"tag{i}" for i in range(record_id % 3)],
        "series": {"even": [0, 2, 4], "odd": [1, 3]} if record_id % 2 else {},
        "amount": Decimal(record_id * 12345).scaleb(-2),
        "day": datetime.date(2020, 1, 1) + datetime.timedelta(days=record_id),
        "opens": datetime.time(9, 30),
        "created": datetime.datetime(2020, 1, 1, 12, tzinfo=UTC)
        + datetime.timedelta(seconds=record_id),
        "wall_clock": datetime.datetime(2020, 1, 1, 8, 0),
        "retention": struct.pack("<III", record_id, 10, 500),
        "trace": str(uuid.UUID(int=record_id)),
        "sites": {
            "north": [{"name": f"site {record_id}", "zip": None}],
            "south": [],
        },
    }

    if record_id == 0:
        record["int32"] = 2**31 - 1
        record["float32"] = struct.unpack("<f", b"\xff\xff\x7f\x7f")[0]
        record["id"] = 2**63 - 1

    return record


def generate_sample_file(output_path: Path, count: int = 10) -> None:
    """Generate the sample Avro file and read it back with avrorow."""
    records = [create_sample_record(i) for i in range(count)]

    with open(output_path, "wb") as f:
        fastavro.writer(f, fastavro.parse_schema(SAMPLE_SCHEMA), records)

    print(f"Generated sample file: {output_path}")
    print(f"  Records: {len(records)}")
    print(f"  Schema fields: {len(SAMPLE_SCHEMA['fields'])}")

    df = avrorow.read_avro(output_path)
    print(f"  Verified: {df.height} rows read by avrorow")
    print(f"  Columns: {df.schema}")


def main():
    output_dir = Path(__file__).parent.parent / "python" / "tests" / "data"
    output_dir.mkdir(parents=True, exist_ok=True)

    output_path = output_dir / "sample.avro"

    if len(sys.argv) > 1:
        output_path = Path(sys.argv[1])

    generate_sample_file(output_path)


if __name__ == "__main__":
    main()
