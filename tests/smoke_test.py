"""Minimal smoke test for release wheel validation."""
import io

import fastavro

import avrorow

schema = {
    "type": "record",
    "name": "Weather",
    "namespace": "test",
    "fields": [
        {"name": "station", "type": "string"},
        {"name": "time", "type": "long"},
        {"name": "temp", "type": "int"},
    ],
}
records = [
    {"station": f"011990-9999{i}", "time": -619524000000 + i * 1000, "temp": i * 11}
    for i in range(5)
]

buffer = io.BytesIO()
fastavro.writer(buffer, fastavro.parse_schema(schema), records)
buffer.seek(0)

df = avrorow.read_avro(buffer)
assert df.shape == (5, 3), f"Unexpected shape: {df.shape}"
assert df.columns == ["station", "time", "temp"], f"Unexpected columns: {df.columns}"
print(f"Smoke test passed: {df.shape[0]} rows, {df.columns}")
