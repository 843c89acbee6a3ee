"""
Unit tests for Schema Node construction.

Tests cover:
- Primitive, named and composite schema nodes
- Logical type annotations, including ones Avro says to ignore
- Named type references and recursive records
- Invalid schemas
"""

import json

import pytest

import avrorow
from avrorow.schema import NO_DEFAULT

from conftest import LOGICAL_SCHEMA, NATIVE_SCHEMA, STATE_SCHEMA


class TestPrimitiveNodes:
    """Tests for primitive type names."""

    @pytest.mark.parametrize(
        "type_name",
        ["null", "boolean", "int", "long", "float", "double", "bytes", "string"],
    )
    def test_primitive_name(self, type_name):
        node = avrorow.parse_schema(type_name)
        assert node.type == type_name
        assert node.logical_type is None

    def test_json_text(self):
        node = avrorow.parse_schema('{"type": "long"}')
        assert node.type == "long"

    def test_existing_node_returned_unchanged(self):
        node = avrorow.parse_schema("int")
        assert avrorow.parse_schema(node) is node


class TestRecordNodes:
    """Tests for record schemas."""

    def test_fields_in_declaration_order(self):
        node = avrorow.parse_schema(dict(NATIVE_SCHEMA))
        assert node.type == "record"
        assert node.field_names == ("string", "float", "int", "long", "double", "boolean")

    def test_full_name(self):
        node = avrorow.parse_schema(dict(NATIVE_SCHEMA))
        assert node.name == "test.avrorow.Native"
        assert node.short_name == "Native"

    def test_nullable_fields(self):
        node = avrorow.parse_schema(dict(NATIVE_SCHEMA))
        for field in node.fields:
            assert field.schema.type == "union"
            assert field.schema.is_nullable
            assert len(field.schema.non_null_members) == 1

    def test_field_lookup(self):
        node = avrorow.parse_schema(dict(NATIVE_SCHEMA))
        assert node.field("long").schema.non_null_members[0].type == "long"
        with pytest.raises(KeyError):
            node.field("missing")

    def test_field_defaults(self):
        node = avrorow.parse_schema(
            {
                "type": "record",
                "name": "Defaults",
                "fields": [
                    {"name": "a", "type": "int", "default": 5},
                    {"name": "b", "type": "int"},
                ],
            }
        )
        assert node.field("a").has_default
        assert node.field("a").default == 5
        assert node.field("b").default is NO_DEFAULT
        assert not node.field("b").has_default

    def test_nested_composites(self):
        node = avrorow.parse_schema(dict(STATE_SCHEMA))
        regions = node.field("regions").schema
        assert regions.type == "map"
        assert regions.values.type == "array"
        city = regions.values.items
        assert city.type == "record"
        assert city.field_names == ("name", "neighborhoods")
        street = city.field("neighborhoods").schema.items.field("streets").schema.items
        assert street.field_names == ("name", "zip")

    def test_schema_json_string(self):
        node = avrorow.parse_schema(json.dumps(dict(NATIVE_SCHEMA)))
        assert len(node.fields) == 6

    def test_named_reference(self):
        node = avrorow.parse_schema(
            {
                "type": "record",
                "name": "Pair",
                "namespace": "test.avrorow",
                "fields": [
                    {
                        "name": "first",
                        "type": {
                            "type": "record",
                            "name": "Point",
                            "fields": [{"name": "x", "type": "int"}],
                        },
                    },
                    {"name": "second", "type": "Point"},
                ],
            }
        )
        assert node.field("second").schema is node.field("first").schema

    def test_recursive_record_rejected(self):
        with pytest.raises(avrorow.SchemaError) as exc_info:
            avrorow.parse_schema(
                {
                    "type": "record",
                    "name": "LinkedList",
                    "fields": [
                        {"name": "value", "type": "int"},
                        {"name": "next", "type": ["null", "LinkedList"]},
                    ],
                }
            )
        assert exc_info.value.variant == "RecursiveSchema"


class TestLogicalAnnotations:
    """Tests for logical type annotations on schema nodes."""

    def test_logical_fields(self):
        node = avrorow.parse_schema(dict(LOGICAL_SCHEMA))
        logical = {f.name: f.schema.logical_type for f in node.fields}
        assert logical == {
            "decimal": "decimal",
            "date": "date",
            "millisecond": "time-millis",
            "microsecond": "time-micros",
            "timestampMillis": "timestamp-millis",
            "timestampMicros": "timestamp-micros",
            "duration": "duration",
        }

    def test_decimal_parameters(self):
        node = avrorow.parse_schema(dict(LOGICAL_SCHEMA)).field("decimal").schema
        assert node.precision == 10
        assert node.scale == 2

    def test_decimal_scale_defaults_to_zero(self):
        node = avrorow.parse_schema(
            {"type": "bytes", "logicalType": "decimal", "precision": 4}
        )
        assert node.scale == 0

    def test_fixed_decimal(self):
        node = avrorow.parse_schema(
            {
                "type": "fixed",
                "name": "Money",
                "size": 8,
                "logicalType": "decimal",
                "precision": 18,
                "scale": 4,
            }
        )
        assert node.type == "fixed"
        assert node.size == 8
        assert node.logical_type == "decimal"
        assert (node.precision, node.scale) == (18, 4)

    def test_logical_type_on_wrong_base_is_ignored(self):
        node = avrorow.parse_schema({"type": "string", "logicalType": "date"})
        assert node.type == "string"
        assert node.logical_type is None

    def test_duration_with_wrong_size_is_ignored(self):
        node = avrorow.parse_schema(
            {"type": "fixed", "name": "Short", "size": 11, "logicalType": "duration"}
        )
        assert node.logical_type is None

    def test_unknown_logical_type_is_ignored(self):
        node = avrorow.parse_schema({"type": "long", "logicalType": "nanos-since-lunch"})
        assert node.type == "long"
        assert node.logical_type is None

    def test_uuid(self):
        node = avrorow.parse_schema({"type": "string", "logicalType": "uuid"})
        assert node.logical_type == "uuid"


class TestInvalidSchemas:
    """Tests for schemas that cannot be parsed."""

    def test_unknown_type(self):
        with pytest.raises(avrorow.SchemaError) as exc_info:
            avrorow.parse_schema({"type": "record", "name": "R", "fields": [
                {"name": "a", "type": "NoSuchType"},
            ]})
        assert exc_info.value.variant == "InvalidSchema"

    def test_invalid_json(self):
        with pytest.raises(avrorow.SchemaError):
            avrorow.parse_schema('{"type": "record", ')

    def test_schema_error_is_avrorow_error(self):
        with pytest.raises(avrorow.AvroRowError):
            avrorow.parse_schema("not-a-type")


class TestDescribe:
    """Tests for the human-readable node description used in errors."""

    def test_union_description(self):
        assert avrorow.parse_schema(["null", "int"]).describe() == "[null, int]"

    def test_logical_description(self):
        node = avrorow.parse_schema({"type": "int", "logicalType": "date"})
        assert node.describe() == "int(date)"

    def test_named_description(self):
        node = avrorow.parse_schema(dict(NATIVE_SCHEMA))
        assert node.describe() == "record test.avrorow.Native"
