# SPDX-License-Identifier: Apache-2.0
# Copyright 2026 Nat Noordanus

"""
avrorow exception classes with structured metadata.

All avrorow exceptions inherit from AvroRowError, allowing users to catch
any avrorow-specific error with a single except clause:

    try:
        row = avrorow.parse_record(schema, record)
    except avrorow.AvroRowError as e:
        print(f"avrorow error: {e}")
        print(f"Variant: {e.variant}")

Errors raised while converting a record expose the offending field path
(field names, array indices and map keys from the record root):

    try:
        row = parser.parse(record)
    except avrorow.MalformedLogicalValueError as e:
        print(f"Bad value at {e.path_str}: {e.message}")
"""

from __future__ import annotations

import builtins
from typing import Tuple, Union

FieldPath = Tuple[Union[str, int], ...]


class MapKey(str):
    """Marks a field path segment as a map key rather than a field name."""

    __slots__ = ()


def format_field_path(field_path: FieldPath) -> str:
    """Render a field path as ``a.b[2].c`` (map keys render as ``['key']``)."""
    parts: list[str] = []
    for segment in field_path:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif isinstance(segment, MapKey):
            parts.append(f"[{str(segment)!r}]")
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(str(segment))
    return "".join(parts) or "<root>"


class AvroRowError(Exception):
    """Base exception for all avrorow errors.

    Attributes:
        message: Human-readable error message
        variant: The specific error variant (e.g., "TypeMismatch", "OutOfRange")
    """

    message: str
    variant: str

    def __init__(self, message: str, variant: str = "Unknown"):
        super().__init__(message)
        self.message = message
        self.variant = variant

    def to_dict(self) -> dict:
        """Convert exception attributes to a dictionary."""
        return {
            "message": self.message,
            "variant": self.variant,
        }


class SchemaError(AvroRowError):
    """Error with an Avro schema.

    Raised for invalid schemas, recursive records, or types that have no
    columnar equivalent.

    Attributes:
        message: Human-readable error message
        variant: The specific schema error variant (e.g., "InvalidSchema", "UnsupportedType")
        schema_context: Optional additional context (e.g., type name)
    """

    def __init__(
        self,
        message: str,
        variant: str = "Schema",
        schema_context: str | None = None,
    ):
        super().__init__(message, variant)
        self.schema_context = schema_context

    def __str__(self) -> str:
        parts = ["Schema error", f": {self.message}"]
        if self.schema_context:
            parts.append(f" (context: {self.schema_context})")
        return "".join(parts)

    def __repr__(self) -> str:
        return (
            f"SchemaError(message={self.message!r}, variant={self.variant!r}, "
            f"schema_context={self.schema_context!r})"
        )

    def to_dict(self) -> dict:
        """Convert exception attributes to a dictionary."""
        return {
            "message": self.message,
            "variant": self.variant,
            "schema_context": self.schema_context,
        }


class RecordError(AvroRowError):
    """Error converting a record value, located by its field path.

    Attributes:
        message: Human-readable error message
        variant: The specific error variant
        field_path: Field names, array indices and map keys from the record root
    """

    label = "Record error"

    def __init__(
        self,
        message: str,
        variant: str = "Record",
        field_path: FieldPath = (),
    ):
        super().__init__(message, variant)
        self.field_path = tuple(field_path)

    @property
    def path_str(self) -> str:
        return format_field_path(self.field_path)

    def __str__(self) -> str:
        return f"{self.label} at {self.path_str}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"variant={self.variant!r}, field_path={self.field_path!r})"
        )

    def to_dict(self) -> dict:
        """Convert exception attributes to a dictionary."""
        return {
            "message": self.message,
            "variant": self.variant,
            "field_path": list(self.field_path),
        }


class SchemaMismatchError(RecordError):
    """A value's runtime shape does not match its declared schema.

    Raised for wrong union branches, values of the wrong Python type,
    integers outside their Avro range and unexpected record fields.
    """

    label = "Schema mismatch"

    def __init__(
        self,
        message: str,
        variant: str = "TypeMismatch",
        field_path: FieldPath = (),
    ):
        super().__init__(message, variant, field_path)


class MissingFieldError(RecordError, builtins.KeyError):
    """A required field is absent from the record instance.

    Inherits from both AvroRowError and builtins.KeyError, allowing
    idiomatic Python exception handling:

        try:
            row = avrorow.parse_record(schema, {})
        except KeyError:
            print("Missing field!")

    Attributes:
        field_name: The name of the missing field
    """

    label = "Missing field"

    def __init__(
        self,
        message: str,
        variant: str = "MissingField",
        field_path: FieldPath = (),
    ):
        RecordError.__init__(self, message, variant, field_path)
        builtins.KeyError.__init__(self, message)
        self.field_name = self.field_path[-1] if self.field_path else None

    def __str__(self) -> str:
        return RecordError.__str__(self)


class MalformedLogicalValueError(RecordError):
    """A logical-type value fails its byte-length or range precondition.

    Attributes:
        logical_type: The logical type being decoded (e.g., "duration")
    """

    label = "Malformed logical value"

    def __init__(
        self,
        message: str,
        variant: str = "MalformedValue",
        field_path: FieldPath = (),
        logical_type: str | None = None,
    ):
        super().__init__(message, variant, field_path)
        self.logical_type = logical_type

    def __str__(self) -> str:
        if self.logical_type:
            return (
                f"{self.label} ({self.logical_type}) at {self.path_str}: "
                f"{self.message}"
            )
        return super().__str__()

    def __repr__(self) -> str:
        return (
            f"MalformedLogicalValueError(message={self.message!r}, "
            f"variant={self.variant!r}, field_path={self.field_path!r}, "
            f"logical_type={self.logical_type!r})"
        )

    def to_dict(self) -> dict:
        """Convert exception attributes to a dictionary."""
        result = super().to_dict()
        result["logical_type"] = self.logical_type
        return result


class ConfigurationError(AvroRowError, builtins.ValueError):
    """Invalid configuration parameters.

    Raised when invalid parameters are passed to avrorow functions
    (e.g., a non-positive max_depth).

    Inherits from both AvroRowError and builtins.ValueError, allowing
    idiomatic Python exception handling:

        try:
            parser = avrorow.RecordParser(schema, max_depth=0)
        except ValueError:
            print("Invalid configuration!")
    """

    def __init__(
        self,
        message: str,
        variant: str = "Configuration",
    ):
        AvroRowError.__init__(self, message, variant)
        builtins.ValueError.__init__(self, message)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"ConfigurationError(message={self.message!r}, variant={self.variant!r})"
        )
