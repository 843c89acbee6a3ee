# SPDX-License-Identifier: Apache-2.0
# Copyright 2026 Nat Noordanus

"""
Decoders for Avro logical types.

Each decoder takes the base-type value of a field and returns its
semantic Python value:

    ======================  ===========  ================================
    Logical type            Base type    Result
    ======================  ===========  ================================
    date                    int          datetime.date
    time-millis             int          datetime.time (ms resolution)
    time-micros             long         datetime.time (us resolution)
    timestamp-millis        long         datetime.datetime, UTC
    timestamp-micros        long         datetime.datetime, UTC
    local-timestamp-millis  long         datetime.datetime, naive
    local-timestamp-micros  long         datetime.datetime, naive
    decimal                 bytes/fixed  decimal.Decimal
    duration                fixed(12)    avrorow.Duration
    uuid                    string       str
    ======================  ===========  ================================

Decoders also accept the value already converted by a reader such as
fastavro (``datetime.date`` for ``date`` and so on) and validate it.
Invalid lengths and out-of-range values raise MalformedLogicalValueError;
values of the wrong Python type raise SchemaMismatchError.
"""

from __future__ import annotations

import datetime
import struct
import uuid
from decimal import Context, Decimal, InvalidOperation
from typing import Any, Callable

from .exceptions import FieldPath, MalformedLogicalValueError, SchemaMismatchError
from .row import Duration
from .schema import FIXED, SchemaNode

EPOCH_DATE = datetime.date(1970, 1, 1)
EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
LOCAL_EPOCH = datetime.datetime(1970, 1, 1)

MILLIS_PER_DAY = 86_400_000
MICROS_PER_DAY = 86_400_000_000
UINT32_MAX = 2**32 - 1

_DURATION = struct.Struct("<III")

_BYTES_TYPES = (bytes, bytearray, memoryview)


def _malformed(
    message: str, logical_type: str, path: FieldPath
) -> MalformedLogicalValueError:
    return MalformedLogicalValueError(
        message, variant="OutOfRange", field_path=path, logical_type=logical_type
    )


def _type_mismatch(
    expected: str, value: Any, logical_type: str, path: FieldPath
) -> SchemaMismatchError:
    return SchemaMismatchError(
        f"expected {expected} for {logical_type}, got {type(value).__name__}",
        field_path=path,
    )


def _require_int(value: Any, logical_type: str, path: FieldPath) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _type_mismatch("an integer", value, logical_type, path)
    return value


def decode_date(value: Any, path: FieldPath = ()) -> datetime.date:
    """Days since 1970-01-01 -> ``datetime.date``."""
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        return value
    days = _require_int(value, "date", path)
    try:
        return EPOCH_DATE + datetime.timedelta(days=days)
    except OverflowError:
        raise _malformed(
            f"{days} days since epoch is outside the representable date range",
            "date",
            path,
        ) from None


def _time_of_day(micros: int, logical_type: str, path: FieldPath) -> datetime.time:
    if not 0 <= micros < MICROS_PER_DAY:
        raise _malformed(
            f"{micros} microseconds is not a time of day", logical_type, path
        )
    seconds, microsecond = divmod(micros, 1_000_000)
    minutes, second = divmod(seconds, 60)
    hour, minute = divmod(minutes, 60)
    return datetime.time(hour, minute, second, microsecond)


def decode_time_millis(value: Any, path: FieldPath = ()) -> datetime.time:
    """Milliseconds since midnight -> ``datetime.time``."""
    if isinstance(value, datetime.time):
        if value.microsecond % 1000:
            raise _malformed(
                f"{value} has sub-millisecond precision", "time-millis", path
            )
        return value
    millis = _require_int(value, "time-millis", path)
    if not 0 <= millis < MILLIS_PER_DAY:
        raise _malformed(
            f"{millis} milliseconds is not a time of day", "time-millis", path
        )
    return _time_of_day(millis * 1000, "time-millis", path)


def decode_time_micros(value: Any, path: FieldPath = ()) -> datetime.time:
    """Microseconds since midnight -> ``datetime.time``."""
    if isinstance(value, datetime.time):
        return value
    micros = _require_int(value, "time-micros", path)
    return _time_of_day(micros, "time-micros", path)


def _instant(
    value: Any,
    per_second: int,
    epoch: datetime.datetime,
    logical_type: str,
    path: FieldPath,
) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        if epoch.tzinfo is None:
            return value.replace(tzinfo=None)
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc)
    ticks = _require_int(value, logical_type, path)
    seconds, fraction = divmod(ticks, per_second)
    try:
        return epoch + datetime.timedelta(
            seconds=seconds, microseconds=fraction * (1_000_000 // per_second)
        )
    except OverflowError:
        raise _malformed(
            f"{ticks} is outside the representable timestamp range",
            logical_type,
            path,
        ) from None


def decode_timestamp_millis(value: Any, path: FieldPath = ()) -> datetime.datetime:
    """Milliseconds since epoch -> UTC ``datetime.datetime``."""
    return _instant(value, 1000, EPOCH, "timestamp-millis", path)


def decode_timestamp_micros(value: Any, path: FieldPath = ()) -> datetime.datetime:
    """Microseconds since epoch -> UTC ``datetime.datetime``."""
    return _instant(value, 1_000_000, EPOCH, "timestamp-micros", path)


def decode_local_timestamp_millis(
    value: Any, path: FieldPath = ()
) -> datetime.datetime:
    return _instant(value, 1000, LOCAL_EPOCH, "local-timestamp-millis", path)


def decode_local_timestamp_micros(
    value: Any, path: FieldPath = ()
) -> datetime.datetime:
    return _instant(value, 1_000_000, LOCAL_EPOCH, "local-timestamp-micros", path)


def decode_decimal(
    value: Any,
    precision: int,
    scale: int,
    size: int | None = None,
    path: FieldPath = (),
) -> Decimal:
    """
    Two's-complement big-endian unscaled integer -> ``decimal.Decimal``.

    The result is exactly ``unscaled * 10**-scale``; precision and scale
    come from the schema. ``size`` is the byte size of a ``fixed`` base
    type, or None for ``bytes``.
    """
    if isinstance(value, Decimal):
        return _check_decimal(value, precision, scale, path)
    if not isinstance(value, _BYTES_TYPES):
        raise _type_mismatch("bytes", value, "decimal", path)
    data = bytes(value)
    if size is not None and len(data) != size:
        raise MalformedLogicalValueError(
            f"fixed decimal must be {size} bytes, got {len(data)}",
            variant="InvalidLength",
            field_path=path,
            logical_type="decimal",
        )
    if not data:
        raise MalformedLogicalValueError(
            "decimal bytes are empty",
            variant="InvalidLength",
            field_path=path,
            logical_type="decimal",
        )
    unscaled = int.from_bytes(data, byteorder="big", signed=True)
    digits = tuple(int(d) for d in str(abs(unscaled)))
    if unscaled and len(digits) > precision:
        raise _malformed(
            f"unscaled value {unscaled} exceeds precision {precision}",
            "decimal",
            path,
        )
    return Decimal((1 if unscaled < 0 else 0, digits, -scale))


def _check_decimal(value: Decimal, precision: int, scale: int, path: FieldPath) -> Decimal:
    if not value.is_finite():
        raise _malformed(f"{value} is not a finite decimal", "decimal", path)
    exponent = value.as_tuple().exponent
    context = Context(prec=len(value.as_tuple().digits) + abs(exponent) + scale + 1)
    try:
        scaled = value.quantize(Decimal(1).scaleb(-scale), context=context)
    except InvalidOperation:
        raise _malformed(
            f"{value} does not fit decimal({precision}, {scale})", "decimal", path
        ) from None
    if scaled != value:
        raise _malformed(f"{value} has more than {scale} fractional digits", "decimal", path)
    if len(scaled.as_tuple().digits) > precision and scaled != 0:
        raise _malformed(
            f"{value} exceeds precision {precision}", "decimal", path
        )
    return scaled


def decode_duration(value: Any, path: FieldPath = ()) -> Duration:
    """
    12 bytes of three little-endian unsigned 32-bit integers -> Duration.

    The components are months, days and milliseconds, in that order.
    """
    if isinstance(value, Duration):
        for name, component in value._asdict().items():
            _require_int(component, "duration", path)
            if not 0 <= component <= UINT32_MAX:
                raise _malformed(
                    f"{name}={component} is not an unsigned 32-bit integer",
                    "duration",
                    path,
                )
        return value
    if not isinstance(value, _BYTES_TYPES):
        raise _type_mismatch("12 bytes", value, "duration", path)
    if len(value) != _DURATION.size:
        raise MalformedLogicalValueError(
            f"duration must be exactly {_DURATION.size} bytes, got {len(value)}",
            variant="InvalidLength",
            field_path=path,
            logical_type="duration",
        )
    return Duration(*_DURATION.unpack(bytes(value)))


def decode_uuid(value: Any, path: FieldPath = ()) -> str:
    """UUID string (or ``uuid.UUID``) -> canonical lower-case string."""
    if isinstance(value, uuid.UUID):
        return str(value)
    if not isinstance(value, str):
        raise _type_mismatch("a string", value, "uuid", path)
    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise _malformed(f"{value!r} is not a UUID", "uuid", path) from None


_SIMPLE_DECODERS: dict[str, Callable[[Any, FieldPath], Any]] = {
    "date": decode_date,
    "time-millis": decode_time_millis,
    "time-micros": decode_time_micros,
    "timestamp-millis": decode_timestamp_millis,
    "timestamp-micros": decode_timestamp_micros,
    "local-timestamp-millis": decode_local_timestamp_millis,
    "local-timestamp-micros": decode_local_timestamp_micros,
    "duration": decode_duration,
    "uuid": decode_uuid,
}

LOGICAL_TYPES = frozenset(_SIMPLE_DECODERS) | {"decimal"}


def decode_logical(schema: SchemaNode, value: Any, path: FieldPath = ()) -> Any:
    """Decode ``value`` according to ``schema.logical_type``."""
    if schema.logical_type == "decimal":
        return decode_decimal(
            value,
            schema.precision,
            schema.scale,
            size=schema.size if schema.type == FIXED else None,
            path=path,
        )
    return _SIMPLE_DECODERS[schema.logical_type](value, path)


# Python types a decoder accepts in converted form, used for union matching.
CONVERTED_TYPES: dict[str, tuple] = {
    "date": (datetime.date,),
    "time-millis": (datetime.time,),
    "time-micros": (datetime.time,),
    "timestamp-millis": (datetime.datetime,),
    "timestamp-micros": (datetime.datetime,),
    "local-timestamp-millis": (datetime.datetime,),
    "local-timestamp-micros": (datetime.datetime,),
    "decimal": (Decimal,),
    "duration": (Duration,),
    "uuid": (uuid.UUID,),
}
