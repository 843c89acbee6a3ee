# SPDX-License-Identifier: Apache-2.0
# Copyright 2026 Nat Noordanus

"""
Row and Duration value types produced by the record parser.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Iterator, NamedTuple


class Duration(NamedTuple):
    """Avro ``duration``: three independent unsigned components.

    The components are not collapsed into a single unit because the
    length of a month is undefined.
    """

    months: int
    days: int
    milliseconds: int


class Row(Sequence):
    """An immutable decoded record.

    Values are addressable by position and by field name, in the order
    the record schema declares its fields. Nested records are Rows,
    arrays are tuples and maps are read-only mappings.

    Examples
    --------
    >>> row = parser.parse({"id": 1, "name": "Alice"})
    >>> row[0], row["name"], len(row)
    (1, 'Alice', 2)
    >>> row.as_dict()
    {'id': 1, 'name': 'Alice'}
    """

    __slots__ = ("_fields", "_values", "_index")

    def __init__(self, fields: Sequence[str], values: Sequence[Any]):
        fields = tuple(fields)
        values = tuple(values)
        if len(fields) != len(values):
            raise ValueError(
                f"Row has {len(fields)} fields but {len(values)} values"
            )
        object.__setattr__(self, "_fields", fields)
        object.__setattr__(self, "_values", values)
        object.__setattr__(self, "_index", {name: i for i, name in enumerate(fields)})

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Row is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Row is immutable")

    @property
    def fields(self) -> tuple[str, ...]:
        """Field names in schema order."""
        return self._fields

    @property
    def values(self) -> tuple[Any, ...]:
        """Converted values in schema order."""
        return self._values

    @property
    def size(self) -> int:
        return len(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, key):
        if isinstance(key, str):
            return self._values[self._index[key]]
        return self._values[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __contains__(self, value: Any) -> bool:
        return value in self._values

    def field_index(self, name: str) -> int:
        """Position of field ``name``; raises KeyError if absent."""
        return self._index[name]

    def get_as(self, name: str) -> Any:
        """Value of field ``name``; raises KeyError if absent."""
        return self._values[self._index[name]]

    def items(self) -> Iterator[tuple[str, Any]]:
        return zip(self._fields, self._values)

    def as_dict(self, recursive: bool = True) -> dict[str, Any]:
        """Convert to a plain dict.

        With ``recursive=True`` nested Rows become dicts, arrays become
        lists and maps become dicts, all the way down.
        """
        if not recursive:
            return dict(zip(self._fields, self._values))
        return {name: _to_builtin(value) for name, value in self.items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Row):
            return NotImplemented
        return self._fields == other._fields and self._values == other._values

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{name}={value!r}" for name, value in self.items())
        return f"Row({body})"

    def __reduce__(self):
        return (Row, (self._fields, self._values))


def _to_builtin(value: Any) -> Any:
    if isinstance(value, Row):
        return value.as_dict(recursive=True)
    if isinstance(value, Duration):
        return value._asdict()
    if isinstance(value, tuple):
        return [_to_builtin(v) for v in value]
    if isinstance(value, Mapping):
        return {k: _to_builtin(v) for k, v in value.items()}
    return value
