"""Field-level update operators for Firestore writes.

Mirror the Admin SDK's ``FieldValue.delete()`` and ``arrayRemove()``. Used as
values in the ``update`` mapping of a write and encoded by ``encode_write``
into updateMask / updateTransforms.
"""

from __future__ import annotations

from typing import Any


class _DeleteField:
    """Sentinel: remove the field from the document."""

    _instance: _DeleteField | None = None

    def __new__(cls) -> _DeleteField:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()


class ArrayRemove:
    """Remove every occurrence of each value from an array field.

    Operands keep their order and are stored without duplicates.
    """

    def __init__(self, *values: Any) -> None:
        unique: list[Any] = []
        for value in values:
            if value not in unique:
                unique.append(value)
        self.values = unique

    def merged(self, other: ArrayRemove) -> ArrayRemove:
        """One transform removing the operands of both."""
        return ArrayRemove(*self.values, *other.values)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ArrayRemove) and self.values == other.values

    def __hash__(self) -> int:
        return hash(tuple(repr(v) for v in self.values))

    def __repr__(self) -> str:
        return f"ArrayRemove({', '.join(repr(v) for v in self.values)})"
