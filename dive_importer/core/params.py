"""
Canonical parameter set handed to the transform engine.
"""
from __future__ import annotations

from typing import Iterator, Optional


class ParameterSet:
    """
    Ordered list of named string parameters.

    Keys need not be unique: `add` always appends, while `set_value`
    overwrites the entry at a known index. `resize` truncates the set back
    to an earlier size so per-dive parameters can be discarded.
    """

    def __init__(self, items: Optional[list[tuple[str, str]]] = None):
        self._items: list[tuple[str, str]] = list(items or [])

    def add(self, key: str, value: str) -> None:
        """Append a parameter."""
        self._items.append((key, value))

    def add_int(self, key: str, value: int) -> None:
        """Append an integer parameter."""
        self.add(key, str(value))

    def key(self, index: int) -> str:
        return self._items[index][0]

    def value(self, index: int) -> str:
        return self._items[index][1]

    def set_value(self, index: int, value: str) -> None:
        """Overwrite the value at *index*, keeping its key."""
        self._items[index] = (self._items[index][0], value)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Value of the last parameter named *key*."""
        for k, v in reversed(self._items):
            if k == key:
                return v
        return default

    def resize(self, size: int) -> None:
        """Drop every parameter past *size*."""
        if size < 0 or size > len(self._items):
            raise ValueError(f"Cannot resize parameter set of {len(self._items)} to {size}")
        del self._items[size:]

    def copy(self) -> ParameterSet:
        return ParameterSet(self._items)

    def to_dict(self) -> dict[str, str]:
        """Mapping view; later duplicates win."""
        return dict(self._items)

    def items(self) -> list[tuple[str, str]]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._items))

    def __repr__(self) -> str:
        return f"ParameterSet({self._items!r})"
