"""
Square relations over node pairs.

A relation maps a (row, column) pair of node indices to a value. Dense
relations keep every entry in a numpy array; sparse relations keep only the
entries that were set, in a dict keyed by pair. Symmetric relations store one
entry per unordered pair.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, Optional, Tuple

import numpy as np


Pair = Tuple[int, int]


class SquareRelation(ABC):
    def __init__(self, size: int, symmetric: bool = True):
        if size < 0:
            raise ValueError(f"Relation size must be non-negative, got {size}")
        self.size = size
        self.symmetric = symmetric

    def _key(self, row: int, column: int) -> Pair:
        if not (0 <= row < self.size and 0 <= column < self.size):
            raise IndexError(f"Pair ({row}, {column}) outside a relation of size {self.size}")
        if self.symmetric and row > column:
            return column, row
        return row, column

    @abstractmethod
    def get(self, row: int, column: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def set(self, row: int, column: int, value: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def items(self) -> Iterator[Tuple[Pair, Any]]:
        """Yield ``((row, column), value)`` for every stored entry."""
        raise NotImplementedError

    def __getitem__(self, key: Pair) -> Any:
        return self.get(*key)

    def __setitem__(self, key: Pair, value: Any) -> None:
        self.set(key[0], key[1], value)


class DenseRelation(SquareRelation):
    """Relation backed by a full ``size x size`` numpy array."""

    def __init__(self, size: int, dtype=bool, fill=0, symmetric: bool = True):
        super().__init__(size, symmetric)
        self.data = np.full((size, size), fill, dtype=dtype)

    def get(self, row: int, column: int) -> Any:
        return self.data[self._key(row, column)]

    def set(self, row: int, column: int, value: Any) -> None:
        i, j = self._key(row, column)
        self.data[i, j] = value
        if self.symmetric:
            self.data[j, i] = value

    def items(self) -> Iterator[Tuple[Pair, Any]]:
        for i in range(self.size):
            start = i if self.symmetric else 0
            for j in range(start, self.size):
                yield (i, j), self.data[i, j]

    def pairs(self) -> Iterator[Pair]:
        """Yield the pairs whose entry is truthy (``i < j`` when symmetric)."""
        data = np.triu(self.data, k=1) if self.symmetric else self.data
        for i, j in zip(*np.nonzero(data)):
            yield int(i), int(j)

    def __or__(self, other: "DenseRelation") -> "DenseRelation":
        return self._combine(other, np.logical_or)

    def __xor__(self, other: "DenseRelation") -> "DenseRelation":
        return self._combine(other, np.logical_xor)

    def _combine(self, other: "DenseRelation", op) -> "DenseRelation":
        if self.size != other.size:
            raise ValueError(f"Relation sizes differ: {self.size} != {other.size}")
        rel = DenseRelation(self.size, dtype=bool, symmetric=self.symmetric and other.symmetric)
        rel.data = op(self.data, other.data)
        return rel

    def __repr__(self) -> str:
        return f"DenseRelation(size={self.size}, symmetric={self.symmetric})"


class SparseRelation(SquareRelation):
    """Relation storing only the entries that were set."""

    def __init__(self, size: int, default: Optional[Any] = None, symmetric: bool = True):
        super().__init__(size, symmetric)
        self.default = default
        self._entries: Dict[Pair, Any] = {}

    def get(self, row: int, column: int) -> Any:
        return self._entries.get(self._key(row, column), self.default)

    def set(self, row: int, column: int, value: Any) -> None:
        self._entries[self._key(row, column)] = value

    def items(self) -> Iterator[Tuple[Pair, Any]]:
        return iter(sorted(self._entries.items()))

    def values(self):
        return [value for _, value in self.items()]

    def __contains__(self, key: Pair) -> bool:
        return self._key(*key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SparseRelation(size={self.size}, entries={len(self._entries)}, symmetric={self.symmetric})"
