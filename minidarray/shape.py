# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Immutable description of the extent of each axis of an array.
"""

from __future__ import annotations

import operator
from typing import Iterator, Sequence, Tuple, Union

from .order import Order


def _as_dim(d) -> int:
    try:
        return operator.index(d)
    except TypeError:
        raise ValueError(f"Invalid dimension {d!r}: dimension sizes must be integers.") from None


def _normalize_dims(dims) -> Tuple[int, ...]:
    if len(dims) == 1 and isinstance(dims[0], (list, tuple, Shape)):
        dims = tuple(dims[0])
    return tuple(_as_dim(d) for d in dims)


class Shape:
    """Ordered dimension sizes with precomputed C and F strides.

    Every dimension must be at least 1. A shape with no dimensions describes
    a scalar and has size 1.

    Examples:
        >>> Shape.of(2, 3).size
        6
        >>> Shape.of(2, 3).index(Order.C, 4)
        (1, 1)
    """

    __slots__ = ("_dims", "_size", "_row_strides", "_col_strides")

    def __init__(self, dims: Sequence[int]):
        dims = tuple(_as_dim(d) for d in dims)
        for d in dims:
            if d < 1:
                raise ValueError(
                    f"Invalid shape {list(dims)}: dimension sizes must be positive."
                )
        self._dims = dims

        size = 1
        for d in dims:
            size *= d
        self._size = size

        row = [1] * len(dims)
        for i in range(len(dims) - 2, -1, -1):
            row[i] = row[i + 1] * dims[i + 1]
        col = [1] * len(dims)
        for i in range(1, len(dims)):
            col[i] = col[i - 1] * dims[i - 1]
        self._row_strides = tuple(row)
        self._col_strides = tuple(col)

    @classmethod
    def of(cls, *dims: Union[int, Sequence[int]]) -> "Shape":
        """Create a shape from dims given either variadically or as a sequence."""
        if len(dims) == 1 and isinstance(dims[0], Shape):
            return dims[0]
        return cls(_normalize_dims(dims))

    @property
    def dims(self) -> Tuple[int, ...]:
        return self._dims

    @property
    def rank(self) -> int:
        return len(self._dims)

    @property
    def size(self) -> int:
        return self._size

    def dim(self, axis: int) -> int:
        """Size of ``axis``; negative values count from the end."""
        rank = len(self._dims)
        if axis < -rank or axis >= rank:
            raise ValueError(f"Axis {axis} is out of bounds for shape {self}.")
        return self._dims[axis]

    def strides(self, order: Order) -> Tuple[int, ...]:
        """Dense strides for this shape in the given order."""
        order = Order.auto_fc(order)
        return self._row_strides if order is Order.C else self._col_strides

    def index(self, order: Order, pos: int) -> Tuple[int, ...]:
        """Convert a linear position in ``order`` into a multi-index."""
        if pos < 0 or pos >= self._size:
            raise IndexError(f"Position {pos} is out of bounds for shape {self}.")
        order = Order.auto_fc(order)
        strides = self._row_strides if order is Order.C else self._col_strides
        axes = range(len(self._dims)) if order is Order.C else range(len(self._dims) - 1, -1, -1)
        index = [0] * len(self._dims)
        for i in axes:
            index[i], pos = divmod(pos, strides[i])
        return tuple(index)

    def position(self, order: Order, *index: int) -> int:
        """Convert a multi-index into the linear position in ``order``."""
        if len(index) == 1 and isinstance(index[0], (list, tuple)):
            index = tuple(index[0])
        if len(index) != len(self._dims):
            raise ValueError(
                f"Index {list(index)} does not match the rank of shape {self}."
            )
        order = Order.auto_fc(order)
        strides = self._row_strides if order is Order.C else self._col_strides
        pos = 0
        for i, s in zip(index, strides):
            pos += i * s
        return pos

    def narrow_dims(self, axis: int) -> Tuple[int, ...]:
        """Dimensions with ``axis`` removed."""
        if axis < 0:
            axis += len(self._dims)
        return self._dims[:axis] + self._dims[axis + 1 :]

    def unit_dim_count(self) -> int:
        return sum(1 for d in self._dims if d == 1)

    def __len__(self) -> int:
        return len(self._dims)

    def __iter__(self) -> Iterator[int]:
        return iter(self._dims)

    def __getitem__(self, item):
        return self._dims[item]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Shape):
            return self._dims == other._dims
        if isinstance(other, tuple):
            return self._dims == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._dims)

    def __repr__(self) -> str:
        return "Shape([" + ",".join(str(d) for d in self._dims) + "])"


__all__ = ["Shape"]
