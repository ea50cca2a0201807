# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Stride layouts: the coordinate transform from logical index to storage pointer.

A layout is the triple ``(shape, offset, strides)``. Every structural
transform (transpose, axis moves, squeeze, narrow) produces a new layout in
O(rank) without touching element data, which is what lets arrays hand out
views over a shared storage.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

from .iterators import (
    ChunkIterator,
    DensePointerIterator,
    PointerIterator,
    ScalarChunkIterator,
    ScalarPointerIterator,
    StrideChunkIterator,
    StridePointerIterator,
)
from .order import Order
from .shape import Shape


def _dense_ignoring_units(dims, strides, expected) -> bool:
    return all(d == 1 or s == e for d, s, e in zip(dims, strides, expected))


class StrideLayout:
    """Immutable ``(shape, offset, strides)`` descriptor."""

    __slots__ = ("_shape", "_offset", "_strides", "_c_dense", "_f_dense")

    def __init__(self, shape: Union[Shape, Sequence[int]], offset: int, strides: Sequence[int]):
        shape = shape if isinstance(shape, Shape) else Shape.of(shape)
        strides = tuple(int(s) for s in strides)
        if shape.rank != len(strides):
            raise ValueError("Dimensions does not have the same length as strides.")
        self._shape = shape
        self._offset = int(offset)
        self._strides = strides
        self._c_dense = _dense_ignoring_units(shape.dims, strides, shape.strides(Order.C))
        self._f_dense = _dense_ignoring_units(shape.dims, strides, shape.strides(Order.F))

    @classmethod
    def of(cls, shape: Union[Shape, Sequence[int]], offset: int, strides: Sequence[int]) -> "StrideLayout":
        return cls(shape, offset, strides)

    @classmethod
    def of_dense(cls, shape: Union[Shape, Sequence[int]], offset: int = 0, order: Optional[Order] = None) -> "StrideLayout":
        """Dense layout of ``shape`` in ``order`` (``S`` resolves to the default)."""
        shape = shape if isinstance(shape, Shape) else Shape.of(shape)
        return cls(shape, offset, shape.strides(Order.auto_fc(order)))

    # Properties

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def strides(self) -> Tuple[int, ...]:
        return self._strides

    @property
    def dims(self) -> Tuple[int, ...]:
        return self._shape.dims

    @property
    def rank(self) -> int:
        return self._shape.rank

    @property
    def size(self) -> int:
        return self._shape.size

    def dim(self, axis: int) -> int:
        return self._shape.dim(axis)

    def stride(self, axis: int) -> int:
        if not self._strides:
            return 1
        return self._strides[self._axis(axis)]

    def _axis(self, axis: int, rank: Optional[int] = None) -> int:
        rank = self.rank if rank is None else rank
        if axis < -rank or axis >= rank:
            raise ValueError(f"Axis {axis} is out of bounds for rank {rank}.")
        return axis + rank if axis < 0 else axis

    # Addressing

    def pointer(self, *index: int) -> int:
        """``offset + sum(index[i] * strides[i])`` with bounds checking."""
        if len(index) == 1 and isinstance(index[0], (list, tuple)):
            index = tuple(index[0])
        if len(index) != self.rank:
            raise ValueError(
                f"Index {list(index)} does not match the rank {self.rank} of the layout."
            )
        pointer = self._offset
        for i, d, s in zip(index, self._shape.dims, self._strides):
            if i < 0 or i >= d:
                raise IndexError(f"Index {list(index)} is out of bounds for shape {self._shape}.")
            pointer += i * s
        return pointer

    def is_c_ordered(self) -> bool:
        return self._c_dense

    def is_f_ordered(self) -> bool:
        return self._f_dense

    def is_dense(self) -> bool:
        return self._c_dense or self._f_dense

    def storage_fast_order(self) -> Order:
        """Default order below rank two, then F if F-dense, C if C-dense, S otherwise."""
        if self.rank < 2:
            return Order.default_order()
        if self._f_dense:
            return Order.F
        if self._c_dense:
            return Order.C
        return Order.S

    def natural_order(self) -> Order:
        """C if dense in C, F if dense in F, C otherwise."""
        if self._c_dense:
            return Order.C
        if self._f_dense:
            return Order.F
        return Order.C

    # Derived layouts

    def squeeze(self, *axes: int) -> "StrideLayout":
        """Drop unit axes: all of them, or only those listed in ``axes``."""
        if len(axes) == 1 and isinstance(axes[0], (list, tuple)):
            axes = tuple(axes[0])
        if axes:
            normalized = {self._axis(a) for a in axes}
            if len(normalized) != len(axes):
                raise ValueError("Duplicates values in axis parameters.")
            drop = {a for a in normalized if self._shape.dims[a] == 1}
        else:
            drop = {i for i, d in enumerate(self._shape.dims) if d == 1}
        if not drop:
            return self
        keep = [i for i in range(self.rank) if i not in drop]
        return StrideLayout(
            Shape([self._shape.dims[i] for i in keep]),
            self._offset,
            [self._strides[i] for i in keep],
        )

    def stretch(self, *axes: int) -> "StrideLayout":
        """Insert unit axes at the given positions of the resulting layout."""
        if len(axes) == 1 and isinstance(axes[0], (list, tuple)):
            axes = tuple(axes[0])
        if not axes:
            return self
        new_rank = self.rank + len(axes)
        positions = {self._axis(a, new_rank) for a in axes}
        if len(positions) != len(axes):
            raise ValueError("Axes contains duplicates.")
        dims, strides = [], []
        source = 0
        for i in range(new_rank):
            if i in positions:
                dims.append(1)
                strides.append(0)
            else:
                dims.append(self._shape.dims[source])
                strides.append(self._strides[source])
                source += 1
        return StrideLayout(Shape(dims), self._offset, strides)

    def expand(self, axis: int, size: int) -> "StrideLayout":
        """Repeat a unit axis ``size`` times using a zero stride."""
        axis = self._axis(axis)
        if self._shape.dims[axis] != 1:
            raise ValueError(
                f"Dimension {axis} must have size 1, but have size {self._shape.dims[axis]}."
            )
        dims = list(self._shape.dims)
        strides = list(self._strides)
        dims[axis] = size
        strides[axis] = 0
        return StrideLayout(Shape(dims), self._offset, strides)

    def revert(self) -> "StrideLayout":
        return StrideLayout(
            Shape(self._shape.dims[::-1]), self._offset, self._strides[::-1]
        )

    def move_axis(self, src: int, dst: int) -> "StrideLayout":
        src = self._axis(src)
        dst = self._axis(dst)
        if src == dst:
            return self
        dims = list(self._shape.dims)
        strides = list(self._strides)
        dims.insert(dst, dims.pop(src))
        strides.insert(dst, strides.pop(src))
        return StrideLayout(Shape(dims), self._offset, strides)

    def swap_axis(self, a: int, b: int) -> "StrideLayout":
        a = self._axis(a)
        b = self._axis(b)
        if a == b:
            return self
        dims = list(self._shape.dims)
        strides = list(self._strides)
        dims[a], dims[b] = dims[b], dims[a]
        strides[a], strides[b] = strides[b], strides[a]
        return StrideLayout(Shape(dims), self._offset, strides)

    def permute(self, dims: Sequence[int]) -> "StrideLayout":
        if len(dims) != self.rank:
            raise ValueError("Number of dimension is not equal with rank.")
        axes = [self._axis(d) for d in dims]
        if len(set(axes)) != self.rank:
            raise ValueError(f"Dimension values contains duplicates: {list(dims)}")
        return StrideLayout(
            Shape([self._shape.dims[a] for a in axes]),
            self._offset,
            [self._strides[a] for a in axes],
        )

    def narrow(self, axis: int, keep_dim: bool, start: int, end: int) -> "StrideLayout":
        """Restrict ``axis`` to ``[start, end)`` by shifting the offset."""
        axis = self._axis(axis)
        if start < 0 or end > self._shape.dims[axis] or start >= end:
            raise ValueError(
                f"Invalid range [{start}, {end}) for axis {axis} of size {self._shape.dims[axis]}."
            )
        dims = list(self._shape.dims)
        dims[axis] = end - start
        result = StrideLayout(
            Shape(dims), self._offset + start * self._strides[axis], self._strides
        )
        return result if keep_dim else result.squeeze(axis)

    def narrow_all(self, keep_dim: bool, starts: Sequence[int], ends: Sequence[int]) -> "StrideLayout":
        if len(starts) != self.rank:
            raise ValueError("Start arrays must have dimension equal with rank.")
        if len(starts) != len(ends):
            raise ValueError("Starts and ends does not have the same length.")
        dims = list(self._shape.dims)
        offset = self._offset
        for i, (start, end) in enumerate(zip(starts, ends)):
            if start < 0 or end > dims[i] or start >= end:
                raise ValueError(
                    f"Invalid range [{start}, {end}) for axis {i} of size {dims[i]}."
                )
            dims[i] = end - start
            offset += start * self._strides[i]
        result = StrideLayout(Shape(dims), offset, self._strides)
        unit = [i for i in range(self.rank) if ends[i] - starts[i] == 1]
        if keep_dim or not unit:
            return result
        return result.squeeze(*unit)

    def compute_fortran_layout(self, order: Order, compact: bool) -> "StrideLayout":
        """Reorder axes so the fastest logical axis comes first.

        With ``compact`` set, unit axes are dropped and neighbouring axes are
        merged whenever ``dims[k-1] * strides[k-1] == strides[k]``, giving the
        minimal-rank layout that enumerates the same pointers in the same
        order.
        """
        order = Order.of(order)
        dims = list(self._shape.dims)
        strides = list(self._strides)
        if order is Order.C:
            dims.reverse()
            strides.reverse()
        elif order is Order.S:
            perm = sorted(
                range(self.rank),
                key=lambda i: (strides[i] == 0, strides[i], dims[i]),
            )
            dims = [dims[i] for i in perm]
            strides = [strides[i] for i in perm]
        if not compact:
            return StrideLayout(Shape(dims), self._offset, strides)

        out_dims, out_strides = [], []
        for d, s in zip(dims, strides):
            if d == 1:
                continue
            if out_dims and out_dims[-1] * out_strides[-1] == s:
                out_dims[-1] *= d
                continue
            out_dims.append(d)
            out_strides.append(s)
        return StrideLayout(Shape(out_dims), self._offset, out_strides)

    def attempt_reshape(self, shape: Shape, order: Order) -> Optional["StrideLayout"]:
        """Return a layout viewing the same pointers as ``shape``, or ``None``.

        The reshape is a view exactly when this layout, compacted in
        ``order``, equals the compacted dense layout of ``shape`` in that
        order. No element data is read.
        """
        order = Order.auto_fc(order)
        target = StrideLayout.of_dense(shape, self._offset, order)
        if self.compute_fortran_layout(order, True) == target.compute_fortran_layout(order, True):
            return target
        return None

    # Iteration

    def _resolve_order(self, order: Optional[Order]) -> Order:
        order = Order.of(order) if order is not None else Order.S
        if order is Order.S:
            return self.natural_order()
        return order

    def ptr_iterator(self, order: Optional[Order] = None) -> PointerIterator:
        """Pointers of every element, in ``order`` (natural order by default)."""
        if self.rank == 0:
            return ScalarPointerIterator(self._offset)
        order = self._resolve_order(order)
        if (order is Order.C and self._c_dense) or (order is Order.F and self._f_dense):
            return DensePointerIterator(self._offset, self.size, 1)
        return StridePointerIterator(self, order)

    def chunk_iterator(self, order: Optional[Order] = None) -> ChunkIterator:
        """Maximal runs of pointers, in ``order`` (natural order by default)."""
        if self.rank == 0:
            return ScalarChunkIterator(self._offset)
        return StrideChunkIterator(self, self._resolve_order(order))

    # Value semantics

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StrideLayout):
            return NotImplemented
        return (
            self._offset == other._offset
            and self._shape == other._shape
            and self._strides == other._strides
        )

    def __hash__(self) -> int:
        return hash((self._shape, self._offset, self._strides))

    def __repr__(self) -> str:
        return (
            "StrideLayout(["
            + ",".join(str(d) for d in self._shape.dims)
            + f"],{self._offset},["
            + ",".join(str(s) for s in self._strides)
            + "])"
        )


__all__ = ["StrideLayout"]
