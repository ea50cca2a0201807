# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Single-pass cursors over the physical pointers of a stride layout.

Pointer iterators yield one storage pointer per logical element in a
requested order. Chunk iterators yield maximal runs ``(start, length, step)``
so that loops can process a whole run with one vectorized call.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

import numpy as np


class Chunk(NamedTuple):
    """A run of ``length`` pointers starting at ``start`` spaced ``step`` apart."""

    start: int
    length: int
    step: int

    def pointers(self) -> np.ndarray:
        return self.start + self.step * np.arange(self.length, dtype=np.int64)


def _compact_loop(layout, order):
    """Dims and strides of the compacted layout, fastest axis first."""
    compact = layout.compute_fortran_layout(order, True)
    if compact.rank == 0:
        return (1,), (1,), compact.offset
    return compact.shape.dims, compact.strides, compact.offset


class PointerIterator:
    """Common protocol: ``has_next``/``next_int`` plus Python iteration."""

    size: int

    def has_next(self) -> bool:
        raise NotImplementedError

    def next_int(self) -> int:
        raise NotImplementedError

    def __iter__(self):
        return self

    def __next__(self) -> int:
        if not self.has_next():
            raise StopIteration
        return self.next_int()

    def to_array(self) -> np.ndarray:
        """Drain the remaining pointers into an ``int64`` array."""
        return np.fromiter(self, dtype=np.int64)


class ScalarPointerIterator(PointerIterator):
    def __init__(self, offset: int):
        self.offset = offset
        self.size = 1
        self._done = False

    def has_next(self) -> bool:
        return not self._done

    def next_int(self) -> int:
        if self._done:
            raise StopIteration
        self._done = True
        return self.offset


class DensePointerIterator(PointerIterator):
    """Fast path for layouts already dense in the requested order."""

    def __init__(self, offset: int, size: int, step: int = 1):
        self.offset = offset
        self.size = size
        self.step = step
        self._pos = 0

    def has_next(self) -> bool:
        return self._pos < self.size

    def next_int(self) -> int:
        if self._pos >= self.size:
            raise StopIteration
        ptr = self.offset + self._pos * self.step
        self._pos += 1
        return ptr

    def to_array(self) -> np.ndarray:
        start = self._pos
        self._pos = self.size
        return self.offset + self.step * np.arange(start, self.size, dtype=np.int64)


class StridePointerIterator(PointerIterator):
    """General strided traversal driven by a multi-index odometer.

    The layout is first compacted in the requested order, so contiguous
    axes collapse into a single inner loop and only the outer axes need
    index bookkeeping.
    """

    def __init__(self, layout, order):
        dims, strides, offset = _compact_loop(layout, order)
        self._dims = dims
        self._strides = strides
        self._offset = offset
        self._inner_dim = dims[0]
        self._inner_stride = strides[0]
        self._outer = [0] * (len(dims) - 1)
        self._base = offset
        self._i = 0
        self.size = layout.size
        self._remaining = self.size

    def has_next(self) -> bool:
        return self._remaining > 0

    def next_int(self) -> int:
        if self._remaining <= 0:
            raise StopIteration
        ptr = self._base + self._i * self._inner_stride
        self._i += 1
        self._remaining -= 1
        if self._i == self._inner_dim and self._remaining > 0:
            self._i = 0
            self._advance()
        return ptr

    def _advance(self) -> None:
        dims, strides = self._dims, self._strides
        for k in range(len(self._outer)):
            axis = k + 1
            self._outer[k] += 1
            self._base += strides[axis]
            if self._outer[k] < dims[axis]:
                return
            self._base -= strides[axis] * dims[axis]
            self._outer[k] = 0

    def to_array(self) -> np.ndarray:
        if self._remaining != self.size:
            return super().to_array()
        self._remaining = 0
        return _all_pointers(self._dims, self._strides, self._offset)


def _all_pointers(dims: Sequence[int], strides: Sequence[int], offset: int) -> np.ndarray:
    pointers = np.array([offset], dtype=np.int64)
    for k in range(len(dims) - 1, -1, -1):
        steps = strides[k] * np.arange(dims[k], dtype=np.int64)
        pointers = (pointers[:, None] + steps[None, :]).reshape(-1)
    return pointers


class ChunkIterator:
    """Common protocol: ``has_next``/``next`` plus Python iteration."""

    chunk_count: int
    loop_length: int
    loop_step: int

    def has_next(self) -> bool:
        raise NotImplementedError

    def next(self) -> Chunk:
        raise NotImplementedError

    def __iter__(self):
        return self

    def __next__(self) -> Chunk:
        if not self.has_next():
            raise StopIteration
        return self.next()


class ScalarChunkIterator(ChunkIterator):
    def __init__(self, offset: int):
        self.offset = offset
        self.chunk_count = 1
        self.loop_length = 1
        self.loop_step = 1
        self._done = False

    def has_next(self) -> bool:
        return not self._done

    def next(self) -> Chunk:
        if self._done:
            raise StopIteration
        self._done = True
        return Chunk(self.offset, 1, 1)


class StrideChunkIterator(ChunkIterator):
    def __init__(self, layout, order):
        dims, strides, offset = _compact_loop(layout, order)
        self._dims = dims
        self._strides = strides
        self.loop_length = dims[0]
        self.loop_step = strides[0]
        self.chunk_count = layout.size // dims[0]
        self._outer = [0] * (len(dims) - 1)
        self._base = offset
        self._emitted = 0

    def has_next(self) -> bool:
        return self._emitted < self.chunk_count

    def next(self) -> Chunk:
        if self._emitted >= self.chunk_count:
            raise StopIteration
        chunk = Chunk(self._base, self.loop_length, self.loop_step)
        self._emitted += 1
        if self._emitted < self.chunk_count:
            dims, strides = self._dims, self._strides
            for k in range(len(self._outer)):
                axis = k + 1
                self._outer[k] += 1
                self._base += strides[axis]
                if self._outer[k] < dims[axis]:
                    break
                self._base -= strides[axis] * dims[axis]
                self._outer[k] = 0
        return chunk


__all__ = [
    "Chunk",
    "PointerIterator",
    "ScalarPointerIterator",
    "DensePointerIterator",
    "StridePointerIterator",
    "ChunkIterator",
    "ScalarChunkIterator",
    "StrideChunkIterator",
]
