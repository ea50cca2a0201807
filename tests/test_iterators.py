# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import pytest

from minidarray import Order, Shape, StrideLayout
from minidarray.iterators import (
    Chunk,
    DensePointerIterator,
    ScalarPointerIterator,
    StridePointerIterator,
)


def _expected_pointers(layout, order):
    grid = np.full(layout.dims, layout.offset, dtype=np.int64)
    for axis, idx in enumerate(np.indices(layout.dims)):
        grid = grid + idx * layout.strides[axis]
    return grid.ravel(order=order.value)


LAYOUTS = [
    StrideLayout.of_dense((2, 3, 4)),
    StrideLayout.of_dense((2, 3, 4), 0, Order.F),
    StrideLayout.of_dense((2, 3, 4)).permute([2, 0, 1]),
    StrideLayout.of_dense((4, 5)).narrow(1, True, 1, 4),
    StrideLayout.of_dense((4, 5)).narrow_all(True, [1, 1], [3, 5]).revert(),
    StrideLayout.of_dense((2, 3)).stretch(1),
    StrideLayout.of_dense((1, 3)).expand(0, 4),
    StrideLayout.of((3, 2), 5, (10, 3)),
]


def test_dense_iterator():
    it = DensePointerIterator(2, 3)
    assert list(it) == [2, 3, 4]
    assert not it.has_next()
    with pytest.raises(StopIteration):
        it.next_int()


def test_dense_iterator_partial_to_array():
    it = DensePointerIterator(0, 5)
    assert it.next_int() == 0
    np.testing.assert_array_equal(it.to_array(), [1, 2, 3, 4])
    assert not it.has_next()


def test_scalar_iterator():
    it = ScalarPointerIterator(7)
    assert it.has_next()
    assert it.next_int() == 7
    assert not it.has_next()
    with pytest.raises(StopIteration):
        next(it)


def test_stride_iterator_on_transpose():
    t = StrideLayout.of_dense((2, 3)).revert()
    assert list(StridePointerIterator(t, Order.C)) == [0, 3, 1, 4, 2, 5]
    assert list(StridePointerIterator(t, Order.F)) == [0, 1, 2, 3, 4, 5]


def test_stride_iterator_partial_to_array():
    t = StrideLayout.of_dense((2, 3)).revert()
    it = StridePointerIterator(t, Order.C)
    assert it.next_int() == 0
    assert it.next_int() == 3
    np.testing.assert_array_equal(it.to_array(), [1, 4, 2, 5])


@pytest.mark.parametrize("order", [Order.C, Order.F])
@pytest.mark.parametrize("layout", LAYOUTS)
def test_ptr_iterator_matches_logical_order(layout, order):
    expected = _expected_pointers(layout, order)
    assert list(layout.ptr_iterator(order)) == expected.tolist()
    np.testing.assert_array_equal(layout.ptr_iterator(order).to_array(), expected)
    assert layout.ptr_iterator(order).size == layout.size


@pytest.mark.parametrize("order", [Order.C, Order.F, Order.S])
@pytest.mark.parametrize("layout", LAYOUTS)
def test_chunks_cover_the_pointers(layout, order):
    pointers = []
    chunks = layout.chunk_iterator(order)
    count = chunks.chunk_count
    seen = 0
    for chunk in chunks:
        pointers.extend(chunk.pointers().tolist())
        seen += 1
    assert seen == count
    assert pointers == layout.ptr_iterator(order).to_array().tolist()


def test_natural_order_uses_storage_order():
    layout = StrideLayout.of_dense((2, 3), 0, Order.F)
    assert list(layout.ptr_iterator()) == [0, 1, 2, 3, 4, 5]
    assert list(layout.ptr_iterator(Order.S)) == [0, 1, 2, 3, 4, 5]
    assert list(layout.ptr_iterator(Order.C)) == [0, 2, 4, 1, 3, 5]


def test_chunk_iterator_runs():
    t = StrideLayout.of_dense((2, 3)).revert()
    chunks = t.chunk_iterator(Order.C)
    assert chunks.chunk_count == 3
    assert chunks.loop_length == 2
    assert chunks.loop_step == 3
    assert list(chunks) == [Chunk(0, 2, 3), Chunk(1, 2, 3), Chunk(2, 2, 3)]
    assert list(t.chunk_iterator(Order.F)) == [Chunk(0, 6, 1)]


def test_scalar_layout_iterators():
    layout = StrideLayout(Shape(()), 4, ())
    assert list(layout.ptr_iterator()) == [4]
    assert list(layout.chunk_iterator(Order.C)) == [Chunk(4, 1, 1)]


def test_chunk_iterator_exhaustion():
    chunks = StrideLayout.of_dense((3,)).chunk_iterator()
    assert chunks.next() == Chunk(0, 3, 1)
    assert not chunks.has_next()
    with pytest.raises(StopIteration):
        chunks.next()
