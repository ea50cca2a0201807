# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import pytest

import minidarray as md
from minidarray import DOUBLE, INT, Order, Shape


def test_get_set_inc():
    a = md.zeros(DOUBLE, (2, 3))
    a.set(5.5, 1, 2)
    a.inc(1.5, 1, 2)
    assert a.get(1, 2) == 7.0
    assert a.get([1, 2]) == 7.0
    assert a.get(0, 0) == 0.0


def test_set_casts_to_dtype():
    a = md.zeros(INT, (2,))
    a.set(3.9, 0)
    a.set(-3.9, 1)
    assert a.to_list() == [3, -3]


def test_index_errors():
    a = md.seq(DOUBLE, (2, 3))
    with pytest.raises(IndexError):
        a.get(2, 0)
    with pytest.raises(IndexError):
        a.set(1.0, 0, 3)
    with pytest.raises(ValueError):
        a.get(0)


def test_pointer_access():
    a = md.seq(DOUBLE, (2, 3))
    ptr = a.layout.pointer(1, 1)
    assert a.ptr_get(ptr) == 4.0
    a.ptr_set(ptr, -1)
    assert a.get(1, 1) == -1.0


def test_item():
    assert md.scalar(DOUBLE, 3.5).item() == 3.5
    assert md.full(INT, (1, 1), 7).item() == 7
    with pytest.raises(ValueError):
        md.zeros(DOUBLE, (2,)).item()


def test_scalar_array():
    s = md.scalar(INT, 9)
    assert s.rank == 0
    assert s.is_scalar()
    assert s.shape == Shape(())
    assert s.get() == 9
    assert list(s) == [9]


def test_kind_predicates():
    assert md.zeros(DOUBLE, (3,)).is_vector()
    assert md.zeros(DOUBLE, (3, 2)).is_matrix()
    assert not md.zeros(DOUBLE, (3, 2, 1)).is_matrix()


def test_iteration_orders():
    a = md.seq(INT, (2, 3))
    assert list(a) == [0, 1, 2, 3, 4, 5]
    assert list(a.iterator(Order.F)) == [0, 3, 1, 4, 2, 5]
    assert a.to_list(Order.F) == [0, 3, 1, 4, 2, 5]


def test_numpy_in_both_orders():
    a = md.seq(DOUBLE, (2, 3))
    expected = np.arange(6, dtype=np.float64).reshape(2, 3)
    c = a.numpy()
    f = a.numpy(Order.F)
    np.testing.assert_array_equal(c, expected)
    np.testing.assert_array_equal(f, expected)
    assert c.flags.c_contiguous
    assert f.flags.f_contiguous


def test_constructor_rejects_out_of_range_layout():
    a = md.zeros(DOUBLE, (4,))
    with pytest.raises(ValueError):
        md.stride(DOUBLE, md.StrideLayout.of((3,), 2, (1,)), a.storage)
    with pytest.raises(ValueError):
        md.stride(INT, md.StrideLayout.of((2,), 0, (1,)), a.storage)


def test_repr():
    assert repr(md.zeros(DOUBLE, (2, 3))) == "DArray(double,[2, 3],0,[3, 1])"
