# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import pytest

import minidarray as md
from minidarray import BYTE, DOUBLE, FLOAT, INT, Order


def _pair():
    a = md.from_numpy(np.array([[1.0, 2.0], [3.0, 4.0]]))
    b = md.from_numpy(np.array([[10.0, 20.0], [30.0, 40.0]]))
    return a, b


def test_add_sub_mul_div_arrays():
    a, b = _pair()
    np.testing.assert_array_equal(a.add(b).numpy(), a.numpy() + b.numpy())
    np.testing.assert_array_equal(a.sub(b).numpy(), a.numpy() - b.numpy())
    np.testing.assert_array_equal(a.mul(b).numpy(), a.numpy() * b.numpy())
    np.testing.assert_array_equal(b.div(a).numpy(), b.numpy() / a.numpy())
    np.testing.assert_array_equal(a.numpy(), [[1, 2], [3, 4]])


def test_binary_with_transposed_operand():
    a, b = _pair()
    np.testing.assert_array_equal(a.add(b.t()).numpy(), a.numpy() + b.numpy().T)
    np.testing.assert_array_equal(a.t().mul(b).numpy(), a.numpy().T * b.numpy())


def test_binary_with_f_ordered_receiver():
    base = np.arange(6, dtype=np.float64).reshape(2, 3)
    a = md.from_numpy(base, order=Order.F)
    b = md.from_numpy(base * 2)
    np.testing.assert_array_equal(a.add_(b).numpy(), base * 3)


def test_in_place_returns_receiver():
    a, b = _pair()
    assert a.add_(b) is a
    np.testing.assert_array_equal(a.numpy(), [[11, 22], [33, 44]])


def test_scalar_forms():
    a, _ = _pair()
    np.testing.assert_array_equal(a.add(1).numpy(), a.numpy() + 1)
    np.testing.assert_array_equal(a.sub(1.5).numpy(), a.numpy() - 1.5)
    np.testing.assert_array_equal(a.mul(2).numpy(), a.numpy() * 2)
    np.testing.assert_array_equal(a.div(4).numpy(), a.numpy() / 4)


def test_operators():
    a, b = _pair()
    np.testing.assert_array_equal((a + b).numpy(), a.numpy() + b.numpy())
    np.testing.assert_array_equal((b - a).numpy(), b.numpy() - a.numpy())
    np.testing.assert_array_equal((a * 3).numpy(), a.numpy() * 3)
    np.testing.assert_array_equal((3 * a).numpy(), a.numpy() * 3)
    np.testing.assert_array_equal((2 + a).numpy(), a.numpy() + 2)
    np.testing.assert_array_equal((10 - a).numpy(), 10 - a.numpy())
    np.testing.assert_array_equal((b / a).numpy(), b.numpy() / a.numpy())
    np.testing.assert_array_equal((-a).numpy(), -a.numpy())
    np.testing.assert_array_equal(abs(-a).numpy(), a.numpy())


def test_in_place_operators():
    a, b = _pair()
    original = a
    a += b
    a -= 1
    a *= 2
    a /= 2
    assert a is original
    np.testing.assert_array_equal(a.numpy(), [[10, 21], [32, 43]])


def test_shape_mismatch():
    a = md.seq(DOUBLE, (2, 3))
    b = md.seq(DOUBLE, (3, 2))
    with pytest.raises(ValueError, match="shapes do not match"):
        a.add_(b)
    with pytest.raises(ValueError):
        a + md.seq(DOUBLE, (6,))


def test_unsupported_operand():
    a = md.seq(DOUBLE, (2,))
    with pytest.raises(TypeError):
        a.add_("1")


def test_other_dtype_is_cast_to_receiver():
    a = md.from_numpy(np.array([1, 2, 3], dtype=np.int32))
    b = md.from_numpy(np.array([0.9, -0.9, 2.5]))
    a.add_(b)
    assert a.dtype is INT
    assert a.to_list() == [1, 2, 5]
    c = md.from_numpy(np.array([1, 2], dtype=np.int32)).add(1.7)
    assert c.to_list() == [2, 3]


def test_integer_division_truncates_toward_zero():
    a = md.from_numpy(np.array([7, -7, 7, -7, 6], dtype=np.int32))
    b = md.from_numpy(np.array([2, 2, -2, -2, 3], dtype=np.int32))
    assert a.div(b).to_list() == [3, -3, -3, 3, 2]
    assert a.div(2).to_list() == [3, -3, 3, -3, 3]
    assert a.div(-2).to_list() == [-3, 3, -3, 3, -3]


def test_integer_division_by_zero():
    a = md.from_numpy(np.array([1, 2, 3], dtype=np.int32))
    b = md.from_numpy(np.array([1, 0, 1], dtype=np.int32))
    with pytest.raises(ZeroDivisionError):
        a.div_(b)
    with pytest.raises(ZeroDivisionError):
        a.div_(0)
    assert a.to_list() == [1, 2, 3]


def test_float_division_by_zero():
    a = md.from_numpy(np.array([1.0, -1.0, 0.0], dtype=np.float32))
    r = a.div(0)
    assert r.dtype is FLOAT
    assert r.get(0) == np.inf
    assert r.get(1) == -np.inf
    assert np.isnan(r.get(2))


def test_byte_arithmetic_wraps():
    a = md.from_numpy(np.array([127, -128], dtype=np.int8))
    assert a.dtype is BYTE
    a.add_(1)
    assert a.to_list() == [-128, -127]


def test_binary_op_with_function():
    a, b = _pair()
    a.binary_op_(b, lambda x, y: max(x, y / 10 + 1))
    np.testing.assert_array_equal(a.numpy(), [[2, 3], [4, 5]])
    a.binary_op_(0.5, lambda x, y: x * y)
    np.testing.assert_array_equal(a.numpy(), [[1, 1.5], [2, 2.5]])
