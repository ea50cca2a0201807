# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import math
import pickle
from functools import cmp_to_key

import numpy as np
import pytest

from minidarray import (
    BYTE,
    DOUBLE,
    FLOAT,
    INT,
    DType,
    Hardware,
    default_dtype,
    get_default_dtype,
)


def test_dtype_singletons():
    assert DType.from_id("double") is DOUBLE
    assert DType.from_id("DOUBLE") is DOUBLE
    assert DType.from_id("Int") is INT
    assert DType.of("byte") is BYTE
    assert DType.of(FLOAT) is FLOAT
    assert DType.of(np.float32) is FLOAT


def test_dtype_attributes():
    assert BYTE.byte_count == 1
    assert INT.byte_count == 4
    assert FLOAT.byte_count == 4
    assert DOUBLE.byte_count == 8
    assert DOUBLE.floating_point and FLOAT.floating_point
    assert not INT.floating_point and not BYTE.floating_point
    assert INT.np_dtype == np.dtype(np.int32)


@pytest.mark.parametrize("name", ["long", "float16", ""])
def test_dtype_unknown_id(name):
    with pytest.raises(ValueError):
        DType.from_id(name)


def test_dtype_from_numpy_unknown():
    with pytest.raises(ValueError):
        DType.from_numpy(np.int64)


def test_default_dtype_resolution():
    with default_dtype("float"):
        assert DType.of(None) is FLOAT
    assert DType.of(None) is DType.from_id(get_default_dtype())


def test_float_to_int_truncates_toward_zero():
    assert INT.cast(3.9) == 3
    assert INT.cast(-3.9) == -3
    assert INT.cast(float("nan")) == 0


def test_float_to_int_saturates():
    assert INT.cast(1e20) == 2**31 - 1
    assert INT.cast(-1e20) == -(2**31)
    assert INT.cast(float("inf")) == 2**31 - 1


def test_int_narrowing_wraps():
    assert INT.cast(2**32 + 5) == 5
    assert INT.cast(2**31) == -(2**31)
    assert BYTE.cast(200) == -56
    assert BYTE.cast(128) == -128
    assert BYTE.cast(-129) == 127


def test_float_to_byte_goes_through_int():
    assert BYTE.cast(300.7) == 44
    assert BYTE.cast(1e20) == -1


def test_double_to_float_rounds():
    assert FLOAT.cast(0.1) == float(np.float32(0.1))
    assert FLOAT.cast(1e300) == math.inf
    assert DOUBLE.cast(3) == 3.0
    assert isinstance(DOUBLE.cast(3), float)


def test_cast_array_matches_scalar_cast():
    values = np.array([1.7, -1.7, np.nan, 1e20, -1e20, 255.0])
    expected = [INT.cast(v) for v in values]
    np.testing.assert_array_equal(INT.cast_array(values), np.array(expected, dtype=np.int32))
    expected = [BYTE.cast(v) for v in values]
    np.testing.assert_array_equal(BYTE.cast_array(values), np.array(expected, dtype=np.int8))


def test_cast_array_integer_wrap():
    values = np.array([200, -129, 2**33 + 3], dtype=np.int64)
    np.testing.assert_array_equal(BYTE.cast_array(values), np.array([-56, 127, 3], dtype=np.int8))


def test_is_nan():
    assert DOUBLE.is_nan(float("nan"))
    assert not DOUBLE.is_nan(1.0)
    assert not INT.is_nan(0)


def test_floating_comparator_orders_nan_last_and_negative_zero_first():
    values = [float("nan"), 1.0, 0.0, -0.0, -1.0]
    ordered = sorted(values, key=cmp_to_key(DOUBLE.natural_comparator()))
    assert ordered[0] == -1.0
    assert ordered[1] == 0.0 and math.copysign(1.0, ordered[1]) == -1.0
    assert ordered[2] == 0.0 and math.copysign(1.0, ordered[2]) == 1.0
    assert ordered[3] == 1.0
    assert math.isnan(ordered[4])


def test_reverse_comparator():
    ordered = sorted([3, 1, 2], key=cmp_to_key(INT.reverse_comparator()))
    assert ordered == [3, 2, 1]


def test_lanes_follow_hardware():
    hw = Hardware(vector_bits=128)
    assert DOUBLE.lanes(hw) == 2
    assert FLOAT.lanes(hw) == 4
    assert INT.lanes(hw) == 4
    assert BYTE.lanes(hw) == 16


def test_dtype_pickles_to_singleton():
    assert pickle.loads(pickle.dumps(DOUBLE)) is DOUBLE
    assert repr(INT) == "DType(int)"
