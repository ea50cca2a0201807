# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import pytest

import minidarray as md
from minidarray import DOUBLE
from minidarray import functional as F


def test_chunk_sizes():
    a = md.seq(DOUBLE, (7,))
    parts = a.chunk(0, True, 3)
    assert [p.shape.dims for p in parts] == [(3,), (3,), (1,)]
    np.testing.assert_array_equal(np.concatenate([p.numpy() for p in parts]), a.numpy())
    assert all(p.shares_storage(a) for p in parts)


def test_chunk_along_columns():
    base = np.arange(12, dtype=np.float64).reshape(3, 4)
    a = md.from_numpy(base)
    parts = a.chunk(1, True, 2)
    np_parts = np.split(base, 2, axis=1)
    assert len(parts) == 2
    for p, n in zip(parts, np_parts):
        np.testing.assert_array_equal(p.numpy(), n)


def test_chunk_without_keep_dim_squeezes_unit_chunks():
    a = md.seq(DOUBLE, (3, 4))
    parts = a.chunk(0, False, 1)
    assert len(parts) == 3
    assert all(p.shape == (4,) for p in parts)
    np.testing.assert_array_equal(parts[2].numpy(), [8, 9, 10, 11])


def test_chunk_method_functional_top_level():
    a = md.seq(DOUBLE, (2, 4))
    method_parts = a.chunk(1, True, 2)
    func_parts = F.chunk(a, 2, axis=1)
    top_parts = md.chunk(a, 2, axis=1)
    for m, f, t in zip(method_parts, func_parts, top_parts):
        assert m.deep_equals(f)
        assert m.deep_equals(t)


def test_chunk_invalid_size():
    a = md.seq(DOUBLE, (6,))
    with pytest.raises(ValueError):
        a.chunk(0, True, 0)
    with pytest.raises(ValueError):
        a.chunk(1, True, 2)
