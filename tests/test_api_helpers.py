# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np

import minidarray as md
from minidarray import DOUBLE, Order
from minidarray import functional as F


def test_top_level_exports():
    for name in md.__all__:
        assert hasattr(md, name), name
    assert isinstance(md.__version__, str)


def test_forwarders_use_default_manager():
    a = md.seq(DOUBLE, (2, 3))
    assert a.manager is md.base()
    assert md.zeros.__name__ == "zeros"
    assert md.zeros.__doc__ == md.DArrayManager.zeros.__doc__


def test_functional_forwarders():
    base = np.arange(24, dtype=np.float64).reshape(2, 3, 4)
    a = md.from_numpy(base)
    np.testing.assert_array_equal(F.transpose(a).numpy(), base.transpose(2, 1, 0))
    np.testing.assert_array_equal(F.move_axis(a, 0, 2).numpy(), np.moveaxis(base, 0, 2))
    np.testing.assert_array_equal(F.swap_axis(a, 0, 1).numpy(), np.swapaxes(base, 0, 1))
    np.testing.assert_array_equal(F.narrow(a, 2, 1, 2).numpy(), base[:, :, 1:3])
    np.testing.assert_array_equal(F.squeeze(md.seq(DOUBLE, (1, 3))).numpy(), np.arange(3))
    np.testing.assert_array_equal(F.copy(a, Order.F).numpy(), base)
    np.testing.assert_array_equal(F.flatten(a).numpy(), base.ravel())
    np.testing.assert_array_equal(F.ravel(a).numpy(), base.ravel())


def test_top_level_functional_aliases():
    a = md.seq(DOUBLE, (2, 3))
    assert md.transpose(a).shape == (3, 2)
    assert md.narrow(a, 1, 0, 2, keep_dim=False).shape == (2, 2)
    assert md.narrow(a, 0, 1, 1, keep_dim=False).shape == (3,)
    assert md.move_axis is F.move_axis
