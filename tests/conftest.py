# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from minidarray import config  # noqa: E402


@pytest.fixture(autouse=True)
def _restore_defaults():
    order = config.get_default_order()
    dtype = config.get_default_dtype()
    yield
    config.set_default_order(order)
    config.set_default_dtype(dtype)
