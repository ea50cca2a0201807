# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

from __future__ import annotations

import logging
from typing import Iterable

from . import config, functional, storage
from .config import (
    Hardware,
    default_dtype,
    default_order,
    get_default_dtype,
    get_default_order,
    set_default_dtype,
    set_default_order,
)
from .darray import DArray
from .dtype import BYTE, DOUBLE, FLOAT, INT, DType
from .layout import StrideLayout
from .manager import DArrayManager, base, get_default_manager
from .order import Order
from .shape import Shape
from .storage import Storage, StorageFormatError

try:
    from ._version import __version__, __version_tuple__
except ImportError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.1.0"
    __version_tuple__ = (0, 1, 0)

logging.getLogger(__name__).addHandler(logging.NullHandler())

functional = functional


def _forward(name: str):
    def forwarder(*args, **kwargs):
        return getattr(base(), name)(*args, **kwargs)

    forwarder.__name__ = name
    forwarder.__qualname__ = name
    forwarder.__doc__ = getattr(DArrayManager, name).__doc__
    return forwarder


# Array factories are bound to the default manager at call time.
_MANAGER_FORWARDERS: Iterable[str] = (
    "scalar",
    "zeros",
    "full",
    "eye",
    "seq",
    "random",
    "stride",
    "from_numpy",
    "stack",
    "cat",
    "manual_seed",
)

for _name in _MANAGER_FORWARDERS:
    globals()[_name] = _forward(_name)

_FUNCTIONAL_FORWARDERS: Iterable[str] = functional.__all__

for _name in _FUNCTIONAL_FORWARDERS:
    globals()[_name] = getattr(functional, _name)

__all__ = [
    "DArray",
    "DArrayManager",
    "DType",
    "BYTE",
    "INT",
    "FLOAT",
    "DOUBLE",
    "Order",
    "Shape",
    "StrideLayout",
    "Storage",
    "StorageFormatError",
    "Hardware",
    "config",
    "functional",
    "storage",
    "base",
    "get_default_manager",
    "set_default_dtype",
    "get_default_dtype",
    "set_default_order",
    "get_default_order",
    "default_dtype",
    "default_order",
    *_MANAGER_FORWARDERS,
    *_FUNCTIONAL_FORWARDERS,
]
