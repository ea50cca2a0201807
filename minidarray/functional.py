# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""Function style wrappers around :class:`~minidarray.darray.DArray` methods."""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

from .darray import DArray
from .order import Order
from .shape import Shape


def reshape(array: DArray, shape: Union[Shape, Sequence[int]], order: Optional[Order] = None) -> DArray:
    return array.reshape(shape, order)


def ravel(array: DArray, order: Optional[Order] = None) -> DArray:
    return array.ravel(order)


def flatten(array: DArray, order: Optional[Order] = None) -> DArray:
    return array.flatten(order)


def transpose(array: DArray) -> DArray:
    return array.t()


def squeeze(array: DArray, *axes: int) -> DArray:
    return array.squeeze(*axes)


def narrow(array: DArray, axis: int, start: int, length: int, keep_dim: bool = True) -> DArray:
    """Narrow ``axis`` to ``length`` elements starting at ``start``."""
    return array.narrow(axis, keep_dim, start, start + length)


def chunk(array: DArray, size: int, axis: int = 0, keep_dim: bool = True) -> List[DArray]:
    return array.chunk(axis, keep_dim, size)


def move_axis(array: DArray, src: int, dst: int) -> DArray:
    return array.move_axis(src, dst)


def swap_axis(array: DArray, a: int, b: int) -> DArray:
    return array.swap_axis(a, b)


def copy(array: DArray, order: Optional[Order] = None) -> DArray:
    return array.copy(order)


__all__ = [
    "reshape",
    "ravel",
    "flatten",
    "transpose",
    "squeeze",
    "narrow",
    "chunk",
    "move_axis",
    "swap_axis",
    "copy",
]
