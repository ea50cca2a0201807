# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Factories for arrays.

A :class:`DArrayManager` owns the hardware descriptor handed to every storage
it allocates and a random generator used by :meth:`DArrayManager.random`.
Most code uses the process-wide manager returned by :func:`base`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence, Union

import numpy as np

from .config import Hardware, get_hardware
from .darray import DArray
from .dtype import DType
from .layout import StrideLayout
from .order import Order
from .shape import Shape
from .storage import Storage

logger = logging.getLogger(__name__)

ShapeLike = Union[Shape, Sequence[int], int]


def _shape(shape: ShapeLike) -> Shape:
    return shape if isinstance(shape, Shape) else Shape.of(shape)


def _infer_dtype(array: np.ndarray) -> DType:
    try:
        return DType.from_numpy(array.dtype)
    except ValueError:
        if array.dtype.kind in "iub":
            return DType.INT
        if array.dtype.kind == "f":
            return DType.DOUBLE
        raise


class DArrayManager:
    """Creates arrays and the storages backing them.

    Args:
        hardware: Capabilities passed to every allocated storage. Detected
            from the environment when omitted.
        seed: Seed of the default random generator.
    """

    def __init__(self, hardware: Optional[Hardware] = None, seed: Optional[int] = None):
        self.hardware = hardware if hardware is not None else get_hardware()
        self._generator = np.random.default_rng(seed)

    def manual_seed(self, seed: int) -> None:
        """Reseed the generator used when ``random`` gets no explicit one."""
        self._generator = np.random.default_rng(seed)

    # Storage and raw wrapping

    def storage_zeros(self, dtype: DType, size: int) -> Storage:
        return Storage.zeros(dtype, size, self.hardware)

    def stride(
        self,
        dtype: Union[DType, str, None],
        layout: Union[StrideLayout, ShapeLike],
        storage: Any,
        order: Optional[Order] = None,
    ) -> DArray:
        """Bind a layout (or a shape, laid out densely) to a storage or flat buffer.

        A one dimensional NumPy array of the matching dtype is wrapped without
        copying; anything else is cast into a new storage.
        """
        dtype = DType.of(dtype)
        if not isinstance(layout, StrideLayout):
            layout = StrideLayout.of_dense(_shape(layout), 0, Order.auto_fc(order))
        if not isinstance(storage, Storage):
            storage = Storage.wrap(dtype, storage, self.hardware)
        return DArray(self, dtype, layout, storage)

    def from_numpy(
        self,
        array: Any,
        dtype: Union[DType, str, None] = None,
        order: Optional[Order] = None,
    ) -> DArray:
        """Copy a NumPy array (or nested sequence) into a new dense array."""
        array = np.asarray(array)
        dtype = DType.of(dtype) if dtype is not None else _infer_dtype(array)
        order = Order.auto_fc(Order.of(order) if order is not None else None)
        values = dtype.cast_array(array).ravel(order=order.value).copy()
        storage = Storage.wrap(dtype, values, self.hardware)
        return DArray(self, dtype, StrideLayout.of_dense(Shape(array.shape), 0, order), storage)

    # Factories

    def scalar(self, dtype: Union[DType, str, None], value: Any) -> DArray:
        """Rank zero array holding ``value``."""
        dtype = DType.of(dtype)
        storage = self.storage_zeros(dtype, 1)
        storage.set(0, value)
        return DArray(self, dtype, StrideLayout(Shape(()), 0, ()), storage)

    def zeros(self, dtype: Union[DType, str, None], shape: ShapeLike, order: Optional[Order] = None) -> DArray:
        dtype = DType.of(dtype)
        shape = _shape(shape)
        order = Order.auto_fc(Order.of(order) if order is not None else None)
        storage = self.storage_zeros(dtype, shape.size)
        return DArray(self, dtype, StrideLayout.of_dense(shape, 0, order), storage)

    def full(
        self,
        dtype: Union[DType, str, None],
        shape: ShapeLike,
        value: Any,
        order: Optional[Order] = None,
    ) -> DArray:
        array = self.zeros(dtype, shape, order)
        array.storage.fill(value)
        return array

    def eye(self, dtype: Union[DType, str, None], n: int, order: Optional[Order] = None) -> DArray:
        """Identity matrix of size ``n``."""
        array = self.zeros(dtype, Shape.of(n, n), order)
        for i in range(n):
            array.set(1, i, i)
        return array

    def seq(self, dtype: Union[DType, str, None], shape: ShapeLike, order: Optional[Order] = None) -> DArray:
        """Array whose elements hold their own C order position."""
        array = self.zeros(dtype, shape, order)
        pointers = array.ptr_iterator(Order.C).to_array()
        array.storage.set_indexed(pointers, np.arange(array.size, dtype=np.int64))
        return array

    def random(
        self,
        dtype: Union[DType, str, None],
        shape: ShapeLike,
        generator: Optional[np.random.Generator] = None,
        order: Optional[Order] = None,
        distribution: Optional[Callable[[np.random.Generator], Any]] = None,
    ) -> DArray:
        """Array of random values.

        Floating kinds are drawn uniformly from ``[0, 1)`` and integer kinds
        uniformly over their whole range, unless ``distribution`` is given, in
        which case it is called once per element with the generator. Draws
        are consumed in ``order``, so the same seed gives different arrays
        for different orders.
        """
        array = self.zeros(dtype, shape, order)
        rng = generator if generator is not None else self._generator
        walk = Order.auto_fc(Order.of(order) if order is not None else None)
        if distribution is not None:
            return array.apply_indexed_(walk, lambda i, p: distribution(rng))
        dtype = array.dtype
        if dtype.floating_point:
            values = rng.random(array.size)
        else:
            info = np.iinfo(dtype.np_dtype)
            values = rng.integers(info.min, info.max, size=array.size, endpoint=True, dtype=dtype.np_dtype)
        array.storage.set_indexed(array.ptr_iterator(walk).to_array(), values)
        return array

    # Joining

    def stack(self, order: Optional[Order], axis: int, arrays: Sequence[DArray]) -> DArray:
        """Join arrays of identical shape along a new axis."""
        arrays = list(arrays)
        if not arrays:
            raise ValueError("Cannot stack an empty sequence of arrays.")
        shape = arrays[0].shape
        for a in arrays[1:]:
            if a.shape != shape:
                raise ValueError(f"Cannot stack arrays with different shapes: {shape} and {a.shape}.")
        if axis < 0:
            axis += shape.rank + 1
        if axis < 0 or axis > shape.rank:
            raise ValueError(f"Stack axis {axis} is out of range for rank {shape.rank}.")

        dims = list(shape.dims)
        dims.insert(axis, len(arrays))
        result = self.zeros(arrays[0].dtype, Shape(dims), order)
        for src, dst in zip(arrays, result.chunk(axis, True, 1)):
            src.copy_to(dst.squeeze(axis))
        return result

    def cat(self, order: Optional[Order], axis: int, arrays: Sequence[DArray]) -> DArray:
        """Concatenate arrays along an existing axis."""
        arrays = list(arrays)
        if not arrays:
            raise ValueError("Cannot concatenate an empty sequence of arrays.")
        first = arrays[0].shape
        rank = first.rank
        if rank == 0:
            raise ValueError("Cannot concatenate rank zero arrays.")
        if axis < 0:
            axis += rank
        if axis < 0 or axis >= rank:
            raise ValueError(f"Concatenate axis {axis} is out of range for rank {rank}.")
        for a in arrays[1:]:
            if a.rank != rank or any(
                a.shape.dims[i] != first.dims[i] for i in range(rank) if i != axis
            ):
                raise ValueError(
                    f"Cannot concatenate arrays of shapes {first} and {a.shape} along axis {axis}."
                )

        dims = list(first.dims)
        dims[axis] = sum(a.dim(axis) for a in arrays)
        result = self.zeros(arrays[0].dtype, Shape(dims), order)
        start = 0
        for a in arrays:
            end = start + a.dim(axis)
            a.copy_to(result.narrow(axis, True, start, end))
            start = end
        return result

    def __repr__(self) -> str:
        return f"DArrayManager(hardware={self.hardware!r})"


_BASE: Optional[DArrayManager] = None


def base() -> DArrayManager:
    """Return the process-wide manager, creating it on first use."""
    global _BASE
    if _BASE is None:
        _BASE = DArrayManager()
        logger.debug("Created default manager %r", _BASE)
    return _BASE


get_default_manager = base


__all__ = ["DArrayManager", "base", "get_default_manager"]
