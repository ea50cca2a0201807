# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
DArray: a typed, strided view over a flat storage.
"""

from __future__ import annotations

import logging
import math
from functools import partial
from numbers import Number
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Optional, Sequence, Union

import numpy as np

from .dtype import DType
from .iterators import ChunkIterator, PointerIterator
from .layout import StrideLayout
from .order import Order
from .shape import Shape
from .storage import Storage

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .manager import DArrayManager

logger = logging.getLogger(__name__)

Scalar = Union[int, float]


def _int_true_divide(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Integer division truncating toward zero."""
    if np.any(b == 0):
        raise ZeroDivisionError("integer division by zero")
    q = np.floor_divide(a, b)
    r = a - q * b
    return q + ((r != 0) & ((a < 0) != (b < 0))).astype(q.dtype)


def _divide(dtype: DType) -> Callable[[np.ndarray, Any], np.ndarray]:
    return np.true_divide if dtype.floating_point else _int_true_divide


_BINARY_OPS = {
    "add": lambda dt: np.add,
    "sub": lambda dt: np.subtract,
    "mul": lambda dt: np.multiply,
    "div": _divide,
}


def _flat_index(index) -> tuple:
    if len(index) == 1 and isinstance(index[0], (list, tuple)):
        return tuple(index[0])
    return tuple(index)


# Reducers over a flat buffer of values

def _without_nan(dtype: DType, values: np.ndarray) -> np.ndarray:
    return values[~np.isnan(values)] if dtype.floating_point else values


def _sum(dtype: DType, values: np.ndarray) -> Scalar:
    return dtype.cast(values.sum(dtype=np.float64 if dtype.floating_point else np.int64))


def _nan_sum(dtype: DType, values: np.ndarray) -> Scalar:
    return _sum(dtype, _without_nan(dtype, values))


def _prod(dtype: DType, values: np.ndarray) -> Scalar:
    if dtype.floating_point:
        return dtype.cast(values.prod(dtype=np.float64))
    result = 1
    for v in values.tolist():
        result = dtype.cast(result * v)
    return result


def _nan_prod(dtype: DType, values: np.ndarray) -> Scalar:
    return _prod(dtype, _without_nan(dtype, values))


def _mean(values: np.ndarray) -> float:
    return float(values.mean(dtype=np.float64))


def _nan_mean(dtype: DType, values: np.ndarray) -> float:
    values = _without_nan(dtype, values)
    return _mean(values) if values.size else math.nan


def _var(values: np.ndarray, ddof: int = 0) -> float:
    count = values.size - ddof
    if count <= 0:
        return math.nan
    x = values.astype(np.float64)
    return float(np.square(x - x.mean()).sum() / count)


def _min(values: np.ndarray) -> Scalar:
    return values.min().item()


def _max(values: np.ndarray) -> Scalar:
    return values.max().item()


def _nan_min(dtype: DType, values: np.ndarray) -> Scalar:
    values = _without_nan(dtype, values)
    return _min(values) if values.size else math.nan


def _nan_max(dtype: DType, values: np.ndarray) -> Scalar:
    values = _without_nan(dtype, values)
    return _max(values) if values.size else math.nan


def _argmin(values: np.ndarray) -> int:
    return int(np.argmin(values))


def _argmax(values: np.ndarray) -> int:
    return int(np.argmax(values))


class DArray:
    """
    An N-dimensional array binding a dtype, a stride layout and a storage.

    Arrays are created by a :class:`~minidarray.manager.DArrayManager`.
    Structural operations such as :meth:`t`, :meth:`narrow` or a legal
    :meth:`reshape` return views that share the storage with the source, so a
    write through any of them is visible through all of them. In-place
    operations end with an underscore (``add_``) and return the receiver;
    their counterparts without underscore work on a fresh copy.

    Examples:
        >>> import minidarray as md
        >>> a = md.seq(md.DOUBLE, md.Shape.of(2, 2))
        >>> a.t().get(0, 1)
        2.0
    """

    __slots__ = ("_manager", "_dtype", "_layout", "_storage", "__weakref__")

    def __init__(self, manager: "DArrayManager", dtype: DType, layout: StrideLayout, storage: Storage):
        if storage.dtype is not dtype:
            raise ValueError(
                f"Storage of kind {storage.dtype.id} cannot back an array of dtype {dtype.id}."
            )
        low = high = layout.offset
        for d, s in zip(layout.dims, layout.strides):
            if s > 0:
                high += (d - 1) * s
            else:
                low += (d - 1) * s
        if low < 0 or high >= storage.size():
            raise ValueError(
                f"Layout {layout} addresses pointers outside of a storage of size {storage.size()}."
            )
        self._manager = manager
        self._dtype = dtype
        self._layout = layout
        self._storage = storage

    def _view(self, layout: StrideLayout) -> "DArray":
        if layout is self._layout:
            return self
        return self._manager.stride(self._dtype, layout, self._storage)

    # Core properties
    @property
    def manager(self) -> "DArrayManager":
        return self._manager

    @property
    def dtype(self) -> DType:
        """Get array data type."""
        return self._dtype

    @property
    def layout(self) -> StrideLayout:
        return self._layout

    @property
    def storage(self) -> Storage:
        """Get the storage shared by this array and its views."""
        return self._storage

    @property
    def shape(self) -> Shape:
        return self._layout.shape

    @property
    def rank(self) -> int:
        return self._layout.rank

    @property
    def size(self) -> int:
        """Total number of elements."""
        return self._layout.size

    def dim(self, axis: int) -> int:
        return self._layout.dim(axis)

    def is_scalar(self) -> bool:
        return self.rank == 0

    def is_vector(self) -> bool:
        return self.rank == 1

    def is_matrix(self) -> bool:
        return self.rank == 2

    def shares_storage(self, other: "DArray") -> bool:
        """Return ``True`` if both arrays read and write the same storage."""
        return self._storage is other._storage

    # Element access
    def get(self, *index: int) -> Scalar:
        return self._storage.get(self._layout.pointer(*_flat_index(index)))

    def set(self, value: Scalar, *index: int) -> None:
        self._storage.set(self._layout.pointer(*_flat_index(index)), value)

    def inc(self, value: Scalar, *index: int) -> None:
        self._storage.inc(self._layout.pointer(*_flat_index(index)), value)

    def ptr_get(self, ptr: int) -> Scalar:
        """Read the value stored at a physical pointer."""
        return self._storage.get(ptr)

    def ptr_set(self, ptr: int, value: Scalar) -> None:
        """Write a value at a physical pointer."""
        self._storage.set(ptr, value)

    def item(self) -> Scalar:
        """Return the Python scalar value for a single-element array."""
        if self.size != 1:
            raise ValueError(
                f"item() requires an array with one element, got shape {self.shape}."
            )
        return self._storage.get(self._layout.ptr_iterator().next_int())

    # Iteration
    def ptr_iterator(self, order: Optional[Order] = None) -> PointerIterator:
        return self._layout.ptr_iterator(order)

    def chunk_iterator(self, order: Optional[Order] = None) -> ChunkIterator:
        return self._layout.chunk_iterator(order)

    def iterator(self, order: Optional[Order] = Order.C) -> Iterator[Scalar]:
        """Iterate over values in the given logical order."""
        storage = self._storage
        return (storage.get(p) for p in self._layout.ptr_iterator(order))

    def __iter__(self) -> Iterator[Scalar]:
        return self.iterator(Order.C)

    def _values(self, order: Optional[Order] = None) -> np.ndarray:
        """Values gathered chunk by chunk into a fresh flat buffer."""
        out = np.empty(self.size, dtype=self._dtype.np_dtype)
        pos = 0
        for start, length, step in self._layout.chunk_iterator(order):
            out[pos : pos + length] = self._storage.get_run(start, length, step)
            pos += length
        return out

    def to_list(self, order: Optional[Order] = Order.C) -> List[Scalar]:
        return self._values(order).tolist()

    def numpy(self, order: Optional[Order] = Order.C) -> np.ndarray:
        """Return a NumPy copy shaped like this array, laid out in ``order``."""
        order = Order.auto_fc(Order.of(order))
        return self._values(order).reshape(self.shape.dims, order=order.value)

    # Structural views
    def squeeze(self, *axes: int) -> "DArray":
        """Remove unit axes, all of them or only the given ones."""
        return self._view(self._layout.squeeze(*axes))

    def stretch(self, *axes: int) -> "DArray":
        """Insert unit axes at the given positions."""
        return self._view(self._layout.stretch(*axes))

    def expand(self, axis: int, size: int) -> "DArray":
        """Repeat a unit axis ``size`` times without copying."""
        return self._view(self._layout.expand(axis, size))

    def t(self) -> "DArray":
        """Transpose by reversing the order of the axes."""
        return self._view(self._layout.revert())

    def transpose(self) -> "DArray":
        return self.t()

    @property
    def T(self) -> "DArray":
        return self.t()

    def move_axis(self, src: int, dst: int) -> "DArray":
        return self._view(self._layout.move_axis(src, dst))

    def swap_axis(self, a: int, b: int) -> "DArray":
        return self._view(self._layout.swap_axis(a, b))

    def permute(self, *dims: int) -> "DArray":
        return self._view(self._layout.permute(_flat_index(dims)))

    def narrow(self, axis: int, keep_dim: bool, start: int, end: int) -> "DArray":
        """Restrict ``axis`` to the half-open range ``[start, end)``."""
        return self._view(self._layout.narrow(axis, keep_dim, start, end))

    def narrow_all(self, keep_dim: bool, starts: Sequence[int], ends: Sequence[int]) -> "DArray":
        return self._view(self._layout.narrow_all(keep_dim, starts, ends))

    def split(self, axis: int, keep_dim: bool, *indexes: int) -> List["DArray"]:
        """Split ``axis`` at the given start indexes into views."""
        indexes = _flat_index(indexes)
        dim = self.dim(axis)
        result = []
        for i, start in enumerate(indexes):
            end = indexes[i + 1] if i < len(indexes) - 1 else dim
            result.append(self.narrow(axis, keep_dim, start, end))
        return result

    def chunk(self, axis: int, keep_dim: bool, size: int) -> List["DArray"]:
        """Partition ``axis`` into views of ``size`` elements.

        Args:
            axis: Axis to partition.
            keep_dim: Keep the axis even when a chunk has extent one.
            size: Extent of every chunk; the last one is shorter when ``size``
                does not divide the axis.

        Returns:
            List[DArray]: Views over this array's storage.
        """
        if size < 1:
            raise ValueError(f"Chunk size must be positive, got {size}.")
        dim = self.dim(axis)
        return self.split(axis, keep_dim, *range(0, dim, size))

    # Copy or view
    def reshape(self, shape: Union[Shape, Sequence[int]], order: Optional[Order] = None) -> "DArray":
        """Reshape, returning a view when the layout allows it and a copy otherwise.

        ``order`` is the order in which elements are read from this array and
        written into the result. ``S`` picks the order this array is dense in.
        """
        shape = Shape.of(shape)
        if shape.size != self.size:
            raise ValueError(
                f"Incompatible shape size: cannot reshape {self.shape} into {shape}."
            )
        order = Order.default_order() if order is None else Order.of(order)
        if order is Order.S:
            order = self._layout.natural_order()
        view = self._layout.attempt_reshape(shape, order)
        if view is not None:
            return self._view(view)
        logger.debug("reshape %s -> %s in order %s requires a copy", self._layout, shape, order.name)
        return self._dense_copy(shape, order)

    def ravel(self, order: Optional[Order] = None) -> "DArray":
        """Collapse into one axis, as a view when the elements form one run.

        With ``S`` the elements are taken in storage order, so any layout
        whose pointers form a single run is viewed without copying.
        """
        order = Order.of(order)
        compact = self._layout.compute_fortran_layout(order, True)
        if compact.rank == 0:
            return self._view(StrideLayout(Shape.of(1), compact.offset, (1,)))
        if compact.rank == 1:
            return self._view(StrideLayout(Shape.of(self.size), compact.offset, compact.strides))
        if order is Order.S:
            order = self._layout.natural_order()
        logger.debug("ravel of %s in order %s requires a copy", self._layout, order.name)
        return self.flatten(order)

    def flatten(self, order: Optional[Order] = None) -> "DArray":
        """Copy into a new one dimensional array read in ``order``."""
        order = Order.auto_fc(Order.of(order) if order is not None else None)
        return self._dense_copy(Shape.of(self.size), order)

    def copy(self, order: Optional[Order] = None) -> "DArray":
        """Copy into freshly allocated storage, dense in ``order``."""
        order = Order.auto_fc(Order.of(order) if order is not None else None)
        return self._dense_copy(self.shape, order)

    def _dense_copy(self, shape: Shape, order: Order) -> "DArray":
        storage = self._manager.storage_zeros(self._dtype, self.size)
        storage.array[:] = self._values(order)
        return self._manager.stride(self._dtype, StrideLayout.of_dense(shape, 0, order), storage)

    def copy_to(self, dst: "DArray") -> "DArray":
        """Copy values into ``dst`` (same shape), casting to its dtype."""
        if not isinstance(dst, DArray):
            raise TypeError("copy_to requires a DArray destination")
        if dst.shape != self.shape:
            raise ValueError(f"shapes do not match: {self.shape} and {dst.shape}")
        order = dst.layout.storage_fast_order()
        order = Order.auto_fc(order)
        src_ptrs = self._layout.ptr_iterator(order).to_array()
        dst_ptrs = dst.layout.ptr_iterator(order).to_array()
        dst.storage.set_indexed(dst_ptrs, self._storage.get_indexed(src_ptrs))
        return dst

    def cast(self, dtype: Union[DType, str], order: Optional[Order] = None) -> "DArray":
        """Convert to ``dtype``; returns ``self`` when nothing would change."""
        dtype = DType.of(dtype)
        resolved = Order.of(order) if order is not None else Order.S
        if dtype is self._dtype and (
            resolved is Order.S
            or (resolved is Order.C and self._layout.is_c_ordered())
            or (resolved is Order.F and self._layout.is_f_ordered())
        ):
            return self
        resolved = Order.auto_fc(resolved)
        storage = self._manager.storage_zeros(dtype, self.size)
        storage.array[:] = dtype.cast_array(self._values(resolved))
        return self._manager.stride(dtype, StrideLayout.of_dense(self.shape, 0, resolved), storage)

    # Elementwise unary operations
    def _unary_(self, fn: Callable[[np.ndarray], np.ndarray], floating_only: bool = False) -> "DArray":
        if floating_only and not self._dtype.floating_point:
            raise ValueError("This operation is available only for floating point arrays.")
        storage = self._storage
        with np.errstate(all="ignore"):
            for start, length, step in self._layout.chunk_iterator(Order.S):
                storage.set_run(start, length, step, fn(storage.get_run(start, length, step)))
        return self

    def apply_(self, fn: Callable[[Scalar], Scalar]) -> "DArray":
        """Apply a scalar function to every element in place, in natural order."""
        storage = self._storage
        it = self._layout.ptr_iterator(Order.S)
        while it.has_next():
            ptr = it.next_int()
            storage.set(ptr, fn(storage.get(ptr)))
        return self

    def apply_indexed_(self, order: Optional[Order], fn: Callable[[int, int], Scalar]) -> "DArray":
        """Set every element to ``fn(i, ptr)`` where ``i`` counts visits in ``order``."""
        storage = self._storage
        for i, ptr in enumerate(self._layout.ptr_iterator(order)):
            storage.set(ptr, fn(i, ptr))
        return self

    def fill_(self, value: Scalar) -> "DArray":
        value = self._dtype.cast(value)
        return self._unary_(lambda v: np.full(v.shape, value, dtype=self._dtype.np_dtype))

    def abs_(self) -> "DArray":
        return self._unary_(np.abs)

    def neg_(self) -> "DArray":
        return self._unary_(np.negative)

    def sqr_(self) -> "DArray":
        return self._unary_(np.square)

    def sqrt_(self) -> "DArray":
        return self._unary_(np.sqrt, floating_only=True)

    def log_(self) -> "DArray":
        return self._unary_(np.log, floating_only=True)

    def log1p_(self) -> "DArray":
        return self._unary_(np.log1p, floating_only=True)

    def exp_(self) -> "DArray":
        return self._unary_(np.exp, floating_only=True)

    def expm1_(self) -> "DArray":
        return self._unary_(np.expm1, floating_only=True)

    def sin_(self) -> "DArray":
        return self._unary_(np.sin, floating_only=True)

    def cos_(self) -> "DArray":
        return self._unary_(np.cos, floating_only=True)

    def tan_(self) -> "DArray":
        return self._unary_(np.tan, floating_only=True)

    def tanh_(self) -> "DArray":
        return self._unary_(np.tanh, floating_only=True)

    def clamp_(self, min_val: Optional[Scalar] = None, max_val: Optional[Scalar] = None) -> "DArray":
        """Clamp values to ``[min_val, max_val]``; ``None`` leaves a side open."""
        if min_val is None and max_val is None:
            return self
        lo = None if min_val is None else self._dtype.cast(min_val)
        hi = None if max_val is None else self._dtype.cast(max_val)
        return self._unary_(lambda v: np.clip(v, lo, hi))

    def _round_(self, fn: Callable[[np.ndarray], np.ndarray]) -> "DArray":
        if not self._dtype.floating_point:
            return self
        return self._unary_(fn)

    def floor_(self) -> "DArray":
        return self._round_(np.floor)

    def ceil_(self) -> "DArray":
        return self._round_(np.ceil)

    def rint_(self) -> "DArray":
        """Round to the nearest integer value, halves to even."""
        return self._round_(np.rint)

    def pow_(self, power: Scalar) -> "DArray":
        """Raise every element to ``power``, computed in double precision and cast back."""
        dtype = self._dtype
        return self._unary_(lambda v: dtype.cast_array(np.power(v.astype(np.float64), power)))

    def abs(self) -> "DArray":
        """Absolute value."""
        return self.copy().abs_()

    def neg(self) -> "DArray":
        return self.copy().neg_()

    def sqr(self) -> "DArray":
        return self.copy().sqr_()

    def sqrt(self) -> "DArray":
        """Square root."""
        return self.copy().sqrt_()

    def log(self) -> "DArray":
        """Natural logarithm."""
        return self.copy().log_()

    def log1p(self) -> "DArray":
        return self.copy().log1p_()

    def exp(self) -> "DArray":
        """Exponential function."""
        return self.copy().exp_()

    def expm1(self) -> "DArray":
        return self.copy().expm1_()

    def sin(self) -> "DArray":
        return self.copy().sin_()

    def cos(self) -> "DArray":
        return self.copy().cos_()

    def tan(self) -> "DArray":
        return self.copy().tan_()

    def tanh(self) -> "DArray":
        return self.copy().tanh_()

    def clamp(self, min_val: Optional[Scalar] = None, max_val: Optional[Scalar] = None) -> "DArray":
        return self.copy().clamp_(min_val, max_val)

    def floor(self) -> "DArray":
        return self.copy().floor_()

    def ceil(self) -> "DArray":
        return self.copy().ceil_()

    def rint(self) -> "DArray":
        return self.copy().rint_()

    def pow(self, power: Scalar) -> "DArray":
        return self.copy().pow_(power)

    # Elementwise binary operations
    def _tandem_order(self) -> Order:
        order = self._layout.storage_fast_order()
        return Order.default_order() if order is Order.S else order

    def _check_same_shape(self, other: "DArray") -> None:
        if self.shape != other.shape:
            raise ValueError(f"shapes do not match: {self.shape} and {other.shape}")

    def _binary_(self, name: str, other: Union["DArray", Scalar]) -> "DArray":
        op = _BINARY_OPS[name](self._dtype)
        dtype = self._dtype
        storage = self._storage
        if isinstance(other, DArray):
            self._check_same_shape(other)
            order = self._tandem_order()
            ptrs = self._layout.ptr_iterator(order).to_array()
            refs = other.layout.ptr_iterator(order).to_array()
            rhs = dtype.cast_array(other.storage.get_indexed(refs))
            with np.errstate(all="ignore"):
                storage.set_indexed(ptrs, op(storage.get_indexed(ptrs), rhs))
            return self
        if not isinstance(other, (Number, np.number)):
            raise TypeError(f"unsupported operand type: {type(other).__name__}")
        value = dtype.np_dtype.type(dtype.cast(other))
        if name == "div" and not dtype.floating_point and value == 0:
            raise ZeroDivisionError("integer division by zero")
        with np.errstate(all="ignore"):
            for start, length, step in self._layout.chunk_iterator(Order.S):
                storage.set_run(start, length, step, op(storage.get_run(start, length, step), value))
        return self

    def binary_op_(self, other: Union["DArray", Scalar], fn: Callable[[Scalar, Scalar], Scalar]) -> "DArray":
        """Set ``self[p] = fn(self[p], other[q])`` walking both arrays in lockstep."""
        storage = self._storage
        if not isinstance(other, DArray):
            value = other
            return self.apply_(lambda v: fn(v, value))
        self._check_same_shape(other)
        order = self._tandem_order()
        it = self._layout.ptr_iterator(order)
        ref = other.layout.ptr_iterator(order)
        other_storage = other.storage
        while it.has_next():
            p = it.next_int()
            storage.set(p, fn(storage.get(p), other_storage.get(ref.next_int())))
        return self

    def add_(self, other: Union["DArray", Scalar]) -> "DArray":
        return self._binary_("add", other)

    def sub_(self, other: Union["DArray", Scalar]) -> "DArray":
        return self._binary_("sub", other)

    def mul_(self, other: Union["DArray", Scalar]) -> "DArray":
        return self._binary_("mul", other)

    def div_(self, other: Union["DArray", Scalar]) -> "DArray":
        return self._binary_("div", other)

    def add(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.copy().add_(other)

    def sub(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.copy().sub_(other)

    def mul(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.copy().mul_(other)

    def div(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.copy().div_(other)

    # Arithmetic operators
    def __neg__(self) -> "DArray":
        return self.neg()

    def __abs__(self) -> "DArray":
        return self.abs()

    def __pow__(self, power: Scalar) -> "DArray":
        if not isinstance(power, (Number, np.number)):
            return NotImplemented
        return self.pow(power)

    def __ipow__(self, power: Scalar) -> "DArray":
        if not isinstance(power, (Number, np.number)):
            return NotImplemented
        return self.pow_(power)

    def __add__(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.add(other)

    def __radd__(self, other: Scalar) -> "DArray":
        return self.add(other)

    def __sub__(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.sub(other)

    def __rsub__(self, other: Scalar) -> "DArray":
        return self.neg().add_(other)

    def __mul__(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.mul(other)

    def __rmul__(self, other: Scalar) -> "DArray":
        return self.mul(other)

    def __truediv__(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.div(other)

    def __iadd__(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.add_(other)

    def __isub__(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.sub_(other)

    def __imul__(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.mul_(other)

    def __itruediv__(self, other: Union["DArray", Scalar]) -> "DArray":
        return self.div_(other)

    # Reduction operations
    def _reduce_trailing(
        self,
        reducer: Callable[[np.ndarray], Scalar],
        count: int,
        keep_dim: bool,
        order: Optional[Order],
        dtype: Optional[DType] = None,
    ) -> "DArray":
        """Reduce every block spanned by the last ``count`` axes into one element."""
        dtype = self._dtype if dtype is None else dtype
        split = self.rank - count
        dims, strides = self._layout.shape.dims, self._layout.strides
        outer = StrideLayout(Shape(dims[:split]), self._layout.offset, strides[:split])
        block_shape, block_strides = Shape(dims[split:]), strides[split:]

        result = self._manager.zeros(dtype, outer.shape, order)
        res_it = result.ptr_iterator(Order.C)
        for ptr in outer.ptr_iterator(Order.C):
            block = StrideLayout(block_shape, ptr, block_strides).ptr_iterator(Order.C).to_array()
            with np.errstate(all="ignore"):
                result.ptr_set(res_it.next_int(), reducer(self._storage.get_indexed(block)))
        if keep_dim and count:
            result = result.stretch(*range(split, self.rank))
        return result

    def _reduce_axis(
        self,
        reducer: Callable[[np.ndarray], Scalar],
        axis: int,
        keep_dim: bool,
        order: Optional[Order],
        dtype: Optional[DType] = None,
    ) -> "DArray":
        axis = self._layout._axis(axis)
        moved = self.move_axis(axis, self.rank - 1)
        result = moved._reduce_trailing(reducer, 1, False, order, dtype)
        return result.stretch(axis) if keep_dim else result

    def _reduce_on(
        self,
        reducer: Callable[[np.ndarray], Scalar],
        shape: Union[Shape, Sequence[int]],
        keep_dim: bool,
        order: Optional[Order],
        dtype: Optional[DType] = None,
    ) -> "DArray":
        shape = Shape.of(shape)
        if shape.rank > self.rank:
            raise ValueError(
                f"Reduce shape {shape} has a higher rank than the array shape {self.shape}."
            )
        if shape.rank and self.shape.dims[self.rank - shape.rank:] != shape.dims:
            raise ValueError(f"Reduce shape {shape} does not match the trailing axes of {self.shape}.")
        return self._reduce_trailing(reducer, shape.rank, keep_dim, order, dtype)

    def _mean_dtype(self) -> DType:
        return self._dtype if self._dtype.floating_point else DType.DOUBLE

    def sum(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        """Sum of all elements in the array dtype, or the sums along ``axis``."""
        reducer = partial(_sum, self._dtype)
        if axis is None:
            return reducer(self._values(Order.S))
        return self._reduce_axis(reducer, axis, keep_dim, order)

    def sum_on(self, shape: Union[Shape, Sequence[int]], keep_dim: bool = False, order: Optional[Order] = None) -> "DArray":
        """Sum over the trailing axes matching ``shape``."""
        return self._reduce_on(partial(_sum, self._dtype), shape, keep_dim, order)

    def nan_sum(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        """Like :meth:`sum`, skipping NaN values."""
        reducer = partial(_nan_sum, self._dtype)
        if axis is None:
            return reducer(self._values(Order.S))
        return self._reduce_axis(reducer, axis, keep_dim, order)

    def prod(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        reducer = partial(_prod, self._dtype)
        if axis is None:
            return reducer(self._values(Order.S))
        return self._reduce_axis(reducer, axis, keep_dim, order)

    def nan_prod(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        reducer = partial(_nan_prod, self._dtype)
        if axis is None:
            return reducer(self._values(Order.S))
        return self._reduce_axis(reducer, axis, keep_dim, order)

    def mean(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        """Arithmetic mean.

        The whole-array mean is a Python ``float``. Means along ``axis`` keep
        a floating dtype and are stored as ``DOUBLE`` for integer arrays.
        """
        if axis is None:
            return _mean(self._values(Order.S))
        return self._reduce_axis(_mean, axis, keep_dim, order, self._mean_dtype())

    def mean_on(self, shape: Union[Shape, Sequence[int]], keep_dim: bool = False, order: Optional[Order] = None) -> "DArray":
        return self._reduce_on(_mean, shape, keep_dim, order, self._mean_dtype())

    def nan_mean(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        reducer = partial(_nan_mean, self._dtype)
        if axis is None:
            return reducer(self._values(Order.S))
        return self._reduce_axis(reducer, axis, keep_dim, order, self._mean_dtype())

    def var(self, ddof: int = 0, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        """Variance with ``ddof`` delta degrees of freedom.

        NaN when fewer than ``ddof + 1`` values are reduced.
        """
        reducer = partial(_var, ddof=ddof)
        if axis is None:
            return reducer(self._values(Order.S))
        return self._reduce_axis(reducer, axis, keep_dim, order, self._mean_dtype())

    def var_on(
        self,
        shape: Union[Shape, Sequence[int]],
        ddof: int = 0,
        keep_dim: bool = False,
        order: Optional[Order] = None,
    ) -> "DArray":
        return self._reduce_on(partial(_var, ddof=ddof), shape, keep_dim, order, self._mean_dtype())

    def std(self, ddof: int = 0, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        """Standard deviation, the square root of :meth:`var`."""
        if axis is None:
            return math.sqrt(self.var(ddof))
        return self.var(ddof, axis, keep_dim, order).sqrt_()

    def min(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        if axis is None:
            return _min(self._values(Order.S))
        return self._reduce_axis(_min, axis, keep_dim, order)

    def max(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        if axis is None:
            return _max(self._values(Order.S))
        return self._reduce_axis(_max, axis, keep_dim, order)

    def nan_min(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        """Minimum ignoring NaN values; NaN when every value is NaN."""
        reducer = partial(_nan_min, self._dtype)
        if axis is None:
            return reducer(self._values(Order.S))
        return self._reduce_axis(reducer, axis, keep_dim, order)

    def nan_max(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = None):
        """Maximum ignoring NaN values; NaN when every value is NaN."""
        reducer = partial(_nan_max, self._dtype)
        if axis is None:
            return reducer(self._values(Order.S))
        return self._reduce_axis(reducer, axis, keep_dim, order)

    def argmin(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = Order.C):
        """Position of the first minimum.

        Without ``axis`` this is the position in ``order`` over all elements.
        With ``axis`` the result is an ``INT`` array of indexes along that
        axis, stored densely in ``order``.
        """
        if axis is None:
            return _argmin(self._values(order))
        return self._reduce_axis(_argmin, axis, keep_dim, order, DType.INT)

    def argmax(self, axis: Optional[int] = None, keep_dim: bool = False, order: Optional[Order] = Order.C):
        """Position of the first maximum, see :meth:`argmin`."""
        if axis is None:
            return _argmax(self._values(order))
        return self._reduce_axis(_argmax, axis, keep_dim, order, DType.INT)

    def nan_count(self) -> int:
        if not self._dtype.floating_point:
            return 0
        return int(np.isnan(self._values(Order.S)).sum())

    def zero_count(self) -> int:
        return int((self._values(Order.S) == 0).sum())

    def trace(self) -> Scalar:
        """Sum of the main diagonal of a square matrix."""
        if not self.is_matrix() or self.dim(0) != self.dim(1):
            raise ValueError(f"trace requires a square matrix, got shape {self.shape}.")
        total = self._dtype.zero()
        for i in range(self.dim(0)):
            total = self._dtype.cast(total + self.get(i, i))
        return total

    def inner(self, other: "DArray") -> Scalar:
        """Inner product of two vectors of the same length."""
        if not (self.is_vector() and other.is_vector()):
            raise ValueError("inner product is available only for vectors.")
        self._check_same_shape(other)
        a = self._values(Order.C)
        b = self._dtype.cast_array(other._values(Order.C))
        return self._dtype.cast(np.dot(a, b).item())

    def mv(self, other: "DArray", order: Optional[Order] = None) -> "DArray":
        """Matrix-vector product."""
        if not self.is_matrix() or not other.is_vector():
            raise ValueError("mv requires a matrix and a vector.")
        if self.dim(1) != other.dim(0):
            raise ValueError(f"shapes do not match: {self.shape} and {other.shape}")
        result = self.numpy() @ self._dtype.cast_array(other.numpy())
        return self._manager.from_numpy(result, dtype=self._dtype, order=order)

    def mm(self, other: "DArray", order: Optional[Order] = None) -> "DArray":
        """Matrix-matrix product."""
        if not self.is_matrix() or not other.is_matrix():
            raise ValueError("mm requires two matrices.")
        if self.dim(1) != other.dim(0):
            raise ValueError(f"shapes do not match: {self.shape} and {other.shape}")
        result = self.numpy() @ self._dtype.cast_array(other.numpy())
        return self._manager.from_numpy(result, dtype=self._dtype, order=order)

    # Comparison with other arrays
    def deep_equals(self, other: Any, tol: float = 0.0) -> bool:
        """Same shape and element values within ``tol`` when read in C order."""
        if not isinstance(other, DArray):
            return False
        if self.shape != other.shape:
            return False
        a = self._values(Order.C).astype(np.float64)
        b = other._values(Order.C).astype(np.float64)
        with np.errstate(invalid="ignore"):
            return not bool(np.any(np.abs(a - b) > tol))

    # String representations
    def __repr__(self) -> str:
        return (
            f"DArray({self._dtype.id},{list(self.shape.dims)},"
            f"{self._layout.offset},{list(self._layout.strides)})"
        )


__all__ = ["DArray"]
