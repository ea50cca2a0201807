# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Numeric kinds supported by the array engine.

Each kind is a process-wide singleton (``DType.BYTE``, ``DType.INT``,
``DType.FLOAT`` and ``DType.DOUBLE``). Casting follows the primitive
narrowing rules of the JVM: floating values are truncated toward zero and
saturated at the int32 range (NaN becomes 0), integer narrowing keeps the low
order bits, and double to float rounds to nearest.
"""

from __future__ import annotations

import math
from typing import Any, Callable, ClassVar, Dict, Optional

import numpy as np

from . import config

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def _wrap_int32(value: int) -> int:
    return ((value + 2**31) % 2**32) - 2**31


def _wrap_int8(value: int) -> int:
    return ((value + 2**7) % 2**8) - 2**7


def _is_floating_scalar(value: Any) -> bool:
    return isinstance(value, (float, np.floating))


def _saturate_int32(value: float) -> int:
    if math.isnan(value):
        return 0
    if value >= _INT32_MAX:
        return _INT32_MAX
    if value <= _INT32_MIN:
        return _INT32_MIN
    return int(value)


def _compare_integral(a, b) -> int:
    return (a > b) - (a < b)


def _compare_floating(a, b) -> int:
    a_nan = a != a
    b_nan = b != b
    if a_nan or b_nan:
        return (a_nan > b_nan) - (a_nan < b_nan)
    if a < b:
        return -1
    if a > b:
        return 1
    # equal values only differ by the sign of zero
    sa = math.copysign(1.0, a)
    sb = math.copysign(1.0, b)
    return (sa > sb) - (sa < sb)


class DType:
    """Descriptor of one primitive numeric kind."""

    BYTE: ClassVar["DType"]
    INT: ClassVar["DType"]
    FLOAT: ClassVar["DType"]
    DOUBLE: ClassVar["DType"]

    _BY_ID: ClassVar[Dict[str, "DType"]] = {}

    __slots__ = ("id", "name", "np_dtype", "byte_count", "floating_point")

    def __init__(self, id: str, name: str, np_dtype: Any, floating_point: bool):
        self.id = id
        self.name = name
        self.np_dtype = np.dtype(np_dtype)
        self.byte_count = self.np_dtype.itemsize
        self.floating_point = floating_point

    @classmethod
    def from_id(cls, name: str) -> "DType":
        """Look up a dtype by id (``byte``, ``int``, ``float``, ``double``)."""
        try:
            return cls._BY_ID[str(name).lower()]
        except KeyError:
            raise ValueError(f"DType with id '{name}' is not known.") from None

    @classmethod
    def from_numpy(cls, np_dtype: Any) -> "DType":
        """Map a NumPy dtype onto one of the supported kinds."""
        dt = np.dtype(np_dtype)
        for candidate in cls._BY_ID.values():
            if candidate.np_dtype == dt:
                return candidate
        raise ValueError(f"NumPy dtype '{dt}' has no matching DType.")

    @classmethod
    def of(cls, value: Any = None) -> "DType":
        """Resolve a dtype instance, id string, NumPy dtype or ``None`` (default)."""
        if value is None:
            return cls.from_id(config.get_default_dtype())
        if isinstance(value, DType):
            return value
        if isinstance(value, str):
            return cls.from_id(value)
        return cls.from_numpy(value)

    def cast(self, value: Any):
        """Cast a scalar to this kind, returning a Python ``int`` or ``float``."""
        if self is DType.DOUBLE:
            return float(value)
        if self is DType.FLOAT:
            with np.errstate(over="ignore"):
                return float(np.float32(float(value)))
        if _is_floating_scalar(value):
            as_int = _saturate_int32(float(value))
        else:
            as_int = _wrap_int32(int(value))
        if self is DType.BYTE:
            return _wrap_int8(as_int)
        return as_int

    def cast_array(self, values: Any) -> np.ndarray:
        """Vectorized :meth:`cast` returning an array of ``np_dtype``."""
        arr = np.asarray(values)
        if arr.dtype == self.np_dtype:
            return arr
        if self.floating_point:
            with np.errstate(over="ignore"):
                return arr.astype(self.np_dtype)
        if arr.dtype.kind == "f":
            arr = arr.astype(np.float64)
            arr = np.where(np.isnan(arr), 0.0, arr)
            arr = np.clip(np.trunc(arr), _INT32_MIN, _INT32_MAX).astype(np.int64)
        else:
            arr = arr.astype(np.int64)
        return arr.astype(np.int32).astype(self.np_dtype)

    def is_nan(self, value: Any) -> bool:
        if not self.floating_point:
            return False
        return value != value

    def natural_comparator(self) -> Callable[[Any, Any], int]:
        """Ascending ``cmp(a, b)``; use with :func:`functools.cmp_to_key`."""
        return _compare_floating if self.floating_point else _compare_integral

    def reverse_comparator(self) -> Callable[[Any, Any], int]:
        natural = self.natural_comparator()
        return lambda a, b: natural(b, a)

    def lanes(self, hardware: Optional[config.Hardware] = None) -> int:
        """SIMD lane count for this kind on ``hardware``."""
        hardware = hardware if hardware is not None else config.get_hardware()
        return hardware.lanes(self.byte_count)

    def zero(self):
        return 0.0 if self.floating_point else 0

    def __reduce__(self):
        return (DType.from_id, (self.id,))

    def __repr__(self) -> str:
        return f"DType({self.id})"


DType.BYTE = DType("byte", "int8", np.int8, False)
DType.INT = DType("int", "int32", np.int32, False)
DType.FLOAT = DType("float", "float32", np.float32, True)
DType.DOUBLE = DType("double", "float64", np.float64, True)
DType._BY_ID = {dt.id: dt for dt in (DType.BYTE, DType.INT, DType.FLOAT, DType.DOUBLE)}

BYTE = DType.BYTE
INT = DType.INT
FLOAT = DType.FLOAT
DOUBLE = DType.DOUBLE

__all__ = ["DType", "BYTE", "INT", "FLOAT", "DOUBLE"]
