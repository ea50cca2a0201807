# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Flat, single-dtype buffers addressed by integer pointers.

A storage knows nothing about shapes. Arrays (and all their views) hold a
reference to one storage and translate logical indexes into pointers through
their layout. Writing through one view is visible through every other view
that shares the storage.

Persisted form::

    tag      uint16 big-endian length + UTF-8 bytes
    count    int32 big-endian element count
    payload  count big-endian elements of the storage kind
"""

from __future__ import annotations

import logging
import struct
from typing import IO, Any, ClassVar, Dict, Optional, Type

import numpy as np

from .config import Hardware, get_hardware
from .dtype import DType

logger = logging.getLogger(__name__)


class StorageFormatError(ValueError):
    """Raised when a persisted storage cannot be decoded."""


class Storage:
    """Base class of the array-backed storages.

    Subclasses bind one :class:`DType` and one persistence tag. Values read
    through scalar accessors are Python ``int``/``float``; writes are cast to
    the storage kind with the dtype's narrowing rules.
    """

    dtype: ClassVar[DType]
    TAG: ClassVar[str]
    WIRE_DTYPE: ClassVar[str]

    _REGISTRY: ClassVar[Dict[str, Type["Storage"]]] = {}
    _BY_DTYPE: ClassVar[Dict[str, Type["Storage"]]] = {}

    __slots__ = ("_array", "hardware", "lanes")

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        Storage._REGISTRY[cls.TAG] = cls
        Storage._BY_DTYPE[cls.dtype.id] = cls

    def __init__(self, array: np.ndarray, hardware: Optional[Hardware] = None):
        if array.ndim != 1:
            raise ValueError("Storage buffers must be one dimensional.")
        if array.dtype != self.dtype.np_dtype:
            raise ValueError(
                f"{type(self).__name__} requires a {self.dtype.name} buffer, got {array.dtype}."
            )
        self._array = array
        self.hardware = hardware if hardware is not None else get_hardware()
        self.lanes = self.hardware.lanes(self.dtype.byte_count)

    # Construction helpers

    @staticmethod
    def storage_class(dtype: DType) -> Type["Storage"]:
        return Storage._BY_DTYPE[dtype.id]

    @staticmethod
    def zeros(dtype: DType, size: int, hardware: Optional[Hardware] = None) -> "Storage":
        cls = Storage.storage_class(dtype)
        return cls(np.zeros(size, dtype=dtype.np_dtype), hardware)

    @staticmethod
    def wrap(dtype: DType, values: Any, hardware: Optional[Hardware] = None) -> "Storage":
        """Wrap ``values`` without copying when it already is a flat buffer of ``dtype``.

        The caller must not keep writing to the raw buffer from outside the
        arrays built on top of the returned storage.
        """
        cls = Storage.storage_class(dtype)
        if isinstance(values, np.ndarray) and values.dtype == dtype.np_dtype and values.ndim == 1:
            return cls(values, hardware)
        return cls(np.ascontiguousarray(dtype.cast_array(values)).reshape(-1), hardware)

    @property
    def array(self) -> np.ndarray:
        """The backing buffer (shared, not copied)."""
        return self._array

    def size(self) -> int:
        return self._array.shape[0]

    def __len__(self) -> int:
        return self._array.shape[0]

    def support_vectorization(self) -> bool:
        return True

    # Scalar access

    def get(self, ptr: int):
        return self._array[ptr].item()

    def set(self, ptr: int, value: Any) -> None:
        self._array[ptr] = self.dtype.cast(value)

    def inc(self, ptr: int, value: Any) -> None:
        self._array[ptr] = self.dtype.cast(self._array[ptr].item() + value)

    def fill(self, value: Any, start: int = 0, length: Optional[int] = None) -> None:
        end = self.size() if length is None else start + length
        self._array[start:end] = self.dtype.cast(value)

    # Vector lanes

    def get_vector(self, offset: int) -> np.ndarray:
        """Load ``lanes`` contiguous elements starting at ``offset``."""
        return self._array[offset : offset + self.lanes].copy()

    def set_vector(self, vector: Any, offset: int) -> None:
        values = self.dtype.cast_array(vector)
        self._array[offset : offset + len(values)] = values

    def get_vector_indexed(self, offset: int, index: Any, index_offset: int = 0) -> np.ndarray:
        """Gather ``lanes`` elements at ``offset + index[index_offset:]``."""
        idx = np.asarray(index)[index_offset : index_offset + self.lanes]
        return self._array[offset + idx]

    def set_vector_indexed(self, vector: Any, offset: int, index: Any, index_offset: int = 0) -> None:
        values = self.dtype.cast_array(vector)
        idx = np.asarray(index)[index_offset : index_offset + len(values)]
        self._array[offset + idx] = values

    # Bulk access used by chunk and lockstep loops

    def get_run(self, start: int, length: int, step: int) -> np.ndarray:
        """Return ``length`` elements spaced ``step`` apart, starting at ``start``."""
        if step > 0:
            return self._array[start : start + length * step : step]
        return self._array[start + step * np.arange(length)]

    def set_run(self, start: int, length: int, step: int, values: Any) -> None:
        values = self.dtype.cast_array(values)
        if step > 0:
            self._array[start : start + length * step : step] = values
        else:
            self._array[start + step * np.arange(length)] = values

    def get_indexed(self, pointers: np.ndarray) -> np.ndarray:
        return self._array[pointers]

    def set_indexed(self, pointers: np.ndarray, values: Any) -> None:
        self._array[pointers] = self.dtype.cast_array(values)

    def copy(self) -> "Storage":
        return type(self)(self._array.copy(), self.hardware)

    # Persistence

    def save(self, stream: IO[bytes]) -> None:
        """Write the tag and the raw buffer to a binary ``stream``."""
        tag = self.TAG.encode("utf-8")
        stream.write(struct.pack(">H", len(tag)))
        stream.write(tag)
        stream.write(struct.pack(">i", self.size()))
        stream.write(self._array.astype(self.WIRE_DTYPE).tobytes())
        logger.debug("Saved %s with %d elements", self.TAG, self.size())

    @staticmethod
    def load(stream: IO[bytes], hardware: Optional[Hardware] = None) -> "Storage":
        """Read a storage written by :meth:`save`, dispatching on its tag."""
        (tag_len,) = struct.unpack(">H", _read_exact(stream, 2))
        try:
            tag = _read_exact(stream, tag_len).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StorageFormatError("Storage tag is not valid UTF-8.") from exc
        cls = Storage._REGISTRY.get(tag)
        if cls is None:
            raise StorageFormatError(f"Unknown storage tag '{tag}'.")
        (count,) = struct.unpack(">i", _read_exact(stream, 4))
        if count < 0:
            raise StorageFormatError(f"Invalid element count {count} for '{tag}'.")
        wire = np.dtype(cls.WIRE_DTYPE)
        data = _read_exact(stream, count * wire.itemsize)
        array = np.frombuffer(data, dtype=wire).astype(cls.dtype.np_dtype)
        logger.debug("Loaded %s with %d elements", tag, count)
        return cls(array, hardware)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.size()})"


def _read_exact(stream: IO[bytes], n: int) -> bytes:
    data = stream.read(n)
    if data is None or len(data) != n:
        raise StorageFormatError(
            f"Unexpected end of stream: wanted {n} bytes, got {0 if data is None else len(data)}."
        )
    return data


class ByteArrayStorage(Storage):
    dtype = DType.BYTE
    TAG = "ByteArrayStorage"
    WIRE_DTYPE = "i1"
    __slots__ = ()


class IntArrayStorage(Storage):
    dtype = DType.INT
    TAG = "IntArrayStorage"
    WIRE_DTYPE = ">i4"
    __slots__ = ()


class FloatArrayStorage(Storage):
    dtype = DType.FLOAT
    TAG = "FloatArrayStorage"
    WIRE_DTYPE = ">f4"
    __slots__ = ()


class DoubleArrayStorage(Storage):
    dtype = DType.DOUBLE
    TAG = "DoubleArrayStorage"
    WIRE_DTYPE = ">f8"
    __slots__ = ()


def save(storage: Storage, stream: IO[bytes]) -> None:
    storage.save(stream)


def load(stream: IO[bytes], hardware: Optional[Hardware] = None) -> Storage:
    return Storage.load(stream, hardware)


__all__ = [
    "Storage",
    "StorageFormatError",
    "ByteArrayStorage",
    "IntArrayStorage",
    "FloatArrayStorage",
    "DoubleArrayStorage",
    "save",
    "load",
]
