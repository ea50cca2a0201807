# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""Process-wide configuration: hardware capabilities and defaults."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

VECTOR_BITS_ENV = "MINIDARRAY_VECTOR_BITS"
_DEFAULT_VECTOR_BITS = 256
_VALID_VECTOR_BITS = (64, 128, 256, 512)


@dataclass(frozen=True)
class Hardware:
    """Capabilities of the host used to size vectorized loops.

    A descriptor is created once (usually through :meth:`detect`) and passed
    to every storage a manager allocates. It is never mutated afterwards.
    """

    vector_bits: int = _DEFAULT_VECTOR_BITS
    cpu_threads: int = 1

    def __post_init__(self):
        if self.vector_bits not in _VALID_VECTOR_BITS:
            raise ValueError(
                f"vector_bits must be one of {_VALID_VECTOR_BITS}, got {self.vector_bits}"
            )
        if self.cpu_threads < 1:
            raise ValueError("cpu_threads must be positive")

    def lanes(self, byte_count: int) -> int:
        """Number of elements of ``byte_count`` bytes that fit in one vector."""
        return max(1, self.vector_bits // (8 * byte_count))

    @classmethod
    def detect(cls) -> "Hardware":
        """Build a descriptor from the environment."""

        bits = _DEFAULT_VECTOR_BITS
        raw = os.environ.get(VECTOR_BITS_ENV)
        if raw:
            try:
                parsed = int(raw)
            except ValueError:
                parsed = None
            if parsed in _VALID_VECTOR_BITS:
                bits = parsed
            else:
                logger.warning(
                    "Ignoring %s=%r, expected one of %s",
                    VECTOR_BITS_ENV,
                    raw,
                    _VALID_VECTOR_BITS,
                )
        hardware = cls(vector_bits=bits, cpu_threads=os.cpu_count() or 1)
        logger.debug("Detected hardware %s", hardware)
        return hardware


_HARDWARE: Optional[Hardware] = None


def get_hardware() -> Hardware:
    """Return the process hardware descriptor, detecting it on first use."""

    global _HARDWARE
    if _HARDWARE is None:
        _HARDWARE = Hardware.detect()
    return _HARDWARE


# Global default order and dtype management

_DEFAULT_ORDER = "C"
_DEFAULT_DTYPE = "double"


def set_default_order(order: str) -> None:
    """Set the order used when callers do not ask for one explicitly."""

    value = str(getattr(order, "name", order)).upper()
    if value not in ("C", "F"):
        raise ValueError(f"Default order must be 'C' or 'F', got '{order}'")
    global _DEFAULT_ORDER
    _DEFAULT_ORDER = value


def get_default_order() -> str:
    return _DEFAULT_ORDER


def set_default_dtype(dtype: str) -> None:
    """Set the global default data type for new arrays."""

    value = str(getattr(dtype, "id", dtype)).lower()
    if value not in ("byte", "int", "float", "double"):
        raise ValueError(f"Unsupported dtype '{dtype}'")
    global _DEFAULT_DTYPE
    _DEFAULT_DTYPE = value


def get_default_dtype() -> str:
    """Get the current global default data type id."""

    return _DEFAULT_DTYPE


@contextmanager
def default_dtype(dtype: str) -> Iterator[None]:
    """Temporarily change the default data type."""

    previous = get_default_dtype()
    set_default_dtype(dtype)
    try:
        yield
    finally:
        set_default_dtype(previous)


@contextmanager
def default_order(order: str) -> Iterator[None]:
    """Temporarily change the default order."""

    previous = get_default_order()
    set_default_order(order)
    try:
        yield
    finally:
        set_default_order(previous)


__all__ = [
    "Hardware",
    "VECTOR_BITS_ENV",
    "get_hardware",
    "set_default_order",
    "get_default_order",
    "set_default_dtype",
    "get_default_dtype",
    "default_dtype",
    "default_order",
]
