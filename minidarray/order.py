# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from . import config


class Order(Enum):
    """Logical traversal order of the elements of an array.

    ``C`` is row-major (last axis fastest), ``F`` is column-major (first axis
    fastest) and ``S`` asks for the order the storage is already dense in.
    """

    C = "C"
    F = "F"
    S = "S"

    @staticmethod
    def default_order() -> "Order":
        return Order(config.get_default_order())

    @staticmethod
    def auto_fc(order: Optional["Order"]) -> "Order":
        """Resolve ``S`` or ``None`` to the default order."""
        if order is None or order is Order.S:
            return Order.default_order()
        return order

    @staticmethod
    def of(value: Union["Order", str, None]) -> "Order":
        if value is None:
            return Order.default_order()
        if isinstance(value, Order):
            return value
        try:
            return Order(str(value).upper())
        except ValueError:
            raise ValueError(f"Unknown order '{value}'") from None


__all__ = ["Order"]
