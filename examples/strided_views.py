# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""Views, copies and persistence with minidarray.

This script builds a small matrix, takes a few views of it, shows which
reshapes can be served without copying and finally saves the storage to an
in-memory stream and loads it back.
"""

from __future__ import annotations

import io

import minidarray as md
from minidarray import DOUBLE, Order, storage


def run_demo(verbose: bool = True):
    """Run the walkthrough.

    Parameters
    ----------
    verbose:
        If ``True``, prints every intermediate result.

    Returns
    -------
    dict
        The arrays and flags produced along the way, keyed by step name.
    """

    m = md.seq(DOUBLE, (3, 4))
    t = m.t()
    columns = m.narrow(1, True, 1, 3)
    rows = m.narrow(0, True, 1, 3)

    results = {
        "matrix": m,
        "transpose": t,
        "transpose_is_view": t.shares_storage(m),
        "rows_reshape_is_view": rows.reshape((8,)).shares_storage(m),
        "columns_reshape_is_view": columns.reshape((6,)).shares_storage(m),
        "transpose_ravel_f_is_view": t.ravel(Order.F).shares_storage(m),
    }

    # Writing through a view is visible in the source.
    t.set(-1.0, 3, 2)
    results["written"] = m.get(2, 3)

    buffer = io.BytesIO()
    storage.save(m.storage, buffer)
    buffer.seek(0)
    loaded = md.stride(DOUBLE, m.layout, storage.load(buffer))
    results["loaded"] = loaded

    if verbose:
        for key, value in results.items():
            shown = value.to_list() if isinstance(value, md.DArray) else value
            print(f"{key:>26}: {shown}")
    return results


def main() -> None:  # pragma: no cover - example script
    run_demo(verbose=True)


if __name__ == "__main__":  # pragma: no cover - example script
    main()
