# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""Performance benchmark for minidarray.

This script times a transposed copy and an elementwise add on minidarray
arrays and on the equivalent NumPy arrays.
"""

from __future__ import annotations

import timeit


def _benchmark(lib_name: str, setup: str, stmt: str, number: int = 10):
    """Utility helper to run a benchmark with ``timeit``.

    Args:
        lib_name: Name of the library being benchmarked (for display only).
        setup: Setup string executed once before timing.
        stmt: Statement string to be timed.
        number: Number of executions.

    Returns:
        float | None: Execution time in seconds or ``None`` if the benchmark
        cannot be executed.
    """

    try:
        return timeit.timeit(stmt, setup=setup, number=number)
    except ImportError as exc:  # pragma: no cover - best effort only
        print(f"Skipping {lib_name} benchmark: {exc}")
        return None


def main():  # pragma: no cover - example script
    size = 256

    setup_md = (
        "import minidarray as md\n"
        f"a=md.random(md.DOUBLE, ({size},{size}))\n"
        f"b=md.random(md.DOUBLE, ({size},{size}))"
    )
    setup_np = (
        "import numpy as np\n"
        f"a=np.random.random(({size},{size}))\n"
        f"b=np.random.random(({size},{size}))"
    )

    cases = [
        ("transpose copy", "a.t().copy()", "np.ascontiguousarray(a.T)"),
        ("add", "a.add(b)", "a + b"),
        ("add transposed", "a.add(b.t())", "a + b.T"),
    ]

    print(f"Benchmark ({size}x{size} doubles)")
    for name, stmt_md, stmt_np in cases:
        md_time = _benchmark("minidarray", setup_md, stmt_md)
        np_time = _benchmark("NumPy", setup_np, stmt_np)
        line = f"{name:>16}:"
        if md_time is not None:
            line += f" minidarray {md_time:.4f}s"
        if np_time is not None:
            line += f" | NumPy {np_time:.4f}s"
        print(line)


if __name__ == "__main__":  # pragma: no cover - example script
    main()
