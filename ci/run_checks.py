"""Run the event_source test suite the way CI does."""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import List, Sequence

ROOT = Path(__file__).resolve().parents[1]


def build_command(marker: str | None = None, extra: Sequence[str] = ()) -> List[str]:
    """Return the pytest invocation for ``marker`` (``unit``, ``integ``, ``smoke``)."""

    command = [sys.executable, "-m", "pytest", "-q"]
    if marker:
        command += ["-m", marker]
    command += list(extra)
    return command


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run event_source checks")
    parser.add_argument("-m", "--marker", default=None, help="Only run tests with this marker")
    parser.add_argument("pytest_args", nargs="*", help="Extra arguments passed to pytest")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    arguments = _build_parser().parse_args(argv)
    command = build_command(arguments.marker, arguments.pytest_args)
    scope = f" ({arguments.marker})" if arguments.marker else ""
    print(f"Running tests{scope}...\n")
    cp = subprocess.run(command, cwd=ROOT, text=True)
    if cp.returncode == 0:
        print("\nPASS: All tests green.")
    else:
        print("\nFAIL: Some tests failed. See output above for details.")
    return cp.returncode


if __name__ == "__main__":
    raise SystemExit(main())
