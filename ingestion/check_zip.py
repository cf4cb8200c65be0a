"""
Inspect a local .mxl file with the same checks the service applies.

Prints the magic-number verdict and the EOCD completeness report as JSON.
Useful before uploading a file that the viewer fails to open, or after
downloading one from ``GET /song/{id}/mxl`` to confirm nothing was cut off.

CLI entry point::

    python -m ingestion.check_zip path/to/score.mxl
"""

from __future__ import annotations

import argparse
import json
import logging
import pathlib

from core.mxl.types import ZipIntegrityReport
from core.mxl.zip_integrity import check_eocd, has_zip_magic

logger = logging.getLogger(__name__)


def inspect_file(path: pathlib.Path) -> dict[str, object]:
    """
    Read *path* and build a JSON-serialisable integrity summary.

    Args:
        path: File to inspect.

    Returns:
        Dict with ``path``, ``bytes``, ``head_hex``, ``zip_magic``,
        ``zip_ok`` and the fields of :class:`ZipIntegrityReport`.
    """
    data = path.read_bytes()
    report: ZipIntegrityReport = check_eocd(data)
    summary: dict[str, object] = {
        "path": str(path),
        "bytes": len(data),
        "head_hex": data[:4].hex(),
        "zip_magic": has_zip_magic(data),
        "zip_ok": has_zip_magic(data) and report.ok,
    }
    summary.update(report.to_dict())
    return summary


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments, print the report, return the exit status."""
    parser = argparse.ArgumentParser(
        description="Check that a .mxl file is a complete ZIP container.",
    )
    parser.add_argument("path", type=pathlib.Path, help="Path to the .mxl file.")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if not args.path.is_file():
        logger.error("Not a file: %s", args.path)
        return 2

    summary = inspect_file(args.path)
    print(json.dumps(summary, indent=2))
    return 0 if summary["zip_ok"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
