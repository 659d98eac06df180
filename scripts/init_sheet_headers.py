#!/usr/bin/env python3
"""Write the learner sheet header row (Timestamp, Name, Email, ...)."""

from __future__ import annotations

import argparse
import logging
import sys


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--spreadsheet-id",
        default=None,
        help="Target spreadsheet (default: $SPREADSHEET_ID)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        from shared.sheets import learners
    except RuntimeError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    learners.initialize_headers(spreadsheet_id=args.spreadsheet_id)
    sys.stdout.write("✅ Sheet headers initialized\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
