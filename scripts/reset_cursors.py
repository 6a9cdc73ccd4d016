#!/usr/bin/env python3
"""Discard every stored projection cursor.

Run after changing ``CALENDAR_FIRST_WEEKDAY`` (or the week layout of stored
weekday rules): the next calendar load reprojects each reminder from its
anchor date and writes fresh cursors.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

import reminder_storage  # noqa: E402

logger = logging.getLogger(__name__)


def reset_cursors(*, dry_run: bool = False) -> int:
    """Delete stored cursors. Returns the number of cursors affected."""
    if dry_run:
        cursors = reminder_storage.load_cursors()
        for reminder_id, cursor in sorted(cursors.items()):
            state = "done" if cursor.done else f"next={cursor.year}-{cursor.month + 1:02d}"
            print(f"[dry-run] Would reset: {reminder_id}  ({state})")
        return len(cursors)

    deleted = reminder_storage.delete_all_cursors()
    for reminder_id in deleted:
        print(f"Reset cursor: {reminder_id}")
    return len(deleted)


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    parser = argparse.ArgumentParser(
        description="Discard stored reminder projection cursors",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="List the cursors that would be reset without deleting them",
    )
    args = parser.parse_args(argv)

    try:
        count = reset_cursors(dry_run=args.dry_run)
    except Exception:
        logger.exception("Cursor reset failed")
        sys.exit(1)
    print(f"\nTotal: {count} cursors {'would be ' if args.dry_run else ''}reset.")


if __name__ == "__main__":
    main()
