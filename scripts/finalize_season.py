#!/usr/bin/env python3
"""
Close a venue's season.

Ranks the venue's participants, appends the season record to the venue
history and awards each participant a season achievement.

Usage:
    python scripts/finalize_season.py pingpong room-1
    python scripts/finalize_season.py pingpong room-1 --attribute-by id
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from matchroom.db import SqlGateway, get_session
from matchroom.exceptions import NotFoundError
from matchroom.logging_setup import configure_logging
from matchroom.modes import Sport
from matchroom.season import WinnerAttribution, finalize_season


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Finalize the current season of a venue.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("sport", choices=[s.value for s in Sport], help="Activity of the venue.")
    parser.add_argument("venue_id", help="Venue to finalize.")
    parser.add_argument(
        "--attribute-by",
        choices=[a.value for a in WinnerAttribution],
        default=WinnerAttribution.NAME.value,
        help="Credit wins by winner name (default) or participant id.",
    )
    return parser


def main() -> int:
    args = _build_parser().parse_args()
    configure_logging()

    try:
        with get_session() as session:
            record = finalize_season(
                SqlGateway(session),
                args.sport,
                args.venue_id,
                attribute_by=WinnerAttribution(args.attribute_by),
            )
    except NotFoundError as exc:
        print(f"ERROR: {exc}")
        return 1

    if record is None:
        print(f"No matches at {args.venue_id}, nothing to finalize.")
        return 0

    print(f"Season of {record.venue_name} finished {record.date_finished}")
    print("-" * 60)
    for row in record.rows:
        print(
            f"{row.place:>3}. {row.name:<24} score={row.final_score:8.2f} "
            f"W/L={row.wins}/{row.losses} streak={row.longest_win_streak}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
