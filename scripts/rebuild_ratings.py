#!/usr/bin/env python3
"""
Rebuild ratings from the match log.

Replays every match of an activity in timestamp order, rewrites match
annotations, venue member state and participant ratings, then resets venue
season histories and season achievements.

Rebuild one activity:
    python scripts/rebuild_ratings.py pingpong

Rebuild several, committing every 200 writes:
    python scripts/rebuild_ratings.py pingpong badminton --batch-size 200

Dry run (replay and report without writing anything):
    python scripts/rebuild_ratings.py pingpong --dry-run
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from matchroom.db import get_session
from matchroom.elo.updater import RatingUpdater
from matchroom.logging_setup import configure_logging
from matchroom.modes import Sport

logger = logging.getLogger("rebuild_ratings")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rebuild ratings for one or more activities.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "sports",
        nargs="+",
        choices=[s.value for s in Sport],
        help="Activities to rebuild.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Replay and report without writing to the database.",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Writes per committed batch (default: MATCHROOM_REBUILD_BATCH_SIZE or 400).",
    )
    parser.add_argument(
        "--metrics-json",
        default=None,
        help="Write a JSON summary to this path on completion.",
    )
    return parser


def main() -> int:
    args = _build_parser().parse_args()
    configure_logging()

    if args.batch_size is not None and args.batch_size <= 0:
        print("ERROR: --batch-size must be greater than 0")
        return 1

    started_at = _utc_now_iso()
    print(f"RATING REBUILD  sports={','.join(args.sports)}  dry_run={args.dry_run}  started={started_at}")
    print("-" * 60)

    t_start = perf_counter()
    results = []
    with get_session() as session:
        updater = RatingUpdater.from_session(session)
        for sport in args.sports:
            result = updater.rebuild(sport, batch_size=args.batch_size, dry_run=args.dry_run)
            results.append(result)
            print(
                f"{sport:<10} processed={result.processed} skipped={result.skipped} "
                f"batches={result.batches_committed}"
            )
        if args.dry_run:
            session.rollback()
            print("(dry run, nothing written)")

    elapsed = perf_counter() - t_start
    print("-" * 60)
    print(f"Processed:  {sum(r.processed for r in results)}")
    print(f"Skipped:    {sum(r.skipped for r in results)}")
    print(f"Elapsed:    {elapsed:.2f}s")

    if args.metrics_json:
        payload = {
            "status": "success",
            "dry_run": args.dry_run,
            "started_at": started_at,
            "elapsed_s": round(elapsed, 3),
            "results": [asdict(r) for r in results],
        }
        metrics_path = Path(args.metrics_json)
        metrics_path.parent.mkdir(parents=True, exist_ok=True)
        metrics_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        logger.info("Metrics written to %s", metrics_path)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
