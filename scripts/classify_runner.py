"""Periodic entry point: classify one batch of photos and exit.

Intended for cron, e.g. ``*/5 * * * * python -m scripts.classify_runner``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from phototagger.config import Settings
from phototagger.db import SessionLocal, init_db
from phototagger.logger import setup_logging
from phototagger.services import queries
from phototagger.services.orchestrator import run_batch


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"limit must be at least 1, got {number}")
    return number


def main(argv: list[str] | None = None) -> int:
    settings = Settings()
    parser = argparse.ArgumentParser(description="Classify a batch of photos")
    parser.add_argument(
        "--limit",
        type=_positive_int,
        default=settings.classify_batch_limit,
        help="maximum photos to classify in this run",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="print classification status counts and exit",
    )
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if settings.debug else logging.INFO)
    init_db(settings)

    if args.stats:
        with SessionLocal() as db:
            summary = queries.classification_stats(db)
        print(json.dumps(summary.model_dump()))
        return 0

    try:
        stats = run_batch(args.limit)
    except Exception:
        logging.exception("Critical error in classification batch")
        return 1
    print(json.dumps(stats.model_dump()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
