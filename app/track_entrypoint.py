"""Tracking entrypoint - run wallet initialization or round-up tracking from the shell.

Usage:
    python -m app.track_entrypoint init <address>
    python -m app.track_entrypoint track <address> [--limit 100] [--reprocess]
    python -m app.track_entrypoint total <address>
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.db import SessionLocal
from app.core.errors import RoundupError
from app.core.logging import get_logger
from app.ingestion.helius_source import build_transfer_source
from app.services.price_service import build_price_oracle
from app.services.tracking_service import RoundupTracker

logger = get_logger("track_entrypoint")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Round-up tracking jobs")
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Record the wallet's newest transaction as its baseline")
    init.add_argument("address")

    track = sub.add_parser("track", help="Record round-ups for transfers since the baseline")
    track.add_argument("address")
    track.add_argument("--limit", type=int, default=settings.TRACK_DEFAULT_LIMIT)
    track.add_argument("--reprocess", action="store_true", help="Ignore the baseline and rescan history")

    total = sub.add_parser("total", help="Print the accumulated round-up total")
    total.add_argument("address")
    return parser


async def run_command(args: argparse.Namespace) -> Dict[str, Any]:
    with SessionLocal() as db:
        tracker = RoundupTracker(
            db,
            build_price_oracle(settings),
            build_transfer_source(settings),
            fetch_attempts=settings.TRANSFER_FETCH_ATTEMPTS,
            retry_delay=settings.TRANSFER_RETRY_DELAY_SECONDS,
            price_timeout=settings.PRICE_TIMEOUT_SECONDS,
            investment_threshold=settings.INVESTMENT_THRESHOLD_USD,
        )

        if args.command == "init":
            result = await tracker.initialize_wallet(args.address)
            return result.model_dump(mode="json")
        if args.command == "track":
            result = await tracker.track_roundups(args.address, limit=args.limit, reprocess=args.reprocess)
            return result.model_dump(mode="json")

        total = tracker.get_total(args.address)
        return {
            "wallet_address": args.address,
            "total_roundup": str(total),
            "is_ready_for_investment": total >= settings.INVESTMENT_THRESHOLD_USD,
        }


def main(argv: Optional[List[str]] = None) -> Dict[str, Any]:
    args = build_parser().parse_args(argv)
    logger.info(f"Running '{args.command}' for {args.address}")

    try:
        result = asyncio.run(run_command(args))
    except RoundupError as exc:
        logger.error(f"'{args.command}' failed: {exc.kind}: {exc.message} ({exc.detail})")
        print(json.dumps(exc.to_dict(), indent=2))
        sys.exit(1)

    print(json.dumps(result, indent=2))
    return result


if __name__ == "__main__":
    main()
