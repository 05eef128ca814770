"""
Command-line interface for running Ledge drivers by hand.

Runs any batch driver once against the configured database and prints its
counters and run log.

Usage:
    python -m ledge.cli.pipeline_cli init-db
    python -m ledge.cli.pipeline_cli nightly-scoring
    python -m ledge.cli.pipeline_cli import-bills --count 10 --offset 40
    python -m ledge.cli.pipeline_cli match-existing --email someone@example.org
    python -m ledge.cli.pipeline_cli newsletter --test-email me@example.org
    python -m ledge.cli.pipeline_cli --help
"""

import asyncio
import argparse
import json
import logging
from pathlib import Path
from typing import Optional

from ..db.repositories import SubscriberRepository
from ..db.session import Database
from ..llm.relevance import get_relevance_engine
from ..models.results import DriverResult
from ..orchestration import jobs
from ..orchestration.explore import ExploreDriver
from ..orchestration.matching import MatchExistingDriver
from ..orchestration.snapshots import SubscriberRef
from ..adapters.legiscan_adapter import LegiScanAdapter


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def print_result(name: str, result: DriverResult, output_file: Optional[str]) -> int:
    """Print a driver result; returns the process exit code."""
    print("\n" + "=" * 60)
    print(f"Ledge - {name}")
    print("=" * 60)
    print(f"Success: {result.success}")
    print(f"Duration: {result.duration_seconds:.2f}s")
    print(f"Stopped early: {result.stopped_early}")
    for key, value in result.counts().items():
        print(f"  {key}: {value}")
    if result.error:
        print(f"\nError: {result.error}")

    if result.log:
        print("\nRun log (last 20 lines):")
        for line in result.log[-20:]:
            print(f"  {line}")

    if output_file:
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(result.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
        print(f"\nResults saved to: {output_path.absolute()}")

    print("=" * 60 + "\n")
    return 0 if result.success else 1


async def load_subscriber(db: Database, email: str) -> Optional[SubscriberRef]:
    async with db.session() as session:
        model = await SubscriberRepository(session).get_by_email(email)
        if model is None or not (model.org_goal or "").strip():
            return None
        return SubscriberRef.from_model(model)


async def run_command(args: argparse.Namespace) -> int:
    db = Database()
    await db.initialize()

    try:
        if args.command == "init-db":
            await db.create_tables()
            print("Tables created")
            return 0

        if args.command == "daily-bill":
            result = await jobs.run_daily_bill(db)
        elif args.command == "import-bills":
            result = await jobs.run_import_bills(db, count=args.count, offset=args.offset)
        elif args.command == "nightly-scoring":
            result = await jobs.run_nightly_scoring(db)
        elif args.command == "bill-status":
            result = await jobs.run_bill_status(db)
        elif args.command == "bill-updates":
            result = await jobs.run_bill_updates(db)
        elif args.command == "newsletter":
            result = await jobs.run_newsletter(db, test_email=args.test_email)
        elif args.command == "match-existing":
            subscriber = await load_subscriber(db, args.email)
            if subscriber is None:
                print(f"No onboarded subscriber with email {args.email}")
                return 1
            result = await MatchExistingDriver(db, get_relevance_engine()).run(subscriber)
        elif args.command == "explore":
            result = await ExploreDriver(db, get_relevance_engine()).explore_topic(args.query)
            for hit in result.results:
                print(f"  {hit.explore_score:3d}  {hit.bill_id}  {hit.title[:70]}")
        elif args.command == "explore-state":
            subscriber = await load_subscriber(db, args.email)
            if subscriber is None:
                print(f"No onboarded subscriber with email {args.email}")
                return 1
            legiscan = LegiScanAdapter()
            try:
                result = await ExploreDriver(db, get_relevance_engine(), legiscan=legiscan).explore_state(
                    subscriber, args.state
                )
            finally:
                await legiscan.close()
        else:
            raise ValueError(f"Unknown command: {args.command}")

        return print_result(args.command, result, args.output)

    finally:
        await db.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run Ledge batch drivers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create tables in the configured database
  python -m ledge.cli.pipeline_cli init-db

  # Import 10 bills starting at offset 40 and score them
  python -m ledge.cli.pipeline_cli import-bills --count 10 --offset 40

  # Send the newsletter to one address only
  python -m ledge.cli.pipeline_cli newsletter --test-email me@example.org

  # Serve all scheduled Prefect flows
  python -m ledge.cli.pipeline_cli serve
        """
    )
    parser.add_argument("--output", type=str, help="Save the driver result to a JSON file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging (DEBUG level)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="Create database tables")
    sub.add_parser("daily-bill", help="Ingest new bills")
    sub.add_parser("nightly-scoring", help="Score recent bills for every subscriber")
    sub.add_parser("bill-status", help="Refresh federal bill statuses")
    sub.add_parser("bill-updates", help="Append update notices to changed bills")
    sub.add_parser("serve", help="Serve scheduled Prefect flows (blocks)")

    newsletter = sub.add_parser("newsletter", help="Send the daily newsletter")
    newsletter.add_argument("--test-email", type=str, help="Send only to this address")

    import_bills = sub.add_parser("import-bills", help="Bulk import bills by offset")
    import_bills.add_argument("--count", type=int, default=20, help="Bills to import (1-50, default: 20)")
    import_bills.add_argument("--offset", type=int, default=0, help="Listing offset (default: 0)")

    match_existing = sub.add_parser("match-existing", help="Backfill matches for one subscriber")
    match_existing.add_argument("--email", type=str, required=True)

    explore = sub.add_parser("explore", help="Quick-score bills against a topic")
    explore.add_argument("--query", type=str, required=True)

    explore_state = sub.add_parser("explore-state", help="Discover and match state bills")
    explore_state.add_argument("--email", type=str, required=True)
    explore_state.add_argument("--state", type=str, required=True, help="Two-letter state code")

    return parser


def main():
    """Main CLI entry point"""
    args = build_parser().parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    if args.command == "serve":
        from ..prefect_flows.scheduled_flows import serve_all
        serve_all()
        return

    exit_code = asyncio.run(run_command(args))
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
