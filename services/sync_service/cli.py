"""Command line entry point for scheduled and manual syncs."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from services.sync_service.orchestrator import create_orchestrator
from shared.config import ConfigurationError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notion-blog-sync",
        description="Synchronize Notion database pages into blog Markdown articles.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Sync new and updated pages")
    sync_parser.add_argument(
        "--full",
        action="store_true",
        help="Reprocess every page, ignoring the last sync time",
    )

    subparsers.add_parser("check", help="Show what a sync would change without writing")
    subparsers.add_parser("migrate-images", help="Download remote images of existing articles")

    return parser


async def _sync(full_sync: bool) -> None:
    orchestrator = create_orchestrator()
    try:
        result = await orchestrator.execute_sync(full_sync=full_sync)
    finally:
        await orchestrator.aclose()

    print("Sync completed:")
    print(f"  new:     {result.new}")
    print(f"  updated: {result.updated}")
    print(f"  skipped: {result.skipped}")
    print(f"  deleted: {result.deleted}")
    print(f"  total:   {result.total}")
    for error in result.errors:
        print(f"  error: {error}")


async def _check() -> None:
    orchestrator = create_orchestrator()
    try:
        plan = await orchestrator.check_updates()
    finally:
        await orchestrator.aclose()

    print(f"New pages ({len(plan.new)}):")
    for summary in plan.new:
        print(f"  {summary.title}  (edited {summary.last_edited_time.isoformat()})")
    print(f"Updated pages ({len(plan.updated)}):")
    for summary in plan.updated:
        print(f"  {summary.title}  (edited {summary.last_edited_time.isoformat()})")
    print(f"Unchanged pages: {len(plan.unchanged)}")
    if plan.deleted:
        print(f"Pages to delete ({len(plan.deleted)}): {', '.join(plan.deleted)}")
    if not plan.new and not plan.updated and not plan.deleted:
        print("All articles are up to date.")


async def _migrate_images() -> None:
    orchestrator = create_orchestrator()
    try:
        updated = await orchestrator.migrate_images()
    finally:
        await orchestrator.aclose()
    print(f"Image migration completed: {updated} articles updated")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv(".env.local")
    load_dotenv()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if args.command == "sync":
        command = _sync(full_sync=args.full)
    elif args.command == "check":
        command = _check()
    else:
        command = _migrate_images()

    try:
        asyncio.run(command)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
