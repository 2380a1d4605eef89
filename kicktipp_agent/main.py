import argparse
import asyncio
import logging
import sys
from datetime import date
from typing import List, Optional

from dotenv import load_dotenv

from kicktipp_agent.src.tools.collect_context import (
    load_documents_from_directory,
    save_context_documents,
)
from kicktipp_agent.src.utils.context_repository import JsonFileContextRepository
from kicktipp_agent.src.utils.kicktipp_client import KicktippClient
from kicktipp_agent.src.utils.settings import RepositorySettings, get_setting

load_dotenv()

logger = logging.getLogger(__name__)


async def login_check(path: str) -> int:
    """Log in with the configured credentials and fetch one page."""
    async with KicktippClient.from_settings() as client:
        response = await client.get(path)
        print(f"\nSession: {client.session.state.value}")
        print(f"Fetched {response.url} -> {response.status_code}")
        return 0 if response.is_success else 1


async def collect_history(
    directory: str, community: str, collected_date: Optional[str], dry_run: bool
) -> int:
    documents = load_documents_from_directory(directory)
    if not documents:
        print(f"\nNo CSV documents found in {directory}")
        return 0

    print(f"\nFound {len(documents)} documents for community {community}")

    settings = get_setting(RepositorySettings)
    repository = JsonFileContextRepository(settings.context_repository_dir)
    summary = await save_context_documents(
        repository,
        documents,
        community,
        collected_date=collected_date,
        dry_run=dry_run,
    )

    if summary.dry_run:
        print(f"Dry run completed - would have processed {summary.total} documents")
        return 0

    print("Context collection completed!")
    print(f"  Saved: {len(summary.saved)} documents")
    print(f"  Skipped: {len(summary.skipped)} documents (unchanged)")
    if summary.failed:
        print(f"  Failed: {', '.join(summary.failed)}")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Collect kicktipp.de context documents"
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser(
        "login-check", help="Log in and fetch a page to verify the credentials"
    )
    login_parser.add_argument("--path", default="/")

    collect_parser = subparsers.add_parser(
        "collect-history", help="Store CSV context documents from a directory"
    )
    collect_parser.add_argument("directory")
    collect_parser.add_argument("--community", required=True)
    collect_parser.add_argument(
        "--date", default=None, help="Collection date, defaults to today (YYYY-MM-DD)"
    )
    collect_parser.add_argument("--dry-run", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the kicktipp agent CLI."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        if args.command == "login-check":
            return asyncio.run(login_check(args.path))

        if args.date is not None:
            # fail before anything is stored
            date.fromisoformat(args.date)
        return asyncio.run(
            collect_history(args.directory, args.community, args.date, args.dry_run)
        )
    except KeyboardInterrupt:
        print("\n\nCancelled by user.")
        return 1
    except Exception as e:
        logger.error(f"Error executing {args.command}: {e}")
        print(f"\nError: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
