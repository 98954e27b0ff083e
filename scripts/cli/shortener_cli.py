#!/usr/bin/env python3
"""
Command-line interface for the shortener.

Operates directly on the configured storage backend (database DSN, then
file path, then memory).

Usage:
    python shortener_cli.py shorten <url> [--user ID]
    python shortener_cli.py batch <url> [<url> ...] [--user ID]
    python shortener_cli.py get <code>
    python shortener_cli.py history --user ID
    python shortener_cli.py delete <code> [<code> ...] --user ID
    python shortener_cli.py stats
    python shortener_cli.py health
"""

import argparse
import asyncio
import json
import os
import sys
from typing import List, Optional

# Add repository root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from shortener.coder import Coder, build_coder
from shortener.config import load_config
from shortener.common.logging_config import setup_logging
from shortener.errors import ConflictError, ShortenerError


class ShortenerCLI:
    """Command-line interface for the shortener."""

    def __init__(
        self,
        database_dsn: Optional[str] = None,
        file_storage_path: Optional[str] = None,
        verbose: bool = False,
    ):
        """Initialize CLI."""
        overrides = {}
        if database_dsn:
            overrides["database_dsn"] = database_dsn
        if file_storage_path:
            overrides["file_storage_path"] = file_storage_path
        self.config = load_config(**overrides)
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.coder: Optional[Coder] = None

    async def initialize(self):
        """Initialize storage and coder."""
        self.coder = await build_coder(self.config, logger=self.logger)

    async def cleanup(self):
        """Cleanup resources."""
        if self.coder:
            await self.coder.close()

    def _print(self, payload: dict, ok: bool = True) -> int:
        print(json.dumps(payload, indent=2), file=sys.stdout if ok else sys.stderr)
        return 0 if ok else 1

    def _error(self, e: Exception) -> int:
        return self._print({"success": False, "error": str(e), "type": type(e).__name__}, ok=False)

    async def shorten(self, url: str, user_id: int):
        """Shorten a URL."""
        try:
            code = await self.coder.to_code(url, user_id)
            return self._print({"success": True, "code": code, "original_url": url})
        except ConflictError as e:
            return self._print({"success": True, "code": e.code, "original_url": url, "existing": True})
        except ShortenerError as e:
            return self._error(e)

    async def batch(self, urls: List[str], user_id: int):
        """Shorten several URLs."""
        try:
            codes = await self.coder.to_codes(urls, user_id)
        except ShortenerError as e:
            return self._error(e)
        return self._print({
            "success": True,
            "urls": [{"code": code, "original_url": url} for code, url in zip(codes, urls)],
        })

    async def get(self, code: str, user_id: int):
        """Get original URL for a short code."""
        try:
            uri = await self.coder.to_uri(code, user_id)
        except ShortenerError as e:
            return self._error(e)
        return self._print({"success": True, "code": code, "original_url": uri})

    async def history(self, user_id: int):
        """List a user's URLs."""
        try:
            entries = await self.coder.get_history(user_id)
        except ShortenerError as e:
            return self._error(e)
        return self._print({
            "success": True,
            "count": len(entries),
            "urls": [{"code": e.code, "original_url": e.original_uri} for e in entries],
        })

    async def delete(self, codes: List[str], user_id: int):
        """Delete a user's URLs and apply the deletion before exiting."""
        await self.coder.delete_urls(codes, user_id)
        applied = await self.coder.flush_deletions()
        return self._print({"success": True, "requested": len(codes), "applied": applied})

    async def stats(self):
        """Print storage statistics."""
        try:
            stats = await self.coder.get_stats()
        except ShortenerError as e:
            return self._error(e)
        return self._print({"success": True, "urls": stats.urls, "users": stats.users})

    async def health(self):
        """Check storage health."""
        try:
            await self.coder.health_check(timeout=self.config.health_timeout_seconds)
        except ShortenerError as e:
            return self._error(e)
        return self._print({"success": True, "storage": self.coder.storage.name})


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Shortener CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shorten a URL into a JSON file store
  %(prog)s --file-storage-path /tmp/short.json shorten https://example.com/long/url

  # Resolve a code
  %(prog)s --file-storage-path /tmp/short.json get AbCd1234

  # Delete codes owned by user 7
  %(prog)s --database-dsn postgresql://localhost/shortener delete AbCd1234 --user 7
        """
    )

    parser.add_argument(
        "--database-dsn",
        default=os.getenv("DATABASE_DSN"),
        help="PostgreSQL DSN (default: from DATABASE_DSN env)"
    )

    parser.add_argument(
        "--file-storage-path",
        default=os.getenv("FILE_STORAGE_PATH"),
        help="JSON storage file (default: from FILE_STORAGE_PATH env)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--user", type=int, default=0, help="Owner user id")

    batch_parser = subparsers.add_parser("batch", help="Shorten several URLs")
    batch_parser.add_argument("urls", nargs="+", help="URLs to shorten")
    batch_parser.add_argument("--user", type=int, default=0, help="Owner user id")

    get_parser = subparsers.add_parser("get", help="Get original URL")
    get_parser.add_argument("code", help="Short code to lookup")
    get_parser.add_argument("--user", type=int, default=0, help="Requesting user id")

    history_parser = subparsers.add_parser("history", help="List a user's URLs")
    history_parser.add_argument("--user", type=int, required=True, help="Owner user id")

    delete_parser = subparsers.add_parser("delete", help="Delete a user's URLs")
    delete_parser.add_argument("codes", nargs="+", help="Short codes to delete")
    delete_parser.add_argument("--user", type=int, required=True, help="Owner user id")

    subparsers.add_parser("stats", help="Show storage statistics")
    subparsers.add_parser("health", help="Check storage health")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    cli = ShortenerCLI(
        database_dsn=args.database_dsn,
        file_storage_path=args.file_storage_path,
        verbose=args.verbose,
    )

    try:
        await cli.initialize()

        if args.command == "shorten":
            return await cli.shorten(args.url, args.user)
        elif args.command == "batch":
            return await cli.batch(args.urls, args.user)
        elif args.command == "get":
            return await cli.get(args.code, args.user)
        elif args.command == "history":
            return await cli.history(args.user)
        elif args.command == "delete":
            return await cli.delete(args.codes, args.user)
        elif args.command == "stats":
            return await cli.stats()
        elif args.command == "health":
            return await cli.health()
        else:
            parser.print_help()
            return 1

    except ShortenerError as e:
        return cli._error(e)
    finally:
        await cli.cleanup()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
