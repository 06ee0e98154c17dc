"""Reverse index backfill command

Rebuilds the url:<md5(url)> reverse index entries for every stored mapping
against whichever backend the selector picks (REST KV, Redis, or in-memory).

CLI usage:
    $ shorturl-backfill
    $ shorturl-backfill --env-file .env.production --log-level DEBUG
    $ shorturl-backfill --dry-run

Behavior:
    - Loads environment variables from --env-file (default: .env.local) without
      overriding variables already set in the process environment.
    - Prints a one-line JSON summary to stdout:
        {"backend": "redis", "dryRun": false, "scanned": 3, "created": 3, ...}
    - Exits with 0 on success, 1 on configuration or data store errors.
"""

import sys
import json
import asyncio
import logging
import argparse

from dotenv import load_dotenv

from shorturl.config import StorageConfig, build_selector
from shorturl.backfill import backfill_reverse_index
from shorturl.dao.key_schema import KeySchema
from shorturl.dao.exceptions import DAOError
from shorturl.exceptions import ConfigurationError
from shorturl.utils.logging import initialize_logging


logger = logging.getLogger(__name__)


async def _run(config: StorageConfig, dry_run: bool) -> dict:
    selector = build_selector(config)
    try:
        store = await selector.acquire_store()
        report = await backfill_reverse_index(store, keys=KeySchema(config.key_prefix), dry_run=dry_run)
        return {'backend': store.name, 'dryRun': dry_run, **report.to_dict()}
    finally:
        await selector.close()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Steps:
        - Parse CLI arguments
        - Load the env file and initialize logging
        - Build the backend selector and run the backfill on the selected store

    Returns:
        int: process exit code
    """
    parser = argparse.ArgumentParser(
        prog='shorturl-backfill',
        description='Create or repair the reverse index (url:<md5> -> short ID) for every stored short URL',
    )
    parser.add_argument(
        '--env-file',
        default='.env.local',
        help='Dotenv file to load before reading the configuration (default: .env.local)',
    )
    parser.add_argument(
        '--log-level',
        default=None,
        type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Log level, overrides LOG_LEVEL (e.g., DEBUG, INFO, WARNING)',
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Report what would be written without writing anything',
    )
    args = parser.parse_args(argv)

    env_loaded = load_dotenv(args.env_file, override=False)
    try:
        initialize_logging(args.log_level)
    except ConfigurationError as e:
        print(e, file=sys.stderr)
        return 1
    if env_loaded:
        logger.debug('Loaded environment file.', extra={'envFile': args.env_file})

    try:
        config = StorageConfig.from_env()
        summary = asyncio.run(_run(config, args.dry_run))
    except (ConfigurationError, DAOError) as e:
        logger.error('Reverse index backfill failed.', extra={'error': str(e), 'errorType': type(e).__name__})
        return 1

    print(json.dumps(summary))
    return 0


if __name__ == '__main__':  # pragma: no cover
    sys.exit(main())
