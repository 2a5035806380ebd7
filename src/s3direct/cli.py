"""CLI entry point for s3direct."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx

from s3direct.client import S3Client
from s3direct.config import S3DirectConfig, load_config
from s3direct.errors import ConfigurationError, InvalidRequest, StoreRequestFailed
from s3direct.logging_config import configure_logging
from s3direct.metrics import init_metrics
from s3direct.policy import generate_upload_policy
from s3direct.presign import readable_url, verify_readable_url
from s3direct.urls import upload_url_path

logger = logging.getLogger("s3direct")

EXIT_CONFIG_ERROR = 1
EXIT_STORE_ERROR = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="s3direct",
        description="s3direct - SigV4 signing for direct S3 access",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("s3direct.yaml"),
        help="Path to YAML configuration file (default: s3direct.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    presign = sub.add_parser("presign", help="Print a presigned GET URL")
    presign.add_argument("path", help="Object path, e.g. /uploads/a.png")
    presign.add_argument(
        "--expires", type=int, default=3600, help="Validity in seconds (default: 3600)"
    )

    policy = sub.add_parser("policy", help="Print a signed upload policy as JSON")
    policy.add_argument("prefix", help="Key prefix uploads must start with")

    delete = sub.add_parser("delete", help="Delete an object from the bucket")
    delete.add_argument("path", help="Object path, e.g. /uploads/a.png")

    parse_url = sub.add_parser("parse-url", help="Extract the object path from an S3 URL")
    parse_url.add_argument("url")

    verify = sub.add_parser("verify", help="Check a presigned GET URL against the config")
    verify.add_argument("url")

    return parser.parse_args(argv)


async def _delete(config: S3DirectConfig, path: str) -> None:
    async with S3Client(config.s3, timeout=config.client.timeout) as client:
        await client.delete_file(path)


def run(args: argparse.Namespace, config: S3DirectConfig) -> int:
    """Execute the selected subcommand and return the exit status."""
    if args.command == "presign":
        print(readable_url(config.s3, args.expires, args.path))
    elif args.command == "verify":
        if not verify_readable_url(config.s3, args.url):
            print("invalid")
            return EXIT_CONFIG_ERROR
        print("valid")
    elif args.command == "policy":
        policy = generate_upload_policy(config.s3, args.prefix)
        if policy is None:
            logger.error("No secret key configured; upload policies are disabled")
            return EXIT_CONFIG_ERROR
        print(json.dumps(policy.as_dict(), indent=2))
    elif args.command == "delete":
        try:
            asyncio.run(_delete(config, args.path))
        except (StoreRequestFailed, httpx.HTTPError) as exc:
            logger.error("Delete failed: %s", exc)
            return EXIT_STORE_ERROR
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the s3direct CLI.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)

    # parse-url needs no configuration
    if args.command == "parse-url":
        path = upload_url_path(args.url)
        if path is None:
            sys.exit(EXIT_CONFIG_ERROR)
        print(path)
        return

    # Use a basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    try:
        config = load_config(args.config)
    except FileNotFoundError:
        logger.error("Config file not found: %s", args.config)
        sys.exit(EXIT_CONFIG_ERROR)
    except ConfigurationError as exc:
        logger.error("%s", exc.message)
        sys.exit(EXIT_CONFIG_ERROR)

    configure_logging(
        level=args.log_level or config.logging.level,
        fmt=args.log_format or config.logging.format,
    )
    if config.metrics.enabled:
        init_metrics()

    try:
        status = run(args, config)
    except (ConfigurationError, InvalidRequest) as exc:
        logger.error("%s", exc.message)
        status = EXIT_CONFIG_ERROR
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
