"""Command-line entry point for the intake access layer.

Usage:
  python main.py --health-check          Bootstrap a credential and report its lifetime.
  python main.py GET /trusts/123         Execute one authenticated request.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence

from .application_context import AccessContext
from .errors.handling import log_error
from .errors.internal import AccessError, AuthenticationFailure, IssuanceError
from .logging_config import LoggerConfigurator
from .utils import format_duration, seconds_until


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intake-access",
        description="Authenticated access to the intake API",
    )
    parser.add_argument("--health-check", action="store_true", help="bootstrap a credential and exit")
    parser.add_argument("method", nargs="?", help="HTTP method, e.g. GET")
    parser.add_argument("path", nargs="?", help="path relative to AUTH_API_URL, or an absolute URL")
    parser.add_argument("--json", dest="json_body", help="JSON request body")
    return parser


async def health_check() -> int:
    async with await AccessContext.create() as ctx:
        credential = ctx.store.read()
        remaining = seconds_until(credential.expires_at) if credential else None
        logging.info(f"✅ Health check passed - credential lifetime {format_duration(remaining)}")
    return 0


async def run_request(method: str, path: str, json_body: str | None) -> int:
    body = json.loads(json_body) if json_body else None
    async with await AccessContext.create() as ctx:
        response = await ctx.execute(ctx.build_request(method, path, json=body))
        logging.info(f"📬 {method.upper()} {path} status={response.status}")
        sys.stdout.write(response.text())
        sys.stdout.write("\n")
        return 0 if response.ok else 1


async def main(argv: Sequence[str] | None = None) -> int:
    """Main function"""
    args = build_parser().parse_args(argv)
    if args.health_check:
        return await health_check()
    if not args.method or not args.path:
        build_parser().print_usage(sys.stderr)
        return 2
    return await run_request(args.method, args.path, args.json_body)


def cli(argv: Sequence[str] | None = None) -> int:
    LoggerConfigurator().configure()
    try:
        return asyncio.run(main(argv))
    except KeyboardInterrupt:
        logging.warning("⌨️ Interrupted by user")
        return 130
    except (IssuanceError, AuthenticationFailure) as e:
        # Already counted where it was raised.
        logging.error(f"❌ Authentication required: {e}")
        return 3
    except AccessError as e:
        log_error("Access layer error", e)
        return 1
    except ValueError as e:
        logging.error(f"❌ Invalid input: {e}")
        return 2
