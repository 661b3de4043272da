"""Command line entry point for eGuard.

Validates a configuration and evaluates single requests against it, useful
when writing ``secure_routes`` patterns or checking a trust-service
deployment before wiring a guard into a host.

Usage:
    eguard routes [--config PATH]
    eguard check --path /admin/users --method get \\
        [--cookie "sid=abc123"] [--header "Authorization: Bearer abc123"] \\
        [--config PATH]

Exit codes:
    0 — success
    1 — configuration error (message on stderr, prefixed ``CONFIG ERROR:``)
    2 — trust service error during ``check``
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from eguard.config import load_config
from eguard.decision.engine import evaluate
from eguard.errors import ConfigError, TrustServiceError
from eguard.guard import EGuard
from eguard.models.decision import Deny
from eguard.utils.logger import configure_logging

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_TRUST_ERROR = 2

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eguard",
        description="eGuard — trust-score request authorization",
    )
    parser.add_argument("--config", help="Path to config.yaml (default: search path)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level (default: WARNING)",
    )
    parser.add_argument(
        "--console-logs", action="store_true", help="Human-readable logs instead of JSON"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("routes", help="Compile and list the configured secure routes")

    check = sub.add_parser("check", help="Evaluate one request against the configuration")
    check.add_argument("--path", required=True, help="Request path, e.g. /admin/users")
    check.add_argument("--method", default="GET", help="HTTP method (default: GET)")
    check.add_argument("--cookie", help="Raw Cookie header value")
    check.add_argument("--header", help='Session header as "Name: value"')
    return parser


def _parse_header(raw: Optional[str]) -> Optional[tuple[str, str]]:
    if raw is None:
        return None
    name, sep, value = raw.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f'--header must look like "Name: value", got {raw!r}')
    return name.strip(), value.strip()


async def _list_routes(guard: EGuard) -> int:
    if not guard.routes:
        print("(no secure routes configured)")
    for route in guard.routes:
        methods = ",".join(sorted(route.methods)) if route.methods else "*"
        print(f"{methods:<24} {route.pattern}")
    return EXIT_OK


async def _check(guard: EGuard, args: argparse.Namespace) -> int:
    secure = guard.is_secure(args.path, args.method)
    print(f"secure:     {secure}")
    if not secure:
        return EXIT_OK

    session_id = guard.extract_session_id(args.cookie, _parse_header(args.header))
    print(f"session_id: {session_id if session_id is not None else '(none)'}")
    if not session_id:
        return EXIT_OK

    try:
        trust = await guard.fetch_trust(session_id)
    except TrustServiceError as exc:
        print(f"TRUST ERROR: {exc.message}", file=sys.stderr)
        return EXIT_TRUST_ERROR

    decision = evaluate(trust, guard.config.min_trust_score)
    print(f"trust:      {trust.trust_score} (reason: {trust.reason})")
    print(f"decision:   {'allow' if decision.allowed else 'deny'}")
    if isinstance(decision, Deny):
        print(f"detail:     {decision.message}")
    return EXIT_OK


async def _run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    async with EGuard(config) as guard:
        if args.command == "routes":
            return await _list_routes(guard)
        return await _check(guard, args)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, run the command, return the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_output=not args.console_logs)

    try:
        _parse_header(getattr(args, "header", None))
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))

    try:
        return asyncio.run(_run(args))
    except ConfigError as exc:
        print(f"CONFIG ERROR: {exc.message}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
