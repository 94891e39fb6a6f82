#!/usr/bin/env python3
"""Dump everything the pyfeed store holds after a full refresh.

This script logs in, loads the user directory and the posts, and prints
the resulting normalized state (ids, entities and lifecycle status per
slice) so you can check what a given backend produces.

Usage
-----
Point the client at a backend and run::

    export FEED_BASE_URL="http://localhost:3000"
    python scripts/dump_feed.py --username 0

Options::

    --username NAME      Log in as NAME before fetching (default: no login)
    --user-id ID         Also list the posts authored by user ID
    --json               Output as machine-readable JSON
    --output FILE        Write output to FILE instead of stdout
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyfeed import FeedClient, FeedConfig  # noqa: E402
from pyfeed.features.auth import select_current_username  # noqa: E402
from pyfeed.features.posts import (  # noqa: E402
    select_all_posts,
    select_posts_by_user,
    select_posts_error,
    select_posts_status,
)
from pyfeed.features.users import select_all_users, select_users_error, select_users_status  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _slice_summary(status: Any, error: str | None, records: list[Any]) -> dict[str, Any]:
    return {
        "status": str(status),
        "error": error,
        "count": len(records),
        "records": [record.model_dump(mode="json") for record in records],
    }


def _print_slice(name: str, summary: dict[str, Any], out: list[str]) -> None:
    out.append(_section(name))
    out.append(f"  status : {summary['status']}")
    if summary["error"]:
        out.append(f"  error  : {summary['error']}")
    out.append(f"  count  : {summary['count']}")
    for record in summary["records"]:
        out.append(f"    - {json.dumps(record, ensure_ascii=False)}")


# ── main ─────────────────────────────────────────────────────


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Dump the pyfeed store after login and a full refresh.",
    )
    parser.add_argument("--username", help="Log in as NAME before fetching")
    parser.add_argument("--user-id", help="Also list the posts authored by this user id")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = FeedConfig.from_env(log_actions=args.verbose)
    result: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "base_url": config.base_url,
    }

    async with FeedClient(config) as client:
        if args.username:
            await client.login(args.username)
        result["current_username"] = client.select(select_current_username)

        await asyncio.gather(client.fetch_users(), client.fetch_posts())

        result["users"] = _slice_summary(
            client.select(select_users_status),
            client.select(select_users_error),
            client.select(select_all_users),
        )
        result["posts"] = _slice_summary(
            client.select(select_posts_status),
            client.select(select_posts_error),
            client.select(select_all_posts),
        )
        if args.user_id:
            result["posts_by_user"] = [
                post.id for post in client.select(select_posts_by_user, args.user_id)
            ]

    # ── Output ──
    if args.json_mode or args.output:
        payload = json.dumps(result, indent=2, default=str, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(payload)
        return

    out: list[str] = [_section("pyfeed dump_feed")]
    out.append(f"  time      : {result['timestamp']}")
    out.append(f"  base_url  : {result['base_url']}")
    out.append(f"  username  : {result['current_username']}")
    _print_slice("USERS", result["users"], out)
    _print_slice("POSTS", result["posts"], out)
    if "posts_by_user" in result:
        out.append(_section(f"POSTS BY USER {args.user_id}"))
        out.append(f"  ids    : {', '.join(result['posts_by_user']) or '-'}")
    print("\n".join(out))


if __name__ == "__main__":
    asyncio.run(main())
