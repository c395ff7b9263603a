#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import os
import subprocess
import sys


def run(cmd: list[str]) -> int:
    print("$", " ".join(cmd))
    return subprocess.call(cmd)


def cmd_test(args: argparse.Namespace) -> int:
    os.environ.setdefault("PYTHONUNBUFFERED", "1")
    pytest_args = [sys.executable, "-m", "pytest"]
    if args.quiet:
        pytest_args.append("-q")
    if args.k:
        pytest_args += ["-k", args.k]
    return run(pytest_args)


async def _init_db() -> None:
    from techblog.db import sa

    await sa.init_sa_engine()
    try:
        await sa.create_tables(sa.get_engine())
    finally:
        await sa.close_sa_engine()


def cmd_init_db(args: argparse.Namespace) -> int:
    asyncio.run(_init_db())
    print("tables created")
    return 0


async def _seed() -> int:
    from techblog.db import sa
    from techblog.services.seed import seed_categories

    await sa.init_sa_engine()
    try:
        await sa.create_tables(sa.get_engine())
        async with sa.session_scope() as session:
            created = await seed_categories(session)
    finally:
        await sa.close_sa_engine()
    return len(created)


def cmd_seed(args: argparse.Namespace) -> int:
    created = asyncio.run(_seed())
    print(f"seeded {created} categories")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="techblog-cli", description="Project CLI helper")
    sub = parser.add_subparsers(dest="command", required=True)

    p_test = sub.add_parser("test", help="Run pytest")
    p_test.add_argument("-q", "--quiet", action="store_true", help="Quiet mode (-q)")
    p_test.add_argument("-k", help="Only run tests matching expression")
    p_test.set_defaults(func=cmd_test)

    p_init = sub.add_parser("init-db", help="Create database tables")
    p_init.set_defaults(func=cmd_init_db)

    p_seed = sub.add_parser("seed", help="Create the default categories")
    p_seed.set_defaults(func=cmd_seed)

    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
