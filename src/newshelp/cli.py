from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Awaitable, Callable

from .api import (
    fetch_cluster_with_items,
    fetch_meta,
    fetch_news_by_tag,
    fetch_raw_by_id,
    fetch_raw_by_ids,
    fetch_recent_clusters,
    fetch_recent_news,
    search_news,
)
from .config import ConfigError, load_config
from .fetcher import ResourceUnavailable
from .session import BUILD_SCOPE, DataSession
from .static_pages import collect_site_pages, write_page_manifest
from .utils import json_dumps, log_event


def _setup_logging() -> logging.Logger:
    level_name = os.environ.get("NH_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    return logging.getLogger("newshelp")


def _emit(value: Any) -> None:
    sys.stdout.write(json_dumps(value, indent=2) + "\n")


async def _cmd_meta(session: DataSession, args: argparse.Namespace) -> Any:
    return await fetch_meta(session)


async def _cmd_item(session: DataSession, args: argparse.Namespace) -> Any:
    return await fetch_raw_by_id(session, args.id)


async def _cmd_cluster(session: DataSession, args: argparse.Namespace) -> Any:
    return await fetch_cluster_with_items(session, args.id)


async def _cmd_ids(session: DataSession, args: argparse.Namespace) -> Any:
    return await fetch_raw_by_ids(session, args.ids)


async def _cmd_tag(session: DataSession, args: argparse.Namespace) -> Any:
    return await fetch_news_by_tag(session, args.tag_id, args.limit)


async def _cmd_search(session: DataSession, args: argparse.Namespace) -> Any:
    return await search_news(session, args.query, args.limit)


async def _cmd_recent(session: DataSession, args: argparse.Namespace) -> Any:
    if args.clusters:
        return await fetch_recent_clusters(session, args.limit)
    return await fetch_recent_news(session, args.limit)


async def _cmd_pages(session: DataSession, args: argparse.Namespace) -> Any:
    pages = await collect_site_pages(session)
    if args.output:
        path = write_page_manifest(pages, args.output, session.config.site.url)
        return {"manifest": path, "news": len(pages.news), "articles": len(pages.articles)}
    return pages


async def _run(
    handler: Callable[[DataSession, argparse.Namespace], Awaitable[Any]],
    args: argparse.Namespace,
    config,
    transport=None,
) -> Any:
    async with DataSession(config, scope=BUILD_SCOPE, transport=transport) as session:
        return await handler(session, args)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="newshelp")
    parser.add_argument("--config", help="Path to a YAML config file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("meta", help="Show the API metadata snapshot").set_defaults(
        handler=_cmd_meta
    )

    item = subparsers.add_parser("item", help="Show one news item")
    item.add_argument("id", type=int)
    item.set_defaults(handler=_cmd_item)

    cluster = subparsers.add_parser("cluster", help="Show one cluster with its items")
    cluster.add_argument("id", type=int)
    cluster.set_defaults(handler=_cmd_cluster)

    ids = subparsers.add_parser("ids", help="Show news items in the given order")
    ids.add_argument("ids", type=int, nargs="+")
    ids.set_defaults(handler=_cmd_ids)

    tag = subparsers.add_parser("tag", help="Show news items for a tag")
    tag.add_argument("tag_id", type=int)
    tag.add_argument("--limit", type=int, default=20)
    tag.set_defaults(handler=_cmd_tag)

    search = subparsers.add_parser("search", help="Search recent news items")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=50)
    search.set_defaults(handler=_cmd_search)

    recent = subparsers.add_parser("recent", help="Show the newest items")
    recent.add_argument("--limit", type=int, default=20)
    recent.add_argument("--clusters", action="store_true", help="List clusters instead of items")
    recent.set_defaults(handler=_cmd_recent)

    pages = subparsers.add_parser("pages", help="Collect ids that get static pages")
    pages.add_argument("--output", help="Write a JSON page manifest to this path")
    pages.set_defaults(handler=_cmd_pages)

    return parser


def main(argv: list[str] | None = None, transport=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = _setup_logging()

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        log_event(logger, logging.ERROR, "config_error", error=str(exc))
        return 1

    try:
        result = asyncio.run(_run(args.handler, args, config, transport))
    except ResourceUnavailable as exc:
        log_event(
            logger,
            logging.ERROR,
            "command_failed",
            command=args.command,
            resource=exc.name,
            status=exc.status,
            timed_out=exc.timed_out,
        )
        return 1

    if result is None:
        log_event(logger, logging.WARNING, "not_found", command=args.command)
        return 1
    _emit(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
