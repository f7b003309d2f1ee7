"""
CLI entry point.

Every command prints a JSON document on stdout; failures go to stderr with a
non-zero exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Awaitable, Callable, Optional

from dotenv import find_dotenv, load_dotenv

from papertriage.application.services.review_service import ReviewError
from papertriage.application.workflows.collection_runner import CollectionRunner
from papertriage.domain.interest import DEFAULT_WEIGHT, InterestType
from papertriage.domain.review import ReviewAction

# Load local .env automatically for CLI workflows using LLM providers.
load_dotenv(find_dotenv(usecwd=True), override=False)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="papertriage",
        description="papertriage - multi-source paper collection and relevance triage",
    )
    subparsers = parser.add_subparsers(dest="command", help="available commands")

    collect_parser = subparsers.add_parser("collect", help="combined run: keywords, RSS, then citations")
    collect_parser.add_argument(
        "--scheduled",
        action="store_true",
        help="behave like the cron run (honours auto_collect_enabled, smaller seed cap)",
    )
    subparsers.add_parser("collect-keywords", help="keyword search over every active keyword")
    subparsers.add_parser("collect-rss", help="fetch every active RSS feed")
    citations_parser = subparsers.add_parser("collect-citations", help="explore citations of seed papers")
    citations_parser.add_argument("--max-seeds", type=int, default=None, help="seed cap for this run")

    review_parser = subparsers.add_parser("review", help="approve or skip one paper")
    review_parser.add_argument("paper_id", type=int)
    review_parser.add_argument("action", choices=[a.value for a in ReviewAction])

    pending_parser = subparsers.add_parser("pending", help="list the pending review queue")
    pending_parser.add_argument("--sort", choices=["score_desc", "collected_at"], default="score_desc")
    pending_parser.add_argument("--limit", type=int, default=20)

    bulk_parser = subparsers.add_parser("bulk-review", help="approve or skip pending papers by score")
    bulk_parser.add_argument("action", choices=["approve_all_auto", "skip_all_auto"])
    bulk_parser.add_argument("--min-score", type=int, default=None)
    bulk_parser.add_argument("--max-score", type=int, default=None)

    favorite_parser = subparsers.add_parser("favorite", help="mark a paper as favorite (a citation seed)")
    favorite_parser.add_argument("paper_id", type=int)
    favorite_parser.add_argument("--off", action="store_true", help="remove the favorite flag")
    favorite_parser.add_argument("--memo", default=None, help="attach a note; an empty string clears it")

    subparsers.add_parser("rescore", help="re-score pending papers with the current profile")
    subparsers.add_parser("metrics", help="scoring accuracy metrics")

    interest_parser = subparsers.add_parser("interest", help="manage the interest profile")
    interest_sub = interest_parser.add_subparsers(dest="interest_command")
    interest_add = interest_sub.add_parser("add", help="add a manual interest")
    interest_add.add_argument("label")
    interest_add.add_argument("--weight", type=float, default=DEFAULT_WEIGHT)
    interest_sub.add_parser("list", help="list interests")
    interest_delete = interest_sub.add_parser("delete", help="delete an interest")
    interest_delete.add_argument("interest_id", type=int)

    keyword_parser = subparsers.add_parser("keyword", help="manage search keywords")
    keyword_sub = keyword_parser.add_subparsers(dest="keyword_command")
    keyword_add = keyword_sub.add_parser("add", help="add a search keyword")
    keyword_add.add_argument("keyword")
    keyword_add.add_argument("--source", dest="sources", action="append", help="provider (repeatable)")
    keyword_add.add_argument("--journal", dest="journals", action="append", help="venue filter (repeatable)")
    keyword_add.add_argument("--category", default=None)
    for name in ("enable", "disable"):
        toggle = keyword_sub.add_parser(name, help=f"{name} a search keyword")
        toggle.add_argument("keyword_id", type=int)

    feed_parser = subparsers.add_parser("feed", help="manage RSS feeds")
    feed_sub = feed_parser.add_subparsers(dest="feed_command")
    feed_add = feed_sub.add_parser("add", help="add an RSS feed")
    feed_add.add_argument("name")
    feed_add.add_argument("feed_url")

    settings_parser = subparsers.add_parser("settings", help="show or change review settings")
    settings_sub = settings_parser.add_subparsers(dest="settings_command")
    settings_sub.add_parser("show")
    settings_set = settings_sub.add_parser("set")
    settings_set.add_argument("key")
    settings_set.add_argument("value")

    return parser


_runner: Optional[CollectionRunner] = None


def _get_runner() -> CollectionRunner:
    global _runner
    if _runner is None:
        _runner = CollectionRunner.from_settings()
    return _runner


def _print(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _run_async(fn: Callable[[CollectionRunner], Awaitable[Any]]) -> Any:
    async def _inner():
        runner = _get_runner()
        try:
            return await fn(runner)
        finally:
            await runner.close()

    return asyncio.run(_inner())


def _coerce_setting(key: str, raw: str) -> Any:
    if key in ("scoring_enabled", "auto_collect_enabled"):
        lowered = raw.strip().lower()
        if lowered not in ("true", "false"):
            raise ValueError(f"{key} must be true or false")
        return lowered == "true"
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer") from None


def run_cli(args: Optional[list] = None) -> int:
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 0

    try:
        return _dispatch(parser, parsed)
    except (ReviewError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _dispatch(parser: argparse.ArgumentParser, parsed: argparse.Namespace) -> int:
    command = parsed.command

    if command == "collect":
        _print(_run_async(lambda r: r.run_all(scheduled=parsed.scheduled)))
    elif command == "collect-keywords":
        _print(_run_async(lambda r: r.run_keywords()))
    elif command == "collect-rss":
        _print(_run_async(lambda r: r.run_rss()))
    elif command == "collect-citations":
        _print(_run_async(lambda r: r.run_citations(max_seeds=parsed.max_seeds)))
    elif command == "review":
        action = ReviewAction(parsed.action)
        outcome = _run_async(lambda r: r.review_service.review_and_learn(parsed.paper_id, action))
        _print(outcome.to_dict())
    elif command == "pending":
        _print(_get_runner().review_service.list_pending(sort=parsed.sort, limit=parsed.limit))
    elif command == "bulk-review":
        _print(
            _get_runner().review_service.bulk_review(
                parsed.action, min_score=parsed.min_score, max_score=parsed.max_score
            )
        )
    elif command == "favorite":
        paper = _get_runner().stores.papers.update_paper(
            parsed.paper_id, is_favorite=not parsed.off, memo=parsed.memo
        )
        if paper is None:
            print(f"Error: paper {parsed.paper_id} not found", file=sys.stderr)
            return 1
        _print(paper)
    elif command == "rescore":
        _print(_run_async(lambda r: r.review_service.rescore_pending()))
    elif command == "metrics":
        _print(_get_runner().review_service.metrics())
    elif command == "interest":
        return _run_interest(parser, parsed)
    elif command == "keyword":
        return _run_keyword(parser, parsed)
    elif command == "feed":
        if parsed.feed_command != "add":
            parser.parse_args(["feed", "--help"])
        feed = _get_runner().stores.configs.add_feed(parsed.name, parsed.feed_url)
        _print({"id": feed.id, "name": feed.name, "feed_url": feed.feed_url})
    elif command == "settings":
        store = _get_runner().stores.settings
        if parsed.settings_command == "set":
            updated = store.update_review_settings({parsed.key: _coerce_setting(parsed.key, parsed.value)})
            _print(updated.to_dict())
        else:
            _print(store.get_review_settings().to_dict())
    return 0


def _run_keyword(parser: argparse.ArgumentParser, parsed: argparse.Namespace) -> int:
    store = _get_runner().stores.configs
    if parsed.keyword_command == "add":
        config = store.add_keyword(
            parsed.keyword,
            sources=parsed.sources or ["arXiv", "Semantic Scholar"],
            journals=parsed.journals or [],
            category=parsed.category,
        )
        _print({"id": config.id, "keyword": config.keyword, "sources": config.sources, "journals": config.journals})
    elif parsed.keyword_command in ("enable", "disable"):
        active = parsed.keyword_command == "enable"
        if not store.set_keyword_active(parsed.keyword_id, active):
            print(f"Error: keyword {parsed.keyword_id} not found", file=sys.stderr)
            return 1
        _print({"id": parsed.keyword_id, "is_active": active})
    else:
        parser.parse_args(["keyword", "--help"])
    return 0


def _run_interest(parser: argparse.ArgumentParser, parsed: argparse.Namespace) -> int:
    store = _get_runner().stores.interests
    if parsed.interest_command == "add":
        entry = store.add_interest(parsed.label, weight=parsed.weight, type=InterestType.MANUAL)
        _print(entry.to_dict())
    elif parsed.interest_command == "list":
        _print([e.to_dict() for e in store.list_interests()])
    elif parsed.interest_command == "delete":
        if not store.delete_interest(parsed.interest_id):
            print(f"Error: interest {parsed.interest_id} not found", file=sys.stderr)
            return 1
        _print({"deleted": parsed.interest_id})
    else:
        parser.parse_args(["interest", "--help"])
    return 0


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
