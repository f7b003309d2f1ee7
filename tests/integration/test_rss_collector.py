"""
RssCollector end to end: fake feed reader, real stores.
"""

from datetime import datetime, timezone

import pytest

from papertriage.application.workflows.rss_collector import NO_NEW_ENTRIES
from papertriage.domain.collection import LogOrigin, RunStatus
from papertriage.domain.paper import PaperSource
from papertriage.infrastructure.api_clients.errors import ProviderError

FEED_URL = "https://journal.example.org/rss"


@pytest.mark.asyncio
async def test_entries_are_stored_with_title_translation_only(
    stores, make_runner, reader_cls, make_paper, fake_llm_cls
):
    feed = stores.configs.add_feed("Journal", FEED_URL)
    reader = reader_cls({FEED_URL: [make_paper("Entry one"), make_paper("Entry two"), make_paper("Entry one")]})
    llm = fake_llm_cls({"title": "translated title", "summary": "unused", "explain": "unused"})
    runner = make_runner(reader=reader, llm=llm)

    results = await runner.rss_collector.collect_all()

    assert results[0].status is RunStatus.SUCCESS
    assert results[0].papers_found == 2
    assert results[0].message.startswith("2 of 3 entries newly registered")
    assert reader.calls == [(FEED_URL, None)]
    assert llm.count("summary") == 0
    assert llm.count("explain") == 0

    rows = stores.papers.list_recent(source=PaperSource.RSS)
    assert {r["title_translated"] for r in rows} == {"translated title"}
    assert {r["summary"] for r in rows} == {None}
    assert stores.configs.get_feed(feed.id).last_fetched_at is not None


@pytest.mark.asyncio
async def test_second_fetch_passes_previous_timestamp(stores, make_runner, reader_cls):
    feed = stores.configs.add_feed("Journal", FEED_URL)
    fetched_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    stores.configs.mark_feed_fetched(feed.id, at=fetched_at)
    reader = reader_cls()
    runner = make_runner(reader=reader)

    await runner.rss_collector.collect_all()

    assert reader.calls == [(FEED_URL, fetched_at)]


@pytest.mark.asyncio
async def test_empty_feed_advances_timestamp_and_logs_no_new_entries(stores, make_runner, reader_cls):
    feed = stores.configs.add_feed("Quiet", FEED_URL)
    runner = make_runner(reader=reader_cls({FEED_URL: []}))

    results = await runner.rss_collector.collect_all()

    assert results[0].status is RunStatus.SUCCESS
    assert results[0].message == NO_NEW_ENTRIES
    assert stores.configs.get_feed(feed.id).last_fetched_at is not None
    log = stores.logs.list_recent(origin=LogOrigin.FEED)[0]
    assert (log["status"], log["message"]) == ("success", NO_NEW_ENTRIES)


@pytest.mark.asyncio
async def test_failed_fetch_keeps_timestamp_and_continues(stores, make_runner, reader_cls, make_paper):
    broken = stores.configs.add_feed("Broken", "https://broken.example.org/rss")
    working = stores.configs.add_feed("Working", FEED_URL)
    reader = reader_cls(
        {FEED_URL: [make_paper("Working entry")]},
        errors={"https://broken.example.org/rss": ProviderError("HTTP 503", status=503)},
    )
    runner = make_runner(reader=reader)

    results = await runner.rss_collector.collect_all()

    assert [(r.feed_name, r.status) for r in results] == [("Broken", RunStatus.ERROR), ("Working", RunStatus.SUCCESS)]
    assert results[0].message == "HTTP 503"
    assert stores.configs.get_feed(broken.id).last_fetched_at is None
    assert stores.configs.get_feed(working.id).last_fetched_at is not None

    logs = stores.logs.list_recent(origin=LogOrigin.FEED)
    assert [(log["origin_id"], log["status"]) for log in logs] == [(working.id, "success"), (broken.id, "error")]


@pytest.mark.asyncio
async def test_entries_already_stored_are_skipped(stores, make_runner, reader_cls, make_paper):
    stores.papers.insert_paper(paper={"title": "Old entry"}, source=PaperSource.KEYWORD_SEARCH)
    stores.configs.add_feed("Journal", FEED_URL)
    reader = reader_cls({FEED_URL: [make_paper("Old entry"), make_paper("New entry")]})
    runner = make_runner(reader=reader)

    results = await runner.rss_collector.collect_all()

    assert results[0].papers_found == 1
    assert [r["title_original"] for r in stores.papers.list_recent(source=PaperSource.RSS)] == ["New entry"]
