"""
RSS parsing and RssFeedReader with a mocked aiohttp session.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from papertriage.infrastructure.api_clients.errors import ProviderError, RateLimitedError
from papertriage.infrastructure.connectors.rss_reader import (
    RssFeedReader,
    parse_feed,
    split_authors,
    strip_html,
)

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Journal of Examples</title>
    <item>
      <title>Fresh Paper on Graphs</title>
      <link>https://doi.org/10.1016/j.example.2024.001</link>
      <description>&lt;p&gt;Graphs &lt;b&gt;are&lt;/b&gt; everywhere.&lt;/p&gt;</description>
      <dc:creator>Alice Smith, Bob Jones; Carol White</dc:creator>
      <pubDate>Wed, 10 Jan 2024 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Old Paper</title>
      <link>https://journal.example.com/old</link>
      <pubDate>Mon, 01 Jan 2024 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Undated Paper</title>
      <link>https://journal.example.com/undated</link>
    </item>
    <item>
      <title>No Link</title>
    </item>
  </channel>
</rss>
"""


def _mock_response(session_mock, *, status=200, text=""):
    response = AsyncMock()
    response.status = status
    response.text = AsyncMock(return_value=text)
    session_mock.return_value.get = MagicMock(
        return_value=AsyncMock(__aenter__=AsyncMock(return_value=response))
    )


def test_strip_html_and_split_authors():
    assert strip_html("<p>Hello <b>world</b></p>") == "Hello world"
    assert strip_html(None) == ""
    assert split_authors("A, B; C") == ["A", "B", "C"]
    assert split_authors("") == []


def test_parse_feed_maps_fields_and_skips_linkless():
    papers = parse_feed(RSS_FEED)
    titles = [p.title for p in papers]
    assert titles == ["Fresh Paper on Graphs", "Old Paper", "Undated Paper"]

    fresh = papers[0]
    assert fresh.doi == "10.1016/j.example.2024.001"
    assert fresh.authors == ["Alice Smith", "Bob Jones", "Carol White"]
    assert fresh.abstract == "Graphs are everywhere."
    assert fresh.published_date == "2024-01-10"
    assert papers[1].doi is None


def test_parse_feed_drops_entries_at_or_before_cutoff():
    since = datetime(2024, 1, 5, tzinfo=timezone.utc)
    titles = [p.title for p in parse_feed(RSS_FEED, since=since)]
    assert titles == ["Fresh Paper on Graphs", "Undated Paper"]


def test_naive_cutoff_is_treated_as_utc():
    titles = [p.title for p in parse_feed(RSS_FEED, since=datetime(2024, 1, 10, 9, 0, 0))]
    assert titles == ["Undated Paper"]


class TestRssFeedReader:
    @pytest.mark.asyncio
    async def test_fetch_success(self):
        reader = RssFeedReader()
        with patch.object(reader, "_get_session") as session:
            _mock_response(session, text=RSS_FEED)
            papers = await reader.fetch("https://example.com/feed.xml")
        assert len(papers) == 3

    @pytest.mark.asyncio
    async def test_fetch_rate_limited(self):
        reader = RssFeedReader()
        with patch.object(reader, "_get_session") as session:
            _mock_response(session, status=429)
            with pytest.raises(RateLimitedError):
                await reader.fetch("https://example.com/feed.xml")

    @pytest.mark.asyncio
    async def test_fetch_http_error(self):
        reader = RssFeedReader()
        with patch.object(reader, "_get_session") as session:
            _mock_response(session, status=503)
            with pytest.raises(ProviderError) as excinfo:
                await reader.fetch("https://example.com/feed.xml")
        assert excinfo.value.status == 503
