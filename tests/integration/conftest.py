"""
Fixtures wiring a CollectionRunner to a temp SQLite database and fake providers.
"""

import pytest

from papertriage.application.workflows.collection_runner import CollectionRunner, Stores
from papertriage.config import Settings
from papertriage.domain.harvest import CollectedPaper, HarvestResult
from papertriage.domain.paper import PaperSource
from papertriage.domain.review import ReviewStatus


class FakeHarvester:
    """Keyword-search double: canned papers or error per query."""

    def __init__(self, source, papers=None, *, error=None, rate_limited=False, raises=None):
        self._source = source
        self.papers = list(papers or [])
        self.error = error
        self.rate_limited = rate_limited
        self.raises = raises
        self.queries = []
        self.closed = False

    @property
    def source(self):
        return self._source

    async def search(self, query, *, max_results=5):
        self.queries.append((query, max_results))
        if self.raises is not None:
            raise self.raises
        if self.error:
            return HarvestResult(
                source=self._source, papers=[], total_found=0, error=self.error, rate_limited=self.rate_limited
            )
        papers = self.papers[:max_results]
        return HarvestResult(source=self._source, papers=papers, total_found=len(papers))

    async def close(self):
        self.closed = True


class FakeReader:
    """Feed reader double: entries per URL, exception per URL."""

    def __init__(self, entries=None, errors=None):
        self.entries = dict(entries or {})
        self.errors = dict(errors or {})
        self.calls = []
        self.closed = False

    async def fetch(self, feed_url, *, since=None):
        self.calls.append((feed_url, since))
        if feed_url in self.errors:
            raise self.errors[feed_url]
        return list(self.entries.get(feed_url, []))

    async def close(self):
        self.closed = True


def _paper(title, doi=None, venue=None):
    return CollectedPaper(
        title=title,
        authors=["A. Author"],
        abstract=f"Abstract of {title}",
        doi=doi,
        url=f"https://example.org/{title.replace(' ', '-').lower()}",
        venue=venue,
    )


def _add_seed(stores, title, doi=None, *, status=ReviewStatus.APPROVED, collected_at=None):
    row = stores.papers.insert_paper(
        paper={"title": title, "doi": doi},
        source=PaperSource.MANUAL,
        review_status=status,
        collected_at=collected_at,
    )
    return row["id"]


@pytest.fixture
def stores(db_url):
    s = Stores.from_db_url(db_url)
    yield s
    s.close()


@pytest.fixture
def make_runner(stores, no_wait_limiter, fake_llm_cls, fake_graph_cls):
    """Build a runner; every collaborator can be overridden by keyword."""

    def _make(*, llm=None, harvesters=None, reader=None, graph=None, config=None, clock=None):
        kwargs = {}
        if clock is not None:
            kwargs["clock"] = clock
        return CollectionRunner(
            stores=stores,
            llm=llm if llm is not None else fake_llm_cls(),
            harvesters=harvesters if harvesters is not None else {},
            feed_reader=reader or FakeReader(),
            graph=graph or fake_graph_cls(),
            config=config or Settings(),
            rate_limiter=no_wait_limiter,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_paper():
    return _paper


@pytest.fixture
def add_seed(stores):
    def _add(title, doi=None, **kwargs):
        return _add_seed(stores, title, doi, **kwargs)

    return _add


@pytest.fixture
def harvester_cls():
    return FakeHarvester


@pytest.fixture
def reader_cls():
    return FakeReader
