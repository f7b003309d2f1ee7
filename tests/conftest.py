# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src/ to sys.path so `import papertriage` works without installing.
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))


@pytest.fixture(autouse=True)
def _isolated_logs(tmp_path, monkeypatch):
    """Route file logs into the test's tmp dir."""
    from papertriage.utils.logging_config import Logger

    Logger.reset()
    monkeypatch.setenv("PAPERTRIAGE_LOG_DIR", str(tmp_path / "logs"))
    yield
    Logger.reset()


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'papertriage.db'}"


class FakeLLM:
    """
    Text-generation double keyed by call kind.

    Kinds are told apart by the generation settings each service uses:
    score (json_mode), title (200 tokens), summary (1000), explain (2000),
    keywords (everything else). A response may be a string, an exception
    instance to raise, or a callable taking the user prompt.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    @staticmethod
    def kind_of(max_tokens, json_mode):
        if json_mode:
            return "score"
        return {200: "title", 1000: "summary", 2000: "explain"}.get(max_tokens, "keywords")

    async def generate(self, *, system, user, max_tokens, temperature, json_mode=False):
        kind = self.kind_of(max_tokens, json_mode)
        self.calls.append({"kind": kind, "system": system, "user": user})
        response = self.responses.get(kind, "")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(user)
        return response

    def count(self, kind):
        return sum(1 for c in self.calls if c["kind"] == kind)


class FakeGraph:
    """Citation-graph double: ids by DOI/title, neighbours by id."""

    def __init__(self, *, by_doi=None, by_title=None, citing=None, cited=None, errors=None):
        self.by_doi = dict(by_doi or {})
        self.by_title = dict(by_title or {})
        self.citing = dict(citing or {})
        self.cited = dict(cited or {})
        # (method, key) -> exception
        self.errors = dict(errors or {})
        self.calls = []

    def _maybe_raise(self, method, key):
        self.calls.append((method, key))
        exc = self.errors.get((method, key))
        if exc is not None:
            raise exc

    async def resolve_by_doi(self, doi):
        self._maybe_raise("resolve_by_doi", doi)
        return self.by_doi.get(doi)

    async def resolve_by_title(self, title):
        self._maybe_raise("resolve_by_title", title)
        return self.by_title.get(title)

    async def fetch_citing(self, paper_id, *, limit=10):
        self._maybe_raise("fetch_citing", paper_id)
        return list(self.citing.get(paper_id, []))[:limit]

    async def fetch_cited(self, paper_id, *, limit=10):
        self._maybe_raise("fetch_cited", paper_id)
        return list(self.cited.get(paper_id, []))[:limit]

    async def close(self):
        return None


class NoWaitLimiter:
    def __init__(self):
        self.waits = 0

    async def wait(self):
        self.waits += 1


@pytest.fixture
def fake_llm_cls():
    return FakeLLM


@pytest.fixture
def fake_graph_cls():
    return FakeGraph


@pytest.fixture
def no_wait_limiter():
    return NoWaitLimiter()
