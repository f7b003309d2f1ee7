"""
PaperDeduplicator unit tests.
"""

from papertriage.application.services.paper_deduplicator import PaperDeduplicator
from papertriage.domain.harvest import CollectedPaper


class _FakeLookup:
    def __init__(self, dois=(), titles=()):
        self.dois = set(dois)
        self.titles = set(titles)
        self.calls = 0

    def find_existing_keys(self, *, dois, titles):
        self.calls += 1
        return {d.lower() for d in dois if d.lower() in self.dois}, {t for t in titles if t in self.titles}


class TestBatchDeduplication:
    def test_empty_list(self):
        assert PaperDeduplicator.deduplicate([]) == []

    def test_same_doi_first_occurrence_wins(self):
        first = CollectedPaper(title="Version 1", doi="10.1234/same", provider="arxiv")
        second = CollectedPaper(title="Version 2", doi="10.1234/SAME", provider="semantic_scholar")
        unique = PaperDeduplicator.deduplicate([first, second])
        assert unique == [first]

    def test_title_fallback_is_case_and_space_insensitive(self):
        a = CollectedPaper(title="Attention Is All You Need")
        b = CollectedPaper(title="  attention is  all you need ")
        assert PaperDeduplicator.deduplicate([a, b]) == [a]

    def test_doi_takes_priority_over_title(self):
        # Same title but different DOIs are distinct papers.
        a = CollectedPaper(title="Survey", doi="10.1/a")
        b = CollectedPaper(title="Survey", doi="10.1/b")
        assert len(PaperDeduplicator.deduplicate([a, b])) == 2

    def test_resolver_prefixed_doi_matches_bare_doi(self):
        bare = CollectedPaper(title="A", doi="10.1/x")
        prefixed = CollectedPaper(title="B", doi="https://doi.org/10.1/x")
        labelled = CollectedPaper(title="C", doi="doi:10.1/X.")
        assert PaperDeduplicator.deduplicate([bare, prefixed, labelled]) == [bare]

    def test_seen_keys_match_across_doi_spellings(self):
        seen = {CollectedPaper(title="A", doi="10.1/x").dedup_key()}
        prefixed = CollectedPaper(title="B", doi="https://dx.doi.org/10.1/X")
        assert PaperDeduplicator.filter_by_seen_keys([prefixed], seen) == []

    def test_idempotent(self):
        papers = [
            CollectedPaper(title="A", doi="10.1/a"),
            CollectedPaper(title="B"),
            CollectedPaper(title="b"),
            CollectedPaper(title="C", doi="10.1/A"),
        ]
        once = PaperDeduplicator.deduplicate(papers)
        assert PaperDeduplicator.deduplicate(once) == once
        assert [p.title for p in once] == ["A", "B"]


class TestSeenKeys:
    def test_filters_and_records_keys(self):
        seen = {"10.1/a"}
        papers = [CollectedPaper(title="A", doi="10.1/a"), CollectedPaper(title="New")]
        kept = PaperDeduplicator.filter_by_seen_keys(papers, seen)
        assert [p.title for p in kept] == ["New"]
        assert "new" in seen


class TestJournalFilter:
    def test_empty_allow_list_keeps_everything(self):
        papers = [CollectedPaper(title="A", venue=None), CollectedPaper(title="B", venue="Nature")]
        assert PaperDeduplicator.filter_by_journals(papers, []) == papers

    def test_substring_case_insensitive(self):
        papers = [
            CollectedPaper(title="A", venue="Nature Communications"),
            CollectedPaper(title="B", venue="Science"),
            CollectedPaper(title="C", venue=None),
        ]
        kept = PaperDeduplicator.filter_by_journals(papers, ["nature"])
        assert [p.title for p in kept] == ["A"]


class TestFilterExisting:
    def test_without_store_keeps_all(self):
        papers = [CollectedPaper(title="A")]
        assert PaperDeduplicator().filter_existing(papers) == papers

    def test_drops_stored_doi_and_exact_title(self):
        lookup = _FakeLookup(dois={"10.1/stored"}, titles={"Stored Title"})
        papers = [
            CollectedPaper(title="Other", doi="10.1/STORED"),
            CollectedPaper(title="Stored Title"),
            CollectedPaper(title="Fresh", doi="10.1/fresh"),
        ]
        kept = PaperDeduplicator(lookup).filter_existing(papers)
        assert [p.title for p in kept] == ["Fresh"]
        assert lookup.calls == 1

    def test_empty_batch_skips_lookup(self):
        lookup = _FakeLookup()
        assert PaperDeduplicator(lookup).filter_existing([]) == []
        assert lookup.calls == 0
