import json

import pytest

from papertriage.domain.harvest import HarvestSource
from papertriage.domain.paper import PaperSource
from papertriage.presentation.cli import main as cli_main


@pytest.fixture
def cli_runner(monkeypatch, make_runner):
    def _install(**kwargs):
        runner = make_runner(**kwargs)
        monkeypatch.setattr(cli_main, "_runner", runner)
        return runner

    return _install


def _json(capsys):
    return json.loads(capsys.readouterr().out)


def test_parser_flags():
    parser = cli_main.create_parser()

    args = parser.parse_args(["collect", "--scheduled"])
    assert args.command == "collect"
    assert args.scheduled is True

    args = parser.parse_args(["collect-citations", "--max-seeds", "3"])
    assert args.max_seeds == 3

    args = parser.parse_args(["keyword", "add", "graphs", "--source", "OpenAlex", "--journal", "Nature"])
    assert (args.keyword, args.sources, args.journals) == ("graphs", ["OpenAlex"], ["Nature"])


def test_no_command_prints_help(capsys):
    assert cli_main.run_cli([]) == 0
    assert "papertriage" in capsys.readouterr().out


def test_collect_keywords_prints_summary(stores, cli_runner, harvester_cls, make_paper, capsys):
    stores.configs.add_keyword("robots", sources=["arXiv"])
    runner = cli_runner(
        harvesters={HarvestSource.ARXIV: harvester_cls(HarvestSource.ARXIV, [make_paper("Robot paper")])}
    )

    assert cli_main.run_cli(["collect-keywords"]) == 0

    body = _json(capsys)
    assert body["summary"]["total_papers_found"] == 1
    assert runner.harvesters[HarvestSource.ARXIV].closed is True


def test_scheduled_collect_respects_switch(stores, cli_runner, capsys):
    stores.settings.update_review_settings({"auto_collect_enabled": False})
    cli_runner()

    assert cli_main.run_cli(["collect", "--scheduled"]) == 0

    assert _json(capsys)["skipped"] is True


def test_review_and_pending(stores, cli_runner, capsys):
    keep = stores.papers.insert_paper(paper={"title": "Keep"}, source=PaperSource.RSS, relevance_score=60)["id"]
    stores.papers.insert_paper(paper={"title": "Other"}, source=PaperSource.RSS, relevance_score=40)
    cli_runner()

    assert cli_main.run_cli(["pending", "--limit", "5"]) == 0
    assert [p["title_original"] for p in _json(capsys)["papers"]] == ["Keep", "Other"]

    assert cli_main.run_cli(["review", str(keep), "approve"]) == 0
    assert _json(capsys)["review_status"] == "approved"


def test_review_missing_paper_fails(cli_runner, capsys):
    cli_runner()

    assert cli_main.run_cli(["review", "77", "skip"]) == 1
    assert "not found" in capsys.readouterr().err


def test_bulk_review(stores, cli_runner, capsys):
    stores.papers.insert_paper(paper={"title": "Low"}, source=PaperSource.RSS, relevance_score=10)
    cli_runner()

    assert cli_main.run_cli(["bulk-review", "skip_all_auto"]) == 0
    assert _json(capsys)["affected_count"] == 1


def test_interest_commands(stores, cli_runner, capsys):
    cli_runner()

    assert cli_main.run_cli(["interest", "add", "robotics", "--weight", "1.5"]) == 0
    created = _json(capsys)
    assert (created["label"], created["weight"], created["type"]) == ("robotics", 1.5, "manual")

    assert cli_main.run_cli(["interest", "list"]) == 0
    assert [i["label"] for i in _json(capsys)] == ["robotics"]

    assert cli_main.run_cli(["interest", "delete", str(created["id"])]) == 0
    assert _json(capsys) == {"deleted": created["id"]}
    assert cli_main.run_cli(["interest", "delete", str(created["id"])]) == 1


def test_keyword_and_feed_add(stores, cli_runner, capsys):
    cli_runner()

    assert cli_main.run_cli(["keyword", "add", "graphs"]) == 0
    assert _json(capsys)["sources"] == ["arXiv", "Semantic Scholar"]
    assert cli_main.run_cli(["feed", "add", "Journal", "https://journal.example.org/rss"]) == 0
    assert _json(capsys)["name"] == "Journal"

    assert [k.keyword for k in stores.configs.list_active_keywords()] == ["graphs"]
    assert [f.name for f in stores.configs.list_active_feeds()] == ["Journal"]


def test_settings_commands(cli_runner, capsys):
    cli_runner()

    assert cli_main.run_cli(["settings", "set", "auto_approve_threshold", "85"]) == 0
    assert _json(capsys)["auto_approve_threshold"] == 85

    assert cli_main.run_cli(["settings", "set", "scoring_enabled", "false"]) == 0
    assert _json(capsys)["scoring_enabled"] is False

    assert cli_main.run_cli(["settings", "set", "scoring_enabled", "maybe"]) == 1
    assert cli_main.run_cli(["settings", "set", "auto_skip_threshold", "abc"]) == 1

    assert cli_main.run_cli(["settings", "show"]) == 0
    assert _json(capsys)["auto_approve_threshold"] == 85


def test_favorite_makes_paper_a_seed(stores, cli_runner, capsys):
    paper_id = stores.papers.insert_paper(paper={"title": "Liked"}, source=PaperSource.RSS, relevance_score=40)["id"]
    cli_runner()

    assert cli_main.run_cli(["favorite", str(paper_id), "--memo", "check appendix"]) == 0
    body = _json(capsys)
    assert (body["is_favorite"], body["memo"]) == (True, "check appendix")
    assert [s.id for s in stores.papers.select_seeds(limit=5)] == [paper_id]

    assert cli_main.run_cli(["favorite", str(paper_id), "--off"]) == 0
    assert _json(capsys)["is_favorite"] is False
    assert stores.papers.select_seeds(limit=5) == []

    assert cli_main.run_cli(["favorite", "999"]) == 1
    assert "not found" in capsys.readouterr().err


def test_keyword_enable_disable(stores, cli_runner, capsys):
    keyword = stores.configs.add_keyword("graphs")
    cli_runner()

    assert cli_main.run_cli(["keyword", "disable", str(keyword.id)]) == 0
    assert _json(capsys) == {"id": keyword.id, "is_active": False}
    assert stores.configs.list_active_keywords() == []

    assert cli_main.run_cli(["keyword", "enable", str(keyword.id)]) == 0
    assert [k.keyword for k in stores.configs.list_active_keywords()] == ["graphs"]
    assert cli_main.run_cli(["keyword", "disable", "999"]) == 1
