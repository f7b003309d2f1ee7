from papertriage.config import DEFAULT_DB_URL, Settings


def test_defaults(monkeypatch):
    for name in (
        "PAPERTRIAGE_DB_URL",
        "PAPERTRIAGE_CITATION_MAX_SEEDS",
        "PAPERTRIAGE_RUN_TIME_BUDGET",
        "PAPERTRIAGE_COLLECT_CRON_HOURS",
        "PAPERTRIAGE_CRON_SECRET",
        "OPENAI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.db_url == DEFAULT_DB_URL
    assert settings.citation_max_seeds == 5
    assert settings.citation_manual_max_seeds == 20
    assert settings.run_time_budget_seconds == 60.0
    assert settings.collect_cron_hours == (6,)
    assert settings.cron_secret is None
    assert settings.llm_api_key is None


def test_env_overrides_and_bad_values(monkeypatch):
    monkeypatch.setenv("PAPERTRIAGE_CITATION_MAX_SEEDS", "3")
    monkeypatch.setenv("PAPERTRIAGE_KEYWORD_MAX_RESULTS", "not-a-number")
    monkeypatch.setenv("PAPERTRIAGE_COLLECT_CRON_HOURS", "6, 18,x")
    monkeypatch.setenv("PAPERTRIAGE_CRON_SECRET", " s3cret ")
    settings = Settings.from_env()
    assert settings.citation_max_seeds == 3
    assert settings.keyword_max_results == 5
    assert settings.collect_cron_hours == (6, 18)
    assert settings.cron_secret == "s3cret"
