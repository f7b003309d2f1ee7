from __future__ import annotations

import os
from typing import Any, Dict, Optional

from arq import cron
from arq.connections import RedisSettings
from dotenv import find_dotenv, load_dotenv

from papertriage.application.workflows.collection_runner import CollectionRunner
from papertriage.config import Settings
from papertriage.utils.logging_config import LogFiles, Logger

load_dotenv(find_dotenv(usecwd=True), override=False)


def _redis_settings(settings: Optional[Settings] = None) -> RedisSettings:
    settings = settings or Settings.from_env()
    return RedisSettings(
        host=settings.redis_host,
        port=settings.redis_port,
        database=settings.redis_db,
        password=settings.redis_password,
    )


def _runner(ctx) -> CollectionRunner:
    runner = ctx.get("runner")
    if runner is None:
        runner = CollectionRunner.from_settings()
        ctx["runner"] = runner
    return runner


async def startup(ctx) -> None:
    ctx["runner"] = CollectionRunner.from_settings()


async def shutdown(ctx) -> None:
    runner = ctx.pop("runner", None)
    if runner is not None:
        await runner.close()


async def cron_collect(ctx) -> Dict[str, Any]:
    """Cron entrypoint: scheduled combined run (skipped while auto-collect is off)."""
    try:
        result = await _runner(ctx).run_all(scheduled=True)
    except Exception as exc:
        Logger.error(f"Scheduled collection failed: {exc}", file=LogFiles.ERROR)
        return {"status": "error", "error": str(exc)}
    status = "skipped" if result.get("skipped") else "ok"
    return {"status": status, **result}


async def collect_job(ctx, *, scheduled: bool = False) -> Dict[str, Any]:
    result = await _runner(ctx).run_all(scheduled=scheduled)
    return {"status": "ok", **result}


async def citation_job(ctx, *, max_seeds: Optional[int] = None) -> Dict[str, Any]:
    result = await _runner(ctx).run_citations(max_seeds=max_seeds)
    return {"status": "ok", **result}


def _build_collect_cron_jobs(settings: Optional[Settings] = None):
    """One cron entry per configured hour; an empty hour list disables the schedule."""
    settings = settings or Settings.from_env()
    hours = {h for h in settings.collect_cron_hours if 0 <= h <= 23}
    if not hours:
        return []
    minute = int(os.getenv("PAPERTRIAGE_COLLECT_CRON_MINUTE", "0"))
    run_at_startup = os.getenv("PAPERTRIAGE_COLLECT_RUN_AT_STARTUP", "false").lower() in (
        "1",
        "true",
        "yes",
        "y",
    )
    return [
        cron(
            cron_collect,
            hour=hours,
            minute=minute,
            run_at_startup=run_at_startup,
        )
    ]


class WorkerSettings:
    functions = [
        cron_collect,
        collect_job,
        citation_job,
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = _redis_settings()

    cron_jobs = _build_collect_cron_jobs()
