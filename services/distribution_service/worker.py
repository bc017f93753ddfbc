"""ARQ worker for the nightly settlement run."""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def startup(ctx: dict):
    configure_logging()


async def task_run_daily_settlements(ctx: dict):
    from services.distribution_service.tasks import run_daily_settlements

    logger.info("Running: run_daily_settlements")
    return await run_daily_settlements()


class WorkerSettings:
    redis_settings = get_redis_settings()

    on_startup = startup

    functions = [
        task_run_daily_settlements,
    ]

    # 00:15 Asia/Baghdad (UTC+3), once the previous local day has closed
    cron_jobs = [
        cron(task_run_daily_settlements, hour={21}, minute={15}),
    ]
