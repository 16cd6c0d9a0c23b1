"""
Main entry point for the recurring template sweep worker.

Periodically tops up every active template's buffer of future occurrences.
Run with `python -m taskhub.worker`, or `python -m taskhub.worker --once`
for a single sweep (e.g. from cron).
"""

import asyncio
import sys
from typing import Optional

from taskhub.config import SWEEP_INTERVAL_SECONDS
from taskhub.db.init import init_db
from taskhub.services.recurring_task_service import RecurringTemplateService
from taskhub.utils.logger import get_logger
from taskhub.utils.metrics import metrics_collector

logger = get_logger(__name__)


async def run_sweeps(
    service: RecurringTemplateService,
    interval_seconds: float = SWEEP_INTERVAL_SECONDS,
    max_sweeps: Optional[int] = None,
) -> int:
    """
    Run sweeps until cancelled or `max_sweeps` is reached.

    The sweep itself is synchronous database work, so it runs in a worker
    thread to keep the event loop responsive.

    Returns:
        Number of sweeps completed
    """
    completed = 0
    while max_sweeps is None or completed < max_sweeps:
        try:
            summary = await asyncio.to_thread(service.ensure_all_templates_have_instances)
            logger.info("Sweep completed", **summary, metrics=metrics_collector.get_metrics())
        except Exception:
            # Listing templates failed; try again next tick
            logger.exception("Sweep aborted")
        completed += 1

        if max_sweeps is not None and completed >= max_sweeps:
            break
        await asyncio.sleep(interval_seconds)

    return completed


async def main(argv=None) -> None:
    """Main entry point for the sweep worker."""
    argv = sys.argv[1:] if argv is None else argv

    logger.info("Starting recurring template worker", interval_seconds=SWEEP_INTERVAL_SECONDS)
    init_db()

    service = RecurringTemplateService()
    await run_sweeps(service, SWEEP_INTERVAL_SECONDS, max_sweeps=1 if "--once" in argv else None)


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
