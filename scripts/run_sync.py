"""
Script to run one channel sync for all configured channels
"""

import asyncio
import signal
import sys
import os
import logging

# Add current directory to path to allow imports from core, ingestion, etc.
sys.path.append(os.getcwd())

from core.exceptions import ConfigurationError, SyncCancelledError, SyncRunFailedError
from core.logging import setup_logging
from ingestion.service import run_sync

logger = logging.getLogger(__name__)


async def main() -> int:
    """Run the sync; SIGINT/SIGTERM cancel it between channels"""
    setup_logging()

    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, cancel_event.set)
        except NotImplementedError:
            pass  # Windows

    try:
        result = await run_sync(trigger="cli", cancel_event=cancel_event)

    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e.message}")
        return 2

    except (SyncRunFailedError, SyncCancelledError) as e:
        logger.error(f"Sync failed: {e.message}")
        return 1

    logger.info(
        f"Sync completed: {result.status.value} - "
        f"Channels: {len(result.succeeded)} ok, {len(result.failed)} failed, "
        f"Records: {result.records_written}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
