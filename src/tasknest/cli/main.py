# src/tasknest/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, loads the persisted list,
then runs the console until /exit, EOF or Ctrl+C. Pending saves are flushed on the way out.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state, shutdown
from ..config import Settings, get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import reset_logging, setup_logging

logger = logging.getLogger(__name__)


async def run_app(settings: Settings) -> None:
    state = create_initial_state(settings=settings)

    # A corrupt store is logged inside initialize(); the user just gets an empty list.
    await state.task_store.initialize()

    try:
        await run_console_loop(state)
    finally:
        await shutdown(state)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "WARNING")).upper()
    console_level = getattr(logging, level_name, logging.WARNING)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        asyncio.run(run_app(settings))
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt, exiting.")
        print()

    logger.info("Bye.")
    reset_logging()


if __name__ == "__main__":
    main()
