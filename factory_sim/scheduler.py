"""Real-time driver for the day clock.

A daemon thread runs an asyncio loop that feeds wall-clock seconds into
:meth:`GameState.tick`. The clock decides how many whole days that time
covers; while it is paused nothing is simulated.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

from .game_state import get_game_state


logger = logging.getLogger(__name__)

_driver_thread: Optional[threading.Thread] = None
_driver_lock = threading.Lock()


async def _drive_day_clock(seconds_per_step: float) -> None:
    state = get_game_state()
    while True:
        try:
            completed = state.tick(seconds_per_step)
        except Exception:
            logger.exception("Day clock step failed on day %s", state.day)
        else:
            if completed:
                logger.debug(
                    "Day clock completed %s day(s), now on day %s (speed=%s)",
                    completed,
                    state.day,
                    state.clock.speed,
                )
        await asyncio.sleep(seconds_per_step)


def ensure_tick_loop(interval: float = 1.0) -> None:
    """Start the day clock driver unless one is already running."""

    global _driver_thread
    with _driver_lock:
        if _driver_thread is not None and _driver_thread.is_alive():
            return

        _driver_thread = threading.Thread(
            target=asyncio.run,
            args=(_drive_day_clock(interval),),
            name="day-clock-driver",
            daemon=True,
        )
        _driver_thread.start()
        logger.info("Day clock driver started, stepping every %ss", interval)
