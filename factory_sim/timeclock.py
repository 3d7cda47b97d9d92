"""Day clock driving the simulation in real time."""
from __future__ import annotations

from typing import Dict, Mapping

from . import config


class DayClock:
    """Accumulates elapsed seconds and reports completed days.

    The clock starts paused; speed multipliers scale elapsed time.
    """

    def __init__(
        self,
        day_duration: float = config.DAY_DURATION,
        speeds: Mapping[str, float] | None = None,
        speed: str = config.DEFAULT_GAME_SPEED,
    ) -> None:
        self.day_duration = float(day_duration)
        self.speeds: Dict[str, float] = dict(speeds or config.GAME_SPEEDS)
        if speed not in self.speeds:
            raise ValueError(f"Unknown game speed: {speed}")
        self.speed = speed
        self.paused = True
        self.elapsed_within_day = 0.0

    # ------------------------------------------------------------------
    def update(self, dt: float) -> int:
        """Advance the clock ``dt`` seconds and return how many days completed."""

        if self.paused or dt <= 0 or self.day_duration <= 0:
            return 0
        self.elapsed_within_day += dt * self.speeds[self.speed]
        days = 0
        while self.elapsed_within_day >= self.day_duration:
            self.elapsed_within_day -= self.day_duration
            days += 1
        return days

    def set_speed(self, speed: str) -> None:
        normalized = str(speed or "").strip().lower()
        if normalized not in self.speeds:
            raise ValueError(f"Unknown game speed: {speed}")
        self.speed = normalized

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def toggle(self) -> bool:
        self.paused = not self.paused
        return self.paused

    def skip_to_next_day(self) -> None:
        self.elapsed_within_day = 0.0

    # ------------------------------------------------------------------
    def get_progress(self) -> float:
        if self.day_duration <= 0:
            return 0.0
        progress = self.elapsed_within_day / self.day_duration
        return min(max(progress, 0.0), 1.0)

    def to_dict(self) -> Dict[str, float | str | bool]:
        return {
            "progress": self.get_progress(),
            "paused": self.paused,
            "speed": self.speed,
            "speed_multiplier": self.speeds[self.speed],
            "day_duration": self.day_duration,
        }
