"""
Deferred task scheduling for simulated chat replies.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Protocol


class ScheduledTask(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback once after a delay; returns a cancellable handle."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        ...


class ThreadingScheduler:
    """Schedules callbacks on daemon ``threading.Timer`` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


@dataclass
class ManualTask:
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False
    done: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Test double: callbacks run only when ``run_pending`` is called."""

    tasks: List[ManualTask] = field(default_factory=list)

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTask:
        task = ManualTask(delay=delay, callback=callback)
        self.tasks.append(task)
        return task

    def run_pending(self) -> int:
        ran = 0
        for task in list(self.tasks):
            if task.cancelled or task.done:
                continue
            task.done = True
            task.callback()
            ran += 1
        return ran
