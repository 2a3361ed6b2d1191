# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)

"""Shared transfer progress.

The download loop is the only writer of a ProgressCounter; a ProgressMonitor
thread reads it on a fixed tick and renders a tqdm bar. The loop never waits
on the monitor.
"""

from __future__ import annotations

import threading
from typing import Optional

from tqdm import tqdm

from .config import PROGRESS_INTERVAL


class ProgressCounter:
    """Byte counter shared between the transfer loop and a display thread."""

    def __init__(self, initial: int = 0):
        self._lock = threading.Lock()
        self._value = initial

    def add(self, n: int) -> None:
        with self._lock:
            self._value += n

    def set(self, n: int) -> None:
        with self._lock:
            self._value = n

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class ProgressMonitor:
    """
    Render a ProgressCounter as a tqdm bar from a background thread.

    Args:
        counter: Counter updated by the transfer loop.
        total: Total expected bytes.
        interval: Seconds between refreshes.
        desc: Bar label.
        disable: Create no bar (the thread still runs, for uniform handling).

    Example::

        counter = ProgressCounter(offset)
        with ProgressMonitor(counter, total):
            for chunk in chunks:
                f.write(chunk)
                counter.add(len(chunk))
    """

    def __init__(
        self,
        counter: ProgressCounter,
        total: int,
        *,
        interval: float = PROGRESS_INTERVAL,
        desc: str = "Downloading",
        disable: bool = False,
    ):
        self.counter = counter
        self.total = total
        self.interval = interval
        self._done = threading.Event()
        self._bar = tqdm(
            total=total,
            initial=counter.value,
            unit="B",
            unit_scale=True,
            unit_divisor=1024,
            desc=desc,
            disable=disable,
        )
        self._shown = counter.value
        self._thread: Optional[threading.Thread] = None

    def _refresh(self) -> None:
        current = self.counter.value
        delta = current - self._shown
        if delta > 0:
            self._bar.update(delta)
        elif delta < 0:
            # transfer restarted from a lower offset
            self._bar.reset(total=self.total)
            self._bar.update(current)
        self._shown = current

    def _run(self) -> None:
        while not self._done.wait(self.interval):
            self._refresh()

    def start(self) -> "ProgressMonitor":
        self._thread = threading.Thread(target=self._run, name="progress", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        """Stop the display thread and render the final counter value."""
        self._done.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._refresh()
        self._bar.close()

    def __enter__(self) -> "ProgressMonitor":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()
