"""Console observer that renders training progress and save/restore outcomes."""

from __future__ import annotations

import math
import sys
from pathlib import Path
from typing import TextIO

from ..core.types import NetworkState, TrainingProgress

BAR_LENGTH = 25
BAR_FILL = "/"
BAR_EMPTY = "."

_STATUS_MESSAGES = {
    NetworkState.SAVED: "Saved successfully in <{name}>",
    NetworkState.NOT_SAVED: "Unable to save in <{name}>",
    NetworkState.RESTORED: "Restored successfully from <{name}>",
    NetworkState.NOT_RESTORED: "Unable to restore from <{name}>",
}


def progress_bar(current: int, maximum: int, *, percentage: bool = False, ratio: bool = True) -> str:
    """Return e.g. ``"3/10\\t////////................."``."""

    filled = math.ceil(BAR_LENGTH / maximum * current) if maximum else 0
    parts = []
    if ratio:
        parts.append(f"{current}/{maximum}\t")
    if percentage:
        percent = min(100.0 * filled / BAR_LENGTH, 100.0)
        parts.append(f"{percent:6.2f} %\t")
    parts.append("".join(BAR_EMPTY if filled <= idx else BAR_FILL for idx in range(BAR_LENGTH)))
    return "".join(parts)


class ConsoleProgress:
    """Print a self-overwriting progress line while a network trains.

    ``every`` throttles redraws to one per ``every`` samples; the last sample
    of an epoch is always drawn.
    """

    def __init__(self, stream: TextIO | None = None, *, every: int = 1, percentage: bool = False) -> None:
        self.stream = stream or sys.stdout
        self.every = max(1, int(every))
        self.percentage = percentage
        self._bar_open = False

    def on_progress(self, progress: TrainingProgress) -> None:
        last = progress.current_sample == progress.total_samples
        if progress.current_sample % self.every and not last:
            return
        bar = progress_bar(
            progress.current_sample, progress.total_samples, percentage=self.percentage
        )
        self.stream.write(
            f"\rTraining...\tEpoch {progress.current_epoch}/{progress.total_epochs}\tProgress {bar}"
        )
        self.stream.flush()
        self._bar_open = True

    def on_status(self, state: NetworkState, path: Path | None) -> None:
        if state is not NetworkState.TRAINING and self._bar_open:
            self.stream.write("\n")
            self._bar_open = False
        template = _STATUS_MESSAGES.get(state)
        if template is not None:
            name = path.name if path is not None else "?"
            self.stream.write(template.format(name=name) + "\n")
            self.stream.flush()


__all__ = ["ConsoleProgress", "progress_bar"]
