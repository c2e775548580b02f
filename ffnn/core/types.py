"""Core typing contracts for ffnn."""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np

Array = np.ndarray

DTYPE = np.float32


class NetworkState(enum.Enum):
    """Observable lifecycle of a :class:`~ffnn.core.network.Network`.

    The state never gates an operation; it only tells observers what the
    network was doing when they were notified.
    """

    READY = "ready"
    TRAINING = "training"
    SAVING = "saving"
    SAVED = "saved"
    NOT_SAVED = "not_saved"
    RESTORING = "restoring"
    RESTORED = "restored"
    NOT_RESTORED = "not_restored"


@dataclass(frozen=True)
class TrainingProgress:
    """Snapshot of the training counters pushed to observers."""

    current_epoch: int
    total_epochs: int
    current_sample: int
    total_samples: int

    @property
    def fraction(self) -> float:
        if self.total_samples == 0:
            return 0.0
        return self.current_sample / self.total_samples


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`ffnn.training.pipelines.run_pipeline`."""

    epochs: int
    samples_seen: int
    metrics_path: str
    manifest_path: str
    snapshot_path: str = ""
