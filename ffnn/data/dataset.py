"""In-memory sample containers consumed by :meth:`Network.train`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Sequence

import numpy as np

from ..core.types import DTYPE, Array

_RAMP = " .:-=+*#%@"


@dataclass
class Match:
    """One sample: a flat input vector, an optional label and display metadata.

    ``width`` and ``height`` are only used by :meth:`render`; zero means the
    sample is not an image.
    """

    inputs: Array
    label: int | None = None
    width: int = 0
    height: int = 0

    def __post_init__(self) -> None:
        if self.width < 0:
            raise ValueError(f"Width [{self.width}] must be >= 0")
        if self.height < 0:
            raise ValueError(f"Height [{self.height}] must be >= 0")
        self.inputs = np.asarray(self.inputs, dtype=DTYPE).reshape(-1)
        if self.label is not None:
            self.label = int(self.label)

    @property
    def has_label(self) -> bool:
        return self.label is not None and self.label >= 0

    def render(self) -> str:
        """Return an ASCII-art rendering of an image sample."""

        if not self.width or not self.height:
            return ""
        lines = []
        for row in range(self.width):
            chunk = self.inputs[row * self.height : (row + 1) * self.height]
            lines.append("".join(_RAMP[min(int(v * 10), 9)] for v in np.clip(chunk, 0.0, 1.0)))
        return "\n".join(lines) + "\n"

    __str__ = render


@dataclass
class DataSet:
    """Ordered, shuffleable collection of :class:`Match` objects."""

    matches: List[Match] = field(default_factory=list)

    @classmethod
    def from_arrays(
        cls,
        inputs: Array,
        labels: Sequence[int] | Array | None = None,
        *,
        width: int = 0,
        height: int = 0,
    ) -> "DataSet":
        inputs = np.asarray(inputs, dtype=DTYPE)
        inputs = inputs.reshape(inputs.shape[0], -1)
        if labels is not None and len(labels) != inputs.shape[0]:
            raise ValueError(
                f"inputs has {inputs.shape[0]} rows but {len(labels)} labels were given"
            )
        matches = [
            Match(
                inputs=row,
                label=None if labels is None else int(labels[idx]),
                width=width,
                height=height,
            )
            for idx, row in enumerate(inputs)
        ]
        return cls(matches)

    def add(self, match: Match) -> None:
        self.matches.append(match)

    def extend(self, matches: Iterable[Match]) -> None:
        self.matches.extend(matches)

    def shuffle(self, rng: np.random.Generator | None = None) -> None:
        """Shuffle in place; pass a seeded generator for a reproducible order."""

        rng = rng if rng is not None else np.random.default_rng()
        order = rng.permutation(len(self.matches))
        self.matches = [self.matches[i] for i in order]

    def size(self) -> int:
        return len(self.matches)

    def __len__(self) -> int:
        return len(self.matches)

    def __iter__(self) -> Iterator[Match]:
        return iter(self.matches)

    def __getitem__(self, index: int) -> Match:
        return self.matches[index]

    def head(self, count: int) -> "DataSet":
        return DataSet(list(self.matches[:count]))

    def inputs(self) -> Array:
        if not self.matches:
            return np.zeros((0, 0), dtype=DTYPE)
        return np.stack([m.inputs for m in self.matches])

    def labels(self) -> Array:
        return np.array(
            [m.label if m.has_label else -1 for m in self.matches], dtype=np.int64
        )


__all__ = ["DataSet", "Match"]
