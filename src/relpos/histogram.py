from __future__ import annotations
from typing import Iterator, Tuple

import numpy as np


class Histogram:
    """
    Pair counts at each signed relative offset in [-span, span].

    Backed by a dense array indexed by offset + span, so every offset of the
    range is always present (zero when nothing was counted).
    """

    __slots__ = ("span", "counts")

    def __init__(self, span: int, counts: np.ndarray | None = None):
        if span < 0:
            raise ValueError(f"span must be non-negative, got {span}")
        self.span = span
        if counts is None:
            counts = np.zeros(2 * span + 1, dtype=np.int64)
        elif counts.shape != (2 * span + 1,):
            raise ValueError(f"counts must have length {2 * span + 1}, got {counts.shape}")
        self.counts = counts

    @classmethod
    def from_list(cls, span: int, values) -> "Histogram":
        return cls(span, np.asarray(values, dtype=np.int64))

    def _slot(self, offset: int) -> int:
        if offset < -self.span or offset > self.span:
            raise IndexError(f"offset {offset} outside [-{self.span}, {self.span}]")
        return offset + self.span

    def add(self, offset: int, n: int = 1) -> None:
        self.counts[self._slot(offset)] += n

    def get(self, offset: int) -> int:
        return int(self.counts[self._slot(offset)])

    def __getitem__(self, offset: int) -> int:
        return self.get(offset)

    def merge(self, other: "Histogram") -> "Histogram":
        """Add other into self pointwise and return self."""
        if other.span != self.span:
            raise ValueError(f"cannot merge histograms of span {self.span} and {other.span}")
        self.counts += other.counts
        return self

    def offsets(self) -> range:
        return range(-self.span, self.span + 1)

    def items(self) -> Iterator[Tuple[int, int]]:
        for offset, c in zip(self.offsets(), self.counts.tolist()):
            yield offset, c

    def total(self) -> int:
        return int(self.counts.sum())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Histogram):
            return NotImplemented
        return self.span == other.span and bool(np.array_equal(self.counts, other.counts))

    def __repr__(self) -> str:
        nz = {o: c for o, c in self.items() if c}
        return f"Histogram(span={self.span}, nonzero={nz})"
