from __future__ import annotations
from dataclasses import dataclass

from .position import ReferenceEnd
from .relposClasses import ConfigurationError

# Each worker opens its own read statements against the stores, so the pool is capped.
DEFAULT_WORKERS = 12
EXECUTORS = ("process", "thread")


def check_pool(workers: int, executor: str) -> None:
    if not isinstance(workers, int) or workers < 1:
        raise ConfigurationError(f"workers must be at least 1, got {workers!r}")
    if executor not in EXECUTORS:
        raise ConfigurationError(f"executor must be one of {', '.join(EXECUTORS)}; got {executor!r}")


@dataclass(frozen=True)
class DistroConfig:
    """
    Options of a relative position distribution run.

    point1/point2 select which end (head = 5', tail = 3') of the reads of
    dataset 1 and dataset 2 is compared. anti_sense compares dataset 1 reads
    on the strand opposite to the dataset 2 reads instead of the same strand.
    """
    span: int = 100
    point1: ReferenceEnd = ReferenceEnd.HEAD
    point2: ReferenceEnd = ReferenceEnd.HEAD
    anti_sense: bool = False
    collapse1: bool = False
    collapse2: bool = False
    group_by_reference: bool = False
    workers: int = DEFAULT_WORKERS
    executor: str = "process"

    def __post_init__(self):
        if not isinstance(self.span, int) or self.span < 0:
            raise ConfigurationError(f"span must be a non-negative integer, got {self.span!r}")
        # Normalise 5p/3p spellings; frozen, so go through object.__setattr__
        object.__setattr__(self, "point1", ReferenceEnd.parse(self.point1))
        object.__setattr__(self, "point2", ReferenceEnd.parse(self.point2))
        check_pool(self.workers, self.executor)
