from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable
import logging

from .config import DEFAULT_WORKERS, check_pool
from .partitions import enumerate_partitions, merge_references
from .position import ReferenceEnd, position_getter
from .relposClasses import Partition
from .scheduler import schedule
from .sources import RecordSource


@dataclass
class OccupancyCount:
    pos_total: int = 0
    pos_occupied: int = 0
    reads_total: int = 0
    reads_occupied: int = 0

    def increment_by(self, other: "OccupancyCount") -> None:
        self.pos_total += other.pos_total
        self.pos_occupied += other.pos_occupied
        self.reads_total += other.reads_total
        self.reads_occupied += other.reads_occupied

    @property
    def percent_pos_occupied(self) -> float:
        return 100 * self.pos_occupied / self.pos_total if self.pos_total else 0.0

    @property
    def percent_reads_occupied(self) -> float:
        return 100 * self.reads_occupied / self.reads_total if self.reads_total else 0.0


@dataclass(frozen=True)
class OverlapJob:
    partition: Partition
    source1: RecordSource
    source2: RecordSource
    point: ReferenceEnd


def count_occupancy(job: OverlapJob) -> OccupancyCount:
    """
    Dataset 1 read positions (and copies) that coincide with a dataset 2
    read position on the same reference and strand.
    """
    ref, ori = job.partition.reference, job.partition.orientation
    get_pos = position_getter(job.point)

    occupied = {get_pos(iv, ori) for iv in job.source2.intervals(ref, ori)}

    cnt = OccupancyCount()
    for iv in job.source1.intervals(ref, ori):
        if get_pos(iv, ori) in occupied:
            cnt.pos_occupied += 1
            cnt.reads_occupied += iv.weight
        cnt.pos_total += 1
        cnt.reads_total += iv.weight
    return cnt


def position_overlap(
    source1: RecordSource,
    source2: RecordSource,
    point: "ReferenceEnd | str" = ReferenceEnd.HEAD,
    *,
    workers: int = DEFAULT_WORKERS,
    executor: str = "process",
    logger: logging.Logger | None = None,
) -> OccupancyCount:
    point = ReferenceEnd.parse(point)
    check_pool(workers, executor)
    # positions of dataset 1 on references absent from it are never counted
    refs = merge_references(source1.references(), logger=logger)
    jobs = [OverlapJob(p, source1, source2, point) for p in enumerate_partitions(refs)]
    if logger:
        logger.info(f"{len(refs)} references, {len(jobs)} partitions; pos={point.value}")
    return merge_counts(schedule(jobs, count_occupancy, workers=workers, executor=executor, logger=logger))


def merge_counts(counts: Iterable[OccupancyCount]) -> OccupancyCount:
    aggr = OccupancyCount()
    for c in counts:
        aggr.increment_by(c)
    return aggr
