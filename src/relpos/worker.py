from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Tuple
import os
import psutil

from .config import DistroConfig
from .histogram import Histogram
from .position import position_getter
from .relposClasses import Interval, Orientation, Partition
from .sources import RecordSource


def _get_memory_usage() -> float:
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / 1024 / 1024  # Current memory usage in MB


@dataclass
class PartitionResult:
    partition: Partition
    histogram: Histogram
    read_count1: int
    read_count2: int
    rss_mb: float = 0.0  # memory of the worker process when it finished


@dataclass(frozen=True)
class DistroJob:
    partition: Partition
    source1: RecordSource
    source2: RecordSource
    config: DistroConfig


def build_index(
    intervals: Iterable[Interval],
    orientation: Orientation,
    get_pos: Callable[[Interval, Orientation], int],
    collapse: bool = False,
) -> Tuple[Dict[int, int], int]:
    """
    Weighted position index of dataset 1 reads: position -> summed copy number.

    With collapse every distinct position counts once with weight 1 and only
    the first read on a position is counted. Returns (index, read count).
    """
    index: Dict[int, int] = {}
    count = 0
    for iv in intervals:
        pos = get_pos(iv, orientation)
        if collapse:
            if pos in index:
                continue
            index[pos] = 1
        else:
            index[pos] = index.get(pos, 0) + iv.weight
        count += 1
    return index, count


def count_partition(job: DistroJob) -> PartitionResult:
    """
    Relative position histogram of one (reference, orientation) partition.

    Dataset 2 reads are probed against the dataset 1 index at every offset in
    [-span, span]. Offsets are multiplied by the partition orientation so a
    positive offset always means the dataset 1 read is downstream of the
    dataset 2 read, on either strand.
    """
    cfg = job.config
    ref, ori = job.partition.reference, job.partition.orientation
    span = cfg.span

    ori1 = ori.flip() if cfg.anti_sense else ori
    index, count1 = build_index(
        job.source1.intervals(ref, ori1),
        ori1,
        position_getter(cfg.point1),
        collapse=cfg.collapse1,
    )

    get_pos2 = position_getter(cfg.point2)
    slots = [(delta, delta * int(ori) + span) for delta in range(-span, span + 1)]
    counts = [0] * (2 * span + 1)
    visited = set()
    count2 = 0
    for iv in job.source2.intervals(ref, ori):
        pos = get_pos2(iv, ori)
        if cfg.collapse2:
            if pos in visited:
                continue
            visited.add(pos)
        count2 += 1
        if not index:
            continue
        for delta, slot in slots:
            probe = pos + delta
            # no negative coordinates
            if probe < 0:
                continue
            w = index.get(probe)
            if w:
                counts[slot] += w

    return PartitionResult(
        partition=job.partition,
        histogram=Histogram.from_list(span, counts),
        read_count1=count1,
        read_count2=count2,
        rss_mb=_get_memory_usage(),
    )
