from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Optional
import logging

from .config import DistroConfig
from .histogram import Histogram
from .partitions import enumerate_partitions, merge_references
from .scheduler import schedule
from .sources import RecordSource
from .worker import DistroJob, PartitionResult, count_partition


@dataclass
class Tally:
    """Merged histogram and read counts of one or more partitions."""
    histogram: Histogram
    read_count1: int = 0
    read_count2: int = 0

    def add(self, res: PartitionResult) -> None:
        self.histogram.merge(res.histogram)
        self.read_count1 += res.read_count1
        self.read_count2 += res.read_count2


@dataclass
class DistroResult:
    span: int
    total: Tally
    by_reference: Optional[Dict[str, Tally]] = None

    @property
    def grouped(self) -> bool:
        return self.by_reference is not None


def aggregate(
    results: Iterable[PartitionResult],
    span: int,
    *,
    group_by_reference: bool = False,
    logger: logging.Logger | None = None,
) -> DistroResult:
    """
    Single consumer of partition results. Merging is a pointwise sum, so the
    order in which partitions complete does not change the outcome.
    """
    total = Tally(Histogram(span))
    by_ref: Optional[Dict[str, Tally]] = {} if group_by_reference else None
    n = 0
    for res in results:
        total.add(res)
        if by_ref is not None:
            name = res.partition.reference.name
            if name not in by_ref:
                by_ref[name] = Tally(Histogram(span))
            by_ref[name].add(res)
        n += 1
        if logger and logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Partition {res.partition} done: reads1={res.read_count1}, reads2={res.read_count2}, "
                f"pairs={res.histogram.total()} (worker memory: {res.rss_mb:.1f} MB)"
            )
    if logger:
        logger.info(f"Merged {n} partitions: reads1={total.read_count1}, reads2={total.read_count2}")
    return DistroResult(span=span, total=total, by_reference=by_ref)


def relative_position_distro(
    source1: RecordSource,
    source2: RecordSource,
    config: DistroConfig,
    *,
    logger: logging.Logger | None = None,
) -> DistroResult:
    """
    Histogram of relative positions of dataset 1 reads against dataset 2 reads,
    computed per (reference, orientation) partition on a bounded worker pool.
    """
    refs = merge_references(source1.references(), source2.references(), logger=logger)
    partitions = enumerate_partitions(refs)
    if logger:
        logger.info(
            f"{len(refs)} references, {len(partitions)} partitions; span={config.span}, "
            f"pos1={config.point1.value}, pos2={config.point2.value}, anti={config.anti_sense}"
        )
    jobs = [DistroJob(p, source1, source2, config) for p in partitions]
    results = schedule(
        jobs,
        count_partition,
        workers=config.workers,
        executor=config.executor,
        logger=logger,
    )
    return aggregate(results, config.span, group_by_reference=config.group_by_reference, logger=logger)
