import random

import pytest

from relpos.config import DistroConfig
from relpos.distro import aggregate, relative_position_distro
from relpos.histogram import Histogram
from relpos.relposClasses import (
    ConfigurationError,
    InvariantViolation,
    Orientation,
    Partition,
    RecordSourceError,
    Reference,
)
from relpos.scheduler import schedule
from relpos.sources import MemorySource, SQLiteSource
from relpos.worker import PartitionResult

FWD, REV = Orientation.FORWARD, Orientation.REVERSE


def _two_refs():
    src1 = MemorySource().add("chr1", 10, 11).add("chr2", 100, 101, weight=2)
    src2 = MemorySource().add("chr1", 12, 13).add("chr2", 99, 100)
    return src1, src2


def _nonzero(h):
    return {o: c for o, c in h.items() if c}


def test_aggregate_mode_threads():
    src1, src2 = _two_refs()
    res = relative_position_distro(src1, src2, DistroConfig(span=5, executor="thread", workers=3))
    assert not res.grouped
    assert _nonzero(res.total.histogram) == {-2: 1, 1: 2}
    assert (res.total.read_count1, res.total.read_count2) == (2, 2)


def test_aggregate_mode_processes():
    src1, src2 = _two_refs()
    res = relative_position_distro(src1, src2, DistroConfig(span=5, executor="process", workers=2))
    assert _nonzero(res.total.histogram) == {-2: 1, 1: 2}
    assert (res.total.read_count1, res.total.read_count2) == (2, 2)


def test_grouped_mode_keeps_references_apart():
    src1, src2 = _two_refs()
    cfg = DistroConfig(span=5, executor="thread", group_by_reference=True)
    res = relative_position_distro(src1, src2, cfg)
    assert res.grouped
    assert set(res.by_reference) == {"chr1", "chr2"}
    chr1, chr2 = res.by_reference["chr1"], res.by_reference["chr2"]
    assert _nonzero(chr1.histogram) == {-2: 1}
    assert _nonzero(chr2.histogram) == {1: 2}
    assert (chr1.read_count1, chr1.read_count2) == (1, 1)
    assert (chr2.read_count1, chr2.read_count2) == (1, 1)


def test_grouped_mode_sums_both_orientations():
    src1 = MemorySource().add("chr1", 10, 11, FWD).add("chr1", 50, 60, REV)
    src2 = MemorySource().add("chr1", 12, 13, FWD).add("chr1", 55, 62, REV)
    cfg = DistroConfig(span=5, executor="thread", group_by_reference=True)
    res = relative_position_distro(src1, src2, cfg)
    t = res.by_reference["chr1"]
    # reverse heads 59 and 61: read 1 is 2 downstream of read 2
    assert _nonzero(t.histogram) == {-2: 1, 2: 1}
    assert (t.read_count1, t.read_count2) == (2, 2)


def test_reference_only_in_one_dataset_still_counts_reads():
    src1 = MemorySource().add("chr1", 10, 11)
    src2 = MemorySource().add("chrX", 12, 13)
    res = relative_position_distro(src1, src2, DistroConfig(span=2, executor="thread"))
    assert res.total.histogram.total() == 0
    assert (res.total.read_count1, res.total.read_count2) == (1, 1)


def test_merge_order_does_not_change_result():
    ref1, ref2 = Reference("chr1", 10), Reference("chr2", 10)
    results = [
        PartitionResult(Partition(ref1, FWD), Histogram.from_list(1, [1, 0, 2]), 1, 2),
        PartitionResult(Partition(ref1, REV), Histogram.from_list(1, [0, 3, 0]), 4, 1),
        PartitionResult(Partition(ref2, FWD), Histogram.from_list(1, [5, 0, 0]), 2, 2),
        PartitionResult(Partition(ref2, REV), Histogram.from_list(1, [0, 0, 1]), 1, 3),
    ]
    expected = aggregate(list(results), 1, group_by_reference=True)
    rng = random.Random(7)
    for _ in range(10):
        shuffled = [
            PartitionResult(r.partition, Histogram(1, r.histogram.counts.copy()), r.read_count1, r.read_count2)
            for r in results
        ]
        rng.shuffle(shuffled)
        got = aggregate(shuffled, 1, group_by_reference=True)
        assert got.total.histogram == expected.total.histogram
        assert (got.total.read_count1, got.total.read_count2) == (8, 8)
        for name in ("chr1", "chr2"):
            assert got.by_reference[name].histogram == expected.by_reference[name].histogram


class _FailingSource(MemorySource):
    def intervals(self, reference, orientation):
        if reference.name == "chr2":
            raise RecordSourceError("disk went away")
        return super().intervals(reference, orientation)


def test_storage_error_aborts_whole_run():
    src1 = _FailingSource([]).add("chr1", 10, 11).add("chr2", 10, 11)
    src2 = MemorySource().add("chr1", 12, 13)
    with pytest.raises(RecordSourceError, match="disk went away"):
        relative_position_distro(src1, src2, DistroConfig(span=5, executor="thread", workers=2))


class _CorruptSource(MemorySource):
    def intervals(self, reference, orientation):
        yield from super().intervals(reference, orientation)
        Orientation.from_strand(0)


def test_corrupt_strand_aborts_run():
    src1 = _CorruptSource([]).add("chr1", 10, 11)
    src2 = MemorySource().add("chr1", 12, 13)
    with pytest.raises(InvariantViolation):
        relative_position_distro(src1, src2, DistroConfig(span=5, executor="thread"))


def test_schedule_runs_every_job_once():
    seen = list(schedule(list(range(20)), lambda j: j * 2, workers=4, executor="thread"))
    assert sorted(seen) == [j * 2 for j in range(20)]


def test_schedule_without_jobs_yields_nothing():
    assert list(schedule([], lambda j: j, executor="thread")) == []


def test_schedule_rejects_unknown_executor():
    with pytest.raises(ConfigurationError):
        list(schedule([1], lambda j: j, executor="fiber"))


@pytest.mark.parametrize("opts", [
    {"span": -1},
    {"workers": 0},
    {"executor": "fiber"},
    {"point1": "middle"},
])
def test_bad_configuration_is_rejected(opts):
    with pytest.raises(ConfigurationError):
        DistroConfig(**opts)


def test_sqlite_datasets_end_to_end(make_db, row):
    db1 = make_db("a.db", [row("chr1", 1, 10, 10), row("chr1", -1, 40, 49, copy_number=3)])
    db2 = make_db("b.db", [row("chr1", 1, 12, 12), row("chr1", -1, 45, 51), row("chr2", 1, 5, 9)])
    src1, src2 = SQLiteSource(db1), SQLiteSource(db2)
    res = relative_position_distro(src1, src2, DistroConfig(span=5, workers=4))
    # forward: 10 vs 12 -> -2; reverse heads 49 vs 51 -> read 1 downstream by 2
    assert _nonzero(res.total.histogram) == {-2: 1, 2: 3}
    assert (res.total.read_count1, res.total.read_count2) == (2, 3)


def test_schedule_rejects_zero_workers():
    with pytest.raises(ConfigurationError):
        list(schedule([1], lambda j: j, workers=0, executor="thread"))
