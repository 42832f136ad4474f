# tests/test_relpos_bamnostic.py
import pytest

from relpos import sources
from relpos.relposClasses import Interval, Orientation, RecordSourceError, Reference


class _Aln:
    def __init__(self, rname, pos, end, is_reverse=False, is_unmapped=False):
        self.reference_name = rname
        self.pos = pos
        self.reference_end = end
        self.is_reverse = is_reverse
        self.is_unmapped = is_unmapped


ALIGNMENTS = [
    _Aln("chr1", 10, 20),
    _Aln("chr1", 30, 35, is_reverse=True),
    _Aln("chr1", 0, 0, is_unmapped=True),
    _Aln("chr2", 5, 9),
]


def _fake_alignmentfile(called):
    def fake(path, mode):
        called['path'] = path
        called['opened'] = called.get('opened', 0) + 1

        class Dummy:
            references = ["chr1", "chr2"]
            lengths = [1000, 500]

            def __iter__(self): return iter(ALIGNMENTS)
            def fetch(self, *a, **kw): return iter(ALIGNMENTS)
            def close(self): called['closed'] = called.get('closed', 0) + 1
        return Dummy()
    return fake


def test_bam_references_from_header(monkeypatch):
    called = {}
    monkeypatch.setattr(sources.bn, "AlignmentFile", _fake_alignmentfile(called))
    refs = list(sources.BamSource("fake.bam").references())
    assert refs == [Reference("chr1", 1000), Reference("chr2", 500)]
    assert called['path'] == "fake.bam"
    assert called['closed'] == 1


def test_bam_intervals_per_strand(monkeypatch):
    called = {}
    monkeypatch.setattr(sources.bn, "AlignmentFile", _fake_alignmentfile(called))
    src = sources.BamSource("fake.bam")
    chr1 = Reference("chr1", 1000)
    assert list(src.intervals(chr1, Orientation.FORWARD)) == [Interval(10, 20, Orientation.FORWARD, 1)]
    assert list(src.intervals(chr1, Orientation.REVERSE)) == [Interval(30, 35, Orientation.REVERSE, 1)]
    assert called['opened'] == called['closed'] == 2


def test_bam_records_skip_unmapped(monkeypatch):
    monkeypatch.setattr(sources.bn, "AlignmentFile", _fake_alignmentfile({}))
    names = [r for r, _ in sources.BamSource("fake.bam").records()]
    assert names == ["chr1", "chr1", "chr2"]


def test_unreadable_bam_is_source_error(monkeypatch):
    def broken(path, mode):
        raise OSError("not a BGZF file")
    monkeypatch.setattr(sources.bn, "AlignmentFile", broken)
    with pytest.raises(RecordSourceError, match="Could not open BAM"):
        list(sources.BamSource("fake.bam").references())
