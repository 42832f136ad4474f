from __future__ import annotations
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Protocol, Tuple
import os
import sqlite3
import bamnostic as bn

from .relposClasses import (
    ConfigurationError,
    Interval,
    InvariantViolation,
    Orientation,
    RecordSourceError,
    Reference,
    RelposError,
)

# Columns of an htsdb table holding full SAM records
SAM_COLUMNS = (
    "qname", "flag", "rname", "pos", "mapq", "cigar",
    "rnext", "pnext", "tlen", "sequence", "qual", "tags",
)


class RecordSource(Protocol):
    """
    A dataset of aligned reads.

    Implementations are cheap, picklable descriptors: every call opens its own
    handle on the underlying store, so concurrent workers never share a cursor.
    """

    def references(self) -> Iterator[Reference]: ...

    def intervals(self, reference: Reference, orientation: Orientation) -> Iterator[Interval]: ...

    def records(self) -> Iterator[Tuple[str, Interval]]: ...


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SQLiteSource:
    """Reads stored in an htsdb SQLite table, optionally narrowed by an SQL filter."""

    def __init__(self, path: str | Path, table: str = "sample", where: Optional[str] = None):
        self.path = str(path)
        self.table = table
        self.where = where or None

    def __repr__(self) -> str:
        w = f", where={self.where!r}" if self.where else ""
        return f"SQLiteSource({self.path!r}, table={self.table!r}{w})"

    def _select(self, columns: str, *clauses: str, tail: str = "") -> str:
        conds = [f"({self.where})"] if self.where else []
        conds.extend(clauses)
        q = f"SELECT {columns} FROM {_quote_ident(self.table)}"
        if conds:
            q += " WHERE " + " AND ".join(conds)
        if tail:
            q += " " + tail
        return q

    def _connect(self) -> sqlite3.Connection:
        if not os.path.exists(self.path):
            raise RecordSourceError(f"{self!r}: database file does not exist")
        uri = Path(self.path).resolve().as_uri() + "?mode=ro"
        try:
            return sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            raise RecordSourceError(f"{self!r}: {e}") from e

    def _rows(self, query: str, params: Tuple = ()) -> Iterator[tuple]:
        conn = self._connect()
        try:
            try:
                for row in conn.execute(query, params):
                    yield row
            except sqlite3.Error as e:
                raise RecordSourceError(f"{self!r}: {e}") from e
        finally:
            conn.close()

    def references(self) -> Iterator[Reference]:
        query = self._select("rname, MAX(stop) + 1 AS length", tail="GROUP BY rname")
        for rname, length in self._rows(query):
            if rname is None or length is None:
                raise InvariantViolation(f"{self!r}: corrupt reference row: rname={rname!r}, length={length!r}")
            try:
                length = int(length)
            except (TypeError, ValueError):
                raise InvariantViolation(f"{self!r}: corrupt length {length!r} for {rname!r}") from None
            yield Reference(str(rname), length)

    def intervals(self, reference: Reference, orientation: Orientation) -> Iterator[Interval]:
        query = self._select("start, stop, strand, copy_number", "strand = ?", "rname = ?")
        for start, stop, strand, copy_number in self._rows(query, (int(orientation), reference.name)):
            yield Interval.from_stored(start, stop, strand, copy_number)

    def records(self) -> Iterator[Tuple[str, Interval]]:
        query = self._select("rname, start, stop, strand, copy_number")
        for rname, start, stop, strand, copy_number in self._rows(query):
            yield rname, Interval.from_stored(start, stop, strand, copy_number)

    def count_reads(self) -> Tuple[int, int]:
        """Number of stored reads and their summed copy number."""
        query = self._select("COUNT(*), SUM(copy_number)")
        for total, copies in self._rows(query):
            return int(total), int(copies or 0)
        return 0, 0

    def size_distribution(self) -> List[Tuple[int, int, int]]:
        """(read length, read count, copy number) per observed read length, ascending."""
        query = self._select(
            "LENGTH(sequence) AS len, COUNT(*), SUM(copy_number)",
            tail="GROUP BY len ORDER BY len",
        )
        return [(int(n), int(c), int(cn or 0)) for n, c, cn in self._rows(query) if n is not None]

    def count_in_features(
        self,
        features: Iterable[Tuple[str, int, int, Optional[Orientation]]],
    ) -> Iterator[Tuple[int, int]]:
        """
        For each (rname, start, stop, orientation) feature, with inclusive
        coordinates, yield the number of reads and copies entirely inside it.
        Orientation None counts reads on both strands.
        """
        clauses = ("rname = ?", "start BETWEEN ? AND ?", "stop BETWEEN ? AND ?")
        q_any = self._select("COUNT(*), SUM(copy_number)", *clauses)
        q_ori = self._select("COUNT(*), SUM(copy_number)", *clauses, "strand = ?")
        conn = self._connect()
        try:
            for rname, start, stop, ori in features:
                params = (rname, start, stop, start, stop)
                try:
                    if ori is None:
                        total, copies = conn.execute(q_any, params).fetchone()
                    else:
                        total, copies = conn.execute(q_ori, params + (int(ori),)).fetchone()
                except sqlite3.Error as e:
                    raise RecordSourceError(f"{self!r}: {e}") from e
                yield int(total), int(copies or 0)
        finally:
            conn.close()

    def sam_records(self) -> Iterator[tuple]:
        query = self._select(", ".join(SAM_COLUMNS))
        yield from self._rows(query)


class BamSource:
    """Alignments of a BAM file read with bamnostic; every mapped record has weight 1."""

    def __init__(self, path: str | Path):
        self.path = str(path)

    def __repr__(self) -> str:
        return f"BamSource({self.path!r})"

    def _open(self):
        try:
            return bn.AlignmentFile(self.path, "rb")
        except Exception as e:
            raise RecordSourceError(f"Could not open BAM: {self.path}: {e}") from e

    def _has_index(self) -> bool:
        candidates = [self.path + ".bai", os.path.splitext(self.path)[0] + ".bai"]
        return any(os.path.exists(p) for p in candidates)

    @staticmethod
    def _to_interval(aln) -> Interval:
        start = getattr(aln, "pos", 0) or 0  # bamnostic uses 0-based pos
        end = getattr(aln, "reference_end", None)
        if end is None:
            end = start + 1
        ori = Orientation.REVERSE if getattr(aln, "is_reverse", False) else Orientation.FORWARD
        return Interval(start, end, ori, 1)

    def _alignments(self, contig: Optional[str] = None):
        bf = self._open()
        try:
            try:
                if contig is not None and self._has_index():
                    it = bf.fetch(contig)
                else:
                    it = iter(bf)
                for aln in it:
                    if getattr(aln, "is_unmapped", False):
                        continue
                    rname = getattr(aln, "reference_name", None)
                    if rname is None or (contig is not None and rname != contig):
                        continue
                    yield rname, aln
            except RelposError:
                raise
            except Exception as e:
                raise RecordSourceError(f"{self!r}: {e}") from e
        finally:
            bf.close()

    def references(self) -> Iterator[Reference]:
        bf = self._open()
        try:
            names = list(getattr(bf, "references", None) or [])
            lengths = list(getattr(bf, "lengths", None) or [])
        finally:
            bf.close()
        if len(names) != len(lengths):
            raise RecordSourceError(f"{self!r}: BAM header has {len(names)} references but {len(lengths)} lengths")
        for name, length in zip(names, lengths):
            yield Reference(name, int(length))

    def intervals(self, reference: Reference, orientation: Orientation) -> Iterator[Interval]:
        for _, aln in self._alignments(reference.name):
            iv = self._to_interval(aln)
            if iv.orientation is orientation:
                yield iv

    def records(self) -> Iterator[Tuple[str, Interval]]:
        for rname, aln in self._alignments():
            yield rname, self._to_interval(aln)


class MemorySource:
    """In-memory dataset of (rname, Interval) records, in insertion order."""

    def __init__(self, records: Iterable[Tuple[str, Interval]] = ()):
        self._records = list(records)

    def __repr__(self) -> str:
        return f"MemorySource({len(self._records)} records)"

    def add(self, rname: str, start: int, end: int, orientation=Orientation.FORWARD, weight: int = 1) -> "MemorySource":
        self._records.append((rname, Interval(start, end, Orientation.from_strand(orientation), weight)))
        return self

    def references(self) -> Iterator[Reference]:
        lengths = {}
        for rname, iv in self._records:
            lengths[rname] = max(lengths.get(rname, 0), iv.end)
        for rname, length in lengths.items():
            yield Reference(rname, length)

    def intervals(self, reference: Reference, orientation: Orientation) -> Iterator[Interval]:
        for rname, iv in self._records:
            if rname == reference.name and iv.orientation == orientation:
                yield iv

    def records(self) -> Iterator[Tuple[str, Interval]]:
        return iter(list(self._records))


def open_source(path: str | Path, table: str = "sample", where: Optional[str] = None) -> RecordSource:
    """BamSource for *.bam paths, SQLiteSource for anything else."""
    if str(path).lower().endswith(".bam"):
        if where:
            raise ConfigurationError(f"SQL filters do not apply to BAM input: {path}")
        return BamSource(path)
    return SQLiteSource(path, table=table, where=where)
