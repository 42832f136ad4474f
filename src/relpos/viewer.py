from __future__ import annotations
from typing import TextIO

from .relposClasses import Orientation
from .sources import RecordSource, SQLiteSource


def view_records(source: RecordSource, fh: TextIO, n: int = 10) -> int:
    """
    Print the first N records of a dataset.

    Output is TSV: reference, 0-based start, exclusive end, strand, copy number.
    Returns the number of records printed.
    """
    printed = 0
    for rname, iv in source.records():
        if printed >= n:
            break
        strand = "+" if iv.orientation is Orientation.FORWARD else "-"
        fh.write(f"{rname}\t{iv.start}\t{iv.end}\t{strand}\t{iv.weight}\n")
        printed += 1
    return printed


def write_sam(source: SQLiteSource, fh: TextIO, *, header: bool = False) -> int:
    """Print the stored SAM records, preceded by @SQ lines when header is set."""
    if header:
        for ref in source.references():
            fh.write(f"@SQ\tSN:{ref.name}\tLN:{ref.length}\n")
    n = 0
    for rec in source.sam_records():
        fh.write("\t".join("" if v is None else str(v) for v in rec) + "\n")
        n += 1
    return n
