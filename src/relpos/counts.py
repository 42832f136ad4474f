from __future__ import annotations
from pathlib import Path
from typing import TextIO

from .bedfeats import read_bed6
from .sources import SQLiteSource


def write_read_count(source: SQLiteSource, fh: TextIO, *, category: str = "all", header: bool = False) -> None:
    """Number of reads and the corresponding total copy number."""
    total, copies = source.count_reads()
    if header:
        fh.write("category\tcount\tcopy_number\n")
    fh.write(f"{category}\t{total}\t{copies}\n")


def write_size_distro(source: SQLiteSource, fh: TextIO, *, category: str = "all", header: bool = False) -> None:
    """
    Number of reads and read copies per read length. Lengths below the
    largest observed one that have no reads are written with zero counts.
    """
    if header:
        fh.write("category\tlen\tcount\tcopyNumber\n")
    idx = 0
    for seq_len, count, copies in source.size_distribution():
        while seq_len > idx:
            fh.write(f"{category}\t{idx}\t0\t0\n")
            idx += 1
        idx = seq_len + 1
        fh.write(f"{category}\t{seq_len}\t{count}\t{copies}\n")


def write_feature_counts(
    source: SQLiteSource,
    bed_path: str | Path,
    fh: TextIO,
    *,
    category: str = "all",
    header: bool = False,
    use_ori: bool = False,
) -> int:
    """
    Reads and read copies entirely contained in each BED6 feature.
    With use_ori only reads on the orientation of the feature are counted.
    Returns the number of features written.
    """
    feats = list(read_bed6(bed_path))
    query = ((f.chrom, f.start, f.stop, f.orientation if use_ori else None) for f in feats)
    if header:
        fh.write("category\tfeat\tcount\tcopyNumber\n")
    n = 0
    for f, (count, copies) in zip(feats, source.count_in_features(query)):
        fh.write(f"{category}\t{f.label()}\t{count}\t{copies}\n")
        n += 1
    return n
