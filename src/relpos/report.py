from __future__ import annotations
from typing import TextIO

from .distro import DistroResult
from .overlap import OccupancyCount


def write_distro(result: DistroResult, fh: TextIO) -> int:
    """
    Write one row per relative position in [-span, span], per reference when
    the result is grouped. Returns the number of data rows written.
    """
    rows = 0
    if result.by_reference is not None:
        fh.write("ref\tpos\tpairs\treadCount1\treadCount2\n")
        for name in sorted(result.by_reference):
            t = result.by_reference[name]
            for pos, pairs in t.histogram.items():
                fh.write(f"{name}\t{pos}\t{pairs}\t{t.read_count1}\t{t.read_count2}\n")
                rows += 1
    else:
        t = result.total
        fh.write("pos\tpairs\treadCount1\treadCount2\n")
        for pos, pairs in t.histogram.items():
            fh.write(f"{pos}\t{pairs}\t{t.read_count1}\t{t.read_count2}\n")
            rows += 1
    return rows


def write_overlap(count: OccupancyCount, fh: TextIO) -> None:
    fh.write(
        f"total_pos:{count.pos_total}\n"
        f"occupied_pos:{count.pos_occupied}\n"
        f"percent_pos:{count.percent_pos_occupied:.2f}\n"
        f"total_reads:{count.reads_total}\n"
        f"occupied_reads:{count.reads_occupied}\n"
        f"percent_reads:{count.percent_reads_occupied:.2f}\n"
    )
