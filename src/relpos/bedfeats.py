from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, TextIO
import gzip

from .relposClasses import ConfigurationError, Orientation


@dataclass(frozen=True)
class Bed6:
    chrom: str
    start: int  # 0-based inclusive
    end: int    # exclusive
    name: str
    score: str
    orientation: Orientation | None

    @property
    def stop(self) -> int:
        """Inclusive end coordinate, as stored in htsdb."""
        return self.end - 1

    def label(self) -> str:
        ori = int(self.orientation) if self.orientation is not None else 0
        return f"{self.chrom}:{self.start}-{self.stop}:{ori}"


def _open_text_auto(path: str | Path, mode: str = "rt") -> TextIO:
    p = Path(path)
    if p.suffix.lower() == ".gz":
        return gzip.open(p, mode, encoding="utf-8", errors="replace")
    return open(p, mode, encoding="utf-8", errors="replace")


def _parse_strand(s: str) -> Orientation | None:
    if s == "+":
        return Orientation.FORWARD
    if s == "-":
        return Orientation.REVERSE
    return None


def read_bed6(path: str | Path) -> Iterator[Bed6]:
    """
    Iterate BED6 features of a .bed or .bed.gz file.
    Header, track and comment lines are skipped; a row with fewer than six
    columns or non-integer coordinates is an error.
    """
    with _open_text_auto(path) as fh:
        for line_num, raw in enumerate(fh, start=1):
            if not raw.strip() or raw.startswith(("#", "track", "browser")):
                continue
            cols = raw.rstrip("\n").split("\t")
            if len(cols) < 6:
                raise ConfigurationError(f"{path}:{line_num}: expected 6 BED columns, got {len(cols)}")
            chrom, start_s, end_s, name, score, strand = cols[:6]
            try:
                start = int(start_s)
                end = int(end_s)
            except ValueError:
                raise ConfigurationError(f"{path}:{line_num}: invalid coordinates {start_s!r}, {end_s!r}") from None
            yield Bed6(chrom, start, end, name, score, _parse_strand(strand))
