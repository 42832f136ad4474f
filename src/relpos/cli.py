import argparse
import contextlib
import logging
import sys

from .config import DEFAULT_WORKERS, EXECUTORS, DistroConfig
from .counts import write_feature_counts, write_read_count, write_size_distro
from .distro import relative_position_distro
from .overlap import position_overlap
from .relposClasses import ConfigurationError, RelposError
from .report import write_distro, write_overlap
from .sources import SQLiteSource, open_source
from .viewer import view_records, write_sam

POS_CHOICES = ["5p", "3p", "head", "tail"]


def _make_logger(level: str) -> logging.Logger:
    lvl = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger("relpos")
    # Configure once
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(lvl)
    return logger


def _open_out(path: str | None):
    if path is None or path == "-":
        return contextlib.nullcontext(sys.stdout)
    return open(path, "w", encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = _make_logger(args.log_level)

    try:
        return _dispatch(args, logger)
    except ConfigurationError as e:
        logger.error(str(e))
        return 2
    except (RelposError, OSError) as e:
        logger.error(str(e))
        return 1


def _dispatch(args, logger: logging.Logger) -> int:
    # Relative position distribution of dataset 1 reads around dataset 2 reads
    if args.cmd == "distro":
        config = DistroConfig(
            span=args.span,
            point1=args.pos1 or args.pos,
            point2=args.pos2 or args.pos,
            anti_sense=args.anti,
            collapse1=args.collapse1,
            collapse2=args.collapse2,
            group_by_reference=args.by_ref,
            workers=args.workers,
            executor=args.executor,
        )
        src1 = open_source(args.db1, table=args.table1, where=args.where1)
        src2 = open_source(args.db2, table=args.table2, where=args.where2)
        result = relative_position_distro(src1, src2, config, logger=logger)
        # nothing is written unless every partition was merged
        with _open_out(args.out) as fh:
            write_distro(result, fh)
        return 0

    # Occupancy of dataset 1 positions by dataset 2 positions
    elif args.cmd == "overlap":
        src1 = open_source(args.db1, table=args.table1, where=args.where1)
        src2 = open_source(args.db2, table=args.table2, where=args.where2)
        count = position_overlap(
            src1, src2, args.pos,
            workers=args.workers, executor=args.executor, logger=logger,
        )
        with _open_out(args.out) as fh:
            write_overlap(count, fh)
        return 0

    elif args.cmd == "count":
        with _open_out(args.out) as fh:
            write_read_count(_sqlite(args), fh, category=args.category, header=args.header)
        return 0

    elif args.cmd == "sizes":
        with _open_out(args.out) as fh:
            write_size_distro(_sqlite(args), fh, category=args.category, header=args.header)
        return 0

    elif args.cmd == "count-feats":
        with _open_out(args.out) as fh:
            n = write_feature_counts(
                _sqlite(args), args.bed6, fh,
                category=args.category, header=args.header, use_ori=args.use_ori,
            )
        logger.info(f"Counted reads on {n} features")
        return 0

    elif args.cmd == "to-sam":
        with _open_out(args.out) as fh:
            n = write_sam(_sqlite(args), fh, header=args.header)
        logger.info(f"Wrote {n} SAM records")
        return 0

    elif args.cmd in ["view", "head"]:
        src = open_source(args.db, table=args.table, where=args.where)
        if view_records(src, sys.stdout, n=args.num) == 0:
            logger.info("No records found.")
        return 0

    raise ConfigurationError(f"Unknown command: {args.cmd}")


def _sqlite(args) -> SQLiteSource:
    return SQLiteSource(args.db, table=args.table, where=args.where)


def _add_log_level(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging verbosity (default: WARNING)."
    )


def _add_dataset(p: argparse.ArgumentParser, suffix: str = "", required: bool = True) -> None:
    p.add_argument(
        f"--db{suffix}",
        required=required,
        help=f"SQLite file{' for database ' + suffix if suffix else ''}; a .bam path reads BAM alignments."
    )
    p.add_argument(
        f"--table{suffix}",
        default="sample",
        help=f"Database table name for db{suffix} (default: sample)."
    )
    p.add_argument(
        f"--where{suffix}",
        default=None,
        help=f"SQL filter injected in WHERE clause of db{suffix}."
    )


def _add_pool(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help=f"Maximum number of partitions processed concurrently (default {DEFAULT_WORKERS})."
    )
    p.add_argument(
        "--executor",
        choices=list(EXECUTORS),
        default="process",
        help="Run workers as processes (default) or threads."
    )


def _add_out(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--out",
        default=None,
        help="Output TSV path (default: stdout)."
    )


def _add_summary_opts(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--as",
        dest="category",
        default="all",
        help="Name to print describing the count/s (default: all)."
    )
    p.add_argument(
        "--header",
        action="store_true",
        help="Print header line."
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="relpos",
        description="Reporting tools over htsdb read alignment stores."
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # Relative position distribution
    d = sub.add_parser(
        "distro",
        help="Distribution of read relative positions in database 1 against database 2.",
        description="Measure distribution of read relative positions in database 1 against database 2. "
                    "Prints the number of read pairs at each relative position along with the total number "
                    "of reads in each database. Positive relative positions indicate read 1 is downstream "
                    "of read 2. Provided SQL filters apply to all counts."
    )
    _add_dataset(d, "1")
    _add_dataset(d, "2")
    d.add_argument(
        "--pos",
        choices=POS_CHOICES,
        default="5p",
        help="Reference point of reads of both databases (default: 5p)."
    )
    d.add_argument(
        "--pos1",
        choices=POS_CHOICES,
        default=None,
        help="Reference point for reads of db1; overrides --pos."
    )
    d.add_argument(
        "--pos2",
        choices=POS_CHOICES,
        default=None,
        help="Reference point for reads of db2; overrides --pos."
    )
    d.add_argument(
        "--collapse1",
        action="store_true",
        help="Collapse reads of db1 that have the same position."
    )
    d.add_argument(
        "--collapse2",
        action="store_true",
        help="Collapse reads of db2 that have the same position."
    )
    d.add_argument(
        "--span",
        type=int,
        default=100,
        help="Maximum distance of compared positions (default 100)."
    )
    d.add_argument(
        "--by-ref",
        dest="by_ref",
        action="store_true",
        help="Group counts by reference."
    )
    d.add_argument(
        "--anti",
        action="store_true",
        help="Compare reads on opposite instead of same orientation."
    )
    _add_pool(d)
    _add_out(d)
    _add_log_level(d)

    # Position occupancy
    o = sub.add_parser(
        "overlap",
        help="Read positions of database 1 (and their copies) occupied by a position of database 2."
    )
    _add_dataset(o, "1")
    _add_dataset(o, "2")
    o.add_argument(
        "--pos",
        choices=POS_CHOICES,
        default="5p",
        help="Read position on which to measure occupancy (default: 5p)."
    )
    _add_pool(o)
    _add_out(o)
    _add_log_level(o)

    # Read counts
    c = sub.add_parser("count", help="Number of reads and their total copy number.")
    _add_dataset(c)
    _add_summary_opts(c)
    _add_out(c)
    _add_log_level(c)

    s = sub.add_parser("sizes", help="Number of reads and read copies for each read length.")
    _add_dataset(s)
    _add_summary_opts(s)
    _add_out(s)
    _add_log_level(s)

    f = sub.add_parser("count-feats", help="Number of reads and read copies contained in each BED6 feature.")
    _add_dataset(f)
    f.add_argument(
        "--bed6",
        required=True,
        help="BED6 file with features (.bed or .bed.gz)."
    )
    f.add_argument(
        "--use-ori",
        dest="use_ori",
        action="store_true",
        help="Only count reads on the orientation of the feature."
    )
    _add_summary_opts(f)
    _add_out(f)
    _add_log_level(f)

    # SAM output
    t = sub.add_parser("to-sam", help="Print database records in SAM format.")
    _add_dataset(t)
    t.add_argument(
        "--header",
        action="store_true",
        help="Build and print SAM header."
    )
    _add_out(t)
    _add_log_level(t)

    # Sanity checking of a dataset
    v = sub.add_parser(
        "view",
        aliases=["head"],
        help="Print first N records of a database or BAM file."
    )
    _add_dataset(v)
    v.add_argument(
        "-n", "--num",
        type=int,
        default=10,
        help="Number of records to print."
    )
    _add_log_level(v)
    return p


if __name__ == "__main__":
    raise SystemExit(main())
