"""
Pytest fixtures for relpos tests.
"""

import sqlite3

import pytest

COLUMNS = (
    "qname", "flag", "rname", "strand", "start", "stop", "copy_number",
    "pos", "mapq", "cigar", "rnext", "pnext", "tlen", "sequence", "qual", "tags",
)


def _row(rname, strand, start, stop, copy_number=1, sequence="ACGT", qname=None):
    """One htsdb row; stop is inclusive."""
    return {
        "qname": qname or f"r{start}_{stop}_{strand}",
        "flag": 0 if strand == 1 else 16,
        "rname": rname,
        "strand": strand,
        "start": start,
        "stop": stop,
        "copy_number": copy_number,
        "pos": start + 1,
        "mapq": 255,
        "cigar": f"{stop - start + 1}M",
        "rnext": "*",
        "pnext": 0,
        "tlen": 0,
        "sequence": sequence,
        "qual": "*",
        "tags": "NH:i:1",
    }


@pytest.fixture
def row():
    return _row


@pytest.fixture
def make_db(tmp_path):
    """Factory fixture writing an htsdb SQLite file with the given rows."""
    def _make(name, rows, table="sample"):
        path = tmp_path / name
        conn = sqlite3.connect(path)
        try:
            conn.execute(f"CREATE TABLE {table} ({', '.join(COLUMNS)})")
            conn.executemany(
                f"INSERT INTO {table} ({', '.join(COLUMNS)}) VALUES ({', '.join('?' for _ in COLUMNS)})",
                [tuple(r[c] for c in COLUMNS) for r in rows],
            )
            conn.commit()
        finally:
            conn.close()
        return path
    return _make
