from __future__ import annotations
from typing import Dict, Iterable, List
import logging

from .relposClasses import Orientation, Partition, Reference

ORIENTATIONS = (Orientation.FORWARD, Orientation.REVERSE)


def merge_references(*catalogs: Iterable[Reference], logger: logging.Logger | None = None) -> List[Reference]:
    """
    Union of reference catalogs keyed by name, sorted by name.

    A name declared with different lengths keeps the largest one, so the
    result does not depend on catalog or row order.
    """
    by_name: Dict[str, Reference] = {}
    for catalog in catalogs:
        for ref in catalog:
            prev = by_name.get(ref.name)
            if prev is None or ref.length > prev.length:
                if prev is not None and logger:
                    logger.debug(f"Reference {ref.name!r}: length {prev.length} replaced by {ref.length}")
                by_name[ref.name] = ref
    return [by_name[k] for k in sorted(by_name)]


def enumerate_partitions(references: Iterable[Reference]) -> List[Partition]:
    return [Partition(ref, ori) for ref in references for ori in ORIENTATIONS]
