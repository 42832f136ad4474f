from __future__ import annotations
from enum import Enum

from .relposClasses import ConfigurationError, Interval, InvariantViolation, Orientation


class ReferenceEnd(str, Enum):
    HEAD = "head"  # 5'
    TAIL = "tail"  # 3'

    @classmethod
    def parse(cls, text: "str | ReferenceEnd") -> "ReferenceEnd":
        """Accept head/tail or the 5p/3p spelling used by the htsdb tools."""
        if isinstance(text, cls):
            return text
        key = str(text).strip().lower()
        if key in ("head", "5p"):
            return cls.HEAD
        if key in ("tail", "3p"):
            return cls.TAIL
        raise ConfigurationError(f"reference point must be one of 5p, 3p, head, tail; got {text!r}")


def head(interval: Interval, orientation: Orientation) -> int:
    if orientation == Orientation.FORWARD:
        return interval.start
    if orientation == Orientation.REVERSE:
        return interval.end - 1
    raise InvariantViolation(f"strand is not 1 or -1: {orientation!r}")


def tail(interval: Interval, orientation: Orientation) -> int:
    if orientation == Orientation.FORWARD:
        return interval.end - 1
    if orientation == Orientation.REVERSE:
        return interval.start
    raise InvariantViolation(f"strand is not 1 or -1: {orientation!r}")


def position(interval: Interval, orientation: Orientation, end: ReferenceEnd = ReferenceEnd.HEAD) -> int:
    """
    Return the single coordinate of interval to compare: its 5' (head) or
    3' (tail) end as seen on the given orientation.
    """
    return position_getter(end)(interval, orientation)


def position_getter(end: "ReferenceEnd | str"):
    return head if ReferenceEnd.parse(end) is ReferenceEnd.HEAD else tail
