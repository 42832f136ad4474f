from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum


class RelposError(Exception):
    """Base class for all errors raised by relpos."""


class ConfigurationError(RelposError, ValueError):
    """Invalid option value, detected before any computation starts."""


class RecordSourceError(RelposError):
    """A storage failure while reading intervals or reference catalogs."""


class InvariantViolation(RelposError):
    """A record that cannot exist in a well-formed store (corrupt input)."""


class Orientation(IntEnum):
    FORWARD = 1
    REVERSE = -1

    def flip(self) -> "Orientation":
        return Orientation.REVERSE if self is Orientation.FORWARD else Orientation.FORWARD

    @classmethod
    def from_strand(cls, strand) -> "Orientation":
        # exact match only: 1.5, "1" or True are corrupt values, not strands
        if isinstance(strand, bool) or not isinstance(strand, int) or strand not in (1, -1):
            raise InvariantViolation(f"strand is not 1 or -1: {strand!r}")
        return cls(strand)


# Reference sequence on which reads align
@dataclass(frozen=True)
class Reference:
    name: str
    length: int


# Alignment coordinates of one stored read; end is exclusive (stored stop + 1)
@dataclass(frozen=True, slots=True)
class Interval:
    start: int
    end: int
    orientation: Orientation
    weight: int

    def __post_init__(self):
        if self.end <= self.start:
            raise InvariantViolation(
                f"interval end must be greater than start: [{self.start}, {self.end})"
            )
        if self.weight < 1:
            raise InvariantViolation(f"interval weight must be at least 1, got {self.weight}")

    @classmethod
    def from_stored(cls, start: int, stop: int, strand, copy_number: int) -> "Interval":
        """Build an Interval from htsdb columns (inclusive stop, signed strand)."""
        try:
            start, stop, copy_number = int(start), int(stop), int(copy_number)
        except (TypeError, ValueError):
            raise InvariantViolation(
                f"corrupt row: start={start!r}, stop={stop!r}, strand={strand!r}, copy_number={copy_number!r}"
            ) from None
        return cls(start, stop + 1, Orientation.from_strand(strand), copy_number)


# Independent unit of work: one reference on one strand
@dataclass(frozen=True)
class Partition:
    reference: Reference
    orientation: Orientation

    def __str__(self) -> str:
        return f"{self.reference.name}({'+' if self.orientation is Orientation.FORWARD else '-'})"
