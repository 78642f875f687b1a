from __future__ import annotations

import numbers
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Mapping, Tuple

from .errors import InvalidArgument, MalformedRecord

# Canonical field order; also the column order of delimited pair files.
PAIR_COLUMNS: Tuple[str, ...] = (
    "replicon_name",
    "read1_sequence",
    "read2_sequence",
    "read1_location",
    "read2_location",
    "distance",
    "direction",
)

TEXT_FIELDS = ("replicon_name", "read1_sequence", "read2_sequence")
INT_FIELDS = ("read1_location", "read2_location", "distance", "direction")

INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


class Orientation(IntEnum):
    """Relative orientation of the two reads of a pair.

    FORWARD:
        Read 1's 5' end matches the plus strand and read 2's the minus strand.
        The fragment runs from ``read1_location`` up to ``read2_location``.
    REVERSE:
        Read 2's 5' end matches the plus strand and read 1's the minus strand.
        The fragment runs from ``read2_location`` up to ``read1_location``.
    UNDETERMINED:
        The producer did not determine an orientation.
    """

    REVERSE = -1
    UNDETERMINED = 0
    FORWARD = 1

    @classmethod
    def from_label(cls, label: str) -> "Orientation":
        try:
            return cls[label.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Unknown orientation '{label}'; expected one of: "
                + ", ".join(m.name.lower() for m in cls)
            ) from None


ORIENTATION_CODES = frozenset(int(m) for m in Orientation)


def _is_int(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass(frozen=True)
class PairRecord:
    """One read pair mapped to a single replicon.

    Attributes
    ----------
    replicon_name:
        Reference sequence (chromosome/plasmid/contig) both reads mapped to.
    read1_sequence, read2_sequence:
        Reference text spanned by each read's alignment. The length of the text
        is the read's span.
    read1_location, read2_location:
        0-based offset of each read's 5' end on the plus strand. On a circular
        replicon a pair spanning the origin may carry a location up to one
        replicon length past the end.
    distance:
        Separation between the two reads as reported by the mapper. Stored as
        given; it is never recomputed from the locations.
    direction:
        Orientation code, see :class:`Orientation`. Any integer is accepted
        here; decoders reject codes outside the orientation domain.
    """

    replicon_name: str
    read1_sequence: str
    read2_sequence: str
    read1_location: int
    read2_location: int
    distance: int
    direction: int

    def __post_init__(self) -> None:
        for name in TEXT_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str):
                raise InvalidArgument(f"{name} must be a string, got {type(value).__name__}")
            if value == "":
                raise InvalidArgument(f"{name} must not be empty")

        for name in INT_FIELDS:
            value = getattr(self, name)
            if not _is_int(value):
                raise InvalidArgument(f"{name} must be an integer, got {type(value).__name__}")
            value = int(value)
            if not (INT_MIN <= value <= INT_MAX):
                raise InvalidArgument(f"{name} is outside the signed 64-bit range: {value}")
            # frozen: normalise IntEnum / numpy integers to plain int
            object.__setattr__(self, name, value)

    @property
    def read1_span(self) -> int:
        return len(self.read1_sequence)

    @property
    def read2_span(self) -> int:
        return len(self.read2_sequence)

    @property
    def orientation(self) -> Orientation:
        if self.direction not in ORIENTATION_CODES:
            raise InvalidArgument(f"direction {self.direction} is not a known orientation code")
        return Orientation(self.direction)

    def to_canonical(self) -> Dict[str, Any]:
        """Return the canonical seven-key mapping (keys in column order)."""
        return {name: getattr(self, name) for name in PAIR_COLUMNS}

    @classmethod
    def from_canonical(cls, data: Mapping[str, Any]) -> "PairRecord":
        """Build a record from its canonical mapping.

        Raises MalformedRecord for missing or unexpected keys, wrongly typed or
        empty values and orientation codes outside :class:`Orientation`.
        Values are never coerced (``"10"`` is not an integer here).
        """
        if not isinstance(data, Mapping):
            raise MalformedRecord(f"Expected a mapping, got {type(data).__name__}")

        missing = [k for k in PAIR_COLUMNS if k not in data]
        if missing:
            raise MalformedRecord("Missing field(s): " + ", ".join(missing))
        extra = sorted(str(k) for k in data if k not in PAIR_COLUMNS)
        if extra:
            raise MalformedRecord("Unexpected field(s): " + ", ".join(extra))

        for name in TEXT_FIELDS:
            value = data[name]
            if not isinstance(value, str):
                raise MalformedRecord(f"{name} must be a string, got {type(value).__name__}")
            if value == "":
                raise MalformedRecord(f"{name} must not be empty")
        for name in INT_FIELDS:
            value = data[name]
            if not _is_int(value):
                raise MalformedRecord(f"{name} must be an integer, got {type(value).__name__}")

        if int(data["direction"]) not in ORIENTATION_CODES:
            raise MalformedRecord(
                f"direction {data['direction']} is not a known orientation code "
                f"(expected one of {sorted(ORIENTATION_CODES)})"
            )

        try:
            return cls(**{name: data[name] for name in PAIR_COLUMNS})
        except InvalidArgument as e:
            raise MalformedRecord(str(e)) from e
