"""NGSPairMap: paired-read mapping records and pair-file tooling.

Public API is intentionally small:

    from ngspairmap import PairRecord, Orientation

Most file handling is available from the CLI:

    ngspairmap validate --pairs pairs.tsv --ref reference.fa

"""

from __future__ import annotations

__all__ = [
    "__version__",
    "InvalidArgument",
    "MalformedRecord",
    "Orientation",
    "PairRecord",
    "PairRecordError",
]

__version__ = "0.1.0"

from .errors import InvalidArgument, MalformedRecord, PairRecordError
from .models import Orientation, PairRecord
