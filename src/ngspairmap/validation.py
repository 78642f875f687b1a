from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import pysam

from .models import ORIENTATION_CODES, PairRecord

logger = logging.getLogger(__name__)


_CIRCULAR_TAG = "topology=circular"
_GENOMIC_RE = re.compile(r"[ACGTNacgtn]+")

NAME_MODES = ("underscore", "first-word")


@dataclass(frozen=True)
class Replicon:
    """A reference sequence as known to the mapper."""

    name: str
    length: int
    circular: bool


@dataclass(frozen=True)
class Issue:
    kind: str  # 'orientation', 'alphabet', 'replicon' or 'location'
    message: str


def is_circular_header(text: str) -> bool:
    """A FASTA header tagged with ``topology=circular`` denotes a circular replicon."""
    return _CIRCULAR_TAG in text


def normalize_replicon_name(name: str, comment: Optional[str] = None, mode: str = "underscore") -> str:
    """Turn a FASTA header (name + optional comment) into a replicon name.

    ``underscore`` keeps the whole header with spaces replaced by underscores;
    ``first-word`` keeps only the text before the first space.
    """
    if mode == "underscore":
        header = name if not comment else f"{name} {comment}"
        return header.replace(" ", "_")
    if mode == "first-word":
        return name.split(" ", 1)[0]
    raise ValueError(f"Unknown replicon name mode '{mode}'; expected one of: {', '.join(NAME_MODES)}")


def load_replicons(ref_fa: str | Path, *, mode: str = "underscore") -> Dict[str, Replicon]:
    """Read replicon names, lengths and topology from a (multi-)FASTA file."""
    replicons: Dict[str, Replicon] = {}
    with pysam.FastxFile(str(ref_fa)) as fh:
        for entry in fh:
            comment = entry.comment or ""
            name = normalize_replicon_name(entry.name, comment, mode)
            if name in replicons:
                logger.warning("Duplicate replicon name '%s' in %s; keeping the last one.", name, ref_fa)
            seq = entry.sequence or ""
            replicons[name] = Replicon(
                name=name,
                length=len(seq),
                circular=is_circular_header(f"{entry.name} {comment}"),
            )

    if not replicons:
        raise ValueError(f"No sequences found in reference FASTA: {ref_fa}")
    logger.info("Loaded %d replicon(s) from %s", len(replicons), ref_fa)
    return replicons


def is_genomic_sequence(seq: str) -> bool:
    """True if seq only uses the A/C/G/T/N alphabet (either case)."""
    return bool(_GENOMIC_RE.fullmatch(seq))


def check_record(
    record: PairRecord,
    replicons: Optional[Mapping[str, Replicon]] = None,
    *,
    check_alphabet: bool = True,
) -> List[Issue]:
    """Return the consumer-side issues found in one record (empty list if clean)."""
    issues: List[Issue] = []

    if record.direction not in ORIENTATION_CODES:
        issues.append(Issue("orientation", f"direction {record.direction} is not a known orientation code"))

    if check_alphabet:
        for name in ("read1_sequence", "read2_sequence"):
            if not is_genomic_sequence(getattr(record, name)):
                issues.append(Issue("alphabet", f"{name} has characters outside A/C/G/T/N"))

    if replicons is not None:
        rep = replicons.get(record.replicon_name)
        if rep is None:
            issues.append(Issue("replicon", f"replicon '{record.replicon_name}' is not in the reference"))
        else:
            # pairs spanning the origin of a circular replicon carry location + length
            upper = rep.length * 2 if rep.circular else rep.length
            for name in ("read1_location", "read2_location"):
                loc = getattr(record, name)
                if not (0 <= loc < upper):
                    issues.append(
                        Issue("location", f"{name} {loc} is outside [0, {upper}) for '{rep.name}'")
                    )
    return issues


def validate_pairs(
    records: Iterable[PairRecord],
    replicons: Optional[Mapping[str, Replicon]] = None,
    *,
    check_alphabet: bool = True,
    max_issues: int = 50,
) -> Dict[str, object]:
    """Check a stream of records and return a summary report."""
    issue_counts: Dict[str, int] = {}
    issues: List[Dict[str, object]] = []
    n_checked = 0
    n_bad = 0

    for i, record in enumerate(records):
        n_checked += 1
        found = check_record(record, replicons, check_alphabet=check_alphabet)
        if not found:
            continue
        n_bad += 1
        for issue in found:
            issue_counts[issue.kind] = issue_counts.get(issue.kind, 0) + 1
            if len(issues) < max_issues:
                issues.append({"record_index": i, "kind": issue.kind, "message": issue.message})

    if n_bad:
        logger.info("%d of %d record(s) have issues", n_bad, n_checked)

    return {
        "records_checked": n_checked,
        "records_with_issues": n_bad,
        "issue_counts": issue_counts,
        "issues": issues,
        "reference_checked": replicons is not None,
    }
