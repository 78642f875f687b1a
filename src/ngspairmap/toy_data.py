from __future__ import annotations

import random
from pathlib import Path
from typing import Dict, List

from .models import Orientation, PairRecord
from .pairfile import write_pairs
from .utils import ensure_outdir, write_json

KMER = 21

LINEAR_HEADER = "chr1 toy linear"
CIRCULAR_HEADER = "plasmid1 topology=circular"
LINEAR_NAME = "chr1_toy_linear"
CIRCULAR_NAME = "plasmid1_topology=circular"


def _write_fasta(path: Path, entries: List[tuple]) -> None:
    lines: List[str] = []
    for header, seq in entries:
        lines.append(f">{header}")
        for i in range(0, len(seq), 60):
            lines.append(seq[i : i + 60])
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _random_seq(rng: random.Random, n: int) -> str:
    return "".join(rng.choice("ACGT") for _ in range(n))


def _forward_pair(replicon: str, seq: str, f: int, r: int) -> PairRecord:
    """Read 1 starts at f on the plus strand, read 2's 5' end sits at r on the minus strand."""
    return PairRecord(
        replicon_name=replicon,
        read1_sequence=seq[f : f + KMER],
        read2_sequence=seq[r - KMER + 1 : r + 1],
        read1_location=f,
        read2_location=r,
        distance=r - f + 1,
        direction=Orientation.FORWARD,
    )


def _reverse_pair(replicon: str, seq: str, f: int, r: int) -> PairRecord:
    """Read 2 starts at f on the plus strand, read 1's 5' end sits at r on the minus strand."""
    return PairRecord(
        replicon_name=replicon,
        read1_sequence=seq[r - KMER + 1 : r + 1],
        read2_sequence=seq[f : f + KMER],
        read1_location=r,
        read2_location=f,
        distance=r - f + 1,
        direction=Orientation.REVERSE,
    )


def toy_pairs(linear_seq: str, circular_seq: str) -> List[PairRecord]:
    """Pairs over the toy reference: two good pairs, a duplicate, a too-short pair
    and a forward pair spanning the origin of the circular replicon."""
    first = _forward_pair(LINEAR_NAME, linear_seq, 10, 160)
    pairs = [
        first,
        _reverse_pair(LINEAR_NAME, linear_seq, 30, 120),
        _forward_pair(LINEAR_NAME, linear_seq, 50, 64),
        PairRecord(**first.to_canonical()),
    ]

    # read 2 maps at 10, i.e. past the origin; its location is shifted by one length
    n = len(circular_seq)
    extended = circular_seq + circular_seq[: 2 * KMER]
    f, r = 100, 10
    pairs.append(
        PairRecord(
            replicon_name=CIRCULAR_NAME,
            read1_sequence=extended[f : f + KMER],
            read2_sequence=extended[r + n - KMER + 1 : r + n + 1],
            read1_location=f,
            read2_location=r + n,
            distance=n - f + r,
            direction=Orientation.FORWARD,
        )
    )
    return pairs


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Create a tiny reference FASTA and matching pair files for demos/tests.

    The outputs include:
    - toy_ref.fa (a linear and a circular replicon)
    - pairs.tsv (with header)
    - pairs.jsonl

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)
    rng = random.Random(7)

    linear_seq = _random_seq(rng, 200)
    circular_seq = _random_seq(rng, 120)

    ref_fa = outdir_p / "toy_ref.fa"
    _write_fasta(ref_fa, [(LINEAR_HEADER, linear_seq), (CIRCULAR_HEADER, circular_seq)])

    pairs = toy_pairs(linear_seq, circular_seq)
    pairs_tsv = outdir_p / "pairs.tsv"
    pairs_jsonl = outdir_p / "pairs.jsonl"
    write_pairs(pairs_tsv, pairs)
    write_pairs(pairs_jsonl, pairs)

    summary = {
        "ref_fa": str(ref_fa),
        "pairs_tsv": str(pairs_tsv),
        "pairs_jsonl": str(pairs_jsonl),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
