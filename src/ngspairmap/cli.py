from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, Optional

from . import __version__
from .codec import FORMATS, detect_format
from .errors import MalformedRecord
from .filters import DEFAULT_MAX_DISTANCE, DEFAULT_MIN_DISTANCE, deduplicate, filter_pairs, sort_pairs
from .models import Orientation, PairRecord
from .pairfile import iter_pairs, write_pairs
from .toy_data import make_toy_data
from .utils import ensure_parent, write_json
from .validation import NAME_MODES, load_replicons, validate_pairs


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _orientation(label: str) -> Orientation:
    try:
        return Orientation.from_label(label)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    if isinstance(err, MalformedRecord):
        msg = f"Malformed record: {err}"
    else:
        msg = f"{err.__class__.__name__}: {err}"

    sys.stderr.write(msg + "\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--log-file", default=None, help="Also write log messages to this file.")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ngspairmap",
        description=(
            "NGSPairMap: read, write, check and filter paired-read mapping records "
            "(replicon, read sequences, locations, distance, orientation)."
        ),
    )
    p.add_argument("--version", action="version", version=f"ngspairmap {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser(
        "quickstart",
        help="Print ready-to-run recipes for common tasks.",
    )

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate a tiny reference FASTA and pair files for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # convert
    # -----------------
    c = sub.add_parser(
        "convert",
        help="Convert a pair file between tsv, csv and jsonl (optionally gzipped).",
    )
    c.add_argument("--in", dest="inp", required=True, type=_path_exists, help="Input pair file.")
    c.add_argument("--out", required=True, help="Output pair file.")
    c.add_argument("--in-format", choices=FORMATS, default=None, help="Input format (default: from suffix).")
    c.add_argument("--out-format", choices=FORMATS, default=None, help="Output format (default: from suffix).")
    c.add_argument("--dedupe", action="store_true", help="Drop records identical to an earlier one.")
    c.add_argument(
        "--skip-malformed",
        action="store_true",
        help="Skip (and log) malformed lines instead of stopping at the first one.",
    )
    c.add_argument("--no-header", action="store_true", help="Do not write a header line (tsv/csv).")
    c.add_argument("--progress", action="store_true", help="Show a progress bar.")
    c.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned output.")
    _add_common(c)

    # -----------------
    # validate
    # -----------------
    v = sub.add_parser(
        "validate",
        help="Check a pair file (and optionally its reference FASTA) and print a JSON report.",
    )
    v.add_argument("--pairs", required=True, type=_path_exists, help="Pair file to check.")
    v.add_argument("--format", choices=FORMATS, default=None, help="Pair-file format (default: from suffix).")
    v.add_argument("--ref", default=None, type=_path_exists, help="Reference FASTA the pairs were mapped to.")
    v.add_argument(
        "--name-mode",
        choices=NAME_MODES,
        default="underscore",
        help="How FASTA headers become replicon names (spaces->underscores, or first word only).",
    )
    v.add_argument(
        "--no-alphabet-check",
        action="store_true",
        help="Do not check read sequences against the A/C/G/T/N alphabet.",
    )
    v.add_argument("--max-issues", type=int, default=50, help="Maximum number of issues listed in the report.")
    v.add_argument("--report", default=None, help="Also write the JSON report to this path.")
    _add_common(v)

    # -----------------
    # filter
    # -----------------
    f = sub.add_parser(
        "filter",
        help="Keep pairs within a distance window / orientation / replicon set.",
    )
    f.add_argument("--in", dest="inp", required=True, type=_path_exists, help="Input pair file.")
    f.add_argument("--out", required=True, help="Output pair file.")
    f.add_argument("--in-format", choices=FORMATS, default=None, help="Input format (default: from suffix).")
    f.add_argument("--out-format", choices=FORMATS, default=None, help="Output format (default: from suffix).")
    f.add_argument(
        "--min-distance",
        type=int,
        default=DEFAULT_MIN_DISTANCE,
        help="Keep pairs with distance > this value.",
    )
    f.add_argument(
        "--max-distance",
        type=int,
        default=DEFAULT_MAX_DISTANCE,
        help="Keep pairs with distance < this value.",
    )
    f.add_argument(
        "--orientation",
        nargs="+",
        type=_orientation,
        default=None,
        help="Keep only these orientations (forward, reverse, undetermined).",
    )
    f.add_argument("--replicon", nargs="+", default=None, help="Keep only pairs on these replicons.")
    f.add_argument("--dedupe", action="store_true", help="Drop records identical to an earlier one.")
    f.add_argument("--sort", action="store_true", help="Sort output by replicon and position.")
    f.add_argument("--stats", default=None, help="Write filter counters as JSON to this path.")
    f.add_argument("--skip-malformed", action="store_true", help="Skip (and log) malformed lines.")
    f.add_argument("--progress", action="store_true", help="Show a progress bar.")
    f.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned output.")
    _add_common(f)

    return p


# -----------------
# Command handlers
# -----------------

def cmd_quickstart() -> int:
    lines = [
        "NGSPairMap quickstart (copy/paste):",
        "",
        "1) Check a pair file against its reference:",
        "   ngspairmap validate \\",
        "     --pairs pairs.tsv \\",
        "     --ref reference.fa",
        "   Prints a JSON report; exit code 1 if any record has issues.",
        "",
        "2) Keep well-spaced, de-duplicated pairs:",
        "   ngspairmap filter \\",
        "     --in pairs.tsv \\",
        f"     --min-distance {DEFAULT_MIN_DISTANCE} --max-distance {DEFAULT_MAX_DISTANCE} \\",
        "     --dedupe \\",
        "     --out filtered.tsv.gz",
        "",
        "3) Convert TSV to JSON lines:",
        "   ngspairmap convert --in pairs.tsv --out pairs.jsonl",
        "",
        "Tip: use make-toy-data to get small example inputs.",
    ]
    print("\n".join(lines))
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print(f"Would write toy data into: {outdir}")
        return 0

    summary = make_toy_data(outdir=outdir)
    print(json.dumps(summary, indent=2))
    return 0


def _resolve_formats(args: argparse.Namespace) -> tuple:
    in_fmt = args.in_format or detect_format(args.inp)
    out_fmt = args.out_format or detect_format(args.out)
    return in_fmt, out_fmt


def cmd_convert(args: argparse.Namespace) -> int:
    log_path = Path(args.log_file) if args.log_file else None
    _setup_logging(args.verbose, logfile=log_path)
    logger = logging.getLogger("ngspairmap")

    try:
        in_fmt, out_fmt = _resolve_formats(args)
        out = Path(args.out).expanduser().resolve()

        if args.dry_run:
            print("Dry-run: inputs look OK.")
            print(f"Input: {args.inp} ({in_fmt})")
            print(f"Planned output: {out} ({out_fmt})")
            return 0

        read_stats: Dict[str, int] = {}
        dedupe_stats: Dict[str, int] = {}
        records: Iterable[PairRecord] = iter_pairs(
            args.inp,
            fmt=in_fmt,
            on_error="skip" if args.skip_malformed else "raise",
            stats=read_stats,
            progress=bool(args.progress),
        )
        if args.dedupe:
            records = deduplicate(records, stats=dedupe_stats)

        n = write_pairs(out, records, fmt=out_fmt, header=not args.no_header)
        logger.info("Read stats: %s", read_stats)
        if dedupe_stats:
            logger.info("Duplicates dropped: %d", dedupe_stats["records_duplicate"])
        print(f"{n}\t{out}")
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def cmd_validate(args: argparse.Namespace) -> int:
    log_path = Path(args.log_file) if args.log_file else None
    _setup_logging(args.verbose, logfile=log_path)

    try:
        replicons = None
        if args.ref is not None:
            replicons = load_replicons(args.ref, mode=args.name_mode)

        read_stats: Dict[str, int] = {}
        records = iter_pairs(args.pairs, fmt=args.format, on_error="skip", stats=read_stats)
        report = validate_pairs(
            records,
            replicons,
            check_alphabet=not args.no_alphabet_check,
            max_issues=int(args.max_issues),
        )
        report["pairs_path"] = str(args.pairs)
        report["ref_path"] = str(args.ref) if args.ref else None
        report["lines_malformed"] = read_stats.get("lines_malformed", 0)

        if args.report:
            write_json(ensure_parent(args.report), report)

        print(json.dumps(report, indent=2, sort_keys=True))
        clean = report["records_with_issues"] == 0 and report["lines_malformed"] == 0
        return 0 if clean else 1
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def cmd_filter(args: argparse.Namespace) -> int:
    log_path = Path(args.log_file) if args.log_file else None
    _setup_logging(args.verbose, logfile=log_path)
    logger = logging.getLogger("ngspairmap")

    try:
        in_fmt, out_fmt = _resolve_formats(args)
        out = Path(args.out).expanduser().resolve()

        if args.dry_run:
            print("Dry-run: inputs look OK.")
            print(f"Input: {args.inp} ({in_fmt})")
            print(f"Distance window: {args.min_distance} < distance < {args.max_distance}")
            print(f"Planned output: {out} ({out_fmt})")
            return 0

        stats: Dict[str, int] = {}
        records: Iterable[PairRecord] = iter_pairs(
            args.inp,
            fmt=in_fmt,
            on_error="skip" if args.skip_malformed else "raise",
            stats=stats,
            progress=bool(args.progress),
        )
        records = filter_pairs(
            records,
            min_distance=args.min_distance,
            max_distance=args.max_distance,
            orientations=args.orientation,
            replicons=args.replicon,
            stats=stats,
        )
        if args.dedupe:
            records = deduplicate(records, stats=stats)
        if args.sort:
            records = sort_pairs(records)

        n = write_pairs(out, records, fmt=out_fmt)
        stats["records_written"] = n
        logger.info("Filter stats: %s", stats)

        if args.stats:
            write_json(ensure_parent(args.stats), stats)

        print(f"{n}\t{out}")
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "convert":
        return cmd_convert(args)
    if args.cmd == "validate":
        return cmd_validate(args)
    if args.cmd == "filter":
        return cmd_filter(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
