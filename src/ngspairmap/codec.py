"""Line encodings of the canonical pair record.

Three encodings are supported, one record per line:

- ``tsv``: tab-separated columns in :data:`PAIR_COLUMNS` order (default)
- ``csv``: comma-separated columns, quoted by the :mod:`csv` module
- ``jsonl``: one compact JSON object per line with the canonical keys

Delimited formats may start with a header line holding the column names.
Integer columns must be plain base-10 integers; nothing is coerced.
"""

from __future__ import annotations

import csv
import io
import json
import re
from pathlib import Path
from typing import Callable, Dict, List

from .errors import InvalidArgument, MalformedRecord
from .models import INT_FIELDS, PAIR_COLUMNS, TEXT_FIELDS, PairRecord

FORMATS = ("tsv", "csv", "jsonl")

TSV_SEP = "\t"
CSV_SEP = ","
COMMENT_PREFIX = "#"

_SUFFIX_FORMATS: Dict[str, str] = {
    ".tsv": "tsv",
    ".txt": "tsv",
    ".pairs": "tsv",
    ".csv": "csv",
    ".jsonl": "jsonl",
    ".ndjson": "jsonl",
    ".json": "jsonl",
}

_INT_RE = re.compile(r"-?[0-9]+")


def detect_format(path: str | Path) -> str:
    """Infer the pair-file format from the file suffix (a trailing .gz is ignored)."""
    p = Path(path)
    suffixes = [s.lower() for s in p.suffixes]
    if suffixes and suffixes[-1] == ".gz":
        suffixes = suffixes[:-1]
    if suffixes and suffixes[-1] in _SUFFIX_FORMATS:
        return _SUFFIX_FORMATS[suffixes[-1]]
    raise ValueError(
        f"Cannot infer pair-file format from '{p.name}'. "
        "Use a .tsv/.csv/.jsonl suffix or pass the format explicitly."
    )


def check_format(fmt: str) -> str:
    if fmt not in FORMATS:
        raise ValueError(f"Unknown pair-file format '{fmt}'; expected one of: {', '.join(FORMATS)}")
    return fmt


def header_line(fmt: str) -> str:
    """Column header for a delimited format."""
    if check_format(fmt) == "jsonl":
        raise ValueError("jsonl has no header line")
    sep = TSV_SEP if fmt == "tsv" else CSV_SEP
    return sep.join(PAIR_COLUMNS)


def is_header(fields: List[str]) -> bool:
    return tuple(f.strip() for f in fields) == PAIR_COLUMNS


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _check_encodable(record: PairRecord, forbidden: str, fmt: str) -> None:
    for name in TEXT_FIELDS:
        value = getattr(record, name)
        if any(ch in value for ch in forbidden):
            raise InvalidArgument(f"{name} contains characters that cannot be written as {fmt}: {value!r}")


def fields_to_record(fields: List[str]) -> PairRecord:
    """Build a record from the text columns of a delimited line."""
    if len(fields) != len(PAIR_COLUMNS):
        raise MalformedRecord(f"Expected {len(PAIR_COLUMNS)} columns, got {len(fields)}")

    data: Dict[str, object] = dict(zip(PAIR_COLUMNS, fields))
    for name in INT_FIELDS:
        text = str(data[name])
        if not _INT_RE.fullmatch(text):
            raise MalformedRecord(f"{name} must be an integer, got {data[name]!r}")
        data[name] = int(text)
    return PairRecord.from_canonical(data)


# -----------------
# TSV
# -----------------

def encode_tsv(record: PairRecord) -> str:
    _check_encodable(record, "\t\r\n", "tsv")
    # a leading '#' would read back as a comment line
    if record.replicon_name.startswith(COMMENT_PREFIX):
        raise InvalidArgument(
            f"replicon_name cannot start with '{COMMENT_PREFIX}' in tsv: {record.replicon_name!r}"
        )
    return TSV_SEP.join(str(v) for v in record.to_canonical().values())


def decode_tsv(line: str) -> PairRecord:
    return fields_to_record(_strip_eol(line).split(TSV_SEP))


# -----------------
# CSV
# -----------------

def encode_csv(record: PairRecord) -> str:
    _check_encodable(record, "\r\n", "csv")
    buf = io.StringIO()
    quoting = csv.QUOTE_MINIMAL
    if record.replicon_name.startswith(COMMENT_PREFIX):
        quoting = csv.QUOTE_NONNUMERIC
    writer = csv.writer(buf, lineterminator="", quoting=quoting)
    writer.writerow(list(record.to_canonical().values()))
    return buf.getvalue()


def decode_csv(line: str) -> PairRecord:
    try:
        rows = list(csv.reader([_strip_eol(line)]))
    except csv.Error as e:
        raise MalformedRecord(f"Invalid CSV line: {e}") from e
    if len(rows) != 1:
        raise MalformedRecord("Expected exactly one CSV row")
    return fields_to_record(rows[0])


def split_csv(line: str) -> List[str]:
    rows = list(csv.reader([_strip_eol(line)]))
    return rows[0] if rows else []


# -----------------
# JSON lines
# -----------------

def encode_json(record: PairRecord) -> str:
    return json.dumps(record.to_canonical(), separators=(",", ":"))


def decode_json(line: str) -> PairRecord:
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedRecord(f"Invalid JSON: {e}") from e
    return PairRecord.from_canonical(data)


ENCODERS: Dict[str, Callable[[PairRecord], str]] = {
    "tsv": encode_tsv,
    "csv": encode_csv,
    "jsonl": encode_json,
}

DECODERS: Dict[str, Callable[[str], PairRecord]] = {
    "tsv": decode_tsv,
    "csv": decode_csv,
    "jsonl": decode_json,
}


def encode(record: PairRecord, fmt: str = "tsv") -> str:
    return ENCODERS[check_format(fmt)](record)


def decode(line: str, fmt: str = "tsv") -> PairRecord:
    return DECODERS[check_format(fmt)](line)
