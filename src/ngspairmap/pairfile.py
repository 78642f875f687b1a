from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from tqdm import tqdm

from .codec import (
    COMMENT_PREFIX,
    DECODERS,
    ENCODERS,
    TSV_SEP,
    check_format,
    detect_format,
    header_line,
    is_header,
    split_csv,
)
from .errors import MalformedRecord
from .models import PairRecord
from .utils import ensure_parent, open_textmaybe_gzip

logger = logging.getLogger(__name__)

_ON_ERROR = ("raise", "skip")


def _resolve_format(path: str | Path, fmt: Optional[str]) -> str:
    if fmt is None:
        return detect_format(path)
    return check_format(fmt)


def _check_utf8(text: str) -> None:
    # undecodable bytes arrive as lone surrogates (surrogateescape)
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise MalformedRecord(f"Line is not valid UTF-8 (column {e.start + 1})") from e


def _looks_like_header(text: str, fmt: str) -> bool:
    if fmt == "tsv":
        return is_header(text.split(TSV_SEP))
    if fmt == "csv":
        return is_header(split_csv(text))
    return False


def iter_pairs(
    path: str | Path,
    *,
    fmt: Optional[str] = None,
    on_error: str = "raise",
    stats: Optional[Dict[str, int]] = None,
    progress: bool = False,
) -> Iterator[PairRecord]:
    """Stream pair records from a pair file.

    Parameters
    ----------
    path:
        Pair file (.tsv/.csv/.jsonl, optionally .gz).
    fmt:
        Explicit format; inferred from the suffix when None.
    on_error:
        ``"raise"`` re-raises the first malformed line as MalformedRecord (with
        file and line number); ``"skip"`` logs it and moves on.
    stats:
        Optional dict updated in place with line/record counters.
    progress:
        Show a tqdm progress bar over lines.

    Blank lines and ``#`` comment lines are ignored. For delimited formats a
    leading header line matching the column names is skipped.
    """
    if on_error not in _ON_ERROR:
        raise ValueError(f"on_error must be one of {_ON_ERROR}, got '{on_error}'")
    fmt = _resolve_format(path, fmt)

    counts = stats if stats is not None else {}
    for key in ("lines_total", "lines_skipped", "header_lines", "lines_malformed", "records_read"):
        counts.setdefault(key, 0)

    return _iter_lines(path, fmt, on_error, counts, progress)


def _iter_lines(
    path: str | Path,
    fmt: str,
    on_error: str,
    counts: Dict[str, int],
    progress: bool,
) -> Iterator[PairRecord]:
    decoder = DECODERS[fmt]
    with open_textmaybe_gzip(path, "rt", errors="surrogateescape") as fh:
        lines: Iterable = enumerate(fh, start=1)
        if progress:
            lines = tqdm(lines, unit="line", desc=f"Reading {Path(path).name}")

        first_data_line = True
        for line_no, line in lines:
            counts["lines_total"] += 1
            text = line.rstrip("\r\n")
            if not text.strip() or text.startswith(COMMENT_PREFIX):
                counts["lines_skipped"] += 1
                continue

            if first_data_line:
                first_data_line = False
                if _looks_like_header(text, fmt):
                    counts["header_lines"] += 1
                    continue

            try:
                _check_utf8(text)
                record = decoder(text)
            except MalformedRecord as e:
                if on_error == "skip":
                    counts["lines_malformed"] += 1
                    logger.warning("Skipping malformed line %s:%d: %s", path, line_no, e)
                    continue
                raise MalformedRecord(f"{path}:{line_no}: {e}", source=str(path), line_no=line_no) from e

            counts["records_read"] += 1
            yield record


def read_pairs(path: str | Path, **kwargs) -> List[PairRecord]:
    """Read a whole pair file into memory. Keyword arguments as for :func:`iter_pairs`."""
    return list(iter_pairs(path, **kwargs))


def write_pairs(
    path: str | Path,
    records: Iterable[PairRecord],
    *,
    fmt: Optional[str] = None,
    header: bool = True,
    progress: bool = False,
) -> int:
    """Write records to a pair file and return the number written.

    The parent directory is created if needed; a ``.gz`` suffix compresses the
    output. ``header`` only applies to delimited formats.

    Records are written to a ``.tmp`` sibling that replaces ``path`` once every
    record has been encoded. If reading or encoding fails, the sibling is
    removed and an existing ``path`` is left untouched.
    """
    fmt = _resolve_format(path, fmt)
    encoder = ENCODERS[fmt]
    out = ensure_parent(path)
    tmp = out.with_name(out.stem + ".tmp" + out.suffix)

    it: Iterable[PairRecord] = records
    if progress:
        it = tqdm(it, unit="pair", desc=f"Writing {out.name}")

    n = 0
    try:
        with open_textmaybe_gzip(tmp, "wt") as fh:
            if header and fmt != "jsonl":
                fh.write(header_line(fmt) + "\n")
            for record in it:
                fh.write(encoder(record) + "\n")
                n += 1
        os.replace(tmp, out)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise

    logger.info("Wrote %d pair(s) to %s", n, out)
    return n
