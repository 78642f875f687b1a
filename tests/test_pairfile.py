import gzip
from pathlib import Path

import pytest

from ngspairmap import InvalidArgument, MalformedRecord, PairRecord
from ngspairmap.pairfile import iter_pairs, read_pairs, write_pairs

PAIRS = [
    PairRecord("chr1", "ACGTAC", "TTGACA", 1000, 1200, 350, 0),
    PairRecord("chr1", "GGGAAA", "CCCTTT", 40, 10, 31, -1),
    PairRecord("plasmid1", "ACGT", "TTGA", 100, 130, 30, 1),
]


@pytest.mark.parametrize("name", ["pairs.tsv", "pairs.csv", "pairs.jsonl", "pairs.tsv.gz", "pairs.jsonl.gz"])
def test_write_then_read(tmp_path: Path, name: str) -> None:
    path = tmp_path / "nested" / name
    n = write_pairs(path, PAIRS)
    assert n == 3
    assert read_pairs(path) == PAIRS


def test_gzip_output_is_compressed(tmp_path: Path) -> None:
    path = tmp_path / "pairs.tsv.gz"
    write_pairs(path, PAIRS)
    with gzip.open(path, "rt", encoding="utf-8") as fh:
        first = fh.readline()
    assert first.startswith("replicon_name\t")


def test_header_comments_and_blank_lines_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "pairs.tsv"
    path.write_text(
        "# produced by a mapper\n"
        "replicon_name\tread1_sequence\tread2_sequence\tread1_location\tread2_location\tdistance\tdirection\n"
        "\n"
        "chr1\tACGTAC\tTTGACA\t1000\t1200\t350\t0\n",
        encoding="utf-8",
    )
    stats = {}
    records = read_pairs(path, stats=stats)
    assert records == [PAIRS[0]]
    assert stats["header_lines"] == 1
    assert stats["lines_skipped"] == 2
    assert stats["records_read"] == 1


def test_headerless_file(tmp_path: Path) -> None:
    path = tmp_path / "pairs.tsv"
    write_pairs(path, PAIRS, header=False)
    assert path.read_text(encoding="utf-8").startswith("chr1\t")
    assert read_pairs(path) == PAIRS


def test_malformed_line_reports_location(tmp_path: Path) -> None:
    path = tmp_path / "pairs.tsv"
    path.write_text(
        "chr1\tACGTAC\tTTGACA\t1000\t1200\t350\t0\n"
        "chr1\tACGTAC\tTTGACA\t1000\t1200\n",
        encoding="utf-8",
    )
    with pytest.raises(MalformedRecord) as excinfo:
        read_pairs(path)
    assert excinfo.value.line_no == 2
    assert excinfo.value.source == str(path)
    assert ":2:" in str(excinfo.value)


def test_malformed_line_can_be_skipped(tmp_path: Path) -> None:
    path = tmp_path / "pairs.jsonl"
    path.write_text(
        '{"replicon_name":"chr1","read1_sequence":"ACGTAC","read2_sequence":"TTGACA",'
        '"read1_location":1000,"read2_location":1200,"distance":350,"direction":0}\n'
        '{"replicon_name":"chr1","read1_sequence":"ACGTAC"}\n',
        encoding="utf-8",
    )
    stats = {}
    records = list(iter_pairs(path, on_error="skip", stats=stats))
    assert records == [PAIRS[0]]
    assert stats["lines_malformed"] == 1


def test_explicit_format_overrides_suffix(tmp_path: Path) -> None:
    path = tmp_path / "pairs.dat"
    write_pairs(path, PAIRS, fmt="csv")
    assert read_pairs(path, fmt="csv") == PAIRS
    with pytest.raises(ValueError):
        read_pairs(path)


def test_bad_on_error_value(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        iter_pairs(tmp_path / "pairs.tsv", on_error="ignore")


@pytest.mark.parametrize("name", ["pairs.csv", "pairs.jsonl"])
def test_replicon_name_starting_with_hash_survives(tmp_path: Path, name: str) -> None:
    pairs = [PairRecord("#contig1", "ACGT", "TTGA", 10, 60, 51, 1), PAIRS[0]]
    path = tmp_path / name
    assert write_pairs(path, pairs, header=False) == 2
    assert read_pairs(path) == pairs


def test_tsv_refuses_replicon_name_starting_with_hash(tmp_path: Path) -> None:
    path = tmp_path / "pairs.tsv"
    with pytest.raises(InvalidArgument):
        write_pairs(path, [PairRecord("#contig1", "ACGT", "TTGA", 10, 60, 51, 1)])
    assert not path.exists()


def test_invalid_utf8_is_malformed(tmp_path: Path) -> None:
    path = tmp_path / "pairs.tsv"
    path.write_bytes(
        b"chr\xff\tACGTAC\tTTGACA\t1000\t1200\t350\t0\n"
        b"chr1\tACGTAC\tTTGACA\t1000\t1200\t350\t0\n"
    )
    with pytest.raises(MalformedRecord) as excinfo:
        read_pairs(path)
    assert excinfo.value.line_no == 1

    stats = {}
    assert read_pairs(path, on_error="skip", stats=stats) == [PAIRS[0]]
    assert stats["lines_malformed"] == 1


def test_failed_write_keeps_previous_output(tmp_path: Path) -> None:
    src = tmp_path / "in.tsv"
    src.write_text(
        "chr1\tACGTAC\tTTGACA\t1000\t1200\t350\t0\n"
        "chr1\tACGTAC\tTTGACA\t1000\n",
        encoding="utf-8",
    )
    out = tmp_path / "out.jsonl.gz"
    write_pairs(out, PAIRS)

    with pytest.raises(MalformedRecord):
        write_pairs(out, iter_pairs(src))
    assert read_pairs(out) == PAIRS
    assert sorted(p.name for p in tmp_path.iterdir()) == ["in.tsv", "out.jsonl.gz"]
