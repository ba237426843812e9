from pathlib import Path

import pytest

from fpa.engine import analyze_site
from fpa.io import (
    OUTPUT_COLUMNS,
    MalformedRecordError,
    coerce_float,
    coerce_int,
    format_private_allele_row,
    iter_site_records,
    parse_header,
    parse_site_line,
    read_header,
    write_output_header,
    write_site_result,
)

_LABELS = ["n1", "n2", "cov", "Nc", "best_p", "best_q", "best_error", "best_H", "pol_llstat"]


def _header(num_labels: int) -> str:
    labels = [f"{_LABELS[i % 9]}_{i // 9 + 1}" for i in range(num_labels)]
    return " ".join(["scaffold", "site", "ref_nuc", *labels])


def _pop(a1: str, a2: str = "NA", cov: int = 30, nc: str = "25", p: str = "1.0", q: str = "0.0", ll: str = "0.0") -> list[str]:
    return [a1, a2, str(cov), nc, p, q, "0.01", "0.0", ll]


def test_header_with_eighteen_population_labels_has_two_populations() -> None:
    header = parse_header(_header(18))
    assert header.scaffold_label == "scaffold"
    assert header.site_label == "site"
    assert header.ref_label == "ref_nuc"
    assert header.num_pops == 2


def test_header_truncates_partial_population_block() -> None:
    assert parse_header(_header(20)).num_pops == 2
    assert parse_header(_header(8)).num_pops == 0
    assert parse_header("").num_pops == 0


def test_read_header_consumes_first_line(tmp_path: Path) -> None:
    path = tmp_path / "in.txt"
    path.write_text(_header(27) + "\nscaf1 1 A\n", encoding="utf-8")
    with path.open("r", encoding="utf-8") as handle:
        assert read_header(handle).num_pops == 3
        assert handle.readline().startswith("scaf1")


def test_coerce_float_is_permissive() -> None:
    assert coerce_float("0.25") == 0.25
    assert coerce_float("NA") == 0.0
    assert coerce_float("") == 0.0
    assert coerce_float("12abc") == 12.0
    assert coerce_float("-1.5e2x") == -150.0
    assert coerce_float(".5") == 0.5
    assert coerce_float("1_000") == 1.0


def test_coerce_int_reads_leading_integer() -> None:
    assert coerce_int("17") == 17
    assert coerce_int("7.9") == 7
    assert coerce_int("NA") == 0
    assert coerce_int("-3") == -3


def test_parse_site_line_maps_missing_sentinel_to_none() -> None:
    line = " ".join(["scaf1", "100", "A", *_pop("A", nc="NA"), *_pop("NA", cov=12)])
    record = parse_site_line(line, 2, line_no=2)
    assert record.scaffold == "scaf1"
    assert record.site == 100
    assert record.ref_nuc == "A"
    assert record.line_no == 2
    first, second = record.populations
    assert first.allele1 == "A"
    assert first.allele2 is None
    assert first.nc == 0.0
    assert first.has_data
    assert second.allele1 is None
    assert not second.has_data
    assert record.total_coverage == 42


def test_parse_site_line_reads_all_population_fields() -> None:
    tokens = ["scaf9", "7", "G", "C", "T", "31", "24.5", "0.62", "0.38", "0.003", "0.41", "12.7"]
    pop = parse_site_line(" ".join(tokens), 1).populations[0]
    assert pop.allele1 == "C"
    assert pop.allele2 == "T"
    assert pop.coverage == 31
    assert pop.nc == 24.5
    assert pop.freq1 == 0.62
    assert pop.freq2 == 0.38
    assert pop.error_rate == 0.003
    assert pop.heterozygosity == 0.41
    assert pop.poly_llstat == 12.7


def test_permissive_parsing_pads_short_lines() -> None:
    line = " ".join(["scaf1", "5", "T", *_pop("A", cov=10), "C"])
    record = parse_site_line(line, 2)
    assert record.num_pops == 2
    assert record.populations[1].allele1 == "C"
    assert record.populations[1].allele2 is None
    assert record.populations[1].coverage == 0
    assert record.populations[1].nc == 0.0


def test_permissive_parsing_ignores_extra_tokens() -> None:
    line = " ".join(["scaf1", "5", "T", *_pop("A"), "extra", "tokens"])
    record = parse_site_line(line, 1)
    assert record.num_pops == 1
    assert record.populations[0].poly_llstat == 0.0


def test_strict_parsing_rejects_wrong_token_count() -> None:
    line = " ".join(["scaf1", "5", "T", *_pop("A")])
    with pytest.raises(MalformedRecordError, match="line 4"):
        parse_site_line(line, 2, strict=True, line_no=4)


def test_strict_parsing_rejects_non_numeric_values() -> None:
    line = " ".join(["scaf1", "5", "T", *_pop("A", nc="many")])
    with pytest.raises(MalformedRecordError, match="not numeric"):
        parse_site_line(line, 1, strict=True)

    line = " ".join(["scaf1", "five", "T", *_pop("A")])
    with pytest.raises(MalformedRecordError, match="site position"):
        parse_site_line(line, 1, strict=True)


def test_strict_parsing_accepts_missing_sentinel() -> None:
    line = " ".join(["scaf1", "5", "T", "NA", "NA", "0", "NA", "NA", "NA", "NA", "NA", "NA"])
    record = parse_site_line(line, 1, strict=True)
    assert record.populations[0].allele1 is None


def test_iter_site_records_skips_blank_lines_and_tracks_line_numbers() -> None:
    lines = [
        " ".join(["s", "1", "A", *_pop("A")]) + "\n",
        "\n",
        " ".join(["s", "2", "A", *_pop("C")]) + "\n",
    ]
    records = list(iter_site_records(lines, 1))
    assert [r.site for r in records] == [1, 2]
    assert [r.line_no for r in records] == [2, 4]


def test_private_allele_rows_use_fixed_column_order() -> None:
    line = " ".join(
        ["scaf1", "100", "A", *_pop("A", cov=30, nc="25", p="0.9"), *_pop("T", cov=40, nc="22", p="0.8")]
    )
    result = analyze_site(parse_site_line(line, 2))
    row = format_private_allele_row(result, result.private_alleles[0]).split("\t")
    assert len(row) == len(OUTPUT_COLUMNS)
    assert row[:8] == ["scaf1", "100", "A", "70", "2", "2", "A", "1"]
    assert row[8] == "0.900000"
    assert row[9] == "0.450000"
    assert row[11] == "0.400000"


def test_write_site_result_writes_one_row_per_private_allele(tmp_path: Path) -> None:
    line = " ".join(["scaf1", "100", "A", *_pop("A", p="0.9"), *_pop("T", p="0.8")])
    result = analyze_site(parse_site_line(line, 2))
    out = tmp_path / "out.tsv"
    with out.open("w", encoding="utf-8") as handle:
        write_output_header(handle)
        assert write_site_result(handle, result) == 2
    rows = out.read_text(encoding="utf-8").splitlines()
    assert rows[0].split("\t") == list(OUTPUT_COLUMNS)
    assert [r.split("\t")[6] for r in rows[1:]] == ["A", "T"]


def test_strict_parsing_rejects_digit_separators() -> None:
    line = " ".join(["scaf1", "5", "T", *_pop("A", nc="1_000")])
    with pytest.raises(MalformedRecordError, match="not numeric"):
        parse_site_line(line, 1, strict=True)


def test_zero_frequency_private_allele_writes_negative_infinity() -> None:
    line = " ".join(["scaf1", "100", "A", *_pop("A", nc="25", p="0.0"), *_pop("T", nc="22", p="0.8")])
    result = analyze_site(parse_site_line(line, 2))
    row = format_private_allele_row(result, result.private_alleles[0]).split("\t")
    assert row[6] == "A"
    assert row[9] == "0.000000"
    assert row[10] == "-inf"
    assert row[11] == "0.000000"
