from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Iterator, TextIO

if TYPE_CHECKING:
    from .engine import PrivateAllele, SiteResult


MISSING = "NA"
FIELDS_PER_POPULATION = 9
FIXED_FIELDS = 3

OUTPUT_COLUMNS = (
    "scaffold",
    "site",
    "ref_nuc",
    "tot_cov",
    "ne_pops",
    "num_alleles",
    "private_allele",
    "id_pop",
    "focal_frequency",
    "total_frequency",
    "log_prob_pa",
    "MAF",
)

_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"[+-]?\d+")


class MalformedRecordError(ValueError):
    """Raised by strict parsing when a site line does not match the header layout."""


@dataclass(frozen=True)
class Header:
    scaffold_label: str
    site_label: str
    ref_label: str
    population_labels: tuple[str, ...]

    @property
    def num_pops(self) -> int:
        # Trailing labels that do not fill a whole population are ignored.
        return len(self.population_labels) // FIELDS_PER_POPULATION


@dataclass(frozen=True)
class PopulationEstimate:
    allele1: str | None
    allele2: str | None
    coverage: int
    nc: float
    freq1: float
    freq2: float
    error_rate: float
    heterozygosity: float
    poly_llstat: float

    @property
    def has_data(self) -> bool:
        return self.allele1 is not None


@dataclass(frozen=True)
class SiteRecord:
    scaffold: str
    site: int
    ref_nuc: str
    populations: tuple[PopulationEstimate, ...]
    line_no: int | None = None

    @property
    def num_pops(self) -> int:
        return len(self.populations)

    @property
    def total_coverage(self) -> int:
        return sum(pop.coverage for pop in self.populations)


def coerce_float(token: str) -> float:
    """Permissive float conversion: full parse, else leading numeric prefix, else 0."""
    # float() also takes digit separators ("1_000"), which atof stops at.
    if "_" not in token:
        try:
            return float(token)
        except ValueError:
            pass
    match = _FLOAT_PREFIX.match(token.strip())
    if match is None:
        return 0.0
    return float(match.group(0))


def coerce_int(token: str) -> int:
    match = _INT_PREFIX.match(token.strip())
    if match is None:
        return 0
    return int(match.group(0))


def _allele(token: str) -> str | None:
    if not token or token == MISSING:
        return None
    return token


def _is_number(token: str) -> bool:
    if "_" in token:
        return False
    try:
        float(token)
    except ValueError:
        return False
    return True


def _is_integer(token: str) -> bool:
    try:
        int(token)
    except ValueError:
        return False
    return True


def parse_header(line: str) -> Header:
    tokens = line.split()
    fixed = (tokens[:FIXED_FIELDS] + [""] * FIXED_FIELDS)[:FIXED_FIELDS]
    return Header(
        scaffold_label=fixed[0],
        site_label=fixed[1],
        ref_label=fixed[2],
        population_labels=tuple(tokens[FIXED_FIELDS:]),
    )


def read_header(handle: TextIO) -> Header:
    return parse_header(handle.readline())


def _validate_tokens(tokens: list[str], num_pops: int, line_no: int | None) -> None:
    where = f"line {line_no}" if line_no is not None else "site line"
    expected = FIXED_FIELDS + FIELDS_PER_POPULATION * num_pops
    if len(tokens) != expected:
        raise MalformedRecordError(
            f"{where}: expected {expected} fields for {num_pops} populations, found {len(tokens)}."
        )
    if not _is_integer(tokens[1]):
        raise MalformedRecordError(f"{where}: site position '{tokens[1]}' is not an integer.")
    for pg in range(num_pops):
        offset = FIXED_FIELDS + pg * FIELDS_PER_POPULATION
        coverage = tokens[offset + 2]
        if not _is_integer(coverage):
            raise MalformedRecordError(
                f"{where}: coverage '{coverage}' of population {pg + 1} is not an integer."
            )
        for token in tokens[offset + 3 : offset + FIELDS_PER_POPULATION]:
            if token != MISSING and not _is_number(token):
                raise MalformedRecordError(
                    f"{where}: value '{token}' of population {pg + 1} is not numeric."
                )


def parse_site_line(
    line: str,
    num_pops: int,
    *,
    strict: bool = False,
    line_no: int | None = None,
) -> SiteRecord:
    """Decode one whitespace-delimited site line.

    In the default mode missing trailing tokens read as absent data and
    non-numeric numeric fields coerce to zero. ``strict=True`` raises
    :class:`MalformedRecordError` instead.
    """
    tokens = line.split()
    if strict:
        _validate_tokens(tokens, num_pops, line_no)

    width = FIXED_FIELDS + FIELDS_PER_POPULATION * num_pops
    padded = (tokens + [""] * width)[:width]

    populations: list[PopulationEstimate] = []
    for pg in range(num_pops):
        offset = FIXED_FIELDS + pg * FIELDS_PER_POPULATION
        f = padded[offset : offset + FIELDS_PER_POPULATION]
        populations.append(
            PopulationEstimate(
                allele1=_allele(f[0]),
                allele2=_allele(f[1]),
                coverage=coerce_int(f[2]),
                nc=coerce_float(f[3]),
                freq1=coerce_float(f[4]),
                freq2=coerce_float(f[5]),
                error_rate=coerce_float(f[6]),
                heterozygosity=coerce_float(f[7]),
                poly_llstat=coerce_float(f[8]),
            )
        )

    return SiteRecord(
        scaffold=padded[0],
        site=coerce_int(padded[1]),
        ref_nuc=padded[2],
        populations=tuple(populations),
        line_no=line_no,
    )


def iter_site_records(
    lines: Iterable[str],
    num_pops: int,
    *,
    strict: bool = False,
    first_line_no: int = 2,
) -> Iterator[SiteRecord]:
    """Yield site records in input order, skipping blank lines.

    ``first_line_no`` is the file line number of the first item in ``lines``;
    the default assumes the header has already been consumed.
    """
    for line_no, raw in enumerate(lines, start=first_line_no):
        if not raw.strip():
            continue
        yield parse_site_line(raw, num_pops, strict=strict, line_no=line_no)


def format_private_allele_row(result: "SiteResult", private: "PrivateAllele") -> str:
    record = result.record
    return "\t".join(
        [
            record.scaffold,
            str(record.site),
            record.ref_nuc,
            str(result.total_coverage),
            str(result.ne_pops),
            str(result.num_alleles),
            private.allele,
            str(private.population_id),
            f"{private.focal_frequency:f}",
            f"{private.total_frequency:f}",
            f"{private.log_prob:f}",
            f"{result.maf_total:f}",
        ]
    )


def write_output_header(handle: TextIO) -> None:
    handle.write("\t".join(OUTPUT_COLUMNS) + "\n")


def write_site_result(handle: TextIO, result: "SiteResult") -> int:
    for private in result.private_alleles:
        handle.write(format_private_allele_row(result, private) + "\n")
    return len(result.private_alleles)
