from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator

from .io import (
    PopulationEstimate,
    SiteRecord,
    iter_site_records,
    read_header,
    write_output_header,
    write_site_result,
)
from .stats import log10_detection_probability


DEFAULT_MIN_NC = 20.0
DEFAULT_CRITICAL_VALUE = 5.991


@dataclass(frozen=True)
class ScanConfig:
    min_nc: float = DEFAULT_MIN_NC
    critical_value: float = DEFAULT_CRITICAL_VALUE
    strict: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "min_Nc": self.min_nc,
            "cv": self.critical_value,
            "strict": self.strict,
        }


@dataclass(frozen=True)
class AlleleSummary:
    allele: str
    carriers: tuple[int, ...]
    frequencies: tuple[float, ...]
    mean_frequency: float

    @property
    def is_private_candidate(self) -> bool:
        return len(self.carriers) == 1


@dataclass(frozen=True)
class PrivateAllele:
    allele: str
    population_id: int
    focal_frequency: float
    total_frequency: float
    nc_focal: float
    nc_other: float
    log_prob: float


@dataclass(frozen=True)
class SiteResult:
    record: SiteRecord
    qualifying: tuple[int, ...]
    sum_nc: float
    alleles: tuple[AlleleSummary, ...]
    maf_total: float | None
    private_alleles: tuple[PrivateAllele, ...]

    @property
    def ne_pops(self) -> int:
        return len(self.qualifying)

    @property
    def total_coverage(self) -> int:
        return self.record.total_coverage

    @property
    def num_alleles(self) -> int:
        return len(self.alleles)


@dataclass
class ScanSummary:
    num_pops: int
    n_sites: int
    n_sites_with_private: int
    n_private_alleles: int
    input_path: str
    output_path: str

    def to_dict(self) -> dict[str, object]:
        return {
            "num_pops": self.num_pops,
            "n_sites": self.n_sites,
            "n_sites_with_private": self.n_sites_with_private,
            "n_private_alleles": self.n_private_alleles,
            "input_path": self.input_path,
            "output_path": self.output_path,
        }


def population_qualifies(pop: PopulationEstimate, min_nc: float) -> bool:
    return pop.allele1 is not None and pop.nc >= min_nc


def allele2_admitted(pop: PopulationEstimate, critical_value: float) -> bool:
    # Second allele needs a significant polymorphism test; equality is not enough.
    return pop.allele2 is not None and pop.poly_llstat > critical_value


def qualifying_populations(record: SiteRecord, min_nc: float) -> tuple[int, ...]:
    return tuple(
        idx for idx, pop in enumerate(record.populations) if population_qualifies(pop, min_nc)
    )


def segregating_alleles(
    record: SiteRecord,
    qualifying: Iterable[int],
    critical_value: float,
) -> tuple[str, ...]:
    """Distinct alleles of the qualifying populations, in first-seen order."""
    seen: dict[str, None] = {}
    for idx in qualifying:
        pop = record.populations[idx]
        seen.setdefault(pop.allele1, None)  # type: ignore[arg-type]
        if allele2_admitted(pop, critical_value):
            seen.setdefault(pop.allele2, None)  # type: ignore[arg-type]
    return tuple(seen)


def summarize_allele(
    record: SiteRecord,
    allele: str,
    qualifying: Iterable[int],
    ne_pops: int,
) -> AlleleSummary:
    """Carrier populations of ``allele`` and its mean frequency over the sample.

    The mean is taken over all ``ne_pops`` qualifying populations, so
    populations that do not carry the allele count as frequency zero.
    """
    if ne_pops < 1:
        raise ValueError("mean allele frequency needs at least one qualifying population.")
    carriers: list[int] = []
    frequencies: list[float] = []
    for idx in qualifying:
        pop = record.populations[idx]
        if pop.allele1 == allele:
            carriers.append(idx + 1)
            frequencies.append(pop.freq1)
        elif pop.allele2 == allele:
            carriers.append(idx + 1)
            frequencies.append(pop.freq2)
    return AlleleSummary(
        allele=allele,
        carriers=tuple(carriers),
        frequencies=tuple(frequencies),
        mean_frequency=sum(frequencies) / ne_pops,
    )


def minor_allele_frequency(alleles: Iterable[AlleleSummary]) -> float | None:
    maf: float | None = None
    for summary in alleles:
        if maf is None or summary.mean_frequency < maf:
            maf = summary.mean_frequency
    return maf


def detect_private_alleles(
    record: SiteRecord,
    alleles: Iterable[AlleleSummary],
    ne_pops: int,
    sum_nc: float,
) -> tuple[PrivateAllele, ...]:
    if ne_pops < 2:
        return ()
    found: list[PrivateAllele] = []
    for summary in alleles:
        if not summary.is_private_candidate:
            continue
        population_id = summary.carriers[0]
        nc_focal = record.populations[population_id - 1].nc
        nc_other = sum_nc - nc_focal
        found.append(
            PrivateAllele(
                allele=summary.allele,
                population_id=population_id,
                focal_frequency=summary.frequencies[0],
                total_frequency=summary.mean_frequency,
                nc_focal=nc_focal,
                nc_other=nc_other,
                log_prob=log10_detection_probability(summary.mean_frequency, nc_focal, nc_other),
            )
        )
    return tuple(found)


def analyze_site(record: SiteRecord, config: ScanConfig | None = None) -> SiteResult:
    cfg = config or ScanConfig()
    qualifying = qualifying_populations(record, cfg.min_nc)
    ne_pops = len(qualifying)
    sum_nc = sum(record.populations[idx].nc for idx in qualifying)
    alleles = tuple(
        summarize_allele(record, allele, qualifying, ne_pops)
        for allele in segregating_alleles(record, qualifying, cfg.critical_value)
    )
    return SiteResult(
        record=record,
        qualifying=qualifying,
        sum_nc=sum_nc,
        alleles=alleles,
        maf_total=minor_allele_frequency(alleles),
        private_alleles=detect_private_alleles(record, alleles, ne_pops, sum_nc),
    )


def scan_records(
    records: Iterable[SiteRecord],
    config: ScanConfig | None = None,
) -> Iterator[SiteResult]:
    cfg = config or ScanConfig()
    for record in records:
        yield analyze_site(record, cfg)


def scan_file(
    input_path: str | Path,
    output_path: str | Path,
    config: ScanConfig | None = None,
    *,
    echo: Callable[[str], None] | None = print,
) -> ScanSummary:
    """Stream ``input_path`` site by site and write private alleles to ``output_path``."""
    cfg = config or ScanConfig()
    in_path = Path(input_path)
    out_path = Path(output_path)

    try:
        in_handle = in_path.open("r", encoding="utf-8", errors="surrogateescape")
    except OSError as exc:
        raise FileNotFoundError(f"Cannot open {in_path} for reading.") from exc

    with in_handle:
        header = read_header(in_handle)
        num_pops = header.num_pops
        if echo is not None:
            echo(f"{num_pops} populations to be analyzed")

        try:
            out_handle = out_path.open("w", encoding="utf-8", errors="surrogateescape")
        except OSError as exc:
            raise OSError(f"Cannot open {out_path} for writing.") from exc

        n_sites = 0
        n_sites_with_private = 0
        n_private = 0
        with out_handle:
            write_output_header(out_handle)
            records = iter_site_records(in_handle, num_pops, strict=cfg.strict)
            for result in scan_records(records, cfg):
                n_sites += 1
                written = write_site_result(out_handle, result)
                if written:
                    n_sites_with_private += 1
                    n_private += written

    return ScanSummary(
        num_pops=num_pops,
        n_sites=n_sites,
        n_sites_with_private=n_sites_with_private,
        n_private_alleles=n_private,
        input_path=str(in_path),
        output_path=str(out_path),
    )
