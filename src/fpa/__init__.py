"""FPA: private alleles from per-population allele-frequency estimates."""

__version__ = "0.1.0"

from .engine import (
    AlleleSummary,
    PrivateAllele,
    ScanConfig,
    ScanSummary,
    SiteResult,
    analyze_site,
    scan_file,
    scan_records,
)
from .io import Header, MalformedRecordError, PopulationEstimate, SiteRecord, parse_header, parse_site_line
from .stats import chi_square_critical_value, detection_probability, log10_detection_probability

__all__ = [
    "AlleleSummary",
    "Header",
    "MalformedRecordError",
    "PopulationEstimate",
    "PrivateAllele",
    "ScanConfig",
    "ScanSummary",
    "SiteRecord",
    "SiteResult",
    "analyze_site",
    "chi_square_critical_value",
    "detection_probability",
    "log10_detection_probability",
    "parse_header",
    "parse_site_line",
    "scan_file",
    "scan_records",
]
