"""CVE registry access and ingestion."""

from moriarty.intel.ingest import CVEIngestor, IngestedPage
from moriarty.intel.nvd_client import CVEQuery, CVESearchPage, NVDClient, parse_cve

__all__ = [
    "CVEIngestor",
    "CVEQuery",
    "CVESearchPage",
    "IngestedPage",
    "NVDClient",
    "parse_cve",
]
