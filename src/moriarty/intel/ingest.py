"""CVE ingestion: registry records into the catalog, never duplicating a CVE ID."""

from pydantic import BaseModel

from moriarty.catalog.models import Vulnerability
from moriarty.catalog.store import CatalogStore
from moriarty.core import get_logger
from moriarty.intel.nvd_client import CVEQuery, NVDClient

logger = get_logger(__name__)


class IngestedPage(BaseModel):
    vulnerabilities: list[Vulnerability]
    total_results: int


class CVEIngestor:
    """Catalog CVEs fetched from the registry.

    Usage:
        ingestor = CVEIngestor(store, NVDClient())
        vuln = await ingestor.ingest("CVE-2021-44228")
    """

    def __init__(self, store: CatalogStore, client: NVDClient) -> None:
        self.store = store
        self.client = client

    async def ingest(self, cve_id: str) -> Vulnerability:
        """Return the cataloged record for ``cve_id``, fetching it on first sight."""
        existing = await self.store.get_vulnerability_by_cve_id(cve_id)
        if existing is not None:
            logger.info("cve_already_cataloged", cve_id=cve_id, id=existing.id)
            return existing

        details = await self.client.fetch_cve(cve_id)
        vuln = await self.store.create_vulnerability(details)
        logger.info("cve_ingested", cve_id=vuln.cve_id, id=vuln.id)
        return vuln

    async def ingest_search(self, query: CVEQuery) -> IngestedPage:
        """Fetch one page of registry results and catalog each CVE."""
        page = await self.client.search_cves(query)

        vulnerabilities = [await self.store.create_vulnerability(cve) for cve in page.cves]
        logger.info("cve_page_ingested", count=len(vulnerabilities), total=page.total_results)
        return IngestedPage(vulnerabilities=vulnerabilities, total_results=page.total_results)
