"""
NVD Client: fetches CVE records from the NIST National Vulnerability Database.

API: https://services.nvd.nist.gov/rest/json/cves/2.0
Lookup by ``cveId`` or search by keyword / CVSS v3 severity / publication
date range. Results are mapped onto ``CVEDetails`` so they can be cataloged
directly.
"""

from datetime import date, datetime
from typing import Any

import httpx
from pydantic import BaseModel, Field
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from moriarty.catalog.models import CVEDetails
from moriarty.core import CVELookupError, NotFoundError, get_logger

logger = get_logger(__name__)

NVD_API = "https://services.nvd.nist.gov/rest/json/cves/2.0"


class CVEQuery(BaseModel):
    """Registry search parameters."""

    keyword: str | None = None
    severity: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    results_per_page: int = Field(default=20, ge=1, le=2000)
    start_index: int = Field(default=0, ge=0)

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.keyword:
            params["keywordSearch"] = self.keyword
        if self.severity:
            params["cvssV3Severity"] = self.severity.upper()
        if self.start_date:
            params["pubStartDate"] = f"{self.start_date.isoformat()}T00:00:00.000"
        if self.end_date:
            params["pubEndDate"] = f"{self.end_date.isoformat()}T23:59:59.999"
        params["resultsPerPage"] = str(self.results_per_page)
        params["startIndex"] = str(self.start_index)
        return params


class CVESearchPage(BaseModel):
    cves: list[CVEDetails]
    total_results: int


def _v2_severity(score: float | None) -> str:
    if score is None:
        return "Unknown"
    if score >= 9.0:
        return "CRITICAL"
    if score >= 7.0:
        return "HIGH"
    if score >= 4.0:
        return "MEDIUM"
    return "LOW"


def _extract_cvss(cve: dict[str, Any]) -> tuple[float | None, str]:
    """Base score and severity, preferring CVSS v3.1, then v3.0, then v2."""
    metrics = cve.get("metrics") or {}

    for key in ("cvssMetricV31", "cvssMetricV30"):
        entries = metrics.get(key) or []
        if entries:
            data = entries[0].get("cvssData", {})
            return data.get("baseScore"), data.get("baseSeverity") or "Unknown"

    entries = metrics.get("cvssMetricV2") or []
    if entries:
        score = entries[0].get("cvssData", {}).get("baseScore")
        return score, _v2_severity(score)

    return None, "Unknown"


def _extract_vendor_product(cve: dict[str, Any]) -> tuple[str | None, str | None]:
    """Vendor and product from the first CPE match (cpe:2.3:part:vendor:product:...)."""
    for config in cve.get("configurations") or []:
        for node in config.get("nodes") or []:
            for match in node.get("cpeMatch") or []:
                parts = match.get("criteria", "").split(":")
                if len(parts) >= 5:
                    return parts[3], parts[4]
    return None, None


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning("nvd_bad_timestamp", value=value)
        return None


def parse_cve(cve: dict[str, Any]) -> CVEDetails:
    """Map one NVD ``cve`` object onto CVEDetails."""
    score, severity = _extract_cvss(cve)
    vendor, product = _extract_vendor_product(cve)

    description = next(
        (d.get("value") for d in cve.get("descriptions") or [] if d.get("lang") == "en"),
        None,
    ) or "No description available"

    return CVEDetails(
        cve_id=cve.get("id", ""),
        description=description,
        severity=severity.capitalize(),
        cvss_score=score,
        product=product,
        vendor=vendor,
        published_date=_parse_timestamp(cve.get("published")),
        updated_date=_parse_timestamp(cve.get("lastModified")),
        references=[ref["url"] for ref in cve.get("references") or [] if ref.get("url")],
        exploit_available=False,
        raw_data=cve,
    )


class NVDClient:
    """Query the NVD CVE API."""

    def __init__(
        self,
        base_url: str = NVD_API,
        api_key: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get(self, params: dict[str, str]) -> dict[str, Any]:
        headers = {"apiKey": self.api_key} if self.api_key else {}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(self.base_url, params=params, headers=headers)

        if resp.status_code != 200:
            logger.warning("nvd_api_error", status=resp.status_code, params=params)
            raise CVELookupError(
                f"NVD API returned {resp.status_code}",
                {"status_code": resp.status_code},
            )
        try:
            return resp.json()
        except ValueError as e:
            raise CVELookupError(f"NVD API returned invalid JSON: {e}") from e

    async def _request(self, params: dict[str, str]) -> dict[str, Any]:
        try:
            return await self._get(params)
        except httpx.HTTPError as e:
            logger.error("nvd_request_failed", error=str(e))
            raise CVELookupError(f"NVD request failed: {e}") from e

    async def fetch_cve(self, cve_id: str) -> CVEDetails:
        """Fetch a single CVE by ID.

        Raises:
            NotFoundError: the registry has no record for ``cve_id``
            CVELookupError: the registry could not be queried
        """
        data = await self._request({"cveId": cve_id})
        vulnerabilities = data.get("vulnerabilities") or []
        if not vulnerabilities:
            raise NotFoundError("CVE", cve_id)

        details = parse_cve(vulnerabilities[0].get("cve", {}))
        logger.info("nvd_cve_fetched", cve_id=details.cve_id, severity=details.severity)
        return details

    async def search_cves(self, query: CVEQuery) -> CVESearchPage:
        """Fetch one page of registry search results."""
        data = await self._request(query.to_params())

        cves = [parse_cve(v.get("cve", {})) for v in data.get("vulnerabilities") or []]
        total = data.get("totalResults") or 0
        logger.info("nvd_search_completed", returned=len(cves), total=total)
        return CVESearchPage(cves=cves, total_results=total)
