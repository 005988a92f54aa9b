"""Vulnerability search and ranking.

Filters are applied conjunctively over the whole catalog, then results are
ranked by severity (Critical > High > Medium > Low > anything else) and,
within a severity, by CVSS score descending with a missing score counted
as 0. ``total`` is the number of matches before pagination.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from moriarty.catalog.models import Severity, Vulnerability, severity_rank
from moriarty.catalog.store import CatalogStore
from moriarty.core import InvalidInputError, get_logger

logger = get_logger(__name__)


class SearchCriteria(BaseModel):
    """Search filters. Every field is optional; absence means no constraint."""

    model_config = ConfigDict(extra="forbid")

    cve_id: str | None = Field(None, description="Case-insensitive substring of the CVE ID")
    severity: Severity | None = None
    product: str | None = Field(None, description="Case-insensitive substring")
    vendor: str | None = Field(None, description="Case-insensitive substring")
    cvss_min: float | None = Field(None, ge=0.0, le=10.0)
    cvss_max: float | None = Field(None, ge=0.0, le=10.0)
    has_exploit: bool | None = None
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class SearchResult(BaseModel):
    results: list[Vulnerability]
    total: int


def _contains(value: str | None, needle: str) -> bool:
    return value is not None and needle.lower() in value.lower()


def matches(vuln: Vulnerability, criteria: SearchCriteria) -> bool:
    """True if the vulnerability satisfies every provided filter."""
    if criteria.cve_id and not _contains(vuln.cve_id, criteria.cve_id):
        return False
    if criteria.severity is not None and vuln.severity != criteria.severity.value:
        return False
    if criteria.product and not _contains(vuln.product, criteria.product):
        return False
    if criteria.vendor and not _contains(vuln.vendor, criteria.vendor):
        return False
    if criteria.cvss_min is not None and (vuln.cvss_score is None or vuln.cvss_score < criteria.cvss_min):
        return False
    if criteria.cvss_max is not None and (vuln.cvss_score is None or vuln.cvss_score > criteria.cvss_max):
        return False
    if criteria.has_exploit is not None and bool(vuln.exploit_available) != criteria.has_exploit:
        return False
    return True


def rank_key(vuln: Vulnerability) -> tuple[int, float]:
    """Sort key; sort with ``reverse=True`` for most dangerous first."""
    return severity_rank(vuln.severity), vuln.cvss_score or 0.0


class SearchEngine:
    """Filter, rank and paginate the vulnerability catalog.

    Usage:
        engine = SearchEngine(store)
        page = await engine.search({"severity": "Critical", "limit": 10})
    """

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    @staticmethod
    def parse_criteria(criteria: SearchCriteria | dict[str, Any] | None) -> SearchCriteria:
        if criteria is None:
            return SearchCriteria()
        if isinstance(criteria, SearchCriteria):
            return criteria
        try:
            return SearchCriteria.model_validate(criteria)
        except ValidationError as e:
            raise InvalidInputError(
                "Invalid search parameters",
                {"errors": e.errors(include_url=False, include_context=False, include_input=False)},
            ) from e

    async def search(self, criteria: SearchCriteria | dict[str, Any] | None = None) -> SearchResult:
        parsed = self.parse_criteria(criteria)

        filtered = [v for v in await self.store.list_vulnerabilities() if matches(v, parsed)]
        filtered.sort(key=rank_key, reverse=True)

        page = filtered[parsed.offset : parsed.offset + parsed.limit]
        logger.debug("vulnerability_search", total=len(filtered), returned=len(page))
        return SearchResult(results=page, total=len(filtered))
