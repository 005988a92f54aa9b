"""Shared fixtures for CyberMoriarty tests."""

from datetime import datetime, timezone
from typing import Any

import pytest

from moriarty.catalog.models import CVEDetails
from moriarty.catalog.store import CatalogStore


def make_cve(cve_id: str = "CVE-2021-44228", **overrides: Any) -> CVEDetails:
    """CVEDetails with realistic defaults."""
    fields: dict[str, Any] = {
        "cve_id": cve_id,
        "description": "Apache Log4j2 JNDI features do not protect against attacker controlled LDAP endpoints.",
        "severity": "Critical",
        "cvss_score": 10.0,
        "product": "log4j",
        "vendor": "apache",
        "published_date": datetime(2021, 12, 10, tzinfo=timezone.utc),
        "references": ["https://logging.apache.org/log4j/2.x/security.html"],
    }
    fields.update(overrides)
    return CVEDetails(**fields)


class FakeAnalyst:
    """Risk analyst returning a canned reply (or raising)."""

    def __init__(self, reply: dict[str, Any] | None = None, error: Exception | None = None):
        self.reply = reply if reply is not None else {
            "riskScore": 92,
            "exploitability": 88,
            "impactSeverity": "Critical",
            "recommendation": "Upgrade to Log4j 2.17.1 or later.",
            "remediationAvailable": True,
            "confidenceScore": 0.9,
        }
        self.error = error
        self.calls: list[Any] = []

    async def assess(self, summary):
        self.calls.append(summary)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeWriter:
    """Report writer returning a fixed narrative (or raising)."""

    def __init__(self, narrative: str = "# Report\n\nAll findings summarized.", error: Exception | None = None):
        self.narrative = narrative
        self.error = error
        self.calls: list[tuple[list, list]] = []

    async def summarize(self, vulnerabilities, assessments):
        self.calls.append((vulnerabilities, assessments))
        if self.error is not None:
            raise self.error
        return self.narrative


@pytest.fixture
def store():
    return CatalogStore()


@pytest.fixture
def analyst():
    return FakeAnalyst()


@pytest.fixture
def writer():
    return FakeWriter()
