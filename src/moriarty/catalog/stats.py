"""Dashboard counters derived from the catalog."""

from datetime import datetime, timedelta

from pydantic import BaseModel

from moriarty.catalog.models import Severity, local_now
from moriarty.catalog.store import CatalogStore


class DashboardStats(BaseModel):
    total_vulnerabilities: int
    critical_count: int
    assessments_today: int
    systems_protected: int


class StatsAggregator:
    """Compute the dashboard header counters.

    ``systems_protected`` is configured, not derived.
    """

    def __init__(self, store: CatalogStore, systems_protected: int = 42) -> None:
        self.store = store
        self.systems_protected = systems_protected

    async def get_stats(self, now: datetime | None = None) -> DashboardStats:
        vulnerabilities = await self.store.list_vulnerabilities()
        assessments = await self.store.list_assessments()

        # Local calendar day, midnight to midnight
        current = (now or local_now()).astimezone()
        day_start = current.replace(hour=0, minute=0, second=0, microsecond=0)
        day_end = day_start + timedelta(days=1)

        return DashboardStats(
            total_vulnerabilities=len(vulnerabilities),
            critical_count=sum(1 for v in vulnerabilities if v.severity == Severity.CRITICAL.value),
            assessments_today=sum(
                1 for a in assessments if day_start <= a.created_at.astimezone() < day_end
            ),
            systems_protected=self.systems_protected,
        )
