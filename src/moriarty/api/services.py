"""Dashboard service container.

Wires one CatalogStore into every component that reads or writes it.
A single instance lives for the lifetime of the FastAPI application and is
handed to routes through the ``get_services`` dependency.
"""

from dataclasses import dataclass
from typing import Optional

from moriarty.agents.llm_client import BaseLLMClient, LazyLLMClient
from moriarty.agents.report_writer import ReportWriter
from moriarty.agents.risk_analyst import RiskAnalyst
from moriarty.catalog.search import SearchEngine
from moriarty.catalog.stats import StatsAggregator
from moriarty.catalog.store import CatalogStore
from moriarty.core import Settings, get_settings
from moriarty.intel.ingest import CVEIngestor
from moriarty.intel.nvd_client import NVDClient
from moriarty.pipeline.assessments import AssessmentOrchestrator, RiskAnalysisCollaborator
from moriarty.pipeline.reports import ReportAssembler, ReportNarrativeCollaborator
from moriarty.reporting.exporter import ReportExporter


@dataclass
class DashboardServices:
    settings: Settings
    store: CatalogStore
    search: SearchEngine
    assessments: AssessmentOrchestrator
    reports: ReportAssembler
    stats: StatsAggregator
    ingestor: CVEIngestor
    exporter: ReportExporter

    @classmethod
    def build(
        cls,
        settings: Optional[Settings] = None,
        store: Optional[CatalogStore] = None,
        llm: Optional[BaseLLMClient] = None,
        analyst: Optional[RiskAnalysisCollaborator] = None,
        writer: Optional[ReportNarrativeCollaborator] = None,
        nvd: Optional[NVDClient] = None,
    ) -> "DashboardServices":
        """Build the container, creating any collaborator not supplied.

        When the analyst or writer is missing and no LLM client is given, the
        provider client is resolved on first use, so a missing key fails the
        call that needs it rather than startup.
        """
        settings = settings or get_settings()
        store = store or CatalogStore()

        if analyst is None or writer is None:
            llm = llm or LazyLLMClient(settings)
        analyst = analyst or RiskAnalyst(llm, temperature=settings.assessment_temperature)
        writer = writer or ReportWriter(llm, temperature=settings.report_temperature)

        nvd = nvd or NVDClient(
            base_url=settings.nvd_base_url,
            api_key=settings.nvd_api_key.get_secret_value() if settings.nvd_api_key else None,
            timeout=settings.nvd_timeout_seconds,
        )

        return cls(
            settings=settings,
            store=store,
            search=SearchEngine(store),
            assessments=AssessmentOrchestrator(store, analyst, timeout=settings.llm_timeout_seconds),
            reports=ReportAssembler(
                store,
                writer,
                attribution=settings.report_attribution,
                timeout=settings.llm_timeout_seconds,
            ),
            stats=StatsAggregator(store, systems_protected=settings.systems_protected),
            ingestor=CVEIngestor(store, nvd),
            exporter=ReportExporter(),
        )
