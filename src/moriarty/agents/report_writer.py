"""Report-narrative collaborator: turns findings into a Markdown report body."""

import json

from moriarty.agents.llm_client import BaseLLMClient, LLMError, LLMMessage
from moriarty.catalog.models import Assessment, Vulnerability
from moriarty.core import get_logger
from moriarty.core.prompts import PromptManager

logger = get_logger(__name__)


def _snapshot_json(records: list[Vulnerability] | list[Assessment], exclude: set[str] | None = None) -> str:
    return json.dumps(
        [r.model_dump(mode="json", exclude=exclude) for r in records],
        indent=2,
    )


class ReportWriter:
    """Generate the narrative section of a vulnerability report."""

    def __init__(
        self,
        llm: BaseLLMClient,
        prompts: PromptManager | None = None,
        temperature: float = 0.2,
    ) -> None:
        self.llm = llm
        self.prompts = prompts or PromptManager()
        self.temperature = temperature

    async def summarize(self, vulnerabilities: list[Vulnerability], assessments: list[Assessment]) -> str:
        # raw_data is the full registry payload; too large and too noisy for the prompt
        prompt = self.prompts.render("report.j2", {
            "vulnerabilities_json": _snapshot_json(vulnerabilities, exclude={"raw_data"}),
            "assessments_json": _snapshot_json(assessments),
        })

        response = await self.llm.complete(
            messages=[LLMMessage(role="user", content=prompt)],
            system=self.prompts.render("report_system.j2"),
            temperature=self.temperature,
        )

        narrative = response.content.strip()
        if not narrative:
            raise LLMError("Report generation returned an empty narrative")

        logger.debug("report_narrative_received", length=len(narrative), latency_ms=response.latency_ms)
        return narrative
