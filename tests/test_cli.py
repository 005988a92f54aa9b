"""Tests for the moriarty CLI."""

from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from conftest import make_cve
from moriarty.cli import app
from moriarty.core import CVELookupError
from moriarty.intel.nvd_client import CVESearchPage

runner = CliRunner()


def _nvd(**methods):
    client = MagicMock()
    for name, mock in methods.items():
        setattr(client, name, mock)
    return client


def test_lookup_prints_table():
    nvd = _nvd(fetch_cve=AsyncMock(return_value=make_cve()))
    with patch("moriarty.cli._nvd_client", return_value=nvd), patch("moriarty.cli.setup_logging"):
        result = runner.invoke(app, ["lookup", "CVE-2021-44228"])

    assert result.exit_code == 0
    assert "CVE-2021-44228" in result.output
    assert "Critical" in result.output
    nvd.fetch_cve.assert_awaited_once_with("CVE-2021-44228")


def test_lookup_failure_exits_nonzero():
    nvd = _nvd(fetch_cve=AsyncMock(side_effect=CVELookupError("NVD API returned 503")))
    with patch("moriarty.cli._nvd_client", return_value=nvd), patch("moriarty.cli.setup_logging"):
        result = runner.invoke(app, ["lookup", "CVE-2021-44228"])

    assert result.exit_code == 1
    assert "Lookup failed" in result.output


def test_search_nvd():
    page = CVESearchPage(cves=[make_cve(), make_cve("CVE-2021-45046", cvss_score=9.0)], total_results=2)
    nvd = _nvd(search_cves=AsyncMock(return_value=page))
    with patch("moriarty.cli._nvd_client", return_value=nvd), patch("moriarty.cli.setup_logging"):
        result = runner.invoke(app, ["search-nvd", "--keyword", "log4j", "--results", "5"])

    assert result.exit_code == 0
    assert "CVE-2021-45046" in result.output
    query = nvd.search_cves.await_args.args[0]
    assert query.keyword == "log4j"
    assert query.results_per_page == 5
