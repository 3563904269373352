"""
Tests for the CLI interface.
"""
import json
import os
import tempfile
from unittest.mock import patch, MagicMock

import pytest
from typer.testing import CliRunner

from volcano_studio.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from volcano_studio.core.discovery import Flavor, WordCandidate
from volcano_studio.core.errors import AdmissionDenied
from volcano_studio.core.lookups import LookupResult

runner = CliRunner()

COMPLETE_DOC = {
    "subject": "a volcano at night",
    "target_model": "sdxl",
    "negative": "blurry",
    "fragments": [
        {"label": "Glow", "text": "neon glow", "category": "lighting", "weight": 1.5},
        {"label": "Cam", "text": "35mm lens", "category": "camera"},
    ],
}


@pytest.fixture
def workdir(monkeypatch):
    """Temporary directory holding the database and document files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        monkeypatch.setenv("VOLCANO_DB_PATH", os.path.join(temp_dir, "cli.db"))
        yield temp_dir


def write_doc(directory, data, name="doc.json"):
    path = os.path.join(directory, name)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f)
    return path


@pytest.fixture
def mock_service():
    """Mock the lookup service factory."""
    with patch('volcano_studio.cli.main.create_lookup_service') as factory:
        service = MagicMock()
        factory.return_value = service
        yield service


class TestCLI:
    """Test CLI commands."""

    def test_init(self, workdir):
        result = runner.invoke(app, ["init"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Database initialized" in result.output
        assert os.path.exists(os.path.join(workdir, "cli.db"))

    def test_compile(self, workdir):
        path = write_doc(workdir, COMPLETE_DOC)

        result = runner.invoke(app, ["compile", path])

        assert result.exit_code == EXIT_CODE_PASS
        assert result.output == "a volcano at night, (neon glow:1.5), 35mm lens\n\nNegative prompt: blurry\n"

    def test_compile_missing_file(self, workdir):
        result = runner.invoke(app, ["compile", os.path.join(workdir, "missing.json")])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error reading document" in result.output

    def test_lint_clean(self, workdir):
        path = write_doc(workdir, COMPLETE_DOC)

        result = runner.invoke(app, ["lint", path, "--enforced"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No findings" in result.output

    def test_lint_findings_table(self, workdir):
        path = write_doc(workdir, {"subject": ""})

        result = runner.invoke(app, ["lint", path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "NO_SUBJECT" in result.output
        assert "NO_CAMERA" in result.output
        assert "NO_LIGHTING" in result.output

    def test_lint_enforced_fails_on_error(self, workdir):
        path = write_doc(workdir, {"subject": ""})

        result = runner.invoke(app, ["lint", path, "--enforced"])

        assert result.exit_code == EXIT_CODE_FAIL

    def test_lint_enforced_warnings_pass(self, workdir):
        path = write_doc(workdir, {"subject": "a volcano"})

        result = runner.invoke(app, ["lint", path, "--enforced"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "NO_CAMERA" in result.output

    def test_library_single_category(self):
        result = runner.invoke(app, ["library", "camera"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "85mm portrait lens" in result.output
        assert "golden hour" not in result.output

    def test_library_unknown_category(self):
        result = runner.invoke(app, ["library", "sound"])

        assert result.exit_code == EXIT_CODE_FAIL

    def test_save_and_list_projects(self, workdir):
        path = write_doc(workdir, COMPLETE_DOC)

        saved = runner.invoke(app, ["save", path, "Night Eruption"])
        listed = runner.invoke(app, ["projects"])
        other = runner.invoke(app, ["projects", "--session", "someone-else"])

        assert saved.exit_code == EXIT_CODE_PASS
        assert "Saved project" in saved.output
        assert "Night Eruption" in listed.output
        assert "No saved projects" in other.output


class TestDiscoverCommand:
    """Test the discover command with a mocked service."""

    def _result(self, candidates):
        return LookupResult("discover", "lava", candidates, remaining=89, reset_at=0)

    def test_discover_table(self, workdir, mock_service):
        async def discover(*args):
            return self._result([WordCandidate("magma", 100, Flavor.MEANS_LIKE)])
        mock_service.discover.side_effect = discover

        result = runner.invoke(app, ["discover", "lava", "--flavors", "ml,syn", "--max", "10"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "magma" in result.output
        args = mock_service.discover.call_args[0]
        assert args[1:] == ("lava", None, 10, ["ml", "syn"])

    def test_discover_category_flavors(self, workdir, mock_service):
        async def discover(*args):
            return self._result([])
        mock_service.discover.side_effect = discover

        result = runner.invoke(app, ["discover", "lava", "--category", "lighting"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No candidates" in result.output
        flavors = mock_service.discover.call_args[0][4]
        assert flavors == [Flavor.MEANS_LIKE, Flavor.TRIGGER, Flavor.ADJECTIVE]

    def test_discover_rate_limited(self, workdir, mock_service):
        async def discover(*args):
            raise AdmissionDenied("discover", 123)
        mock_service.discover.side_effect = discover

        result = runner.invoke(app, ["discover", "lava"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Rate limit exceeded" in result.output
