"""Tests for the command-line interface."""

import json

from click.testing import CliRunner
from tipscan.cli import cli

RECEIPT = "SUBTOTAL 45.00\nTAX 4.50\nTIP 2.00\nTOTAL 51.50\nCASH 60.00\nCHANGE 8.50\n"


class TestExtractCommand:
    """Test suite for `tipscan extract`."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_extract_from_file(self, tmp_path):
        path = tmp_path / "receipt.txt"
        path.write_text(RECEIPT, encoding="utf-8")

        result = self.runner.invoke(cli, ['extract', str(path)])

        assert result.exit_code == 0
        assert "Total: 51.50" in result.output
        assert "Other amounts found:" in result.output

    def test_extract_from_stdin_as_json(self):
        result = self.runner.invoke(cli, ['extract', '--json'], input="CASH 40.00\nCHANGE 12.50")

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload['amount'] == 0
        assert len(payload['all_amounts']) == 2
        assert payload['message'] == "Found 2 amounts. Click one below or try a clearer image."

    def test_explain_lists_candidates(self, tmp_path):
        path = tmp_path / "receipt.txt"
        path.write_text(RECEIPT, encoding="utf-8")

        result = self.runner.invoke(cli, ['extract', str(path), '--explain'])

        assert result.exit_code == 0
        assert "Candidate ranking:" in result.output
        assert "payment=-2.80" in result.output


class TestBatchCommand:
    """Test suite for `tipscan batch`."""

    def test_empty_directory(self, tmp_path):
        result = CliRunner().invoke(cli, ['batch', '--in', str(tmp_path), '--out', str(tmp_path / "out")])

        assert result.exit_code == 0
        assert not (tmp_path / "out" / "scan_results.xlsx").exists()
