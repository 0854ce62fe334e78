"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest

from productqc.cli import load_upload, main, parse_args


@pytest.fixture(autouse=True)
def no_log_setup():
    """Keep CLI runs from installing file handlers."""
    with patch("productqc.cli.setup_logging") as mock_setup:
        yield mock_setup


class TestParseArgs:
    """Test argument parsing."""

    def test_analyze_defaults(self):
        args = parse_args(["analyze", "--vendor", "Milton", "--url", "https://shop.example/p/bottle"])
        assert args.command == "analyze"
        assert args.file == []
        assert args.screenshot is None
        assert args.search_only is False

    def test_repeatable_files(self):
        args = parse_args(["analyze", "--vendor", "Milton", "--file", "a.pdf", "--file", "b.xlsx"])
        assert args.file == ["a.pdf", "b.xlsx"]

    def test_vendor_required(self):
        with pytest.raises(SystemExit):
            parse_args(["analyze", "--url", "https://shop.example/p/bottle"])


class TestLoadUpload:
    def test_mime_type_from_extension(self, tmp_path):
        path = tmp_path / "prices.csv"
        path.write_bytes(b"Item,Price\n")
        upload = load_upload(str(path))
        assert (upload.filename, upload.mime_type, upload.content) == ("prices.csv", "text/csv", b"Item,Price\n")

    def test_unknown_extension(self, tmp_path):
        path = tmp_path / "blob.qcx"
        path.write_bytes(b"?")
        assert load_upload(str(path)).mime_type == "application/octet-stream"


class TestCommands:
    """Test the analyze, categories and classify commands."""

    @patch("productqc.cli.run_qc_analysis")
    def test_analyze_writes_output(self, mock_run, tmp_path, capsys):
        mock_run.return_value = {"success": True, "analysis": {"overallRisk": "low"}, "warning": "Website: HTTP 403"}
        output = tmp_path / "report.json"

        with pytest.raises(SystemExit) as exc_info:
            main(["analyze", "--vendor", "Milton", "--url", "https://shop.example/p/bottle", "--output", str(output)])

        assert exc_info.value.code == 0
        assert json.loads(output.read_text(encoding="utf-8"))["analysis"]["overallRisk"] == "low"
        captured = capsys.readouterr()
        assert f"Report written to {output}" in captured.out
        assert "Warning: Website: HTTP 403" in captured.err
        request = mock_run.call_args.args[0]
        assert request.vendor_name == "Milton"

    @patch("productqc.cli.run_qc_analysis")
    def test_analyze_without_url_fails_validation(self, mock_run, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["analyze", "--vendor", "Milton"])
        assert exc_info.value.code == 2
        assert "Product URL is required" in capsys.readouterr().err
        mock_run.assert_not_called()

    def test_categories(self, capsys):
        with pytest.raises(SystemExit):
            main(["categories"])
        out = capsys.readouterr().out
        assert "home_living: Home & Living" in out
        assert "bags:" in out

    def test_classify(self, capsys):
        with pytest.raises(SystemExit):
            main(["classify", "--title", "Stainless Steel Water Bottle 1L"])
        out = capsys.readouterr().out
        assert "Category: home_living (Home & Living)" in out
        assert out.startswith("Scores: {")
