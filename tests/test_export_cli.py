"""Tests for the app.export CLI entrypoint (export service mocked)."""

import json
import logging
import tempfile
import time
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, patch

from app.export import load_requirements, main
from app.schemas.jira import ExportResult
from app.services.jira_export import JiraNotConfiguredError

REQUIREMENTS = [
    {
        "requirement": "REQ-INT-001: Validate login",
        "testCases": [{"description": "Check login", "compliance": []}],
    },
    {"requirement": "REQ-INT-002: Lock account", "testCases": []},
]


class TestExportCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = Path(self._tmp.name) / "requirements.json"
        self.path.write_text(json.dumps(REQUIREMENTS), encoding="utf-8")

    def test_load_requirements(self) -> None:
        requirements = load_requirements(self.path)
        self.assertEqual(len(requirements), 2)
        self.assertEqual(requirements[0].test_cases[0].description, "Check login")
        self.assertEqual(requirements[1].test_cases, [])

    @patch("app.export.export_requirements_to_jira", new_callable=AsyncMock)
    def test_all_exported_exits_zero(self, mock_export: AsyncMock) -> None:
        mock_export.return_value = ExportResult(success_count=2)
        self.assertEqual(main([str(self.path)]), 0)
        self.assertEqual(len(mock_export.call_args[0][0]), 2)
        self.assertIsNone(mock_export.call_args[1]["source_file"])
        self.assertIsNone(mock_export.call_args[1]["attach_source_file"])

    @patch("app.export.export_requirements_to_jira", new_callable=AsyncMock)
    def test_partial_failure_exits_one(self, mock_export: AsyncMock) -> None:
        mock_export.return_value = ExportResult(
            success_count=1, failed_count=1, errors=["Requirement #2: Jira returned 400: Invalid field"]
        )
        self.assertEqual(main([str(self.path)]), 1)

    @patch("app.export.export_requirements_to_jira", new_callable=AsyncMock)
    def test_not_configured_exits_two(self, mock_export: AsyncMock) -> None:
        mock_export.side_effect = JiraNotConfiguredError("Jira configuration is incomplete.")
        self.assertEqual(main([str(self.path)]), 2)

    @patch("app.export.export_requirements_to_jira", new_callable=AsyncMock)
    def test_attach_flag_enables_attachment_for_run(self, mock_export: AsyncMock) -> None:
        mock_export.return_value = ExportResult(success_count=2)
        attachment = Path(self._tmp.name) / "source.pdf"
        attachment.write_bytes(b"%PDF")

        main([str(self.path), "--attach", str(attachment)])

        source_file = mock_export.call_args[1]["source_file"]
        self.assertEqual(source_file.filename, "source.pdf")
        self.assertEqual(source_file.content, b"%PDF")
        self.assertTrue(mock_export.call_args[1]["attach_source_file"])

    def test_invalid_json_exits_two(self) -> None:
        self.path.write_text("not json", encoding="utf-8")
        self.assertEqual(main([str(self.path)]), 2)

    def test_missing_file_exits_two(self) -> None:
        self.assertEqual(main([str(Path(self._tmp.name) / "missing.json")]), 2)

    def test_log_timestamps_are_utc(self) -> None:
        self.assertIs(logging.Formatter.converter, time.gmtime)
