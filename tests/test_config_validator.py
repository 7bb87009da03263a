"""Unit tests for app.services.config_validator: completeness checks and project key derivation."""

import unittest

from pydantic import SecretStr

from app.core.config import Settings
from app.schemas.jira import JiraConfig
from app.services.config_validator import (
    extract_project_key,
    jira_config_from_settings,
    resolve_project_key,
    validate_config,
)


def _config(**kwargs: object) -> JiraConfig:
    """Build a complete JiraConfig, overridable per test."""
    defaults: dict[str, object] = {
        "url": "https://acme.atlassian.net",
        "username": "qa@acme.test",
        "api_token": SecretStr("token"),
        "project_key": "QA",
    }
    defaults.update(kwargs)
    return JiraConfig(**defaults)


class TestExtractProjectKey(unittest.TestCase):
    def test_from_browse_url(self) -> None:
        self.assertEqual(extract_project_key("https://acme.atlassian.net/browse/PROJ-123"), "PROJ")

    def test_no_browse_segment(self) -> None:
        self.assertIsNone(extract_project_key("https://acme.atlassian.net"))

    def test_lowercase_key_not_matched(self) -> None:
        self.assertIsNone(extract_project_key("https://acme.atlassian.net/browse/proj-1"))

    def test_empty(self) -> None:
        self.assertIsNone(extract_project_key(""))


class TestResolveProjectKey(unittest.TestCase):
    def test_explicit_key_wins(self) -> None:
        config = _config(url="https://acme.atlassian.net/browse/OTHER-1", project_key="QA")
        self.assertEqual(resolve_project_key(config), "QA")

    def test_derived_from_url(self) -> None:
        config = _config(url="https://acme.atlassian.net/browse/HT-9", project_key=None)
        self.assertEqual(resolve_project_key(config), "HT")

    def test_blank_key_falls_back_to_url(self) -> None:
        config = _config(url="https://acme.atlassian.net/browse/HT-9", project_key="  ")
        self.assertEqual(resolve_project_key(config), "HT")


class TestValidateConfig(unittest.TestCase):
    """validate_config returns True only when every required value is present."""

    def test_complete(self) -> None:
        self.assertTrue(validate_config(_config()))

    def test_missing_url(self) -> None:
        self.assertFalse(validate_config(_config(url="")))

    def test_wrong_host(self) -> None:
        self.assertFalse(validate_config(_config(url="https://jira.example.com")))

    def test_custom_host_suffix(self) -> None:
        config = _config(url="https://jira.example.com")
        self.assertTrue(validate_config(config, host_suffix="example.com"))

    def test_missing_username(self) -> None:
        self.assertFalse(validate_config(_config(username="  ")))

    def test_missing_token(self) -> None:
        self.assertFalse(validate_config(_config(api_token=SecretStr(""))))

    def test_missing_project_key(self) -> None:
        self.assertFalse(validate_config(_config(project_key=None)))

    def test_project_key_from_url(self) -> None:
        config = _config(url="https://acme.atlassian.net/browse/QA-12", project_key=None)
        self.assertTrue(validate_config(config))


class TestJiraConfigFromSettings(unittest.TestCase):
    def test_maps_settings(self) -> None:
        settings = Settings(
            _env_file=None,
            JIRA_BASE_URL="https://acme.atlassian.net/",
            JIRA_EMAIL="qa@acme.test",
            JIRA_API_TOKEN="secret",
            JIRA_PROJECT_KEY="qa",
        )
        config = jira_config_from_settings(settings)
        self.assertEqual(config.url, "https://acme.atlassian.net")
        self.assertEqual(config.username, "qa@acme.test")
        self.assertEqual(config.api_token.get_secret_value(), "secret")
        self.assertEqual(config.project_key, "QA")
        self.assertTrue(validate_config(config))

    def test_unset_settings_fail_validation(self) -> None:
        settings = Settings(
            _env_file=None,
            JIRA_BASE_URL=None,
            JIRA_EMAIL=None,
            JIRA_API_TOKEN=None,
            JIRA_PROJECT_KEY=None,
        )
        self.assertFalse(validate_config(jira_config_from_settings(settings)))
