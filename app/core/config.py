"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Label sets applied to created issues (Jira labels may not contain spaces).
DEFAULT_PARENT_LABELS = ["healthtestai", "automated-requirement"]
DEFAULT_SUBTASK_LABELS = ["healthtestai", "test-case"]

DEFAULT_FOOTER_LINES = [
    "Generated by HealthTestAI",
    "For any queries reach to the quality assurance team.",
]


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # Jira Cloud connection (the active integration; resolved into a JiraConfig per export run)
    JIRA_BASE_URL: str | None = None
    JIRA_EMAIL: str | None = None
    JIRA_API_TOKEN: SecretStr | None = None
    JIRA_PROJECT_KEY: str | None = None
    JIRA_HOST_SUFFIX: str = "atlassian.net"
    JIRA_REQUEST_TIMEOUT_SEC: float = 30.0

    # Fixed delay between issue creation calls to stay under Jira's rate limits
    JIRA_CALL_DELAY_SEC: float = 0.5

    # When True, a failed traceability link is recorded as a test case failure
    JIRA_STRICT_LINKING: bool = False

    # Bounded retry for throttled (429) or unavailable (5xx) responses; off by default
    JIRA_RETRY_ENABLED: bool = False
    JIRA_RETRY_MAX_ATTEMPTS: int = 3
    JIRA_RETRY_BACKOFF_SEC: float = 1.0

    # Attach the source document to the first requirement's parent issue
    JIRA_ATTACH_SOURCE_FILE: bool = False

    JIRA_PARENT_LABELS: list[str] = DEFAULT_PARENT_LABELS
    JIRA_SUBTASK_LABELS: list[str] = DEFAULT_SUBTASK_LABELS

    EXPORT_SUMMARY_MAX_LENGTH: int = 80
    EXPORT_FOOTER_LINES: list[str] = DEFAULT_FOOTER_LINES

    @field_validator("JIRA_BASE_URL")
    @classmethod
    def validate_jira_base_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        s = v.strip().rstrip("/").lower()
        if not (s.startswith("http://") or s.startswith("https://")):
            raise ValueError(
                "JIRA_BASE_URL must use http or https (e.g. https://your-domain.atlassian.net)"
            )
        return v.strip().rstrip("/")

    @field_validator("JIRA_PROJECT_KEY")
    @classmethod
    def validate_jira_project_key(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip().upper()

    @field_validator("JIRA_REQUEST_TIMEOUT_SEC")
    @classmethod
    def validate_jira_timeout(cls, v: float) -> float:
        if v <= 0 or v > 120:
            raise ValueError(
                "JIRA_REQUEST_TIMEOUT_SEC must be greater than 0 and at most 120"
            )
        return v

    @field_validator("JIRA_CALL_DELAY_SEC")
    @classmethod
    def validate_jira_call_delay(cls, v: float) -> float:
        if v < 0 or v > 10:
            raise ValueError("JIRA_CALL_DELAY_SEC must be between 0 and 10")
        return v

    @field_validator("JIRA_RETRY_MAX_ATTEMPTS")
    @classmethod
    def validate_jira_retry_attempts(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("JIRA_RETRY_MAX_ATTEMPTS must be between 1 and 10")
        return v

    @field_validator("JIRA_RETRY_BACKOFF_SEC")
    @classmethod
    def validate_jira_retry_backoff(cls, v: float) -> float:
        if v < 0 or v > 60:
            raise ValueError("JIRA_RETRY_BACKOFF_SEC must be between 0 and 60")
        return v

    @field_validator("JIRA_PARENT_LABELS", "JIRA_SUBTASK_LABELS")
    @classmethod
    def validate_labels(cls, v: list[str]) -> list[str]:
        labels = [label.strip() for label in v if label and label.strip()]
        for label in labels:
            if " " in label:
                raise ValueError(f"Jira labels must not contain spaces, got {label!r}")
        return labels

    @field_validator("EXPORT_SUMMARY_MAX_LENGTH")
    @classmethod
    def validate_summary_max_length(cls, v: int) -> int:
        if v < 10 or v > 255:
            raise ValueError("EXPORT_SUMMARY_MAX_LENGTH must be between 10 and 255")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
