"""Settings for the UnLinked backend."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
	if env_names:
		alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
		return Field(default=default, validation_alias=alias)
	return Field(default=default)


class Settings(BaseSettings):
	redis_url: str = _env_field("redis://localhost:6379/0", "REDIS_URL")
	secret_key: str = _env_field("dev-secret-change-me", "SECRET_KEY", "JWT_SECRET")
	environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
	auth_cookie_name: str = _env_field("jwt-unlinked", "AUTH_COOKIE_NAME")
	client_url: str = _env_field("http://localhost:5173", "CLIENT_URL")
	cors_allow_origins: Any = _env_field((), "CORS_ALLOW_ORIGINS")

	obs_enabled: bool = _env_field(True, "OBS_ENABLED")
	obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
	obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
	service_name: str = _env_field("unlinked-api", "SERVICE_NAME")
	git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

	# Email Settings; leaving SMTP_HOST unset disables outbound mail
	smtp_host: Optional[str] = _env_field(None, "SMTP_HOST")
	smtp_port: int = _env_field(587, "SMTP_PORT")
	smtp_user: Optional[str] = _env_field(None, "SMTP_USER")
	smtp_password: Optional[str] = _env_field(None, "SMTP_PASSWORD")
	smtp_from_email: str = _env_field("noreply@unlinked.example", "SMTP_FROM_EMAIL", "EMAIL_FROM")
	smtp_from_name: str = _env_field("UnLinked", "SMTP_FROM_NAME", "EMAIL_FROM_NAME")
	smtp_tls: bool = _env_field(True, "SMTP_TLS")

	# Social graph
	strict_pending_pairs: bool = _env_field(False, "STRICT_PENDING_PAIRS")
	edge_repair_interval_minutes: int = _env_field(0, "EDGE_REPAIR_INTERVAL_MINUTES")
	edge_repair_grace_seconds: int = _env_field(30, "EDGE_REPAIR_GRACE_SECONDS")

	model_config = SettingsConfigDict(
		env_prefix="",
		env_file=".env",
		case_sensitive=False,
		extra="ignore",
	)

	def is_dev(self) -> bool:
		return self.environment.lower() in ("dev", "development")

	@field_validator("cors_allow_origins", mode="before")
	@classmethod
	def _split_cors(cls, value):
		if value in (None, ""):
			return ()
		if isinstance(value, str):
			return tuple(part.strip() for part in value.split(",") if part.strip())
		if isinstance(value, (list, tuple, set)):
			return tuple(str(item).strip() for item in value if str(item).strip())
		return ()

	@field_validator("obs_log_level", mode="after")
	@classmethod
	def _normalise_level(cls, value: str) -> str:
		return value.upper()


settings = Settings()
