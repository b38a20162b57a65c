from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("dental_odontogram.config")

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    app_env: str = "development"
    log_level: str = "INFO"
    export_filename_prefix: str = "data_pasien"
    export_max_patients: int = 500
    feature_tooth_conditions_export: bool = Field(
        default=True, alias="FEATURE_TOOTH_CONDITIONS_EXPORT"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    @field_validator("export_max_patients", mode="before")
    @classmethod
    def _coerce_empty_ints(cls, value, info):
        if value in {"", None}:
            return cls.model_fields[info.field_name].default
        return value


def _is_production(app_env: str) -> bool:
    return app_env.strip().lower() in {"prod", "production"}


def validate_settings(settings: Settings) -> None:
    production = _is_production(settings.app_env)
    failures: list[str] = []
    warnings: list[str] = []

    if settings.log_level.strip().upper() not in LOG_LEVELS:
        msg = f"LOG_LEVEL {settings.log_level!r} is not a known level"
        if production:
            failures.append(msg)
        else:
            warnings.append(msg)
        settings.log_level = "INFO"
    else:
        settings.log_level = settings.log_level.strip().upper()

    if settings.export_max_patients < 1:
        msg = "EXPORT_MAX_PATIENTS must be at least 1"
        if production:
            failures.append(msg)
        else:
            warnings.append(msg)
        settings.export_max_patients = Settings.model_fields["export_max_patients"].default

    if not settings.export_filename_prefix.strip():
        msg = "EXPORT_FILENAME_PREFIX is blank"
        if production:
            failures.append(msg)
        else:
            warnings.append(msg)
        settings.export_filename_prefix = Settings.model_fields["export_filename_prefix"].default

    for warning in warnings:
        logger.warning("Config warning: %s", warning)

    if failures:
        raise RuntimeError("Config validation failed: " + "; ".join(failures))


settings = Settings()
