"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class AuthConfig(BaseSettings):
    session_max_age_days: int = 7
    cookie_name: str = "session_token"


class WorkflowConfig(BaseSettings):
    enforce_stage_order: bool = True
    qa_min_photos: int = 3
    qa_max_photos: int = 5


class BillingConfig(BaseSettings):
    default_labor_rate: Decimal = Decimal("0.00")
    currency: str = "AED"
    invoice_due_days: int = 30


class RetentionConfig(BaseSettings):
    notification_days: int = 30
    conversation_days: int = 90
    sweep_interval_seconds: int = 300


class UploadConfig(BaseSettings):
    base_dir: str = "data/uploads"
    max_bytes: int = 10 * 1024 * 1024
    allowed_types: list[str] = Field(default_factory=lambda: [
        "image/jpeg", "image/png", "image/webp",
        "application/pdf",
        "audio/mpeg", "audio/ogg", "audio/webm", "audio/wav",
    ])


class PayrollConfig(BaseSettings):
    overtime_threshold_hours: Decimal = Decimal("40")
    overtime_multiplier: Decimal = Decimal("1.5")


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/garage.db"
    log_level: str = "INFO"
    auth: AuthConfig = Field(default_factory=AuthConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    billing: BillingConfig = Field(default_factory=BillingConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    uploads: UploadConfig = Field(default_factory=UploadConfig)
    payroll: PayrollConfig = Field(default_factory=PayrollConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def _build_settings() -> Settings:
    y = _yaml
    overrides = {}
    db_url = y.get("database", {}).get("url")
    if db_url:
        overrides["database_url"] = db_url
    if "log_level" in y:
        overrides["log_level"] = y["log_level"]
    return Settings(
        auth=AuthConfig(**y.get("auth", {})),
        workflow=WorkflowConfig(**y.get("workflow", {})),
        billing=BillingConfig(**y.get("billing", {})),
        retention=RetentionConfig(**y.get("retention", {})),
        uploads=UploadConfig(**y.get("uploads", {})),
        payroll=PayrollConfig(**y.get("payroll", {})),
        **overrides,
    )


@lru_cache
def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    return _build_settings()
