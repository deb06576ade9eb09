"""
Configuration loader for payment verification
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "verification_config.yml"


class PollingConfig(BaseModel):
    """Verification poller timing"""

    interval_seconds: float = Field(default=3.0, gt=0.0)
    ceiling_seconds: float = Field(default=120.0, gt=0.0)
    navigation_delay_seconds: float = Field(default=2.0, ge=0.0)
    request_timeout_seconds: float = Field(default=2.5, gt=0.0)
    warn_after_errors: int = Field(default=5, ge=1)
    fail_after_errors: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_timings(self) -> "PollingConfig":
        if self.request_timeout_seconds >= self.interval_seconds:
            raise ValueError("request_timeout_seconds must be shorter than interval_seconds")
        if self.ceiling_seconds < self.interval_seconds:
            raise ValueError("ceiling_seconds must be at least one interval")
        return self


class ApiConfig(BaseModel):
    """Marketplace API the poller talks to"""

    base_url: str = ""
    api_key: str = ""
    verify_path: str = "/payments/verify/{transaction_id}"
    success_destination: str = "ContractorDashboard"

    @model_validator(mode="after")
    def _check_verify_path(self) -> "ApiConfig":
        if "{transaction_id}" not in self.verify_path:
            raise ValueError("verify_path must contain '{transaction_id}'")
        return self


class VerificationConfig(BaseModel):
    """Complete verification configuration"""

    polling: PollingConfig = Field(default_factory=PollingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)


_ENV_OVERRIDES = {
    "PAYMENTS_API_URL": ("api", "base_url"),
    "PAYMENTS_API_KEY": ("api", "api_key"),
    "PAYMENTS_VERIFY_PATH": ("api", "verify_path"),
}


def _apply_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config_data.setdefault(section, {})[key] = value
    return config_data


def load_verification_config(config_path: Optional[Path] = None) -> VerificationConfig:
    """
    Load and validate verification configuration from YAML file

    Args:
        config_path: Path to config file. Defaults to config/verification_config.yml;
            when the default file is absent, built-in defaults are used.

    Returns:
        Validated VerificationConfig object

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
        if not config_path.exists():
            logger.info("No config file at %s, using defaults", config_path)
            return VerificationConfig(**_apply_env_overrides({}))

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    try:
        config = VerificationConfig(**_apply_env_overrides(config_data))
        logger.info("Successfully loaded config from %s", config_path)
        return config
    except ValidationError as e:
        logger.error("Config validation failed: %s", e)
        raise
