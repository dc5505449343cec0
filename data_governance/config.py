"""
Configuration module for the Data Governance Toolkit.

Provides centralized configuration for the lifecycle rule engine, the entity
store and the command-line interface.
"""

import json
import logging
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union, get_args, get_origin

import yaml
from pydantic import BaseModel, Field, field_validator


class Environment(str, Enum):
    """Deployment environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class GovernanceConfig(BaseModel):
    """Central configuration for data governance features.

    The rule engine never reads configuration from module state on its own:
    services receive a ``GovernanceConfig`` at construction and only fall back
    to :func:`get_config` when the caller passes nothing.

    Configuration Sources (in order of precedence):
        1. Programmatic settings (highest priority)
        2. Environment variables (GOVERNANCE_ prefix)
        3. Configuration files (JSON or YAML)
        4. Default values (lowest priority)

    Example:
        >>> config = GovernanceConfig(hard_delete_grace_period_hours=48)
        >>> config.grace_period
        datetime.timedelta(days=2)

        Loading from environment:

        >>> import os
        >>> os.environ['GOVERNANCE_HARD_DELETE_GRACE_PERIOD_HOURS'] = '72'
        >>> config = GovernanceConfig.from_env()

    Environment Variables:
        - GOVERNANCE_APPLICATION_NAME
        - GOVERNANCE_DATABASE_URL
        - GOVERNANCE_HARD_DELETE_GRACE_PERIOD_HOURS
        - GOVERNANCE_LOG_LEVEL
    """

    # General settings
    application_name: str = Field(
        "Data Governance Service", description="Name of the application"
    )
    environment: str = Field(
        "production", description="Environment (development, staging, production)"
    )

    # Store settings
    database_url: str = Field(
        "sqlite:///./data_governance.db", description="Entity store connection string"
    )
    sql_echo: bool = Field(False, description="Echo SQL statements to the log")

    # Lifecycle settings
    hard_delete_grace_period_hours: int = Field(
        24,
        description="Hours a profile must stay soft-deleted before it can be purged",
        ge=0,
    )
    default_actor: str = Field(
        "SYSTEM", description="Actor recorded on audit entries", min_length=1
    )

    # Logging
    log_level: str = Field("INFO", description="Root log level for the CLI")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is valid."""
        valid_environments = {e.value for e in Environment}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Environment must be one of: {', '.join(sorted(valid_environments))}"
            )
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is a level name known to the logging module."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def grace_period(self) -> timedelta:
        """Minimum time between soft deletion and hard deletion."""
        return timedelta(hours=self.hard_delete_grace_period_hours)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()

    @classmethod
    def from_env(cls, prefix: str = "GOVERNANCE_") -> "GovernanceConfig":
        """
        Load configuration from environment variables.

        Args:
            prefix: Prefix for environment variables

        Returns:
            Configuration instance
        """
        import os

        config_dict: Dict[str, Any] = {}

        for field_name, field_info in cls.model_fields.items():
            env_var = f"{prefix}{field_name.upper()}"
            if env_var not in os.environ:
                continue

            value = os.environ[env_var]
            field_type = field_info.annotation

            # Handle Optional types
            if get_origin(field_type) is Union:
                args = get_args(field_type)
                field_type = next((arg for arg in args if arg is not type(None)), str)

            if field_type == bool:
                config_dict[field_name] = value.lower() in ("true", "1", "yes", "on")
            else:
                # pydantic coerces numeric strings during validation
                config_dict[field_name] = value

        return cls.model_validate(config_dict)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "GovernanceConfig":
        """
        Load configuration from a JSON or YAML file.

        Args:
            path: Path to a ``.json``, ``.yaml`` or ``.yml`` file

        Returns:
            Configuration instance
        """
        path = Path(path)
        text = path.read_text(encoding="utf-8")

        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")

        return cls.model_validate(data)


# Global configuration instance
_config: Optional[GovernanceConfig] = None


def get_config() -> GovernanceConfig:
    """
    Get the global configuration instance.

    Returns:
        Global configuration
    """
    global _config

    if _config is None:
        _config = GovernanceConfig.from_env()

    return _config


def set_config(config: Optional[GovernanceConfig]) -> None:
    """
    Set the global configuration instance.

    Args:
        config: Configuration to set, or None to reload from the environment
    """
    global _config
    _config = config


def configure(**kwargs: Any) -> GovernanceConfig:
    """
    Configure the toolkit with keyword arguments.

    Args:
        **kwargs: Configuration parameters

    Returns:
        Updated configuration
    """
    global _config

    if _config is None:
        _config = GovernanceConfig(**kwargs)
    else:
        config_dict = _config.to_dict()
        config_dict.update(kwargs)
        _config = GovernanceConfig(**config_dict)

    return _config
