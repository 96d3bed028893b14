"""
Publishing Configuration for the Central Staging Promoter

Provides configuration loading with:
- Environment variable mapping (including Gradle ORG_GRADLE_PROJECT_* names)
- YAML & JSON config file support
- Precedence rules (CLI > env > file > defaults)
- Schema validation via Pydantic
"""

from .loader import ConfigError, ConfigLoader, load_config
from .schema import (
    CredentialsConfig,
    LoggingConfig,
    PortalConfig,
    ProjectConfig,
    PublishingConfig,
    PublishingType,
)

__all__ = [
    "ConfigError",
    "ConfigLoader",
    "load_config",
    "CredentialsConfig",
    "LoggingConfig",
    "PortalConfig",
    "ProjectConfig",
    "PublishingConfig",
    "PublishingType",
]
