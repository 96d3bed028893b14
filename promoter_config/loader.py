"""
Configuration Loader for the Central Staging Promoter

Implements precedence: CLI args > Environment variables > Config file > Defaults

Supports:
- YAML and JSON configuration files
- Environment variable mapping (CENTRAL_PROMOTER_* and the Gradle
  ORG_GRADLE_PROJECT_* names used by the publishing build)
- Config file discovery in the working directory
- Schema validation via Pydantic
"""

import json
import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from .schema import PublishingConfig


logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised for unreadable, malformed or invalid configuration."""
    pass


ENV_PREFIX = "CENTRAL_PROMOTER_"
CONFIG_PATH_ENV = f"{ENV_PREFIX}CONFIG"

# (section, field) -> environment names, highest priority first
ENV_MAPPING: List[Tuple[Tuple[str, str], Tuple[str, ...]]] = [
    (("credentials", "username"), (
        f"{ENV_PREFIX}USERNAME",
        "ORG_GRADLE_PROJECT_mavenCentralUsername",
    )),
    (("credentials", "password"), (
        f"{ENV_PREFIX}PASSWORD",
        "ORG_GRADLE_PROJECT_mavenCentralPassword",
    )),
    (("project", "version"), (
        f"{ENV_PREFIX}VERSION",
        "ORG_GRADLE_PROJECT_projectVersion",
    )),
    (("project", "group_id"), (
        f"{ENV_PREFIX}GROUP_ID",
        "ORG_GRADLE_PROJECT_projectGroupId",
    )),
    (("project", "artifact_id"), (
        f"{ENV_PREFIX}ARTIFACT_ID",
        "ORG_GRADLE_PROJECT_projectArtifactId",
    )),
    (("project", "url"), (
        f"{ENV_PREFIX}PROJECT_URL",
        "ORG_GRADLE_PROJECT_projectUrl",
    )),
    (("portal", "base_url"), (f"{ENV_PREFIX}BASE_URL",)),
    (("portal", "publishing_type"), (f"{ENV_PREFIX}PUBLISHING_TYPE",)),
    (("portal", "timeout_seconds"), (f"{ENV_PREFIX}TIMEOUT",)),
    (("logging", "level"), (f"{ENV_PREFIX}LOG_LEVEL",)),
    (("logging", "format"), (f"{ENV_PREFIX}LOG_FORMAT",)),
    (("logging", "file"), (f"{ENV_PREFIX}LOG_FILE",)),
]


class ConfigLoader:
    """
    Publishing configuration loader with multi-source precedence.

    Precedence order (highest to lowest):
    1. CLI arguments (passed as overrides)
    2. Environment variables
    3. Config file (YAML/JSON)
    4. Schema defaults
    """

    DEFAULT_CONFIG_FILES = [
        "central-promoter.yml",
        "central-promoter.yaml",
        "central-promoter.json",
    ]

    def __init__(
        self,
        config_file: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None,
        base_dir: Optional[Path] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize configuration loader.

        Args:
            config_file: Path to YAML/JSON config file
            overrides: CLI argument overrides (highest precedence)
            base_dir: Directory searched for default config files (default: cwd)
            environ: Environment mapping (default: os.environ)
        """
        self.config_file = Path(config_file) if config_file else None
        self.overrides = overrides or {}
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.environ = os.environ if environ is None else environ
        self._resolved_path: Optional[Path] = None

    def load(self) -> PublishingConfig:
        """
        Load configuration with full precedence chain.

        Returns:
            Validated PublishingConfig instance

        Raises:
            ConfigError: config file missing, unparsable or invalid
        """
        config_dict: Dict[str, Any] = {}

        config_file = self._find_config_file()
        if config_file:
            self._resolved_path = config_file
            config_dict = self._deep_merge(config_dict, self._load_config_file(config_file))
            logger.debug(f"Loaded config from: {config_file}")

        config_dict = self._deep_merge(config_dict, self._load_from_environment())
        config_dict = self._deep_merge(config_dict, self._drop_none(self.overrides))

        try:
            return PublishingConfig(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @property
    def resolved_path(self) -> Optional[Path]:
        """Return the config file that was loaded, if any."""
        return self._resolved_path

    def _find_config_file(self) -> Optional[Path]:
        """Find the config file: explicit path, then env var, then default names."""
        if self.config_file:
            if not self.config_file.exists():
                raise ConfigError(f"Config file not found: {self.config_file}")
            return self.config_file.resolve()

        env_config = self.environ.get(CONFIG_PATH_ENV)
        if env_config:
            path = Path(env_config)
            if not path.exists():
                raise ConfigError(f"{CONFIG_PATH_ENV} path not found: {env_config}")
            return path.resolve()

        for filename in self.DEFAULT_CONFIG_FILES:
            path = self.base_dir / filename
            if path.exists():
                return path.resolve()

        return None

    def _load_config_file(self, config_file: Path) -> Dict[str, Any]:
        """
        Load configuration from YAML or JSON file.

        Args:
            config_file: Path to config file

        Returns:
            Configuration dictionary
        """
        suffix = config_file.suffix.lower()
        try:
            content = config_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Cannot read config file {config_file}: {e}") from e

        if suffix in [".yaml", ".yml"]:
            try:
                data = yaml.safe_load(content) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"YAML parse error in {config_file}: {e}") from e
        elif suffix == ".json":
            try:
                data = json.loads(content) or {}
            except json.JSONDecodeError as e:
                raise ConfigError(f"JSON parse error in {config_file}: {e}") from e
        else:
            raise ConfigError(
                f"Unsupported config file format: {suffix}. "
                "Use .yaml, .yml, or .json"
            )

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {config_file}")
        return data

    def _load_from_environment(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        Empty variables count as unset. When several names map to the same
        field, the first non-empty one in ENV_MAPPING wins.
        """
        config_dict: Dict[str, Any] = {}

        for (section, field), names in ENV_MAPPING:
            for name in names:
                value = self.environ.get(name)
                if value:
                    config_dict.setdefault(section, {})[field] = value
                    break

        return config_dict

    def _drop_none(self, overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Remove None leaves so unset CLI flags do not clobber lower layers."""
        result: Dict[str, Any] = {}
        for key, value in overrides.items():
            if isinstance(value, dict):
                nested = self._drop_none(value)
                if nested:
                    result[key] = nested
            elif value is not None:
                result[key] = value
        return result

    def _deep_merge(
        self,
        base: Dict[str, Any],
        override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Deep merge two dictionaries.

        Args:
            base: Base dictionary
            override: Override dictionary (takes precedence)

        Returns:
            Merged dictionary
        """
        result = deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)

        return result


def load_config(
    config_file: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> PublishingConfig:
    """
    Convenience function to load publishing configuration.

    Example:
        >>> config = load_config(
        ...     config_file=Path("central-promoter.yml"),
        ...     overrides={"portal": {"timeout_seconds": 60}}
        ... )
    """
    loader = ConfigLoader(config_file=config_file, overrides=overrides)
    return loader.load()
