"""
Configuration Schema Definitions for the Central Staging Promoter

Uses Pydantic for validation and type safety.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


DEFAULT_BASE_URL = "https://ossrh-staging-api.central.sonatype.com"
DEFAULT_SNAPSHOT_REPOSITORY_URL = "https://central.sonatype.com/repository/maven-snapshots/"
STAGING_DEPLOY_PATH = "/service/local/staging/deploy/maven2/"
SNAPSHOT_SUFFIX = "-SNAPSHOT"


class PublishingType(str, Enum):
    """Publishing modes accepted by the portal upload endpoint."""
    USER_MANAGED = "user_managed"
    AUTOMATIC = "automatic"
    PORTAL_API = "portal_api"


class CredentialsConfig(BaseModel):
    """Portal account credentials."""

    model_config = ConfigDict(extra="forbid")

    username: Optional[str] = Field(
        default=None,
        description="Portal user token name"
    )
    password: Optional[SecretStr] = Field(
        default=None,
        description="Portal user token password"
    )

    @property
    def present(self) -> bool:
        """True when both username and password are non-empty."""
        if not self.username or self.password is None:
            return False
        return bool(self.password.get_secret_value())


class ProjectConfig(BaseModel):
    """Coordinates of the library being published."""

    model_config = ConfigDict(extra="forbid")

    group_id: Optional[str] = Field(default=None, description="Maven groupId")
    artifact_id: Optional[str] = Field(default=None, description="Maven artifactId")
    version: Optional[str] = Field(default=None, description="Release version")
    url: Optional[str] = Field(default=None, description="Project home page")
    description: Optional[str] = Field(default=None, description="Project description")

    @field_validator("version", mode="before")
    @classmethod
    def version_as_string(cls, v):
        """YAML reads versions such as 1.0 as numbers."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def is_snapshot(self) -> bool:
        return bool(self.version) and self.version.endswith(SNAPSHOT_SUFFIX)

    @property
    def coordinates(self) -> str:
        parts = [self.group_id or "?", self.artifact_id or "?", self.version or "?"]
        return ":".join(parts)


class PortalConfig(BaseModel):
    """Publishing portal endpoints and request settings."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the OSSRH staging compatibility API"
    )
    publishing_type: PublishingType = Field(
        default=PublishingType.USER_MANAGED,
        description="publishing_type query value sent on promotion"
    )
    timeout_seconds: float = Field(
        default=30,
        gt=0,
        description="Per-request timeout (seconds)"
    )
    snapshot_repository_url: str = Field(
        default=DEFAULT_SNAPSHOT_REPOSITORY_URL,
        description="Repository that receives -SNAPSHOT uploads"
    )
    staging_deploy_url: Optional[str] = Field(
        default=None,
        description="Repository that receives release uploads (derived from base_url when unset)"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("publishing_type", mode="before")
    @classmethod
    def normalize_publishing_type(cls, v):
        """Accept publishing types in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def resolved_staging_deploy_url(self) -> str:
        return self.staging_deploy_url or f"{self.base_url}{STAGING_DEPLOY_PATH}"


class LoggingConfig(BaseModel):
    """Console/file logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format"
    )
    file: Optional[Path] = Field(
        default=None,
        description="Optional log file path"
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class PublishingConfig(BaseModel):
    """Root configuration for one promotion run."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    credentials: CredentialsConfig = Field(
        default_factory=CredentialsConfig,
        description="Portal credentials"
    )
    project: ProjectConfig = Field(
        default_factory=ProjectConfig,
        description="Published project coordinates"
    )
    portal: PortalConfig = Field(
        default_factory=PortalConfig,
        description="Portal endpoints"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration"
    )

    def promotion_gate(self, allow_snapshot: bool = False) -> Tuple[bool, str]:
        """
        Decide whether staging promotion should run.

        Promotion follows a release upload only: the version must be known
        and must not be a snapshot, and portal credentials must be present.

        Args:
            allow_snapshot: Skip the snapshot check only

        Returns:
            (should_run, reason)
        """
        if not self.credentials.present:
            return False, "portal credentials are not configured"
        if not self.project.version:
            return False, "project version is not configured"
        if self.project.is_snapshot and not allow_snapshot:
            return False, f"version {self.project.version} is a snapshot"
        return True, "release version with credentials present"

    def deployment_url(self) -> str:
        """Repository URL the build tool uploads this version to."""
        if self.project.is_snapshot:
            return self.portal.snapshot_repository_url
        return self.portal.resolved_staging_deploy_url()

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary (secrets stay masked)."""
        return self.model_dump(mode="json", exclude_none=True)
