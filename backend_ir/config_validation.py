"""
Configuration schema and loading for Backend IR.

The declarative project description is parsed into pydantic models. Keys
may be written in camelCase (``databaseType``) or snake_case
(``database_type``). Semantic checks that need the whole model set
(uniqueness, references, reserved names) happen later, in the lowering
passes; this module only enforces the shape of the input.
"""

import logging
import re
from argparse import Namespace
from pathlib import Path
from typing import List, Optional, Dict, Any, Literal, Union

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .constants import DefaultConfig, FeatureDefaults, SupportedDatabases
from .exceptions import SchemaError
from .validators import Diagnostics, ViolationCode

logger = logging.getLogger(__name__)


TTL_PATTERN = re.compile(r"^\d+(m|h|d)$")

# Sections without which no IR can be built
REQUIRED_SECTIONS = ("project", "database")


class ConfigModel(BaseModel):
    """Base for every schema model: camelCase aliases, snake_case accepted."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# --- Project and storage ---


class ProjectSettings(ConfigModel):
    """Project metadata, passed through to the IR."""

    project_name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("projectName", "project_name", "name"),
        description="Package name of the generated project (lowercase, digits, hyphens).",
    )
    description: str = Field(default=DefaultConfig.PROJECT_DESCRIPTION)
    author: str = Field(default="")
    license: str = Field(default=DefaultConfig.LICENSE)
    node_version: str = Field(default=DefaultConfig.NODE_VERSION)
    package_manager: Literal["npm", "yarn", "pnpm"] = Field(default=DefaultConfig.PACKAGE_MANAGER)

    @field_validator("project_name")
    @classmethod
    def validate_project_name(cls, v: str) -> str:
        """Ensure the project name is usable as a package name."""
        if not re.match(r"^[a-z0-9-]+$", v):
            raise ValueError(
                f"Project name '{v}' must use lowercase letters, numbers, and hyphens only"
            )
        return v


class DatabaseSettings(ConfigModel):
    """Storage engine choice and connection details."""

    database_type: Literal["MongoDB", "PostgreSQL", "MySQL"] = Field(
        ...,
        validation_alias=AliasChoices("databaseType", "database_type", "type"),
        description="Storage engine; decides the ORM the IR targets.",
    )
    provider: Optional[str] = Field(default=None)
    connection_string: Optional[str] = Field(default=None)
    auto_migration: Literal["push", "manual"] = Field(default="push")

    @property
    def orm(self) -> str:
        return SupportedDatabases.ORM_BY_ENGINE[self.database_type]


# --- Models and relationships ---


class RawField(ConfigModel):
    """One field declaration, before lowering."""

    name: str = Field(..., min_length=1)
    # Kept as text so unknown types surface as UNSUPPORTED_FIELD_TYPE
    type: str = Field(..., min_length=1)
    required: bool = False
    unique: bool = False
    indexed: bool = False
    default_value: Optional[Union[bool, int, float, str]] = Field(
        default=None,
        validation_alias=AliasChoices("default", "defaultValue", "default_value"),
    )
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    values: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("values", "enum", "enumValues", "enum_values"),
        description="Allowed values for enum fields.",
    )


class RawRelationship(ConfigModel):
    """One relationship declaration, top-level or inline on a model."""

    id: Optional[str] = None
    type: Literal["one-to-one", "one-to-many", "many-to-one", "many-to-many"]
    source_model: Optional[str] = Field(
        default=None, description="Inferred from the owning model when declared inline."
    )
    target_model: str = Field(..., min_length=1)
    field_name: str = Field(..., min_length=1)
    inverse_field: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "inverseField", "foreignKeyName", "inverse_field", "foreign_key_name"
        ),
        description="Name of the reference injected into the target of a one-to-many.",
    )
    through: Optional[str] = None
    attributes: List[RawField] = Field(default_factory=list)


class RawModel(ConfigModel):
    """One model declaration, before lowering."""

    name: str = Field(..., min_length=1)
    fields: List[RawField] = Field(default_factory=list)
    timestamps: bool = DefaultConfig.USE_TIMESTAMPS
    relationships: List[RawRelationship] = Field(default_factory=list)


# --- Auth ---


class JwtSettings(ConfigModel):
    """Token lifetimes and refresh-token policy."""

    access_ttl: str = Field(
        default=DefaultConfig.JWT_ACCESS_TTL,
        validation_alias=AliasChoices("accessTTL", "accessTtl", "access_ttl"),
    )
    refresh_ttl: str = Field(
        default=DefaultConfig.JWT_REFRESH_TTL,
        validation_alias=AliasChoices("refreshTTL", "refreshTtl", "refresh_ttl"),
    )
    rotation: bool = True
    blacklist: bool = True

    @field_validator("access_ttl", "refresh_ttl")
    @classmethod
    def validate_ttl(cls, v: str) -> str:
        """Ensure durations look like 15m, 1h or 7d."""
        if not TTL_PATTERN.match(v):
            raise ValueError(f"'{v}' must be in format: 15m, 1h, 7d")
        return v


class AuthSettings(ConfigModel):
    """Authentication and role configuration."""

    enabled: bool = False
    method: Literal["jwt"] = "jwt"
    jwt: JwtSettings = Field(default_factory=JwtSettings)
    roles: List[str] = Field(default_factory=lambda: ["Admin", "User"], min_length=1)


class OAuthProvider(ConfigModel):
    """One OAuth identity provider."""

    name: Literal["google", "github"]
    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1)
    callback_url: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("callbackURL", "callbackUrl", "callback_url"),
    )


class OAuthSettings(ConfigModel):
    """OAuth login configuration; requires auth to be enabled."""

    enabled: bool = False
    providers: List[OAuthProvider] = Field(default_factory=list)


# --- Toggles ---


class FeatureSettings(ConfigModel):
    """Cross-cutting feature switches of the generated service."""

    cors: bool = FeatureDefaults.FEATURES["cors"]
    helmet: bool = FeatureDefaults.FEATURES["helmet"]
    compression: bool = FeatureDefaults.FEATURES["compression"]
    validation: bool = FeatureDefaults.FEATURES["validation"]
    logging: bool = FeatureDefaults.FEATURES["logging"]
    caching: bool = FeatureDefaults.FEATURES["caching"]
    swagger: bool = FeatureDefaults.FEATURES["swagger"]
    health: bool = FeatureDefaults.FEATURES["health"]
    rate_limit: bool = FeatureDefaults.FEATURES["rate_limit"]
    versioning: bool = FeatureDefaults.FEATURES["versioning"]
    queues: bool = FeatureDefaults.FEATURES["queues"]
    s3_upload: bool = FeatureDefaults.FEATURES["s3_upload"]


class DockerSettings(ConfigModel):
    """Container build switches."""

    enabled: bool = FeatureDefaults.DOCKER["enabled"]
    include_compose: bool = FeatureDefaults.DOCKER["include_compose"]
    include_prod: bool = FeatureDefaults.DOCKER["include_prod"]
    health_check: bool = FeatureDefaults.DOCKER["health_check"]
    non_root_user: bool = FeatureDefaults.DOCKER["non_root_user"]
    multi_stage: bool = FeatureDefaults.DOCKER["multi_stage"]


class CICDSettings(ConfigModel):
    """Continuous integration switches."""

    enabled: bool = FeatureDefaults.CICD["enabled"]
    github_actions: bool = FeatureDefaults.CICD["github_actions"]
    gitlab_ci: bool = Field(
        default=FeatureDefaults.CICD["gitlab_ci"],
        validation_alias=AliasChoices("gitlabCI", "gitlabCi", "gitlab_ci"),
    )
    include_tests: bool = FeatureDefaults.CICD["include_tests"]
    include_e2e: bool = Field(
        default=FeatureDefaults.CICD["include_e2e"],
        validation_alias=AliasChoices("includeE2E", "includeE2e", "include_e2e"),
    )
    include_security: bool = FeatureDefaults.CICD["include_security"]
    auto_docker_build: bool = FeatureDefaults.CICD["auto_docker_build"]


class SeedSettings(ConfigModel):
    """Synthetic data planning options."""

    enabled: bool = False
    count: int = Field(default=DefaultConfig.SEED_COUNT, ge=1)
    # Per-model overrides of ``count``, keyed by declared model name
    counts: Dict[str, int] = Field(default_factory=dict)
    random_seed: int = DefaultConfig.SEED_RANDOM_SEED


class ProjectConfigSchema(ConfigModel):
    """Pydantic schema of the complete declarative project description."""

    project: ProjectSettings
    database: DatabaseSettings
    models: List[RawModel] = Field(default_factory=list)
    relationships: List[RawRelationship] = Field(default_factory=list)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    oauth: Optional[OAuthSettings] = None
    features: FeatureSettings = Field(default_factory=FeatureSettings)
    docker: Optional[DockerSettings] = None
    cicd: Optional[CICDSettings] = None
    seeding: SeedSettings = Field(default_factory=SeedSettings)


# --- Validation Function ---


def _format_location(loc) -> str:
    return ".".join(str(part) for part in loc) if loc else "<root>"


def validate_and_parse_config(config_dict: Dict[str, Any]) -> ProjectConfigSchema:
    """
    Validate a raw configuration dictionary against ProjectConfigSchema.

    Every schema problem is collected before raising, so a caller can show
    them all at once.

    Raises:
        SchemaError: required sections are missing or values are malformed
    """
    diagnostics = Diagnostics()

    if not isinstance(config_dict, dict):
        diagnostics.add_error(
            "<root>",
            ViolationCode.INVALID_CONFIG,
            f"Configuration must be a mapping, got {type(config_dict).__name__}",
        )
        diagnostics.raise_if_fatal("Configuration validation")

    for section in REQUIRED_SECTIONS:
        if config_dict.get(section) is None:
            diagnostics.add_error(
                section,
                ViolationCode.MISSING_SECTION,
                f"Required section '{section}' is missing",
                suggestion=f"Add a '{section}' section to the configuration",
                subject=section,
            )

    try:
        validated_config = ProjectConfigSchema.model_validate(config_dict)
    except ValidationError as e:
        for error in e.errors():
            loc = error.get("loc", ())
            if len(loc) == 1 and loc[0] in REQUIRED_SECTIONS and config_dict.get(loc[0]) is None:
                # Already reported as MISSING_SECTION
                continue
            diagnostics.add_error(
                _format_location(loc),
                ViolationCode.INVALID_CONFIG,
                error.get("msg", "Unknown validation error"),
            )
        logger.critical("Configuration validation failed! Please check your config file.")
        diagnostics.raise_if_fatal("Configuration validation")
        raise

    oauth = validated_config.oauth
    if oauth is not None and oauth.enabled and not validated_config.auth.enabled:
        diagnostics.add_error(
            "oauth.enabled",
            ViolationCode.OAUTH_REQUIRES_AUTH,
            "OAuth requires authentication to be enabled",
            suggestion="Set auth.enabled to true or disable oauth",
        )

    diagnostics.raise_if_fatal("Configuration validation")
    logger.debug("Configuration dictionary parsed and validated successfully against schema.")
    return validated_config


def load_config(config_path: Optional[str], cli_args: Optional[Namespace] = None) -> ProjectConfigSchema:
    """
    Load configuration from a YAML or JSON file, apply CLI overrides and validate.

    Raises:
        SchemaError: the file is missing, unreadable or fails validation
    """
    raw_config: Dict[str, Any] = {}

    # 1. Load from file (YAML is a superset of JSON)
    if config_path:
        config_file = Path(config_path)
        if not config_file.is_file():
            raise SchemaError(
                f"Config file not found at {config_path}",
                context={'config_path': config_path},
                error_code=ViolationCode.INVALID_CONFIG,
            )
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SchemaError(
                f"Error parsing config file {config_path}: {e}",
                context={'config_path': config_path},
                error_code=ViolationCode.INVALID_CONFIG,
            ) from e

        if isinstance(file_config, dict):
            raw_config.update(file_config)
            logger.debug(f"Loaded configuration from {config_path}")
        elif file_config:
            logger.warning(
                f"Content in config file {config_path} is not a mapping. Ignoring file content."
            )

    # 2. Override seeding options given on the command line
    if cli_args is not None:
        seeding = dict(raw_config.get("seeding") or {})
        overridden_keys = set()
        if getattr(cli_args, "seed", False):
            seeding["enabled"] = True
            overridden_keys.add("seeding.enabled")
        if getattr(cli_args, "seed_count", None) is not None:
            seeding["count"] = cli_args.seed_count
            overridden_keys.add("seeding.count")
        if overridden_keys:
            raw_config["seeding"] = seeding
            logger.debug(f"Overridden config keys from CLI arguments: {overridden_keys}")

    logger.info("Validating configuration...")
    validated_config = validate_and_parse_config(raw_config)
    logger.info("Configuration loaded and validated successfully.")
    return validated_config
