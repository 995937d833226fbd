"""
Project assembly for Backend IR.

Runs the lowering passes in order (models, relationships, injections,
seeding) over one validated configuration and composes the result with
the pass-through sections (auth, features, deployment) into a ProjectIR.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from .config_validation import (
    CICDSettings,
    DockerSettings,
    ProjectConfigSchema,
    validate_and_parse_config,
)
from .constants import DefaultConfig
from .domain.field_lowering import FieldLowerer
from .domain.model_lowering import ModelLowerer
from .domain.models import ProjectIR
from .domain.relationships import RelationshipResolver, apply_injections, normalize_relationships
from .domain.seeding import SeedingPlanner
from .suggestions import SuggestionProvider
from .validators import Diagnostics

logger = logging.getLogger(__name__)


def _build_auth(config: ProjectConfigSchema) -> Optional[Dict[str, Any]]:
    auth = config.auth
    if not auth.enabled:
        return None
    return {
        'enabled': auth.enabled,
        'method': auth.method,
        'jwt': auth.jwt.model_dump(),
        'roles': list(auth.roles),
        'rbac': {'enabled': auth.enabled},
    }


def _build_oauth(config: ProjectConfigSchema) -> Optional[Dict[str, Any]]:
    oauth = config.oauth
    if oauth is None or not oauth.enabled or not oauth.providers:
        return None
    return {
        'enabled': oauth.enabled,
        'providers': [provider.model_dump() for provider in oauth.providers],
    }


def _build_docker(config: ProjectConfigSchema) -> Optional[Dict[str, Any]]:
    docker = config.docker or DockerSettings()
    return docker.model_dump() if docker.enabled else None


def _build_cicd(config: ProjectConfigSchema) -> Optional[Dict[str, Any]]:
    cicd = config.cicd or CICDSettings()
    return cicd.model_dump() if cicd.enabled else None


def build_intermediate_representation(
    config: Union[ProjectConfigSchema, Dict[str, Any]],
    suggestion_provider: Optional[SuggestionProvider] = None,
) -> ProjectIR:
    """
    Lower a project configuration into its intermediate representation.

    Args:
        config: Validated configuration, or a raw dict to validate first
        suggestion_provider: Source of field hints; name heuristics by default

    Returns:
        The assembled ProjectIR; non-fatal violations are listed in ``warnings``

    Raises:
        SchemaError: the configuration is missing sections or malformed
        NamingViolation: duplicate, reserved or unusable names
        UnsupportedFieldType: a field declares an unknown type
        UnknownModelReference: a relationship names an undeclared model
    """
    if not isinstance(config, ProjectConfigSchema):
        config = validate_and_parse_config(config)

    diagnostics = Diagnostics()
    field_lowerer = FieldLowerer(suggestion_provider)

    logger.info(f"Lowering project '{config.project.project_name}'")

    # 1. Models
    lowered = ModelLowerer(field_lowerer).lower_all(config.models, diagnostics)

    # 2. Relationships, then injections
    raw_relationships = normalize_relationships(config.models, config.relationships)
    resolution = RelationshipResolver(field_lowerer).resolve(
        lowered.models, raw_relationships, diagnostics, aliases=lowered.aliases
    )
    models = apply_injections(lowered.models, resolution.injections, diagnostics)

    # 3. Seeding
    seed_plan = None
    if config.seeding.enabled:
        seed_plan = SeedingPlanner().plan(
            models,
            diagnostics,
            default_count=config.seeding.count,
            counts=config.seeding.counts,
        )

    database = config.database.model_dump()
    database['orm'] = config.database.orm

    metadata = {
        'generator_version': DefaultConfig.GENERATOR_VERSION,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'model_count': len(models),
        'relationship_count': len(resolution.relationships),
    }
    if seed_plan is not None:
        metadata['random_seed'] = config.seeding.random_seed

    ir = ProjectIR(
        project=config.project.model_dump(),
        database=database,
        models=models,
        relationships=resolution.relationships,
        features=config.features.model_dump(),
        seed_plan=seed_plan,
        auth=_build_auth(config),
        oauth=_build_oauth(config),
        docker=_build_docker(config),
        cicd=_build_cicd(config),
        metadata=metadata,
        warnings=[violation.to_dict() for violation in diagnostics.warnings],
    )

    logger.info(
        f"Built IR with {len(ir.models)} model(s), {len(ir.relationships)} relationship(s) "
        f"and {len(ir.warnings)} warning(s)"
    )
    return ir
