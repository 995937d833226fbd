"""
Centralized constants for Backend IR.

This module contains the vocabularies, lookup tables and default values used
by the lowering pipeline. Keeping them in one place makes it easy for
contributors to tune heuristics without touching the algorithms.
"""

from typing import Dict, List, Set


# =============================================================================
# CORE CONFIGURATION
# =============================================================================

class DefaultConfig:
    """Default configuration values."""

    GENERATOR_VERSION = "1.0.0"

    # Project defaults
    PROJECT_DESCRIPTION = "Generated backend project"
    LICENSE = "MIT"
    NODE_VERSION = "20"
    PACKAGE_MANAGER = "npm"

    # Model defaults
    USE_TIMESTAMPS = True

    # Seeding defaults
    SEED_COUNT = 10
    SEED_RANDOM_SEED = 42

    # JWT defaults
    JWT_ACCESS_TTL = "15m"
    JWT_REFRESH_TTL = "7d"


class SupportedDatabases:
    """Supported storage engines and the ORM each one lowers to."""

    MONGODB = "MongoDB"
    POSTGRESQL = "PostgreSQL"
    MYSQL = "MySQL"

    ALL = [MONGODB, POSTGRESQL, MYSQL]

    ORM_BY_ENGINE: Dict[str, str] = {
        MONGODB: "mongoose",
        POSTGRESQL: "typeorm",
        MYSQL: "typeorm",
    }


# =============================================================================
# NAMING CONVENTIONS
# =============================================================================

class NamingRules:
    """Identifier patterns and reserved vocabularies."""

    PASCAL_CASE_PATTERN = r"^[A-Z][a-zA-Z0-9]*$"
    CAMEL_CASE_PATTERN = r"^[a-z][a-zA-Z0-9]*$"

    # Field names that collide with ORM/document internals
    RESERVED_FIELD_NAMES: Set[str] = {
        "_id",
        "id",
        "__v",
        "__t",
        "constructor",
        "prototype",
        "schema",
        "collection",
        "db",
        "modelname",
        "base",
        "basemodelname",
    }

    # Field names managed by the timestamps option
    TIMESTAMP_FIELD_NAMES: Set[str] = {"createdAt", "updatedAt"}

    # Model names that shadow built-in types of the generated stack
    RESERVED_MODEL_NAMES: Set[str] = {
        "Array",
        "Boolean",
        "Buffer",
        "Collection",
        "Connection",
        "Date",
        "Document",
        "Error",
        "Function",
        "Map",
        "Model",
        "Number",
        "Object",
        "Promise",
        "Query",
        "Record",
        "Schema",
        "Set",
        "String",
        "Types",
    }

    # Qualifier prepended to a model name that collides with a built-in
    MODEL_NAME_PREFIX = "App"

    IRREGULAR_PLURALS: Dict[str, str] = {
        "person": "people",
        "child": "children",
        "tooth": "teeth",
        "foot": "feet",
        "mouse": "mice",
        "goose": "geese",
        "man": "men",
        "woman": "women",
    }

    IRREGULAR_SINGULARS: Dict[str, str] = {
        plural: singular for singular, plural in IRREGULAR_PLURALS.items()
    }


# =============================================================================
# ACCESS CONTROL
# =============================================================================

class Roles:
    """Role names referenced by inferred access policies."""

    ADMIN = "Admin"
    MANAGER = "Manager"


class SensitivityVocabulary:
    """Substrings that drive sensitivity classification of models."""

    # Entity names whose records are security or money relevant.
    # Matched as substrings, so no "log" (Blog, Catalog, Dialog) and no
    # "transaction"; money-bearing fields are caught by the markers below.
    HIGH_SENSITIVITY_MODELS: List[str] = [
        "user",
        "account",
        "admin",
        "role",
        "permission",
        "audit",
        "config",
        "setting",
        "payment",
        "invoice",
        "billing",
        "subscription",
        "license",
        "credential",
    ]

    # Entity names holding personal or organisational data
    MEDIUM_SENSITIVITY_MODELS: List[str] = [
        "patient",
        "doctor",
        "employee",
        "worker",
        "staff",
        "department",
        "organization",
        "team",
        "project",
        "order",
        "contract",
        "document",
        "report",
        "record",
    ]

    # Field-name substrings that make any model high sensitivity
    SENSITIVE_FIELD_MARKERS: List[str] = [
        "password",
        "ssn",
        "salary",
        "secret",
        "token",
        "credit",
    ]


# =============================================================================
# FEATURE DEFAULTS
# =============================================================================

class FeatureDefaults:
    """Default values for feature, deployment and CI toggles."""

    FEATURES: Dict[str, bool] = {
        "cors": True,
        "helmet": True,
        "compression": True,
        "validation": True,
        "logging": True,
        "caching": False,
        "swagger": False,
        "health": True,
        "rate_limit": False,
        "versioning": False,
        "queues": False,
        "s3_upload": False,
    }

    DOCKER: Dict[str, bool] = {
        "enabled": True,
        "include_compose": True,
        "include_prod": True,
        "health_check": True,
        "non_root_user": True,
        "multi_stage": True,
    }

    CICD: Dict[str, bool] = {
        "enabled": True,
        "github_actions": True,
        "gitlab_ci": False,
        "include_tests": True,
        "include_e2e": True,
        "include_security": True,
        "auto_docker_build": True,
    }


# =============================================================================
# SEEDING
# =============================================================================

class SeedingDefaults:
    """Values used when planning synthetic data."""

    # Fields the persistence layer fills in by itself
    AUTO_MANAGED_FIELDS: Set[str] = {"id", "_id", "createdAt", "updatedAt"}

    REFERENCE_ARRAY_SIZE = 2
    JSON_ARRAY_SIZE = 2
    STRING_ARRAY_SIZE = 3
