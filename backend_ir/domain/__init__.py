"""
Domain module for Backend IR.

This module contains the lowering passes and the descriptor types they
produce. Nothing here performs I/O; configuration loading and output live
outside the domain package.
"""

from .models import (
    DeclaredType,
    TYPE_TABLE,
    RelationshipKind,
    Sensitivity,
    BindingArity,
    FieldConstraints,
    FieldSuggestion,
    FieldDescriptor,
    AccessPolicy,
    ModelDescriptor,
    RelationshipDescriptor,
    FieldInjection,
    FieldStrategy,
    RelationshipBinding,
    SeedPlan,
    ProjectIR,
)

from .naming import (
    to_pascal_case,
    to_camel_case,
    to_kebab_case,
    to_snake_case,
    pluralize,
    singularize,
    is_pascal_case,
    is_camel_case,
    is_reserved_field_name,
    sanitize_model_name,
)

from .heuristics import (
    FieldCategory,
    classify_field,
    infer_smart_defaults,
)

from .field_lowering import (
    FieldLowerer,
    build_reference_field,
)

from .model_lowering import (
    ModelLowerer,
    ModelLoweringResult,
    infer_access_policy,
)

from .relationships import (
    RelationshipResolver,
    RelationshipResolution,
    normalize_relationships,
    apply_injections,
)

from .seeding import (
    SeedingPlanner,
    materialize_seed_rows,
)

__all__ = [
    # Core models
    'DeclaredType',
    'TYPE_TABLE',
    'RelationshipKind',
    'Sensitivity',
    'BindingArity',
    'FieldConstraints',
    'FieldSuggestion',
    'FieldDescriptor',
    'AccessPolicy',
    'ModelDescriptor',
    'RelationshipDescriptor',
    'FieldInjection',
    'FieldStrategy',
    'RelationshipBinding',
    'SeedPlan',
    'ProjectIR',

    # Naming
    'to_pascal_case',
    'to_camel_case',
    'to_kebab_case',
    'to_snake_case',
    'pluralize',
    'singularize',
    'is_pascal_case',
    'is_camel_case',
    'is_reserved_field_name',
    'sanitize_model_name',

    # Heuristics
    'FieldCategory',
    'classify_field',
    'infer_smart_defaults',

    # Lowering
    'FieldLowerer',
    'build_reference_field',
    'ModelLowerer',
    'ModelLoweringResult',
    'infer_access_policy',

    # Relationships
    'RelationshipResolver',
    'RelationshipResolution',
    'normalize_relationships',
    'apply_injections',

    # Seeding
    'SeedingPlanner',
    'materialize_seed_rows',
]
