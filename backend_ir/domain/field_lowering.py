"""
Field lowering for Backend IR.

Turns one raw field declaration into a resolved FieldDescriptor: target
and storage types, constraints (explicit ones win over inferred ones),
ordered validator tags, and example/description text for documentation.
"""

import logging
import re
from dataclasses import replace
from typing import Dict, List, Optional, TYPE_CHECKING

from .heuristics import infer_smart_defaults
from .models import (
    DeclaredType,
    FieldConstraints,
    FieldDescriptor,
    TYPE_TABLE,
)
from ..validators import Diagnostics, ViolationCode

if TYPE_CHECKING:
    from ..config_validation import RawField
    from ..suggestions import SuggestionProvider

logger = logging.getLogger(__name__)


# Validator tags implied by the declared type alone
TYPE_VALIDATORS: Dict[DeclaredType, List[str]] = {
    DeclaredType.STRING: ["is-string"],
    DeclaredType.NUMBER: ["is-number"],
    DeclaredType.BOOLEAN: ["is-boolean"],
    DeclaredType.DATE: ["is-iso8601-date"],
    DeclaredType.DATETIME: ["is-iso8601-date"],
    DeclaredType.STRING_ARRAY: ["is-array", "each-is-string"],
    DeclaredType.JSON: ["is-object"],
    DeclaredType.JSON_ARRAY: ["is-array", "each-is-object"],
    DeclaredType.REFERENCE: ["is-reference"],
    DeclaredType.REFERENCE_ARRAY: ["is-array", "each-is-reference"],
    DeclaredType.ENUM: ["is-string"],
}

ENUM_VALIDATOR = "is-in"

# Constraint attribute -> validator tag, in emission order
CONSTRAINT_VALIDATORS = [
    ("min_length", "min-length"),
    ("max_length", "max-length"),
    ("min", "min"),
    ("max", "max"),
    ("pattern", "matches"),
]

EXPLICIT_CONSTRAINT_KEYS = ("min_length", "max_length", "min", "max", "pattern")

SUPPORTED_TYPES_HINT = ", ".join(t.value for t in DeclaredType)


def _merge_constraints(inferred: FieldConstraints, raw_field: "RawField") -> FieldConstraints:
    """Explicit user constraints override inferred ones key by key."""
    overrides = {
        key: getattr(raw_field, key)
        for key in EXPLICIT_CONSTRAINT_KEYS
        if getattr(raw_field, key) is not None
    }
    return replace(inferred, **overrides)


def build_validators(
    declared_type: DeclaredType,
    constraints: FieldConstraints,
    semantic_tags: Optional[List[str]] = None,
) -> List[str]:
    """
    Ordered validator tags: type tags, then semantic tags, then constraint tags.

    A field with an enum value set has only the membership tag.

    Example:
        >>> build_validators(DeclaredType.STRING, FieldConstraints(max_length=10), ["is-email"])
        ['is-string', 'is-email', 'max-length']
    """
    if constraints.enum_values:
        return [ENUM_VALIDATOR]

    validators = list(TYPE_VALIDATORS[declared_type])
    for tag in semantic_tags or []:
        if tag not in validators:
            validators.append(tag)
    for attribute, tag in CONSTRAINT_VALIDATORS:
        if getattr(constraints, attribute) is not None:
            validators.append(tag)
    return validators


def build_reference_field(
    name: str,
    referenced_model: str,
    many: bool = False,
    required: bool = True,
    unique: bool = False,
) -> FieldDescriptor:
    """
    Build the descriptor of a reference field injected by a relationship.

    Args:
        name: camelCase field name
        referenced_model: Resolved name of the model the field points at
        many: Whether the field holds a list of references
        required: Whether the reference must be present
        unique: Whether no two rows may hold the same reference

    Returns:
        FieldDescriptor flagged ``is_reference``
    """
    declared_type = DeclaredType.REFERENCE_ARRAY if many else DeclaredType.REFERENCE
    target_type, storage_type = TYPE_TABLE[declared_type]
    defaults = infer_smart_defaults(name, declared_type)

    return FieldDescriptor(
        name=name,
        declared_type=declared_type,
        target_type=target_type,
        storage_type=storage_type,
        required=required,
        unique=unique,
        indexed=True,
        default_value=[] if many else None,
        validators=build_validators(declared_type, FieldConstraints()),
        example=defaults.example,
        description=(
            f"References to {referenced_model}" if many else f"Reference to {referenced_model}"
        ),
        is_reference=True,
        referenced_model=referenced_model,
    )


class FieldLowerer:
    """
    Lowers raw field declarations into FieldDescriptors.

    Constraint, example and description hints come from the injected
    suggestion provider; the heuristic provider is used when none is given.
    """

    def __init__(self, suggestion_provider: Optional["SuggestionProvider"] = None):
        if suggestion_provider is None:
            from ..suggestions import HeuristicSuggestionProvider
            suggestion_provider = HeuristicSuggestionProvider()
        self.suggestion_provider = suggestion_provider

    def lower(
        self,
        raw_field: "RawField",
        model_name: str,
        diagnostics: Diagnostics,
        path: str = "",
        field_name: Optional[str] = None,
    ) -> Optional[FieldDescriptor]:
        """
        Lower one field declaration.

        Args:
            raw_field: The declaration as parsed from the configuration
            model_name: Resolved name of the owning model
            diagnostics: Collector for violations
            path: Config path of the declaration, used in violations
            field_name: Name to use instead of ``raw_field.name`` (after case fixes)

        Returns:
            The resolved descriptor, or None when the declared type is unknown
            (an UNSUPPORTED_FIELD_TYPE error is recorded in that case)
        """
        name = field_name or raw_field.name

        declared_type = DeclaredType.parse(raw_field.type)
        if declared_type is None:
            diagnostics.add_error(
                f"{path}.type" if path else "type",
                ViolationCode.UNSUPPORTED_FIELD_TYPE,
                f"Field '{model_name}.{name}' has unsupported type '{raw_field.type}'",
                suggestion=f"Use one of: {SUPPORTED_TYPES_HINT}",
                subject=raw_field.type,
            )
            return None

        target_type, storage_type = TYPE_TABLE[declared_type]

        enum_values = list(raw_field.values) if raw_field.values else None
        suggestion = self.suggestion_provider.suggest(
            name,
            declared_type,
            model_name,
            {'enum_values': enum_values} if enum_values else None,
        )

        if enum_values:
            constraints = FieldConstraints(enum_values=enum_values)
        else:
            if declared_type == DeclaredType.ENUM:
                diagnostics.add_warning(
                    f"{path}.values" if path else "values",
                    ViolationCode.EMPTY_ENUM,
                    f"Enum field '{model_name}.{name}' declares no values",
                    suggestion="Add the allowed values under 'values'",
                )
            constraints = _merge_constraints(suggestion.constraints, raw_field)
            constraints = self._check_pattern(constraints, model_name, name, diagnostics, path)

        validators = build_validators(declared_type, constraints, suggestion.validators)

        descriptor = FieldDescriptor(
            name=name,
            declared_type=declared_type,
            target_type=target_type,
            storage_type=storage_type,
            required=raw_field.required,
            unique=raw_field.unique,
            indexed=raw_field.indexed or raw_field.unique,
            default_value=raw_field.default_value,
            constraints=constraints,
            validators=validators,
            example=suggestion.example,
            description=suggestion.description or name,
        )

        logger.debug(
            f"Lowered field {model_name}.{name}: {declared_type.value} -> {target_type} "
            f"validators={validators}"
        )
        return descriptor

    def _check_pattern(
        self,
        constraints: FieldConstraints,
        model_name: str,
        field_name: str,
        diagnostics: Diagnostics,
        path: str,
    ) -> FieldConstraints:
        """Drop a pattern that does not compile, recording a warning."""
        if constraints.pattern is None:
            return constraints
        try:
            re.compile(constraints.pattern)
        except re.error as e:
            diagnostics.add_warning(
                f"{path}.pattern" if path else "pattern",
                ViolationCode.AMBIGUOUS_PATTERN,
                f"Pattern of '{model_name}.{field_name}' is not a valid regular expression "
                f"({e}); it was dropped",
                suggestion="Fix the regular expression or remove it",
                subject=constraints.pattern,
            )
            return replace(constraints, pattern=None)
        return constraints
