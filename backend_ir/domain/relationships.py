"""
Relationship resolution domain logic for Backend IR.

Resolution runs in two phases. ``RelationshipResolver.resolve`` validates
every declared relationship against the lowered model set, synthesizes join
models and emits field-injection instructions without touching any model.
``apply_injections`` then builds new model descriptors carrying the
injected reference fields.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Dict, Optional, Set, TYPE_CHECKING

from ..validators import Diagnostics, ViolationCode
from .field_lowering import FieldLowerer, build_reference_field
from .model_lowering import build_model_descriptor, resolve_field_name
from .models import (
    FieldDescriptor,
    FieldInjection,
    ModelDescriptor,
    RelationshipDescriptor,
    RelationshipKind,
)
from .naming import (
    generate_foreign_key_name,
    generate_join_model_name,
    sanitize_model_name,
    to_pascal_case,
)

if TYPE_CHECKING:
    from ..config_validation import RawModel, RawRelationship

logger = logging.getLogger(__name__)


@dataclass
class RelationshipResolution:
    """Output of the resolve phase."""

    relationships: List[RelationshipDescriptor] = field(default_factory=list)
    injections: List[FieldInjection] = field(default_factory=list)

    @property
    def join_models(self) -> List[ModelDescriptor]:
        return [r.join_model for r in self.relationships if r.join_model is not None]


def normalize_relationships(
    raw_models: List["RawModel"],
    raw_relationships: Optional[List["RawRelationship"]] = None,
) -> List["RawRelationship"]:
    """
    Collect top-level and inline relationship declarations into one list.

    Top-level declarations come first, then inline ones in model order.
    Inline declarations take their source from the owning model when it is
    omitted and get the id ``<Model>-<fieldName>`` by default.
    """
    normalized = list(raw_relationships or [])

    for raw_model in raw_models:
        for rel in raw_model.relationships:
            normalized.append(
                rel.model_copy(
                    update={
                        'id': rel.id or f"{raw_model.name}-{rel.field_name}",
                        'source_model': rel.source_model or raw_model.name,
                    }
                )
            )

    return normalized


class RelationshipResolver:
    """
    Resolves declared relationships against a lowered model set.

    Relationships are processed in declaration order. Model references are
    looked up through ``aliases`` so a relationship may use the declared
    spelling of a model that was case-fixed or disambiguated.
    """

    def __init__(self, field_lowerer: Optional[FieldLowerer] = None):
        self.field_lowerer = field_lowerer or FieldLowerer()

    def resolve(
        self,
        models: List[ModelDescriptor],
        raw_relationships: List["RawRelationship"],
        diagnostics: Optional[Diagnostics] = None,
        aliases: Optional[Dict[str, str]] = None,
    ) -> RelationshipResolution:
        """
        Validate relationships, synthesize join models and plan injections.

        Args:
            models: Lowered models in declaration order (not modified)
            raw_relationships: Normalized relationship declarations
            diagnostics: Collector shared with the other passes
            aliases: Declared model name -> resolved model name

        Returns:
            RelationshipResolution with descriptors and injection instructions

        Raises:
            UnknownModelReference: a relationship names a model not in the set
            NamingViolation: a join model name collides with an existing model
        """
        if diagnostics is None:
            diagnostics = Diagnostics()

        model_names = {m.name for m in models}
        lookup = {name: name for name in model_names}
        lookup.update(aliases or {})

        resolution = RelationshipResolution()
        join_names: Set[str] = set()

        for index, raw in enumerate(raw_relationships):
            path = f"relationships[{index}]"
            relationship = self._resolve_one(
                raw, path, lookup, model_names, join_names, diagnostics
            )
            if relationship is None:
                continue

            resolution.relationships.append(relationship)
            resolution.injections.extend(self._plan_injections(relationship))

        diagnostics.raise_if_fatal("Relationship resolution")
        logger.info(
            f"Resolved {len(resolution.relationships)} relationship(s), "
            f"{len(resolution.join_models)} join model(s), "
            f"{len(resolution.injections)} injection(s)"
        )
        return resolution

    def _resolve_model(
        self,
        name: Optional[str],
        role: str,
        rel_id: str,
        path: str,
        lookup: Dict[str, str],
        diagnostics: Diagnostics,
    ) -> Optional[str]:
        if not name:
            diagnostics.add_error(
                f"{path}.{role}",
                ViolationCode.INVALID_CONFIG,
                f"Relationship '{rel_id}' does not name its {role}",
                suggestion=f"Set '{role}' or declare the relationship inline on its source model",
            )
            return None

        resolved = lookup.get(name)
        if resolved is None:
            resolved = lookup.get(sanitize_model_name(to_pascal_case(name)))
        if resolved is None:
            diagnostics.add_error(
                f"{path}.{role}",
                ViolationCode.UNKNOWN_MODEL_REFERENCE,
                f"Relationship '{rel_id}' references non-existent {role} '{name}'",
                suggestion="Declare the model or fix the spelling",
                subject=name,
            )
        return resolved

    def _resolve_one(
        self,
        raw: "RawRelationship",
        path: str,
        lookup: Dict[str, str],
        model_names: Set[str],
        join_names: Set[str],
        diagnostics: Diagnostics,
    ) -> Optional[RelationshipDescriptor]:
        rel_id = raw.id or f"{raw.source_model or 'unknown'}_{raw.target_model}_{raw.field_name}"
        kind = RelationshipKind(raw.type)

        # 1. Both endpoints must exist; report both before giving up
        source = self._resolve_model(raw.source_model, "sourceModel", rel_id, path, lookup, diagnostics)
        target = self._resolve_model(raw.target_model, "targetModel", rel_id, path, lookup, diagnostics)
        if source is None or target is None:
            return None

        field_name = resolve_field_name(raw.field_name, source, f"{path}.fieldName", diagnostics)
        if field_name is None:
            return None

        # The reference a one-to-many injects into its target
        inverse_field = None
        if kind == RelationshipKind.ONE_TO_MANY:
            if raw.inverse_field:
                inverse_field = resolve_field_name(
                    raw.inverse_field, target, f"{path}.inverseField", diagnostics
                )
                if inverse_field is None:
                    return None
            else:
                inverse_field = generate_foreign_key_name(source)

        if source == target:
            diagnostics.add_warning(
                path,
                ViolationCode.SELF_REFERENTIAL_RELATIONSHIP,
                f"Relationship '{rel_id}' references its own model '{source}'",
                subject=source,
            )

        # 2. Attributes only mean something on many-to-many
        if raw.attributes and kind != RelationshipKind.MANY_TO_MANY:
            diagnostics.add_warning(
                f"{path}.attributes",
                ViolationCode.IGNORED_ATTRIBUTES,
                f"Relationship '{rel_id}' is {kind.value}; its attributes are ignored",
            )
            attribute_sources = []
        else:
            attribute_sources = raw.attributes

        join_name = None
        if attribute_sources:
            join_name = (
                sanitize_model_name(to_pascal_case(raw.through))
                if raw.through
                else generate_join_model_name(source, target)
            )

        attributes = self._lower_attributes(
            attribute_sources, join_name or source, path, diagnostics
        )

        # 3. Join model for many-to-many with attributes
        join_model = None
        if join_name and attributes:
            if join_name in model_names or join_name in join_names:
                diagnostics.add_error(
                    f"{path}.through",
                    ViolationCode.DUPLICATE_MODEL_NAME,
                    f"Join model name '{join_name}' of relationship '{rel_id}' "
                    f"collides with an existing model",
                    suggestion="Choose a different 'through' name",
                    subject=join_name,
                )
                return None
            join_names.add(join_name)
            join_model = build_model_descriptor(
                join_name,
                attributes,
                timestamps=True,
                original_name=raw.through or join_name,
                is_join_model=True,
            )
            logger.debug(f"Synthesized join model {join_name} for relationship {rel_id}")

        return RelationshipDescriptor(
            id=rel_id,
            kind=kind,
            source_model=source,
            target_model=target,
            field_name=field_name,
            inverse_field=inverse_field,
            through=join_name or raw.through,
            attributes=attributes,
            join_model=join_model,
        )

    def _lower_attributes(
        self,
        raw_attributes,
        owner_name: str,
        path: str,
        diagnostics: Diagnostics,
    ) -> List[FieldDescriptor]:
        attributes: List[FieldDescriptor] = []
        seen: Set[str] = set()

        for index, raw_field in enumerate(raw_attributes):
            attr_path = f"{path}.attributes[{index}]"
            # Join models always carry timestamps
            name = resolve_field_name(
                raw_field.name, owner_name, f"{attr_path}.name", diagnostics, timestamps=True
            )
            if name is None:
                continue

            if name in seen:
                diagnostics.add_error(
                    f"{attr_path}.name",
                    ViolationCode.DUPLICATE_FIELD_NAME,
                    f"Attribute '{owner_name}.{name}' is declared more than once",
                    subject=name,
                )
                continue
            seen.add(name)

            descriptor = self.field_lowerer.lower(
                raw_field, owner_name, diagnostics, path=attr_path, field_name=name
            )
            if descriptor is not None:
                attributes.append(descriptor)

        return attributes

    def _plan_injections(self, relationship: RelationshipDescriptor) -> List[FieldInjection]:
        """Reference fields the relationship adds to existing models."""
        kind = relationship.kind
        source = relationship.source_model
        target = relationship.target_model

        if kind == RelationshipKind.ONE_TO_MANY:
            injected = build_reference_field(relationship.inverse_field, source, required=True)
            return [FieldInjection(target, injected, relationship.id)]

        if kind == RelationshipKind.MANY_TO_ONE:
            injected = build_reference_field(relationship.field_name, target, required=True)
            return [FieldInjection(source, injected, relationship.id)]

        if kind == RelationshipKind.ONE_TO_ONE:
            injected = build_reference_field(
                relationship.field_name, target, required=True, unique=True
            )
            return [FieldInjection(source, injected, relationship.id)]

        # many-to-many: the join model carries the link when there is one
        if relationship.join_model is not None:
            return []
        injected = build_reference_field(relationship.field_name, target, many=True, required=False)
        return [FieldInjection(source, injected, relationship.id)]


def apply_injections(
    models: List[ModelDescriptor],
    injections: List[FieldInjection],
    diagnostics: Optional[Diagnostics] = None,
) -> List[ModelDescriptor]:
    """
    Build new model descriptors carrying the injected reference fields.

    Injections apply in order. One whose field name already exists on the
    model (declared or injected earlier) is skipped with a warning, so the
    first declaration wins and applying the same injections twice adds
    nothing. The input descriptors are not modified.

    Args:
        models: Lowered models
        injections: Instructions from RelationshipResolver.resolve
        diagnostics: Collector for DUPLICATE_INJECTION warnings

    Returns:
        Models in the same order; untouched models are returned as-is
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    if not injections:
        return list(models)

    new_fields: Dict[str, List[FieldDescriptor]] = {m.name: list(m.fields) for m in models}
    changed: Set[str] = set()

    for injection in injections:
        fields = new_fields.get(injection.model_name)
        if fields is None:
            diagnostics.add_error(
                f"relationships.{injection.relationship_id}",
                ViolationCode.UNKNOWN_MODEL_REFERENCE,
                f"Cannot inject '{injection.field.name}' into unknown model "
                f"'{injection.model_name}'",
                subject=injection.model_name,
            )
            continue

        if any(f.name == injection.field.name for f in fields):
            diagnostics.add_warning(
                f"relationships.{injection.relationship_id}",
                ViolationCode.DUPLICATE_INJECTION,
                f"Field '{injection.model_name}.{injection.field.name}' already exists; "
                f"injection from relationship '{injection.relationship_id}' skipped",
                subject=injection.field.name,
            )
            continue

        fields.append(injection.field)
        changed.add(injection.model_name)
        logger.debug(
            f"Injected {injection.model_name}.{injection.field.name} -> "
            f"{injection.field.referenced_model}"
        )

    diagnostics.raise_if_fatal("Relationship injection")

    return [
        replace(model, fields=new_fields[model.name]) if model.name in changed else model
        for model in models
    ]
