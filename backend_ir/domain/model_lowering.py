"""
Model lowering for Backend IR.

Validates the declared model set as a whole (names, uniqueness, reserved
identifiers), derives every name a renderer needs for each model, lowers
its fields and infers its default access policy.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Iterable, TYPE_CHECKING

from ..constants import NamingRules, Roles, SensitivityVocabulary
from ..validators import Diagnostics, ViolationCode
from .field_lowering import FieldLowerer
from .models import AccessPolicy, FieldDescriptor, ModelDescriptor, Sensitivity
from .naming import (
    is_camel_case,
    is_pascal_case,
    is_reserved_field_name,
    pluralize,
    sanitize_model_name,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
)

if TYPE_CHECKING:
    from ..config_validation import RawModel

logger = logging.getLogger(__name__)


def classify_sensitivity(model_name: str, field_names: Iterable[str]) -> Sensitivity:
    """
    Tier a model by its name and the names of its fields.

    A sensitive field name (password, ssn, salary, ...) makes any model
    high sensitivity, whatever its name.

    Example:
        >>> classify_sensitivity("Transaction", ["creditCardNumber"])
        <Sensitivity.HIGH: 'high'>
        >>> classify_sensitivity("Order", ["total"])
        <Sensitivity.MEDIUM: 'medium'>
    """
    lower_name = model_name.lower()
    lower_fields = [name.lower() for name in field_names]

    if any(term in lower_name for term in SensitivityVocabulary.HIGH_SENSITIVITY_MODELS):
        return Sensitivity.HIGH
    if any(
        marker in field_name
        for field_name in lower_fields
        for marker in SensitivityVocabulary.SENSITIVE_FIELD_MARKERS
    ):
        return Sensitivity.HIGH
    if any(term in lower_name for term in SensitivityVocabulary.MEDIUM_SENSITIVITY_MODELS):
        return Sensitivity.MEDIUM
    return Sensitivity.LOW


def infer_access_policy(model_name: str, field_names: Iterable[str]) -> AccessPolicy:
    """
    Default role restrictions for a model's CRUD operations.

    Reads are never restricted to a role; authentication is enforced
    upstream.
    """
    sensitivity = classify_sensitivity(model_name, field_names)

    if sensitivity == Sensitivity.HIGH:
        return AccessPolicy(
            sensitivity=sensitivity,
            create=[Roles.ADMIN],
            update=[Roles.ADMIN],
            delete=[Roles.ADMIN],
        )
    if sensitivity == Sensitivity.MEDIUM:
        return AccessPolicy(
            sensitivity=sensitivity,
            create=[Roles.ADMIN, Roles.MANAGER],
            update=[Roles.ADMIN, Roles.MANAGER],
            delete=[Roles.ADMIN],
        )
    return AccessPolicy(sensitivity=sensitivity)


def resolve_field_name(
    raw_name: str,
    owner: str,
    path: str,
    diagnostics: Diagnostics,
    timestamps: bool = False,
) -> Optional[str]:
    """
    Case-fix a declared field name and reject reserved ones.

    The reserved check runs on the declared spelling and again on the
    fixed one, so ``__v`` is rejected before the case fix turns it into
    ``v``. With ``timestamps`` set, ``createdAt``/``updatedAt`` are
    reserved too.

    Args:
        raw_name: Field name as declared
        owner: Name of the model the field will belong to, used in messages
        path: Config path of the name, used in violations
        diagnostics: Collector for violations

    Returns:
        The camelCase name, or None when a fatal violation was recorded
    """
    def is_reserved(name: str) -> bool:
        return is_reserved_field_name(name) or (
            timestamps and name in NamingRules.TIMESTAMP_FIELD_NAMES
        )

    def reject(name: str) -> None:
        diagnostics.add_error(
            path,
            ViolationCode.RESERVED_FIELD_NAME,
            f"Field name '{owner}.{name}' is reserved",
            suggestion=f"Rename the field, e.g. '{to_camel_case(owner)}{to_pascal_case(name)}'",
            subject=name,
        )

    if is_reserved(raw_name):
        reject(raw_name)
        return None

    name = raw_name
    if not is_camel_case(name):
        fixed = to_camel_case(name)
        if not is_camel_case(fixed):
            diagnostics.add_error(
                path,
                ViolationCode.INVALID_FIELD_NAME,
                f"Field name '{owner}.{name}' cannot be turned into a camelCase identifier",
                suggestion="Start the name with a letter and use letters and digits only",
                subject=name,
            )
            return None
        diagnostics.add_warning(
            path,
            ViolationCode.INVALID_FIELD_NAME_FORMAT,
            f"Field name '{owner}.{name}' is not camelCase; using '{fixed}'",
            suggestion=fixed,
            subject=name,
        )
        name = fixed

    if is_reserved(name):
        reject(name)
        return None
    return name


def build_model_descriptor(
    name: str,
    fields: List[FieldDescriptor],
    timestamps: bool = True,
    original_name: Optional[str] = None,
    is_join_model: bool = False,
) -> ModelDescriptor:
    """
    Derive names, routes, DTO names and access policy for a resolved model.

    Pluralization runs on the PascalCase name before case conversion:
    "BlogCategory" -> "BlogCategories" -> "blogCategories" / "blog-categories".
    """
    plural = pluralize(name)
    plural_kebab = to_kebab_case(plural)

    return ModelDescriptor(
        name=name,
        camel_name=to_camel_case(name),
        kebab_name=to_kebab_case(name),
        plural_camel=to_camel_case(plural),
        plural_kebab=plural_kebab,
        route_path=f"/{plural_kebab}",
        create_dto_name=f"Create{name}Dto",
        update_dto_name=f"Update{name}Dto",
        output_dto_name=f"{name}OutputDto",
        fields=list(fields),
        timestamps=timestamps,
        access_policy=infer_access_policy(name, [f.name for f in fields]),
        original_name=original_name,
        is_join_model=is_join_model,
    )


@dataclass
class ModelLoweringResult:
    """Lowered models plus the declared-name -> resolved-name lookup."""

    models: List[ModelDescriptor] = field(default_factory=list)
    # Declared, case-fixed and resolved spellings all map to the resolved name
    aliases: Dict[str, str] = field(default_factory=dict)

    def resolve(self, name: Optional[str]) -> Optional[str]:
        """Resolved model name for a reference, or None if unknown."""
        if name is None:
            return None
        return self.aliases.get(name)


class ModelLowerer:
    """
    Lowers the declared model set.

    All naming and structural violations across every model are collected
    before anything is raised.
    """

    def __init__(self, field_lowerer: Optional[FieldLowerer] = None):
        self.field_lowerer = field_lowerer or FieldLowerer()

    def lower_all(
        self,
        raw_models: List["RawModel"],
        diagnostics: Optional[Diagnostics] = None,
    ) -> ModelLoweringResult:
        """
        Lower every model declaration.

        Args:
            raw_models: Model declarations in declaration order
            diagnostics: Collector shared with the other passes

        Returns:
            ModelLoweringResult with models in declaration order

        Raises:
            NamingViolation: duplicate, reserved or unusable names
            UnsupportedFieldType: a field declares an unknown type
        """
        if diagnostics is None:
            diagnostics = Diagnostics()

        result = ModelLoweringResult()
        seen_names: Dict[str, str] = {}

        for index, raw_model in enumerate(raw_models):
            path = f"models[{index}]"
            name = self._resolve_model_name(raw_model.name, path, diagnostics)
            if name is None:
                continue

            if name in seen_names:
                diagnostics.add_error(
                    f"{path}.name",
                    ViolationCode.DUPLICATE_MODEL_NAME,
                    f"Model name '{name}' is declared more than once "
                    f"(first as '{seen_names[name]}')",
                    suggestion="Rename one of the models",
                    subject=name,
                )
                continue
            seen_names[name] = raw_model.name

            fields = self._lower_fields(raw_model, name, path, diagnostics)
            model = build_model_descriptor(
                name,
                fields,
                timestamps=raw_model.timestamps,
                original_name=raw_model.name,
            )
            result.models.append(model)

            for alias in (raw_model.name, to_pascal_case(raw_model.name), name):
                result.aliases.setdefault(alias, name)

            logger.debug(
                f"Lowered model {name}: {len(fields)} field(s), "
                f"sensitivity={model.access_policy.sensitivity.value}"
            )

        diagnostics.raise_if_fatal("Model lowering")
        logger.info(f"Lowered {len(result.models)} model(s)")
        return result

    def _resolve_model_name(
        self, raw_name: str, path: str, diagnostics: Diagnostics
    ) -> Optional[str]:
        """Case-fix and disambiguate a declared model name."""
        name = raw_name
        if not is_pascal_case(name):
            fixed = to_pascal_case(name)
            if not is_pascal_case(fixed):
                diagnostics.add_error(
                    f"{path}.name",
                    ViolationCode.INVALID_MODEL_NAME_FORMAT,
                    f"Model name '{raw_name}' cannot be turned into a PascalCase identifier",
                    suggestion="Start the name with a letter and use letters and digits only",
                    subject=raw_name,
                )
                return None
            diagnostics.add_warning(
                f"{path}.name",
                ViolationCode.INVALID_MODEL_NAME_FORMAT,
                f"Model name '{raw_name}' is not PascalCase; using '{fixed}'",
                suggestion=fixed,
                subject=raw_name,
            )
            name = fixed

        sanitized = sanitize_model_name(name)
        if sanitized != name:
            diagnostics.add_warning(
                f"{path}.name",
                ViolationCode.MODEL_NAME_DISAMBIGUATED,
                f"Model name '{name}' shadows a built-in type; using '{sanitized}'",
                suggestion=sanitized,
                subject=name,
            )
        return sanitized

    def _lower_fields(
        self,
        raw_model: "RawModel",
        model_name: str,
        path: str,
        diagnostics: Diagnostics,
    ) -> List[FieldDescriptor]:
        fields: List[FieldDescriptor] = []
        seen: set = set()

        for index, raw_field in enumerate(raw_model.fields):
            field_path = f"{path}.fields[{index}]"
            name = resolve_field_name(
                raw_field.name,
                model_name,
                f"{field_path}.name",
                diagnostics,
                timestamps=raw_model.timestamps,
            )
            if name is None:
                continue

            if name in seen:
                diagnostics.add_error(
                    f"{field_path}.name",
                    ViolationCode.DUPLICATE_FIELD_NAME,
                    f"Field name '{model_name}.{name}' is declared more than once",
                    suggestion="Remove or rename the duplicate field",
                    subject=name,
                )
                continue
            seen.add(name)

            descriptor = self.field_lowerer.lower(
                raw_field, model_name, diagnostics, path=field_path, field_name=name
            )
            if descriptor is not None:
                fields.append(descriptor)

        return fields
