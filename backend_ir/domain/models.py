"""
Core domain models for Backend IR.

These dataclasses are the intermediate representation handed to the
renderer. They are independent of any template engine or target framework:
every name, constraint and policy a renderer needs is resolved here.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple
from enum import Enum


class DeclaredType(Enum):
    """Field types a model declaration may use."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    STRING_ARRAY = "string[]"
    JSON = "json"
    JSON_ARRAY = "json[]"
    REFERENCE = "reference"
    REFERENCE_ARRAY = "reference[]"
    ENUM = "enum"

    @classmethod
    def parse(cls, raw: str) -> Optional["DeclaredType"]:
        """
        Resolve a raw type name, accepting legacy aliases.

        Returns:
            The matching member, or None when the name is unknown
        """
        if not isinstance(raw, str):
            return None
        key = raw.strip()
        key = TYPE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None

    @property
    def is_array(self) -> bool:
        return self in (
            DeclaredType.STRING_ARRAY,
            DeclaredType.JSON_ARRAY,
            DeclaredType.REFERENCE_ARRAY,
        )

    @property
    def is_reference(self) -> bool:
        return self in (DeclaredType.REFERENCE, DeclaredType.REFERENCE_ARRAY)


TYPE_ALIASES: Dict[str, str] = {
    "objectId": "reference",
    "objectId[]": "reference[]",
    "Date": "date",
    "array": "string[]",
}


# declared type -> (language-neutral target type, storage type)
TYPE_TABLE: Dict[DeclaredType, Tuple[str, str]] = {
    DeclaredType.STRING: ("string", "String"),
    DeclaredType.NUMBER: ("number", "Number"),
    DeclaredType.BOOLEAN: ("boolean", "Boolean"),
    DeclaredType.DATE: ("date", "Date"),
    DeclaredType.DATETIME: ("datetime", "Date"),
    DeclaredType.STRING_ARRAY: ("string[]", "[String]"),
    DeclaredType.JSON: ("object", "Mixed"),
    DeclaredType.JSON_ARRAY: ("object[]", "[Mixed]"),
    DeclaredType.REFERENCE: ("reference", "ObjectId"),
    DeclaredType.REFERENCE_ARRAY: ("reference[]", "[ObjectId]"),
    DeclaredType.ENUM: ("string", "String"),
}


class RelationshipKind(Enum):
    """Cardinality of a declared relationship."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


class Sensitivity(Enum):
    """Risk tier of a model, driving its default access policy."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BindingArity(Enum):
    """Whether a seeded reference holds one id or a list of ids."""

    ONE = "one"
    ARRAY = "array"


@dataclass
class FieldConstraints:
    """Value constraints of a field, user supplied or inferred."""

    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    enum_values: Optional[List[str]] = None

    def to_dict(self, drop_empty: bool = True) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = {
            'min_length': self.min_length,
            'max_length': self.max_length,
            'min': self.min,
            'max': self.max,
            'pattern': self.pattern,
            'enum_values': list(self.enum_values) if self.enum_values is not None else None,
        }
        if drop_empty:
            return {key: value for key, value in data.items() if value is not None}
        return data


@dataclass
class FieldSuggestion:
    """
    Constraint, example and documentation hints for one field.

    Produced by a suggestion provider, either from the built-in name
    heuristics or from answers the caller fetched ahead of time.
    """

    constraints: FieldConstraints = field(default_factory=FieldConstraints)
    example: Optional[Any] = None
    description: str = ""
    validators: List[str] = field(default_factory=list)


@dataclass
class FieldDescriptor:
    """
    One resolved field of a model.

    Relationship resolution produces descriptors with ``is_reference`` set
    and ``referenced_model`` naming the model the field points at.
    """

    name: str
    declared_type: DeclaredType
    target_type: str
    storage_type: str
    required: bool = False
    unique: bool = False
    indexed: bool = False
    default_value: Optional[Any] = None
    constraints: FieldConstraints = field(default_factory=FieldConstraints)
    validators: List[str] = field(default_factory=list)
    example: Optional[Any] = None
    description: str = ""

    # Relationship injection
    is_reference: bool = False
    referenced_model: Optional[str] = None

    @property
    def is_array(self) -> bool:
        return self.declared_type.is_array

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'name': self.name,
            'declared_type': self.declared_type.value,
            'target_type': self.target_type,
            'storage_type': self.storage_type,
            'required': self.required,
            'unique': self.unique,
            'indexed': self.indexed,
            'default_value': self.default_value,
            'constraints': self.constraints.to_dict(),
            'validators': list(self.validators),
            'example': self.example,
            'description': self.description,
            'is_reference': self.is_reference,
            'referenced_model': self.referenced_model,
        }


@dataclass
class AccessPolicy:
    """
    Role restrictions per CRUD operation.

    ``None`` for an operation means any authenticated caller may perform it.
    """

    sensitivity: Sensitivity = Sensitivity.LOW
    create: Optional[List[str]] = None
    read: Optional[List[str]] = None
    update: Optional[List[str]] = None
    delete: Optional[List[str]] = None

    @property
    def is_restricted(self) -> bool:
        return any(roles is not None for roles in (self.create, self.read, self.update, self.delete))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'sensitivity': self.sensitivity.value,
            'create': self.create,
            'read': self.read,
            'update': self.update,
            'delete': self.delete,
        }


@dataclass
class ModelDescriptor:
    """
    One resolved model with every derived name a renderer needs.

    Instances produced by model lowering are never modified afterwards;
    relationship injection returns new descriptors with extended fields.
    """

    name: str
    camel_name: str
    kebab_name: str
    plural_camel: str
    plural_kebab: str
    route_path: str
    create_dto_name: str
    update_dto_name: str
    output_dto_name: str
    fields: List[FieldDescriptor] = field(default_factory=list)
    timestamps: bool = True
    access_policy: AccessPolicy = field(default_factory=AccessPolicy)

    # Name as declared, before case fixes and disambiguation
    original_name: Optional[str] = None
    is_join_model: bool = False

    def __post_init__(self):
        if self.original_name is None:
            self.original_name = self.name

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def reference_fields(self) -> List[FieldDescriptor]:
        return [f for f in self.fields if f.is_reference]

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        """Get a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'name': self.name,
            'original_name': self.original_name,
            'camel_name': self.camel_name,
            'kebab_name': self.kebab_name,
            'plural_camel': self.plural_camel,
            'plural_kebab': self.plural_kebab,
            'route_path': self.route_path,
            'fields': [f.to_dict() for f in self.fields],
            'timestamps': self.timestamps,
            'create_dto_name': self.create_dto_name,
            'update_dto_name': self.update_dto_name,
            'output_dto_name': self.output_dto_name,
            'access_policy': self.access_policy.to_dict(),
            'is_join_model': self.is_join_model,
        }


@dataclass
class RelationshipDescriptor:
    """One resolved relationship between two models of the project."""

    id: str
    kind: RelationshipKind
    source_model: str
    target_model: str
    field_name: str
    # Reference injected into the target of a one-to-many
    inverse_field: Optional[str] = None
    through: Optional[str] = None
    attributes: List[FieldDescriptor] = field(default_factory=list)
    join_model: Optional[ModelDescriptor] = None
    is_self_referential: bool = False

    def __post_init__(self):
        if self.source_model == self.target_model:
            self.is_self_referential = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'id': self.id,
            'kind': self.kind.value,
            'source_model': self.source_model,
            'target_model': self.target_model,
            'field_name': self.field_name,
            'inverse_field': self.inverse_field,
            'through': self.through,
            'attributes': [a.to_dict() for a in self.attributes],
            'join_model': self.join_model.to_dict() if self.join_model else None,
            'is_self_referential': self.is_self_referential,
        }


@dataclass
class FieldInjection:
    """Instruction to add a reference field to an existing model."""

    model_name: str
    field: FieldDescriptor
    relationship_id: str


@dataclass
class FieldStrategy:
    """
    How to generate synthetic values for one field.

    ``provider`` names a Faker provider method called with ``arguments``.
    When ``repeat`` is set the call is made that many times to build a list.
    """

    field_name: str
    provider: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    unique: bool = False
    repeat: Optional[int] = None

    @property
    def expression(self) -> str:
        """The strategy as a Python generator expression over a ``faker`` instance."""
        args = ", ".join(f"{key}={value!r}" for key, value in self.arguments.items())
        proxy = "faker.unique" if self.unique else "faker"
        call = f"{proxy}.{self.provider}({args})"
        if self.repeat is not None:
            return f"[{call} for _ in range({self.repeat})]"
        return call

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'field_name': self.field_name,
            'provider': self.provider,
            'arguments': dict(self.arguments),
            'unique': self.unique,
            'repeat': self.repeat,
            'expression': self.expression,
        }


@dataclass
class RelationshipBinding:
    """A reference field to fill with ids of previously seeded rows."""

    field_name: str
    target_model: str
    arity: BindingArity = BindingArity.ONE
    # Target is seeded later (cycle or self reference); fill in a second pass
    deferred: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'field_name': self.field_name,
            'target_model': self.target_model,
            'arity': self.arity.value,
            'deferred': self.deferred,
        }


@dataclass
class SeedPlan:
    """Synthetic-data plan for one model."""

    model_name: str
    order: int
    count: int
    field_strategies: List[FieldStrategy] = field(default_factory=list)
    relationship_bindings: List[RelationshipBinding] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'model_name': self.model_name,
            'order': self.order,
            'count': self.count,
            'field_strategies': [s.to_dict() for s in self.field_strategies],
            'relationship_bindings': [b.to_dict() for b in self.relationship_bindings],
        }


@dataclass
class ProjectIR:
    """
    The assembled intermediate representation of one project.

    This is the sole contract with the renderer.
    """

    project: Dict[str, Any]
    database: Dict[str, Any]
    models: List[ModelDescriptor] = field(default_factory=list)
    relationships: List[RelationshipDescriptor] = field(default_factory=list)
    features: Dict[str, bool] = field(default_factory=dict)
    seed_plan: Optional[List[SeedPlan]] = None
    auth: Optional[Dict[str, Any]] = None
    oauth: Optional[Dict[str, Any]] = None
    docker: Optional[Dict[str, Any]] = None
    cicd: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    warnings: List[Dict[str, Any]] = field(default_factory=list)

    def get_model(self, name: str) -> Optional[ModelDescriptor]:
        """Get a model by its resolved name."""
        for model in self.models:
            if model.name == name:
                return model
        return None

    @property
    def join_models(self) -> List[ModelDescriptor]:
        return [rel.join_model for rel in self.relationships if rel.join_model is not None]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'project': self.project,
            'database': self.database,
            'models': [m.to_dict() for m in self.models],
            'relationships': [r.to_dict() for r in self.relationships],
            'seed_plan': [p.to_dict() for p in self.seed_plan] if self.seed_plan is not None else None,
            'auth': self.auth,
            'oauth': self.oauth,
            'features': self.features,
            'docker': self.docker,
            'cicd': self.cicd,
            'metadata': self.metadata,
            'warnings': self.warnings,
        }
